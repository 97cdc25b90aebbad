from dataclasses import dataclass
from typing import Generator

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import AuthenticationError
from app.db.session import SessionLocal
from app.models.user import User


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


@dataclass(frozen=True)
class RequestContext:
    """Per-request view of who is calling and how amounts are presented."""

    user: User
    currency: str

    @property
    def user_id(self) -> int:
        return self.user.id


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(
    token: str | None = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    if not token:
        raise AuthenticationError("Missing authentication token")

    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
        )
    except ExpiredSignatureError:
        raise AuthenticationError("Token expired")
    except JWTError:
        raise AuthenticationError("Invalid authentication token")

    email = payload.get("sub")
    if not isinstance(email, str) or not email.strip():
        raise AuthenticationError("Invalid token payload")

    user = db.query(User).filter(User.email == email).first()
    if user is None:
        raise AuthenticationError("User not found")

    return user


def get_request_context(user: User = Depends(get_current_user)) -> RequestContext:
    return RequestContext(
        user=user,
        currency=user.currency or settings.DEFAULT_CURRENCY,
    )
