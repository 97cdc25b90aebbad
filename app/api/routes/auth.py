from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.dependencies import RequestContext, get_db, get_request_context
from app.core.exceptions import AuthenticationError, ConflictError
from app.core.security import create_access_token, hash_password, verify_password
from app.models.user import User
from app.schemas.user import Token, UserCreate, UserResponse
from app.services.audit_service import log_auth_event


router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=UserResponse)
def register(user: UserCreate, db: Session = Depends(get_db)):
    email = user.email.strip().lower()
    existing_user = db.query(User).filter(func.lower(User.email) == email).first()
    if existing_user:
        raise ConflictError("Email already registered")

    new_user = User(
        full_name=user.full_name.strip(),
        email=email,
        hashed_password=hash_password(user.password),
        currency=(user.currency or settings.DEFAULT_CURRENCY).upper(),
        default_hourly_rate=user.default_hourly_rate,
    )

    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    log_auth_event(
        db=db,
        action="AUTH_REGISTER_SUCCESS",
        email=new_user.email,
        user_id=new_user.id,
    )

    return new_user


@router.post("/login", response_model=Token)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    email = (form_data.username or "").strip().lower()
    db_user = db.query(User).filter(func.lower(User.email) == email).first()

    if not db_user or not verify_password(form_data.password, db_user.hashed_password):
        log_auth_event(
            db=db,
            action="AUTH_LOGIN_FAILED",
            email=email,
            details="Invalid credentials",
        )
        raise AuthenticationError("Invalid credentials")

    access_token = create_access_token(
        data={
            "sub": db_user.email,
            "name": db_user.full_name or "",
        }
    )

    log_auth_event(
        db=db,
        action="AUTH_LOGIN_SUCCESS",
        email=db_user.email,
        user_id=db_user.id,
    )

    return Token(access_token=access_token)


@router.get("/me", response_model=UserResponse)
def me(ctx: RequestContext = Depends(get_request_context)):
    return ctx.user
