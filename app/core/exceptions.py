from fastapi import status


class AppError(Exception):
    """Base for errors that map onto a client-facing HTTP response."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Request could not be processed"
    headers: dict[str, str] | None = None

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid input data"


class InvalidDiscountError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Discount exceeds subtotal plus tax"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Resource not found"


class NoUnbilledEntriesError(NotFoundError):
    default_detail = "No unbilled time logs found for this project"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Resource was modified by another request"


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Invalid authentication"
    headers = {"WWW-Authenticate": "Bearer"}
