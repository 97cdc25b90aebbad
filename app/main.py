from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.exceptions import AppError
from app.core.logging import get_logger, setup_logging
from app.db.base import Base
from app.db.session import engine

from app.api.routes import (
    auth,
    clients,
    projects,
    time_logs,
    invoices,
    payments,
    expenses,
    reports,
)


setup_logging()
logger = get_logger(__name__)

app = FastAPI(title=settings.APP_NAME)

# ===============================
# CORS CONFIGURATION
# ===============================
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ===============================
# ERROR HANDLERS
# ===============================
@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    else:
        logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.detail)

    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=exc.headers,
    )


def _format_validation_errors(exc: RequestValidationError) -> str:
    messages = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc)
        messages.append(f"{field}: {error.get('msg')}" if field else error.get("msg", "Invalid value"))
    return ", ".join(messages)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    detail = _format_validation_errors(exc)
    logger.info("%s %s -> 400: %s", request.method, request.url.path, detail)

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": f"Invalid input data. {detail}"},
    )


# ===============================
# CREATE DATABASE TABLES
# ===============================
if settings.CREATE_TABLES_ON_STARTUP:
    Base.metadata.create_all(bind=engine)

# ===============================
# INCLUDE ROUTERS
# ===============================
app.include_router(auth.router)
app.include_router(clients.router)
app.include_router(projects.router)
app.include_router(time_logs.router)
app.include_router(invoices.router)
app.include_router(payments.router)
app.include_router(expenses.router)
app.include_router(reports.router)


# ===============================
# ROOT ENDPOINT
# ===============================
@app.get("/")
def root():
    return {"status": "Backend running successfully"}
