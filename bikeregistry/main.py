import logging
import os
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import models  # noqa: F401 - registers models with Base
from .database import Base, engine
from .domain.bicycles.router import router as bicycles_router
from .domain.billing.router import router as subscriptions_router
from .domain.billing.webhooks import webhooks_router
from .domain.certificates.router import router as certificates_router
from .domain.promo_codes.router import router as promo_codes_router
from .domain.theft_reports.router import router as theft_reports_router
from .domain.verification.router import router as verification_router
from .routes.admin import router as admin_router
from .routes.auth import router as auth_router
from .routes.contact import router as contact_router
from .routes.payments import router as payments_router
from .routes.users import router as users_router
from .security_headers import SecurityHeadersMiddleware

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("botocore").setLevel(logging.WARNING)

SECURITY_HEADERS_ENABLED = os.getenv("SECURITY_HEADERS_ENABLED", "true").lower() == "true"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        # Ignore "already exists" errors from race conditions between workers
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")

    try:
        from .rate_limiter import get_redis_client

        get_redis_client().ping()
        logger.info("Redis connection established")
    except Exception as e:
        logger.warning(f"Redis connection failed - rate limited endpoints will return 503: {e}")

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="Registro Nacional de Bicis API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Convert 422 validation errors from HTTPBearer to 401 authentication errors
    when the issue is with the Authorization header
    """
    for error in exc.errors():
        if error.get("loc") and "authorization" in str(error.get("loc")).lower():
            logger.warning(
                f"Authentication failed for {request.url.path}: Missing or invalid Authorization header"
            )
            return JSONResponse(
                status_code=401,
                content={
                    "detail": "Not authenticated. Please provide a valid Bearer token in the Authorization header."
                },
            )

    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=422, content={"detail": jsonable_errors(exc)})


def jsonable_errors(exc: RequestValidationError) -> list:
    """Validation errors with non-serializable context (e.g. exceptions) stringified"""
    errors = []
    for error in exc.errors():
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {key: str(value) for key, value in error["ctx"].items()}
        error.pop("input", None)
        errors.append(error)
    return errors


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()
    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} - Error: {str(e)}")
        raise

    duration_ms = (time.time() - start_time) * 1000
    if response.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} - {response.status_code} ({duration_ms:.0f}ms)")
    return response


if SECURITY_HEADERS_ENABLED:
    app.add_middleware(
        SecurityHeadersMiddleware, exclude_paths=["/health", "/docs", "/openapi.json"]
    )
    logger.info("Security headers enabled")
else:
    logger.warning("Security headers DISABLED - only use in development!")

# CORS Configuration
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "https://registronacionaldebicicletas.com,https://www.registronacionaldebicicletas.com,"
    "http://localhost:3000",
).split(",")

logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Routes
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(subscriptions_router)
app.include_router(webhooks_router)
app.include_router(promo_codes_router)
app.include_router(bicycles_router)
app.include_router(theft_reports_router)
app.include_router(certificates_router)
app.include_router(verification_router)
app.include_router(contact_router)
app.include_router(payments_router)
app.include_router(admin_router)


@app.get("/")
def root():
    return {"message": "Registro Nacional de Bicis API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}
