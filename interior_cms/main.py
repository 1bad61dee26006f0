"""
FastAPI application entry point.
Main application instance with middleware and route configuration.
"""
from fastapi import FastAPI, Request, status, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
import logging

from interior_cms.backend import Configured, get_backend, init_backend
from interior_cms.cache import query_cache
from interior_cms.config import settings
from interior_cms.errors import BackendError, ConfigurationError
from interior_cms.routes import cms, cms_auth, public
from interior_cms.services.auth import admin_session
from interior_cms.utils.rate_limit import limiter

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

BACKEND_ERROR_MESSAGE = "요청을 처리하는 중 오류가 발생했습니다."

# Create FastAPI application instance
app = FastAPI(
    title=settings.API_TITLE,
    description=settings.API_DESCRIPTION,
    version=settings.API_VERSION,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS Middleware Configuration
# Credentials are allowed so the admin panel can send the httpOnly token cookie
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    max_age=3600,  # Cache preflight requests for 1 hour
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every request with its response status."""
    method = request.method
    path = request.url.path

    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(
            f"Error processing {method} {path}: {str(e)}\n"
            f"  Error type: {type(e).__name__}",
            exc_info=True
        )
        raise

    logger.info(f"Response status: {response.status_code} for {method} {path}")
    return response


app.include_router(public.router, prefix="/api", tags=["public"])
app.include_router(cms_auth.router, prefix="/api")
app.include_router(cms.router, prefix="/api")


def add_cors_headers(response: JSONResponse, request: Request) -> JSONResponse:
    """
    Add CORS headers to error responses.
    Handlers registered for Exception bypass CORSMiddleware, so allowed
    origins are echoed back here.

    Args:
        response: The JSONResponse to add headers to
        request: The incoming request

    Returns:
        JSONResponse with CORS headers added
    """
    origin = request.headers.get("origin")
    if origin and origin in settings.CORS_ORIGINS:
        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Access-Control-Allow-Credentials"] = "true"
        response.headers["Vary"] = "Origin"

    return response


# Exception Handlers
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions (400, 401, 404, etc.) with CORS headers."""
    logger.error(
        f"HTTPException on {request.method} {request.url.path}:\n"
        f"  Status: {exc.status_code}\n"
        f"  Detail: {exc.detail}"
    )

    # Handle both string and dict detail formats
    if isinstance(exc.detail, dict):
        content = exc.detail
    else:
        content = {"error": exc.detail, "detail": str(exc.detail)}

    response = JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=getattr(exc, "headers", None),
    )

    return add_cors_headers(response, request)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
):
    """Handle request validation errors."""
    logger.error(
        f"Validation error on {request.method} {request.url.path}:\n"
        f"  Errors: {exc.errors()}"
    )
    response = JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "Validation error",
            "detail": jsonable_errors(exc)
        }
    )
    return add_cors_headers(response, request)


def jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may hold the raw ValueError raised by a validator
    return [
        {key: value for key, value in error.items() if key != "ctx"}
        for error in exc.errors()
    ]


@app.exception_handler(ConfigurationError)
async def configuration_exception_handler(request: Request, exc: ConfigurationError):
    """Writes attempted while Supabase is not configured."""
    logger.error(f"Backend not configured on {request.method} {request.url.path}: {exc.message}")
    response = JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"error": "Backend not configured", "detail": exc.message}
    )
    return add_cors_headers(response, request)


@app.exception_handler(BackendError)
async def backend_exception_handler(request: Request, exc: BackendError):
    """Supabase rejected the request."""
    logger.error(
        f"Backend error on {request.method} {request.url.path}:\n"
        f"  Code: {exc.code}\n"
        f"  Message: {exc.message}\n"
        f"  Details: {exc.details}\n"
        f"  Hint: {exc.hint}"
    )
    response = JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"error": BACKEND_ERROR_MESSAGE}
    )
    return add_cors_headers(response, request)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions."""
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}:\n"
        f"  Error: {str(exc)}\n"
        f"  Error type: {type(exc).__name__}",
        exc_info=True
    )
    response = JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "detail": "An unexpected error occurred"
        }
    )
    return add_cors_headers(response, request)


# Root Endpoints
@app.get("/")
async def root():
    """Root endpoint - API health check."""
    return {
        "message": settings.API_TITLE,
        "status": "healthy",
        "version": settings.API_VERSION
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/health/backend")
async def health_check_backend():
    """
    Supabase configuration check.
    Reports whether the client handle was built; no request is sent.
    """
    backend = get_backend()
    if isinstance(backend, Configured):
        return {
            "backend": "configured",
            "status": "healthy",
            "storage_bucket": settings.STORAGE_BUCKET,
            "cache_entries": len(query_cache.keys())
        }
    return {
        "backend": "not_configured",
        "status": "warning",
        "message": backend.reason
    }


@app.on_event("startup")
async def startup_event():
    """
    Build the Supabase client and attach to its auth events.
    Non-blocking: app will start even if Supabase is not configured.
    """
    logger.info(f"CORS allowed origins: {settings.CORS_ORIGINS}")
    init_backend()
    admin_session.attach()


@app.on_event("shutdown")
async def shutdown_event():
    """Detach from Supabase auth events and drop cached reads."""
    admin_session.detach()
    query_cache.clear()
