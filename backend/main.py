# ruff: noqa: E402
# E402 disabled: load_dotenv() must run before settings are read

import time
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager

from dotenv import load_dotenv

load_dotenv()

import sentry_sdk
import uvicorn
from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from core.correlation import (
    CORRELATION_HEADER,
    generate_correlation_id,
    get_correlation_id,
    set_correlation_id,
)
from core.logging_config import configure_logging
from core.sentry_config import init_sentry
from helpers.security_headers import SecurityHeadersMiddleware
from models.config import Settings, get_settings
from models.exceptions import (
    DomainException,
    EmailDeliveryException,
    RateLimitExceededException,
    ValidationException,
)
from routers import contact_router, health_router
from services.contact_service import ContactMailDispatcher, ContactService
from services.email_service import EmailProvider, get_email_provider
from services.rate_limit_service import FixedWindowRateLimiter

NOT_FOUND_MESSAGE = "Endpoint not found"
INVALID_BODY_MESSAGE = "Invalid request body"
INTERNAL_ERROR_MESSAGE = "Internal server error"


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Inject correlation ID into request context and Sentry."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Process request with correlation ID tracking."""
        # Reuse the caller's ID (from the site's script) when it sends one
        correlation_id = (
            request.headers.get(CORRELATION_HEADER) or generate_correlation_id()
        )
        set_correlation_id(correlation_id)
        sentry_sdk.set_tag("correlation_id", correlation_id)

        response = await call_next(request)
        response.headers[CORRELATION_HEADER] = correlation_id
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log all incoming requests with timing."""

    def __init__(self, app, slow_request_threshold: float) -> None:
        super().__init__(app)
        self.slow_request_threshold = slow_request_threshold

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Process request and log timing information."""
        start_time = time.perf_counter()
        logger.info(f"Request: {request.method} {request.url.path}")

        response = await call_next(request)

        duration = time.perf_counter() - start_time
        logger.info(
            f"Response: {request.method} {request.url.path} "
            f"status={response.status_code} duration={duration:.3f}s"
        )

        if duration > self.slow_request_threshold:
            logger.warning(
                f"Slow request: {request.method} {request.url.path} "
                f"took {duration:.2f}s (threshold: {self.slow_request_threshold}s)"
            )

        response.headers["X-Response-Time"] = f"{duration:.3f}s"
        return response


def _error_response(
    status_code: int,
    message: str,
    correlation_id: str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    content: dict[str, str] = {"error": message}
    if correlation_id:
        content["correlation_id"] = correlation_id
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """Map domain and framework exceptions to JSON error bodies."""

    @app.exception_handler(ValidationException)
    async def validation_exception_handler(
        request: Request, exc: ValidationException
    ) -> JSONResponse:
        """Form rule violation: the visitor can fix it."""
        logger.info(f"Validation error: {exc.message}", path=str(request.url.path))
        return _error_response(
            status.HTTP_400_BAD_REQUEST, exc.message, exc.correlation_id
        )

    @app.exception_handler(RateLimitExceededException)
    async def rate_limit_exceeded_handler(
        request: Request, exc: RateLimitExceededException
    ) -> JSONResponse:
        """Too many submissions: the visitor should slow down."""
        logger.warning(
            f"Rate limit exceeded: {exc.message}", path=str(request.url.path)
        )
        headers = {}
        if exc.retry_after is not None:
            headers["Retry-After"] = str(exc.retry_after)
            headers["RateLimit-Reset"] = str(exc.retry_after)
        if exc.limit is not None:
            headers["RateLimit-Limit"] = str(exc.limit)
            headers["RateLimit-Remaining"] = "0"
        return _error_response(
            status.HTTP_429_TOO_MANY_REQUESTS,
            exc.message,
            exc.correlation_id,
            headers=headers,
        )

    @app.exception_handler(EmailDeliveryException)
    async def email_delivery_handler(
        request: Request, exc: EmailDeliveryException
    ) -> JSONResponse:
        """Handle email delivery failure without leaking provider details."""
        sentry_sdk.set_tag("correlation_id", exc.correlation_id)
        sentry_sdk.capture_exception(exc)
        logger.error(
            f"Email delivery failed at {exc.failed_step}",
            path=str(request.url.path),
        )
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, exc.message, exc.correlation_id
        )

    @app.exception_handler(DomainException)
    async def domain_exception_handler(
        request: Request, exc: DomainException
    ) -> JSONResponse:
        """Handle generic domain exceptions."""
        sentry_sdk.capture_exception(exc)
        logger.warning(
            f"Domain exception: {exc.message}",
            exception_type=exc.__class__.__name__,
            path=str(request.url.path),
        )
        return _error_response(
            status.HTTP_400_BAD_REQUEST, exc.message, exc.correlation_id
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Body that isn't a JSON object of strings."""
        logger.info(f"Rejected request body: {exc.errors()!r}")
        return _error_response(
            status.HTTP_400_BAD_REQUEST, INVALID_BODY_MESSAGE, get_correlation_id()
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        """Unknown routes and methods are both reported as not found."""
        if exc.status_code in (
            status.HTTP_404_NOT_FOUND,
            status.HTTP_405_METHOD_NOT_ALLOWED,
        ):
            return _error_response(status.HTTP_404_NOT_FOUND, NOT_FOUND_MESSAGE)
        return _error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Catch all unhandled exceptions; details only go to logs and Sentry."""
        correlation_id = get_correlation_id() or generate_correlation_id()
        sentry_sdk.set_tag("correlation_id", correlation_id)
        sentry_sdk.capture_exception(exc)

        # repr() keeps curly braces from being read as loguru placeholders
        logger.exception(
            f"Unhandled exception: {exc!r}",
            path=str(request.url.path),
            method=request.method,
        )
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            INTERNAL_ERROR_MESSAGE,
            correlation_id,
        )


def build_contact_service(
    settings: Settings, email_provider: EmailProvider | None = None
) -> ContactService:
    """Wire the contact pipeline from settings."""
    rate_limiter = FixedWindowRateLimiter(
        max_requests=settings.CONTACT_RATE_LIMIT_MAX,
        window_seconds=settings.CONTACT_RATE_LIMIT_WINDOW_SECONDS,
    )
    provider = email_provider or get_email_provider(settings)
    dispatcher = ContactMailDispatcher(settings, provider)
    return ContactService(rate_limiter, dispatcher)


def create_app(
    settings: Settings | None = None,
    email_provider: EmailProvider | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Application settings; read from the environment if omitted
        email_provider: Override the provider selected by EMAIL_SERVICE
    """
    settings = settings or get_settings()

    configure_logging(settings)
    init_sentry(settings)

    if not settings.EMAIL_USER and settings.EMAIL_SERVICE != "console":
        logger.warning(
            "EMAIL_USER / EMAIL_PASS are not set; contact submissions will fail"
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        base_url = f"http://localhost:{settings.PORT}"
        logger.info(f"Portfolio backend running on port {settings.PORT}")
        logger.info(f"Contact form endpoint: {base_url}/api/contact")
        logger.info(f"Health check: {base_url}/api/health")
        yield
        logger.info("Portfolio backend stopped")

    app = FastAPI(title=settings.SERVICE_NAME, lifespan=lifespan)
    app.state.settings = settings
    app.state.contact_service = build_contact_service(settings, email_provider)

    # Last added runs first: CORS, logging, correlation ID, security headers
    app.add_middleware(
        SecurityHeadersMiddleware,
        enable_hsts=settings.ENVIRONMENT == "production",
    )
    app.add_middleware(CorrelationIdMiddleware)
    app.add_middleware(
        RequestLoggingMiddleware,
        slow_request_threshold=settings.SLOW_REQUEST_THRESHOLD,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.FRONTEND_URL],
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", CORRELATION_HEADER],
        expose_headers=[
            CORRELATION_HEADER,
            "Retry-After",
            "RateLimit-Limit",
            "RateLimit-Remaining",
            "RateLimit-Reset",
        ],
    )

    register_exception_handlers(app)

    app.include_router(contact_router.router, prefix="/api")
    app.include_router(health_router.router, prefix="/api")

    return app


app = create_app()


def run() -> None:
    """Serve the API with uvicorn."""
    settings = get_settings()
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
