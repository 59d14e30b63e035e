"""Contact form router for portfolio visitors."""

from fastapi import APIRouter, Depends, Request, Response
from loguru import logger

from helpers.request_utils import get_client_ip
from helpers.time_utils import mask_ip_address
from models.config import Settings
from models.schemas import ContactResponse, ContactSubmission, ErrorResponse
from services.contact_service import ContactService
from services.rate_limit_service import RateLimitDecision

router = APIRouter(prefix="/contact", tags=["contact"])


def get_app_settings(request: Request) -> Settings:
    """Settings the app was created with."""
    return request.app.state.settings


def get_contact_service(request: Request) -> ContactService:
    """Contact service owned by the app (shares one rate limiter)."""
    return request.app.state.contact_service


def rate_limit_headers(decision: RateLimitDecision) -> dict[str, str]:
    """Standard RateLimit-* headers for a limiter decision."""
    return {
        "RateLimit-Limit": str(decision.limit),
        "RateLimit-Remaining": str(decision.remaining),
        "RateLimit-Reset": str(decision.reset_after),
    }


@router.post(
    "",
    response_model=ContactResponse,
    responses={
        400: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
def submit_contact_form(
    request: Request,
    response: Response,
    form: ContactSubmission,
    settings: Settings = Depends(get_app_settings),
    service: ContactService = Depends(get_contact_service),
) -> ContactResponse:
    """Submit a contact form.

    Sends a notification email to the site owner and a confirmation to the
    visitor. No authentication required - public endpoint. Limited per
    client IP (5 submissions per 15 minutes by default); invalid submissions
    don't count.

    Raises:
        ContactValidationException: 400 if a form rule fails
        RateLimitExceededException: 429 if the client's window is full
        EmailDeliveryException: 500 if either email fails to send
    """
    client_ip = get_client_ip(request, settings.TRUST_PROXY_HEADERS)
    logger.info(f"Contact form submitted from {mask_ip_address(client_ip)}")

    result = service.submit(form, client_ip)

    response.headers.update(rate_limit_headers(result.rate_limit))
    return result.response
