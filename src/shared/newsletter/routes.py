"""Newsletter routes for subscribing to site updates."""

from typing import List

from fastapi import APIRouter, Depends, Request

from src.shared.mail.email_service import EmailService
from src.shared.newsletter.schemas import NewsletterRequest, NewsletterResponse
from src.shared.submissions.dependencies import get_allowed_origins, get_email_service, get_rate_limiter
from src.shared.submissions.outcomes import InvalidOrigin, MethodNotAllowed
from src.shared.submissions.pipeline import (
    SUBMISSION_METHODS,
    SubmissionEndpoint,
    handle_submission,
    render_outcome,
    render_preflight,
)

router = APIRouter(prefix="/api/newsletter", tags=["newsletter"])

NEWSLETTER_ENDPOINT = SubmissionEndpoint(
    path="/api/newsletter",
    component="newsletter-api",
    action="subscription",
    schema=NewsletterRequest,
    response_schema=NewsletterResponse,
    success_message="Successfully subscribed! Check your email for a welcome message.",
    preflight_origin="*",
    # Only the method and origin rejections carry security headers here
    hardened=frozenset({MethodNotAllowed, InvalidOrigin}),
    harden_preflight=False,
)


@router.api_route("", methods=SUBMISSION_METHODS)
async def subscribe_to_newsletter(
    request: Request,
    limiter=Depends(get_rate_limiter),
    email_service: EmailService = Depends(get_email_service),
    allowed_origins: List[str] = Depends(get_allowed_origins),
):
    """Subscribe an email address and send the welcome message."""
    outcome = await handle_submission(
        request,
        NEWSLETTER_ENDPOINT,
        limiter,
        email_service.send_newsletter_welcome,
        allowed_origins,
    )
    return render_outcome(outcome, NEWSLETTER_ENDPOINT)


@router.options("")
async def newsletter_preflight():
    """Handle preflight requests for CORS."""
    return render_preflight(NEWSLETTER_ENDPOINT)
