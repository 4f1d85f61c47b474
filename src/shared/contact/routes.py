"""Contact routes for sending messages to the site owner."""

from typing import List

from fastapi import APIRouter, Depends, Request

from src.shared.contact.schemas import ContactRequest, ContactResponse
from src.shared.mail.email_service import EmailService
from src.shared.security.headers import SITE_ORIGIN
from src.shared.submissions.dependencies import get_allowed_origins, get_email_service, get_rate_limiter
from src.shared.submissions.outcomes import Accepted, InternalError, InvalidOrigin, MethodNotAllowed
from src.shared.submissions.pipeline import (
    SUBMISSION_METHODS,
    SubmissionEndpoint,
    handle_submission,
    render_outcome,
    render_preflight,
)

router = APIRouter(prefix="/api/contact", tags=["contact"])

CONTACT_ENDPOINT = SubmissionEndpoint(
    path="/api/contact",
    component="contact-api",
    action="form-submission",
    schema=ContactRequest,
    response_schema=ContactResponse,
    success_message="Message sent successfully! We'll get back to you soon.",
    preflight_origin=SITE_ORIGIN,
    # Rate-limit and validation responses go out without security headers
    hardened=frozenset({MethodNotAllowed, InvalidOrigin, Accepted, InternalError}),
    harden_preflight=True,
)


@router.api_route("", methods=SUBMISSION_METHODS)
async def submit_contact_form(
    request: Request,
    limiter=Depends(get_rate_limiter),
    email_service: EmailService = Depends(get_email_service),
    allowed_origins: List[str] = Depends(get_allowed_origins),
):
    """
    Submit a contact form message.

    Checks the origin and the per-IP rate limit, validates and sanitizes the
    JSON body, then emails the site owner and sends the visitor a
    confirmation.
    """
    outcome = await handle_submission(
        request,
        CONTACT_ENDPOINT,
        limiter,
        email_service.send_contact_email,
        allowed_origins,
    )
    return render_outcome(outcome, CONTACT_ENDPOINT)


@router.options("")
async def contact_preflight():
    """Handle preflight requests for CORS."""
    return render_preflight(CONTACT_ENDPOINT)
