"""
Shared request handling for site form endpoints.

Every form endpoint runs the same steps: method check, origin check, rate
limit, JSON parse, validation, email delivery. Each step either moves on or
ends the request with an Outcome, which render_outcome turns into the JSON
response. The differences between endpoints are data on SubmissionEndpoint.
"""

import logging
from dataclasses import dataclass
from typing import Callable, FrozenSet, Iterable, Optional, Type

from fastapi import Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from src.shared.monitoring.error_tracking import ErrorContext, log_error
from src.shared.security.headers import (
    apply_security_headers,
    get_client_ip,
    preflight_response,
    validate_origin,
)
from src.shared.submissions.outcomes import (
    Accepted,
    InternalError,
    InvalidOrigin,
    MethodNotAllowed,
    Outcome,
    RateLimited,
    ValidationFailed,
)
from src.shared.validation.input_validation import validate_form

# Methods routed to submission handlers; anything but POST gets a JSON 405
SUBMISSION_METHODS = ["POST", "GET", "PUT", "PATCH", "DELETE"]

RATE_LIMITED_MESSAGE = "Too many requests. Please try again later."
INTERNAL_ERROR_MESSAGE = "Internal server error. Please try again later."


@dataclass(frozen=True)
class SubmissionEndpoint:
    """Per-endpoint policy for the shared submission pipeline."""
    path: str
    component: str  # error tracking component name
    action: str  # error tracking action name
    schema: Type[BaseModel]
    response_schema: Type[BaseModel]
    success_message: str
    preflight_origin: str
    # Outcome types whose responses get security headers
    hardened: FrozenSet[type]
    harden_preflight: bool

    def error_context(self) -> ErrorContext:
        return ErrorContext(
            component=self.component,
            action=self.action,
            metadata={"endpoint": self.path},
        )


async def handle_submission(
    request: Request,
    endpoint: SubmissionEndpoint,
    limiter,
    deliver: Callable[[BaseModel], None],
    allowed_origins: Optional[Iterable[str]] = None,
) -> Outcome:
    """
    Run one form submission through the pipeline.

    Blocking work (the rate limit check and email delivery) runs in the
    threadpool.

    Args:
        request: Incoming request
        endpoint: Policy for the endpoint being served
        limiter: RateLimiter or DatabaseRateLimiter shared by the app
        deliver: Blocking callable sending the email(s) for validated data
        allowed_origins: Origins accepted by the CSRF check

    Returns:
        The Outcome for this request. Unexpected exceptions are logged and
        returned as InternalError rather than raised.
    """
    try:
        if request.method != "POST":
            return MethodNotAllowed()

        if not validate_origin(request, allowed_origins):
            logging.info(f"Rejected {endpoint.path} submission from origin {request.headers.get('origin')!r}")
            return InvalidOrigin()

        rate_limit = await run_in_threadpool(limiter.check, get_client_ip(request))
        if not rate_limit.allowed:
            return RateLimited(retry_after=rate_limit.retry_after(limiter.clock()))

        data = await request.json()

        validation = validate_form(endpoint.schema, data)
        if not validation.valid:
            return ValidationFailed(errors=validation.errors)

        await run_in_threadpool(deliver, validation.sanitized)

        return Accepted(remaining=rate_limit.remaining)
    except Exception as e:
        log_error(e, endpoint.error_context(), severity="high")
        return InternalError(cause=e)


def render_outcome(outcome: Outcome, endpoint: SubmissionEndpoint) -> Response:
    """Turn an Outcome into the endpoint's JSON response."""
    headers = {}
    if isinstance(outcome, Accepted):
        status_code = 200
        content = endpoint.response_schema(
            success=True,
            message=endpoint.success_message,
            remaining=outcome.remaining,
        ).model_dump()
    elif isinstance(outcome, MethodNotAllowed):
        status_code = 405
        content = {"success": False, "error": "Method not allowed"}
    elif isinstance(outcome, InvalidOrigin):
        status_code = 403
        content = {"success": False, "error": "Invalid origin"}
    elif isinstance(outcome, RateLimited):
        status_code = 429
        content = {"success": False, "error": RATE_LIMITED_MESSAGE, "retryAfter": outcome.retry_after}
        headers["Retry-After"] = str(outcome.retry_after)
    elif isinstance(outcome, ValidationFailed):
        status_code = 400
        content = {"success": False, "error": "Validation failed", "details": list(outcome.errors)}
    elif isinstance(outcome, InternalError):
        status_code = 500
        content = {"success": False, "error": INTERNAL_ERROR_MESSAGE}
    else:
        raise TypeError(f"Unknown outcome: {outcome!r}")

    response = JSONResponse(status_code=status_code, content=content, headers=headers)
    if type(outcome) in endpoint.hardened:
        apply_security_headers(response, "api")
    return response


def render_preflight(endpoint: SubmissionEndpoint) -> Response:
    response = preflight_response(endpoint.preflight_origin)
    if endpoint.harden_preflight:
        apply_security_headers(response, "api")
    return response
