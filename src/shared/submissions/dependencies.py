"""Dependencies handing app-owned collaborators to form routes."""

from typing import List

from fastapi import Request

from src.shared.mail.email_service import EmailService


def get_rate_limiter(request: Request):
    """The rate limiter shared by every form endpoint."""
    return request.app.state.rate_limiter


def get_email_service(request: Request) -> EmailService:
    return request.app.state.email_service


def get_allowed_origins(request: Request) -> List[str]:
    return request.app.state.allowed_origins
