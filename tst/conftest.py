"""Shared fixtures: fake clock, recording email service, app client."""

import pytest
from fastapi.testclient import TestClient

from src.app import create_app
from src.shared.mail.email_service import EmailDeliveryError
from src.shared.rate_limit.limiter import RateLimiter

SITE_ORIGIN = "https://johnciresi.com"


class FakeClock:
    """Manually advanced clock returning epoch seconds."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingEmailService:
    """Stands in for EmailService; records what would have been sent."""

    def __init__(self):
        self.contact_submissions = []
        self.newsletter_subscriptions = []
        self.fail = False

    def send_contact_email(self, submission):
        if self.fail:
            raise EmailDeliveryError("SMTP server unavailable")
        self.contact_submissions.append(submission)

    def send_newsletter_welcome(self, subscription):
        if self.fail:
            raise EmailDeliveryError("SMTP server unavailable")
        self.newsletter_subscriptions.append(subscription)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limiter(clock):
    return RateLimiter(max_requests=3, window_seconds=60, clock=clock)


@pytest.fixture
def email_service():
    return RecordingEmailService()


@pytest.fixture
def client(limiter, email_service):
    app = create_app(rate_limiter=limiter, email_service=email_service, allowed_origins=[SITE_ORIGIN])
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def site_headers():
    return {"Origin": SITE_ORIGIN}
