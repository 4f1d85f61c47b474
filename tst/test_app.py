"""Tests for application wiring."""

import pytest
from fastapi.testclient import TestClient

from src.app import create_app, create_rate_limiter
from src.shared.mail.email_service import EmailService
from src.shared.rate_limit.database import DatabaseRateLimiter
from src.shared.rate_limit.limiter import RateLimiter


def test_memory_backend_is_default(monkeypatch):
    monkeypatch.delenv("RATE_LIMIT_BACKEND", raising=False)

    assert isinstance(create_rate_limiter(), RateLimiter)


def test_database_backend_uses_database_url(monkeypatch, tmp_path):
    monkeypatch.setenv("RATE_LIMIT_BACKEND", "database")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'limits.db'}")

    assert isinstance(create_rate_limiter(), DatabaseRateLimiter)


def test_database_backend_requires_url(monkeypatch):
    monkeypatch.setenv("RATE_LIMIT_BACKEND", "database")
    monkeypatch.delenv("DATABASE_URL", raising=False)

    with pytest.raises(ValueError, match="DATABASE_URL"):
        create_rate_limiter()


def test_unknown_backend_is_rejected(monkeypatch):
    monkeypatch.setenv("RATE_LIMIT_BACKEND", "redis")

    with pytest.raises(ValueError):
        create_rate_limiter()


def test_app_state_holds_shared_collaborators(limiter, email_service):
    app = create_app(rate_limiter=limiter, email_service=email_service, allowed_origins=["https://johnciresi.com"])

    assert app.state.rate_limiter is limiter
    assert app.state.email_service is email_service
    assert app.state.allowed_origins == ["https://johnciresi.com"]


def test_default_app_builds_its_own_collaborators(monkeypatch):
    monkeypatch.delenv("RATE_LIMIT_BACKEND", raising=False)
    monkeypatch.setenv("EMAIL_BACKEND", "console")

    app = create_app()

    assert isinstance(app.state.rate_limiter, RateLimiter)
    assert isinstance(app.state.email_service, EmailService)


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}
