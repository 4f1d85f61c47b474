"""Tests for the newsletter signup endpoint."""

import logging


def test_valid_signup_sends_welcome(client, email_service, site_headers):
    response = client.post(
        "/api/newsletter",
        json={"email": "Listener@Mail.com", "name": "Sam"},
        headers=site_headers,
    )

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": "Successfully subscribed! Check your email for a welcome message.",
        "remaining": 2,
    }
    assert [s.email for s in email_service.newsletter_subscriptions] == ["listener@mail.com"]


def test_success_response_has_no_security_headers(client, site_headers):
    response = client.post("/api/newsletter", json={"email": "listener@mail.com"}, headers=site_headers)

    assert "X-Content-Type-Options" not in response.headers


def test_invalid_email_returns_details_and_sends_nothing(client, email_service, site_headers):
    response = client.post("/api/newsletter", json={"email": "not-an-email"}, headers=site_headers)

    assert response.status_code == 400
    assert any(detail.startswith("email:") for detail in response.json()["details"])
    assert email_service.newsletter_subscriptions == []


def test_method_and_origin_rejections_carry_security_headers(client):
    not_allowed = client.delete("/api/newsletter")
    bad_origin = client.post("/api/newsletter", json={"email": "listener@mail.com"})

    assert not_allowed.status_code == 405
    assert bad_origin.status_code == 403
    assert not_allowed.headers["X-Content-Type-Options"] == "nosniff"
    assert bad_origin.headers["X-Content-Type-Options"] == "nosniff"


def test_quota_is_shared_with_contact_form(client, site_headers):
    contact = {"name": "A", "email": "a@b.com", "message": "hi"}
    client.post("/api/contact", json=contact, headers=site_headers)
    client.post("/api/contact", json=contact, headers=site_headers)

    response = client.post("/api/newsletter", json={"email": "listener@mail.com"}, headers=site_headers)
    rejected = client.post("/api/newsletter", json={"email": "listener@mail.com"}, headers=site_headers)

    assert response.json()["remaining"] == 0
    assert rejected.status_code == 429
    assert rejected.json()["retryAfter"] == 60


def test_email_failure_is_logged_with_newsletter_context(client, email_service, site_headers, caplog):
    email_service.fail = True

    with caplog.at_level(logging.ERROR):
        response = client.post("/api/newsletter", json={"email": "listener@mail.com"}, headers=site_headers)

    assert response.status_code == 500
    assert "X-Content-Type-Options" not in response.headers
    record = next(r for r in caplog.records if getattr(r, "component", None) == "newsletter-api")
    assert record.action == "subscription"
    assert record.error_metadata == {"endpoint": "/api/newsletter"}


def test_preflight_allows_any_origin(client, limiter, email_service):
    response = client.options("/api/newsletter")

    assert response.status_code == 200
    assert response.headers["Access-Control-Allow-Origin"] == "*"
    assert "X-Content-Type-Options" not in response.headers
    assert len(limiter) == 0
    assert email_service.newsletter_subscriptions == []
