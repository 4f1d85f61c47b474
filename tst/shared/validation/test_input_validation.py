"""Tests for form sanitization and validation."""

import pytest

from src.shared.contact.schemas import ContactRequest
from src.shared.newsletter.schemas import NewsletterRequest
from src.shared.validation.input_validation import (
    MAX_MESSAGE_LENGTH,
    sanitize_text,
    validate_email,
    validate_form,
    validate_name,
)


def test_sanitize_text_escapes_html_and_truncates():
    assert sanitize_text("  <b>hi</b>  ") == "&lt;b&gt;hi&lt;/b&gt;"
    assert sanitize_text("abcdef", max_length=3) == "abc"
    assert sanitize_text("") == ""


@pytest.mark.parametrize("name", [
    "<script>alert(1)</script>",
    "javascript:alert(1)",
    "Bob onmouseover=steal()",
])
def test_validate_name_rejects_script_patterns(name):
    with pytest.raises(ValueError, match="invalid characters"):
        validate_name(name)


def test_validate_name_rejects_blank():
    with pytest.raises(ValueError, match="cannot be empty"):
        validate_name("   ")


def test_validate_email_normalizes_case():
    assert validate_email("  Fan@Mail.COM ") == "fan@mail.com"


def test_validate_email_rejects_bad_format():
    with pytest.raises(ValueError, match="Invalid email format"):
        validate_email("not-an-email")


def test_contact_form_valid_submission_is_sanitized():
    result = validate_form(ContactRequest, {
        "name": "A",
        "email": "A@B.com",
        "message": "<i>hi</i>",
        "subject": "   ",
    })

    assert result.valid
    assert result.errors == []
    assert result.sanitized.email == "a@b.com"
    assert result.sanitized.message == "&lt;i&gt;hi&lt;/i&gt;"
    assert result.sanitized.subject is None


def test_contact_form_reports_field_errors():
    result = validate_form(ContactRequest, {"email": "not-an-email"})

    assert not result.valid
    assert result.sanitized is None
    fields = {error.split(":", 1)[0] for error in result.errors}
    assert {"name", "email", "message"} <= fields


def test_contact_form_custom_validator_message_has_no_pydantic_prefix():
    result = validate_form(ContactRequest, {
        "name": "<script>x</script>",
        "email": "a@b.com",
        "message": "hi",
    })

    assert result.errors == ["name: Name contains invalid characters"]


def test_contact_form_rejects_blank_and_oversized_message():
    blank = validate_form(ContactRequest, {"name": "A", "email": "a@b.com", "message": "   "})
    oversized = validate_form(ContactRequest, {"name": "A", "email": "a@b.com", "message": "x" * (MAX_MESSAGE_LENGTH + 1)})

    assert blank.errors == ["message: Message cannot be empty"]
    assert not oversized.valid
    assert oversized.errors[0].startswith("message:")


def test_non_object_body_fails_validation():
    result = validate_form(ContactRequest, ["a@b.com"])

    assert result.errors == ["body: Request body must be a JSON object"]


def test_newsletter_form_name_is_optional():
    result = validate_form(NewsletterRequest, {"email": "listener@mail.com"})

    assert result.valid
    assert result.sanitized.name is None


def test_newsletter_form_requires_email():
    result = validate_form(NewsletterRequest, {"name": "Sam"})

    assert not result.valid
    assert result.errors[0].startswith("email:")


def test_name_at_length_limit_keeps_every_escaped_character():
    result = validate_form(ContactRequest, {"name": "&" * 100, "email": "a@b.com", "message": "hi"})

    assert result.valid
    assert result.sanitized.name == "&amp;" * 100


def test_escaping_never_leaves_a_broken_entity():
    assert validate_name("a" * 98 + "&b").endswith("&amp;b")
    assert validate_name("O'" + "x" * 98).startswith("O&#x27;x")
    assert sanitize_text("a" * 98 + "&b", max_length=99) == "a" * 98 + "&amp;"


@pytest.mark.parametrize("subject", [
    "Hello\r\nBcc: victim@example.com",
    "Hello\nBcc: victim@example.com",
    "Hello\x00",
])
def test_subject_with_control_characters_is_rejected(subject):
    result = validate_form(ContactRequest, {"name": "A", "email": "a@b.com", "message": "hi", "subject": subject})

    assert result.errors == ["subject: Subject contains invalid characters"]


def test_name_with_line_break_is_rejected():
    with pytest.raises(ValueError, match="invalid characters"):
        validate_name("Ada\r\nBcc: victim@example.com")


def test_message_may_span_lines():
    result = validate_form(ContactRequest, {"name": "A", "email": "a@b.com", "message": "line one\r\nline two"})

    assert result.valid
