"""
Input validation and sanitization utilities for site forms.
Protects against XSS and header/markup injection in submitted fields.
"""

import re
import html
from dataclasses import dataclass, field
from typing import Any, List, Optional, Type

from pydantic import BaseModel, ValidationError


# Maximum lengths for different input types
MAX_NAME_LENGTH = 100
MAX_EMAIL_LENGTH = 255
MAX_SUBJECT_LENGTH = 200
MAX_MESSAGE_LENGTH = 5000

# Block script tags, javascript:, data:, etc.
DANGEROUS_PATTERNS = [
    r'<script',
    r'javascript:',
    r'on\w+\s*=',  # onclick=, onerror=, etc.
    r'data:text/html',
    r'vbscript:',
]

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')

# CR/LF and other control characters must never reach an email header
CONTROL_CHARACTERS = re.compile(r'[\x00-\x1f\x7f]')


def sanitize_text(text: str, max_length: Optional[int] = None, allow_html: bool = False) -> str:
    """
    Sanitize text input to prevent XSS attacks.

    Args:
        text: Input text to sanitize
        max_length: Maximum allowed length (None for no limit)
        allow_html: If False, HTML entities are escaped (default: False)

    Returns:
        Sanitized text
    """
    if not text:
        return ""

    text = text.strip()

    # Truncate before escaping so entities are never cut in half
    if max_length and len(text) > max_length:
        text = text[:max_length]

    if not allow_html:
        text = html.escape(text)

    return text


def validate_name(name: str, field_name: str = "Name") -> str:
    """
    Validate and sanitize a person's name.

    Raises:
        ValueError if validation fails
    """
    if not name or not name.strip():
        raise ValueError(f"{field_name} cannot be empty")

    # Patterns are checked on the raw value; escaping would hide `<script`
    for pattern in DANGEROUS_PATTERNS:
        if re.search(pattern, name, re.IGNORECASE):
            raise ValueError(f"{field_name} contains invalid characters")

    if CONTROL_CHARACTERS.search(name.strip()):
        raise ValueError(f"{field_name} contains invalid characters")

    if len(name.strip()) > MAX_NAME_LENGTH:
        raise ValueError(f"{field_name} must be no more than {MAX_NAME_LENGTH} characters")

    return sanitize_text(name)


def validate_subject(subject: Optional[str]) -> Optional[str]:
    """Validate a single-line subject; a blank subject is treated as absent."""
    if subject is None or not subject.strip():
        return None

    if CONTROL_CHARACTERS.search(subject.strip()):
        raise ValueError("Subject contains invalid characters")

    if len(subject.strip()) > MAX_SUBJECT_LENGTH:
        raise ValueError(f"Subject must be no more than {MAX_SUBJECT_LENGTH} characters")

    return sanitize_text(subject)


def validate_email(email: str) -> str:
    """
    Validate email address format and length.
    Note: Pydantic's EmailStr already validates format, but we add length check.

    Returns:
        Normalized email (lowercase)

    Raises:
        ValueError if validation fails
    """
    if not email or not email.strip():
        raise ValueError("Email cannot be empty")

    email = email.strip().lower()

    if len(email) > MAX_EMAIL_LENGTH:
        raise ValueError(f"Email must be no more than {MAX_EMAIL_LENGTH} characters")

    if not EMAIL_PATTERN.match(email):
        raise ValueError("Invalid email format")

    return email


def validate_message(message: str, field_name: str = "Message", max_length: int = MAX_MESSAGE_LENGTH) -> str:
    """Validate and sanitize a free-text field such as a message body."""
    if not message or not message.strip():
        raise ValueError(f"{field_name} cannot be empty")

    if len(message.strip()) > max_length:
        raise ValueError(f"{field_name} must be no more than {max_length} characters")

    return sanitize_text(message)


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating a form: sanitized data, or field-level errors."""
    valid: bool
    errors: List[str] = field(default_factory=list)
    sanitized: Optional[BaseModel] = None

    @classmethod
    def ok(cls, sanitized: BaseModel) -> "ValidationResult":
        return cls(valid=True, sanitized=sanitized)

    @classmethod
    def failed(cls, errors: List[str]) -> "ValidationResult":
        return cls(valid=False, errors=list(errors))


def _format_error(error: dict) -> str:
    location = ".".join(str(part) for part in error.get("loc", ())) or "body"
    message = error.get("msg", "Invalid value")
    # Pydantic prefixes messages raised from our own validators
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    return f"{location}: {message}"


def validate_form(schema: Type[BaseModel], data: Any) -> ValidationResult:
    """
    Validate a parsed JSON body against a form schema.

    Args:
        schema: Pydantic model describing the form
        data: Parsed request body

    Returns:
        ValidationResult carrying the sanitized model or "<field>: <message>" errors
    """
    if not isinstance(data, dict):
        return ValidationResult.failed(["body: Request body must be a JSON object"])

    try:
        return ValidationResult.ok(schema.model_validate(data))
    except ValidationError as e:
        return ValidationResult.failed([_format_error(error) for error in e.errors()])
