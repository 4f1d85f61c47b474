"""Pydantic schemas for contact API."""

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from src.shared.validation.input_validation import (
    MAX_MESSAGE_LENGTH,
    MAX_NAME_LENGTH,
    MAX_SUBJECT_LENGTH,
    validate_email,
    validate_message,
    validate_name,
    validate_subject,
)


class ContactRequest(BaseModel):
    """Schema for contact form submission."""
    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH, description="Your name")
    email: EmailStr = Field(..., description="Your email address")
    subject: Optional[str] = Field(None, max_length=MAX_SUBJECT_LENGTH, description="Message subject")
    message: str = Field(..., min_length=1, max_length=MAX_MESSAGE_LENGTH, description="Your message")

    @field_validator('name')
    @classmethod
    def validate_name_field(cls, v):
        """Sanitize name input with XSS protection."""
        return validate_name(v, "Name")

    @field_validator('email')
    @classmethod
    def validate_email_field(cls, v):
        return validate_email(v)

    @field_validator('subject')
    @classmethod
    def validate_subject_field(cls, v):
        """Reject header-breaking characters and sanitize the subject."""
        return validate_subject(v)

    @field_validator('message')
    @classmethod
    def validate_message_field(cls, v):
        return validate_message(v, "Message")


class ContactResponse(BaseModel):
    """Schema for contact form response."""
    success: bool
    message: str
    remaining: int
