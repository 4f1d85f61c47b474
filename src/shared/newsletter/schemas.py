"""Pydantic schemas for newsletter API."""

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from src.shared.validation.input_validation import MAX_NAME_LENGTH, validate_email, validate_name


class NewsletterRequest(BaseModel):
    """Schema for newsletter signup."""
    email: EmailStr = Field(..., description="Address to subscribe")
    name: Optional[str] = Field(None, max_length=MAX_NAME_LENGTH, description="Optional first name for the greeting")

    @field_validator('email')
    @classmethod
    def validate_email_field(cls, v):
        return validate_email(v)

    @field_validator('name')
    @classmethod
    def validate_name_field(cls, v):
        if v is None or not v.strip():
            return None
        return validate_name(v, "Name")


class NewsletterResponse(BaseModel):
    """Schema for newsletter signup response."""
    success: bool
    message: str
    remaining: int
