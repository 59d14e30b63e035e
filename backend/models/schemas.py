"""Pydantic schemas for the contact API."""

from pydantic import BaseModel, Field


class ContactSubmission(BaseModel):
    """Contact form payload.

    Fields are optional at the schema level so that missing values reach the
    form rules and get the form's own error message instead of a generic
    schema error.
    """

    name: str | None = Field(default=None, description="Visitor's name")
    email: str | None = Field(default=None, description="Visitor's email address")
    subject: str | None = Field(default=None, description="Message subject")
    message: str | None = Field(default=None, description="Message body")


class ContactResponse(BaseModel):
    """Successful submission."""

    success: bool
    message: str


class ErrorResponse(BaseModel):
    """Error body returned for every failed request."""

    error: str
    correlation_id: str | None = None


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    service: str
