"""
Contact form validation rules.

The server and the Python form client both import this module, so the rules
applied before a request is sent are exactly the ones the API enforces.
"""

import re
from dataclasses import dataclass
from enum import Enum

EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")

MISSING_FIELDS_MESSAGE = "All fields are required"
INVALID_EMAIL_MESSAGE = "Please enter a valid email address"


@dataclass(frozen=True)
class ContactFormRules:
    """Minimum lengths for the contact form fields."""

    name_min_length: int = 2
    subject_min_length: int = 5
    message_min_length: int = 10


DEFAULT_RULES = ContactFormRules()


class FieldStatus(str, Enum):
    """Live feedback state of a single form field."""

    EMPTY = "empty"
    VALID = "valid"
    INVALID = "invalid"


def is_valid_email(email: str) -> bool:
    """Check the basic local@domain.tld shape (not full RFC 5322)."""
    return EMAIL_PATTERN.fullmatch(email) is not None


def validate_contact_submission(
    name: str | None,
    email: str | None,
    subject: str | None,
    message: str | None,
    rules: ContactFormRules = DEFAULT_RULES,
) -> str | None:
    """
    Check a contact submission against the form rules.

    Rules are evaluated in order and the first failure wins: all fields
    present, name length, subject length, message length, email shape.
    Lengths are measured on the values as submitted.

    Args:
        name: Visitor's name
        email: Visitor's email address
        subject: Message subject
        message: Message body
        rules: Minimum length configuration

    Returns:
        None if the submission is valid, otherwise the violated rule's message
    """
    if not name or not email or not subject or not message:
        return MISSING_FIELDS_MESSAGE

    if len(name) < rules.name_min_length:
        return f"Name must be at least {rules.name_min_length} characters long"

    if len(subject) < rules.subject_min_length:
        return f"Subject must be at least {rules.subject_min_length} characters long"

    if len(message) < rules.message_min_length:
        return f"Message must be at least {rules.message_min_length} characters long"

    if not is_valid_email(email):
        return INVALID_EMAIL_MESSAGE

    return None


def validate_field(
    field: str,
    value: str | None,
    rules: ContactFormRules = DEFAULT_RULES,
) -> FieldStatus:
    """
    Give per-field feedback while the visitor is typing.

    The value is stripped first; an empty field is neither valid nor invalid.

    Raises:
        ValueError: If the field is not one of the contact form fields
    """
    min_lengths = {
        "name": rules.name_min_length,
        "subject": rules.subject_min_length,
        "message": rules.message_min_length,
    }
    if field != "email" and field not in min_lengths:
        raise ValueError(f"Unknown contact form field: {field}")

    cleaned = (value or "").strip()
    if not cleaned:
        return FieldStatus.EMPTY

    if field == "email":
        ok = is_valid_email(cleaned)
    else:
        ok = len(cleaned) >= min_lengths[field]

    return FieldStatus.VALID if ok else FieldStatus.INVALID
