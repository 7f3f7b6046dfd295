"""
Input validation utilities for the Laundry Orders API.

Provides reusable validators for contact details given at order time.
"""
import re

from fastapi import HTTPException

_PHONE_ALLOWED = re.compile(r"^\+?[0-9 ()\-]+$")


def validate_phone(phone: str) -> str:
    """
    Validate a contact phone number.

    Accepts digits with optional leading '+', spaces, dashes and parentheses;
    10 to 15 digits in total.

    Returns:
        The phone number with surrounding whitespace stripped

    Raises:
        HTTPException(400) if the number is invalid
    """
    if not phone or not phone.strip():
        raise HTTPException(status_code=400, detail="Phone number is required")

    phone = phone.strip()
    if not _PHONE_ALLOWED.match(phone):
        raise HTTPException(status_code=400, detail=f"Invalid phone number: {phone}")

    digits = re.sub(r"\D", "", phone)
    if not 10 <= len(digits) <= 15:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid phone number: expected 10-15 digits, got {len(digits)}",
        )
    return phone


def validate_address(address: str) -> str:
    """Require a non-blank delivery address; returns it stripped."""
    if not address or not address.strip():
        raise HTTPException(status_code=400, detail="Delivery address is required")
    return address.strip()
