"""Shared validation utilities"""

import re
from typing import Optional

PASSWORD_MIN_LENGTH = 6


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    # Basic email validation pattern
    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def validate_password(password: str) -> str:
    if not password or len(password) < PASSWORD_MIN_LENGTH:
        raise ValueError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters long")
    return password


def validate_rating(value: Optional[int]) -> Optional[int]:
    """Star ratings are whole numbers from 1 to 5"""
    if value is None:
        return value
    if value < 1 or value > 5:
        raise ValueError("Rating must be between 1 and 5")
    return value


def sanitize_filename(filename: Optional[str], max_length: int = 100) -> str:
    """
    Reduce an uploaded filename to a safe basename.

    Path separators and anything outside [A-Za-z0-9._-] become underscores,
    leading dots are stripped so the result can never be hidden or relative.
    """
    if not filename:
        return "file"

    name = filename.replace("\\", "/").split("/")[-1]
    name = re.sub(r"[^A-Za-z0-9._-]", "_", name).lstrip(".")
    return name[-max_length:] or "file"
