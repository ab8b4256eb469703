"""Input validation helpers for user data."""
from __future__ import annotations


def validate_email(email: str) -> str:
    """Validate email address.

    Args:
        email: Email address to validate

    Returns:
        Normalized email address

    Raises:
        ValueError: If email is invalid
    """
    if not isinstance(email, str):
        raise ValueError("email is required")

    email = email.strip().lower()
    if not email or "@" not in email:
        raise ValueError("Invalid email format")

    local, domain = email.rsplit("@", 1)
    if not local or not domain or "." not in domain:
        raise ValueError("Invalid email format")
    if len(email) > 254:
        raise ValueError("Email exceeds maximum length")

    return email


def validate_name(name: str, field: str = "name") -> str:
    """Validate a display name.

    Args:
        name: Name to validate
        field: Field name for error messages

    Returns:
        Trimmed name

    Raises:
        ValueError: If name is invalid
    """
    if not isinstance(name, str):
        raise ValueError(f"{field} is required")

    name = name.strip()
    if not name:
        raise ValueError(f"{field} is required")
    if len(name) > 255:
        raise ValueError(f"{field} exceeds maximum length")

    return name


def validate_password(password) -> str | None:
    """Validate an optional signup password; returns None when absent."""
    if password is None or password == "":
        return None
    if not isinstance(password, str):
        raise ValueError("password must be a string")
    return password


def validate_user_payload(payload) -> dict:
    """Validate a decoded POST /users body.

    Returns:
        dict with normalized email, name and (optional) password

    Raises:
        ValueError: If the body is not an object or a field is invalid
    """
    if not isinstance(payload, dict):
        raise ValueError("request body must be a JSON object")

    return {
        "email": validate_email(payload.get("email")),
        "name": validate_name(payload.get("name")),
        "password": validate_password(payload.get("password")),
    }
