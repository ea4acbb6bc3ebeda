"""Form checks that run before any auth call."""

from __future__ import annotations

MIN_PASSWORD_LENGTH = 6


def check_password(password: str) -> str | None:
    if len(password) < MIN_PASSWORD_LENGTH:
        return f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    return None


def check_registration(email: str, password: str, first_name: str, last_name: str) -> str | None:
    """Return the first problem with a registration form, or None."""
    if not first_name.strip() or not last_name.strip():
        return "First name and last name are required"
    if not email.strip():
        return "Email is required"
    return check_password(password)


def check_new_password(password: str, confirm_password: str) -> str | None:
    problem = check_password(password)
    if problem:
        return problem
    if password != confirm_password:
        return "Passwords do not match"
    return None
