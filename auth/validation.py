"""
auth/validation.py -- Explicit input checks, one function per request type.

Each validate_* function returns a list of FieldError (empty when the input is
acceptable). They never raise and never touch the store, so AuthService can
run them before any other work and report every problem at once.

Password policy (registration only):
  - at least 8 characters
  - at most 72 bytes UTF-8 (bcrypt rejects longer inputs)
  - one uppercase letter, one lowercase letter, one digit
  - one symbol from PASSWORD_SYMBOLS

Login deliberately has no password policy: an account's password is whatever
was accepted at registration time, and the hash comparison is the only check.
"""

from __future__ import annotations

import re

from email_validator import EmailNotValidError, validate_email

from auth.errors import FieldError
from auth.models import AccommodationType, Gender, LoginRequest, RegisterRequest, TransportationType
from auth.tokens import BCRYPT_MAX_BYTES

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_BYTES = BCRYPT_MAX_BYTES
PASSWORD_SYMBOLS = "#?!@$%^&*-"

_UPPER_RE = re.compile(r"[A-Z]")
_LOWER_RE = re.compile(r"[a-z]")
_DIGIT_RE = re.compile(r"[0-9]")
_SYMBOL_RE = re.compile(f"[{re.escape(PASSWORD_SYMBOLS)}]")

_GENDERS = {g.value for g in Gender}
_TRANSPORTATION = {t.value for t in TransportationType}
_ACCOMMODATION = {a.value for a in AccommodationType}


def password_policy_violations(password: str) -> list[str]:
    """Return a human-readable message for each policy rule the password breaks."""
    problems: list[str] = []
    if len(password) < PASSWORD_MIN_LENGTH:
        problems.append(f"Password must be at least {PASSWORD_MIN_LENGTH} characters.")
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        problems.append(f"Password must be at most {PASSWORD_MAX_BYTES} bytes.")
    if not _UPPER_RE.search(password):
        problems.append("Password must contain at least one uppercase letter.")
    if not _LOWER_RE.search(password):
        problems.append("Password must contain at least one lowercase letter.")
    if not _DIGIT_RE.search(password):
        problems.append("Password must contain at least one number.")
    if not _SYMBOL_RE.search(password):
        problems.append(f"Password must contain at least one of {PASSWORD_SYMBOLS}.")
    return problems


def _is_string_list(value) -> bool:
    return isinstance(value, list) and all(isinstance(v, str) for v in value)


def _check_email(email) -> list[FieldError]:
    if not isinstance(email, str) or not email:
        return [FieldError("email", "Email is required.")]
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        return [FieldError("email", "Email address is not valid.")]
    return []


def _check_travel_preferences(prefs: dict) -> list[FieldError]:
    errors: list[FieldError] = []
    destinations = prefs.get("preferred_destinations")
    if destinations is not None and not _is_string_list(destinations):
        errors.append(
            FieldError("travel_preferences.preferred_destinations", "Destinations must be a list of strings.")
        )
    transport = prefs.get("transportation_preference")
    if transport is not None and transport not in _TRANSPORTATION:
        errors.append(
            FieldError(
                "travel_preferences.transportation_preference",
                f"Must be one of: {', '.join(sorted(_TRANSPORTATION))}.",
            )
        )
    accommodation = prefs.get("accommodation_type")
    if accommodation is not None:
        if not isinstance(accommodation, list) or any(a not in _ACCOMMODATION for a in accommodation):
            errors.append(
                FieldError(
                    "travel_preferences.accommodation_type",
                    f"Must be a list drawn from: {', '.join(sorted(_ACCOMMODATION))}.",
                )
            )
    return errors


def validate_registration(request: RegisterRequest) -> list[FieldError]:
    """Check every field of a registration request. Returns all problems found."""
    errors = _check_email(request.email)

    if not isinstance(request.password, str):
        errors.append(FieldError("password", "Password is required."))
    else:
        errors.extend(FieldError("password", msg) for msg in password_policy_violations(request.password))

    if not isinstance(request.name, str) or not request.name.strip():
        errors.append(FieldError("name", "Name is required."))

    if request.gender is not None and request.gender not in _GENDERS:
        errors.append(FieldError("gender", f"Must be one of: {', '.join(sorted(_GENDERS))}."))

    if request.country is not None and not isinstance(request.country, str):
        errors.append(FieldError("country", "Country must be a string."))

    if request.age is not None:
        # bool is an int subclass; reject it explicitly.
        if isinstance(request.age, bool) or not isinstance(request.age, (int, float)):
            errors.append(FieldError("age", "Age must be a number."))
        elif request.age < 0:
            errors.append(FieldError("age", "Age must not be negative."))

    if request.preferred_language is not None and not _is_string_list(request.preferred_language):
        errors.append(FieldError("preferred_language", "Preferred languages must be a list of strings."))

    if request.travel_preferences is not None:
        if not isinstance(request.travel_preferences, dict):
            errors.append(FieldError("travel_preferences", "Travel preferences must be an object."))
        else:
            errors.extend(_check_travel_preferences(request.travel_preferences))

    return errors


def validate_login(request: LoginRequest) -> list[FieldError]:
    """Login accepts any string for both fields; only the types are checked."""
    errors: list[FieldError] = []
    if not isinstance(request.email, str):
        errors.append(FieldError("email", "Email must be a string."))
    if not isinstance(request.password, str):
        errors.append(FieldError("password", "Password must be a string."))
    return errors
