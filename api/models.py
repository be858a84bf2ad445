"""
API request and response models for the accounts REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Request models only pin down JSON types. Business rules (email shape,
password policy, enum membership) are checked by auth/validation.py so the
same rules apply to every caller of AuthService, not just HTTP ones.

JSON field names are camelCase on the wire; snake_case is accepted on input.
"""

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from auth.models import RegisterRequest as RegisterCommand
from auth.models import User

_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class TravelPreferencesIn(BaseModel):
    model_config = _CAMEL

    preferred_destinations: list[str] = Field(default_factory=list)
    transportation_preference: Optional[str] = None
    accommodation_type: list[str] = Field(default_factory=list)


class RegisterRequest(BaseModel):
    """Request body for POST /auth/register."""

    model_config = _CAMEL

    email: str = Field(max_length=320)
    password: str = Field(max_length=255)
    name: str = Field(max_length=255)
    gender: Optional[str] = None
    country: Optional[str] = Field(default=None, max_length=100)
    age: Optional[float] = None
    preferred_language: Optional[list[str]] = None
    travel_preferences: Optional[TravelPreferencesIn] = None

    def to_command(self) -> RegisterCommand:
        return RegisterCommand(
            email=self.email,
            password=self.password,
            name=self.name,
            gender=self.gender,
            country=self.country,
            age=self.age,
            preferred_language=self.preferred_language,
            travel_preferences=self.travel_preferences.model_dump() if self.travel_preferences else None,
        )


class LoginRequest(BaseModel):
    """Request body for POST /auth/login. Any strings are accepted."""

    email: str
    password: str


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class TokenResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    access_token: str


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


class TravelPreferencesOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    preferred_destinations: list[str]
    transportation_preference: Optional[str]
    accommodation_type: list[str]


class ProfileResponse(BaseModel):
    """Current-user view. Never carries the password hash."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    email: str
    name: str
    gender: Optional[str]
    country: Optional[str]
    age: Optional[float]
    preferred_language: Optional[list[str]]
    travel_preferences: Optional[TravelPreferencesOut]
    security_level: str
    is_email_verified: bool
    last_login_date: Optional[datetime]
    account_creation_date: Optional[datetime]
    updated_at: Optional[datetime]

    @classmethod
    def from_user(cls, user: User) -> "ProfileResponse":
        """Build the public view of a User. The mapping lives here, next to the output model."""
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            gender=user.gender.value if user.gender else None,
            country=user.country,
            age=user.age,
            preferred_language=user.preferred_language,
            travel_preferences=(
                TravelPreferencesOut(**user.travel_preferences.to_dict()) if user.travel_preferences else None
            ),
            security_level=user.security_level.value,
            is_email_verified=user.is_email_verified,
            last_login_date=user.last_login_date,
            account_creation_date=user.account_creation_date,
            updated_at=user.updated_at,
        )


class ErrorDetail(BaseModel):
    """Machine-readable error payload.

    detail is a string for most errors and a list of {field, message} dicts
    for validation failures.
    """

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[Union[str, list[dict]]] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
