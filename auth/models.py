"""
auth/models.py -- Domain dataclasses for account entities.

Pattern: Data class (pure data container, zero logic). The persisted schema
lives in auth/store.py as a SQLAlchemy Core Table; these dataclasses own the
domain shape and know nothing about SQL.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class Gender(str, Enum):
    male = "male"
    female = "female"
    other = "other"


class SecurityLevel(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


class TransportationType(str, Enum):
    public = "public"
    private = "private"
    rental = "rental"


class AccommodationType(str, Enum):
    hotel = "hotel"
    guesthouse = "guesthouse"
    hostel = "hostel"
    apartment = "apartment"


@dataclass
class TravelPreferences:
    preferred_destinations: list[str] = field(default_factory=list)
    transportation_preference: Optional[TransportationType] = None
    accommodation_type: list[AccommodationType] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "preferred_destinations": list(self.preferred_destinations),
            "transportation_preference": (
                self.transportation_preference.value if self.transportation_preference else None
            ),
            "accommodation_type": [a.value for a in self.accommodation_type],
        }

    @classmethod
    def from_dict(cls, data: dict) -> TravelPreferences:
        transport = data.get("transportation_preference")
        return cls(
            preferred_destinations=list(data.get("preferred_destinations") or []),
            transportation_preference=TransportationType(transport) if transport else None,
            accommodation_type=[AccommodationType(a) for a in data.get("accommodation_type") or []],
        )


@dataclass
class User:
    """A registered account.

    id is None until the record is built for insertion; the store fills it in
    when the caller did not. password_hash is excluded from repr so it never
    ends up in logs or tracebacks.

    is_deleted is one-way: once set, nothing in auth/ clears it. The row stays
    so the email remains reserved and the history is auditable.

    security_level and is_email_verified are stored with their defaults and
    not acted on by the login workflow.
    """

    email: str
    name: str
    password_hash: str = field(default="", repr=False)
    id: Optional[str] = None
    gender: Optional[Gender] = None
    country: Optional[str] = None
    age: Optional[float] = None
    preferred_language: Optional[list[str]] = None
    travel_preferences: Optional[TravelPreferences] = None
    security_level: SecurityLevel = SecurityLevel.medium
    is_email_verified: bool = False
    is_deleted: bool = False
    deleted_at: Optional[datetime] = None
    last_login_date: Optional[datetime] = None
    account_creation_date: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class RegisterRequest:
    """Input to AuthService.register().

    Fields arrive untrusted; validate_registration() checks them before the
    workflow touches the store. Optional profile fields stay None when the
    caller omits them.
    """

    email: str
    password: str = field(repr=False)
    name: str
    gender: Optional[str] = None
    country: Optional[str] = None
    age: Optional[float] = None
    preferred_language: Optional[list[str]] = None
    travel_preferences: Optional[dict] = None


@dataclass
class LoginRequest:
    email: str
    password: str = field(repr=False)
