"""Unit tests for auth/store.py -- UserStore persistence.

Covers:
- create() assigns id and audit timestamps and round-trips every field
- the UNIQUE index on email rejects a second insert (deleted rows included)
- find_by_email() hides soft-deleted rows unless include_deleted=True
- find_by_id() resolves soft-deleted rows
- save() persists mutable fields, refreshes updated_at, never rewrites the hash
- touch_last_login() / mark_deleted() only match active rows and write only their own columns
- startup migration adds columns missing from an older schema
"""

from __future__ import annotations

import dataclasses
from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.exc import IntegrityError

from auth.models import AccommodationType, Gender, SecurityLevel, TransportationType, TravelPreferences, User
from auth.store import UserStore


def _user(email: str = "hong@example.com", **overrides) -> User:
    fields = {"email": email, "name": "홍길동", "password_hash": "$2b$04$fakehashfakehashfakehash"}
    fields.update(overrides)
    return User(**fields)


class TestCreate:
    def test_create_assigns_id_and_timestamps(self, store: UserStore) -> None:
        created = store.create(_user())
        assert created.id
        assert created.account_creation_date is not None
        assert created.updated_at == created.account_creation_date
        assert created.is_deleted is False
        assert created.security_level is SecurityLevel.medium
        assert created.is_email_verified is False

    def test_create_keeps_caller_supplied_id(self, store: UserStore) -> None:
        created = store.create(_user(id="fixed-id"))
        assert created.id == "fixed-id"
        assert store.find_by_id("fixed-id") is not None

    def test_profile_fields_round_trip(self, store: UserStore) -> None:
        prefs = TravelPreferences(
            preferred_destinations=["Jeju", "Busan"],
            transportation_preference=TransportationType.rental,
            accommodation_type=[AccommodationType.hotel, AccommodationType.apartment],
        )
        created = store.create(
            _user(
                gender=Gender.female,
                country="KR",
                age=29,
                preferred_language=["ko", "en", "ja"],
                travel_preferences=prefs,
            )
        )
        loaded = store.find_by_id(created.id)
        assert loaded.gender is Gender.female
        assert loaded.country == "KR"
        assert loaded.age == 29
        assert loaded.preferred_language == ["ko", "en", "ja"]
        assert loaded.travel_preferences == prefs

    def test_absent_profile_fields_stay_none(self, store: UserStore) -> None:
        loaded = store.find_by_id(store.create(_user()).id)
        assert loaded.gender is None
        assert loaded.age is None
        assert loaded.preferred_language is None
        assert loaded.travel_preferences is None
        assert loaded.last_login_date is None
        assert loaded.deleted_at is None

    def test_duplicate_email_violates_unique_index(self, store: UserStore) -> None:
        store.create(_user())
        with pytest.raises(IntegrityError):
            store.create(_user())

    def test_duplicate_of_deleted_account_still_violates_index(self, store: UserStore) -> None:
        created = store.create(_user())
        store.save(dataclasses.replace(created, is_deleted=True, deleted_at=datetime.now(timezone.utc)))
        with pytest.raises(IntegrityError):
            store.create(_user())

    def test_has_users(self, store: UserStore) -> None:
        assert store.has_users() is False
        store.create(_user())
        assert store.has_users() is True


class TestFind:
    def test_find_by_email_returns_active_user(self, store: UserStore) -> None:
        created = store.create(_user())
        found = store.find_by_email("hong@example.com")
        assert found is not None
        assert found.id == created.id

    def test_find_by_email_is_exact(self, store: UserStore) -> None:
        store.create(_user())
        assert store.find_by_email("other@example.com") is None

    def test_deleted_user_hidden_by_default(self, store: UserStore) -> None:
        created = store.create(_user())
        store.save(dataclasses.replace(created, is_deleted=True, deleted_at=datetime.now(timezone.utc)))
        assert store.find_by_email("hong@example.com") is None
        assert store.find_by_email("hong@example.com", include_deleted=True) is not None

    def test_find_by_id_resolves_deleted_user(self, store: UserStore) -> None:
        created = store.create(_user())
        store.save(dataclasses.replace(created, is_deleted=True, deleted_at=datetime.now(timezone.utc)))
        found = store.find_by_id(created.id)
        assert found is not None
        assert found.is_deleted is True
        assert found.deleted_at is not None

    def test_find_by_id_unknown(self, store: UserStore) -> None:
        assert store.find_by_id("missing") is None


class TestSave:
    def test_save_persists_last_login_and_refreshes_updated_at(self, store: UserStore) -> None:
        created = store.create(_user())
        login_at = datetime.now(timezone.utc)
        saved = store.save(dataclasses.replace(created, last_login_date=login_at))
        assert saved.updated_at >= created.updated_at

        loaded = store.find_by_id(created.id)
        assert loaded.last_login_date == login_at
        assert loaded.account_creation_date == created.account_creation_date

    def test_save_never_rewrites_password_hash_or_email(self, store: UserStore) -> None:
        created = store.create(_user())
        store.save(dataclasses.replace(created, password_hash="changed", email="changed@example.com"))
        loaded = store.find_by_id(created.id)
        assert loaded.password_hash == created.password_hash
        assert loaded.email == "hong@example.com"

    def test_save_unknown_user_raises(self, store: UserStore) -> None:
        with pytest.raises(LookupError):
            store.save(_user(id="missing"))


class TestNarrowUpdates:
    def test_touch_last_login_on_active_user(self, store: UserStore) -> None:
        created = store.create(_user())
        login_at = datetime.now(timezone.utc)
        assert store.touch_last_login(created.id, login_at) is True
        assert store.find_by_id(created.id).last_login_date == login_at

    def test_touch_last_login_skips_deleted_user(self, store: UserStore) -> None:
        created = store.create(_user())
        assert store.mark_deleted(created.id, datetime.now(timezone.utc)) is True
        assert store.touch_last_login(created.id, datetime.now(timezone.utc)) is False

        loaded = store.find_by_id(created.id)
        assert loaded.is_deleted is True
        assert loaded.last_login_date is None

    def test_mark_deleted_keeps_first_timestamp(self, store: UserStore) -> None:
        created = store.create(_user())
        first_at = datetime.now(timezone.utc)
        assert store.mark_deleted(created.id, first_at) is True
        assert store.mark_deleted(created.id, datetime.now(timezone.utc)) is False
        assert store.find_by_id(created.id).deleted_at == first_at

    def test_mark_deleted_leaves_other_columns_alone(self, store: UserStore) -> None:
        created = store.create(_user(country="KR"))
        login_at = datetime.now(timezone.utc)
        store.touch_last_login(created.id, login_at)
        store.mark_deleted(created.id, datetime.now(timezone.utc))

        loaded = store.find_by_id(created.id)
        assert loaded.last_login_date == login_at
        assert loaded.country == "KR"

    def test_unknown_id_matches_nothing(self, store: UserStore) -> None:
        assert store.touch_last_login("missing", datetime.now(timezone.utc)) is False
        assert store.mark_deleted("missing", datetime.now(timezone.utc)) is False


class TestMigration:
    def test_missing_columns_are_added_on_startup(self, tmp_path) -> None:
        url = f"sqlite:///{tmp_path / 'legacy.db'}"
        engine = create_engine(url)
        with engine.begin() as conn:
            conn.execute(
                text(
                    """
                    CREATE TABLE users (
                        id VARCHAR(32) PRIMARY KEY,
                        email VARCHAR(320) NOT NULL UNIQUE,
                        password_hash TEXT NOT NULL,
                        name VARCHAR(255) NOT NULL,
                        gender VARCHAR(10),
                        country VARCHAR(100),
                        age FLOAT,
                        preferred_language TEXT,
                        travel_preferences TEXT,
                        is_deleted INTEGER NOT NULL DEFAULT 0,
                        deleted_at VARCHAR(32),
                        last_login_date VARCHAR(32),
                        account_creation_date VARCHAR(32) NOT NULL,
                        updated_at VARCHAR(32) NOT NULL
                    )
                    """
                )
            )
            conn.execute(
                text(
                    "INSERT INTO users (id, email, password_hash, name, account_creation_date, updated_at) "
                    "VALUES ('legacy', 'old@example.com', 'h', 'Old', '2024-01-01T00:00:00+00:00', "
                    "'2024-01-01T00:00:00+00:00')"
                )
            )
        engine.dispose()

        store = UserStore(url)
        try:
            legacy = store.find_by_id("legacy")
            assert legacy.security_level is SecurityLevel.medium
            assert legacy.is_email_verified is False
            assert store.create(_user()).id
        finally:
            store.close()
