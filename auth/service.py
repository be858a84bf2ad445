"""
auth/service.py -- Registration, login and account deletion workflow.

Pure business logic with no HTTP dependencies. Collaborators are passed to
the constructor; AuthService never looks anything up globally.

Error contract:
  ValidationError   -- input rejected before any store access
  ConflictError     -- email already registered (pre-check or unique index)
  UnauthorizedError -- bad credentials, or the identity no longer resolves
  anything else     -- store or signing failure, propagated unchanged

Registration ordering:
  The user id is generated here, so the claims are known before the row
  exists. The token is signed first and the row inserted second: a signing
  failure writes nothing, and an insert failure discards the token. There is
  no window in which a persisted account has no issued token because of a
  failure inside this call.

Login timing [C1]:
  When no active account matches the email, a dummy bcrypt check still runs
  so response time does not reveal whether the email is registered.

Concurrent login and withdraw:
  Login and delete each write only their own columns, guarded by
  is_deleted = 0. A withdraw that commits while a login is in flight stays
  deleted, and that login is rejected with the usual credentials error.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError

from auth.errors import ConflictError, UnauthorizedError, ValidationError
from auth.models import Gender, LoginRequest, RegisterRequest, TravelPreferences, User
from auth.store import UserStore
from auth.tokens import BCRYPT_ROUNDS, TokenIssuer, claims_for, hash_password, verify_password
from auth.validation import validate_login, validate_registration

logger = logging.getLogger("accounts.auth")

BAD_CREDENTIALS_MESSAGE = "Invalid email or password."
MISSING_ACCOUNT_MESSAGE = "Account no longer exists."
DUPLICATE_EMAIL_MESSAGE = "Email is already registered."


class AuthService:
    """Orchestrates the account workflow over a UserStore and a TokenIssuer.

    Usage:
        service = AuthService(UserStore(), TokenIssuer.from_settings(settings))
        token = service.register(RegisterRequest(email=..., password=..., name=...))
        token = service.login(LoginRequest(email=..., password=...))
        service.delete_account(user_id)
    """

    def __init__(self, store: UserStore, issuer: TokenIssuer, hash_rounds: int = BCRYPT_ROUNDS) -> None:
        self.store = store
        self.issuer = issuer
        self.hash_rounds = hash_rounds
        # Same cost factor as real hashes so both login failure paths take equally long.
        self._dummy_hash = hash_password("timing-equalization-dummy", rounds=hash_rounds)

    # ------------------------------------------------------------------
    # register
    # ------------------------------------------------------------------

    def register(self, request: RegisterRequest) -> str:
        """Create an account and return an access token for it."""
        errors = validate_registration(request)
        if errors:
            raise ValidationError(errors)

        if self.store.find_by_email(request.email, include_deleted=True) is not None:
            raise ConflictError(DUPLICATE_EMAIL_MESSAGE)

        user = User(
            id=uuid.uuid4().hex,
            email=request.email,
            name=request.name,
            password_hash=hash_password(request.password, rounds=self.hash_rounds),
            gender=Gender(request.gender) if request.gender is not None else None,
            country=request.country,
            age=request.age,
            preferred_language=list(request.preferred_language) if request.preferred_language is not None else None,
            travel_preferences=(
                TravelPreferences.from_dict(request.travel_preferences)
                if request.travel_preferences is not None
                else None
            ),
        )
        token = self.issuer.sign(claims_for(user))

        try:
            user = self.store.create(user)
        except IntegrityError as exc:
            # Lost a race with a concurrent registration for the same email.
            raise ConflictError(DUPLICATE_EMAIL_MESSAGE) from exc

        logger.info("User registered", extra={"userId": user.id})
        return token

    # ------------------------------------------------------------------
    # login
    # ------------------------------------------------------------------

    def login(self, request: LoginRequest) -> str:
        """Verify credentials against an active account and return a fresh token.

        No password format rule applies here; the stored hash is the only
        thing the password is compared against.
        """
        errors = validate_login(request)
        if errors:
            raise ValidationError(errors)

        user = self.store.find_by_email(request.email, include_deleted=False)
        if user is None:
            verify_password(request.password, self._dummy_hash)
            logger.info("Login rejected")
            raise UnauthorizedError(BAD_CREDENTIALS_MESSAGE)
        if not verify_password(request.password, user.password_hash):
            logger.info("Login rejected", extra={"userId": user.id})
            raise UnauthorizedError(BAD_CREDENTIALS_MESSAGE)

        if not self.store.touch_last_login(user.id, datetime.now(timezone.utc)):
            # Deleted between the lookup and the write.
            logger.info("Login rejected", extra={"userId": user.id})
            raise UnauthorizedError(BAD_CREDENTIALS_MESSAGE)
        logger.info("User logged in", extra={"userId": user.id})
        return self.issuer.sign(claims_for(user))

    # ------------------------------------------------------------------
    # delete_account
    # ------------------------------------------------------------------

    def delete_account(self, user_id: str) -> None:
        """Soft-delete the account. Deleting an already-deleted account is a no-op.

        The first deletion timestamp is kept on repeat calls so the audit trail
        records when the account actually went away.
        """
        if self.store.find_by_id(user_id) is None:
            raise UnauthorizedError(MISSING_ACCOUNT_MESSAGE)
        if not self.store.mark_deleted(user_id, datetime.now(timezone.utc)):
            logger.info("Account already deleted", extra={"userId": user_id})
            return
        logger.info("Account deleted", extra={"userId": user_id})

    # ------------------------------------------------------------------
    # get_profile
    # ------------------------------------------------------------------

    def get_profile(self, user_id: str) -> User:
        """Return the current record for an authenticated identity (read-only)."""
        user = self.store.find_by_id(user_id)
        if user is None or user.is_deleted:
            raise UnauthorizedError(MISSING_ACCOUNT_MESSAGE)
        return user
