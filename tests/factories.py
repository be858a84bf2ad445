"""Shared constants and builders for account tests."""

from auth.models import RegisterRequest

TEST_SECRET = "test-secret-key-that-is-at-least-32-chars"
TEST_ROUNDS = 4
VALID_PASSWORD = "Test123!@#"


def make_registration(**overrides) -> RegisterRequest:
    """A valid RegisterRequest; keyword arguments replace individual fields."""
    fields = {
        "email": "hong@example.com",
        "password": VALID_PASSWORD,
        "name": "홍길동",
        "gender": "male",
        "country": "KR",
    }
    fields.update(overrides)
    return RegisterRequest(**fields)
