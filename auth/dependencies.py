"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Requests authenticate with an Authorization: Bearer <token> header carrying
a JWT minted by AuthService. The dependency only verifies the token and
returns its claims; resolving sub back to an account (and rejecting deleted
ones) is AuthService's job.

Layer rule: auth/dependencies.py may import from fastapi (for Request and
HTTPException) because this module is part of the FastAPI dependency
injection system. It still does not import from api/.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from auth.tokens import TokenIssuer


def try_get_current_claims(request: Request) -> dict | None:
    """Return the verified token claims, or None when the request is unauthenticated."""
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None
    issuer: TokenIssuer = request.app.state.token_issuer
    return issuer.decode(auth_header[7:])


def get_current_claims(request: Request) -> dict:
    """Require a valid bearer token. Raises HTTP 401 otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(claims: dict = Depends(get_current_claims)): ...
    """
    claims = try_get_current_claims(request)
    if claims is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required."},
            headers={"WWW-Authenticate": "Bearer", "Cache-Control": "no-store"},
        )
    return claims
