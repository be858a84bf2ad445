"""
api/routes/v1/auth.py -- Account REST endpoints.

Routes:
  POST   {prefix}/auth/register  -- create account; 201 {accessToken}
  POST   {prefix}/auth/login     -- password login; 200 {accessToken}
  GET    {prefix}/auth/profile   -- current account view (requires auth)
  DELETE {prefix}/auth/withdraw  -- soft-delete current account (requires auth)

Route handlers stay thin: they map transport models to domain requests and
call AuthService. Domain errors (ValidationError, ConflictError,
UnauthorizedError) propagate to the exception handlers in api/main.py, which
own the status-code mapping.

Security:
  Cache-Control: no-store on every response that carries a token.
  Login failures share one message for unknown email and wrong password.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.models import LoginRequest, MessageResponse, ProfileResponse, RegisterRequest, TokenResponse
from auth.dependencies import get_current_claims
from auth.models import LoginRequest as LoginCommand
from auth.service import AuthService

# Auth policy:
# - POST   /auth/register:  public
# - POST   /auth/login:     public
# - GET    /auth/profile:   requires bearer token (get_current_claims)
# - DELETE /auth/withdraw:  requires bearer token (get_current_claims)
router = APIRouter()


def _token_response(token: str, status_code: int) -> JSONResponse:
    resp = JSONResponse(
        status_code=status_code,
        content=TokenResponse(access_token=token).model_dump(by_alias=True),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/auth/register", response_model=TokenResponse, status_code=201)
def register(request: Request, body: RegisterRequest) -> JSONResponse:
    """Create an account and return an access token for it.

    409 if the email is already registered, deleted accounts included.
    """
    service: AuthService = request.app.state.auth_service
    token = service.register(body.to_command())
    return _token_response(token, 201)


@router.post("/auth/login", response_model=TokenResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password and return a fresh access token."""
    service: AuthService = request.app.state.auth_service
    token = service.login(LoginCommand(email=body.email, password=body.password))
    return _token_response(token, 200)


@router.get("/auth/profile", response_model=ProfileResponse)
def profile(request: Request, claims: dict = Depends(get_current_claims)) -> ProfileResponse:
    """Return the account behind the bearer token. 401 once the account is deleted."""
    service: AuthService = request.app.state.auth_service
    return ProfileResponse.from_user(service.get_profile(claims["sub"]))


@router.delete("/auth/withdraw", response_model=MessageResponse)
def withdraw(request: Request, claims: dict = Depends(get_current_claims)) -> MessageResponse:
    """Soft-delete the account behind the bearer token."""
    service: AuthService = request.app.state.auth_service
    service.delete_account(claims["sub"])
    return MessageResponse(message="Account deleted.")
