"""Login endpoints guarding the migration trigger."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from pydantic import BaseModel

from ..dependencies import (
    SESSION_COOKIE,
    get_credential_store,
    get_session_store,
    get_session_token,
    get_settings,
)
from ...models.migration import MigrationSettings
from ...services.credentials import CredentialStore, SessionStore

logger = logging.getLogger(__name__)

router = APIRouter()


class LoginRequest(BaseModel):
    username: str
    password: str


class LoginResponse(BaseModel):
    success: bool
    message: str


class AuthStatus(BaseModel):
    authenticated: bool
    username: Optional[str] = None


@router.post("/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    response: Response,
    credentials: CredentialStore = Depends(get_credential_store),
    sessions: SessionStore = Depends(get_session_store),
    settings: MigrationSettings = Depends(get_settings),
):
    """
    Exchange the operator credentials for a session.

    The token is set as an HTTP-only cookie for browsers and returned in the
    ``X-Session-Token`` header for scripted clients.
    """
    if not credentials.verify(body.username, body.password):
        logger.warning(f"Failed login for '{body.username}'")
        raise HTTPException(status_code=401, detail="Invalid credentials")

    token = sessions.create(body.username)
    response.set_cookie(
        key=SESSION_COOKIE,
        value=token,
        httponly=True,
        samesite="strict",
        max_age=settings.session_ttl,
    )
    response.headers["X-Session-Token"] = token
    logger.info(f"Operator '{body.username}' logged in")
    return LoginResponse(success=True, message="Login successful")


@router.post("/logout", response_model=LoginResponse)
def logout(
    request: Request,
    response: Response,
    sessions: SessionStore = Depends(get_session_store),
):
    sessions.revoke(get_session_token(request))
    response.delete_cookie(SESSION_COOKIE)
    return LoginResponse(success=True, message="Logged out")


@router.get("/status", response_model=AuthStatus)
def auth_status(request: Request, sessions: SessionStore = Depends(get_session_store)):
    username = sessions.validate(get_session_token(request))
    return AuthStatus(authenticated=username is not None, username=username)
