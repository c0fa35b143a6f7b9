"""Shared FastAPI dependencies: settings, credentials and session checks."""

from typing import Optional

from fastapi import Depends, HTTPException, Request

from ..models.migration import MigrationSettings
from ..services.credentials import CredentialStore, SessionStore

SESSION_COOKIE = "session_token"

_session_store: Optional[SessionStore] = None


def get_settings() -> MigrationSettings:
    """Settings for the current deployment, from EASYMIG_* variables."""
    return MigrationSettings.from_env()


def get_credential_store(settings: MigrationSettings = Depends(get_settings)) -> CredentialStore:
    return CredentialStore(settings.credentials_path)


def get_session_store(settings: MigrationSettings = Depends(get_settings)) -> SessionStore:
    """The process-wide session store, created with the configured lifetime."""
    global _session_store
    if _session_store is None:
        _session_store = SessionStore(ttl=settings.session_ttl)
    return _session_store


def get_session_token(request: Request) -> Optional[str]:
    """Token from the session cookie or an ``Authorization: Bearer`` header."""
    token = request.cookies.get(SESSION_COOKIE)
    if token:
        return token
    auth_header = request.headers.get("Authorization", "")
    scheme, _, credentials = auth_header.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials
    return None


def require_auth(
    request: Request,
    sessions: SessionStore = Depends(get_session_store),
) -> str:
    """Reject the request unless it carries a live session; returns the username."""
    username = sessions.validate(get_session_token(request))
    if username is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return username
