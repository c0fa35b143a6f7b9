"""Operator credentials and login sessions for the HTTP trigger."""

import logging
import secrets
import time
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_USERNAME = "admin"


class CredentialStore:
    """
    Admin username and password kept in a two-line file.

    The file is created on first use with a random password and mode 0600.
    It is meant to live outside the site root: anything under the root ends
    up in the archive.
    """

    def __init__(self, path: Path, username: str = DEFAULT_USERNAME):
        self.path = Path(path)
        self.default_username = username

    def load(self) -> Tuple[str, str]:
        """Return (username, password), generating them if the file is missing or malformed."""
        if self.path.is_file():
            lines = self.path.read_text().splitlines()
            if len(lines) >= 2 and lines[0] and lines[1]:
                return lines[0], lines[1]
            logger.warning(f"Ignoring malformed credentials file {self.path}")
        return self._generate()

    def _generate(self) -> Tuple[str, str]:
        username = self.default_username
        password = secrets.token_urlsafe(24)

        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(f"{username}\n{password}\n")
        self.path.chmod(0o600)

        logger.warning(
            f"Generated credentials for '{username}' in {self.path}; "
            f"read the password from that file to log in"
        )
        return username, password

    def verify(self, username: str, password: str) -> bool:
        stored_user, stored_pass = self.load()
        user_ok = secrets.compare_digest(username.encode(), stored_user.encode())
        pass_ok = secrets.compare_digest(password.encode(), stored_pass.encode())
        return user_ok and pass_ok


class SessionStore:
    """In-memory bearer tokens with a fixed lifetime, for a single server process."""

    def __init__(self, ttl: float, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._sessions: Dict[str, Tuple[str, float]] = {}  # token -> (username, expiry)

    def create(self, username: str) -> str:
        self._purge()
        token = secrets.token_urlsafe(32)
        self._sessions[token] = (username, self._clock() + self.ttl)
        return token

    def validate(self, token: Optional[str]) -> Optional[str]:
        """Return the session's username, or None if the token is unknown or expired."""
        if not token:
            return None
        session = self._sessions.get(token)
        if session is None:
            return None
        username, expiry = session
        if self._clock() > expiry:
            del self._sessions[token]
            return None
        return username

    def revoke(self, token: Optional[str]) -> None:
        if token:
            self._sessions.pop(token, None)

    def _purge(self):
        now = self._clock()
        for token in [t for t, (_, expiry) in self._sessions.items() if now > expiry]:
            del self._sessions[token]

    def __len__(self) -> int:
        return len(self._sessions)
