"""HTTP client for triggering a migration on a remote site and fetching the archive."""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urljoin

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger(__name__)


class MigrationClient:
    """
    Client for a running easymig API.

    Logs in, triggers a run, and downloads the produced archive. Only
    idempotent requests (login status, downloads) are retried; the run
    trigger is sent once.
    """

    def __init__(
        self,
        base_url: str,
        username: str,
        password: str,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
        run_timeout: Optional[float] = 3600.0,
        max_retries: int = 3,
        backoff_factor: float = 2.0,
    ):
        """
        Initialize the client.

        Args:
            base_url: Root URL of the API, e.g. https://example.com/
            username: Admin username
            password: Admin password
            session: Custom requests session
            timeout: Timeout for short requests, in seconds
            run_timeout: Timeout for the blocking run request
            max_retries: Retries for idempotent requests
            backoff_factor: Backoff between retries
        """
        self.base_url = base_url.rstrip("/") + "/"
        self.username = username
        self.password = password
        self.timeout = timeout
        self.run_timeout = run_timeout
        self._max_retries = max_retries
        self._backoff_factor = backoff_factor
        self._session = session or self._create_session()

    def _create_session(self) -> requests.Session:
        """Create a requests session with retry logic."""
        session = requests.Session()

        retries = Retry(
            total=self._max_retries,
            backoff_factor=self._backoff_factor,
            status_forcelist=[429, 500, 502, 503, 504],
        )

        adapter = HTTPAdapter(max_retries=retries)
        session.mount("https://", adapter)
        session.mount("http://", adapter)

        return session

    def _url(self, path: str) -> str:
        return urljoin(self.base_url, path.lstrip("/"))

    def login(self) -> None:
        """Authenticate and keep the session cookie."""
        response = self._session.post(
            self._url("api/auth/login"),
            json={"username": self.username, "password": self.password},
            timeout=self.timeout,
        )
        response.raise_for_status()
        token = response.headers.get("X-Session-Token")
        if token:
            self._session.headers["Authorization"] = f"Bearer {token}"
        logger.info(f"Logged in to {self.base_url}")

    def run(self) -> Dict[str, Any]:
        """Trigger a migration and return the result body."""
        response = self._session.post(self._url("api/migrations/run"), timeout=self.run_timeout)
        response.raise_for_status()
        return response.json()

    def download(self, url: str, destination_dir: Path) -> Path:
        """Stream an archive to destination_dir and return its path."""
        destination_dir = Path(destination_dir)
        destination_dir.mkdir(parents=True, exist_ok=True)
        name = url.rstrip("/").rsplit("/", 1)[-1] or "archive.zip"
        target = destination_dir / name

        if not url.startswith(("http://", "https://")):
            url = self._url(url)

        with self._session.get(url, stream=True, timeout=self.timeout) as response:
            response.raise_for_status()
            with open(target, "wb") as f:
                for chunk in response.iter_content(chunk_size=1024 * 64):
                    if chunk:
                        f.write(chunk)

        logger.info(f"Downloaded {target} ({target.stat().st_size} bytes)")
        return target

    def migrate(self, destination_dir: Path) -> Tuple[Dict[str, Any], Optional[Path]]:
        """
        Log in, run the migration, and download the archive on success.

        Returns:
            (result body, downloaded archive path or None)
        """
        self.login()
        result = self.run()
        if result.get("status") != "success" or not result.get("download"):
            return result, None
        return result, self.download(result["download"], destination_dir)
