"""Migration run models."""

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .artifact import ArchiveReference, ExportAttempt

DEFAULT_DUMP_FILENAME = "database.sql"
DEFAULT_MARKER_FILENAME = "wp-config.php"
DEFAULT_EXTERNAL_TOOLS = ("mysqldump", "wp_cli")
DEFAULT_CREDENTIALS_FILE = Path.home() / ".easymig" / "credentials"
DEFAULT_SESSION_TTL = 2 * 60 * 60


class MigrationStatus(str, Enum):
    """Terminal status of a migration run."""
    SUCCESS = "success"
    ERROR = "error"


class MigrationStage(str, Enum):
    """Pipeline stages, in execution order."""
    PRECONDITION = "precondition"
    CONFIG = "config"
    EXPORT = "export"
    SITE_INFO = "site_info"
    ARCHIVE = "archive"
    CLEANUP = "cleanup"


@dataclass(frozen=True)
class LogEntry:
    """A human-readable log line produced during a run."""
    stage: MigrationStage
    message: str
    level: str = "info"  # info, warning

    def to_dict(self) -> Dict[str, Any]:
        return {"stage": self.stage.value, "message": self.message, "level": self.level}


@dataclass(frozen=True)
class ErrorEntry:
    """A failure reported to the caller."""
    kind: str  # Error class name, e.g. "ConfigError"
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "message": self.message}


@dataclass(frozen=True)
class MigrationResult:
    """
    The single value returned by one migration run.

    Logs are always populated with every step attempted, even on error, so
    operators can diagnose without server-side log access.
    """
    status: MigrationStatus
    logs: Tuple[LogEntry, ...] = ()
    errors: Tuple[ErrorEntry, ...] = ()
    attempts: Tuple[ExportAttempt, ...] = ()
    archive: Optional[ArchiveReference] = None

    @property
    def succeeded(self) -> bool:
        return self.status == MigrationStatus.SUCCESS

    @property
    def log_messages(self) -> List[str]:
        return [entry.message for entry in self.logs]

    @property
    def error_messages(self) -> List[str]:
        return [entry.message for entry in self.errors]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the renderer-facing dictionary."""
        return {
            "status": self.status.value,
            "logs": self.log_messages,
            "errors": self.error_messages,
            "attempts": [a.to_dict() for a in self.attempts],
            "archive": self.archive.to_dict() if self.archive else None,
        }


def _env_bool(value: Optional[str], default: bool) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class MigrationSettings:
    """Run-level configuration for a migration."""
    root: str = "."

    # Output
    output_dir: Optional[str] = None  # Defaults to root
    dump_filename: str = DEFAULT_DUMP_FILENAME
    keep_dump: bool = False

    # Environment
    marker_filename: str = DEFAULT_MARKER_FILENAME
    self_path: Optional[str] = None  # Resource never packed into the archive
    exclude_patterns: List[str] = field(default_factory=list)

    # Export options
    external_tools: List[str] = field(default_factory=lambda: list(DEFAULT_EXTERNAL_TOOLS))
    wp_cli_candidates: List[str] = field(default_factory=lambda: ["wp", "wp-cli", "wp-cli.phar"])
    command_timeout: Optional[float] = 600.0
    connect_timeout: int = 10
    charset: str = "utf8mb4"

    # Explicit connection parameters, bypassing the marker file
    connection: Dict[str, Any] = field(default_factory=dict)

    # HTTP trigger
    credentials_file: Optional[str] = None  # Defaults to ~/.easymig/credentials
    session_ttl: int = DEFAULT_SESSION_TTL  # Seconds

    @property
    def root_path(self) -> Path:
        return Path(self.root).resolve()

    @property
    def output_path(self) -> Path:
        return Path(self.output_dir).resolve() if self.output_dir else self.root_path

    @property
    def dump_path(self) -> Path:
        return self.output_path / self.dump_filename

    @property
    def staging_dump_path(self) -> Path:
        """Where the export writes before the dump is archived as dump_filename."""
        return self.output_path / f".easymig-{os.getpid()}.sql"

    @property
    def credentials_path(self) -> Path:
        return Path(self.credentials_file).expanduser() if self.credentials_file else DEFAULT_CREDENTIALS_FILE

    @property
    def marker_path(self) -> Path:
        return self.root_path / self.marker_filename

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation (connection password masked)."""
        connection = dict(self.connection)
        if "password" in connection:
            connection["password"] = "***"
        return {
            "root": self.root,
            "output_dir": self.output_dir,
            "dump_filename": self.dump_filename,
            "keep_dump": self.keep_dump,
            "marker_filename": self.marker_filename,
            "self_path": self.self_path,
            "exclude_patterns": self.exclude_patterns,
            "external_tools": self.external_tools,
            "wp_cli_candidates": self.wp_cli_candidates,
            "command_timeout": self.command_timeout,
            "connect_timeout": self.connect_timeout,
            "charset": self.charset,
            "connection": connection,
            "credentials_file": self.credentials_file,
            "session_ttl": self.session_ttl,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MigrationSettings":
        """Create from dictionary representation."""
        defaults = cls()
        return cls(
            root=data.get("root", defaults.root),
            output_dir=data.get("output_dir"),
            dump_filename=data.get("dump_filename", DEFAULT_DUMP_FILENAME),
            keep_dump=data.get("keep_dump", False),
            marker_filename=data.get("marker_filename", DEFAULT_MARKER_FILENAME),
            self_path=data.get("self_path"),
            exclude_patterns=list(data.get("exclude_patterns", [])),
            external_tools=list(data.get("external_tools", DEFAULT_EXTERNAL_TOOLS)),
            wp_cli_candidates=list(data.get("wp_cli_candidates", defaults.wp_cli_candidates)),
            command_timeout=data.get("command_timeout", defaults.command_timeout),
            connect_timeout=data.get("connect_timeout", defaults.connect_timeout),
            charset=data.get("charset", defaults.charset),
            connection=dict(data.get("connection", {})),
            credentials_file=data.get("credentials_file"),
            session_ttl=int(data.get("session_ttl", DEFAULT_SESSION_TTL)),
        )

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "MigrationSettings":
        """Create from EASYMIG_* environment variables."""
        env = os.environ if environ is None else environ
        settings = cls(
            root=env.get("EASYMIG_ROOT", "."),
            output_dir=env.get("EASYMIG_OUTPUT_DIR") or None,
            keep_dump=_env_bool(env.get("EASYMIG_KEEP_DUMP"), False),
            self_path=env.get("EASYMIG_SELF_PATH") or None,
            credentials_file=env.get("EASYMIG_CREDENTIALS_FILE") or None,
        )
        if env.get("EASYMIG_MARKER"):
            settings.marker_filename = env["EASYMIG_MARKER"]
        if env.get("EASYMIG_EXCLUDE"):
            settings.exclude_patterns = [p.strip() for p in env["EASYMIG_EXCLUDE"].split(",") if p.strip()]
        if "EASYMIG_EXTERNAL_TOOLS" in env:
            settings.external_tools = [t.strip() for t in env["EASYMIG_EXTERNAL_TOOLS"].split(",") if t.strip()]
        if env.get("EASYMIG_COMMAND_TIMEOUT"):
            settings.command_timeout = float(env["EASYMIG_COMMAND_TIMEOUT"])
        if env.get("EASYMIG_SESSION_TTL"):
            settings.session_ttl = int(env["EASYMIG_SESSION_TTL"])
        return settings
