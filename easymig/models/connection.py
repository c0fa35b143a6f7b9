"""Database connection models."""

import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from ..errors import ConfigError

DEFAULT_TABLE_PREFIX = "wp_"
DEFAULT_PORT = 3306

# Fields a resolver must supply, mapped to the wp-config.php constant names
REQUIRED_FIELDS = {
    "host": "DB_HOST",
    "database": "DB_NAME",
    "user": "DB_USER",
    "password": "DB_PASSWORD",
}

_PREFIX_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")


@dataclass(frozen=True)
class ConnectionConfig:
    """
    Resolved connection parameters for the site database.

    Built once at the pipeline boundary and handed to every component that
    needs the database. Never written to disk.
    """
    host: str
    database: str
    user: str
    password: str = ""
    table_prefix: str = DEFAULT_TABLE_PREFIX

    def __repr__(self) -> str:
        return (
            f"ConnectionConfig(host={self.host!r}, database={self.database!r}, "
            f"user={self.user!r}, password='***', table_prefix={self.table_prefix!r})"
        )

    @property
    def prefix_is_valid(self) -> bool:
        """Check the table prefix is safe to splice into an identifier."""
        return bool(_PREFIX_PATTERN.match(self.table_prefix))

    @property
    def options_table(self) -> str:
        """Name of the site options table."""
        return f"{self.table_prefix}options"

    def host_parts(self) -> Tuple[str, Optional[int], Optional[str]]:
        """
        Split the host into (host, port, unix_socket).

        WordPress allows ``localhost:3307`` and
        ``localhost:/var/run/mysqld/mysqld.sock`` in DB_HOST.
        """
        host, sep, rest = self.host.partition(":")
        if not sep or not rest:
            return host or "localhost", None, None
        if rest.startswith("/"):
            return host or "localhost", None, rest
        if rest.isdigit():
            return host or "localhost", int(rest), None
        return self.host, None, None

    def to_dict(self, include_password: bool = False) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "host": self.host,
            "database": self.database,
            "user": self.user,
            "password": self.password if include_password else "***",
            "table_prefix": self.table_prefix,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConnectionConfig":
        """
        Create from dictionary representation.

        Raises:
            ConfigError: listing every required field that is missing or empty
        """
        missing = [name for name in REQUIRED_FIELDS if not data.get(name)]
        if missing:
            raise ConfigError(missing)

        return cls(
            host=str(data["host"]),
            database=str(data["database"]),
            user=str(data["user"]),
            password=str(data["password"]),
            table_prefix=str(data.get("table_prefix") or DEFAULT_TABLE_PREFIX),
        )
