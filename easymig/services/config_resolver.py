"""Resolve database connection parameters for a site."""

import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

from ..errors import ConfigError, PreconditionError
from ..models.connection import DEFAULT_TABLE_PREFIX, REQUIRED_FIELDS, ConnectionConfig

logger = logging.getLogger(__name__)

# define('DB_NAME', 'value'); with either quote style, honouring escaped quotes
_DEFINE_PATTERN = re.compile(
    r"""define\(\s*(['"])(DB_HOST|DB_NAME|DB_USER|DB_PASSWORD)\1\s*,\s*"""
    r"""(?:'((?:[^'\\]|\\.)*)'|"((?:[^"\\]|\\.)*)")\s*\)""",
    re.DOTALL,
)
_PREFIX_PATTERN = re.compile(
    r"""\$table_prefix\s*=\s*(?:'((?:[^'\\]|\\.)*)'|"((?:[^"\\]|\\.)*)")\s*;"""
)


def _unescape_single(value: str) -> str:
    return re.sub(r"\\([\\'])", r"\1", value)


def _unescape_double(value: str) -> str:
    return re.sub(r"""\\([\\"$])""", r"\1", value)


class ConfigResolver(ABC):
    """Source of a ConnectionConfig."""

    source_name = "configuration"

    @abstractmethod
    def resolve(self) -> ConnectionConfig:
        """
        Resolve the connection parameters.

        Raises:
            ConfigError: listing every missing required field at once
        """


class MappingConfigResolver(ConfigResolver):
    """Resolve from an explicit mapping (settings file, API caller)."""

    source_name = "connection settings"

    def __init__(self, data: Dict[str, Any]):
        self.data = data

    def resolve(self) -> ConnectionConfig:
        missing = [name for name in REQUIRED_FIELDS if not self.data.get(name)]
        if missing:
            raise ConfigError(missing, source=self.source_name)
        return ConnectionConfig.from_dict(self.data)


class WordPressConfigResolver(ConfigResolver):
    """
    Resolve from a WordPress ``wp-config.php`` file.

    Reads the DB_HOST, DB_NAME, DB_USER and DB_PASSWORD constants and the
    ``$table_prefix`` variable. The file is parsed, never executed.
    """

    def __init__(self, root: Path, marker_filename: str = "wp-config.php"):
        self.root = Path(root)
        self.marker_filename = marker_filename
        self.source_name = marker_filename

    @property
    def path(self) -> Path:
        return self.root / self.marker_filename

    def check_environment(self) -> None:
        """Raise PreconditionError unless the config file is present."""
        if not self.path.is_file():
            raise PreconditionError(
                f"Error: {self.marker_filename} not found. "
                f"Please run this tool in a WordPress installation directory."
            )

    def parse(self, content: str) -> Dict[str, str]:
        """Extract the DB_* constants and table prefix from PHP source."""
        constants: Dict[str, str] = {}
        for match in _DEFINE_PATTERN.finditer(content):
            name = match.group(2)
            if name in constants:
                # PHP keeps the first definition
                continue
            if match.group(3) is not None:
                constants[name] = _unescape_single(match.group(3))
            else:
                constants[name] = _unescape_double(match.group(4))

        prefix: Optional[str] = None
        prefix_match = _PREFIX_PATTERN.search(content)
        if prefix_match:
            if prefix_match.group(1) is not None:
                prefix = _unescape_single(prefix_match.group(1))
            else:
                prefix = _unescape_double(prefix_match.group(2))

        data = {field: constants.get(const, "") for field, const in REQUIRED_FIELDS.items()}
        data["table_prefix"] = prefix if prefix else DEFAULT_TABLE_PREFIX
        return data

    def resolve(self) -> ConnectionConfig:
        self.check_environment()
        content = self.path.read_text(encoding="utf-8", errors="replace")
        data = self.parse(content)

        missing = [const for field, const in REQUIRED_FIELDS.items() if not data.get(field)]
        if missing:
            raise ConfigError(missing, source=self.source_name)

        logger.debug(f"Resolved connection for database {data['database']} from {self.path}")
        return ConnectionConfig.from_dict(data)
