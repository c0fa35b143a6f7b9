"""Site metadata lookup and archive naming."""

import logging
import re
from typing import Any

import pymysql

from ..errors import QueryError
from ..models.connection import ConnectionConfig
from .sql_dump import quote_identifier

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_\-]")

FALLBACK_BASE_NAME = "site"


def sanitize_site_name(name: str) -> str:
    """
    Make a site title safe for file names and shells.

    Every character outside letters, digits, underscore and hyphen becomes
    an underscore. An all-emoji title turns into underscores; an empty one
    stays empty.
    """
    return _UNSAFE_CHARS.sub("_", name or "")


def archive_base_name(site_name: str, database: str = "") -> str:
    """Pick the archive base name, falling back when the title sanitizes to nothing."""
    for candidate in (site_name, database):
        base = sanitize_site_name(candidate)
        if base:
            return base
    return FALLBACK_BASE_NAME


def fetch_site_name(connection: Any, config: ConnectionConfig) -> str:
    """
    Read the site title (``blogname``) from the options table.

    Raises:
        QueryError: if the prefix is unsafe, the query fails, or no row exists
    """
    if not config.prefix_is_valid:
        raise QueryError(f"Error: Invalid table prefix: {config.table_prefix!r}")

    sql = (
        f"SELECT option_value FROM {quote_identifier(config.options_table)} "
        f"WHERE option_name = %s LIMIT 1"
    )
    cursor = connection.cursor()
    try:
        cursor.execute(sql, ("blogname",))
        row = cursor.fetchone()
    except pymysql.MySQLError as e:
        raise QueryError(f"Error: Failed to retrieve blog name from database: {e}") from e
    finally:
        cursor.close()

    if not row:
        raise QueryError("Error: Failed to retrieve blog name from database.")

    value = row[0]
    if isinstance(value, (bytes, bytearray)):
        value = bytes(value).decode("utf-8", errors="replace")
    return "" if value is None else str(value)
