"""Service layer for the migration tool."""

from .archive import ArchiveBuilder, ArchiveReport
from .config_resolver import ConfigResolver, MappingConfigResolver, WordPressConfigResolver
from .database import connect
from .site_info import archive_base_name, fetch_site_name, sanitize_site_name
from .sql_dump import SQLDumpGenerator

__all__ = [
    "ArchiveBuilder",
    "ArchiveReport",
    "ConfigResolver",
    "MappingConfigResolver",
    "WordPressConfigResolver",
    "connect",
    "archive_base_name",
    "fetch_site_name",
    "sanitize_site_name",
    "SQLDumpGenerator",
]
