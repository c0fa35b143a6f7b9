"""Data models for the migration tool."""

from .connection import (
    ConnectionConfig,
    DEFAULT_TABLE_PREFIX,
    REQUIRED_FIELDS,
)
from .artifact import (
    ArchiveEntry,
    ArchiveReference,
    DumpArtifact,
    EntryKind,
    ExportAttempt,
    ExportMechanism,
)
from .migration import (
    ErrorEntry,
    LogEntry,
    MigrationResult,
    MigrationSettings,
    MigrationStage,
    MigrationStatus,
)

__all__ = [
    "ConnectionConfig",
    "DEFAULT_TABLE_PREFIX",
    "REQUIRED_FIELDS",
    "ArchiveEntry",
    "ArchiveReference",
    "DumpArtifact",
    "EntryKind",
    "ExportAttempt",
    "ExportMechanism",
    "ErrorEntry",
    "LogEntry",
    "MigrationResult",
    "MigrationSettings",
    "MigrationStage",
    "MigrationStatus",
]
