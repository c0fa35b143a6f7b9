"""Export and archive artifact models."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional


class ExportMechanism(str, Enum):
    """Mechanisms able to produce a database dump."""
    MYSQLDUMP = "mysqldump"
    WP_CLI = "wp_cli"
    GENERATOR = "generator"


class EntryKind(str, Enum):
    """Kinds of archive entries."""
    FILE = "file"
    DIRECTORY = "directory"


@dataclass(frozen=True)
class ExportAttempt:
    """One export strategy tried, with its outcome."""
    mechanism: ExportMechanism
    success: bool
    message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "mechanism": self.mechanism.value,
            "success": self.success,
            "message": self.message,
        }

    def describe(self) -> str:
        status = "ok" if self.success else "failed"
        return f"{self.mechanism.value}: {status} - {self.message}"


@dataclass(frozen=True)
class DumpArtifact:
    """A dump file on disk."""
    path: Path
    size: int
    table_count: Optional[int] = None  # Only known for the generator

    @property
    def is_empty_database(self) -> bool:
        """True when the generator found no tables at all."""
        return self.table_count == 0

    @classmethod
    def inspect(cls, path: Path, table_count: Optional[int] = None) -> Optional["DumpArtifact"]:
        """Stat a dump file, or return None if it does not exist."""
        path = Path(path)
        if not path.is_file():
            return None
        return cls(path=path, size=path.stat().st_size, table_count=table_count)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": str(self.path),
            "size": self.size,
            "table_count": self.table_count,
        }


@dataclass(frozen=True)
class ArchiveEntry:
    """A file or directory to be written into the archive."""
    source: Path
    arcname: str  # Always '/'-separated, directories end with '/'
    kind: EntryKind

    @property
    def is_dir(self) -> bool:
        return self.kind == EntryKind.DIRECTORY


@dataclass(frozen=True)
class ArchiveReference:
    """Opaque handle to a produced archive, handed to the delivery layer."""
    path: Path
    name: str
    size: int
    entry_count: int

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "path": str(self.path),
            "name": self.name,
            "size": self.size,
            "entry_count": self.entry_count,
        }
