"""Error taxonomy for the migration pipeline."""

from typing import Iterable, List, Sequence


class MigrationError(Exception):
    """Base class for pipeline failures that end a run with status "error"."""

    @property
    def kind(self) -> str:
        return type(self).__name__

    def messages(self) -> List[str]:
        """Messages to report to the caller, one per error entry."""
        return [str(self)]


class PreconditionError(MigrationError):
    """The host environment marker (e.g. wp-config.php) is missing."""


class ConfigError(MigrationError):
    """Required connection fields could not be resolved."""

    def __init__(self, missing: Iterable[str], source: str = "configuration"):
        self.missing = list(missing)
        self.source = source
        super().__init__(
            f"Missing required fields in {source}: {', '.join(self.missing)}"
        )

    def messages(self) -> List[str]:
        return [f"Error: {name} is not defined in {self.source}." for name in self.missing]


class ExportError(MigrationError):
    """Every export strategy was tried and none produced a dump."""

    def __init__(self, attempts: Sequence):
        self.attempts = list(attempts)
        tried = "; ".join(a.describe() for a in self.attempts) or "no strategies configured"
        super().__init__(f"Database export failed. Tried: {tried}")


class DumpError(MigrationError):
    """The in-process SQL dump generator could not read the database."""


class QueryError(MigrationError):
    """A post-export metadata query (e.g. site name) failed."""


class ArchiveError(MigrationError):
    """The archive could not be opened or finalized."""
