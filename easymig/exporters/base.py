"""Base exporter interface."""

import logging
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Tuple

from ..models.artifact import DumpArtifact, ExportAttempt, ExportMechanism
from ..models.connection import ConnectionConfig
from ..models.migration import MigrationSettings

logger = logging.getLogger(__name__)

# Diagnostics longer than this are truncated in attempt messages
MAX_OUTPUT_CHARS = 2000


def remove_stale(destination: Path) -> None:
    """Delete a dump left behind by an earlier attempt."""
    try:
        Path(destination).unlink()
    except FileNotFoundError:
        pass


def verify_dump(destination: Path) -> Optional[DumpArtifact]:
    """Return the dump artifact only if the file exists and is non-empty."""
    artifact = DumpArtifact.inspect(destination)
    if artifact is None or artifact.size <= 0:
        return None
    return artifact


class BaseExporter(ABC):
    """
    Base class for database export strategies.

    Exporters are responsible for producing a dump file at a destination
    path and reporting exactly one ExportAttempt per run. Success is judged
    by the file on disk, never by a process exit status.
    """

    mechanism: ExportMechanism
    label: str = ""

    def __init__(self, settings: Optional[MigrationSettings] = None):
        """
        Initialize the exporter.

        Args:
            settings: Run settings (timeouts, site root, tool candidates)
        """
        self.settings = settings or MigrationSettings()
        self.artifact: Optional[DumpArtifact] = None

    @property
    def name(self) -> str:
        return self.label or self.mechanism.value

    @abstractmethod
    def probe(self) -> Optional[str]:
        """
        Check whether this mechanism can run here.

        Returns:
            A description of what was found (e.g. binary path), or None
        """
        pass

    @abstractmethod
    def run(self, config: ConnectionConfig, destination: Path) -> ExportAttempt:
        """
        Export the database to destination.

        Returns:
            ExportAttempt describing the outcome; self.artifact is set on success
        """
        pass

    def succeeded(self, message: str) -> ExportAttempt:
        logger.info(message)
        return ExportAttempt(mechanism=self.mechanism, success=True, message=message)

    def failed(self, message: str) -> ExportAttempt:
        logger.warning(message)
        return ExportAttempt(mechanism=self.mechanism, success=False, message=message)


class CommandExporter(BaseExporter):
    """Exporter that shells out to an external binary, verified by file size."""

    @abstractmethod
    def build_command(self, binary: str, config: ConnectionConfig, destination: Path) -> List[str]:
        """Build the argument list. Never a shell string."""
        pass

    def masked_command(self, command: List[str]) -> str:
        """Render a command for logs with secrets hidden."""
        return " ".join(command)

    def execute(self, command: List[str], destination: Path) -> Tuple[int, str]:
        """Run the command and return (exit status, captured output)."""
        completed = subprocess.run(
            command,
            cwd=str(self.settings.root_path),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            timeout=self.settings.command_timeout,
            encoding="utf-8",
            errors="replace",
        )
        return completed.returncode, completed.stdout or ""

    def not_found_message(self) -> str:
        return f"{self.name} not found on PATH."

    def run(self, config: ConnectionConfig, destination: Path) -> ExportAttempt:
        self.artifact = None
        binary = self.probe()
        if not binary:
            return self.failed(self.not_found_message())

        destination = Path(destination)
        remove_stale(destination)
        command = self.build_command(binary, config, destination)
        logger.debug(f"Running {self.masked_command(command)}")

        try:
            returncode, output = self.execute(command, destination)
        except subprocess.TimeoutExpired:
            remove_stale(destination)
            return self.failed(
                f"{self.name} failed: timed out after {self.settings.command_timeout} seconds"
            )
        except OSError as e:
            return self.failed(f"{self.name} failed: {e}")

        artifact, problem = self.verify(destination)
        if artifact is None:
            remove_stale(destination)
            output = output.strip()[:MAX_OUTPUT_CHARS] or "no output"
            return self.failed(f"{self.name} failed (exit status {returncode}, {problem}): {output}")

        self.artifact = artifact
        return self.succeeded(self.success_message(binary, artifact))

    def verify(self, destination: Path) -> Tuple[Optional[DumpArtifact], str]:
        """Check the dump on disk; returns (artifact, problem) with artifact None on failure."""
        artifact = verify_dump(destination)
        if artifact is None:
            return None, "empty or missing dump file"
        return artifact, ""

    def success_message(self, binary: str, artifact: DumpArtifact) -> str:
        return f"Database dump completed using {self.name}."
