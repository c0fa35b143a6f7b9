"""Ordered export strategy chain with fallback."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .base import BaseExporter
from .generator import GeneratorExporter
from .mysqldump import MysqldumpExporter
from .wpcli import WPCLIExporter
from ..errors import ExportError
from ..models.artifact import DumpArtifact, ExportAttempt, ExportMechanism
from ..models.connection import ConnectionConfig
from ..models.migration import MigrationSettings
from ..services.database import ConnectionFactory

logger = logging.getLogger(__name__)


@dataclass
class ExportReport:
    """Result of a successful chain run."""
    artifact: DumpArtifact
    mechanism: ExportMechanism
    attempts: List[ExportAttempt] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "artifact": self.artifact.to_dict(),
            "mechanism": self.mechanism.value,
            "attempts": [a.to_dict() for a in self.attempts],
        }


def default_exporters(
    settings: MigrationSettings,
    connection_factory: Optional[ConnectionFactory] = None,
) -> List[BaseExporter]:
    """mysqldump, then WP-CLI, then the in-process generator."""
    return [
        MysqldumpExporter(settings),
        WPCLIExporter(settings),
        GeneratorExporter(settings, connection_factory=connection_factory),
    ]


class ExportChain:
    """
    Try export strategies in order until one verifiably succeeds.

    Each strategy contributes exactly one ExportAttempt, whether it was
    unavailable, disabled, failed or succeeded. The chain stops at the first
    success; if none succeeds it raises ExportError carrying every attempt.
    """

    def __init__(
        self,
        exporters: Optional[Sequence[BaseExporter]] = None,
        settings: Optional[MigrationSettings] = None,
        connection_factory: Optional[ConnectionFactory] = None,
    ):
        self.settings = settings or MigrationSettings()
        self.exporters = list(
            exporters if exporters is not None
            else default_exporters(self.settings, connection_factory)
        )
        self.attempts: List[ExportAttempt] = []

    def is_enabled(self, exporter: BaseExporter) -> bool:
        """External tools can be switched off; the generator cannot."""
        if exporter.mechanism == ExportMechanism.GENERATOR:
            return True
        return exporter.mechanism.value in self.settings.external_tools

    def export(self, config: ConnectionConfig, destination: Path) -> ExportReport:
        """
        Produce a dump at destination.

        Raises:
            ExportError: if every strategy failed
        """
        self.attempts = []
        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)

        for exporter in self.exporters:
            if not self.is_enabled(exporter):
                attempt = ExportAttempt(
                    mechanism=exporter.mechanism,
                    success=False,
                    message=f"{exporter.name} is disabled by configuration.",
                )
                logger.info(attempt.message)
                self.attempts.append(attempt)
                continue

            logger.info(f"Trying export with {exporter.name}")
            attempt = exporter.run(config, destination)
            self.attempts.append(attempt)

            if attempt.success and exporter.artifact is not None:
                return ExportReport(
                    artifact=exporter.artifact,
                    mechanism=exporter.mechanism,
                    attempts=list(self.attempts),
                )

        raise ExportError(self.attempts)
