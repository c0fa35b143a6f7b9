"""WP-CLI export strategy."""

import logging
import shutil
from pathlib import Path
from typing import List, Optional

from .base import CommandExporter
from ..models.artifact import DumpArtifact, ExportMechanism
from ..models.connection import ConnectionConfig

logger = logging.getLogger(__name__)


class WPCLIExporter(CommandExporter):
    """
    Export with WP-CLI's ``db export`` subcommand.

    Candidate binary names are probed in order and the first one found on
    PATH is used. WP-CLI reads the credentials from wp-config.php itself, so
    none are passed on the command line.
    """

    mechanism = ExportMechanism.WP_CLI
    label = "WP-CLI"

    def __init__(self, settings=None, candidates: Optional[List[str]] = None):
        super().__init__(settings)
        self.candidates = list(candidates or self.settings.wp_cli_candidates)
        self.binary_name: Optional[str] = None

    def probe(self) -> Optional[str]:
        for candidate in self.candidates:
            found = shutil.which(candidate)
            if found:
                self.binary_name = candidate
                return found
        self.binary_name = None
        return None

    def not_found_message(self) -> str:
        return "No WP-CLI binary found."

    def build_command(self, binary: str, config: ConnectionConfig, destination: Path) -> List[str]:
        return [
            binary,
            "db",
            "export",
            str(destination),
            "--quiet",
            f"--path={self.settings.root_path}",
        ]

    def success_message(self, binary: str, artifact: DumpArtifact) -> str:
        return f"Database dump completed using WP-CLI ({self.binary_name})."
