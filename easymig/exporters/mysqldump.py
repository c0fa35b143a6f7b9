"""mysqldump export strategy."""

import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional, Tuple

from .base import CommandExporter
from ..models.artifact import DumpArtifact, ExportMechanism
from ..models.connection import ConnectionConfig

logger = logging.getLogger(__name__)

# mysqldump ends every complete dump with this comment line
COMPLETION_MARKER = b"-- Dump completed"
TAIL_BYTES = 4096


class MysqldumpExporter(CommandExporter):
    """
    Export with the ``mysqldump`` client.

    The dump is written from the process's stdout straight into the
    destination file; stderr is captured separately so error text can never
    be mistaken for dump content. A dump without the closing
    "-- Dump completed" comment was cut short and is rejected.
    """

    mechanism = ExportMechanism.MYSQLDUMP
    label = "mysqldump"
    binary_name = "mysqldump"

    def probe(self) -> Optional[str]:
        return shutil.which(self.binary_name)

    def build_command(self, binary: str, config: ConnectionConfig, destination: Path) -> List[str]:
        host, port, unix_socket = config.host_parts()
        command = [binary, f"--host={host}"]
        if port:
            command.append(f"--port={port}")
        if unix_socket:
            command.append(f"--socket={unix_socket}")
        command.extend([
            f"--user={config.user}",
            f"--password={config.password}",
            config.database,
        ])
        return command

    def masked_command(self, command: List[str]) -> str:
        return " ".join(
            "--password=***" if arg.startswith("--password=") else arg
            for arg in command
        )

    def verify(self, destination: Path) -> Tuple[Optional[DumpArtifact], str]:
        artifact, problem = super().verify(destination)
        if artifact is None:
            return None, problem
        if not has_completion_marker(destination):
            return None, "dump is incomplete"
        return artifact, ""

    def execute(self, command: List[str], destination: Path) -> Tuple[int, str]:
        with open(destination, "wb") as out:
            completed = subprocess.run(
                command,
                cwd=str(self.settings.root_path),
                stdin=subprocess.DEVNULL,
                stdout=out,
                stderr=subprocess.PIPE,
                timeout=self.settings.command_timeout,
            )
        stderr = (completed.stderr or b"").decode("utf-8", errors="replace")
        return completed.returncode, stderr


def has_completion_marker(path: Path) -> bool:
    """True if the last few KB of the dump contain mysqldump's trailer."""
    with open(path, "rb") as f:
        f.seek(0, os.SEEK_END)
        f.seek(max(f.tell() - TAIL_BYTES, 0))
        return COMPLETION_MARKER in f.read()
