"""In-process SQL generator export strategy."""

import logging
from pathlib import Path
from typing import Optional

import pymysql

from .base import BaseExporter, remove_stale
from ..errors import DumpError
from ..models.artifact import ExportAttempt, ExportMechanism
from ..models.connection import ConnectionConfig
from ..services.database import ConnectionFactory, connect
from ..services.sql_dump import SQLDumpGenerator

logger = logging.getLogger(__name__)


class GeneratorExporter(BaseExporter):
    """
    Export by reading the database directly over a fresh connection.

    Always available; used when no external tool produced a dump. A database
    with zero tables yields an empty file, which counts as success here.
    """

    mechanism = ExportMechanism.GENERATOR
    label = "pure Python"

    def __init__(self, settings=None, connection_factory: Optional[ConnectionFactory] = None):
        super().__init__(settings)
        self.connection_factory = connection_factory or self._default_connect

    def _default_connect(self, config: ConnectionConfig):
        return connect(
            config,
            charset=self.settings.charset,
            connect_timeout=self.settings.connect_timeout,
        )

    def probe(self) -> Optional[str]:
        return "pymysql"

    def run(self, config: ConnectionConfig, destination: Path) -> ExportAttempt:
        self.artifact = None
        remove_stale(destination)

        try:
            connection = self.connection_factory(config)
        except pymysql.MySQLError as e:
            return self.failed(f"Error: {self.name} fallback - Database connection failed: {e}")

        try:
            generator = SQLDumpGenerator(connection, charset=self.settings.charset)
            artifact = generator.dump(Path(destination))
        except DumpError as e:
            return self.failed(f"Error: Database dump failed using {self.name}: {e}")
        except OSError as e:
            return self.failed(f"Error: Could not write database dump using {self.name}: {e}")
        finally:
            connection.close()

        if artifact.is_empty_database:
            self.artifact = artifact
            return self.succeeded(
                f"Database has no tables; wrote an empty dump using {self.name}."
            )
        if artifact.size <= 0:
            return self.failed(f"Error: Database dump failed using {self.name}: empty output.")

        self.artifact = artifact
        return self.succeeded(
            f"Database dump completed using {self.name} "
            f"({generator.table_count} tables, {generator.row_count} rows)."
        )
