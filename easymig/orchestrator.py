"""Migration orchestrator - sequences export, naming and archiving for one run."""

import logging
import os
from pathlib import Path
from typing import List, Optional

import pymysql

from .errors import MigrationError, PreconditionError, QueryError
from .exporters.chain import ExportChain, ExportReport
from .models.artifact import ArchiveReference, ExportAttempt
from .models.connection import ConnectionConfig
from .models.migration import (
    ErrorEntry,
    LogEntry,
    MigrationResult,
    MigrationSettings,
    MigrationStage,
    MigrationStatus,
)
from .services.archive import DUMP_ARCNAME, ArchiveBuilder
from .services.config_resolver import (
    ConfigResolver,
    MappingConfigResolver,
    WordPressConfigResolver,
)
from .services.database import ConnectionFactory, connect
from .services.site_info import archive_base_name, fetch_site_name

logger = logging.getLogger(__name__)

PACKAGE_DIR = Path(__file__).resolve().parent


class MigrationOrchestrator:
    """
    Orchestrates one migration run.

    Handles:
    - Host environment check
    - Connection configuration resolution
    - Database export through the strategy chain
    - Site name lookup and archive naming
    - Archiving the site tree and the dump
    - Result reporting

    Every stage is fail-fast: the first stage error ends the run with status
    "error". Logs of every step attempted are returned either way.
    """

    def __init__(
        self,
        settings: Optional[MigrationSettings] = None,
        resolver: Optional[ConfigResolver] = None,
        chain: Optional[ExportChain] = None,
        connection_factory: Optional[ConnectionFactory] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            settings: Run settings
            resolver: Connection config source (defaults from settings)
            chain: Export strategy chain (defaults to mysqldump, WP-CLI, generator)
            connection_factory: Opens database connections from a ConnectionConfig
        """
        self.settings = settings or MigrationSettings()
        self.connection_factory = connection_factory or self._default_connect
        self.resolver = resolver or self._create_resolver()
        self.chain = chain or ExportChain(
            settings=self.settings, connection_factory=self.connection_factory
        )

        # Runtime state
        self._logs: List[LogEntry] = []
        self._errors: List[ErrorEntry] = []
        self._attempts: List[ExportAttempt] = []
        self._staged_dump: Optional[Path] = None

    def _default_connect(self, config: ConnectionConfig):
        return connect(
            config,
            charset=self.settings.charset,
            connect_timeout=self.settings.connect_timeout,
        )

    def _create_resolver(self) -> ConfigResolver:
        if self.settings.connection:
            return MappingConfigResolver(self.settings.connection)
        return WordPressConfigResolver(self.settings.root_path, self.settings.marker_filename)

    def run(self) -> MigrationResult:
        """
        Run the complete migration.

        The staged dump is removed (or kept, with keep_dump) however the run
        ends, so a failed run never leaves a database copy in the output
        directory.

        Returns:
            MigrationResult with logs, errors, attempts and the archive reference
        """
        self._logs = []
        self._errors = []
        self._attempts = []
        self._staged_dump = None
        archive = None
        logger.info(f"=== MIGRATION STARTED: {self.settings.root_path} ===")

        try:
            self._check_environment()
            config = self._resolve_config()
            report = self._run_export(config)
            site_name = self._site_name(config, report)
            archive = self._run_archive(site_name, config, report)

        except MigrationError as e:
            logger.error(f"Migration failed: {e}")
            for message in e.messages():
                self._errors.append(ErrorEntry(kind=e.kind, message=message))

        finally:
            self._cleanup()

        if self._errors:
            return self._result(MigrationStatus.ERROR)

        logger.info("=== MIGRATION COMPLETED ===")
        return self._result(MigrationStatus.SUCCESS, archive)

    def _log(self, stage: MigrationStage, message: str, level: str = "info"):
        """Record a log line for the caller and the process log."""
        self._logs.append(LogEntry(stage=stage, message=message, level=level))
        if level == "warning":
            logger.warning(message)
        else:
            logger.info(message)

    def _result(
        self,
        status: MigrationStatus,
        archive: Optional[ArchiveReference] = None,
    ) -> MigrationResult:
        return MigrationResult(
            status=status,
            logs=tuple(self._logs),
            errors=tuple(self._errors),
            attempts=tuple(self._attempts),
            archive=archive,
        )

    def _check_environment(self):
        """Make sure we are running inside a site root."""
        marker = self.settings.marker_filename
        if not marker:
            return
        if not self.settings.marker_path.is_file():
            raise PreconditionError(
                f"Error: {marker} not found. "
                f"Please run this tool in a WordPress installation directory."
            )
        self._log(MigrationStage.PRECONDITION, f"Found {marker}.")

    def _resolve_config(self) -> ConnectionConfig:
        config = self.resolver.resolve()
        self._log(MigrationStage.CONFIG, "Extracted database configuration.")
        self._log(MigrationStage.CONFIG, f"Using table prefix: {config.table_prefix}")
        return config

    def _run_export(self, config: ConnectionConfig) -> ExportReport:
        """Run the export chain into the staging file, copying every attempt into the logs."""
        output_path = self.settings.output_path
        try:
            output_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PreconditionError(f"Error: Cannot use output directory {output_path}: {e}") from e

        self._staged_dump = self.settings.staging_dump_path
        try:
            report = self.chain.export(config, self._staged_dump)
        except MigrationError:
            self._record_attempts(self.chain.attempts)
            raise

        self._record_attempts(report.attempts)
        if report.artifact.is_empty_database:
            self._log(
                MigrationStage.EXPORT,
                "Database contains no tables; the archived dump is empty.",
                level="warning",
            )
        return report

    def _record_attempts(self, attempts: List[ExportAttempt]):
        self._attempts = list(attempts)
        for attempt in attempts:
            self._log(
                MigrationStage.EXPORT,
                attempt.message,
                level="info" if attempt.success else "warning",
            )

    def _site_name(self, config: ConnectionConfig, report: ExportReport) -> str:
        """Look up the site title, unless the database has no options table to ask."""
        if report.artifact.is_empty_database:
            self._log(
                MigrationStage.SITE_INFO,
                "Skipped site name lookup; naming the archive after the database.",
            )
            return ""
        return self._fetch_site_name(config)

    def _fetch_site_name(self, config: ConnectionConfig) -> str:
        try:
            connection = self.connection_factory(config)
        except pymysql.MySQLError as e:
            raise QueryError(f"Error: Database connection failed - {e}") from e

        try:
            site_name = fetch_site_name(connection, config)
        finally:
            connection.close()

        self._log(MigrationStage.SITE_INFO, f"Retrieved site name: {site_name}")
        return site_name

    def _exclude_paths(self) -> List[Path]:
        paths = [PACKAGE_DIR]
        if self.settings.self_path:
            paths.append(Path(self.settings.self_path))
        return paths

    def _run_archive(
        self,
        site_name: str,
        config: ConnectionConfig,
        report: ExportReport,
    ) -> ArchiveReference:
        base = archive_base_name(site_name, config.database)
        if base != site_name:
            self._log(MigrationStage.ARCHIVE, f"Using archive name: {base}.zip")
        archive_path = self.settings.output_path / f"{base}.zip"

        builder = ArchiveBuilder(
            exclude_paths=self._exclude_paths(),
            exclude_patterns=self.settings.exclude_patterns,
        )
        archive = builder.build(
            archive_path,
            self.settings.root_path,
            dump_path=report.artifact.path,
            dump_arcname=DUMP_ARCNAME,
        )

        for path, reason in archive.skipped:
            self._log(MigrationStage.ARCHIVE, f"Skipped {path}: {reason}", level="warning")
        self._log(MigrationStage.ARCHIVE, f"Archive created successfully: {archive.reference.name}")
        return archive.reference

    def _cleanup(self):
        """Remove the staged dump, or move it to dump_path when keep_dump is set."""
        staged = self._staged_dump
        if staged is None or not staged.exists():
            return

        try:
            if self.settings.keep_dump:
                os.replace(staged, self.settings.dump_path)
                self._log(MigrationStage.CLEANUP, f"Kept database dump at {self.settings.dump_path}")
                return
            staged.unlink()
        except OSError as e:
            self._log(
                MigrationStage.CLEANUP,
                f"Could not clean up database dump {staged}: {e}",
                level="warning",
            )
            return
        self._log(MigrationStage.CLEANUP, "Removed standalone database dump.")
