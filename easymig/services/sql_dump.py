"""
Tool-free SQL dump generator.

Serializes a MySQL database's schema and rows into a replayable SQL script
using nothing but an open PyMySQL connection. Used as the last export
strategy when neither mysqldump nor WP-CLI is available.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Iterator, List, Sequence, Tuple

import pymysql
import pymysql.cursors

from ..errors import DumpError
from ..models.artifact import DumpArtifact

logger = logging.getLogger(__name__)


def quote_identifier(name: str) -> str:
    """Backtick-quote a table or column name."""
    return "`" + str(name).replace("`", "``") + "`"


class SQLDumpGenerator:
    """
    Write a SQL script that recreates every table and row of a database.

    For each base table, in the order the server lists them:
    ``DROP TABLE IF EXISTS``, the ``SHOW CREATE TABLE`` statement, then one
    ``INSERT`` per row with an explicit column list. Views are emitted after
    all tables, structure only.

    Values are escaped with the connection's own escaping rules, so the
    session charset and NO_BACKSLASH_ESCAPES are honoured. ``None`` becomes
    the bare ``NULL`` literal and binary values become hex literals.
    """

    def __init__(self, connection: Any, charset: str = "utf8mb4"):
        """
        Initialize the generator.

        Args:
            connection: Open PyMySQL connection (or DB-API compatible double)
            charset: Session character set declared before reading anything
        """
        self.connection = connection
        self.charset = charset
        self.table_count = 0
        self.row_count = 0

    def dump(self, destination: Path) -> DumpArtifact:
        """
        Dump the database to destination.

        The script is written to a temporary file next to the destination and
        moved into place once complete, so readers never see a partial dump.

        Returns:
            DumpArtifact describing the written file

        Raises:
            DumpError: if tables cannot be enumerated or read
        """
        destination = Path(destination)
        try:
            self._execute(f"SET NAMES {self.charset}")
            objects = self.list_tables()
        except pymysql.MySQLError as e:
            raise DumpError(f"Could not enumerate tables: {e}") from e

        tables = [name for name, kind in objects if kind != "VIEW"]
        views = [name for name, kind in objects if kind == "VIEW"]
        self.table_count = len(tables)
        self.row_count = 0

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{destination.name}.", suffix=".tmp", dir=str(destination.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as out:
                if objects:
                    out.write(f"SET NAMES {self.charset};\n")
                    out.write("SET FOREIGN_KEY_CHECKS=0;\n\n")
                for table in tables:
                    for chunk in self._dump_table(table):
                        out.write(chunk)
                for view in views:
                    out.write(self._dump_view(view))
                if objects:
                    out.write("SET FOREIGN_KEY_CHECKS=1;\n")
            os.replace(tmp_name, destination)
        except pymysql.MySQLError as e:
            os.unlink(tmp_name)
            raise DumpError(f"Could not read table data: {e}") from e
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

        logger.info(
            f"Generated dump of {self.table_count} tables, {len(views)} views, "
            f"{self.row_count} rows to {destination}"
        )
        artifact = DumpArtifact.inspect(destination, table_count=self.table_count)
        if artifact is None:
            raise DumpError(f"Dump file was not written: {destination}")
        return artifact

    def list_tables(self) -> List[Tuple[str, str]]:
        """List (name, table_type) pairs in server order."""
        rows = self._fetchall("SHOW FULL TABLES")
        return [(row[0], row[1] if len(row) > 1 else "BASE TABLE") for row in rows]

    def _dump_table(self, table: str) -> Iterator[str]:
        quoted = quote_identifier(table)
        yield f"DROP TABLE IF EXISTS {quoted};\n"

        create = self._fetchall(f"SHOW CREATE TABLE {quoted}")
        if create:
            yield create[0][1].rstrip().rstrip(";") + ";\n\n"

        wrote_rows = False
        for columns, row in self._iter_rows(table):
            values = ", ".join(self.literal(value) for value in row)
            yield f"INSERT INTO {quoted} ({columns}) VALUES ({values});\n"
            self.row_count += 1
            wrote_rows = True
        if wrote_rows:
            yield "\n"

    def _dump_view(self, view: str) -> str:
        quoted = quote_identifier(view)
        create = self._fetchall(f"SHOW CREATE VIEW {quoted}")
        statement = f"DROP VIEW IF EXISTS {quoted};\n"
        if create:
            statement += create[0][1].rstrip().rstrip(";") + ";\n\n"
        return statement

    def _iter_rows(self, table: str) -> Iterator[Tuple[str, Sequence[Any]]]:
        """Stream rows with an unbuffered cursor, in engine order."""
        cursor = self.connection.cursor(pymysql.cursors.SSCursor)
        try:
            cursor.execute(f"SELECT * FROM {quote_identifier(table)}")
            columns = ", ".join(quote_identifier(col[0]) for col in cursor.description or ())
            for row in cursor:
                yield columns, row
        finally:
            cursor.close()

    def literal(self, value: Any) -> str:
        """Render one value as a SQL literal."""
        if value is None:
            return "NULL"
        if isinstance(value, (bytes, bytearray)):
            return "X'" + bytes(value).hex() + "'" if value else "''"
        if isinstance(value, str):
            return "'" + self.connection.escape_string(value) + "'"
        return str(self.connection.escape(value))

    def _execute(self, sql: str) -> None:
        cursor = self.connection.cursor()
        try:
            cursor.execute(sql)
        finally:
            cursor.close()

    def _fetchall(self, sql: str) -> List[Sequence[Any]]:
        cursor = self.connection.cursor()
        try:
            cursor.execute(sql)
            return list(cursor.fetchall())
        finally:
            cursor.close()

