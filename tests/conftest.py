"""Shared fixtures: an in-memory stand-in for a PyMySQL connection and a site tree."""

import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import pymysql
import pytest
from pymysql import converters

from easymig.models.connection import ConnectionConfig
from easymig.models.migration import MigrationSettings

WP_CONFIG = """<?php
define( 'DB_NAME', 'site' );
define( 'DB_USER', 'root' );
define( 'DB_PASSWORD', 'x' );
define( 'DB_HOST', 'localhost' );
$table_prefix = 'wp_';
require_once ABSPATH . 'wp-settings.php';
"""


class FakeDatabase:
    """Tables, views and options served by FakeConnection."""

    def __init__(self):
        self.tables: Dict[str, Dict[str, Any]] = {}
        self.views: Dict[str, str] = {}
        self.fail_on: Optional[str] = None  # Statement prefix that raises
        self.executed: List[str] = []

    def add_table(self, name: str, columns: List[str], rows: List[tuple], create: Optional[str] = None):
        if create is None:
            cols = ", ".join(f"`{c}` text" for c in columns)
            create = f"CREATE TABLE `{name}` ({cols}) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4"
        self.tables[name] = {"columns": columns, "rows": list(rows), "create": create}

    def add_options(self, blogname: Optional[str], prefix: str = "wp_"):
        rows = [("siteurl", "http://example.test")]
        if blogname is not None:
            rows.append(("blogname", blogname))
        self.add_table(f"{prefix}options", ["option_name", "option_value"], rows)


class FakeCursor:
    def __init__(self, db: FakeDatabase):
        self.db = db
        self.description = None
        self._rows: List[tuple] = []
        self.closed = False

    def execute(self, sql: str, params=None):
        self.db.executed.append(sql)
        if self.db.fail_on and sql.startswith(self.db.fail_on):
            raise pymysql.err.OperationalError(1142, f"command denied: {sql}")

        self.description = None
        if sql.startswith("SET NAMES"):
            self._rows = []
        elif sql == "SHOW FULL TABLES":
            self._rows = [(name, "BASE TABLE") for name in self.db.tables]
            self._rows += [(name, "VIEW") for name in self.db.views]
        elif sql.startswith("SHOW CREATE TABLE"):
            name = _identifier(sql)
            self._rows = [(name, self.db.tables[name]["create"])]
        elif sql.startswith("SHOW CREATE VIEW"):
            name = _identifier(sql)
            self._rows = [(name, self.db.views[name], "utf8mb4", "utf8mb4_general_ci")]
        elif sql.startswith("SELECT * FROM"):
            table = self.db.tables[_identifier(sql)]
            self.description = [(col, None, None, None, None, None, None) for col in table["columns"]]
            self._rows = list(table["rows"])
        elif sql.startswith("SELECT option_value FROM"):
            table = self.db.tables.get(_identifier(sql))
            if table is None:
                raise pymysql.err.ProgrammingError(1146, "Table doesn't exist")
            self._rows = [(value,) for name, value in table["rows"] if name == params[0]][:1]
        else:
            raise AssertionError(f"Unexpected SQL: {sql}")

    def fetchall(self):
        return list(self._rows)

    def fetchone(self):
        return self._rows[0] if self._rows else None

    def __iter__(self):
        return iter(self._rows)

    def close(self):
        self.closed = True


class FakeConnection:
    """DB-API double that escapes with PyMySQL's real converters."""

    def __init__(self, db: FakeDatabase):
        self.db = db
        self.closed = False

    def cursor(self, cursor_class=None):
        return FakeCursor(self.db)

    def escape_string(self, value: str) -> str:
        return converters.escape_string(value)

    def escape(self, value: Any) -> str:
        return converters.escape_item(value, "utf8mb4")

    def close(self):
        self.closed = True


def _identifier(sql: str) -> str:
    match = re.search(r"`((?:[^`]|``)+)`", sql)
    assert match, sql
    return match.group(1).replace("``", "`")


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def connection_factory(fake_db):
    """Factory returning fresh FakeConnections; records what it opened."""
    opened: List[FakeConnection] = []

    def factory(config: ConnectionConfig):
        conn = FakeConnection(fake_db)
        opened.append(conn)
        return conn

    factory.opened = opened
    return factory


@pytest.fixture
def connection_config() -> ConnectionConfig:
    return ConnectionConfig(
        host="localhost",
        database="site",
        user="root",
        password="x",
        table_prefix="wp_",
    )


@pytest.fixture
def site_root(tmp_path) -> Path:
    """A small WordPress-like tree: 3 files, 1 subdirectory, plus the tool itself."""
    root = tmp_path / "site"
    root.mkdir()
    (root / "wp-config.php").write_text(WP_CONFIG)
    (root / "index.php").write_text("<?php // front controller\n")
    (root / "wp-content").mkdir()
    (root / "wp-content" / "style.css").write_text("body { margin: 0; }\n")
    (root / "easymig-tool.php").write_text("<?php // migration tool\n")
    return root


@pytest.fixture
def settings(site_root) -> MigrationSettings:
    return MigrationSettings(
        root=str(site_root),
        self_path=str(site_root / "easymig-tool.php"),
        external_tools=[],
    )


@pytest.fixture
def no_external_tools(monkeypatch):
    """Make every external binary unresolvable."""
    monkeypatch.setattr("shutil.which", lambda name, *args, **kwargs: None)
