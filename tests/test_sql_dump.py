"""Tests for the tool-free SQL dump generator."""

import datetime
import decimal

import pytest

from easymig.errors import DumpError
from easymig.services.sql_dump import SQLDumpGenerator, quote_identifier
from tests.conftest import FakeConnection


@pytest.fixture
def generator(fake_db):
    return SQLDumpGenerator(FakeConnection(fake_db))


class TestQuoteIdentifier:
    def test_plain(self):
        assert quote_identifier("wp_posts") == "`wp_posts`"

    def test_embedded_backtick_doubled(self):
        assert quote_identifier("we`ird") == "`we``ird`"


class TestDumpStructure:
    def test_statements_per_table_in_order(self, fake_db, generator, tmp_path):
        fake_db.add_table("wp_users", ["ID", "user_login"], [(1, "admin"), (2, "editor")])
        fake_db.add_table("wp_posts", ["ID", "post_title"], [(10, "Hello")])

        artifact = generator.dump(tmp_path / "database.sql")
        script = artifact.path.read_text()

        assert artifact.size > 0
        assert artifact.table_count == 2
        users_drop = script.index("DROP TABLE IF EXISTS `wp_users`;")
        users_create = script.index("CREATE TABLE `wp_users`")
        users_insert = script.index("INSERT INTO `wp_users`")
        posts_drop = script.index("DROP TABLE IF EXISTS `wp_posts`;")
        assert users_drop < users_create < users_insert < posts_drop

    def test_insert_has_explicit_column_list(self, fake_db, generator, tmp_path):
        fake_db.add_table("wp_users", ["ID", "user_login"], [(1, "admin")])

        script = generator.dump(tmp_path / "database.sql").path.read_text()

        assert "INSERT INTO `wp_users` (`ID`, `user_login`) VALUES (1, 'admin');" in script

    def test_every_statement_terminated(self, fake_db, generator, tmp_path):
        fake_db.add_table("t", ["a"], [("x",), ("y",)])

        script = generator.dump(tmp_path / "database.sql").path.read_text()
        statements = [line for line in script.splitlines() if line]

        assert statements
        assert all(line.endswith(";") for line in statements)

    def test_charset_declared_before_reading(self, fake_db, generator, tmp_path):
        fake_db.add_table("t", ["a"], [])

        script = generator.dump(tmp_path / "database.sql").path.read_text()

        assert fake_db.executed[0] == "SET NAMES utf8mb4"
        assert script.startswith("SET NAMES utf8mb4;")

    def test_row_and_table_counts(self, fake_db, generator, tmp_path):
        fake_db.add_table("a", ["x"], [(1,), (2,), (3,)])
        fake_db.add_table("b", ["y"], [])

        generator.dump(tmp_path / "database.sql")

        assert generator.table_count == 2
        assert generator.row_count == 3

    def test_views_after_tables_without_data(self, fake_db, generator, tmp_path):
        fake_db.add_table("wp_posts", ["ID"], [(1,)])
        fake_db.views["recent_posts"] = "CREATE VIEW `recent_posts` AS select `ID` from `wp_posts`"

        script = generator.dump(tmp_path / "database.sql").path.read_text()

        assert "DROP VIEW IF EXISTS `recent_posts`;" in script
        assert script.index("INSERT INTO `wp_posts`") < script.index("CREATE VIEW `recent_posts`")
        assert "INSERT INTO `recent_posts`" not in script


class TestValueEscaping:
    def test_null_is_bare_literal(self, generator):
        assert generator.literal(None) == "NULL"

    def test_string_null_stays_text(self, generator):
        assert generator.literal("NULL") == "'NULL'"

    def test_quote_and_backslash_escaped(self, generator):
        assert generator.literal("O'Brien \\ co") == "'O\\'Brien \\\\ co'"

    def test_statement_terminator_inside_value(self, fake_db, generator, tmp_path):
        fake_db.add_table("wp_comments", ["content"], [("bye'); DROP TABLE wp_users; --",)])

        script = generator.dump(tmp_path / "database.sql").path.read_text()

        assert "VALUES ('bye\\'); DROP TABLE wp_users; --');" in script

    def test_newlines_escaped(self, generator):
        assert generator.literal("a\nb") == "'a\\nb'"

    def test_multibyte_text_preserved(self, fake_db, generator, tmp_path):
        fake_db.add_table("t", ["title"], [("Café ☕",)])

        script = generator.dump(tmp_path / "database.sql").path.read_text(encoding="utf-8")

        assert "'Café ☕'" in script

    def test_binary_as_hex(self, generator):
        assert generator.literal(b"\x00\xff") == "X'00ff'"
        assert generator.literal(b"") == "''"

    def test_numbers_and_dates(self, generator):
        assert generator.literal(42) == "42"
        assert generator.literal(decimal.Decimal("1.50")) == "1.50"
        assert generator.literal(datetime.datetime(2024, 1, 2, 3, 4, 5)) == "'2024-01-02 03:04:05'"

    def test_null_row_values(self, fake_db, generator, tmp_path):
        fake_db.add_table("t", ["a", "b"], [(None, "")])

        script = generator.dump(tmp_path / "database.sql").path.read_text()

        assert "VALUES (NULL, '');" in script


class TestEdgeCases:
    def test_empty_database_is_zero_bytes(self, generator, tmp_path):
        artifact = generator.dump(tmp_path / "database.sql")

        assert artifact.size == 0
        assert artifact.table_count == 0
        assert artifact.is_empty_database

    def test_enumeration_failure(self, fake_db, generator, tmp_path):
        fake_db.fail_on = "SHOW FULL TABLES"

        with pytest.raises(DumpError, match="enumerate"):
            generator.dump(tmp_path / "database.sql")

    def test_read_failure_leaves_no_files(self, fake_db, generator, tmp_path):
        fake_db.add_table("t", ["a"], [(1,)])
        fake_db.fail_on = "SELECT * FROM"

        with pytest.raises(DumpError):
            generator.dump(tmp_path / "database.sql")

        assert list(tmp_path.iterdir()) == []

    def test_replaces_existing_file(self, fake_db, generator, tmp_path):
        destination = tmp_path / "database.sql"
        destination.write_text("stale")
        fake_db.add_table("t", ["a"], [(1,)])

        generator.dump(destination)

        assert "stale" not in destination.read_text()
        assert [p.name for p in tmp_path.iterdir()] == ["database.sql"]
