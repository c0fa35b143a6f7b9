"""Tests for site name lookup and archive naming."""

import pytest

from easymig.errors import QueryError
from easymig.models.connection import ConnectionConfig
from easymig.services.site_info import archive_base_name, fetch_site_name, sanitize_site_name
from tests.conftest import FakeConnection


class TestSanitize:
    @pytest.mark.parametrize("raw, expected", [
        ("My Site!", "My_Site_"),
        ("blog-2024_v2", "blog-2024_v2"),
        ("../../etc/passwd", "______etc_passwd"),
        ("Café", "Caf_"),
        ("", ""),
    ])
    def test_sanitize(self, raw, expected):
        assert sanitize_site_name(raw) == expected

    def test_none_is_empty(self):
        assert sanitize_site_name(None) == ""

    def test_one_underscore_per_character(self):
        assert sanitize_site_name("🚀 🚀") == "___"


class TestArchiveBaseName:
    def test_uses_site_name(self):
        assert archive_base_name("My Blog", "wpdb") == "My_Blog"

    def test_falls_back_to_database(self):
        assert archive_base_name("", "wp.db") == "wp_db"

    def test_last_resort(self):
        assert archive_base_name("", "") == "site"


class TestFetchSiteName:
    def test_reads_blogname(self, fake_db, connection_config):
        fake_db.add_options("Hello World")

        assert fetch_site_name(FakeConnection(fake_db), connection_config) == "Hello World"

    def test_uses_configured_prefix(self, fake_db):
        fake_db.add_options("Other", prefix="site2_")
        config = ConnectionConfig(host="h", database="d", user="u", password="p", table_prefix="site2_")

        assert fetch_site_name(FakeConnection(fake_db), config) == "Other"
        assert "`site2_options`" in fake_db.executed[-1]

    def test_blogname_passed_as_parameter(self, fake_db, connection_config):
        fake_db.add_options("Hello")

        fetch_site_name(FakeConnection(fake_db), connection_config)

        assert "blogname" not in fake_db.executed[-1]

    def test_bytes_value_decoded(self, fake_db, connection_config):
        fake_db.add_options("Café".encode("utf-8"))

        assert fetch_site_name(FakeConnection(fake_db), connection_config) == "Café"

    def test_unsafe_prefix_rejected(self, fake_db):
        config = ConnectionConfig(host="h", database="d", user="u", password="p",
                                  table_prefix="wp_`; DROP TABLE x; --")

        with pytest.raises(QueryError, match="Invalid table prefix"):
            fetch_site_name(FakeConnection(fake_db), config)
        assert fake_db.executed == []

    def test_missing_row(self, fake_db, connection_config):
        fake_db.add_options(None)

        with pytest.raises(QueryError, match="Failed to retrieve blog name"):
            fetch_site_name(FakeConnection(fake_db), connection_config)

    def test_query_failure(self, fake_db, connection_config):
        fake_db.add_options("Hello")
        fake_db.fail_on = "SELECT option_value"

        with pytest.raises(QueryError):
            fetch_site_name(FakeConnection(fake_db), connection_config)
