"""Tests for the stashbox command-line interface."""

import os

import pytest
from click.testing import CliRunner

from stashbox.cli.main import cli


@pytest.fixture
def runner(isolated_config):
    return CliRunner()


@pytest.fixture
def cache_dir(tmp_path):
    return tmp_path / "cache"


def invoke(runner, cache_dir, *args):
    return runner.invoke(cli, ["-C", str(cache_dir), *args])


class TestGetSet:
    """Test the get and set commands."""

    def test_set_then_get(self, runner, cache_dir):
        result = invoke(runner, cache_dir, "set", "user:42", "hello")
        assert result.exit_code == 0
        assert "Stored 'user:42'" in result.output
        assert (cache_dir / "user_42.json").exists()

        result = invoke(runner, cache_dir, "get", "user:42")
        assert result.exit_code == 0
        assert "hello" in result.output

    def test_set_json_value(self, runner, cache_dir):
        invoke(runner, cache_dir, "set", "cfg", '{"retries": 3}', "--json")
        result = invoke(runner, cache_dir, "get", "cfg")
        assert result.exit_code == 0
        assert '"retries": 3' in result.output

    def test_set_invalid_json(self, runner, cache_dir):
        result = invoke(runner, cache_dir, "set", "cfg", "{oops", "--json")
        assert result.exit_code == 1
        assert "not valid JSON" in result.output

    def test_get_missing(self, runner, cache_dir):
        result = invoke(runner, cache_dir, "get", "nope")
        assert result.exit_code == 1
        assert "Key not found or expired" in result.output

    def test_raw_backend(self, runner, cache_dir):
        invoke(runner, cache_dir, "-b", "raw", "set", "note", "plain text")
        assert (cache_dir / "note").read_bytes() == b"plain text"

    def test_unusable_directory(self, runner, tmp_path):
        (tmp_path / "occupied").write_text("x")
        result = invoke(runner, tmp_path / "occupied" / "sub", "get", "k")
        assert result.exit_code == 1
        assert "Cannot open cache" in result.output


class TestDeleteClear:
    """Test the delete and clear commands."""

    def test_delete(self, runner, cache_dir):
        invoke(runner, cache_dir, "set", "k", "v")
        result = invoke(runner, cache_dir, "delete", "k")
        assert result.exit_code == 0
        assert "Deleted 'k'" in result.output
        assert not (cache_dir / "k.json").exists()

    def test_delete_missing_is_ok(self, runner, cache_dir):
        assert invoke(runner, cache_dir, "delete", "absent").exit_code == 0

    def test_clear_with_yes(self, runner, cache_dir):
        invoke(runner, cache_dir, "set", "a", "1")
        invoke(runner, cache_dir, "set", "b", "2")
        result = invoke(runner, cache_dir, "clear", "--yes")
        assert result.exit_code == 0
        assert "Cleared" in result.output
        assert list(cache_dir.glob("*.json")) == []

    def test_clear_cancelled(self, runner, cache_dir):
        invoke(runner, cache_dir, "set", "a", "1")
        result = runner.invoke(cli, ["-C", str(cache_dir), "clear"], input="n\n")
        assert "Cancelled" in result.output
        assert (cache_dir / "a.json").exists()


class TestExpire:
    """Test the expire command."""

    def test_expire_removes_old_entries(self, runner, cache_dir):
        invoke(runner, cache_dir, "-b", "raw", "set", "old", "1")
        invoke(runner, cache_dir, "-b", "raw", "set", "new", "2")
        os.utime(cache_dir / "old", (0, 0))

        result = invoke(runner, cache_dir, "-b", "raw", "--max-life", "3600", "expire")
        assert result.exit_code == 0
        assert "Expired 1 entries" in result.output
        assert not (cache_dir / "old").exists()
        assert (cache_dir / "new").exists()

    def test_expire_requires_max_life(self, runner, cache_dir):
        result = invoke(runner, cache_dir, "-b", "raw", "expire")
        assert result.exit_code == 1
        assert "max-life" in result.output

    def test_expire_requires_raw_backend(self, runner, cache_dir):
        result = invoke(runner, cache_dir, "--max-life", "60", "expire")
        assert result.exit_code == 1
        assert "raw backend" in result.output


class TestListStats:
    """Test the list and stats commands."""

    def test_list_empty(self, runner, cache_dir):
        result = invoke(runner, cache_dir, "list")
        assert result.exit_code == 0
        assert "No entries found" in result.output

    def test_list_entries(self, runner, cache_dir):
        invoke(runner, cache_dir, "set", "alpha", "1")
        invoke(runner, cache_dir, "set", "beta", "2")
        result = invoke(runner, cache_dir, "list")
        assert result.exit_code == 0
        assert "Entries (2)" in result.output
        assert "alpha" in result.output
        assert "beta" in result.output

    def test_stats(self, runner, cache_dir):
        invoke(runner, cache_dir, "set", "alpha", "1")
        result = invoke(runner, cache_dir, "stats")
        assert result.exit_code == 0
        assert "json" in result.output
        assert "entries" in result.output
