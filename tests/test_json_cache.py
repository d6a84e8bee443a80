"""Tests for the JSON envelope file cache."""

import threading
from datetime import timedelta

import orjson
import pytest

from stashbox.backends import CacheBackend, ConnectedBackend, JsonFileCache
from stashbox.codecs import SerializeCodec
from stashbox.errors import DirectoryError, EncodeError, ReadError
from stashbox.expiration import DEFAULT_FILE_TTL


@pytest.fixture
def cache_dir(tmp_path):
    return tmp_path / "cache"


@pytest.fixture
def cache(cache_dir, clock):
    """Create an enabled cache driven by a fake clock."""
    return JsonFileCache(cache_dir, default_ttl=60, enabled=True, clock=clock)


class TestJsonFileCacheBasics:
    """Test basic store and retrieve behavior."""

    def test_satisfies_protocol(self, cache):
        assert isinstance(cache, CacheBackend)
        assert not isinstance(cache, ConnectedBackend)

    def test_round_trip(self, cache):
        """Test that set then get returns the value."""
        cache.set("user:42", {"name": "Ana", "roles": ["admin"]})
        assert cache.get("user:42") == {"name": "Ana", "roles": ["admin"]}
        assert not cache.is_error()

    def test_set_is_chainable(self, cache):
        assert cache.set("a", 1).set("b", 2).get("b") == 2

    def test_file_layout(self, cache, cache_dir, clock):
        """Test the entry path and envelope content."""
        cache.set("user:42", {"name": "Ana"}, ttl=5)
        path = cache_dir / "user_42.json"
        assert path.exists()
        assert orjson.loads(path.read_bytes()) == {
            "expire": int(clock.now) + 5,
            "value": {"name": "Ana"},
        }

    def test_missing_key(self, cache):
        assert cache.get("nope") is None
        assert not cache.is_error()

    def test_none_value_round_trips(self, cache):
        cache.set("k", None)
        assert cache.get_entry("k").value is None

    def test_sanitized_keys_collide(self, cache):
        """Keys that differ only in unsafe characters share one entry."""
        cache.set("a/b", "first")
        cache.set("a-b", "second")
        assert cache.get("a/b") == "second"

    def test_traversal_stays_inside_root(self, cache, cache_dir):
        cache.set("../../escape", 1)
        assert (cache_dir / "_escape.json").exists()
        assert not (cache_dir.parent.parent / "escape.json").exists()

    def test_path_is_resolved(self, cache, cache_dir):
        assert cache.path == cache_dir.resolve()

    def test_default_ttl(self, cache_dir):
        assert JsonFileCache(cache_dir).default_ttl == DEFAULT_FILE_TTL


class TestJsonFileCacheExpiry:
    """Test TTL handling against the injected clock."""

    def test_user_session_scenario(self, cache_dir, clock):
        """A five second entry is readable at expiry and gone one second later."""
        cache = JsonFileCache(cache_dir, default_ttl=5, enabled=True, clock=clock)
        cache.set("user:42", {"name": "Ana"})
        start = clock.now

        clock.now = start + 4
        assert cache.get("user:42") == {"name": "Ana"}

        clock.now = start + 5
        assert cache.get("user:42") == {"name": "Ana"}

        clock.now = start + 6
        assert cache.get("user:42") is None
        assert not (cache_dir / "user_42.json").exists()
        assert not cache.is_error()

    def test_explicit_ttl_overrides_default(self, cache, clock):
        cache.set("k", 1, ttl=1000)
        clock.advance(500)
        assert cache.get("k") == 1

    def test_zero_ttl_uses_default(self, cache, clock):
        cache.set("k", 1, ttl=0)
        assert cache.get_entry("k").expires_at == int(clock.now) + 60

    def test_timedelta_ttl(self, cache, clock):
        cache.set("k", 1, ttl=timedelta(minutes=2))
        assert cache.get_entry("k").expires_at == int(clock.now) + 120

    def test_invalid_ttl_is_recorded(self, cache, cache_dir):
        cache.set("k", 1, ttl=-5)
        assert isinstance(cache.last_error, ValueError)
        assert not (cache_dir / "k.json").exists()

    def test_infinite_ttl_is_recorded(self, cache, cache_dir):
        """Test that a non-finite TTL is captured instead of raised."""
        cache.set("k", 1, ttl=float("inf"))
        assert isinstance(cache.last_error, ValueError)
        assert not (cache_dir / "k.json").exists()

        cache.set_default_ttl(float("inf"))
        assert cache.default_ttl == 60
        assert len(cache.errors) == 2

    def test_set_default_ttl(self, cache, clock):
        cache.set_default_ttl(timedelta(hours=1)).set("k", 1)
        assert cache.get_entry("k").expires_at == int(clock.now) + 3600

    def test_set_default_ttl_rejects_bad_value(self, cache):
        cache.set_default_ttl("forever")
        assert cache.default_ttl == 60
        assert isinstance(cache.last_error, TypeError)


class TestJsonFileCacheState:
    """Test enable/disable behavior."""

    def test_starts_disabled(self, cache_dir):
        """Test that a new cache is disabled and touches nothing."""
        cache = JsonFileCache(cache_dir)
        assert not cache.enabled
        assert cache.set("k", 1) is cache
        assert cache.get("k") is None
        assert cache.path is None
        assert not cache_dir.exists()

    def test_enable_creates_root(self, cache_dir):
        cache = JsonFileCache(cache_dir).enable()
        assert cache.enabled
        assert cache_dir.is_dir()

    def test_disabled_operations_are_noops(self, cache, cache_dir):
        cache.set("k", 1)
        cache.disable()
        assert cache.get("k") is None
        cache.delete("k").clear()
        assert (cache_dir / "k.json").exists()

        cache.set_state(True)
        assert cache.get("k") == 1

    def test_enable_fails_when_root_is_a_file(self, tmp_path):
        """Test that an unusable root leaves the cache disabled."""
        occupied = tmp_path / "occupied"
        occupied.write_text("x")
        cache = JsonFileCache(occupied).enable()
        assert not cache.enabled
        assert isinstance(cache.last_error, DirectoryError)
        assert cache.get("k") is None


class TestJsonFileCacheDeleteAndClear:
    """Test removal operations."""

    def test_delete_is_idempotent(self, cache):
        cache.set("k", 1)
        cache.delete("k").delete("k")
        assert cache.get("k") is None
        assert not cache.is_error()

    def test_clear_removes_every_file(self, cache, cache_dir):
        cache.set("a", 1).set("b", 2)
        (cache_dir / ".stray").write_text("x")
        (cache_dir / "sub").mkdir()

        cache.clear()
        assert cache.keys() == []
        assert not (cache_dir / ".stray").exists()
        assert (cache_dir / "sub").is_dir()

    def test_keys_and_entries(self, cache):
        cache.set("b", 2).set("a", [1, 2, 3])
        assert cache.keys() == ["a", "b"]
        entries = cache.entries()
        assert [e["key"] for e in entries] == ["a", "b"]
        assert entries[0]["size_bytes"] > 0
        assert "modified" in entries[0]

    def test_stats(self, cache):
        cache.set("a", 1)
        stats = cache.stats()
        assert stats["backend"] == "json"
        assert stats["entries"] == 1
        assert stats["default_ttl"] == 60
        assert stats["errors"] == 0


class TestJsonFileCacheFailures:
    """Test error capture for corrupt entries and bad values."""

    def test_corrupt_file_is_recorded_and_removed(self, cache, cache_dir):
        (cache_dir / "k.json").write_bytes(b"{not json")
        assert cache.get("k") is None
        assert isinstance(cache.last_error, ReadError)
        assert cache.last_error.__cause__ is not None
        assert not (cache_dir / "k.json").exists()

    def test_empty_file_is_recorded_and_removed(self, cache, cache_dir):
        (cache_dir / "k.json").write_bytes(b"")
        assert cache.get("k") is None
        assert isinstance(cache.last_error, ReadError)
        assert not (cache_dir / "k.json").exists()

    def test_invalid_envelope_is_evicted_silently(self, cache, cache_dir):
        """Test that decodable but invalid files are removed without an error."""
        (cache_dir / "k.json").write_bytes(b'{"value": 1}')
        assert cache.get("k") is None
        assert not cache.is_error()
        assert not (cache_dir / "k.json").exists()

    def test_encode_error_keeps_previous_entry(self, cache):
        cache.set("k", "previous")
        cache.set("k", {"lock": threading.Lock()})
        assert isinstance(cache.last_error, EncodeError)
        assert cache.get("k") == "previous"

    def test_observer_receives_errors(self, cache_dir):
        seen = []
        cache = JsonFileCache(cache_dir, enabled=True, on_error=seen.append)
        cache.set("k", object())
        assert len(seen) == 1
        assert isinstance(seen[0], EncodeError)

    def test_debug_replaces_observer(self, cache):
        seen = []
        cache.debug(seen.append).set("k", object())
        cache.debug().set("k", object())
        assert len(seen) == 1
        assert len(cache.errors) == 2

    def test_failing_observer_does_not_escape(self, cache):
        def explode(error):
            raise RuntimeError("observer broke")

        cache.debug(explode).set("k", object())
        assert isinstance(cache.last_error, EncodeError)

    def test_clear_errors(self, cache):
        cache.set("k", object())
        assert cache.is_error()
        cache.clear_errors()
        assert not cache.is_error()
        assert cache.last_error is None


class TestSerializedEnvelope:
    """Test the envelope cache with a native object codec."""

    def test_python_values(self, cache_dir, clock):
        cache = JsonFileCache(cache_dir, codec=SerializeCodec(), enabled=True, clock=clock)
        value = {"point": (1, 2), "tags": {"a", "b"}}
        cache.set("k", value)
        assert cache.get("k") == value
        assert (cache_dir / "k.joblib").exists()

    def test_custom_extension(self, cache_dir):
        cache = JsonFileCache(cache_dir, extension=".cache", enabled=True)
        cache.set("k", 1)
        assert (cache_dir / "k.cache").exists()
        assert cache.keys() == ["k"]
