"""
Tests for the Namespace settings container.
"""
import threading

import pytest

from groupconfig import DictSourceResolver, Namespace
from errors import (
    ConfigError, ErrorCode, KeyNotFoundError, ScriptExecutionError,
    UndefinedVariableError
)


def test_set_then_get_returns_value():
    """Test that a stored value is returned unchanged."""
    ns = Namespace("app")
    payload = {"nested": [1, 2, 3]}

    assert ns.set("payload", payload) is payload
    assert ns.get("payload") is payload
    assert ns.payload is payload
    assert ns["payload"] is payload


def test_exists_before_and_after_set():
    """Test that exists() flips to True once a key is set."""
    ns = Namespace("app")

    assert not ns.exists("debug")
    ns.set("debug", False)
    assert ns.exists("debug")
    assert "debug" in ns


def test_last_write_wins():
    """Test that setting a key twice keeps the second value."""
    ns = Namespace("app")
    ns.set("env", "dev")
    ns.set("other", 1)
    ns.set("env", "prod")

    assert ns.env == "prod"
    # Overwriting keeps the original position
    assert ns.keys() == ["env", "other"]


def test_unset_removes_and_returns_value():
    """Test that unset() returns the old value and removes the key."""
    ns = Namespace("app")
    ns.set("token", "abc")

    assert ns.unset("token") == "abc"
    assert not ns.exists("token")


def test_unset_missing_key_raises():
    """Test that unsetting an absent key raises KeyNotFoundError."""
    ns = Namespace("app")

    with pytest.raises(KeyNotFoundError) as exc_info:
        ns.unset("missing")
    assert exc_info.value.code == ErrorCode.KEY_NOT_FOUND
    assert exc_info.value.details == {"key": "missing", "namespace": "app"}
    # Also usable as a plain KeyError
    assert isinstance(exc_info.value, KeyError)


def test_get_undefined_raises():
    """Test that reading a never-set key raises UndefinedVariableError."""
    ns = Namespace("app")

    with pytest.raises(UndefinedVariableError) as exc_info:
        ns.get("port")
    assert exc_info.value.code == ErrorCode.UNDEFINED_VARIABLE
    assert "port" in str(exc_info.value)

    with pytest.raises(UndefinedVariableError):
        ns.port


def test_attribute_fallbacks_still_work():
    """Test that getattr defaults and hasattr treat unknown settings as missing."""
    ns = Namespace("app")
    ns.set("present", 1)

    assert getattr(ns, "absent", "fallback") == "fallback"
    assert hasattr(ns, "present")
    assert not hasattr(ns, "absent")


def test_private_names_are_not_settings():
    """Test that underscore attributes never hit the settings table."""
    ns = Namespace("app")

    with pytest.raises(AttributeError) as exc_info:
        ns._does_not_exist
    assert not isinstance(exc_info.value, UndefinedVariableError)


def test_group_creates_and_reuses_sub_namespace():
    """Test that group() extends an existing sub-namespace."""
    ns = Namespace("app")

    first = ns.group("db", lambda db: db.set("host", "localhost"))
    second = ns.group("db", lambda db: db.set("port", 5432))

    assert first is second
    assert ns.db.host == "localhost"
    assert ns.db.port == 5432
    assert ns.exists("db")
    assert first.path == "app.db"
    assert first.parent is ns


def test_group_without_body():
    """Test that group() without a body just returns the sub-namespace."""
    ns = Namespace("app")
    cache = ns.group("cache")

    assert isinstance(cache, Namespace)
    assert len(cache) == 0
    assert ns.cache is cache


def test_group_over_scalar_raises():
    """Test that a scalar is not silently replaced by a group."""
    ns = Namespace("app")
    ns.set("db", "sqlite://")

    with pytest.raises(ConfigError) as exc_info:
        ns.group("db")
    assert exc_info.value.code == ErrorCode.NAMESPACE_CONFLICT
    assert ns.db == "sqlite://"


def test_group_over_none_value_raises():
    """Test that a key explicitly set to None is still a scalar."""
    ns = Namespace("app")
    ns.set("db", None)

    with pytest.raises(ConfigError):
        ns.group("db")


def test_exists_is_not_recursive():
    """Test that exists() only looks at the immediate namespace."""
    ns = Namespace("app")
    ns.group("db", lambda db: db.set("host", "localhost"))

    assert not ns.exists("host")
    assert not ns.exists("db.host")
    assert ns.db.exists("host")


def test_resolve_dotted_path():
    """Test dotted path resolution through nested groups."""
    ns = Namespace("app")
    ns.group("db", lambda db: db.group("primary", lambda p: p.set("host", "db1")))

    assert ns.resolve("db.primary.host") == "db1"
    assert ns.resolve("db.primary") is ns.db.primary

    with pytest.raises(UndefinedVariableError):
        ns.resolve("db.replica.host")


def test_resolve_through_scalar_raises():
    """Test that resolution cannot step into a scalar value."""
    ns = Namespace("app")
    ns.set("port", 80)

    with pytest.raises(UndefinedVariableError) as exc_info:
        ns.resolve("port.number")
    assert "not a group" in exc_info.value.message


@pytest.mark.parametrize("bad_key", ["", "a.b", 42, None])
def test_invalid_keys_rejected(bad_key):
    """Test that keys must be non-empty strings without dots."""
    ns = Namespace("app")

    with pytest.raises(ConfigError) as exc_info:
        ns.set(bad_key, 1)
    assert exc_info.value.code == ErrorCode.INVALID_CONFIG


def test_as_dict_and_iteration():
    """Test the read-only views of a namespace."""
    ns = Namespace("app")
    ns.set("name", "demo")
    ns.group("db", lambda db: db.set("host", "localhost"))

    assert ns.as_dict() == {"name": "demo", "db": {"host": "localhost"}}
    assert list(ns) == ["name", "db"]
    assert ns.items()[0] == ("name", "demo")
    assert len(ns) == 2
    assert "app" in repr(ns)


def test_method_names_readable_through_get():
    """Test that settings shadowed by methods remain reachable."""
    ns = Namespace("app")
    ns.set("keys", ["k1"])

    assert ns.get("keys") == ["k1"]
    assert ns["keys"] == ["k1"]
    assert callable(ns.keys)


def test_concurrent_group_yields_single_sub_namespace():
    """Test that concurrent first opens of a group agree on one namespace."""
    ns = Namespace("app")
    results = []
    barrier = threading.Barrier(8)

    def worker(index):
        barrier.wait()
        results.append(ns.group("db", lambda db: db.set(f"k{index}", index)))

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len({id(group) for group in results}) == 1
    assert len(ns.db) == 8


def test_groups_share_root_loader():
    """Test that groups created before any load use the root's loader."""
    ns = Namespace("app")
    db = ns.group("db")
    pool = db.group("pool")

    assert db.loader is ns.loader
    assert pool.loader is ns.loader


def test_group_created_early_loads_through_root_loader():
    """Test that a group made before the root's first load uses its resolver."""
    ns = Namespace("app")
    db = ns.group("db")
    ns.loader.resolver = DictSourceResolver({
        "db": 'set("host", "db.internal")\nload("db")\n',
    })

    with pytest.raises(ScriptExecutionError) as exc_info:
        db.load("db")

    assert "Recursive load" in exc_info.value.message
    assert ns.resolve("db.host") == "db.internal"
