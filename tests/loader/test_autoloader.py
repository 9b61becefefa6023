"""Tests for scoped loaders."""

import pytest

from autoload.loader.autoloader import Autoloader
from autoload.loader.exceptions import ConfigurationError
from autoload.loader.registry import LoadRegistry


class TypeOwner:
    pass


class ProviderOwner:
    pass


def test_absolute_prefix_fails_before_any_io(tmp_path, monkeypatch):
    registry = LoadRegistry()

    def no_io(*args, **kwargs):  # pragma: no cover - must not be reached
        raise AssertionError("filesystem accessed")

    monkeypatch.setattr(registry.search_path, "directories", no_io)
    with pytest.raises(ConfigurationError, match="cannot be fully qualified"):
        Autoloader(TypeOwner, str(tmp_path / "types"), registry=registry)
    assert registry.get_autoloader(TypeOwner) is None


def test_unknown_option_fails(registry):
    with pytest.raises(ConfigurationError, match="objwarn is not a valid option"):
        Autoloader(TypeOwner, "types", registry=registry, objwarn=True)


def test_invalid_option_value_fails(registry):
    with pytest.raises(ConfigurationError):
        Autoloader(TypeOwner, "types", registry=registry, wrap="sometimes")


def test_wrap_defaults_to_true(registry):
    assert Autoloader(TypeOwner, "types", registry=registry).wrap is True
    assert Autoloader(TypeOwner, "types", registry=registry, wrap=False).wrap is False


def test_registers_under_owner(registry):
    loader = Autoloader(TypeOwner, "types", registry=registry)
    assert registry[TypeOwner] is loader
    assert registry.get_autoloader(TypeOwner) is loader

    replacement = Autoloader(TypeOwner, "types2", registry=registry)
    assert registry[TypeOwner] is replacement


def test_defaults_to_process_registry():
    loader = Autoloader(TypeOwner, "types")
    assert loader.registry is LoadRegistry.get_instance()
    assert LoadRegistry.get_instance()[TypeOwner] is loader


def test_load_is_prefixed_global_load(registry, executor, dir_a, make_unit):
    path = make_unit(dir_a, "types/file")
    loader = Autoloader(TypeOwner, "types", registry=registry, wrap=False)

    assert loader.load("file") is True
    assert executor.calls == [(str(path), False)]
    assert loader.is_loaded("file")
    assert registry.is_loaded("types/file")
    assert loader.has_changed("file") is False
    assert loader.load("missing") is False


def test_load_all_and_files_to_load(registry, executor, dir_a, dir_b, make_unit):
    make_unit(dir_a, "providers/apt")
    make_unit(dir_b, "providers/yum")
    make_unit(dir_b, "types/file")
    loader = Autoloader(ProviderOwner, "providers", registry=registry)

    assert loader.files_to_load() == ["providers/apt.py", "providers/yum.py"]
    assert loader.load_all() == ["providers/apt", "providers/yum"]
    assert loader.load_all() == []
    assert not registry.is_loaded("types/file")


def test_same_file_through_two_scopes_is_one_record(registry, dir_a, make_unit):
    make_unit(dir_a, "host/type/file")
    outer = Autoloader(TypeOwner, "host", registry=registry)
    inner = Autoloader(ProviderOwner, "host/type", registry=registry)

    outer.load("type/file")
    assert inner.is_loaded("file")
    assert registry.list_loaded() == [("host/type/file", str(dir_a / "host" / "type" / "file.py"))]


def test_absolute_name_through_loader_is_rejected(registry, dir_a, make_unit):
    path = make_unit(dir_a, "types/file")
    loader = Autoloader(TypeOwner, "types", registry=registry)
    with pytest.raises(ConfigurationError):
        loader.load(str(path))
