"""Tests for the autoload CLI."""

import pytest
import yaml
from click.testing import CliRunner

from autoload.loader.cli import cli
from autoload.loader.registry import LoadRegistry


@pytest.fixture
def site(tmp_path, make_unit):
    """A modulepath with one module and a settings file pointing at it."""
    modules = tmp_path / "modules"
    lib = modules / "clitest" / "lib"
    make_unit(lib, "clitypes/alpha", "VALUE = 1\n")
    make_unit(lib, "clitypes/beta", "VALUE = 2\n")
    make_unit(lib, "clitypes/broken", "raise RuntimeError('broken on purpose')\n")
    settings_file = tmp_path / "settings.yaml"
    settings_file.write_text(yaml.dump({"MODULEPATH": [str(modules)]}))
    return lib, settings_file


def test_version():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output


def test_resolve(site):
    lib, settings_file = site
    result = CliRunner().invoke(cli, ["--settings", str(settings_file), "resolve", "clitypes/alpha"])
    assert result.exit_code == 0
    assert result.output.strip() == str(lib / "clitypes" / "alpha.py")


def test_resolve_missing(site):
    _, settings_file = site
    result = CliRunner().invoke(cli, ["--settings", str(settings_file), "resolve", "clitypes/nope"])
    assert result.exit_code == 1


def test_path_lists_module_lib_first(site):
    lib, settings_file = site
    result = CliRunner().invoke(cli, ["--settings", str(settings_file), "path"])
    assert result.exit_code == 0
    lines = [line for line in result.output.splitlines() if str(lib) in line]
    assert lines and lines[0].lstrip("| ").startswith("1")


def test_files(site):
    _, settings_file = site
    result = CliRunner().invoke(cli, ["--settings", str(settings_file), "files", "clitypes"])
    assert result.exit_code == 0
    assert result.output.splitlines() == [
        "clitypes/alpha.py",
        "clitypes/beta.py",
        "clitypes/broken.py",
    ]


def test_load_prints_loaded_table(site):
    _, settings_file = site
    result = CliRunner().invoke(
        cli, ["--settings", str(settings_file), "load", "clitypes/alpha", "clitypes/nope"]
    )
    assert result.exit_code == 0
    assert "clitypes/alpha" in result.output
    assert "clitypes/nope not found" in result.output
    assert LoadRegistry.get_instance().is_loaded("clitypes/alpha")


def test_load_all_reports_failure(site):
    _, settings_file = site
    result = CliRunner().invoke(cli, ["--settings", str(settings_file), "load-all", "clitypes"])
    assert result.exit_code == 1
    assert "Could not autoload clitypes/broken" in result.output
    registry = LoadRegistry.get_instance()
    assert registry.is_loaded("clitypes/alpha")
    assert registry.is_loaded("clitypes/beta")
    assert not registry.is_loaded("clitypes/broken")


def test_load_nothing_found(site):
    _, settings_file = site
    result = CliRunner().invoke(cli, ["--settings", str(settings_file), "load", "clitypes/nope"])
    assert result.exit_code == 0
    assert "clitypes/nope not found" in result.output
    assert "Nothing loaded." in result.output


def test_no_list_command(site):
    _, settings_file = site
    result = CliRunner().invoke(cli, ["--settings", str(settings_file), "list"])
    assert result.exit_code == 2
    assert "No such command" in result.output


def test_settings_lists_known_keys(site):
    _, settings_file = site
    result = CliRunner().invoke(cli, ["--settings", str(settings_file), "settings"])
    assert result.exit_code == 0
    assert "MODULEPATH" in result.output
    assert "LIBDIR" in result.output
