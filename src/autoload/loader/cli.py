# CLI Implementation
import sys

import click
import yaml
from tabulate import tabulate

from autoload.config.configuration import get_settings_registry
from autoload.config.environment import Environment
from autoload.loader.exceptions import AutoloadError
from autoload.loader.registry import LoadRegistry


def _print_loaded(registry: LoadRegistry) -> None:
    loaded = registry.list_loaded()
    if not loaded:
        click.echo("Nothing loaded.")
        return
    click.echo(tabulate(loaded, headers=["Name", "File"], tablefmt="grid"))


@click.group()
@click.version_option(version="0.1.0")
@click.option(
    "--settings",
    "settings_file",
    type=click.Path(exists=True, dir_okay=False),
    help="Read settings from this YAML file instead of the user settings file.",
)
@click.option("--env", "env", default=None, help="Environment whose modulepath is searched.")
@click.pass_context
def cli(ctx, settings_file, env):
    """
    Autoload CLI.

    Inspect how logical names resolve on the search path and load them.
    """
    if settings_file:
        with open(settings_file, "r") as f:
            Environment.initialize(settings=yaml.safe_load(f) or {})
    else:
        Environment.initialize()
    ctx.obj = {"env": env, "registry": LoadRegistry.get_instance()}


@cli.command("resolve")
@click.argument("name")
@click.pass_obj
def resolve(obj, name):
    """Show the file NAME resolves to."""
    path = obj["registry"].search_path.resolve(name, obj["env"])
    if path is None:
        click.echo(f"{name} not found on the search path", err=True)
        sys.exit(1)
    click.echo(path)


@cli.command("path")
@click.pass_obj
def search_path(obj):
    """List the search path directories in priority order."""
    directories = obj["registry"].search_path.directories(obj["env"])
    table = [[i + 1, d] for i, d in enumerate(directories)]
    click.echo(tabulate(table, headers=["#", "Directory"], tablefmt="grid"))


@cli.command("files")
@click.argument("prefix")
@click.pass_obj
def files(obj, prefix):
    """List files that load-all would consider under PREFIX."""
    try:
        found = obj["registry"].files_under(prefix, obj["env"])
    except AutoloadError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    for file in found:
        click.echo(file)


@cli.command("load")
@click.argument("names", nargs=-1, required=True)
@click.option("--no-wrap", is_flag=True, help="Register loaded files in sys.modules")
@click.pass_obj
def load(obj, names, no_wrap):
    """Load one or more names."""
    registry = obj["registry"]
    missing = []
    try:
        for name in names:
            if not registry.load(name, obj["env"], wrap=not no_wrap):
                missing.append(name)
    except AutoloadError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    for name in missing:
        click.echo(f"{name} not found on the search path", err=True)
    _print_loaded(registry)


@cli.command("load-all")
@click.argument("prefix")
@click.option("--no-wrap", is_flag=True, help="Register loaded files in sys.modules")
@click.pass_obj
def load_all(obj, prefix, no_wrap):
    """Load every file under PREFIX."""
    registry = obj["registry"]
    try:
        registry.load_all(prefix, obj["env"], wrap=not no_wrap)
    except AutoloadError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    _print_loaded(registry)


@cli.command("settings")
def settings():
    """List the settings the loader understands."""
    table = [
        [s.env_var, s.group, s.description, ", ".join(s.enum or [])]
        for s in get_settings_registry()
    ]
    click.echo(
        tabulate(
            table,
            headers=["Setting", "Group", "Description", "Values"],
            tablefmt="grid",
            maxcolwidths=[None, None, 60, None],
        )
    )


if __name__ == "__main__":
    cli()
