"""
Manifold CLI commands for manifest validation, inspection and deployment.

Usage:
    manifold validate
    manifold inspect --json report.json
    manifold run api --runner myapp.runners:GraphQLRunner
"""

from typing import Any, Optional, Tuple
from pathlib import Path
import asyncio
import importlib
import json
import logging

import click

from . import __version__
from .config import ConfigError, ManifoldSettings
from .core import Manifold
from .errors import ManifoldError
from .types import to_list
from .verifier import DependencyVerifier


def import_object(path: str) -> Any:
    """
    Import ``module.path:attr`` (or ``module.path.attr``).

    Classes and other callables without ``on_load`` are called with no
    arguments so runner classes can be given directly.
    """
    if ":" in path:
        module_path, attr = path.split(":", 1)
    else:
        module_path, _, attr = path.rpartition(".")
    if not module_path or not attr:
        raise click.BadParameter(f"Expected 'module.path:attr', got {path!r}")

    module = importlib.import_module(module_path)
    obj = getattr(module, attr)
    if isinstance(obj, type) or (callable(obj) and not hasattr(obj, "on_load")):
        obj = obj()
    return obj


def _fail(error: Exception) -> None:
    click.secho(str(error), fg="red", err=True)
    raise SystemExit(1)


def _build(ctx: click.Context) -> Manifold:
    try:
        return Manifold.from_settings(ctx.obj["settings"])
    except ManifoldError as e:
        _fail(e)


@click.group()
@click.version_option(version=__version__, prog_name="manifold")
@click.option("--modules", "modules_path", type=click.Path(), help="Module root directory")
@click.option("--manifest", "manifest_path", type=click.Path(), help="Deployment manifest")
@click.option("--config", "config_file", type=click.Path(), help="Settings file (YAML/JSON)")
@click.option("--env-file", type=click.Path(), help="Load MANIFOLD_* settings from .env file")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.pass_context
def cli(ctx, modules_path, manifest_path, config_file, env_file, verbose: bool):
    """Resolve deployment manifests and run module deployments."""
    try:
        settings = ManifoldSettings.load(
            path=config_file,
            env_file=env_file,
            overrides={"modules_path": modules_path, "manifest_path": manifest_path},
        )
    except ConfigError as e:
        _fail(e)

    level = logging.DEBUG if verbose else getattr(logging, settings.log_level.upper(), logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings
    ctx.obj["verbose"] = verbose


@cli.command("validate")
@click.pass_context
def validate(ctx):
    """Check every module dependency against the whole manifest."""
    manifold = _build(ctx)

    report = DependencyVerifier(manifold.registry).check(manifold.config)
    if report.has_errors():
        click.secho("Validation failed!", fg="red", bold=True)
        click.echo(report.format_report())
        raise SystemExit(1)

    click.secho("Validation passed!", fg="green", bold=True)
    click.echo(f"   Modules: {len(manifold.registry)}")
    click.echo(f"   Deployments: {len(manifold.config.deployment)}")


@cli.command("inspect")
@click.option("--json", "json_path", type=click.Path(), help="Write diagnostics as JSON")
@click.pass_context
def inspect_cmd(ctx, json_path: Optional[str]):
    """Show modules, deployments and aggregated commands."""
    manifold = _build(ctx)
    diagnostics = manifold.inspect()

    click.secho("Modules:", fg="cyan", bold=True)
    for module in diagnostics["modules"]:
        deps = ", ".join(
            f"{d['name']}({', '.join(to_list(d['of']))})" for d in module["dependencies"]
        )
        click.echo(f"   {module['name']} v{module['version']}  {module['path']}")
        if deps:
            click.echo(f"      depends on: {deps}")

    click.secho("\nDeployments:", fg="cyan", bold=True)
    for entry in diagnostics["deployments"]:
        click.echo(f"   {entry['name']} [{entry['type']}]")

    click.secho("\nLoaded commands:", fg="cyan", bold=True)
    for name, commands in diagnostics["loaded_commands"].items():
        click.echo(f"   {name}: {', '.join(commands)}")

    if json_path:
        Path(json_path).write_text(json.dumps(diagnostics, indent=2))
        click.echo(f"\nDiagnostics exported to: {json_path}")


@cli.command("run")
@click.argument("name")
@click.option("--runner", "runner_paths", multiple=True, required=True,
              help="Runner import path (module.path:attr), repeatable")
@click.option("--verify/--no-verify", default=None, help="Run the dependency check first")
@click.option("--strict", is_flag=True, help="Fail if NAME is not in the manifest")
@click.pass_context
def run(ctx, name: str, runner_paths: Tuple[str, ...], verify: Optional[bool], strict: bool):
    """Execute deployment NAME with the given runners."""
    settings = ctx.obj["settings"]
    if strict:
        settings.strict = True
    manifold = _build(ctx)

    for path in runner_paths:
        try:
            manifold.add_runner(import_object(path))
        except (ImportError, AttributeError, TypeError) as e:
            _fail(e)

    try:
        entry = asyncio.run(
            manifold.run(name, verify=settings.verify if verify is None else verify)
        )
    except ManifoldError as e:
        _fail(e)

    if entry is None:
        click.secho(f"No deployment named '{name}'.", fg="yellow")
    else:
        click.secho(f"Deployment '{entry.name}' finished.", fg="green")


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
