"""
CLI commands for the Omnibus package descriptor.

Thin wrappers over ``delivery_build.core.use_cases.package``.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click


@click.group()
def package() -> None:
    """Package — inspect and render the Omnibus project."""


@package.command()
@click.argument("repo", type=click.Path(file_okay=False), default=".")
@click.option(
    "--platform",
    type=click.Choice(["auto", "posix", "windows"]),
    default="auto",
    help="Platform to resolve the install dir for.",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def describe(ctx: click.Context, repo: str, platform: str, as_json: bool) -> None:
    """Show install dir, build version, dependencies and upgrade code."""
    from delivery_build.core.use_cases.package import describe as describe_package

    result = describe_package(Path(repo), platform=platform, config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        if result.error:
            sys.exit(1)
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    info = result.description
    click.secho(f"\n📦 {info['name']}", fg="cyan", bold=True)
    click.echo(f"   Platform:        {info['platform']}")
    click.echo(f"   Install dir:     {info['install_dir']}")
    click.echo(f"   Build version:   {info['build_version']}")
    click.echo(f"   Build iteration: {info['build_iteration']}")
    click.echo(f"   MSI upgrade:     {info['msi_upgrade_code']}")
    if info["dependencies"]:
        click.echo(f"   Dependencies:    {', '.join(info['dependencies'])}")
    if info["excludes"]:
        click.echo(f"   Excludes:        {', '.join(info['excludes'])}")
    for software, version in info["overrides"].items():
        click.echo(f"   Override:        {software} {version}")
    click.echo()


@package.command()
@click.argument("repo", type=click.Path(file_okay=False), default=".")
@click.option("--stdout", "to_stdout", is_flag=True, help="Print instead of writing the file.")
@click.pass_context
def render(ctx: click.Context, repo: str, to_stdout: bool) -> None:
    """Write config/projects/<name>.rb into the Omnibus project dir."""
    from delivery_build.core.use_cases.package import render as render_project

    result = render_project(Path(repo), config_path=ctx.obj.get("config_path"), write=not to_stdout)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    if to_stdout:
        click.echo(result.content, nl=False)
        return

    click.secho(f"✅ Wrote {result.written_to}", fg="green")
