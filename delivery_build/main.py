"""
delivery-build — CLI entrypoint.

Usage:
    python -m delivery_build.main --help
    python -m delivery_build.main run /path/to/delivery-cli
    python -m delivery_build.main plan --platform windows
    python -m delivery_build.main config check
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from delivery_build import __version__
from delivery_build.core.observability.logging_config import configure_from_cli

PIPELINE_CHOICES = click.Choice(["unit", "syntax", "package"])
PLATFORM_CHOICES = click.Choice(["auto", "posix", "windows"])


@click.group()
@click.version_option(version=__version__, prog_name="delivery-build")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to delivery-build.yml (default: search upward from the repo).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """delivery-build — build, test and package delivery-cli."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    configure_from_cli(debug=debug, verbose=verbose, quiet=quiet)


def _echo_output_tail(text: str, limit: int) -> None:
    lines = [line for line in text.splitlines() if line.strip()]
    for line in lines[-limit:]:
        click.echo(f"     │ {line}")


@cli.command()
@click.argument("repo", type=click.Path(file_okay=False), default=".")
@click.option("--pipeline", "-p", type=PIPELINE_CHOICES, default="unit", help="Pipeline to run.")
@click.option(
    "--platform",
    type=PLATFORM_CHOICES,
    default="auto",
    help="Target platform. windows executes only on a Windows host; elsewhere use --dry-run or --mock.",
)
@click.option("--tool-version", default=None, help="Orchestration-tool version (e.g. 12.4.1).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--dry-run", is_flag=True, help="Plan and validate but don't execute.")
@click.option("--mock", is_flag=True, help="Use mock adapter (no real execution).")
@click.option("--no-audit", is_flag=True, help="Don't append to .state/audit.ndjson.")
@click.pass_context
def run(
    ctx: click.Context,
    repo: str,
    pipeline: str,
    platform: str,
    tool_version: str | None,
    as_json: bool,
    dry_run: bool,
    mock: bool,
    no_audit: bool,
) -> None:
    """Run a pipeline in a repository checkout.

    Examples:

        delivery-build run ~/src/delivery-cli

        delivery-build run --pipeline syntax --platform windows --dry-run

        delivery-build run --tool-version 12.4.1
    """
    from delivery_build.core.use_cases.run import run as run_pipeline

    result = run_pipeline(
        Path(repo),
        platform=platform,
        pipeline=pipeline,
        config_path=ctx.obj.get("config_path"),
        tool_version=tool_version,
        dry_run=dry_run,
        mock_mode=mock,
        audit=not no_audit,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        if not result.ok:
            sys.exit(1)
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    report = result.report
    plan = result.plan
    assert report is not None and plan is not None

    mode_label = "[dry-run] " if dry_run else "[mock] " if mock else ""
    click.secho(
        f"\n⚡ {mode_label}{report.pipeline} — {report.platform}",
        fg="cyan",
        bold=True,
    )
    click.echo(f"   Repo: {result.repo_path}")
    click.echo(f"   Tasks: {plan.total_actions}")
    click.echo()

    for action, receipt in zip(plan.actions, report.receipts):
        timing = f" ({receipt.duration_ms}ms)" if receipt.duration_ms else ""
        if receipt.ok:
            click.secho(f"   ✓ {action.task}", fg="green", nl=False)
            click.echo(timing)
            if ctx.obj.get("verbose") and receipt.output:
                _echo_output_tail(receipt.output, 10)
        elif receipt.failed:
            click.secho(f"   ✗ {action.task}", fg="red", nl=False)
            click.echo(timing)
            click.echo(f"     $ {action.display_command}")
            if receipt.return_code is not None:
                click.echo(f"     exit status {receipt.return_code}")
            if receipt.error:
                _echo_output_tail(receipt.error, 20)
            stdout = receipt.metadata.get("stdout")
            if stdout:
                _echo_output_tail(stdout, 10)
        else:
            click.secho(f"   ⊘ {action.task} ", fg="yellow", nl=False)
            click.echo(f"({receipt.output})")

    for name in report.not_run:
        click.secho(f"   · {name} (not run)", fg="white", dim=True)

    click.echo()
    if report.all_ok:
        click.secho(
            f"   Result: {report.succeeded + report.skipped}/{plan.total_actions} ok",
            fg="green",
            bold=True,
        )
        click.echo()
        return

    click.secho(f"   Result: failed at '{report.failed_task}'", fg="red", bold=True)
    click.echo()
    sys.exit(1)


@cli.command()
@click.argument("repo", type=click.Path(file_okay=False), default=".")
@click.option("--pipeline", "-p", type=PIPELINE_CHOICES, default="unit", help="Pipeline to plan.")
@click.option("--platform", type=PLATFORM_CHOICES, default="auto", help="Target platform.")
@click.option("--tool-version", default=None, help="Orchestration-tool version (e.g. 12.4.1).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def plan(
    ctx: click.Context,
    repo: str,
    pipeline: str,
    platform: str,
    tool_version: str | None,
    as_json: bool,
) -> None:
    """Show the tasks a pipeline would run, with their environment."""
    from delivery_build.core.use_cases.run import prepare

    result = prepare(
        Path(repo),
        platform=platform,
        pipeline=pipeline,
        config_path=ctx.obj.get("config_path"),
        tool_version=tool_version,
    )

    if as_json:
        if result.error:
            click.echo(json.dumps({"error": result.error}, indent=2))
            sys.exit(1)
        assert result.plan is not None
        click.echo(json.dumps(result.plan.to_dict(), indent=2))
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    execution_plan = result.plan
    assert execution_plan is not None

    click.secho(
        f"\n📋 {execution_plan.pipeline} — {execution_plan.platform}",
        fg="cyan",
        bold=True,
    )
    click.echo(f"   Repo: {result.repo_path}")
    click.echo()

    for index, action in enumerate(execution_plan.actions, start=1):
        click.secho(f"   {index}. {action.task}", fg="white", bold=True, nl=False)
        click.echo(f"  $ {action.display_command}")
        for key, value in action.env.items():
            if key == "PATH" and not ctx.obj.get("verbose"):
                value = f"<{len(value.split(';'))} entries>"
            click.echo(f"        {key}={value}")

    if execution_plan.excluded:
        click.echo()
        click.secho(
            f"   Not on {execution_plan.platform}: {', '.join(execution_plan.excluded)}",
            fg="yellow",
        )

    click.echo()


@cli.group()
def config() -> None:
    """Build configuration commands."""


@config.command("check")
@click.argument("repo", type=click.Path(file_okay=False), default=".")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_check(ctx: click.Context, repo: str, as_json: bool) -> None:
    """Validate delivery-build.yml."""
    from delivery_build.core.use_cases.config_check import check_config

    result = check_config(config_path=ctx.obj.get("config_path"), start_dir=Path(repo))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)

    if result.valid:
        assert result.settings is not None
        settings = result.settings
        click.secho("✅ Configuration is valid", fg="green", bold=True)
        source = result.config_path or "built-in defaults"
        click.echo(f"   Source: {source}")
        click.echo(f"   Identity: {settings.identity.name} <{settings.identity.email}> ({settings.identity.scope})")
        click.echo(f"   Tool version: {settings.tool_version or '(unset)'}")
        click.echo(f"   Package: {settings.package.name}")
        for program, info in result.tools.items():
            mark = click.style("✓", fg="green") if info["available"] else click.style("✗", fg="yellow")
            click.echo(f"   {mark} {program}")
    else:
        click.secho("❌ Configuration errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    if not result.valid:
        click.echo()
        sys.exit(1)

    click.echo()


# ── Register sub-command groups from delivery_build/ui/cli/ ───────

from delivery_build.ui.cli.audit import audit  # noqa: E402
from delivery_build.ui.cli.package import package  # noqa: E402

cli.add_command(audit)
cli.add_command(package)


if __name__ == "__main__":
    cli()
