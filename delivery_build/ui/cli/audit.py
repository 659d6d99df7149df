"""
CLI commands for the run ledger in ``<repo>/.state/audit.ndjson``.

Usage::

    delivery-build audit recent
    delivery-build audit recent ~/src/delivery-cli -n 5 --json
"""

from __future__ import annotations

import json
from pathlib import Path

import click


@click.group()
def audit() -> None:
    """Audit — past runs recorded in the repository."""


@audit.command()
@click.argument("repo", type=click.Path(file_okay=False), default=".")
@click.option("-n", "--limit", default=10, show_default=True, help="Number of runs to show.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def recent(repo: str, limit: int, as_json: bool) -> None:
    """Show the most recent runs, oldest first."""
    from delivery_build.core.persistence.audit import AuditWriter

    writer = AuditWriter(repo_path=Path(repo).resolve())
    entries = writer.read_recent(limit)

    if as_json:
        click.echo(json.dumps([e.model_dump(mode="json") for e in entries], indent=2))
        return

    if not entries:
        click.echo(f"No runs recorded in {writer.path}")
        return

    click.secho(f"\n📜 Last {len(entries)} run(s)", fg="cyan", bold=True)
    for entry in entries:
        ok = entry.status == "ok"
        mark = click.style("✓" if ok else "✗", fg="green" if ok else "red")
        line = (
            f"   {mark} {entry.timestamp[:19]}  {entry.pipeline:<8} {entry.platform:<8} "
            f"{entry.tasks_succeeded}/{entry.tasks_total}"
        )
        if entry.failed_task:
            line += f"  failed at '{entry.failed_task}'"
        click.echo(line)
    click.echo()
