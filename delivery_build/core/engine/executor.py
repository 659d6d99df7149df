"""
Engine executor — the central orchestration loop.

Takes a pipeline, resolves it against a platform profile into
Actions, executes them one at a time through the adapter registry and
stops at the first failure.

Flow:
    pipeline → filter by platform → resolve env → execute (fail-fast) → audit
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime

from delivery_build.adapters.registry import AdapterRegistry
from delivery_build.core.models.action import Action, Receipt
from delivery_build.core.models.platform import PlatformProfile
from delivery_build.core.models.settings import BuildSettings
from delivery_build.core.models.task import BuildTask
from delivery_build.core.persistence.audit import AuditEntry, AuditWriter

logger = logging.getLogger(__name__)


@dataclass
class ExecutionPlan:
    """The applicable actions of a pipeline, in declared order."""

    operation_id: str = ""
    pipeline: str = ""
    platform: str = ""
    actions: list[Action] = field(default_factory=list)
    excluded: list[str] = field(default_factory=list)

    @property
    def total_actions(self) -> int:
        return len(self.actions)

    @property
    def task_names(self) -> list[str]:
        return [a.task for a in self.actions]

    def to_dict(self) -> dict:
        return {
            "operation_id": self.operation_id,
            "pipeline": self.pipeline,
            "platform": self.platform,
            "actions": [a.model_dump(mode="json") for a in self.actions],
            "excluded": list(self.excluded),
        }


@dataclass
class ExecutionReport:
    """Result of executing a plan."""

    operation_id: str = ""
    pipeline: str = ""
    platform: str = ""
    receipts: list[Receipt] = field(default_factory=list)
    failed_task: str | None = None
    failed_command: str | None = None
    not_run: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.receipts)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.receipts if r.ok)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.receipts if r.failed)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.receipts if r.status == "skipped")

    @property
    def all_ok(self) -> bool:
        return self.failed == 0

    @property
    def status(self) -> str:
        return "ok" if self.all_ok else "failed"

    @property
    def failure(self) -> Receipt | None:
        for receipt in self.receipts:
            if receipt.failed:
                return receipt
        return None

    def to_dict(self) -> dict:
        return {
            "operation_id": self.operation_id,
            "pipeline": self.pipeline,
            "platform": self.platform,
            "status": self.status,
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
            "failed_task": self.failed_task,
            "failed_command": self.failed_command,
            "not_run": list(self.not_run),
            "receipts": [r.model_dump(mode="json") for r in self.receipts],
        }


def resolve_env(
    task: BuildTask,
    profile: PlatformProfile,
    settings: BuildSettings,
) -> dict[str, str]:
    """Environment overrides for one task.

    Layered in order: parallelism hint, platform table, task overrides.
    """
    env: dict[str, str] = {}
    if task.parallelism_hint:
        env.update(settings.parallelism.env_for(settings.tool_version))
    env.update(profile.env)
    env.update(task.env)
    return env


def to_action(
    task: BuildTask,
    profile: PlatformProfile,
    settings: BuildSettings,
    operation_id: str,
) -> Action:
    """Resolve a declared task into a dispatchable Action."""
    params = dict(task.params)
    if task.command:
        params["argv"] = list(task.command)
    if task.description:
        params["_description"] = task.description

    return Action(
        id=f"{operation_id}:{task.name}",
        task=task.name,
        adapter=task.adapter,
        params=params,
        env=resolve_env(task, profile, settings),
        path=task.path,
    )


def build_plan(
    pipeline: str,
    tasks: list[BuildTask],
    profile: PlatformProfile,
    settings: BuildSettings,
    operation_id: str,
) -> ExecutionPlan:
    """Filter tasks by platform and resolve them into Actions.

    Pure: nothing is executed. Tasks whose predicate excludes the
    platform are listed in ``plan.excluded``.
    """
    plan = ExecutionPlan(
        operation_id=operation_id,
        pipeline=pipeline,
        platform=profile.name,
    )

    for task in tasks:
        if not task.applies_to(profile):
            logger.debug("Task '%s' not applicable on %s", task.name, profile.name)
            plan.excluded.append(task.name)
            continue
        plan.actions.append(to_action(task, profile, settings, operation_id))

    return plan


def execute_plan(
    plan: ExecutionPlan,
    registry: AdapterRegistry,
    repo_path: str = ".",
    dry_run: bool = False,
    timeout: int | None = None,
) -> ExecutionReport:
    """Execute actions in order, stopping at the first failure.

    Args:
        plan: The execution plan.
        registry: Adapter registry for dispatch.
        repo_path: Repository checkout every action runs in.
        dry_run: If True, validate but don't execute.
        timeout: Optional per-action timeout in seconds.

    Returns:
        ExecutionReport; ``not_run`` lists tasks after a failure.
    """
    report = ExecutionReport(
        operation_id=plan.operation_id,
        pipeline=plan.pipeline,
        platform=plan.platform,
    )

    for index, action in enumerate(plan.actions):
        logger.info("→ %s: %s", action.task, action.display_command)

        receipt = registry.execute_action(
            action=action,
            repo_path=repo_path,
            dry_run=dry_run,
            timeout=timeout,
        )
        report.receipts.append(receipt)

        status_marker = "✓" if receipt.ok else "✗" if receipt.failed else "⊘"
        logger.info("%s %s → %s", status_marker, action.task, receipt.status)

        if receipt.failed:
            report.failed_task = action.task
            report.failed_command = action.display_command
            report.not_run = [a.task for a in plan.actions[index + 1:]]
            logger.error(
                "Task '%s' failed (exit %s): %s",
                action.task,
                receipt.return_code,
                receipt.error,
            )
            break

    return report


def write_audit_entry(
    report: ExecutionReport,
    audit_writer: AuditWriter,
    repo_path: str = "",
) -> None:
    """Append the run's outcome to the audit ledger."""
    failure = report.failure
    entry = AuditEntry(
        operation_id=report.operation_id,
        pipeline=report.pipeline,
        platform=report.platform,
        repo_path=repo_path,
        status=report.status,
        tasks_total=report.total,
        tasks_succeeded=report.succeeded,
        tasks_failed=report.failed,
        duration_ms=sum(r.duration_ms for r in report.receipts),
        failed_task=report.failed_task,
        errors=[failure.error] if failure and failure.error else [],
    )
    audit_writer.write(entry)


def generate_operation_id() -> str:
    """Generate a unique operation ID."""
    now = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
    short = uuid.uuid4().hex[:6]
    return f"op-{now}-{short}"
