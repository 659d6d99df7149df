"""
Run use case — build, test or package a repository checkout.

This is the top-level orchestrator: it loads settings, resolves the
platform profile, plans the pipeline, executes it fail-fast, and
records the outcome in the audit ledger.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from delivery_build.adapters.registry import AdapterRegistry, default_registry
from delivery_build.core.config.loader import ConfigError, load_settings_for
from delivery_build.core.engine.executor import (
    ExecutionPlan,
    ExecutionReport,
    build_plan,
    execute_plan,
    generate_operation_id,
    write_audit_entry,
)
from delivery_build.core.engine.pipelines import DEFAULT_PIPELINE, get_pipeline
from delivery_build.core.models.platform import PlatformProfile, detect_family, resolve_profile
from delivery_build.core.models.settings import BuildSettings
from delivery_build.core.persistence.audit import AuditWriter

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Result of running a pipeline."""

    report: ExecutionReport | None = None
    plan: ExecutionPlan | None = None
    repo_path: Path | None = None
    config_path: Path | None = None
    settings: BuildSettings | None = None
    profile: PlatformProfile | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.report is not None and self.report.all_ok

    def to_dict(self) -> dict:
        result: dict = {}
        if self.error:
            result["error"] = self.error
            return result

        result["ok"] = self.ok
        result["repo_path"] = str(self.repo_path)
        result["config_path"] = str(self.config_path) if self.config_path else None
        if self.plan:
            result["excluded"] = list(self.plan.excluded)
        if self.report:
            result["report"] = self.report.to_dict()

        return result


def prepare(
    repo_path: Path,
    platform: str | PlatformProfile = "auto",
    pipeline: str = DEFAULT_PIPELINE,
    config_path: Path | None = None,
    tool_version: str | None = None,
    settings: BuildSettings | None = None,
) -> RunResult:
    """Load settings and plan a pipeline without executing anything."""
    result = RunResult(repo_path=repo_path.resolve())

    if not repo_path.is_dir():
        result.error = f"Repository path does not exist: {repo_path}"
        return result

    if settings is None:
        try:
            settings, result.config_path = load_settings_for(result.repo_path, config_path)
        except ConfigError as e:
            result.error = str(e)
            return result

    if tool_version is not None:
        settings = settings.model_copy(update={"tool_version": tool_version})

    try:
        if isinstance(platform, PlatformProfile):
            profile = platform
        else:
            profile = resolve_profile(platform, settings.windows)
        tasks = get_pipeline(pipeline, settings)
    except (ValueError, KeyError) as e:
        result.error = str(e.args[0]) if e.args else str(e)
        return result

    result.plan = build_plan(
        pipeline,
        tasks,
        profile,
        settings,
        generate_operation_id(),
    )
    result.settings = settings
    result.profile = profile
    return result


def run(
    repo_path: Path,
    platform: str | PlatformProfile = "auto",
    pipeline: str = DEFAULT_PIPELINE,
    config_path: Path | None = None,
    tool_version: str | None = None,
    settings: BuildSettings | None = None,
    dry_run: bool = False,
    mock_mode: bool = False,
    registry: AdapterRegistry | None = None,
    audit: bool = True,
) -> RunResult:
    """Run a pipeline in a repository checkout.

    Args:
        repo_path: Repository checkout; every task runs here.
        platform: ``auto``, ``windows``, ``posix`` or a PlatformProfile.
        pipeline: Pipeline name (``unit``, ``syntax``, ``package``).
        config_path: Optional explicit delivery-build.yml.
        tool_version: Orchestration-tool version; overrides the config.
        settings: Pre-built settings; skips config loading.
        dry_run: If True, plan and validate but don't execute.
        mock_mode: If True, use mock adapter responses.
        registry: Optional pre-configured adapter registry.
        audit: Append the outcome to ``<repo>/.state/audit.ndjson``.

    Returns:
        RunResult; ``ok`` only if every executed task succeeded.
    """
    result = prepare(
        repo_path,
        platform=platform,
        pipeline=pipeline,
        config_path=config_path,
        tool_version=tool_version,
        settings=settings,
    )
    if result.error:
        return result

    plan = result.plan
    assert plan is not None and result.repo_path is not None
    assert result.settings is not None and result.profile is not None
    effective = result.settings

    if registry is None:
        # the Windows PATH is ";"-joined and names C: paths
        if result.profile.is_windows and detect_family() != "windows" and not (dry_run or mock_mode):
            result.error = (
                "Cannot execute a windows build on a non-Windows host; "
                "use plan, --dry-run or --mock to inspect it"
            )
            return result
        registry = default_registry(mock_mode=mock_mode)

    logger.info(
        "Running %s on %s (%d tasks) in %s",
        plan.pipeline,
        plan.platform,
        plan.total_actions,
        result.repo_path,
    )

    report = execute_plan(
        plan=plan,
        registry=registry,
        repo_path=str(result.repo_path),
        dry_run=dry_run,
        timeout=effective.timeout,
    )
    result.report = report

    if audit and not dry_run:
        writer = AuditWriter(repo_path=result.repo_path)
        write_audit_entry(report, writer, repo_path=str(result.repo_path))

    return result
