"""
Config check use case — validate delivery-build.yml and report issues.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from pathlib import Path

from delivery_build.adapters.registry import AdapterRegistry, default_registry
from delivery_build.core.config.loader import ConfigError, find_config_file, load_settings
from delivery_build.core.engine.executor import build_plan
from delivery_build.core.engine.pipelines import PIPELINES, get_pipeline
from delivery_build.core.models.platform import dedupe_path, resolve_profile
from delivery_build.core.models.settings import BuildSettings


@dataclass
class ConfigCheckResult:
    """Result of configuration validation."""

    valid: bool = False
    settings: BuildSettings | None = None
    config_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    tools: dict[str, dict] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "config_path": str(self.config_path) if self.config_path else None,
            "errors": self.errors,
            "warnings": self.warnings,
            "tools": self.tools,
            "settings": self.settings.model_dump(mode="json") if self.settings else None,
        }


def check_config(
    config_path: Path | None = None,
    start_dir: Path | None = None,
    registry: AdapterRegistry | None = None,
) -> ConfigCheckResult:
    """Validate build configuration and report issues.

    Args:
        config_path: Optional explicit path to delivery-build.yml.
        start_dir: Where to start the upward search (default: cwd).
        registry: Adapters used to look up cargo, git, make and omnibus
            on this host (default: the real shell and git adapters).

    Returns:
        ConfigCheckResult with validation status and any issues.
    """
    result = ConfigCheckResult()

    if config_path is None:
        config_path = find_config_file(start_dir)
    result.config_path = config_path

    if config_path is None:
        result.warnings.append("No delivery-build.yml found; built-in defaults apply.")

    try:
        settings = load_settings(config_path)
        result.settings = settings
    except ConfigError as e:
        result.errors.append(str(e))
        return result

    # Semantic checks
    identity = settings.identity
    if identity.scope != "none":
        if not identity.email:
            result.errors.append("identity.email is empty.")
        if not identity.name:
            result.errors.append("identity.name is empty.")
    if identity.scope == "global":
        result.warnings.append(
            "identity.scope is 'global': the build host's user-wide git config is modified."
        )

    if not settings.tool_version:
        result.warnings.append(
            "tool_version not set; the reduced-parallelism variable will be applied."
        )

    windows = settings.windows
    entries = [p for p in windows.path if p.strip()]
    dupes = len(entries) - len(dedupe_path(entries))
    if dupes:
        result.warnings.append(
            f"windows.path has {dupes} duplicate entr{'y' if dupes == 1 else 'ies'}; "
            "they are dropped."
        )
    if "PATH" in windows.env:
        result.warnings.append("windows.env.PATH is ignored when windows.path is set.")

    package = settings.package
    if package.msi_upgrade_code:
        try:
            uuid.UUID(package.msi_upgrade_code)
        except ValueError:
            result.errors.append(
                f"package.msi_upgrade_code is not a GUID: {package.msi_upgrade_code}"
            )

    result.tools = _tool_status(settings, registry or default_registry(), start_dir or Path.cwd())
    for program, info in result.tools.items():
        if not info["available"]:
            result.warnings.append(
                f"{program} not found on PATH (needed by: {', '.join(info['tasks'])})."
            )

    result.valid = len(result.errors) == 0
    return result


def _tool_status(settings: BuildSettings, registry: AdapterRegistry, repo_path: Path) -> dict[str, dict]:
    """Availability of every program the pipelines invoke on this host."""
    profile = resolve_profile("auto", settings.windows)
    actions = []
    for name in PIPELINES:
        plan = build_plan(name, get_pipeline(name, settings), profile, settings, "config-check")
        actions.extend(plan.actions)
    return registry.tool_status(actions, repo_path=str(repo_path))
