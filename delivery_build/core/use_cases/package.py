"""
Package use case — inspect and render the Omnibus package descriptor.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from delivery_build.core.config.loader import ConfigError, load_settings_for
from delivery_build.core.models.platform import PlatformFamily, detect_family
from delivery_build.core.services.omnibus_project import (
    describe_package,
    render_omnibus_project,
    write_omnibus_project,
)


@dataclass
class PackageResult:
    """Resolved descriptor values and/or the rendered project file."""

    description: dict = field(default_factory=dict)
    content: str = ""
    written_to: Path | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        result: dict = {"package": self.description}
        if self.written_to:
            result["written_to"] = str(self.written_to)
        return result


def describe(
    repo_path: Path,
    platform: str = "auto",
    config_path: Path | None = None,
    now: datetime | None = None,
) -> PackageResult:
    """Resolve install dir, build version and the rest for a platform."""
    result = PackageResult()
    try:
        settings, _ = load_settings_for(repo_path.resolve(), config_path)
    except ConfigError as e:
        result.error = str(e)
        return result

    family: PlatformFamily
    if platform == "auto":
        family = detect_family()
    elif platform in ("windows", "posix"):
        family = platform  # type: ignore[assignment]
    else:
        result.error = f"Unknown platform '{platform}'. Valid: auto, posix, windows"
        return result

    result.description = describe_package(settings.package, family, now)
    result.content = render_omnibus_project(settings.package)
    return result


def render(
    repo_path: Path,
    config_path: Path | None = None,
    write: bool = True,
) -> PackageResult:
    """Render the Omnibus project file, writing it into the repo."""
    result = PackageResult()
    repo_path = repo_path.resolve()
    try:
        settings, _ = load_settings_for(repo_path, config_path)
    except ConfigError as e:
        result.error = str(e)
        return result

    result.content = render_omnibus_project(settings.package)
    if write:
        try:
            result.written_to = write_omnibus_project(settings.package, repo_path)
        except OSError as e:
            result.error = f"Cannot write Omnibus project: {e}"
    return result
