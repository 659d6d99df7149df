"""
Omnibus project generator — render the package descriptor as the
Ruby project definition Omnibus reads from ``config/projects/<name>.rb``.

The install-dir branch and the build-version timestamp are emitted as
Ruby so they are evaluated on the packaging host, exactly as a
hand-written project file would.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from delivery_build.core.models.package import PackageDescriptor
from delivery_build.core.models.platform import PlatformFamily

logger = logging.getLogger(__name__)


def _q(value: str) -> str:
    """Ruby double-quoted string literal."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("#{", "\\#{")
    return f'"{escaped}"'


def render_omnibus_project(descriptor: PackageDescriptor) -> str:
    """Render the Omnibus project definition for a descriptor."""
    lines = [
        f"name {_q(descriptor.name)}",
        f"maintainer {_q(descriptor.maintainer)}",
        f"homepage {_q(descriptor.homepage)}",
        "",
        "# Defaults to C:/chef/<name> on Windows",
        "# and /opt/<name> on all other platforms",
        "if windows?",
        '  install_dir "#{default_root}/chef/#{name}"',
        "else",
        '  install_dir "#{default_root}/#{name}"',
        "end",
        "",
        'build_version Time.now.utc.strftime("%Y%m%d%H%M%S")',
        f"build_iteration {int(descriptor.build_iteration)}",
    ]

    if descriptor.overrides:
        lines.append("")
        for software, version in descriptor.overrides.items():
            lines.append(f"override :{_q(software)}, version: {_q(version)}")

    if descriptor.dependencies:
        lines.append("")
        for dep in descriptor.dependencies:
            lines.append(f"dependency {_q(dep)}")

    if descriptor.excludes:
        lines.append("")
        for pattern in descriptor.excludes:
            lines.append(f"exclude {_q(pattern)}")

    if descriptor.msi_upgrade_code:
        lines += [
            "",
            "package :msi do",
            f"  upgrade_code {_q(descriptor.msi_upgrade_code)}",
            "end",
        ]

    return "\n".join(lines) + "\n"


def project_file_path(descriptor: PackageDescriptor, repo_path: Path) -> Path:
    """Where Omnibus expects the project definition."""
    return repo_path / descriptor.project_dir / "config" / "projects" / f"{descriptor.name}.rb"


def write_omnibus_project(descriptor: PackageDescriptor, repo_path: Path) -> Path:
    """Write the rendered project definition into the repository.

    Returns:
        Path of the written file.
    """
    path = project_file_path(descriptor, repo_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_omnibus_project(descriptor), encoding="utf-8")
    logger.info("Wrote Omnibus project %s", path)
    return path


def describe_package(
    descriptor: PackageDescriptor,
    family: PlatformFamily,
    now: datetime | None = None,
) -> dict:
    """Resolved packaging values for one platform."""
    return {
        "name": descriptor.name,
        "maintainer": descriptor.maintainer,
        "homepage": descriptor.homepage,
        "platform": family,
        "install_dir": descriptor.install_dir(family),
        "build_version": descriptor.build_version(now),
        "build_iteration": descriptor.build_iteration,
        "overrides": dict(descriptor.overrides),
        "dependencies": list(descriptor.dependencies),
        "excludes": list(descriptor.excludes),
        "msi_upgrade_code": descriptor.msi_upgrade_code,
    }
