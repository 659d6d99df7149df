"""
Package descriptor — what the Omnibus packager is told to build.

Holds the identity of the installable package (name, install dir
convention, version stamp, iteration), the components it assembles,
the files it leaves out and the MSI upgrade code.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field

from delivery_build.core.models.platform import PlatformFamily

BUILD_VERSION_FORMAT = "%Y%m%d%H%M%S"

# Omnibus ``default_root`` per platform family
DEFAULT_ROOTS: dict[str, str] = {
    "windows": "C:",
    "posix": "/opt",
}


class PackageDescriptor(BaseModel):
    """Omnibus project definition for the installable package."""

    name: str = Field(default="delivery-cli", min_length=1)
    maintainer: str = "Chef Software, Inc."
    homepage: str = "http://chef.io"
    build_iteration: int = Field(default=1, ge=1)

    # software name -> pinned version
    overrides: dict[str, str] = Field(
        default_factory=lambda: {
            "ruby-windows": "2.1.6",
            "openssl-windows": "1.0.1m",
        }
    )
    dependencies: list[str] = Field(
        default_factory=lambda: ["preparation", "delivery-cli", "version-manifest"]
    )
    excludes: list[str] = Field(
        default_factory=lambda: ["**/.git", "**/bundler/git"]
    )
    msi_upgrade_code: str = "178C5A9A-3923-4A65-AECB-3851224D0FDD"

    # Omnibus project location (relative to the repo) and build command
    project_dir: str = "omnibus-delivery-cli"
    build_command: list[str] = Field(default_factory=list)

    def install_dir(self, family: PlatformFamily) -> str:
        """Install directory: ``C:/chef/<name>`` or ``/opt/<name>``."""
        root = DEFAULT_ROOTS[family]
        if family == "windows":
            return f"{root}/chef/{self.name}"
        return f"{root}/{self.name}"

    def resolved_build_command(self) -> list[str]:
        return list(self.build_command) or ["omnibus", "build", self.name]

    @staticmethod
    def build_version(now: datetime | None = None) -> str:
        """Current UTC time as a sortable version stamp."""
        now = now or datetime.now(UTC)
        if now.tzinfo is not None:
            now = now.astimezone(UTC)
        return now.strftime(BUILD_VERSION_FORMAT)
