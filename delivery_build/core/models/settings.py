"""
Build settings — the contents of ``delivery-build.yml``.

Every field has a default, so a repository without a config file
builds exactly the way the delivery-cli build hosts always have.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from delivery_build.core.models.package import PackageDescriptor
from delivery_build.core.models.platform import WindowsSettings

IdentityScope = Literal["local", "global", "none"]


class IdentitySettings(BaseModel):
    """Commit identity written before the build.

    ``local`` writes repository-scoped config, ``global`` writes the
    host-wide config, ``none`` skips the write (ephemeral containers).
    """

    email: str = "delivery@chef.com"
    name: str = "Delivery"
    scope: IdentityScope = "local"


class ParallelismSettings(BaseModel):
    """Reduced test parallelism for cargo."""

    variable: str = Field(default="RUST_TEST_TASKS", min_length=1)
    value: str = "1"
    legacy_major: str = "12"

    def applies(self, tool_version: str) -> bool:
        """Whether the hint is set for a given orchestration-tool version.

        Only the legacy major version opts out; an unknown (empty)
        version gets the hint.
        """
        major = tool_version.strip().split(".", 1)[0]
        return major != self.legacy_major

    def env_for(self, tool_version: str) -> dict[str, str]:
        if self.applies(tool_version):
            return {self.variable: self.value}
        return {}


class BuildSettings(BaseModel):
    """Top-level orchestrator configuration."""

    tool_version: str = ""
    timeout: int | None = Field(default=None, gt=0)   # seconds per task; None = wait forever
    identity: IdentitySettings = Field(default_factory=IdentitySettings)
    parallelism: ParallelismSettings = Field(default_factory=ParallelismSettings)
    windows: WindowsSettings = Field(default_factory=WindowsSettings)
    package: PackageDescriptor = Field(default_factory=PackageDescriptor)
