"""
Domain models — Pydantic types for the build orchestrator.

All models are re-exported here for convenient access:

    from delivery_build.core.models import BuildTask, Action, Receipt, BuildSettings
"""

from delivery_build.core.models.action import Action, Receipt
from delivery_build.core.models.package import PackageDescriptor
from delivery_build.core.models.platform import (
    PlatformProfile,
    WindowsSettings,
    posix_profile,
    resolve_profile,
    windows_profile,
)
from delivery_build.core.models.settings import (
    BuildSettings,
    IdentitySettings,
    ParallelismSettings,
)
from delivery_build.core.models.task import BuildTask

__all__ = [
    # action.py
    "Action",
    # settings.py
    "BuildSettings",
    # task.py
    "BuildTask",
    "IdentitySettings",
    # package.py
    "PackageDescriptor",
    "ParallelismSettings",
    # platform.py
    "PlatformProfile",
    "Receipt",
    "WindowsSettings",
    "posix_profile",
    "resolve_profile",
    "windows_profile",
]
