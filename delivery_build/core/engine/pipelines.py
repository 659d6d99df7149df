"""
Pipelines — the declared task lists.

Each pipeline is a plain ordered list of BuildTasks. Platform
branching lives in each task's ``only_on`` predicate; environment
differences live in the PlatformProfile. Nothing here inspects the
host.

    unit     clean → identity → build → test* → cucumber*   (* POSIX only)
    syntax   clean → identity → build
    package  omnibus build <name>
"""

from __future__ import annotations

from collections.abc import Callable

from delivery_build.core.models.settings import BuildSettings
from delivery_build.core.models.task import BuildTask

DEFAULT_PIPELINE = "unit"


def _clean() -> BuildTask:
    return BuildTask(
        name="clean",
        command=["cargo", "clean"],
        description="Remove previous build artifacts",
    )


def _identity(settings: BuildSettings) -> list[BuildTask]:
    identity = settings.identity
    if identity.scope == "none":
        return []
    return [
        BuildTask(
            name="git-email",
            adapter="git",
            params={
                "operation": "config",
                "key": "user.email",
                "value": identity.email,
                "scope": identity.scope,
            },
            description="Set commit email",
        ),
        BuildTask(
            name="git-name",
            adapter="git",
            params={
                "operation": "config",
                "key": "user.name",
                "value": identity.name,
                "scope": identity.scope,
            },
            description="Set commit author name",
        ),
    ]


def _build() -> BuildTask:
    return BuildTask(
        name="build",
        command=["cargo", "build"],
        parallelism_hint=True,
        description="Compile (tests are folded in on Windows)",
    )


def unit_pipeline(settings: BuildSettings) -> list[BuildTask]:
    """Build and test, with behavioral tests on POSIX hosts."""
    return [
        _clean(),
        *_identity(settings),
        _build(),
        BuildTask(
            name="test",
            command=["cargo", "test"],
            only_on="posix",
            parallelism_hint=True,
            description="Run unit tests",
        ),
        BuildTask(
            name="cucumber",
            command=["make", "cucumber"],
            only_on="posix",
            description="Cucumber behavioral tests",
        ),
    ]


def syntax_pipeline(settings: BuildSettings) -> list[BuildTask]:
    """Compile only."""
    return [_clean(), *_identity(settings), _build()]


def package_pipeline(settings: BuildSettings) -> list[BuildTask]:
    """Run the Omnibus packager in its project directory."""
    package = settings.package
    return [
        BuildTask(
            name="omnibus-build",
            command=package.resolved_build_command(),
            path=package.project_dir,
            description=f"Package {package.name}",
        ),
    ]


PIPELINES: dict[str, Callable[[BuildSettings], list[BuildTask]]] = {
    "unit": unit_pipeline,
    "syntax": syntax_pipeline,
    "package": package_pipeline,
}


def get_pipeline(name: str, settings: BuildSettings) -> list[BuildTask]:
    """Look up a pipeline by name and build its tasks.

    Raises:
        KeyError: On an unknown pipeline name.
    """
    try:
        factory = PIPELINES[name]
    except KeyError:
        raise KeyError(
            f"Unknown pipeline '{name}'. Valid: {', '.join(sorted(PIPELINES))}"
        ) from None
    return factory(settings)
