"""
Build Task model — one externally-invoked step of a pipeline.

Tasks are declared statically (see ``core.engine.pipelines``) and
resolved into Actions at plan time. The ``only_on`` predicate is the
only thing that decides whether a task runs on a given platform.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from delivery_build.core.models.platform import PlatformProfile

Applicability = Literal["any", "windows", "posix"]


class BuildTask(BaseModel):
    """A declared step: program, arguments, env overrides, predicate.

    Attributes:
        name:             Stable task identifier (``clean``, ``build``, ...).
        adapter:          Adapter that executes it (``shell`` or ``git``).
        command:          argv list for shell tasks.
        params:           Extra adapter params (git ``operation``/``key``/...).
        env:              Overrides applied on top of the inherited env.
        only_on:          Platform family this task applies to.
        parallelism_hint: Whether the reduced-parallelism variable applies.
        path:             Sub-directory relative to the repo (None = root).
        description:      Shown by ``plan``.
    """

    name: str
    adapter: str = "shell"
    command: list[str] = Field(default_factory=list)
    params: dict[str, Any] = Field(default_factory=dict)
    env: dict[str, str] = Field(default_factory=dict)
    only_on: Applicability = "any"
    parallelism_hint: bool = False
    path: str | None = None
    description: str = ""

    def applies_to(self, profile: PlatformProfile) -> bool:
        """Evaluate the applicability predicate for a platform."""
        if self.only_on == "any":
            return True
        return self.only_on == profile.family
