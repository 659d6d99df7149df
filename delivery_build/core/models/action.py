"""
Action and Receipt models — the execution contract.

An Action is a Build Task resolved for one run: argv, environment
overrides and working directory are fixed. A Receipt is what came
back. The engine sends Actions, adapters return Receipts. Never
exceptions.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class Action(BaseModel):
    """A resolved Build Task, ready to dispatch to an adapter."""

    id: str                         # "<operation_id>:<task>"
    task: str = ""                  # build task name (clean, build, ...)
    adapter: str                    # which adapter handles this
    params: dict[str, Any] = Field(default_factory=dict)
    env: dict[str, str] = Field(default_factory=dict)
    path: str | None = None         # sub-directory relative to the repo

    @property
    def display_command(self) -> str:
        """Human-readable command line for reports."""
        argv = self.params.get("argv")
        if argv:
            return " ".join(str(a) for a in argv)
        if self.params.get("operation") == "config":
            scope = self.params.get("scope", "local")
            return (
                f"git config --{scope} {self.params.get('key', '')} "
                f"{self.params.get('value', '')!r}"
            )
        return self.task or self.id


class Receipt(BaseModel):
    """Result of an adapter execution.

    Receipts capture the full outcome of an action. The adapter
    NEVER raises exceptions — failures are captured here.
    """

    adapter: str
    action_id: str
    status: Literal["ok", "skipped", "failed"] = "ok"

    # construction time until the registry stamps the execute() span
    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    output: str = ""
    error: str | None = None

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Whether the action succeeded."""
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        """Whether the action failed."""
        return self.status == "failed"

    @property
    def return_code(self) -> int | None:
        """Exit status of the child process, when one was spawned."""
        return self.metadata.get("return_code")

    @classmethod
    def success(
        cls,
        adapter: str,
        action_id: str,
        output: str = "",
        **kwargs: Any,
    ) -> Receipt:
        """Create a success receipt."""
        return cls(
            adapter=adapter,
            action_id=action_id,
            status="ok",
            output=output,
            **kwargs,
        )

    @classmethod
    def failure(
        cls,
        adapter: str,
        action_id: str,
        error: str,
        **kwargs: Any,
    ) -> Receipt:
        """Create a failure receipt."""
        return cls(
            adapter=adapter,
            action_id=action_id,
            status="failed",
            error=error,
            **kwargs,
        )

    @classmethod
    def skip(
        cls,
        adapter: str,
        action_id: str,
        reason: str = "",
        **kwargs: Any,
    ) -> Receipt:
        """Create a skip receipt."""
        return cls(
            adapter=adapter,
            action_id=action_id,
            status="skipped",
            output=reason,
            **kwargs,
        )
