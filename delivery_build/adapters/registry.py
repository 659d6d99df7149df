"""
Adapter registry — dispatch from Actions to the tools that run them.

Every task of a pipeline goes through ``execute_action``: the registry
picks the adapter named by the action (or the mock in mock mode),
validates, honours dry run, executes and stamps the receipt with the
wall-clock span of the call. The engine never talks to adapters
directly.
"""

from __future__ import annotations

import logging
import time
from datetime import UTC, datetime
from typing import Any

from delivery_build.adapters.base import Adapter, ExecutionContext
from delivery_build.core.models.action import Action, Receipt

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class AdapterRegistry:
    """Adapters by name, plus mock mode.

    In mock mode without a mock adapter every action succeeds with a
    ``[mock]`` receipt; with one, the mock adapter receives every action
    regardless of the adapter it names.
    """

    def __init__(self, mock_mode: bool = False, mock_adapter: Adapter | None = None):
        self._adapters: dict[str, Adapter] = {}
        self._mock_mode = mock_mode or mock_adapter is not None
        self._mock_adapter = mock_adapter

    def register(self, adapter: Adapter) -> None:
        """Register an adapter under its name."""
        if adapter.name in self._adapters:
            logger.warning("Overwriting existing adapter: %s", adapter.name)
        self._adapters[adapter.name] = adapter
        logger.debug("Registered adapter: %s", adapter.name)

    def tool_status(self, actions: list[Action], repo_path: str = ".") -> dict[str, dict[str, Any]]:
        """Whether the program behind each action can be found.

        Keyed by program (``cargo``, ``git``, ...); each entry lists the
        tasks that need it.
        """
        status: dict[str, dict[str, Any]] = {}
        for action in actions:
            adapter = self._adapters.get(action.adapter)
            program = adapter.program(action) if adapter else action.adapter

            if program in status:
                if action.task not in status[program]["tasks"]:
                    status[program]["tasks"].append(action.task)
                continue

            available = False
            if adapter is not None:
                context = ExecutionContext(action=action, repo_path=repo_path)
                try:
                    available = adapter.is_available(context)
                except Exception as e:
                    logger.debug("Availability check for %s raised: %s", program, e)

            status[program] = {
                "program": program,
                "adapter": action.adapter,
                "available": available,
                "tasks": [action.task],
            }
        return status

    def execute_action(
        self,
        action: Action,
        repo_path: str = ".",
        dry_run: bool = False,
        timeout: int | None = None,
    ) -> Receipt:
        """Run one action and return its Receipt. Never raises.

        Args:
            action: The action to execute.
            repo_path: Repository checkout the action runs in.
            dry_run: If True, validate but don't execute.
            timeout: Optional per-action timeout in seconds.
        """
        context = ExecutionContext(
            action=action,
            repo_path=repo_path,
            dry_run=dry_run,
            timeout=timeout,
        )

        if self._mock_mode and self._mock_adapter is None:
            if dry_run:
                return Receipt.skip(
                    adapter=action.adapter,
                    action_id=action.id,
                    reason=f"[dry-run] Would execute: {action.display_command}",
                    metadata={"mock": True, "dry_run": True, "cwd": context.working_dir},
                )
            return Receipt.success(
                adapter=action.adapter,
                action_id=action.id,
                output=f"[mock] {action.display_command}",
                metadata={"mock": True, "cwd": context.working_dir},
            )

        adapter = self._mock_adapter if self._mock_mode else self._adapters.get(action.adapter)
        if adapter is None:
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"No adapter registered for '{action.adapter}'",
            )

        try:
            is_valid, error_msg = adapter.validate(context)
        except Exception as e:
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"Validation error: {e}",
            )
        if not is_valid:
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"Validation failed: {error_msg}",
            )

        if dry_run:
            return Receipt.skip(
                adapter=action.adapter,
                action_id=action.id,
                reason=f"[dry-run] Would execute: {action.display_command}",
                metadata={"dry_run": True, "cwd": context.working_dir},
            )

        started_at = _now_iso()
        start = time.monotonic()
        try:
            receipt = adapter.execute(context)
        except Exception as e:
            logger.error("Adapter %s raised during execution: %s", action.adapter, e)
            receipt = Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"Unexpected error: {e}",
            )

        receipt.duration_ms = int((time.monotonic() - start) * 1000)
        receipt.started_at = started_at
        receipt.ended_at = _now_iso()
        return receipt


def default_registry(mock_mode: bool = False) -> AdapterRegistry:
    """Registry with the shell and git adapters registered."""
    from delivery_build.adapters.shell.command import ShellCommandAdapter
    from delivery_build.adapters.vcs.git import GitAdapter

    registry = AdapterRegistry(mock_mode=mock_mode)
    registry.register(ShellCommandAdapter())
    registry.register(GitAdapter())
    return registry
