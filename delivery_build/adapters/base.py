"""
Adapter base — the protocol contract between engine and tools.

This defines the abstract interface that every adapter must implement.
The engine only talks to adapters through this protocol, never
directly to cargo, git or make.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import BaseModel

from delivery_build.core.models.action import Action, Receipt


class ExecutionContext(BaseModel):
    """Everything an adapter needs to execute an action.

    The action to perform, the repository checkout it runs in, and
    per-run knobs (dry run, timeout).
    """

    action: Action
    repo_path: str = "."
    dry_run: bool = False
    timeout: int | None = None

    @property
    def working_dir(self) -> str:
        """Resolved working directory for the action."""
        if self.action.path:
            return str(Path(self.repo_path) / self.action.path)
        return self.repo_path

    @property
    def env(self) -> dict[str, str]:
        """Environment overrides for the child process."""
        return self.action.env


class Adapter(ABC):
    """Abstract base class for all adapters.

    Adapters perform external side effects and return receipts.
    They NEVER raise exceptions — failures are captured in the Receipt.

    To create a new adapter:
        1. Subclass Adapter
        2. Implement name, is_available, validate, execute
        3. Register it in the AdapterRegistry
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The adapter identifier (e.g., 'shell', 'git')."""

    @abstractmethod
    def is_available(self, context: ExecutionContext) -> bool:
        """Whether the program behind this action can be found.

        Looked up on the PATH the action would run with. Should be fast
        and never raise.
        """

    def program(self, action: Action) -> str:
        """Executable behind an action, for availability reports."""
        argv = action.params.get("argv")
        return str(argv[0]) if argv else self.name

    @abstractmethod
    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        """Validate that the action can be executed.

        Returns:
            (is_valid, error_message). error_message is empty if valid.
        """

    @abstractmethod
    def execute(self, context: ExecutionContext) -> Receipt:
        """Execute the action and return a receipt.

        MUST never raise exceptions. All failures are captured
        in the Receipt with status='failed'.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
