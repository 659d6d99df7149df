"""
Mock adapter — universal test double for all adapter operations.

Used in mock mode to simulate a build without spawning cargo, git or
make. Configurable to fail specific actions; records every context it
receives so ordering, env and cwd can be asserted.
"""

from __future__ import annotations

from delivery_build.adapters.base import Adapter, ExecutionContext
from delivery_build.core.models.action import Receipt


class MockAdapter(Adapter):
    """Universal mock adapter for testing.

    By default, returns success for everything. Can be configured
    to fail per action ID or per task name.
    """

    def __init__(
        self,
        adapter_name: str = "mock",
        available: bool = True,
        default_output: str = "[mock] executed",
    ):
        self._name = adapter_name
        self._available = available
        self._default_output = default_output
        self._responses: dict[str, Receipt] = {}
        self._call_log: list[ExecutionContext] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_log(self) -> list[ExecutionContext]:
        """All execution contexts this mock has received."""
        return self._call_log

    @property
    def executed_tasks(self) -> list[str]:
        """Task names in execution order."""
        return [ctx.action.task for ctx in self._call_log]

    def is_available(self, context: ExecutionContext) -> bool:
        return self._available

    def set_failure(self, key: str, error: str = "Mock failure", return_code: int = 1) -> None:
        """Configure an action ID or task name to fail."""
        self._responses[key] = Receipt.failure(
            adapter=self._name,
            action_id=key,
            error=error,
            metadata={"return_code": return_code},
        )

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        self._call_log.append(context)

        action = context.action
        for key in (action.id, action.task):
            if key and key in self._responses:
                return self._responses[key].model_copy(update={"action_id": action.id})

        return Receipt.success(
            adapter=self._name,
            action_id=action.id,
            output=self._default_output,
            metadata={"mock": True, "return_code": 0},
        )
