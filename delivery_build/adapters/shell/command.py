"""
Shell command adapter — run a program with env overrides in the repo.

Runs ``cargo``, ``make`` and ``omnibus`` invocations. The argv list is
passed straight to the OS (no shell), the inherited environment is
copied and the action's overrides are layered on top.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time
from pathlib import Path

from delivery_build.adapters.base import Adapter, ExecutionContext
from delivery_build.core.models.action import Receipt

logger = logging.getLogger(__name__)

# Keep receipts small; the tail is where cargo reports the failure
_OUTPUT_TAIL = 4000


def build_env(overrides: dict[str, str]) -> dict[str, str]:
    """Inherited process environment with overrides applied.

    Override values go through ``os.path.expandvars`` so entries such
    as ``${USERPROFILE}`` pick up the host's value.
    """
    env = os.environ.copy()
    for key, value in overrides.items():
        env[key] = os.path.expandvars(value)
    return env


def _tail(text: str) -> str:
    text = text.strip()
    if len(text) > _OUTPUT_TAIL:
        return text[-_OUTPUT_TAIL:]
    return text


class ShellCommandAdapter(Adapter):
    """Execute a program and capture its output.

    Action params:
        argv (list[str]): Program and arguments.
    """

    @property
    def name(self) -> str:
        return "shell"

    def is_available(self, context: ExecutionContext) -> bool:
        argv = context.action.params.get("argv") or []
        if not argv:
            return False
        return shutil.which(argv[0], path=build_env(context.env).get("PATH")) is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        argv = context.action.params.get("argv") or []
        if not argv:
            return False, "Missing required param: 'argv'"

        cwd = context.working_dir
        if not Path(cwd).is_dir():
            return False, f"Working directory does not exist: {cwd}"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        argv = [str(a) for a in context.action.params["argv"]]
        cwd = context.working_dir
        timeout = context.timeout
        command = " ".join(argv)

        env = build_env(context.env)
        program = shutil.which(argv[0], path=env.get("PATH"))
        if program is None:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Program not found: {argv[0]}",
                metadata={"command": command, "cwd": cwd},
            )

        logger.debug("Executing: %s (cwd=%s)", command, cwd)
        start = time.monotonic()

        try:
            result = subprocess.run(
                [program, *argv[1:]],
                cwd=cwd,
                env=env,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Command timed out after {timeout}s",
                metadata={"command": command, "cwd": cwd, "timeout": timeout},
            )
        except OSError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Command execution error: {e}",
                metadata={"command": command, "cwd": cwd},
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        stdout = _tail(result.stdout or "")
        stderr = _tail(result.stderr or "")

        if result.returncode == 0:
            return Receipt.success(
                adapter=self.name,
                action_id=context.action.id,
                output=stdout,
                duration_ms=elapsed_ms,
                metadata={
                    "command": command,
                    "cwd": cwd,
                    "return_code": 0,
                    "stderr": stderr,
                },
            )

        return Receipt.failure(
            adapter=self.name,
            action_id=context.action.id,
            error=stderr or f"Command exited with code {result.returncode}",
            duration_ms=elapsed_ms,
            metadata={
                "command": command,
                "cwd": cwd,
                "return_code": result.returncode,
                "stdout": stdout,
            },
        )
