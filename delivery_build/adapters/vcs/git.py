"""
Git adapter — commit identity configuration.

Writes ``user.email`` / ``user.name`` so commits made during the build
succeed. Uses the git CLI — never raw API calls.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import time

from delivery_build.adapters.base import Adapter, ExecutionContext
from delivery_build.adapters.shell.command import build_env
from delivery_build.core.models.action import Receipt

logger = logging.getLogger(__name__)

VALID_SCOPES = ("local", "global")


class GitCommandError(RuntimeError):
    """A git invocation exited non-zero."""

    return_code: int | None = None


class GitAdapter(Adapter):
    """Git configuration writes.

    Action params:
        operation (str): Only 'config' is supported.
        key (str): Config key (e.g. 'user.email').
        value (str): Value to write.
        scope (str): 'local' (repository) or 'global' (host user).
    """

    @property
    def name(self) -> str:
        return "git"

    def is_available(self, context: ExecutionContext) -> bool:
        return shutil.which("git", path=build_env(context.env).get("PATH")) is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        params = context.action.params
        operation = params.get("operation", "")
        if operation != "config":
            return False, f"Unknown operation '{operation}'. Valid: config"

        if not params.get("key"):
            return False, "Missing required param: 'key'"
        if "value" not in params:
            return False, "Missing required param: 'value'"

        scope = params.get("scope", "local")
        if scope not in VALID_SCOPES:
            return False, f"Invalid scope '{scope}'. Valid: {', '.join(VALID_SCOPES)}"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        params = context.action.params
        args = ["config", f"--{params.get('scope', 'local')}", params["key"], str(params["value"])]
        start = time.monotonic()

        try:
            output = self._git(args, context)
        except subprocess.TimeoutExpired:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Command timed out after {context.timeout}s",
                metadata={"command": "git " + " ".join(args)},
            )
        except (OSError, RuntimeError) as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Git error: {e}",
                metadata={
                    "command": "git " + " ".join(args),
                    "return_code": getattr(e, "return_code", None),
                },
            )

        return Receipt.success(
            adapter=self.name,
            action_id=context.action.id,
            output=output.strip(),
            duration_ms=int((time.monotonic() - start) * 1000),
            metadata={
                "command": "git " + " ".join(args),
                "return_code": 0,
                "key": params["key"],
                "scope": params.get("scope", "local"),
            },
        )

    # ── Helpers ─────────────────────────────────────────────────

    def _git(self, args: list[str], context: ExecutionContext) -> str:
        """Run a git command and return stdout."""
        env = build_env(context.env)
        git = shutil.which("git", path=env.get("PATH")) or "git"
        logger.debug("Executing: git %s (cwd=%s)", " ".join(args), context.working_dir)
        result = subprocess.run(
            [git, *args],
            cwd=context.working_dir,
            env=env,
            capture_output=True,
            text=True,
            timeout=context.timeout,
        )
        if result.returncode != 0:
            err = GitCommandError(result.stderr.strip() or f"git {args[0]} failed")
            err.return_code = result.returncode
            raise err
        return result.stdout
