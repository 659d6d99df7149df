"""
Tests for adapter protocol, registry, mock, shell and git adapters.
"""

import shutil
import subprocess
import sys
from datetime import datetime
from pathlib import Path

import pytest

from delivery_build.adapters.base import ExecutionContext
from delivery_build.adapters.mock import MockAdapter
from delivery_build.adapters.registry import AdapterRegistry, default_registry
from delivery_build.adapters.shell.command import ShellCommandAdapter, build_env
from delivery_build.adapters.vcs.git import GitAdapter
from delivery_build.core.models.action import Action


def _shell_action(argv: list[str], env: dict[str, str] | None = None, **kwargs) -> Action:
    return Action(id="op:task", task="task", adapter="shell", params={"argv": argv}, env=env or {}, **kwargs)


# ── Protocol Tests ───────────────────────────────────────────────────


class TestExecutionContext:
    def test_working_dir_is_repo(self):
        ctx = ExecutionContext(action=Action(id="t", adapter="shell"), repo_path="/repo")
        assert ctx.working_dir == "/repo"

    def test_working_dir_with_subdir(self):
        ctx = ExecutionContext(
            action=Action(id="t", adapter="shell", path="omnibus-delivery-cli"),
            repo_path="/repo",
        )
        assert Path(ctx.working_dir) == Path("/repo/omnibus-delivery-cli")

    def test_env_comes_from_action(self):
        ctx = ExecutionContext(action=Action(id="t", adapter="shell", env={"A": "1"}))
        assert ctx.env == {"A": "1"}


# ── Mock Adapter Tests ───────────────────────────────────────────────


class TestMockAdapter:
    def test_default_success(self):
        mock = MockAdapter(adapter_name="test-mock")
        receipt = mock.execute(ExecutionContext(action=Action(id="op-1", adapter="test-mock")))
        assert receipt.ok
        assert len(mock.call_log) == 1

    def test_failure_by_task_name(self):
        mock = MockAdapter()
        mock.set_failure("build", error="cargo exploded", return_code=101)
        ctx = ExecutionContext(action=Action(id="op-1:build", task="build", adapter="shell"))
        receipt = mock.execute(ctx)
        assert receipt.failed
        assert receipt.action_id == "op-1:build"
        assert receipt.return_code == 101

    def test_failure_by_action_id(self):
        mock = MockAdapter()
        mock.set_failure("op-1:clean")
        assert mock.execute(ExecutionContext(action=Action(id="op-1:clean", task="clean", adapter="shell"))).failed
        assert mock.execute(ExecutionContext(action=Action(id="op-2:clean", task="clean", adapter="shell"))).ok

    def test_executed_tasks(self):
        mock = MockAdapter()
        for name in ("clean", "build"):
            mock.execute(ExecutionContext(action=Action(id=f"op:{name}", task=name, adapter="shell")))
        assert mock.executed_tasks == ["clean", "build"]


# ── Registry Tests ──────────────────────────────────────────────────


class TestAdapterRegistry:
    def test_tool_status_groups_tasks_by_program(self):
        registry = AdapterRegistry()
        registry.register(MockAdapter(adapter_name="shell", available=False))
        registry.register(MockAdapter(adapter_name="git", available=True))
        actions = [
            _shell_action(["cargo", "clean"]).model_copy(update={"task": "clean"}),
            _shell_action(["cargo", "build"]).model_copy(update={"task": "build"}),
            _shell_action(["cargo", "build"]).model_copy(update={"task": "build"}),
            Action(id="op:git-email", task="git-email", adapter="git", params={"operation": "config"}),
        ]
        status = registry.tool_status(actions)
        assert set(status) == {"cargo", "git"}
        assert status["cargo"]["available"] is False
        assert status["cargo"]["tasks"] == ["clean", "build"]
        assert status["git"]["available"] is True

    def test_tool_status_unregistered_adapter(self):
        status = AdapterRegistry().tool_status([Action(id="t", task="t", adapter="svn")])
        assert status["svn"]["available"] is False

    def test_tool_status_real_shell(self, repo: Path):
        registry = default_registry()
        status = registry.tool_status(
            [_shell_action([sys.executable, "-V"]), _shell_action(["no-such-program-xyz"])],
            repo_path=str(repo),
        )
        assert status[sys.executable]["available"] is True
        assert status["no-such-program-xyz"]["available"] is False

    def test_mock_mode_default(self):
        registry = AdapterRegistry(mock_mode=True)
        receipt = registry.execute_action(_shell_action(["cargo", "build"]))
        assert receipt.ok
        assert "[mock] cargo build" in receipt.output

    def test_mock_mode_dry_run_skips(self):
        registry = AdapterRegistry(mock_mode=True)
        receipt = registry.execute_action(_shell_action(["cargo", "build"]), dry_run=True)
        assert receipt.status == "skipped"
        assert "[dry-run] Would execute: cargo build" in receipt.output

    def test_mock_adapter_receives_dry_run_as_skip(self, mock_adapter: MockAdapter, mock_registry: AdapterRegistry, repo: Path):
        receipt = mock_registry.execute_action(_shell_action(["cargo", "build"]), repo_path=str(repo), dry_run=True)
        assert receipt.status == "skipped"
        assert mock_adapter.call_log == []

    def test_receipt_spans_execution(self, repo: Path):
        registry = default_registry()
        action = _shell_action([sys.executable, "-c", "import time; time.sleep(0.2)"])
        receipt = registry.execute_action(action, repo_path=str(repo))
        assert receipt.ok
        started = datetime.fromisoformat(receipt.started_at)
        ended = datetime.fromisoformat(receipt.ended_at)
        assert (ended - started).total_seconds() >= 0.2
        assert receipt.duration_ms >= 200

    def test_missing_adapter_fails(self):
        registry = AdapterRegistry()
        receipt = registry.execute_action(Action(id="t", adapter="nonexistent"))
        assert receipt.failed
        assert "No adapter registered" in receipt.error

    def test_dry_run_skips(self, repo: Path):
        registry = default_registry()
        receipt = registry.execute_action(_shell_action(["cargo", "clean"]), repo_path=str(repo), dry_run=True)
        assert receipt.status == "skipped"
        assert "[dry-run]" in receipt.output
        assert "cargo clean" in receipt.output

    def test_validation_failure(self):
        registry = default_registry()
        receipt = registry.execute_action(_shell_action([]))
        assert receipt.failed
        assert "Validation failed" in receipt.error

    def test_adapter_exception_becomes_failure(self):
        class Exploding(MockAdapter):
            def execute(self, context):
                raise RuntimeError("kaboom")

        registry = AdapterRegistry()
        registry.register(Exploding(adapter_name="x"))
        receipt = registry.execute_action(Action(id="t", adapter="x"))
        assert receipt.failed
        assert "kaboom" in receipt.error


# ── Shell Command Adapter Tests ─────────────────────────────────────


class TestBuildEnv:
    def test_overrides_on_top_of_inherited(self, monkeypatch):
        monkeypatch.setenv("INHERITED_VAR", "kept")
        env = build_env({"RUST_TEST_TASKS": "1"})
        assert env["INHERITED_VAR"] == "kept"
        assert env["RUST_TEST_TASKS"] == "1"

    def test_expands_host_variables(self, monkeypatch):
        monkeypatch.setenv("USERPROFILE", "/home/builder")
        env = build_env({"HOME": "${USERPROFILE}"})
        assert env["HOME"] == "/home/builder"


class TestShellCommandAdapter:
    def test_name(self):
        adapter = ShellCommandAdapter()
        assert adapter.name == "shell"

    def test_is_available_uses_action_path(self, tmp_path: Path):
        adapter = ShellCommandAdapter()
        ctx = ExecutionContext(action=_shell_action([sys.executable]))
        assert adapter.is_available(ctx)
        hidden = ExecutionContext(action=_shell_action(["python-nowhere"], env={"PATH": str(tmp_path)}))
        assert not adapter.is_available(hidden)

    def test_validate_missing_argv(self, repo: Path):
        ctx = ExecutionContext(action=Action(id="t", adapter="shell"), repo_path=str(repo))
        valid, msg = ShellCommandAdapter().validate(ctx)
        assert not valid
        assert "argv" in msg

    def test_validate_bad_cwd(self):
        ctx = ExecutionContext(action=_shell_action(["cargo", "build"]), repo_path="/nonexistent/path")
        valid, msg = ShellCommandAdapter().validate(ctx)
        assert not valid
        assert "does not exist" in msg

    def test_execute_success(self, repo: Path):
        ctx = ExecutionContext(
            action=_shell_action([sys.executable, "-c", "print('hello')"]),
            repo_path=str(repo),
        )
        receipt = ShellCommandAdapter().execute(ctx)
        assert receipt.ok
        assert receipt.output == "hello"
        assert receipt.return_code == 0

    def test_execute_runs_in_repo(self, repo: Path):
        ctx = ExecutionContext(
            action=_shell_action([sys.executable, "-c", "import os; print(os.getcwd())"]),
            repo_path=str(repo),
        )
        receipt = ShellCommandAdapter().execute(ctx)
        assert Path(receipt.output).resolve() == repo

    def test_execute_applies_env(self, repo: Path):
        ctx = ExecutionContext(
            action=_shell_action(
                [sys.executable, "-c", "import os; print(os.environ['RUST_TEST_TASKS'])"],
                env={"RUST_TEST_TASKS": "1"},
            ),
            repo_path=str(repo),
        )
        receipt = ShellCommandAdapter().execute(ctx)
        assert receipt.ok
        assert receipt.output == "1"

    def test_execute_nonzero_exit(self, repo: Path):
        code = "import sys; print('compiling'); sys.stderr.write('error[E0308]'); sys.exit(101)"
        ctx = ExecutionContext(action=_shell_action([sys.executable, "-c", code]), repo_path=str(repo))
        receipt = ShellCommandAdapter().execute(ctx)
        assert receipt.failed
        assert receipt.return_code == 101
        assert "E0308" in receipt.error
        assert receipt.metadata["stdout"] == "compiling"

    def test_execute_missing_program(self, repo: Path):
        ctx = ExecutionContext(action=_shell_action(["no-such-program-xyz"]), repo_path=str(repo))
        receipt = ShellCommandAdapter().execute(ctx)
        assert receipt.failed
        assert "Program not found" in receipt.error

    def test_execute_timeout(self, repo: Path):
        ctx = ExecutionContext(
            action=_shell_action([sys.executable, "-c", "import time; time.sleep(5)"]),
            repo_path=str(repo),
            timeout=1,
        )
        receipt = ShellCommandAdapter().execute(ctx)
        assert receipt.failed
        assert "timed out" in receipt.error


# ── Git Adapter Tests ───────────────────────────────────────────────


def _git_action(**params) -> Action:
    base = {"operation": "config", "key": "user.email", "value": "delivery@chef.com", "scope": "local"}
    base.update(params)
    return Action(id="op:git-email", task="git-email", adapter="git", params=base)


class TestGitAdapterValidation:
    def test_valid(self):
        valid, msg = GitAdapter().validate(ExecutionContext(action=_git_action()))
        assert valid
        assert msg == ""

    def test_unknown_operation(self):
        valid, msg = GitAdapter().validate(ExecutionContext(action=_git_action(operation="push")))
        assert not valid
        assert "Unknown operation" in msg

    def test_bad_scope(self):
        valid, msg = GitAdapter().validate(ExecutionContext(action=_git_action(scope="system")))
        assert not valid
        assert "scope" in msg

    def test_missing_key(self):
        valid, msg = GitAdapter().validate(ExecutionContext(action=_git_action(key="")))
        assert not valid
        assert "key" in msg


@pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")
class TestGitAdapterExecution:
    def test_local_config_write(self, repo: Path):
        subprocess.run(["git", "init", "-q"], cwd=repo, check=True)
        receipt = GitAdapter().execute(ExecutionContext(action=_git_action(), repo_path=str(repo)))
        assert receipt.ok

        value = subprocess.run(
            ["git", "config", "--local", "user.email"],
            cwd=repo,
            capture_output=True,
            text=True,
            check=True,
        ).stdout.strip()
        assert value == "delivery@chef.com"

    def test_local_config_outside_repo_fails(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))
        outside = tmp_path / "not-a-repo"
        outside.mkdir()
        receipt = GitAdapter().execute(ExecutionContext(action=_git_action(), repo_path=str(outside)))
        assert receipt.failed
        assert "Git error" in receipt.error
        assert receipt.return_code not in (None, 0)
