"""Shared pytest fixtures.

External commands never run in tests: ``common.run_command`` is replaced by a
recording fake whose results are scripted per command substring.
"""

import os
import shlex
import subprocess
from dataclasses import dataclass, field

import pytest

import common


@dataclass
class FakeRunner:
    """Records every command and answers with scripted results."""

    commands: list[str] = field(default_factory=list)
    cwds: list[str | None] = field(default_factory=list)
    rules: list[tuple[str, int, str]] = field(default_factory=list)

    def fail(self, pattern: str, returncode: int = 1) -> None:
        self.rules.insert(0, (pattern, returncode, ""))

    def answer(self, pattern: str, stdout: str) -> None:
        self.rules.insert(0, (pattern, 0, stdout))

    def ran(self, pattern: str) -> bool:
        return any(pattern in command for command in self.commands)

    def __call__(
        self,
        command: str,
        ignore_error: bool = False,
        capture: bool = False,
        echo: bool = True,
        cwd: str | None = None,
        phase: str = "command",
        dry_run: bool | None = None,
    ) -> subprocess.CompletedProcess[str]:
        self.commands.append(command)
        self.cwds.append(cwd)
        returncode, stdout = 0, ""
        for pattern, code, output in self.rules:
            if pattern in command:
                returncode, stdout = code, output
                break
        if command.startswith("git clone") and returncode == 0:
            os.makedirs(shlex.split(command)[-1], exist_ok=True)
        if returncode != 0 and not ignore_error:
            raise common.external_tool_failure(phase, command, returncode)
        return subprocess.CompletedProcess(command, returncode, stdout, "")


RELEASE_TAGS = "\n".join(
    [
        "releases/gcc-12.2.0",
        "releases/gcc-13.1.0",
        "releases/gcc-13.1.0-RC1",
        "releases/gcc-13.2.0",
    ]
)


@pytest.fixture
def fake_runner(monkeypatch: pytest.MonkeyPatch) -> FakeRunner:
    """Replace common.run_command with a recording fake."""
    runner = FakeRunner()
    runner.answer("tag --list", RELEASE_TAGS)
    monkeypatch.setattr(common, "run_command", runner)
    return runner


@pytest.fixture
def work_dir(tmp_path) -> str:
    """An empty work directory."""
    return str(tmp_path)


@pytest.fixture(autouse=True)
def reset_dry_run():
    """The dry-run switch is process wide; never leak it between tests."""
    common.command_dry_run.set(False)
    yield
    common.command_dry_run.set(False)
