"""Tests running real child processes through the launcher and stage."""

from __future__ import annotations

import io
import sys
from pathlib import Path

import pytest

from testspawn.errors import ExitCodeError, OutputSinkError, SpawnError
from testspawn.runtime.launcher import LaunchResult, ProcessLauncher
from testspawn.runtime.resolver import Invocation
from testspawn.stage import SpawnStage

RUNNER_SCRIPT = """\
import os
import sys

print("args:" + " ".join(sys.argv[1:]))
print("cwd:" + os.getcwd())
print("probe:" + os.environ.get("TESTSPAWN_PROBE", "<unset>"))
print("problem", file=sys.stderr)
sys.exit(3 if "fail.py" in sys.argv else 0)
"""


@pytest.fixture
def runner_script(tmp_path: Path) -> Path:
    script = tmp_path / "runner.py"
    script.write_text(RUNNER_SCRIPT, encoding="utf-8")
    return script


@pytest.mark.anyio
async def test_real_run_writes_both_streams_to_output(
    runner_script: Path, tmp_path: Path
) -> None:
    log_path = tmp_path / "out.log"
    stage = SpawnStage(
        {"bin": str(runner_script), "v": True, "output": str(log_path)}
    )

    outcome = await stage.run(["ok.py"])

    assert outcome.succeeded
    content = log_path.read_text(encoding="utf-8")
    assert "args:-v ok.py" in content
    assert "problem" in content


@pytest.mark.anyio
async def test_real_run_reports_exit_code(runner_script: Path) -> None:
    stage = SpawnStage({"bin": str(runner_script), "output": io.BytesIO()})

    outcome = await stage.run(["fail.py"])

    assert isinstance(outcome.error, ExitCodeError)
    assert outcome.error.exit_code == 3
    assert "runner.py exited with code 3" in str(outcome.error)


@pytest.mark.anyio
async def test_real_run_applies_env_and_cwd(
    runner_script: Path, tmp_path: Path
) -> None:
    workdir = tmp_path / "work"
    workdir.mkdir()
    sink = io.BytesIO()
    stage = SpawnStage(
        {
            "bin": str(runner_script),
            "cwd": str(workdir),
            "env": {"TESTSPAWN_PROBE": "hello"},
            "output": sink,
        }
    )

    outcome = await stage.run(["ok.py"])

    assert outcome.succeeded
    text = sink.getvalue().decode()
    assert "probe:hello" in text
    assert f"cwd:{workdir.resolve()}" in text


@pytest.mark.anyio
async def test_missing_interpreter_is_a_spawn_error(runner_script: Path) -> None:
    stage = SpawnStage(
        {"bin": str(runner_script), "exec_path": "/nonexistent/python"}
    )

    outcome = await stage.run(["ok.py"])

    assert isinstance(outcome.error, SpawnError)
    assert not outcome.launched


@pytest.mark.anyio
async def test_launcher_returns_exit_status() -> None:
    launcher = ProcessLauncher()
    invocation = Invocation(program="-c", args=("import sys; sys.exit(5)",))

    child = await launcher.launch(invocation, exec_path=sys.executable)
    result = await child.wait()

    assert result == LaunchResult(exit_code=5)
    assert not result.succeeded


@pytest.mark.anyio
async def test_launcher_rejects_unopenable_output(tmp_path: Path) -> None:
    launcher = ProcessLauncher()
    invocation = Invocation(program="-c", args=("pass",))

    with pytest.raises(OutputSinkError):
        await launcher.launch(
            invocation,
            exec_path=sys.executable,
            output=tmp_path / "missing" / "out.log",
        )
