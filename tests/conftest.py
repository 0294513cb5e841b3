from __future__ import annotations

import asyncio
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

import pytest

from testspawn.config.paths import reset_paths


@pytest.fixture(autouse=True)
def isolate_paths(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep tests away from the real user config directory."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    reset_paths()
    try:
        yield
    finally:
        reset_paths()


class FakeStream:
    """Async reader that yields preset chunks, then EOF."""

    def __init__(self, chunks: Iterable[bytes]) -> None:
        self._chunks = list(chunks)

    async def read(self, n: int = -1) -> bytes:
        del n
        await asyncio.sleep(0)
        if not self._chunks:
            return b""
        return self._chunks.pop(0)


class FakeProcess:
    """Stand-in for ``asyncio.subprocess.Process``."""

    def __init__(
        self,
        *,
        returncode: int,
        piped: bool,
        stdout: Iterable[bytes] = (),
        stderr: Iterable[bytes] = (),
    ) -> None:
        self.pid = 4242
        self.returncode = returncode
        self.stdout = FakeStream(stdout) if piped else None
        self.stderr = FakeStream(stderr) if piped else None

    async def wait(self) -> int:
        return self.returncode


class RecordingSpawn:
    """Fake ``create_subprocess_exec`` recording every call."""

    def __init__(
        self,
        *,
        returncode: int = 0,
        stdout: Iterable[bytes] = (),
        stderr: Iterable[bytes] = (),
        error: OSError | None = None,
    ) -> None:
        self.returncode = returncode
        self.stdout = list(stdout)
        self.stderr = list(stderr)
        self.error = error
        self.calls: list[tuple[tuple[str, ...], dict[str, Any]]] = []

    async def __call__(self, *argv: str, **kwargs: Any) -> FakeProcess:
        self.calls.append((argv, kwargs))
        if self.error is not None:
            raise self.error
        return FakeProcess(
            returncode=self.returncode,
            piped=kwargs.get("stdout") is asyncio.subprocess.PIPE,
            stdout=self.stdout,
            stderr=self.stderr,
        )

    @property
    def called(self) -> bool:
        return bool(self.calls)

    @property
    def argv(self) -> list[str]:
        return list(self.calls[-1][0])

    @property
    def kwargs(self) -> dict[str, Any]:
        return self.calls[-1][1]


@pytest.fixture
def fake_spawn() -> RecordingSpawn:
    return RecordingSpawn()


@pytest.fixture
def make_spawn() -> type[RecordingSpawn]:
    """Factory for spawns with a custom exit code, output or error."""
    return RecordingSpawn


@pytest.fixture
def anyio_backend() -> str:
    """The stage and launcher are built on asyncio subprocesses."""
    return "asyncio"
