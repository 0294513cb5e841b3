"""Spawn one child process and route its output."""

from __future__ import annotations

import asyncio
import codecs
import io
import logging
import os
import sys
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Any

from testspawn.errors import OutputSinkError, SpawnError
from testspawn.options import OutputSink
from testspawn.runtime.resolver import Invocation

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024

SpawnFn = Callable[..., Awaitable[asyncio.subprocess.Process]]


@dataclass(frozen=True, slots=True)
class LaunchResult:
    """Exit status of a finished child plus any output sink failure."""

    exit_code: int
    sink_error: OutputSinkError | None = None

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0 and self.sink_error is None


class _SinkWriter:
    """Writes child output chunks into one sink.

    The first write failure is kept and later chunks are discarded so the
    pipes keep draining.
    """

    def __init__(self, target: IO[Any], *, name: str, owned: bool) -> None:
        self._target = target
        self._name = name
        self._owned = owned
        self._text = isinstance(target, io.TextIOBase)
        self.error: OutputSinkError | None = None

    def decoder(self) -> codecs.IncrementalDecoder | None:
        """Fresh decoder for one piped stream, or None for binary sinks."""
        if not self._text:
            return None
        return codecs.getincrementaldecoder("utf-8")(errors="replace")

    def write(self, data: bytes | str) -> None:
        if self.error is not None or not data:
            return
        try:
            self._target.write(data)
        except Exception as exc:
            self._fail(f"failed to write output to {self._name}: {exc}", exc)

    def close(self) -> None:
        try:
            flush = getattr(self._target, "flush", None)
            if flush is not None:
                flush()
            if self._owned:
                self._target.close()
        except Exception as exc:
            self._fail(f"failed to close output {self._name}: {exc}", exc)

    def _fail(self, message: str, exc: BaseException) -> None:
        if self.error is not None:
            return
        error = OutputSinkError(message)
        error.__cause__ = exc
        self.error = error
        logger.error("%s", message)


def _open_sink(output: OutputSink) -> _SinkWriter:
    if isinstance(output, (str, os.PathLike)):
        path = Path(output)
        try:
            handle = path.open("wb")
        except OSError as exc:
            raise OutputSinkError(f"failed to open output {path}: {exc}") from exc
        return _SinkWriter(handle, name=str(path), owned=True)
    name = getattr(output, "name", None)
    return _SinkWriter(
        output,
        name=str(name) if name is not None else repr(output),
        owned=False,
    )


async def _pump(stream: asyncio.StreamReader, sink: _SinkWriter) -> None:
    # Decoder state is per stream; stdout and stderr bytes must not mix.
    decoder = sink.decoder()
    while True:
        chunk = await stream.read(CHUNK_SIZE)
        if not chunk:
            break
        sink.write(decoder.decode(chunk) if decoder is not None else chunk)
    if decoder is not None:
        sink.write(decoder.decode(b"", final=True))


class LaunchedProcess:
    """Handle for one running child process."""

    def __init__(
        self,
        process: asyncio.subprocess.Process,
        *,
        sink: _SinkWriter | None = None,
    ) -> None:
        self._process = process
        self._sink = sink
        self._pumps: list[asyncio.Task[None]] = []
        if sink is not None:
            for stream in (process.stdout, process.stderr):
                if stream is not None:
                    self._pumps.append(asyncio.ensure_future(_pump(stream, sink)))

    @property
    def pid(self) -> int:
        return self._process.pid

    async def wait(self) -> LaunchResult:
        """Wait for the child to exit and for its output to be drained."""
        try:
            if self._pumps:
                await asyncio.gather(*self._pumps)
            exit_code = await self._process.wait()
        finally:
            if self._sink is not None:
                self._sink.close()
        sink_error = self._sink.error if self._sink is not None else None
        return LaunchResult(exit_code=exit_code, sink_error=sink_error)


class ProcessLauncher:
    """Starts stage invocations as child processes.

    ``spawn`` defaults to :func:`asyncio.create_subprocess_exec` and can be
    replaced to observe or fake process creation.
    """

    def __init__(self, *, spawn: SpawnFn | None = None) -> None:
        self._spawn = spawn or asyncio.create_subprocess_exec

    async def launch(
        self,
        invocation: Invocation,
        *,
        exec_path: str | None = None,
        env: Mapping[str, str] | None = None,
        cwd: str | None = None,
        output: OutputSink | None = None,
    ) -> LaunchedProcess:
        """Start ``invocation`` under the ``exec_path`` interpreter.

        ``env`` is merged over the current environment. Without ``output``
        the child shares this process's stdout and stderr; with it, both
        streams are piped into the same sink.

        Raises:
            OutputSinkError: If an output path cannot be opened.
            SpawnError: If the process cannot be created.
        """
        argv = invocation.argv(exec_path or sys.executable)
        sink = _open_sink(output) if output is not None else None
        stdio = asyncio.subprocess.PIPE if sink is not None else None

        try:
            process = await self._spawn(
                *argv,
                cwd=cwd,
                env={**os.environ, **(env or {})},
                stdout=stdio,
                stderr=stdio,
            )
        except OSError as exc:
            if sink is not None:
                sink.close()
            raise SpawnError(
                f"failed to start {invocation.program} with {argv[0]}: {exc}"
            ) from exc

        logger.debug("Started pid %s: %s", process.pid, argv)
        return LaunchedProcess(process, sink=sink)


_DEFAULT_LAUNCHER = ProcessLauncher()


def get_process_launcher() -> ProcessLauncher:
    """Return shared process launcher instance."""
    return _DEFAULT_LAUNCHER
