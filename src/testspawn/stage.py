"""Pipeline stage that runs collected files through one test-runner process.

A stage buffers file paths until :meth:`SpawnStage.end` is awaited, then
builds a single command line and launches it. Callers observe the result
as at most one ``error`` event followed by exactly one ``end`` event, or by
awaiting :meth:`SpawnStage.wait`.
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from testspawn.errors import (
    STAGE_NAME,
    ExitCodeError,
    StageClosedError,
    StageError,
)
from testspawn.options import StageOptions
from testspawn.runtime.launcher import (
    LaunchedProcess,
    ProcessLauncher,
    get_process_launcher,
)
from testspawn.runtime.resolver import Invocation, build_invocation

logger = logging.getLogger(__name__)


class StageState(str, Enum):
    """Lifecycle state of a stage."""

    IDLE = "idle"
    RUNNING = "running"
    DONE = "done"


@dataclass(frozen=True, slots=True)
class StageEvent:
    """Notification emitted when a stage finishes."""

    event_type: str
    error: StageError | None = None


@dataclass(frozen=True, slots=True)
class StageOutcome:
    """Terminal result of a stage."""

    error: StageError | None = None
    exit_code: int | None = None
    launched: bool = False

    @property
    def succeeded(self) -> bool:
        return self.error is None


EventCallback = Callable[[StageEvent], None]


def _unit_path(unit: Any) -> str:
    if isinstance(unit, (str, os.PathLike)):
        return os.fspath(unit)
    path = getattr(unit, "path", None)
    if isinstance(path, (str, os.PathLike)):
        return os.fspath(path)
    raise TypeError(f"Expected a path or an object with a 'path', got {unit!r}")


class SpawnStage:
    """Collects file paths and runs them through one child process."""

    def __init__(
        self,
        options: Mapping[str, Any] | StageOptions | None = None,
        *,
        launcher: ProcessLauncher | None = None,
        on_event: EventCallback | None = None,
        name: str = STAGE_NAME,
    ) -> None:
        self.options = StageOptions.from_mapping(options)
        self.options.validate()
        self.name = name
        self._launcher = launcher or get_process_launcher()
        self._listeners: list[EventCallback] = []
        if on_event is not None:
            self._listeners.append(on_event)
        self._files: list[str] = []
        self._finalized = False
        self._state = StageState.IDLE
        self._invocation: Invocation | None = None
        self._child: LaunchedProcess | None = None
        self._watcher: asyncio.Task[None] | None = None
        self._outcome: asyncio.Future[StageOutcome] | None = None

    @property
    def files(self) -> tuple[str, ...]:
        return tuple(self._files)

    @property
    def state(self) -> StageState:
        return self._state

    @property
    def invocation(self) -> Invocation | None:
        """Command built at finalize time, if a launch was attempted."""
        return self._invocation

    @property
    def exec_path(self) -> str:
        return self.options.exec_path or sys.executable

    def add_listener(self, callback: EventCallback) -> None:
        """Register a callback for ``error`` and ``end`` events."""
        self._listeners.append(callback)

    def write(self, unit: Any) -> None:
        """Queue one file path.

        ``unit`` is a path string, a path-like object, or any object with a
        ``path`` attribute.
        """
        if self._finalized:
            raise StageClosedError("write after end", stage_name=self.name)
        self._files.append(_unit_path(unit))

    async def end(self) -> None:
        """Finalize input and launch the runner.

        Returns once the child is started (or the stage has already
        finished); use :meth:`wait` for the outcome.
        """
        if self._finalized:
            raise StageClosedError("end called twice", stage_name=self.name)
        self._finalized = True
        self._outcome_future()

        if not self._files:
            logger.debug("No files queued, nothing to run")
            self._finish(StageOutcome())
            return

        self._state = StageState.RUNNING
        options = self.options
        try:
            self._invocation = build_invocation(options, self._files)
            logger.info("Running %s", self._invocation.format(self.exec_path))
            self._child = await self._launcher.launch(
                self._invocation,
                exec_path=self.exec_path,
                env=options.env,
                cwd=options.cwd,
                output=options.output,
            )
        except StageError as exc:
            exc.stage_name = self.name
            logger.error("%s", exc)
            self._finish(StageOutcome(error=exc))
            return

        self._watcher = asyncio.ensure_future(
            self._watch(self._child, self._invocation)
        )

    async def wait(self) -> StageOutcome:
        """Wait for the terminal outcome of the stage."""
        return await self._outcome_future()

    async def run(self, units: Iterable[Any]) -> StageOutcome:
        """Queue ``units``, finalize and wait for the outcome."""
        for unit in units:
            self.write(unit)
        await self.end()
        return await self.wait()

    async def _watch(self, child: LaunchedProcess, invocation: Invocation) -> None:
        try:
            result = await child.wait()
        except Exception as exc:
            error = StageError(
                f"failed while waiting for {Path(invocation.program).name}: {exc}",
                stage_name=self.name,
            )
            error.__cause__ = exc
            logger.exception("%s", error)
            self._finish(StageOutcome(error=error, launched=True))
            return

        error: StageError | None = None
        if result.exit_code != 0:
            error = ExitCodeError(
                f"{Path(invocation.program).name} exited with code "
                f"{result.exit_code}",
                exit_code=result.exit_code,
                stage_name=self.name,
            )
            logger.warning("%s", error)
            if result.sink_error is not None:
                logger.error("Output was incomplete: %s", result.sink_error)
        elif result.sink_error is not None:
            error = result.sink_error
            error.stage_name = self.name
        self._finish(
            StageOutcome(error=error, exit_code=result.exit_code, launched=True)
        )

    def _outcome_future(self) -> asyncio.Future[StageOutcome]:
        if self._outcome is None:
            self._outcome = asyncio.get_running_loop().create_future()
        return self._outcome

    def _finish(self, outcome: StageOutcome) -> None:
        if self._state is StageState.DONE:
            return
        self._state = StageState.DONE
        future = self._outcome_future()
        if not future.done():
            future.set_result(outcome)
        if outcome.error is not None:
            self._emit(StageEvent(event_type="error", error=outcome.error))
        self._emit(StageEvent(event_type="end"))

    def _emit(self, event: StageEvent) -> None:
        for callback in list(self._listeners):
            try:
                callback(event)
            except Exception:
                logger.exception("Listener failed on %s event", event.event_type)
