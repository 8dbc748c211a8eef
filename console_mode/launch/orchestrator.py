"""Runs the compositor and drives the single safe-mode retry.

States::

    IDLE -> LAUNCHING -> RUNNING -> SUCCEEDED
                 |           |
                 +-----------+--> FAILED -> PROMPT_RETRY -> LAUNCHING (safe mode)
                                    |             |
                                    |             +-> ABORTED
                                    +-> (already safe mode) terminal

A failed safe-mode attempt is terminal, so there is at most one retry.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from ..system import Console, ProcessRunner
from .builder import LaunchCommand, LaunchCommandBuilder
from .overrides import Overrides
from .resolver import LaunchConfig


class State(Enum):
    IDLE = "idle"
    LAUNCHING = "launching"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    PROMPT_RETRY = "prompt_retry"
    ABORTED = "aborted"


@dataclass(frozen=True)
class AttemptOutcome:
    safe_mode: bool

    @property
    def succeeded(self) -> bool:
        return False

    @property
    def exit_status(self) -> int:
        return 1


@dataclass(frozen=True)
class Succeeded(AttemptOutcome):
    @property
    def succeeded(self) -> bool:
        return True

    @property
    def exit_status(self) -> int:
        return 0


@dataclass(frozen=True)
class FailedToStart(AttemptOutcome):
    reason: str = ""

    @property
    def exit_status(self) -> int:
        return 127


@dataclass(frozen=True)
class ExitedNonZero(AttemptOutcome):
    code: int = 1

    @property
    def exit_status(self) -> int:
        # Negative codes mean the child was killed by a signal
        if self.code < 0:
            return 128 - self.code
        return self.code if 0 < self.code < 256 else 1


class LaunchOrchestrator:
    """Launch, observe, and on failure offer one retry in safe mode.

    Args:
        resolve: Builds a fresh LaunchConfig for the given overrides
        builder: Turns a LaunchConfig into argv/env
        runner: Spawns the compositor
        console: Terminal used for the retry prompt
    """

    def __init__(
        self,
        resolve: Callable[[Overrides], LaunchConfig],
        builder: LaunchCommandBuilder,
        runner: ProcessRunner,
        console: Console,
    ) -> None:
        self.resolve = resolve
        self.builder = builder
        self.runner = runner
        self.console = console
        self.state = State.IDLE
        self.history: List[State] = [State.IDLE]
        self.outcomes: List[AttemptOutcome] = []
        self.configs: List[LaunchConfig] = []
        self._log = logging.getLogger("orchestrator")
        self._overrides: Optional[Overrides] = None
        self._command: Optional[LaunchCommand] = None
        self._process = None

    def run(self, overrides: Overrides) -> int:
        """Run to a terminal state and return the process exit status."""
        self._overrides = overrides
        self._enter(State.LAUNCHING)
        handlers = {
            State.LAUNCHING: self._launching,
            State.RUNNING: self._running,
            State.FAILED: self._failed,
            State.PROMPT_RETRY: self._prompt_retry,
        }
        while self.state in handlers:
            next_state = handlers[self.state]()
            if next_state is None:
                break
            self._enter(next_state)

        if self.state is State.SUCCEEDED:
            return 0
        if self.state is State.ABORTED:
            return 1
        return self.outcomes[-1].exit_status

    def _enter(self, state: State) -> None:
        self._log.debug(f"{self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    def _launching(self) -> State:
        config = self.resolve(self._overrides)
        self.configs.append(config)
        self._command = self.builder.build(config)
        self.console.write(f"Launching gamescope with: {self._command.display()}\n")
        try:
            self._process = self.runner.spawn(self._command.argv, env=self._command.env)
        except OSError as exc:
            self._log.error(f"Failed to launch {self._command.argv[0]}: {exc}")
            self.outcomes.append(FailedToStart(safe_mode=config.safe_mode, reason=str(exc)))
            return State.FAILED
        return State.RUNNING

    def _running(self) -> State:
        code = self._process.wait()
        self._process = None
        safe = self._overrides.safe_mode
        if code == 0:
            self._log.info("Gamescope session exited normally")
            self.outcomes.append(Succeeded(safe_mode=safe))
            return State.SUCCEEDED
        self._log.warning(f"Gamescope exited with code {code}")
        self.outcomes.append(ExitedNonZero(safe_mode=safe, code=code))
        return State.FAILED

    def _failed(self) -> Optional[State]:
        if self._overrides.safe_mode:
            self.console.write("\nGamescope failed in safe mode; giving up.")
            self._log.error("Safe-mode launch failed, not retrying")
            return None
        self.console.write("\n======================================")
        self.console.write("Gamescope failed to start!")
        self.console.write("======================================\n")
        return State.PROMPT_RETRY

    def _prompt_retry(self) -> State:
        try:
            answer = self.console.read_line("Press Enter to retry with safe options, or 'n' to exit: ")
        except EOFError:
            answer = "n"
        if answer.strip().lower() in ("n", "no", "q", "quit"):
            self._log.info("Safe-mode retry declined")
            return State.ABORTED
        self.console.write("\nRetrying with safe options...")
        self._overrides = self._overrides.with_safe_mode()
        return State.LAUNCHING
