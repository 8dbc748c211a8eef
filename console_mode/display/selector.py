"""Chooses the one connector to launch on."""
from __future__ import annotations

import logging
import shlex
from typing import List, Optional, Sequence

from ..errors import DisplayNotFound, LaunchAborted, NoDisplaysFound
from ..system import Console, ProcessRunner
from .models import Connector


class Chooser:
    """Asks the user to pick one of several connected connectors."""

    def choose(self, connectors: Sequence[Connector]) -> Connector:
        raise NotImplementedError


class NumberedPrompt(Chooser):
    """Numbered list on stdout, integer answer on stdin. Re-prompts forever."""

    def __init__(self, console: Console) -> None:
        self.console = console

    def choose(self, connectors: Sequence[Connector]) -> Connector:
        self.console.write("\n=== Gaming Display Selection ===\n")
        for i, connector in enumerate(connectors, start=1):
            self.console.write(f"  [{i}] {connector.describe()}")

        while True:
            try:
                answer = self.console.read_line(f"\nSelect display (1-{len(connectors)}): ")
            except EOFError:
                raise LaunchAborted("No display selected (input closed)", stage="select") from None
            try:
                choice = int(answer.strip())
            except ValueError:
                self.console.write(f"'{answer.strip()}' is not a number")
                continue
            if 1 <= choice <= len(connectors):
                return connectors[choice - 1]
            self.console.write(f"Choose a number between 1 and {len(connectors)}")


class MenuLauncherChooser(Chooser):
    """Delegates the choice to a dmenu-style program (dmenu, rofi -dmenu, wofi --dmenu)."""

    def __init__(self, command: str, runner: ProcessRunner) -> None:
        self.argv = shlex.split(command)
        self.runner = runner
        self._log = logging.getLogger("selector")

    def choose(self, connectors: Sequence[Connector]) -> Connector:
        if not self.argv:
            raise DisplayNotFound("Launcher command is empty")
        options = "\n".join(c.describe() for c in connectors)
        self._log.info(f"Asking {self.argv[0]} for a display")
        try:
            result = self.runner.capture(self.argv, stdin_data=options.encode("utf-8"))
        except OSError as exc:
            raise DisplayNotFound(f"Failed to run launcher {self.argv[0]}: {exc}") from exc
        if result.returncode != 0:
            raise DisplayNotFound("Launcher exited with non-zero status (selection cancelled)")

        selection = result.stdout.decode("utf-8", errors="replace").strip()
        if not selection:
            raise DisplayNotFound("No display selected")
        identifier = selection.split(" - ")[0].strip()
        for connector in connectors:
            if connector.identifier == identifier:
                return connector
        raise DisplayNotFound(f"Selected display '{identifier}' not found")


class DisplaySelector:
    def __init__(self, chooser: Chooser, console: Optional[Console] = None) -> None:
        self.chooser = chooser
        self.console = console or Console()
        self._log = logging.getLogger("selector")

    def select(self, connectors: Sequence[Connector], override: Optional[str] = None) -> Connector:
        """Pick exactly one connector.

        An override must match an identifier exactly; it may name a
        disconnected connector. Without one, a single connected connector is
        taken without prompting and several are handed to the chooser.

        Raises:
            DisplayNotFound: override matches nothing
            NoDisplaysFound: nothing is connected
        """
        if override is not None:
            for connector in connectors:
                if connector.identifier == override:
                    self._log.info(f"Using display override: {override}")
                    return connector
            known = ", ".join(c.identifier for c in connectors)
            raise DisplayNotFound(f"Display '{override}' not found (available: {known})")

        connected: List[Connector] = [c for c in connectors if c.connected]
        if not connected:
            raise NoDisplaysFound("No connected displays detected")
        if len(connected) == 1:
            self.console.write(f"Detected display: {connected[0].describe()}")
            return connected[0]

        selected = self.chooser.choose(connected)
        self.console.write(f"Using {selected.describe()}")
        return selected
