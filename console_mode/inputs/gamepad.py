"""Gamepad-driven display selection.

The connector list is still printed as plain text; the gamepad only moves the
cursor and confirms:

- D-pad up/down (buttons or HAT0Y axis) -> move
- South/West face button (A/Cross, X/Square) -> select
- East face button (B/Circle) -> abort
"""
from __future__ import annotations

import logging
from enum import Enum, auto
from typing import Callable, Iterable, Iterator, List, Optional, Sequence

try:
    import evdev
    from evdev import ecodes
    EVDEV_AVAILABLE = True
except ImportError:
    EVDEV_AVAILABLE = False
    evdev = None
    ecodes = None

from ..display.models import Connector
from ..display.selector import Chooser
from ..errors import LaunchAborted
from ..system import Console


class GamepadEvent(Enum):
    UP = auto()
    DOWN = auto()
    SELECT = auto()
    QUIT = auto()


def translate(event) -> Optional[GamepadEvent]:  # type: ignore[no-untyped-def]
    """Map one evdev input event to a navigation event, or None."""
    if event.type == ecodes.EV_KEY:
        if event.value != 1:  # press only; 0 = release, 2 = repeat
            return None
        if event.code == ecodes.BTN_DPAD_UP:
            return GamepadEvent.UP
        if event.code == ecodes.BTN_DPAD_DOWN:
            return GamepadEvent.DOWN
        if event.code in (ecodes.BTN_SOUTH, ecodes.BTN_WEST):
            return GamepadEvent.SELECT
        if event.code == ecodes.BTN_EAST:
            return GamepadEvent.QUIT
    elif event.type == ecodes.EV_ABS and event.code == ecodes.ABS_HAT0Y:
        if event.value < 0:
            return GamepadEvent.UP
        if event.value > 0:
            return GamepadEvent.DOWN
    return None


class EvdevGamepadSource:
    """Blocking stream of navigation events from the first gamepad found."""

    def __init__(self, device) -> None:  # type: ignore[no-untyped-def]
        self.device = device
        self._log = logging.getLogger("gamepad")

    @classmethod
    def discover(cls) -> Optional["EvdevGamepadSource"]:
        """Open the first input device exposing gamepad face buttons."""
        log = logging.getLogger("gamepad")
        if not EVDEV_AVAILABLE:
            log.warning("evdev not available - install with: pip install evdev")
            return None
        for path in sorted(evdev.list_devices()):
            try:
                device = evdev.InputDevice(path)
            except OSError as exc:
                log.debug(f"Cannot open {path}: {exc}")
                continue
            keys = device.capabilities().get(ecodes.EV_KEY, [])
            if ecodes.BTN_SOUTH in keys or ecodes.BTN_EAST in keys:
                log.info(f"Using gamepad {device.path} ({device.name})")
                return cls(device)
            device.close()
        log.info("No gamepad found")
        return None

    def __iter__(self) -> Iterator[GamepadEvent]:
        try:
            for raw in self.device.read_loop():
                event = translate(raw)
                if event is not None:
                    self._log.debug(f"Gamepad event: {event.name}")
                    yield event
        finally:
            self.device.close()

    def close(self) -> None:
        self.device.close()


class GamepadChooser(Chooser):
    def __init__(self, source: Iterable[GamepadEvent], console: Console) -> None:
        self.source = source
        self.console = console

    def choose(self, connectors: Sequence[Connector]) -> Connector:
        items: List[Connector] = list(connectors)
        index = 0
        self._render(items, index)
        for event in self.source:
            if event is GamepadEvent.UP:
                index = (index - 1) % len(items)
            elif event is GamepadEvent.DOWN:
                index = (index + 1) % len(items)
            elif event is GamepadEvent.SELECT:
                return items[index]
            elif event is GamepadEvent.QUIT:
                raise LaunchAborted("Display selection cancelled", stage="select")
            self._render(items, index)
        raise LaunchAborted("Gamepad input ended before a display was selected", stage="select")

    def _render(self, items: Sequence[Connector], index: int) -> None:
        self.console.write("\n=== Console Mode - Select Monitor ===\n")
        for i, connector in enumerate(items):
            marker = "▶" if i == index else " "
            self.console.write(f" {marker} {connector.describe()}")
        self.console.write("\n[D-pad] Navigate  [A] Select  [B] Quit")


class DiscoveringGamepadChooser(Chooser):
    """Opens a gamepad only when a choice is actually needed.

    Falls back to ``fallback`` when no gamepad can be found. The device is
    closed as soon as the choice is made.
    """

    def __init__(
        self,
        console: Console,
        fallback: Chooser,
        discover: Callable[[], Optional[EvdevGamepadSource]] = EvdevGamepadSource.discover,
    ) -> None:
        self.console = console
        self.fallback = fallback
        self.discover = discover
        self._log = logging.getLogger("gamepad")

    def choose(self, connectors: Sequence[Connector]) -> Connector:
        source = self.discover()
        if source is None:
            self._log.warning("No gamepad found, falling back to the numbered prompt")
            return self.fallback.choose(connectors)
        try:
            return GamepadChooser(source, self.console).choose(connectors)
        finally:
            source.close()
