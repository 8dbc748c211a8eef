from pathlib import Path

import pytest

from conftest import FakeConsole, add_connector
from console_mode.display.scanner import ConnectorScanner
from console_mode.display.selector import DisplaySelector
from console_mode.errors import LaunchAborted
from console_mode.inputs.gamepad import DiscoveringGamepadChooser, GamepadChooser, GamepadEvent


class ScriptedSource:
    def __init__(self, events):
        self.events = list(events)
        self.closed = False

    def __iter__(self):
        return iter(self.events)

    def close(self):
        self.closed = True


def _connectors(drm_root: Path):
    for name in ("card1-DP-1", "card1-DP-2", "card1-HDMI-A-1"):
        add_connector(drm_root, name)
    return ConnectorScanner(drm_root).scan()


def test_navigation_wraps_and_selects(drm_root: Path):
    connectors = _connectors(drm_root)
    events = [GamepadEvent.UP, GamepadEvent.UP, GamepadEvent.DOWN, GamepadEvent.SELECT]
    console = FakeConsole()
    selected = GamepadChooser(events, console).choose(connectors)
    assert selected.identifier == connectors[2].identifier
    assert f" ▶ {connectors[2].describe()}" in console.lines


def test_quit_button_aborts(drm_root: Path):
    with pytest.raises(LaunchAborted):
        GamepadChooser([GamepadEvent.DOWN, GamepadEvent.QUIT], FakeConsole()).choose(_connectors(drm_root))


def test_exhausted_input_aborts(drm_root: Path):
    with pytest.raises(LaunchAborted):
        GamepadChooser([], FakeConsole()).choose(_connectors(drm_root))



def test_gamepad_is_opened_only_when_a_prompt_is_needed(drm_root: Path):
    opened = []

    def discover():
        source = ScriptedSource([GamepadEvent.DOWN, GamepadEvent.SELECT])
        opened.append(source)
        return source

    console = FakeConsole()
    selector = DisplaySelector(DiscoveringGamepadChooser(console, GamepadChooser([], console), discover), console)
    add_connector(drm_root, "card1-DP-1")
    add_connector(drm_root, "card1-DP-2", status="disconnected")
    connectors = ConnectorScanner(drm_root).scan()

    assert selector.select(connectors).identifier == "card1-DP-1"
    assert selector.select(connectors, override="card1-DP-2").identifier == "card1-DP-2"
    assert opened == []

    add_connector(drm_root, "card1-HDMI-A-1")
    assert selector.select(ConnectorScanner(drm_root).scan()).identifier == "card1-HDMI-A-1"
    assert len(opened) == 1
    assert opened[0].closed is True


def test_gamepad_is_closed_after_abort(drm_root: Path):
    source = ScriptedSource([GamepadEvent.QUIT])
    chooser = DiscoveringGamepadChooser(FakeConsole(), GamepadChooser([], FakeConsole()), lambda: source)
    with pytest.raises(LaunchAborted):
        chooser.choose(_connectors(drm_root))
    assert source.closed is True


def test_missing_gamepad_uses_fallback(drm_root: Path):
    connectors = _connectors(drm_root)
    fallback = GamepadChooser([GamepadEvent.DOWN, GamepadEvent.SELECT], FakeConsole())
    chooser = DiscoveringGamepadChooser(FakeConsole(), fallback, lambda: None)
    assert chooser.choose(connectors).identifier == connectors[1].identifier

def test_translate_evdev_events():
    evdev = pytest.importorskip("evdev")
    from evdev import ecodes

    from console_mode.inputs.gamepad import translate

    def event(type_, code, value):
        return evdev.InputEvent(0, 0, type_, code, value)

    assert translate(event(ecodes.EV_KEY, ecodes.BTN_SOUTH, 1)) is GamepadEvent.SELECT
    assert translate(event(ecodes.EV_KEY, ecodes.BTN_WEST, 1)) is GamepadEvent.SELECT
    assert translate(event(ecodes.EV_KEY, ecodes.BTN_EAST, 1)) is GamepadEvent.QUIT
    assert translate(event(ecodes.EV_KEY, ecodes.BTN_SOUTH, 0)) is None
    assert translate(event(ecodes.EV_KEY, ecodes.BTN_DPAD_UP, 1)) is GamepadEvent.UP
    assert translate(event(ecodes.EV_ABS, ecodes.ABS_HAT0Y, 1)) is GamepadEvent.DOWN
    assert translate(event(ecodes.EV_ABS, ecodes.ABS_HAT0Y, -1)) is GamepadEvent.UP
    assert translate(event(ecodes.EV_ABS, ecodes.ABS_HAT0Y, 0)) is None
