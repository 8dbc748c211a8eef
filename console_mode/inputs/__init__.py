"""Controller input for the display selection prompt."""
from .gamepad import DiscoveringGamepadChooser, GamepadChooser, GamepadEvent

__all__ = ["DiscoveringGamepadChooser", "GamepadChooser", "GamepadEvent"]
