"""Error taxonomy for the detection and launch pipeline."""
from __future__ import annotations


class ConsoleModeError(Exception):
    """Base error. ``stage`` names the pipeline stage that failed."""

    stage = "console-mode"

    def __init__(self, message: str, stage: str | None = None) -> None:
        super().__init__(message)
        if stage is not None:
            self.stage = stage


class NoConnectorsFound(ConsoleModeError):
    stage = "scan"


class NoDisplaysFound(ConsoleModeError):
    stage = "select"


class DisplayNotFound(ConsoleModeError):
    stage = "select"


class EdidUnavailable(ConsoleModeError):
    """Soft failure: callers fall back to conservative capabilities."""

    stage = "edid"


class DecodeError(ConsoleModeError):
    """Soft failure raised by a single decoding strategy."""

    stage = "decode"


class InvalidOverride(ConsoleModeError):
    stage = "overrides"


class LaunchAborted(ConsoleModeError):
    """User declined a prompt (selection or safe-mode retry)."""

    stage = "launch"
