"""Connector, EDID and capability models."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple

EDID_BLOCK_SIZE = 128
COLOR_DEPTHS = (8, 10, 12)

_MODE_RE = re.compile(r"^\s*(\d+)x(\d+)")


def parse_mode(mode: str) -> Optional[Tuple[int, int]]:
    """Parse a DRM mode string like '1920x1080' or '1920x1080i'.

    Returns:
        (width, height), or None if the string is not a mode
    """
    match = _MODE_RE.match(mode)
    if not match:
        return None
    width, height = int(match.group(1)), int(match.group(2))
    if width <= 0 or height <= 0:
        return None
    return (width, height)


class ConnectionStatus(Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    UNKNOWN = "unknown"

    @classmethod
    def from_text(cls, text: str) -> "ConnectionStatus":
        try:
            return cls(text.strip().lower())
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class Connector:
    identifier: str  # e.g. "card1-HDMI-A-1"
    status: ConnectionStatus
    edid_path: Path
    modes: Tuple[str, ...] = ()

    @property
    def connected(self) -> bool:
        return self.status is ConnectionStatus.CONNECTED

    @property
    def output_name(self) -> str:
        """Connector name without the 'cardN-' prefix, as the compositor expects."""
        prefix, sep, rest = self.identifier.partition("-")
        if sep and prefix.startswith("card") and rest:
            return rest
        return self.identifier

    @property
    def preferred_resolution(self) -> Optional[Tuple[int, int]]:
        if not self.modes:
            return None
        return parse_mode(self.modes[0])

    def describe(self) -> str:
        res = self.preferred_resolution
        mode = f"{res[0]}x{res[1]}" if res else "unknown mode"
        return f"{self.identifier} - {mode}"


@dataclass(frozen=True)
class RawEdid:
    """One or more 128-byte EDID blocks."""

    data: bytes

    def __post_init__(self) -> None:
        if not self.data or len(self.data) % EDID_BLOCK_SIZE != 0:
            raise ValueError(
                f"EDID length must be a positive multiple of {EDID_BLOCK_SIZE}, got {len(self.data)}"
            )

    @property
    def block_count(self) -> int:
        return len(self.data) // EDID_BLOCK_SIZE

    @property
    def base_block(self) -> bytes:
        return self.data[:EDID_BLOCK_SIZE]


@dataclass(frozen=True)
class Capabilities:
    max_refresh_hz: Optional[int] = 60
    supports_vrr: bool = False
    supports_hdr: bool = False
    color_depth_bits: int = 8
    native_resolution: Optional[Tuple[int, int]] = field(default=None)

    def __post_init__(self) -> None:
        if self.color_depth_bits not in COLOR_DEPTHS:
            raise ValueError(f"Unsupported color depth: {self.color_depth_bits}")
        if self.max_refresh_hz is not None and self.max_refresh_hz <= 0:
            raise ValueError(f"Refresh rate must be positive: {self.max_refresh_hz}")

    @classmethod
    def conservative(cls) -> "Capabilities":
        """Defaults used whenever detection or decoding fails."""
        return cls(
            max_refresh_hz=60,
            supports_vrr=False,
            supports_hdr=False,
            color_depth_bits=8,
            native_resolution=None,
        )

    def summary_lines(self) -> List[str]:
        lines = [
            "✓ VRR/Adaptive Sync supported" if self.supports_vrr else "✗ VRR/Adaptive Sync not detected",
            "✓ HDR supported" if self.supports_hdr else "✗ HDR not detected",
        ]
        if self.color_depth_bits == 8:
            lines.append("✓ 8-bit color depth (standard)")
        else:
            lines.append(f"✓ {self.color_depth_bits}-bit color depth supported")
        if self.max_refresh_hz:
            lines.append(f"✓ Maximum refresh rate: {self.max_refresh_hz}Hz")
        if self.native_resolution:
            lines.append(f"✓ Native resolution: {self.native_resolution[0]}x{self.native_resolution[1]}")
        return lines
