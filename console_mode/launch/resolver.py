"""Merges detected capabilities with user overrides into a LaunchConfig."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from ..display.models import Capabilities
from .overrides import Overrides

DEFAULT_RESOLUTION = (1920, 1080)
DEFAULT_REFRESH_HZ = 60
DEFAULT_COLOR_DEPTH = 8
DEFAULT_COMPOSITOR = "gamescope"
DEFAULT_CLIENT = "steam"


@dataclass(frozen=True)
class LaunchConfig:
    resolution: Tuple[int, int]
    refresh_hz: int
    vrr: bool
    hdr: bool
    color_depth_bits: int
    compositor_bin: str
    client_bin: str
    output_name: Optional[str] = None
    client_args: Tuple[str, ...] = ()
    extra_args: Tuple[str, ...] = ()
    env: Tuple[Tuple[str, str], ...] = ()
    mangoapp: bool = True
    nested: bool = False
    safe_mode: bool = False


def resolve_feature(safe_mode: bool, disable: bool, force: bool, detected: bool) -> bool:
    """Precedence for a boolean feature: safe mode, disable, force, detection."""
    if safe_mode or disable:
        return False
    if force:
        return True
    return bool(detected)


class CapabilityResolver:
    """Resolves one LaunchConfig per attempt for a fixed display.

    Args:
        capabilities: Decoded (or conservative) capabilities of the display
        output_name: Connector name for the compositor's output selection
        baseline_resolution: Detected resolution used when the EDID has no
            native resolution (e.g. the connector's preferred mode)
        nested: Whether the compositor runs inside another session
    """

    def __init__(
        self,
        capabilities: Capabilities,
        output_name: Optional[str] = None,
        baseline_resolution: Optional[Tuple[int, int]] = None,
        nested: bool = False,
    ) -> None:
        self.capabilities = capabilities
        self.output_name = output_name
        self.baseline_resolution = baseline_resolution
        self.nested = nested
        self._log = logging.getLogger("resolver")

    def resolve(self, overrides: Overrides) -> LaunchConfig:
        caps = self.capabilities
        safe = overrides.safe_mode
        detected_resolution = caps.native_resolution or self.baseline_resolution or DEFAULT_RESOLUTION

        if safe:
            resolution = detected_resolution
            refresh = DEFAULT_REFRESH_HZ
            depth = DEFAULT_COLOR_DEPTH
        else:
            resolution = overrides.resolution or detected_resolution
            refresh = overrides.refresh_hz or caps.max_refresh_hz or DEFAULT_REFRESH_HZ
            depth = caps.color_depth_bits

        if overrides.force_vrr and overrides.no_vrr:
            self._log.warning("Both --force-vrr and --no-vrr given; VRR stays disabled")
        if overrides.force_hdr and overrides.no_hdr:
            self._log.warning("Both --force-hdr and --no-hdr given; HDR stays disabled")

        config = LaunchConfig(
            resolution=resolution,
            refresh_hz=refresh,
            vrr=resolve_feature(safe, overrides.no_vrr, overrides.force_vrr, caps.supports_vrr),
            hdr=resolve_feature(safe, overrides.no_hdr, overrides.force_hdr, caps.supports_hdr),
            color_depth_bits=depth,
            compositor_bin=overrides.compositor_bin or DEFAULT_COMPOSITOR,
            client_bin=overrides.client_bin or DEFAULT_CLIENT,
            output_name=self.output_name,
            client_args=overrides.client_args,
            extra_args=() if safe else overrides.extra_args,
            env=overrides.env,
            mangoapp=overrides.mangoapp and not safe,
            nested=self.nested,
            safe_mode=safe,
        )
        self._log.info(
            "Resolved %dx%d@%dHz vrr=%s hdr=%s depth=%d%s",
            config.resolution[0], config.resolution[1], config.refresh_hz,
            config.vrr, config.hdr, config.color_depth_bits,
            " (safe mode)" if safe else "",
        )
        return config
