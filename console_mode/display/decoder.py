"""EDID decoding strategies.

Two strategies are tried in order: the external ``edid-decode`` tool, which
understands the many CTA/DisplayID extension variants, and an in-process
reader of the fixed-offset fields of the 128-byte base block. The base block
cannot describe VRR or HDR, so the fallback always reports both as absent.
"""
from __future__ import annotations

import logging
import re
from typing import List, Optional, Sequence, Tuple

from ..errors import DecodeError, EdidUnavailable
from ..system import ProcessRunner
from .edid import EdidAcquirer
from .models import Capabilities, Connector, RawEdid

EDID_HEADER = bytes([0x00, 0xFF, 0xFF, 0xFF, 0xFF, 0xFF, 0xFF, 0x00])
MAX_SANE_REFRESH = 500

VRR_MARKERS = (
    "Variable Refresh Rate",
    "FreeSync",
    "G-SYNC Compatible",
    "VESA VRR",
    "Vendor-Specific Data Block (AMD)",
    "Adaptive-Sync",
)
HDR_MARKERS = (
    "HDR Static Metadata",
    "HDR10",
    "SMPTE ST 2084",
)
STRUCTURE_MARKERS = ("Block 0", "EDID Structure Version")

_REFRESH_RE = re.compile(r"(?<![\d.])(\d+)(?:\.\d+)?\s*Hz\b")
_RESOLUTION_RE = re.compile(r"\b(\d{3,5})x(\d{3,5})\b")

# Established timings I and II (bytes 35-37), most significant bit first
ESTABLISHED_TIMING_RATES = (
    (70, 88, 60, 67, 72, 75, 56, 60),
    (72, 75, 75, 0, 60, 70, 75, 75),  # 1024x768@87 is interlaced
    (75, 0, 0, 0, 0, 0, 0, 0),
)


class CapabilityDecoder:
    """Turns raw EDID bytes into Capabilities."""

    name = "decoder"

    def decode(self, edid: RawEdid) -> Capabilities:
        """Raises DecodeError when this strategy cannot interpret the EDID."""
        raise NotImplementedError


class ExternalEdidDecoder(CapabilityDecoder):
    """Pipes the EDID through ``edid-decode`` and scans its report."""

    name = "edid-decode"

    def __init__(self, runner: ProcessRunner, binary: str = "edid-decode") -> None:
        self.runner = runner
        self.binary = binary

    def decode(self, edid: RawEdid) -> Capabilities:
        try:
            result = self.runner.capture([self.binary], stdin_data=edid.data)
        except OSError as exc:
            raise DecodeError(f"Could not run {self.binary}: {exc}") from exc
        if result.returncode != 0:
            raise DecodeError(f"{self.binary} exited with code {result.returncode}")
        return parse_edid_decode_report(result.stdout.decode("utf-8", errors="replace"))


def parse_edid_decode_report(report: str) -> Capabilities:
    """Extract capabilities from an ``edid-decode`` text report."""
    if not any(marker in report for marker in STRUCTURE_MARKERS):
        raise DecodeError("edid-decode output does not describe an EDID")

    supports_vrr = any(marker in report for marker in VRR_MARKERS)
    supports_hdr = any(marker in report for marker in HDR_MARKERS)

    depth = 8
    if "12 bits per" in report or "Bits per primary color channel: 12" in report:
        depth = 12
    elif "10 bits per" in report or "Bits per primary color channel: 10" in report:
        depth = 10

    max_rate = 60
    for match in _REFRESH_RE.finditer(report):
        rate = int(match.group(1))
        if max_rate < rate <= MAX_SANE_REFRESH:
            max_rate = rate

    return Capabilities(
        max_refresh_hz=max_rate,
        supports_vrr=supports_vrr,
        supports_hdr=supports_hdr,
        color_depth_bits=depth,
        native_resolution=_report_native_resolution(report),
    )


def _report_native_resolution(report: str) -> Optional[Tuple[int, int]]:
    for line in report.splitlines():
        if "DTD 1:" in line or "Preferred" in line:
            match = _RESOLUTION_RE.search(line)
            if match:
                return (int(match.group(1)), int(match.group(2)))
    return None


class BaseBlockDecoder(CapabilityDecoder):
    """Reads only the fixed fields of the 128-byte base block."""

    name = "base-block"

    def __init__(self) -> None:
        self._log = logging.getLogger("decoder")

    def decode(self, edid: RawEdid) -> Capabilities:
        block = edid.base_block
        if block[:8] != EDID_HEADER:
            raise DecodeError("Missing EDID header")
        if sum(block) % 256 != 0:
            self._log.debug("EDID base block checksum mismatch; decoding anyway")

        native: Optional[Tuple[int, int]] = None
        timing_refresh: Optional[int] = None
        range_max: Optional[int] = None

        for offset in (54, 72, 90, 108):
            desc = block[offset:offset + 18]
            pixel_clock = desc[0] | (desc[1] << 8)
            if pixel_clock:
                if native is None:
                    native, timing_refresh = _detailed_timing(desc, pixel_clock)
            elif desc[3] == 0xFD and range_max is None:
                range_max = desc[6] + (255 if desc[4] & 0x02 else 0)

        if range_max:
            max_refresh = range_max
        elif timing_refresh:
            max_refresh = timing_refresh
        else:
            max_refresh = _max_listed_refresh(block) or 60

        return Capabilities(
            max_refresh_hz=min(max_refresh, MAX_SANE_REFRESH),
            supports_vrr=False,
            supports_hdr=False,
            color_depth_bits=_color_depth(block[20]),
            native_resolution=native,
        )


def _detailed_timing(desc: bytes, pixel_clock: int) -> Tuple[Optional[Tuple[int, int]], Optional[int]]:
    h_active = desc[2] | ((desc[4] & 0xF0) << 4)
    h_blank = desc[3] | ((desc[4] & 0x0F) << 8)
    v_active = desc[5] | ((desc[7] & 0xF0) << 4)
    v_blank = desc[6] | ((desc[7] & 0x0F) << 8)
    if not h_active or not v_active:
        return None, None
    total = (h_active + h_blank) * (v_active + v_blank)
    refresh = round(pixel_clock * 10_000 / total) if total else None
    return (h_active, v_active), refresh or None


def _max_listed_refresh(block: bytes) -> int:
    best = 0
    for byte_index, rates in zip((35, 36, 37), ESTABLISHED_TIMING_RATES):
        for bit, rate in enumerate(rates):
            if block[byte_index] & (0x80 >> bit):
                best = max(best, rate)
    for offset in range(38, 54, 2):
        first, second = block[offset], block[offset + 1]
        if (first, second) == (0x01, 0x01) or first == 0x00:
            continue
        best = max(best, (second & 0x3F) + 60)
    return best


def _color_depth(video_input: int) -> int:
    if not video_input & 0x80:
        return 8
    bits = {1: 6, 2: 8, 3: 10, 4: 12, 5: 14, 6: 16}.get((video_input >> 4) & 0x07)
    if bits is None or bits <= 8:
        return 8
    return 10 if bits == 10 else 12


class FallbackChainDecoder(CapabilityDecoder):
    """Tries each strategy in order; conservative defaults if all fail.

    Never raises DecodeError.
    """

    name = "chain"

    def __init__(self, decoders: Sequence[CapabilityDecoder]) -> None:
        self.decoders: List[CapabilityDecoder] = list(decoders)
        self._log = logging.getLogger("decoder")

    def decode(self, edid: RawEdid) -> Capabilities:
        for decoder in self.decoders:
            try:
                caps = decoder.decode(edid)
            except DecodeError as exc:
                self._log.warning(f"{decoder.name} failed: {exc}")
                continue
            self._log.info(f"Decoded EDID with {decoder.name}")
            return caps
        self._log.warning("All EDID decoders failed, using conservative defaults")
        return Capabilities.conservative()


def create_decoder(runner: ProcessRunner, binary: str = "edid-decode") -> FallbackChainDecoder:
    """Build the decoder chain, skipping the external tool if it is not installed."""
    if runner.which(binary):
        return FallbackChainDecoder([ExternalEdidDecoder(runner, binary), BaseBlockDecoder()])
    logging.getLogger("decoder").info(f"{binary} not found, using built-in base block decoder")
    return FallbackChainDecoder([BaseBlockDecoder()])


def detect_capabilities(connector: Connector, acquirer: EdidAcquirer, decoder: CapabilityDecoder) -> Capabilities:
    """Acquire and decode a connector's EDID, absorbing soft failures."""
    try:
        edid = acquirer.acquire(connector)
    except EdidUnavailable as exc:
        logging.getLogger("edid").warning(f"EDID unavailable, using defaults: {exc}")
        return Capabilities.conservative()
    try:
        return decoder.decode(edid)
    except DecodeError as exc:
        logging.getLogger("decoder").warning(f"EDID decode failed, using defaults: {exc}")
        return Capabilities.conservative()
