"""Shared fixtures: synthetic EDID blocks, a fake DRM tree and fake OS seams."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

import pytest

from console_mode.system import CapturedOutput

H_BLANK = 160
V_BLANK = 41
DEPTH_CODES = {6: 1, 8: 2, 10: 3, 12: 4, 14: 5, 16: 6}


def _checksum(block: bytearray) -> None:
    block[127] = (-sum(block[:127])) % 256


def make_edid(
    dtd: Optional[Tuple[int, int, int]] = (2560, 1440, 144),
    range_max: Optional[int] = None,
    depth_bits: Optional[int] = None,
    established: Tuple[int, int, int] = (0, 0, 0),
    standard: Sequence[Tuple[int, int]] = (),
    header: bool = True,
    extensions: int = 0,
) -> bytes:
    """Build a base EDID block (plus empty extension blocks) with a valid checksum.

    Args:
        dtd: (width, height, refresh) for the first detailed timing descriptor
        range_max: Maximum vertical rate for a range limits descriptor
        depth_bits: Bits per color for a digital input definition
        established: Raw bytes 35-37
        standard: Raw (byte1, byte2) standard timing pairs
    """
    block = bytearray(128)
    if header:
        block[0:8] = bytes([0x00, 0xFF, 0xFF, 0xFF, 0xFF, 0xFF, 0xFF, 0x00])
    block[18], block[19] = 1, 4
    if depth_bits is not None:
        block[20] = 0x80 | (DEPTH_CODES[depth_bits] << 4)
    block[35:38] = bytes(established)
    for offset in range(38, 54, 2):
        block[offset], block[offset + 1] = 0x01, 0x01
    for i, (first, second) in enumerate(standard):
        block[38 + 2 * i], block[39 + 2 * i] = first, second

    descriptors: List[bytes] = []
    if dtd is not None:
        width, height, refresh = dtd
        total = (width + H_BLANK) * (height + V_BLANK)
        clock = round(refresh * total / 10_000)
        desc = bytearray(18)
        desc[0], desc[1] = clock & 0xFF, clock >> 8
        desc[2], desc[3] = width & 0xFF, H_BLANK & 0xFF
        desc[4] = ((width >> 8) << 4) | (H_BLANK >> 8)
        desc[5], desc[6] = height & 0xFF, V_BLANK & 0xFF
        desc[7] = ((height >> 8) << 4) | (V_BLANK >> 8)
        descriptors.append(bytes(desc))
    if range_max is not None:
        desc = bytearray(18)
        desc[3] = 0xFD
        if range_max > 255:
            desc[4] = 0x02
            desc[6] = range_max - 255
        else:
            desc[6] = range_max
        desc[5] = 48
        desc[7], desc[8] = 30, 160
        descriptors.append(bytes(desc))
    while len(descriptors) < 4:
        dummy = bytearray(18)
        dummy[3] = 0x10
        descriptors.append(bytes(dummy))
    for i, desc in enumerate(descriptors):
        block[54 + 18 * i:72 + 18 * i] = desc

    block[126] = extensions
    _checksum(block)
    data = bytes(block)
    for _ in range(extensions):
        ext = bytearray(128)
        ext[0], ext[1] = 0x02, 0x03
        _checksum(ext)
        data += bytes(ext)
    return data


@pytest.fixture
def drm_root(tmp_path: Path) -> Path:
    root = tmp_path / "drm"
    root.mkdir()
    (root / "card1").mkdir()
    (root / "version").write_text("drm 1.1.0\n")
    return root


def add_connector(
    root: Path,
    name: str,
    status: str = "connected",
    edid: Optional[bytes] = b"",
    modes: Sequence[str] = ("1920x1080",),
) -> Path:
    path = root / name
    path.mkdir()
    (path / "status").write_text(status + "\n")
    if edid is not None:
        (path / "edid").write_bytes(edid)
    (path / "modes").write_text("".join(m + "\n" for m in modes))
    return path


class FakeConsole:
    def __init__(self, answers: Sequence[str] = ()) -> None:
        self.answers = list(answers)
        self.lines: List[str] = []
        self.prompts: List[str] = []

    def write(self, text: str = "") -> None:
        self.lines.append(text)

    def read_line(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.answers:
            raise EOFError
        return self.answers.pop(0)

    @property
    def output(self) -> str:
        return "\n".join(self.lines)


class FakeProcess:
    def __init__(self, code: int) -> None:
        self.code = code
        self.pid = 4242

    def wait(self) -> int:
        return self.code


class FakeRunner:
    """Stands in for ProcessRunner.

    Args:
        exit_codes: One entry per spawn: an exit code, or an OSError to raise
        capture_results: Program name -> CapturedOutput or OSError
        installed: Programs ``which`` should report as present
    """

    def __init__(
        self,
        exit_codes: Sequence[Union[int, OSError]] = (0,),
        capture_results: Optional[Dict[str, Union[CapturedOutput, OSError]]] = None,
        installed: Sequence[str] = (),
    ) -> None:
        self.exit_codes = list(exit_codes)
        self.capture_results = dict(capture_results or {})
        self.installed = set(installed)
        self.spawned: List[Tuple[Tuple[str, ...], Dict[str, str]]] = []
        self.captured: List[Tuple[List[str], Optional[bytes]]] = []

    def which(self, program: str) -> Optional[str]:
        return f"/usr/bin/{program}" if program in self.installed else None

    def capture(self, argv, stdin_data=None) -> CapturedOutput:  # type: ignore[no-untyped-def]
        self.captured.append((list(argv), stdin_data))
        result = self.capture_results.get(argv[0])
        if result is None:
            raise FileNotFoundError(argv[0])
        if isinstance(result, OSError):
            raise result
        return result

    def spawn(self, argv, env=None) -> FakeProcess:  # type: ignore[no-untyped-def]
        self.spawned.append((tuple(argv), dict(env or {})))
        outcome = self.exit_codes.pop(0)
        if isinstance(outcome, OSError):
            raise outcome
        return FakeProcess(outcome)
