"""Thin wrappers around the OS interactions the pipeline depends on.

Every subprocess and terminal interaction goes through these classes so the
detection and launch logic can be exercised with fakes in tests.
"""
from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence


@dataclass(frozen=True)
class CapturedOutput:
    returncode: int
    stdout: bytes


class ProcessRunner:
    """Runs external programs."""

    def __init__(self) -> None:
        self._log = logging.getLogger("process")

    def which(self, program: str) -> Optional[str]:
        return shutil.which(program)

    def capture(self, argv: Sequence[str], stdin_data: Optional[bytes] = None) -> CapturedOutput:
        """Run ``argv`` to completion, feeding ``stdin_data`` and capturing stdout.

        Raises:
            OSError: if the program cannot be started.
        """
        self._log.debug("Running %s", " ".join(argv))
        result = subprocess.run(
            list(argv),
            input=stdin_data,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            check=False,
        )
        return CapturedOutput(returncode=result.returncode, stdout=result.stdout or b"")

    def spawn(self, argv: Sequence[str], env: Optional[Mapping[str, str]] = None) -> "subprocess.Popen[bytes]":
        """Start ``argv`` inheriting stdin/stdout/stderr. Call ``wait()`` on the result.

        Raises:
            OSError: if the program cannot be started.
        """
        process = subprocess.Popen(list(argv), env=dict(env) if env is not None else None)
        self._log.info(f"Started {argv[0]} with PID: {process.pid}")
        return process


class Console:
    """Line-oriented terminal I/O for prompts."""

    def write(self, text: str = "") -> None:
        print(text, flush=True)

    def read_line(self, prompt: str) -> str:
        """Read one line. Raises EOFError when stdin is closed."""
        return input(prompt)
