"""Serializes a LaunchConfig into the gamescope command line and environment."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from .resolver import LaunchConfig

SESSION_ENV = (
    ("STEAM_FORCE_DESKTOPUI_SCALING", "1"),
    ("XDG_SESSION_TYPE", "wayland"),
    ("LIBSEAT_BACKEND", "logind"),
)


@dataclass(frozen=True)
class LaunchCommand:
    argv: Tuple[str, ...]
    env: Dict[str, str]

    def display(self) -> str:
        return " ".join(self.argv)


class LaunchCommandBuilder:
    """Pure transformation from LaunchConfig to argv/env. Starts nothing."""

    def __init__(
        self,
        environ: Optional[Mapping[str, str]] = None,
        getuid: Callable[[], int] = os.getuid,
    ) -> None:
        self.environ = dict(os.environ if environ is None else environ)
        self.getuid = getuid

    def compositor_args(self, config: LaunchConfig) -> List[str]:
        width, height = (str(v) for v in config.resolution)
        refresh = str(config.refresh_hz)
        args = ["-W", width, "-H", height, "-r", refresh]

        if config.nested:
            args += ["--nested-width", width, "--nested-height", height, "--nested-refresh", refresh]
        elif config.output_name:
            args += ["--prefer-output", config.output_name]

        if config.vrr:
            args.append("--adaptive-sync")
        if config.hdr:
            args += ["--hdr-enabled", "--hdr-itm-enable"]
        if config.mangoapp:
            args.append("--mangoapp")

        if not config.nested:
            args.append("-f")
        args.append("-e")  # expose the Steam integration socket

        # Last so users can override anything above
        args.extend(config.extra_args)
        return args

    def client_command(self, config: LaunchConfig) -> List[str]:
        return [config.client_bin, "-bigpicture", *config.client_args]

    def environment(self, config: LaunchConfig) -> Dict[str, str]:
        env = dict(self.environ)
        env.update(SESSION_ENV)
        if not env.get("XDG_RUNTIME_DIR"):
            env["XDG_RUNTIME_DIR"] = f"/run/user/{self.getuid()}"
        for key, value in config.env:
            env[key] = value
        return env

    def build(self, config: LaunchConfig) -> LaunchCommand:
        argv = [config.compositor_bin, *self.compositor_args(config), "--", *self.client_command(config)]
        return LaunchCommand(argv=tuple(argv), env=self.environment(config))
