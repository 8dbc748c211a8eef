from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import List, Mapping, Optional, Sequence, Tuple

from . import __version__
from .config import AppConfig
from .display import (
    Capabilities,
    ConnectorScanner,
    DisplaySelector,
    EdidAcquirer,
    MenuLauncherChooser,
    NumberedPrompt,
    create_decoder,
    detect_capabilities,
)
from .display.selector import Chooser
from .errors import ConsoleModeError
from .inputs.gamepad import DiscoveringGamepadChooser
from .launch import CapabilityResolver, LaunchCommandBuilder, LaunchOrchestrator, build_overrides
from .logging_setup import setup_logging
from .system import Console, ProcessRunner


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="console-mode",
        description="Gamescope session launcher with automatic display detection.",
        epilog="Arguments after '--' are passed to gamescope verbatim.",
    )
    parser.add_argument("-d", "--display", help='Connector to use, e.g. "card1-HDMI-A-1"')
    parser.add_argument("-r", "--resolution", help='Override resolution, e.g. "1920x1080"')
    parser.add_argument("-f", "--refresh-rate", help="Override refresh rate in Hz")
    parser.add_argument("--force-vrr", action="store_true", help="Force enable VRR/Adaptive Sync")
    parser.add_argument("--force-hdr", action="store_true", help="Force enable HDR")
    parser.add_argument("--no-vrr", action="store_true", help="Disable VRR even if supported")
    parser.add_argument("--no-hdr", action="store_true", help="Disable HDR even if supported")
    parser.add_argument("--safe-mode", action="store_true", help="Disable advanced features")
    parser.add_argument("--gamescope-bin", help="Custom gamescope binary path")
    parser.add_argument("--steam-bin", help="Custom steam binary path")
    parser.add_argument(
        "--steam-args", action="append", default=[],
        help="Additional steam arguments (repeatable, split on whitespace)",
    )
    parser.add_argument(
        "--env", action="append", default=[], metavar="KEY=VALUE",
        help="Extra environment variable for the session (repeatable)",
    )
    parser.add_argument("--launcher", help='Menu program for display selection, e.g. "rofi -dmenu"')
    parser.add_argument("--gamepad", action="store_true", help="Select the display with a gamepad")
    parser.add_argument("--no-mangoapp", action="store_true", help="Do not start the MangoHud overlay")
    parser.add_argument("--list", action="store_true", help="List connectors and capabilities, then exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def split_passthrough(argv: Sequence[str]) -> Tuple[List[str], List[str]]:
    """Split argv at the first '--' into (own arguments, gamescope arguments)."""
    argv = list(argv)
    if "--" in argv:
        index = argv.index("--")
        return argv[:index], argv[index + 1:]
    return argv, []


def is_nested(environ: Mapping[str, str]) -> bool:
    """True when started inside another Wayland or X11 session."""
    return bool(environ.get("WAYLAND_DISPLAY") or environ.get("DISPLAY"))


def make_chooser(args: argparse.Namespace, console: Console, runner: ProcessRunner) -> Chooser:
    if args.launcher:
        return MenuLauncherChooser(args.launcher, runner)
    if args.gamepad:
        return DiscoveringGamepadChooser(console, fallback=NumberedPrompt(console))
    return NumberedPrompt(console)


def print_capabilities(console: Console, caps: Capabilities) -> None:
    for line in caps.summary_lines():
        console.write(line)


def list_displays(config: AppConfig, runner: ProcessRunner, console: Console) -> int:
    connectors = ConnectorScanner(config.drm_root).scan()
    acquirer = EdidAcquirer()
    decoder = create_decoder(runner, config.edid_decode_bin)
    for connector in connectors:
        console.write(f"{connector.describe()} [{connector.status.value}]")
        if connector.connected:
            for line in detect_capabilities(connector, acquirer, decoder).summary_lines():
                console.write(f"    {line}")
    return 0


def run(
    argv: Optional[Sequence[str]] = None,
    environ: Optional[Mapping[str, str]] = None,
    runner: Optional[ProcessRunner] = None,
    console: Optional[Console] = None,
) -> int:
    environ = dict(os.environ if environ is None else environ)
    own_args, passthrough = split_passthrough(sys.argv[1:] if argv is None else argv)
    args = build_parser().parse_args(own_args)
    args.extra_args = passthrough

    config = AppConfig(environ)
    setup_logging(config, verbose=args.verbose)
    log = logging.getLogger("console_mode.main")
    runner = runner or ProcessRunner()
    console = console or Console()

    try:
        # Validate everything before any subprocess work
        overrides = build_overrides(vars(args), config.load_defaults(), environ)

        if args.list:
            return list_displays(config, runner, console)

        if is_nested(environ):
            console.write("Detected nested environment (running inside another compositor)")
            console.write("Launching in nested Wayland mode...")
            resolver = CapabilityResolver(Capabilities.conservative(), nested=True)
        else:
            connectors = ConnectorScanner(config.drm_root).scan()
            selector = DisplaySelector(make_chooser(args, console, runner), console)
            connector = selector.select(connectors, overrides.display)

            console.write("\n=== Detecting Display Capabilities ===\n")
            decoder = create_decoder(runner, config.edid_decode_bin)
            caps = detect_capabilities(connector, EdidAcquirer(), decoder)
            print_capabilities(console, caps)
            console.write()
            resolver = CapabilityResolver(
                caps,
                output_name=connector.output_name,
                baseline_resolution=connector.preferred_resolution,
            )

        orchestrator = LaunchOrchestrator(
            resolver.resolve, LaunchCommandBuilder(environ), runner, console
        )
        return orchestrator.run(overrides)
    except ConsoleModeError as exc:
        log.error(f"{exc.stage} failed: {exc}")
        return 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    try:
        return run(argv)
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
