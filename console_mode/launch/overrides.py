"""User overrides: parsing, validation and merging of CLI, config file and environment."""
from __future__ import annotations

import logging
import shlex
from dataclasses import dataclass, replace
from typing import Any, Iterable, Mapping, Optional, Tuple

from ..config import coerce_value
from ..errors import InvalidOverride


@dataclass(frozen=True)
class Overrides:
    display: Optional[str] = None
    resolution: Optional[Tuple[int, int]] = None
    refresh_hz: Optional[int] = None
    force_vrr: bool = False
    force_hdr: bool = False
    no_vrr: bool = False
    no_hdr: bool = False
    safe_mode: bool = False
    compositor_bin: Optional[str] = None
    client_bin: Optional[str] = None
    client_args: Tuple[str, ...] = ()
    extra_args: Tuple[str, ...] = ()
    env: Tuple[Tuple[str, str], ...] = ()
    mangoapp: bool = True

    def with_safe_mode(self) -> "Overrides":
        return replace(self, safe_mode=True)


def parse_resolution(text: str) -> Tuple[int, int]:
    """Parse 'WIDTHxHEIGHT' (e.g. '2560x1440').

    Raises:
        InvalidOverride: if the string is not two positive integers joined by 'x'
    """
    parts = str(text).strip().lower().split("x")
    if len(parts) != 2:
        raise InvalidOverride(f"Invalid resolution format: {text!r} (expected WIDTHxHEIGHT)")
    try:
        width, height = int(parts[0]), int(parts[1])
    except ValueError:
        raise InvalidOverride(f"Invalid resolution format: {text!r} (expected WIDTHxHEIGHT)") from None
    if width <= 0 or height <= 0:
        raise InvalidOverride(f"Resolution must be positive: {text!r}")
    return (width, height)


def parse_refresh(value: Any) -> int:
    try:
        rate = int(str(value).strip())
    except ValueError:
        raise InvalidOverride(f"Invalid refresh rate: {value!r}") from None
    if rate <= 0:
        raise InvalidOverride(f"Refresh rate must be positive: {value!r}")
    return rate


def parse_env(items: Iterable[str]) -> Tuple[Tuple[str, str], ...]:
    """Parse KEY=VALUE strings, keeping their order."""
    pairs = []
    for item in items:
        key, sep, value = str(item).partition("=")
        if not sep or not key:
            raise InvalidOverride(f"Environment override must be KEY=VALUE: {item!r}")
        pairs.append((key, value))
    return tuple(pairs)


def _split_args(value: Any) -> Tuple[str, ...]:
    """Accept either a list of arguments or a single whitespace-separated string."""
    if value is None:
        return ()
    if isinstance(value, str):
        return tuple(shlex.split(value))
    result = []
    for item in value:
        result.extend(shlex.split(str(item)))
    return tuple(result)


def _env_items(value: Any) -> Iterable[str]:
    if not value:
        return []
    if isinstance(value, Mapping):
        return [f"{k}={v}" for k, v in value.items()]
    return [str(v) for v in value]


def build_overrides(
    cli: Mapping[str, Any],
    file_defaults: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Overrides:
    """Merge CLI values over config-file defaults, then apply Sunshine fallbacks.

    A CLI value of None, False or an empty list means "not given".
    Sunshine client variables only fill in a resolution or refresh rate that
    neither source supplied.

    Raises:
        InvalidOverride: malformed resolution, refresh rate, environment entry
            or a default of the wrong type
    """
    defaults = {}
    for key, value in (file_defaults or {}).items():
        if value is None:
            continue
        try:
            defaults[key] = coerce_value(key, value)
        except ValueError as exc:
            raise InvalidOverride(f"Invalid config value for {key}: {exc}") from None
    environ = environ or {}
    log = logging.getLogger("overrides")

    def pick(key: str) -> Any:
        value = cli.get(key)
        if value is None or value is False or value == [] or value == ():
            return defaults.get(key)
        return value

    resolution_text = pick("resolution")
    refresh_value = pick("refresh_rate")

    if resolution_text is None:
        width = environ.get("SUNSHINE_CLIENT_WIDTH")
        height = environ.get("SUNSHINE_CLIENT_HEIGHT")
        if width and height:
            resolution_text = f"{width}x{height}"
            log.info(f"Using Sunshine client resolution: {resolution_text}")
    if refresh_value is None:
        fps = environ.get("SUNSHINE_CLIENT_FPS")
        if fps and fps.strip().isdigit() and int(fps) > 0:
            refresh_value = int(fps)
            log.info(f"Using Sunshine client FPS as refresh rate: {refresh_value}Hz")

    env_items = list(_env_items(defaults.get("env"))) + list(_env_items(cli.get("env")))
    mangoapp = not cli.get("no_mangoapp") and defaults.get("mangoapp", True) is not False

    compositor_bin = pick("gamescope_bin")
    client_bin = pick("steam_bin")
    # Trailing CLI arguments are passed through verbatim; only file strings are split
    extra_args = pick("extra_args") or ()
    if isinstance(extra_args, str):
        extra_args = shlex.split(extra_args)

    return Overrides(
        display=pick("display"),
        resolution=parse_resolution(resolution_text) if resolution_text is not None else None,
        refresh_hz=parse_refresh(refresh_value) if refresh_value is not None else None,
        force_vrr=bool(pick("force_vrr")),
        force_hdr=bool(pick("force_hdr")),
        no_vrr=bool(pick("no_vrr")),
        no_hdr=bool(pick("no_hdr")),
        safe_mode=bool(pick("safe_mode")),
        compositor_bin=str(compositor_bin) if compositor_bin else None,
        client_bin=str(client_bin) if client_bin else None,
        client_args=_split_args(pick("steam_args")),
        extra_args=tuple(str(a) for a in extra_args),
        env=parse_env(env_items),
        mangoapp=mangoapp,
    )
