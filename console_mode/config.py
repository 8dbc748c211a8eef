from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

# Keys the YAML defaults file may set; same names as the CLI destinations
CONFIG_KEYS = (
    "display",
    "resolution",
    "refresh_rate",
    "force_vrr",
    "force_hdr",
    "no_vrr",
    "no_hdr",
    "gamescope_bin",
    "steam_bin",
    "steam_args",
    "extra_args",
    "env",
    "mangoapp",
)

BOOL_KEYS = ("force_vrr", "force_hdr", "no_vrr", "no_hdr", "mangoapp")
ARGS_KEYS = ("steam_args", "extra_args")

_TRUE_WORDS = ("true", "yes", "on", "1")
_FALSE_WORDS = ("false", "no", "off", "0")
_SCALARS = (str, int, float)


def coerce_value(name: str, value: Any) -> Any:
    """Check a config value against the type its key expects.

    Booleans also accept the usual string spellings ("yes", "off", ...).
    Argument lists accept a string or a list of scalars; ``env`` accepts a
    mapping or a list of KEY=VALUE strings.

    Raises:
        ValueError: the value has the wrong type for ``name``
    """
    if name in BOOL_KEYS:
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            word = value.strip().lower()
            if word in _TRUE_WORDS:
                return True
            if word in _FALSE_WORDS:
                return False
        raise ValueError(f"expected true or false, got {value!r}")
    if name in ARGS_KEYS:
        if isinstance(value, str):
            return value
        if isinstance(value, list) and all(isinstance(v, _SCALARS) for v in value):
            return value
        raise ValueError(f"expected a string or a list of strings, got {value!r}")
    if name == "env":
        if isinstance(value, dict) and all(isinstance(v, _SCALARS) for v in value.values()):
            return value
        if isinstance(value, list) and all(isinstance(v, str) for v in value):
            return value
        raise ValueError(f"expected a mapping or a list of KEY=VALUE strings, got {value!r}")
    # bool is an int subclass; "display: yes" is not a connector name
    if isinstance(value, _SCALARS) and not isinstance(value, bool):
        return value
    raise ValueError(f"expected a single value, got {value!r}")


class AppConfig:
    """Centralized runtime configuration.

    Values may be overridden by environment variables to simplify dev/testing.
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None) -> None:
        env = os.environ if environ is None else environ
        home = Path(env.get("HOME", str(Path.home())))

        # Connector enumeration root; point at a fixture tree for testing
        self.drm_root = Path(env.get("CONSOLE_MODE_DRM_DIR", "/sys/class/drm"))
        self.edid_decode_bin = env.get("CONSOLE_MODE_EDID_DECODE", "edid-decode")

        state_home = Path(env.get("XDG_STATE_HOME") or home / ".local" / "state")
        self.logs_dir = Path(env.get("CONSOLE_MODE_LOG_DIR", str(state_home / "console-mode")))

        config_home = Path(env.get("XDG_CONFIG_HOME") or home / ".config")
        self.config_file = Path(env.get("CONSOLE_MODE_CONFIG", str(config_home / "console-mode" / "config.yaml")))

    def ensure_log_dir(self) -> None:
        self.logs_dir.mkdir(parents=True, exist_ok=True)

    def load_defaults(self) -> Dict[str, Any]:
        """Read launch defaults from the YAML config file.

        The file is optional and never written. Unknown keys and values of the
        wrong type are reported and dropped; a malformed file is skipped.

        Returns:
            Mapping of CLI option name -> default value
        """
        log = logging.getLogger("config")
        if not self.config_file.exists():
            return {}
        try:
            with self.config_file.open("r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh) or {}
        except (OSError, yaml.YAMLError) as exc:
            log.warning("Failed to load %s: %s", self.config_file, exc)
            return {}
        if not isinstance(data, dict):
            log.warning("Ignoring %s: expected a mapping at top level", self.config_file)
            return {}

        defaults = {}
        for key, value in data.items():
            name = str(key).replace("-", "_")
            if name not in CONFIG_KEYS:
                log.warning("Unknown key %r in %s", key, self.config_file)
                continue
            if value is None:
                continue
            try:
                defaults[name] = coerce_value(name, value)
            except ValueError as exc:
                log.warning("Ignoring %r in %s: %s", key, self.config_file, exc)
        log.info(f"Loaded defaults from {self.config_file}")
        return defaults
