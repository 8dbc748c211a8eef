"""Enumerates DRM connectors from sysfs."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Tuple

from ..errors import NoConnectorsFound
from .models import ConnectionStatus, Connector


class ConnectorScanner:
    """Lists every connector under the DRM class directory, connected or not."""

    def __init__(self, drm_root: Path = Path("/sys/class/drm")) -> None:
        self.drm_root = Path(drm_root)
        self._log = logging.getLogger("scanner")

    def scan(self) -> List[Connector]:
        try:
            entries = sorted(self.drm_root.iterdir())
        except OSError as exc:
            raise NoConnectorsFound(f"Cannot read {self.drm_root}: {exc}") from exc

        connectors: List[Connector] = []
        for path in entries:
            name = path.name
            # Connector directories look like card1-HDMI-A-1; card1 itself is the device
            if not name.startswith("card") or "-" not in name:
                continue
            status_file = path / "status"
            if not status_file.exists():
                continue
            connector = Connector(
                identifier=name,
                status=self._read_status(status_file),
                edid_path=path / "edid",
                modes=self._read_modes(path / "modes"),
            )
            self._log.debug(f"Found connector {name} ({connector.status.value})")
            connectors.append(connector)

        if not connectors:
            raise NoConnectorsFound(f"No display connectors found under {self.drm_root}")
        return connectors

    def _read_status(self, status_file: Path) -> ConnectionStatus:
        try:
            return ConnectionStatus.from_text(status_file.read_text(encoding="utf-8"))
        except OSError as exc:
            self._log.warning("Failed to read %s: %s", status_file, exc)
            return ConnectionStatus.UNKNOWN

    def _read_modes(self, modes_file: Path) -> Tuple[str, ...]:
        try:
            text = modes_file.read_text(encoding="utf-8")
        except OSError:
            return ()
        return tuple(line.strip() for line in text.splitlines() if line.strip())
