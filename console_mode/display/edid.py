"""Reads raw EDID blocks for a connector."""
from __future__ import annotations

import logging

from ..errors import EdidUnavailable
from .models import Connector, RawEdid


class EdidAcquirer:
    def __init__(self) -> None:
        self._log = logging.getLogger("edid")

    def acquire(self, connector: Connector) -> RawEdid:
        """Read the connector's EDID.

        Raises:
            EdidUnavailable: connector not connected, or the EDID resource is
                missing, empty, unreadable or not made of whole blocks.
        """
        if not connector.connected:
            raise EdidUnavailable(f"{connector.identifier} is {connector.status.value}")
        try:
            data = connector.edid_path.read_bytes()
        except OSError as exc:
            raise EdidUnavailable(f"EDID for {connector.identifier} not readable: {exc}") from exc
        if not data:
            raise EdidUnavailable(f"EDID for {connector.identifier} is empty")
        try:
            edid = RawEdid(data)
        except ValueError as exc:
            raise EdidUnavailable(str(exc)) from exc
        self._log.debug(f"Read {edid.block_count} EDID block(s) for {connector.identifier}")
        return edid
