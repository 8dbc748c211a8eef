"""Connector discovery, EDID decoding and display selection."""
from .decoder import create_decoder, detect_capabilities
from .edid import EdidAcquirer
from .models import Capabilities, ConnectionStatus, Connector, RawEdid
from .scanner import ConnectorScanner
from .selector import DisplaySelector, MenuLauncherChooser, NumberedPrompt

__all__ = [
    "Capabilities",
    "ConnectionStatus",
    "Connector",
    "ConnectorScanner",
    "DisplaySelector",
    "EdidAcquirer",
    "MenuLauncherChooser",
    "NumberedPrompt",
    "RawEdid",
    "create_decoder",
    "detect_capabilities",
]
