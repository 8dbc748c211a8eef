"""Override resolution, command building and launch orchestration."""
from .builder import LaunchCommand, LaunchCommandBuilder
from .orchestrator import LaunchOrchestrator, State
from .overrides import Overrides, build_overrides
from .resolver import CapabilityResolver, LaunchConfig

__all__ = [
    "CapabilityResolver",
    "LaunchCommand",
    "LaunchCommandBuilder",
    "LaunchConfig",
    "LaunchOrchestrator",
    "Overrides",
    "State",
    "build_overrides",
]
