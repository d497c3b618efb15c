"""API router factory functions."""
from .monitor import create_monitor_router
from .systems import create_systems_router

__all__ = [
    "create_monitor_router",
    "create_systems_router",
]
