"""
fleetgauge backends.

Backend modules register themselves with the registry on import.
See registry.py for details on how to add a new backend kind.
"""

# Import backend modules for their side effects (they register themselves).
from . import cloudwatch as _cloudwatch  # noqa: F401
from . import graphite as _graphite  # noqa: F401
from . import prometheus as _prometheus  # noqa: F401

# Explicit re-exports for library users.
from .base import BackendInfo as BackendInfo
from .base import Backender as Backender
from .registry import ConfiguredBackends as ConfiguredBackends
from .registry import initialize_backends as initialize_backends
from .registry import register as register
from .registry import registered_kinds as registered_kinds

__all__ = [
    "BackendInfo",
    "Backender",
    "ConfiguredBackends",
    "initialize_backends",
    "register",
    "registered_kinds",
]
