"""Adapters — tool bindings for external integrations.

Public re-exports for convenient access.
"""

from delivery_build.adapters.base import Adapter, ExecutionContext
from delivery_build.adapters.mock import MockAdapter
from delivery_build.adapters.registry import AdapterRegistry, default_registry

__all__ = [
    "Adapter",
    "AdapterRegistry",
    "ExecutionContext",
    "MockAdapter",
    "default_registry",
]
