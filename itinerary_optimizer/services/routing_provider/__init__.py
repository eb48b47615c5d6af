"""Routing provider module.

Provides the external routing interface and its OSRM implementation.
"""

from .service import (
    OSRMRoutingProvider,
    ProviderMatrix,
    RoutingProvider,
    RoutingProviderError,
)

__all__ = [
    "OSRMRoutingProvider",
    "ProviderMatrix",
    "RoutingProvider",
    "RoutingProviderError",
]
