"""Health monitoring and dependency tracking module."""

from .dependency_status import (
    DependencyType,
    HealthStatus,
    DependencyHealth,
    DependencyHealthTracker,
    check_storage,
)

__all__ = [
    "DependencyType",
    "HealthStatus",
    "DependencyHealth",
    "DependencyHealthTracker",
    "check_storage",
]
