import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Optional


logger = logging.getLogger(__name__)


class DependencyType(Enum):
    """Types of dependencies that can be tracked."""
    STORAGE = "storage"
    CUSTOM = "custom"


class HealthStatus(Enum):
    """Health status levels."""
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    UNKNOWN = "unknown"


@dataclass
class DependencyHealth:
    """Track the health status of a single dependency."""
    name: str
    dependency_type: DependencyType
    status: HealthStatus = HealthStatus.UNKNOWN
    last_checked: Optional[datetime] = None
    error_message: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)

    @property
    def is_healthy(self) -> bool:
        return self.status == HealthStatus.HEALTHY

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "type": self.dependency_type.value,
            "status": self.status.value,
            "last_checked": self.last_checked.isoformat() if self.last_checked else None,
            "error": self.error_message,
            "metadata": self.metadata,
        }


class DependencyHealthTracker:
    """Tracks the dependencies this process needs, plus its start time."""

    def __init__(self):
        self._dependencies: Dict[str, DependencyHealth] = {}
        self.started_at = datetime.now(timezone.utc)

    @property
    def uptime_seconds(self) -> float:
        return (datetime.now(timezone.utc) - self.started_at).total_seconds()

    def register_dependency(
        self,
        name: str,
        dependency_type: DependencyType,
        metadata: Optional[Dict[str, str]] = None,
    ) -> None:
        """Register a new dependency to track."""
        self._dependencies[name] = DependencyHealth(
            name=name,
            dependency_type=dependency_type,
            metadata=metadata or {},
        )
        logger.info(f"Registered dependency: {name} ({dependency_type.value})")

    def _get_or_register(self, name: str) -> DependencyHealth:
        if name not in self._dependencies:
            logger.warning(f"Dependency {name} not registered, auto-registering")
            self.register_dependency(name, DependencyType.CUSTOM)
        return self._dependencies[name]

    def set_healthy(self, name: str) -> None:
        dep = self._get_or_register(name)
        if dep.status != HealthStatus.HEALTHY:
            logger.info(f"Dependency {name} marked as healthy")
        dep.status = HealthStatus.HEALTHY
        dep.last_checked = datetime.now(timezone.utc)
        dep.error_message = None

    def set_unhealthy(self, name: str, error_message: str) -> None:
        dep = self._get_or_register(name)
        if dep.status != HealthStatus.UNHEALTHY:
            logger.error(f"Dependency {name} marked as unhealthy: {error_message}")
        dep.status = HealthStatus.UNHEALTHY
        dep.last_checked = datetime.now(timezone.utc)
        dep.error_message = error_message

    def get_all_dependencies(self) -> Dict[str, Dict]:
        return {name: dep.to_dict() for name, dep in self._dependencies.items()}

    def is_application_healthy(self) -> bool:
        """Healthy only if every registered dependency is healthy."""
        if not self._dependencies:
            return False
        return all(dep.is_healthy for dep in self._dependencies.values())


def check_storage(tracker: DependencyHealthTracker, name: str, root: str) -> bool:
    """Probe the storage root and record the result on *tracker*."""
    if not os.path.isdir(root):
        tracker.set_unhealthy(name, f"{root} is not mounted")
        return False
    if not os.access(root, os.W_OK):
        tracker.set_unhealthy(name, f"{root} is not writable")
        return False
    tracker.set_healthy(name)
    return True
