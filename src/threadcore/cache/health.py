# src/threadcore/cache/health.py
"""
Health check types for the session cache.

A failed probe is reported, never raised: an unavailable cache degrades the
system to rebuilding sessions from the durable store, it does not take the
process down.
"""

import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class HealthStatus(str, Enum):
    """Health status of a cache backend."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


@dataclass
class HealthCheckResult:
    """Result of a single health check execution."""

    backend_name: str
    status: HealthStatus
    latency_ms: float
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    error_message: str | None = None

    @property
    def is_healthy(self) -> bool:
        return self.status == HealthStatus.HEALTHY

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for logging/API responses."""
        return {
            "backend_name": self.backend_name,
            "status": self.status.value,
            "latency_ms": round(self.latency_ms, 2),
            "timestamp": self.timestamp.isoformat(),
            "error_message": self.error_message,
        }


class LatencyTimer:
    """Measures elapsed milliseconds for a probe."""

    def __init__(self) -> None:
        self._start = time.perf_counter()

    @property
    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self._start) * 1000
