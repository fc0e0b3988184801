"""Prometheus metrics for raceway.

Provides metrics collection and exposure:
- Race outcomes (success, all failed, timeout, empty batch)
- Race latency
- Per-operation outcomes, including operations abandoned after a win
- Staged race escalations

Usage:
    from raceway.observability.metrics import get_metrics

    metrics = get_metrics()
    metrics.races_total.labels(kind="race", result="success").inc()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from prometheus_client import CollectorRegistry, Counter, Histogram
from prometheus_client import generate_latest as _generate_latest

from raceway.config import settings

logger = logging.getLogger(__name__)


class NoOpMetric:
    """No-op metric for when metrics are disabled."""

    def labels(self, **kwargs: Any) -> "NoOpMetric":
        """Return self for chaining."""
        return self

    def inc(self, amount: float = 1) -> None:
        """No-op."""
        pass

    def observe(self, amount: float) -> None:
        """No-op."""
        pass


@dataclass
class MetricsRegistry:
    """Registry for Prometheus metrics."""

    enabled: bool | None = None

    races_total: Any = None
    race_duration_seconds: Any = None
    operations_total: Any = None
    staged_escalations_total: Any = None

    # Internal state
    _initialized: bool = field(default=False, repr=False)
    _registry: CollectorRegistry | None = field(default=None, repr=False)

    def initialize(self) -> None:
        """Initialize Prometheus metrics."""
        if self._initialized:
            return

        if self.enabled is None:
            self.enabled = settings.enable_metrics

        if not self.enabled:
            noop = NoOpMetric()
            self.races_total = noop
            self.race_duration_seconds = noop
            self.operations_total = noop
            self.staged_escalations_total = noop
            self._initialized = True
            logger.info("Metrics are disabled")
            return

        self._registry = CollectorRegistry()

        self.races_total = Counter(
            "raceway_races_total",
            "Total races by kind and result",
            ["kind", "result"],
            registry=self._registry,
        )

        self.race_duration_seconds = Histogram(
            "raceway_race_duration_seconds",
            "Race latency in seconds",
            ["kind"],
            buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
            registry=self._registry,
        )

        self.operations_total = Counter(
            "raceway_operations_total",
            "Operations launched by races, by outcome",
            ["outcome"],
            registry=self._registry,
        )

        self.staged_escalations_total = Counter(
            "raceway_staged_escalations_total",
            "Staged races that launched their secondaries",
            ["reason"],
            registry=self._registry,
        )

        self._initialized = True
        logger.debug("Prometheus metrics initialized")

    def generate_latest(self) -> bytes:
        """Generate Prometheus metrics in exposition format."""
        if self._registry is None:
            return b"# Metrics disabled\n"
        return _generate_latest(self._registry)


# Global metrics registry
metrics_registry = MetricsRegistry()


def get_metrics() -> MetricsRegistry:
    """Get the global metrics registry.

    Initializes metrics on first access.
    """
    if not metrics_registry._initialized:
        metrics_registry.initialize()
    return metrics_registry
