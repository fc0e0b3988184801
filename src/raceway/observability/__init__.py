"""Observability for raceway.

Provides metrics and structured logging:
- Prometheus metrics per race and per operation
- JSON structured logging with race correlation IDs
"""

from raceway.observability.logging import (
    LogContext,
    configure_logging,
    race_id_var,
    race_kind_var,
)
from raceway.observability.metrics import (
    MetricsRegistry,
    get_metrics,
    metrics_registry,
)

__all__ = [
    # Logging
    "configure_logging",
    "LogContext",
    "race_id_var",
    "race_kind_var",
    # Metrics
    "MetricsRegistry",
    "metrics_registry",
    "get_metrics",
]
