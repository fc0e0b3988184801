"""Tests for Prometheus metrics."""

import pytest

from raceway.errors import AggregateError, RaceTimeoutError
from raceway.observability.metrics import MetricsRegistry, NoOpMetric, get_metrics
from raceway.racer import Racer
from raceway.staged import StagedRacer


def sample(name: str, **labels: str) -> float:
    """Read a sample from the global registry, 0 when absent."""
    metrics = get_metrics()
    value = metrics._registry.get_sample_value(name, labels)
    return value or 0.0


class TestMetricsRegistry:
    """Tests for MetricsRegistry."""

    def test_enabled_registry_exposes_metrics(self) -> None:
        """An enabled registry creates real collectors."""
        registry = MetricsRegistry(enabled=True)
        registry.initialize()

        registry.races_total.labels(kind="race", result="success").inc()
        registry.operations_total.labels(outcome="failure").inc(2)

        output = registry.generate_latest().decode()
        assert 'raceway_races_total{kind="race",result="success"} 1.0' in output
        assert 'raceway_operations_total{outcome="failure"} 2.0' in output
        assert "raceway_race_duration_seconds" in output
        assert "raceway_staged_escalations_total" in output

    def test_registries_are_independent(self) -> None:
        """Each registry owns its collectors, so two can coexist."""
        first = MetricsRegistry(enabled=True)
        second = MetricsRegistry(enabled=True)
        first.initialize()
        second.initialize()

        first.races_total.labels(kind="race", result="timeout").inc()

        assert "timeout" not in second.generate_latest().decode()

    def test_disabled_registry_uses_noops(self) -> None:
        """A disabled registry accepts calls and exports nothing."""
        registry = MetricsRegistry(enabled=False)
        registry.initialize()

        assert isinstance(registry.races_total, NoOpMetric)
        registry.races_total.labels(kind="race", result="success").inc()
        registry.race_duration_seconds.labels(kind="race").observe(0.1)
        assert registry.generate_latest() == b"# Metrics disabled\n"

    def test_initialize_is_idempotent(self) -> None:
        """Initializing twice keeps the same collectors."""
        registry = MetricsRegistry(enabled=True)
        registry.initialize()
        counter = registry.races_total
        registry.initialize()

        assert registry.races_total is counter

    def test_enabled_follows_settings(self, monkeypatch) -> None:
        """Without an explicit flag the registry follows settings."""
        monkeypatch.setattr("raceway.config.settings.enable_metrics", False)
        registry = MetricsRegistry()
        registry.initialize()

        assert registry.enabled is False


class TestRaceMetrics:
    """Races record their outcome in the global registry."""

    async def test_success_recorded(self, scripted) -> None:
        """A won race increments the success counter."""
        before = sample("raceway_races_total", kind="race", result="success")
        ops_before = sample("raceway_operations_total", outcome="success")

        await Racer(scripted({"a": (0.0, "A")})).between(["a"])

        assert sample("raceway_races_total", kind="race", result="success") == before + 1
        assert sample("raceway_operations_total", outcome="success") == ops_before + 1

    async def test_all_failed_recorded(self, scripted) -> None:
        """An aggregate failure increments all_failed."""
        before = sample("raceway_races_total", kind="race", result="all_failed")

        with pytest.raises(AggregateError):
            await Racer(scripted({"a": (0.0, OSError("x"))})).between(["a"])

        assert sample("raceway_races_total", kind="race", result="all_failed") == before + 1

    async def test_timeout_recorded(self, scripted) -> None:
        """A race timeout increments timeout."""
        before = sample("raceway_races_total", kind="race", result="timeout")

        with pytest.raises(RaceTimeoutError):
            await Racer(scripted({"a": (0.5, "A")}), timeout=0.01).between(["a"])

        assert sample("raceway_races_total", kind="race", result="timeout") == before + 1

    async def test_empty_batch_recorded(self, scripted) -> None:
        """An empty batch increments empty."""
        before = sample("raceway_races_total", kind="race", result="empty")

        with pytest.raises(AggregateError):
            await Racer(scripted({})).between([])

        assert sample("raceway_races_total", kind="race", result="empty") == before + 1

    async def test_staged_escalation_reasons(self, scripted) -> None:
        """Staged races record why they launched their secondaries."""
        failed_before = sample("raceway_staged_escalations_total", reason="primary_failed")
        expired_before = sample("raceway_staged_escalations_total", reason="warm_up_expired")

        executor = scripted(
            {
                "broken": (0.0, OSError("down")),
                "slow": (0.3, "late"),
                "backup": (0.0, "ok"),
            }
        )
        racer = StagedRacer(executor, warm_up=0.01)
        await racer.first_then_start("broken", ["backup"])
        await racer.first_then_start("slow", ["backup"])

        assert (
            sample("raceway_staged_escalations_total", reason="primary_failed")
            == failed_before + 1
        )
        assert (
            sample("raceway_staged_escalations_total", reason="warm_up_expired")
            == expired_before + 1
        )
        assert sample("raceway_race_duration_seconds_count", kind="staged") >= 2
