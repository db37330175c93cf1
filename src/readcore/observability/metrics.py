"""
Defines Prometheus metrics for extraction and artifact caching.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, Optional

from prometheus_client import REGISTRY as _PROM_REGISTRY
from prometheus_client import Counter as _OrigCounter
from prometheus_client import Histogram as _OrigHistogram

# ---------------------------------------------------------------------------
# Duplicate-safe Prometheus metric wrappers
# ---------------------------------------------------------------------------
# Defined before any metric creation so that re-importing this module (as the
# test suite does) reuses collectors instead of failing on duplicate names.


def _duplicate_safe_factory(metric_cls):
    """Return a factory that reuses an existing collector if already present."""

    def _factory(name: str, documentation: str, *args, **kwargs):  # type: ignore[override]
        existing = _PROM_REGISTRY._names_to_collectors.get(name)
        if existing is not None:
            return existing  # type: ignore[return-value]

        try:
            return metric_cls(name, documentation, *args, **kwargs)  # type: ignore[call-arg]
        except ValueError:
            # Registration lost the race; fall back to the now-existing collector.
            return _PROM_REGISTRY._names_to_collectors[name]  # type: ignore[return-value]

    return _factory


Counter = _duplicate_safe_factory(_OrigCounter)  # type: ignore[assignment]
Histogram = _duplicate_safe_factory(_OrigHistogram)  # type: ignore[assignment]


def _create_metrics() -> Dict[str, Any]:
    return {
        "strategy_attempts": Counter(
            "readcore_strategy_attempts_total",
            "Extraction strategy attempts by outcome",
            ["strategy", "outcome"],
        ),
        "extractions": Counter(
            "readcore_extractions_total",
            "Completed extraction calls by result",
            ["result"],
        ),
        "extraction_duration_seconds": Histogram(
            "readcore_extraction_duration_seconds",
            "Time taken by one extraction call",
            buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
        ),
        "cache_requests": Counter(
            "readcore_cache_requests_total",
            "Artifact cache lookups by result",
            ["result"],
        ),
        "cache_evictions": Counter(
            "readcore_cache_evictions_total",
            "Artifact cache removals by reason",
            ["reason"],
        ),
        "summarizer_calls": Counter(
            "readcore_summarizer_calls_total",
            "Summarizer invocations by outcome",
            ["outcome"],
        ),
    }


METRICS: Dict[str, Any] = _create_metrics()

_enabled = True
_enabled_lock = threading.Lock()


def set_enabled(enabled: bool) -> None:
    """Turn metric recording on or off process-wide."""
    global _enabled
    with _enabled_lock:
        _enabled = enabled


def increment(name: str, value: float = 1.0, labels: Optional[Dict[str, Any]] = None) -> None:
    """Increment a counter metric."""
    if not _enabled or name not in METRICS:
        return
    metric = METRICS[name]
    if labels is not None:
        metric.labels(**labels).inc(value)
    else:
        metric.inc(value)


def observe(name: str, value: float, labels: Optional[Dict[str, Any]] = None) -> None:
    """Observe a histogram metric."""
    if not _enabled or name not in METRICS:
        return
    metric = METRICS[name]
    if labels is not None:
        metric.labels(**labels).observe(value)
    else:
        metric.observe(value)


def export_prometheus() -> str:
    """Export metrics in Prometheus text format."""
    from prometheus_client import generate_latest

    return generate_latest().decode("utf-8")
