"""Logging and metrics for ReadCore."""

from __future__ import annotations

from .logging import configure_logging, request_context
from .metrics import METRICS, export_prometheus, increment, observe, set_enabled

__all__ = ["configure_logging", "request_context", "METRICS", "export_prometheus", "increment", "observe", "set_enabled"]
