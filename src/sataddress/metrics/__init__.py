"""Metrics — Prometheus metrics collection and exposure."""

from __future__ import annotations

from sataddress.metrics.collector import LnurlMetrics, MetricsCollector

__all__ = ["LnurlMetrics", "MetricsCollector"]
