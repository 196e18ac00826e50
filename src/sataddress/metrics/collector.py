"""Metrics collector — Prometheus counters, gauges, histograms.

- ``lnurl_info_calls_total`` counter — pay request (phase 1) responses
- ``lnurl_invoices_total`` counter-vec — issued invoices by backend
- ``lnurl_invoice_failures_total`` counter-vec — failed invoice requests by code
- ``lnurl_backend_call_seconds`` histogram-vec — backend invoice call duration
- ``lnurl_addresses_total`` gauge — registered addresses (set by stats runs)
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import TYPE_CHECKING

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram

if TYPE_CHECKING:
    from collections.abc import Iterator


_PREFIX = "lnurl"


class MetricsCollector:
    """Low-level Prometheus collector that owns the registry.

    Use :class:`LnurlMetrics` for the high-level tracking interface.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self._registry = registry or CollectorRegistry()

    @property
    def registry(self) -> CollectorRegistry:
        """Return the underlying Prometheus registry."""
        return self._registry

    def gauge(self, name: str, doc: str, labels: tuple[str, ...] = ()) -> Gauge:
        """Register and return a Gauge."""
        return Gauge(name, doc, labels, registry=self._registry)

    def histogram(self, name: str, doc: str, labels: tuple[str, ...] = ()) -> Histogram:
        """Register and return a Histogram."""
        return Histogram(name, doc, labels, registry=self._registry)

    def counter(self, name: str, doc: str, labels: tuple[str, ...] = ()) -> Counter:
        """Register and return a Counter."""
        return Counter(name, doc, labels, registry=self._registry)


class LnurlMetrics:
    """High-level LNURL-pay metrics."""

    def __init__(self, collector: MetricsCollector | None = None) -> None:
        self._collector = collector or MetricsCollector()

        self._info_calls = self._collector.counter(
            f"{_PREFIX}_info_calls_total",
            "Pay request parameter responses",
        )
        self._invoices = self._collector.counter(
            f"{_PREFIX}_invoices_total",
            "Invoices issued",
            ("backend",),
        )
        self._failures = self._collector.counter(
            f"{_PREFIX}_invoice_failures_total",
            "Invoice requests answered with an LNURL error",
            ("code",),
        )
        self._backend_call = self._collector.histogram(
            f"{_PREFIX}_backend_call_seconds",
            "Duration of backend invoice calls",
            ("backend",),
        )
        self._addresses = self._collector.gauge(
            f"{_PREFIX}_addresses_total",
            "Registered addresses as of the last stats run",
        )

    @property
    def registry(self) -> CollectorRegistry:
        """Return the underlying Prometheus registry."""
        return self._collector.registry

    def info_call(self) -> None:
        self._info_calls.inc()

    def invoice_issued(self, backend: str) -> None:
        self._invoices.labels(backend=backend).inc()

    def invoice_failed(self, code: str) -> None:
        self._failures.labels(code=code).inc()

    def set_address_count(self, count: int) -> None:
        self._addresses.set(count)

    @contextmanager
    def track_backend_call(self, backend: str) -> Iterator[None]:
        """Track the duration of one backend invoice call."""
        start = time.monotonic()
        try:
            yield
        finally:
            self._backend_call.labels(backend=backend).observe(time.monotonic() - start)
