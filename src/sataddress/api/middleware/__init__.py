"""API middleware — CORS, metrics."""

from sataddress.api.middleware.cors import setup_cors
from sataddress.metrics.middleware import PrometheusMiddleware

__all__ = ["PrometheusMiddleware", "setup_cors"]
