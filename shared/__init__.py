"""
Shared utilities for the Google Analytics exporter.

This package aggregates common building blocks consumed by the service:

- config: Process settings via pydantic-settings
- logging: Structured logging with metric correlation
- metrics: Prometheus self-instrumentation helpers
- errors: Canonical error types and responses
- base_service: FastAPI application shell with /health and /metrics

Do not import from service_* packages into shared/.
"""
