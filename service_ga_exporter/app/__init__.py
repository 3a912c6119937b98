"""
Google Analytics exporter package.

Polls the Google Analytics Realtime Reporting API on a fixed interval and
republishes the results as Prometheus gauges on the `/metrics` endpoint.
"""
