"""
Clients package for the exporter.

Contains the HTTP client for the Google Analytics Realtime API and the
service-account token source that authenticates it.
"""

from .credentials import ServiceAccountTokenSource
from .realtime import QueryResult, RealtimeClient

__all__ = ["QueryResult", "RealtimeClient", "ServiceAccountTokenSource"]
