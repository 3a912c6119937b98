"""
Google Analytics Realtime Reporting API client.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from shared.config import DEFAULT_REALTIME_API_URL
from shared.errors import AuthenticationError, DataSourceError
from shared.logging import get_logger

from .credentials import ServiceAccountTokenSource


@dataclass
class QueryResult:
    """Rows returned by one realtime query; every cell is a string."""
    rows: List[List[str]] = field(default_factory=list)
    total_results: int = 0

    @classmethod
    def from_response(cls, payload: Dict[str, Any]) -> "QueryResult":
        rows = [[str(cell) for cell in row] for row in payload.get("rows") or []]
        return cls(rows=rows, total_results=int(payload.get("totalResults", len(rows))))


class RealtimeClient:
    """Client for the `data/realtime` endpoint of the Analytics v3 API."""

    def __init__(
        self,
        token_source: ServiceAccountTokenSource,
        api_url: str = DEFAULT_REALTIME_API_URL,
        timeout: Optional[float] = None,
    ):
        self.token_source = token_source
        self.api_url = api_url
        self.timeout = timeout
        self.logger = get_logger("ga_exporter.realtime_client")

    async def get(self, view_id: str, metric: str, dimensions: Optional[str] = None) -> QueryResult:
        """Query current values of ``metric`` for ``view_id``."""
        params = {"ids": view_id, "metrics": metric}
        if dimensions:
            params["dimensions"] = dimensions

        try:
            token = await self.token_source.get_token()
        except AuthenticationError as e:
            raise DataSourceError(metric, e.message, e.details) from e

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(
                    self.api_url,
                    params=params,
                    headers={"Authorization": f"Bearer {token}"},
                )
        except httpx.HTTPError as e:
            self.logger.error("Realtime request failed", metric=metric, error=str(e))
            raise DataSourceError(metric, f"Request failed: {e}") from e

        if response.status_code == 401:
            # Token revoked or expired early; the next run exchanges a new one
            self.token_source.invalidate()

        if response.status_code != 200:
            self.logger.error(
                "Realtime API error",
                metric=metric,
                status_code=response.status_code,
            )
            raise DataSourceError(
                metric,
                f"API returned status {response.status_code}",
                {"status_code": response.status_code, "body": response.text[:500]},
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise DataSourceError(metric, "Response is not valid JSON") from e

        result = QueryResult.from_response(payload)
        self.logger.debug("Realtime data retrieved", metric=metric, rows=len(result.rows))
        return result
