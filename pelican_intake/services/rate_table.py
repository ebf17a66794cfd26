"""Retainer rate table for labor pricing.

Resolves hourly rates per rate class from an injected async source,
falling back to built-in defaults when the source fails or lacks a class.
"""

from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Union

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
import structlog

from pelican_intake.config.errors import ErrorCode

logger = structlog.get_logger(__name__)

MANUAL_LABOR = "Manual Labor"
PROJECT_MANAGEMENT = "Project Management"
CONSTRUCTION_SUPERVISION = "Construction Supervision"

DEFAULT_RATES: Dict[str, float] = {
    MANUAL_LABOR: 45,
    PROJECT_MANAGEMENT: 85,
    CONSTRUCTION_SUPERVISION: 95,
}

RATE_SOURCE_TIMEOUT_SECONDS = 10

RateSource = Callable[[], Awaitable[Mapping[str, float]]]


def map_role_to_rate_type(role: str) -> str:
    """Map a labor role to its rate class by keyword."""
    normalized = (role or "").lower()
    if "project" in normalized:
        return PROJECT_MANAGEMENT
    if "manual" in normalized:
        return MANUAL_LABOR
    return CONSTRUCTION_SUPERVISION


def _normalize_rates(data: Union[Mapping[str, Any], List[Dict[str, Any]]]) -> Dict[str, float]:
    """Accept ``{rateType: rate}`` or rows of ``{rate_type, hourly_rate}``."""
    if isinstance(data, list):
        return {
            str(row["rate_type"]): float(row["hourly_rate"])
            for row in data
            if isinstance(row, dict) and "rate_type" in row and row.get("hourly_rate") is not None
        }
    return {str(key): float(value) for key, value in data.items() if value is not None}


class HttpRateSource:
    """Fetch retainer rates from an HTTP endpoint returning JSON."""

    def __init__(self, url: str, timeout_seconds: float = RATE_SOURCE_TIMEOUT_SECONDS):
        self.url = url
        self.timeout_seconds = timeout_seconds

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=5),
        retry=retry_if_exception_type((httpx.TransportError, httpx.TimeoutException)),
        reraise=True,
    )
    async def __call__(self) -> Dict[str, float]:
        async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
            response = await client.get(self.url)
            response.raise_for_status()
            return _normalize_rates(response.json())


class RateTable:
    """Hourly rates keyed by rate class.

    Args:
        source: Async callable returning ``{rateType: hourlyRate}``. None
            uses the defaults only.
    """

    def __init__(self, source: Optional[RateSource] = None):
        self.source = source
        self._rates: Dict[str, float] = {}
        self._loaded = False

    @classmethod
    def from_rates(cls, rates: Mapping[str, float]) -> "RateTable":
        """Build a table from already known rates."""
        table = cls()
        table._rates = dict(rates)
        table._loaded = True
        return table

    async def load(self) -> Dict[str, float]:
        """Load rates from the source once. Source failures keep the defaults."""
        if self._loaded:
            return dict(self._rates)
        self._loaded = True
        if self.source is None:
            return {}
        try:
            self._rates = _normalize_rates(await self.source())
        except Exception as e:
            logger.warning(
                "rate_table_unavailable",
                code=ErrorCode.RATE_TABLE_UNAVAILABLE,
                error=str(e),
            )
            self._rates = {}
        return dict(self._rates)

    def rate_for(self, rate_type: str) -> float:
        """Get the hourly rate for a class, falling back to defaults."""
        rate = self._rates.get(rate_type)
        if rate is None:
            return DEFAULT_RATES[rate_type]
        return rate

    def rate_for_role(self, role: str) -> float:
        return self.rate_for(map_role_to_rate_type(role))
