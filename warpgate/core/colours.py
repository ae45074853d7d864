"""
Production Colour Resolver - which blue/green stack is live right now.

The colour signal is a JSON document refreshed by an external job:

    {"isGreen": true, "isBlue": false, "lastUpdated": "2016-08-01T04:00:09.781Z"}

It is only trusted when it is recent. If the job refreshes hourly, a
freshness window of 70 minutes leaves a margin for a late run.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import httpx

from ..models.deployment import Colour
from .logger import get_logger

DEFAULT_FRESHNESS_MINUTES = 70


_ISO_TIMESTAMP = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}(?::\d{2})?)"
    r"(?:[.,](?P<fraction>\d+))?"
    r"(?P<offset>Z|[+-]\d{2}(?::?\d{2})?)?$"
)


def _parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if not isinstance(value, str):
        return None
    match = _ISO_TIMESTAMP.match(value.strip())
    if not match:
        return None
    # datetime.fromisoformat before 3.11 only takes 3 or 6 fraction digits and +HH:MM offsets
    text = match.group("base")
    if match.group("fraction"):
        text += "." + match.group("fraction")[:6].ljust(6, "0")
    offset = match.group("offset")
    if offset and offset != "Z":
        hours, minutes = offset[1:3], offset[3:].lstrip(":") or "00"
        text += f"{offset[0]}{hours}:{minutes}"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if offset in (None, "Z"):
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class ProductionColourResolver:
    """
    Resolves the current production colour from the colour signal endpoint.

    Usage:
        resolver = ProductionColourResolver(properties.production_colours_url)
        colour = await resolver.get_colour()
        if colour is None:
            ...  # unknown, do not deploy
    """

    def __init__(
        self,
        url: str,
        freshness_minutes: int = DEFAULT_FRESHNESS_MINUTES,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not url:
            raise ValueError("URL for ProductionColourResolver is not defined")
        self.url = url
        self.freshness_minutes = freshness_minutes
        self.timeout = timeout
        self._transport = transport
        self.logger = get_logger("ProductionColourResolver")

    async def get_colour(self) -> Optional[Colour]:
        """
        Fetch the live colour.

        Returns:
            The live Colour, or None when the signal is stale, ambiguous,
            malformed or unreachable.
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(self.url)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            self.logger.error("Can't get info about current production colours", url=self.url, error=str(e))
            return None

        if not self.is_data_valid(data, freshness_minutes=self.freshness_minutes):
            self.logger.error("Info about production colours is invalid or too old", data=data)
            return None

        if data.get("isGreen"):
            return Colour.GREEN
        if data.get("isBlue"):
            return Colour.BLUE

        self.logger.error("Info about current production colours is weird", data=data)
        return None

    @staticmethod
    def is_data_valid(
        data: Any,
        freshness_minutes: int = DEFAULT_FRESHNESS_MINUTES,
        now: Optional[datetime] = None,
    ) -> bool:
        """Check that the signal carries a fresh timestamp and no switch is in progress."""
        if not isinstance(data, dict):
            return False
        updated = _parse_timestamp(data.get("lastUpdated"))
        if updated is None:
            return False
        # Both colours live means an environment switch is in progress
        if data.get("isGreen") and data.get("isBlue"):
            return False
        now = now or datetime.now(timezone.utc)
        return now - updated < timedelta(minutes=freshness_minutes)
