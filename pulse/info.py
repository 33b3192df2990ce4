"""
Connection metadata lookup.

Fetches the client's public IP, ISP and rough location from an ipapi.co
style JSON endpoint.  The lookup never fails a run: any error is logged
and reported as ``None`` so the caller leaves the fields blank.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import aiohttp

from .constants import COMMON_HEADERS, INFO_TIMEOUT, INFO_URL, UNKNOWN_CONNECTION_TYPE

logger = logging.getLogger(__name__)


@dataclass
class ConnectionInfo:
    """Information about the client's connection."""

    ip: str = ""
    isp: str = ""
    city: str = ""
    country: str = ""
    connection_type: str = UNKNOWN_CONNECTION_TYPE

    @property
    def location(self) -> str:
        return ", ".join(part for part in (self.city, self.country) if part)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ConnectionInfo:
        return cls(
            ip=str(data.get("ip") or ""),
            isp=str(data.get("org") or data.get("asn") or ""),
            city=str(data.get("city") or ""),
            country=str(data.get("country_name") or data.get("country") or ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ip": self.ip,
            "isp": self.isp,
            "location": self.location,
            "connection_type": self.connection_type,
        }


class ConnectionInfoProvider:
    """Look up :class:`ConnectionInfo` over HTTP."""

    def __init__(self, url: str = INFO_URL, timeout: float = INFO_TIMEOUT) -> None:
        self.url = url
        self.timeout = timeout

    async def lookup(self) -> Optional[ConnectionInfo]:
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        try:
            async with aiohttp.ClientSession(headers=COMMON_HEADERS, timeout=timeout) as session:
                async with session.get(self.url) as resp:
                    resp.raise_for_status()
                    data = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError, ValueError) as exc:
            logger.warning("Connection info lookup failed: %s", exc)
            return None

        if not isinstance(data, dict):
            logger.warning("Connection info lookup returned %s, expected an object", type(data).__name__)
            return None
        return ConnectionInfo.from_dict(data)
