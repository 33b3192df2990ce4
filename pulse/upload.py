"""
Upload speed test module.
Uses HTTPS POST of fixed-size zero-filled bodies to measure upload speed.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, List, Optional, Sequence

import aiohttp

from .cancel import CancelToken, OperationCancelled
from .constants import (
    COMMON_HEADERS,
    TRANSFER_CONNECT_TIMEOUT,
    TRANSFER_READ_TIMEOUT,
    UPLOAD_SIZES,
    UPLOAD_URL,
)
from .stats import calculate_mbps, reduce_throughput

logger = logging.getLogger(__name__)


class UploadProbe:
    """
    Sequential upload speed tester.

    The send side gives no progress signal, so each payload is timed from
    request start until the server's response has been read in full, and a
    single progress event is emitted per payload.
    """

    def __init__(
        self,
        url: str = UPLOAD_URL,
        sizes: Sequence[int] = UPLOAD_SIZES,
    ) -> None:
        self.url = url
        self.sizes = list(sizes)

    async def run(
        self,
        token: CancelToken,
        on_progress: Optional[Callable[[float, float], None]] = None,
    ) -> float:
        rates: List[float] = []
        count = len(self.sizes)

        timeout = aiohttp.ClientTimeout(
            total=None,
            connect=TRANSFER_CONNECT_TIMEOUT,
            sock_read=TRANSFER_READ_TIMEOUT,
        )
        headers = {**COMMON_HEADERS, "Content-Type": "application/octet-stream"}

        async with aiohttp.ClientSession(headers=headers, timeout=timeout) as session:
            for idx, size in enumerate(self.sizes):
                try:
                    rate = await token.guard(self._transfer(session, size))
                except OperationCancelled:
                    break
                except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as exc:
                    logger.debug("upload: %d bytes failed: %s", size, exc)
                    rate = None

                if token.cancelled:
                    break
                if rate is not None:
                    rates.append(rate)
                if on_progress:
                    on_progress(100 * (idx + 1) / count, rate or 0.0)

        speed = reduce_throughput(rates)
        logger.debug("upload: %d/%d transfers ok, median %.1f Mbps", len(rates), count, speed)
        return speed

    async def _transfer(self, session: aiohttp.ClientSession, size: int) -> Optional[float]:
        """POST one payload; return its Mbps, or None on a non-2xx status."""
        payload = bytes(size)
        start = time.perf_counter()

        async with session.post(self.url, data=payload) as resp:
            await resp.read()
            if not 200 <= resp.status < 300:
                logger.debug("upload: %d bytes -> HTTP %d", size, resp.status)
                return None

        return calculate_mbps(size, time.perf_counter() - start) or None
