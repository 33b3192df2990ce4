"""
Download speed test module.

Fetches a ladder of fixed-size payloads one at a time.  While a body is
streaming, every received chunk refreshes a live bitrate for the progress
callback; once a body completes, its whole-transfer rate is kept.  The
final speed is the median of the per-transfer rates.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, List, Optional, Sequence

import aiohttp

from .cancel import CancelToken, OperationCancelled
from .constants import (
    CHUNK_SIZE,
    COMMON_HEADERS,
    DOWNLOAD_SIZES,
    DOWNLOAD_URL,
    TRANSFER_CONNECT_TIMEOUT,
    TRANSFER_READ_TIMEOUT,
)
from .stats import calculate_mbps, reduce_throughput

logger = logging.getLogger(__name__)


class DownloadProbe:
    """
    Sequential download speed tester.

    Each payload is requested with ``GET {url}?bytes=N``.  A payload that
    fails (non-2xx status, network error, short body) is skipped and the
    probe moves on to the next size.
    """

    def __init__(
        self,
        url: str = DOWNLOAD_URL,
        sizes: Sequence[int] = DOWNLOAD_SIZES,
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
        headers = {**COMMON_HEADERS, "Accept-Encoding": "identity"}

        async with aiohttp.ClientSession(headers=headers, timeout=timeout) as session:
            for idx, size in enumerate(self.sizes):
                percent = 100 * idx / count

                def _live(mbps: float, percent: float = percent) -> None:
                    if on_progress and not token.cancelled:
                        on_progress(percent, mbps)

                try:
                    rate = await token.guard(self._transfer(session, size, token, _live))
                except OperationCancelled:
                    break
                except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as exc:
                    logger.debug("download: %d bytes failed: %s", size, exc)
                    rate = None

                if token.cancelled:
                    break
                if rate is not None:
                    rates.append(rate)
                if on_progress:
                    on_progress(100 * (idx + 1) / count, rate or 0.0)

        speed = reduce_throughput(rates)
        logger.debug("download: %d/%d transfers ok, median %.1f Mbps", len(rates), count, speed)
        return speed

    async def _transfer(
        self,
        session: aiohttp.ClientSession,
        size: int,
        token: CancelToken,
        on_live: Callable[[float], None],
    ) -> Optional[float]:
        """Stream one payload; return its overall Mbps, or None if unusable."""
        start = time.perf_counter()

        async with session.get(self.url, params={"bytes": str(size)}) as resp:
            if not 200 <= resp.status < 300:
                logger.debug("download: %d bytes -> HTTP %d", size, resp.status)
                return None

            received = 0
            first_byte = time.perf_counter()
            async for chunk in resp.content.iter_chunked(CHUNK_SIZE):
                if token.cancelled:
                    raise OperationCancelled()
                received += len(chunk)
                elapsed = time.perf_counter() - first_byte
                if elapsed > 0:
                    on_live(calculate_mbps(received, elapsed))

        duration = time.perf_counter() - start
        if received < size:
            logger.debug("download: short body %d/%d bytes", received, size)
            return None
        return calculate_mbps(size, duration) or None
