"""
HTTP round-trip latency measurement.

Each attempt is a ``HEAD`` request against a lightweight endpoint with a
hard timeout.  Attempts run strictly one after another so the probe never
competes with itself for the link::

    1. HEAD {url}            (Cache-Control: no-store)
    2. record elapsed time, or a failure on timeout / network error
    3. report progress, pause, repeat
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, List, Optional

import aiohttp

from .cancel import CancelToken, OperationCancelled
from .constants import (
    COMMON_HEADERS,
    DEFAULT_PING_COUNT,
    DEFAULT_PING_DELAY_MS,
    DEFAULT_PING_TIMEOUT_MS,
    LATENCY_URL,
)
from .stats import LatencyMetrics, Sample, reduce_latency

logger = logging.getLogger(__name__)


class LatencyProbe:
    """Measure ping, jitter and loss with repeated HEAD requests."""

    def __init__(
        self,
        url: str = LATENCY_URL,
        attempts: int = DEFAULT_PING_COUNT,
        timeout_ms: int = DEFAULT_PING_TIMEOUT_MS,
        delay_ms: int = DEFAULT_PING_DELAY_MS,
    ) -> None:
        self.url = url
        self.attempts = attempts
        self.timeout_ms = timeout_ms
        self.delay_ms = delay_ms

    async def run(
        self,
        token: CancelToken,
        on_progress: Optional[Callable[[float], None]] = None,
    ) -> LatencyMetrics:
        samples: List[Sample] = []
        timeout = aiohttp.ClientTimeout(total=self.timeout_ms / 1000)

        async with aiohttp.ClientSession(headers=COMMON_HEADERS, timeout=timeout) as session:
            for i in range(self.attempts):
                try:
                    samples.append(await token.guard(self._ping_once(session)))
                except OperationCancelled:
                    break

                if token.cancelled:
                    break
                if on_progress:
                    on_progress(100 * (i + 1) / self.attempts)

                if i < self.attempts - 1 and await token.sleep(self.delay_ms / 1000):
                    break

        metrics = reduce_latency(samples)
        logger.debug(
            "latency: %d/%d attempts, avg=%d ms jitter=%d ms loss=%.1f%%",
            len(samples), self.attempts,
            metrics.average_ms, metrics.jitter_ms, metrics.loss_percent,
        )
        return metrics

    async def _ping_once(self, session: aiohttp.ClientSession) -> Sample:
        """One HEAD round-trip.  Any HTTP response counts as a reply."""
        start = time.perf_counter()
        try:
            async with session.head(self.url, allow_redirects=False):
                pass
        except asyncio.TimeoutError:
            logger.debug("latency: attempt timed out after %d ms", self.timeout_ms)
            return Sample(succeeded=False)
        except (aiohttp.ClientError, OSError) as exc:
            logger.debug("latency: attempt failed: %s", exc)
            return Sample(succeeded=False)
        return Sample(elapsed_ms=(time.perf_counter() - start) * 1000)
