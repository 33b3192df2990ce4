"""
Network measurement statistics.

Pure functions and lightweight dataclasses -- no I/O, no side effects.
Everything here is deterministic and easy to unit-test.
"""
from __future__ import annotations

import math
import statistics
from dataclasses import dataclass
from typing import Iterable, List, Sequence


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Sample:
    """A single timed latency attempt."""

    elapsed_ms: float = 0.0
    succeeded: bool = True


@dataclass
class LatencyMetrics:
    """Reduced output of the latency phase."""

    average_ms: int = 0
    jitter_ms: int = 0
    loss_percent: float = 0.0

    def to_dict(self) -> dict:
        return {
            "average_ms": self.average_ms,
            "jitter_ms": self.jitter_ms,
            "loss_percent": round(self.loss_percent, 3),
        }


# ---------------------------------------------------------------------------
# Reducers
# ---------------------------------------------------------------------------

def reduce_latency(samples: Sequence[Sample]) -> LatencyMetrics:
    """
    Collapse latency attempts into average, jitter and loss.

    Average and jitter only look at successful attempts so that timeouts do
    not inflate them.  Loss is the share of failed attempts, unrounded.
    """
    total = len(samples)
    if total == 0:
        return LatencyMetrics()

    times = [s.elapsed_ms for s in samples if s.succeeded]
    if not times:
        return LatencyMetrics(average_ms=0, jitter_ms=0, loss_percent=100.0)

    failed = total - len(times)
    return LatencyMetrics(
        average_ms=int(_round_half_up(statistics.mean(times))),
        jitter_ms=int(_round_half_up(calculate_jitter(times))),
        loss_percent=100.0 * failed / total,
    )


def reduce_throughput(speeds_mbps: Iterable[float]) -> float:
    """
    Median of per-transfer rates, rounded to 0.1 Mbps.

    For an even count this takes the element at ``n // 2`` of the sorted
    rates rather than averaging the two middle values.
    """
    ordered = sorted(speeds_mbps)
    if not ordered:
        return 0.0
    return _round_half_up(ordered[len(ordered) // 2], 1)


# ---------------------------------------------------------------------------
# Pure helper functions
# ---------------------------------------------------------------------------

def calculate_jitter(samples: List[float]) -> float:
    """Mean absolute difference between consecutive samples."""
    if len(samples) < 2:
        return 0.0
    diffs = [abs(samples[i] - samples[i - 1]) for i in range(1, len(samples))]
    return statistics.mean(diffs)


def calculate_mbps(byte_count: int, seconds: float) -> float:
    """Bitrate in decimal megabits per second; 0 for a non-positive window."""
    if seconds <= 0:
        return 0.0
    return (byte_count * 8) / (1_000_000 * seconds)


def _round_half_up(value: float, digits: int = 0) -> float:
    # round() uses banker's rounding; measurements want .5 to go up.
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------

def format_speed(speed_mbps: float) -> str:
    """Human-readable speed string."""
    if speed_mbps >= 1000:
        return f"{speed_mbps / 1000:.2f} Gbps"
    return f"{speed_mbps:.1f} Mbps"


def format_latency(latency_ms: float) -> str:
    """Human-readable latency string."""
    if latency_ms >= 1000:
        return f"{latency_ms / 1000:.2f} s"
    return f"{latency_ms:.0f} ms"
