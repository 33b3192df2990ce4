"""netpulse measurement engine -- probes, statistics and run orchestration."""

from .cancel import CancelToken, OperationCancelled
from .download import DownloadProbe
from .info import ConnectionInfo, ConnectionInfoProvider
from .latency import LatencyProbe
from .models import Phase, ProgressEvent, TestResult
from .orchestrator import TestOrchestrator
from .stats import (
    LatencyMetrics,
    Sample,
    calculate_jitter,
    calculate_mbps,
    format_latency,
    format_speed,
    reduce_latency,
    reduce_throughput,
)
from .upload import UploadProbe

__all__ = [
    "CancelToken",
    "ConnectionInfo",
    "ConnectionInfoProvider",
    "DownloadProbe",
    "LatencyMetrics",
    "LatencyProbe",
    "OperationCancelled",
    "Phase",
    "ProgressEvent",
    "Sample",
    "TestOrchestrator",
    "TestResult",
    "UploadProbe",
    "calculate_jitter",
    "calculate_mbps",
    "format_latency",
    "format_speed",
    "reduce_latency",
    "reduce_throughput",
]
