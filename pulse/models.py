"""Run-level data models shared by the orchestrator, the UI and the history store."""
from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Dict

from .constants import SERVER_LABEL


class Phase(str, Enum):
    """Stage of a test run."""

    IDLE = "idle"
    PING = "ping"
    DOWNLOAD = "download"
    UPLOAD = "upload"
    COMPLETE = "complete"

    @property
    def is_active(self) -> bool:
        return self in (Phase.PING, Phase.DOWNLOAD, Phase.UPLOAD)


@dataclass(frozen=True)
class ProgressEvent:
    """Transient progress notification for a subscriber."""

    phase: Phase = Phase.IDLE
    percent_complete: float = 0.0
    speed_mbps: float = 0.0


@dataclass
class TestResult:
    """Aggregate record of one run: measurements plus connection metadata."""

    __test__ = False  # not a pytest test class

    download_speed: float = 0.0
    upload_speed: float = 0.0
    ping: int = 0
    jitter: int = 0
    packet_loss: float = 0.0
    connection_type: str = ""
    isp: str = ""
    ip: str = ""
    location: str = ""
    server: str = SERVER_LABEL

    def reset_measurements(self) -> None:
        """Zero the measured fields, keeping connection metadata."""
        self.download_speed = 0.0
        self.upload_speed = 0.0
        self.ping = 0
        self.jitter = 0
        self.packet_loss = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "download_speed": self.download_speed,
            "upload_speed": self.upload_speed,
            "ping": self.ping,
            "jitter": self.jitter,
            "packet_loss": round(self.packet_loss, 3),
            "connection_type": self.connection_type,
            "isp": self.isp,
            "ip": self.ip,
            "location": self.location,
            "server": self.server,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> TestResult:
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})
