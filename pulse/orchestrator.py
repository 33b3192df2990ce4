"""
Test run sequencing.

A run walks ``idle -> ping -> download -> upload -> complete``.  Each phase
is awaited to completion before the next one starts, and its metrics are
merged into the run's :class:`TestResult` as soon as it finishes, so an
observer polling :attr:`TestOrchestrator.result` sees the record fill in.

``stop()`` is abrupt inside a phase (the in-flight request is aborted and
that phase's numbers are dropped) but keeps whatever earlier phases had
already merged.
"""
from __future__ import annotations

import asyncio
import dataclasses
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from .cancel import CancelToken
from .download import DownloadProbe
from .info import ConnectionInfo, ConnectionInfoProvider
from .latency import LatencyProbe
from .models import Phase, ProgressEvent, TestResult
from .upload import UploadProbe

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressEvent], None]
ResultCallback = Callable[[TestResult], None]
PersistCallback = Callable[[TestResult, str], Any]


@dataclass
class RunState:
    """Everything owned by one run; replaced wholesale by ``start()``."""

    token: CancelToken = field(default_factory=CancelToken)
    result: TestResult = field(default_factory=TestResult)
    info_task: Optional[asyncio.Task] = None


class TestOrchestrator:
    """
    Drive the latency, download and upload probes in order.

    Collaborators are injected: *info_provider* supplies connection
    metadata, *persist* stores a finished result with its timestamp,
    *on_progress* and *on_complete* are the subscriber hooks.
    """

    __test__ = False  # not a pytest test class

    def __init__(
        self,
        latency: Optional[LatencyProbe] = None,
        download: Optional[DownloadProbe] = None,
        upload: Optional[UploadProbe] = None,
        info_provider: Optional[ConnectionInfoProvider] = None,
        persist: Optional[PersistCallback] = None,
        server_label: Optional[str] = None,
    ) -> None:
        self.latency = latency or LatencyProbe()
        self.download = download or DownloadProbe()
        self.upload = upload or UploadProbe()
        self.info_provider = info_provider
        self.persist = persist
        self.server_label = server_label
        self.on_progress: Optional[ProgressCallback] = None
        self.on_complete: Optional[ResultCallback] = None

        self._state: Optional[RunState] = None
        self._progress = ProgressEvent()

    # -- Observers ----------------------------------------------------------

    @property
    def phase(self) -> Phase:
        return self._progress.phase

    @property
    def progress(self) -> ProgressEvent:
        return self._progress

    @property
    def is_testing(self) -> bool:
        return self._progress.phase.is_active

    @property
    def result(self) -> Optional[TestResult]:
        """Snapshot of the current (possibly partial) run, if any."""
        if self._state is None:
            return None
        return dataclasses.replace(self._state.result)

    # -- Control ------------------------------------------------------------

    async def start(self) -> Optional[TestResult]:
        """
        Run one full test.

        Returns the finished result, or ``None`` if a run was already in
        progress or this one was stopped.
        """
        if self.is_testing:
            logger.debug("start() ignored: a run is already in progress")
            return None

        previous = self._state.result if self._state else TestResult()
        state = RunState(result=dataclasses.replace(previous))
        state.result.reset_measurements()
        if self.server_label:
            state.result.server = self.server_label
        self._state = state

        if self.info_provider is not None:
            state.info_task = asyncio.ensure_future(self._lookup_info(state))

        try:
            finished = await self._run_phases(state)
        except BaseException:
            self._abort(state)
            raise
        if not finished:
            return None

        self._enter(state, Phase.COMPLETE, percent=100.0)
        final = dataclasses.replace(state.result)
        self._state = None
        logger.info(
            "Run complete: ping=%d ms jitter=%d ms loss=%.1f%% down=%.1f Mbps up=%.1f Mbps",
            final.ping, final.jitter, final.packet_loss,
            final.download_speed, final.upload_speed,
        )

        self._save(final)
        if self.on_complete:
            self.on_complete(dataclasses.replace(final))
        return final

    def stop(self) -> None:
        """Cancel the active run, if any, and return to ``idle``."""
        state = self._state
        if state is None or not self.is_testing:
            return

        self._cancel(state)
        logger.info("Run stopped during %s phase", self._progress.phase.value)
        self._progress = ProgressEvent(Phase.IDLE)
        self._emit(self._progress)

    # -- Internals ----------------------------------------------------------

    async def _run_phases(self, state: RunState) -> bool:
        """Run ping, download and upload; False if the run was cancelled."""
        token = state.token

        self._enter(state, Phase.PING)
        metrics = await self.latency.run(
            token, lambda pct: self._publish(state, Phase.PING, pct, 0.0)
        )
        if token.cancelled:
            return False
        state.result.ping = metrics.average_ms
        state.result.jitter = metrics.jitter_ms
        state.result.packet_loss = metrics.loss_percent

        self._enter(state, Phase.DOWNLOAD)
        speed = await self.download.run(
            token, lambda pct, mbps: self._publish(state, Phase.DOWNLOAD, pct, mbps)
        )
        if token.cancelled:
            return False
        state.result.download_speed = speed

        self._enter(state, Phase.UPLOAD)
        speed = await self.upload.run(
            token, lambda pct, mbps: self._publish(state, Phase.UPLOAD, pct, mbps)
        )
        if token.cancelled:
            return False
        state.result.upload_speed = speed

        if state.info_task is not None:
            (outcome,) = await asyncio.gather(state.info_task, return_exceptions=True)
            if isinstance(outcome, Exception):
                logger.warning("Connection info lookup raised: %s", outcome)
        if token.cancelled:
            return False
        return True

    def _cancel(self, state: RunState) -> None:
        state.token.cancel()
        if state.info_task is not None and not state.info_task.done():
            state.info_task.cancel()

    def _abort(self, state: RunState) -> None:
        """Tear down a run that raised, leaving the orchestrator idle."""
        self._cancel(state)
        if state is not self._state or not self.is_testing:
            return
        logger.warning("Run aborted during %s phase", self._progress.phase.value)
        self._progress = ProgressEvent(Phase.IDLE)
        try:
            self._emit(self._progress)
        except Exception:
            logger.exception("Progress subscriber failed on idle transition")

    def _enter(self, state: RunState, phase: Phase, percent: float = 0.0) -> None:
        if state.token.cancelled:
            return
        self._progress = ProgressEvent(phase, percent, 0.0)
        self._emit(self._progress)

    def _publish(self, state: RunState, phase: Phase, percent: float, speed: float) -> None:
        # Late callbacks from an aborted or superseded run are dropped.
        if state.token.cancelled or state is not self._state:
            return
        percent = min(max(percent, self._progress.percent_complete), 100.0)
        self._progress = ProgressEvent(phase, percent, max(speed, 0.0))
        self._emit(self._progress)

    def _emit(self, event: ProgressEvent) -> None:
        if self.on_progress:
            self.on_progress(event)

    async def _lookup_info(self, state: RunState) -> None:
        info: Optional[ConnectionInfo] = await self.info_provider.lookup()
        if info is None or state.token.cancelled:
            return
        state.result.ip = info.ip
        state.result.isp = info.isp
        state.result.location = info.location
        state.result.connection_type = info.connection_type

    def _save(self, result: TestResult) -> None:
        if self.persist is None:
            return
        timestamp = datetime.now(timezone.utc).isoformat()
        try:
            self.persist(dataclasses.replace(result), timestamp)
        except OSError as exc:
            logger.warning("Could not save result to history: %s", exc)
