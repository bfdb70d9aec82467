"""Daily maintenance cycle: retention sweep, then endpoint analysis.

One background task sleeps until the next cron tick and runs the cycle.
Cycles never overlap: a cycle requested while another is running is
skipped. Per-tenant failures are handled inside the sweeper and the
aggregator. A phase that fails as a whole is logged and recorded in the
report, and the next phase still runs.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from codepruner.analysis.aggregator import Aggregator, AnalysisReport
from codepruner.common.timeutil import utcnow
from codepruner.retention.sweeper import RetentionSweeper, SweepReport
from codepruner.scheduler.cron import calculate_next_run, validate_schedule

logger = logging.getLogger(__name__)


@dataclass
class CycleReport:
    started_at: datetime
    finished_at: Optional[datetime] = None
    sweep: SweepReport = field(default_factory=SweepReport)
    analysis: AnalysisReport = field(default_factory=AnalysisReport)
    # Phase name -> error, for a phase that failed as a whole.
    phase_errors: dict[str, str] = field(default_factory=dict)

    @property
    def events_deleted(self) -> int:
        return self.sweep.deleted

    @property
    def endpoints_analyzed(self) -> int:
        return self.analysis.analyzed


class MaintenanceScheduler:
    """Drives the sweeper and the aggregator on a cron cadence."""

    def __init__(
        self,
        sweeper: RetentionSweeper,
        aggregator: Aggregator,
        schedule: str = "0 2 * * *",
    ) -> None:
        validate_schedule(schedule)
        self.sweeper = sweeper
        self.aggregator = aggregator
        self.schedule = schedule
        self._task: asyncio.Task[None] | None = None
        self._cycle_lock = asyncio.Lock()

    @property
    def is_scheduled(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def is_running(self) -> bool:
        return self._cycle_lock.locked()

    async def start(self) -> None:
        """Start the scheduling loop."""
        if self.is_scheduled:
            return
        self._task = asyncio.create_task(self._loop())
        logger.info("Maintenance scheduled (cron=%r, UTC)", self.schedule)

    async def stop(self) -> None:
        """Stop the scheduling loop; a cycle in progress is cancelled."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Maintenance scheduler stopped")

    async def _loop(self) -> None:
        while True:
            next_run = calculate_next_run(self.schedule)
            delay = max(0.0, (next_run - utcnow()).total_seconds())
            await asyncio.sleep(delay)
            try:
                await self.run_cycle()
            except Exception:
                logger.exception("Daily maintenance error")

    async def run_cycle(self, now: Optional[datetime] = None) -> Optional[CycleReport]:
        """Run sweep then analysis for all active tenants.

        Returns None without doing anything if a cycle is already running.
        """
        if self._cycle_lock.locked():
            logger.warning("Maintenance cycle already running, skipping")
            return None

        async with self._cycle_lock:
            now = now or utcnow()
            report = CycleReport(started_at=now)
            logger.info("Starting daily maintenance job (%s)", now.isoformat())

            try:
                report.sweep = await self.sweeper.sweep_all(now=now)
            except Exception as e:
                logger.exception("Error cleaning old logs")
                report.phase_errors["sweep"] = str(e)

            try:
                report.analysis = await self.aggregator.analyze_all(now=now)
            except Exception as e:
                logger.exception("Error analyzing endpoints")
                report.phase_errors["analysis"] = str(e)

            report.finished_at = utcnow()
            logger.info(
                "Daily maintenance complete. Deleted %s log(s), analyzed %s endpoint(s)",
                report.events_deleted,
                report.endpoints_analyzed,
                extra={
                    "sweep_failures": len(report.sweep.failures),
                    "analysis_failures": len(report.analysis.failures),
                    "phase_errors": sorted(report.phase_errors),
                },
            )
            return report

    async def run_now(self) -> Optional[CycleReport]:
        """Manual trigger with the same semantics as a scheduled cycle."""
        return await self.run_cycle()
