"""
APScheduler-driven reminder loop.

A single interval job polls the store for due reminders. Each poll opens
its own session, runs one DueReminderProcessor pass and closes the session.
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional, Set

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from family_assistant.domain.ports import DeliverFn
from family_assistant.repositories.reminder import ReminderRepository
from family_assistant.usecases.reminder_processor import DueReminderProcessor, ProcessResult
from family_assistant.utils.time import get_current_time, get_local_tz

logger = logging.getLogger(__name__)

JOB_ID = "reminder_poll"


class ReminderScheduler:
    """
    Owns the polling job and guarantees passes never overlap.

    Args:
        session_factory: Factory for the per-pass AsyncSession
        deliver: Async callback delivering (chat_id, text)
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], deliver: DeliverFn):
        self.session_factory = session_factory
        self.deliver = deliver
        self.scheduler: Optional[AsyncIOScheduler] = None
        self.poll_interval: Optional[float] = None
        self.last_run_at: Optional[datetime] = None
        self.last_result: Optional[ProcessResult] = None
        self._lock = asyncio.Lock()
        self._stopping = False
        self._in_flight: Set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self.scheduler is not None and self.scheduler.running

    async def tick(self, now: Optional[datetime] = None) -> ProcessResult:
        """Run one pass. Concurrent calls queue on the lock."""
        async with self._lock:
            async with self.session_factory() as session:
                processor = DueReminderProcessor(ReminderRepository(session), self.deliver)
                result = await processor.process_due(now)
            self.last_run_at = get_current_time()
            self.last_result = result
            return result

    async def _poll(self) -> None:
        if self._stopping:
            return
        task = asyncio.ensure_future(self.tick())
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        # Shutting down the scheduler cancels its job coroutines, never the pass itself
        await asyncio.shield(task)

    async def run(self, poll_interval: float, stop_event: asyncio.Event) -> None:
        """
        Poll every `poll_interval` seconds until `stop_event` is set.

        The first poll happens immediately. On stop no new pass starts and
        a pass already in progress is allowed to finish.
        """
        self.poll_interval = poll_interval
        self._stopping = False
        self.scheduler = AsyncIOScheduler(
            event_loop=asyncio.get_running_loop(),
            timezone=get_local_tz(),
        )
        self.scheduler.add_job(
            self._poll,
            trigger=IntervalTrigger(seconds=poll_interval),
            id=JOB_ID,
            max_instances=1,
            coalesce=True,
            next_run_time=datetime.now(get_local_tz()),
        )
        self.scheduler.start()
        logger.info(f"Reminder scheduler started (poll every {poll_interval}s)")

        try:
            await stop_event.wait()
        finally:
            self._stopping = True
            self.scheduler.shutdown(wait=False)
            if self._in_flight:
                await asyncio.gather(*self._in_flight, return_exceptions=True)
            logger.info("Reminder scheduler stopped")

    def status(self) -> dict:
        next_run_time = None
        if self.running:
            job = self.scheduler.get_job(JOB_ID)
            if job is not None and job.next_run_time is not None:
                next_run_time = job.next_run_time.isoformat()

        return {
            "running": self.running,
            "poll_interval_seconds": self.poll_interval,
            "next_run_time": next_run_time,
            "last_result": self.last_result.model_dump() if self.last_result else None,
        }
