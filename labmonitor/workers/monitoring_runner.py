"""Periodic monitoring worker: alert sweeps and reminder dispatch.

Runs the alert sweep every ALERT_SWEEP_INTERVAL_SECONDS and reminder
dispatch every REMINDER_DISPATCH_INTERVAL_SECONDS. An alert sweep never
overlaps with itself; a trigger that arrives while one is running is dropped.

Usage:
    python -m labmonitor.workers.monitoring_runner [--once]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from labmonitor.core.config import settings
from labmonitor.db.session import get_async_session_context
from labmonitor.schemas.alert import AlertRead
from labmonitor.services.alert_service import AlertService
from labmonitor.services.notifications import LogNotificationDispatcher, NotificationDispatcher
from labmonitor.services.reminder_service import ReminderService

logger = logging.getLogger(__name__)


class MonitoringRunner:
    """Drive alert sweeps and reminder dispatch on fixed intervals."""

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
        sweep_interval: Optional[float] = None,
        reminder_interval: Optional[float] = None,
    ) -> None:
        self.session_factory = session_factory
        self.dispatcher = dispatcher or LogNotificationDispatcher()
        self.sweep_interval = sweep_interval or settings.ALERT_SWEEP_INTERVAL_SECONDS
        self.reminder_interval = reminder_interval or settings.REMINDER_DISPATCH_INTERVAL_SECONDS
        self._stop_event = asyncio.Event()
        self._sweep_in_flight = False

    @property
    def sweep_in_flight(self) -> bool:
        return self._sweep_in_flight

    def request_stop(self) -> None:
        self._stop_event.set()

    async def ensure_default_configurations(self) -> int:
        async with get_async_session_context(self.session_factory) as session:
            return await AlertService(session).ensure_default_configurations()

    async def run_alert_sweep_once(self) -> List[AlertRead]:
        """Run all detectors once. Returns [] immediately if a sweep is already running."""
        if self._sweep_in_flight:
            logger.info("Alert sweep already in flight, ignoring trigger")
            return []

        self._sweep_in_flight = True
        try:
            async with get_async_session_context(self.session_factory) as session:
                service = AlertService(session, dispatcher=self.dispatcher)
                return await service.run_all_detectors()
        finally:
            self._sweep_in_flight = False

    async def run_reminders_once(self) -> int:
        async with get_async_session_context(self.session_factory) as session:
            service = ReminderService(session, dispatcher=self.dispatcher)
            return await service.dispatch_due_reminders()

    async def _run_logged(self, name: str, job: Callable[[], Awaitable[object]]) -> None:
        try:
            await job()
        except Exception:
            logger.exception("Monitoring job %s failed", name)

    async def run_forever(self) -> None:
        """Poll until stopped, running each job when its interval has elapsed."""
        loop = asyncio.get_running_loop()
        next_sweep = next_reminders = loop.time()

        while not self._stop_event.is_set():
            now = loop.time()
            if now >= next_sweep:
                await self._run_logged("alert_sweep", self.run_alert_sweep_once)
                next_sweep = now + self.sweep_interval
            if now >= next_reminders:
                await self._run_logged("reminders", self.run_reminders_once)
                next_reminders = now + self.reminder_interval

            timeout = max(0.0, min(next_sweep, next_reminders) - loop.time())
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=timeout)
            except asyncio.TimeoutError:
                continue


def get_default_runner() -> MonitoringRunner:
    return MonitoringRunner()


async def _main(once: bool) -> None:
    runner = get_default_runner()
    await runner.ensure_default_configurations()
    if once:
        alerts = await runner.run_alert_sweep_once()
        sent = await runner.run_reminders_once()
        logger.info("Single pass done: %d alert(s), %d reminder(s)", len(alerts), sent)
        return
    await runner.run_forever()


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the lab monitoring worker")
    parser.add_argument("--once", action="store_true", help="Run one sweep and one reminder pass, then exit")
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        asyncio.run(_main(args.once))
    except KeyboardInterrupt:
        logger.info("Monitoring worker stopped")


if __name__ == "__main__":
    main()
