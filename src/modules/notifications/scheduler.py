"""Periodic notification checks owned by the application lifespan."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.core.config import settings
from src.core.database import AsyncSessionLocal, session_scope
from src.modules.notifications.push import PushGateway
from src.modules.notifications.service import NotificationService

logger = logging.getLogger(__name__)

Check = Callable[[NotificationService], Awaitable[int]]


class NotificationScheduler:
    """Runs the reminder and overdue checks on fixed intervals.

    One instance per application; ``start`` is idempotent and ``stop``
    cancels and awaits both loops.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] = AsyncSessionLocal,
        push: PushGateway | None = None,
        reminder_interval: float | None = None,
        overdue_interval: float | None = None,
    ):
        self.session_factory = session_factory
        self.push = push
        self.reminder_interval = (
            reminder_interval if reminder_interval is not None else settings.reminder_interval_minutes * 60
        )
        self.overdue_interval = (
            overdue_interval if overdue_interval is not None else settings.overdue_interval_minutes * 60
        )
        self._tasks: list[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    def start(self) -> None:
        if self.running:
            return
        self._tasks = [
            asyncio.create_task(
                self._loop("reminders", lambda svc: svc.create_reminders(), self.reminder_interval),
                name="notification-reminders",
            ),
            asyncio.create_task(
                self._loop("overdue", lambda svc: svc.check_overdue(), self.overdue_interval),
                name="notification-overdue",
            ),
        ]
        logger.info(
            "Notification checks started (reminders every %ss, overdue every %ss)",
            self.reminder_interval,
            self.overdue_interval,
        )

    async def stop(self) -> None:
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        if tasks:
            logger.info("Notification checks stopped")

    async def __aenter__(self) -> NotificationScheduler:
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    async def run_once(self, name: str, check: Check) -> int:
        async with session_scope(self.session_factory) as session:
            service = NotificationService(session, self.push)
            count = await check(service)
            await service.commit()
        if count:
            logger.info("Notification check %s produced %d notification(s)", name, count)
        return count

    async def _loop(self, name: str, check: Check, interval: float) -> None:
        while True:
            try:
                await self.run_once(name, check)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Notification check %s failed", name)
            await asyncio.sleep(interval)
