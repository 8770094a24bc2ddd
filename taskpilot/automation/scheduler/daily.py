"""
Daily Scheduler

Provides:
- Next-occurrence calculation for a local wall-clock time
- Arm/fire state machine for the daily trigger
- Background task management
"""

import asyncio
import logging
from datetime import datetime, timedelta
from enum import Enum
from collections import deque
from typing import Deque, Dict, Optional, Any, Callable, Awaitable

from ..rules.models import TriggerType
from .clock import Clock, SystemClock

logger = logging.getLogger("DailyScheduler")

DAILY_PERIOD = timedelta(hours=24)

DispatchCallback = Callable[[TriggerType, Dict[str, Any]], Awaitable[Any]]


class SchedulerState(Enum):
    """Scheduler states"""
    IDLE = "idle"
    ARMED = "armed"
    FIRED = "fired"
    STOPPED = "stopped"


def next_daily_occurrence(now: datetime, hour: int, minute: int = 0) -> datetime:
    """Next instant at hour:minute strictly after now"""
    target = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if target <= now:
        target += timedelta(days=1)
    return target


class DailyScheduler:
    """
    Fires the daily_schedule trigger once a day.

    The first fire is aligned to the configured local time; after that the
    scheduler re-arms on a fixed 24 hour period from the previous fire
    instant. The fixed period drifts by an hour across daylight-saving
    changes; this is a known limitation. Instants that already passed when
    re-arming (e.g. the host was suspended) are skipped rather than replayed.
    """

    def __init__(
        self,
        dispatch: DispatchCallback,
        hour: int = 9,
        minute: int = 0,
        clock: Optional[Clock] = None,
        context_factory: Optional[Callable[[], Dict[str, Any]]] = None,
        period: timedelta = DAILY_PERIOD,
        history_size: int = 30
    ):
        self._dispatch = dispatch
        self.hour = hour
        self.minute = minute
        self.clock = clock if clock is not None else SystemClock()
        self.context_factory = context_factory
        self.period = period

        self.state = SchedulerState.IDLE
        self.next_fire_at: Optional[datetime] = None
        self.last_fired_at: Optional[datetime] = None
        self.fire_history: Deque[datetime] = deque(maxlen=history_size)
        self.fire_count = 0
        self.error_count = 0
        self.missed_count = 0

        self._task: Optional[asyncio.Task] = None
        self._stopping = False

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> bool:
        """Start the scheduler background task"""
        if self.is_running:
            return False
        self._stopping = False
        self._task = asyncio.get_running_loop().create_task(self.run())
        logger.info(f"Daily scheduler started for {self.hour:02d}:{self.minute:02d}")
        return True

    async def stop(self) -> bool:
        """Stop the scheduler background task"""
        self._stopping = True
        if self._task is None:
            self.state = SchedulerState.STOPPED
            return False

        task, self._task = self._task, None
        if task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self.state = SchedulerState.STOPPED
        logger.info("Daily scheduler stopped")
        return True

    def request_stop(self) -> None:
        """Ask the run loop to exit after the current fire"""
        self._stopping = True

    async def run(self) -> None:
        """Arm, wait, fire and re-arm until stopped"""
        fire_at = next_daily_occurrence(self.clock.now(), self.hour, self.minute)
        try:
            while not self._stopping:
                self.state = SchedulerState.ARMED
                self.next_fire_at = fire_at
                delay = (fire_at - self.clock.now()).total_seconds()
                logger.debug(f"Daily trigger armed for {fire_at.isoformat()} ({delay:.0f}s)")
                await self.clock.sleep(delay)

                if self._stopping:
                    break

                self.state = SchedulerState.FIRED
                await self._fire()
                fire_at = self._rearm(fire_at + self.period)
        finally:
            self.state = SchedulerState.STOPPED
            self.next_fire_at = None

    def _rearm(self, fire_at: datetime) -> datetime:
        """Skip instants already in the past, e.g. after the host was suspended"""
        now = self.clock.now()
        missed = 0
        while fire_at <= now:
            fire_at += self.period
            missed += 1
        if missed:
            self.missed_count += missed
            logger.warning(f"Skipped {missed} missed daily trigger(s); next at {fire_at.isoformat()}")
        return fire_at

    async def _fire(self) -> None:
        now = self.clock.now()
        self.last_fired_at = now
        self.fire_history.append(now)
        self.fire_count += 1

        context: Dict[str, Any] = {}
        try:
            if self.context_factory is not None:
                context.update(self.context_factory() or {})
        except Exception as e:
            self.error_count += 1
            logger.error(f"Daily context factory failed: {e}")

        context["date"] = now.isoformat()
        context["type"] = "daily_check"

        try:
            await self._dispatch(TriggerType.DAILY_SCHEDULE, context)
        except Exception as e:
            self.error_count += 1
            logger.error(f"Daily automation dispatch failed: {e}")

    def get_status(self) -> dict:
        """Get scheduler status"""
        return {
            "state": self.state.value,
            "hour": self.hour,
            "minute": self.minute,
            "next_fire_at": self.next_fire_at.isoformat() if self.next_fire_at else None,
            "last_fired_at": self.last_fired_at.isoformat() if self.last_fired_at else None,
            "fire_count": self.fire_count,
            "error_count": self.error_count,
            "missed_count": self.missed_count,
            "running": self.is_running
        }
