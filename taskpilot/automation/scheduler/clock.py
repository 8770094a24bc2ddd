"""
Scheduler Clocks

Provides:
- Wall clock used in production
- Manually advanced clock for tests
"""

import asyncio
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import List, Optional


class Clock(ABC):
    """Source of local time and sleeping"""

    @abstractmethod
    def now(self) -> datetime:
        """Current local time"""
        pass

    @abstractmethod
    async def sleep(self, seconds: float) -> None:
        """Wait for the given number of seconds"""
        pass


class SystemClock(Clock):
    """Local wall-clock time backed by asyncio.sleep"""

    def now(self) -> datetime:
        return datetime.now()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(max(0.0, seconds))


class ManualClock(Clock):
    """
    Clock whose time only moves when slept on or advanced.

    Every sleep advances the clock by the requested amount and yields to the
    event loop once, so a scheduler can be driven through days instantly.
    """

    def __init__(self, start: Optional[datetime] = None):
        self._now = start or datetime(2024, 1, 1)
        self.sleeps: List[float] = []

    def now(self) -> datetime:
        return self._now

    def advance(self, seconds: float) -> None:
        self._now += timedelta(seconds=seconds)

    async def sleep(self, seconds: float) -> None:
        seconds = max(0.0, seconds)
        self.sleeps.append(seconds)
        self.advance(seconds)
        await asyncio.sleep(0)
