"""
Scheduler Module

Provides:
- Daily trigger scheduling
- Clock abstraction
"""

from .clock import (
    Clock,
    SystemClock,
    ManualClock
)
from .daily import (
    SchedulerState,
    DailyScheduler,
    next_daily_occurrence,
    DAILY_PERIOD
)

__all__ = [
    # Clocks
    "Clock",
    "SystemClock",
    "ManualClock",
    # Daily scheduler
    "SchedulerState",
    "DailyScheduler",
    "next_daily_occurrence",
    "DAILY_PERIOD"
]
