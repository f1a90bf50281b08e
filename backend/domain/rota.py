"""Shift templates and worked shift instances."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time, timedelta

MINUTES_PER_DAY = 24 * 60


def week_start(day: date) -> date:
    """Monday of the ISO week containing ``day``."""
    return day - timedelta(days=day.weekday())


@dataclass(frozen=True)
class ShiftTemplate:
    shift_id: str
    start_time: time
    end_time: time

    def duration_minutes(self) -> int:
        """Length of the shift; an end at or before the start rolls past midnight."""
        start = self.start_time.hour * 60 + self.start_time.minute
        end = self.end_time.hour * 60 + self.end_time.minute
        if end <= start:
            end += MINUTES_PER_DAY
        return end - start


@dataclass(frozen=True)
class Assignment:
    """One rota entry: a staff member working a shift on a date."""

    staff_id: str
    staff_name: str
    shift: ShiftTemplate
    rota_date: date

    @property
    def week_start(self) -> date:
        return week_start(self.rota_date)

    @property
    def worked_minutes(self) -> int:
        return self.shift.duration_minutes()


def minutes_to_hours(minutes: int) -> float:
    return round(minutes / 60.0, 2)
