"""Business rules for item segmentation and time-of-day buckets."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

from domain.errors import ReportConfigError


@dataclass(frozen=True)
class SalesSegment:
    """``quantity < bound`` (or ``<=`` when inclusive) earns ``label``."""

    label: str
    bound: float
    inclusive: bool = False


@dataclass(frozen=True)
class TimeOfDayBucket:
    """Orders placed in ``[start_hour, end_hour)`` belong to ``label``."""

    label: str
    start_hour: int
    end_hour: int


def segments_from_config(entries: Sequence[Dict[str, Any]]) -> List[SalesSegment]:
    segments: List[SalesSegment] = []
    for entry in entries:
        label = str(entry["label"])
        if "below" in entry:
            segments.append(SalesSegment(label, float(entry["below"])))
        elif "at_most" in entry:
            segments.append(SalesSegment(label, float(entry["at_most"]), inclusive=True))
        else:
            raise ReportConfigError(f"Segment '{label}' needs either 'below' or 'at_most'")
    bounds = [segment.bound for segment in segments]
    if bounds != sorted(bounds):
        raise ReportConfigError("Segment thresholds must be listed in ascending order")
    return segments


def buckets_from_config(entries: Sequence[Dict[str, Any]]) -> List[TimeOfDayBucket]:
    buckets: List[TimeOfDayBucket] = []
    for entry in entries:
        bucket = TimeOfDayBucket(
            label=str(entry["label"]),
            start_hour=int(entry["start_hour"]),
            end_hour=int(entry["end_hour"]),
        )
        if not 0 <= bucket.start_hour < bucket.end_hour <= 24:
            raise ReportConfigError(f"Invalid hour range for bucket '{bucket.label}'")
        buckets.append(bucket)
    return buckets
