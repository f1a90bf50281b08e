"""Report catalogue entries."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple


Row = Dict[str, Any]


class ReportCategory(str, Enum):
    STAFFING = "staffing"
    SALES = "sales"
    INVENTORY = "inventory"
    CUSTOM = "custom"


@dataclass(frozen=True)
class ReportDefinition:
    """A named, read-only aggregation the runner can execute.

    ``handler`` is called as ``handler(session, params, settings)`` and returns
    the result rows in their final order.  ``threshold_range`` is the inclusive
    ``(low, high)`` interval a caller-supplied threshold must fall in; reports
    without one reject a threshold outright.
    """

    name: str
    title: str
    category: ReportCategory
    description: str
    columns: Tuple[str, ...]
    handler: Callable[..., List[Row]]
    threshold_range: Optional[Tuple[float, float]] = None
    threshold_exclusive_low: bool = False
    uses_limit: bool = False

    @property
    def takes_threshold(self) -> bool:
        return self.threshold_range is not None

    def threshold_in_range(self, value: float) -> bool:
        if self.threshold_range is None:
            return False
        low, high = self.threshold_range
        if self.threshold_exclusive_low:
            return low < value <= high
        return low <= value <= high
