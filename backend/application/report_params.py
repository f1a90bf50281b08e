"""Caller-supplied report parameters."""
from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Any, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from domain.errors import ReportValidationError


PARAM_KEYS = frozenset({"from", "to", "start", "end", "threshold", "limit"})


class ReportParams(BaseModel):
    """Date window (inclusive on both ends), threshold and row limit."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)

    start: Optional[date] = Field(None, alias="from", description="first day, inclusive")
    end: Optional[date] = Field(None, alias="to", description="last day, inclusive")
    threshold: Optional[float] = Field(None, allow_inf_nan=False)
    limit: Optional[int] = Field(None, ge=1)

    @field_validator("start", "end", mode="before")
    @classmethod
    def _iso_date(cls, value: Any) -> Any:
        # no integer timestamps or other lax coercions
        if value is None or isinstance(value, date):
            return value.date() if isinstance(value, datetime) else value
        if isinstance(value, str):
            return date.fromisoformat(value.strip())
        raise ValueError("expected a date in YYYY-MM-DD form")

    @model_validator(mode="after")
    def _check_window(self) -> "ReportParams":
        if self.start and self.end and self.start > self.end:
            raise ValueError(f"Invalid date range: {self.start} is after {self.end}")
        return self

    def timestamp_window(self) -> Tuple[Optional[datetime], Optional[datetime]]:
        """``[start 00:00, end + 1 day 00:00)`` for filtering timestamps."""
        lower = datetime.combine(self.start, time.min) if self.start else None
        upper = datetime.combine(self.end + timedelta(days=1), time.min) if self.end else None
        return lower, upper


def parse_params(raw: "ReportParams | Mapping[str, Any] | None") -> ReportParams:
    if raw is None:
        return ReportParams()
    if isinstance(raw, ReportParams):
        return raw
    # None stands for "not supplied" on known keys only
    cleaned = {key: value for key, value in raw.items() if not (value is None and key in PARAM_KEYS)}
    try:
        return ReportParams.model_validate(cleaned)
    except ValidationError as exc:
        raise ReportValidationError(_describe(exc)) from exc


def _describe(exc: ValidationError) -> str:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        message = error.get("msg", "invalid value")
        messages.append(f"{location}: {message}" if location else message)
    return "; ".join(messages)
