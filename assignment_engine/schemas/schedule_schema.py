"""Time range and raw schedule record models."""

import logging
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from assignment_engine.utils import normalize_time, time_to_minutes, to_12_hour

logger = logging.getLogger(__name__)


class TimeRange(BaseModel):
    """Half-open ``[start_time, end_time)`` range within one day."""

    model_config = ConfigDict(frozen=True)

    start_time: str
    end_time: str

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _normalize_time(cls, value: Any) -> str:
        normalized = normalize_time(value)
        if not normalized:
            raise ValueError(f"Unrecognized time: {value!r}")
        return normalized

    @model_validator(mode="after")
    def _check_order(self) -> "TimeRange":
        if self.start_minutes >= self.end_minutes:
            raise ValueError(
                f"start_time must be before end_time, got {self.start_time}-{self.end_time}"
            )
        return self

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return time_to_minutes(self.end_time)

    @classmethod
    def from_minutes(cls, start: int, end: int) -> "TimeRange":
        return cls(
            start_time=f"{start // 60:02d}:{start % 60:02d}",
            end_time=f"{end // 60:02d}:{end % 60:02d}",
        )

    def display(self) -> str:
        """12-hour label such as ``'9:00 AM–10:00 AM'``."""
        return f"{to_12_hour(self.start_time)}–{to_12_hour(self.end_time)}"


class BookedSlot(TimeRange):
    """A time range already taken by a shoot."""

    shoot_id: Optional[str] = None
    title: Optional[str] = None

    @field_validator("shoot_id", mode="before")
    @classmethod
    def _coerce_shoot_id(cls, value: Any) -> Optional[str]:
        return None if value is None else str(value)


class ScheduleRecord(BaseModel):
    """Raw schedule row from the bulk lookup.

    Either date-specific (``date`` set) or recurring weekly
    (``date`` empty, ``day_of_week`` set). Times stay raw here; the
    merger normalizes them.
    """

    id: Optional[Union[int, str]] = None
    photographer_id: Optional[Union[int, str]] = None
    date: Optional[str] = None
    day_of_week: Optional[str] = None
    start_time: str = ""
    end_time: str = ""
    status: Optional[str] = None
    shoot_id: Optional[Union[int, str]] = None

    @field_validator("date", "day_of_week", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Optional[str]:
        # Some backends send weekdays as integers (0 = Sunday)
        return None if value is None else str(value)

    @property
    def status_value(self) -> str:
        return (self.status or "available").strip().lower()

    @property
    def is_available(self) -> bool:
        return self.status_value == "available"

    @property
    def is_booked(self) -> bool:
        return self.status_value == "booked"


def parse_ranges(items: Any, model: type[TimeRange] = TimeRange) -> list:
    """Validate a list of raw ranges, skipping malformed entries."""
    if not items:
        return []
    ranges = []
    for item in items:
        if isinstance(item, model):
            ranges.append(item)
            continue
        try:
            ranges.append(model.model_validate(item))
        except ValidationError as exc:
            logger.debug("Skipping malformed time range %r: %s", item, exc.errors()[0]["msg"])
    return ranges
