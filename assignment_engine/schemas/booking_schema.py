"""Booking location and lookup request models."""

import datetime as dt
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from assignment_engine.utils import (
    ADDRESS_FIELDS,
    day_of_week_for,
    normalize_address_key,
    normalize_time,
)


class Address(BaseModel):
    """Street address split the way the booking form collects it."""

    model_config = ConfigDict(frozen=True)

    address: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""

    @field_validator("address", "city", "state", "zip", mode="before")
    @classmethod
    def _blank_to_empty(cls, value: Any) -> str:
        return "" if value is None else str(value).strip()

    @property
    def key(self) -> str:
        return normalize_address_key(self)

    def label(self) -> str:
        return ", ".join(getattr(self, name) for name in ADDRESS_FIELDS if getattr(self, name))


class BookingTarget(BaseModel):
    """The shoot being scheduled: where and when."""

    model_config = ConfigDict(frozen=True)

    address: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""
    date: Optional[dt.date] = None
    time: Optional[str] = None

    @field_validator("address", "city", "state", "zip", mode="before")
    @classmethod
    def _blank_to_empty(cls, value: Any) -> str:
        return "" if value is None else str(value).strip()

    @field_validator("time", mode="before")
    @classmethod
    def _normalize_time(cls, value: Any) -> Optional[str]:
        return normalize_time(value) or None

    @property
    def location(self) -> Address:
        return Address(address=self.address, city=self.city, state=self.state, zip=self.zip)

    @property
    def address_key(self) -> str:
        return normalize_address_key(self)

    @property
    def date_str(self) -> str:
        return self.date.isoformat() if self.date else ""

    @property
    def day_of_week(self) -> str:
        return day_of_week_for(self.date) if self.date else ""

    @property
    def identity(self) -> tuple[str, str, str]:
        """Key used to decide whether a running cycle is superseded."""
        return (self.date_str, self.time or "", self.address_key)


class BookingAvailabilityRequest(BaseModel):
    """Payload for the comprehensive availability-for-booking lookup."""

    date: str
    time: Optional[str] = None
    shoot_address: str = ""
    shoot_city: str = ""
    shoot_state: str = ""
    shoot_zip: str = ""
    photographer_ids: list[str] = Field(default_factory=list)

    @classmethod
    def from_target(
        cls, target: BookingTarget, photographer_ids: list[str]
    ) -> "BookingAvailabilityRequest":
        return cls(
            date=target.date_str,
            time=target.time,
            shoot_address=target.address,
            shoot_city=target.city,
            shoot_state=target.state,
            shoot_zip=target.zip,
            photographer_ids=list(photographer_ids),
        )

    def to_payload(self) -> dict[str, Any]:
        """JSON body as the backend expects it (numeric ids where possible)."""
        payload = self.model_dump(exclude_none=True)
        payload["photographer_ids"] = [
            int(pid) if pid.isdigit() else pid for pid in self.photographer_ids
        ]
        return payload
