"""Photographer roster, enriched records, and lookup response models."""

from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator

from assignment_engine.schemas.booking_schema import Address
from assignment_engine.schemas.schedule_schema import BookedSlot, TimeRange, parse_ranges
from assignment_engine.utils import normalize_id


class DistanceOrigin(str, Enum):
    """Where a photographer's travel distance is measured from."""
    HOME = "home"
    PREVIOUS_SHOOT = "previous_shoot"


def _coerce_origin(value: Any) -> Optional[DistanceOrigin]:
    if value is None or isinstance(value, DistanceOrigin):
        return value
    try:
        return DistanceOrigin(str(value).strip().lower())
    except ValueError:
        return None


class Photographer(BaseModel):
    """Roster entry supplied by the booking form."""

    id: str
    name: str = ""
    avatar: Optional[str] = None
    profile_address: Optional[Address] = None

    @field_validator("id", mode="before")
    @classmethod
    def _canonical_id(cls, value: Any) -> str:
        return normalize_id(value)


class EnrichedPhotographer(Photographer):
    """Roster entry plus the fields a resolution cycle fills in."""

    distance: Optional[float] = None
    distance_from: Optional[DistanceOrigin] = None
    previous_shoot_id: Optional[str] = None
    origin_address: Optional[Address] = None
    availability_slots: list[TimeRange] = Field(default_factory=list)
    booked_slots: list[BookedSlot] = Field(default_factory=list)
    net_available_slots: list[TimeRange] = Field(default_factory=list)
    is_available_at_time: Optional[bool] = None
    has_availability: Optional[bool] = None
    shoots_count_today: int = 0

    @classmethod
    def from_roster(cls, photographer: Photographer) -> "EnrichedPhotographer":
        return cls(**photographer.model_dump())

    @property
    def city(self) -> str:
        origin = self.distance_origin
        return origin.city if origin else ""

    @property
    def state(self) -> str:
        origin = self.distance_origin
        return origin.state if origin else ""

    @property
    def distance_origin(self) -> Optional[Address]:
        """Origin used for distance: server-chosen origin, else profile address."""
        if self.origin_address is not None and self.origin_address.key:
            return self.origin_address
        return self.profile_address


class ComprehensiveRecord(BaseModel):
    """One photographer entry from the availability-for-booking lookup."""

    id: str
    name: Optional[str] = None
    avatar: Optional[str] = None
    distance: Optional[float] = None
    origin_address: Optional[Address] = Field(
        default=None, validation_alias=AliasChoices("origin_address", "home_address")
    )
    distance_from: Optional[DistanceOrigin] = None
    previous_shoot_id: Optional[str] = None
    availability_slots: list[TimeRange] = Field(default_factory=list)
    booked_slots: list[BookedSlot] = Field(default_factory=list)
    net_available_slots: list[TimeRange] = Field(default_factory=list)
    is_available_at_time: Optional[bool] = None
    has_availability: Optional[bool] = None
    shoots_count_today: int = 0

    @field_validator("id", mode="before")
    @classmethod
    def _canonical_id(cls, value: Any) -> str:
        return normalize_id(value)

    @field_validator("distance_from", mode="before")
    @classmethod
    def _lenient_origin(cls, value: Any) -> Optional[DistanceOrigin]:
        return _coerce_origin(value)

    @field_validator("previous_shoot_id", mode="before")
    @classmethod
    def _coerce_shoot_id(cls, value: Any) -> Optional[str]:
        return None if value is None else str(value)

    @field_validator("availability_slots", "net_available_slots", mode="before")
    @classmethod
    def _lenient_ranges(cls, value: Any) -> list[TimeRange]:
        return parse_ranges(value)

    @field_validator("booked_slots", mode="before")
    @classmethod
    def _lenient_booked(cls, value: Any) -> list[BookedSlot]:
        return parse_ranges(value, BookedSlot)

    @field_validator("shoots_count_today", mode="before")
    @classmethod
    def _count_default(cls, value: Any) -> int:
        return 0 if value is None else value


class AvailabilityEntry(BaseModel):
    """Net availability summary for one photographer on the query date."""

    is_available: bool
    next_available_times: list[str] = Field(default_factory=list)
