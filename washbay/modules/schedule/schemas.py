"""Schedule schemas."""

from datetime import date, time

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from washbay.modules.schedule.slots import format_time, require_local_time


class AvailableTimes(BaseModel):
    target_date: date = Field(serialization_alias="date")
    available: bool
    available_times: list[time] = Field(default_factory=list)
    occupied_times: list[time] = Field(default_factory=list)
    total_slots: int = 0
    available_slots: int = 0
    message: str | None = None

    @field_serializer("available_times", "occupied_times")
    def _serialize_times(self, values: list[time]) -> list[str]:
        return [format_time(value) for value in values]


class SuggestedSlots(BaseModel):
    target_date: date = Field(serialization_alias="date")
    slots: list[time] = Field(default_factory=list)

    @field_serializer("slots")
    def _serialize_slots(self, values: list[time]) -> list[str]:
        return [format_time(value) for value in values]


class BusinessConfigPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    business_hours_start: time
    business_hours_end: time
    appointment_interval_minutes: int
    max_concurrent_appointments: int

    @field_serializer("business_hours_start", "business_hours_end")
    def _serialize_hours(self, value: time) -> str:
        return format_time(value)


class BusinessConfigUpdate(BaseModel):
    business_hours_start: time | None = None
    business_hours_end: time | None = None
    appointment_interval_minutes: int | None = Field(None, gt=0)
    max_concurrent_appointments: int | None = Field(None, ge=1)

    @field_validator("business_hours_start", "business_hours_end")
    @classmethod
    def business_local_time(cls, value):
        return require_local_time(value)
