"""Sleep history record model."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class SleepRecord(BaseModel):
    """One day's sleep summary in the rolling wake-detection history.

    Persisted with camelCase keys (date, endUtcHour, durationHours, cycles,
    performance, efficiency). Identity key is `date`: the store keeps at most
    one record per date.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    date: str = Field(description="Calendar date the session started (YYYY-MM-DD)")
    end_utc_hour: int = Field(ge=0, le=23, description="UTC hour the session ended")
    duration_hours: float = Field(ge=0, description="Time in bed, hours")
    cycles: int = Field(ge=0, description="Detected sleep cycles")
    performance: int | float = Field(ge=0, le=100, description="Sleep performance %")
    efficiency: int | float = Field(ge=0, le=100, description="Sleep efficiency %")
