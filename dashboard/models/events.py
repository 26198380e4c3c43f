from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dashboard.core.properties import TIMESTAMP, USER_ID, as_number


class Event(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    user_id: str
    timestamp: float
    properties: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("timestamp")
    @classmethod
    def representable(cls, value: float) -> float:
        # milliseconds and other values a UTC datetime cannot hold count as missing
        try:
            datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, ValueError, OSError):
            return 0.0
        return value

    @classmethod
    def from_raw(cls, record: Mapping[str, Any]) -> "Event":
        properties = record.get("properties")
        if not isinstance(properties, dict):
            properties = {}
        return cls(
            name=str(record.get("event") or ""),
            user_id=str(USER_ID.read(properties)),
            timestamp=as_number(TIMESTAMP.read(properties)),
            properties=properties,
        )

    def to_raw(self) -> Dict[str, Any]:
        return {"event": self.name, "properties": self.properties}

    @property
    def occurred_at(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp, tz=timezone.utc)

    @property
    def day(self) -> str:
        return self.occurred_at.strftime("%Y-%m-%d")

    @property
    def hour(self) -> int:
        return self.occurred_at.hour


def parse_events(records: List[Mapping[str, Any]]) -> List[Event]:
    return [Event.from_raw(record) for record in records]
