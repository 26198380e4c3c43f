"""Accessors for the loosely-typed event property bag.

Each semantic field lists the property keys that may carry it, in the order
they are consulted, and the default returned when none of them is set.
"""
import math
from dataclasses import dataclass
from typing import Any, Mapping, Tuple

UNKNOWN = "Unknown"


@dataclass(frozen=True)
class PropertyField:
    keys: Tuple[str, ...]
    default: Any = None

    def read(self, properties: Mapping[str, Any]) -> Any:
        for key in self.keys:
            value = properties.get(key)
            if value is not None:
                return value
        return self.default

    def present(self, properties: Mapping[str, Any]) -> bool:
        return any(properties.get(key) is not None for key in self.keys)


USER_ID = PropertyField(("distinct_id", "$user_id", "$device_id"), "")
TIMESTAMP = PropertyField(("time", "$time"), 0)

EXPLICIT_PLATFORM = PropertyField(("platform",), "")
OPERATING_SYSTEM = PropertyField(("$os",), "")
CLIENT_LIBRARY = PropertyField(("mp_lib",), "")

PLAN = PropertyField(("$plan",), "")
SUBSCRIPTION_STATUS = PropertyField(("subscription_status",), "")
IDENTITY = PropertyField(("$user_id", "user_id"))
IS_AUTHENTICATED = PropertyField(("is_authenticated",), False)

SESSION_LENGTH = PropertyField(("$ae_session_length",), 0)
COUNTRY = PropertyField(("mp_country_code",), UNKNOWN)


def as_number(value: Any) -> float:
    if isinstance(value, bool):
        return float(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def as_label(value: Any) -> str:
    if value is None:
        return UNKNOWN
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def read_number(properties: Mapping[str, Any], key: str) -> float:
    return as_number(properties.get(key))


def read_label(properties: Mapping[str, Any], key: str) -> str:
    return as_label(properties.get(key))
