"""JSON serialization for the four persisted aggregates.

The store only holds text, so datetimes are written as tagged objects:

    {"__type": "Date", "value": "2026-10-18T09:30:00.123"}

and turned back into ``datetime`` on load. Timestamps keep millisecond
precision. Dates are naive local time; an offset or trailing ``Z`` on load is
converted to local time and dropped.
"""

from __future__ import annotations

import json
from dataclasses import asdict, fields
from datetime import date, datetime
from typing import Any, Type, TypeVar

from phaseweight.tracking.models import AppState, Phase, UserProfile, WeighIn

DATE_TAG = "Date"

T = TypeVar("T")


def encode_date(value: datetime) -> dict[str, str]:
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    return {"__type": DATE_TAG, "value": value.isoformat(timespec="milliseconds")}


def decode_date(tagged: dict[str, Any]) -> datetime:
    text = str(tagged["value"])
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def _is_tagged_date(value: Any) -> bool:
    if not isinstance(value, dict) or len(value) != 2 or "value" not in value:
        return False
    # "type" is accepted as an alternative tag key
    return value.get("__type", value.get("type")) == DATE_TAG


def tag_dates(value: Any) -> Any:
    """Recursively replace datetimes with tagged objects."""
    if isinstance(value, (datetime, date)):
        return encode_date(value)
    if isinstance(value, dict):
        return {key: tag_dates(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [tag_dates(item) for item in value]
    return value


def untag_dates(value: Any) -> Any:
    """Recursively replace tagged objects with datetimes."""
    if _is_tagged_date(value):
        return decode_date(value)
    if isinstance(value, dict):
        return {key: untag_dates(item) for key, item in value.items()}
    if isinstance(value, list):
        return [untag_dates(item) for item in value]
    return value


def dumps(value: Any) -> str:
    """Serialize plain data (dicts/lists containing datetimes) to JSON text."""
    return json.dumps(tag_dates(value))


def loads(text: str) -> Any:
    """Parse JSON text, reviving tagged dates."""
    return untag_dates(json.loads(text))


def _from_dict(cls: Type[T], data: dict[str, Any]) -> T:
    """Build a dataclass from a dict, ignoring unknown keys."""
    known = {f.name for f in fields(cls)}  # type: ignore[arg-type]
    return cls(**{key: value for key, value in data.items() if key in known})


def profile_to_dict(profile: UserProfile) -> dict[str, Any]:
    return asdict(profile)


def profile_from_dict(data: dict[str, Any]) -> UserProfile:
    return _from_dict(UserProfile, data)


def phase_to_dict(phase: Phase) -> dict[str, Any]:
    return asdict(phase)


def phase_from_dict(data: dict[str, Any]) -> Phase:
    return _from_dict(Phase, data)


def weigh_in_to_dict(weigh_in: WeighIn) -> dict[str, Any]:
    return asdict(weigh_in)


def weigh_in_from_dict(data: dict[str, Any]) -> WeighIn:
    return _from_dict(WeighIn, data)


def app_state_to_dict(state: AppState) -> dict[str, Any]:
    return asdict(state)


def app_state_from_dict(data: dict[str, Any]) -> AppState:
    return _from_dict(AppState, data)
