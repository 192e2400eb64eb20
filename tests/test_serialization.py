"""Tests for tagged-date JSON serialization of tracker aggregates."""

from __future__ import annotations

import json
from dataclasses import replace
from datetime import date, datetime, timezone

from phaseweight.tracking.defaults import create_sample_history
from phaseweight.tracking.serialization import (
    app_state_from_dict,
    app_state_to_dict,
    decode_date,
    dumps,
    encode_date,
    loads,
    phase_from_dict,
    phase_to_dict,
    profile_from_dict,
    profile_to_dict,
    weigh_in_from_dict,
    weigh_in_to_dict,
)

PRECISE = datetime(2026, 10, 18, 9, 30, 15, 123000)


class TestDateTags:
    """Tests for encode_date and decode_date."""

    def test_encode(self) -> None:
        assert encode_date(PRECISE) == {"__type": "Date", "value": "2026-10-18T09:30:15.123"}

    def test_encode_truncates_to_milliseconds(self) -> None:
        encoded = encode_date(datetime(2026, 10, 18, 9, 30, 15, 123999))
        assert encoded["value"] == "2026-10-18T09:30:15.123"

    def test_encode_plain_date(self) -> None:
        assert encode_date(date(2026, 10, 18))["value"] == "2026-10-18T00:00:00.000"

    def test_decode(self) -> None:
        assert decode_date({"__type": "Date", "value": "2026-10-18T09:30:15.123"}) == PRECISE

    def test_decode_utc_to_local(self) -> None:
        decoded = decode_date({"__type": "Date", "value": "2026-10-18T09:30:15.123Z"})
        expected = PRECISE.replace(tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
        assert decoded == expected
        assert decoded.tzinfo is None

    def test_loads_accepts_type_key(self) -> None:
        text = json.dumps({"when": {"type": "Date", "value": "2026-10-18T09:30:15.123"}})
        assert loads(text) == {"when": PRECISE}

    def test_other_objects_left_alone(self) -> None:
        """Only two-key tagged objects are treated as dates."""
        data = {
            "a": {"__type": "Date", "value": "2026-10-18T00:00:00", "extra": 1},
            "b": {"__type": "Other", "value": "x"},
        }
        assert loads(json.dumps(data)) == data

    def test_nested(self) -> None:
        data = {"items": [{"when": PRECISE}, {"when": None}]}
        text = dumps(data)
        assert '"__type": "Date"' in text
        assert loads(text) == data


class TestEntityRoundTrip:
    """Serializing then deserializing reproduces identical entities."""

    def test_profile(self, profile) -> None:
        profile = replace(profile, created_at=PRECISE, assumptions_last_updated=PRECISE)
        restored = profile_from_dict(loads(dumps(profile_to_dict(profile))))
        assert restored == profile

    def test_phases(self, phases) -> None:
        phases = [replace(phases[0], completed_at=PRECISE), *phases[1:]]
        restored = [phase_from_dict(p) for p in loads(dumps([phase_to_dict(p) for p in phases]))]
        assert restored == phases

    def test_weigh_ins(self, profile, phases, state) -> None:
        history, _, _ = create_sample_history(profile, phases, state, start=PRECISE)
        history[2] = replace(history[2], is_edited=True, edited_at=PRECISE)
        payload = dumps([weigh_in_to_dict(w) for w in history])
        restored = [weigh_in_from_dict(w) for w in loads(payload)]
        assert restored == history

    def test_app_state(self, state) -> None:
        state = replace(
            state, plateau_mode=True, plateau_detected_at=PRECISE, last_weigh_in_date=PRECISE
        )
        restored = app_state_from_dict(loads(dumps(app_state_to_dict(state))))
        assert restored == state

    def test_unknown_keys_ignored(self, state) -> None:
        data = app_state_to_dict(state)
        data["legacy_flag"] = True
        assert app_state_from_dict(data) == state
