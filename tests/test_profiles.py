"""Tests for aircraft profile presets."""

from __future__ import annotations

import json
import pathlib
import sys

import pytest

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))

from trip_estimate.calculator_state import CalculatorState
from trip_estimate.profiles import (
    DEFAULT_PROFILE_ID,
    STANDARD_PROFILES,
    Profile,
    ProfileError,
    apply_profile,
    default_user_profile,
    duplicate_profile,
    find_profile,
    profile_from_json,
    profile_from_row,
    profile_to_dict,
    profile_to_json,
    profile_to_row,
    select_profile,
)


def test_standard_profiles_are_marked_and_unique() -> None:
    ids = [profile.id for profile in STANDARD_PROFILES]

    assert ids == ["jet-large", "jet-medium", "jet-small", "turboprop-twin", "turboprop-single"]
    assert all(profile.is_standard for profile in STANDARD_PROFILES)


def test_select_profile_falls_back_to_default() -> None:
    assert select_profile("jet-small").id == "jet-small"
    assert select_profile("missing").id == DEFAULT_PROFILE_ID
    assert select_profile(None).id == DEFAULT_PROFILE_ID


def test_select_profile_finds_user_profiles() -> None:
    custom = Profile(id="abc", name="Citation X")

    assert select_profile("abc", [custom]) is custom
    assert find_profile("abc", STANDARD_PROFILES) is None


def test_default_user_profile() -> None:
    profiles = [Profile(id="1", name="A"), Profile(id="2", name="B", is_default=True)]

    assert default_user_profile(profiles).id == "2"
    assert default_user_profile([]) is None


def test_apply_profile_sets_rates_and_rebuilds_crew() -> None:
    state = CalculatorState()
    state.add_crew("Chef", 10)

    apply_profile(state, select_profile("jet-large"))

    assert state.form_data["fuelPrice"] == 6.0
    assert state.form_data["hotelRate"] == 300
    assert state.form_data["maintenanceRate"] == 1800
    assert state.form_data["apuBurn"] == 225
    assert [(row["role"], row["rate"]) for row in state.crew] == [
        ("Pilot", 2500.0),
        ("Pilot", 2500.0),
        ("Flight Attendant", 1000.0),
    ]


def test_json_export_contains_rate_fields_only() -> None:
    exported = json.loads(profile_to_json(select_profile("jet-medium")))

    assert exported["name"] == "Jet - Medium"
    assert exported["pilotsRequired"] == 2
    assert exported["apuBurn"] == 120
    assert "id" not in exported
    assert "isStandard" not in exported


def test_json_import_round_trips_rates() -> None:
    original = select_profile("turboprop-twin")

    imported = profile_from_json(profile_to_json(original))

    assert imported.id is None
    assert imported.is_standard is False
    assert profile_to_dict(imported) == profile_to_dict(original)


@pytest.mark.parametrize("payload", ["not json", "[1, 2]", json.dumps({"pilotRate": 100})])
def test_json_import_rejects_bad_payloads(payload: str) -> None:
    with pytest.raises(ProfileError):
        profile_from_json(payload)


def test_duplicate_profile() -> None:
    copy = duplicate_profile(Profile(id="x", name="Citation", is_default=True, pilot_rate=900))

    assert copy.name == "Citation (Copy)"
    assert copy.id is None
    assert copy.is_default is False
    assert copy.pilot_rate == 900


def test_profile_row_transform_uses_defaults() -> None:
    profile = profile_from_row({"id": 7, "name": "Phenom", "fuel_price": "6.25", "pilots_required": None, "is_default": True})

    assert profile.id == "7"
    assert profile.fuel_price == 6.25
    assert profile.fuel_density == 6.7
    assert profile.pilots_required == 0
    assert profile.is_default is True
    assert profile.is_standard is False

    row = profile_to_row(profile)
    assert row["name"] == "Phenom"
    assert row["fuel_price"] == 6.25
    assert "id" not in row
