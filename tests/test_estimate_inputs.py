"""Tests for the parse-or-default boundary in :mod:`trip_estimate.inputs`."""

from __future__ import annotations

import pathlib
import sys

import pytest

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))

from trip_estimate.inputs import (
    build_inputs,
    coerce_flag,
    coerce_leg,
    coerce_number,
    coerce_whole,
    inputs_from_form_data,
    inputs_from_record_data,
    normalize_form_data,
)
from trip_estimate.models import CrewMember, FlightLeg


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("12.5", 12.5),
        (" 7 ", 7.0),
        ("1,250.75", 1250.75),
        (3, 3.0),
        (0, 0.0),
        ("0", 0.0),
        ("", 9.0),
        (None, 9.0),
        ("abc", 9.0),
        ("nan", 9.0),
        ("inf", 9.0),
        (float("nan"), 9.0),
        (True, 9.0),
    ],
)
def test_coerce_number_falls_back_to_default(raw, expected) -> None:
    assert coerce_number(raw, 9.0) == expected


def test_coerce_whole_truncates_toward_zero() -> None:
    assert coerce_whole("2.9", 0) == 2
    assert coerce_whole(-1.5, 0) == -1
    assert coerce_whole("x", 4) == 4


@pytest.mark.parametrize(
    "raw, expected",
    [(True, True), ("true", True), ("on", True), ("1", True), ("false", False), ("", False), (0, False), ("maybe", True)],
)
def test_coerce_flag(raw, expected) -> None:
    assert coerce_flag(raw, default=True) is expected


def test_coerce_leg_accepts_form_and_python_names() -> None:
    form_leg = coerce_leg({"from": " kteb ", "to": "KPBI", "hours": "2", "minutes": "75", "fuelBurn": "3,000"})
    python_leg = coerce_leg({"origin": "KTEB", "destination": "KPBI", "fuel_burn": 10})

    assert form_leg == FlightLeg(origin="kteb", destination="KPBI", hours=2, minutes=75, fuel_burn=3000.0)
    assert python_leg.origin == "KTEB"
    assert python_leg.fuel_burn == 10
    assert coerce_leg(None) == FlightLeg()


def test_explicit_zero_is_kept_instead_of_default() -> None:
    inputs = inputs_from_form_data({"fuelPrice": "0", "fuelDensity": 0})

    assert inputs.fuel_price == 0
    assert inputs.fuel_density == 0


def test_missing_fields_use_documented_defaults() -> None:
    inputs = inputs_from_form_data({})

    assert inputs.fuel_density == 6.7
    assert inputs.fuel_price == 5.93
    assert inputs.apu_burn == 100
    assert inputs.include_apu is False
    assert inputs.trip_days == 0
    assert inputs.trip_notes == ""


def test_legacy_hourly_keys_are_aliases() -> None:
    inputs = inputs_from_form_data(
        {"maintenancePrograms": "1100", "otherConsumables": "50", "additionalHourly": "25"}
    )

    assert inputs.maintenance_rate == 1100
    assert inputs.consumables_rate == 50
    assert inputs.additional_rate == 25


def test_current_key_wins_over_legacy_alias() -> None:
    normalized = normalize_form_data({"maintenanceRate": "900", "maintenancePrograms": "1100"})

    assert normalized["maintenanceRate"] == "900"


def test_crew_role_defaults_to_pilot() -> None:
    inputs = inputs_from_form_data({}, crew=[{"rate": "1500"}, {"role": "Flight Attendant", "rate": None}])

    assert inputs.crew == (CrewMember("Pilot", 1500.0), CrewMember("Flight Attendant", 0.0))


def test_record_data_accepts_nested_and_flat_layouts() -> None:
    legs = [{"from": "KTEB", "to": "KPBI", "hours": 3, "minutes": 0, "fuelBurn": 4000}]
    nested = inputs_from_record_data({"legs": legs, "crew": [], "formData": {"fuelPrice": "6.10", "tripDays": "2"}})
    flat = inputs_from_record_data({"legs": legs, "crew": [], "fuelPrice": "6.10", "tripDays": "2"})

    assert nested == flat
    assert nested.fuel_price == 6.1
    assert nested.trip_days == 2
    assert inputs_from_record_data(None).legs == ()


def test_build_inputs_rejects_unknown_names() -> None:
    with pytest.raises(TypeError, match="fuel_prize"):
        build_inputs(fuel_prize=5)


def test_build_inputs_coerces_values() -> None:
    inputs = build_inputs(legs=[{"from": "A", "to": "B", "hours": "1"}], fuel_price="6.5", include_apu="yes")

    assert inputs.fuel_price == 6.5
    assert inputs.include_apu is True
    assert inputs.legs[0].hours == 1
