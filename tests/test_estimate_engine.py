"""Tests for :mod:`trip_estimate.engine`."""

from __future__ import annotations

import math
import pathlib
import sys

import pytest

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))

from trip_estimate.engine import calculate_estimate
from trip_estimate.formatting import format_estimate_text
from trip_estimate.inputs import build_inputs, inputs_from_form_data
from trip_estimate.models import CrewMember, EstimateInputs, FlightLeg


SUBTOTAL_FIELDS = (
    "crew_day_total",
    "crew_expenses_total",
    "crew_subtotal",
    "hourly_subtotal",
    "fuel_subtotal",
    "airport_subtotal",
    "misc_subtotal",
    "estimated_total",
)


def _leg(origin: str = "KTEB", destination: str = "KPBI", hours: int = 1, minutes: int = 0, fuel_burn: float = 0.0):
    return FlightLeg(origin=origin, destination=destination, hours=hours, minutes=minutes, fuel_burn=fuel_burn)


def test_empty_inputs_produce_all_zero_estimate() -> None:
    estimate = calculate_estimate(EstimateInputs())

    assert estimate.is_empty
    assert estimate.leg_count == 0
    for name in SUBTOTAL_FIELDS:
        assert getattr(estimate, name) == 0
    assert estimate.legs_summary == ()
    assert estimate.total_fuel_gallons == 0


def test_estimated_total_is_sum_of_subtotals() -> None:
    inputs = build_inputs(
        legs=[_leg(hours=2, minutes=15, fuel_burn=3100), _leg("KPBI", "KMIA", 0, 40, 900)],
        crew=[CrewMember("Pilot", 1650.5), CrewMember("Flight Attendant", 725.25)],
        trip_days=3,
        hotel_stays=2,
        hotel_rate=219.99,
        meals_rate=85,
        other_rate=12.5,
        rental_car=140,
        airfare=612.3,
        mileage=48.1,
        maintenance_rate=1100,
        consumables_rate=75.5,
        additional_rate=33.3,
        landing_fees=250,
        catering=412.77,
        handling=180,
        hangar=600,
        trip_coordination_fee=95,
        other_misc=20,
        include_apu=True,
        apu_burn=120,
    )

    estimate = calculate_estimate(inputs)

    assert estimate.estimated_total == (
        estimate.crew_subtotal
        + estimate.hourly_subtotal
        + estimate.fuel_subtotal
        + estimate.airport_subtotal
        + estimate.misc_subtotal
    )
    assert estimate.crew_subtotal == estimate.crew_day_total + estimate.crew_expenses_total


@pytest.mark.parametrize(
    "hours, minutes, fuel_burn, active",
    [
        (0, 0, 50, False),
        (1, 0, 0, False),
        (1, 0, 50, True),
        (0, 30, 50, True),
    ],
)
def test_apu_is_added_only_to_active_legs(hours: int, minutes: int, fuel_burn: float, active: bool) -> None:
    inputs = build_inputs(legs=[_leg(hours=hours, minutes=minutes, fuel_burn=fuel_burn)], include_apu=True, apu_burn=100)

    estimate = calculate_estimate(inputs)

    assert estimate.active_legs_count == (1 if active else 0)
    assert estimate.total_apu_fuel == (100 if active else 0)
    assert estimate.total_fuel_lbs == fuel_burn + (100 if active else 0)
    assert estimate.legs_summary[0].apu_included is active


def test_apu_is_ignored_when_not_included() -> None:
    inputs = build_inputs(legs=[_leg(hours=1, fuel_burn=500)], include_apu=False, apu_burn=100)

    estimate = calculate_estimate(inputs)

    assert estimate.active_legs_count == 0
    assert estimate.total_apu_fuel == 0
    assert estimate.total_fuel_lbs == 500


def test_flight_time_is_aggregated_across_legs() -> None:
    inputs = build_inputs(legs=[_leg(hours=1, minutes=30), _leg(hours=0, minutes=45), _leg(hours=2, minutes=0)])

    estimate = calculate_estimate(inputs)

    assert estimate.total_minutes == 255
    assert estimate.total_hours == 4
    assert estimate.remaining_minutes == 15
    assert estimate.total_flight_hours == pytest.approx(4.25)


def test_engine_does_not_clamp_minutes() -> None:
    estimate = calculate_estimate(build_inputs(legs=[_leg(hours=0, minutes=90)]))

    assert estimate.total_minutes == 90
    assert estimate.total_hours == 1
    assert estimate.remaining_minutes == 30


def test_unparseable_fuel_price_matches_default() -> None:
    legs = [{"from": "KTEB", "to": "KPBI", "hours": "2", "minutes": "0", "fuelBurn": "2500"}]

    garbage = calculate_estimate(inputs_from_form_data({"fuelPrice": "not-a-number"}, legs))
    omitted = calculate_estimate(inputs_from_form_data({}, legs))
    explicit = calculate_estimate(inputs_from_form_data({"fuelPrice": 5.93}, legs))

    assert garbage == omitted == explicit
    assert garbage.fuel_price == 5.93


def test_two_leg_round_trip_follows_the_fuel_formula() -> None:
    inputs = build_inputs(
        legs=[_leg("KTEB", "KPBI", 3, 0, 4000), _leg("KPBI", "KTEB", 3, 0, 4000)],
        crew=[CrewMember("Pilot", 1500), CrewMember("Pilot", 1500)],
        fuel_density=6.7,
        fuel_price=5.93,
        include_apu=True,
        apu_burn=100,
        trip_days=2,
    )

    estimate = calculate_estimate(inputs)

    # includeAPU applies to every active leg, so both legs carry the APU burn.
    assert estimate.active_legs_count == 2
    assert estimate.total_fuel_lbs == 8200
    assert estimate.legs_summary[0].gallons == pytest.approx(4100 / 6.7)
    assert estimate.total_fuel_gallons == pytest.approx(8200 / 6.7)
    assert estimate.fuel_subtotal == pytest.approx(8200 / 6.7 * 5.93)
    assert estimate.crew_day_total == 6000
    assert estimate.crew_expenses_total == 0
    assert estimate.crew_subtotal == 6000
    assert estimate.estimated_total == pytest.approx(6000 + 8200 / 6.7 * 5.93)


def test_crew_expenses_scale_with_crew_count() -> None:
    inputs = build_inputs(
        crew=[CrewMember("Pilot", 1000), CrewMember("Pilot", 1000), CrewMember("Flight Attendant", 500)],
        trip_days=4,
        hotel_stays=3,
        hotel_rate=200,
        meals_rate=50,
        other_rate=10,
        rental_car=300,
        airfare=0,
        mileage=25,
    )

    estimate = calculate_estimate(inputs)

    assert estimate.crew_count == 3
    assert [member.total for member in estimate.crew_details] == [4000, 4000, 2000]
    assert estimate.hotel_total == 3 * 3 * 200
    assert estimate.meals_total == 3 * 4 * 50
    assert estimate.other_total == 3 * 4 * 10
    assert estimate.crew_expenses_total == 1800 + 600 + 120 + 300 + 25


def test_crew_role_never_changes_cost() -> None:
    pilots = calculate_estimate(build_inputs(crew=[CrewMember("Pilot", 900)], trip_days=2))
    attendant = calculate_estimate(build_inputs(crew=[CrewMember("Chef", 900)], trip_days=2))

    assert pilots.crew_subtotal == attendant.crew_subtotal == 1800


def test_hourly_programs_bill_per_flight_hour() -> None:
    inputs = build_inputs(
        legs=[_leg(hours=1, minutes=30)],
        maintenance_rate=1000,
        consumables_rate=100,
        additional_rate=10,
    )

    estimate = calculate_estimate(inputs)

    assert estimate.maintenance_total == 1500
    assert estimate.consumables_total == 150
    assert estimate.additional_total == 15
    assert estimate.hourly_subtotal == 1665


def test_fees_sum_into_airport_and_misc_subtotals() -> None:
    inputs = build_inputs(
        landing_fees=1,
        catering=2,
        handling=3,
        passenger_transport=4,
        facility_fees=5,
        special_event_fees=6,
        ramp_parking=7,
        customs=8,
        hangar=9,
        other_airport=10,
        trip_coordination_fee=100,
        other_misc=11,
    )

    estimate = calculate_estimate(inputs)

    assert estimate.airport_subtotal == 55
    assert estimate.misc_subtotal == 111
    assert estimate.estimated_total == 166


def test_empty_locations_are_labelled() -> None:
    estimate = calculate_estimate(build_inputs(legs=[FlightLeg(hours=1)]))

    summary = estimate.legs_summary[0]
    assert summary.origin == "(empty)"
    assert summary.destination == "(empty)"
    assert summary.index == 1


def test_zero_fuel_density_propagates_instead_of_raising() -> None:
    burning = calculate_estimate(build_inputs(legs=[_leg(hours=1, fuel_burn=100)], fuel_density=0))
    idle = calculate_estimate(build_inputs(legs=[_leg(hours=1, fuel_burn=0)], fuel_density=0))

    assert burning.total_fuel_gallons == math.inf
    assert burning.estimated_total == math.inf
    assert math.isnan(idle.total_fuel_gallons)
    assert math.isnan(idle.estimated_total)


def test_negative_fuel_density_is_divided_normally() -> None:
    estimate = calculate_estimate(build_inputs(legs=[_leg(hours=1, fuel_burn=670)], fuel_density=-6.7))

    assert estimate.total_fuel_gallons == pytest.approx(-100)


def test_trip_notes_are_stripped_and_echoed() -> None:
    estimate = calculate_estimate(build_inputs(trip_notes="  Catering on board  "))

    assert estimate.trip_notes == "Catering on board"


def test_as_dict_uses_camel_case_keys() -> None:
    estimate = calculate_estimate(build_inputs(legs=[_leg(hours=1, fuel_burn=670)], crew=[CrewMember("Pilot", 1)]))

    payload = estimate.as_dict()

    assert payload["estimatedTotal"] == estimate.estimated_total
    assert payload["totalFuelGallons"] == estimate.total_fuel_gallons
    assert payload["legsSummary"][0]["from"] == "KTEB"
    assert payload["crewDetails"][0]["role"] == "Pilot"


def test_huge_flight_time_overflows_to_infinity_instead_of_raising() -> None:
    inputs = inputs_from_form_data({}, [{"from": "KTEB", "to": "KPBI", "hours": "1e308", "fuelBurn": "100"}])

    estimate = calculate_estimate(inputs)

    assert estimate.total_minutes == math.inf
    assert estimate.total_hours == math.inf
    assert estimate.total_flight_hours == math.inf
    assert not math.isfinite(estimate.estimated_total)
    assert "Total Flight Time: infh nanm" in format_estimate_text(estimate)


def test_huge_crew_multipliers_overflow_to_infinity() -> None:
    inputs = inputs_from_form_data(
        {"hotelStays": "1e308", "hotelRate": "200", "tripDays": "1e308", "mealsRate": "50"},
        crew=[{"role": "Pilot", "rate": "1500"}, {"role": "Pilot", "rate": "1500"}],
    )

    estimate = calculate_estimate(inputs)

    assert estimate.hotel_total == math.inf
    assert estimate.meals_total == math.inf
    assert estimate.crew_day_total == math.inf
    assert estimate.estimated_total == math.inf


def test_integers_too_large_for_a_float_use_the_default() -> None:
    inputs = build_inputs(legs=[{"hours": 10**400, "minutes": 30, "fuelBurn": 100}], trip_days=10**400)

    estimate = calculate_estimate(inputs)

    assert inputs.trip_days == 0
    assert estimate.total_minutes == 30
