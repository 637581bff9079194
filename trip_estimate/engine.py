"""Trip cost estimate engine.

The engine is a pure function of :class:`EstimateInputs`. It never performs
I/O and never raises for any coerced input, so the calculator page can call it
on every widget change.
"""

from __future__ import annotations

import math
from typing import List

from .models import (
    EMPTY_LOCATION_LABEL,
    CrewDayRate,
    Estimate,
    EstimateInputs,
    LegSummary,
)


def _divide(numerator: float, denominator: float) -> float:
    """Float division that follows IEEE-754 instead of raising on zero."""

    if denominator != 0:
        return numerator / denominator
    if numerator == 0 or math.isnan(numerator):
        return math.nan
    return math.copysign(math.inf, numerator) * math.copysign(1.0, denominator)


def calculate_estimate(inputs: EstimateInputs) -> Estimate:
    """Return the itemized cost breakdown for ``inputs``."""

    fuel_density = inputs.fuel_density

    total_minutes = 0.0
    total_fuel_lbs = 0.0
    total_apu_fuel = 0.0
    active_legs_count = 0
    legs_summary: List[LegSummary] = []

    for index, leg in enumerate(inputs.legs, start=1):
        total_minutes += leg.flight_minutes

        apu_included = inputs.include_apu and leg.is_active
        leg_fuel_total = leg.fuel_burn
        if apu_included:
            leg_fuel_total += inputs.apu_burn
            total_apu_fuel += inputs.apu_burn
            active_legs_count += 1

        total_fuel_lbs += leg_fuel_total

        legs_summary.append(
            LegSummary(
                index=index,
                origin=leg.origin or EMPTY_LOCATION_LABEL,
                destination=leg.destination or EMPTY_LOCATION_LABEL,
                hours=leg.hours,
                minutes=leg.minutes,
                gallons=_divide(leg_fuel_total, fuel_density),
                apu_included=apu_included,
            )
        )

    total_hours = int(total_minutes // 60) if math.isfinite(total_minutes) else total_minutes
    remaining_minutes = total_minutes % 60
    total_fuel_gallons = _divide(total_fuel_lbs, fuel_density)
    total_flight_hours = total_minutes / 60

    trip_days = inputs.trip_days
    crew_count = len(inputs.crew)
    crew_day_total = 0.0
    crew_details: List[CrewDayRate] = []
    for member in inputs.crew:
        total = member.rate * trip_days
        crew_day_total += total
        crew_details.append(CrewDayRate(role=member.role, days=trip_days, rate=member.rate, total=total))

    hotel_total = float(crew_count) * inputs.hotel_stays * inputs.hotel_rate
    meals_total = float(crew_count) * trip_days * inputs.meals_rate
    other_total = float(crew_count) * trip_days * inputs.other_rate
    crew_expenses_total = (
        hotel_total + meals_total + other_total + inputs.rental_car + inputs.airfare + inputs.mileage
    )
    crew_subtotal = crew_day_total + crew_expenses_total

    maintenance_total = total_flight_hours * inputs.maintenance_rate
    consumables_total = total_flight_hours * inputs.consumables_rate
    additional_total = total_flight_hours * inputs.additional_rate
    hourly_subtotal = maintenance_total + consumables_total + additional_total

    fuel_subtotal = total_fuel_gallons * inputs.fuel_price

    airport_subtotal = (
        inputs.landing_fees
        + inputs.catering
        + inputs.handling
        + inputs.passenger_transport
        + inputs.facility_fees
        + inputs.special_event_fees
        + inputs.ramp_parking
        + inputs.customs
        + inputs.hangar
        + inputs.other_airport
    )

    misc_subtotal = inputs.trip_coordination_fee + inputs.other_misc

    estimated_total = crew_subtotal + hourly_subtotal + fuel_subtotal + airport_subtotal + misc_subtotal

    return Estimate(
        leg_count=len(inputs.legs),
        legs_summary=tuple(legs_summary),
        total_minutes=total_minutes,
        total_hours=total_hours,
        remaining_minutes=remaining_minutes,
        total_flight_hours=total_flight_hours,
        total_fuel_lbs=total_fuel_lbs,
        total_fuel_gallons=total_fuel_gallons,
        total_apu_fuel=total_apu_fuel,
        active_legs_count=active_legs_count,
        include_apu=inputs.include_apu,
        apu_burn=inputs.apu_burn,
        fuel_density=fuel_density,
        fuel_price=inputs.fuel_price,
        crew_details=tuple(crew_details),
        crew_count=crew_count,
        trip_days=trip_days,
        crew_day_total=crew_day_total,
        hotel_stays=inputs.hotel_stays,
        hotel_rate=inputs.hotel_rate,
        hotel_total=hotel_total,
        meals_rate=inputs.meals_rate,
        meals_total=meals_total,
        other_rate=inputs.other_rate,
        other_total=other_total,
        rental_car=inputs.rental_car,
        airfare=inputs.airfare,
        mileage=inputs.mileage,
        crew_expenses_total=crew_expenses_total,
        crew_subtotal=crew_subtotal,
        maintenance_rate=inputs.maintenance_rate,
        maintenance_total=maintenance_total,
        consumables_rate=inputs.consumables_rate,
        consumables_total=consumables_total,
        additional_rate=inputs.additional_rate,
        additional_total=additional_total,
        hourly_subtotal=hourly_subtotal,
        fuel_subtotal=fuel_subtotal,
        landing_fees=inputs.landing_fees,
        catering=inputs.catering,
        handling=inputs.handling,
        passenger_transport=inputs.passenger_transport,
        facility_fees=inputs.facility_fees,
        special_event_fees=inputs.special_event_fees,
        ramp_parking=inputs.ramp_parking,
        customs=inputs.customs,
        hangar=inputs.hangar,
        other_airport=inputs.other_airport,
        airport_subtotal=airport_subtotal,
        trip_coordination_fee=inputs.trip_coordination_fee,
        other_misc=inputs.other_misc,
        misc_subtotal=misc_subtotal,
        estimated_total=estimated_total,
        trip_notes=inputs.trip_notes.strip(),
    )
