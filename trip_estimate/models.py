"""Typed models shared by the trip estimate engine, formatter and exporters."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple


EMPTY_LOCATION_LABEL = "(empty)"


@dataclass(frozen=True)
class FlightLeg:
    """One point-to-point segment of the trip."""

    origin: str = ""
    destination: str = ""
    hours: float = 0
    minutes: float = 0
    fuel_burn: float = 0.0

    @property
    def flight_minutes(self) -> float:
        return float(self.hours) * 60 + float(self.minutes)

    @property
    def is_active(self) -> bool:
        """A leg needs both flight time and fuel burn to be eligible for APU fuel."""

        return (self.hours > 0 or self.minutes > 0) and self.fuel_burn > 0


@dataclass(frozen=True)
class CrewMember:
    role: str = "Pilot"
    rate: float = 0.0


@dataclass(frozen=True)
class EstimateInputs:
    """Fully typed parameter set for one estimate calculation."""

    legs: Tuple[FlightLeg, ...] = ()
    crew: Tuple[CrewMember, ...] = ()
    fuel_density: float = 6.7
    fuel_price: float = 5.93
    include_apu: bool = False
    apu_burn: float = 100.0
    trip_days: float = 0
    hotel_stays: float = 0
    hotel_rate: float = 0.0
    meals_rate: float = 0.0
    other_rate: float = 0.0
    rental_car: float = 0.0
    airfare: float = 0.0
    mileage: float = 0.0
    maintenance_rate: float = 0.0
    consumables_rate: float = 0.0
    additional_rate: float = 0.0
    landing_fees: float = 0.0
    catering: float = 0.0
    handling: float = 0.0
    passenger_transport: float = 0.0
    facility_fees: float = 0.0
    special_event_fees: float = 0.0
    ramp_parking: float = 0.0
    customs: float = 0.0
    hangar: float = 0.0
    other_airport: float = 0.0
    trip_coordination_fee: float = 0.0
    other_misc: float = 0.0
    trip_notes: str = ""


@dataclass(frozen=True)
class LegSummary:
    index: int
    origin: str
    destination: str
    hours: float
    minutes: float
    gallons: float
    apu_included: bool

    def as_dict(self) -> Dict[str, object]:
        return {
            "index": self.index,
            "from": self.origin,
            "to": self.destination,
            "hours": self.hours,
            "minutes": self.minutes,
            "gallons": self.gallons,
            "apuIncluded": self.apu_included,
        }


@dataclass(frozen=True)
class CrewDayRate:
    role: str
    days: float
    rate: float
    total: float

    def as_dict(self) -> Dict[str, object]:
        return {"role": self.role, "days": self.days, "rate": self.rate, "total": self.total}


# Airport/ground line items in display order: (attribute, label, payload key).
AIRPORT_FEE_FIELDS: Tuple[Tuple[str, str, str], ...] = (
    ("landing_fees", "Landing Fees", "landingFees"),
    ("catering", "Catering", "catering"),
    ("handling", "Handling", "handling"),
    ("passenger_transport", "Passenger Ground Transport", "passengerTransport"),
    ("facility_fees", "Facility Fees", "facilityFees"),
    ("special_event_fees", "Special Event Fees", "specialEventFees"),
    ("ramp_parking", "Ramp/Parking", "rampParking"),
    ("customs", "Customs", "customs"),
    ("hangar", "Hangar", "hangar"),
    ("other_airport", "Other", "otherAirport"),
)

MISC_FEE_FIELDS: Tuple[Tuple[str, str, str], ...] = (
    ("trip_coordination_fee", "Trip Coordination Fee", "tripCoordinationFee"),
    ("other_misc", "Other", "otherMisc"),
)


@dataclass(frozen=True)
class Estimate:
    """Itemized snapshot produced by :func:`trip_estimate.engine.calculate_estimate`.

    ``estimated_total`` is always the sum of ``crew_subtotal``,
    ``hourly_subtotal``, ``fuel_subtotal``, ``airport_subtotal`` and
    ``misc_subtotal``. Every rate and fee consumed by the calculation is echoed
    back so renderers only need this object.
    """

    leg_count: int
    legs_summary: Tuple[LegSummary, ...]
    total_minutes: float
    total_hours: float
    remaining_minutes: float
    total_flight_hours: float
    total_fuel_lbs: float
    total_fuel_gallons: float
    total_apu_fuel: float
    active_legs_count: int
    include_apu: bool
    apu_burn: float
    fuel_density: float
    fuel_price: float

    crew_details: Tuple[CrewDayRate, ...]
    crew_count: int
    trip_days: float
    crew_day_total: float
    hotel_stays: float
    hotel_rate: float
    hotel_total: float
    meals_rate: float
    meals_total: float
    other_rate: float
    other_total: float
    rental_car: float
    airfare: float
    mileage: float
    crew_expenses_total: float
    crew_subtotal: float

    maintenance_rate: float
    maintenance_total: float
    consumables_rate: float
    consumables_total: float
    additional_rate: float
    additional_total: float
    hourly_subtotal: float

    fuel_subtotal: float

    landing_fees: float
    catering: float
    handling: float
    passenger_transport: float
    facility_fees: float
    special_event_fees: float
    ramp_parking: float
    customs: float
    hangar: float
    other_airport: float
    airport_subtotal: float

    trip_coordination_fee: float
    other_misc: float
    misc_subtotal: float

    estimated_total: float
    trip_notes: str = ""

    @property
    def is_empty(self) -> bool:
        return self.leg_count == 0

    def airport_line_items(self) -> Tuple[Tuple[str, float], ...]:
        return tuple((label, getattr(self, attr)) for attr, label, _ in AIRPORT_FEE_FIELDS)

    def misc_line_items(self) -> Tuple[Tuple[str, float], ...]:
        return tuple((label, getattr(self, attr)) for attr, label, _ in MISC_FEE_FIELDS)

    def as_dict(self) -> Dict[str, object]:
        payload: Dict[str, object] = {
            "legCount": self.leg_count,
            "legsSummary": [leg.as_dict() for leg in self.legs_summary],
            "totalMinutes": self.total_minutes,
            "totalHours": self.total_hours,
            "remainingMinutes": self.remaining_minutes,
            "totalFlightHours": self.total_flight_hours,
            "totalFuelLbs": self.total_fuel_lbs,
            "totalFuelGallons": self.total_fuel_gallons,
            "totalAPUFuel": self.total_apu_fuel,
            "activeLegsCount": self.active_legs_count,
            "includeAPU": self.include_apu,
            "apuBurn": self.apu_burn,
            "fuelDensity": self.fuel_density,
            "fuelPrice": self.fuel_price,
            "crewDetails": [member.as_dict() for member in self.crew_details],
            "crewCount": self.crew_count,
            "tripDays": self.trip_days,
            "crewDayTotal": self.crew_day_total,
            "hotelStays": self.hotel_stays,
            "hotelRate": self.hotel_rate,
            "hotelTotal": self.hotel_total,
            "mealsRate": self.meals_rate,
            "mealsTotal": self.meals_total,
            "otherRate": self.other_rate,
            "otherTotal": self.other_total,
            "rentalCar": self.rental_car,
            "airfare": self.airfare,
            "mileage": self.mileage,
            "crewExpensesTotal": self.crew_expenses_total,
            "crewSubtotal": self.crew_subtotal,
            "maintenanceRate": self.maintenance_rate,
            "maintenanceTotal": self.maintenance_total,
            "consumablesRate": self.consumables_rate,
            "consumablesTotal": self.consumables_total,
            "additionalRate": self.additional_rate,
            "additionalTotal": self.additional_total,
            "hourlySubtotal": self.hourly_subtotal,
            "fuelSubtotal": self.fuel_subtotal,
            "airportSubtotal": self.airport_subtotal,
            "miscSubtotal": self.misc_subtotal,
            "estimatedTotal": self.estimated_total,
            "tripNotes": self.trip_notes,
        }
        for attr, _, key in AIRPORT_FEE_FIELDS + MISC_FEE_FIELDS:
            payload[key] = getattr(self, attr)
        return payload
