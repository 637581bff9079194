"""Parse-or-default coercion from raw form values to :class:`EstimateInputs`.

Every value that reaches the engine passes through this module. Form inputs
arrive as strings, saved records may contain strings, numbers or nothing at
all, and a value that cannot be read as a finite number always falls back to
the documented default for its field rather than raising.
"""

from __future__ import annotations

import math
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from .models import CrewMember, EstimateInputs, FlightLeg


INPUT_DEFAULTS: Dict[str, Any] = {
    "fuelDensity": 6.7,
    "fuelPrice": 5.93,
    "includeAPU": False,
    "apuBurn": 100.0,
    "tripDays": 0,
    "hotelStays": 0,
    "hotelRate": 0.0,
    "mealsRate": 0.0,
    "otherRate": 0.0,
    "rentalCar": 0.0,
    "airfare": 0.0,
    "mileage": 0.0,
    "maintenanceRate": 0.0,
    "consumablesRate": 0.0,
    "additionalRate": 0.0,
    "landingFees": 0.0,
    "catering": 0.0,
    "handling": 0.0,
    "passengerTransport": 0.0,
    "facilityFees": 0.0,
    "specialEventFees": 0.0,
    "rampParking": 0.0,
    "customs": 0.0,
    "hangar": 0.0,
    "otherAirport": 0.0,
    "tripCoordinationFee": 0.0,
    "otherMisc": 0.0,
    "tripNotes": "",
}
"""Defaults used whenever a form value is absent or unparseable."""

# Form key -> EstimateInputs attribute for the plain numeric fields.
NUMERIC_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("fuelDensity", "fuel_density"),
    ("fuelPrice", "fuel_price"),
    ("apuBurn", "apu_burn"),
    ("hotelRate", "hotel_rate"),
    ("mealsRate", "meals_rate"),
    ("otherRate", "other_rate"),
    ("rentalCar", "rental_car"),
    ("airfare", "airfare"),
    ("mileage", "mileage"),
    ("maintenanceRate", "maintenance_rate"),
    ("consumablesRate", "consumables_rate"),
    ("additionalRate", "additional_rate"),
    ("landingFees", "landing_fees"),
    ("catering", "catering"),
    ("handling", "handling"),
    ("passengerTransport", "passenger_transport"),
    ("facilityFees", "facility_fees"),
    ("specialEventFees", "special_event_fees"),
    ("rampParking", "ramp_parking"),
    ("customs", "customs"),
    ("hangar", "hangar"),
    ("otherAirport", "other_airport"),
    ("tripCoordinationFee", "trip_coordination_fee"),
    ("otherMisc", "other_misc"),
)

WHOLE_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("tripDays", "trip_days"),
    ("hotelStays", "hotel_stays"),
)

# Older saved estimates used the element ids of the hourly-program inputs.
LEGACY_FORM_KEYS: Dict[str, str] = {
    "maintenancePrograms": "maintenanceRate",
    "otherConsumables": "consumablesRate",
    "additionalHourly": "additionalRate",
}

_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"", "0", "false", "no", "off"}


def coerce_number(value: Any, default: float) -> float:
    """Return ``value`` as a finite float, or ``default`` when it is not one."""

    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return default
    elif isinstance(value, str):
        text = value.strip().replace(",", "")
        if not text:
            return default
        try:
            number = float(text)
        except ValueError:
            return default
    else:
        try:
            number = float(value)
        except (TypeError, ValueError, OverflowError):
            return default
    if not math.isfinite(number):
        return default
    return number


def coerce_whole(value: Any, default: int) -> int:
    """Coerce ``value`` to a number and truncate it toward zero."""

    number = coerce_number(value, float(default))
    return int(number)


def coerce_flag(value: Any, default: bool = False) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    return default


def coerce_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _leg_value(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in raw:
            return raw[key]
    return None


def coerce_leg(raw: Any) -> FlightLeg:
    """Build a :class:`FlightLeg` from a leg row, mapping or existing leg."""

    if isinstance(raw, FlightLeg):
        return raw
    if not isinstance(raw, Mapping):
        return FlightLeg()
    return FlightLeg(
        origin=coerce_text(_leg_value(raw, "from", "origin")),
        destination=coerce_text(_leg_value(raw, "to", "destination")),
        hours=coerce_whole(raw.get("hours"), 0),
        minutes=coerce_whole(raw.get("minutes"), 0),
        fuel_burn=coerce_number(_leg_value(raw, "fuelBurn", "fuel_burn"), 0.0),
    )


def coerce_crew_member(raw: Any) -> CrewMember:
    if isinstance(raw, CrewMember):
        return raw
    if not isinstance(raw, Mapping):
        return CrewMember()
    role = coerce_text(raw.get("role")) or "Pilot"
    return CrewMember(role=role, rate=coerce_number(raw.get("rate"), 0.0))


def normalize_form_data(form_data: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Return ``form_data`` with legacy keys renamed to their current names."""

    normalized: Dict[str, Any] = {}
    for key, value in (form_data or {}).items():
        target = LEGACY_FORM_KEYS.get(key, key)
        if target in normalized and key != target:
            # A current key wins over its legacy alias.
            continue
        normalized[target] = value
    return normalized


def build_inputs(
    legs: Iterable[Any] = (),
    crew: Iterable[Any] = (),
    **fields: Any,
) -> EstimateInputs:
    """Build inputs from snake_case keyword values, coercing each one."""

    form_data: Dict[str, Any] = {}
    for form_key, attr in NUMERIC_FIELDS + WHOLE_FIELDS:
        if attr in fields:
            form_data[form_key] = fields.pop(attr)
    if "include_apu" in fields:
        form_data["includeAPU"] = fields.pop("include_apu")
    if "trip_notes" in fields:
        form_data["tripNotes"] = fields.pop("trip_notes")
    if fields:
        unknown = ", ".join(sorted(fields))
        raise TypeError(f"Unknown estimate input(s): {unknown}")
    return inputs_from_form_data(form_data, legs, crew)


def inputs_from_form_data(
    form_data: Optional[Mapping[str, Any]],
    legs: Iterable[Any] = (),
    crew: Iterable[Any] = (),
) -> EstimateInputs:
    """Coerce camelCase form values (usually strings) into :class:`EstimateInputs`."""

    data = normalize_form_data(form_data)
    values: Dict[str, Any] = {}
    for form_key, attr in NUMERIC_FIELDS:
        values[attr] = coerce_number(data.get(form_key), INPUT_DEFAULTS[form_key])
    for form_key, attr in WHOLE_FIELDS:
        values[attr] = coerce_whole(data.get(form_key), INPUT_DEFAULTS[form_key])

    return EstimateInputs(
        legs=tuple(coerce_leg(leg) for leg in (legs or ())),
        crew=tuple(coerce_crew_member(member) for member in (crew or ())),
        include_apu=coerce_flag(data.get("includeAPU"), INPUT_DEFAULTS["includeAPU"]),
        trip_notes=coerce_text(data.get("tripNotes")),
        **values,
    )


def inputs_from_record_data(data: Optional[Mapping[str, Any]]) -> EstimateInputs:
    """Coerce a saved estimate payload in either the nested or the flat layout.

    Nested payloads look like ``{"legs": [...], "crew": [...], "formData": {...}}``;
    flat payloads keep the form values next to ``legs`` and ``crew``.
    """

    payload = data or {}
    form_data = payload.get("formData")
    if not isinstance(form_data, Mapping):
        form_data = {key: value for key, value in payload.items() if key not in {"legs", "crew"}}
    return inputs_from_form_data(form_data, payload.get("legs") or (), payload.get("crew") or ())
