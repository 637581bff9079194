"""Aircraft profiles: named bundles of default rates for the calculator."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, replace
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Mapping, Optional

from .inputs import coerce_flag, coerce_number, coerce_text, coerce_whole

if TYPE_CHECKING:  # pragma: no cover
    from .calculator_state import CalculatorState


class ProfileError(ValueError):
    """Raised when a profile cannot be imported or located."""


@dataclass(frozen=True)
class Profile:
    id: Optional[str]
    name: str
    fuel_price: float = 6.00
    fuel_density: float = 6.7
    pilots_required: int = 0
    pilot_rate: float = 0.0
    attendants_required: int = 0
    attendant_rate: float = 0.0
    hotel_rate: float = 0.0
    meals_rate: float = 0.0
    maintenance_rate: float = 0.0
    apu_burn: float = 0.0
    profile_image_url: Optional[str] = None
    is_default: bool = False
    is_standard: bool = False


STANDARD_PROFILES: List[Profile] = [
    Profile(
        id="jet-large",
        name="Jet - Large",
        fuel_price=6.00,
        fuel_density=6.7,
        pilots_required=2,
        pilot_rate=2500.00,
        attendants_required=1,
        attendant_rate=1000.00,
        hotel_rate=300.00,
        meals_rate=150.00,
        maintenance_rate=1800.00,
        apu_burn=225,
        is_standard=True,
    ),
    Profile(
        id="jet-medium",
        name="Jet - Medium",
        fuel_price=6.00,
        fuel_density=6.7,
        pilots_required=2,
        pilot_rate=1600.00,
        attendants_required=0,
        attendant_rate=800.00,
        hotel_rate=250.00,
        meals_rate=100.00,
        maintenance_rate=1100.00,
        apu_burn=120,
        is_standard=True,
    ),
    Profile(
        id="jet-small",
        name="Jet - Small",
        fuel_price=6.00,
        fuel_density=6.7,
        pilots_required=1,
        pilot_rate=1300.00,
        attendants_required=0,
        attendant_rate=500.00,
        hotel_rate=250.00,
        meals_rate=100.00,
        maintenance_rate=800.00,
        apu_burn=0,
        is_standard=True,
    ),
    Profile(
        id="turboprop-twin",
        name="Turboprop - Twin",
        fuel_price=6.00,
        fuel_density=6.7,
        pilots_required=1,
        pilot_rate=1000.00,
        attendants_required=0,
        attendant_rate=500.00,
        hotel_rate=250.00,
        meals_rate=100.00,
        maintenance_rate=800.00,
        apu_burn=0,
        is_standard=True,
    ),
    Profile(
        id="turboprop-single",
        name="Turboprop - Single",
        fuel_price=6.00,
        fuel_density=6.7,
        pilots_required=1,
        pilot_rate=1000.00,
        attendants_required=0,
        attendant_rate=500.00,
        hotel_rate=250.00,
        meals_rate=100.00,
        maintenance_rate=500.00,
        apu_burn=0,
        is_standard=True,
    ),
]

DEFAULT_PROFILE_ID = "jet-medium"

# Profile attribute -> camelCase key used in exported JSON.
_EXPORT_KEYS = {
    "fuel_price": "fuelPrice",
    "fuel_density": "fuelDensity",
    "pilots_required": "pilotsRequired",
    "pilot_rate": "pilotRate",
    "attendants_required": "attendantsRequired",
    "attendant_rate": "attendantRate",
    "hotel_rate": "hotelRate",
    "meals_rate": "mealsRate",
    "maintenance_rate": "maintenanceRate",
    "apu_burn": "apuBurn",
}


def all_profiles(user_profiles: Iterable[Profile] = ()) -> List[Profile]:
    return [*STANDARD_PROFILES, *user_profiles]


def find_profile(profile_id: Optional[str], profiles: Iterable[Profile]) -> Optional[Profile]:
    for profile in profiles:
        if profile.id == profile_id:
            return profile
    return None


def select_profile(profile_id: Optional[str], user_profiles: Iterable[Profile] = ()) -> Profile:
    """Return the requested profile, falling back to the default standard profile."""

    candidates = all_profiles(user_profiles)
    selected = find_profile(profile_id, candidates)
    if selected is None:
        selected = find_profile(DEFAULT_PROFILE_ID, STANDARD_PROFILES)
    assert selected is not None
    return selected


def default_user_profile(user_profiles: Iterable[Profile]) -> Optional[Profile]:
    for profile in user_profiles:
        if profile.is_default:
            return profile
    return None


def apply_profile(state: "CalculatorState", profile: Profile) -> None:
    """Copy a profile's rates onto the calculator and rebuild its crew roster."""

    state.set_fields(
        fuelPrice=profile.fuel_price or 6.00,
        fuelDensity=profile.fuel_density or 6.7,
        hotelRate=profile.hotel_rate or 0,
        mealsRate=profile.meals_rate or 0,
        maintenanceRate=profile.maintenance_rate or 0,
        apuBurn=profile.apu_burn or 0,
    )
    state.clear_crew()
    for _ in range(max(int(profile.pilots_required or 0), 0)):
        state.add_crew("Pilot", profile.pilot_rate or 0)
    for _ in range(max(int(profile.attendants_required or 0), 0)):
        state.add_crew("Flight Attendant", profile.attendant_rate or 0)


def profile_to_dict(profile: Profile) -> Dict[str, Any]:
    """Return the exportable rate fields of ``profile`` (no ids or flags)."""

    values = asdict(profile)
    exported: Dict[str, Any] = {"name": profile.name}
    for attr, key in _EXPORT_KEYS.items():
        exported[key] = values[attr]
    return exported


def profile_to_json(profile: Profile) -> str:
    return json.dumps(profile_to_dict(profile), indent=2)


def profile_from_dict(data: Mapping[str, Any], *, profile_id: Optional[str] = None) -> Profile:
    name = coerce_text(data.get("name"))
    if not name:
        raise ProfileError("Profile must have a name")
    return Profile(
        id=profile_id,
        name=name,
        fuel_price=coerce_number(data.get("fuelPrice"), 0.0),
        fuel_density=coerce_number(data.get("fuelDensity"), 6.7),
        pilots_required=coerce_whole(data.get("pilotsRequired"), 0),
        pilot_rate=coerce_number(data.get("pilotRate"), 0.0),
        attendants_required=coerce_whole(data.get("attendantsRequired"), 0),
        attendant_rate=coerce_number(data.get("attendantRate"), 0.0),
        hotel_rate=coerce_number(data.get("hotelRate"), 0.0),
        meals_rate=coerce_number(data.get("mealsRate"), 0.0),
        maintenance_rate=coerce_number(data.get("maintenanceRate"), 0.0),
        apu_burn=coerce_number(data.get("apuBurn"), 0.0),
    )


def profile_from_json(text: str) -> Profile:
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as exc:
        raise ProfileError("Invalid profile JSON") from exc
    if not isinstance(data, Mapping):
        raise ProfileError("Invalid profile JSON")
    return profile_from_dict(data)


def duplicate_profile(profile: Profile) -> Profile:
    return replace(
        profile,
        id=None,
        name=f"{profile.name} (Copy)",
        is_default=False,
        is_standard=False,
    )


def profile_from_row(row: Mapping[str, Any]) -> Profile:
    """Transform a ``profiles`` table row into a :class:`Profile`."""

    return Profile(
        id=coerce_text(row.get("id")) or None,
        name=coerce_text(row.get("name")),
        fuel_price=coerce_number(row.get("fuel_price"), 0.0),
        fuel_density=coerce_number(row.get("fuel_density"), 6.7),
        pilots_required=coerce_whole(row.get("pilots_required"), 0),
        pilot_rate=coerce_number(row.get("pilot_rate"), 0.0),
        attendants_required=coerce_whole(row.get("attendants_required"), 0),
        attendant_rate=coerce_number(row.get("attendant_rate"), 0.0),
        hotel_rate=coerce_number(row.get("hotel_rate"), 0.0),
        meals_rate=coerce_number(row.get("meals_rate"), 0.0),
        maintenance_rate=coerce_number(row.get("maintenance_rate"), 0.0),
        apu_burn=coerce_whole(row.get("apu_burn"), 0),
        profile_image_url=coerce_text(row.get("profile_image_url")) or None,
        is_default=coerce_flag(row.get("is_default"), False),
        is_standard=False,
    )


def profile_to_row(profile: Profile) -> Dict[str, Any]:
    return {
        "name": profile.name,
        "fuel_price": profile.fuel_price,
        "fuel_density": profile.fuel_density,
        "pilots_required": profile.pilots_required,
        "pilot_rate": profile.pilot_rate,
        "attendants_required": profile.attendants_required,
        "attendant_rate": profile.attendant_rate,
        "hotel_rate": profile.hotel_rate,
        "meals_rate": profile.meals_rate,
        "maintenance_rate": profile.maintenance_rate,
        "apu_burn": profile.apu_burn,
        "profile_image_url": profile.profile_image_url,
        "is_default": profile.is_default,
    }
