"""Streamlit session-state helpers shared by the calculator, saved-estimate and profile pages."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

import streamlit as st

from trip_estimate.calculator_state import CalculatorState, new_calculator_state
from trip_estimate.inputs import INPUT_DEFAULTS, coerce_flag, coerce_number, coerce_text, coerce_whole
from trip_estimate.models import AIRPORT_FEE_FIELDS, MISC_FEE_FIELDS
from trip_estimate.profiles import Profile, apply_profile, default_user_profile, select_profile
from trip_estimate.records import EstimateRecord


CALCULATOR_KEY = "calc_state"
PROFILE_KEY = "calc_profile_id"
LOADED_KEY = "calc_loaded"
EDITOR_VERSION_KEY = "calc_editor_version"
USER_PROFILES_KEY = "calc_user_profiles"
ESTIMATE_NAME_KEY = "calc_estimate_name"
SHARE_URL_KEY = "calc_share_url"

WHOLE_KEYS = {"tripDays", "hotelStays"}
FLAG_KEYS = {"includeAPU"}
TEXT_KEYS = {"tripNotes"}

FIELD_SECTIONS: Tuple[Tuple[str, Tuple[Tuple[str, str], ...]], ...] = (
    (
        "Trip",
        (("tripDays", "Trip Days"), ("hotelStays", "Hotel Stays (nights)")),
    ),
    (
        "Fuel",
        (
            ("fuelPrice", "Fuel Price ($/gal)"),
            ("fuelDensity", "Fuel Density (lbs/gal)"),
            ("includeAPU", "Include APU burn"),
            ("apuBurn", "APU Burn per Leg (lbs)"),
        ),
    ),
    (
        "Crew Expenses",
        (
            ("hotelRate", "Hotel Rate ($/night)"),
            ("mealsRate", "Meals ($/day)"),
            ("otherRate", "Other ($/day)"),
            ("rentalCar", "Rental Car ($)"),
            ("airfare", "Airfare ($)"),
            ("mileage", "Mileage ($)"),
        ),
    ),
    (
        "Hourly Programs & Reserves",
        (
            ("maintenanceRate", "Maintenance Programs ($/hr)"),
            ("consumablesRate", "Other Consumables ($/hr)"),
            ("additionalRate", "Additional ($/hr)"),
        ),
    ),
    (
        "Airport & Ground",
        tuple((key, label) for _, label, key in AIRPORT_FEE_FIELDS),
    ),
    (
        "Miscellaneous",
        tuple((key, label) for _, label, key in MISC_FEE_FIELDS),
    ),
)


@dataclass
class LoadedEstimate:
    """The saved estimate currently open in the calculator."""

    id: str
    name: str
    snapshot: Dict[str, Any] = field(default_factory=dict)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    owner_email: Optional[str] = None
    remote: bool = False


def field_widget_key(key: str) -> str:
    return f"calc_field_{key}"


def widget_value(state: CalculatorState, key: str) -> Any:
    raw = state.form_data.get(key)
    if key in FLAG_KEYS:
        return coerce_flag(raw, INPUT_DEFAULTS[key])
    if key in TEXT_KEYS:
        return coerce_text(raw)
    if key in WHOLE_KEYS:
        return coerce_whole(raw, INPUT_DEFAULTS[key])
    return coerce_number(raw, float(INPUT_DEFAULTS[key]))


def sync_widgets_from_state(state: CalculatorState) -> None:
    """Push form values into the widget keys; call before the widgets render."""

    for key in INPUT_DEFAULTS:
        st.session_state[field_widget_key(key)] = widget_value(state, key)


def editor_version() -> int:
    return int(st.session_state.get(EDITOR_VERSION_KEY, 0))


def bump_editor_version() -> None:
    st.session_state[EDITOR_VERSION_KEY] = editor_version() + 1


def editor_base_frame(name: str, build: Callable[[], Any]) -> Tuple[str, Any]:
    """Return the data editor key and the frame it was opened with.

    Streamlit derives the editor id from its data, so the frame is rebuilt from
    the calculator state only for a new editor version or after the editor
    state was dropped.
    """

    editor_key = f"calc_{name}_editor_{editor_version()}"
    base_key = f"calc_{name}_editor_base"
    cached = st.session_state.get(base_key)
    if editor_key not in st.session_state or cached is None or cached[0] != editor_key:
        cached = (editor_key, build())
        st.session_state[base_key] = cached
    return cached


def user_profiles() -> List[Profile]:
    return list(st.session_state.get(USER_PROFILES_KEY) or [])


def has_user_profiles() -> bool:
    return USER_PROFILES_KEY in st.session_state


def set_user_profiles(profiles: List[Profile]) -> None:
    st.session_state[USER_PROFILES_KEY] = list(profiles)


def get_calculator_state() -> CalculatorState:
    state = st.session_state.get(CALCULATOR_KEY)
    if isinstance(state, CalculatorState):
        return state

    profiles = user_profiles()
    profile = default_user_profile(profiles) or select_profile(None, profiles)
    state = new_calculator_state(profile)
    st.session_state[CALCULATOR_KEY] = state
    st.session_state[PROFILE_KEY] = profile.id
    sync_widgets_from_state(state)
    return state


def loaded_estimate() -> Optional[LoadedEstimate]:
    loaded = st.session_state.get(LOADED_KEY)
    return loaded if isinstance(loaded, LoadedEstimate) else None


def set_loaded_estimate(record: Optional[EstimateRecord], *, remote: bool = False) -> None:
    previous = loaded_estimate()
    if previous is None or record is None or previous.id != record.id:
        st.session_state.pop(SHARE_URL_KEY, None)
    if record is None:
        st.session_state.pop(LOADED_KEY, None)
        st.session_state[ESTIMATE_NAME_KEY] = ""
        return
    st.session_state[ESTIMATE_NAME_KEY] = record.name
    st.session_state[LOADED_KEY] = LoadedEstimate(
        id=record.id,
        name=record.name,
        snapshot=dict(record.data),
        created_at=record.created_at,
        updated_at=record.updated_at,
        owner_email=record.owner_email,
        remote=remote,
    )


def load_into_calculator(record: EstimateRecord, *, remote: bool = False, track: bool = True) -> None:
    """Replace the calculator contents with a saved payload."""

    state = get_calculator_state()
    state.restore(record.data)
    set_loaded_estimate(record if track else None, remote=remote)
    sync_widgets_from_state(state)
    bump_editor_version()


def apply_profile_to_calculator(profile: Profile) -> None:
    state = get_calculator_state()
    apply_profile(state, profile)
    st.session_state[PROFILE_KEY] = profile.id
    sync_widgets_from_state(state)
    bump_editor_version()


def reset_calculator(*, keep_rates: bool = True) -> None:
    state = get_calculator_state()
    state.reset(keep_rates=keep_rates)
    state.add_leg()
    set_loaded_estimate(None)
    sync_widgets_from_state(state)
    bump_editor_version()


def ensure_widget_values(state: CalculatorState) -> None:
    """Restore widget values Streamlit dropped while another page was open."""

    for key in INPUT_DEFAULTS:
        widget_key = field_widget_key(key)
        if widget_key not in st.session_state:
            st.session_state[widget_key] = widget_value(state, key)
    if ESTIMATE_NAME_KEY not in st.session_state:
        loaded = loaded_estimate()
        st.session_state[ESTIMATE_NAME_KEY] = loaded.name if loaded else ""
