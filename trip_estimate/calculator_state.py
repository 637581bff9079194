"""Mutable calculator state owned by the UI layer.

The Streamlit page edits a :class:`CalculatorState` held in session state and
hands an immutable :class:`EstimateInputs` snapshot to the engine after every
change. Nothing in this module calculates costs.
"""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .inputs import INPUT_DEFAULTS, LEGACY_FORM_KEYS, coerce_number, inputs_from_form_data, normalize_form_data
from .models import EstimateInputs
from .profiles import Profile, apply_profile, select_profile


MAX_LEG_MINUTES = 59

# Fields supplied by the active profile; resetting the form keeps them.
PROFILE_RATE_FIELDS = ("fuelPrice", "fuelDensity", "hotelRate", "mealsRate", "maintenanceRate", "apuBurn")

LEG_FIELDS = ("from", "to", "hours", "minutes", "fuelBurn")
CREW_FIELDS = ("role", "rate")


def _blank_leg(leg_id: int) -> Dict[str, Any]:
    return {"id": leg_id, "from": "", "to": "", "hours": 0, "minutes": 0, "fuelBurn": 0}


def _form_value_as_string(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


@dataclass
class CalculatorState:
    legs: List[Dict[str, Any]] = field(default_factory=list)
    crew: List[Dict[str, Any]] = field(default_factory=list)
    form_data: Dict[str, Any] = field(default_factory=lambda: dict(INPUT_DEFAULTS))
    next_leg_id: int = 1
    next_crew_id: int = 1

    # -- legs -----------------------------------------------------------------
    def add_leg(self, leg: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        row = _blank_leg(self.next_leg_id)
        for key in LEG_FIELDS:
            if leg and leg.get(key) is not None:
                row[key] = leg[key]
        self.next_leg_id += 1
        self.legs.append(row)
        return row

    def update_leg(self, leg_id: int, field_name: str, value: Any) -> None:
        if field_name not in LEG_FIELDS:
            raise KeyError(f"Unknown leg field: {field_name}")
        if field_name == "minutes" and coerce_number(value, 0.0) > MAX_LEG_MINUTES:
            value = MAX_LEG_MINUTES
        for row in self.legs:
            if row["id"] == leg_id:
                row[field_name] = value
                return

    def remove_leg(self, leg_id: int) -> None:
        self.legs = [row for row in self.legs if row["id"] != leg_id]

    def clear_legs(self) -> None:
        self.legs = []
        self.next_leg_id = 1

    # -- crew -----------------------------------------------------------------
    def add_crew(self, role: str = "Pilot", rate: Any = 0) -> Dict[str, Any]:
        row = {"id": self.next_crew_id, "role": role, "rate": rate}
        self.next_crew_id += 1
        self.crew.append(row)
        return row

    def update_crew(self, crew_id: int, field_name: str, value: Any) -> None:
        if field_name not in CREW_FIELDS:
            raise KeyError(f"Unknown crew field: {field_name}")
        for row in self.crew:
            if row["id"] == crew_id:
                row[field_name] = value
                return

    def remove_crew(self, crew_id: int) -> None:
        self.crew = [row for row in self.crew if row["id"] != crew_id]

    def clear_crew(self) -> None:
        self.crew = []
        self.next_crew_id = 1

    # -- form fields ----------------------------------------------------------
    def set_field(self, key: str, value: Any) -> None:
        if key not in INPUT_DEFAULTS:
            raise KeyError(f"Unknown estimate field: {key}")
        self.form_data[key] = value

    def set_fields(self, **values: Any) -> None:
        for key, value in values.items():
            self.set_field(key, value)

    def reset(self, *, keep_rates: bool = True) -> None:
        """Clear legs, crew and trip fields; profile rates survive by default."""

        preserved = {key: self.form_data.get(key) for key in PROFILE_RATE_FIELDS} if keep_rates else {}
        self.clear_legs()
        self.clear_crew()
        self.form_data = dict(INPUT_DEFAULTS)
        self.form_data.update(preserved)

    # -- snapshots ------------------------------------------------------------
    def to_inputs(self) -> EstimateInputs:
        return inputs_from_form_data(self.form_data, self.legs, self.crew)

    def snapshot(self) -> Dict[str, Any]:
        return {
            "legs": copy.deepcopy(self.legs),
            "crew": copy.deepcopy(self.crew),
            "formData": dict(self.form_data),
        }

    def restore(self, snapshot: Mapping[str, Any]) -> None:
        """Load a snapshot or saved payload, re-numbering legs and crew."""

        self.clear_legs()
        self.clear_crew()
        for leg in snapshot.get("legs") or []:
            self.add_leg(leg)
        for member in snapshot.get("crew") or []:
            self.add_crew(member.get("role") or "Pilot", member.get("rate", 0))

        form_data = snapshot.get("formData")
        if not isinstance(form_data, Mapping):
            form_data = {
                key: value for key, value in snapshot.items() if key in INPUT_DEFAULTS or key in LEGACY_FORM_KEYS
            }
        self.form_data = dict(INPUT_DEFAULTS)
        for key, value in normalize_form_data(form_data).items():
            if key in INPUT_DEFAULTS:
                self.form_data[key] = value

    def has_unsaved_changes(self, saved_snapshot: Optional[Mapping[str, Any]]) -> bool:
        if saved_snapshot is None:
            return False
        current = json.dumps(self.to_record_data(), sort_keys=True, default=str)
        saved_state = CalculatorState()
        saved_state.restore(saved_snapshot)
        saved = json.dumps(saved_state.to_record_data(), sort_keys=True, default=str)
        return current != saved

    def to_record_data(self, total_cost: Optional[float] = None) -> Dict[str, Any]:
        """Return the persisted payload; form values are stored as strings."""

        data: Dict[str, Any] = {
            "legs": [{key: row.get(key) for key in LEG_FIELDS} for row in self.legs],
            "crew": [{key: row.get(key) for key in CREW_FIELDS} for row in self.crew],
            "formData": {key: _form_value_as_string(value) for key, value in self.form_data.items()},
        }
        if total_cost is not None:
            data["totalCost"] = total_cost
        return data


def new_calculator_state(profile: Optional[Profile] = None, *, legs: int = 1) -> CalculatorState:
    """Return a fresh state with ``legs`` blank legs and the profile's crew."""

    state = CalculatorState()
    apply_profile(state, profile or select_profile(None))
    for _ in range(legs):
        state.add_leg()
    return state
