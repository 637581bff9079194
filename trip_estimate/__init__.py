"""Trip cost estimate package."""

from .calculator_state import CalculatorState, new_calculator_state
from .engine import calculate_estimate
from .formatting import format_currency, format_estimate_html, format_estimate_text
from .inputs import build_inputs, inputs_from_form_data, inputs_from_record_data
from .models import CrewDayRate, CrewMember, Estimate, EstimateInputs, FlightLeg, LegSummary
from .profiles import STANDARD_PROFILES, Profile, ProfileError, apply_profile
from .records import EstimateRecord

__all__ = [
    "CalculatorState",
    "CrewDayRate",
    "CrewMember",
    "Estimate",
    "EstimateInputs",
    "EstimateRecord",
    "FlightLeg",
    "LegSummary",
    "Profile",
    "ProfileError",
    "STANDARD_PROFILES",
    "apply_profile",
    "build_inputs",
    "calculate_estimate",
    "format_currency",
    "format_estimate_html",
    "format_estimate_text",
    "inputs_from_form_data",
    "inputs_from_record_data",
    "new_calculator_state",
]
