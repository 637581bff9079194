from __future__ import annotations

from dataclasses import replace
from typing import List, Optional

import pandas as pd
import streamlit as st

from Home import configure_page, render_sidebar
from auth import get_client, is_authenticated
from calculator_session import apply_profile_to_calculator, set_user_profiles, user_profiles
from supabase_api import SupabaseClient, SupabaseError
from trip_estimate.formatting import format_currency
from trip_estimate.profiles import (
    STANDARD_PROFILES,
    Profile,
    ProfileError,
    all_profiles,
    duplicate_profile,
    find_profile,
    profile_from_json,
    profile_to_json,
)


def _profiles_frame(profiles: List[Profile]) -> pd.DataFrame:
    rows = [
        {
            "Name": profile.name,
            "Pilots": profile.pilots_required,
            "Pilot Rate": format_currency(profile.pilot_rate),
            "Attendants": profile.attendants_required,
            "Attendant Rate": format_currency(profile.attendant_rate),
            "Fuel Price": format_currency(profile.fuel_price),
            "Maintenance/hr": format_currency(profile.maintenance_rate),
            "APU Burn (lbs)": f"{profile.apu_burn:,.0f}",
            "Type": "Standard" if profile.is_standard else ("Default" if profile.is_default else "Custom"),
        }
        for profile in profiles
    ]
    return pd.DataFrame(rows)


def _profile_form(form_key: str, profile: Optional[Profile]) -> Optional[Profile]:
    """Render an edit form; return the edited profile when submitted."""

    base = profile or Profile(id=None, name="")
    with st.form(form_key):
        name = st.text_input("Name", value=base.name)
        left, right = st.columns(2)
        with left:
            pilots = st.number_input("Pilots required", min_value=0, step=1, value=int(base.pilots_required))
            pilot_rate = st.number_input("Pilot day rate ($)", min_value=0.0, step=50.0, value=float(base.pilot_rate))
            fuel_price = st.number_input("Fuel price ($/gal)", min_value=0.0, step=0.01, value=float(base.fuel_price))
            hotel_rate = st.number_input("Hotel rate ($/night)", min_value=0.0, step=10.0, value=float(base.hotel_rate))
            maintenance_rate = st.number_input(
                "Maintenance programs ($/hr)", min_value=0.0, step=50.0, value=float(base.maintenance_rate)
            )
        with right:
            attendants = st.number_input(
                "Attendants required", min_value=0, step=1, value=int(base.attendants_required)
            )
            attendant_rate = st.number_input(
                "Attendant day rate ($)", min_value=0.0, step=50.0, value=float(base.attendant_rate)
            )
            fuel_density = st.number_input(
                "Fuel density (lbs/gal)", min_value=0.0, step=0.1, value=float(base.fuel_density)
            )
            meals_rate = st.number_input("Meals ($/day)", min_value=0.0, step=10.0, value=float(base.meals_rate))
            apu_burn = st.number_input("APU burn per leg (lbs)", min_value=0.0, step=5.0, value=float(base.apu_burn))
        is_default = st.checkbox("Use as my default profile", value=base.is_default)
        submitted = st.form_submit_button("Save profile")

    if not submitted:
        return None
    if not name.strip():
        st.warning("Profile must have a name")
        return None
    return replace(
        base,
        name=name.strip(),
        pilots_required=int(pilots),
        pilot_rate=pilot_rate,
        attendants_required=int(attendants),
        attendant_rate=attendant_rate,
        fuel_price=fuel_price,
        fuel_density=fuel_density,
        hotel_rate=hotel_rate,
        meals_rate=meals_rate,
        maintenance_rate=maintenance_rate,
        apu_burn=apu_burn,
        is_default=is_default,
        is_standard=False,
    )


def _refresh_profiles(client: SupabaseClient) -> List[Profile]:
    profiles = client.list_profiles()
    set_user_profiles(profiles)
    return profiles


configure_page(page_title="Aircraft Profiles")
render_sidebar()

st.title("🛩️ Aircraft Profiles")

client: Optional[SupabaseClient] = None
custom_profiles: List[Profile] = []
if is_authenticated():
    try:
        client = get_client()
        if client is not None:
            custom_profiles = _refresh_profiles(client)
    except SupabaseError as exc:
        st.error(f"Could not load your profiles: {exc}")
        custom_profiles = user_profiles()
else:
    st.caption("Sign in to save custom profiles. Standard profiles are always available.")

profiles = all_profiles(custom_profiles)
st.dataframe(_profiles_frame(profiles), use_container_width=True, hide_index=True)

labels = {profile.id: profile.name for profile in profiles}
selected_id = st.selectbox(
    "Profile",
    options=[profile.id for profile in profiles],
    format_func=lambda profile_id: labels.get(profile_id, str(profile_id)),
    key="profiles_selected_id",
)
selected = find_profile(selected_id, profiles) or STANDARD_PROFILES[0]

apply_col, export_col, duplicate_col = st.columns(3)
with apply_col:
    if st.button("Apply to calculator", key="profiles_apply"):
        apply_profile_to_calculator(selected)
        st.success(f"Calculator now uses '{selected.name}'.")
with export_col:
    st.download_button(
        "Export JSON",
        profile_to_json(selected).encode("utf-8"),
        file_name=f"{selected.name.replace(' ', '_').lower()}.json",
        mime="application/json",
        key="profiles_export",
    )
with duplicate_col:
    if client is not None and st.button("Duplicate", key="profiles_duplicate"):
        try:
            copy = client.create_profile(duplicate_profile(selected))
        except SupabaseError as exc:
            st.error(f"Could not duplicate profile: {exc}")
        else:
            st.success(f"Created '{copy.name}'.")
            st.rerun()

if client is not None and not selected.is_standard and selected.id:
    st.subheader(f"Edit '{selected.name}'")
    edited = _profile_form(f"profiles_edit_{selected.id}", selected)
    if edited is not None:
        try:
            client.update_profile(selected.id, edited)
        except SupabaseError as exc:
            st.error(f"Could not update profile: {exc}")
        else:
            st.rerun()

    default_col, delete_col = st.columns(2)
    with default_col:
        if not selected.is_default and st.button("Make default", key="profiles_make_default"):
            try:
                client.set_default_profile(selected.id)
            except SupabaseError as exc:
                st.error(f"Could not set default profile: {exc}")
            else:
                st.rerun()
    with delete_col:
        confirm = st.checkbox("Confirm delete", key="profiles_confirm_delete")
        if st.button("Delete profile", key="profiles_delete", disabled=not confirm):
            try:
                client.delete_profile(selected.id)
            except SupabaseError as exc:
                st.error(f"Could not delete profile: {exc}")
            else:
                st.rerun()

if client is not None:
    with st.expander("New profile"):
        created = _profile_form("profiles_new", None)
        if created is not None:
            try:
                client.create_profile(created)
            except SupabaseError as exc:
                st.error(f"Could not create profile: {exc}")
            else:
                st.rerun()

with st.expander("Import profile JSON"):
    upload = st.file_uploader("Profile file", type=["json"], key="profiles_import_file")
    if upload is not None:
        try:
            imported = profile_from_json(upload.getvalue().decode("utf-8"))
        except (ProfileError, UnicodeDecodeError) as exc:
            st.error(str(exc))
        else:
            st.write(f"Loaded '{imported.name}'.")
            if client is not None:
                if st.button("Save imported profile", key="profiles_import_save"):
                    try:
                        client.create_profile(imported)
                    except SupabaseError as exc:
                        st.error(f"Could not save profile: {exc}")
                    else:
                        st.rerun()
            elif st.button("Apply imported profile to calculator", key="profiles_import_apply"):
                apply_profile_to_calculator(imported)
                st.success(f"Calculator now uses '{imported.name}'.")
