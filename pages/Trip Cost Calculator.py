from __future__ import annotations

from datetime import datetime
from typing import Any, List, Tuple

import pandas as pd
import streamlit as st

from Home import configure_page, render_sidebar
from auth import EstimateStore, active_store, app_base_url, current_user_email, get_client, is_authenticated
from calculator_session import (
    ESTIMATE_NAME_KEY,
    FIELD_SECTIONS,
    FLAG_KEYS,
    PROFILE_KEY,
    SHARE_URL_KEY,
    WHOLE_KEYS,
    apply_profile_to_calculator,
    editor_base_frame,
    ensure_widget_values,
    field_widget_key,
    get_calculator_state,
    has_user_profiles,
    loaded_estimate,
    reset_calculator,
    set_loaded_estimate,
    set_user_profiles,
    user_profiles,
)
from supabase_api import SupabaseClient, SupabaseError
from trip_estimate.calculator_state import MAX_LEG_MINUTES, CalculatorState
from trip_estimate.engine import calculate_estimate
from trip_estimate.formatting import format_currency, format_estimate_html, format_estimate_text
from trip_estimate.inputs import INPUT_DEFAULTS
from trip_estimate.local_store import EstimateStoreError
from trip_estimate.models import Estimate
from trip_estimate.pdf_export import build_estimate_pdf, pdf_filename
from trip_estimate.profiles import all_profiles, find_profile
from trip_estimate.sharing import build_mailto_link, build_share_url, share_title


LEG_COLUMNS = ["From", "To", "Hours", "Minutes", "Fuel Burn (lbs)"]
CREW_COLUMNS = ["Role", "Daily Rate"]
FLASH_KEY = "calc_flash"


def _cell(value: Any, default: Any) -> Any:
    if value is None:
        return default
    try:
        if pd.isna(value):
            return default
    except (TypeError, ValueError):
        return value
    return value


def _legs_frame(state: CalculatorState) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "From": str(row.get("from") or ""),
                "To": str(row.get("to") or ""),
                "Hours": int(float(row.get("hours") or 0)),
                "Minutes": int(float(row.get("minutes") or 0)),
                "Fuel Burn (lbs)": float(row.get("fuelBurn") or 0),
            }
            for row in state.legs
        ],
        columns=LEG_COLUMNS,
    )


def _crew_frame(state: CalculatorState) -> pd.DataFrame:
    return pd.DataFrame(
        [{"Role": str(row.get("role") or "Pilot"), "Daily Rate": float(row.get("rate") or 0)} for row in state.crew],
        columns=CREW_COLUMNS,
    )


def _apply_leg_rows(state: CalculatorState, legs_df: pd.DataFrame) -> None:
    state.clear_legs()
    for _, row in legs_df.iterrows():
        leg = state.add_leg(
            {
                "from": str(_cell(row.get("From"), "")).strip().upper(),
                "to": str(_cell(row.get("To"), "")).strip().upper(),
                "hours": _cell(row.get("Hours"), 0),
                "fuelBurn": _cell(row.get("Fuel Burn (lbs)"), 0),
            }
        )
        state.update_leg(leg["id"], "minutes", _cell(row.get("Minutes"), 0))


def _apply_crew_rows(state: CalculatorState, crew_df: pd.DataFrame) -> None:
    state.clear_crew()
    for _, row in crew_df.iterrows():
        state.add_crew(str(_cell(row.get("Role"), "Pilot")) or "Pilot", _cell(row.get("Daily Rate"), 0))


def _render_field(key: str, label: str) -> Any:
    widget_key = field_widget_key(key)
    if key in FLAG_KEYS:
        return st.checkbox(label, key=widget_key)
    if key in WHOLE_KEYS:
        return st.number_input(label, step=1, key=widget_key)
    return st.number_input(label, step=0.01, format="%.2f", key=widget_key)


def _breakdown_rows(estimate: Estimate) -> List[Tuple[str, float]]:
    rows: List[Tuple[str, float]] = [(member.role, member.total) for member in estimate.crew_details]
    rows.append(("Crew Day Rate Subtotal", estimate.crew_day_total))
    rows.append(("Crew Expenses", estimate.crew_expenses_total))
    rows.append(("Crew Subtotal", estimate.crew_subtotal))
    rows.append(("Hourly Subtotal", estimate.hourly_subtotal))
    rows.append(("Fuel Subtotal", estimate.fuel_subtotal))
    rows.append(("Airport & Ground Subtotal", estimate.airport_subtotal))
    rows.append(("Miscellaneous Subtotal", estimate.misc_subtotal))
    rows.append(("Estimated Total", estimate.estimated_total))
    return rows


def _profile_selector(state: CalculatorState) -> None:
    profiles = all_profiles(user_profiles())
    ids = [profile.id for profile in profiles]
    labels = {profile.id: profile.name for profile in profiles}
    current = st.session_state.get(PROFILE_KEY)
    index = ids.index(current) if current in ids else 0

    def _on_change() -> None:
        selected = find_profile(st.session_state.get("calc_profile_select"), profiles)
        if selected is not None:
            apply_profile_to_calculator(selected)

    st.selectbox(
        "Aircraft Profile",
        options=ids,
        index=index,
        format_func=lambda profile_id: labels.get(profile_id, str(profile_id)),
        key="calc_profile_select",
        on_change=_on_change,
    )


def _flash(kind: str, message: str) -> None:
    st.session_state[FLASH_KEY] = (kind, message)


def _show_flash() -> None:
    flashed = st.session_state.pop(FLASH_KEY, None)
    if flashed:
        kind, message = flashed
        getattr(st, kind)(message)


def _current_record_data(state: CalculatorState) -> dict:
    for key in INPUT_DEFAULTS:
        widget_key = field_widget_key(key)
        if widget_key in st.session_state:
            state.set_field(key, st.session_state[widget_key])
    estimate = calculate_estimate(state.to_inputs())
    total_cost = None if estimate.is_empty else round(estimate.estimated_total, 2)
    return state.to_record_data(total_cost=total_cost)


def _save_new(state: CalculatorState, store: EstimateStore) -> None:
    name = str(st.session_state.get(ESTIMATE_NAME_KEY) or "").strip()
    if not name:
        _flash("warning", "Give the estimate a name before saving.")
        return
    try:
        record = store.save_estimate(name, _current_record_data(state))
    except (SupabaseError, EstimateStoreError) as exc:
        _flash("error", f"Could not save estimate: {exc}")
        return
    set_loaded_estimate(record, remote=isinstance(store, SupabaseClient))
    _flash("success", f"Saved '{record.name}'.")


def _update_saved(state: CalculatorState, store: EstimateStore) -> None:
    loaded = loaded_estimate()
    if loaded is None:
        return
    name = str(st.session_state.get(ESTIMATE_NAME_KEY) or "").strip() or loaded.name
    try:
        record = store.update_estimate(loaded.id, name, _current_record_data(state))
    except (SupabaseError, EstimateStoreError) as exc:
        _flash("error", f"Could not update estimate: {exc}")
        return
    set_loaded_estimate(record, remote=isinstance(store, SupabaseClient))
    _flash("success", f"Updated '{record.name}'.")


def _save_controls(state: CalculatorState) -> None:
    loaded = loaded_estimate()
    try:
        store = active_store()
    except SupabaseError as exc:
        st.error(str(exc))
        return
    remote = isinstance(store, SupabaseClient)
    st.text_input("Estimate name", key=ESTIMATE_NAME_KEY)

    save_col, update_col = st.columns(2)
    with save_col:
        st.button("Save as new", key="calc_save_new", on_click=_save_new, args=(state, store))
    with update_col:
        st.button(
            "Update saved estimate",
            key="calc_update",
            on_click=_update_saved,
            args=(state, store),
            disabled=loaded is None or loaded.remote != remote,
        )
    _show_flash()

    if loaded is not None and state.has_unsaved_changes(loaded.snapshot):
        st.caption(f"Unsaved changes to '{loaded.name}'.")
    if not remote:
        st.caption("Not signed in: estimates are saved on this device only.")


def _share_controls(estimate_text: str) -> None:
    loaded = loaded_estimate()
    share_url = st.session_state.get(SHARE_URL_KEY)
    if is_authenticated() and loaded is not None and loaded.remote:
        if st.button("Create share link", key="calc_share"):
            client = get_client()
            try:
                if client is None:
                    raise SupabaseError("Accounts are not configured for this app.")
                token = client.create_share(loaded.id, loaded.name)
            except SupabaseError as exc:
                st.error(f"Could not create share link: {exc}")
            else:
                share_url = build_share_url(app_base_url(), token)
                st.session_state[SHARE_URL_KEY] = share_url
        if share_url:
            st.caption(share_title(loaded.name))
            st.code(share_url, language=None)
    else:
        st.caption("Sign in and save the estimate to create a share link.")
    st.link_button("Email estimate", build_mailto_link(estimate_text, share_url))


configure_page(page_title="Trip Cost Calculator")
render_sidebar()

st.title("🧮 Trip Cost Calculator")

if is_authenticated() and not has_user_profiles():
    try:
        client = get_client()
        if client is not None:
            set_user_profiles(client.list_profiles())
    except SupabaseError as exc:
        st.warning(f"Could not load your profiles: {exc}")

state = get_calculator_state()
ensure_widget_values(state)

top_left, top_right = st.columns([3, 1])
with top_left:
    _profile_selector(state)
with top_right:
    if st.button("Reset", key="calc_reset"):
        reset_calculator(keep_rates=True)
        st.rerun()

inputs_col, estimate_col = st.columns([3, 2])

with inputs_col:
    st.subheader("Flight Legs")
    legs_key, legs_base = editor_base_frame("legs", lambda: _legs_frame(state))
    legs_df = st.data_editor(
        legs_base,
        key=legs_key,
        num_rows="dynamic",
        use_container_width=True,
        hide_index=True,
        column_config={
            "From": st.column_config.TextColumn("From", max_chars=4),
            "To": st.column_config.TextColumn("To", max_chars=4),
            "Hours": st.column_config.NumberColumn("Hours", min_value=0, step=1),
            "Minutes": st.column_config.NumberColumn("Minutes", min_value=0, max_value=MAX_LEG_MINUTES, step=1),
            "Fuel Burn (lbs)": st.column_config.NumberColumn("Fuel Burn (lbs)", min_value=0.0, step=50.0),
        },
    )
    _apply_leg_rows(state, legs_df)

    st.subheader("Crew")
    crew_key, crew_base = editor_base_frame("crew", lambda: _crew_frame(state))
    crew_df = st.data_editor(
        crew_base,
        key=crew_key,
        num_rows="dynamic",
        use_container_width=True,
        hide_index=True,
        column_config={
            "Role": st.column_config.TextColumn("Role", default="Pilot"),
            "Daily Rate": st.column_config.NumberColumn("Daily Rate", min_value=0.0, step=50.0, format="$%.2f"),
        },
    )
    _apply_crew_rows(state, crew_df)

    for heading, fields in FIELD_SECTIONS:
        with st.expander(heading, expanded=heading in {"Trip", "Fuel"}):
            columns = st.columns(2)
            for position, (key, label) in enumerate(fields):
                with columns[position % 2]:
                    state.set_field(key, _render_field(key, label))

    state.set_field("tripNotes", st.text_area("Trip Notes", key=field_widget_key("tripNotes")))

estimate = calculate_estimate(state.to_inputs())
estimate_text = format_estimate_text(estimate)

with estimate_col:
    st.subheader("Estimate")
    st.metric("Estimated Total", format_currency(estimate.estimated_total))
    summary_tab, text_tab, breakdown_tab = st.tabs(["Summary", "Text", "Breakdown"])
    with summary_tab:
        st.markdown(format_estimate_html(estimate), unsafe_allow_html=True)
    with text_tab:
        st.code(estimate_text, language=None)
    with breakdown_tab:
        breakdown_df = pd.DataFrame(_breakdown_rows(estimate), columns=["Line Item", "Amount"])
        breakdown_df["Amount"] = breakdown_df["Amount"].map(format_currency)
        st.dataframe(breakdown_df, use_container_width=True, hide_index=True)
        st.download_button(
            "Download breakdown (CSV)",
            breakdown_df.to_csv(index=False).encode("utf-8"),
            file_name="trip_estimate_breakdown.csv",
            mime="text/csv",
        )

    loaded = loaded_estimate()
    now = datetime.now()
    st.download_button(
        "Download PDF",
        build_estimate_pdf(
            estimate,
            name=loaded.name if loaded else None,
            creator_email=(loaded.owner_email if loaded else None) or current_user_email(),
            created_at=loaded.created_at if loaded else None,
            updated_at=loaded.updated_at if loaded else None,
            now=now,
        ),
        file_name=pdf_filename(now),
        mime="application/pdf",
        disabled=estimate.is_empty,
    )

    st.markdown("---")
    st.subheader("Save")
    _save_controls(state)

    st.markdown("---")
    st.subheader("Share")
    _share_controls(estimate_text)
