from __future__ import annotations

from typing import List

import pandas as pd
import streamlit as st

from Home import configure_page, render_sidebar
from auth import active_store, app_base_url
from calculator_session import load_into_calculator, loaded_estimate, set_loaded_estimate
from supabase_api import SupabaseClient, SupabaseError
from trip_estimate.formatting import format_currency, format_estimate_text
from trip_estimate.local_store import EstimateStoreError
from trip_estimate.records import EstimateRecord
from trip_estimate.sharing import build_share_url


def _display_date(record: EstimateRecord) -> str:
    label, moment = record.display_timestamp()
    if moment is None:
        return "-"
    return f"{label} {moment:%Y-%m-%d %H:%M} UTC"


def _records_frame(records: List[EstimateRecord]) -> pd.DataFrame:
    rows = []
    for record in records:
        total = record.total_cost
        rows.append(
            {
                "Name": record.name,
                "Total": format_currency(total) if total is not None else "-",
                "Saved": _display_date(record),
                "Created By": record.owner_email or "Guest",
            }
        )
    return pd.DataFrame(rows, columns=["Name", "Total", "Saved", "Created By"])


configure_page(page_title="Saved Estimates")
render_sidebar()

st.title("💾 Saved Estimates")

try:
    store = active_store()
    records = store.list_estimates()
except (SupabaseError, EstimateStoreError) as exc:
    st.error(f"Could not load saved estimates: {exc}")
    st.stop()

remote = isinstance(store, SupabaseClient)
if not remote:
    st.caption("Not signed in: showing estimates saved on this device.")

if not records:
    st.info("No saved estimates yet. Build one in the calculator and save it.")
    st.page_link("pages/Trip Cost Calculator.py", label="Open the calculator", icon="🧮")
    st.stop()

st.dataframe(_records_frame(records), use_container_width=True, hide_index=True)

labels = {record.id: f"{record.name} ({_display_date(record)})" for record in records}
selected_id = st.selectbox(
    "Estimate",
    options=[record.id for record in records],
    format_func=lambda record_id: labels.get(record_id, record_id),
    key="saved_selected_id",
)
selected = next(record for record in records if record.id == selected_id)

load_col, share_col, delete_col = st.columns(3)
with load_col:
    if st.button("Open in calculator", key="saved_load"):
        load_into_calculator(selected, remote=remote)
        st.switch_page("pages/Trip Cost Calculator.py")
with share_col:
    if remote and st.button("Create share link", key="saved_share"):
        try:
            token = store.create_share(selected.id, selected.name)
        except SupabaseError as exc:
            st.error(f"Could not create share link: {exc}")
        else:
            st.code(build_share_url(app_base_url(), token), language=None)
with delete_col:
    confirm = st.checkbox("Confirm delete", key="saved_confirm_delete")
    if st.button("Delete", key="saved_delete", disabled=not confirm):
        try:
            if remote:
                store.delete_share(selected.id)
            store.delete_estimate(selected.id)
        except (SupabaseError, EstimateStoreError) as exc:
            st.error(f"Could not delete estimate: {exc}")
        else:
            loaded = loaded_estimate()
            if loaded is not None and loaded.id == selected.id:
                set_loaded_estimate(None)
            st.session_state.pop("saved_confirm_delete", None)
            st.rerun()

with st.expander("Preview", expanded=True):
    st.code(format_estimate_text(selected.estimate()), language=None)
