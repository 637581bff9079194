from __future__ import annotations

from datetime import datetime

import streamlit as st

from Home import configure_page, render_sidebar
from auth import get_client, is_authenticated
from calculator_session import load_into_calculator
from supabase_api import SupabaseError
from trip_estimate.formatting import format_estimate_html, format_estimate_text
from trip_estimate.pdf_export import build_estimate_pdf, pdf_filename
from trip_estimate.sharing import share_title, share_token_from_query


configure_page(page_title="Shared Estimate")
render_sidebar()

st.title("🔗 Shared Estimate")

token = share_token_from_query(st.query_params)
if token is None:
    token = st.text_input("Share token or link", key="shared_token_input").strip()
    if "share=" in token:
        token = token.split("share=", 1)[1].split("&", 1)[0]
if not token:
    st.info("Open a share link, or paste its token above.")
    st.stop()

try:
    client = get_client()
    if client is None:
        raise SupabaseError("Sharing is not configured for this app.")
    shared = client.load_shared(token)
except SupabaseError as exc:
    st.error(f"Could not load shared estimate: {exc}")
    st.stop()

estimate = shared.estimate()
title = share_title(shared.name)
label, moment = shared.display_timestamp()
st.subheader(title)
if moment is not None:
    st.caption(f"{label} {moment:%B %d, %Y} by {shared.owner_email or 'Guest'}")

st.markdown(format_estimate_html(estimate), unsafe_allow_html=True)

with st.expander("Plain text"):
    st.code(format_estimate_text(estimate), language=None)

now = datetime.now()
st.download_button(
    "Download PDF",
    build_estimate_pdf(
        estimate,
        name=shared.name,
        creator_email=shared.owner_email,
        created_at=shared.created_at,
        updated_at=shared.updated_at,
        now=now,
    ),
    file_name=pdf_filename(now),
    mime="application/pdf",
)

st.markdown("---")
view_col, copy_col = st.columns(2)
with view_col:
    if st.button("Open in calculator", key="shared_open"):
        load_into_calculator(shared, track=False)
        st.switch_page("pages/Trip Cost Calculator.py")
with copy_col:
    if is_authenticated():
        copy_name = st.text_input("Copy as", value=f"{shared.name} (Copy)", key="shared_copy_name")
        if st.button("Save a copy to my estimates", key="shared_copy"):
            try:
                copied = client.copy_shared(token, copy_name.strip() or None)
            except SupabaseError as exc:
                st.error(f"Could not copy estimate: {exc}")
            else:
                st.success(f"Saved '{copied.name}' to your estimates.")
    else:
        st.caption("Sign in to save a copy of this estimate.")
