"""Authentication and storage helpers for the Trip Cost Calculator Streamlit app."""

from __future__ import annotations

import logging
import uuid
from typing import Optional, Union

import streamlit as st

from Home import get_secret
from calculator_session import USER_PROFILES_KEY
from supabase_api import AuthSession, SupabaseClient, SupabaseConfig, SupabaseError, build_supabase_config
from trip_estimate.local_store import LocalEstimateStore


logger = logging.getLogger(__name__)

SESSION_KEY = "supabase_session"
SESSION_EXPIRED_KEY = "supabase_session_expired"
GUEST_ID_KEY = "guest_owner_id"
GUEST_QUERY_PARAM = "guest"

EstimateStore = Union[SupabaseClient, LocalEstimateStore]


def supabase_config() -> Optional[SupabaseConfig]:
    """Return the backend config, or ``None`` when the app runs local-only."""

    settings = get_secret("supabase")
    if not settings:
        return None
    return build_supabase_config(dict(settings))


def current_session() -> Optional[AuthSession]:
    session = st.session_state.get(SESSION_KEY)
    return session if isinstance(session, AuthSession) else None


def is_authenticated() -> bool:
    return current_session() is not None


def current_user_email() -> Optional[str]:
    session = current_session()
    return session.email if session else None


def _store_refreshed_session(session: AuthSession) -> None:
    st.session_state[SESSION_KEY] = session


def _drop_session() -> None:
    st.session_state.pop(SESSION_KEY, None)
    st.session_state.pop(USER_PROFILES_KEY, None)


def get_client() -> Optional[SupabaseClient]:
    """Return a client for the current user, refreshing an access token close to expiry."""

    config = supabase_config()
    if config is None:
        return None
    session = current_session()
    client = SupabaseClient(config, auth=session, on_session_refresh=_store_refreshed_session)
    if session is not None and session.expires_soon():
        try:
            client.refresh_session()
        except SupabaseError as exc:
            logger.warning("Could not refresh session for %s: %s", session.email, exc)
            _drop_session()
            st.session_state[SESSION_EXPIRED_KEY] = True
            client.auth = None
    return client


def app_base_url() -> str:
    return str(get_secret("app_base_url", "http://localhost:8501/"))


def guest_owner_id() -> str:
    """Return the id that scopes this browser session's locally saved estimates.

    The id is mirrored into the ``?guest=`` query parameter so a bookmarked URL
    reopens the same estimates.
    """

    owner_id = st.session_state.get(GUEST_ID_KEY)
    if not owner_id:
        owner_id = str(st.query_params.get(GUEST_QUERY_PARAM) or "").strip() or uuid.uuid4().hex
        st.session_state[GUEST_ID_KEY] = owner_id
    if st.query_params.get(GUEST_QUERY_PARAM) != owner_id:
        st.query_params[GUEST_QUERY_PARAM] = owner_id
    return owner_id


def active_store() -> EstimateStore:
    """Signed-in users save to Supabase; everyone else saves to the local JSON file."""

    client = get_client()
    if client is not None and client.auth is not None:
        return client
    return LocalEstimateStore(
        get_secret("local_store_path", None),
        owner_id=guest_owner_id(),
        owner_email=current_user_email(),
    )


def sign_in(email: str, password: str) -> AuthSession:
    client = get_client()
    if client is None:
        raise SupabaseError("Accounts are not configured for this app.")
    session = client.sign_in(email.strip(), password)
    st.session_state[SESSION_KEY] = session
    st.session_state.pop(USER_PROFILES_KEY, None)
    logger.info("Signed in %s", session.email)
    return session


def sign_out() -> None:
    client = get_client()
    try:
        if client is not None:
            client.sign_out()
    finally:
        _drop_session()


def _render_sign_in_form(client: SupabaseClient) -> None:
    with st.sidebar.form("sign_in_form"):
        st.markdown("**Sign in**")
        email = st.text_input("Email", key="sign_in_email")
        password = st.text_input("Password", type="password", key="sign_in_password")
        submitted = st.form_submit_button("Sign in")
    if submitted:
        if not email or not password:
            st.sidebar.error("Enter your email and password.")
            return
        try:
            sign_in(email, password)
        except SupabaseError as exc:
            st.sidebar.error(f"Sign-in failed: {exc}")
            return
        st.rerun()

    with st.sidebar.expander("Forgot password?"):
        reset_email = st.text_input("Account email", key="reset_password_email")
        if st.button("Send reset link", key="reset_password_button"):
            if not reset_email:
                st.warning("Enter the email you signed up with.")
            else:
                try:
                    client.reset_password(reset_email.strip(), redirect_to=app_base_url())
                except SupabaseError as exc:
                    st.error(f"Could not send reset email: {exc}")
                else:
                    st.success("Check your inbox for a password reset link.")


def _render_account(session: AuthSession) -> None:
    st.sidebar.caption(f"Signed in as {session.email or session.user_id}")
    with st.sidebar.expander("Change password"):
        new_password = st.text_input("New password", type="password", key="update_password_new")
        confirm = st.text_input("Confirm password", type="password", key="update_password_confirm")
        if st.button("Update password", key="update_password_button"):
            if not new_password or new_password != confirm:
                st.warning("Passwords must match.")
            else:
                client = get_client()
                try:
                    if client is None:
                        raise SupabaseError("Accounts are not configured for this app.")
                    client.update_password(new_password)
                except SupabaseError as exc:
                    st.error(f"Could not update password: {exc}")
                else:
                    st.success("Password updated.")
    if st.sidebar.button("Sign out", key="sign_out_button"):
        try:
            sign_out()
        except SupabaseError as exc:
            st.sidebar.warning(f"Signed out locally; the server did not confirm: {exc}")
        st.rerun()


def render_account_panel() -> None:
    """Show the sign-in form or the signed-in account controls in the sidebar."""

    try:
        client = get_client()
    except SupabaseError as exc:
        st.sidebar.warning(str(exc))
        return
    if client is None:
        st.sidebar.caption("Estimates are saved on this device only.")
        return

    if st.session_state.pop(SESSION_EXPIRED_KEY, False):
        st.sidebar.warning("Your session expired. Sign in again to reach your saved estimates.")

    session = current_session()
    if session is None:
        _render_sign_in_form(client)
    else:
        _render_account(session)
