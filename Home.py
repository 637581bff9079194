from __future__ import annotations

import logging
import time
from typing import Any

import streamlit as st


logger = logging.getLogger(__name__)

_SECRET_RETRY_PREFIX = "_secret_retry__"
_SECRET_RETRY_MAX = 6
_SECRET_RETRY_DELAY_SECONDS = 0.2
_MISSING = object()
_PAGE_CONFIGURED_KEY = "_page_configured"
_DEFAULT_PAGE_TITLE = "Trip Cost Calculator"
_DEFAULT_PAGE_ICON = "✈️"


def _secret_retry_key(name: str) -> str:
    return f"{_SECRET_RETRY_PREFIX}{name}"


def _read_secret(key: str) -> Any:
    try:
        if key in st.secrets:
            return st.secrets[key]
    except FileNotFoundError:
        # No secrets.toml at all: the app runs local-only.
        logger.debug("No Streamlit secrets file; '%s' treated as unset", key)
    return _MISSING


def _fetch_secret(key: str, *, required: bool, default: Any = None) -> Any:
    """Fetch a secret; required secrets are retried briefly while the store loads."""

    value = _read_secret(key)
    retry_key = _secret_retry_key(key)
    if value is not _MISSING:
        st.session_state.pop(retry_key, None)
        return value

    if not required:
        return default

    attempts = int(st.session_state.get(retry_key, 0))
    if attempts < _SECRET_RETRY_MAX:
        st.session_state[retry_key] = attempts + 1
        st.info("Loading configuration…")
        time.sleep(_SECRET_RETRY_DELAY_SECONDS)
        st.rerun()

    st.error(f"Required secret '{key}' is not configured. Update `.streamlit/secrets.toml` and refresh the app.")
    st.stop()


def require_secret(key: str) -> Any:
    """Return a secret value, stopping the app if it never becomes available."""

    return _fetch_secret(key, required=True)


def get_secret(key: str, default: Any | None = None) -> Any:
    """Return an optional secret (``app_base_url``, ``local_store_path``, ``[supabase]``)."""

    return _fetch_secret(key, required=False, default=default)


def _hide_builtin_sidebar_nav() -> None:
    """Remove Streamlit's default page navigator from the sidebar."""

    st.markdown(
        """
        <style>
            section[data-testid="stSidebar"] div[data-testid="stSidebarNav"] {
                display: none;
            }
            section[data-testid="stSidebar"] div[data-testid="stSidebarNav"] + div {
                padding-top: 0;
            }
        </style>
        """,
        unsafe_allow_html=True,
    )


def configure_page(*, page_title: str | None = None) -> None:
    """Set the Streamlit page configuration once per run."""

    if not st.session_state.get(_PAGE_CONFIGURED_KEY):
        st.set_page_config(
            page_title=page_title or _DEFAULT_PAGE_TITLE,
            page_icon=_DEFAULT_PAGE_ICON,
            layout="wide",
        )
        st.session_state[_PAGE_CONFIGURED_KEY] = True

    _hide_builtin_sidebar_nav()


def _sidebar_links() -> list[dict[str, str]]:
    return [
        {"path": "pages/Trip Cost Calculator.py", "label": "🧮 Trip Cost Calculator"},
        {"path": "pages/Saved Estimates.py", "label": "💾 Saved Estimates"},
        {"path": "pages/Shared Estimate.py", "label": "🔗 Shared Estimate"},
        {"path": "pages/Profiles.py", "label": "🛩️ Aircraft Profiles"},
    ]


def render_sidebar() -> None:
    """Display the navigation links and the account panel."""

    from auth import render_account_panel

    st.sidebar.title("🧭 Navigation")
    st.sidebar.page_link("Home.py", label="🏠 Home")
    for link in _sidebar_links():
        st.sidebar.page_link(link["path"], label=link["label"])

    st.sidebar.markdown("---")
    render_account_panel()


def main() -> None:
    configure_page()
    render_sidebar()

    st.title("✈️ Trip Cost Calculator")

    st.write("""
    Build itemized cost estimates for charter trips.
    Enter flight legs, crew and trip expenses in the calculator; the estimate updates as you type.
    Estimates can be exported to PDF, emailed, saved, and (when signed in) shared by link.
    """)

    st.page_link("pages/Trip Cost Calculator.py", label="Open the calculator", icon="🧮")


if __name__ == "__main__":
    main()
