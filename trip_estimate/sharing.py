"""Share links and email bodies for estimates."""

from __future__ import annotations

from typing import Optional
from urllib.parse import parse_qsl, quote, urlencode, urlsplit, urlunsplit


SHARE_QUERY_PARAM = "share"
EMAIL_SUBJECT = "Trip Cost Estimate"


def share_title(estimate_name: Optional[str]) -> str:
    name = (estimate_name or "").strip()
    if not name:
        return EMAIL_SUBJECT
    return f"{EMAIL_SUBJECT} - {name}"


def build_share_url(base_url: str, token: str) -> str:
    """Return ``base_url`` with ``?share=<token>`` set, keeping other query values."""

    parts = urlsplit(base_url)
    query = [(key, value) for key, value in parse_qsl(parts.query, keep_blank_values=True) if key != SHARE_QUERY_PARAM]
    query.append((SHARE_QUERY_PARAM, token))
    return urlunsplit((parts.scheme, parts.netloc, parts.path or "/", urlencode(query), parts.fragment))


def share_token_from_query(params: object) -> Optional[str]:
    """Pull the share token out of Streamlit's ``st.query_params`` (or any mapping)."""

    getter = getattr(params, "get", None)
    if getter is None:
        return None
    value = getter(SHARE_QUERY_PARAM)
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if value is None:
        return None
    token = str(value).strip()
    return token or None


def build_email_body(estimate_text: str, share_url: Optional[str] = None) -> str:
    if share_url:
        return f"View this estimate online:\n{share_url}\n\n---\n\n{estimate_text}"
    return estimate_text


def build_mailto_link(estimate_text: str, share_url: Optional[str] = None) -> str:
    subject = quote(EMAIL_SUBJECT, safe="")
    body = quote(build_email_body(estimate_text, share_url), safe="")
    return f"mailto:?subject={subject}&body={body}"
