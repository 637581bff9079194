"""Tests for share links and email bodies."""

from __future__ import annotations

import pathlib
import sys
from urllib.parse import parse_qs, unquote, urlsplit

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))

from trip_estimate.sharing import (
    build_email_body,
    build_mailto_link,
    build_share_url,
    share_title,
    share_token_from_query,
)


def test_share_url_sets_token_and_keeps_other_params() -> None:
    url = build_share_url("https://trips.example.com/app?theme=dark&share=old", "tok123")

    parts = urlsplit(url)
    assert parts.path == "/app"
    assert parse_qs(parts.query) == {"theme": ["dark"], "share": ["tok123"]}


def test_share_url_adds_root_path() -> None:
    assert build_share_url("https://trips.example.com", "abc") == "https://trips.example.com/?share=abc"


def test_share_token_from_query() -> None:
    assert share_token_from_query({"share": " abc "}) == "abc"
    assert share_token_from_query({"share": ["xyz"]}) == "xyz"
    assert share_token_from_query({"share": ""}) is None
    assert share_token_from_query({}) is None
    assert share_token_from_query(None) is None


def test_share_title() -> None:
    assert share_title("Palm Beach") == "Trip Cost Estimate - Palm Beach"
    assert share_title("  ") == "Trip Cost Estimate"


def test_email_body_includes_link_when_shared() -> None:
    assert build_email_body("TEXT") == "TEXT"
    assert build_email_body("TEXT", "https://x/?share=1") == "View this estimate online:\nhttps://x/?share=1\n\n---\n\nTEXT"


def test_mailto_link_is_fully_encoded() -> None:
    link = build_mailto_link("Line 1\nTotal: $5 & more", "https://x/?share=1")

    assert link.startswith("mailto:?subject=Trip%20Cost%20Estimate&body=")
    body = link.split("&body=", 1)[1]
    assert "&" not in body
    assert unquote(body).endswith("Line 1\nTotal: $5 & more")
