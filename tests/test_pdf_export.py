"""Tests for PDF export of estimates."""

from __future__ import annotations

import pathlib
import sys
from datetime import datetime

import fitz

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))

from trip_estimate.engine import calculate_estimate
from trip_estimate.inputs import build_inputs
from trip_estimate.models import CrewMember, FlightLeg
from trip_estimate.pdf_export import build_estimate_pdf, build_footer_text, pdf_filename


NOW = datetime(2026, 10, 19, 15, 4)


def _estimate(leg_count: int = 1):
    legs = [FlightLeg("KTEB", "KPBI", 2, 30, 3350) for _ in range(leg_count)]
    return calculate_estimate(build_inputs(legs=legs, crew=[CrewMember("Pilot", 1500)], trip_days=2, fuel_price=6.0))


def _pdf_text(data: bytes) -> list:
    with fitz.open(stream=data, filetype="pdf") as doc:
        return [page.get_text() for page in doc]


def test_pdf_filename() -> None:
    assert pdf_filename(NOW) == "trip-estimate-20261019-1504.pdf"


def test_footer_for_unsaved_estimate_uses_now_and_guest() -> None:
    assert build_footer_text(now=NOW) == "Created: October 19, 2026 at 3:04 PM - by Guest"


def test_footer_prefers_later_update() -> None:
    footer = build_footer_text(
        creator_email="ops@example.com",
        created_at="2026-01-05T09:30:00Z",
        updated_at="2026-02-07T00:15:00Z",
    )

    assert footer == "Last updated: February 7, 2026 at 12:15 AM - by ops@example.com"


def test_footer_uses_created_when_not_edited() -> None:
    footer = build_footer_text(created_at="2026-01-05T09:30:00Z", updated_at="2026-01-05T09:30:00Z")

    assert footer.startswith("Created: January 5, 2026 at 9:30 AM")


def test_pdf_contains_title_name_body_and_footer() -> None:
    data = build_estimate_pdf(_estimate(), name="Palm Beach", creator_email="ops@example.com", now=NOW)

    assert data.startswith(b"%PDF")
    pages = _pdf_text(data)
    assert len(pages) == 1
    text = pages[0]
    assert "Trip Cost Estimate" in text
    assert "Palm Beach" in text
    assert "LEGS SUMMARY" in text
    assert "Estimated Total: $6,000.00" in text
    assert "by ops@example.com" in text


def test_long_estimates_paginate_with_footer_on_every_page() -> None:
    pages = _pdf_text(build_estimate_pdf(_estimate(leg_count=80), now=NOW))

    assert len(pages) > 1
    assert all("by Guest" in page for page in pages)
    assert "Estimated Total" in pages[-1]


def test_metadata_title_includes_name() -> None:
    data = build_estimate_pdf(_estimate(), name="Palm Beach", now=NOW)

    with fitz.open(stream=data, filetype="pdf") as doc:
        assert doc.metadata["title"] == "Trip Cost Estimate - Palm Beach"
