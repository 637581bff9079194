"""PDF export of a formatted estimate using PyMuPDF."""

from __future__ import annotations

import logging
import textwrap
from datetime import datetime
from typing import List, Optional

import fitz

from .formatting import format_estimate_text
from .models import Estimate
from .records import parse_timestamp


logger = logging.getLogger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = fitz.paper_size("a4")
MARGIN = 56
BOTTOM_MARGIN = 56
BODY_FONT = "cour"
BODY_FONT_SIZE = 9
BODY_LINE_HEIGHT = 12
TITLE = "Trip Cost Estimate"
GUEST_LABEL = "Guest"


def pdf_filename(now: Optional[datetime] = None) -> str:
    stamp = now or datetime.now()
    return f"trip-estimate-{stamp:%Y%m%d-%H%M}.pdf"


def _format_footer_date(value: datetime) -> str:
    hour = value.hour % 12 or 12
    meridiem = "AM" if value.hour < 12 else "PM"
    return f"{value:%B} {value.day}, {value.year} at {hour}:{value:%M} {meridiem}"


def build_footer_text(
    *,
    creator_email: Optional[str] = None,
    created_at: object = None,
    updated_at: object = None,
    now: Optional[datetime] = None,
) -> str:
    """Return ``"<Created|Last updated>: <date> - by <email>"``."""

    created = parse_timestamp(created_at)
    updated = parse_timestamp(updated_at)
    if created is not None and updated is not None and updated > created:
        label, moment = "Last updated", updated
    elif created is not None:
        label, moment = "Created", created
    else:
        label, moment = "Created", now or datetime.now()
    return f"{label}: {_format_footer_date(moment)} - by {creator_email or GUEST_LABEL}"


def _wrap_body(text: str, width: int) -> List[str]:
    lines: List[str] = []
    for raw_line in text.splitlines():
        if not raw_line.strip():
            lines.append("")
            continue
        indent = raw_line[: len(raw_line) - len(raw_line.lstrip())]
        lines.extend(
            textwrap.wrap(raw_line, width=width, subsequent_indent=indent + "  ", drop_whitespace=True)
            or [raw_line]
        )
    return lines


def _add_footer(page: "fitz.Page", footer_text: str) -> None:
    width = fitz.get_text_length(footer_text, fontname="heit", fontsize=8)
    page.insert_text(((PAGE_WIDTH - width) / 2, PAGE_HEIGHT - 28), footer_text, fontname="heit", fontsize=8)


def build_estimate_pdf(
    estimate: Estimate,
    *,
    name: Optional[str] = None,
    creator_email: Optional[str] = None,
    created_at: object = None,
    updated_at: object = None,
    now: Optional[datetime] = None,
) -> bytes:
    """Lay out the text rendering of ``estimate`` on A4 pages and return the PDF bytes."""

    footer_text = build_footer_text(
        creator_email=creator_email, created_at=created_at, updated_at=updated_at, now=now
    )
    char_width = fitz.get_text_length("M", fontname=BODY_FONT, fontsize=BODY_FONT_SIZE)
    wrap_width = max(int((PAGE_WIDTH - 2 * MARGIN) / char_width), 20)
    body_lines = _wrap_body(format_estimate_text(estimate), wrap_width)

    with fitz.open() as doc:
        page = doc.new_page(width=PAGE_WIDTH, height=PAGE_HEIGHT)
        y = MARGIN
        page.insert_text((MARGIN, y), TITLE, fontname="hebo", fontsize=16)
        y += 22
        if name:
            page.insert_text((MARGIN, y), name, fontname="helv", fontsize=12)
            y += 18
        y += 8

        for line in body_lines:
            if y + BODY_LINE_HEIGHT > PAGE_HEIGHT - BOTTOM_MARGIN:
                _add_footer(page, footer_text)
                page = doc.new_page(width=PAGE_WIDTH, height=PAGE_HEIGHT)
                y = MARGIN
            if line:
                page.insert_text((MARGIN, y), line, fontname=BODY_FONT, fontsize=BODY_FONT_SIZE)
            y += BODY_LINE_HEIGHT
        _add_footer(page, footer_text)

        doc.set_metadata({"title": f"{TITLE} - {name}" if name else TITLE, "creator": "Trip Cost Calculator"})
        logger.debug("Rendered estimate PDF with %d page(s)", doc.page_count)
        return doc.tobytes()
