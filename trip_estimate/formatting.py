"""Text and HTML renderings of an :class:`Estimate`.

Both renderers are pure: they never recompute costs, they only decide which
line items to show. Optional sections are emitted only when their subtotal is
greater than zero and each line item inside a section is gated the same way.
"""

from __future__ import annotations

import html
import math
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import List, Optional, Sequence, Tuple

from .models import Estimate


EMPTY_ESTIMATE_TEXT = "Add flight legs to see estimate..."
CREW_EXPENSES_HEADING = "Crew Expenses:"
HOURLY_HEADING = "Hourly Subtotal (Programs & Reserves)"
AIRPORT_HEADING = "Airport & Ground Subtotal"
MISC_HEADING = "Miscellaneous Subtotal"


def _fixed(value: float, decimals: int) -> str:
    """Round halves away from zero and add thousands separators."""

    with localcontext() as context:
        context.prec = 400
        rounded = Decimal(value).quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP)
    if rounded.is_zero():
        rounded = rounded.copy_abs()
    return f"{rounded:,.{decimals}f}"


def format_currency(value: float) -> str:
    if not math.isfinite(value):
        return f"${value}"
    if value < 0:
        return f"-${_fixed(abs(value), 2)}"
    return f"${_fixed(value, 2)}"


def format_quantity(value: float, decimals: int = 0) -> str:
    """Format gallons, pounds or hours with thousands separators."""

    if not math.isfinite(value):
        return str(value)
    return _fixed(value, decimals)


def _count(value: float) -> str:
    if isinstance(value, int):
        return str(value)
    if value.is_integer():
        return str(int(value))
    return f"{value:g}"


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}{'s' if count > 1 else ''}"


def _positive(value: float) -> bool:
    # NaN compares false, so degenerate values never open a section.
    return value > 0


def _crew_expense_lines(estimate: Estimate) -> List[Tuple[str, float, str]]:
    """Return (label, amount, detail) rows for the crew expense section."""

    rows: List[Tuple[str, float, str]] = []
    if _positive(estimate.hotel_total):
        rows.append(
            (
                "Hotel",
                estimate.hotel_total,
                f"{estimate.crew_count} crew × {_count(estimate.hotel_stays)} night(s) × "
                f"{format_currency(estimate.hotel_rate)}",
            )
        )
    if _positive(estimate.meals_total):
        rows.append(
            (
                "Meals",
                estimate.meals_total,
                f"{estimate.crew_count} crew × {_count(estimate.trip_days)} day(s) × "
                f"{format_currency(estimate.meals_rate)}",
            )
        )
    if _positive(estimate.other_total):
        rows.append(("Other", estimate.other_total, ""))
    for label, amount in (
        ("Rental Car", estimate.rental_car),
        ("Airfare", estimate.airfare),
        ("Mileage", estimate.mileage),
    ):
        if _positive(amount):
            rows.append((label, amount, ""))
    return rows


def _hourly_lines(estimate: Estimate) -> List[Tuple[str, float, str]]:
    hours = format_quantity(estimate.total_flight_hours, 2)
    rows: List[Tuple[str, float, str]] = []
    for label, total, rate in (
        ("Maintenance Programs", estimate.maintenance_total, estimate.maintenance_rate),
        ("Other Consumables", estimate.consumables_total, estimate.consumables_rate),
        ("Additional", estimate.additional_total, estimate.additional_rate),
    ):
        if _positive(total):
            rows.append((label, total, f"{hours} hrs × {format_currency(rate)}"))
    return rows


def _fee_lines(items: Sequence[Tuple[str, float]]) -> List[Tuple[str, float, str]]:
    return [(label, amount, "") for label, amount in items if _positive(amount)]


def _apu_note(estimate: Estimate) -> Optional[str]:
    if not (estimate.include_apu and estimate.active_legs_count > 0):
        return None
    return (
        f"Includes {format_quantity(estimate.total_apu_fuel)} lbs APU burn for "
        f"{_plural(estimate.active_legs_count, 'active leg')}"
    )


def _line(label: str, amount: float, detail: str = "", indent: str = "  ") -> str:
    text = f"{indent}{label}: {format_currency(amount)}"
    if detail:
        text += f" ({detail})"
    return text


def format_estimate_text(estimate: Estimate) -> str:
    """Render the plain-text estimate used on screen, in emails and in PDFs."""

    if estimate.is_empty:
        return EMPTY_ESTIMATE_TEXT

    lines: List[str] = ["LEGS SUMMARY"]
    for leg in estimate.legs_summary:
        lines.append(
            f"Leg {leg.index}: {leg.origin} - {leg.destination} "
            f"{_count(leg.hours)}h {_count(leg.minutes)}m ({format_quantity(leg.gallons)} gallons)"
        )

    lines.append("")
    lines.append(f"Total Flight Time: {_count(estimate.total_hours)}h {_count(estimate.remaining_minutes)}m")
    lines.append(f"Total Fuel Used: {format_quantity(estimate.total_fuel_gallons)} gallons")
    apu_note = _apu_note(estimate)
    if apu_note:
        lines.append(f"  ({apu_note})")

    lines.extend(["", "", "ESTIMATE"])
    for member in estimate.crew_details:
        lines.append(f"{member.role} {_count(member.days)} day(s) @ {format_currency(member.rate)}")
    lines.append(f"Crew Day Rate Subtotal: {format_currency(estimate.crew_day_total)}")

    if _positive(estimate.crew_expenses_total):
        lines.append(CREW_EXPENSES_HEADING)
        lines.extend(_line(*row) for row in _crew_expense_lines(estimate))
    lines.append(f"Crew Subtotal: {format_currency(estimate.crew_subtotal)}")
    lines.append("")

    if _positive(estimate.hourly_subtotal):
        lines.append(f"{HOURLY_HEADING}: {format_currency(estimate.hourly_subtotal)}")
        lines.extend(_line(*row) for row in _hourly_lines(estimate))

    lines.append(f"Fuel Subtotal: {format_currency(estimate.fuel_subtotal)}")
    lines.append(
        f"  ({format_quantity(estimate.total_fuel_gallons)} gallons @ {format_currency(estimate.fuel_price)})"
    )

    if _positive(estimate.airport_subtotal):
        lines.append(f"{AIRPORT_HEADING}: {format_currency(estimate.airport_subtotal)}")
        lines.extend(_line(*row) for row in _fee_lines(estimate.airport_line_items()))

    if _positive(estimate.misc_subtotal):
        lines.append(f"{MISC_HEADING}: {format_currency(estimate.misc_subtotal)}")
        lines.extend(_line(*row) for row in _fee_lines(estimate.misc_line_items()))

    lines.append("")
    lines.append(f"Estimated Total: {format_currency(estimate.estimated_total)}")

    if estimate.trip_notes.strip():
        lines.extend(["", "Trip Notes:", estimate.trip_notes.strip()])

    return "\n".join(lines) + "\n"


def _html_rows(rows: Sequence[Tuple[str, float, str]]) -> str:
    cells = []
    for label, amount, detail in rows:
        detail_html = f'<span class="estimate-detail">({html.escape(detail)})</span>' if detail else ""
        cells.append(
            "<tr>"
            f'<td class="estimate-item">{html.escape(label)} {detail_html}</td>'
            f'<td class="estimate-amount">{html.escape(format_currency(amount))}</td>'
            "</tr>"
        )
    return "".join(cells)


def _html_section(heading: str, subtotal_label: str, subtotal: float, rows: Sequence[Tuple[str, float, str]]) -> str:
    return (
        '<div class="estimate-section">'
        f"<h4>{html.escape(heading)}</h4>"
        f'<table class="estimate-table">{_html_rows(rows)}'
        '<tr class="estimate-subtotal">'
        f"<td>{html.escape(subtotal_label)}</td>"
        f'<td class="estimate-amount">{html.escape(format_currency(subtotal))}</td>'
        "</tr></table></div>"
    )


def format_estimate_html(estimate: Estimate, *, title: Optional[str] = None) -> str:
    """Render the estimate as an HTML fragment for the calculator and share views."""

    parts: List[str] = ['<div class="trip-estimate">']
    if title:
        parts.append(f"<h3>{html.escape(title)}</h3>")

    if estimate.is_empty:
        parts.append(f'<p class="estimate-empty">{html.escape(EMPTY_ESTIMATE_TEXT)}</p></div>')
        return "".join(parts)

    leg_items = "".join(
        "<li>"
        f"Leg {leg.index}: {html.escape(leg.origin)} &rarr; {html.escape(leg.destination)} "
        f"{_count(leg.hours)}h {_count(leg.minutes)}m ({html.escape(format_quantity(leg.gallons))} gallons)"
        "</li>"
        for leg in estimate.legs_summary
    )
    parts.append(f'<div class="estimate-section"><h4>Legs Summary</h4><ul>{leg_items}</ul>')
    parts.append(
        "<p>"
        f"Total Flight Time: {_count(estimate.total_hours)}h {_count(estimate.remaining_minutes)}m<br>"
        f"Total Fuel Used: {html.escape(format_quantity(estimate.total_fuel_gallons))} gallons"
    )
    apu_note = _apu_note(estimate)
    if apu_note:
        parts.append(f'<br><span class="estimate-detail">({html.escape(apu_note)})</span>')
    parts.append("</p></div>")

    crew_rows: List[Tuple[str, float, str]] = [
        (
            member.role,
            member.total,
            f"{_count(member.days)} day(s) @ {format_currency(member.rate)}",
        )
        for member in estimate.crew_details
    ]
    crew_rows.append(("Crew Day Rate Subtotal", estimate.crew_day_total, ""))
    if _positive(estimate.crew_expenses_total):
        crew_rows.extend(_crew_expense_lines(estimate))
    parts.append(_html_section("Crew", "Crew Subtotal", estimate.crew_subtotal, crew_rows))

    if _positive(estimate.hourly_subtotal):
        parts.append(
            _html_section("Hourly Programs & Reserves", "Hourly Subtotal", estimate.hourly_subtotal, _hourly_lines(estimate))
        )

    fuel_detail = (
        f"{format_quantity(estimate.total_fuel_gallons)} gallons @ {format_currency(estimate.fuel_price)}"
    )
    parts.append(
        _html_section("Fuel", "Fuel Subtotal", estimate.fuel_subtotal, [("Fuel", estimate.fuel_subtotal, fuel_detail)])
    )

    if _positive(estimate.airport_subtotal):
        parts.append(
            _html_section(
                "Airport & Ground",
                "Airport & Ground Subtotal",
                estimate.airport_subtotal,
                _fee_lines(estimate.airport_line_items()),
            )
        )

    if _positive(estimate.misc_subtotal):
        parts.append(
            _html_section(
                "Miscellaneous",
                "Miscellaneous Subtotal",
                estimate.misc_subtotal,
                _fee_lines(estimate.misc_line_items()),
            )
        )

    parts.append(
        '<div class="estimate-total">'
        f"Estimated Total: <strong>{html.escape(format_currency(estimate.estimated_total))}</strong>"
        "</div>"
    )

    notes = estimate.trip_notes.strip()
    if notes:
        notes_html = html.escape(notes).replace("\n", "<br>")
        parts.append(f'<div class="estimate-notes"><h4>Trip Notes</h4><p>{notes_html}</p></div>')

    parts.append("</div>")
    return "".join(parts)
