"""Saved estimate records shared by the local and remote stores."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Tuple

from .engine import calculate_estimate
from .inputs import inputs_from_record_data
from .models import Estimate


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp (``Z`` suffix allowed) into an aware datetime."""

    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if not value:
        return None
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class EstimateRecord:
    """A named, persisted estimate.

    ``data`` holds the calculator payload (``legs``, ``crew``, ``formData`` and
    optionally ``totalCost``); the estimate itself is recomputed on demand.
    """

    id: str
    name: str
    data: Dict[str, Any] = field(default_factory=dict)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    owner_email: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "EstimateRecord":
        data = row.get("estimate_data")
        if data is None:
            data = row.get("data")
        return cls(
            id=str(row.get("id") or ""),
            name=str(row.get("name") or ""),
            data=dict(data or {}),
            created_at=row.get("created_at") or row.get("date"),
            updated_at=row.get("updated_at"),
            owner_email=row.get("creator_email") or row.get("owner_email"),
        )

    def to_row(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "estimate_data": self.data,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "creator_email": self.owner_email,
        }

    @property
    def total_cost(self) -> Optional[float]:
        value = self.data.get("totalCost")
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
        return None

    def estimate(self) -> Estimate:
        return calculate_estimate(inputs_from_record_data(self.data))

    def display_timestamp(self) -> Tuple[str, Optional[datetime]]:
        """Return ``("Last updated", ts)`` when edited after creation, else ``("Created", ts)``."""

        created = parse_timestamp(self.created_at)
        updated = parse_timestamp(self.updated_at)
        if updated is not None and (created is None or updated > created):
            return "Last updated", updated
        return "Created", created
