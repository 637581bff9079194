"""JSON-file persistence for estimates saved without an account."""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
import uuid
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from .records import EstimateRecord, utc_now_iso


logger = logging.getLogger(__name__)

DEFAULT_STORE_PATH = Path(".data") / "estimates.json"
STORE_PATH_ENV = "TRIP_ESTIMATE_STORE"

# Streamlit sessions run in threads of one process and share the file.
_STORE_LOCK = threading.Lock()


class EstimateStoreError(RuntimeError):
    """Raised when saved estimates cannot be read or written."""


def default_store_path() -> Path:
    return Path(os.getenv(STORE_PATH_ENV) or DEFAULT_STORE_PATH)


class LocalEstimateStore:
    """Keeps :class:`EstimateRecord` rows in a single JSON file.

    Rows are tagged with ``owner_id`` and every operation only sees the rows
    of its own owner, so guests sharing the file cannot read or delete each
    other's estimates.
    """

    def __init__(
        self,
        path: Union[str, Path, None] = None,
        *,
        owner_id: Optional[str] = None,
        owner_email: Optional[str] = None,
    ) -> None:
        self.path = Path(path) if path is not None else default_store_path()
        self.owner_id = owner_id
        self.owner_email = owner_email

    def _read(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except (OSError, ValueError) as exc:
            raise EstimateStoreError(f"Could not read saved estimates from {self.path}: {exc}") from exc
        if not isinstance(payload, list):
            raise EstimateStoreError(f"Saved estimates file {self.path} is not a list")
        return [row for row in payload if isinstance(row, dict)]

    def _write(self, rows: List[Dict[str, Any]]) -> None:
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f"{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                tmp_name = handle.name
                json.dump(rows, handle, indent=2)
            os.replace(tmp_name, self.path)
        except OSError as exc:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise EstimateStoreError(f"Could not write saved estimates to {self.path}: {exc}") from exc

    def _owns(self, row: Mapping[str, Any]) -> bool:
        return row.get("owner_id") == self.owner_id

    def list_estimates(self) -> List[EstimateRecord]:
        with _STORE_LOCK:
            rows = [item for item in enumerate(self._read()) if self._owns(item[1])]
        # Newest first; file order breaks timestamp ties.
        rows.sort(key=lambda item: (item[1].get("created_at") or "", item[0]), reverse=True)
        return [EstimateRecord.from_row(row) for _, row in rows]

    def load_estimate(self, estimate_id: str) -> Optional[EstimateRecord]:
        with _STORE_LOCK:
            rows = self._read()
        for row in rows:
            if str(row.get("id")) == estimate_id and self._owns(row):
                return EstimateRecord.from_row(row)
        return None

    def save_estimate(self, name: str, data: Mapping[str, Any]) -> EstimateRecord:
        now = utc_now_iso()
        record = EstimateRecord(
            id=uuid.uuid4().hex,
            name=name,
            data=dict(data),
            created_at=now,
            updated_at=now,
            owner_email=self.owner_email,
        )
        row = record.to_row()
        row["owner_id"] = self.owner_id
        with _STORE_LOCK:
            rows = self._read()
            rows.append(row)
            self._write(rows)
        logger.debug("Saved local estimate %s (%s)", record.id, name)
        return record

    def update_estimate(self, estimate_id: str, name: str, data: Mapping[str, Any]) -> EstimateRecord:
        with _STORE_LOCK:
            rows = self._read()
            for row in rows:
                if str(row.get("id")) == estimate_id and self._owns(row):
                    row["name"] = name
                    row["estimate_data"] = dict(data)
                    row["updated_at"] = utc_now_iso()
                    self._write(rows)
                    return EstimateRecord.from_row(row)
        raise EstimateStoreError(f"Saved estimate {estimate_id} not found")

    def delete_estimate(self, estimate_id: str) -> bool:
        with _STORE_LOCK:
            rows = self._read()
            remaining = [row for row in rows if not (str(row.get("id")) == estimate_id and self._owns(row))]
            if len(remaining) == len(rows):
                logger.warning("Tried to delete unknown local estimate %s", estimate_id)
                return False
            self._write(remaining)
        return True
