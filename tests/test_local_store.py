"""Tests for the JSON-file estimate store used without an account."""

from __future__ import annotations

import json
import pathlib
import sys
import threading

import pytest

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))

from trip_estimate.local_store import STORE_PATH_ENV, EstimateStoreError, LocalEstimateStore, default_store_path


PAYLOAD = {
    "legs": [{"from": "KTEB", "to": "KPBI", "hours": "3", "minutes": "0", "fuelBurn": "4000"}],
    "crew": [{"role": "Pilot", "rate": "1500"}],
    "formData": {"tripDays": "2", "fuelPrice": "5.93"},
    "totalCost": 6000.0,
}


def test_missing_file_is_an_empty_store(tmp_path) -> None:
    store = LocalEstimateStore(tmp_path / "nested" / "estimates.json")

    assert store.list_estimates() == []
    assert store.load_estimate("nope") is None


def test_save_load_and_list(tmp_path) -> None:
    store = LocalEstimateStore(tmp_path / "estimates.json", owner_email="ops@example.com")

    saved = store.save_estimate("Palm Beach", PAYLOAD)
    loaded = store.load_estimate(saved.id)

    assert len(saved.id) == 32
    assert loaded is not None
    assert loaded.name == "Palm Beach"
    assert loaded.data == PAYLOAD
    assert loaded.owner_email == "ops@example.com"
    assert loaded.total_cost == 6000.0
    assert loaded.estimate().crew_day_total == 3000


def test_list_is_newest_first(tmp_path) -> None:
    path = tmp_path / "estimates.json"
    path.write_text(
        json.dumps(
            [
                {"id": "old", "name": "Old", "estimate_data": {}, "created_at": "2026-01-01T00:00:00Z"},
                {"id": "new", "name": "New", "estimate_data": {}, "created_at": "2026-03-01T00:00:00Z"},
                {"id": "mid", "name": "Mid", "estimate_data": {}, "created_at": "2026-02-01T00:00:00Z"},
            ]
        ),
        encoding="utf-8",
    )

    names = [record.name for record in LocalEstimateStore(path).list_estimates()]

    assert names == ["New", "Mid", "Old"]


def test_update_and_delete(tmp_path) -> None:
    store = LocalEstimateStore(tmp_path / "estimates.json")
    saved = store.save_estimate("Draft", PAYLOAD)

    updated = store.update_estimate(saved.id, "Final", {"legs": [], "crew": [], "formData": {}})

    assert updated.name == "Final"
    assert updated.created_at == saved.created_at
    assert updated.data["legs"] == []
    assert store.delete_estimate(saved.id) is True
    assert store.delete_estimate(saved.id) is False
    assert store.list_estimates() == []


def test_update_missing_estimate_raises(tmp_path) -> None:
    store = LocalEstimateStore(tmp_path / "estimates.json")

    with pytest.raises(EstimateStoreError):
        store.update_estimate("missing", "Name", {})


@pytest.mark.parametrize("content", ["{not json", json.dumps({"id": "x"})])
def test_corrupt_file_raises(tmp_path, content: str) -> None:
    path = tmp_path / "estimates.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(EstimateStoreError):
        LocalEstimateStore(path).list_estimates()


def test_store_path_can_come_from_environment(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv(STORE_PATH_ENV, str(tmp_path / "custom.json"))

    assert default_store_path() == tmp_path / "custom.json"
    assert LocalEstimateStore().path == tmp_path / "custom.json"


def test_concurrent_saves_are_not_lost(tmp_path) -> None:
    path = tmp_path / "estimates.json"
    errors = []

    def save_many(worker: int) -> None:
        store = LocalEstimateStore(path, owner_id="guest")
        for index in range(20):
            try:
                store.save_estimate(f"Trip {worker}-{index}", PAYLOAD)
            except EstimateStoreError as exc:
                errors.append(exc)

    threads = [threading.Thread(target=save_many, args=(worker,)) for worker in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert len(LocalEstimateStore(path, owner_id="guest").list_estimates()) == 160
    assert [entry.name for entry in tmp_path.iterdir()] == ["estimates.json"]


def test_guests_only_see_their_own_estimates(tmp_path) -> None:
    path = tmp_path / "estimates.json"
    alice = LocalEstimateStore(path, owner_id="alice")
    bob = LocalEstimateStore(path, owner_id="bob")
    record = alice.save_estimate("Alice trip", PAYLOAD)

    assert bob.list_estimates() == []
    assert bob.load_estimate(record.id) is None
    assert bob.delete_estimate(record.id) is False
    with pytest.raises(EstimateStoreError):
        bob.update_estimate(record.id, "Hijacked", {})

    assert [entry.name for entry in alice.list_estimates()] == ["Alice trip"]
