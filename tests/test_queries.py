#!/usr/bin/env python3
"""Tests for the caller-facing prediction query."""
from datetime import datetime, timedelta, timezone

import pytest
from maintenance import Vehicle, VehicleNotFound, YamlStore, vehicle_predictions

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def store(tmp_path):
    store = YamlStore(tmp_path)
    store.create_vehicle(Vehicle("civic", "alice", "Honda", "Civic", 2018, 12500))
    store.add_service(
        "alice", "civic", "oil_change", NOW - timedelta(days=90), 10000, now=NOW
    )
    return store


class TestVehiclePredictions:
    """Tests for vehicle_predictions."""

    def test_report(self, store):
        report = vehicle_predictions(store, "alice", "civic", NOW)

        assert report["vehicleId"] == "civic"
        assert report["generatedAt"] == "2025-06-01T12:00:00+00:00"
        assert len(report["predictions"]) == 7

        oil = next(p for p in report["predictions"] if p["serviceType"] == "oil_change")
        assert oil["daysUntil"] == 90
        assert oil["isOverdue"] is False
        assert oil["isFirstService"] is False
        assert oil["lastServiceMileage"] == 10000
        assert oil["recommendedMileage"] == 15000

    def test_first_entry_is_soonest(self, store):
        report = vehicle_predictions(store, "alice", "civic", NOW)
        days = [p["daysUntil"] for p in report["predictions"]]
        assert days == sorted(days)

    def test_other_owner(self, store):
        with pytest.raises(VehicleNotFound):
            vehicle_predictions(store, "bob", "civic", NOW)

    def test_missing_vehicle(self, store):
        with pytest.raises(VehicleNotFound):
            vehicle_predictions(store, "alice", "accord", NOW)

    def test_defaults_to_current_time(self, store):
        report = vehicle_predictions(store, "alice", "civic")
        generated = datetime.fromisoformat(report["generatedAt"])
        assert abs(datetime.now(timezone.utc) - generated) < timedelta(minutes=1)
