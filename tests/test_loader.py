#!/usr/bin/env python3
"""Tests for YAML loading and saving utilities."""

from datetime import date, datetime, timedelta, timezone

import pytest
import yaml

from maintenance import (
    AccessDenied,
    ServiceNotFound,
    ServiceRecord,
    ServiceRule,
    Vehicle,
    VehicleNotFound,
    YamlStore,
    load_rules,
    parse_timestamp,
)

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def store(tmp_path):
    store = YamlStore(tmp_path / "vehicles")
    store.create_vehicle(
        Vehicle("civic", "alice", "Honda", "Civic", 2018, 42000, vin="2HGFC2F59JH000000"),
        now=NOW,
    )
    return store


# =============================================================================
# parse_timestamp tests
# =============================================================================


class TestParseTimestamp:
    """Tests for parse_timestamp function."""

    def test_aware_string(self):
        parsed = parse_timestamp("2025-01-15T08:30:00+02:00")
        assert parsed == datetime(2025, 1, 15, 6, 30, tzinfo=timezone.utc)

    def test_zulu_string(self):
        parsed = parse_timestamp("2025-01-15T08:30:00.000Z")
        assert parsed == datetime(2025, 1, 15, 8, 30, tzinfo=timezone.utc)

    def test_naive_string_is_utc(self):
        parsed = parse_timestamp("2025-01-15T08:30:00")
        assert parsed.utcoffset() == timedelta(0)
        assert parsed.hour == 8

    def test_date_only(self):
        parsed = parse_timestamp("2025-01-15")
        assert parsed == datetime(2025, 1, 15, tzinfo=timezone.utc)

    def test_date_object(self):
        """YAML may hand over unquoted dates as date objects."""
        assert parse_timestamp(date(2025, 1, 15)) == datetime(2025, 1, 15, tzinfo=timezone.utc)

    def test_invalid(self):
        with pytest.raises(ValueError):
            parse_timestamp("last tuesday")


# =============================================================================
# Vehicle tests
# =============================================================================


class TestVehicles:
    """Tests for YamlStore vehicle operations."""

    def test_create_writes_file(self, store):
        path = store.path_for("civic")
        assert path.exists()
        data = yaml.safe_load(path.read_text())
        assert data["vehicle"] == {
            "vehicleId": "civic",
            "ownerId": "alice",
            "make": "Honda",
            "model": "Civic",
            "year": 2018,
            "vin": "2HGFC2F59JH000000",
            "currentMileage": 42000,
            "createdAt": "2025-06-01T12:00:00+00:00",
            "updatedAt": "2025-06-01T12:00:00+00:00",
        }
        assert data["services"] == []

    def test_create_duplicate_raises(self, store):
        with pytest.raises(ValueError):
            store.create_vehicle(Vehicle("civic", "alice"))

    def test_get_vehicle(self, store):
        vehicle = store.get_vehicle("alice", "civic")
        assert isinstance(vehicle, Vehicle)
        assert vehicle.name == "2018 Honda Civic"
        assert vehicle.current_mileage == 42000

    def test_get_vehicle_missing(self, store):
        with pytest.raises(VehicleNotFound):
            store.get_vehicle("alice", "accord")

    def test_get_vehicle_other_owner(self, store):
        """Another owner's vehicle looks the same as a missing one."""
        with pytest.raises(VehicleNotFound):
            store.get_vehicle("bob", "civic")

    def test_invalid_vehicle_id(self, store):
        with pytest.raises(ValueError):
            store.get_vehicle("alice", "../etc/passwd")

    def test_list_vehicles(self, store):
        store.create_vehicle(Vehicle("miata", "bob", "Mazda", "MX-5", 1995))
        store.create_vehicle(Vehicle("accord", "alice", "Honda", "Accord", 2021))

        assert [v.vehicle_id for v in store.list_vehicles()] == ["accord", "civic", "miata"]
        assert [v.vehicle_id for v in store.list_vehicles("alice")] == ["accord", "civic"]
        assert store.list_vehicles("carol") == []

    def test_list_vehicles_without_data_dir(self, tmp_path):
        assert YamlStore(tmp_path / "missing").list_vehicles() == []

    def test_list_vehicles_skips_bad_files(self, store, caplog):
        """A broken file does not hide the other vehicles."""
        (store.data_dir / "broken.yaml").write_text("vehicle: [unclosed")
        (store.data_dir / "list.yaml").write_text("- one\n- two\n")

        assert [v.vehicle_id for v in store.list_vehicles()] == ["civic"]
        assert "Skipping broken.yaml" in caplog.text
        assert "Skipping list.yaml" in caplog.text

    def test_get_malformed_file(self, store):
        (store.data_dir / "list.yaml").write_text("- one\n")
        with pytest.raises(ValueError):
            store.get_vehicle("alice", "list")

    def test_create_sets_timestamps(self, store):
        vehicle = store.get_vehicle("alice", "civic")
        assert vehicle.created_at == NOW
        assert vehicle.updated_at == NOW

    def test_create_rejects_negative_mileage(self, store):
        with pytest.raises(ValueError):
            store.create_vehicle(Vehicle("accord", "alice", current_mileage=-5))
        assert not store.path_for("accord").exists()

    def test_create_rejects_non_string_make(self, store):
        with pytest.raises(ValueError):
            store.create_vehicle(Vehicle("accord", "alice", make=5))

    def test_create_rejects_non_integer_year(self, store):
        with pytest.raises(ValueError):
            store.create_vehicle(Vehicle("accord", "alice", year="2021"))

    def test_update_mileage_only(self, store):
        vehicle = store.update_vehicle("alice", "civic", current_mileage=43500)
        assert vehicle.current_mileage == 43500
        assert vehicle.make == "Honda"
        assert store.get_vehicle("alice", "civic").current_mileage == 43500

    def test_update_refreshes_updated_at(self, store):
        later = NOW + timedelta(days=3)
        vehicle = store.update_vehicle("alice", "civic", now=later, nickname="Blue")
        assert vehicle.created_at == NOW
        assert vehicle.updated_at == later
        assert vehicle.nickname == "Blue"

    def test_update_rejects_negative_mileage(self, store):
        with pytest.raises(ValueError):
            store.update_vehicle("alice", "civic", current_mileage=-1)
        assert store.get_vehicle("alice", "civic").current_mileage == 42000

    def test_update_other_owner(self, store):
        with pytest.raises(VehicleNotFound):
            store.update_vehicle("bob", "civic", current_mileage=1)

    def test_update_unknown_field(self, store):
        with pytest.raises(ValueError):
            store.update_vehicle("alice", "civic", color="red")

    def test_update_preserves_services(self, store):
        store.add_service("alice", "civic", "oil_change", NOW, 41000, now=NOW)
        store.update_vehicle("alice", "civic", current_mileage=43000)
        assert len(store.query_services("civic")) == 1

    def test_delete_vehicle(self, store):
        store.delete_vehicle("alice", "civic")
        assert not store.path_for("civic").exists()

    def test_delete_other_owner(self, store):
        with pytest.raises(VehicleNotFound):
            store.delete_vehicle("bob", "civic")
        assert store.path_for("civic").exists()


# =============================================================================
# Service record tests
# =============================================================================


class TestServices:
    """Tests for YamlStore service record operations."""

    def test_add_service(self, store):
        when = datetime(2025, 1, 15, 9, 0, tzinfo=timezone.utc)
        record = store.add_service(
            "alice",
            "civic",
            "oil_change",
            service_date=when,
            mileage=41000,
            description="Synthetic 0W-20",
            cost=49.99,
            service_provider="Quick Lube",
            notes="Next at 46k",
            service_id="service-1",
            now=NOW,
        )

        assert isinstance(record, ServiceRecord)
        assert record.created_at == NOW

        data = yaml.safe_load(store.path_for("civic").read_text())
        assert data["services"] == [
            {
                "vehicleId": "civic",
                "serviceId": "service-1",
                "serviceType": "oil_change",
                "serviceDate": "2025-01-15T09:00:00+00:00",
                "mileage": 41000,
                "description": "Synthetic 0W-20",
                "cost": 49.99,
                "serviceProvider": "Quick Lube",
                "notes": "Next at 46k",
                "createdAt": "2025-06-01T12:00:00+00:00",
            }
        ]

    def test_add_service_defaults(self, store):
        record = store.add_service("alice", "civic", "battery_check", now=NOW)
        assert record.service_date == NOW
        assert record.mileage == 0
        assert record.service_id.startswith("service-")

    def test_add_service_unknown_type(self, store):
        with pytest.raises(ValueError):
            store.add_service("alice", "civic", "wiper_blades", now=NOW)

    def test_add_service_custom_rules(self, tmp_path):
        rules = (ServiceRule("wiper_blades", 0, 365, "Wiper Blades"),)
        store = YamlStore(tmp_path, rules)
        store.create_vehicle(Vehicle("civic", "alice"))
        record = store.add_service("alice", "civic", "wiper_blades", now=NOW)
        assert record.service_type == "wiper_blades"

    def test_add_service_other_owner(self, store):
        with pytest.raises(AccessDenied):
            store.add_service("bob", "civic", "oil_change", now=NOW)

    def test_add_service_missing_vehicle(self, store):
        with pytest.raises(AccessDenied):
            store.add_service("alice", "accord", "oil_change", now=NOW)

    def test_add_service_negative_mileage(self, store):
        with pytest.raises(ValueError):
            store.add_service("alice", "civic", "oil_change", mileage=-10, now=NOW)
        assert store.query_services("civic") == []

    def test_add_service_duplicate_id(self, store):
        store.add_service("alice", "civic", "oil_change", service_id="s1", now=NOW)
        with pytest.raises(ValueError):
            store.add_service("alice", "civic", "oil_change", service_id="s1", now=NOW)

    def test_query_services_round_trip(self, store):
        when = datetime(2025, 1, 15, 9, 0, tzinfo=timezone.utc)
        store.add_service("alice", "civic", "oil_change", when, 41000, cost=49.99, now=NOW)

        records = store.query_services("civic")
        assert len(records) == 1
        assert records[0].vehicle_id == "civic"
        assert records[0].service_type == "oil_change"
        assert records[0].service_date == when
        assert records[0].mileage == 41000
        assert records[0].cost == 49.99

    def test_query_services_missing_vehicle(self, store):
        assert store.query_services("accord") == []

    def test_query_services_hand_written_file(self, tmp_path):
        """Unquoted dates and missing mileage are accepted."""
        (tmp_path / "truck.yaml").write_text("""
vehicle:
  vehicleId: truck
  ownerId: alice
  currentMileage: 80000
services:
  - serviceId: 1
    serviceType: oil_change
    serviceDate: 2025-01-15
""")
        records = YamlStore(tmp_path).query_services("truck")
        assert records[0].service_id == "1"
        assert records[0].service_date == datetime(2025, 1, 15, tzinfo=timezone.utc)
        assert records[0].mileage == 0

    def test_list_services_newest_first(self, store):
        store.add_service("alice", "civic", "oil_change", NOW - timedelta(days=300), now=NOW)
        store.add_service("alice", "civic", "brake_check", NOW - timedelta(days=10), now=NOW)
        store.add_service("alice", "civic", "air_filter", NOW - timedelta(days=100), now=NOW)

        records = store.list_services("alice", "civic")
        assert [r.service_type for r in records] == ["brake_check", "air_filter", "oil_change"]

    def test_list_services_other_owner(self, store):
        with pytest.raises(AccessDenied):
            store.list_services("bob", "civic")

    def test_update_service(self, store):
        store.add_service("alice", "civic", "oil_change", NOW, 41000, service_id="s1", now=NOW)

        record = store.update_service(
            "alice", "civic", "s1", mileage=41500, notes="Corrected odometer"
        )
        assert record.mileage == 41500
        assert record.notes == "Corrected odometer"
        assert record.service_type == "oil_change"
        assert record.created_at == NOW
        assert record.updated_at > NOW

    def test_update_service_sets_updated_at(self, store):
        store.add_service("alice", "civic", "oil_change", NOW, 41000, service_id="s1", now=NOW)
        later = NOW + timedelta(hours=2)

        store.update_service("alice", "civic", "s1", now=later, cost=55.0)

        data = yaml.safe_load(store.path_for("civic").read_text())
        assert data["services"][0]["updatedAt"] == "2025-06-01T14:00:00+00:00"
        assert data["services"][0]["createdAt"] == "2025-06-01T12:00:00+00:00"

    def test_update_service_rejects_bad_cost(self, store):
        store.add_service("alice", "civic", "oil_change", service_id="s1", now=NOW)
        with pytest.raises(ValueError):
            store.update_service("alice", "civic", "s1", cost="cheap")

    def test_update_service_date(self, store):
        store.add_service("alice", "civic", "oil_change", NOW, service_id="s1", now=NOW)
        record = store.update_service("alice", "civic", "s1", service_date="2025-02-01")
        assert record.service_date == datetime(2025, 2, 1, tzinfo=timezone.utc)

    def test_update_service_unknown_type(self, store):
        store.add_service("alice", "civic", "oil_change", service_id="s1", now=NOW)
        with pytest.raises(ValueError):
            store.update_service("alice", "civic", "s1", service_type="wiper_blades")

    def test_update_service_no_fields(self, store):
        store.add_service("alice", "civic", "oil_change", service_id="s1", now=NOW)
        with pytest.raises(ValueError):
            store.update_service("alice", "civic", "s1")

    def test_update_missing_service(self, store):
        with pytest.raises(ServiceNotFound):
            store.update_service("alice", "civic", "nope", mileage=1)

    def test_delete_service(self, store):
        store.add_service("alice", "civic", "oil_change", service_id="s1", now=NOW)
        store.add_service("alice", "civic", "brake_check", service_id="s2", now=NOW)

        store.delete_service("alice", "civic", "s1")
        assert [r.service_id for r in store.query_services("civic")] == ["s2"]

    def test_delete_service_other_owner(self, store):
        store.add_service("alice", "civic", "oil_change", service_id="s1", now=NOW)
        with pytest.raises(AccessDenied):
            store.delete_service("bob", "civic", "s1")

    def test_delete_missing_service(self, store):
        with pytest.raises(ServiceNotFound):
            store.delete_service("alice", "civic", "nope")


# =============================================================================
# load_rules tests
# =============================================================================


class TestLoadRules:
    """Tests for load_rules function."""

    def test_loads_rules(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text("""
rules:
  - serviceType: oil_change
    mileageInterval: 3000
    timeIntervalDays: 90
    displayName: Oil Change (severe)
  - serviceType: battery_check
    timeIntervalDays: 180
""")
        rules = load_rules(path)

        assert rules == (
            ServiceRule("oil_change", 3000, 90, "Oil Change (severe)"),
            ServiceRule("battery_check", 0, 180, "battery_check"),
        )

    def test_empty_file(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text("")
        with pytest.raises(ValueError):
            load_rules(path)

    def test_missing_days(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text("rules:\n  - serviceType: oil_change\n    mileageInterval: 5000\n")
        with pytest.raises(ValueError):
            load_rules(path)

    def test_non_positive_days(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text("rules:\n  - serviceType: oil_change\n    timeIntervalDays: 0\n")
        with pytest.raises(ValueError):
            load_rules(path)

    def test_negative_mileage(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text(
            "rules:\n  - serviceType: oil_change\n    mileageInterval: -1\n"
            "    timeIntervalDays: 90\n"
        )
        with pytest.raises(ValueError):
            load_rules(path)

    def test_duplicate_types(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text("""
rules:
  - serviceType: oil_change
    timeIntervalDays: 90
  - serviceType: oil_change
    timeIntervalDays: 180
""")
        with pytest.raises(ValueError):
            load_rules(path)
