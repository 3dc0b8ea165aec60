#!/usr/bin/env python3
"""Tests for ServiceRecord class."""
from datetime import datetime, timezone

from maintenance import ServiceRecord


class TestServiceRecord:
    """Tests for ServiceRecord class."""

    def test_required_fields(self):
        """Record with only required fields."""
        when = datetime(2025, 1, 15, tzinfo=timezone.utc)
        record = ServiceRecord("civic", "service-1", "oil_change", when)
        assert record.vehicle_id == "civic"
        assert record.service_id == "service-1"
        assert record.service_type == "oil_change"
        assert record.service_date == when
        assert record.mileage == 0
        assert record.description is None
        assert record.cost is None
        assert record.service_provider is None
        assert record.notes is None
        assert record.created_at is None
        assert record.updated_at is None

    def test_all_fields(self):
        """Record with all fields populated."""
        when = datetime(2025, 1, 15, tzinfo=timezone.utc)
        record = ServiceRecord(
            vehicle_id="civic",
            service_id="service-2",
            service_type="brake_check",
            service_date=when,
            mileage=42000,
            description="Front pads inspected",
            cost=35.0,
            service_provider="Dealer",
            notes="Pads at 6mm",
            created_at=when,
        )
        assert record.mileage == 42000
        assert record.description == "Front pads inspected"
        assert record.cost == 35.0
        assert record.service_provider == "Dealer"
        assert record.notes == "Pads at 6mm"
        assert record.created_at == when

    def test_missing_mileage_is_zero(self):
        when = datetime(2025, 1, 15, tzinfo=timezone.utc)
        record = ServiceRecord("civic", "s", "oil_change", when, mileage=None)
        assert record.mileage == 0
