#!/usr/bin/env python3
"""Tests for ServiceRule and the default rule table."""
import dataclasses

import pytest
from maintenance import DEFAULT_RULES, ServiceRule, get_rule, rules_by_type


class TestServiceRule:
    """Tests for ServiceRule class."""

    def test_is_time_only(self):
        """A zero mileage interval means the service is time-only."""
        assert ServiceRule("battery_check", 0, 365, "Battery Check").is_time_only
        assert not ServiceRule("oil_change", 5000, 180, "Oil Change").is_time_only

    def test_is_immutable(self):
        """Rules cannot be changed after creation."""
        rule = ServiceRule("oil_change", 5000, 180, "Oil Change")
        with pytest.raises(dataclasses.FrozenInstanceError):
            rule.mileage_interval = 1000


class TestDefaultRules:
    """Tests for the built-in rule table."""

    def test_has_seven_types_in_order(self):
        assert [r.service_type for r in DEFAULT_RULES] == [
            "oil_change",
            "brake_check",
            "tire_rotation",
            "air_filter",
            "battery_check",
            "transmission_service",
            "coolant_flush",
        ]

    def test_intervals(self):
        """Mileage and day intervals of each service type."""
        table = {
            r.service_type: (r.mileage_interval, r.time_interval_days, r.display_name)
            for r in DEFAULT_RULES
        }
        assert table == {
            "oil_change": (5000, 180, "Oil Change"),
            "brake_check": (15000, 365, "Brake Check"),
            "tire_rotation": (7500, 180, "Tire Rotation"),
            "air_filter": (15000, 365, "Air Filter Replacement"),
            "battery_check": (0, 365, "Battery Check"),
            "transmission_service": (30000, 730, "Transmission Service"),
            "coolant_flush": (30000, 730, "Coolant Flush"),
        }

    def test_every_rule_has_positive_time_interval(self):
        assert all(r.time_interval_days > 0 for r in DEFAULT_RULES)

    def test_is_a_tuple(self):
        """The default table itself cannot be appended to."""
        assert isinstance(DEFAULT_RULES, tuple)


class TestRuleLookup:
    """Tests for get_rule and rules_by_type."""

    def test_get_rule_known(self):
        rule = get_rule("tire_rotation")
        assert rule is not None
        assert rule.display_name == "Tire Rotation"

    def test_get_rule_unknown(self):
        assert get_rule("wiper_blades") is None

    def test_get_rule_custom_table(self):
        rules = (ServiceRule("wiper_blades", 0, 365, "Wiper Blades"),)
        assert get_rule("wiper_blades", rules) is rules[0]
        assert get_rule("oil_change", rules) is None

    def test_rules_by_type(self):
        index = rules_by_type(DEFAULT_RULES)
        assert len(index) == 7
        assert index["coolant_flush"].time_interval_days == 730
