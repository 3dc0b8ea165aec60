"""ServiceRule class and the default service interval table."""

from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple


@dataclass(frozen=True)
class ServiceRule:
    """A recurring service and the intervals after which it is due again."""

    service_type: str
    mileage_interval: float
    time_interval_days: int
    display_name: str

    @property
    def is_time_only(self) -> bool:
        """True when mileage never triggers this service (e.g. battery check)."""
        return self.mileage_interval <= 0


DEFAULT_RULES: Tuple[ServiceRule, ...] = (
    ServiceRule("oil_change", 5000, 180, "Oil Change"),
    ServiceRule("brake_check", 15000, 365, "Brake Check"),
    ServiceRule("tire_rotation", 7500, 180, "Tire Rotation"),
    ServiceRule("air_filter", 15000, 365, "Air Filter Replacement"),
    ServiceRule("battery_check", 0, 365, "Battery Check"),
    ServiceRule("transmission_service", 30000, 730, "Transmission Service"),
    ServiceRule("coolant_flush", 30000, 730, "Coolant Flush"),
)


def rules_by_type(rules: Iterable[ServiceRule]) -> Dict[str, ServiceRule]:
    """Index a rule table by service type."""
    return {rule.service_type: rule for rule in rules}


def get_rule(
    service_type: str, rules: Iterable[ServiceRule] = DEFAULT_RULES
) -> Optional[ServiceRule]:
    """Find a rule by its service type, or None if the type is unknown."""
    for rule in rules:
        if rule.service_type == service_type:
            return rule
    return None
