"""Prediction dataclass for calculated next-service information."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from .status import Status

# Predictions due within this many days are reported as due soon
DUE_SOON_DAYS = 7


@dataclass
class Prediction:
    """When a service type is next due for a vehicle."""

    service_type: str
    service_name: str
    next_service_date: datetime
    days_until: int
    is_overdue: bool
    current_mileage: float
    recommended_mileage: float
    recommended_time_interval: int
    last_service_date: Optional[datetime] = None
    last_service_mileage: Optional[float] = None
    is_first_service: bool = False

    @property
    def status(self) -> Status:
        if self.is_overdue:
            return Status.OVERDUE
        if self.days_until <= DUE_SOON_DAYS:
            return Status.DUE_SOON
        return Status.OK

    @property
    def is_due(self) -> bool:
        return self.status in (Status.OVERDUE, Status.DUE_SOON)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the camelCase wire format."""
        return {
            "serviceType": self.service_type,
            "serviceName": self.service_name,
            "nextServiceDate": self.next_service_date.isoformat(),
            "daysUntil": self.days_until,
            "isOverdue": self.is_overdue,
            "lastServiceDate": (
                self.last_service_date.isoformat() if self.last_service_date else None
            ),
            "lastServiceMileage": self.last_service_mileage,
            "currentMileage": self.current_mileage,
            "recommendedMileage": self.recommended_mileage,
            "recommendedTimeInterval": self.recommended_time_interval,
            "isFirstService": self.is_first_service,
        }
