"""ServiceRecord class for maintenance events."""
from datetime import datetime
from typing import Optional


class ServiceRecord:
    """A record of maintenance performed on a vehicle."""

    def __init__(
            self,
            vehicle_id: str,
            service_id: str,
            service_type: str,
            service_date: datetime,
            mileage: float = 0,
            description: Optional[str] = None,
            cost: Optional[float] = None,
            service_provider: Optional[str] = None,
            notes: Optional[str] = None,
            created_at: Optional[datetime] = None,
            updated_at: Optional[datetime] = None,
    ):
        self.vehicle_id = vehicle_id
        self.service_id = service_id
        self.service_type = service_type
        self.service_date = service_date
        self.mileage = mileage or 0
        self.description = description
        self.cost = cost
        self.service_provider = service_provider
        self.notes = notes
        self.created_at = created_at
        self.updated_at = updated_at

    def __repr__(self) -> str:
        return (
            f"ServiceRecord({self.vehicle_id!r}, {self.service_id!r}, "
            f"{self.service_type!r}, {self.service_date.isoformat()!r})"
        )
