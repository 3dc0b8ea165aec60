"""Vehicle class holding the state the predictor needs."""

from datetime import datetime
from typing import Optional


class Vehicle:
    """A registered vehicle: identity, owner and current odometer reading."""

    def __init__(
        self,
        vehicle_id: str,
        owner_id: str,
        make: Optional[str] = None,
        model: Optional[str] = None,
        year: Optional[int] = None,
        current_mileage: float = 0,
        vin: Optional[str] = None,
        nickname: Optional[str] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ):
        self.vehicle_id = vehicle_id
        self.owner_id = owner_id
        self.make = make
        self.model = model
        self.year = year
        self.current_mileage = current_mileage or 0
        self.vin = vin
        self.nickname = nickname
        self.created_at = created_at
        self.updated_at = updated_at

    @property
    def name(self) -> str:
        """Human-readable vehicle name."""
        parts = [str(p) for p in (self.year, self.make, self.model) if p]
        return " ".join(parts) if parts else self.vehicle_id
