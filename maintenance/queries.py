"""Caller-facing prediction query."""

from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from dateutil import tz

from .loader import YamlStore, format_timestamp
from .predictor import aggregate
from .service_rule import DEFAULT_RULES, ServiceRule


def vehicle_predictions(
    store: YamlStore,
    owner_id: str,
    vehicle_id: str,
    now: Optional[datetime] = None,
    rules: Sequence[ServiceRule] = DEFAULT_RULES,
) -> Dict[str, Any]:
    """
    Predictions for one of the owner's vehicles, in wire format.

    Raises VehicleNotFound if the vehicle does not exist or belongs to
    someone else. The clock is read once and shared by every prediction.
    """
    now = now or datetime.now(tz.UTC)
    vehicle = store.get_vehicle(owner_id, vehicle_id)
    records = store.query_services(vehicle_id)
    predictions = aggregate(vehicle, records, now, rules)
    return {
        "vehicleId": vehicle_id,
        "predictions": [p.to_dict() for p in predictions],
        "generatedAt": format_timestamp(now),
    }
