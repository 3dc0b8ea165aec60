"""Service reminders for vehicles with maintenance due soon."""

import logging
from dataclasses import dataclass
from datetime import datetime
from itertools import groupby
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from .loader import YamlStore
from .prediction import Prediction
from .predictor import aggregate
from .service_rule import DEFAULT_RULES, ServiceRule
from .vehicle import Vehicle

logger = logging.getLogger(__name__)


@dataclass
class Reminder:
    """A message summarizing the due services of one vehicle."""

    owner_id: str
    vehicle_id: str
    subject: str
    body: str


# Delivers a reminder; raising marks the delivery as failed
Channel = Callable[[Reminder], None]


def due_predictions(predictions: Iterable[Prediction]) -> List[Prediction]:
    """Predictions due within the reminder window, overdue included."""
    return [p for p in predictions if p.is_due]


def format_due(prediction: Prediction) -> str:
    if prediction.is_overdue:
        return "OVERDUE"
    return f"Due in {prediction.days_until} days"


def build_reminder(
    vehicle: Vehicle, predictions: Iterable[Prediction]
) -> Optional[Reminder]:
    """Compose the reminder for a vehicle, or None if nothing is due."""
    due = due_predictions(predictions)
    if not due:
        return None

    title = " ".join(str(p) for p in (vehicle.make, vehicle.model) if p)
    lines = [f"- {p.service_name}: {format_due(p)}" for p in due]
    body = (
        "Hello,\n\n"
        f"Your {vehicle.name} has the following services due:\n\n"
        + "\n".join(lines)
        + "\n\nPlease schedule these services soon.\n"
    )
    return Reminder(
        owner_id=vehicle.owner_id,
        vehicle_id=vehicle.vehicle_id,
        subject=f"Service Reminder: {title or vehicle.vehicle_id}",
        body=body,
    )


def send_reminder(
    vehicle: Vehicle,
    predictions: Iterable[Prediction],
    channel: Optional[Channel],
) -> Optional[Reminder]:
    """
    Send one reminder for a vehicle if any service is due.

    Returns the reminder that was delivered, or None when nothing was sent
    (no channel configured, nothing due, or delivery failed).
    """
    if channel is None:
        logger.info("No reminder channel configured, skipping %s", vehicle.vehicle_id)
        return None

    reminder = build_reminder(vehicle, predictions)
    if reminder is None:
        return None

    try:
        channel(reminder)
    except Exception:
        logger.exception("Error sending reminder for vehicle %s", vehicle.vehicle_id)
        return None

    logger.info("Reminder sent to %s for vehicle %s", vehicle.owner_id, vehicle.vehicle_id)
    return reminder


def run_reminder_scan(
    store: YamlStore,
    now: datetime,
    channel: Optional[Channel],
    rules: Sequence[ServiceRule] = DEFAULT_RULES,
) -> Dict[str, int]:
    """Check every stored vehicle and send reminders for due services."""
    vehicles = store.list_vehicles()
    logger.info("Found %d vehicles", len(vehicles))

    sent = 0
    by_owner = groupby(
        sorted(vehicles, key=lambda v: v.owner_id or ""), key=lambda v: v.owner_id
    )
    for owner_id, owner_vehicles in by_owner:
        for vehicle in owner_vehicles:
            records = store.query_services(vehicle.vehicle_id)
            predictions = aggregate(vehicle, records, now, rules)
            due = due_predictions(predictions)
            if due:
                logger.info(
                    "Owner %s has %d services due for vehicle %s",
                    owner_id,
                    len(due),
                    vehicle.vehicle_id,
                )
            if send_reminder(vehicle, due, channel) is not None:
                sent += 1

    return {"vehiclesProcessed": len(vehicles), "remindersSent": sent}
