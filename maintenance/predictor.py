"""Next-service prediction for a vehicle's service history."""

import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

from .calculations import (
    add_days,
    calc_days_until,
    calc_mileage_due_date,
    calc_time_due_date,
    earliest,
)
from .prediction import Prediction
from .service_record import ServiceRecord
from .service_rule import DEFAULT_RULES, ServiceRule, get_rule, rules_by_type
from .vehicle import Vehicle

logger = logging.getLogger(__name__)


def predict(
    last_record: Optional[ServiceRecord],
    vehicle: Vehicle,
    service_type: str,
    now: datetime,
    rules: Sequence[ServiceRule] = DEFAULT_RULES,
) -> Optional[Prediction]:
    """
    Predict when a service type is next due.

    Logic:
    - Unknown service type: None
    - No history: due time_interval_days from now (first service)
    - Has history: earlier of the mileage projection (usage rate since the
      last service) and the time projection (last date + interval)
    - Neither projection available: None

    Args:
        last_record: Most recent record of this service type, if any
        now: Evaluation time, shared by every prediction of one request
    """
    rule = get_rule(service_type, rules)
    if rule is None:
        return None

    current_mileage = vehicle.current_mileage

    if last_record is None:
        return Prediction(
            service_type=service_type,
            service_name=rule.display_name,
            next_service_date=add_days(now, rule.time_interval_days),
            days_until=rule.time_interval_days,
            is_overdue=False,
            current_mileage=current_mileage,
            recommended_mileage=current_mileage + rule.mileage_interval,
            recommended_time_interval=rule.time_interval_days,
            is_first_service=True,
        )

    last_date = last_record.service_date
    last_mileage = last_record.mileage

    mileage_due = calc_mileage_due_date(
        last_mileage, current_mileage, last_date, rule.mileage_interval, now
    )
    time_due = calc_time_due_date(last_date, rule.time_interval_days)

    due_date = earliest(mileage_due, time_due)
    if due_date is None:
        return None

    days_until = calc_days_until(due_date, now)

    return Prediction(
        service_type=service_type,
        service_name=rule.display_name,
        next_service_date=due_date,
        days_until=days_until,
        is_overdue=days_until < 0,
        current_mileage=current_mileage,
        recommended_mileage=last_mileage + rule.mileage_interval,
        recommended_time_interval=rule.time_interval_days,
        last_service_date=last_date,
        last_service_mileage=last_mileage,
    )


def latest_by_type(
    records: Iterable[ServiceRecord],
    rules: Sequence[ServiceRule] = DEFAULT_RULES,
) -> Dict[str, ServiceRecord]:
    """
    Get the most recent record for each known service type.

    Records with the same latest date resolve to the one seen last.
    Records of types missing from the rule table are skipped.
    """
    known = rules_by_type(rules)
    latest: Dict[str, ServiceRecord] = {}
    for record in records:
        if record.service_type not in known:
            logger.debug(
                "Ignoring %s: unknown service type %r",
                record.service_id,
                record.service_type,
            )
            continue
        current = latest.get(record.service_type)
        if current is None or record.service_date >= current.service_date:
            latest[record.service_type] = record
    return latest


def sort_predictions(predictions: Iterable[Prediction]) -> List[Prediction]:
    """Overdue first, then soonest due. Ties keep their original order."""
    return sorted(predictions, key=lambda p: (not p.is_overdue, p.days_until))


def aggregate(
    vehicle: Vehicle,
    records: Iterable[ServiceRecord],
    now: datetime,
    rules: Sequence[ServiceRule] = DEFAULT_RULES,
) -> List[Prediction]:
    """Predict every service type in the rule table for a vehicle."""
    latest = latest_by_type(records, rules)
    predictions = []
    for rule in rules:
        prediction = predict(
            latest.get(rule.service_type), vehicle, rule.service_type, now, rules
        )
        if prediction is not None:
            predictions.append(prediction)
    return sort_predictions(predictions)
