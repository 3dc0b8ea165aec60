"""
Vehicle maintenance prediction.

This package tracks vehicle service history and predicts upcoming services:
- ServiceRule: Service interval definitions (DEFAULT_RULES)
- Vehicle: Vehicle identity and current mileage
- ServiceRecord: Maintenance events
- Prediction: When a service type is next due
- predict / aggregate: The prediction engine
- YamlStore: YAML-file storage for vehicles and records
"""

from .status import Status
from .errors import MaintenanceError, VehicleNotFound, ServiceNotFound, AccessDenied
from .service_rule import ServiceRule, DEFAULT_RULES, get_rule, rules_by_type
from .vehicle import Vehicle
from .service_record import ServiceRecord
from .prediction import Prediction, DUE_SOON_DAYS
from .calculations import (
    calc_days_until,
    calc_mileage_due_date,
    calc_time_due_date,
    earliest,
)
from .predictor import predict, aggregate, latest_by_type, sort_predictions
from .loader import YamlStore, load_rules, parse_timestamp, format_timestamp
from .reminders import Reminder, build_reminder, send_reminder, run_reminder_scan
from .queries import vehicle_predictions
from .config import Settings

__all__ = [
    "Status",
    "MaintenanceError",
    "VehicleNotFound",
    "ServiceNotFound",
    "AccessDenied",
    "ServiceRule",
    "DEFAULT_RULES",
    "get_rule",
    "rules_by_type",
    "Vehicle",
    "ServiceRecord",
    "Prediction",
    "DUE_SOON_DAYS",
    "calc_days_until",
    "calc_mileage_due_date",
    "calc_time_due_date",
    "earliest",
    "predict",
    "aggregate",
    "latest_by_type",
    "sort_predictions",
    "YamlStore",
    "load_rules",
    "parse_timestamp",
    "format_timestamp",
    "Reminder",
    "build_reminder",
    "send_reminder",
    "run_reminder_scan",
    "vehicle_predictions",
    "Settings",
]
