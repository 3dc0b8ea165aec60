"""YAML loading and saving utilities for vehicles and service records."""

import logging
import re
import time
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import yaml
from dateutil import tz
from dateutil.parser import isoparse

from .errors import AccessDenied, ServiceNotFound, VehicleNotFound
from .service_record import ServiceRecord
from .service_rule import DEFAULT_RULES, ServiceRule, rules_by_type
from .vehicle import Vehicle

logger = logging.getLogger(__name__)

_VEHICLE_ID_RE = re.compile(r"^[A-Za-z0-9_-][A-Za-z0-9_.-]*$")

# Service fields callers may change, mapped to their YAML keys
_SERVICE_FIELDS = {
    "service_type": "serviceType",
    "service_date": "serviceDate",
    "mileage": "mileage",
    "description": "description",
    "cost": "cost",
    "service_provider": "serviceProvider",
    "notes": "notes",
}

_VEHICLE_FIELDS = {
    "make": "make",
    "model": "model",
    "year": "year",
    "vin": "vin",
    "nickname": "nickname",
    "current_mileage": "currentMileage",
}

# Keys the vehicle file schema restricts to strings
_TEXT_KEYS = ("make", "model", "vin", "nickname", "description", "serviceProvider", "notes")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_entry(dct: Dict[str, Any], kind: str) -> None:
    """Reject values that would make a vehicle file fail schema validation."""
    for key in _TEXT_KEYS:
        if key in dct and not isinstance(dct[key], str):
            raise ValueError(f"{kind} {key} must be a string")
    for key in ("currentMileage", "mileage"):
        if key in dct and (not _is_number(dct[key]) or dct[key] < 0):
            raise ValueError(f"{kind} {key} must be a non-negative number")
    if "cost" in dct and not _is_number(dct["cost"]):
        raise ValueError(f"{kind} cost must be a number")
    if "year" in dct and (not isinstance(dct["year"], int) or isinstance(dct["year"], bool)):
        raise ValueError(f"{kind} year must be an integer")


def parse_timestamp(value: Union[str, date, datetime]) -> datetime:
    """
    Parse an ISO-8601 timestamp into an aware datetime.

    Naive values and bare dates are taken as UTC.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        parsed = isoparse(str(value))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz.UTC)
    return parsed


def format_timestamp(value: datetime) -> str:
    """Format a timestamp for storage and the wire (ISO-8601)."""
    return value.isoformat()


def _optional_timestamp(value: Any) -> Optional[datetime]:
    return parse_timestamp(value) if value else None


def _dump(data: Dict[str, Any], filename: Union[str, Path]) -> None:
    with open(filename, "w") as fp:
        yaml.dump(
            data,
            fp,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
            width=120,
        )


def _read(filename: Union[str, Path]) -> Dict[str, Any]:
    with open(filename, "r") as fp:
        return yaml.load(fp, Loader=yaml.SafeLoader) or {}


def _parse_vehicle(dct: Dict[str, Any], fallback_id: str) -> Vehicle:
    return Vehicle(
        dct.get("vehicleId") or fallback_id,
        dct.get("ownerId"),
        dct.get("make"),
        dct.get("model"),
        dct.get("year"),
        dct.get("currentMileage") or 0,
        dct.get("vin"),
        dct.get("nickname"),
        _optional_timestamp(dct.get("createdAt")),
        _optional_timestamp(dct.get("updatedAt")),
    )


def _parse_record(dct: Dict[str, Any], vehicle_id: str) -> ServiceRecord:
    return ServiceRecord(
        dct.get("vehicleId") or vehicle_id,
        str(dct["serviceId"]),
        dct["serviceType"],
        parse_timestamp(dct["serviceDate"]),
        dct.get("mileage") or 0,
        dct.get("description"),
        dct.get("cost"),
        dct.get("serviceProvider"),
        dct.get("notes"),
        _optional_timestamp(dct.get("createdAt")),
        _optional_timestamp(dct.get("updatedAt")),
    )


def vehicle_to_dict(vehicle: Vehicle) -> Dict[str, Any]:
    """Serialize a Vehicle to the YAML dict format (camelCase keys)."""
    d: Dict[str, Any] = {"vehicleId": vehicle.vehicle_id, "ownerId": vehicle.owner_id}
    if vehicle.make is not None:
        d["make"] = vehicle.make
    if vehicle.model is not None:
        d["model"] = vehicle.model
    if vehicle.year is not None:
        d["year"] = vehicle.year
    if vehicle.vin is not None:
        d["vin"] = vehicle.vin
    if vehicle.nickname is not None:
        d["nickname"] = vehicle.nickname
    d["currentMileage"] = vehicle.current_mileage
    if vehicle.created_at is not None:
        d["createdAt"] = format_timestamp(vehicle.created_at)
    if vehicle.updated_at is not None:
        d["updatedAt"] = format_timestamp(vehicle.updated_at)
    return d


def record_to_dict(record: ServiceRecord) -> Dict[str, Any]:
    """Serialize a ServiceRecord to the camelCase format used on disk and wire."""
    d: Dict[str, Any] = {
        "vehicleId": record.vehicle_id,
        "serviceId": record.service_id,
        "serviceType": record.service_type,
        "serviceDate": format_timestamp(record.service_date),
        "mileage": record.mileage,
    }
    if record.description is not None:
        d["description"] = record.description
    if record.cost is not None:
        d["cost"] = record.cost
    if record.service_provider is not None:
        d["serviceProvider"] = record.service_provider
    if record.notes is not None:
        d["notes"] = record.notes
    if record.created_at is not None:
        d["createdAt"] = format_timestamp(record.created_at)
    if record.updated_at is not None:
        d["updatedAt"] = format_timestamp(record.updated_at)
    return d


def load_rules(filename: Union[str, Path]) -> Tuple[ServiceRule, ...]:
    """
    Load an alternate service rule table from a YAML file.

    Expects a top-level ``rules`` list of serviceType, mileageInterval,
    timeIntervalDays and displayName entries. Raises ValueError on bad data.
    """
    data = _read(filename)
    entries = data.get("rules")
    if not entries:
        raise ValueError(f"No rules defined in {filename}")

    rules = []
    for entry in entries:
        try:
            rule = ServiceRule(
                str(entry["serviceType"]),
                float(entry.get("mileageInterval") or 0),
                int(entry["timeIntervalDays"]),
                entry.get("displayName") or str(entry["serviceType"]),
            )
        except (KeyError, TypeError) as e:
            raise ValueError(f"Invalid rule {entry!r}: {e}") from e
        if rule.mileage_interval < 0:
            raise ValueError(f"Rule {rule.service_type}: mileageInterval must be >= 0")
        if rule.time_interval_days <= 0:
            raise ValueError(f"Rule {rule.service_type}: timeIntervalDays must be > 0")
        rules.append(rule)

    if len(rules_by_type(rules)) != len(rules):
        raise ValueError(f"Duplicate service types in {filename}")
    return tuple(rules)


class YamlStore:
    """
    Vehicles and their service records, one YAML file per vehicle.

    File layout (``<data_dir>/<vehicle_id>.yaml``)::

        vehicle: {vehicleId, ownerId, make, model, year, vin, currentMileage}
        services: [{serviceId, serviceType, serviceDate, mileage, ...}]
    """

    def __init__(
        self,
        data_dir: Union[str, Path],
        rules: Sequence[ServiceRule] = DEFAULT_RULES,
    ):
        self.data_dir = Path(data_dir)
        self.rules = rules

    def path_for(self, vehicle_id: str) -> Path:
        """Get full path for a vehicle ID."""
        if not vehicle_id or not _VEHICLE_ID_RE.match(vehicle_id):
            raise ValueError(f"Invalid vehicle ID '{vehicle_id}'")
        return self.data_dir / f"{vehicle_id}.yaml"

    def _load(self, vehicle_id: str) -> Dict[str, Any]:
        path = self.path_for(vehicle_id)
        if not path.exists():
            raise VehicleNotFound(vehicle_id)
        data = _read(path)
        if not isinstance(data, dict):
            raise ValueError(f"Malformed vehicle file {path}")
        if data.get("vehicle") is None:
            data["vehicle"] = {}
        if data.get("services") is None:
            data["services"] = []
        return data

    def _save(self, vehicle_id: str, data: Dict[str, Any]) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        _dump(data, self.path_for(vehicle_id))

    def _load_owned(self, owner_id: str, vehicle_id: str) -> Dict[str, Any]:
        """Load raw data for a vehicle the owner may modify."""
        try:
            data = self._load(vehicle_id)
        except VehicleNotFound:
            raise AccessDenied(vehicle_id) from None
        if data["vehicle"].get("ownerId") != owner_id:
            raise AccessDenied(vehicle_id)
        return data

    def _load_vehicle_data(self, owner_id: str, vehicle_id: str) -> Dict[str, Any]:
        data = self._load(vehicle_id)
        if data["vehicle"].get("ownerId") != owner_id:
            raise VehicleNotFound(vehicle_id)
        return data

    def _check_service_type(self, service_type: Optional[str]) -> None:
        if service_type not in rules_by_type(self.rules):
            raise ValueError(f"Unknown service type '{service_type}'")

    # Vehicles

    def list_vehicles(self, owner_id: Optional[str] = None) -> List[Vehicle]:
        """All stored vehicles, optionally limited to one owner."""
        if not self.data_dir.exists():
            return []
        vehicles = []
        for path in sorted(self.data_dir.glob("*.yaml")):
            try:
                data = _read(path)
            except yaml.YAMLError as e:
                logger.warning("Skipping %s: %s", path.name, e)
                continue
            if not isinstance(data, dict) or not isinstance(data.get("vehicle") or {}, dict):
                logger.warning("Skipping %s: not a vehicle file", path.name)
                continue
            vehicle = _parse_vehicle(data.get("vehicle") or {}, path.stem)
            if owner_id is None or vehicle.owner_id == owner_id:
                vehicles.append(vehicle)
        return vehicles

    def get_vehicle(self, owner_id: str, vehicle_id: str) -> Vehicle:
        """Fetch a vehicle; VehicleNotFound unless it exists and belongs to owner."""
        data = self._load(vehicle_id)
        vehicle = _parse_vehicle(data["vehicle"], vehicle_id)
        if vehicle.owner_id != owner_id:
            raise VehicleNotFound(vehicle_id)
        return vehicle

    def create_vehicle(self, vehicle: Vehicle, now: Optional[datetime] = None) -> Vehicle:
        """Create a new vehicle file with an empty service history."""
        path = self.path_for(vehicle.vehicle_id)
        if path.exists():
            raise ValueError(f"Vehicle '{vehicle.vehicle_id}' already exists")
        now = now or datetime.now(tz.UTC)
        vehicle.created_at = vehicle.created_at or now
        vehicle.updated_at = now
        entry = vehicle_to_dict(vehicle)
        _check_entry(entry, "Vehicle")
        self._save(vehicle.vehicle_id, {"vehicle": entry, "services": []})
        logger.info("Created vehicle %s for %s", vehicle.vehicle_id, vehicle.owner_id)
        return vehicle

    def update_vehicle(
        self, owner_id: str, vehicle_id: str, now: Optional[datetime] = None, **fields: Any
    ) -> Vehicle:
        """
        Update descriptive fields and/or current_mileage of a vehicle.

        Only fields that are provided (non-None) change.
        """
        data = self._load_vehicle_data(owner_id, vehicle_id)
        for name, value in fields.items():
            if name not in _VEHICLE_FIELDS:
                raise ValueError(f"Unknown vehicle field '{name}'")
            if value is not None:
                data["vehicle"][_VEHICLE_FIELDS[name]] = value
        _check_entry(data["vehicle"], "Vehicle")
        data["vehicle"]["updatedAt"] = format_timestamp(now or datetime.now(tz.UTC))
        self._save(vehicle_id, data)
        return _parse_vehicle(data["vehicle"], vehicle_id)

    def delete_vehicle(self, owner_id: str, vehicle_id: str) -> None:
        """Remove a vehicle file and its service history."""
        self._load_vehicle_data(owner_id, vehicle_id)
        self.path_for(vehicle_id).unlink()
        logger.info("Deleted vehicle %s", vehicle_id)

    # Service records

    def query_services(self, vehicle_id: str) -> List[ServiceRecord]:
        """All service records for a vehicle, in file order."""
        try:
            data = self._load(vehicle_id)
        except VehicleNotFound:
            return []
        return [_parse_record(s, vehicle_id) for s in data["services"]]

    def list_services(self, owner_id: str, vehicle_id: str) -> List[ServiceRecord]:
        """Service records of an owned vehicle, newest first."""
        self._load_owned(owner_id, vehicle_id)
        records = self.query_services(vehicle_id)
        return sorted(records, key=lambda r: r.service_date, reverse=True)

    def add_service(
        self,
        owner_id: str,
        vehicle_id: str,
        service_type: str,
        service_date: Optional[datetime] = None,
        mileage: float = 0,
        description: Optional[str] = None,
        cost: Optional[float] = None,
        service_provider: Optional[str] = None,
        notes: Optional[str] = None,
        service_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ServiceRecord:
        """Append a service record to a vehicle's history."""
        data = self._load_owned(owner_id, vehicle_id)
        self._check_service_type(service_type)

        now = now or datetime.now(tz.UTC)
        if not service_id:
            service_id = f"service-{int(time.time() * 1000)}"
        record = ServiceRecord(
            vehicle_id=vehicle_id,
            service_id=str(service_id),
            service_type=service_type,
            service_date=service_date or now,
            mileage=mileage,
            description=description,
            cost=cost,
            service_provider=service_provider,
            notes=notes,
            created_at=now,
        )
        if any(str(s.get("serviceId")) == record.service_id for s in data["services"]):
            raise ValueError(f"Service '{record.service_id}' already exists")

        entry = record_to_dict(record)
        _check_entry(entry, "Service")
        data["services"].append(entry)
        self._save(vehicle_id, data)
        logger.info("Logged %s for vehicle %s", service_type, vehicle_id)
        return record

    def _find_service(self, data: Dict[str, Any], vehicle_id: str, service_id: str) -> int:
        for index, entry in enumerate(data["services"]):
            if str(entry.get("serviceId")) == service_id:
                return index
        raise ServiceNotFound(vehicle_id, service_id)

    def update_service(
        self,
        owner_id: str,
        vehicle_id: str,
        service_id: str,
        now: Optional[datetime] = None,
        **fields: Any,
    ) -> ServiceRecord:
        """Replace the given fields of a service record."""
        data = self._load_owned(owner_id, vehicle_id)
        index = self._find_service(data, vehicle_id, service_id)

        changes = {k: v for k, v in fields.items() if v is not None}
        if not changes:
            raise ValueError("No fields to update")

        entry = data["services"][index]
        for name, value in changes.items():
            if name not in _SERVICE_FIELDS:
                raise ValueError(f"Unknown service field '{name}'")
            if name == "service_type":
                self._check_service_type(value)
            if name == "service_date":
                value = format_timestamp(parse_timestamp(value))
            entry[_SERVICE_FIELDS[name]] = value

        _check_entry(entry, "Service")
        entry["updatedAt"] = format_timestamp(now or datetime.now(tz.UTC))
        self._save(vehicle_id, data)
        return _parse_record(entry, vehicle_id)

    def delete_service(self, owner_id: str, vehicle_id: str, service_id: str) -> None:
        """Remove a service record from a vehicle's history."""
        data = self._load_owned(owner_id, vehicle_id)
        index = self._find_service(data, vehicle_id, service_id)
        del data["services"][index]
        self._save(vehicle_id, data)
        logger.info("Deleted service %s from vehicle %s", service_id, vehicle_id)
