"""Errors raised by the storage and query layers."""


class MaintenanceError(Exception):
    """Base class for maintenance tracker errors."""


class VehicleNotFound(MaintenanceError):
    """Vehicle does not exist or is not owned by the caller."""

    def __init__(self, vehicle_id: str):
        super().__init__(f"Vehicle '{vehicle_id}' not found")
        self.vehicle_id = vehicle_id


class ServiceNotFound(MaintenanceError):
    """Service record does not exist for the vehicle."""

    def __init__(self, vehicle_id: str, service_id: str):
        super().__init__(f"Service '{service_id}' not found for vehicle '{vehicle_id}'")
        self.vehicle_id = vehicle_id
        self.service_id = service_id


class AccessDenied(MaintenanceError):
    """Caller does not own the vehicle."""

    def __init__(self, vehicle_id: str):
        super().__init__(f"Access denied to vehicle '{vehicle_id}'")
        self.vehicle_id = vehicle_id
