"""Flask JSON API for vehicle maintenance tracking."""

import logging
import time
from datetime import datetime
from typing import Any, Dict, Optional

from dateutil import tz
from flask import Flask, g, jsonify, request

from maintenance import (
    AccessDenied,
    ServiceNotFound,
    Settings,
    Vehicle,
    VehicleNotFound,
    YamlStore,
    parse_timestamp,
    vehicle_predictions,
)
from maintenance.loader import record_to_dict, vehicle_to_dict

logger = logging.getLogger(__name__)

# Header carrying the authenticated owner, set by the fronting gateway
OWNER_HEADER = "X-Owner-Id"


def _number(body: Dict[str, Any], key: str) -> Optional[float]:
    """Read an optional numeric field from a JSON body."""
    value = body.get(key)
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid {key} value") from None


def _timestamp(body: Dict[str, Any], key: str) -> Optional[datetime]:
    value = body.get(key)
    if not value:
        return None
    try:
        return parse_timestamp(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid {key} value") from None


def _json_body() -> Dict[str, Any]:
    body = request.get_json(silent=True)
    if body is None:
        if request.get_data():
            raise ValueError("Invalid JSON body")
        return {}
    if not isinstance(body, dict):
        raise ValueError("Request body must be a JSON object")
    return body


def create_app(settings: Optional[Settings] = None) -> Flask:
    """Build the API app around a YAML store."""
    settings = settings or Settings.from_env()

    app = Flask(__name__)
    app.secret_key = settings.secret_key
    rules = settings.load_rules()
    store = YamlStore(settings.data_dir, rules)
    app.config["STORE"] = store
    logger.info("Serving vehicles from %s", settings.data_dir)

    @app.before_request
    def load_owner():
        owner_id = request.headers.get(OWNER_HEADER)
        if not owner_id:
            return jsonify({"error": "Unauthorized"}), 401
        g.owner_id = owner_id
        return None

    @app.errorhandler(VehicleNotFound)
    def vehicle_not_found(error):
        return jsonify({"error": "Vehicle not found"}), 404

    @app.errorhandler(ServiceNotFound)
    def service_not_found(error):
        return jsonify({"error": "Service not found"}), 404

    @app.errorhandler(AccessDenied)
    def access_denied(error):
        return jsonify({"error": "Access denied"}), 403

    @app.errorhandler(ValueError)
    def bad_request(error):
        return jsonify({"error": str(error)}), 400

    # Vehicles

    @app.route("/vehicles", methods=["GET"])
    def list_vehicles():
        vehicles = store.list_vehicles(g.owner_id)
        return jsonify({"vehicles": [vehicle_to_dict(v) for v in vehicles]})

    @app.route("/vehicles", methods=["POST"])
    def create_vehicle():
        body = _json_body()
        vehicle_id = body.get("vehicleId") or f"vehicle-{int(time.time() * 1000)}"
        year = body.get("year")
        vehicle = Vehicle(
            vehicle_id=vehicle_id,
            owner_id=g.owner_id,
            make=body.get("make"),
            model=body.get("model"),
            year=int(year) if year else None,
            current_mileage=_number(body, "currentMileage") or 0,
            vin=body.get("vin"),
            nickname=body.get("nickname"),
        )
        store.create_vehicle(vehicle)
        return jsonify(vehicle_to_dict(vehicle)), 201

    @app.route("/vehicles/<vehicle_id>", methods=["GET"])
    def get_vehicle(vehicle_id: str):
        return jsonify(vehicle_to_dict(store.get_vehicle(g.owner_id, vehicle_id)))

    @app.route("/vehicles/<vehicle_id>", methods=["PUT"])
    def update_vehicle(vehicle_id: str):
        body = _json_body()
        year = body.get("year")
        vehicle = store.update_vehicle(
            g.owner_id,
            vehicle_id,
            make=body.get("make"),
            model=body.get("model"),
            year=int(year) if year else None,
            vin=body.get("vin"),
            nickname=body.get("nickname"),
            current_mileage=_number(body, "currentMileage"),
        )
        return jsonify(vehicle_to_dict(vehicle))

    @app.route("/vehicles/<vehicle_id>", methods=["DELETE"])
    def delete_vehicle(vehicle_id: str):
        store.delete_vehicle(g.owner_id, vehicle_id)
        return jsonify({"message": "Vehicle deleted successfully"})

    # Predictions

    @app.route("/vehicles/<vehicle_id>/predictions", methods=["GET"])
    def predictions(vehicle_id: str):
        now = datetime.now(tz.UTC)
        return jsonify(vehicle_predictions(store, g.owner_id, vehicle_id, now, rules))

    # Service records

    @app.route("/vehicles/<vehicle_id>/services", methods=["GET"])
    def list_services(vehicle_id: str):
        records = store.list_services(g.owner_id, vehicle_id)
        return jsonify({"services": [record_to_dict(r) for r in records]})

    @app.route("/vehicles/<vehicle_id>/services", methods=["POST"])
    def create_service(vehicle_id: str):
        body = _json_body()
        if not body.get("serviceType"):
            raise ValueError("serviceType is required")
        record = store.add_service(
            g.owner_id,
            vehicle_id,
            body["serviceType"],
            service_date=_timestamp(body, "serviceDate"),
            mileage=_number(body, "mileage") or 0,
            description=body.get("description"),
            cost=_number(body, "cost"),
            service_provider=body.get("serviceProvider"),
            notes=body.get("notes"),
            service_id=body.get("serviceId"),
        )
        return jsonify(record_to_dict(record)), 201

    @app.route("/vehicles/<vehicle_id>/services/<service_id>", methods=["PUT"])
    def update_service(vehicle_id: str, service_id: str):
        body = _json_body()
        record = store.update_service(
            g.owner_id,
            vehicle_id,
            service_id,
            service_type=body.get("serviceType"),
            service_date=_timestamp(body, "serviceDate"),
            mileage=_number(body, "mileage"),
            description=body.get("description"),
            cost=_number(body, "cost"),
            service_provider=body.get("serviceProvider"),
            notes=body.get("notes"),
        )
        return jsonify(record_to_dict(record))

    @app.route("/vehicles/<vehicle_id>/services/<service_id>", methods=["DELETE"])
    def delete_service(vehicle_id: str, service_id: str):
        store.delete_service(g.owner_id, vehicle_id, service_id)
        return jsonify({"message": "Service deleted successfully"})

    return app


if __name__ == "__main__":
    # Using 5001 to avoid conflict with macOS AirPlay Receiver on 5000
    create_app().run(debug=True, host="0.0.0.0", port=5001)
