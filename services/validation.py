import json
from datetime import datetime, timezone

from models.booking import (
    BOOKING_STATUSES,
    PAYMENT_STATUSES,
    LOCATION_TYPES,
    SERVICE_MODES,
    PART_QUALITIES,
)
from services.errors import BookingValidationError
from utils.money import to_decimal

REQUIRED_FIELDS = ("customer_id", "provider_id", "device_id", "service_id", "appointment_time", "total_amount")

SERVICE_MODE_LOCATIONS = {"doorstep": "doorstep", "instore": "provider_location"}

# later statuses are reached through updates so completion branching runs
CREATE_STATUSES = ("pending", "confirmed")

# text columns a client may set on create
OPTIONAL_TEXT_FIELDS = (
    "issue_description",
    "customer_address",
    "customer_email",
    "provider_email",
    "review",
    "cancellation_reason",
)

# fields a client may change after creation; everything else is ignored
UPDATABLE_TEXT_FIELDS = ("issue_description", "customer_address", "review", "cancellation_reason")


def _supplied(data: dict, key: str) -> bool:
    return key in data and data[key] is not None


def parse_appointment_time(value) -> datetime:
    if not isinstance(value, str):
        raise BookingValidationError(
            "Invalid appointment_time. Use ISO format e.g. 2026-01-20T18:00:00", field="appointment_time"
        )
    raw = value.strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(raw)
    except ValueError:
        raise BookingValidationError(
            "Invalid appointment_time. Use ISO format e.g. 2026-01-20T18:00:00", field="appointment_time"
        )
    # stored as naive UTC like every other timestamp
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def validate_status(value) -> str:
    if value not in BOOKING_STATUSES:
        raise BookingValidationError("Invalid status value", field="status")
    return value


def _validate_create_status(value) -> str:
    if validate_status(value) not in CREATE_STATUSES:
        raise BookingValidationError("New bookings must start as pending or confirmed", field="status")
    return value


def validate_payment_status(value) -> str:
    if value not in PAYMENT_STATUSES:
        raise BookingValidationError("Invalid payment_status value", field="payment_status")
    return value


def validate_rating(value) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not 0 <= value <= 5:
        raise BookingValidationError("Rating must be a number between 0 and 5", field="rating")
    return float(value)


def validate_part_quality(value) -> str:
    if isinstance(value, str):
        for allowed in PART_QUALITIES:
            if allowed.lower() == value.strip().lower():
                return allowed
    raise BookingValidationError("Invalid part_quality value", field="part_quality")


def validate_selected_issues(value) -> list:
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            value = None

    if not isinstance(value, list):
        raise BookingValidationError("selected_issues must be a list of issues with a name", field="selected_issues")

    issues = []
    for item in value:
        if isinstance(item, str) and item.strip():
            issues.append({"name": item.strip()})
        elif isinstance(item, dict) and isinstance(item.get("name"), str) and item["name"].strip():
            issues.append(dict(item, name=item["name"].strip()))
        else:
            raise BookingValidationError(
                "selected_issues must be a list of issues with a name", field="selected_issues"
            )
    return issues


def _validate_text(data: dict, key: str):
    value = data[key]
    if not isinstance(value, str):
        raise BookingValidationError(f"{key} must be a string", field=key)
    return value.strip()


def validate_create(data: dict) -> dict:
    """Check a create payload and return the column values for a new Booking.

    Defaults for status and payment_status are applied only when the field is
    absent; a supplied value is validated and kept. Status may only be
    pending or confirmed.
    """
    for field in REQUIRED_FIELDS:
        if not data.get(field):
            raise BookingValidationError(f"Missing required field: {field}", field=field)

    try:
        total_amount = to_decimal(data["total_amount"])
    except ValueError:
        raise BookingValidationError("total_amount must be a number", field="total_amount")
    if total_amount <= 0:
        raise BookingValidationError("total_amount must be greater than 0", field="total_amount")

    values = {
        "customer_id": str(data["customer_id"]),
        "provider_id": str(data["provider_id"]),
        "device_id": str(data["device_id"]),
        "service_id": str(data["service_id"]),
        "appointment_time": parse_appointment_time(data["appointment_time"]),
        "total_amount": total_amount,
        "status": _validate_create_status(data["status"]) if _supplied(data, "status") else "pending",
        "payment_status": (
            validate_payment_status(data["payment_status"]) if _supplied(data, "payment_status") else "pending"
        ),
        "rating": validate_rating(data["rating"]) if _supplied(data, "rating") else 0,
        "review": "",
    }

    if _supplied(data, "part_quality") and data["part_quality"] != "":
        values["part_quality"] = validate_part_quality(data["part_quality"])

    if _supplied(data, "selected_issues"):
        values["selected_issues"] = validate_selected_issues(data["selected_issues"])

    for key in OPTIONAL_TEXT_FIELDS:
        if _supplied(data, key):
            values[key] = _validate_text(data, key)

    location_type = data.get("location_type")
    if location_type is not None and location_type not in LOCATION_TYPES:
        raise BookingValidationError("Invalid location_type value", field="location_type")

    service_mode = data.get("serviceMode")
    if service_mode is not None:
        if service_mode not in SERVICE_MODES:
            raise BookingValidationError("Invalid serviceMode value", field="serviceMode")
        derived = SERVICE_MODE_LOCATIONS[service_mode]
        if location_type is None:
            location_type = derived
        elif location_type != derived:
            raise BookingValidationError("serviceMode does not match location_type", field="serviceMode")
        values["service_mode"] = service_mode

    values["location_type"] = location_type
    if location_type == "doorstep" and not values.get("customer_address"):
        raise BookingValidationError(
            "customer_address is required for doorstep bookings", field="customer_address"
        )

    return values


def validate_update(data: dict) -> dict:
    """Check a partial update payload; unknown or immutable keys are dropped."""
    changes = {}

    if _supplied(data, "status"):
        changes["status"] = validate_status(data["status"])

    if _supplied(data, "payment_status"):
        changes["payment_status"] = validate_payment_status(data["payment_status"])

    if "rating" in data:
        changes["rating"] = validate_rating(data["rating"])

    if _supplied(data, "part_quality"):
        changes["part_quality"] = validate_part_quality(data["part_quality"])

    if _supplied(data, "selected_issues"):
        changes["selected_issues"] = validate_selected_issues(data["selected_issues"])

    if _supplied(data, "appointment_time"):
        changes["appointment_time"] = parse_appointment_time(data["appointment_time"])

    for key in UPDATABLE_TEXT_FIELDS:
        if _supplied(data, key):
            changes[key] = _validate_text(data, key)

    return changes
