from flask import Blueprint, request, jsonify

from services import booking_lifecycle
from services.errors import BookingError
from services.side_effects import summarize
from utils.audit import log_event
from utils.serialize import booking_to_dict, booking_summary

bookings_bp = Blueprint("bookings", __name__, url_prefix="/api/bookings")

MAX_PAGE_SIZE = 200


def _json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else None


def _page_args():
    try:
        limit = int(request.args.get("limit", MAX_PAGE_SIZE))
        offset = int(request.args.get("offset", 0))
    except ValueError:
        return None
    if limit < 1 or limit > MAX_PAGE_SIZE or offset < 0:
        return None
    return limit, offset


# ---------- CUSTOMERS: create booking ----------
@bookings_bp.post("")
def create_booking():
    data = _json_body()
    if data is None:
        return jsonify(error="Request body must be a JSON object"), 400

    try:
        outcome = booking_lifecycle.create_booking(data)
    except BookingError as exc:
        return jsonify(error=exc.message), exc.status_code

    booking = outcome.booking
    log_event(
        "BOOKING_CREATE",
        actor=booking.customer_id,
        entity="booking",
        entity_id=booking.id,
        metadata={"provider_id": booking.provider_id, "side_effects": summarize(outcome.side_effects)},
    )
    return jsonify(success=True, booking=booking_to_dict(booking)), 201


# ---------- view one booking or the summary list ----------
@bookings_bp.get("")
def get_bookings():
    booking_id = request.args.get("id")

    if not booking_id:
        page = _page_args()
        if page is None:
            return jsonify(error=f"limit must be 1-{MAX_PAGE_SIZE} and offset must be 0 or more"), 400
        limit, offset = page
        rows, total = booking_lifecycle.list_bookings(status=request.args.get("status"), limit=limit, offset=offset)
        return jsonify(
            success=True,
            bookings=[booking_summary(b) for b in rows],
            total=total,
            limit=limit,
            offset=offset,
        ), 200

    try:
        booking = booking_lifecycle.get_booking(booking_id)
    except BookingError as exc:
        return jsonify(error=exc.message), exc.status_code
    return jsonify(booking=booking_to_dict(booking)), 200


# ---------- CUSTOMERS/PROVIDERS: status and field updates ----------
@bookings_bp.route("", methods=["PUT", "PATCH"])
def update_booking():
    booking_id = request.args.get("id")
    if not booking_id:
        return jsonify(error="Booking ID is required"), 400

    data = _json_body()
    if data is None:
        return jsonify(error="Request body must be a JSON object"), 400

    try:
        outcome = booking_lifecycle.update_booking(booking_id, data)
    except BookingError as exc:
        return jsonify(error=exc.message), exc.status_code

    booking = outcome.booking
    log_event(
        "BOOKING_UPDATE",
        entity="booking",
        entity_id=booking.id,
        metadata={
            "previous_status": outcome.previous_status,
            "requested_status": outcome.requested_status,
            "status": booking.status,
            "branch": outcome.branch,
            "side_effects": summarize(outcome.side_effects),
        },
    )
    return jsonify(success=True, booking=booking_to_dict(booking)), 200
