from flask import Blueprint, jsonify, request

from models.booking import Booking
from models.commission_collection import CommissionCollection, COMMISSION_STATUSES
from services import booking_lifecycle, commission
from services.errors import BookingError
from services.side_effects import summarize
from security.rbac import require_admin
from utils.audit import log_event
from utils.serialize import booking_to_dict, commission_to_dict

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")


# ---------- ADMIN: commission ledger ----------
@admin_bp.get("/commission-collections")
@require_admin
def list_commission_collections():
    status = (request.args.get("status") or "").strip().lower()
    if status and status not in COMMISSION_STATUSES:
        return jsonify(error="Invalid status filter"), 400

    q = CommissionCollection.query
    if status:
        q = q.filter(CommissionCollection.status == status)
    rows = q.order_by(CommissionCollection.created_at.desc()).limit(200).all()

    # stats always cover the whole ledger, not the filtered page
    stats = commission.ledger_stats(CommissionCollection.query.all())
    return jsonify(collections=[commission_to_dict(c) for c in rows], stats=stats), 200


@admin_bp.post("/commission-collections/<collection_id>/confirm")
@require_admin
def confirm_commission_collection(collection_id: str):
    try:
        entry, changed = commission.settle_commission(collection_id)
    except BookingError as exc:
        return jsonify(error=exc.message), exc.status_code

    if changed:
        log_event("COMMISSION_SETTLE", actor="admin", entity="commission_collection", entity_id=entry.id,
                  metadata={"booking_id": entry.booking_id, "source": "admin"})
        message = "Commission collection confirmed"
    else:
        message = "Commission already collected"
    return jsonify(message=message, collection=commission_to_dict(entry)), 200


# ---------- ADMIN: doorstep cash collection ----------
@admin_bp.get("/cash-collections")
@require_admin
def list_cash_collections():
    rows = (
        Booking.query
        .filter(Booking.status == "pending_cod_collection")
        .order_by(Booking.updated_at.asc())
        .limit(200)
        .all()
    )
    return jsonify([booking_to_dict(b) for b in rows]), 200


@admin_bp.post("/cash-collections/<booking_id>/confirm")
@require_admin
def confirm_cash_collection(booking_id: str):
    try:
        outcome = booking_lifecycle.confirm_cash_collection(booking_id)
    except BookingError as exc:
        return jsonify(error=exc.message), exc.status_code

    booking = outcome.booking
    log_event("BOOKING_CASH_COLLECTED", actor="admin", entity="booking", entity_id=booking.id,
              metadata={"side_effects": summarize(outcome.side_effects)})
    return jsonify(
        message="Cash collection confirmed and booking marked as completed",
        booking=booking_to_dict(booking),
    ), 200
