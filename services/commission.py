"""Commission ledger: creation for in-store COD jobs, settlement, ageing."""
from datetime import datetime, timedelta

from flask import current_app

from models import db
from models.commission_collection import CommissionCollection, COLLECTION_METHODS
from models.payment import Payment
from services.errors import CommissionError, CommissionNotFoundError
from utils.money import percentage_of


def commission_rate():
    return current_app.config.get("COMMISSION_RATE")


def compute_commission(total_amount):
    return percentage_of(total_amount, commission_rate())


def find_payment(booking_id: str):
    return Payment.query.filter_by(booking_id=booking_id).first()


def commission_for(booking, payment=None):
    # stored commission wins; records created before commission was computed hold 0
    if payment is not None and payment.commission_amount:
        return payment.commission_amount
    return compute_commission(booking.total_amount)


def create_commission_entry(booking, amount, collection_method=None, now=None) -> CommissionCollection:
    now = now or datetime.utcnow()
    due_days = current_app.config.get("COMMISSION_DUE_DAYS", 7)
    entry = CommissionCollection(
        booking_id=booking.id,
        provider_id=booking.provider_id,
        commission_amount=amount,
        collection_method=collection_method or current_app.config.get("DEFAULT_COLLECTION_METHOD", "upi"),
        status="pending",
        due_date=now + timedelta(days=due_days),
        created_at=now,
        updated_at=now,
    )
    db.session.add(entry)
    db.session.commit()
    current_app.logger.info(
        "commission %s created for booking %s (%s)", entry.id, booking.id, entry.commission_amount
    )
    return entry


def start_commission_tracking(payment: Payment):
    payment.is_commission_settled = False
    payment.updated_at = datetime.utcnow()
    db.session.commit()


def collect_cod_commission(booking, provider_id: str, collection_method: str = None) -> CommissionCollection:
    """Open a ledger entry by hand for a COD booking that has none yet."""
    method = collection_method or current_app.config.get("DEFAULT_COLLECTION_METHOD", "upi")
    if method not in COLLECTION_METHODS:
        raise CommissionError("Invalid collection_method value")

    if str(provider_id) != booking.provider_id:
        raise CommissionError("provider_id does not match booking")

    payment = find_payment(booking.id)
    if not payment:
        raise CommissionNotFoundError("Payment record not found")
    if not payment.is_cod:
        raise CommissionError("Not a COD payment")
    if payment.is_commission_settled:
        raise CommissionError("Commission already settled")
    if CommissionCollection.query.filter_by(booking_id=booking.id).first():
        raise CommissionError("Commission collection already exists for this booking")

    entry = create_commission_entry(booking, commission_for(booking, payment), collection_method=method)
    start_commission_tracking(payment)
    return entry


def settle_commission(collection_id: str, now=None):
    """Mark a ledger entry collected, then flag the payment record settled.

    Returns (entry, changed). Settling an already completed entry changes nothing.
    The payment cascade is best-effort: the entry stays completed if it fails.
    """
    entry = db.session.get(CommissionCollection, collection_id)
    if not entry:
        raise CommissionNotFoundError("Commission record not found")
    if entry.status == "completed":
        return entry, False

    now = now or datetime.utcnow()
    entry.status = "completed"
    entry.collected_at = now
    entry.updated_at = now
    db.session.commit()

    try:
        payment = find_payment(entry.booking_id)
        if payment:
            payment.is_commission_settled = True
            payment.updated_at = now
            db.session.commit()
    except Exception:
        db.session.rollback()
        current_app.logger.exception("settling payment record for booking %s failed", entry.booking_id)

    return entry, True


def mark_overdue(now=None) -> int:
    now = now or datetime.utcnow()
    rows = (
        CommissionCollection.query
        .filter(CommissionCollection.status == "pending", CommissionCollection.due_date < now)
        .all()
    )
    for entry in rows:
        entry.status = "overdue"
        entry.updated_at = now
    db.session.commit()
    return len(rows)


def ledger_stats(entries) -> dict:
    stats = {"total_amount": 0.0}
    for status in ("pending", "completed", "overdue"):
        subset = [e for e in entries if e.status == status]
        stats[f"total_{status}"] = len(subset)
        stats[f"{status}_amount"] = float(sum(e.commission_amount for e in subset))
    stats["total_amount"] = float(sum(e.commission_amount for e in entries))
    return stats
