"""Booking lifecycle engine.

The only writer of Booking.status. Each request runs as:
validate -> read booking -> read payment record -> branch -> write booking
-> ledger/payment side effects -> notifications.
Everything after the booking commit is best-effort (see services.side_effects).
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from models import db
from models.booking import Booking
from models.payment import Payment
from services import commission
from services.errors import BookingConflictError, BookingNotFoundError, InvalidTransitionError
from services.notifications import new_booking_tasks, status_change_tasks
from services.side_effects import SideEffect, run_side_effects
from services.status_machine import validate_requested_transition, validate_transition
from services.validation import validate_create, validate_update

# completion branches
PREPAID = "prepaid"
COD_DOORSTEP = "cod_doorstep"
COD_IN_STORE = "cod_in_store"
UNCLASSIFIED = "unclassified"


@dataclass
class PaymentClassification:
    is_cod: bool
    source: str  # payment_record, inferred, lookup_failed
    payment: Optional[Payment] = None


@dataclass
class LifecycleOutcome:
    booking: Booking
    previous_status: Optional[str] = None
    requested_status: Optional[str] = None
    branch: Optional[str] = None
    side_effects: list = field(default_factory=list)

    @property
    def status_changed(self) -> bool:
        return self.previous_status != self.booking.status


def get_booking(booking_id: str) -> Booking:
    booking = db.session.get(Booking, booking_id)
    if not booking:
        raise BookingNotFoundError(booking_id)
    return booking


def list_bookings(status: str = None, limit: int = 200, offset: int = 0):
    """Return (rows, total) for one page of bookings, newest first."""
    q = Booking.query
    if status:
        q = q.filter_by(status=status)
    total = q.count()
    rows = q.order_by(Booking.created_at.desc()).offset(offset).limit(limit).all()
    return rows, total


def classify_payment(booking: Booking) -> PaymentClassification:
    """Decide whether a booking is paid cash-on-delivery.

    A payment record is authoritative. Without one, a booking whose own
    payment_status is still pending is treated as COD.
    """
    payment = commission.find_payment(booking.id)
    if payment is not None:
        return PaymentClassification(is_cod=payment.is_cod, source="payment_record", payment=payment)
    return PaymentClassification(is_cod=booking.payment_status == "pending", source="inferred")


def _commit_booking(booking: Booking):
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("booking write failed for %s", booking.id)
        raise


def create_booking(data: dict) -> LifecycleOutcome:
    values = validate_create(data)

    now = datetime.utcnow()
    booking = Booking(created_at=now, updated_at=now, **values)
    db.session.add(booking)
    _commit_booking(booking)
    current_app.logger.info("booking %s created for provider %s", booking.id, booking.provider_id)

    results = run_side_effects(new_booking_tasks(booking))
    return LifecycleOutcome(
        booking=booking,
        requested_status=booking.status,
        side_effects=results,
    )


def _branch_completion(booking: Booking, changes: dict):
    """Rewrite a "completed" request according to how and where payment happens.

    Returns (branch, classification). Mutates `changes`.
    """
    try:
        classification = classify_payment(booking)
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception(
            "payment lookup failed for booking %s; keeping requested status", booking.id
        )
        return UNCLASSIFIED, PaymentClassification(is_cod=False, source="lookup_failed")

    if not classification.is_cod:
        return PREPAID, classification

    if booking.location_type == "doorstep":
        changes["status"] = "pending_cod_collection"
        return COD_DOORSTEP, classification

    # anything not at the customer's door is settled at the provider's premises
    if booking.location_type is None:
        current_app.logger.info("COD booking %s has no location_type; treating as in-store", booking.id)
    changes["status"] = "completed"
    changes["payment_status"] = "completed"
    return COD_IN_STORE, classification


def _commission_tasks(booking: Booking, classification: PaymentClassification) -> list:
    payment = classification.payment
    amount = commission.commission_for(booking, payment)
    tasks = [SideEffect("create_commission", lambda: commission.create_commission_entry(booking, amount))]
    if payment is not None:
        tasks.append(SideEffect("start_commission_tracking", lambda: commission.start_commission_tracking(payment)))
    return tasks


def update_booking(booking_id: str, data: dict) -> LifecycleOutcome:
    changes = validate_update(data)
    booking = get_booking(booking_id)

    previous = booking.status
    requested = changes.get("status")
    branch = None
    tasks = []

    if requested is not None and requested != previous:
        validate_requested_transition(previous, requested)

        if requested == "completed":
            branch, classification = _branch_completion(booking, changes)
            if changes["status"] != requested:
                validate_transition(previous, changes["status"])
            if branch == COD_IN_STORE:
                tasks.extend(_commission_tasks(booking, classification))

    for key, value in changes.items():
        setattr(booking, key, value)
    booking.updated_at = datetime.utcnow()
    _commit_booking(booking)

    if booking.status != previous:
        current_app.logger.info(
            "booking %s status %s -> %s (requested %s, branch %s)",
            booking.id, previous, booking.status, requested, branch,
        )
        tasks.extend(status_change_tasks(booking, previous))

    return LifecycleOutcome(
        booking=booking,
        previous_status=previous,
        requested_status=requested,
        branch=branch,
        side_effects=run_side_effects(tasks),
    )


def confirm_cash_collection(booking_id: str) -> LifecycleOutcome:
    """Close a doorstep COD booking once the cash has been received."""
    booking = get_booking(booking_id)
    previous = booking.status
    if previous != "pending_cod_collection":
        raise InvalidTransitionError(previous, "completed")
    if booking.location_type != "doorstep":
        raise BookingConflictError("Cash collection applies to doorstep bookings only")

    booking.status = "completed"
    booking.payment_status = "completed"
    booking.updated_at = datetime.utcnow()
    _commit_booking(booking)

    tasks = [SideEffect("mark_payment_collected", lambda: _mark_payment_collected(booking))]
    tasks.extend(status_change_tasks(booking, previous))
    return LifecycleOutcome(
        booking=booking,
        previous_status=previous,
        requested_status="completed",
        branch=COD_DOORSTEP,
        side_effects=run_side_effects(tasks),
    )


def _mark_payment_collected(booking: Booking):
    payment = commission.find_payment(booking.id)
    if payment is None:
        return
    payment.status = "completed"
    payment.updated_at = datetime.utcnow()
    db.session.commit()
