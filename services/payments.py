from datetime import datetime

from flask import current_app
from sqlalchemy.exc import IntegrityError

from models import db
from models.payment import Payment
from services.commission import compute_commission, find_payment
from services.errors import BookingError
from utils.money import CENT


def confirm_cod(booking) -> Payment:
    """Record that a booking will be paid in cash.

    Creates the booking's payment record, or switches the existing one to COD.
    """
    try:
        return _apply_cod(booking)
    except IntegrityError:
        # a concurrent confirmation inserted the record first; update that one
        db.session.rollback()
        current_app.logger.info("payment record for booking %s already created, retrying as update", booking.id)
        return _apply_cod(booking)


def _apply_cod(booking) -> Payment:
    now = datetime.utcnow()
    commission_amount = compute_commission(booking.total_amount)

    if booking.status == "pending":
        booking.payment_status = "pending"
        booking.updated_at = now

    payment = find_payment(booking.id)
    if payment is None:
        payment = Payment(booking_id=booking.id, created_at=now)
        db.session.add(payment)
    elif payment.is_commission_settled:
        raise BookingError("Commission already settled for this booking")

    payment.payment_method = "COD"
    payment.amount = booking.total_amount
    payment.status = "pending"
    payment.transaction_id = None
    payment.commission_amount = commission_amount
    payment.provider_payout = (booking.total_amount - commission_amount).quantize(CENT)
    payment.is_commission_settled = False
    payment.updated_at = now
    db.session.commit()

    current_app.logger.info("booking %s set to COD (commission %s)", booking.id, commission_amount)
    return payment


def recalculate_commission(payment: Payment, total_amount) -> Payment:
    commission_amount = compute_commission(total_amount)
    payment.commission_amount = commission_amount
    payment.provider_payout = (total_amount - commission_amount).quantize(CENT)
    payment.updated_at = datetime.utcnow()
    db.session.commit()
    return payment
