import stripe
from flask import Blueprint, request, jsonify, current_app

from models import db
from models.booking import Booking
from models.commission_collection import CommissionCollection
from models.payment import Payment
from services import commission, payments
from services.errors import BookingError
from utils.audit import log_event
from utils.money import to_decimal
from utils.serialize import commission_to_dict, payment_to_dict

payments_bp = Blueprint("payments", __name__, url_prefix="/api/payments")


# ---------- CUSTOMERS: choose cash on delivery ----------
@payments_bp.post("/cod-confirm")
def cod_confirm():
    data = request.get_json(silent=True) or {}
    booking_id = data.get("booking_id")
    if not booking_id:
        return jsonify(success=False, error="Missing booking_id"), 400

    booking = db.session.get(Booking, str(booking_id))
    if not booking:
        return jsonify(success=False, error="Booking not found"), 404

    try:
        payment = payments.confirm_cod(booking)
    except BookingError as exc:
        return jsonify(success=False, error=exc.message), exc.status_code

    log_event("PAYMENT_COD_CONFIRM", actor=booking.customer_id, entity="payment", entity_id=payment.id,
              metadata={"booking_id": booking.id})
    return jsonify(success=True, payment=payment_to_dict(payment)), 200


# ---------- ADMIN/BACKFILL: fix commission on a COD record ----------
@payments_bp.post("/update-cod-commission")
def update_cod_commission():
    data = request.get_json(silent=True) or {}
    payment_id = data.get("payment_id")
    total_amount = data.get("total_amount")
    if not payment_id or not total_amount:
        return jsonify(success=False, error="Missing payment_id or total_amount"), 400

    try:
        total = to_decimal(total_amount)
    except ValueError:
        return jsonify(success=False, error="total_amount must be a number"), 400
    if total <= 0:
        return jsonify(success=False, error="total_amount must be greater than 0"), 400

    payment = db.session.get(Payment, str(payment_id))
    if not payment:
        return jsonify(success=False, error="Payment record not found"), 404

    payments.recalculate_commission(payment, total)
    log_event("PAYMENT_COMMISSION_RECALCULATE", entity="payment", entity_id=payment.id,
              metadata={"total_amount": total, "commission_amount": payment.commission_amount})
    return jsonify(
        success=True,
        message="Payment updated with correct commission",
        data={
            "payment_id": payment.id,
            "commission_amount": float(payment.commission_amount),
            "provider_payout": float(payment.provider_payout),
        },
    ), 200


# ---------- PROVIDERS: open a commission ledger entry by hand ----------
@payments_bp.post("/collect-cod-commission")
def collect_cod_commission():
    data = request.get_json(silent=True) or {}
    booking_id = data.get("booking_id")
    provider_id = data.get("provider_id")
    collection_method = data.get("collection_method") or None
    if not booking_id or not provider_id:
        return jsonify(success=False, error="Missing booking_id or provider_id"), 400

    booking = db.session.get(Booking, str(booking_id))
    if not booking:
        return jsonify(success=False, error="Booking not found"), 404

    try:
        entry = commission.collect_cod_commission(booking, provider_id, collection_method)
    except BookingError as exc:
        return jsonify(success=False, error=exc.message), exc.status_code

    log_event("COMMISSION_CREATE", actor=provider_id, entity="commission_collection", entity_id=entry.id,
              metadata={"booking_id": booking.id, "source": "manual"})
    return jsonify(
        success=True,
        commission_amount=float(entry.commission_amount),
        commission=commission_to_dict(entry),
        message=f"Commission collection record created for {entry.commission_amount}",
    ), 201


# ---------- PROVIDERS: pay commission through Stripe ----------
@payments_bp.post("/pay-commission")
def pay_commission():
    data = request.get_json(silent=True) or {}
    commission_id = data.get("commission_id")
    provider_id = data.get("provider_id")
    amount = data.get("amount")
    if not commission_id or not provider_id or not amount:
        return jsonify(success=False, error="Missing commission_id, provider_id, or amount"), 400

    entry = db.session.get(CommissionCollection, str(commission_id))
    if not entry:
        return jsonify(success=False, error="Commission record not found"), 404
    if entry.provider_id != str(provider_id):
        return jsonify(success=False, error="Commission record not found"), 404
    if entry.status not in ("pending", "overdue"):
        return jsonify(success=False, error="Commission is not pending"), 400

    try:
        if to_decimal(amount) != entry.commission_amount:
            return jsonify(success=False, error="Amount mismatch"), 400
    except ValueError:
        return jsonify(success=False, error="Amount mismatch"), 400

    stripe.api_key = current_app.config.get("STRIPE_SECRET_KEY")
    success_url = current_app.config.get("STRIPE_SUCCESS_URL")
    cancel_url = current_app.config.get("STRIPE_CANCEL_URL")
    if not stripe.api_key:
        return jsonify(success=False, error="Payment gateway not configured. Please contact support."), 500
    if not success_url or not cancel_url:
        return jsonify(success=False, error="Stripe success/cancel URLs not configured"), 500

    # Stripe expects the smallest currency unit
    unit_amount = int(entry.commission_amount * 100)

    try:
        session = stripe.checkout.Session.create(
            mode="payment",
            line_items=[{
                "price_data": {
                    "currency": current_app.config.get("STRIPE_CURRENCY", "inr"),
                    "product_data": {"name": f"Platform commission (Booking {entry.booking_id})"},
                    "unit_amount": unit_amount,
                },
                "quantity": 1,
            }],
            success_url=success_url,
            cancel_url=cancel_url,
            metadata={
                "type": "commission_payment",
                "commission_id": entry.id,
                "provider_id": entry.provider_id,
            },
        )
    except stripe.StripeError as exc:
        current_app.logger.exception("stripe checkout failed for commission %s", entry.id)
        return jsonify(success=False, error="Failed to create payment order: " + str(exc)), 502

    entry.stripe_session_id = session["id"]
    db.session.commit()

    log_event("COMMISSION_PAYMENT_SESSION_CREATED", actor=entry.provider_id, entity="commission_collection",
              entity_id=entry.id, metadata={"stripe_session_id": session["id"]})
    return jsonify(success=True, checkout_url=session["url"], session_id=session["id"]), 200
