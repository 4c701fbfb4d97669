import json

import stripe
from flask import Blueprint, request, jsonify, current_app

from models import db
from models.commission_collection import CommissionCollection
from services.commission import settle_commission
from utils.audit import log_event

webhook_bp = Blueprint("webhook", __name__, url_prefix="/webhooks")


@webhook_bp.post("/stripe")
def stripe_webhook():
    endpoint_secret = current_app.config.get("STRIPE_WEBHOOK_SECRET")
    sig_header = request.headers.get("Stripe-Signature")
    payload = request.data

    if not endpoint_secret:
        return jsonify(error="Webhook secret not configured"), 500

    try:
        stripe.Webhook.construct_event(payload, sig_header, endpoint_secret)
    except (ValueError, stripe.SignatureVerificationError):
        return jsonify(error="Invalid webhook signature"), 400

    # signature verified; work from the plain JSON document
    event = json.loads(payload)
    if event.get("type") != "checkout.session.completed":
        return jsonify(received=True), 200

    session = (event.get("data") or {}).get("object") or {}
    meta = session.get("metadata") or {}
    if meta.get("type") != "commission_payment":
        return jsonify(received=True), 200

    session_id = session.get("id")
    entry = None
    commission_id = meta.get("commission_id")
    if commission_id:
        entry = db.session.get(CommissionCollection, commission_id)
    if not entry and session_id:
        entry = CommissionCollection.query.filter_by(stripe_session_id=session_id).first()
    if not entry:
        current_app.logger.warning("stripe session %s references unknown commission %s", session_id, commission_id)
        return jsonify(received=True), 200

    entry, changed = settle_commission(entry.id)
    if changed:
        log_event("COMMISSION_SETTLE", actor=entry.provider_id, entity="commission_collection", entity_id=entry.id,
                  metadata={"stripe_session_id": session_id, "booking_id": entry.booking_id, "source": "stripe"})

    return jsonify(received=True), 200
