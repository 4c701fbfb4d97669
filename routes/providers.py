from flask import Blueprint, jsonify, request

from models.commission_collection import CommissionCollection
from utils.serialize import commission_to_dict

providers_bp = Blueprint("providers", __name__, url_prefix="/api/providers")


@providers_bp.get("/<provider_id>/commissions")
def provider_commissions(provider_id: str):
    status = request.args.get("status")
    rows = (
        CommissionCollection.query
        .filter_by(provider_id=provider_id)
        .order_by(CommissionCollection.due_date.asc())
        .all()
    )
    outstanding = sum(c.commission_amount for c in rows if c.status in ("pending", "overdue"))
    if status:
        rows = [c for c in rows if c.status == status]

    return jsonify(
        commissions=[commission_to_dict(c) for c in rows],
        outstanding_amount=float(outstanding),
    ), 200
