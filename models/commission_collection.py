import uuid
from datetime import datetime
from models.db import db

COMMISSION_STATUSES = ("pending", "completed", "overdue")
COLLECTION_METHODS = ("upi", "bank_transfer", "cash_pickup")


class CommissionCollection(db.Model):
    __tablename__ = "commission_collections"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    booking_id = db.Column(db.String(36), db.ForeignKey("bookings.id"), nullable=False, index=True)
    provider_id = db.Column(db.String(64), nullable=False, index=True)

    commission_amount = db.Column(db.Numeric(12, 2), nullable=False)
    collection_method = db.Column(db.String(20), nullable=False, default="upi")
    status = db.Column(db.String(20), nullable=False, default="pending", index=True)
    due_date = db.Column(db.DateTime, nullable=False)
    collected_at = db.Column(db.DateTime, nullable=True)

    stripe_session_id = db.Column(db.String(255), nullable=True, unique=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        # One commission obligation per booking; retried or raced completions hit this
        db.UniqueConstraint("booking_id", name="uq_commission_booking_once"),
    )
