import uuid
from datetime import datetime
from models.db import db

class Payment(db.Model):
    __tablename__ = "payments"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    booking_id = db.Column(db.String(36), db.ForeignKey("bookings.id"), nullable=False, index=True)

    payment_method = db.Column(db.String(20), nullable=False, default="online")  # online, COD
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    commission_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    provider_payout = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    is_commission_settled = db.Column(db.Boolean, nullable=False, default=False)

    status = db.Column(db.String(20), nullable=False, default="pending")  # pending, completed, failed
    transaction_id = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        # one payment record per booking
        db.UniqueConstraint("booking_id", name="uq_payment_booking_once"),
    )

    @property
    def is_cod(self) -> bool:
        return (self.payment_method or "").strip().upper() == "COD"
