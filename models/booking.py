import uuid
from datetime import datetime
from models.db import db

BOOKING_STATUSES = (
    "pending",
    "confirmed",
    "in_progress",
    "pending_cod_collection",
    "completed",
    "cancelled",
    "disputed",
)
PAYMENT_STATUSES = ("pending", "completed", "refunded")
LOCATION_TYPES = ("doorstep", "provider_location")
SERVICE_MODES = ("doorstep", "instore")
PART_QUALITIES = ("OEM", "HQ", "Standard", "basic", "standard", "premium")


def _new_id():
    return str(uuid.uuid4())


class Booking(db.Model):
    __tablename__ = "bookings"

    id = db.Column(db.String(36), primary_key=True, default=_new_id)

    customer_id = db.Column(db.String(64), nullable=False, index=True)
    provider_id = db.Column(db.String(64), nullable=False, index=True)
    customer_email = db.Column(db.String(255), nullable=True)
    provider_email = db.Column(db.String(255), nullable=True)

    device_id = db.Column(db.String(64), nullable=False)
    service_id = db.Column(db.String(64), nullable=False)
    issue_description = db.Column(db.Text, nullable=True)
    selected_issues = db.Column(db.JSON, nullable=True)  # [{"name": ...}, ...]
    part_quality = db.Column(db.String(20), nullable=True)

    total_amount = db.Column(db.Numeric(12, 2), nullable=False)
    payment_status = db.Column(db.String(20), nullable=False, default="pending", index=True)

    status = db.Column(db.String(30), nullable=False, default="pending", index=True)
    appointment_time = db.Column(db.DateTime, nullable=False)
    location_type = db.Column(db.String(20), nullable=True)
    service_mode = db.Column(db.String(20), nullable=True)
    customer_address = db.Column(db.String(255), nullable=True)

    rating = db.Column(db.Float, nullable=False, default=0)
    review = db.Column(db.Text, nullable=False, default="")
    cancellation_reason = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.CheckConstraint("total_amount > 0", name="ck_booking_total_positive"),
    )
