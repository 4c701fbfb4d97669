from datetime import datetime
from models.db import db

class Notification(db.Model):
    __tablename__ = "notifications"

    id = db.Column(db.Integer, primary_key=True)

    type = db.Column(db.String(20), nullable=False)  # booking, payment, system
    category = db.Column(db.String(20), nullable=False, default="business")
    priority = db.Column(db.String(10), nullable=False, default="medium")  # low, medium, high, urgent
    title = db.Column(db.String(160), nullable=False)
    message = db.Column(db.Text, nullable=False)

    user_id = db.Column(db.String(64), nullable=False, index=True)
    user_type = db.Column(db.String(20), nullable=False)  # customer, provider, admin
    related_id = db.Column(db.String(36), nullable=True, index=True)
    related_type = db.Column(db.String(40), nullable=True)
    metadata_json = db.Column(db.Text, nullable=True)

    read = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
