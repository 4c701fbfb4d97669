import json

from models import db
from models.notification import Notification


def dispatch_notification(
    type: str,
    category: str,
    priority: str,
    title: str,
    message: str,
    user_id: str,
    user_type: str,
    related_id=None,
    metadata=None,
) -> Notification:
    """
    Store an in-app notification for one user.
    Push delivery reads from this table and is handled elsewhere.
    """
    row = Notification(
        type=type,
        category=category,
        priority=priority,
        title=title,
        message=message,
        user_id=str(user_id),
        user_type=user_type,
        related_id=related_id,
        related_type="booking" if related_id else None,
        metadata_json=json.dumps(metadata or {}, default=str),
    )
    db.session.add(row)
    db.session.commit()
    return row
