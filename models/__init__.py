from .db import db
from .audit_log import AuditLog
from .booking import Booking
from .payment import Payment
from .commission_collection import CommissionCollection
from .notification import Notification
