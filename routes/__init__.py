from .health import health_bp
from .bookings import bookings_bp
from .payments import payments_bp
from .admin import admin_bp
from .providers import providers_bp
from .stripe_webhook import webhook_bp
