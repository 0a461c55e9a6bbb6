from .health import health_bp
from .auth import auth_bp
from .users import users_bp
from .rooms import rooms_bp
from .reservations import reservations_bp
from .admin import admin_bp
from .audit_logs import audit_bp
