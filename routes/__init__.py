from .health import health_bp
from .factors import factors_bp
from .admin import mfa_admin_bp
