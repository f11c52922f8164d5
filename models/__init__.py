from .db import db
from .user import User, Role, user_roles
from .session import Session
from .audit_log import AuditLog
from .factor_record import FactorRecord
from .factor_secret import FactorSecret
