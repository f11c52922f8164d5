from datetime import datetime
from sqlalchemy.orm import deferred

from models.db import db

class FactorRecord(db.Model):
    __tablename__ = "mfa_factors"
    # lock_counter may not exist yet, so it is never read back after INSERT
    __mapper_args__ = {"eager_defaults": False}

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    factor = db.Column(db.String(100), nullable=False, index=True)

    label = db.Column(db.String(255), nullable=True)   # e.g. device name
    secret = db.Column(db.String(255), nullable=True)  # factor specific, e.g. TOTP seed

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    modified_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    last_verified_at = db.Column(db.DateTime, nullable=True)  # unset until the first pass
    created_from_ip = db.Column(db.String(64), nullable=True)

    # once set, never cleared
    revoked = db.Column(db.Boolean, default=False, nullable=False)

    # consecutive failures, shared by all of a user's records of this factor.
    # Deferred with a server default so records still load and insert while
    # the column has not been migrated yet; only security.lockout touches it.
    lock_counter = deferred(db.Column(db.Integer, server_default="0", nullable=False))

    # "<user_id>:<factor>" for singleton rows, NULL otherwise. Unique so that
    # concurrent first-time setups cannot both insert.
    singleton_key = db.Column(db.String(191), unique=True, nullable=True)
