from datetime import datetime
from models.db import db

class FactorSecret(db.Model):
    __tablename__ = "mfa_secrets"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    factor = db.Column(db.String(100), nullable=False, index=True)

    # store only hashed secret in DB (never store the raw code)
    secret_hash = db.Column(db.String(128), nullable=False)

    # set when the secret may only be used from the session that requested it
    session_id = db.Column(db.String(128), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)

    revoked = db.Column(db.Boolean, default=False, nullable=False)
