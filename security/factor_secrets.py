import hashlib
import secrets
from datetime import datetime, timedelta
from typing import Optional

from flask import current_app
from sqlalchemy import or_

from models import db
from models.factor_secret import FactorSecret

VALID = "valid"
NONVALID = "nonvalid"
REVOKED = "revoked"


def _hash_secret(secret: str) -> str:
    # Codes are short-lived and single use, SHA-256 is enough here
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


def generate_code(length: Optional[int] = None) -> str:
    length = length or current_app.config.get("MFA_CODE_LENGTH", 6)
    return "".join(str(secrets.randbelow(10)) for _ in range(length))


class SecretManager:
    """
    Short-lived verification secrets for one factor (e.g. emailed codes).
    Only hashes are persisted.
    """

    def __init__(self, factor: str):
        self.factor = factor

    def _live_query(self, user_id: int):
        return FactorSecret.query.filter(
            FactorSecret.user_id == user_id,
            FactorSecret.factor == self.factor,
            FactorSecret.revoked.is_(False),
            FactorSecret.expires_at > datetime.utcnow(),
        )

    def has_active_secret(self, user_id: int, session_id: Optional[str] = None) -> bool:
        query = self._live_query(user_id)
        if session_id:
            query = query.filter(FactorSecret.session_id == session_id)
        return query.first() is not None

    def create_secret(
        self,
        user_id: int,
        expires_in: Optional[int] = None,
        session_id: Optional[str] = None,
        secret: Optional[str] = None,
    ) -> str:
        """
        Returns the RAW secret, or "" when a live one already exists
        (the user should keep using the code they already received).
        """
        if self.has_active_secret(user_id, session_id):
            return ""

        secret = secret or generate_code()
        expires_in = expires_in or current_app.config.get("MFA_SECRET_TTL_SECONDS", 1800)

        row = FactorSecret(
            user_id=user_id,
            factor=self.factor,
            secret_hash=_hash_secret(secret),
            session_id=session_id,
            expires_at=datetime.utcnow() + timedelta(seconds=expires_in),
        )
        db.session.add(row)
        db.session.commit()
        return secret

    def validate_secret(self, user_id: int, secret: str, session_id: Optional[str] = None) -> str:
        """
        VALID consumes the secret. REVOKED means it was already used or revoked.
        """
        if not secret:
            return NONVALID

        now = datetime.utcnow()
        rows = FactorSecret.query.filter_by(
            user_id=user_id,
            factor=self.factor,
            secret_hash=_hash_secret(secret.strip()),
        ).all()

        for row in rows:
            if row.expires_at <= now:
                continue
            if row.session_id and row.session_id != session_id:
                continue
            if row.revoked:
                return REVOKED
            row.revoked = True
            db.session.commit()
            return VALID

        return NONVALID

    def revoke_secret(self, user_id: int, secret: str) -> int:
        count = (
            FactorSecret.query
            .filter_by(user_id=user_id, factor=self.factor, secret_hash=_hash_secret(secret))
            .update({"revoked": True}, synchronize_session=False)
        )
        db.session.commit()
        return count

    def cleanup_temp_secrets(self, user_id: int) -> int:
        """
        Deletes the user's expired and used secrets for this factor.
        """
        count = (
            FactorSecret.query
            .filter(
                FactorSecret.user_id == user_id,
                FactorSecret.factor == self.factor,
                or_(FactorSecret.expires_at <= datetime.utcnow(), FactorSecret.revoked.is_(True)),
            )
            .delete(synchronize_session=False)
        )
        db.session.commit()
        return count
