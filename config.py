import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite database file stored next to the app as mfa.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "mfa.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Session/cookie security defaults
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    SESSION_COOKIE_SECURE = False  # set True when using HTTPS

    # Server-side login sessions; the cookie only carries an opaque token
    AUTH_COOKIE_NAME = "mfa_session"
    SESSION_LIFETIME_SECONDS = 8 * 60 * 60
    IDLE_TIMEOUT_SECONDS = 20 * 60

    # Failed attempts allowed per factor before it locks (0 locks immediately)
    MFA_LOCKOUT_THRESHOLD = int(os.getenv("MFA_LOCKOUT_THRESHOLD", "10"))

    # Emailed codes
    MFA_SECRET_TTL_SECONDS = int(os.getenv("MFA_SECRET_TTL_SECONDS", "1800"))  # 30 minutes
    MFA_CODE_LENGTH = int(os.getenv("MFA_CODE_LENGTH", "6"))

    # Email (SMTP) used to deliver email factor codes
    SMTP_HOST = os.getenv("SMTP_HOST")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME = os.getenv("SMTP_USERNAME")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
    SMTP_FROM_EMAIL = os.getenv("SMTP_FROM_EMAIL")
    SMTP_USE_TLS = os.getenv("SMTP_USE_TLS", "true").lower() == "true"

    # Per-factor settings. "lockout" overrides MFA_LOCKOUT_THRESHOLD for that factor.
    MFA_FACTORS = {
        "totp": {
            "enabled": _env_flag("FACTOR_TOTP_ENABLED", "true"),
            "weight": int(os.getenv("FACTOR_TOTP_WEIGHT", "100")),
        },
        "email": {
            "enabled": _env_flag("FACTOR_EMAIL_ENABLED", "true"),
            "weight": int(os.getenv("FACTOR_EMAIL_WEIGHT", "100")),
        },
        "iprange": {
            "enabled": _env_flag("FACTOR_IPRANGE_ENABLED"),
            "weight": int(os.getenv("FACTOR_IPRANGE_WEIGHT", "50")),
            "safe_ranges": [r.strip() for r in os.getenv("FACTOR_IPRANGE_SAFE", "").split(",") if r.strip()],
        },
        "nosetup": {
            "enabled": _env_flag("FACTOR_NOSETUP_ENABLED"),
            "weight": int(os.getenv("FACTOR_NOSETUP_WEIGHT", "100")),
        },
    }

    # Roles allowed to revoke or reset other users' factors
    PRIVILEGED_ROLES = ["ADMIN", "SUPER_ADMIN"]

    # Basic app settings
    DEBUG = False


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-only"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    MFA_LOCKOUT_THRESHOLD = 3
    MFA_FACTORS = {
        "totp": {"enabled": True, "weight": 100},
        "email": {"enabled": True, "weight": 100},
        "iprange": {"enabled": True, "weight": 50, "safe_ranges": ["10.0.0.0/8"]},
        "nosetup": {"enabled": True, "weight": 100},
    }
