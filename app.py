from flask import Flask, request, g
from config import Config
from routes import health_bp, factors_bp, mfa_admin_bp

from models import db
from flask_migrate import Migrate
from utils.seed import seed_roles
from utils.auth_context import load_current_user
from security.csrf import require_csrf


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(factors_bp)
    app.register_blueprint(mfa_admin_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    # Seed default roles at startup (safe & idempotent); tests seed their own schema
    if not app.config.get("TESTING"):
        with app.app_context():
            seed_roles()

    @app.before_request
    def _load_user():
        load_current_user()

    CSRF_EXEMPT_PATHS = {
        "/health",
    }

    @app.before_request
    def _csrf_protect():
        # Only protect state-changing requests
        if request.method in ("POST", "PUT", "PATCH", "DELETE"):
            if request.path in CSRF_EXEMPT_PATHS:
                return None

            # Only enforce CSRF if user is already authenticated (cookie session)
            if getattr(g, "user", None) is not None:
                failure = require_csrf()
                if failure:
                    return failure

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp

    register_cli(app)

    return app

#-------------------------
import click
from models.user import User, Role
from factors import get_factor
from security import lockout
from utils.audit import FACTOR_LOCK_RESET, log_factor_event

def register_cli(app):
    @app.cli.command("make-admin")
    @click.argument("email")
    def make_admin(email):
        """Promote a user to ADMIN by email (bootstrap)."""
        user = User.query.filter_by(email=email.strip().lower()).first()
        if not user:
            click.echo("User not found")
            return
        role = Role.query.filter_by(name="ADMIN").first()
        if not role:
            role = Role(name="ADMIN")
            db.session.add(role)
            db.session.flush()
        if role not in user.roles:
            user.roles.append(role)
        db.session.commit()
        click.echo(f"{user.email} is now ADMIN")

    @app.cli.command("reset-factor-lock")
    @click.argument("email")
    @click.argument("factor_name")
    def reset_factor_lock(email, factor_name):
        """Clear the failed attempt counter of one factor for a user."""
        user = User.query.filter_by(email=email.strip().lower()).first()
        if not user:
            click.echo("User not found")
            return
        try:
            factor = get_factor(factor_name)
        except ValueError as exc:
            raise click.BadParameter(str(exc), param_hint="FACTOR_NAME")

        count = lockout.reset(user.id, factor.name)
        log_factor_event(FACTOR_LOCK_RESET, None, user.id, factor.name, factor.get_display_name())
        click.echo(f"Reset lock counter on {count} record(s)")


if __name__ == "__main__":
    create_app().run(debug=True)
