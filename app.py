import click
import structlog
from flask import Flask, request, g
from flask_migrate import Migrate

from config import Config
from models import db
from routes import ALL_BLUEPRINTS
from security.csrf import require_csrf
from utils.auth_context import load_current_user
from utils.errors import Error, register_error_handlers
from utils.logging_setup import setup_logging

log = structlog.getLogger()

# unauthenticated entry points and provider callbacks
CSRF_EXEMPT_PATHS = {
    "/auth/login",
    "/auth/register",
    "/auth/otp/request",
    "/auth/otp/verify",
    "/auth/check-lock-status",
    "/auth/check-active-session",
    "/auth/password-reset",
    "/webhooks/stripe",
    "/health",
}


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    setup_logging(app.config.get("APP_ENV", "Local"))

    # Register routes
    for bp in ALL_BLUEPRINTS:
        app.register_blueprint(bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    register_error_handlers(app)

    @app.before_request
    def _load_user():
        load_current_user()

    @app.before_request
    def _csrf_protect():
        # Only protect state-changing requests
        if request.method in ("POST", "PUT", "PATCH", "DELETE"):
            if request.path in CSRF_EXEMPT_PATHS:
                return None

            # Only enforce CSRF if user is already authenticated (cookie session)
            if getattr(g, "user", None) is not None:
                failure = require_csrf(g.user)
                if failure:
                    return failure

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp

    register_cli(app)

    log.info("app_created", env=app.config.get("APP_ENV"))
    return app


def register_cli(app):
    from models.user import User, Role
    from security.session import cleanup_expired_sessions
    from utils.accounts import new_account
    from utils.seed import seed_photo_product, seed_shipping_types

    @app.cli.command("create-admin")
    @click.argument("email")
    @click.password_option()
    def create_admin(email, password):
        """Create the first SBTE_ADMIN account (bootstrap)."""
        existing = User.query.filter_by(email=email.strip().lower()).first()
        if existing:
            existing.role = Role.SBTE_ADMIN
            db.session.commit()
            click.echo(f"{existing.email} promoted to SBTE_ADMIN")
            return

        try:
            user = new_account(email, password, Role.SBTE_ADMIN)
        except Error as exc:
            raise click.ClickException(f"{exc.message}: {exc.details}" if exc.details else exc.message)
        db.session.commit()
        click.echo(f"{user.email} created as SBTE_ADMIN")

    @app.cli.command("seed-store")
    def seed_store():
        """Default shipping types and the photo print size catalog."""
        seed_shipping_types()
        product = seed_photo_product()
        click.echo(f"Seeded shipping types and product #{product.id}")

    @app.cli.command("cleanup-sessions")
    def cleanup_sessions():
        """Clear expired and idle sessions."""
        cleared = cleanup_expired_sessions()
        click.echo(f"Cleared {cleared} sessions")


if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
