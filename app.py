import logging

import click
from flask import Flask, jsonify
from flask_migrate import Migrate
from sqlalchemy.exc import SQLAlchemyError

from config import Config
from models import db
from models.user import User, Role
from routes import health_bp, auth_bp, users_bp, rooms_bp, reservations_bp, admin_bp, audit_bp
from services.errors import BookingError
from utils.auth_context import load_current_user
from utils.roles import ROLE_ADMIN
from utils.seed import seed_roles, seed_rooms


def create_app(config_object=Config, now_provider=None):
    app = Flask(__name__)
    app.config.from_object(config_object)
    if now_provider is not None:
        app.config["NOW_PROVIDER"] = now_provider

    _configure_logging(app)

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(rooms_bp)
    app.register_blueprint(reservations_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(audit_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    if app.config.get("TESTING"):
        with app.app_context():
            db.create_all()

    # Seed default roles at startup (safe & idempotent)
    with app.app_context():
        try:
            seed_roles()
        except SQLAlchemyError:
            # tables not migrated yet; `flask db upgrade` creates them
            db.session.rollback()
            app.logger.warning("Role seeding skipped: database schema is not ready")

    @app.before_request
    def _load_user():
        load_current_user()

    @app.errorhandler(BookingError)
    def _booking_error(err):
        db.session.rollback()
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(SQLAlchemyError)
    def _database_error(err):
        db.session.rollback()
        app.logger.exception("Database error")
        return jsonify(error="Internal server error"), 500

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp

    register_cli(app)

    return app


def _configure_logging(app):
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app.logger.setLevel(level)

#-------------------------

def register_cli(app):
    @app.cli.command("make-admin")
    @click.argument("email")
    def make_admin(email):
        """Promote a user to ADMIN by email (bootstrap)."""
        user = User.query.filter_by(email=email.strip().lower()).first()
        if not user:
            click.echo("User not found")
            return

        admin_role = Role.query.filter_by(name=ROLE_ADMIN).first()
        if not admin_role:
            admin_role = Role(name=ROLE_ADMIN)
            db.session.add(admin_role)

        user.roles = [admin_role]
        db.session.commit()

        click.echo(f"{user.email} promoted to ADMIN")

    @app.cli.command("seed-rooms")
    def seed_rooms_command():
        """Insert the sample rooms that are not there yet."""
        created = seed_rooms(
            app.config.get("DEFAULT_AVAILABLE_FROM", "09:00:00"),
            app.config.get("DEFAULT_AVAILABLE_TO", "17:00:00"),
        )
        click.echo(f"{created} room(s) created")

#-------------------------


if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5000)
