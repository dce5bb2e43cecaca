from flask import Flask, jsonify
from sqlalchemy.exc import SQLAlchemyError
from config import Config
from routes import health_bp, facilities_bp, booking_bp, admin_bp, webhook_bp, audit_bp

from models import db
from flask_migrate import Migrate
from services.errors import BookingError


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(facilities_bp)
    app.register_blueprint(booking_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(webhook_bp)
    app.register_blueprint(audit_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    @app.errorhandler(BookingError)
    def _booking_error(exc):
        # Expected outcomes (slot taken, bad input...); not system faults
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(SQLAlchemyError)
    def _db_error(exc):
        db.session.rollback()
        app.logger.exception("database error: %s", exc)
        return jsonify(error="Internal error, please retry", code="internal_error"), 500

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp


    register_cli(app)


    return app

#-------------------------
import click
from services import bookings as booking_service
from services import facilities as facility_service

def register_cli(app):
    @app.cli.command("add-facility")
    @click.argument("name")
    @click.option("--type", "facility_type", type=click.Choice(["ground", "net"]), default="ground")
    @click.option("--price", type=float, required=True, help="Price per hour")
    @click.option("--unavailable", is_flag=True, help="Create it switched off for booking")
    def add_facility(name, facility_type, price, unavailable):
        """Add a ground or net to the facility catalog."""
        try:
            facility = facility_service.create_facility({
                "name": name,
                "facility_type": facility_type,
                "price_per_hour": price,
                "is_available": not unavailable,
            })
        except BookingError as exc:
            raise click.ClickException(exc.message)
        click.echo(f"{facility.facility_type} #{facility.id} {facility.name} created")

    @app.cli.command("complete-bookings")
    def complete_bookings():
        """Mark CONFIRMED bookings whose slot has ended as COMPLETED."""
        count = booking_service.complete_elapsed_bookings()
        click.echo(f"{count} booking(s) completed")

#-------------------------




if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
