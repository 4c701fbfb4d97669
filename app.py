import click
from flask import Flask, jsonify
from flask_migrate import Migrate
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from config import Config
from models import db
from routes import health_bp, bookings_bp, payments_bp, admin_bp, providers_bp, webhook_bp
from services.commission import mark_overdue


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(bookings_bp)
    app.register_blueprint(payments_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(providers_bp)
    app.register_blueprint(webhook_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    register_error_handlers(app)
    register_cli(app)

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp

    return app

#-------------------------

def register_error_handlers(app):
    @app.errorhandler(HTTPException)
    def _http_error(exc):
        return jsonify(error=exc.description), exc.code

    @app.errorhandler(SQLAlchemyError)
    def _storage_error(exc):
        db.session.rollback()
        app.logger.exception("storage error")
        return jsonify(error="Server error"), 500

    @app.errorhandler(Exception)
    def _unexpected_error(exc):
        db.session.rollback()
        app.logger.exception("unhandled error")
        return jsonify(error="Server error"), 500

#-------------------------

def register_cli(app):
    @app.cli.command("mark-overdue-commissions")
    def mark_overdue_commissions():
        """Move pending commission entries past their due date to overdue."""
        count = mark_overdue()
        click.echo(f"{count} commission collection(s) marked overdue")

#-------------------------


if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
