# backend/znpos/__init__.py
from datetime import timedelta

from flask import Flask, current_app
from sqlalchemy.exc import SQLAlchemyError

from .config import Config
from .errors import PosError, StoreUnavailableError
from .extensions import configure_sqlite_engine, db


def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    app.permanent_session_lifetime = timedelta(hours=app.config["SESSION_LIFETIME_HOURS"])

    # Initialize extensions
    db.init_app(app)

    # Import models so create_all sees every table
    from . import models  # noqa: F401

    with app.app_context():
        configure_sqlite_engine(db.engine, app.config["STORE_TIMEOUT_SECONDS"])

    # Register blueprints
    from .routes.auth import auth_bp
    from .routes.dashboard import dashboard_bp
    from .routes.products import products_bp
    from .routes.categories import categories_bp
    from .routes.customers import customers_bp
    from .routes.transactions import transactions_bp
    from .routes.employees import employees_bp
    from .routes.settings import settings_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(categories_bp)
    app.register_blueprint(customers_bp)
    app.register_blueprint(transactions_bp)
    app.register_blueprint(employees_bp)
    app.register_blueprint(settings_bp)

    @app.errorhandler(PosError)
    def handle_pos_error(e: PosError):
        return e.to_dict(), e.status_code

    @app.errorhandler(SQLAlchemyError)
    def handle_store_error(e: SQLAlchemyError):
        db.session.rollback()
        current_app.logger.exception("Record store call failed")
        err = StoreUnavailableError()
        return err.to_dict(), err.status_code

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
