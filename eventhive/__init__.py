import os
import logging
from logging.handlers import RotatingFileHandler

from flask import Flask, jsonify
from flask_cors import CORS

from eventhive.config import config
from eventhive.extensions import db, ma, jwt, migrate, socketio, limiter, scheduler


def configure_logging(app):
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    formatter = logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")

    root = logging.getLogger()
    root.setLevel(level)
    if not any(isinstance(h, logging.StreamHandler) and not isinstance(h, RotatingFileHandler)
               for h in root.handlers):
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        root.addHandler(stream_handler)

    log_file = app.config.get("LOG_FILE")
    if log_file and not any(isinstance(h, RotatingFileHandler) for h in root.handlers):
        file_handler = RotatingFileHandler(log_file, maxBytes=1_000_000, backupCount=5)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)


def configure_scheduler(app):
    """Start the background scheduler once per process."""
    from eventhive.tasks import register_jobs

    if scheduler.running:
        return
    try:
        scheduler.init_app(app)
    except Exception as e:
        if "already initialized" not in str(e):
            raise
    register_jobs(app)
    scheduler.start()


def register_error_handlers(app):
    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return jsonify({"error": "Token has expired"}), 401

    @jwt.invalid_token_loader
    def invalid_token_callback(error):
        return jsonify({"error": "Invalid token"}), 401

    @jwt.unauthorized_loader
    def unauthorized_callback(error):
        return jsonify({"error": "Authorization required"}), 401

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({"error": "Method not allowed"}), 405

    @app.errorhandler(429)
    def rate_limited(error):
        return jsonify({"error": "Too many requests, please try again later"}), 429


def create_app(config_name=None):
    config_name = config_name or os.getenv("FLASK_CONFIG", "default")

    app = Flask(__name__)
    app.config.from_object(config[config_name])

    configure_logging(app)

    db.init_app(app)
    ma.init_app(app)
    jwt.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    CORS(app, resources={r"/*": {
        "origins": app.config["CORS_ORIGINS"],
        "allow_headers": ["Content-Type", "Authorization"],
        "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    }})
    socketio.init_app(app, async_mode=app.config["SOCKETIO_ASYNC_MODE"])

    from eventhive.services.notifications import NotificationService, SessionRegistry
    from eventhive.sockets import register_socket_handlers, resolve_identity

    register_socket_handlers(socketio)
    app.extensions["eventhive.notifications"] = NotificationService(socketio)
    app.extensions["eventhive.sessions"] = SessionRegistry(resolve_identity)

    register_error_handlers(app)

    # Blueprints
    from eventhive.routes.auth import auth_bp
    from eventhive.routes.users import users_bp
    from eventhive.routes.events import events_bp
    from eventhive.routes.reviews import reviews_bp
    from eventhive.routes.registrations import registrations_bp
    from eventhive.routes.notifications import notifications_bp
    from eventhive.routes.chatbot import chatbot_bp
    from eventhive.routes.analytics import analytics_bp
    from eventhive.routes.payments import payments_bp
    from eventhive.routes.dashboard import dashboard_bp
    from eventhive.routes.recommendations import recommendations_bp

    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(users_bp, url_prefix="/api/user")
    app.register_blueprint(events_bp, url_prefix="/events")
    app.register_blueprint(reviews_bp, url_prefix="/reviews")
    app.register_blueprint(registrations_bp, url_prefix="/registrations")
    app.register_blueprint(notifications_bp, url_prefix="/notifications")
    app.register_blueprint(chatbot_bp, url_prefix="/chat")
    app.register_blueprint(analytics_bp, url_prefix="/analytics")
    app.register_blueprint(payments_bp, url_prefix="/stripe")
    app.register_blueprint(dashboard_bp, url_prefix="/dashboard")
    app.register_blueprint(recommendations_bp, url_prefix="/api/recommendations")

    if app.config.get("SCHEDULER_ENABLED"):
        configure_scheduler(app)

    return app
