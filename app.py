"""
Project: Restaurant Back-Office (RBO)

Description:
Main application entry point. Initializes Flask, the database and
Socket.IO, registers the REST blueprints and error handlers, and launches
the app.
"""

import sys

from flask import Flask, jsonify
from flask_socketio import SocketIO
from loguru import logger

from config import Config
from errors import register_error_handlers
from events import ChangeNotifier, register_namespaces
from images import ImageStore
from models import db
import menu_api
import orders_api

# Create SocketIO once (no app yet), then bind inside factory
socketio = SocketIO(cors_allowed_origins="*")
register_namespaces(socketio)


def configure_logging(level: str):
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        level=level,
    )


def create_app(testing: bool = False, overrides: dict = None):
    app = Flask(__name__)
    app.config.from_object(Config)

    if testing:
        app.config["TESTING"] = True
        app.config["SQLALCHEMY_DATABASE_URI"] = "sqlite:///:memory:"
        app.config["SOCKETIO_ASYNC_MODE"] = "threading"
    if overrides:
        app.config.update(overrides)

    configure_logging(app.config["LOG_LEVEL"])

    db.init_app(app)
    socketio.init_app(app, async_mode=app.config["SOCKETIO_ASYNC_MODE"])  # <-- bind socketio to this app

    app.extensions["rbo.notifier"] = ChangeNotifier(socketio)
    app.extensions["rbo.images"] = ImageStore(app.config["UPLOAD_FOLDER"])

    register_error_handlers(app)
    app.register_blueprint(menu_api.bp)
    app.register_blueprint(orders_api.bp)

    @app.get("/health")
    def health():
        return jsonify({"status": "ok"})

    with app.app_context():
        db.create_all()
    logger.info(f"Application ready (database: {app.config['SQLALCHEMY_DATABASE_URI']})")

    return app


if __name__ == "__main__":
    app = create_app()
    # Runs with eventlet server automatically when it is installed
    socketio.run(app, host="0.0.0.0", port=app.config["PORT"])
