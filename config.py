"""
Project: Restaurant Back-Office (RBO)

Description:
Application settings, read from the environment and an optional ``.env``
file.
"""

import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "changeme")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///restaurant.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Uploaded menu icons live here and are served under /public/menuIcons
    UPLOAD_FOLDER = os.getenv("UPLOAD_FOLDER", os.path.join(os.getcwd(), "assets", "menuIcons"))
    MAX_CONTENT_LENGTH = int(os.getenv("MAX_CONTENT_LENGTH", str(5 * 1024 * 1024)))

    # None lets Flask-SocketIO pick eventlet when it is installed
    SOCKETIO_ASYNC_MODE = os.getenv("SOCKETIO_ASYNC_MODE") or None

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    PORT = int(os.getenv("PORT", "8081"))
