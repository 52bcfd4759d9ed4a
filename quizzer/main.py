"""Flask application setup and realtime channel wiring."""

from __future__ import annotations

import os
import time
from typing import Optional

from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO

from quizzer.context import QuizzerContext, create_context
from quizzer.events import register_events
from quizzer.routes import register_routes

DEFAULT_DEV_ORIGIN = "http://localhost:4200"


def is_production() -> bool:
    env = os.getenv("QUIZZER_ENV") or os.getenv("NODE_ENV") or ""
    return env.lower() == "production"


def create_app(context: Optional[QuizzerContext] = None) -> Flask:
    """Configure and return the Flask application with its SocketIO server."""
    started = time.monotonic()
    app = Flask(__name__)

    if is_production():
        cors_origins = None
    else:
        cors_origins = os.getenv("CORS_ORIGIN", DEFAULT_DEV_ORIGIN)
        CORS(app, resources={r"/api/*": {"origins": cors_origins}})

    if context is None:
        context = create_context()
    app.extensions["quizzer"] = context

    socketio = SocketIO(app, async_mode="threading", cors_allowed_origins=cors_origins)
    register_routes(app, context)
    register_events(socketio, context)

    app.logger.info("Initialization Complete in %.3f seconds", time.monotonic() - started)
    return app


def get_socketio(app: Flask) -> SocketIO:
    return app.extensions["socketio"]


def get_context(app: Flask) -> QuizzerContext:
    return app.extensions["quizzer"]
