"""Connection open/close bookkeeping."""

from __future__ import annotations

from flask import current_app, request
from flask_socketio import SocketIO

from quizzer.context import QuizzerContext


def register(socketio: SocketIO, context: QuizzerContext) -> None:

    @socketio.on("connect")
    def on_connect(auth=None):
        context.connections.open(request.sid)
        current_app.logger.debug("Connection opened, %d active", context.connections.active_users)

    @socketio.on("disconnect")
    def on_disconnect(reason=None):
        # Pending writes from this connection are not cancelled.
        context.identity.logout(request.sid)
        current_app.logger.debug("Connection closed, %d active", context.connections.active_users)
