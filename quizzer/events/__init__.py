"""Socket.IO event handler registration helper."""

from __future__ import annotations

from flask_socketio import SocketIO

from quizzer.context import QuizzerContext

from . import auth, connection, quiz


def register_events(socketio: SocketIO, context: QuizzerContext) -> None:
    """Register every realtime event handler on the provided SocketIO server."""
    connection.register(socketio, context)
    auth.register(socketio, context)
    quiz.register(socketio, context)
