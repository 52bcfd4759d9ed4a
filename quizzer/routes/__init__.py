"""HTTP route registration helper."""

from __future__ import annotations

from flask import Flask, jsonify

from quizzer.context import QuizzerContext


def register_routes(app: Flask, context: QuizzerContext) -> None:
    """Register the HTTP endpoints served next to the realtime channel."""

    @app.get("/api/health")
    def health():
        return (
            jsonify(
                status="degraded" if context.degraded else "ok",
                activeUsers=context.connections.active_users,
                quizSetVersion=context.cache.get_version(),
            ),
            200,
        )
