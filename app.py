"""Development entrypoint delegating to the application package."""

import logging
import os

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from quizzer.main import create_app, get_context, get_socketio, is_production
from quizzer.shutdown import register_shutdown_handler

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

app = create_app()


if __name__ == "__main__":
    register_shutdown_handler(get_context(app).store.disconnect)
    port = int(os.getenv("PORT", "6970"))
    app.logger.info("Listening on port %d", port)
    get_socketio(app).run(
        app,
        host="0.0.0.0",
        port=port,
        debug=not is_production(),
        use_reloader=False,
        allow_unsafe_werkzeug=True,
    )
