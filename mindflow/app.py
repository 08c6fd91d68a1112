"""
MindFlow - dump your thoughts, let AI sort them into cards.
Flask application factory and development server entry point.
"""

import os
import logging
from typing import Callable, Optional

from flask import Flask
from flask_cors import CORS

from mindflow.config import log_event, groq_client, gemini_model, DATA_DIR
from mindflow.routes import api
from mindflow.services.storage import JsonFileStore, ThoughtStore
from mindflow.services.queue_processor import start_queue_worker


def create_app(
    store_factory: Optional[Callable[[str], ThoughtStore]] = None,
    start_worker: bool = True,
) -> Flask:
    """Build the app; `store_factory` maps a session name to its store."""
    app = Flask(__name__)
    CORS(app)

    app.config["STORE_FACTORY"] = store_factory or JsonFileStore
    app.register_blueprint(api)

    if start_worker:
        start_queue_worker()
    return app


if __name__ == '__main__':
    port = int(os.getenv("PORT", 5050))
    log_event(
        logging.INFO,
        "server_startup",
        groq_ready=bool(groq_client),
        gemini_ready=bool(gemini_model),
        data_dir=str(DATA_DIR),
        port=port,
    )

    print(f"""
    ╔═══════════════════════════════════════════════════╗
    ║                  🧠 MINDFLOW                      ║
    ║        Dump your thoughts, find your flow         ║
    ╠═══════════════════════════════════════════════════╣
    ║   Groq (Whisper):  {'✅ Ready' if groq_client else '❌ No API Key'}                    ║
    ║   Gemini:          {'✅ Ready' if gemini_model else '❌ No API Key'}                    ║
    ╠═══════════════════════════════════════════════════╣
    ║   Server: http://localhost:{port}                    ║
    ╚═══════════════════════════════════════════════════╝
    """)
    create_app().run(debug=True, port=port, threaded=True, use_reloader=False)
