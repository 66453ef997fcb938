from flask import Flask, current_app, request, jsonify, g
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
import asyncio
import os
import logging
import json
import time
import uuid
from dotenv import load_dotenv
from typing import Any, Optional, Tuple

from rag.config import RAGConfig
from rag.pipeline import RAGPipeline

# Load environment variables from .env file
load_dotenv()

APP_VERSION = "0.2.0"

log_level = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(level=log_level)
logger = logging.getLogger("backend")


def _check_api_key_only() -> Optional[Tuple[Any, int]]:
    required_key = os.getenv("API_KEY") or ""
    if not required_key:
        return None
    provided = request.headers.get("X-API-Key", "")
    if provided != required_key:
        return jsonify({"error": "Unauthorized", "code": "API_KEY_INVALID"}), 401
    return None


def _dynamic_limit(env_name: str, default: int) -> Optional[str]:
    try:
        v = int(os.getenv(env_name, str(default)) or default)
    except ValueError:
        v = default
    if v <= 0:
        return None  # no limit
    return f"{v} per minute"


def create_app(pipeline: RAGPipeline) -> Flask:
    """Build the Flask app around an already-ingested pipeline."""
    app = Flask(__name__)
    app.extensions["rag_pipeline"] = pipeline

    @app.before_request
    def _start_timer_and_request_id():
        g._start_time = time.time()
        g.request_id = str(uuid.uuid4())

    @app.after_request
    def _log_request(response):
        try:
            duration = int((time.time() - getattr(g, '_start_time', time.time())) * 1000)
            record = {
                "ts": time.strftime('%Y-%m-%dT%H:%M:%S', time.gmtime()) + f".{int((time.time()%1)*1000):03d}Z",
                "level": "INFO",
                "request_id": getattr(g, 'request_id', None),
                "method": request.method,
                "path": request.path,
                "status": response.status_code,
                "latency_ms": duration,
                "remote_addr": request.remote_addr,
                "message": "request"
            }
            logger.info(json.dumps(record))
        except Exception:
            logger.exception("failed to log request")
        return response

    limiter = Limiter(
        get_remote_address,
        app=app,
        default_limits=[],  # all explicit
        storage_uri=os.getenv("RATE_LIMIT_STORAGE_URI", "memory://"),
    )

    # Restrict CORS origins in production by replacing '*' with your frontend URL
    CORS(app, resources={r"/*": {"origins": os.getenv("FRONTEND_ORIGIN", "*")}})

    @app.route("/health", methods=["GET"])
    def health():
        """Liveness & readiness probe."""
        return jsonify({
            "status": "ok",
            "version": APP_VERSION
        }), 200

    @app.route("/", methods=["GET"])
    def index():
        return jsonify({
            "name": "grounded-rag-demo",
            "version": APP_VERSION,
            "endpoints": [
                "/health",
                "/ask",
                "/rag/stats",
            ],
            "message": "Backend operational"
        }), 200

    def ask():
        """Answer a user question from the ingested knowledge.

        Expected JSON body:
        {
            "question": "<string>"
        }
        """
        unauthorized = _check_api_key_only()
        if unauthorized:
            return unauthorized

        if not request.is_json:
            return jsonify({"error": "Content-Type must be application/json"}), 415

        data = request.get_json(silent=True) or {}
        question = (data.get("question") or "").strip()
        if not question:
            return jsonify({"error": "'question' is required and cannot be empty"}), 400

        rag_pipeline = current_app.extensions["rag_pipeline"]
        answer = asyncio.run(rag_pipeline.ask_question(question))
        return jsonify({"answer": answer}), 200

    ask_limit = _dynamic_limit("RATE_LIMIT_ASK_PER_MIN", 60)
    if ask_limit:
        ask = limiter.limit(ask_limit)(ask)
    app.add_url_rule("/ask", view_func=ask, methods=["POST"])

    @app.route("/rag/stats", methods=["GET"])
    def rag_stats():
        rag_pipeline = current_app.extensions["rag_pipeline"]
        return jsonify(rag_pipeline.get_stats()), 200

    return app


def main() -> None:
    cfg = RAGConfig.from_env()
    pipeline = RAGPipeline.from_config(cfg)
    # Startup ingest failures abort the process
    asyncio.run(pipeline.ingest_knowledge())

    app = create_app(pipeline)
    port = int(os.getenv("PORT", "5000"))
    logger.info(f"Server is running on port {port}")
    app.run(host=os.getenv("HOST", "0.0.0.0"), port=port, debug=os.getenv("DEBUG", "false").lower() == "true")


if __name__ == "__main__":
    main()
