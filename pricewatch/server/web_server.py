"""
Query endpoint for the latest stored price

GET /get-prices?symbol=BTCUSDT -> {"symbol": ..., "price": ..., "variation": ...}

Runs on a background thread next to the monitor loop. Reads go straight to
the price store; SQLite handles reader/writer isolation.
"""

import logging
import threading
from typing import Optional

from flask import Flask, jsonify, request
from werkzeug.serving import make_server

from ..db.price_db import PriceStore
from ..errors import QueryError

logger = logging.getLogger(__name__)


def create_app(store: PriceStore) -> Flask:
    """Build the Flask app serving reads from store."""
    app = Flask(__name__)

    # Flask adds HEAD and OPTIONS to GET routes; only GET is served
    @app.before_request
    def reject_non_get():
        if request.url_rule is not None and request.method != "GET":
            response = jsonify({"error": "Method not allowed"})
            response.headers["Allow"] = "GET"
            return response, 405

    @app.route("/get-prices", methods=["GET"])
    def get_prices():
        """Latest observation for ?symbol="""
        symbol = request.args.get("symbol", "").strip()
        if not symbol:
            return jsonify({"error": "'symbol' parameter is required"}), 400

        try:
            observation = store.latest(symbol)
        except QueryError as e:
            logger.error(f"Error fetching data for {symbol}: {e}")
            return jsonify({"error": "Error fetching data"}), 500

        if observation is None:
            return jsonify({"error": "Symbol not found"}), 404

        return jsonify(observation.to_dict())

    @app.route("/health", methods=["GET"])
    def health():
        return jsonify({"status": "ok"})

    return app


class QueryServer:
    """Serve a Flask app on a daemon thread with a clean shutdown."""

    def __init__(self, app: Flask, host: str = "0.0.0.0", port: int = 8080):
        self.host = host
        self._server = make_server(host, port, app, threaded=True)
        self.port = self._server.server_port
        self._thread: Optional[threading.Thread] = None

    def start(self):
        self._thread = threading.Thread(
            target=self._server.serve_forever,
            daemon=True,
            name="QueryServer",
        )
        self._thread.start()
        logger.info(f"Server starting at {self.host}:{self.port}")

    def shutdown(self):
        self._server.shutdown()
        if self._thread is not None:
            self._thread.join(timeout=5)
        logger.info("Query server stopped")
