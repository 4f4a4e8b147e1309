"""Tests for the /get-prices query endpoint."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
import requests

from pricewatch.db import PriceStore
from pricewatch.errors import QueryError
from pricewatch.models import PriceObservation
from pricewatch.server import QueryServer, create_app

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def client(price_db):
    app = create_app(price_db)
    app.config["TESTING"] = True
    return app.test_client()


class TestGetPrices:
    """Test status codes and payloads."""

    def test_not_found_then_found(self, client, price_db):
        response = client.get("/get-prices?symbol=BTCUSDT")
        assert response.status_code == 404

        price_db.append(PriceObservation("BTCUSDT", 65000.12, None, T0))

        response = client.get("/get-prices?symbol=BTCUSDT")
        assert response.status_code == 200
        assert response.get_json() == {"symbol": "BTCUSDT", "price": 65000.12}

    def test_variation_included_when_tracked(self, client, price_db):
        price_db.append(PriceObservation("ETHUSDT", 3500.5, 2.75, T0))

        body = client.get("/get-prices?symbol=ETHUSDT").get_json()
        assert body == {"symbol": "ETHUSDT", "price": 3500.5, "variation": 2.75}

    def test_returns_latest_record(self, client, price_db):
        price_db.append(PriceObservation("BTCUSDT", 1.0, None, T0))
        price_db.append(PriceObservation("BTCUSDT", 2.0, None, T0.replace(minute=1)))

        assert client.get("/get-prices?symbol=BTCUSDT").get_json()["price"] == 2.0

    @pytest.mark.parametrize("url", ["/get-prices", "/get-prices?symbol=", "/get-prices?symbol=%20"])
    def test_missing_symbol_is_400(self, client, url):
        response = client.get(url)
        assert response.status_code == 400
        assert "symbol" in response.get_json()["error"]

    @pytest.mark.parametrize("method", ["post", "put", "delete", "patch", "head", "options"])
    def test_non_get_is_405(self, client, method):
        response = getattr(client, method)("/get-prices?symbol=BTCUSDT")
        assert response.status_code == 405

    @pytest.mark.parametrize("method", ["head", "options"])
    def test_implicit_methods_advertise_get_only(self, client, method):
        response = getattr(client, method)("/get-prices?symbol=BTCUSDT")
        assert response.headers["Allow"] == "GET"

    def test_unknown_path_is_404(self, client):
        assert client.head("/prices").status_code == 404

    def test_storage_failure_is_500(self):
        store = MagicMock(spec=PriceStore)
        store.latest.side_effect = QueryError("database is locked")
        client = create_app(store).test_client()

        response = client.get("/get-prices?symbol=BTCUSDT")
        assert response.status_code == 500
        assert "locked" not in response.get_data(as_text=True)

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.get_json() == {"status": "ok"}


class TestQueryServer:
    """Test the background server thread."""

    def test_serves_and_shuts_down(self, price_db):
        price_db.append(PriceObservation("BTCUSDT", 65000.12, None, T0))
        server = QueryServer(create_app(price_db), host="127.0.0.1", port=0)
        server.start()
        try:
            response = requests.get(
                f"http://127.0.0.1:{server.port}/get-prices",
                params={"symbol": "BTCUSDT"},
                timeout=5,
            )
        finally:
            server.shutdown()

        assert response.status_code == 200
        assert response.json()["price"] == 65000.12
