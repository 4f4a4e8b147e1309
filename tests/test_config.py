"""Tests for configuration loading."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from pricewatch.config import (
    FEED_URLS,
    PROJECT_ROOT,
    AssetConfig,
    database_path_from_url,
    load_config,
    parse_assets,
)
from pricewatch.errors import ConfigError


class TestParseAssets:
    """Test the asset/threshold list parsing."""

    def test_parses_matching_lists(self):
        assets = parse_assets("BTCUSDT, ETHUSDT", "70000,4000", "50000, 3000")

        assert assets == (
            AssetConfig("BTCUSDT", 70000.0, 50000.0),
            AssetConfig("ETHUSDT", 4000.0, 3000.0),
        )

    def test_preserves_order(self):
        assets = parse_assets("SOLUSDT,BTCUSDT,ETHUSDT", "1,2,3", "0,0,0")
        assert [a.symbol for a in assets] == ["SOLUSDT", "BTCUSDT", "ETHUSDT"]

    def test_mismatched_max_length_fails(self):
        with pytest.raises(ConfigError, match="do not match"):
            parse_assets("BTCUSDT,ETHUSDT", "70000", "50000,3000")

    def test_mismatched_min_length_fails(self):
        with pytest.raises(ConfigError, match="do not match"):
            parse_assets("BTCUSDT", "70000", "50000,3000")

    def test_unparseable_float_fails(self):
        with pytest.raises(ConfigError, match="MAX_THRESHOLDS"):
            parse_assets("BTCUSDT", "seventy", "50000")

    def test_non_finite_float_fails(self):
        with pytest.raises(ConfigError, match="MIN_THRESHOLDS"):
            parse_assets("BTCUSDT", "70000", "nan")

    def test_empty_symbol_fails(self):
        with pytest.raises(ConfigError, match="empty symbol"):
            parse_assets("BTCUSDT,", "70000,1", "50000,0")

    def test_min_above_max_fails(self):
        with pytest.raises(ConfigError, match="above max"):
            parse_assets("BTCUSDT", "50000", "70000")

    def test_equal_bounds_allowed(self):
        assert parse_assets("BTCUSDT", "50000", "50000")[0].max_threshold == 50000.0

    @pytest.mark.parametrize("missing", ["assets", "max", "min"])
    def test_missing_list_fails(self, missing):
        values = {"assets": "BTCUSDT", "max": "1", "min": "0"}
        values[missing] = None
        with pytest.raises(ConfigError, match="required"):
            parse_assets(values["assets"], values["max"], values["min"])


class TestLoadConfig:
    """Test the full environment loader."""

    def test_defaults(self, base_env):
        config = load_config(base_env)

        assert config.symbols == ["BTCUSDT", "ETHUSDT"]
        assert config.feed_mode == "24hr"
        assert config.feed_url == FEED_URLS["24hr"]
        assert config.check_interval_sec == 60.0
        assert config.request_timeout_sec == 10.0
        assert config.http_port == 8080
        assert config.database_path == PROJECT_ROOT / "data" / "test.db"

    def test_token_not_in_repr(self, base_env):
        assert "test-token" not in repr(load_config(base_env))

    def test_mismatch_fails_before_any_network_call(self, base_env):
        base_env["MAX_THRESHOLDS"] = "70000"

        with patch("requests.Session.request") as mock_request:
            with pytest.raises(ConfigError):
                load_config(base_env)

        mock_request.assert_not_called()

    def test_price_mode_selects_price_url(self, base_env):
        base_env["PRICE_FEED_MODE"] = "price"
        config = load_config(base_env)

        assert config.feed_mode == "price"
        assert config.feed_url == FEED_URLS["price"]

    def test_feed_url_override(self, base_env):
        base_env["PRICE_FEED_URL"] = "http://localhost:9000/ticker"
        assert load_config(base_env).feed_url == "http://localhost:9000/ticker"

    def test_unknown_feed_mode_fails(self, base_env):
        base_env["PRICE_FEED_MODE"] = "1h"
        with pytest.raises(ConfigError, match="PRICE_FEED_MODE"):
            load_config(base_env)

    def test_timeout_must_be_shorter_than_interval(self, base_env):
        base_env["CHECK_INTERVAL_SECONDS"] = "5"
        base_env["REQUEST_TIMEOUT_SECONDS"] = "5"
        with pytest.raises(ConfigError, match="shorter"):
            load_config(base_env)

    def test_bad_interval_fails(self, base_env):
        base_env["CHECK_INTERVAL_SECONDS"] = "soon"
        with pytest.raises(ConfigError, match="CHECK_INTERVAL_SECONDS"):
            load_config(base_env)

    def test_telegram_required_unless_dry_run(self, base_env):
        del base_env["TELEGRAM_TOKEN"]

        with pytest.raises(ConfigError, match="TELEGRAM_TOKEN"):
            load_config(base_env)
        assert load_config(base_env, dry_run=True).telegram_token is None

    @pytest.mark.parametrize("port", ["70000", "65536", "0", "http"])
    def test_bad_http_port_fails(self, base_env, port):
        base_env["HTTP_PORT"] = port
        with pytest.raises(ConfigError, match="HTTP_PORT"):
            load_config(base_env)

    def test_highest_http_port_allowed(self, base_env):
        base_env["HTTP_PORT"] = "65535"
        assert load_config(base_env).http_port == 65535

    def test_bad_log_level_fails(self, base_env):
        base_env["LOG_LEVEL"] = "loud"
        with pytest.raises(ConfigError, match="LOG_LEVEL"):
            load_config(base_env)


class TestDatabasePath:
    """Test DATABASE_URL resolution."""

    def test_sqlite_url_absolute(self):
        assert database_path_from_url("sqlite:////var/lib/prices.db") == Path("/var/lib/prices.db")

    def test_bare_relative_path(self):
        assert database_path_from_url("data/prices.db") == PROJECT_ROOT / "data" / "prices.db"

    def test_other_scheme_rejected(self):
        with pytest.raises(ConfigError, match="postgres"):
            database_path_from_url("postgres://user@localhost/prices")
