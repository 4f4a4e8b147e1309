"""
Configuration for the pricewatch monitor

All settings are read once at startup from the environment (and an optional
.env file in the project root). Anything malformed raises ConfigError before
the monitor touches the network.
"""

import logging
import math
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional, Tuple

from dotenv import load_dotenv

from .errors import ConfigError

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent

# =============================================================================
# Defaults
# =============================================================================

# Binance public ticker endpoints, one per response shape
FEED_URLS = {
    "24hr": "https://api.binance.com/api/v3/ticker/24hr",
    "price": "https://api.binance.com/api/v3/ticker/price",
}
DEFAULT_FEED_MODE = "24hr"

CHECK_INTERVAL_SECONDS = 60.0
REQUEST_TIMEOUT_SECONDS = 10.0

DEFAULT_DATABASE_URL = "data/prices.db"

HTTP_HOST = "0.0.0.0"
HTTP_PORT = 8080

LOG_LEVEL = "INFO"
LOG_FILE = "logs/pricewatch.log"


# =============================================================================
# Data Models
# =============================================================================

@dataclass(frozen=True)
class AssetConfig:
    """One monitored symbol and its alert bounds."""
    symbol: str
    max_threshold: float
    min_threshold: float


@dataclass(frozen=True)
class Config:
    """All configuration settings."""

    assets: Tuple[AssetConfig, ...]

    # -------------------------------------------------------------------------
    # Storage
    # -------------------------------------------------------------------------
    database_url: str = DEFAULT_DATABASE_URL

    # -------------------------------------------------------------------------
    # Price feed
    # -------------------------------------------------------------------------
    feed_mode: str = DEFAULT_FEED_MODE
    feed_url: str = FEED_URLS[DEFAULT_FEED_MODE]
    request_timeout_sec: float = REQUEST_TIMEOUT_SECONDS

    # Time between cycles (seconds)
    check_interval_sec: float = CHECK_INTERVAL_SECONDS

    # -------------------------------------------------------------------------
    # Telegram
    # -------------------------------------------------------------------------
    telegram_token: Optional[str] = field(default=None, repr=False)
    telegram_chat_id: Optional[str] = None

    # -------------------------------------------------------------------------
    # Query endpoint
    # -------------------------------------------------------------------------
    http_host: str = HTTP_HOST
    http_port: int = HTTP_PORT

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    log_level: str = LOG_LEVEL
    log_file: str = LOG_FILE

    @property
    def symbols(self) -> List[str]:
        return [asset.symbol for asset in self.assets]

    @property
    def database_path(self) -> Path:
        """Filesystem path of the SQLite database named by database_url."""
        return database_path_from_url(self.database_url)


# =============================================================================
# Parsing helpers
# =============================================================================

def database_path_from_url(url: str) -> Path:
    """
    Resolve a database URL to a file path.

    Accepts "sqlite:///relative/or/absolute.db" or a bare path. Relative
    paths are resolved against the project root.
    """
    if url.startswith("sqlite:///"):
        url = url[len("sqlite:///"):]
    elif "://" in url:
        raise ConfigError(f"Unsupported DATABASE_URL scheme: {url.split('://', 1)[0]}")

    if not url:
        raise ConfigError("DATABASE_URL is empty")

    path = Path(url)
    if not path.is_absolute():
        path = PROJECT_ROOT / path
    return path


def _split_list(raw: Optional[str], name: str) -> List[str]:
    if raw is None or not raw.strip():
        raise ConfigError(f"{name} is required")
    return [part.strip() for part in raw.split(",")]


def _parse_floats(raw: Optional[str], name: str) -> List[float]:
    values = []
    for part in _split_list(raw, name):
        try:
            value = float(part)
        except ValueError:
            raise ConfigError(f"Error converting {name}: {part!r} is not a number") from None
        if not math.isfinite(value):
            raise ConfigError(f"Error converting {name}: {part!r} is not a finite number")
        values.append(value)
    return values


def _parse_number(env: Mapping[str, str], name: str, default: float, cast=float):
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = cast(raw.strip())
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {raw!r}")
    return value


def parse_assets(assets_raw: Optional[str], max_raw: Optional[str], min_raw: Optional[str]) -> Tuple[AssetConfig, ...]:
    """
    Build the asset list from the three comma-separated settings.

    Raises:
        ConfigError: On empty symbols, unparseable floats, mismatched list
            lengths or a min threshold above its max threshold.
    """
    symbols = _split_list(assets_raw, "ASSETS")
    max_thresholds = _parse_floats(max_raw, "MAX_THRESHOLDS")
    min_thresholds = _parse_floats(min_raw, "MIN_THRESHOLDS")

    if len(symbols) != len(max_thresholds) or len(symbols) != len(min_thresholds):
        raise ConfigError(
            "The number of assets and price limits do not match "
            f"(assets={len(symbols)}, max={len(max_thresholds)}, min={len(min_thresholds)})"
        )

    assets = []
    for symbol, max_threshold, min_threshold in zip(symbols, max_thresholds, min_thresholds):
        if not symbol:
            raise ConfigError("ASSETS contains an empty symbol")
        if min_threshold > max_threshold:
            raise ConfigError(
                f"{symbol}: min threshold {min_threshold} is above max threshold {max_threshold}"
            )
        assets.append(AssetConfig(symbol, max_threshold, min_threshold))

    return tuple(assets)


# =============================================================================
# Loader
# =============================================================================

def load_env_file(path: Path = PROJECT_ROOT / ".env") -> bool:
    """Load a .env file into os.environ if present. Existing variables win."""
    if path.exists():
        return load_dotenv(path)
    return False


def load_config(env: Optional[Mapping[str, str]] = None, dry_run: bool = False) -> Config:
    """
    Load configuration from the environment.

    Args:
        env: Mapping to read instead of os.environ (the .env file is only
            loaded when this is None)
        dry_run: If True, Telegram credentials are optional

    Returns:
        Validated Config

    Raises:
        ConfigError: If any setting is missing or malformed
    """
    if env is None:
        load_env_file()
        env = os.environ

    assets = parse_assets(env.get("ASSETS"), env.get("MAX_THRESHOLDS"), env.get("MIN_THRESHOLDS"))

    feed_mode = (env.get("PRICE_FEED_MODE") or DEFAULT_FEED_MODE).strip().lower()
    if feed_mode not in FEED_URLS:
        raise ConfigError(
            f"PRICE_FEED_MODE must be one of {sorted(FEED_URLS)}, got {feed_mode!r}"
        )
    feed_url = (env.get("PRICE_FEED_URL") or FEED_URLS[feed_mode]).strip()

    check_interval = _parse_number(env, "CHECK_INTERVAL_SECONDS", CHECK_INTERVAL_SECONDS)
    request_timeout = _parse_number(env, "REQUEST_TIMEOUT_SECONDS", REQUEST_TIMEOUT_SECONDS)
    if request_timeout >= check_interval:
        raise ConfigError(
            f"REQUEST_TIMEOUT_SECONDS ({request_timeout}) must be shorter than "
            f"CHECK_INTERVAL_SECONDS ({check_interval})"
        )

    http_port = _parse_number(env, "HTTP_PORT", HTTP_PORT, cast=int)
    if http_port > 65535:
        raise ConfigError(f"HTTP_PORT must be between 1 and 65535, got {http_port}")

    database_url = (env.get("DATABASE_URL") or DEFAULT_DATABASE_URL).strip()
    database_path_from_url(database_url)  # validate early

    telegram_token = env.get("TELEGRAM_TOKEN") or None
    telegram_chat_id = env.get("TELEGRAM_CHAT_ID") or None
    if not dry_run:
        if not telegram_token:
            raise ConfigError("TELEGRAM_TOKEN is required (or use --dry-run)")
        if not telegram_chat_id:
            raise ConfigError("TELEGRAM_CHAT_ID is required (or use --dry-run)")

    log_level = (env.get("LOG_LEVEL") or LOG_LEVEL).strip().upper()
    if log_level not in ("DEBUG", "INFO", "WARNING", "ERROR"):
        raise ConfigError(f"LOG_LEVEL must be DEBUG, INFO, WARNING or ERROR, got {log_level!r}")

    config = Config(
        assets=assets,
        database_url=database_url,
        feed_mode=feed_mode,
        feed_url=feed_url,
        request_timeout_sec=request_timeout,
        check_interval_sec=check_interval,
        telegram_token=telegram_token,
        telegram_chat_id=telegram_chat_id,
        http_host=(env.get("HTTP_HOST") or HTTP_HOST).strip(),
        http_port=http_port,
        log_level=log_level,
        log_file=(env.get("LOG_FILE") or LOG_FILE).strip(),
    )
    logger.debug(f"Loaded config for {len(config.assets)} assets: {', '.join(config.symbols)}")
    return config
