"""
Telegram Alerts
===============

Best-effort alert channel for threshold breaches.

Messages go out through the Bot API sendMessage method as a GET with
chat_id and text query parameters. The response body is ignored; only
transport-level success matters.
"""

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

import requests

from ..config import REQUEST_TIMEOUT_SECONDS
from ..errors import ConfigError, DeliveryError

# Timezone for alert timestamps
EASTERN_TZ = ZoneInfo("America/New_York")

TELEGRAM_API_URL = "https://api.telegram.org/bot{token}/sendMessage"

logger = logging.getLogger(__name__)


class Notifier(ABC):
    """Fire-and-forget outbound message channel."""

    @abstractmethod
    def send(self, message: str):
        """
        Deliver message.

        Raises:
            DeliveryError: If the channel did not accept it
        """


@dataclass
class AlertConfig:
    """Configuration for alert sending."""
    bot_token: Optional[str] = field(default=None, repr=False)
    chat_id: Optional[str] = None
    dry_run: bool = False
    max_message_length: int = 4000
    timeout: float = REQUEST_TIMEOUT_SECONDS


class TelegramNotifier(Notifier):
    """
    Telegram alert sender for price threshold breaches.

    No queueing, retries or ordering guarantees. Errors never include the
    request URL because it carries the bot token.
    """

    def __init__(self, config: AlertConfig, session: Optional[requests.Session] = None):
        """
        Initialize Telegram alerts.

        Args:
            config: AlertConfig with bot token, chat ID, and settings
            session: HTTP session to reuse (default: a new one)
        """
        self.config = config
        self.session = session or requests.Session()
        self._validate()

    def _validate(self):
        """Validate configuration."""
        if not self.config.dry_run:
            if not self.config.bot_token:
                raise ConfigError("TELEGRAM_TOKEN is required (or use --dry-run)")
            if not self.config.chat_id:
                raise ConfigError("TELEGRAM_CHAT_ID is required (or use --dry-run)")

    def _truncate_message(self, text: str) -> str:
        """Truncate message to Telegram's character limit."""
        if len(text) > self.config.max_message_length:
            return text[:self.config.max_message_length - 20] + "\n... (truncated)"
        return text

    def send(self, message: str):
        """
        Send a plain-text message.

        Raises:
            DeliveryError: On timeout, connection failure or non-2xx status
        """
        text = self._truncate_message(message)

        if self.config.dry_run:
            logger.info(f"[DRY RUN] Would send Telegram message: {text}")
            return

        url = TELEGRAM_API_URL.format(token=self.config.bot_token)
        params = {"chat_id": self.config.chat_id, "text": text}

        try:
            response = self.session.get(url, params=params, timeout=self.config.timeout)
            response.raise_for_status()
        except requests.exceptions.Timeout:
            raise DeliveryError("Telegram request timed out") from None
        except requests.exceptions.HTTPError as e:
            # Log status code without exposing token in URL
            status_code = e.response.status_code if e.response is not None else "unknown"
            raise DeliveryError(f"Telegram HTTP error: {status_code}") from None
        except requests.exceptions.ConnectionError:
            raise DeliveryError("Telegram connection error - network issue") from None
        except requests.exceptions.RequestException:
            raise DeliveryError("Telegram request failed") from None

        logger.info(f"Message sent: {text}")


def send_test_alert(
    bot_token: str = None,
    chat_id: str = None,
    dry_run: bool = False
) -> bool:
    """
    Send a test alert to verify Telegram configuration.

    Args:
        bot_token: Telegram bot token (default: from env)
        chat_id: Telegram chat ID (default: from env)
        dry_run: If True, log message instead of sending

    Returns:
        True if successful
    """
    if bot_token is None:
        bot_token = os.environ.get("TELEGRAM_TOKEN", "")
    if chat_id is None:
        chat_id = os.environ.get("TELEGRAM_CHAT_ID", "")

    try:
        notifier = TelegramNotifier(AlertConfig(
            bot_token=bot_token,
            chat_id=chat_id,
            dry_run=dry_run,
        ))
    except ConfigError as e:
        logger.error(f"Cannot send test alert: {e}")
        return False

    now = datetime.now(EASTERN_TZ).strftime("%Y-%m-%d %H:%M %Z")
    try:
        notifier.send(f"Test alert - price monitor configuration verified ({now}).")
    except DeliveryError as e:
        logger.error(f"Test alert failed: {e}")
        return False
    return True
