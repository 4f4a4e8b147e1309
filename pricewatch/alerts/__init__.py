from .telegram import AlertConfig, Notifier, TelegramNotifier, send_test_alert

__all__ = ["AlertConfig", "Notifier", "TelegramNotifier", "send_test_alert"]
