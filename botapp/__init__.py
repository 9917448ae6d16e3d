"""Delivery and process entry point for the parking monitor."""

from .notifications import LoggingNotifier, TelegramNotifier, build_notifier

__all__ = ["LoggingNotifier", "TelegramNotifier", "build_notifier"]
