"""
Monitor Infrastructure Layer
============================

Chat notifiers, config file management and cron scheduling.
"""

from spend_monitor.monitor.infrastructure.external import (
    ConfigFileHandler,
    MonitorConfigManager,
    MonitorScheduler,
    SlackNotifier,
    TelegramNotifier,
    load_monitor_config,
)

__all__ = [
    "ConfigFileHandler",
    "MonitorConfigManager",
    "MonitorScheduler",
    "SlackNotifier",
    "TelegramNotifier",
    "load_monitor_config",
]
