"""
Monitor Domain Layer
====================

Contains:
- Entities: Report
- Value Objects: MonitorConfig and its sections
"""

from spend_monitor.monitor.domain.entities import Report
from spend_monitor.monitor.domain.value_objects import (
    MonitorConfig,
    CustomerConfig,
    TableauConfig,
    TableauViews,
    SlackConfig,
    TelegramConfig,
    Thresholds,
    A2AConfig,
    DEFAULT_BILLING_AGENT_URL,
)

__all__ = [
    "Report",
    "MonitorConfig",
    "CustomerConfig",
    "TableauConfig",
    "TableauViews",
    "SlackConfig",
    "TelegramConfig",
    "Thresholds",
    "A2AConfig",
    "DEFAULT_BILLING_AGENT_URL",
]
