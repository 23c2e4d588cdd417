"""
Monitor Application Layer
=========================

Contains:
- SpendMonitorPipeline: one monitor run end to end
- ReportFormatter: plain-text chat message
- INotifier / deliver: report delivery
"""

from spend_monitor.monitor.application.report import ReportFormatter
from spend_monitor.monitor.application.services import (
    INotifier,
    SpendMonitorPipeline,
    deliver,
)

__all__ = [
    "INotifier",
    "ReportFormatter",
    "SpendMonitorPipeline",
    "deliver",
]
