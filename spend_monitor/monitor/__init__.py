"""
Monitor Module
==============

Bounded Context that runs the daily spend check.

Responsibilities:
- Load and hot-reload the monitor configuration
- Sequence revenue resolution, pace classification and the watch list
- Format the report and deliver it to Slack and Telegram
- Schedule recurring runs
"""

__version__ = "1.0.0"
