"""
Spend Monitor
=============

Daily customer revenue pace monitor.

Modules:
- Revenue: resolve monthly revenue, classify pace, explain big movers
- Watch List: escalations, stale tickets and steep drops
- Monitor: orchestration, report formatting, delivery and scheduling
"""

__version__ = "1.0.0"
