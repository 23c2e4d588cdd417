"""
Watch List Module
=================

Bounded Context for customers that need human attention.

Responsibilities:
- Read escalation and ticket trackers
- Flag heavy escalation weeks, stale tickets and steep revenue drops
"""

__version__ = "1.0.0"
