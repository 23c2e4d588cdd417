"""
Revenue Pace Module
===================

Bounded Context for month-to-date revenue pace.

Responsibilities:
- Resolve a customer's monthly revenue (Tableau first, billing agent fallback)
- Prorate the prior month and classify the change
- Explain big movers with their most significant service
"""

__version__ = "1.0.0"
