"""
Infrastructure Layer
=====================

Low-level technical concerns:
- Logging setup
- HTTP with bounded retry
"""
