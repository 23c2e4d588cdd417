"""
Shared Kernel Module
====================

Generic infrastructure and display helpers used across all bounded
contexts (Revenue, Watch List and Monitor).

DO NOT add revenue or watch-list business rules to the shared kernel.
"""

__version__ = "1.0.0"
