"""
The Mindful Trader

Trading-performance analytics for a trade journal: P&L, win/loss statistics,
time-of-day patterns, market-condition correlation and a discipline score
built from pre- and post-trade journals.

Advisory only. Nothing here places or manages orders.
"""

__version__ = "0.1.0"
__author__ = "Mindful Trader Team"
