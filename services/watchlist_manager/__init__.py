"""
Watchlist Manager Service

Keeps per-user watchlists of normalized symbols with their last rating.
"""

from .watchlist_manager import WatchlistManager

__all__ = ['WatchlistManager']
