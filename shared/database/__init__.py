"""Database models and connection management for the watchlist store."""
