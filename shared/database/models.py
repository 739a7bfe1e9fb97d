"""
Database models for the stock rating engine.
"""
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Float, DateTime, Index, UniqueConstraint
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class WatchlistEntry(Base):
    """Watchlist entry: one symbol a user follows, with its last rating."""
    __tablename__ = "watchlist_entries"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(50), nullable=False, index=True, comment="User identifier")
    symbol = Column(String(20), nullable=False, index=True, comment="Normalized symbol (e.g., AAPL, RELIANCE.NS)")
    position = Column(Integer, nullable=False, default=0, comment="Insertion order within the user's list")

    # Last known rating
    score = Column(Float, comment="Last composite score (0-1)")
    stars = Column(Float, comment="Last star rating (0-5)")
    risk_label = Column(String(30), comment="Last risk label")
    rated_at = Column(DateTime, comment="When the stored rating was computed")

    added_date = Column(DateTime, default=_utcnow, index=True, comment="Date added to watchlist")
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        UniqueConstraint('user_id', 'symbol', name='uq_watchlist_user_symbol'),
        Index('ix_watchlist_user_position', 'user_id', 'position'),
    )

    def __repr__(self) -> str:
        return f"<WatchlistEntry(user_id={self.user_id!r}, symbol={self.symbol!r}, stars={self.stars})>"
