"""
Watchlist Manager for tracking the symbols a user follows.

Each user has an ordered list of unique, normalized symbols. An entry can
carry the last rating computed for its symbol (score, stars, risk label),
so a listing shows where each stock stood without re-scoring it.
"""

from datetime import datetime, timezone
from typing import List, Optional
import logging

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from services.stock_scorer.models import CompositeRating
from shared.database.models import WatchlistEntry
from shared.utilities.validators import normalize_symbol, validate_symbol

logger = logging.getLogger(__name__)


class WatchlistManager:
    """
    Manages one user's watchlist in the database.
    """

    def __init__(self, db_session: Session, user_id: str = "default"):
        """
        Initialize the watchlist manager.

        Args:
            db_session: SQLAlchemy database session
            user_id: User identifier for watchlist isolation
        """
        self.db = db_session
        self.user_id = user_id

    def _normalize(self, symbol: str) -> str:
        normalized = normalize_symbol(symbol)
        if not validate_symbol(normalized):
            raise ValueError(f"Invalid symbol: {symbol!r}")
        return normalized

    def _get_entry(self, symbol: str) -> Optional[WatchlistEntry]:
        return self.db.query(WatchlistEntry).filter(
            WatchlistEntry.user_id == self.user_id,
            WatchlistEntry.symbol == symbol,
        ).first()

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.error(f"Failed to {action} for user {self.user_id}")
            raise

    @staticmethod
    def _apply_rating(entry: WatchlistEntry, rating: CompositeRating) -> None:
        entry.score = rating.score
        entry.stars = rating.stars
        entry.risk_label = rating.risk_label.value
        entry.rated_at = datetime.now(timezone.utc).replace(tzinfo=None)

    def add(self, symbol: str, rating: Optional[CompositeRating] = None) -> WatchlistEntry:
        """
        Add a symbol to the watchlist.

        Adding a symbol that is already listed keeps its position; a rating
        passed along still refreshes the stored one.

        Args:
            symbol: Symbol as entered (normalized before storing)
            rating: Optional rating to store with the entry

        Returns:
            The watchlist entry

        Raises:
            ValueError: If the symbol is blank or malformed
        """
        normalized = self._normalize(symbol)

        existing = self._get_entry(normalized)
        if existing:
            logger.info(f"{normalized} already in watchlist")
            if rating is not None:
                self._apply_rating(existing, rating)
                self._commit(f"update rating of {normalized}")
            return existing

        last_position = self.db.query(func.max(WatchlistEntry.position)).filter(
            WatchlistEntry.user_id == self.user_id
        ).scalar()

        entry = WatchlistEntry(
            user_id=self.user_id,
            symbol=normalized,
            position=(last_position + 1) if last_position is not None else 0,
        )
        if rating is not None:
            self._apply_rating(entry, rating)

        self.db.add(entry)
        self._commit(f"add {normalized}")

        logger.info(f"Added {normalized} to watchlist")
        return entry

    def remove(self, symbol: str) -> bool:
        """
        Remove a symbol from the watchlist.

        Args:
            symbol: Symbol as entered

        Returns:
            True if an entry was removed, False if the symbol was not listed
        """
        normalized = self._normalize(symbol)
        entry = self._get_entry(normalized)
        if not entry:
            logger.warning(f"{normalized} not in watchlist")
            return False

        self.db.delete(entry)
        self._commit(f"remove {normalized}")

        logger.info(f"Removed {normalized} from watchlist")
        return True

    def contains(self, symbol: str) -> bool:
        """Check whether a symbol is on the watchlist."""
        return self._get_entry(self._normalize(symbol)) is not None

    def list_entries(self) -> List[WatchlistEntry]:
        """Get the watchlist entries in insertion order."""
        return self.db.query(WatchlistEntry).filter(
            WatchlistEntry.user_id == self.user_id
        ).order_by(WatchlistEntry.position).all()

    def list_symbols(self) -> List[str]:
        """Get the watchlist symbols in insertion order."""
        return [entry.symbol for entry in self.list_entries()]

    def update_rating(self, symbol: str, rating: CompositeRating) -> Optional[WatchlistEntry]:
        """
        Store a fresh rating on an existing entry.

        Args:
            symbol: Symbol as entered
            rating: Rating to store

        Returns:
            Updated entry, or None if the symbol is not listed
        """
        normalized = self._normalize(symbol)
        entry = self._get_entry(normalized)
        if not entry:
            logger.warning(f"Cannot update rating: {normalized} not in watchlist")
            return None

        self._apply_rating(entry, rating)
        self._commit(f"update rating of {normalized}")
        return entry
