"""
Tests for the Watchlist Manager.
"""
import pytest

from services.stock_scorer.stock_scorer import StockScorer
from services.watchlist_manager.watchlist_manager import WatchlistManager
from shared.database.models import WatchlistEntry


@pytest.fixture
def manager(test_db_session):
    """Watchlist manager for the default user."""
    return WatchlistManager(test_db_session, user_id="alice")


@pytest.fixture
def rating(rising_prices, strong_fundamentals, bullish_trend):
    """A computed rating to store with entries."""
    return StockScorer().calculate_score("AAPL", rising_prices, strong_fundamentals, bullish_trend)


class TestWatchlistManager:
    """Test watchlist operations."""

    def test_empty_watchlist(self, manager):
        """A new user has no symbols."""
        assert manager.list_symbols() == []
        assert manager.contains("AAPL") is False

    def test_add_normalizes_symbol(self, manager):
        """Symbols are stored in normalized form."""
        entry = manager.add("  tcs ")

        assert entry.symbol == "TCS"
        assert manager.contains("tcs") is True
        assert manager.list_symbols() == ["TCS"]

    def test_add_appends_exchange_suffix(self, manager):
        """Non-plain tickers get the NSE suffix."""
        manager.add("M&M")
        assert manager.list_symbols() == ["M&M.NS"]

    def test_add_is_idempotent(self, manager, test_db_session):
        """Adding twice keeps a single entry."""
        first = manager.add("AAPL")
        second = manager.add("aapl")

        assert first.id == second.id
        assert test_db_session.query(WatchlistEntry).count() == 1

    def test_insertion_order(self, manager):
        """Symbols list in the order they were added."""
        for symbol in ("MSFT", "AAPL", "INFY.NS"):
            manager.add(symbol)
        manager.add("MSFT")

        assert manager.list_symbols() == ["MSFT", "AAPL", "INFY.NS"]

    def test_add_with_rating(self, manager, rating):
        """The rating's score, stars and label are stored."""
        entry = manager.add("AAPL", rating)

        assert entry.score == pytest.approx(rating.score)
        assert entry.stars == rating.stars
        assert entry.risk_label == rating.risk_label.value
        assert entry.rated_at is not None

    def test_readding_refreshes_rating(self, manager, rating):
        """An existing entry picks up a newly passed rating."""
        manager.add("AAPL")
        entry = manager.add("AAPL", rating)

        assert entry.stars == rating.stars

    def test_remove(self, manager):
        """Removing drops the symbol; removing again reports False."""
        manager.add("AAPL")
        manager.add("MSFT")

        assert manager.remove("aapl") is True
        assert manager.list_symbols() == ["MSFT"]
        assert manager.remove("AAPL") is False

    def test_update_rating(self, manager, rating):
        """Ratings can be refreshed in place."""
        manager.add("AAPL")
        entry = manager.update_rating("AAPL", rating)

        assert entry is not None
        assert entry.score == pytest.approx(rating.score)

    def test_update_rating_unknown_symbol(self, manager, rating):
        """Updating a symbol that is not listed does nothing."""
        assert manager.update_rating("NFLX", rating) is None
        assert manager.list_symbols() == []

    def test_users_are_isolated(self, test_db_session):
        """Each user sees only their own list."""
        alice = WatchlistManager(test_db_session, user_id="alice")
        bob = WatchlistManager(test_db_session, user_id="bob")

        alice.add("AAPL")
        bob.add("MSFT")
        bob.add("AAPL")

        assert alice.list_symbols() == ["AAPL"]
        assert bob.list_symbols() == ["MSFT", "AAPL"]

    def test_invalid_symbol(self, manager):
        """Blank and malformed symbols are rejected."""
        with pytest.raises(ValueError):
            manager.add("")
        with pytest.raises(ValueError):
            manager.add("NOT A SYMBOL")
