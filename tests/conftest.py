"""
Pytest configuration and fixtures.
"""
import logging

import pytest
import numpy as np
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from shared.database.models import Base
from shared.monitoring.structured_logger import StructuredLogger


@pytest.fixture(scope="session")
def test_db_engine():
    """Create test database engine."""
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine, checkfirst=True)
    yield engine
    Base.metadata.drop_all(bind=engine, checkfirst=True)


@pytest.fixture(scope="function")
def test_db_session(test_db_engine):
    """Create test database session."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_db_engine)
    session = SessionLocal()
    yield session

    # Clean up all data after each test
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


@pytest.fixture(autouse=True)
def reset_structured_loggers():
    """Let each test configure logging from scratch."""
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    StructuredLogger.reset()
    StructuredLogger.clear_context()
    yield
    StructuredLogger.reset()
    StructuredLogger.clear_context()
    for handler in list(root.handlers):
        if handler not in saved_handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(saved_level)


@pytest.fixture
def rising_prices():
    """300 closes rising 0.1% a day from 100."""
    return [100.0 * (1.001 ** i) for i in range(300)]


@pytest.fixture
def falling_prices():
    """300 closes falling 0.2% a day from 200."""
    return [200.0 * (0.998 ** i) for i in range(300)]


@pytest.fixture
def constant_prices():
    """300 closes fixed at 100."""
    return [100.0] * 300


@pytest.fixture
def noisy_prices():
    """300 closes from a seeded random walk with upward drift."""
    rng = np.random.default_rng(42)
    returns = rng.normal(0.0005, 0.015, 300)
    return list(100.0 * np.cumprod(1 + returns))


@pytest.fixture
def strong_fundamentals():
    """Cheap, fast-growing, low-leverage company."""
    return {
        "trailingPE": 8.0,
        "forwardPE": 7.0,
        "priceToBook": 1.0,
        "priceToSalesTrailing12Months": 0.8,
        "returnOnEquity": 0.28,
        "debtToEquity": 0.2,
        "freeCashflow": 5_000_000_000,
        "earningsGrowth": 0.45,
        "revenueGrowth": 0.35,
        "beta": 1.0,
        "targetMeanPrice": 170.0,
    }


@pytest.fixture
def weak_fundamentals():
    """Expensive, shrinking, highly leveraged company."""
    return {
        "trailingPE": 80.0,
        "forwardPE": 60.0,
        "priceToBook": 12.0,
        "priceToSalesTrailing12Months": 15.0,
        "returnOnEquity": -0.10,
        "debtToEquity": 3.5,
        "freeCashflow": -2_000_000_000,
        "earningsGrowth": -0.40,
        "revenueGrowth": -0.25,
        "beta": 2.6,
        "targetMeanPrice": 60.0,
    }


@pytest.fixture
def bullish_trend():
    """Three months of mostly buy recommendations."""
    return [
        {"period": "0m", "strongBuy": 10, "buy": 15, "hold": 5, "sell": 0, "strongSell": 0},
        {"period": "-1m", "strongBuy": 9, "buy": 14, "hold": 6, "sell": 1, "strongSell": 0},
        {"period": "-2m", "strongBuy": 8, "buy": 14, "hold": 7, "sell": 1, "strongSell": 0},
    ]


@pytest.fixture
def bearish_trend():
    """Three months of mostly sell recommendations."""
    return [
        {"period": "0m", "strongBuy": 0, "buy": 1, "hold": 4, "sell": 10, "strongSell": 8},
        {"period": "-1m", "strongBuy": 0, "buy": 1, "hold": 5, "sell": 9, "strongSell": 7},
        {"period": "-2m", "strongBuy": 0, "buy": 2, "hold": 5, "sell": 8, "strongSell": 6},
    ]
