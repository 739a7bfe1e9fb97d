"""
Stock Scorer Service.

Rates a stock from its price history, fundamentals and analyst
recommendations:
- Valuation score (P/E, forward P/E, P/B, P/S, ROE)
- Growth score (earnings growth, revenue growth, free cash flow, ROE)
- Momentum score (trailing returns, RSI, MACD, moving averages, target upside)
- Sentiment score (analyst recommendation trend)
- Risk score (volatility, beta, drawdown, Sharpe, leverage)

Produces a composite score (0-1), a star rating, a risk label, a projected
one-year return and a confidence level.
"""
from services.stock_scorer.models import (
    CompositeRating,
    FundamentalSnapshot,
    RecommendationPeriod,
    RiskLabel,
)
from services.stock_scorer.component_scorer import ComponentScorer
from services.stock_scorer.sentiment_aggregator import aggregate_sentiment, market_sentiment
from services.stock_scorer.stock_scorer import StockScorer

__all__ = [
    'StockScorer',
    'ComponentScorer',
    'CompositeRating',
    'FundamentalSnapshot',
    'RecommendationPeriod',
    'RiskLabel',
    'aggregate_sentiment',
    'market_sentiment',
]
