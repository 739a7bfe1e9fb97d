"""
Component Scorers.

Maps raw fundamental, technical and analyst inputs onto five sub-scores
in [0, 1]:
- Valuation score (inverse P/E, forward P/E, P/B, P/S, ROE)
- Growth score (earnings growth, revenue growth, free cash flow, ROE)
- Momentum score (trailing returns, RSI, MACD, MA crossover, target upside)
- Sentiment score (analyst recommendation trend)
- Risk score (volatility, beta, drawdown, Sharpe, leverage); higher is riskier

A missing input never fails a scorer; it contributes a neutral share of
its weight instead. The normalization anchors are calibration constants.
"""
from typing import Iterable, Optional

from services.indicator_calculator.technical_calculator import IndicatorSnapshot
from services.stock_scorer.models import FundamentalSnapshot
from services.stock_scorer.sentiment_aggregator import aggregate_sentiment, RecommendationInput
from shared.utilities.math_utils import clamp, normalize

NEUTRAL = 0.5


def _positive(value: Optional[float]) -> bool:
    return value is not None and value > 0


class ComponentScorer:
    """Stateless scorer for the five rating components."""

    def score_valuation(self, fundamentals: FundamentalSnapshot) -> float:
        """
        Calculate valuation score from earnings, book and sales multiples.

        Cheaper multiples score higher. Non-positive multiples are
        meaningless and treated as absent. Absent inputs contribute 0.5
        of their weight, so the blend stays in [0, 1].

        Returns:
            Valuation score (0-1)
        """
        f = fundamentals
        score = 0.0
        weight = 0.0

        if _positive(f.trailing_pe):
            score += normalize(1 / f.trailing_pe, 1 / 50, 1 / 5) * 0.35
            weight += 0.35
        if _positive(f.forward_pe):
            score += normalize(1 / f.forward_pe, 1 / 40, 1 / 8) * 0.15
            weight += 0.15
        if _positive(f.price_to_book):
            score += normalize(1 / f.price_to_book, 1 / 8, 1 / 0.8) * 0.25
            weight += 0.25
        if _positive(f.price_to_sales):
            score += normalize(1 / f.price_to_sales, 1 / 10, 1 / 0.5) * 0.15
            weight += 0.15
        if _positive(f.return_on_equity):
            score += normalize(f.return_on_equity, 0.05, 0.30) * 0.10
            weight += 0.10

        return clamp(score + NEUTRAL * (1.0 - weight))

    def score_growth(self, fundamentals: FundamentalSnapshot) -> float:
        """
        Calculate growth score as the weighted mean of available inputs.

        Earnings growth (0.4), revenue growth (0.3), positive free cash flow
        (0.15, otherwise left out) and ROE (0.15).

        Returns:
            Growth score (0-1); 0.5 when no input is available
        """
        f = fundamentals
        score = 0.0
        weight = 0.0

        if f.earnings_growth is not None:
            score += normalize(f.earnings_growth, -0.30, 0.50) * 0.4
            weight += 0.4
        if f.revenue_growth is not None:
            score += normalize(f.revenue_growth, -0.20, 0.40) * 0.3
            weight += 0.3
        if _positive(f.free_cash_flow):
            score += 0.15
            weight += 0.15
        if f.return_on_equity is not None:
            score += normalize(f.return_on_equity, 0.0, 0.35) * 0.15
            weight += 0.15

        if weight == 0:
            return NEUTRAL
        return clamp(score / weight)

    def score_momentum(
        self,
        indicators: IndicatorSnapshot,
        current_price: Optional[float] = None,
        target_mean_price: Optional[float] = None
    ) -> float:
        """
        Calculate momentum score from trend and oscillator signals.

        Args:
            indicators: Indicator snapshot of the price series
            current_price: Latest price (needed for MA crossover and upside)
            target_mean_price: Analyst mean target price

        Returns:
            Momentum score (0-1)
        """
        score = 0.0

        # Trailing returns; an unset window scores neutral
        for value, low, high, weight in (
            (indicators.return_12m, -0.5, 1.0, 0.20),
            (indicators.return_6m, -0.3, 0.8, 0.15),
            (indicators.return_3m, -0.2, 0.5, 0.10),
        ):
            score += (normalize(value, low, high) if value is not None else NEUTRAL) * weight

        score += normalize(indicators.rsi, 20, 80) * 0.20
        score += 0.10 if indicators.macd_histogram > 0 else 0.05

        # Moving-average crossover
        if indicators.has_moving_averages and _positive(current_price):
            above_sma_50 = current_price > indicators.sma_50
            golden_stack = indicators.sma_50 > indicators.sma_200
            if above_sma_50 and golden_stack:
                score += 0.15
            elif above_sma_50 or golden_stack:
                score += 0.075
            else:
                score += 0.025
        else:
            score += 0.05

        # Analyst target upside
        if _positive(target_mean_price) and _positive(current_price):
            upside = (target_mean_price - current_price) / current_price
            score += normalize(upside, -0.3, 0.5) * 0.05

        return clamp(score)

    def score_sentiment(self, trend: Iterable[RecommendationInput]) -> float:
        """Sentiment score is the aggregated analyst sentiment."""
        return aggregate_sentiment(trend)

    def score_risk(
        self,
        indicators: IndicatorSnapshot,
        fundamentals: FundamentalSnapshot
    ) -> float:
        """
        Calculate risk score; higher means riskier.

        Volatility (0.30), distance of beta from 1 (0.20), max drawdown
        (0.25), inverted Sharpe (0.15) and debt-to-equity (0.10). A
        non-positive Sharpe ratio takes the full Sharpe contribution.

        Returns:
            Risk score (0-1)
        """
        risk = 0.0

        if indicators.volatility is not None:
            risk += normalize(indicators.volatility, 0.10, 0.80) * 0.30
        else:
            risk += 0.15 * 0.30

        beta = fundamentals.beta if fundamentals.beta is not None else 1.0
        risk += normalize(abs(beta - 1), 0.0, 1.5) * 0.20

        risk += normalize(indicators.max_drawdown, 0.0, 0.60) * 0.25

        sharpe = indicators.sharpe_ratio
        risk += (1 - normalize(sharpe, -1, 3) if sharpe > 0 else 1.0) * 0.15

        if fundamentals.debt_to_equity is not None:
            risk += normalize(fundamentals.debt_to_equity, 0.0, 2.0) * 0.10
        else:
            risk += NEUTRAL * 0.10

        return clamp(risk)
