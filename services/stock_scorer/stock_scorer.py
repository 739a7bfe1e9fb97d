"""
Stock Composite Scorer.

Combines five component scores into one rating:
- Valuation, growth, momentum and analyst sentiment add to the score
- Risk is subtracted

The weighted blend is rescaled onto [0, 1] and turned into a star rating,
a risk label, a projected one-year return and a confidence level.
"""
from typing import Optional, Any, Iterable, List, Mapping, Union
import logging

from services.indicator_calculator.technical_calculator import (
    IndicatorSnapshot,
    PriceInput,
    TechnicalIndicatorCalculator,
)
from services.stock_scorer.component_scorer import ComponentScorer, NEUTRAL
from services.stock_scorer.models import (
    CompositeRating,
    FundamentalSnapshot,
    RecommendationPeriod,
    RiskLabel,
)
from services.stock_scorer.sentiment_aggregator import RecommendationInput, to_recommendation_trend
from shared.configs.models import ScoringConfig
from shared.monitoring.structured_logger import StructuredLogger
from shared.utilities.math_utils import clamp, round_half_up

logger = logging.getLogger(__name__)

BASE_CONFIDENCE = 50

FundamentalsInput = Union[FundamentalSnapshot, Mapping[str, Any], None]


class StockScorer:
    """
    Calculates composite ratings for stocks.

    The scorer holds only configuration; every call to `calculate_score`
    is independent and may run concurrently with others.
    """

    def __init__(self, config: Optional[ScoringConfig] = None):
        """
        Initialize the scorer.

        Args:
            config: Scoring configuration (calibrated defaults when omitted)
        """
        self.config = config or ScoringConfig()
        self.config.validate_weights_sum()
        self.calculator = TechnicalIndicatorCalculator(self.config.indicators)
        self.components = ComponentScorer()

    def calculate_score(
        self,
        symbol: str,
        prices: Optional[PriceInput] = None,
        fundamentals: FundamentalsInput = None,
        recommendations: Optional[Iterable[RecommendationInput]] = None,
        current_price: Optional[float] = None,
    ) -> CompositeRating:
        """
        Calculate the composite rating for one symbol.

        Args:
            symbol: Stock symbol
            prices: Daily closes, oldest first
            fundamentals: FundamentalSnapshot or a fundamentals mapping
            recommendations: Analyst recommendation trend
            current_price: Latest price (defaults to the last close)

        Returns:
            CompositeRating

        Raises:
            ValueError: If a close is non-positive or a recommendation count is negative
        """
        with StructuredLogger.symbol_context(symbol):
            return self._score(symbol, prices, fundamentals, recommendations, current_price)

    def _score(
        self,
        symbol: str,
        prices: Optional[PriceInput],
        fundamentals: FundamentalsInput,
        recommendations: Optional[Iterable[RecommendationInput]],
        current_price: Optional[float],
    ) -> CompositeRating:
        if not isinstance(fundamentals, FundamentalSnapshot):
            fundamentals = FundamentalSnapshot.from_mapping(fundamentals)
        trend = to_recommendation_trend(recommendations or [])
        indicators = self.calculator.calculate_all_indicators(prices if prices is not None else [])

        if current_price is None or current_price <= 0:
            current_price = indicators.last_close

        has_data = indicators.price_points > 0 or not fundamentals.is_empty or len(trend) > 0
        if not has_data:
            logger.warning(f"No price, fundamental or analyst data for {symbol}; returning neutral rating")
            return self._build_rating(
                symbol, NEUTRAL, NEUTRAL, NEUTRAL, NEUTRAL, NEUTRAL,
                indicators, fundamentals, trend, current_price, has_data=False,
            )

        valuation = self.components.score_valuation(fundamentals)
        growth = self.components.score_growth(fundamentals)
        momentum = self.components.score_momentum(
            indicators, current_price, fundamentals.target_mean_price
        )
        sentiment = self.components.score_sentiment(trend)
        risk = self.components.score_risk(indicators, fundamentals)

        rating = self._build_rating(
            symbol, valuation, growth, momentum, sentiment, risk,
            indicators, fundamentals, trend, current_price, has_data=True,
        )
        logger.debug(
            f"Scored {symbol}: score={rating.score:.3f} stars={rating.stars} "
            f"label={rating.risk_label.value} confidence={rating.confidence}"
        )
        return rating

    def _build_rating(
        self,
        symbol: str,
        valuation: float,
        growth: float,
        momentum: float,
        sentiment: float,
        risk: float,
        indicators: IndicatorSnapshot,
        fundamentals: FundamentalSnapshot,
        trend: List[RecommendationPeriod],
        current_price: Optional[float],
        has_data: bool,
    ) -> CompositeRating:
        score = self._calculate_composite_score(valuation, growth, momentum, sentiment, risk)
        explanation = self._build_explanation(indicators, fundamentals, sentiment) if has_data else []

        return CompositeRating(
            symbol=symbol,
            valuation=valuation,
            growth=growth,
            momentum=momentum,
            sentiment=sentiment,
            risk=risk,
            score=score,
            stars=self.to_stars(score),
            risk_label=self._risk_label(score),
            projected_return=self._calculate_projected_return(
                indicators, fundamentals, current_price, valuation, growth, sentiment
            ),
            confidence=self._calculate_confidence(indicators, fundamentals, trend),
            explanation=tuple(explanation),
            has_data=has_data,
            current_price=current_price,
            recommendation_periods=len(trend),
            indicators=indicators,
            fundamentals=fundamentals,
        )

    def _calculate_composite_score(
        self,
        valuation: float,
        growth: float,
        momentum: float,
        sentiment: float,
        risk: float
    ) -> float:
        """
        Blend sub-scores and rescale onto [0, 1].

        The affine rescale recentres the blend, whose typical range sits
        below 1 because of the subtracted risk term.

        Returns:
            Final score (0-1)
        """
        w = self.config.weights
        raw = (
            w.valuation * valuation
            + w.growth * growth
            + w.momentum * momentum
            + w.sentiment * sentiment
            - w.risk * risk
        )
        return clamp(raw * self.config.rescale_multiplier + self.config.rescale_offset)

    @staticmethod
    def to_stars(score: float) -> float:
        """Convert a [0, 1] score into 0.0-5.0 stars in 0.1 steps, halves rounding up."""
        return round_half_up(clamp(score) * 50) / 10

    def _risk_label(self, score: float) -> RiskLabel:
        thresholds = self.config.risk_labels
        if score >= thresholds.high_reward:
            return RiskLabel.HIGH_RISK_HIGH_REWARD
        if score >= thresholds.moderate:
            return RiskLabel.MODERATE
        if score >= thresholds.balanced:
            return RiskLabel.BALANCED
        if score >= thresholds.cautious:
            return RiskLabel.CAUTIOUS
        return RiskLabel.HIGH_RISK

    def _calculate_projected_return(
        self,
        indicators: IndicatorSnapshot,
        fundamentals: FundamentalSnapshot,
        current_price: Optional[float],
        valuation: float,
        growth: float,
        sentiment: float
    ) -> int:
        """
        Project a one-year return in whole percent.

        When an analyst target is known, the model projection is blended
        60/40 with the target-implied upside.
        """
        momentum_12m = indicators.return_12m or 0.0
        projection = (
            momentum_12m * 0.25
            + (growth - 0.5) * 0.35
            + (valuation - 0.5) * 0.30
            + (sentiment - 0.5) * 0.10
        )

        target = fundamentals.target_mean_price
        if target and current_price:
            upside = (target - current_price) / current_price
            projection = projection * 0.6 + upside * 0.4

        return round_half_up(projection * 100)

    def _calculate_confidence(
        self,
        indicators: IndicatorSnapshot,
        fundamentals: FundamentalSnapshot,
        trend: List[RecommendationPeriod]
    ) -> int:
        """
        Calculate confidence from data completeness.

        Returns:
            Confidence in percent, capped at the configured maximum
        """
        confidence = BASE_CONFIDENCE
        if indicators.price_points >= 200:
            confidence += 15
        if len(trend) >= 3:
            confidence += 10
        if fundamentals.trailing_pe is not None and fundamentals.price_to_book is not None:
            confidence += 10
        if fundamentals.earnings_growth is not None:
            confidence += 10
        if fundamentals.target_mean_price is not None:
            confidence += 5
        return min(self.config.max_confidence, confidence)

    def _build_explanation(
        self,
        indicators: IndicatorSnapshot,
        fundamentals: FundamentalSnapshot,
        sentiment: float
    ) -> List[str]:
        f = fundamentals
        explanation = []

        if f.trailing_pe is not None:
            explanation.append(f"P/E: {f.trailing_pe:.2f}")
        if f.forward_pe is not None:
            explanation.append(f"Fwd P/E: {f.forward_pe:.2f}")
        if f.price_to_book is not None:
            explanation.append(f"P/B: {f.price_to_book:.2f}")
        if f.return_on_equity is not None:
            explanation.append(f"ROE: {f.return_on_equity * 100:.1f}%")
        if indicators.return_12m:
            explanation.append(f"12M Return: {indicators.return_12m * 100:.1f}%")
        if indicators.rsi:
            explanation.append(f"RSI: {indicators.rsi:.0f}")
        if indicators.macd:
            explanation.append(f"MACD: {'Bullish' if indicators.macd_histogram > 0 else 'Bearish'}")
        if f.earnings_growth is not None:
            explanation.append(f"Earnings Growth: {f.earnings_growth * 100:.1f}%")
        explanation.append(f"Analyst Sentiment: {sentiment * 100:.0f}%")
        if indicators.sharpe_ratio:
            explanation.append(f"Sharpe: {indicators.sharpe_ratio:.2f}")

        return explanation
