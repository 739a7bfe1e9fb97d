"""
Value objects consumed and produced by the stock scorer.

All of them are immutable. Optional fields mean "unknown", never zero.
"""
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Optional, Dict, Any, Mapping, Tuple
import math

from services.indicator_calculator.technical_calculator import IndicatorSnapshot


class RiskLabel(str, Enum):
    """Risk label derived from the final composite score."""
    HIGH_RISK_HIGH_REWARD = "High Risk–High Reward"
    MODERATE = "Moderate"
    BALANCED = "Balanced"
    CAUTIOUS = "Cautious"
    HIGH_RISK = "High Risk"


def _unwrap(value: Any) -> Optional[float]:
    """Unwrap {'raw': x} envelopes and coerce to float; None/NaN stay None."""
    if isinstance(value, Mapping):
        value = value.get('raw')
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number):
        return None
    return number


@dataclass(frozen=True)
class FundamentalSnapshot:
    """Fundamental metrics for one symbol."""

    trailing_pe: Optional[float] = None
    forward_pe: Optional[float] = None
    price_to_book: Optional[float] = None
    price_to_sales: Optional[float] = None
    return_on_equity: Optional[float] = None
    debt_to_equity: Optional[float] = None
    free_cash_flow: Optional[float] = None
    earnings_growth: Optional[float] = None
    revenue_growth: Optional[float] = None
    beta: Optional[float] = None
    target_mean_price: Optional[float] = None

    # Data-layer (camelCase) key for each field
    SOURCE_KEYS = {
        'trailing_pe': 'trailingPE',
        'forward_pe': 'forwardPE',
        'price_to_book': 'priceToBook',
        'price_to_sales': 'priceToSalesTrailing12Months',
        'return_on_equity': 'returnOnEquity',
        'debt_to_equity': 'debtToEquity',
        'free_cash_flow': 'freeCashflow',
        'earnings_growth': 'earningsGrowth',
        'revenue_growth': 'revenueGrowth',
        'beta': 'beta',
        'target_mean_price': 'targetMeanPrice',
    }

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> 'FundamentalSnapshot':
        """
        Build a snapshot from a fundamentals record.

        Accepts either snake_case field names or the data layer's camelCase
        keys. Values wrapped as {'raw': x} are unwrapped; anything that is
        not a number is treated as absent.

        Args:
            data: Fundamentals mapping (may be None)

        Returns:
            FundamentalSnapshot
        """
        if not data:
            return cls()

        values: Dict[str, Optional[float]] = {}
        for name, source_key in cls.SOURCE_KEYS.items():
            raw = data.get(name, data.get(source_key))
            values[name] = _unwrap(raw)
        return cls(**values)

    @property
    def is_empty(self) -> bool:
        """True when no field is known."""
        return all(getattr(self, f.name) is None for f in fields(self))


@dataclass(frozen=True)
class RecommendationPeriod:
    """Analyst recommendation counts for one period."""

    strong_buy: int = 0
    buy: int = 0
    hold: int = 0
    sell: int = 0
    strong_sell: int = 0
    period: Optional[str] = None

    def __post_init__(self):
        for name in ('strong_buy', 'buy', 'hold', 'sell', 'strong_sell'):
            count = getattr(self, name)
            if count < 0:
                raise ValueError(f"Recommendation count '{name}' must be non-negative, got {count}")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> 'RecommendationPeriod':
        """Build a period from either camelCase or snake_case keys."""
        def count(snake: str, camel: str) -> int:
            value = data.get(snake, data.get(camel))
            return int(value) if value else 0

        return cls(
            strong_buy=count('strong_buy', 'strongBuy'),
            buy=count('buy', 'buy'),
            hold=count('hold', 'hold'),
            sell=count('sell', 'sell'),
            strong_sell=count('strong_sell', 'strongSell'),
            period=data.get('period'),
        )

    @property
    def total(self) -> int:
        return self.strong_buy + self.buy + self.hold + self.sell + self.strong_sell


@dataclass(frozen=True)
class CompositeRating:
    """
    Output of one scoring call.

    Sub-scores and the final score are in [0, 1]. `has_data` is False when
    the rating was produced without any price, fundamental or analyst
    input; such a rating is neutral by construction and should be shown
    as "insufficient data".
    """

    symbol: str
    valuation: float
    growth: float
    momentum: float
    sentiment: float
    risk: float
    score: float
    stars: float
    risk_label: RiskLabel
    projected_return: int
    confidence: int
    explanation: Tuple[str, ...] = ()
    has_data: bool = True
    current_price: Optional[float] = None
    recommendation_periods: int = 0
    indicators: IndicatorSnapshot = field(default_factory=IndicatorSnapshot)
    fundamentals: FundamentalSnapshot = field(default_factory=FundamentalSnapshot)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        return {
            'symbol': self.symbol,
            'valuation_score': self.valuation,
            'growth_score': self.growth,
            'momentum_score': self.momentum,
            'sentiment_score': self.sentiment,
            'risk_score': self.risk,
            'score': self.score,
            'stars': self.stars,
            'risk_label': self.risk_label.value,
            'projected_return': self.projected_return,
            'confidence': self.confidence,
            'explanation': list(self.explanation),
            'has_data': self.has_data,
            'current_price': self.current_price,
            'recommendation_periods': self.recommendation_periods,
            'indicators': self.indicators.to_dict(),
        }
