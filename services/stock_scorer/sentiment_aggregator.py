"""
Analyst sentiment aggregation.
"""
from typing import Iterable, List, Mapping, Any, Sequence, Union

import numpy as np

from services.stock_scorer.models import RecommendationPeriod
from shared.utilities.math_utils import clamp


NEUTRAL_SENTIMENT = 0.5

RecommendationInput = Union[RecommendationPeriod, Mapping[str, Any]]


def to_recommendation_trend(trend: Iterable[RecommendationInput]) -> List[RecommendationPeriod]:
    """Coerce mappings from the data layer into RecommendationPeriod objects."""
    return [
        item if isinstance(item, RecommendationPeriod) else RecommendationPeriod.from_mapping(item)
        for item in (trend or [])
    ]


def aggregate_sentiment(trend: Iterable[RecommendationInput]) -> float:
    """
    Reduce recommendation counts to a sentiment scalar.

    Each strong buy adds +2, buy +1, sell -1, strong sell -2 to the score
    and one to the count; holds are ignored. The mean per recommendation
    (in [-1, 1] after dividing by 2) is mapped onto [0, 1].

    Args:
        trend: Recommendation periods, most recent first or last

    Returns:
        Sentiment in [0, 1]; 0.5 when there are no buy/sell recommendations
    """
    periods = to_recommendation_trend(trend)
    if not periods:
        return NEUTRAL_SENTIMENT

    score = 0
    count = 0
    for period in periods:
        score += period.strong_buy * 2 + period.buy - period.sell - period.strong_sell * 2
        count += period.strong_buy + period.buy + period.sell + period.strong_sell

    if count == 0:
        return NEUTRAL_SENTIMENT

    raw = score / (count * 2)
    return clamp((raw + 1) / 2)


def market_sentiment(change_percents: Sequence[float]) -> str:
    """
    Label a basket of daily percent changes by their average.

    Args:
        change_percents: Daily change in percent for each quote

    Returns:
        One of 'bullish', 'moderately-bullish', 'neutral',
        'moderately-bearish', 'bearish'
    """
    if len(change_percents) == 0:
        return 'neutral'

    avg_change = float(np.mean(change_percents))
    if avg_change > 1:
        return 'bullish'
    if avg_change > 0.5:
        return 'moderately-bullish'
    if avg_change < -1:
        return 'bearish'
    if avg_change < -0.5:
        return 'moderately-bearish'
    return 'neutral'
