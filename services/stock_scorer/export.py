"""
Flat key/value export of a composite rating.

Formatting lives here so the scoring core only ever deals in numbers.
"""
from datetime import date
from pathlib import Path
from typing import Dict, Optional, Union
import csv
import logging

from services.stock_scorer.models import CompositeRating

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"


def _fmt(value: Optional[float], decimals: int = 2, suffix: str = "") -> str:
    if value is None:
        return NOT_AVAILABLE
    return f"{value:.{decimals}f}{suffix}"


def build_export_rows(rating: CompositeRating) -> Dict[str, str]:
    """
    Flatten a rating into ordered metric name -> formatted value pairs.

    Sub-scores are reported on the 0-5 star scale.

    Args:
        rating: Composite rating to export

    Returns:
        Ordered dictionary of display strings
    """
    indicators = rating.indicators
    fundamentals = rating.fundamentals

    if indicators.technicals_computed:
        macd_direction = "Bullish" if indicators.macd_histogram > 0 else "Bearish"
    else:
        macd_direction = NOT_AVAILABLE

    return {
        "Symbol": rating.symbol,
        "Current Price": _fmt(rating.current_price),
        "Star Rating": f"{rating.stars:.1f}",
        "Risk Level": rating.risk_label.value,
        "Valuation Score": _fmt(rating.valuation * 5),
        "Growth Score": _fmt(rating.growth * 5),
        "Momentum Score": _fmt(rating.momentum * 5),
        "Sentiment Score": _fmt(rating.sentiment * 5),
        "Risk Score": _fmt(rating.risk * 5),
        "Projected 1Y Return": f"{rating.projected_return}%",
        "Confidence": f"{rating.confidence}%",
        "RSI": _fmt(indicators.rsi),
        "MACD Histogram": macd_direction,
        "Sharpe Ratio": _fmt(indicators.sharpe_ratio),
        "Max Drawdown": _fmt(indicators.max_drawdown * 100, suffix="%"),
        "Beta": _fmt(fundamentals.beta),
        "P/E Ratio": _fmt(fundamentals.trailing_pe),
        "P/B Ratio": _fmt(fundamentals.price_to_book),
    }


def default_export_filename(symbol: str, day: Optional[date] = None) -> str:
    """Build the default CSV filename, e.g. AAPL_analysis_2024-01-31.csv."""
    day = day or date.today()
    return f"{symbol}_analysis_{day.isoformat()}.csv"


def export_to_csv(rating: CompositeRating, path: Union[str, Path]) -> Path:
    """
    Write the export rows as a two-column Metric,Value CSV.

    Args:
        rating: Composite rating to export
        path: Output file path (parent directories are created)

    Returns:
        Path of the written file
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        writer.writerow(["Metric", "Value"])
        for metric, value in build_export_rows(rating).items():
            writer.writerow([metric, value])

    logger.info(f"Exported rating for {rating.symbol} to {path}")
    return path
