"""
Technical Indicator Calculator.

Turns an ordered series of daily closes into:
- Moving Averages (SMA50, SMA200, EMA)
- RSI (Relative Strength Index)
- MACD (Moving Average Convergence Divergence)
- Bollinger Bands
- Annualized volatility and Sharpe ratio
- Maximum drawdown
- Trailing 12/6/3-month returns

Every method is a pure function of its input. Series shorter than the
configured minimum report neutral placeholders instead of indicators
computed on too little history.
"""
from dataclasses import dataclass
from typing import Optional, Dict, List, Sequence, Tuple, Union
import logging
import math

import numpy as np
import pandas as pd

from shared.configs.models import IndicatorConfig
from shared.utilities.math_utils import standard_deviation

logger = logging.getLogger(__name__)

PriceInput = Union[Sequence[Optional[float]], pd.Series]

# Trailing momentum windows in trading days
MOMENTUM_WINDOWS = {
    'return_12m': 252,
    'return_6m': 126,
    'return_3m': 63,
}


@dataclass(frozen=True)
class IndicatorSnapshot:
    """Container for the indicators computed from one price series."""

    # Momentum
    rsi: float = 50.0
    return_12m: Optional[float] = None
    return_6m: Optional[float] = None
    return_3m: Optional[float] = None

    # Trend
    macd: float = 0.0
    macd_signal: float = 0.0
    macd_histogram: float = 0.0
    sma_50: Optional[float] = None
    sma_200: Optional[float] = None

    # Volatility
    bollinger_upper: float = 0.0
    bollinger_middle: float = 0.0
    bollinger_lower: float = 0.0
    volatility: Optional[float] = None
    sharpe_ratio: float = 0.0
    max_drawdown: float = 0.0

    # Series info
    price_points: int = 0
    technicals_computed: bool = False
    last_close: Optional[float] = None

    @property
    def has_moving_averages(self) -> bool:
        """True when both long moving averages could be computed."""
        return self.sma_50 is not None and self.sma_200 is not None

    def to_dict(self) -> Dict[str, Optional[float]]:
        """Convert to a flat dictionary."""
        return {
            'rsi': self.rsi,
            'return_12m': self.return_12m,
            'return_6m': self.return_6m,
            'return_3m': self.return_3m,
            'macd': self.macd,
            'macd_signal': self.macd_signal,
            'macd_histogram': self.macd_histogram,
            'sma_50': self.sma_50,
            'sma_200': self.sma_200,
            'bollinger_upper': self.bollinger_upper,
            'bollinger_middle': self.bollinger_middle,
            'bollinger_lower': self.bollinger_lower,
            'volatility': self.volatility,
            'sharpe_ratio': self.sharpe_ratio,
            'max_drawdown': self.max_drawdown,
            'price_points': self.price_points,
            'technicals_computed': self.technicals_computed,
            'last_close': self.last_close,
        }


def to_price_series(prices: PriceInput) -> pd.Series:
    """
    Coerce closes into a float Series, dropping missing values.

    Args:
        prices: Chronologically ordered closes (oldest first)

    Returns:
        Float Series with a fresh integer index

    Raises:
        ValueError: If any remaining close is non-positive or not finite
    """
    series = pd.Series(prices, dtype=float).dropna().reset_index(drop=True)
    if series.empty:
        return series

    values = series.to_numpy()
    invalid = ~np.isfinite(values) | (values <= 0)
    if invalid.any():
        position = int(np.argmax(invalid))
        raise ValueError(
            f"Closing prices must be positive finite numbers; "
            f"got {values[position]!r} at position {position}"
        )
    return series


class TechnicalIndicatorCalculator:
    """Calculator for technical indicators over a series of daily closes."""

    def __init__(self, config: Optional[IndicatorConfig] = None):
        """
        Initialize the technical calculator.

        Args:
            config: Indicator parameters (defaults apply when omitted)
        """
        self.config = config or IndicatorConfig()
        self.logger = logging.getLogger(__name__)

    def calculate_ema(self, data: PriceInput, period: int) -> List[float]:
        """
        Calculate an Exponential Moving Average seeded with the first point.

        Uses k = 2 / (period + 1); each value is x * k + previous * (1 - k).

        Args:
            data: Input values
            period: EMA period

        Returns:
            EMA values, same length as the input
        """
        series = pd.Series(data, dtype=float)
        if series.empty:
            return []
        return series.ewm(span=period, adjust=False).mean().tolist()

    def calculate_macd(self, prices: PriceInput) -> Tuple[float, float, float]:
        """
        Calculate MACD (Moving Average Convergence Divergence).

        Args:
            prices: Closing prices, oldest first

        Returns:
            Tuple of latest (macd, signal, histogram); (0, 0, 0) when the
            series is shorter than the slow EMA period
        """
        series = to_price_series(prices)
        if len(series) < self.config.macd_slow:
            return 0.0, 0.0, 0.0

        ema_fast = series.ewm(span=self.config.macd_fast, adjust=False).mean()
        ema_slow = series.ewm(span=self.config.macd_slow, adjust=False).mean()
        macd_line = ema_fast - ema_slow
        signal_line = macd_line.ewm(span=self.config.macd_signal, adjust=False).mean()
        histogram = macd_line - signal_line

        return (
            float(macd_line.iloc[-1]),
            float(signal_line.iloc[-1]),
            float(histogram.iloc[-1]),
        )

    def calculate_bollinger_bands(
        self,
        prices: PriceInput,
        period: Optional[int] = None,
        std_dev: Optional[float] = None
    ) -> Tuple[float, float, float]:
        """
        Calculate Bollinger Bands over the trailing window.

        The band width uses the population standard deviation of the window
        (divide by period).

        Args:
            prices: Closing prices, oldest first
            period: Window length (default: configured, 20)
            std_dev: Number of standard deviations (default: configured, 2.0)

        Returns:
            Tuple of (upper, middle, lower); zeros when history is too short
        """
        period = period or self.config.bollinger_period
        std_dev = std_dev if std_dev is not None else self.config.bollinger_std_dev

        series = to_price_series(prices)
        if len(series) < period:
            return 0.0, 0.0, 0.0

        window = series.iloc[-period:].to_numpy()
        middle = float(window.mean())
        sigma = math.sqrt(float(np.sum((window - middle) ** 2)) / period)

        return middle + std_dev * sigma, middle, middle - std_dev * sigma

    def calculate_rsi(self, prices: PriceInput, period: Optional[int] = None) -> float:
        """
        Calculate Relative Strength Index from the last `period` price changes.

        Args:
            prices: Closing prices, oldest first
            period: RSI period (default: configured, 14)

        Returns:
            RSI in [0, 100]; 50 for insufficient history or a flat window
        """
        period = period or self.config.rsi_period
        series = to_price_series(prices)
        if len(series) < period + 1:
            return 50.0

        changes = series.diff().iloc[-period:]
        gains = float(changes[changes > 0].sum())
        losses = float(-changes[changes < 0].sum())

        if gains == 0 and losses == 0:
            return 50.0

        avg_gain = gains / period
        avg_loss = losses / period
        if avg_loss == 0:
            return 100.0

        rs = avg_gain / avg_loss
        return 100.0 - (100.0 / (1.0 + rs))

    def calculate_moving_averages(self, prices: PriceInput) -> Dict[str, Optional[float]]:
        """
        Calculate the 50- and 200-day Simple Moving Averages.

        Args:
            prices: Closing prices, oldest first

        Returns:
            Dictionary with 'sma_50' and 'sma_200'; None where history is short
        """
        result: Dict[str, Optional[float]] = {
            'sma_50': None,
            'sma_200': None,
        }

        series = to_price_series(prices)
        if len(series) >= 50:
            result['sma_50'] = float(series.iloc[-50:].mean())
        if len(series) >= 200:
            result['sma_200'] = float(series.iloc[-200:].mean())

        return result

    def calculate_daily_returns(self, prices: PriceInput) -> List[float]:
        """
        Calculate simple daily returns.

        Args:
            prices: Closing prices, oldest first

        Returns:
            List of (close[i] - close[i-1]) / close[i-1], one shorter than input
        """
        series = to_price_series(prices)
        if len(series) < 2:
            return []
        return series.pct_change().iloc[1:].tolist()

    def calculate_volatility(self, returns: Sequence[float]) -> float:
        """
        Annualize the sample standard deviation of daily returns.

        Args:
            returns: Daily returns

        Returns:
            Annualized volatility
        """
        return standard_deviation(returns) * math.sqrt(self.config.trading_days_per_year)

    def calculate_sharpe_ratio(
        self,
        returns: Sequence[float],
        risk_free_rate: Optional[float] = None
    ) -> float:
        """
        Calculate the annualized Sharpe ratio.

        Args:
            returns: Daily returns
            risk_free_rate: Annual risk-free rate (default: configured, 6%)

        Returns:
            (annualized mean return - risk-free rate) / annualized volatility;
            0.0 when there are no returns or volatility is zero
        """
        if risk_free_rate is None:
            risk_free_rate = self.config.risk_free_rate
        if len(returns) == 0:
            return 0.0

        volatility = self.calculate_volatility(returns)
        if volatility == 0:
            return 0.0

        annualized_return = float(np.mean(returns)) * self.config.trading_days_per_year
        return (annualized_return - risk_free_rate) / volatility

    def calculate_max_drawdown(self, prices: PriceInput) -> float:
        """
        Calculate the largest peak-to-trough decline.

        Args:
            prices: Closing prices, oldest first

        Returns:
            Maximum drawdown as a fraction in [0, 1]
        """
        series = to_price_series(prices)
        if len(series) < 2:
            return 0.0

        values = series.to_numpy()
        running_peak = np.maximum.accumulate(values)
        drawdowns = (running_peak - values) / running_peak
        return float(drawdowns.max())

    def calculate_momentum_returns(self, prices: PriceInput) -> Dict[str, Optional[float]]:
        """
        Calculate trailing 12/6/3-month returns.

        The 12-month window falls back to the first available close when
        the series is shorter than a trading year; the shorter windows are
        left unset without enough history.

        Args:
            prices: Closing prices, oldest first

        Returns:
            Dictionary with 'return_12m', 'return_6m', 'return_3m'
        """
        result: Dict[str, Optional[float]] = {key: None for key in MOMENTUM_WINDOWS}

        series = to_price_series(prices)
        if len(series) < 2:
            return result

        end = float(series.iloc[-1])
        for key, window in MOMENTUM_WINDOWS.items():
            if len(series) >= window:
                start = float(series.iloc[-window])
            elif key == 'return_12m':
                start = float(series.iloc[0])
            else:
                continue
            result[key] = (end - start) / start

        return result

    def calculate_all_indicators(self, prices: PriceInput) -> IndicatorSnapshot:
        """
        Calculate all technical indicators for a price series.

        Args:
            prices: Closing prices, oldest first

        Returns:
            IndicatorSnapshot; neutral defaults when the series is shorter
            than the configured minimum
        """
        series = to_price_series(prices)
        points = len(series)
        last_close = float(series.iloc[-1]) if points else None

        if points < self.config.min_price_points:
            self.logger.debug(
                f"Only {points} price points (< {self.config.min_price_points}); "
                f"reporting neutral indicators"
            )
            return IndicatorSnapshot(price_points=points, last_close=last_close)

        macd, macd_signal, macd_histogram = self.calculate_macd(series)
        bb_upper, bb_middle, bb_lower = self.calculate_bollinger_bands(series)
        moving_averages = self.calculate_moving_averages(series)
        momentum = self.calculate_momentum_returns(series)
        returns = self.calculate_daily_returns(series)

        return IndicatorSnapshot(
            rsi=self.calculate_rsi(series),
            return_12m=momentum['return_12m'],
            return_6m=momentum['return_6m'],
            return_3m=momentum['return_3m'],
            macd=macd,
            macd_signal=macd_signal,
            macd_histogram=macd_histogram,
            sma_50=moving_averages['sma_50'],
            sma_200=moving_averages['sma_200'],
            bollinger_upper=bb_upper,
            bollinger_middle=bb_middle,
            bollinger_lower=bb_lower,
            volatility=self.calculate_volatility(returns),
            sharpe_ratio=self.calculate_sharpe_ratio(returns),
            max_drawdown=self.calculate_max_drawdown(series),
            price_points=points,
            technicals_computed=True,
            last_close=last_close,
        )
