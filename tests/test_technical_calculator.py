"""
Unit tests for Technical Indicator Calculator.

Tests all technical indicator calculation methods including:
- Moving Averages (SMA, EMA)
- RSI (Relative Strength Index)
- MACD
- Bollinger Bands
- Volatility, Sharpe ratio and maximum drawdown
- Trailing momentum returns
"""
import math

import pytest
import numpy as np
import pandas as pd

from services.indicator_calculator.technical_calculator import (
    IndicatorSnapshot,
    TechnicalIndicatorCalculator,
    to_price_series,
)
from shared.configs.models import IndicatorConfig


@pytest.fixture
def calculator():
    """Fixture providing a calculator instance."""
    return TechnicalIndicatorCalculator()


class TestPriceSeries:
    """Tests for price input coercion."""

    def test_accepts_list_and_series(self):
        """Lists and pandas Series give the same values."""
        from_list = to_price_series([1.0, 2.0, 3.0])
        from_series = to_price_series(pd.Series([1.0, 2.0, 3.0], index=[10, 20, 30]))

        assert from_list.tolist() == [1.0, 2.0, 3.0]
        assert from_series.tolist() == [1.0, 2.0, 3.0]
        assert list(from_series.index) == [0, 1, 2]

    def test_drops_missing_values(self):
        """None and NaN closes are skipped."""
        series = to_price_series([100.0, None, 101.0, float('nan'), 102.0])
        assert series.tolist() == [100.0, 101.0, 102.0]

    @pytest.mark.parametrize("bad_value", [0.0, -5.0, float('inf')])
    def test_rejects_invalid_closes(self, bad_value):
        """Non-positive and infinite closes raise ValueError."""
        with pytest.raises(ValueError, match="position 1"):
            to_price_series([100.0, bad_value, 101.0])

    def test_empty_input(self):
        """Empty input gives an empty series."""
        assert to_price_series([]).empty


class TestMovingAverages:
    """Tests for moving average calculations."""

    def test_ema_seeded_with_first_value(self, calculator):
        """EMA starts at the first value and uses k = 2 / (period + 1)."""
        result = calculator.calculate_ema([1.0, 2.0, 3.0], 3)
        assert result == pytest.approx([1.0, 1.5, 2.25])

    def test_ema_empty(self, calculator):
        """EMA of nothing is empty."""
        assert calculator.calculate_ema([], 12) == []

    def test_sma_with_partial_history(self, calculator):
        """60 closes give an SMA50 but no SMA200."""
        prices = [float(i) for i in range(1, 61)]
        result = calculator.calculate_moving_averages(prices)

        assert result['sma_50'] == pytest.approx(35.5)
        assert result['sma_200'] is None

    def test_sma_with_full_history(self, calculator, rising_prices):
        """300 closes give both SMAs; a rising series keeps SMA50 above SMA200."""
        result = calculator.calculate_moving_averages(rising_prices)

        assert result['sma_50'] is not None
        assert result['sma_200'] is not None
        assert result['sma_50'] > result['sma_200']


class TestRSI:
    """Tests for RSI calculations."""

    def test_rsi_known_value(self, calculator):
        """Gains of 2 against losses of 1 give RS = 2."""
        rsi = calculator.calculate_rsi([10.0, 11.0, 10.0, 12.0], period=2)
        assert rsi == pytest.approx(100 - 100 / 3)

    def test_rsi_strictly_increasing(self, calculator, rising_prices):
        """No losses means RSI 100."""
        assert calculator.calculate_rsi(rising_prices) == 100.0

    def test_rsi_strictly_decreasing(self, calculator, falling_prices):
        """No gains means RSI 0."""
        assert calculator.calculate_rsi(falling_prices) == pytest.approx(0.0)

    def test_rsi_flat_window(self, calculator, constant_prices):
        """A window without movement is neutral."""
        assert calculator.calculate_rsi(constant_prices) == 50.0

    def test_rsi_insufficient_data(self, calculator):
        """Fewer than period + 1 closes is neutral."""
        assert calculator.calculate_rsi([100.0 + i for i in range(14)]) == 50.0

    def test_rsi_in_range(self, calculator, noisy_prices):
        """RSI stays within [0, 100]."""
        rsi = calculator.calculate_rsi(noisy_prices)
        assert 0.0 <= rsi <= 100.0


class TestMACD:
    """Tests for MACD calculations."""

    def test_macd_insufficient_data(self, calculator):
        """Fewer closes than the slow period gives zeros."""
        prices = [100.0 + i for i in range(25)]
        assert calculator.calculate_macd(prices) == (0.0, 0.0, 0.0)

    def test_macd_constant_series(self, calculator, constant_prices):
        """A flat series has no convergence or divergence."""
        macd, signal, histogram = calculator.calculate_macd(constant_prices)

        assert macd == pytest.approx(0.0, abs=1e-9)
        assert signal == pytest.approx(0.0, abs=1e-9)
        assert histogram == pytest.approx(0.0, abs=1e-9)

    def test_macd_uptrend_positive(self, calculator, rising_prices):
        """Fast EMA sits above slow EMA in an uptrend."""
        macd, signal, histogram = calculator.calculate_macd(rising_prices)

        assert macd > 0
        assert histogram == pytest.approx(macd - signal)


class TestBollingerBands:
    """Tests for Bollinger Band calculations."""

    def test_bands_known_window(self, calculator):
        """Bands use the population standard deviation of the window."""
        upper, middle, lower = calculator.calculate_bollinger_bands(
            [1.0, 2.0, 3.0, 4.0], period=4, std_dev=2.0
        )
        sigma = math.sqrt(1.25)

        assert middle == pytest.approx(2.5)
        assert upper == pytest.approx(2.5 + 2 * sigma)
        assert lower == pytest.approx(2.5 - 2 * sigma)

    def test_bands_collapse_on_constant_series(self, calculator, constant_prices):
        """Zero dispersion collapses all three bands onto the price."""
        upper, middle, lower = calculator.calculate_bollinger_bands(constant_prices)

        assert upper == pytest.approx(100.0)
        assert middle == pytest.approx(100.0)
        assert lower == pytest.approx(100.0)

    def test_bands_insufficient_data(self, calculator):
        """Fewer closes than the window gives zeros."""
        assert calculator.calculate_bollinger_bands([100.0] * 19) == (0.0, 0.0, 0.0)


class TestRiskMetrics:
    """Tests for returns, volatility, Sharpe ratio and drawdown."""

    def test_daily_returns(self, calculator):
        """Simple returns between consecutive closes."""
        returns = calculator.calculate_daily_returns([100.0, 110.0, 99.0])
        assert returns == pytest.approx([0.1, -0.1])

    def test_daily_returns_single_close(self, calculator):
        """One close has no returns."""
        assert calculator.calculate_daily_returns([100.0]) == []

    def test_volatility_annualized(self, calculator):
        """Sample standard deviation scaled by sqrt(252)."""
        volatility = calculator.calculate_volatility([0.01, -0.01])
        assert volatility == pytest.approx(math.sqrt(0.0002) * math.sqrt(252))

    def test_volatility_empty(self, calculator):
        """No returns means no volatility."""
        assert calculator.calculate_volatility([]) == 0.0

    def test_sharpe_ratio_known_value(self, calculator):
        """Annualized excess return over annualized volatility."""
        sharpe = calculator.calculate_sharpe_ratio([0.01, 0.03])
        expected = (0.02 * 252 - 0.06) / (math.sqrt(0.0002) * math.sqrt(252))
        assert sharpe == pytest.approx(expected)

    def test_sharpe_ratio_custom_risk_free_rate(self, calculator):
        """The risk-free rate can be overridden per call."""
        sharpe = calculator.calculate_sharpe_ratio([0.01, 0.03], risk_free_rate=0.0)
        expected = (0.02 * 252) / (math.sqrt(0.0002) * math.sqrt(252))
        assert sharpe == pytest.approx(expected)

    def test_sharpe_ratio_degenerate(self, calculator):
        """Empty returns and zero volatility both give 0."""
        assert calculator.calculate_sharpe_ratio([]) == 0.0
        assert calculator.calculate_sharpe_ratio([0.0, 0.0, 0.0]) == 0.0

    def test_max_drawdown(self, calculator):
        """Largest peak-to-trough decline, not the first one."""
        drawdown = calculator.calculate_max_drawdown([100.0, 120.0, 90.0, 130.0, 65.0])
        assert drawdown == pytest.approx(0.5)

    def test_max_drawdown_non_decreasing(self, calculator, rising_prices):
        """A series that never falls has no drawdown."""
        assert calculator.calculate_max_drawdown(rising_prices) == 0.0

    def test_max_drawdown_in_range(self, calculator, noisy_prices):
        """Drawdown is a fraction in [0, 1]."""
        assert 0.0 <= calculator.calculate_max_drawdown(noisy_prices) <= 1.0


class TestMomentumReturns:
    """Tests for trailing 12/6/3-month returns."""

    def test_full_history(self, calculator, rising_prices):
        """Each window starts the stated number of trading days back."""
        result = calculator.calculate_momentum_returns(rising_prices)

        assert result['return_12m'] == pytest.approx(1.001 ** 251 - 1)
        assert result['return_6m'] == pytest.approx(1.001 ** 125 - 1)
        assert result['return_3m'] == pytest.approx(1.001 ** 62 - 1)

    def test_short_history(self, calculator):
        """12M falls back to the first close; 6M is unset without 126 closes."""
        prices = [100.0 * (1.001 ** i) for i in range(100)]
        result = calculator.calculate_momentum_returns(prices)

        assert result['return_12m'] == pytest.approx(1.001 ** 99 - 1)
        assert result['return_6m'] is None
        assert result['return_3m'] == pytest.approx(1.001 ** 62 - 1)

    def test_single_close(self, calculator):
        """One close yields no returns at all."""
        result = calculator.calculate_momentum_returns([100.0])
        assert all(value is None for value in result.values())


class TestCalculateAllIndicators:
    """Tests for the full indicator snapshot."""

    def test_below_minimum_history(self, calculator):
        """Short series report neutral placeholders."""
        prices = [100.0 + i for i in range(29)]
        snapshot = calculator.calculate_all_indicators(prices)

        assert snapshot.technicals_computed is False
        assert snapshot.price_points == 29
        assert snapshot.last_close == 128.0
        assert snapshot.rsi == 50.0
        assert snapshot.volatility is None
        assert snapshot.sharpe_ratio == 0.0
        assert snapshot.max_drawdown == 0.0
        assert snapshot.return_12m is None

    def test_empty_series(self, calculator):
        """No closes gives the default snapshot."""
        snapshot = calculator.calculate_all_indicators([])

        assert snapshot == IndicatorSnapshot()
        assert snapshot.last_close is None

    def test_constant_series(self, calculator, constant_prices):
        """A flat series is neutral on every indicator."""
        snapshot = calculator.calculate_all_indicators(constant_prices)

        assert snapshot.technicals_computed is True
        assert snapshot.rsi == 50.0
        assert snapshot.macd_histogram == pytest.approx(0.0, abs=1e-9)
        assert snapshot.bollinger_upper == pytest.approx(100.0)
        assert snapshot.bollinger_lower == pytest.approx(100.0)
        assert snapshot.max_drawdown == 0.0
        assert snapshot.volatility == 0.0
        assert snapshot.sharpe_ratio == 0.0
        assert snapshot.return_12m == 0.0

    def test_noisy_series(self, calculator, noisy_prices):
        """A realistic series fills every field."""
        snapshot = calculator.calculate_all_indicators(noisy_prices)

        assert snapshot.price_points == 300
        assert snapshot.has_moving_averages
        assert snapshot.volatility > 0
        assert 0.0 <= snapshot.rsi <= 100.0
        assert snapshot.bollinger_upper >= snapshot.bollinger_middle >= snapshot.bollinger_lower
        assert snapshot.last_close == pytest.approx(noisy_prices[-1])
        assert np.isfinite(snapshot.sharpe_ratio)

    def test_missing_values_are_skipped(self, calculator, rising_prices):
        """None entries do not count as price points."""
        snapshot = calculator.calculate_all_indicators([None] + rising_prices + [None])
        assert snapshot.price_points == 300

    def test_custom_minimum_history(self):
        """The gating threshold comes from configuration."""
        calculator = TechnicalIndicatorCalculator(IndicatorConfig(min_price_points=10, rsi_period=5))
        snapshot = calculator.calculate_all_indicators([100.0 + i for i in range(10)])

        assert snapshot.technicals_computed is True
        assert snapshot.rsi == 100.0

    def test_to_dict(self, calculator, rising_prices):
        """Snapshot flattens to a dictionary of its fields."""
        data = calculator.calculate_all_indicators(rising_prices).to_dict()

        assert data['rsi'] == 100.0
        assert data['price_points'] == 300
        assert 'macd_histogram' in data
