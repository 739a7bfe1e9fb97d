"""
Technical Indicator Calculator Service

Computes price-derived indicators (RSI, MACD, Bollinger Bands, moving
averages, volatility, Sharpe ratio, drawdown and trailing returns).
"""

from .technical_calculator import IndicatorSnapshot, TechnicalIndicatorCalculator, to_price_series

__all__ = ['IndicatorSnapshot', 'TechnicalIndicatorCalculator', 'to_price_series']
