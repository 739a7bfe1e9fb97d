"""
Configuration models using Pydantic for validation.

The scoring constants below are empirically chosen calibration values.
They are kept here, rather than inline, so a recalibration only touches
configuration.
"""
from pydantic import BaseModel, Field, model_validator

# Absorbs binary rounding in sums such as 0.3 + 0.3 + 0.2 + 0.2
WEIGHT_SUM_TOLERANCE = 1e-9


# =============================================================================
# Indicator Configuration
# =============================================================================

class IndicatorConfig(BaseModel):
    """Technical indicator calculation parameters."""
    risk_free_rate: float = Field(default=0.06, ge=0.0, le=1.0, description="Annual risk-free rate used by Sharpe")
    trading_days_per_year: int = Field(default=252, ge=1, le=366, description="Annualisation factor for daily data")
    min_price_points: int = Field(default=30, ge=1, description="Series shorter than this report neutral indicators")
    rsi_period: int = Field(default=14, ge=2, le=100, description="RSI lookback")
    bollinger_period: int = Field(default=20, ge=2, le=200, description="Bollinger window")
    bollinger_std_dev: float = Field(default=2.0, gt=0.0, le=5.0, description="Bollinger band width in sigmas")
    macd_fast: int = Field(default=12, ge=1, description="MACD fast EMA period")
    macd_slow: int = Field(default=26, ge=2, description="MACD slow EMA period")
    macd_signal: int = Field(default=9, ge=1, description="MACD signal EMA period")

    @model_validator(mode='after')
    def check_macd_periods(self) -> 'IndicatorConfig':
        """Fast EMA must be shorter than slow EMA."""
        if self.macd_fast >= self.macd_slow:
            raise ValueError(
                f"macd_fast ({self.macd_fast}) must be less than macd_slow ({self.macd_slow})"
            )
        return self


# =============================================================================
# Scoring Configuration
# =============================================================================

class CompositeWeights(BaseModel):
    """Weights of the five sub-scores in the composite rating."""
    valuation: float = Field(default=0.30, ge=0.0, le=1.0, description="Valuation weight")
    growth: float = Field(default=0.25, ge=0.0, le=1.0, description="Growth weight")
    momentum: float = Field(default=0.15, ge=0.0, le=1.0, description="Momentum weight")
    sentiment: float = Field(default=0.15, ge=0.0, le=1.0, description="Analyst sentiment weight")
    risk: float = Field(default=0.15, ge=0.0, le=1.0, description="Risk penalty weight (subtracted)")

    def validate_weights_sum(self) -> None:
        """Validate that the positive weights sum into (0, 1], allowing float rounding error."""
        total = self.valuation + self.growth + self.momentum + self.sentiment
        if not (0.0 < total <= 1.0 + WEIGHT_SUM_TOLERANCE):
            raise ValueError(f"Positive composite weights must sum to (0, 1], got {total}")


class RiskLabelThresholds(BaseModel):
    """Minimum final score for each risk label, highest label first."""
    high_reward: float = Field(default=0.85, ge=0.0, le=1.0)
    moderate: float = Field(default=0.70, ge=0.0, le=1.0)
    balanced: float = Field(default=0.50, ge=0.0, le=1.0)
    cautious: float = Field(default=0.30, ge=0.0, le=1.0)

    @model_validator(mode='after')
    def check_descending(self) -> 'RiskLabelThresholds':
        """Thresholds must be strictly descending."""
        ordered = [self.high_reward, self.moderate, self.balanced, self.cautious]
        if any(a <= b for a, b in zip(ordered, ordered[1:])):
            raise ValueError(f"Risk label thresholds must be strictly descending, got {ordered}")
        return self


class ScoringConfig(BaseModel):
    """Complete rating engine configuration."""
    weights: CompositeWeights = Field(default_factory=CompositeWeights)
    rescale_multiplier: float = Field(default=1.2, gt=0.0, le=5.0, description="Affine rescale slope")
    rescale_offset: float = Field(default=0.1, ge=-1.0, le=1.0, description="Affine rescale intercept")
    risk_labels: RiskLabelThresholds = Field(default_factory=RiskLabelThresholds)
    indicators: IndicatorConfig = Field(default_factory=IndicatorConfig)
    max_confidence: int = Field(default=95, ge=50, le=100, description="Confidence cap (%)")

    def validate_weights_sum(self) -> None:
        """Delegate weight validation to the nested weights model."""
        self.weights.validate_weights_sum()
