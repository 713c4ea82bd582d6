"""Tunable business constants loaded from environment variables."""

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings


class RFMThresholds(BaseModel):
    """Cut-offs for the customer segmentation rule tree.

    Recency values are days since the last purchase; frequency is a count
    of non-voided sales; monetary is the sum of their tax-inclusive totals.
    """

    champions_max_recency: int = Field(30, ge=0)
    champions_min_frequency: int = Field(3, ge=1)
    champions_min_monetary: float = Field(5000.0, ge=0)

    loyal_max_recency: int = Field(60, ge=0)
    loyal_min_frequency: int = Field(2, ge=1)

    promising_max_recency: int = Field(30, ge=0)
    promising_max_frequency: int = Field(1, ge=1)

    # Between loyal_max_recency and lost_min_recency a client is "At Risk"
    # when they used to buy at least at_risk_min_frequency times, else "Lost".
    at_risk_min_frequency: int = Field(2, ge=1)
    lost_min_recency: int = Field(90, ge=0)

    @model_validator(mode="after")
    def check_ordering(self) -> "RFMThresholds":
        if self.champions_max_recency > self.loyal_max_recency:
            raise ValueError("champions_max_recency must not exceed loyal_max_recency")
        if self.promising_max_recency > self.loyal_max_recency:
            raise ValueError("promising_max_recency must not exceed loyal_max_recency")
        if self.loyal_max_recency > self.lost_min_recency:
            raise ValueError("loyal_max_recency must not exceed lost_min_recency")
        if self.champions_min_frequency < self.loyal_min_frequency:
            raise ValueError("champions_min_frequency must be at least loyal_min_frequency")
        if self.promising_max_frequency >= self.loyal_min_frequency:
            raise ValueError("promising_max_frequency must be below loyal_min_frequency")
        return self


class AnalyticsSettings(BaseSettings):
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "MYPE_",
        "env_nested_delimiter": "__",
        "extra": "ignore",
    }

    # Taxes
    igv_rate: float = Field(0.18, ge=0)  # value-added tax on tax-exclusive subtotals
    income_tax_rate: float = Field(0.015, ge=0)  # small-business regime, on positive EBITDA
    tax_tolerance: float = Field(0.01, gt=0)

    # Periods
    default_period: str = "month"
    liquidity_period_days: int = Field(30, ge=1)

    # Inventory
    low_stock_threshold: float = Field(5, ge=0)
    target_coverage_days: int = Field(45, ge=1)
    velocity_window_days: int = Field(30, ge=1)
    fast_rotation_daily_rate: float = Field(0.5, ge=0)
    slow_rotation_daily_rate: float = Field(0.1, ge=0)

    # Receivables / payables
    projection_horizon_days: int = Field(30, ge=1)
    due_soon_days: int = Field(3, ge=0)

    # Customers
    never_purchased_recency: int = 999  # sentinel; pair with CustomerRFM.last_purchase is None
    customer_top_products: int = Field(5, ge=1)
    trend_window_days: int = Field(90, ge=1)
    trend_change_pct: float = Field(20.0, ge=0)
    rfm: RFMThresholds = RFMThresholds()

    # Charts
    trend_months: int = Field(6, ge=1)
    top_products_limit: int = Field(10, ge=1)
    top_clients_limit: int = Field(8, ge=1)
    label_max_length: int = Field(18, ge=4)


settings = AnalyticsSettings()


def resolve(config: AnalyticsSettings | None) -> AnalyticsSettings:
    """Return *config*, or the process-wide settings when it is ``None``."""
    return config if config is not None else settings
