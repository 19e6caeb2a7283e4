"""Persona thresholds - single source of truth, overridable via PERSONA_* environment variables"""

from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Thresholds(BaseSettings):
    """Named cut-offs used by signal extraction and persona classification"""

    model_config = SettingsConfigDict(env_prefix="PERSONA_", env_file=".env", extra="ignore", frozen=True)

    # subscription_heavy
    subscription_recurring_min: int = 3
    subscription_monthly_min_usd: float = 50.0
    subscription_share_min: float = 0.1

    # Credit utilization
    util_flags: List[float] = [0.3, 0.5, 0.8]
    util_high: float = 0.5
    util_savings_max: float = 0.3

    # savings_builder
    savings_growth_min: float = 0.02
    savings_net_inflow_min: float = 200.0

    # variable_income / low_cushion_optimizer
    income_gap_days: float = 45.0
    buffer_month_low: float = 1.0
    buffer_very_low: float = 0.5


THRESHOLDS = Thresholds()
