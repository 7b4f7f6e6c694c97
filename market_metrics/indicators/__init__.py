"""Derived-indicator calculators for price, on-chain and sentiment series.

This module provides:
- Series normalization and calendar-day alignment
- Growing-window rolling statistics
- Risk Metric, z-scores, MVRV peak projection
- Mayer Multiple, PiCycle ratio, Puell Multiple, 20-week extension
- Market Heat Index composite with named presets
- Running ROI, historical volatility, monthly ROI tables
- Sahm Rule recession indicator
- Display downsampling
"""

from .aligner import align_series, normalize_series, parse_time, parse_value, select_metric
from .config import (
    HEAT_INDEX_PRESETS,
    PUELL_PRESETS,
    RISK_PRESETS,
    DownsampleConfig,
    HeatIndexPreset,
    HeatScaling,
    PeakConfig,
    PuellConfig,
    RiskMetricConfig,
    get_heat_index_preset,
    get_puell_preset,
    get_risk_preset,
)
from .downsample import downsample_with_last_point
from .heat_index import (
    build_heat_index,
    combine_subscores,
    heat_index_frame,
    smooth_heat_index,
)
from .peaks import compute_peak_projection, compute_projected_peak_history
from .ratios import (
    compute_ma_extension,
    compute_mayer_multiple,
    compute_pi_cycle_ratio,
    compute_puell_multiple,
    daily_issuance_btc,
)
from .recession import compute_sahm_rule
from .returns import (
    compute_historical_volatility,
    compute_monthly_average_roi,
    compute_monthly_returns,
    compute_running_roi,
)
from .risk import (
    compute_point_in_time_risk,
    compute_risk_band_durations,
    compute_risk_metric,
)
from .types import CompositeRecord, PeakProjection, PeakRecord, to_records
from .windows import (
    rolling_log_return_std,
    rolling_max,
    rolling_mean,
    rolling_min,
    rolling_std,
)
from .zscore import compute_zscore


__all__ = [
    "CompositeRecord",
    "DownsampleConfig",
    "HEAT_INDEX_PRESETS",
    "HeatIndexPreset",
    "HeatScaling",
    "PUELL_PRESETS",
    "PeakConfig",
    "PeakProjection",
    "PeakRecord",
    "PuellConfig",
    "RISK_PRESETS",
    "RiskMetricConfig",
    "align_series",
    "build_heat_index",
    "combine_subscores",
    "compute_historical_volatility",
    "compute_ma_extension",
    "compute_mayer_multiple",
    "compute_monthly_average_roi",
    "compute_monthly_returns",
    "compute_peak_projection",
    "compute_pi_cycle_ratio",
    "compute_point_in_time_risk",
    "compute_projected_peak_history",
    "compute_puell_multiple",
    "compute_risk_band_durations",
    "compute_risk_metric",
    "compute_running_roi",
    "compute_sahm_rule",
    "compute_zscore",
    "daily_issuance_btc",
    "downsample_with_last_point",
    "get_heat_index_preset",
    "get_puell_preset",
    "get_risk_preset",
    "heat_index_frame",
    "normalize_series",
    "parse_time",
    "parse_value",
    "rolling_log_return_std",
    "rolling_max",
    "rolling_mean",
    "rolling_min",
    "rolling_std",
    "select_metric",
    "smooth_heat_index",
    "to_records",
]
