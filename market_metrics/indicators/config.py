"""Indicator configuration: historical constants and named presets.

Every calculator takes its parameters as explicit arguments. The dataclasses
below only bundle the historical defaults so that a caller can reproduce a
given chart exactly, and so that divergent historical variants (two heat
index weightings, two Puell lookbacks) are selected by name instead of living
in separate code paths.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from ..core.exceptions import InvalidParameterError


# Sub-score names in the order they are reported
HEAT_SUBSCORES: tuple[str, ...] = ("mvrv", "mayer", "risk", "sentiment", "piCycle")


class HeatScaling(str, Enum):
    """How a valuation ratio is turned into a 0-100 heat score."""

    # 100 - 10 * (smallest % distance to any threshold), clipped
    DISTANCE = "distance"
    # Linear interpolation from a lower bound to an upper bound, clipped
    LINEAR = "linear"


# =============================================================================
# RISK METRIC
# =============================================================================


@dataclass(frozen=True)
class RiskMetricConfig:
    """Parameters of the log-distance-from-trend Risk Metric."""

    ma_window: int = 374
    exponent: float = 0.395

    # Altcoin adjustment: damp parabolic days, amplify prolonged declines.
    # None disables the adjustment.
    parabolic_ratio: float | None = None
    decline_ramp_days: int | None = None


RISK_PRESETS: Mapping[str, RiskMetricConfig] = MappingProxyType(
    {
        "standard": RiskMetricConfig(),
        "altcoin": RiskMetricConfig(parabolic_ratio=1.5, decline_ramp_days=30),
    }
)


# =============================================================================
# PEAK PROJECTION
# =============================================================================


@dataclass(frozen=True)
class PeakConfig:
    """Local-peak detection parameters for MVRV-style projections."""

    window: int = 90
    # Local maxima at or below this value are ignored
    min_peak_value: float = 2.0

    @property
    def min_points(self) -> int:
        return 2 * self.window + 1


# =============================================================================
# PUELL MULTIPLE
# =============================================================================

PUELL_SMOOTHING_PERIODS: tuple[int, ...] = (7, 28, 90, 180, 365)


@dataclass(frozen=True)
class PuellConfig:
    """Puell Multiple parameters.

    issuance_window is the number of points (including the current one) in
    the growing-window mean of daily issuance.
    """

    issuance_window: int = 365
    # Round raw and smoothed multiples to this many decimals (None = exact)
    round_decimals: int | None = None
    genesis_date: date = date(2009, 1, 3)
    blocks_per_day: int = 144
    halving_interval: int = 210_000
    initial_reward: float = 50.0
    issuance_metric: str = "IssContUSD"


PUELL_PRESETS: Mapping[str, PuellConfig] = MappingProxyType(
    {
        "trailing_year": PuellConfig(),
        "dashboard": PuellConfig(issuance_window=366, round_decimals=2),
    }
)


# =============================================================================
# MARKET HEAT INDEX
# =============================================================================


@dataclass(frozen=True)
class HeatIndexPreset:
    """A complete, named Market Heat Index configuration."""

    name: str
    weights: Mapping[str, float]
    mvrv_scaling: HeatScaling
    mayer_scaling: HeatScaling
    pi_cycle_offset: float = 0.0

    # Thresholds
    mvrv_overvalued: float = 3.7
    mvrv_lower: float = 1.0
    mvrv_cap: float = 10_000.0
    mayer_lower: float = 0.6
    mayer_upper: float = 2.4
    ratio_cap: float = 100.0
    pi_cycle_buffer: float = 0.5

    # Window lengths of the ratio indicators feeding the index
    mayer_window: int = 200
    pi_cycle_short: int = 111
    pi_cycle_long: int = 350

    risk: RiskMetricConfig = field(default_factory=RiskMetricConfig)
    peaks: PeakConfig = field(default_factory=PeakConfig)

    def __post_init__(self) -> None:
        missing = [name for name in HEAT_SUBSCORES if name not in self.weights]
        if missing:
            raise InvalidParameterError(
                f"Heat index preset '{self.name}' has no weight for {missing}",
                details={"missing": missing},
            )
        # Freeze a private copy so presets cannot be altered after creation
        object.__setattr__(self, "weights", MappingProxyType(dict(self.weights)))

    def __hash__(self) -> int:
        return hash(
            (
                self.name,
                tuple(sorted(self.weights.items())),
                self.mvrv_scaling,
                self.mayer_scaling,
                self.pi_cycle_offset,
            )
        )


HEAT_INDEX_PRESETS: Mapping[str, HeatIndexPreset] = MappingProxyType(
    {
        "weighted": HeatIndexPreset(
            name="weighted",
            weights={
                "mvrv": 0.25,
                "mayer": 0.25,
                "risk": 0.15,
                "sentiment": 0.20,
                "piCycle": 0.15,
            },
            mvrv_scaling=HeatScaling.DISTANCE,
            mayer_scaling=HeatScaling.DISTANCE,
            pi_cycle_offset=0.28,
        ),
        "uniform": HeatIndexPreset(
            name="uniform",
            weights={name: 0.2 for name in HEAT_SUBSCORES},
            mvrv_scaling=HeatScaling.LINEAR,
            mayer_scaling=HeatScaling.LINEAR,
            pi_cycle_offset=0.0,
        ),
    }
)

HEAT_SMOOTHING_PERIODS: tuple[int, ...] = (7, 28, 90)


# =============================================================================
# DOWNSAMPLING
# =============================================================================


@dataclass(frozen=True)
class DownsampleConfig:
    """Display-size bucketing parameters."""

    factor: int = 5
    # Series of this many points or fewer are returned unchanged
    threshold: int = 200


# =============================================================================
# PRESET LOOKUP
# =============================================================================


def _lookup(kind: str, presets: Mapping[str, object], name: str):
    try:
        return presets[name]
    except KeyError:
        raise InvalidParameterError(
            f"Unknown {kind} preset '{name}'",
            details={"available": sorted(presets)},
        ) from None


def get_heat_index_preset(name: str) -> HeatIndexPreset:
    """Get a Market Heat Index preset by name ('weighted' or 'uniform')."""
    return _lookup("heat index", HEAT_INDEX_PRESETS, name)


def get_puell_preset(name: str) -> PuellConfig:
    """Get a Puell Multiple preset by name ('trailing_year' or 'dashboard')."""
    return _lookup("Puell", PUELL_PRESETS, name)


def get_risk_preset(name: str) -> RiskMetricConfig:
    """Get a Risk Metric preset by name ('standard' or 'altcoin')."""
    return _lookup("risk", RISK_PRESETS, name)
