"""Data structures shared by the indicator calculators.

A TimeSeries is a float ``pd.Series`` on a day-normalized, strictly ascending,
unique ``DatetimeIndex`` named ``time``. A DerivedSeries is a ``pd.DataFrame``
on the same kind of index with one column per computed field. Both are always
newly allocated by the calculators; inputs are never mutated.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import pandas as pd

from ..core.exceptions import InvalidParameterError


INDEX_NAME = "time"


@dataclass(frozen=True)
class PeakRecord:
    """A detected local peak."""

    timestamp: pd.Timestamp
    value: float

    def to_dict(self) -> dict:
        return {"time": self.timestamp.strftime("%Y-%m-%d"), "value": self.value}


@dataclass
class PeakProjection:
    """Result of a peak extrapolation.

    projected_peak is None when the series is too short or has no peak.
    """

    peaks: list[PeakRecord] = field(default_factory=list)
    avg_decrease: float = 0.0
    projected_peak: float | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "peaks": [p.to_dict() for p in self.peaks],
            "avg_decrease": self.avg_decrease,
            "projected_peak": self.projected_peak,
        }


@dataclass
class CompositeRecord:
    """One day of the Market Heat Index."""

    timestamp: pd.Timestamp
    subscores: dict[str, float]  # each in [0, 100]
    weights: dict[str, float]
    composite: float  # in [0, 100]

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "time": self.timestamp.strftime("%Y-%m-%d"),
            "subscores": {k: round(v, 4) for k, v in self.subscores.items()},
            "weights": dict(self.weights),
            "composite": round(self.composite, 4),
        }


def validate_window(window: int, name: str = "window") -> int:
    """Reject non-positive window sizes."""
    if int(window) != window or window <= 0:
        raise InvalidParameterError(
            f"{name} must be a positive integer, got {window!r}",
            details={name: window},
        )
    return int(window)


def empty_series(name: str | None = None) -> pd.Series:
    """An empty TimeSeries with the canonical index."""
    return pd.Series(
        [], index=pd.DatetimeIndex([], name=INDEX_NAME), dtype="float64", name=name
    )


def empty_frame(columns: list[str]) -> pd.DataFrame:
    """An empty DerivedSeries with the canonical index."""
    return pd.DataFrame(
        {c: pd.Series([], dtype="float64") for c in columns},
        index=pd.DatetimeIndex([], name=INDEX_NAME),
    )


def as_values(series: pd.Series) -> np.ndarray:
    """Copy the values of a TimeSeries into a float64 array."""
    return series.to_numpy(dtype="float64", na_value=np.nan, copy=True)


def to_records(data: pd.Series | pd.DataFrame) -> list[dict[str, Any]]:
    """Convert a TimeSeries or DerivedSeries into rendering-layer records.

    Each record is ``{"time": "YYYY-MM-DD", <field>: value, ...}``; a Series
    contributes a single field named after the series (or ``value``). Missing
    values become None.
    """
    if isinstance(data, pd.Series):
        data = data.to_frame(name=data.name or "value")

    records = []
    for ts, row in zip(data.index, data.itertuples(index=False, name=None)):
        record: dict[str, Any] = {"time": pd.Timestamp(ts).strftime("%Y-%m-%d")}
        for column, value in zip(data.columns, row):
            if isinstance(value, (float, np.floating)) and not math.isfinite(value):
                record[str(column)] = None
            elif isinstance(value, np.generic):
                record[str(column)] = value.item()
            else:
                record[str(column)] = value
        records.append(record)
    return records
