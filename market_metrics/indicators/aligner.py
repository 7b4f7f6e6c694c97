"""Time series normalization and cross-series alignment.

Raw observations arrive from the data layer as mappings with a ``time``
(ISO date string, epoch seconds, or a date/datetime) and a ``value``. This
module is the only place that parses them: entries with an unparseable date
or a non-finite value are dropped with a diagnostic, the remainder is sorted
and de-duplicated by calendar day. Every calculator downstream assumes its
input went through here and never re-sorts.
"""

from __future__ import annotations

import math
from datetime import date, datetime
from typing import Any, Iterable, Mapping

import numpy as np
import pandas as pd

from ..core.exceptions import InvalidParameterError, MalformedPointError
from ..core.logging import get_logger
from .types import INDEX_NAME, empty_series


logger = get_logger("indicators.aligner")


def parse_time(raw: Any) -> pd.Timestamp:
    """
    Parse an observation time to a day-resolution timestamp.

    Accepts ISO-8601 strings, epoch seconds (int/float), ``date``,
    ``datetime`` and ``pd.Timestamp``. Epoch seconds are UTC. Timezone-aware
    values keep their own calendar date; the offset is dropped, not applied.

    Raises:
        MalformedPointError: if the value cannot be parsed
    """
    if raw is None or isinstance(raw, bool):
        raise MalformedPointError(f"Unparseable time {raw!r}")

    try:
        if isinstance(raw, (int, float, np.integer, np.floating)):
            if not math.isfinite(float(raw)):
                raise ValueError("non-finite epoch")
            ts = pd.Timestamp(float(raw), unit="s")
        elif isinstance(raw, (datetime, date, pd.Timestamp)):
            ts = pd.Timestamp(raw)
        elif isinstance(raw, str):
            text = raw.strip()
            if not text:
                raise ValueError("empty string")
            ts = pd.Timestamp(text)
        else:
            raise TypeError(type(raw).__name__)
    except (ValueError, TypeError, OverflowError) as exc:
        raise MalformedPointError(
            f"Unparseable time {raw!r}", details={"reason": str(exc)}
        ) from exc

    if ts is pd.NaT or pd.isna(ts):
        raise MalformedPointError(f"Unparseable time {raw!r}")

    if ts.tzinfo is not None:
        ts = ts.tz_localize(None)
    return ts.normalize()


def parse_value(raw: Any) -> float:
    """
    Parse an observation value to a finite float.

    Raises:
        MalformedPointError: for None, non-numeric strings, NaN or infinity
    """
    if raw is None or isinstance(raw, bool):
        raise MalformedPointError(f"Non-numeric value {raw!r}")
    try:
        value = float(raw.strip() if isinstance(raw, str) else raw)
    except (ValueError, TypeError) as exc:
        raise MalformedPointError(f"Non-numeric value {raw!r}") from exc
    if not math.isfinite(value):
        raise MalformedPointError(f"Non-finite value {raw!r}")
    return value


def normalize_series(
    raw_points: Iterable[Mapping[str, Any]],
    name: str = "value",
    time_key: str = "time",
    value_key: str = "value",
    fill_invalid: bool = False,
) -> pd.Series:
    """
    Turn raw observations into a clean TimeSeries.

    Args:
        raw_points: Iterable of mappings with a time and a value entry
        name: Name given to the resulting series (used in diagnostics too)
        time_key: Key of the observation time
        value_key: Key of the observation value
        fill_invalid: Carry the last valid value forward over entries whose
            value is malformed instead of dropping them. Entries before the
            first valid value, and entries with a bad date, are still dropped.

    Returns:
        Float Series on an ascending, unique, day-normalized DatetimeIndex.
        When a calendar day appears more than once the last entry wins.
    """
    times: list[pd.Timestamp] = []
    values: list[float] = []
    dropped = 0
    filled = 0
    last_valid: float | None = None

    for position, point in enumerate(raw_points):
        if not isinstance(point, Mapping):
            dropped += 1
            logger.debug(
                "Dropping %s[%d]: not a mapping (%s)", name, position, type(point).__name__
            )
            continue

        try:
            ts = parse_time(point.get(time_key))
        except MalformedPointError as exc:
            dropped += 1
            logger.debug("Dropping %s[%d]: %s", name, position, exc.message)
            continue

        try:
            value = parse_value(point.get(value_key))
        except MalformedPointError as exc:
            if fill_invalid and last_valid is not None:
                value = last_valid
                filled += 1
            else:
                dropped += 1
                logger.debug("Dropping %s[%d]: %s", name, position, exc.message)
                continue

        last_valid = value
        times.append(ts)
        values.append(value)

    if dropped:
        logger.warning(
            "Dropped %d malformed points from %s",
            dropped,
            name,
            extra={"extra_fields": {"series": name, "dropped": dropped}},
        )
    if filled:
        logger.debug("Forward-filled %d points in %s", filled, name)

    if not times:
        return empty_series(name)

    series = pd.Series(values, index=pd.DatetimeIndex(times, name=INDEX_NAME), name=name)
    series = series[~series.index.duplicated(keep="last")]
    return series.sort_index(kind="mergesort").astype("float64")


def select_metric(
    raw_rows: Iterable[Mapping[str, Any]],
    metric: str,
    metric_key: str = "metric",
    **kwargs: Any,
) -> pd.Series:
    """
    Extract one named metric from on-chain ``{time, metric, value}`` rows.

    Metric names are matched case-insensitively. Extra keyword arguments are
    passed to :func:`normalize_series`.
    """
    wanted = metric.lower()
    rows = [
        row
        for row in raw_rows
        if isinstance(row, Mapping) and str(row.get(metric_key, "")).lower() == wanted
    ]
    kwargs.setdefault("name", metric)
    return normalize_series(rows, **kwargs)


def align_series(
    series: Mapping[str, pd.Series],
    anchor: str | None = None,
) -> pd.DataFrame:
    """
    Align several TimeSeries on exact calendar-day keys.

    Args:
        series: Mapping of column name to TimeSeries
        anchor: If given, only the dates of this series are kept. Otherwise
            the union of all dates is used.

    Returns:
        DataFrame with one column per input. A date missing from a series is
        NaN in that column; calculators needing the value skip that day.
    """
    if not series:
        return pd.DataFrame(index=pd.DatetimeIndex([], name=INDEX_NAME))
    if anchor is not None and anchor not in series:
        raise InvalidParameterError(
            f"Anchor '{anchor}' is not one of the aligned series",
            details={"available": sorted(series)},
        )

    frame = pd.concat(
        {name: s.astype("float64") for name, s in series.items()}, axis=1, join="outer"
    ).sort_index()
    frame.index.name = INDEX_NAME

    if anchor is not None:
        frame = frame.loc[series[anchor].index]
    return frame
