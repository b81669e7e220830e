"""Load and clean the agency's ridership CSV exports.

The ridership portal publishes one CSV per view (by date, by day of week, by
month, by station, by time of day, and by tap technology). Headers carry
agency wording such as "AM Peak (Open-9:30am)" or "Avg Daily Tapped Entries"
and numbers are exported with thousands separators.

This module:
    - Normalizes every header to a canonical snake_case name.
    - Parses comma-formatted numbers, dates, and month labels.
    - Normalizes weekday and service-day values.
    - Drops rows that fail type checks and logs how many were dropped.
    - Returns an empty DataFrame (with a warning) when a file or a required
      column is missing, so callers can skip the dependent report section.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final, Iterable

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

# =============================================================================
# CONFIGURATION
# =============================================================================

WEEKDAYS: Final[tuple[str, ...]] = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)
WEEKEND: Final[frozenset[str]] = frozenset({"Saturday", "Sunday"})
SERVICE_DAYS: Final[tuple[str, ...]] = ("Weekday", "Saturday", "Sunday")

# Canonical time-of-day columns, in chronological order.
TIME_PERIODS: Final[tuple[str, ...]] = (
    "am_peak",
    "midday",
    "pm_peak",
    "evening",
    "late_night",
)
TIME_PERIOD_LABELS: Final[dict[str, str]] = {
    "am_peak": "AM Peak",
    "midday": "Midday",
    "pm_peak": "PM Peak",
    "evening": "Evening",
    "late_night": "Late Night",
}

MISSING_TOKENS: Final[frozenset[str]] = frozenset({"", "-", "--", "n/a", "na", "nan", "none", "null"})


@dataclass(frozen=True)
class DatasetSpec:
    """CSV file name plus the canonical columns it must provide.

    ``numeric`` lists every column parsed as a number; rows are dropped only
    when a *required* numeric column fails to parse.
    """

    filename: str
    required: tuple[str, ...]
    numeric: tuple[str, ...] = ()
    optional: tuple[str, ...] = field(default_factory=tuple)


DATASETS: Final[dict[str, DatasetSpec]] = {
    "daily": DatasetSpec(
        "Ridership_by_Date.csv",
        required=("date", "entries", "exits"),
        numeric=("entries", "exits"),
        optional=("day", "holiday"),
    ),
    "day_of_week": DatasetSpec(
        "Ridership_by_Day_of_Week.csv",
        required=("day", "avg_daily_entries"),
        numeric=("avg_daily_entries", "avg_daily_exits"),
        optional=("avg_daily_exits",),
    ),
    "monthly": DatasetSpec(
        "Ridership_by_Month.csv",
        required=("month", "entries"),
        numeric=("entries", "avg_daily_entries"),
        optional=("avg_daily_entries",),
    ),
    "station": DatasetSpec(
        "Ridership_by_Station.csv",
        required=("station_name", "avg_daily_tapped_entries", "avg_daily_nontapped_entries"),
        numeric=("avg_daily_tapped_entries", "avg_daily_nontapped_entries", "avg_daily_exits"),
        optional=("avg_daily_exits",),
    ),
    "time_period": DatasetSpec(
        "Ridership_by_Time_Period.csv",
        required=("station_name", *TIME_PERIODS),
        numeric=TIME_PERIODS,
    ),
    "fare_technology": DatasetSpec(
        "Ridership_by_Tap_Technology.csv",
        required=("service_day", "tap_technology", "entries"),
        numeric=("entries",),
    ),
}

# Post-normalization aliases -> canonical names.
COLUMN_ALIASES: Final[dict[str, str]] = {
    "station": "station_name",
    "stations": "station_name",
    "station_nm": "station_name",
    "day_of_week": "day",
    "day_of_the_week": "day",
    "dow": "day",
    "weekday": "day",
    "service_date": "date",
    "travel_date": "date",
    "month_year": "month",
    "mth_yr": "month",
    "period": "month",
    "boardings": "entries",
    "avg_daily_tap_entries": "avg_daily_tapped_entries",
    "avg_daily_nontap_entries": "avg_daily_nontapped_entries",
    "avg_daily_non_tap_entries": "avg_daily_nontapped_entries",
    "avg_daily_boardings": "avg_daily_entries",
    "avg_entries": "avg_daily_entries",
    "am_peak_period": "am_peak",
    "pm_peak_period": "pm_peak",
    "mid_day": "midday",
    "late_night_close": "late_night",
    "late_nite": "late_night",
    "night": "late_night",
    "fare_technology": "tap_technology",
    "tap_type": "tap_technology",
    "fare_media": "tap_technology",
    "media_type": "tap_technology",
    "technology": "tap_technology",
    "service_type": "service_day",
    "day_type": "service_day",
    "service_period": "service_day",
}

_AGG_PREFIXES: Final[tuple[str, ...]] = ("sum_of_", "count_of_", "total_")

_DAY_MAP: Final[dict[str, str]] = {
    "mon": "Monday",
    "monday": "Monday",
    "tue": "Tuesday",
    "tues": "Tuesday",
    "tuesday": "Tuesday",
    "wed": "Wednesday",
    "weds": "Wednesday",
    "wednesday": "Wednesday",
    "thu": "Thursday",
    "thur": "Thursday",
    "thurs": "Thursday",
    "thursday": "Thursday",
    "fri": "Friday",
    "friday": "Friday",
    "sat": "Saturday",
    "saturday": "Saturday",
    "sun": "Sunday",
    "sunday": "Sunday",
}

_SERVICE_DAY_MAP: Final[dict[str, str]] = {
    "weekday": "Weekday",
    "weekdays": "Weekday",
    "week day": "Weekday",
    "wkday": "Weekday",
    "wkdy": "Weekday",
    "mon-fri": "Weekday",
    "sat": "Saturday",
    "saturday": "Saturday",
    "sun": "Sunday",
    "sunday": "Sunday",
}

# =============================================================================
# FUNCTIONS
# =============================================================================


def normalise_column_name(name: object) -> str:
    """Return the canonical snake_case name for an agency header.

    >>> normalise_column_name("AM Peak (Open-9:30am)")
    'am_peak'
    >>> normalise_column_name(" Avg Daily Tapped Entries ")
    'avg_daily_tapped_entries'
    """
    s = str(name).strip()
    s = re.sub(r"\(.*?\)", " ", s)
    s = s.lower().replace("#", " ").replace("%", " pct ")
    s = re.sub(r"[^a-z0-9]+", " ", s)
    s = "_".join(s.split())
    for prefix in _AGG_PREFIXES:
        if s.startswith(prefix):
            s = s[len(prefix):]
            break
    s = s.replace("non_tapped", "nontapped")
    return COLUMN_ALIASES.get(s, s)


def normalise_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Rename every column to its canonical name; keep the first duplicate."""
    out = df.copy()
    out.columns = [normalise_column_name(c) for c in out.columns]
    dupes = out.columns[out.columns.duplicated()].unique().tolist()
    if dupes:
        logger.warning("Duplicate columns after normalization, keeping first: %s", dupes)
        out = out.loc[:, ~out.columns.duplicated()]
    return out


def coerce_numeric(series: pd.Series) -> pd.Series:
    """Coerce comma-formatted strings to float; unparseable values become NaN."""
    s = series.astype(str).str.replace(",", "", regex=False).str.strip()
    s = s.mask(s.str.lower().isin(MISSING_TOKENS))
    return pd.to_numeric(s, errors="coerce").astype(float)


def normalise_day(value: object) -> str:
    """Normalize a weekday label to Monday..Sunday ("" when blank)."""
    if value is None or (isinstance(value, float) and np.isnan(value)):
        return ""
    s = str(value).strip()
    if not s:
        return ""
    return _DAY_MAP.get(s.lower().rstrip("."), s.title())


def normalise_service_day(value: object) -> str:
    """Normalize service-day labels to Weekday / Saturday / Sunday where possible."""
    s = str(value).strip()
    return _SERVICE_DAY_MAP.get(s.lower(), s.title())


def parse_month(series: pd.Series) -> pd.Series:
    """Parse month labels into month-start timestamps.

    Accepts "Jan-2024", "January 2024", "2024-01", "1/2024" and full dates.
    """
    text = series.astype(str).str.strip()
    parsed = pd.Series(pd.NaT, index=series.index, dtype="datetime64[ns]")
    for fmt in ("%b-%Y", "%B %Y", "%b %Y", "%Y-%m", "%m/%Y", "%Y/%m"):
        todo = parsed.isna()
        if not todo.any():
            break
        parsed[todo] = pd.to_datetime(text[todo], format=fmt, errors="coerce")
    todo = parsed.isna()
    if todo.any():
        parsed[todo] = pd.to_datetime(text[todo], errors="coerce")
    return parsed.dt.to_period("M").dt.to_timestamp()


def weekday_categorical(series: pd.Series) -> pd.Series:
    """Return *series* as an ordered categorical with the 7 weekday levels."""
    return pd.Categorical(series, categories=list(WEEKDAYS), ordered=True)


def missing_weekday_levels(series: pd.Series) -> list[str]:
    """Weekday levels that never occur in *series*."""
    present = set(pd.Series(series).dropna().astype(str))
    return [d for d in WEEKDAYS if d not in present]


def weekday_levels_complete(series: pd.Series) -> bool:
    """True when all 7 weekday levels are observed."""
    return not missing_weekday_levels(series)


def check_required_columns(df: pd.DataFrame, required: Iterable[str]) -> list[str]:
    """Return the names in *required* that are absent from *df*."""
    return [c for c in required if c not in df.columns]


def _drop_invalid(df: pd.DataFrame, mask: pd.Series, key: str, reason: str) -> pd.DataFrame:
    n_bad = int(mask.sum())
    if n_bad:
        logger.warning("%s: dropped %d row(s) with %s", key, n_bad, reason)
    return df.loc[~mask].copy()


def clean_dataset(key: str, df: pd.DataFrame, spec: DatasetSpec | None = None) -> pd.DataFrame:
    """Normalize names and enforce the type invariants for dataset *key*.

    Returns an empty DataFrame when required columns are missing.
    """
    spec = spec or DATASETS[key]
    out = normalise_columns(df)

    missing = check_required_columns(out, spec.required)
    if missing:
        logger.warning(
            "%s (%s) is missing required column(s): %s; found: %s",
            key,
            spec.filename,
            ", ".join(missing),
            ", ".join(map(str, out.columns)),
        )
        return pd.DataFrame(columns=list(spec.required))

    for col in spec.numeric:
        if col in out.columns:
            out[col] = coerce_numeric(out[col])
    required_numeric = [c for c in spec.numeric if c in spec.required]
    out = _drop_invalid(
        out,
        out[required_numeric].isna().any(axis=1),
        key,
        "non-numeric values in " + ", ".join(required_numeric),
    )

    if "station_name" in out.columns:
        out["station_name"] = out["station_name"].astype(str).str.strip()
        out = _drop_invalid(out, out["station_name"] == "", key, "blank station names")

    if "date" in out.columns:
        out["date"] = pd.to_datetime(out["date"], errors="coerce")
        out = _drop_invalid(out, out["date"].isna(), key, "unparseable dates")
        if "day" not in out.columns:
            out["day"] = out["date"].dt.day_name()

    if "month" in out.columns:
        out["month"] = parse_month(out["month"])
        out = _drop_invalid(out, out["month"].isna(), key, "unparseable months")

    if "day" in out.columns:
        out["day"] = out["day"].map(normalise_day)
        out = _drop_invalid(out, ~out["day"].isin(WEEKDAYS), key, "unrecognized weekday values")
        out["day"] = weekday_categorical(out["day"])
        absent = missing_weekday_levels(out["day"])
        if absent and not out.empty:
            logger.warning("%s: weekday level(s) never observed: %s", key, ", ".join(absent))

    if "service_day" in out.columns:
        out["service_day"] = out["service_day"].map(normalise_service_day)

    if "tap_technology" in out.columns:
        out["tap_technology"] = out["tap_technology"].astype(str).str.strip()

    if "holiday" in out.columns:
        out["holiday"] = (
            out["holiday"].astype(str).str.strip().str.lower().isin({"y", "yes", "true", "1"})
        )

    sort_cols = [c for c in ("date", "month") if c in out.columns]
    if sort_cols:
        out = out.sort_values(sort_cols)
    return out.reset_index(drop=True)


def read_dataset(key: str, data_dir: Path, spec: DatasetSpec | None = None) -> pd.DataFrame:
    """Read and clean one CSV from *data_dir*; empty frame on any input problem."""
    spec = spec or DATASETS[key]
    path = Path(data_dir) / spec.filename
    if not path.exists():
        logger.warning("Dataset '%s' not found: %s (section will be skipped)", key, path)
        return pd.DataFrame(columns=list(spec.required))

    try:
        raw = pd.read_csv(path, dtype=str, encoding="utf-8-sig", keep_default_na=False)
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as exc:
        logger.warning("Failed to read %s: %s (section will be skipped)", path, exc)
        return pd.DataFrame(columns=list(spec.required))

    df = clean_dataset(key, raw, spec)
    logger.info("Loaded %-16s %6d rows from %s", key, len(df), path.name)
    return df


def load_all(data_dir: Path, keys: Iterable[str] | None = None) -> dict[str, pd.DataFrame]:
    """Load every catalogued dataset (or just *keys*) from *data_dir*."""
    wanted = list(keys) if keys is not None else list(DATASETS)
    unknown = [k for k in wanted if k not in DATASETS]
    if unknown:
        raise KeyError(f"Unknown dataset key(s): {', '.join(unknown)}")
    return {key: read_dataset(key, data_dir) for key in wanted}
