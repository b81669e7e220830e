"""Descriptive summaries, hypothesis tests, and station clustering.

Every function takes an already-cleaned DataFrame from
``ridership_loader`` and returns a new table or result object; nothing here
reads files or draws charts.

Hypothesis tests never raise on bad data. They return a
:class:`HypothesisResult` whose ``status`` is ``"ok"``, ``"skipped"`` (not
enough data to run the test) or ``"failed"`` (the library call raised).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Final

import numpy as np
import pandas as pd
from scipy import stats
from sklearn.cluster import KMeans

from scripts.ridership_eda.ridership_loader import (
    TIME_PERIOD_LABELS,
    TIME_PERIODS,
    WEEKDAYS,
    WEEKEND,
)

logger = logging.getLogger(__name__)

# =============================================================================
# CONFIGURATION
# =============================================================================

DEFAULT_ALPHA: Final[float] = 0.05
DEFAULT_TOP_N: Final[int] = 10
DEFAULT_CLUSTERS: Final[int] = 3
RANDOM_STATE: Final[int] = 42

ANOVA_NAME: Final[str] = "One-way ANOVA: daily entries by day of week"
CHI_SQUARE_NAME: Final[str] = "Chi-square: tap technology vs. service day"
PEAKS_TTEST_NAME: Final[str] = "Paired t-test: AM peak vs. PM peak boardings by station"
ENTRIES_EXITS_TTEST_NAME: Final[str] = "Paired t-test: daily entries vs. exits"

# =============================================================================
# RESULT TYPES
# =============================================================================


@dataclass(frozen=True)
class HypothesisResult:
    """Outcome of one statistical test."""

    name: str
    status: str
    statistic: float | None = None
    p_value: float | None = None
    dof: float | None = None
    alpha: float = DEFAULT_ALPHA
    detail: str = ""
    extras: dict[str, Any] = field(default_factory=dict)

    @property
    def significant(self) -> bool:
        return self.status == "ok" and self.p_value is not None and self.p_value < self.alpha

    def as_row(self) -> dict[str, Any]:
        """Flatten for tabular export."""
        return {
            "test": self.name,
            "status": self.status,
            "statistic": self.statistic,
            "p_value": self.p_value,
            "dof": self.dof,
            "alpha": self.alpha,
            "significant": self.significant,
            "detail": self.detail,
        }


@dataclass(frozen=True)
class ClusterResult:
    """K-means assignment of stations to time-of-day profiles."""

    assignments: pd.DataFrame  # station_name | cluster | cluster_label | shares...
    centroids: pd.DataFrame  # cluster | cluster_label | n_stations | shares...
    k: int
    inertia: float


def _skipped(name: str, reason: str, alpha: float) -> HypothesisResult:
    logger.warning("%s skipped: %s", name, reason)
    return HypothesisResult(name=name, status="skipped", alpha=alpha, detail=reason)


# =============================================================================
# DESCRIPTIVE SUMMARIES
# =============================================================================


def summarize_daily(daily: pd.DataFrame) -> pd.DataFrame:
    """Count/mean/median/std/min/max of daily entries and exits."""
    if daily.empty:
        return pd.DataFrame()
    cols = [c for c in ("entries", "exits") if c in daily.columns]
    summary = daily[cols].agg(["count", "mean", "median", "std", "min", "max"]).T
    summary.index.name = "measure"
    summary = summary.reset_index()
    if {"entries", "exits"} <= set(cols) and daily["entries"].sum() > 0:
        ratio = daily["exits"].sum() / daily["entries"].sum()
        logger.info("System exits/entries ratio: %.3f", ratio)
        summary["exits_to_entries"] = round(ratio, 4)
    return summary


def busiest_and_quietest_days(
    daily: pd.DataFrame, n: int = 5
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Return the *n* highest and lowest entry dates."""
    if daily.empty:
        return pd.DataFrame(), pd.DataFrame()
    cols = [c for c in ("date", "day", "entries", "exits") if c in daily.columns]
    ranked = daily[cols].sort_values("entries", ascending=False)
    busiest = ranked.head(n).reset_index(drop=True)
    quietest = ranked.tail(n).sort_values("entries").reset_index(drop=True)
    return busiest, quietest


def weekday_weekend_split(daily: pd.DataFrame) -> pd.DataFrame:
    """Mean daily entries for weekdays vs. weekends, plus the weekend/weekday ratio."""
    if daily.empty or "day" not in daily.columns:
        return pd.DataFrame()
    day_type = np.where(daily["day"].astype(str).isin(WEEKEND), "Weekend", "Weekday")
    out = (
        daily.assign(day_type=day_type)
        .groupby("day_type")["entries"]
        .agg(["count", "mean", "median"])
        .reindex(["Weekday", "Weekend"])
        .reset_index()
    )
    wd = out.loc[out["day_type"] == "Weekday", "mean"].iat[0]
    we = out.loc[out["day_type"] == "Weekend", "mean"].iat[0]
    out["weekend_to_weekday"] = we / wd if pd.notna(wd) and wd and pd.notna(we) else np.nan
    return out


def day_of_week_profile(daily: pd.DataFrame) -> pd.DataFrame:
    """Mean/median/std/n of daily entries for each weekday (Monday first)."""
    if daily.empty or "day" not in daily.columns:
        return pd.DataFrame()
    grouped = daily.groupby("day", observed=False)["entries"]
    profile = grouped.agg(["count", "mean", "median", "std"]).reindex(list(WEEKDAYS))
    total = profile["mean"].sum(skipna=True)
    profile["share_of_week"] = profile["mean"] / total if total else np.nan
    profile.index.name = "day"
    return profile.reset_index()


def monthly_trend(monthly: pd.DataFrame) -> pd.DataFrame:
    """Monthly entries with month-over-month and (when possible) year-over-year change."""
    if monthly.empty:
        return pd.DataFrame()
    trend = (
        monthly.groupby("month", as_index=False)["entries"]
        .sum()
        .sort_values("month")
        .reset_index(drop=True)
    )
    trend["mom_pct_change"] = trend["entries"].pct_change() * 100.0
    if len(trend) >= 13:
        by_month = trend.set_index("month")["entries"]
        prior = by_month.reindex(by_month.index - pd.DateOffset(years=1))
        trend["yoy_pct_change"] = (by_month.values / prior.values - 1.0) * 100.0
    return trend


def _with_station_totals(station: pd.DataFrame) -> pd.DataFrame:
    out = station.copy()
    out["avg_daily_total_entries"] = (
        out["avg_daily_tapped_entries"] + out["avg_daily_nontapped_entries"]
    )
    with np.errstate(divide="ignore", invalid="ignore"):
        out["tap_share"] = out["avg_daily_tapped_entries"] / out["avg_daily_total_entries"]
    out["nontap_share"] = 1.0 - out["tap_share"]
    return out


def station_rankings(
    station: pd.DataFrame, n: int = DEFAULT_TOP_N
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Top and bottom *n* stations by average daily entries (tapped + non-tapped)."""
    if station.empty:
        return pd.DataFrame(), pd.DataFrame()
    totals = _with_station_totals(station)
    cols = [
        "station_name",
        "avg_daily_total_entries",
        "avg_daily_tapped_entries",
        "avg_daily_nontapped_entries",
        "tap_share",
    ]
    ranked = totals[cols].sort_values("avg_daily_total_entries", ascending=False)
    top = ranked.head(n).reset_index(drop=True)
    bottom = ranked.tail(n).sort_values("avg_daily_total_entries").reset_index(drop=True)
    return top, bottom


def tap_share_summary(
    station: pd.DataFrame, n: int = DEFAULT_TOP_N
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """System tapped/non-tapped split and the stations with the highest non-tap share."""
    if station.empty:
        return pd.DataFrame(), pd.DataFrame()
    totals = _with_station_totals(station)
    tapped = totals["avg_daily_tapped_entries"].sum()
    nontapped = totals["avg_daily_nontapped_entries"].sum()
    grand = tapped + nontapped
    system = pd.DataFrame(
        {
            "entry_type": ["Tapped", "Non-tapped"],
            "avg_daily_entries": [tapped, nontapped],
            "share": [tapped / grand, nontapped / grand] if grand else [np.nan, np.nan],
        }
    )
    worst = (
        totals.loc[totals["avg_daily_total_entries"] > 0]
        .sort_values("nontap_share", ascending=False)
        .head(n)[["station_name", "avg_daily_total_entries", "avg_daily_nontapped_entries", "nontap_share"]]
        .reset_index(drop=True)
    )
    return system, worst


def time_period_profile(time_period: pd.DataFrame) -> pd.DataFrame:
    """System-wide boardings and share for each time-of-day period."""
    if time_period.empty:
        return pd.DataFrame()
    totals = time_period[list(TIME_PERIODS)].sum()
    grand = totals.sum()
    return pd.DataFrame(
        {
            "period": [TIME_PERIOD_LABELS[p] for p in TIME_PERIODS],
            "boardings": totals.values,
            "share": totals.values / grand if grand else np.nan,
        }
    )


def station_peak_periods(time_period: pd.DataFrame) -> pd.DataFrame:
    """Dominant time-of-day period for every station and its share of the day."""
    if time_period.empty:
        return pd.DataFrame()
    values = time_period.set_index("station_name")[list(TIME_PERIODS)]
    values = values.loc[values.sum(axis=1) > 0]
    if values.empty:
        return pd.DataFrame()
    shares = values.div(values.sum(axis=1), axis=0)
    out = pd.DataFrame(
        {
            "station_name": shares.index,
            "peak_period": shares.idxmax(axis=1).map(TIME_PERIOD_LABELS).values,
            "peak_share": shares.max(axis=1).values,
            "daily_boardings": values.sum(axis=1).values,
        }
    )
    return out.sort_values("daily_boardings", ascending=False).reset_index(drop=True)


def fare_technology_mix(fare: pd.DataFrame) -> pd.DataFrame:
    """Entries and within-service-day share for every tap technology."""
    if fare.empty:
        return pd.DataFrame()
    mix = fare.groupby(["service_day", "tap_technology"], as_index=False)["entries"].sum()
    day_totals = mix.groupby("service_day")["entries"].transform("sum")
    mix["share_of_service_day"] = mix["entries"] / day_totals.replace(0, np.nan)
    return mix.sort_values(["service_day", "entries"], ascending=[True, False]).reset_index(
        drop=True
    )


# =============================================================================
# HYPOTHESIS TESTS
# =============================================================================


def anova_day_of_week(daily: pd.DataFrame, alpha: float = DEFAULT_ALPHA) -> HypothesisResult:
    """One-way ANOVA: do mean daily entries differ across weekdays?"""
    name = ANOVA_NAME
    if daily.empty or "day" not in daily.columns:
        return _skipped(name, "no daily entries data", alpha)

    groups = {
        str(day): grp["entries"].dropna().to_numpy()
        for day, grp in daily.groupby("day", observed=True)
    }
    groups = {d: g for d, g in groups.items() if len(g) >= 2}
    if len(groups) < 2:
        return _skipped(name, "fewer than two weekdays with at least two observations", alpha)

    f_stat, p_value = stats.f_oneway(*groups.values())
    if not np.isfinite(f_stat):
        return _skipped(name, "F statistic undefined (zero within-group variance)", alpha)
    n_total = sum(len(g) for g in groups.values())
    return HypothesisResult(
        name=name,
        status="ok",
        statistic=float(f_stat),
        p_value=float(p_value),
        dof=float(len(groups) - 1),
        alpha=alpha,
        detail=f"{len(groups)} weekday groups, {n_total} days",
        extras={"group_means": {d: float(g.mean()) for d, g in groups.items()}},
    )


def chi_square_fare_by_day(fare: pd.DataFrame, alpha: float = DEFAULT_ALPHA) -> HypothesisResult:
    """Chi-square test of independence between tap technology and service day."""
    name = CHI_SQUARE_NAME
    if fare.empty:
        return _skipped(name, "no tap technology data", alpha)

    table = fare.pivot_table(
        index="tap_technology",
        columns="service_day",
        values="entries",
        aggfunc="sum",
        fill_value=0,
    )
    table = table.loc[table.sum(axis=1) > 0, table.sum(axis=0) > 0]
    if table.shape[0] < 2 or table.shape[1] < 2:
        return _skipped(name, f"contingency table is {table.shape[0]}x{table.shape[1]}", alpha)

    chi2, p_value, dof, _expected = stats.chi2_contingency(table.to_numpy())
    n = table.to_numpy().sum()
    cramers_v = np.sqrt(chi2 / (n * (min(table.shape) - 1))) if n else np.nan
    return HypothesisResult(
        name=name,
        status="ok",
        statistic=float(chi2),
        p_value=float(p_value),
        dof=float(dof),
        alpha=alpha,
        detail=f"{table.shape[0]} technologies x {table.shape[1]} service days; Cramer's V = {cramers_v:.3f}",
        extras={"cramers_v": float(cramers_v), "table": table},
    )


def _paired_ttest(
    name: str, a: pd.Series, b: pd.Series, label_a: str, label_b: str, alpha: float
) -> HypothesisResult:
    pairs = pd.concat([a, b], axis=1).dropna()
    if len(pairs) < 2:
        return _skipped(name, "fewer than two complete pairs", alpha)
    diff = pairs.iloc[:, 0] - pairs.iloc[:, 1]
    if np.isclose(diff.std(ddof=1), 0.0):
        return _skipped(name, "paired differences have zero variance", alpha)

    t_stat, p_value = stats.ttest_rel(pairs.iloc[:, 0], pairs.iloc[:, 1])
    mean_diff = float(diff.mean())
    heavier = label_a if mean_diff > 0 else label_b
    return HypothesisResult(
        name=name,
        status="ok",
        statistic=float(t_stat),
        p_value=float(p_value),
        dof=float(len(pairs) - 1),
        alpha=alpha,
        detail=f"{len(pairs)} pairs; mean difference ({label_a} - {label_b}) = {mean_diff:,.1f}",
        extras={"mean_difference": mean_diff, "heavier": heavier},
    )


def paired_ttest_peaks(time_period: pd.DataFrame, alpha: float = DEFAULT_ALPHA) -> HypothesisResult:
    """Paired t-test of AM peak vs. PM peak boardings across stations."""
    name = PEAKS_TTEST_NAME
    if time_period.empty:
        return _skipped(name, "no time-of-day data", alpha)
    return _paired_ttest(
        name, time_period["am_peak"], time_period["pm_peak"], "AM Peak", "PM Peak", alpha
    )


def paired_ttest_entries_exits(daily: pd.DataFrame, alpha: float = DEFAULT_ALPHA) -> HypothesisResult:
    """Paired t-test of daily entries vs. exits."""
    name = ENTRIES_EXITS_TTEST_NAME
    if daily.empty:
        return _skipped(name, "no daily entries data", alpha)
    return _paired_ttest(name, daily["entries"], daily["exits"], "Entries", "Exits", alpha)


def guarded_test(
    name: str,
    func: Callable[..., HypothesisResult],
    *args: Any,
    alpha: float = DEFAULT_ALPHA,
) -> HypothesisResult:
    """Run *func* and turn numerical errors into a ``failed`` result."""
    try:
        return func(*args, alpha=alpha)
    except (ValueError, ZeroDivisionError, FloatingPointError, np.linalg.LinAlgError) as exc:
        logger.warning("%s failed: %s", name, exc)
        return HypothesisResult(name=name, status="failed", alpha=alpha, detail=str(exc))


def run_all_tests(
    datasets: dict[str, pd.DataFrame], alpha: float = DEFAULT_ALPHA
) -> dict[str, HypothesisResult]:
    """Run every hypothesis test against whatever datasets are available."""
    empty = pd.DataFrame()
    return {
        "anova_day_of_week": guarded_test(
            ANOVA_NAME, anova_day_of_week, datasets.get("daily", empty), alpha=alpha
        ),
        "chi_square_fare_by_day": guarded_test(
            CHI_SQUARE_NAME, chi_square_fare_by_day, datasets.get("fare_technology", empty), alpha=alpha
        ),
        "paired_ttest_peaks": guarded_test(
            PEAKS_TTEST_NAME, paired_ttest_peaks, datasets.get("time_period", empty), alpha=alpha
        ),
        "paired_ttest_entries_exits": guarded_test(
            ENTRIES_EXITS_TTEST_NAME,
            paired_ttest_entries_exits,
            datasets.get("daily", empty),
            alpha=alpha,
        ),
    }


# =============================================================================
# CLUSTERING
# =============================================================================


def station_time_profiles(time_period: pd.DataFrame) -> pd.DataFrame:
    """Share of each station's boardings that falls in each period."""
    if time_period.empty:
        return pd.DataFrame(columns=list(TIME_PERIODS))
    values = time_period.groupby("station_name")[list(TIME_PERIODS)].sum()
    totals = values.sum(axis=1)
    dropped = int((totals <= 0).sum())
    if dropped:
        logger.warning("Dropped %d station(s) with zero boardings from clustering", dropped)
    values = values.loc[totals > 0]
    return values.div(values.sum(axis=1), axis=0)


def _label_clusters(centroids: pd.DataFrame) -> list[str]:
    labels: list[str] = []
    for _, row in centroids[list(TIME_PERIODS)].iterrows():
        ordered = row.sort_values(ascending=False)
        first = TIME_PERIOD_LABELS[ordered.index[0]]
        # Near-tie between the top two periods reads as a balanced profile.
        if ordered.iloc[0] - ordered.iloc[1] < 0.05:
            second = TIME_PERIOD_LABELS[ordered.index[1]]
            labels.append(f"Balanced {first}/{second}")
        else:
            labels.append(f"{first} dominant")
    seen: dict[str, int] = {}
    unique: list[str] = []
    for label in labels:
        seen[label] = seen.get(label, 0) + 1
        unique.append(label if seen[label] == 1 else f"{label} ({seen[label]})")
    return unique


def cluster_stations(
    time_period: pd.DataFrame,
    k: int = DEFAULT_CLUSTERS,
    random_state: int = RANDOM_STATE,
) -> ClusterResult | None:
    """Group stations by time-of-day share profile with k-means.

    *k* is clipped to the number of distinct profiles. Returns ``None`` when
    there are fewer than two stations to cluster.
    """
    profiles = station_time_profiles(time_period)
    if len(profiles) < 2:
        logger.warning("Clustering skipped: need at least two stations with boardings")
        return None

    n_distinct = len(profiles.round(6).drop_duplicates())
    k_eff = max(1, min(k, n_distinct))
    if k_eff != k:
        logger.warning("Requested %d clusters; using %d (distinct station profiles)", k, k_eff)

    km = KMeans(n_clusters=k_eff, n_init="auto", random_state=random_state)
    labels = km.fit_predict(profiles.to_numpy())

    centroids = pd.DataFrame(km.cluster_centers_, columns=list(TIME_PERIODS))
    centroids.insert(0, "cluster", range(k_eff))
    centroids["n_stations"] = np.bincount(labels, minlength=k_eff)
    centroids.insert(1, "cluster_label", _label_clusters(centroids))

    assignments = profiles.reset_index()
    assignments.insert(1, "cluster", labels)
    assignments.insert(
        2, "cluster_label", centroids.set_index("cluster").loc[labels, "cluster_label"].values
    )
    assignments = assignments.sort_values(["cluster", "station_name"]).reset_index(drop=True)

    return ClusterResult(
        assignments=assignments,
        centroids=centroids,
        k=k_eff,
        inertia=float(km.inertia_),
    )
