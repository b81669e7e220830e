"""Chart helpers for the ridership EDA report.

Each ``plot_*`` function writes a single PNG into *out_dir* and returns the
file path, or ``None`` when there is nothing to draw. Figures are always
closed after saving.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Final

import matplotlib

matplotlib.use("Agg")

import matplotlib.dates as mdates  # noqa: E402
import matplotlib.pyplot as plt  # noqa: E402
import matplotlib.ticker as mticker  # noqa: E402
import pandas as pd  # noqa: E402
import seaborn as sns  # noqa: E402

from scripts.ridership_eda.ridership_loader import (  # noqa: E402
    TIME_PERIOD_LABELS,
    TIME_PERIODS,
    WEEKDAYS,
)

logger = logging.getLogger(__name__)

# =============================================================================
# CONFIGURATION
# =============================================================================

PLOT_STYLE: Final[dict[str, Any]] = {
    "figsize": (10, 5),
    "wide_figsize": (11, 6),
    "marker": "o",
    "linestyle": "-",
    "grid": True,
    "rotation": 45,
    "dpi": 150,
}

# =============================================================================
# HELPERS
# =============================================================================


def ensure_dir(path: Path) -> None:
    """Create directory if it does not exist."""
    path.mkdir(parents=True, exist_ok=True)


def _save(fig: plt.Figure, out_dir: Path, filename: str) -> Path:
    ensure_dir(out_dir)
    out_path = out_dir / filename
    fig.tight_layout()
    fig.savefig(out_path, dpi=PLOT_STYLE["dpi"])
    plt.close(fig)
    logger.debug("Saved plot %s", out_path)
    return out_path


def _thousands(ax: plt.Axes, axis: str = "y") -> None:
    fmt = mticker.FuncFormatter(lambda v, _pos: f"{v:,.0f}")
    (ax.yaxis if axis == "y" else ax.xaxis).set_major_formatter(fmt)


# =============================================================================
# PLOTS
# =============================================================================


def plot_daily_series(daily: pd.DataFrame, out_dir: Path) -> Path | None:
    """Daily entries and exits with a 7-day rolling mean of entries."""
    if daily.empty:
        return None
    df = daily.sort_values("date")

    fig, ax = plt.subplots(figsize=PLOT_STYLE["wide_figsize"])
    ax.plot(df["date"], df["entries"], linewidth=0.8, alpha=0.6, label="Entries")
    ax.plot(df["date"], df["exits"], linewidth=0.8, alpha=0.6, label="Exits")
    ax.plot(
        df["date"],
        df["entries"].rolling(7, min_periods=1).mean(),
        linewidth=2,
        label="Entries (7-day mean)",
    )
    ax.set_title("Daily Entries and Exits")
    ax.set_xlabel("Date")
    ax.set_ylabel("Riders")
    ax.xaxis.set_major_formatter(mdates.DateFormatter("%b-%y"))
    _thousands(ax)
    ax.grid(PLOT_STYLE["grid"], alpha=0.3)
    ax.legend()
    return _save(fig, out_dir, "daily_entries_exits.png")


def plot_day_of_week_box(daily: pd.DataFrame, out_dir: Path) -> Path | None:
    """Distribution of daily entries for each weekday."""
    if daily.empty or "day" not in daily.columns:
        return None
    df = daily.assign(day=daily["day"].astype(str))

    fig, ax = plt.subplots(figsize=PLOT_STYLE["figsize"])
    sns.boxplot(data=df, x="day", y="entries", order=list(WEEKDAYS), ax=ax, color="#9ecae1")
    ax.set_title("Daily Entries by Day of Week")
    ax.set_xlabel("")
    ax.set_ylabel("Entries per day")
    _thousands(ax)
    ax.grid(PLOT_STYLE["grid"], axis="y", alpha=0.3)
    return _save(fig, out_dir, "entries_by_day_of_week.png")


def plot_monthly_trend(trend: pd.DataFrame, out_dir: Path) -> Path | None:
    """Monthly entries line chart."""
    if trend.empty:
        return None

    fig, ax = plt.subplots(figsize=PLOT_STYLE["figsize"])
    ax.plot(
        trend["month"],
        trend["entries"],
        marker=PLOT_STYLE["marker"],
        linestyle=PLOT_STYLE["linestyle"],
    )
    ax.set_title("Monthly Entries")
    ax.set_xlabel("Month")
    ax.set_ylabel("Entries")
    ax.set_ylim(0, trend["entries"].max() * 1.1)
    ax.xaxis.set_major_formatter(mdates.DateFormatter("%b-%y"))
    plt.setp(ax.get_xticklabels(), rotation=PLOT_STYLE["rotation"], ha="right")
    _thousands(ax)
    ax.grid(PLOT_STYLE["grid"], alpha=0.3)
    return _save(fig, out_dir, "monthly_entries.png")


def plot_top_stations(top: pd.DataFrame, out_dir: Path) -> Path | None:
    """Horizontal stacked bar of tapped / non-tapped entries for the busiest stations."""
    if top.empty:
        return None
    df = top.sort_values("avg_daily_total_entries")

    fig, ax = plt.subplots(figsize=(10, max(4, 0.45 * len(df) + 1)))
    ax.barh(df["station_name"], df["avg_daily_tapped_entries"], label="Tapped")
    ax.barh(
        df["station_name"],
        df["avg_daily_nontapped_entries"],
        left=df["avg_daily_tapped_entries"],
        label="Non-tapped",
    )
    ax.set_title(f"Top {len(df)} Stations by Average Daily Entries")
    ax.set_xlabel("Average daily entries")
    _thousands(ax, axis="x")
    ax.grid(PLOT_STYLE["grid"], axis="x", alpha=0.3)
    ax.legend(loc="lower right")
    return _save(fig, out_dir, "top_stations.png")


def plot_time_period_share(profile: pd.DataFrame, out_dir: Path) -> Path | None:
    """Bar chart of the system-wide share of boardings per time-of-day period."""
    if profile.empty:
        return None

    fig, ax = plt.subplots(figsize=PLOT_STYLE["figsize"])
    sns.barplot(data=profile, x="period", y="share", ax=ax, color="#3182bd")
    for patch, share in zip(ax.patches, profile["share"]):
        ax.annotate(
            f"{share:.0%}",
            (patch.get_x() + patch.get_width() / 2, patch.get_height()),
            ha="center",
            va="bottom",
        )
    ax.set_title("Share of Boardings by Time of Day")
    ax.set_xlabel("")
    ax.set_ylabel("Share of daily boardings")
    ax.yaxis.set_major_formatter(mticker.PercentFormatter(1.0))
    ax.grid(PLOT_STYLE["grid"], axis="y", alpha=0.3)
    return _save(fig, out_dir, "time_of_day_share.png")


def plot_fare_technology(mix: pd.DataFrame, out_dir: Path) -> Path | None:
    """100 % stacked bar of tap technology share within each service day."""
    if mix.empty:
        return None
    wide = mix.pivot_table(
        index="service_day", columns="tap_technology", values="share_of_service_day", fill_value=0
    )

    fig, ax = plt.subplots(figsize=PLOT_STYLE["figsize"])
    wide.plot(kind="bar", stacked=True, ax=ax, rot=0)
    ax.set_title("Entries by Tap Technology and Service Day")
    ax.set_xlabel("")
    ax.set_ylabel("Share of entries")
    ax.yaxis.set_major_formatter(mticker.PercentFormatter(1.0))
    ax.legend(title="Tap technology", bbox_to_anchor=(1.02, 1), loc="upper left")
    return _save(fig, out_dir, "tap_technology_mix.png")


def plot_cluster_profiles(centroids: pd.DataFrame, out_dir: Path) -> Path | None:
    """Line chart of each cluster's average time-of-day share profile."""
    if centroids.empty:
        return None
    x_labels = [TIME_PERIOD_LABELS[p] for p in TIME_PERIODS]

    fig, ax = plt.subplots(figsize=PLOT_STYLE["figsize"])
    for _, row in centroids.iterrows():
        ax.plot(
            x_labels,
            [row[p] for p in TIME_PERIODS],
            marker=PLOT_STYLE["marker"],
            label=f"{row['cluster_label']} (n={int(row['n_stations'])})",
        )
    ax.set_title("Station Clusters: Time-of-Day Boarding Profiles")
    ax.set_ylabel("Share of station boardings")
    ax.yaxis.set_major_formatter(mticker.PercentFormatter(1.0))
    ax.grid(PLOT_STYLE["grid"], alpha=0.3)
    ax.legend()
    return _save(fig, out_dir, "station_cluster_profiles.png")
