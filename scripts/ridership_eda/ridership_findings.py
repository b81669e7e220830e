"""Turn summary tables and test results into plain-language findings.

Findings are short sentences that restate what the numbers show. The
recommendations at the end are rule-based: each rule fires only when its
threshold (see CONFIGURATION) is crossed.
"""

from __future__ import annotations

from typing import Final

import numpy as np
import pandas as pd

from scripts.ridership_eda.ridership_stats import ClusterResult, HypothesisResult

# =============================================================================
# CONFIGURATION
# =============================================================================

NONTAP_ALERT_SHARE: Final[float] = 0.10  # station non-tap share worth a look
DECLINE_ALERT_PCT: Final[float] = 5.0  # latest month-over-month drop, in percent
WEEKEND_RATIO_ALERT: Final[float] = 0.60  # weekend / weekday mean entries

# =============================================================================
# FORMATTING
# =============================================================================


def format_p(p_value: float | None) -> str:
    """Render a p-value the way reports usually quote it."""
    if p_value is None or pd.isna(p_value):
        return "p = n/a"
    if p_value < 0.001:
        return "p < 0.001"
    return f"p = {p_value:.3f}"


def describe_test(result: HypothesisResult) -> str:
    """One-sentence summary of a hypothesis test outcome."""
    if result.status == "skipped":
        return f"{result.name}: not run ({result.detail})."
    if result.status == "failed":
        return f"{result.name}: could not be computed ({result.detail})."
    verdict = "significant" if result.significant else "not significant"
    return (
        f"{result.name}: statistic = {result.statistic:,.3f}, {format_p(result.p_value)} "
        f"({verdict} at alpha = {result.alpha:g}); {result.detail}."
    )


# =============================================================================
# FINDINGS
# =============================================================================


def daily_findings(
    summary: pd.DataFrame,
    split: pd.DataFrame,
    busiest: pd.DataFrame,
    quietest: pd.DataFrame,
    entries_exits: HypothesisResult | None = None,
) -> list[str]:
    out: list[str] = []
    if not summary.empty:
        entries = summary.set_index("measure").loc["entries"]
        out.append(
            f"Across {int(entries['count']):,} days, entries averaged {entries['mean']:,.0f} "
            f"per day (median {entries['median']:,.0f}, range {entries['min']:,.0f} to "
            f"{entries['max']:,.0f})."
        )
    if not split.empty and pd.notna(split["weekend_to_weekday"].iat[0]):
        ratio = split["weekend_to_weekday"].iat[0]
        out.append(f"An average weekend day carries {ratio:.0%} of an average weekday's entries.")
    if not busiest.empty:
        top = busiest.iloc[0]
        out.append(f"Busiest day: {top['date']:%Y-%m-%d} with {top['entries']:,.0f} entries.")
    if not quietest.empty:
        low = quietest.iloc[0]
        out.append(f"Quietest day: {low['date']:%Y-%m-%d} with {low['entries']:,.0f} entries.")
    if entries_exits is not None:
        out.append(describe_test(entries_exits))
    return out


def day_of_week_findings(profile: pd.DataFrame, anova: HypothesisResult) -> list[str]:
    out: list[str] = []
    observed = profile.dropna(subset=["mean"]) if not profile.empty else profile
    if not observed.empty:
        hi = observed.loc[observed["mean"].idxmax()]
        lo = observed.loc[observed["mean"].idxmin()]
        out.append(
            f"{hi['day']} is the busiest day of the week ({hi['mean']:,.0f} average entries); "
            f"{lo['day']} is the quietest ({lo['mean']:,.0f})."
        )
        missing = profile.loc[profile["count"].fillna(0) == 0, "day"].astype(str).tolist()
        if missing:
            out.append(f"No observations for: {', '.join(missing)}.")
    out.append(describe_test(anova))
    return out


def monthly_findings(trend: pd.DataFrame, decline_alert_pct: float = DECLINE_ALERT_PCT) -> list[str]:
    out: list[str] = []
    if trend.empty:
        return out
    peak = trend.loc[trend["entries"].idxmax()]
    low = trend.loc[trend["entries"].idxmin()]
    out.append(
        f"Peak month: {peak['month']:%b %Y} ({peak['entries']:,.0f} entries); "
        f"lowest: {low['month']:%b %Y} ({low['entries']:,.0f})."
    )
    if len(trend) >= 2 and np.isfinite(trend["mom_pct_change"].iat[-1]):
        latest = trend.iloc[-1]
        change = latest["mom_pct_change"]
        direction = "up" if change >= 0 else "down"
        out.append(
            f"Latest month ({latest['month']:%b %Y}) is {direction} {abs(change):.1f}% "
            "from the month before."
        )
        if change <= -decline_alert_pct:
            out.append(
                f"Alert: the latest month-over-month decline exceeds {decline_alert_pct:g}%."
            )
    if "yoy_pct_change" in trend.columns and pd.notna(trend["yoy_pct_change"].iat[-1]):
        out.append(f"Year over year, the latest month changed {trend['yoy_pct_change'].iat[-1]:+.1f}%.")
    return out


def station_findings(
    top: pd.DataFrame,
    tap_system: pd.DataFrame,
    tap_worst: pd.DataFrame,
    nontap_alert_share: float = NONTAP_ALERT_SHARE,
) -> list[str]:
    out: list[str] = []
    if not top.empty:
        lead = top.iloc[0]
        out.append(
            f"{lead['station_name']} is the busiest station with "
            f"{lead['avg_daily_total_entries']:,.0f} average daily entries."
        )
        leaders = ", ".join(top["station_name"].head(3))
        out.append(f"The top three stations are {leaders}.")
    if not tap_system.empty:
        nontap = tap_system.loc[tap_system["entry_type"] == "Non-tapped", "share"].iat[0]
        if pd.notna(nontap):
            out.append(f"Non-tapped entries are {nontap:.1%} of all station entries.")
    if not tap_worst.empty:
        flagged = tap_worst.loc[tap_worst["nontap_share"] >= nontap_alert_share]
        if not flagged.empty:
            names = ", ".join(
                f"{r.station_name} ({r.nontap_share:.0%})" for r in flagged.head(5).itertuples()
            )
            out.append(
                f"{len(flagged)} station(s) exceed a {nontap_alert_share:.0%} non-tap share: {names}."
            )
    return out


def time_period_findings(
    profile: pd.DataFrame,
    peaks: HypothesisResult,
    peak_stations: pd.DataFrame,
) -> list[str]:
    out: list[str] = []
    if not profile.empty and profile["share"].notna().any():
        top = profile.loc[profile["share"].idxmax()]
        out.append(
            f"{top['period']} carries the largest share of boardings ({top['share']:.0%})."
        )
        peak_share = profile.loc[profile["period"].isin(["AM Peak", "PM Peak"]), "share"].sum()
        out.append(f"The two peak periods together account for {peak_share:.0%} of boardings.")
    if not peak_stations.empty:
        counts = peak_stations["peak_period"].value_counts()
        parts = ", ".join(f"{period}: {n}" for period, n in counts.items())
        out.append(f"Stations by dominant period: {parts}.")
    out.append(describe_test(peaks))
    if peaks.significant:
        out.append(f"{peaks.extras.get('heavier')} boardings are significantly higher at the typical station.")
    return out


def fare_findings(mix: pd.DataFrame, chi_square: HypothesisResult) -> list[str]:
    out: list[str] = []
    if not mix.empty:
        overall = mix.groupby("tap_technology")["entries"].sum().sort_values(ascending=False)
        if overall.sum() > 0:
            share = overall / overall.sum()
            out.append(
                f"{share.index[0]} is the most used tap technology ({share.iat[0]:.0%} of entries)."
            )
    out.append(describe_test(chi_square))
    if chi_square.significant:
        v = chi_square.extras.get("cramers_v", np.nan)
        strength = "weak" if v < 0.1 else "moderate" if v < 0.3 else "strong"
        out.append(f"Tap technology mix depends on the service day ({strength} association).")
    return out


def cluster_findings(result: ClusterResult | None) -> list[str]:
    if result is None:
        return ["Station clustering was not run (not enough stations with time-of-day data)."]
    out = [f"K-means grouped stations into {result.k} time-of-day profile(s)."]
    for row in result.centroids.itertuples():
        examples = result.assignments.loc[
            result.assignments["cluster"] == row.cluster, "station_name"
        ].head(3)
        out.append(
            f"{row.cluster_label}: {int(row.n_stations)} station(s), e.g. {', '.join(examples)}."
        )
    return out


# =============================================================================
# RECOMMENDATIONS
# =============================================================================


def build_recommendations(
    *,
    anova: HypothesisResult | None = None,
    weekday_weekend: pd.DataFrame | None = None,
    peaks: HypothesisResult | None = None,
    tap_worst: pd.DataFrame | None = None,
    trend: pd.DataFrame | None = None,
    chi_square: HypothesisResult | None = None,
    clusters: ClusterResult | None = None,
    nontap_alert_share: float = NONTAP_ALERT_SHARE,
    decline_alert_pct: float = DECLINE_ALERT_PCT,
    weekend_ratio_alert: float = WEEKEND_RATIO_ALERT,
) -> list[str]:
    """Rule-based recommendations from whatever results are available."""
    recs: list[str] = []

    if anova is not None and anova.significant:
        recs.append(
            "Ridership differs by day of week: plan service and staffing per weekday "
            "rather than from a single weekday average."
        )

    if weekday_weekend is not None and not weekday_weekend.empty:
        ratio = weekday_weekend["weekend_to_weekday"].iat[0]
        if pd.notna(ratio) and ratio < weekend_ratio_alert:
            recs.append(
                f"Weekend demand is {ratio:.0%} of weekday demand: review weekend headways "
                "and use the gap for planned maintenance windows."
            )

    if peaks is not None and peaks.significant:
        recs.append(
            f"{peaks.extras.get('heavier')} is the heavier peak: weight peak-period "
            "capacity and station staffing toward it."
        )

    if tap_worst is not None and not tap_worst.empty:
        flagged = tap_worst.loc[tap_worst["nontap_share"] >= nontap_alert_share]
        if not flagged.empty:
            recs.append(
                f"Inspect fare gates and outreach at {len(flagged)} station(s) where "
                f"non-tapped entries exceed {nontap_alert_share:.0%}."
            )

    if trend is not None and len(trend) >= 2:
        change = trend["mom_pct_change"].iat[-1]
        if pd.notna(change) and change <= -decline_alert_pct:
            recs.append(
                f"Monthly entries fell {abs(change):.1f}% in the latest month: check for "
                "service disruptions or data gaps before treating it as a trend."
            )

    if chi_square is not None and chi_square.significant:
        recs.append(
            "Tap technology use varies by service day: target fare-media promotion to the "
            "days where newer technologies lag."
        )

    if clusters is not None and clusters.k > 1:
        recs.append(
            "Use the station clusters to tailor service: peak-heavy clusters for "
            "commute-focused frequency, off-peak clusters for all-day and evening service."
        )

    if not recs:
        recs.append("No threshold-based recommendations were triggered by this data.")
    return recs
