"""Build an exploratory HTML report from the agency's ridership CSV exports.

This script loads the ridership views (by date, day of week, month, station,
time of day, and tap technology), computes descriptive statistics, runs a
small set of classical tests, clusters stations by their time-of-day profile,
renders charts, and writes a single self-contained HTML report.

Features:
    - One report section per dataset; a missing file or column skips only
      that section and leaves a note in the report.
    - One-way ANOVA (day of week), chi-square (tap technology vs. service
      day), and paired t-tests (AM vs. PM peak, entries vs. exits).
    - K-means clustering of stations by share of boardings per time period.
    - Narrative findings and threshold-based recommendations.
    - Charts embedded in the HTML; every table also exported to one XLSX.

Outputs (folder: OUTPUT_DIR):
    - ridership_eda_report.html
    - ridership_eda_tables.xlsx
    - plots/*.png
    - ridership_eda.log
"""

from __future__ import annotations

import argparse
import base64
import html
import logging
import re
import sys
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Final

import pandas as pd
from openpyxl import load_workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from scripts.ridership_eda import ridership_findings as findings
from scripts.ridership_eda import ridership_plots as plots
from scripts.ridership_eda import ridership_stats as rstats
from scripts.ridership_eda.ridership_loader import DATASETS, TIME_PERIODS, load_all

logger = logging.getLogger(__name__)

# =============================================================================
# CONFIGURATION
# =============================================================================

DATA_DIR: Final[Path] = Path(r"Path\To\Your\Ridership_CSV_Folder")
OUTPUT_DIR: Final[Path] = Path(r"Path\To\Your\Output_Folder")

REPORT_FILENAME: Final[str] = "ridership_eda_report.html"
TABLES_FILENAME: Final[str] = "ridership_eda_tables.xlsx"
LOG_FILENAME: Final[str] = "ridership_eda.log"
PLOTS_SUBDIR: Final[str] = "plots"

REPORT_TITLE: Final[str] = "Rail Ridership Exploratory Analysis"

ALPHA: Final[float] = rstats.DEFAULT_ALPHA
N_CLUSTERS: Final[int] = rstats.DEFAULT_CLUSTERS
TOP_N: Final[int] = rstats.DEFAULT_TOP_N

MAKE_PLOTS: Final[bool] = True
WRITE_EXCEL: Final[bool] = True
LOG_LEVEL: Final[str] = "INFO"
LOG_FORMAT: Final[str] = "%(levelname)s: %(message)s"
FILE_LOG_FORMAT: Final[str] = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# =============================================================================
# DATA STRUCTURES
# =============================================================================


@dataclass(frozen=True)
class Config:
    """Runtime configuration."""

    data_dir: Path
    output_dir: Path
    alpha: float = ALPHA
    n_clusters: int = N_CLUSTERS
    top_n: int = TOP_N
    make_plots: bool = MAKE_PLOTS
    write_excel: bool = WRITE_EXCEL
    log_level: str = LOG_LEVEL


@dataclass
class RidershipAnalysis:
    """Every table and test result the report draws from."""

    daily_summary: pd.DataFrame = field(default_factory=pd.DataFrame)
    busiest_days: pd.DataFrame = field(default_factory=pd.DataFrame)
    quietest_days: pd.DataFrame = field(default_factory=pd.DataFrame)
    weekday_weekend: pd.DataFrame = field(default_factory=pd.DataFrame)
    dow_profile: pd.DataFrame = field(default_factory=pd.DataFrame)
    daily_regular: pd.DataFrame = field(default_factory=pd.DataFrame)
    holidays_excluded: int = 0
    monthly: pd.DataFrame = field(default_factory=pd.DataFrame)
    top_stations: pd.DataFrame = field(default_factory=pd.DataFrame)
    bottom_stations: pd.DataFrame = field(default_factory=pd.DataFrame)
    tap_system: pd.DataFrame = field(default_factory=pd.DataFrame)
    tap_worst: pd.DataFrame = field(default_factory=pd.DataFrame)
    time_profile: pd.DataFrame = field(default_factory=pd.DataFrame)
    peak_stations: pd.DataFrame = field(default_factory=pd.DataFrame)
    fare_mix: pd.DataFrame = field(default_factory=pd.DataFrame)
    tests: dict[str, rstats.HypothesisResult] = field(default_factory=dict)
    clusters: rstats.ClusterResult | None = None


@dataclass
class ReportSection:
    """One titled block of the report."""

    title: str
    findings: list[str] = field(default_factory=list)
    tables: dict[str, pd.DataFrame] = field(default_factory=dict)
    figures: list[Path] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)


# =============================================================================
# ANALYSIS
# =============================================================================


def analyse(datasets: dict[str, pd.DataFrame], cfg: Config) -> RidershipAnalysis:
    """Compute all summaries, tests, and clusters for the loaded datasets."""
    empty = pd.DataFrame()
    daily = datasets.get("daily", empty)
    station = datasets.get("station", empty)
    time_period = datasets.get("time_period", empty)

    result = RidershipAnalysis()

    # Day-level tests run on regular service days only.
    daily_for_tests = daily
    if not daily.empty and "holiday" in daily.columns:
        result.holidays_excluded = int(daily["holiday"].sum())
        daily_for_tests = daily.loc[~daily["holiday"]]
        if result.holidays_excluded:
            logger.info("Excluding %d holiday(s) from day-of-week tests", result.holidays_excluded)

    result.daily_summary = rstats.summarize_daily(daily)
    result.busiest_days, result.quietest_days = rstats.busiest_and_quietest_days(daily)
    result.daily_regular = daily_for_tests
    result.weekday_weekend = rstats.weekday_weekend_split(daily_for_tests)
    result.dow_profile = rstats.day_of_week_profile(daily_for_tests)
    result.monthly = rstats.monthly_trend(datasets.get("monthly", empty))
    result.top_stations, result.bottom_stations = rstats.station_rankings(station, cfg.top_n)
    result.tap_system, result.tap_worst = rstats.tap_share_summary(station, cfg.top_n)
    result.time_profile = rstats.time_period_profile(time_period)
    result.peak_stations = rstats.station_peak_periods(time_period)
    result.fare_mix = rstats.fare_technology_mix(datasets.get("fare_technology", empty))

    result.tests = rstats.run_all_tests({**datasets, "daily": daily_for_tests}, alpha=cfg.alpha)
    result.clusters = rstats.cluster_stations(time_period, k=cfg.n_clusters)
    return result


def make_plots(analysis: RidershipAnalysis, datasets: dict[str, pd.DataFrame], plot_dir: Path) -> dict[str, Path | None]:
    """Render every chart; keys match the report sections that embed them."""
    daily = datasets.get("daily", pd.DataFrame())
    centroids = analysis.clusters.centroids if analysis.clusters is not None else pd.DataFrame()
    return {
        "daily": plots.plot_daily_series(daily, plot_dir),
        "day_of_week": plots.plot_day_of_week_box(analysis.daily_regular, plot_dir),
        "monthly": plots.plot_monthly_trend(analysis.monthly, plot_dir),
        "station": plots.plot_top_stations(analysis.top_stations, plot_dir),
        "time_period": plots.plot_time_period_share(analysis.time_profile, plot_dir),
        "fare_technology": plots.plot_fare_technology(analysis.fare_mix, plot_dir),
        "clusters": plots.plot_cluster_profiles(centroids, plot_dir),
    }


# =============================================================================
# SECTIONS
# =============================================================================


def _skip_note(key: str) -> str:
    spec = DATASETS[key]
    logger.warning("Skipping report section for '%s' (%s)", key, spec.filename)
    return (
        f"Section skipped: '{spec.filename}' was missing, unreadable, or lacked the "
        f"required columns ({', '.join(spec.required)})."
    )


def _figures(*paths: Path | None) -> list[Path]:
    return [p for p in paths if p is not None]


def build_daily_section(
    analysis: RidershipAnalysis, daily: pd.DataFrame, figures: dict[str, Path | None]
) -> ReportSection:
    sec = ReportSection("Daily Entries and Exits")
    if daily.empty:
        sec.notes.append(_skip_note("daily"))
        return sec
    sec.findings = findings.daily_findings(
        analysis.daily_summary,
        analysis.weekday_weekend,
        analysis.busiest_days,
        analysis.quietest_days,
        analysis.tests.get("paired_ttest_entries_exits"),
    )
    sec.tables = {
        "Daily summary": analysis.daily_summary,
        "Weekday vs weekend": analysis.weekday_weekend,
        "Busiest days": analysis.busiest_days,
        "Quietest days": analysis.quietest_days,
    }
    sec.figures = _figures(figures.get("daily"))
    return sec


def build_day_of_week_section(
    analysis: RidershipAnalysis, published: pd.DataFrame, figures: dict[str, Path | None]
) -> ReportSection:
    """Weekday profile from the daily file, plus the published weekday averages."""
    sec = ReportSection("Ridership by Day of Week")
    if analysis.dow_profile.empty and published.empty:
        sec.notes.append(_skip_note("daily"))
        sec.notes.append(_skip_note("day_of_week"))
        return sec

    if analysis.dow_profile.empty:
        sec.notes.append(
            "Weekday distribution and ANOVA need the daily file; showing published averages only."
        )
    else:
        sec.findings = findings.day_of_week_findings(
            analysis.dow_profile, analysis.tests["anova_day_of_week"]
        )
        sec.tables["Daily entries by weekday"] = analysis.dow_profile
        if analysis.holidays_excluded:
            sec.notes.append(
                f"{analysis.holidays_excluded} holiday(s) excluded from weekday statistics."
            )

    if not published.empty:
        sec.tables["Published day-of-week averages"] = published
        top = published.loc[published["avg_daily_entries"].idxmax()]
        sec.findings.append(
            f"Published averages rank {top['day']} highest "
            f"({top['avg_daily_entries']:,.0f} entries per day)."
        )
    sec.figures = _figures(figures.get("day_of_week"))
    return sec


def build_monthly_section(analysis: RidershipAnalysis, figures: dict[str, Path | None]) -> ReportSection:
    sec = ReportSection("Ridership by Month")
    if analysis.monthly.empty:
        sec.notes.append(_skip_note("monthly"))
        return sec
    sec.findings = findings.monthly_findings(analysis.monthly)
    sec.tables["Monthly entries"] = analysis.monthly
    sec.figures = _figures(figures.get("monthly"))
    return sec


def build_station_section(
    analysis: RidershipAnalysis, figures: dict[str, Path | None], top_n: int
) -> ReportSection:
    sec = ReportSection("Ridership by Station and Entry Type")
    if analysis.top_stations.empty:
        sec.notes.append(_skip_note("station"))
        return sec
    sec.findings = findings.station_findings(
        analysis.top_stations, analysis.tap_system, analysis.tap_worst
    )
    sec.tables = {
        f"Top {top_n} stations": analysis.top_stations,
        f"Bottom {top_n} stations": analysis.bottom_stations,
        "Tapped vs non-tapped entries": analysis.tap_system,
        "Highest non-tap share": analysis.tap_worst,
    }
    sec.figures = _figures(figures.get("station"))
    return sec


def build_time_period_section(analysis: RidershipAnalysis, figures: dict[str, Path | None]) -> ReportSection:
    sec = ReportSection("Ridership by Time of Day")
    if analysis.time_profile.empty:
        sec.notes.append(_skip_note("time_period"))
        return sec
    sec.findings = findings.time_period_findings(
        analysis.time_profile, analysis.tests["paired_ttest_peaks"], analysis.peak_stations
    )
    sec.tables = {
        "System share by period": analysis.time_profile,
        "Station peak periods": analysis.peak_stations,
    }
    sec.figures = _figures(figures.get("time_period"))
    return sec


def build_fare_section(analysis: RidershipAnalysis, figures: dict[str, Path | None]) -> ReportSection:
    sec = ReportSection("Entries by Tap Technology")
    if analysis.fare_mix.empty:
        sec.notes.append(_skip_note("fare_technology"))
        return sec
    sec.findings = findings.fare_findings(analysis.fare_mix, analysis.tests["chi_square_fare_by_day"])
    sec.tables["Tap technology mix"] = analysis.fare_mix
    sec.figures = _figures(figures.get("fare_technology"))
    return sec


def build_cluster_section(analysis: RidershipAnalysis, figures: dict[str, Path | None]) -> ReportSection:
    sec = ReportSection("Station Clusters by Time-of-Day Profile")
    sec.findings = findings.cluster_findings(analysis.clusters)
    if analysis.clusters is not None:
        sec.tables = {
            "Cluster profiles": analysis.clusters.centroids,
            "Station assignments": analysis.clusters.assignments,
        }
        sec.figures = _figures(figures.get("clusters"))
    return sec


def build_tests_section(analysis: RidershipAnalysis) -> ReportSection:
    sec = ReportSection("Statistical Tests")
    sec.findings = [findings.describe_test(t) for t in analysis.tests.values()]
    results = pd.DataFrame([t.as_row() for t in analysis.tests.values()])
    for col in ("statistic", "p_value", "dof"):
        results[col] = pd.to_numeric(results[col], errors="coerce")
    sec.tables["Test results"] = results
    return sec


def build_recommendations_section(analysis: RidershipAnalysis) -> ReportSection:
    tests = analysis.tests
    recs = findings.build_recommendations(
        anova=tests.get("anova_day_of_week"),
        weekday_weekend=analysis.weekday_weekend,
        peaks=tests.get("paired_ttest_peaks"),
        tap_worst=analysis.tap_worst,
        trend=analysis.monthly,
        chi_square=tests.get("chi_square_fare_by_day"),
        clusters=analysis.clusters,
    )
    return ReportSection("Recommendations", findings=recs)


def build_sections(
    analysis: RidershipAnalysis,
    datasets: dict[str, pd.DataFrame],
    figures: dict[str, Path | None],
    cfg: Config,
) -> list[ReportSection]:
    """Assemble the report sections in reading order."""
    empty = pd.DataFrame()
    return [
        build_daily_section(analysis, datasets.get("daily", empty), figures),
        build_day_of_week_section(analysis, datasets.get("day_of_week", empty), figures),
        build_monthly_section(analysis, figures),
        build_station_section(analysis, figures, cfg.top_n),
        build_time_period_section(analysis, figures),
        build_fare_section(analysis, figures),
        build_cluster_section(analysis, figures),
        build_tests_section(analysis),
        build_recommendations_section(analysis),
    ]


# =============================================================================
# RENDERING + EXPORT
# =============================================================================

_CSS: Final[str] = """
body { font-family: Segoe UI, Helvetica, Arial, sans-serif; margin: 2em auto; max-width: 1100px; color: #222; }
h1 { border-bottom: 3px solid #3182bd; padding-bottom: .3em; }
h2 { margin-top: 2em; color: #08519c; }
table.data { border-collapse: collapse; margin: .5em 0 1.5em; font-size: .9em; }
table.data th, table.data td { border: 1px solid #ccc; padding: 4px 8px; text-align: right; }
table.data th { background: #deebf7; }
.note { color: #a63603; font-style: italic; }
img { max-width: 100%; margin: 1em 0; }
"""


# Float columns holding 0-1 shares without "share" in the name.
SHARE_COLUMNS: Final[frozenset[str]] = frozenset({*TIME_PERIODS, "weekend_to_weekday"})


def format_table(df: pd.DataFrame) -> pd.DataFrame:
    """Return a display copy: dates as text, shares as percentages, thousands separators."""
    out = df.copy()
    for col in out.columns:
        s = out[col]
        name = str(col)
        if pd.api.types.is_datetime64_any_dtype(s):
            fmt = "%b %Y" if name == "month" else "%Y-%m-%d"
            out[col] = s.dt.strftime(fmt).fillna("")
        elif isinstance(s.dtype, pd.CategoricalDtype) or pd.api.types.is_bool_dtype(s):
            out[col] = s.astype(str)
        elif pd.api.types.is_float_dtype(s):
            if "share" in name or name in SHARE_COLUMNS:
                pattern = "{:.1%}"
            elif name == "p_value":
                pattern = "{:.4g}"
            elif "pct" in name:
                pattern = "{:+.1f}%"
            elif (s.dropna() % 1 == 0).all():
                pattern = "{:,.0f}"
            else:
                pattern = "{:,.2f}"
            out[col] = s.map(lambda v, p=pattern: "" if pd.isna(v) else p.format(v))
        elif pd.api.types.is_integer_dtype(s):
            out[col] = s.map("{:,}".format)
    return out


def _img_tag(path: Path) -> str:
    data = base64.b64encode(path.read_bytes()).decode("ascii")
    alt = html.escape(path.stem.replace("_", " "))
    return f'<img alt="{alt}" src="data:image/png;base64,{data}">'


def render_html(sections: list[ReportSection], title: str = REPORT_TITLE, generated: datetime | None = None) -> str:
    """Render the sections into one self-contained HTML document."""
    generated = generated or datetime.now()
    parts: list[str] = [
        "<!DOCTYPE html>",
        '<html lang="en"><head><meta charset="utf-8">',
        f"<title>{html.escape(title)}</title>",
        f"<style>{_CSS}</style></head><body>",
        f"<h1>{html.escape(title)}</h1>",
        f"<p>Generated {generated:%Y-%m-%d %H:%M}</p>",
    ]
    for sec in sections:
        parts.append(f"<h2>{html.escape(sec.title)}</h2>")
        for note in sec.notes:
            parts.append(f'<p class="note">{html.escape(note)}</p>')
        if sec.findings:
            parts.append("<ul>")
            parts.extend(f"<li>{html.escape(f)}</li>" for f in sec.findings)
            parts.append("</ul>")
        for fig in sec.figures:
            parts.append(_img_tag(fig))
        for caption, table in sec.tables.items():
            if table.empty:
                continue
            parts.append(f"<h3>{html.escape(caption)}</h3>")
            parts.append(format_table(table).to_html(index=False, classes="data", border=0, na_rep=""))
    parts.append("</body></html>")
    return "\n".join(parts)


def write_report(report_html: str, path: Path) -> Path:
    """Write the HTML report to *path*."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(report_html, encoding="utf-8")
    except OSError as exc:
        logger.error("Error writing the report: %s", exc)
        raise
    logger.info("Report written -> %s", path)
    return path


def _sheet_name(caption: str, used: set[str]) -> str:
    base = re.sub(r"[\[\]:*?/\\]", "", caption)[:31] or "Sheet"
    name, n = base, 2
    while name.lower() in used:
        suffix = f" ({n})"
        name = base[: 31 - len(suffix)] + suffix
        n += 1
    used.add(name.lower())
    return name


def export_tables_to_excel(sections: list[ReportSection], path: Path) -> Path | None:
    """Write every non-empty report table to its own sheet in *path*."""
    tables = [(c, t) for sec in sections for c, t in sec.tables.items() if not t.empty]
    if not tables:
        logger.warning("No tables to export; skipping %s", path.name)
        return None
    path.parent.mkdir(parents=True, exist_ok=True)
    used: set[str] = set()
    try:
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            for caption, table in tables:
                out = table.copy()
                for col in out.columns:
                    if isinstance(out[col].dtype, pd.CategoricalDtype):
                        out[col] = out[col].astype(str)
                out.to_excel(writer, sheet_name=_sheet_name(caption, used), index=False)
        adjust_excel_formatting(path)
    except OSError as exc:
        logger.error("Error writing the Excel tables: %s", exc)
        raise
    logger.info("Tables written -> %s", path)
    return path


def adjust_excel_formatting(output_file: Path) -> None:
    """Bold the header row and auto-size columns for *output_file*."""
    workbook = load_workbook(output_file)
    for sheet in workbook.worksheets:
        for cell in sheet[1]:
            cell.font = Font(bold=True)
        for col_idx, column_cells in enumerate(sheet.columns, start=1):
            max_length = max(len(str(c.value)) if c.value is not None else 0 for c in column_cells)
            sheet.column_dimensions[get_column_letter(col_idx)].width = min(max_length + 2, 60)
    workbook.save(output_file)


def log_findings(sections: list[ReportSection]) -> None:
    """Echo the narrative findings to the log."""
    for sec in sections:
        logger.info("=== %s ===", sec.title.upper())
        for note in sec.notes:
            logger.info("  (!) %s", note)
        for line in sec.findings:
            logger.info("  - %s", line)


# =============================================================================
# ARGUMENTS + LOGGING
# =============================================================================


def _probability(value: str) -> float:
    x = float(value)
    if not 0.0 < x < 1.0:
        raise argparse.ArgumentTypeError(f"alpha must be between 0 and 1, got {value}")
    return x


def _positive_int(value: str) -> int:
    n = int(value)
    if n < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return n


def build_arg_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser."""
    p = argparse.ArgumentParser(description="Exploratory analysis report for ridership CSV exports.")
    p.add_argument("-i", "--data-dir", default=str(DATA_DIR), help="Folder holding the ridership CSVs.")
    p.add_argument("-o", "--output-dir", default=str(OUTPUT_DIR), help="Folder for the report and tables.")
    p.add_argument("--alpha", type=_probability, default=ALPHA, help="Significance level for tests.")
    p.add_argument("-k", "--clusters", type=_positive_int, default=N_CLUSTERS, help="Number of station clusters.")
    p.add_argument("--top-n", type=_positive_int, default=TOP_N, help="Stations listed in top/bottom tables.")
    p.add_argument("--no-plots", action="store_true", help="Skip chart rendering.")
    p.add_argument("--no-excel", action="store_true", help="Skip the XLSX table export.")
    p.add_argument(
        "--log-level",
        default=LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Console/file log level.",
    )
    return p


def setup_logging(level: int | str = logging.INFO, log_file: Path | None = None) -> None:
    """Configure root logging to stdout and, optionally, to *log_file*.

    Safe to call more than once (e.g. from a notebook); earlier handlers are replaced.
    """
    if isinstance(level, str):
        name = level.upper()
        level = logging.getLevelName(name)
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {name!r}")

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT))
        handlers.append(file_handler)

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)

    # matplotlib's font manager is chatty at DEBUG.
    logging.getLogger("matplotlib").setLevel(max(level, logging.INFO))


# =============================================================================
# MAIN
# =============================================================================


def main(argv: list[str] | None = None) -> None:
    """Entrypoint.

    Args:
        argv: Optional explicit argv list (e.g., [] for notebooks). If None, uses sys.argv.
    """
    parser = build_arg_parser()
    # Accept unknown args to be notebook/IPython friendly.
    args, unknown = parser.parse_known_args(argv)
    cfg = Config(
        data_dir=Path(args.data_dir).expanduser(),
        output_dir=Path(args.output_dir).expanduser(),
        alpha=args.alpha,
        n_clusters=args.clusters,
        top_n=args.top_n,
        make_plots=not args.no_plots,
        write_excel=not args.no_excel,
        log_level=args.log_level,
    )
    cfg.output_dir.mkdir(parents=True, exist_ok=True)
    setup_logging(cfg.log_level, log_file=cfg.output_dir / LOG_FILENAME)
    if unknown:
        logger.warning("Ignoring unknown CLI args (likely from IPython): %s", unknown)

    logger.info("=== STEP 1: LOAD DATA (%s) ===", cfg.data_dir)
    datasets = load_all(cfg.data_dir)
    if all(df.empty for df in datasets.values()):
        logger.warning("No usable datasets found in %s; the report will contain only notes.", cfg.data_dir)

    logger.info("=== STEP 2: ANALYSE ===")
    analysis = analyse(datasets, cfg)

    logger.info("=== STEP 3: PLOTS ===")
    figures: dict[str, Path | None] = {}
    if cfg.make_plots:
        figures = make_plots(analysis, datasets, cfg.output_dir / PLOTS_SUBDIR)
    else:
        logger.info("Plotting disabled.")

    logger.info("=== STEP 4: REPORT ===")
    sections = build_sections(analysis, datasets, figures, cfg)
    write_report(render_html(sections), cfg.output_dir / REPORT_FILENAME)
    if cfg.write_excel:
        export_tables_to_excel(sections, cfg.output_dir / TABLES_FILENAME)

    log_findings(sections)
    logger.info("All processing complete.")


if __name__ == "__main__":
    main()
