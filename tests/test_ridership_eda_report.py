from pathlib import Path
from unittest.mock import patch

import pandas as pd
import pytest
from openpyxl import load_workbook

from scripts.ridership_eda import ridership_eda_report as report
from scripts.ridership_eda.ridership_loader import load_all

FIXTURE_DIR = Path(__file__).parent / "fixtures"


def test_main_end_to_end(tmp_path: Path) -> None:
    """Full run over the fixture CSVs writes the report, tables, plots, and log."""
    out_dir = tmp_path / "out"

    report.main(["--data-dir", str(FIXTURE_DIR), "--output-dir", str(out_dir)])

    html_path = out_dir / report.REPORT_FILENAME
    xlsx_path = out_dir / report.TABLES_FILENAME
    assert html_path.exists()
    assert xlsx_path.exists()
    assert (out_dir / report.LOG_FILENAME).exists()

    pngs = sorted(p.name for p in (out_dir / report.PLOTS_SUBDIR).glob("*.png"))
    assert pngs == [
        "daily_entries_exits.png",
        "entries_by_day_of_week.png",
        "monthly_entries.png",
        "station_cluster_profiles.png",
        "tap_technology_mix.png",
        "time_of_day_share.png",
        "top_stations.png",
    ]

    text = html_path.read_text(encoding="utf-8")
    for title in (
        "Daily Entries and Exits",
        "Ridership by Day of Week",
        "Ridership by Month",
        "Ridership by Station and Entry Type",
        "Ridership by Time of Day",
        "Entries by Tap Technology",
        "Station Clusters by Time-of-Day Profile",
        "Statistical Tests",
        "Recommendations",
    ):
        assert f"<h2>{title}</h2>" in text
    assert text.count("data:image/png;base64,") == 7
    assert "1 holiday(s) excluded" in text
    assert "Section skipped" not in text

    wb = load_workbook(xlsx_path)
    assert "Daily summary" in wb.sheetnames
    assert "Published day-of-week averages" in wb.sheetnames
    assert all(len(name) <= 31 for name in wb.sheetnames)
    assert wb["Test results"]["A1"].font.bold


def test_main_with_no_data_skips_every_section(tmp_path: Path) -> None:
    data_dir = tmp_path / "empty"
    data_dir.mkdir()
    out_dir = tmp_path / "out"

    report.main(
        ["--data-dir", str(data_dir), "--output-dir", str(out_dir), "--no-plots", "--no-excel"]
    )

    text = (out_dir / report.REPORT_FILENAME).read_text(encoding="utf-8")
    assert "Section skipped" in text
    assert "No threshold-based recommendations" in text
    assert not (out_dir / report.TABLES_FILENAME).exists()
    assert not (out_dir / report.PLOTS_SUBDIR).exists()


def test_main_skips_only_missing_section(tmp_path: Path) -> None:
    data_dir = tmp_path / "partial"
    data_dir.mkdir()
    for csv in FIXTURE_DIR.glob("*.csv"):
        if csv.name != "Ridership_by_Tap_Technology.csv":
            (data_dir / csv.name).write_bytes(csv.read_bytes())
    out_dir = tmp_path / "out"

    report.main(["-i", str(data_dir), "-o", str(out_dir), "--no-plots", "--no-excel"])

    text = (out_dir / report.REPORT_FILENAME).read_text(encoding="utf-8")
    assert text.count("Section skipped") == 1
    assert "Ridership_by_Tap_Technology.csv" in text


def test_main_uses_configured_defaults(tmp_path: Path) -> None:
    with (
        patch.object(report, "DATA_DIR", FIXTURE_DIR),
        patch.object(report, "OUTPUT_DIR", tmp_path),
    ):
        report.main(["--no-plots", "--no-excel"])
    assert (tmp_path / report.REPORT_FILENAME).exists()


@pytest.mark.parametrize(
    "argv",
    [["--alpha", "1.5"], ["--alpha", "0"], ["--clusters", "0"], ["--top-n", "-2"]],
)
def test_arg_parser_rejects_invalid_values(argv: list[str]) -> None:
    with pytest.raises(SystemExit):
        report.build_arg_parser().parse_args(argv)


def test_arg_parser_defaults() -> None:
    args = report.build_arg_parser().parse_args([])
    assert args.alpha == report.ALPHA
    assert args.clusters == report.N_CLUSTERS
    assert args.top_n == report.TOP_N
    assert not args.no_plots


def test_sheet_name_truncates_and_deduplicates() -> None:
    used: set[str] = set()
    first = report._sheet_name("A very long caption that exceeds the Excel limit", used)
    second = report._sheet_name("A very long caption that exceeds the Excel limit", used)
    assert len(first) == 31
    assert len(second) <= 31
    assert first != second
    assert report._sheet_name("a/b:c", used) == "abc"


def test_format_table() -> None:
    df = pd.DataFrame(
        {
            "month": pd.to_datetime(["2024-01-01"]),
            "entries": [1234567.0],
            "share": [0.256],
            "p_value": [0.000123],
            "mom_pct_change": [-3.21],
            "count": [5],
        }
    )
    row = report.format_table(df).iloc[0]
    assert row["month"] == "Jan 2024"
    assert row["entries"] == "1,234,567"
    assert row["share"] == "25.6%"
    assert row["p_value"] == "0.000123"
    assert row["mom_pct_change"] == "-3.2%"
    assert row["count"] == "5"


def test_render_html_escapes_text() -> None:
    sec = report.ReportSection(
        "Checks <b>",
        findings=["a < b & c"],
        tables={"T": pd.DataFrame({"station_name": ["<script>"]})},
        notes=["missing 'x'"],
    )
    text = report.render_html([sec], title="Title")
    assert "<h2>Checks &lt;b&gt;</h2>" in text
    assert "<li>a &lt; b &amp; c</li>" in text
    assert "<script>" not in text
    assert 'class="note"' in text


def test_write_report_propagates_os_error(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    with pytest.raises(OSError):
        report.write_report("<html></html>", blocker / "report.html")


def test_export_tables_skips_when_empty(tmp_path: Path) -> None:
    sections = [report.ReportSection("Empty", tables={"Nothing": pd.DataFrame()})]
    assert report.export_tables_to_excel(sections, tmp_path / "t.xlsx") is None
    assert not (tmp_path / "t.xlsx").exists()


def test_section_builders_leave_note_when_data_missing() -> None:
    analysis = report.RidershipAnalysis()
    for sec in (
        report.build_monthly_section(analysis, {}),
        report.build_station_section(analysis, {}, top_n=5),
        report.build_fare_section(analysis, {}),
    ):
        assert not sec.findings
        assert not sec.tables
        assert sec.notes and sec.notes[0].startswith("Section skipped")


@pytest.fixture
def fixture_analysis(tmp_path: Path) -> tuple[report.RidershipAnalysis, dict[str, pd.DataFrame]]:
    datasets = load_all(FIXTURE_DIR)
    cfg = report.Config(data_dir=FIXTURE_DIR, output_dir=tmp_path)
    return report.analyse(datasets, cfg), datasets


def test_analyse_excludes_holidays_from_weekday_stats(fixture_analysis) -> None:
    analysis, datasets = fixture_analysis

    # 28 valid days in the fixture, 2024-01-01 flagged as a holiday
    assert len(datasets["daily"]) == 28
    assert analysis.holidays_excluded == 1
    assert len(analysis.daily_regular) == 27
    assert not analysis.daily_regular["holiday"].any()

    profile = analysis.dow_profile.assign(day=analysis.dow_profile["day"].astype(str))
    profile = profile.set_index("day")
    assert profile.loc["Monday", "count"] == 3
    assert profile.loc["Tuesday", "count"] == 4
    assert profile["count"].sum() == 27

    anova = analysis.tests["anova_day_of_week"]
    assert anova.status == "ok"
    assert "27 days" in anova.detail
    assert analysis.tests["paired_ttest_entries_exits"].dof == 26

    # holidays still count toward the whole-period summaries
    assert analysis.daily_summary.set_index("measure").loc["entries", "count"] == 28


def test_day_of_week_chart_uses_regular_days(fixture_analysis, tmp_path: Path) -> None:
    analysis, datasets = fixture_analysis
    with patch.object(report.plots, "plot_day_of_week_box", return_value=None) as mock_box:
        figures = report.make_plots(analysis, datasets, tmp_path / "plots")

    mock_box.assert_called_once()
    plotted = mock_box.call_args.args[0]
    assert len(plotted) == 27
    assert pd.Timestamp("2024-01-01") not in set(plotted["date"])
    assert figures["day_of_week"] is None
    assert figures["daily"] is not None
