import logging
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from scripts.ridership_eda import ridership_loader as loader

FIXTURE_DIR = Path(__file__).parent / "fixtures"


@pytest.mark.parametrize(
    ("header", "expected"),
    [
        ("AM Peak (Open-9:30am)", "am_peak"),
        ("Late Night (10pm-Close)", "late_night"),
        (" Avg Daily Tapped Entries ", "avg_daily_tapped_entries"),
        ("Avg Daily Non-Tapped Entries", "avg_daily_nontapped_entries"),
        ("Sum of Entries", "entries"),
        ("Total Entries", "entries"),
        ("Total Exits", "exits"),
        ("Day of Week", "day"),
        ("Station", "station_name"),
        ("Tap Technology", "tap_technology"),
        ("Service Day", "service_day"),
    ],
)
def test_normalise_column_name(header: str, expected: str) -> None:
    assert loader.normalise_column_name(header) == expected


def test_normalise_columns_keeps_first_duplicate(caplog) -> None:
    df = pd.DataFrame([[1, 2]], columns=["Entries", "Total Entries"])
    with caplog.at_level(logging.WARNING):
        out = loader.normalise_columns(df)
    assert list(out.columns) == ["entries"]
    assert out["entries"].iat[0] == 1
    assert "Duplicate columns" in caplog.text


def test_coerce_numeric_strips_commas_and_missing_tokens() -> None:
    out = loader.coerce_numeric(pd.Series(["1,234", " 56 ", "n/a", "", "abc"]))
    assert out.iloc[0] == 1234.0
    assert out.iloc[1] == 56.0
    assert out.iloc[2:].isna().all()


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("thurs", "Thursday"), ("Sat.", "Saturday"), ("MONDAY", "Monday"), ("", ""), (np.nan, "")],
)
def test_normalise_day(raw, expected: str) -> None:
    assert loader.normalise_day(raw) == expected


def test_normalise_service_day() -> None:
    assert loader.normalise_service_day("Sat") == "Saturday"
    assert loader.normalise_service_day(" weekdays ") == "Weekday"
    assert loader.normalise_service_day("holiday") == "Holiday"


def test_parse_month_mixed_formats() -> None:
    out = loader.parse_month(pd.Series(["Jan-2024", "February 2024", "2024-03", "4/2024", "bogus"]))
    expected = pd.to_datetime(["2024-01-01", "2024-02-01", "2024-03-01", "2024-04-01"])
    assert list(out.iloc[:4]) == list(expected)
    assert pd.isna(out.iloc[4])


def test_weekday_levels() -> None:
    partial = pd.Series(["Monday", "Tuesday"])
    assert loader.missing_weekday_levels(partial) == list(loader.WEEKDAYS[2:])
    assert not loader.weekday_levels_complete(partial)
    assert loader.weekday_levels_complete(pd.Series(loader.WEEKDAYS))


def test_read_daily_fixture(caplog) -> None:
    with caplog.at_level(logging.WARNING):
        daily = loader.read_dataset("daily", FIXTURE_DIR)

    # 29 rows in the file, one with "n/a" entries
    assert len(daily) == 28
    assert "dropped 1 row" in caplog.text
    assert daily["entries"].dtype == float
    assert isinstance(daily["day"].dtype, pd.CategoricalDtype)
    assert daily["day"].cat.ordered
    assert list(daily["day"].cat.categories) == list(loader.WEEKDAYS)
    assert daily["holiday"].sum() == 1
    assert daily["date"].is_monotonic_increasing
    assert daily["date"].iloc[0] == pd.Timestamp("2024-01-01")


def test_read_station_fixture_drops_blank_names() -> None:
    station = loader.read_dataset("station", FIXTURE_DIR)
    assert len(station) == 12
    assert "" not in set(station["station_name"])
    union = station.set_index("station_name").loc["Union Station"]
    assert union["avg_daily_tapped_entries"] == 12450.0
    assert union["avg_daily_nontapped_entries"] == 980.0


def test_read_time_period_fixture_canonical_columns() -> None:
    tp = loader.read_dataset("time_period", FIXTURE_DIR)
    assert set(loader.TIME_PERIODS) <= set(tp.columns)
    assert tp.loc[tp["station_name"] == "Union Station", "pm_peak"].iat[0] == 5200.0


def test_read_fare_fixture_normalises_service_days() -> None:
    fare = loader.read_dataset("fare_technology", FIXTURE_DIR)
    assert set(fare["service_day"]) == set(loader.SERVICE_DAYS)
    assert fare["entries"].sum() == 2_288_000.0


def test_read_monthly_fixture() -> None:
    monthly = loader.read_dataset("monthly", FIXTURE_DIR)
    assert len(monthly) == 14
    assert monthly["month"].iloc[0] == pd.Timestamp("2023-01-01")
    assert monthly["month"].iloc[-1] == pd.Timestamp("2024-02-01")


def test_read_missing_file_returns_empty(tmp_path: Path, caplog) -> None:
    with caplog.at_level(logging.WARNING):
        df = loader.read_dataset("station", tmp_path)
    assert df.empty
    assert list(df.columns) == list(loader.DATASETS["station"].required)
    assert "not found" in caplog.text


def test_clean_dataset_missing_required_column(caplog) -> None:
    raw = pd.DataFrame({"Station": ["A"], "Avg Daily Tapped Entries": ["10"]})
    with caplog.at_level(logging.WARNING):
        out = loader.clean_dataset("station", raw)
    assert out.empty
    assert "avg_daily_nontapped_entries" in caplog.text


def test_clean_daily_derives_day_from_date() -> None:
    raw = pd.DataFrame({"Date": ["2024-01-06", "2024-01-07"], "Entries": ["5", "6"], "Exits": ["4", "5"]})
    out = loader.clean_dataset("daily", raw)
    assert list(out["day"].astype(str)) == ["Saturday", "Sunday"]


def test_load_all_reads_every_dataset() -> None:
    datasets = loader.load_all(FIXTURE_DIR)
    assert set(datasets) == set(loader.DATASETS)
    assert all(not df.empty for df in datasets.values())


def test_load_all_rejects_unknown_key(tmp_path: Path) -> None:
    with pytest.raises(KeyError):
        loader.load_all(tmp_path, keys=["daily", "bogus"])


def test_clean_daily_accepts_total_prefixed_headers() -> None:
    raw = pd.DataFrame({"Date": ["2024-01-08"], "Total Entries": ["5"], "Total Exits": ["4"]})
    out = loader.clean_dataset("daily", raw)
    assert len(out) == 1
    assert out["exits"].iat[0] == 4.0


def test_clean_daily_warns_on_missing_weekday_levels(caplog) -> None:
    raw = pd.DataFrame(
        {"Date": ["2024-01-01", "2024-01-02"], "Entries": ["10", "12"], "Exits": ["9", "11"]}
    )
    with caplog.at_level(logging.WARNING):
        out = loader.clean_dataset("daily", raw)
    assert len(out) == 2
    assert "weekday level(s) never observed" in caplog.text
    assert "Wednesday" in caplog.text


def test_read_unreadable_path_returns_empty(tmp_path: Path, caplog) -> None:
    # a directory where the CSV should be
    (tmp_path / loader.DATASETS["daily"].filename).mkdir()
    with caplog.at_level(logging.WARNING):
        df = loader.read_dataset("daily", tmp_path)
    assert df.empty
    assert list(df.columns) == list(loader.DATASETS["daily"].required)
    assert "Failed to read" in caplog.text
