import csv

import pytest

from emgkit.statistics import (
    EMGStatistics,
    EMGStatisticsCalculator,
    StatisticsParams,
    format_statistics_report,
    generate_output_file_name,
    sanitize_file_name,
    validate_statistics_params,
)


@pytest.fixture
def stats():
    return EMGStatistics(
        subject="S1",
        start_phase="P0",
        start_time=1.25,
        end_phase="L",
        end_time=3.5,
        channel_names=["Ch1", "Ch2"],
        channel_means={"Ch1": 0.5, "Ch2": 2.0},
        channel_maxes={"Ch1": 1.5, "Ch2": 4.0},
    )


def test_non_positive_precision_defaults_to_six():
    assert EMGStatisticsCalculator(0).precision == 6
    assert EMGStatisticsCalculator(-3).precision == 6
    assert EMGStatisticsCalculator(2).precision == 2


def test_format_float_uses_precision():
    assert EMGStatisticsCalculator(3).format_float(1.5) == "1.500"


def test_export_to_csv_layout(tmp_path, stats):
    calc = EMGStatisticsCalculator(4)
    path = tmp_path / "out.csv"
    calc.export_to_csv(stats, path)
    raw = path.read_bytes()
    assert raw.startswith(b"\xef\xbb\xbf")
    with open(path, encoding="utf-8-sig", newline="") as handle:
        rows = list(csv.reader(handle))
    assert rows[0] == ["", "Ch1", "Ch2"]
    assert rows[1] == ["開始分期點", "P0", "P0"]
    assert rows[2] == ["開始時間", calc.format_float(1.25), calc.format_float(1.25)]
    assert rows[3] == ["結束分期點", "L", "L"]
    assert rows[4][0] == "結束時間"
    assert rows[5] == ["平均值", calc.format_float(0.5), calc.format_float(2.0)]
    assert rows[6] == ["最大值", calc.format_float(1.5), calc.format_float(4.0)]
    assert len(rows) == 7


def test_export_missing_channel_values_are_zero(tmp_path):
    calc = EMGStatisticsCalculator()
    stats = EMGStatistics(channel_names=["A"])
    path = tmp_path / "zero.csv"
    calc.export_to_csv(stats, path)
    with open(path, encoding="utf-8-sig", newline="") as handle:
        rows = list(csv.reader(handle))
    assert rows[5][1] == calc.format_float(0.0)


def test_export_to_missing_directory_raises(tmp_path, stats):
    with pytest.raises(OSError):
        EMGStatisticsCalculator().export_to_csv(stats, tmp_path / "no" / "x.csv")


def test_sanitize_file_name_replaces_unsafe_characters():
    result = sanitize_file_name('a/b\\c:d*e?f"g<h>i|j k')
    assert not any(ch in result for ch in '/\\:*?"<>| ')
    assert len(result) == len('a/b\\c:d*e?f"g<h>i|j k')
    assert sanitize_file_name("plain") == "plain"


def test_generate_output_file_name():
    assert generate_output_file_name("Subject A", "P0", "P1") == "Subject_A_P0-P1_statistics.csv"


@pytest.mark.parametrize(
    "params, fragment",
    [
        (StatisticsParams(subject="s", start_time=-1, end_time=2), "開始時間不能為負數"),
        (StatisticsParams(subject="s", start_time=0, end_time=-2), "結束時間不能為負數"),
        (StatisticsParams(subject="s", start_time=3, end_time=3), "必須小於結束時間"),
        (StatisticsParams(subject="", start_time=1, end_time=2), "主題名稱不能為空"),
    ],
)
def test_validate_statistics_params_errors(params, fragment):
    with pytest.raises(ValueError, match=fragment):
        validate_statistics_params(params)


def test_validate_statistics_params_accepts_valid():
    params = StatisticsParams(subject="s", start_time=1, end_time=2)
    assert validate_statistics_params(params) is None


def test_format_statistics_report(stats):
    report = format_statistics_report(stats)
    lines = report.splitlines()
    assert lines[0] == "EMG 統計分析報告"
    assert "主題: S1" in report
    assert "通道數量: 2" in report
    assert "-" * 52 in lines
    ch_lines = [line for line in lines if line.startswith("Ch")]
    assert len(ch_lines) == 2
    assert ch_lines[0].split()[0] == "Ch1"
    assert float(ch_lines[1].split()[2]) == 4.0