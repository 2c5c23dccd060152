import pytest

from emgkit.dataset import DataError, EMGData, EMGDataset
from emgkit.phase_analyzer import AnalyzeResult, PhaseAnalyzer, TimeRange

LABELS = ["p1", "p2", "p3", "p4"]
POINTS = ["0", "1", "2", "3", "4"]
RECORDS = [
    ["Time", "A", "B"],
    ["0.5", "3", "7"],
    ["1.0", "100", "100"],
    ["1.5", "5", "2"],
    ["2.5", "4", "8"],
    ["3.2", "6", "1"],
    ["3.8", "2", "9"],
]


def test_parse_phases_builds_consecutive_ranges():
    phases = PhaseAnalyzer(0, LABELS).parse_phases(POINTS)
    assert phases == [
        TimeRange(0.0, 1.0),
        TimeRange(1.0, 2.0),
        TimeRange(2.0, 3.0),
        TimeRange(3.0, 4.0),
    ]


def test_parse_phases_applies_scaling():
    phases = PhaseAnalyzer(2, LABELS).parse_phases(POINTS)
    assert phases[1] == TimeRange(100.0, 200.0)


def test_parse_phases_too_few_points_raises():
    with pytest.raises(DataError, match="5"):
        PhaseAnalyzer(0, LABELS).parse_phases(POINTS[:4])


def test_parse_phases_bad_point_raises():
    with pytest.raises(DataError, match="abc"):
        PhaseAnalyzer(0, LABELS).parse_phases(["0", "1", "abc", "3", "4"])


def test_parse_phases_more_labels_than_ranges_leaves_empty_ranges():
    labels = LABELS + ["p5", "p6"]
    phases = PhaseAnalyzer(0, labels).parse_phases(POINTS)
    assert len(phases) == len(labels)
    assert phases[4] == TimeRange() and phases[5] == TimeRange()


def test_analyze_from_raw_data_per_phase_values():
    result = PhaseAnalyzer(0, LABELS).analyze_from_raw_data(RECORDS, POINTS)
    assert isinstance(result, AnalyzeResult)
    assert [r.phase_name for r in result.phase_results] == LABELS
    first, second, third, fourth = result.phase_results
    # boundary row at time 1.0 belongs to no phase
    assert first.max_values == {0: 3.0, 1: 7.0}
    assert first.mean_values == {0: 3.0, 1: 7.0}
    assert second.max_values == {0: 5.0, 1: 2.0}
    assert third.max_values == {0: 4.0, 1: 8.0}
    assert fourth.max_values == {0: 6.0, 1: 9.0}
    for channel in (0, 1):
        assert min(6.0 if channel == 0 else 1.0, 2.0 if channel == 0 else 9.0) <= (
            fourth.mean_values[channel]
        ) <= fourth.max_values[channel]


def test_analyze_global_peak_time():
    result = PhaseAnalyzer(0, LABELS).analyze_from_raw_data(RECORDS, POINTS)
    assert result.max_time_index == {0: 1.0, 1: 1.0}


def test_analyze_phase_without_rows_has_no_entries():
    data = EMGDataset(
        headers=["Time", "A"],
        data=[EMGData(0.5, [1.0]), EMGData(3.5, [2.0])],
    )
    phases = [TimeRange(0, 1), TimeRange(1, 2), TimeRange(2, 3), TimeRange(3, 4)]
    result = PhaseAnalyzer(0, LABELS).analyze(data, phases)
    assert result.phase_results[1].max_values == {}
    assert result.phase_results[1].mean_values == {}
    assert result.phase_results[3].mean_values == {0: 2.0}


def test_analyze_first_maximum_wins():
    data = EMGDataset(
        headers=["Time", "A"],
        data=[EMGData(0.1, [5.0]), EMGData(0.2, [5.0]), EMGData(0.3, [1.0])],
    )
    phases = [TimeRange(0, 1)] * 4
    result = PhaseAnalyzer(0, LABELS).analyze(data, phases)
    assert result.max_time_index[0] == 0.1


def test_analyze_label_mismatch_raises():
    data = EMGDataset(headers=["Time", "A"], data=[EMGData(0.5, [1.0])])
    with pytest.raises(DataError, match="不匹配"):
        PhaseAnalyzer(0, LABELS).analyze(data, [TimeRange(0, 1)])


@pytest.mark.parametrize("dataset", [None, EMGDataset(headers=["Time", "A"])])
def test_analyze_empty_dataset_raises(dataset):
    with pytest.raises(DataError, match="數據集為空"):
        PhaseAnalyzer(0, LABELS).analyze(dataset, [TimeRange()] * 4)


def test_analyze_from_raw_data_skips_bad_time_rows():
    records = [["Time", "A"], ["bad", "50"], ["", "60"], ["0.5", "1"]]
    result = PhaseAnalyzer(0, LABELS).analyze_from_raw_data(records, POINTS)
    assert result.phase_results[0].max_values == {0: 1.0}
    assert result.max_time_index == {0: 0.5}


def test_analyze_from_raw_data_bad_channel_raises():
    records = [["Time", "A"], ["0.5", "x"]]
    with pytest.raises(DataError, match="解析數據失敗"):
        PhaseAnalyzer(0, LABELS).analyze_from_raw_data(records, POINTS)


def test_analyze_from_raw_data_all_rows_skipped_raises():
    records = [["Time", "A"], ["bad", "1"]]
    with pytest.raises(DataError, match="數據集為空"):
        PhaseAnalyzer(0, LABELS).analyze_from_raw_data(records, POINTS)


def test_analyze_from_raw_data_bad_phases_raises():
    with pytest.raises(DataError, match="解析階段失敗"):
        PhaseAnalyzer(0, LABELS).analyze_from_raw_data(RECORDS, ["0", "1"])


def test_analyze_from_raw_data_too_few_records_raises():
    with pytest.raises(DataError, match="解析數據失敗"):
        PhaseAnalyzer(0, LABELS).analyze_from_raw_data([["Time", "A"]], POINTS)