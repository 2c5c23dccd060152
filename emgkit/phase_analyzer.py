"""Per-phase maximum and mean of EMG channels."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from statistics import fmean
from typing import Dict, List, Optional, Sequence

from emgkit.dataset import DataError, EMGData, EMGDataset, scale_number

_log = logging.getLogger(__name__)

_MIN_PHASE_POINTS = 5


@dataclass
class TimeRange:
    start: float = 0.0
    end: float = 0.0


@dataclass
class PhaseAnalysisResult:
    """Max and mean per channel (0-based channel index) within one phase."""

    phase_name: str
    max_values: Dict[int, float] = field(default_factory=dict)
    mean_values: Dict[int, float] = field(default_factory=dict)


@dataclass
class AnalyzeResult:
    phase_results: List[PhaseAnalysisResult] = field(default_factory=list)
    max_time_index: Dict[int, float] = field(default_factory=dict)


def _max_with_index(values: List[float]) -> tuple:
    best_index = 0
    for index, value in enumerate(values):
        if value > values[best_index]:
            best_index = index
    return values[best_index], best_index


class PhaseAnalyzer:
    """Splits a recording into labelled phases and summarises each channel."""

    def __init__(self, scaling_factor: int, phase_labels: Sequence[str]) -> None:
        self.scaling_factor = scaling_factor
        self.phase_labels = list(phase_labels)

    def analyze(
        self, dataset: Optional[EMGDataset], phases: Sequence[TimeRange]
    ) -> AnalyzeResult:
        """Summarise rows strictly inside each phase, and locate each channel's peak."""
        started = time.monotonic()
        if dataset is None or not dataset.data:
            raise DataError("數據集為空")
        if len(phases) != len(self.phase_labels):
            raise DataError("階段數量與標籤數量不匹配")

        channel_count = len(dataset.data[0].channels)
        phase_data: List[Dict[int, List[float]]] = [{} for _ in phases]
        all_data: Dict[int, List[float]] = {}
        times: List[float] = []

        for row in dataset.data:
            times.append(row.time)
            for collected, phase in zip(phase_data, phases):
                if phase.start < row.time < phase.end:
                    for channel, value in enumerate(row.channels):
                        collected.setdefault(channel, []).append(value)
            for channel, value in enumerate(row.channels):
                all_data.setdefault(channel, []).append(value)

        results = []
        for collected, name in zip(phase_data, self.phase_labels):
            result = PhaseAnalysisResult(phase_name=name)
            for channel in range(channel_count):
                values = collected.get(channel)
                if values:
                    result.max_values[channel] = _max_with_index(values)[0]
                    result.mean_values[channel] = fmean(values)
            results.append(result)

        max_time_index: Dict[int, float] = {}
        for channel in range(channel_count):
            values = all_data.get(channel)
            if values:
                _, index = _max_with_index(values)
                if index < len(times):
                    max_time_index[channel] = times[index]

        _log.info(
            "phase analysis of %d phases done in %.0f ms",
            len(results),
            (time.monotonic() - started) * 1000,
        )
        return AnalyzeResult(phase_results=results, max_time_index=max_time_index)

    def _parse_raw_data(self, records: Sequence[Sequence[str]]) -> EMGDataset:
        if len(records) < 2:
            raise DataError("數據至少需要包含標題行和一行數據")
        dataset = EMGDataset(headers=list(records[0]))
        for row_number, row in enumerate(records[1:], start=2):
            if len(row) < 2 or row[0] == "":
                continue
            try:
                time_value = scale_number(row[0], self.scaling_factor)
            except DataError as exc:
                _log.warning("skipping row %d, bad time %r: %s", row_number, row[0], exc)
                continue
            channels = []
            for column_number, cell in enumerate(row[1:], start=2):
                try:
                    channels.append(scale_number(cell, self.scaling_factor))
                except DataError as exc:
                    raise DataError(
                        f"解析數據失敗在第 {row_number} 行第 {column_number} 列: {exc}"
                    ) from exc
            dataset.data.append(EMGData(time=time_value, channels=channels))
        return dataset

    def parse_phases(self, phase_strings: Sequence[str]) -> List[TimeRange]:
        """Turn consecutive time points into one range per phase label."""
        if len(phase_strings) < _MIN_PHASE_POINTS:
            raise DataError("需要至少 5 個時間點來定義 4 個階段")
        points = []
        for text in phase_strings:
            try:
                points.append(scale_number(text, self.scaling_factor))
            except DataError as exc:
                raise DataError(f"解析時間點 '{text}' 失敗: {exc}") from exc

        phases = [TimeRange() for _ in self.phase_labels]
        for index, (start, end) in enumerate(zip(points, points[1:])):
            if index >= len(phases):
                break
            phases[index] = TimeRange(start=start, end=end)
        return phases

    def analyze_from_raw_data(
        self, records: Sequence[Sequence[str]], phase_strings: Sequence[str]
    ) -> AnalyzeResult:
        try:
            dataset = self._parse_raw_data(records)
        except DataError as exc:
            raise DataError(f"解析數據失敗: {exc}") from exc
        try:
            phases = self.parse_phases(phase_strings)
        except DataError as exc:
            raise DataError(f"解析階段失敗: {exc}") from exc
        return self.analyze(dataset, phases)