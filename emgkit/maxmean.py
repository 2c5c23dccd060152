"""Maximum sliding-window mean of every EMG channel."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import List, Optional, Sequence

from emgkit.dataset import DataError, EMGDataset, parse_records
from emgkit.progress import ProgressCallback, ProgressInfo, _format_duration

_log = logging.getLogger(__name__)


@dataclass
class MaxMeanResult:
    """The best window of one channel; ``column_index`` counts the time column."""

    column_index: int
    start_time: float
    end_time: float
    max_mean: float


class MaxMeanCalculator:
    """Finds, per channel, the window of a given size with the largest mean."""

    def __init__(self, scaling_factor: int) -> None:
        self.scaling_factor = scaling_factor
        self._progress_callback: Optional[ProgressCallback] = None
        self._started = time.monotonic()

    def set_progress_callback(self, callback: Optional[ProgressCallback]) -> None:
        self._progress_callback = callback

    def _report_progress(
        self, current: int, total: int, status: str, channel_index: int, channel_name: str
    ) -> None:
        if self._progress_callback is None:
            return
        percentage = current / total * 100 if total > 0 else 100.0
        percentage = min(percentage, 100.0)
        elapsed = time.monotonic() - self._started
        if 0 < current < total:
            estimated = _format_duration(elapsed / current * (total - current))
        else:
            estimated = "計算中..."
        self._progress_callback(
            ProgressInfo(
                current_step=current,
                total_steps=total,
                percentage=percentage,
                status=status,
                channel_index=channel_index,
                channel_name=channel_name,
                elapsed_time=_format_duration(elapsed),
                estimated_time=estimated,
            )
        )

    @staticmethod
    def _channel_max_mean(
        dataset: EMGDataset, channel: int, window_size: int, start_idx: int, end_idx: int
    ) -> MaxMeanResult:
        rows = dataset.data

        def value(index: int) -> float:
            values = rows[index].channels
            return values[channel] if channel < len(values) else 0.0

        window_sum = 0.0
        for index in range(start_idx, start_idx + window_size):
            window_sum += value(index)

        max_mean = window_sum / window_size
        best_start = start_idx
        for win_start in range(start_idx + 1, end_idx - window_size + 2):
            window_sum -= value(win_start - 1)
            window_sum += value(win_start + window_size - 1)
            current = window_sum / window_size
            if current > max_mean:
                max_mean = current
                best_start = win_start

        return MaxMeanResult(
            column_index=channel + 1,
            start_time=rows[best_start].time,
            end_time=rows[best_start + window_size - 1].time,
            max_mean=max_mean,
        )

    def _run(
        self,
        dataset: EMGDataset,
        window_size: int,
        start_idx: int,
        end_idx: int,
        init_status: str,
        channel_status: str,
        done_status: str,
    ) -> List[MaxMeanResult]:
        channel_count = len(dataset.data[0].channels)
        self._report_progress(0, channel_count, init_status, 0, "")

        results: List[MaxMeanResult] = []
        for channel in range(channel_count):
            results.append(
                self._channel_max_mean(dataset, channel, window_size, start_idx, end_idx)
            )
            if len(dataset.headers) > channel + 1:
                name = dataset.headers[channel + 1]
            else:
                name = f"Ch{channel + 1}"
            self._report_progress(
                channel + 1, channel_count, channel_status.format(name), channel + 1, name
            )

        _log.info(
            "max mean done: %d channels, window %d, %.0f ms",
            channel_count,
            window_size,
            (time.monotonic() - self._started) * 1000,
        )
        self._report_progress(channel_count, channel_count, done_status, 0, "")
        return results

    def calculate(self, dataset: Optional[EMGDataset], window_size: int) -> List[MaxMeanResult]:
        """Return the best window of every channel over the whole dataset."""
        self._started = time.monotonic()
        if dataset is None or not dataset.data:
            raise DataError("數據集為空")
        if len(dataset.data) < window_size:
            raise DataError("數據集無效或窗口大小過大")
        if window_size < 1:
            raise DataError("窗口大小必須大於 0")
        return self._run(
            dataset,
            window_size,
            0,
            len(dataset.data) - 1,
            "初始化並行計算",
            "通道 {} 計算完成",
            "計算完成",
        )

    def calculate_with_range(
        self,
        dataset: Optional[EMGDataset],
        window_size: int,
        start_range: float,
        end_range: float,
    ) -> List[MaxMeanResult]:
        """Return the best window of every channel inside a time range.

        The range is given unscaled; an ``end_range`` of 0 means up to the end.
        """
        self._started = time.monotonic()
        if dataset is None or len(dataset.data) < window_size:
            raise DataError("數據集無效或窗口大小過大")
        if window_size < 1:
            raise DataError("窗口大小必須大於 0")

        scale = 10.0 ** self.scaling_factor
        scaled_start = start_range * scale
        scaled_end = end_range * scale

        start_idx = -1
        end_idx = -1
        if end_range == 0:
            end_idx = len(dataset.data) - 1
            start_idx = next(
                (i for i, row in enumerate(dataset.data) if row.time >= scaled_start), -1
            )
        else:
            for index, row in enumerate(dataset.data):
                if start_idx == -1 and row.time >= scaled_start:
                    start_idx = index
                if row.time <= scaled_end:
                    end_idx = index

        if start_idx == -1 or end_idx == -1 or end_idx - start_idx + 1 < window_size:
            raise DataError("指定時間範圍內的數據不足以進行窗口分析")

        return self._run(
            dataset,
            window_size,
            start_idx,
            end_idx,
            "初始化範圍並行計算",
            "範圍計算: 通道 {} 完成",
            "範圍計算完成",
        )

    def _parse(self, records: Sequence[Sequence[str]]) -> EMGDataset:
        try:
            return parse_records(records, self.scaling_factor)
        except DataError as exc:
            raise DataError(f"解析數據失敗: {exc}") from exc

    def calculate_from_raw_data(
        self, records: Sequence[Sequence[str]], window_size: int
    ) -> List[MaxMeanResult]:
        return self.calculate(self._parse(records), window_size)

    def calculate_from_raw_data_with_range(
        self,
        records: Sequence[Sequence[str]],
        window_size: int,
        start_range: float,
        end_range: float,
    ) -> List[MaxMeanResult]:
        return self.calculate_with_range(
            self._parse(records), window_size, start_range, end_range
        )