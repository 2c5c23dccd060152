"""Normalisation of EMG data against a reference row."""

from __future__ import annotations

import logging
import time
from typing import Optional, Sequence

from emgkit.dataset import DataError, EMGData, EMGDataset, parse_records, scale_number

_log = logging.getLogger(__name__)

_DEFAULT_TIME_PRECISION = 2
_PRECISION_SAMPLE_ROWS = 10


def decimal_precision(text: str) -> int:
    """Return the number of digits after the decimal point in ``text``."""
    text = text.strip()
    dot = text.find(".")
    if dot == -1:
        return 0
    return len(text) - dot - 1


def detect_time_precision(records: Sequence[Sequence[str]]) -> int:
    """Return the largest time precision among the first data rows (default 2)."""
    if len(records) < 2:
        return _DEFAULT_TIME_PRECISION
    sample = records[1 : _PRECISION_SAMPLE_ROWS + 1]
    precision = max((decimal_precision(row[0]) for row in sample if row), default=0)
    if precision == 0:
        precision = _DEFAULT_TIME_PRECISION
    _log.debug("detected time precision %d", precision)
    return precision


class Normalizer:
    """Divides every channel value by the matching value of a reference row."""

    def __init__(self, scaling_factor: int) -> None:
        self.scaling_factor = scaling_factor

    def normalize(
        self, dataset: Optional[EMGDataset], reference: Optional[EMGDataset]
    ) -> EMGDataset:
        """Return a new dataset whose channels are divided by the reference's first row."""
        started = time.monotonic()
        if dataset is None or reference is None or not dataset.data or not reference.data:
            raise DataError("數據集或參考數據集為空")

        ref_values = reference.data[0].channels
        if len(dataset.data[0].channels) != len(ref_values):
            raise DataError("數據集和參考數據集的通道數不匹配")

        for channel, ref_value in enumerate(ref_values, start=1):
            if ref_value == 0:
                raise DataError(f"參考值在通道 {channel} 為零，無法進行標準化")

        result = EMGDataset(
            headers=list(dataset.headers),
            original_time_precision=dataset.original_time_precision,
        )
        for row in dataset.data:
            if len(row.channels) > len(ref_values):
                raise DataError("數據集和參考數據集的通道數不匹配")
            result.data.append(
                EMGData(
                    time=row.time,
                    channels=[value / ref for value, ref in zip(row.channels, ref_values)],
                )
            )

        _log.info(
            "normalised %d rows in %.0f ms",
            len(result.data),
            (time.monotonic() - started) * 1000,
        )
        return result

    def _parse_main(self, records: Sequence[Sequence[str]]) -> EMGDataset:
        dataset = parse_records(records, self.scaling_factor)
        dataset.original_time_precision = detect_time_precision(records)
        return dataset

    def parse_reference_data(self, records: Sequence[Sequence[str]]) -> EMGDataset:
        """Parse reference rows whose first column is a label, not a time.

        Each row's time is its position among the data rows.
        """
        if len(records) < 2:
            raise DataError("參考數據至少需要包含標題行和一行數據")

        dataset = EMGDataset(headers=list(records[0]))
        for position, row in enumerate(records[1:]):
            if len(row) < 2:
                continue
            row_number = position + 2
            channels = []
            for column_number, cell in enumerate(row[1:], start=2):
                try:
                    channels.append(scale_number(cell, self.scaling_factor))
                except DataError as exc:
                    raise DataError(
                        f"解析參考數據失敗在行 {row_number} 列 {column_number}: {exc}"
                    ) from exc
            dataset.data.append(EMGData(time=float(position), channels=channels))

        if not dataset.data:
            raise DataError("參考數據解析後為空")
        return dataset

    def normalize_from_raw_data(
        self, records: Sequence[Sequence[str]], reference: Sequence[Sequence[str]]
    ) -> EMGDataset:
        """Parse main and reference CSV rows, then normalise."""
        try:
            dataset = self._parse_main(records)
        except DataError as exc:
            raise DataError(f"解析主數據失敗: {exc}") from exc
        try:
            ref_dataset = self.parse_reference_data(reference)
        except DataError as exc:
            raise DataError(f"解析參考數據失敗: {exc}") from exc
        return self.normalize(dataset, ref_dataset)