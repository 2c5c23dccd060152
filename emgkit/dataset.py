"""EMG datasets and parsing of raw CSV records into scaled numbers."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Sequence

_log = logging.getLogger(__name__)


class DataError(ValueError):
    """Raised when EMG data is missing, malformed or unusable."""


@dataclass
class EMGData:
    """One sample: a time value and one value per channel."""

    time: float
    channels: List[float] = field(default_factory=list)


@dataclass
class EMGDataset:
    """A table of EMG samples with its column headers (time first)."""

    headers: List[str] = field(default_factory=list)
    data: List[EMGData] = field(default_factory=list)
    original_time_precision: int = 0


def scale_number(text: str, scaling_factor: int) -> float:
    """Parse ``text`` as a number and multiply it by ``10 ** scaling_factor``."""
    try:
        value = float(text)
    except (TypeError, ValueError) as exc:
        raise DataError(f"無法解析數值 '{text}'") from exc
    return value * 10.0 ** scaling_factor


def parse_records(records: Sequence[Sequence[str]], scaling_factor: int) -> EMGDataset:
    """Build a dataset from CSV rows whose first row holds the headers.

    Rows with fewer than two fields, an empty time or an unparsable time are
    skipped; an unparsable channel value raises ``DataError``.
    """
    if len(records) < 2:
        raise DataError("數據至少需要包含標題行和一行數據")

    dataset = EMGDataset(headers=list(records[0]))

    for row_number, row in enumerate(records[1:], start=2):
        if len(row) < 2:
            continue
        if row[0] == "":
            _log.debug("skipping row %d with empty time", row_number)
            continue
        try:
            time_value = scale_number(row[0], scaling_factor)
        except DataError as exc:
            _log.warning("skipping row %d, bad time %r: %s", row_number, row[0], exc)
            continue

        channels = []
        for column_number, cell in enumerate(row[1:], start=2):
            try:
                channels.append(scale_number(cell, scaling_factor))
            except DataError as exc:
                raise DataError(
                    f"解析數據失敗在第 {row_number} 行第 {column_number} 列: {exc}"
                ) from exc

        dataset.data.append(EMGData(time=time_value, channels=channels))

    if not dataset.data:
        raise DataError("解析後數據集為空，所有行都被跳過")

    _log.info(
        "parsed %d records with %d channels",
        len(dataset.data),
        len(dataset.data[0].channels),
    )
    return dataset