"""EMG channel statistics: CSV export, file naming and text reports."""

from __future__ import annotations

import csv
from dataclasses import dataclass, field
from typing import Dict, List

_UTF8_BOM = b"\xef\xbb\xbf"

_UNSAFE_CHARS = str.maketrans({ch: "_" for ch in '/\\:*?"<>| '})


@dataclass
class EMGStatistics:
    """Mean and maximum of every channel over a phase interval."""

    subject: str = ""
    start_phase: str = ""
    start_time: float = 0.0
    end_phase: str = ""
    end_time: float = 0.0
    channel_names: List[str] = field(default_factory=list)
    channel_means: Dict[str, float] = field(default_factory=dict)
    channel_maxes: Dict[str, float] = field(default_factory=dict)


@dataclass
class StatisticsParams:
    subject: str = ""
    start_phase: str = ""
    start_time: float = 0.0
    end_phase: str = ""
    end_time: float = 0.0


class EMGStatisticsCalculator:
    """Formats and exports EMG statistics with a fixed decimal precision."""

    def __init__(self, precision: int = 6) -> None:
        self.precision = precision if precision > 0 else 6

    def format_float(self, value: float) -> str:
        return f"{value:.{self.precision}f}"

    def export_to_csv(self, stats: EMGStatistics, output_path) -> None:
        """Write the statistics as a BOM-prefixed UTF-8 CSV table."""
        names = stats.channel_names
        start_time = self.format_float(stats.start_time)
        end_time = self.format_float(stats.end_time)
        rows = [
            ["", *names],
            ["開始分期點", *(stats.start_phase for _ in names)],
            ["開始時間", *(start_time for _ in names)],
            ["結束分期點", *(stats.end_phase for _ in names)],
            ["結束時間", *(end_time for _ in names)],
            ["平均值", *(self.format_float(stats.channel_means.get(n, 0.0)) for n in names)],
            ["最大值", *(self.format_float(stats.channel_maxes.get(n, 0.0)) for n in names)],
        ]
        try:
            with open(output_path, "w", encoding="utf-8", newline="") as handle:
                handle.write(_UTF8_BOM.decode("utf-8"))
                writer = csv.writer(handle, lineterminator="\n")
                writer.writerows(rows)
        except OSError as exc:
            raise OSError(f"無法創建輸出檔案 {output_path}: {exc}") from exc


def sanitize_file_name(name: str) -> str:
    """Replace characters that are unsafe in file names with underscores."""
    return name.translate(_UNSAFE_CHARS)


def generate_output_file_name(subject: str, start_phase: str, end_phase: str) -> str:
    return f"{sanitize_file_name(subject)}_{start_phase}-{end_phase}_statistics.csv"


def validate_statistics_params(params: StatisticsParams) -> None:
    """Raise ValueError if the parameters describe no valid interval."""
    if params.start_time < 0:
        raise ValueError(f"開始時間不能為負數: {params.start_time:.3f}")
    if params.end_time < 0:
        raise ValueError(f"結束時間不能為負數: {params.end_time:.3f}")
    if params.start_time >= params.end_time:
        raise ValueError(
            f"開始時間 ({params.start_time:.3f}) 必須小於結束時間 ({params.end_time:.3f})"
        )
    if params.subject == "":
        raise ValueError("主題名稱不能為空")


def format_statistics_report(stats: EMGStatistics) -> str:
    """Render a plain-text table of the statistics."""
    lines = [
        "EMG 統計分析報告",
        "================",
        f"主題: {stats.subject}",
        f"分析區間: {stats.start_phase} ({stats.start_time:.3f}s) → "
        f"{stats.end_phase} ({stats.end_time:.3f}s)",
        f"持續時間: {stats.end_time - stats.start_time:.3f} 秒",
        f"通道數量: {len(stats.channel_names)}",
        "",
        "各通道統計結果:",
        f"{'通道名稱':<20} {'平均值':>15} {'最大值':>15}",
        "-" * 52,
    ]
    for name in stats.channel_names:
        mean = stats.channel_means.get(name, 0.0)
        maximum = stats.channel_maxes.get(name, 0.0)
        lines.append(f"{name:<20} {mean:15.6f} {maximum:15.6f}")
    return "\n".join(lines) + "\n"