"""Timing and memory measurement of callables, with summaries and JSON reports."""

from __future__ import annotations

import gc
import json
import logging
import os
import platform
import sys
import time
import tracemalloc
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List

_log = logging.getLogger(__name__)

_MB = 1024 * 1024


@dataclass
class BenchmarkMetrics:
    """Measurements of one benchmarked call; durations are in seconds."""

    name: str
    duration: float = 0.0
    memory_usage: int = 0
    alloc_count: int = 0
    throughput_ops: float = 0.0
    throughput_data: float = 0.0
    cpu_usage: float = 0.0
    success: bool = True
    error: str = ""
    start_time: datetime = field(default_factory=lambda: datetime.now().astimezone())
    end_time: datetime = field(default_factory=lambda: datetime.now().astimezone())


@dataclass
class SystemInfo:
    os: str = ""
    arch: str = ""
    cpus: int = 0
    python_version: str = ""
    total_memory: int = 0


@dataclass
class BenchmarkSummary:
    """Aggregates over all recorded metrics; durations are in seconds."""

    total_tests: int = 0
    passed_tests: int = 0
    failed_tests: int = 0
    total_duration: float = 0.0
    avg_duration: float = 0.0
    max_duration: float = 0.0
    min_duration: float = 0.0
    total_memory: int = 0
    avg_memory: int = 0
    avg_throughput: float = 0.0


@dataclass
class BenchmarkResult:
    test_suite: str
    timestamp: datetime
    environment: SystemInfo
    metrics: List[BenchmarkMetrics]
    summary: BenchmarkSummary


def _process_memory() -> int:
    """Peak resident memory of this process in bytes, or 0 if unknown."""
    try:
        import resource
    except ImportError:
        return 0
    peak = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    return int(peak if sys.platform == "darwin" else peak * 1024)


def system_info() -> SystemInfo:
    """Describe the machine and interpreter the benchmarks run on."""
    return SystemInfo(
        os=sys.platform,
        arch=platform.machine(),
        cpus=os.cpu_count() or 1,
        python_version=platform.python_version(),
        total_memory=_process_memory(),
    )


def _format_duration(seconds: float) -> str:
    if seconds == 0:
        return "0s"
    magnitude = abs(seconds)
    if magnitude < 1e-6:
        return f"{seconds * 1e9:.0f}ns"
    if magnitude < 1e-3:
        return f"{seconds * 1e6:.3f}µs"
    if magnitude < 1:
        return f"{seconds * 1e3:.3f}ms"
    return f"{seconds:.3f}s"


def _rfc3339(moment: datetime) -> str:
    return moment.isoformat(timespec="seconds")


def _ms(seconds: float) -> int:
    return int(seconds * 1000)


class Benchmarker:
    """Runs callables, records their metrics and summarises them."""

    def __init__(self) -> None:
        self._results: List[BenchmarkMetrics] = []
        self._system = system_info()

    def benchmark(self, name: str, fn: Callable[[], Any]) -> BenchmarkMetrics:
        """Time ``fn`` and measure what it allocates; an exception marks failure."""
        _log.info("benchmark %s started", name)
        gc.collect()

        was_tracing = tracemalloc.is_tracing()
        if not was_tracing:
            tracemalloc.start()
        before = tracemalloc.take_snapshot()
        tracemalloc.reset_peak()
        baseline, _ = tracemalloc.get_traced_memory()

        error = ""
        start_time = datetime.now().astimezone()
        started = time.perf_counter()
        try:
            fn()
        except Exception as exc:  # the benchmark records any failure of fn
            error = str(exc) or type(exc).__name__
        duration = time.perf_counter() - started
        end_time = datetime.now().astimezone()

        _, peak = tracemalloc.get_traced_memory()
        after = tracemalloc.take_snapshot()
        if not was_tracing:
            tracemalloc.stop()
        allocs = sum(max(stat.count_diff, 0) for stat in after.compare_to(before, "lineno"))

        metrics = BenchmarkMetrics(
            name=name,
            duration=duration,
            memory_usage=max(peak - baseline, 0),
            alloc_count=allocs,
            success=error == "",
            error=error,
            start_time=start_time,
            end_time=end_time,
        )
        if metrics.success:
            _log.info("benchmark %s done in %s", name, _format_duration(duration))
        else:
            _log.error("benchmark %s failed: %s", name, error)

        self._results.append(metrics)
        return metrics

    def benchmark_with_data(
        self, name: str, data_size: int, fn: Callable[[], Any]
    ) -> BenchmarkMetrics:
        """Benchmark ``fn`` and compute its data throughput in MB/s."""
        metrics = self.benchmark(name, fn)
        if metrics.success and metrics.duration > 0:
            metrics.throughput_data = (data_size / _MB) / metrics.duration
        return metrics

    def benchmark_operations(
        self, name: str, operation_count: int, fn: Callable[[], Any]
    ) -> BenchmarkMetrics:
        """Benchmark ``fn`` and compute its throughput in operations per second."""
        metrics = self.benchmark(name, fn)
        if metrics.success and metrics.duration > 0:
            metrics.throughput_ops = operation_count / metrics.duration
        return metrics

    def results(self) -> List[BenchmarkMetrics]:
        return list(self._results)

    def summary(self) -> BenchmarkSummary:
        """Aggregate every recorded result."""
        if not self._results:
            return BenchmarkSummary()

        count = len(self._results)
        durations = [m.duration for m in self._results]
        total_memory = sum(m.memory_usage for m in self._results)
        passed = [m for m in self._results if m.success]
        total_throughput = sum(int(m.throughput_data) for m in passed)

        return BenchmarkSummary(
            total_tests=count,
            passed_tests=len(passed),
            failed_tests=count - len(passed),
            total_duration=sum(durations),
            avg_duration=sum(durations) / count,
            max_duration=max(durations),
            min_duration=min(durations),
            total_memory=total_memory,
            avg_memory=total_memory // count,
            avg_throughput=total_throughput / len(passed) if passed else 0.0,
        )

    def generate_report(self, test_suite: str) -> BenchmarkResult:
        return BenchmarkResult(
            test_suite=test_suite,
            timestamp=datetime.now().astimezone(),
            environment=self._system,
            metrics=list(self._results),
            summary=self.summary(),
        )

    def reset(self) -> None:
        self._results = []
        _log.info("benchmarker reset")

    def format_report_json(self, report: BenchmarkResult) -> str:
        """Render a report as indented JSON with durations in milliseconds."""
        env = report.environment
        summary = report.summary
        document: Dict[str, Any] = {
            "test_suite": report.test_suite,
            "timestamp": _rfc3339(report.timestamp),
            "environment": {
                "os": env.os,
                "arch": env.arch,
                "cpus": env.cpus,
                "python_version": env.python_version,
                "total_memory": env.total_memory,
            },
            "summary": {
                "total_tests": summary.total_tests,
                "passed_tests": summary.passed_tests,
                "failed_tests": summary.failed_tests,
                "total_duration_ms": _ms(summary.total_duration),
                "avg_duration_ms": _ms(summary.avg_duration),
                "max_duration_ms": _ms(summary.max_duration),
                "min_duration_ms": _ms(summary.min_duration),
                "total_memory_bytes": summary.total_memory,
                "avg_memory_bytes": summary.avg_memory,
                "avg_throughput_mbps": round(summary.avg_throughput, 2),
            },
            "metrics": [
                {
                    "name": m.name,
                    "duration_ms": _ms(m.duration),
                    "memory_bytes": m.memory_usage,
                    "alloc_count": m.alloc_count,
                    "throughput_ops": round(m.throughput_ops, 2),
                    "throughput_mbps": round(m.throughput_data, 2),
                    "success": m.success,
                    "error": m.error,
                    "start_time": _rfc3339(m.start_time),
                    "end_time": _rfc3339(m.end_time),
                }
                for m in report.metrics
            ],
        }
        return json.dumps(document, indent=2, ensure_ascii=False)

    def save_report(self, report: BenchmarkResult, filename) -> None:
        """Write the report as JSON to ``filename``."""
        content = self.format_report_json(report)
        try:
            with open(filename, "w", encoding="utf-8") as handle:
                handle.write(content)
        except OSError as exc:
            raise OSError(f"無法寫入報告文件: {filename}: {exc}") from exc
        _log.info("benchmark report saved to %s", filename)

    def print_summary(self) -> None:
        """Print the summary and every result to standard output."""
        if not self._results:
            print("沒有測試結果")
            return

        summary = self.summary()
        print("=== 性能測試摘要 ===")
        print(f"總測試數: {summary.total_tests}")
        print(f"通過測試: {summary.passed_tests}")
        print(f"失敗測試: {summary.failed_tests}")
        print(f"總執行時間: {_format_duration(summary.total_duration)}")
        print(f"平均執行時間: {_format_duration(summary.avg_duration)}")
        print(f"最大執行時間: {_format_duration(summary.max_duration)}")
        print(f"最小執行時間: {_format_duration(summary.min_duration)}")
        print(f"總記憶體使用: {summary.total_memory} bytes ({summary.total_memory / _MB:.2f} MB)")
        print(f"平均記憶體使用: {summary.avg_memory} bytes ({summary.avg_memory / _MB:.2f} MB)")
        if summary.avg_throughput > 0:
            print(f"平均吞吐量: {summary.avg_throughput:.2f} MB/s")

        print("\n=== 各項測試結果 ===")
        for result in self._results:
            status = "✓" if result.success else "✗"
            line = (
                f"{status} {result.name}: {_format_duration(result.duration)} "
                f"(記憶體: {result.memory_usage / _MB:.2f} MB"
            )
            if result.throughput_data > 0:
                line += f", 吞吐量: {result.throughput_data:.2f} MB/s"
            if result.throughput_ops > 0:
                line += f", 操作數: {result.throughput_ops:.0f} ops/s"
            print(line + ")")
            if not result.success:
                print(f"  錯誤: {result.error}")