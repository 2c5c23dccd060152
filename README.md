# emgkit

Tools for analysing surface EMG recordings held as CSV rows, where the
first column holds time and every following column holds one channel.

The functions take rows as lists of strings (the first row being the
headers), such as those produced by `csv.reader`.

## What it does

- **Parsing** (`emgkit.dataset`): `parse_records(records, scaling_factor)`
  turns CSV rows into an `EMGDataset` of `EMGData` samples. Rows with fewer
  than two fields or with an empty or unparsable time are skipped; an
  unparsable channel value raises `DataError`. `scale_number` parses one
  value.
- **Maximum mean** (`emgkit.maxmean.MaxMeanCalculator`): for each channel,
  finds the window of a given number of samples with the highest mean, over
  the whole recording (`calculate`, `calculate_from_raw_data`) or inside a
  time range (`calculate_with_range`, `calculate_from_raw_data_with_range`;
  an end of `0` means up to the last sample). Each result is a
  `MaxMeanResult` with `column_index`, `start_time`, `end_time` and
  `max_mean`. A callback set with `set_progress_callback` receives a
  `ProgressInfo` as each channel finishes.
- **Normalisation** (`emgkit.normalizer.Normalizer`): divides every channel
  by the matching value in the first row of a reference table (for example an
  MVC file, whose first column is a label). A zero reference value or a
  channel-count mismatch raises `DataError`. `detect_time_precision` reports
  the number of decimals used in the time column (2 if none are found).
- **Phase analysis** (`emgkit.phase_analyzer.PhaseAnalyzer`): splits a
  recording at given time points (at least five) into one `TimeRange` per
  phase label and reports, per phase, the maximum and mean of each channel
  over the samples strictly inside it, plus the time at which each channel's
  overall peak occurred (`AnalyzeResult.max_time_index`).
- **Statistics export** (`emgkit.statistics`): given an `EMGStatistics`
  record, `EMGStatisticsCalculator.export_to_csv` writes a BOM-prefixed UTF-8
  CSV that opens correctly in Excel, and `format_statistics_report` renders a
  plain-text table. `generate_output_file_name`, `sanitize_file_name` and
  `validate_statistics_params` help name and check an analysis interval.
- **Progress reporting** (`emgkit.progress.ProgressManager`): keeps the
  latest `ProgressInfo` and forwards updates, throttled to one per 0.1 s by
  default (`set_update_buffer`), to any number of subscribers. A subscription
  from `subscribe()` holds up to ten updates, read with `get(timeout)` or
  `drain()`; a subscriber whose mailbox is full is closed and dropped. Updates
  at 100% are never throttled.
- **Benchmarking** (`emgkit.benchmark.Benchmarker`): times callables, records
  the memory they allocate and their data or operation throughput, summarises
  the results, prints them, and writes a JSON report (`save_report`).
  Durations are kept in seconds and reported in milliseconds.

## Example

```python
from emgkit.maxmean import MaxMeanCalculator
from emgkit.normalizer import Normalizer

records = [
    ["Time", "Biceps", "Triceps"],
    ["0.00", "1.0", "2.0"],
    ["0.01", "3.0", "1.0"],
    ["0.02", "5.0", "4.0"],
]

calculator = MaxMeanCalculator(scaling_factor=2)
for result in calculator.calculate_from_raw_data(records, window_size=2):
    print(result.column_index, result.max_mean, result.start_time, result.end_time)

reference = [["", "Biceps", "Triceps"], ["MVC", "10.0", "8.0"]]
normalised = Normalizer(scaling_factor=2).normalize_from_raw_data(records, reference)
```

Values are read with a scaling factor: a factor of `n` multiplies each number
by `10**n` while parsing, so times and ranges are compared on the same scale.

Invalid input raises `emgkit.dataset.DataError` (a `ValueError`) with a
message describing the problem.

## What it does not do

- It has no command-line tool and no graphical interface.
- It does not read or write the input CSV files itself, nor process whole
  directories; callers supply the rows and decide where results go. Only the
  statistics export and the benchmark report write files.
- It does not draw charts.
- It does not compute `EMGStatistics` from recordings or synchronise EMG with
  force-plate or motion-capture data; the statistics record is filled in by
  the caller.

## Installation

```
pip install .
```

## Running the tests

```
pip install .[test]
pytest
```