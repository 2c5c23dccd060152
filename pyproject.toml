[build-system]
requires = ["setuptools>=64"]
build-backend = "setuptools.build_meta"

[project]
name = "emgkit"
version = "0.1.0"
description = "EMG data analysis: sliding-window maximum means, normalisation, phase statistics, progress reporting and benchmarking"
requires-python = ">=3.10"
dependencies = []
keywords = ["emg", "electromyography", "biomechanics", "signal", "statistics", "csv"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Medical Science Apps.",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.setuptools.packages.find]
include = ["emgkit*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
