"""EMG data analysis: parsing, maximum means, normalisation, phase analysis, statistics export, progress reporting and benchmarking."""

__version__ = "0.1.0"
__all__ = ["benchmark", "dataset", "maxmean", "normalizer", "phase_analyzer", "progress", "statistics"]