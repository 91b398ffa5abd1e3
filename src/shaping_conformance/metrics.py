# file: src/shaping_conformance/metrics.py

"""
Descriptive statistics for shaped output.

Provides the byte-value histogram, per-value self-information, and a few
supplemental uniformity signals (Shannon entropy, chi-square against a
uniform distribution). These are rough indicators for human judgment, not a
test of cryptographic indistinguishability.
"""

import math
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
from scipy import stats as sp_stats

NUM_BYTE_VALUES = 256
NO_DATA_MARKER = "*"


def new_histogram() -> np.ndarray:
    """Empty 256-bucket byte-value histogram."""
    return np.zeros(NUM_BYTE_VALUES, dtype=np.uint64)


def tally_bytes(histogram: np.ndarray, data) -> None:
    """
    Add the byte values of data to histogram in place.

    Args:
        histogram: 256-bucket histogram from new_histogram()
        data: bytes-like object (bytes, bytearray or memoryview)
    """
    if len(data) == 0:
        return
    values = np.frombuffer(data, dtype=np.uint8)
    histogram += np.bincount(values, minlength=NUM_BYTE_VALUES).astype(np.uint64)


def self_information(histogram: np.ndarray) -> List[Optional[float]]:
    """
    Empirical self-information -log2(count / total) of every byte value.

    A perfectly uniform byte stream gives values near 8.0 everywhere.

    Args:
        histogram: 256-bucket histogram

    Returns:
        List of 256 floats; None for values that were never observed

    Example:
        >>> h = new_histogram()
        >>> tally_bytes(h, bytes(range(256)))
        >>> self_information(h)[0]
        8.0
    """
    total = int(histogram.sum())
    vector: List[Optional[float]] = []
    for count in histogram:
        count = int(count)
        if count == 0:
            vector.append(None)
        else:
            vector.append(-math.log2(count / total))
    return vector


def format_self_information(vector: Sequence[Optional[float]]) -> str:
    """Space-separated %0.1f values, NO_DATA_MARKER for missing ones."""
    return " ".join(
        NO_DATA_MARKER if value is None else f"{value:0.1f}"
        for value in vector
    )


def shannon_entropy(histogram: np.ndarray) -> float:
    """
    Shannon entropy of the byte distribution in bits/byte (ideal: 8.0).

    Returns 0.0 for an empty histogram.
    """
    total = histogram.sum()
    if total == 0:
        return 0.0
    p = histogram[histogram > 0].astype(np.float64) / float(total)
    return float(-(p * np.log2(p)).sum())


def chi_square_uniform(histogram: np.ndarray) -> Tuple[float, float]:
    """
    Chi-square goodness of fit of the histogram against a uniform distribution.

    Returns:
        (statistic, p_value); both NaN for an empty histogram
    """
    if histogram.sum() == 0:
        return float("nan"), float("nan")
    result = sp_stats.chisquare(histogram.astype(np.float64))
    return float(result.statistic), float(result.pvalue)


def compute_expansion(produced: int, consumed: int) -> Tuple[float, float]:
    """
    Expansion ratio and overhead percentage of shaped output.

    Ratio = produced / consumed
    Overhead = (ratio - 1) * 100

    Returns:
        (ratio, overhead_percent); NaN for both when nothing was consumed

    Example:
        >>> compute_expansion(5000, 4000)
        (1.25, 25.0)
    """
    if consumed <= 0:
        return float("nan"), float("nan")
    ratio = produced / consumed
    return ratio, 100.0 * (ratio - 1.0)


def summarize(values: np.ndarray) -> Dict[str, float]:
    """min / max / mean / std of a 1D sample (all NaN when empty)."""
    if values.size == 0:
        nan = float("nan")
        return {"min": nan, "max": nan, "mean": nan, "std": nan}
    return {
        "min": float(values.min()),
        "max": float(values.max()),
        "mean": float(values.mean()),
        "std": float(values.std()),
    }
