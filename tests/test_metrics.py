"""
Unit tests for shaped-output metrics.
"""

import math

import numpy as np
import pytest

from shaping_conformance.metrics import (
    NO_DATA_MARKER,
    chi_square_uniform,
    compute_expansion,
    format_self_information,
    new_histogram,
    self_information,
    shannon_entropy,
    summarize,
    tally_bytes,
)


class TestHistogram:
    """Test byte-value tallying."""

    def test_tally_counts_values(self):
        h = new_histogram()
        tally_bytes(h, b"\x00\x00\xff")

        assert h[0] == 2
        assert h[255] == 1
        assert h.sum() == 3

    def test_tally_accepts_memoryview_slices(self):
        h = new_histogram()
        buf = bytearray(b"abcabc")
        tally_bytes(h, memoryview(buf)[:3])

        assert h[ord("a")] == 1
        assert h.sum() == 3

    def test_tally_empty_is_noop(self):
        h = new_histogram()
        tally_bytes(h, b"")

        assert h.sum() == 0


class TestSelfInformation:
    """Test -log2(p) vector computation."""

    def test_uniform_gives_eight_bits(self):
        h = new_histogram()
        tally_bytes(h, bytes(range(256)) * 4)

        vector = self_information(h)

        assert len(vector) == 256
        assert all(v == pytest.approx(8.0) for v in vector)

    def test_missing_values_are_none(self):
        """Unseen values are an explicit missing marker, not infinity."""
        h = new_histogram()
        tally_bytes(h, b"\x01\x01")

        vector = self_information(h)

        assert vector[1] == 0.0
        assert vector[0] is None
        assert sum(v is None for v in vector) == 255

    def test_empty_histogram_all_none(self):
        assert all(v is None for v in self_information(new_histogram()))

    def test_format_uses_marker(self):
        text = format_self_information([8.0, None, 7.94])

        assert text == f"8.0 {NO_DATA_MARKER} 7.9"


class TestUniformity:
    """Test supplemental uniformity signals."""

    def test_shannon_entropy_uniform(self):
        h = new_histogram()
        tally_bytes(h, bytes(range(256)))

        assert shannon_entropy(h) == pytest.approx(8.0)

    def test_shannon_entropy_constant(self):
        h = new_histogram()
        tally_bytes(h, b"\x07" * 100)

        assert shannon_entropy(h) == 0.0

    def test_chi_square_perfect_fit(self):
        h = new_histogram()
        tally_bytes(h, bytes(range(256)) * 2)

        stat, pvalue = chi_square_uniform(h)

        assert stat == pytest.approx(0.0)
        assert pvalue == pytest.approx(1.0)

    def test_chi_square_empty(self):
        stat, pvalue = chi_square_uniform(new_histogram())

        assert math.isnan(stat) and math.isnan(pvalue)


class TestExpansion:

    def test_expansion_ratio(self):
        ratio, overhead = compute_expansion(5000, 4000)

        assert ratio == pytest.approx(1.25)
        assert overhead == pytest.approx(25.0)

    def test_identity_has_zero_overhead(self):
        assert compute_expansion(4096, 4096) == (1.0, 0.0)

    def test_nothing_consumed(self):
        ratio, overhead = compute_expansion(10, 0)

        assert math.isnan(ratio) and math.isnan(overhead)


def test_summarize():
    s = summarize(np.array([1.0, 2.0, 3.0]))

    assert s["min"] == 1.0
    assert s["max"] == 3.0
    assert s["mean"] == pytest.approx(2.0)
