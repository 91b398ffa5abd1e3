# file: src/shaping_conformance/shaping.py

"""
Byte-shaping validation.

Feeds blocks of uniformly random bytes through an Encoder's shape_bytes,
enforces the per-call contract (forward progress and buffer bounds), and
measures the expansion and byte-value distribution of the shaped output.
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

import numpy as np

from .config import HarnessConfig
from .entropy import RandomSource, fill_block, refill_block
from .errors import ContractViolationError
from .interfaces import Encoder
from .metrics import (
    chi_square_uniform,
    compute_expansion,
    new_histogram,
    self_information,
    shannon_entropy,
    tally_bytes,
)

logger = logging.getLogger(__name__)

# (dst, src) -> (bytes written to dst, bytes consumed from src)
Transform = Callable[[bytearray, memoryview], Tuple[int, int]]


@dataclass
class ShapingStats:
    """Aggregates of one byte-shaping run."""
    chunk_len: int
    chunk_count: int
    expected_consumed: int
    consumed: int
    produced: int
    calls: int
    histogram: np.ndarray
    expansion_ratio: float
    overhead_percent: float
    self_information: List[Optional[float]]
    entropy_bits_per_byte: float
    chi_square: float
    chi_square_pvalue: float
    refill_failures: int = 0

    @property
    def fully_consumed(self) -> bool:
        return self.consumed == self.expected_consumed


def check_transform_call(
    name: str,
    dn: int,
    sn: int,
    dst_len: int,
    tail_len: int,
    call: int
) -> None:
    """
    Enforce the (dn, sn) contract of one shape/unshape call.

    Raises:
        ContractViolationError: On no progress, a negative count, or a count
                                exceeding the destination or remaining source
    """
    if dn == 0 and sn == 0:
        raise ContractViolationError(
            f"{name} made no progress (call {call})",
            value=0, bound=0, trial=call,
        )
    if dn < 0:
        raise ContractViolationError(
            f"{name} claims to have produced {dn} bytes (call {call})",
            value=dn, bound=0, trial=call,
        )
    if sn < 0:
        raise ContractViolationError(
            f"{name} claims to have consumed {sn} bytes (call {call})",
            value=sn, bound=0, trial=call,
        )
    if dn > dst_len:
        raise ContractViolationError(
            f"{name} claims to have produced {dn} > {dst_len} bytes "
            f"({dn - dst_len} over, call {call})",
            value=dn, bound=dst_len, trial=call,
        )
    if sn > tail_len:
        raise ContractViolationError(
            f"{name} claims to have consumed {sn} > {tail_len} bytes "
            f"({sn - tail_len} over, call {call})",
            value=sn, bound=tail_len, trial=call,
        )


def drive_transform(
    name: str,
    transform: Transform,
    src: memoryview,
    dst: bytearray,
    sink: Callable[[memoryview], None],
    first_call: int = 0
) -> Tuple[int, int, int]:
    """
    Call transform until src is fully consumed.

    Every produced slice of dst is handed to sink before dst is reused.

    Returns:
        (consumed, produced, calls)
    """
    dst_view = memoryview(dst)
    tail = src
    consumed = produced = 0
    call = first_call

    while len(tail) > 0:
        dn, sn = transform(dst, tail)
        dn, sn = int(dn), int(sn)
        check_transform_call(name, dn, sn, len(dst), len(tail), call)

        sink(dst_view[:dn])
        consumed += sn
        produced += dn
        tail = tail[sn:]
        call += 1

    return consumed, produced, call - first_call


def measure_shaping(
    encoder: Encoder,
    config: HarnessConfig,
    random_source: RandomSource
) -> ShapingStats:
    """
    Shape config.uniform_chunk_count random blocks through encoder.

    The initial fill of the source block must succeed. Later refills follow
    config.refill_policy: fail_fast re-raises, reuse_last keeps the previous
    block, which is acceptable for a rough statistical test only.

    Args:
        encoder: Encoder under test
        config: Harness configuration
        random_source: Source of uniform random bytes

    Returns:
        ShapingStats with byte accounting and distribution metrics

    Raises:
        EntropySourceError: If the initial fill fails, or a refill fails
                            under the fail_fast policy
        ContractViolationError: If any shape_bytes call breaks the contract
    """
    chunk_len = config.uniform_chunk_len
    chunk_count = config.uniform_chunk_count

    source_block = bytearray(chunk_len)
    fill_block(source_block, random_source)

    shaped_out = bytearray(chunk_len)
    histogram = new_histogram()

    consumed = produced = calls = 0
    refill_failures = 0

    def sink(out: memoryview) -> None:
        tally_bytes(histogram, out)

    for chunk in range(chunk_count):
        if not refill_block(source_block, random_source, config.refill_policy, chunk):
            refill_failures += 1

        consumed_chunk, produced_chunk, n = drive_transform(
            "encoder shape_bytes",
            encoder.shape_bytes,
            memoryview(source_block),
            shaped_out,
            sink,
            first_call=calls,
        )
        consumed += consumed_chunk
        produced += produced_chunk
        calls += n

    expected = config.expected_source_total
    if consumed != expected:
        logger.warning(f"somehow consumed {consumed} != {expected} bytes?!")

    ratio, overhead = compute_expansion(produced, consumed)
    chi2, pvalue = chi_square_uniform(histogram)

    return ShapingStats(
        chunk_len=chunk_len,
        chunk_count=chunk_count,
        expected_consumed=expected,
        consumed=consumed,
        produced=produced,
        calls=calls,
        histogram=histogram,
        expansion_ratio=ratio,
        overhead_percent=overhead,
        self_information=self_information(histogram),
        entropy_bits_per_byte=shannon_entropy(histogram),
        chi_square=chi2,
        chi_square_pvalue=pvalue,
        refill_failures=refill_failures,
    )
