# file: src/shaping_conformance/entropy.py

"""
Random byte sources for the harness.

Randomness is passed into the harness explicitly instead of read from
process-wide state, so a run can be made reproducible by seeding.
"""

import logging
import os
from typing import Optional, Protocol, runtime_checkable

import numpy as np

from .config import HarnessConfig, REFILL_FAIL_FAST
from .errors import EntropySourceError

logger = logging.getLogger(__name__)


@runtime_checkable
class RandomSource(Protocol):
    """Anything that can hand out n random bytes or raise EntropySourceError."""

    def read(self, n: int) -> bytes:
        ...


class SystemRandomSource:
    """Operating-system CSPRNG (os.urandom)."""

    def read(self, n: int) -> bytes:
        try:
            return os.urandom(n)
        except OSError as e:
            raise EntropySourceError(f"cannot get random bytes: {e}") from e


class SeededRandomSource:
    """
    Deterministic source backed by numpy's default generator.

    Not suitable for anything security-sensitive; intended for reproducible
    statistical runs and tests.
    """

    def __init__(self, seed: int):
        self.seed = seed
        self._rng = np.random.default_rng(seed)

    def read(self, n: int) -> bytes:
        return self._rng.bytes(n)


def make_random_source(config: HarnessConfig) -> RandomSource:
    """Seeded source when config.seed is set, system CSPRNG otherwise."""
    if config.seed is not None:
        return SeededRandomSource(config.seed)
    return SystemRandomSource()


def fill_block(block: bytearray, source: RandomSource) -> None:
    """
    Overwrite block in place with fresh random bytes.

    Raises:
        EntropySourceError: If the source fails or returns a short read
    """
    data = source.read(len(block))
    if len(data) != len(block):
        raise EntropySourceError(
            f"random source returned {len(data)} of {len(block)} requested bytes"
        )
    block[:] = data


def refill_block(
    block: bytearray,
    source: RandomSource,
    policy: str,
    chunk: Optional[int] = None
) -> bool:
    """
    Refill block according to the refill policy.

    Under fail_fast a source failure propagates. Under reuse_last the previous
    contents of block are kept.

    Returns:
        True if the block was refreshed, False if stale bytes were kept
    """
    try:
        fill_block(block, source)
    except EntropySourceError as e:
        if policy == REFILL_FAIL_FAST:
            raise
        logger.debug(f"Reusing previous random block for chunk {chunk}: {e}")
        return False
    return True
