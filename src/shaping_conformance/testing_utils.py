# file: src/shaping_conformance/testing_utils.py

"""
Stub Encoders, Decoders and random sources for exercising the harness.

These are reference collaborators for tests and evaluation only. They are
not shaping algorithms and provide no traffic-analysis resistance.
"""

import struct
from typing import Optional, Tuple

import numpy as np

from .entropy import RandomSource
from .errors import EntropySourceError

HEADER = struct.Struct(">H")


def _copy(dst: bytearray, src: memoryview, limit: Optional[int] = None) -> int:
    n = min(len(dst), len(src))
    if limit is not None:
        n = min(n, limit)
    dst[:n] = src[:n]
    return n


class FixedCadenceEncoder:
    """
    Constant length / constant sleep Encoder with identity byte shaping.

    Contract breaches can be injected for negative tests:
        packet_length=0 or > max_length, sleep < 0, stall_after (return
        (0, 0) from shape_bytes after that many calls), or shape_result
        (a fixed (dn, sn) returned from every shape_bytes call).
    """

    def __init__(
        self,
        packet_length: int = 1000,
        sleep: float = 0.01,
        max_length: int = 1500,
        stall_after: Optional[int] = None,
        shape_result: Optional[Tuple[int, int]] = None
    ):
        self.packet_length = packet_length
        self.sleep = sleep
        self.max_length = max_length
        self.stall_after = stall_after
        self.shape_result = shape_result
        self.shape_calls = 0

    def max_packet_length(self) -> int:
        return self.max_length

    def next_packet_length(self) -> int:
        return self.packet_length

    def next_packet_sleep(self) -> float:
        return self.sleep

    def shape_bytes(self, dst: bytearray, src: memoryview) -> Tuple[int, int]:
        calls = self.shape_calls
        self.shape_calls += 1

        if self.stall_after is not None and calls >= self.stall_after:
            return 0, 0
        if self.shape_result is not None:
            return self.shape_result

        n = _copy(dst, src)
        return n, n


class IdentityDecoder:
    """Inverse of FixedCadenceEncoder's identity shaping."""

    def unshape_bytes(self, dst: bytearray, src: memoryview) -> Tuple[int, int]:
        n = _copy(dst, src)
        return n, n


class RandomCadenceEncoder:
    """
    Encoder with uniformly distributed packet lengths and exponentially
    distributed (Poisson-process) sleeps. Byte shaping is identity, in
    packet-sized pieces.
    """

    def __init__(self, max_length: int = 1500, mean_sleep: float = 0.005, seed: int = 0):
        self.max_length = max_length
        self.mean_sleep = mean_sleep
        self._rng = np.random.default_rng(seed)

    def max_packet_length(self) -> int:
        return self.max_length

    def next_packet_length(self) -> int:
        return int(self._rng.integers(1, self.max_length, endpoint=True))

    def next_packet_sleep(self) -> float:
        return float(self._rng.exponential(self.mean_sleep))

    def shape_bytes(self, dst: bytearray, src: memoryview) -> Tuple[int, int]:
        n = _copy(dst, src, limit=self.next_packet_length())
        return n, n


class LengthPrefixEncoder:
    """
    Frames each shape_bytes call as a 2-byte big-endian length header
    followed by up to record_len payload bytes.

    Gives a known, non-trivial expansion ratio:
        (record_len + 2) / record_len for full records.
    """

    def __init__(self, record_len: int = 510, max_length: int = 1500, sleep: float = 0.01):
        if not 0 < record_len <= 0xFFFF:
            raise ValueError(f"record_len must be in [1, 65535], got {record_len}")
        self.record_len = record_len
        self.max_length = max_length
        self.sleep = sleep

    def max_packet_length(self) -> int:
        return self.max_length

    def next_packet_length(self) -> int:
        return min(self.record_len + HEADER.size, self.max_length)

    def next_packet_sleep(self) -> float:
        return self.sleep

    def shape_bytes(self, dst: bytearray, src: memoryview) -> Tuple[int, int]:
        room = len(dst) - HEADER.size
        if room <= 0:
            return 0, 0
        n = min(len(src), room, self.record_len)
        HEADER.pack_into(dst, 0, n)
        dst[HEADER.size:HEADER.size + n] = src[:n]
        return HEADER.size + n, n


class LengthPrefixDecoder:
    """Streaming inverse of LengthPrefixEncoder; records may span calls."""

    def __init__(self):
        self._header = bytearray()
        self._pending = 0

    def unshape_bytes(self, dst: bytearray, src: memoryview) -> Tuple[int, int]:
        if self._pending == 0:
            need = HEADER.size - len(self._header)
            take = min(need, len(src))
            self._header += src[:take]
            if len(self._header) == HEADER.size:
                (self._pending,) = HEADER.unpack(self._header)
                self._header.clear()
            return 0, take

        n = _copy(dst, src, limit=self._pending)
        self._pending -= n
        return n, n


class CorruptingDecoder(IdentityDecoder):
    """Identity decoder that flips one bit at a fixed stream offset."""

    def __init__(self, offset: int = 0):
        self.offset = offset
        self._position = 0

    def unshape_bytes(self, dst: bytearray, src: memoryview) -> Tuple[int, int]:
        dn, sn = super().unshape_bytes(dst, src)
        start = self._position
        if start <= self.offset < start + dn:
            dst[self.offset - start] ^= 0x01
        self._position += dn
        return dn, sn


class FlakyRandomSource:
    """
    Wraps a RandomSource and fails every read after the first ok_reads.
    """

    def __init__(self, inner: RandomSource, ok_reads: int = 1):
        self.inner = inner
        self.ok_reads = ok_reads
        self.reads = 0

    def read(self, n: int) -> bytes:
        self.reads += 1
        if self.reads > self.ok_reads:
            raise EntropySourceError("injected entropy failure")
        return self.inner.read(n)
