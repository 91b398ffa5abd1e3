# file: src/shaping_conformance/cadence.py

"""
Cadence validation.

Samples an Encoder's packet-length and inter-packet-sleep choices, enforces
their bounds on every trial, and derives the simulated shaped throughput.
Length and sleep are queried independently each trial, so Encoders that vary
both dynamically are measured as they behave.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Dict

import numpy as np

from .config import HarnessConfig
from .errors import ContractViolationError
from .interfaces import Encoder
from .metrics import summarize

logger = logging.getLogger(__name__)


@dataclass
class CadenceStats:
    """Aggregates of one cadence run."""
    iterations: int
    max_packet_length: int
    total_bytes: int
    total_seconds: float
    bytes_per_second: float
    bits_per_second: float
    granularity: float  # average seconds per trial
    packet_length_summary: Dict[str, float] = field(default_factory=dict)
    sleep_summary: Dict[str, float] = field(default_factory=dict)


NANOS_PER_SECOND = 1_000_000_000


def _sleep_seconds(sleep) -> float:
    if isinstance(sleep, timedelta):
        return sleep.total_seconds()
    return float(sleep)


def _sleep_nanos(sleep) -> int:
    # totals are kept in integer nanoseconds so fixed sleeps sum exactly
    if isinstance(sleep, timedelta):
        return (sleep // timedelta(microseconds=1)) * 1000
    return round(float(sleep) * NANOS_PER_SECOND)


def measure_cadence(encoder: Encoder, config: HarnessConfig) -> CadenceStats:
    """
    Run config.packet_iterations cadence trials against encoder.

    The declared maximum packet length is read once per run.

    Args:
        encoder: Encoder under test
        config: Harness configuration

    Returns:
        CadenceStats with totals and derived throughput

    Raises:
        ContractViolationError: On a zero-length packet, a packet longer than
                                the declared maximum, or a negative, NaN or
                                infinite sleep
    """
    max_len = int(encoder.max_packet_length())
    iterations = config.packet_iterations

    lengths = np.empty(iterations, dtype=np.int64)
    sleeps = np.empty(iterations, dtype=np.float64)
    total_bytes = 0
    total_nanos = 0

    for i in range(iterations):
        send = int(encoder.next_packet_length())
        if send == 0:
            raise ContractViolationError(
                f"encoder wanted to send zero-length packet (trial {i})",
                value=send, bound=max_len, trial=i,
            )
        if send < 0:
            raise ContractViolationError(
                f"encoder wanted to send negative len {send} (trial {i})",
                value=send, bound=max_len, trial=i,
            )
        if send > max_len:
            raise ContractViolationError(
                f"encoder wanted to send len {send} > {max_len} (trial {i}, "
                f"{send - max_len} over)",
                value=send, bound=max_len, trial=i,
            )

        raw_sleep = encoder.next_packet_sleep()
        sleep = _sleep_seconds(raw_sleep)
        if math.isnan(sleep):
            raise ContractViolationError(
                f"encoder wanted to sleep NaN (trial {i})",
                value=sleep, bound=0, trial=i,
            )
        if sleep < 0:
            raise ContractViolationError(
                f"encoder wanted to sleep negative amount {sleep} s (trial {i})",
                value=sleep, bound=0, trial=i,
            )
        if math.isinf(sleep):
            raise ContractViolationError(
                f"encoder wanted to sleep forever (trial {i})",
                value=sleep, bound=0, trial=i,
            )

        lengths[i] = send
        sleeps[i] = sleep
        total_bytes += send
        total_nanos += _sleep_nanos(raw_sleep)

    total_seconds = total_nanos / NANOS_PER_SECOND
    if total_seconds > 0:
        bytes_per_second = total_bytes / total_seconds
    else:
        bytes_per_second = float("inf")
        logger.info("encoder never slept; simulated throughput is unbounded")
    bits_per_second = 8.0 * bytes_per_second
    granularity = total_seconds / iterations

    logger.info(
        f"simulated average shaped transfer rate: "
        f"{bytes_per_second:0.2e} B/s = {bits_per_second:0.2e} b/s "
        f"({total_bytes} B / {total_seconds:0.2f} s; granularity {granularity:0.3f} s)"
    )

    length_summary = summarize(lengths)
    sleep_summary = summarize(sleeps)
    logger.debug(
        f"packet length min/mean/max {length_summary['min']:.0f}/"
        f"{length_summary['mean']:.1f}/{length_summary['max']:.0f} of {max_len}; "
        f"sleep mean {sleep_summary['mean']:.4f} s (std {sleep_summary['std']:.4f})"
    )

    return CadenceStats(
        iterations=iterations,
        max_packet_length=max_len,
        total_bytes=total_bytes,
        total_seconds=total_seconds,
        bytes_per_second=bytes_per_second,
        bits_per_second=bits_per_second,
        granularity=granularity,
        packet_length_summary=length_summary,
        sleep_summary=sleep_summary,
    )
