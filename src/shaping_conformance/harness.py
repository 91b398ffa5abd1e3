# file: src/shaping_conformance/harness.py

"""
Conformance driver entry points.

Pipeline:
    Encoder
    → Cadence validation (packet length / sleep contract, throughput)
    → Byte-shaping validation (shape_bytes contract, expansion, distribution)
    → Report (diagnostic log lines)

validate_one_direction additionally verifies that a Decoder recovers the
original bytes from the Encoder's shaped stream.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from .cadence import CadenceStats, measure_cadence
from .config import HarnessConfig, load_config
from .entropy import RandomSource, fill_block, make_random_source
from .errors import RoundTripError
from .interfaces import Decoder, Encoder
from .shaping import ShapingStats, drive_transform, measure_shaping
from .metrics import format_self_information

logger = logging.getLogger(__name__)

ConfigLike = Union[None, str, Dict[str, Any], HarnessConfig]


@dataclass
class PerformanceReport:
    """Everything measured by validate_expected_performance."""
    cadence: CadenceStats
    shaping: ShapingStats
    uniform_bytes_per_second: float
    uniform_bits_per_second: float


@dataclass
class RoundTripStats:
    """Byte counts of one shape → unshape pass."""
    source_bytes: int
    shaped_bytes: int
    recovered_bytes: int
    encoder_calls: int
    decoder_calls: int


def _resolve(config: ConfigLike, random_source: Optional[RandomSource]):
    cfg = load_config(config)
    if random_source is None:
        random_source = make_random_source(cfg)
    return cfg, random_source


def _log_shaping_report(cadence: CadenceStats, shaping: ShapingStats) -> PerformanceReport:
    ratio = shaping.expansion_ratio

    logger.info(
        f"simulated average shaped/uniform expansion: "
        f"{shaping.overhead_percent:+2.0f}% ({shaping.produced} / {shaping.consumed})"
    )

    if ratio > 0:
        uniform_bps = cadence.bytes_per_second / ratio
        uniform_bits = cadence.bits_per_second / ratio
    else:
        # encoder held back everything it consumed
        uniform_bps = uniform_bits = float("inf")
    logger.info(
        f"expected uniform transfer rate: {uniform_bps:0.2e} B/s = {uniform_bits:0.2e} b/s"
    )

    logger.info(
        f"shaped byte distribution -log: {format_self_information(shaping.self_information)}"
    )
    logger.info(
        f"shaped byte entropy {shaping.entropy_bits_per_byte:.4f} bits/byte; "
        f"chi-square vs uniform {shaping.chi_square:.2f} (p={shaping.chi_square_pvalue:.3f})"
    )

    return PerformanceReport(
        cadence=cadence,
        shaping=shaping,
        uniform_bytes_per_second=uniform_bps,
        uniform_bits_per_second=uniform_bits,
    )


def validate_expected_performance(
    encoder: Encoder,
    config: ConfigLike = None,
    random_source: Optional[RandomSource] = None
) -> PerformanceReport:
    """
    Validate an Encoder's cadence and byte-shaping behaviour.

    Any contract violation aborts the run with ContractViolationError; no
    partial report is produced.

    Args:
        encoder: Encoder under test
        config: None, YAML path, nested dict or HarnessConfig
        random_source: Source of uniform random bytes (default follows config.seed)

    Returns:
        PerformanceReport with the logged statistics

    Raises:
        ContractViolationError: On the first contract breach
        EntropySourceError: If random bytes cannot be acquired
        HarnessConfigurationError: If config is invalid
    """
    cfg, random_source = _resolve(config, random_source)

    cadence = measure_cadence(encoder, cfg)
    shaping = measure_shaping(encoder, cfg, random_source)

    return _log_shaping_report(cadence, shaping)


def verify_round_trip(
    encoder: Encoder,
    decoder: Decoder,
    config: ConfigLike = None,
    random_source: Optional[RandomSource] = None
) -> RoundTripStats:
    """
    Shape one random block, unshape the result, and require exact recovery.

    Both directions are held to the same forward-progress and bounds contract.

    Raises:
        ContractViolationError: If either side breaks the (dn, sn) contract
        RoundTripError: If the recovered bytes differ from the source
    """
    cfg, random_source = _resolve(config, random_source)
    chunk_len = cfg.roundtrip_chunk_len

    source = bytearray(chunk_len)
    fill_block(source, random_source)

    shaped = bytearray()
    _, _, enc_calls = drive_transform(
        "encoder shape_bytes", encoder.shape_bytes,
        memoryview(source), bytearray(chunk_len), shaped.extend,
    )

    recovered = bytearray()
    _, _, dec_calls = drive_transform(
        "decoder unshape_bytes", decoder.unshape_bytes,
        memoryview(shaped), bytearray(chunk_len), recovered.extend,
    )

    if recovered != source:
        offset = next(
            (i for i, (a, b) in enumerate(zip(source, recovered)) if a != b),
            min(len(source), len(recovered)),
        )
        raise RoundTripError(
            f"round trip recovered {len(recovered)} of {len(source)} bytes, "
            f"first mismatch at offset {offset}",
            offset=offset,
        )

    logger.info(
        f"round trip ok: {len(source)} B -> {len(shaped)} B shaped -> "
        f"{len(recovered)} B recovered ({enc_calls} shape / {dec_calls} unshape calls)"
    )

    return RoundTripStats(
        source_bytes=len(source),
        shaped_bytes=len(shaped),
        recovered_bytes=len(recovered),
        encoder_calls=enc_calls,
        decoder_calls=dec_calls,
    )


def validate_one_direction(
    encoder: Encoder,
    decoder: Decoder,
    config: ConfigLike = None,
    random_source: Optional[RandomSource] = None
) -> PerformanceReport:
    """
    Validate one direction of a shaped channel.

    With roundtrip.enabled the round-trip check runs first, on the freshly
    constructed Encoder/Decoder pair, before the statistical passes advance
    the Encoder's state. With roundtrip.enabled false the decoder is not used
    and this is equivalent to validate_expected_performance.

    Returns:
        PerformanceReport of the statistical passes
    """
    cfg, random_source = _resolve(config, random_source)

    if cfg.roundtrip_enabled:
        verify_round_trip(encoder, decoder, cfg, random_source)
    else:
        logger.debug("round-trip check disabled; decoder not exercised")

    return validate_expected_performance(encoder, cfg, random_source)
