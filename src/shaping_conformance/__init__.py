# file: src/shaping_conformance/__init__.py

"""
Shaping Conformance Harness

Statistical conformance checks for packet-shaping Encoders/Decoders used in
traffic-analysis-resistant protocols. The harness samples an Encoder's packet
cadence and byte shaping, enforces its output contract, and logs descriptive
statistics (throughput, expansion ratio, byte-value self-information).

Public API:
    - validate_expected_performance(encoder, config, random_source) -> PerformanceReport
    - validate_one_direction(encoder, decoder, config, random_source) -> PerformanceReport
    - verify_round_trip(encoder, decoder, config, random_source) -> RoundTripStats
    - measure_cadence(encoder, config) -> CadenceStats
    - measure_shaping(encoder, config, random_source) -> ShapingStats
"""

from .interfaces import Encoder, Decoder
from .config import HarnessConfig, load_config
from .entropy import RandomSource, SystemRandomSource, SeededRandomSource
from .cadence import CadenceStats, measure_cadence
from .shaping import ShapingStats, measure_shaping
from .metrics import format_self_information, self_information
from .harness import (
    PerformanceReport,
    RoundTripStats,
    validate_expected_performance,
    validate_one_direction,
    verify_round_trip,
)
from .errors import (
    ConformanceError,
    ContractViolationError,
    EntropySourceError,
    RoundTripError,
    HarnessConfigurationError,
)

__version__ = "1.0.0"

__all__ = [
    "Encoder",
    "Decoder",
    "HarnessConfig",
    "load_config",
    "RandomSource",
    "SystemRandomSource",
    "SeededRandomSource",
    "CadenceStats",
    "measure_cadence",
    "ShapingStats",
    "measure_shaping",
    "format_self_information",
    "self_information",
    "PerformanceReport",
    "RoundTripStats",
    "validate_expected_performance",
    "validate_one_direction",
    "verify_round_trip",
    "ConformanceError",
    "ContractViolationError",
    "EntropySourceError",
    "RoundTripError",
    "HarnessConfigurationError",
]
