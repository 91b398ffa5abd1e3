# file: src/shaping_conformance/errors.py

"""
Conformance-harness exception hierarchy.

All exceptions inherit from ConformanceError for unified handling.
"""


class ConformanceError(Exception):
    """Base exception for all conformance-harness errors."""
    pass


class ContractViolationError(ConformanceError):
    """Raised when an Encoder or Decoder breaks its output contract."""

    def __init__(self, message: str, value: int = None, bound: int = None, trial: int = None):
        super().__init__(message)
        self.value = value
        self.bound = bound
        self.trial = trial


class EntropySourceError(ConformanceError):
    """Raised when random bytes cannot be acquired."""
    pass


class RoundTripError(ConformanceError):
    """Raised when unshaping does not recover the original bytes."""

    def __init__(self, message: str, offset: int = None):
        super().__init__(message)
        self.offset = offset


class HarnessConfigurationError(ConformanceError):
    """Raised when harness configuration is invalid."""
    pass
