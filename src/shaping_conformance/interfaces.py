# file: src/shaping_conformance/interfaces.py

"""
Capability protocols consumed by the harness.

The harness never constructs shaping logic; any object that offers these
methods can be validated, whatever its shaping strategy.
"""

from typing import Protocol, Tuple, runtime_checkable


@runtime_checkable
class Encoder(Protocol):
    """
    Maps application bytes into a shaped packet stream.

    Methods:
        max_packet_length: Upper bound on any single packet (bytes, > 0)
        next_packet_length: Length of the next packet to send, 1..max
        next_packet_sleep: Delay before sending that packet (seconds, >= 0)
        shape_bytes: Consume bytes from src, write shaped bytes into dst and
                     return (dn, sn) = (bytes written, bytes consumed)
    """

    def max_packet_length(self) -> int:
        ...

    def next_packet_length(self) -> int:
        ...

    def next_packet_sleep(self) -> float:
        ...

    def shape_bytes(self, dst: bytearray, src: memoryview) -> Tuple[int, int]:
        ...


@runtime_checkable
class Decoder(Protocol):
    """Inverse of Encoder.shape_bytes, with the same (dn, sn) return shape."""

    def unshape_bytes(self, dst: bytearray, src: memoryview) -> Tuple[int, int]:
        ...
