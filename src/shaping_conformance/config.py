# file: src/shaping_conformance/config.py

"""
Harness configuration.

Loads default_config.yaml from the package directory, accepts a path or an
already-parsed dictionary as override, and validates the result into a
HarnessConfig.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import yaml

from .errors import HarnessConfigurationError

logger = logging.getLogger(__name__)

REFILL_REUSE_LAST = "reuse_last"
REFILL_FAIL_FAST = "fail_fast"
REFILL_POLICIES = (REFILL_REUSE_LAST, REFILL_FAIL_FAST)

DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(__file__), "default_config.yaml")


@dataclass
class HarnessConfig:
    """Validated harness parameters."""
    packet_iterations: int = 10000
    uniform_chunk_len: int = 4096
    uniform_chunk_count: int = 10
    refill_policy: str = REFILL_REUSE_LAST
    seed: Optional[int] = None
    roundtrip_enabled: bool = True
    roundtrip_chunk_len: int = 4096

    def __post_init__(self):
        for name in (
            "packet_iterations",
            "uniform_chunk_len",
            "uniform_chunk_count",
            "roundtrip_chunk_len",
        ):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise HarnessConfigurationError(
                    f"{name} must be a positive integer, got {value!r}"
                )

        if self.refill_policy not in REFILL_POLICIES:
            raise HarnessConfigurationError(
                f"Unknown refill_policy: {self.refill_policy!r} "
                f"(expected one of {', '.join(REFILL_POLICIES)})"
            )

        if self.seed is not None and (isinstance(self.seed, bool) or not isinstance(self.seed, int)):
            raise HarnessConfigurationError(f"seed must be an integer or null, got {self.seed!r}")

    @property
    def expected_source_total(self) -> int:
        """Bytes a fully consuming Encoder reads over one shaping run."""
        return self.uniform_chunk_len * self.uniform_chunk_count

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "HarnessConfig":
        """
        Build a HarnessConfig from the nested YAML layout.

        Missing sections or keys fall back to the dataclass defaults.
        """
        if not isinstance(config, dict):
            raise HarnessConfigurationError(f"Config must be a dict, got {type(config)}")

        harness = config.get("harness") or {}
        entropy = config.get("entropy") or {}
        roundtrip = config.get("roundtrip") or {}
        defaults = cls.__dataclass_fields__

        return cls(
            packet_iterations=harness.get("packet_iterations", defaults["packet_iterations"].default),
            uniform_chunk_len=harness.get("uniform_chunk_len", defaults["uniform_chunk_len"].default),
            uniform_chunk_count=harness.get("uniform_chunk_count", defaults["uniform_chunk_count"].default),
            refill_policy=entropy.get("refill_policy", defaults["refill_policy"].default),
            seed=entropy.get("seed", defaults["seed"].default),
            roundtrip_enabled=bool(roundtrip.get("enabled", defaults["roundtrip_enabled"].default)),
            roundtrip_chunk_len=roundtrip.get("chunk_len", defaults["roundtrip_chunk_len"].default),
        )


def _get_default_config() -> Dict[str, Any]:
    """Hardcoded defaults used when default_config.yaml is missing."""
    return {
        "harness": {
            "packet_iterations": 10000,
            "uniform_chunk_len": 4096,
            "uniform_chunk_count": 10,
        },
        "entropy": {
            "refill_policy": REFILL_REUSE_LAST,
            "seed": None,
        },
        "roundtrip": {
            "enabled": True,
            "chunk_len": 4096,
        },
    }


def _read_yaml(config_path: str) -> Dict[str, Any]:
    try:
        with open(config_path, "r") as f:
            config = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise HarnessConfigurationError(f"Cannot load config {config_path}: {e}") from e

    return config or {}


def load_config(
    config: Union[None, str, Dict[str, Any], HarnessConfig] = None
) -> HarnessConfig:
    """
    Resolve a harness configuration.

    Args:
        config: None for the packaged defaults, a path to a YAML file,
                a nested dictionary in the YAML layout, or a ready
                HarnessConfig (returned unchanged)

    Returns:
        Validated HarnessConfig

    Raises:
        HarnessConfigurationError: If the file cannot be read or a value is invalid
    """
    if isinstance(config, HarnessConfig):
        return config

    if config is None:
        if os.path.exists(DEFAULT_CONFIG_PATH):
            raw = _read_yaml(DEFAULT_CONFIG_PATH)
        else:
            logger.debug("default_config.yaml not found, using hardcoded defaults")
            raw = _get_default_config()
    elif isinstance(config, (str, os.PathLike)):
        raw = _read_yaml(os.fspath(config))
    else:
        raw = config

    return HarnessConfig.from_dict(raw)
