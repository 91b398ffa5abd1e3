"""
Unit tests for harness configuration and random sources.
"""

import pytest

from shaping_conformance import (
    EntropySourceError,
    HarnessConfig,
    HarnessConfigurationError,
    SeededRandomSource,
    SystemRandomSource,
    load_config,
)
from shaping_conformance.entropy import fill_block, make_random_source, refill_block


class TestLoadConfig:
    """Test load_config()."""

    def test_packaged_defaults(self):
        config = load_config()

        assert config.packet_iterations == 10000
        assert config.uniform_chunk_len == 4096
        assert config.uniform_chunk_count == 10
        assert config.refill_policy == "reuse_last"
        assert config.seed is None
        assert config.roundtrip_enabled is True

    def test_dict_override_keeps_other_defaults(self):
        config = load_config({'harness': {'packet_iterations': 50}})

        assert config.packet_iterations == 50
        assert config.uniform_chunk_len == 4096

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "harness.yaml"
        path.write_text(
            "harness:\n"
            "  uniform_chunk_count: 3\n"
            "entropy:\n"
            "  refill_policy: fail_fast\n"
            "  seed: 7\n"
        )

        config = load_config(str(path))

        assert config.uniform_chunk_count == 3
        assert config.refill_policy == "fail_fast"
        assert config.seed == 7

    def test_missing_file(self, tmp_path):
        with pytest.raises(HarnessConfigurationError, match="Cannot load"):
            load_config(str(tmp_path / "nope.yaml"))

    def test_harness_config_passthrough(self):
        config = HarnessConfig(packet_iterations=5)

        assert load_config(config) is config

    def test_expected_source_total(self):
        assert HarnessConfig(uniform_chunk_len=100, uniform_chunk_count=3).expected_source_total == 300


class TestConfigValidation:
    """Test HarnessConfig validation."""

    @pytest.mark.parametrize("field", [
        "packet_iterations", "uniform_chunk_len", "uniform_chunk_count", "roundtrip_chunk_len",
    ])
    def test_non_positive_rejected(self, field):
        with pytest.raises(HarnessConfigurationError, match=field):
            HarnessConfig(**{field: 0})

    def test_unknown_policy_rejected(self):
        with pytest.raises(HarnessConfigurationError, match="refill_policy"):
            load_config({'entropy': {'refill_policy': 'retry'}})

    def test_non_integer_seed_rejected(self):
        with pytest.raises(HarnessConfigurationError, match="seed"):
            HarnessConfig(seed="abc")

    def test_non_dict_rejected(self):
        with pytest.raises(HarnessConfigurationError):
            HarnessConfig.from_dict([1, 2, 3])


class TestRandomSources:
    """Test entropy sources and block filling."""

    def test_seeded_source_reproducible(self):
        assert SeededRandomSource(5).read(64) == SeededRandomSource(5).read(64)
        assert SeededRandomSource(5).read(64) != SeededRandomSource(6).read(64)

    def test_system_source_length(self):
        assert len(SystemRandomSource().read(32)) == 32

    def test_make_random_source_follows_seed(self):
        assert isinstance(make_random_source(HarnessConfig(seed=1)), SeededRandomSource)
        assert isinstance(make_random_source(HarnessConfig()), SystemRandomSource)

    def test_fill_block_in_place(self):
        block = bytearray(16)
        fill_block(block, SeededRandomSource(1))

        assert len(block) == 16
        assert bytes(block) == SeededRandomSource(1).read(16)

    def test_short_read_rejected(self):

        class ShortSource:
            def read(self, n):
                return b"\x00" * (n - 1)

        with pytest.raises(EntropySourceError, match="15 of 16"):
            fill_block(bytearray(16), ShortSource())

    def test_refill_reuse_last_keeps_block(self):

        class BrokenSource:
            def read(self, n):
                raise EntropySourceError("gone")

        block = bytearray(b"keep")
        assert refill_block(block, BrokenSource(), "reuse_last") is False
        assert block == bytearray(b"keep")

        with pytest.raises(EntropySourceError):
            refill_block(block, BrokenSource(), "fail_fast")
