"""
Unit tests for configuration loading and saving.
"""

import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from zync_memory.config import (
    CONFIG_ENV_VAR,
    DecayConfig,
    LatticeConfig,
    ZyncMemoryConfig,
)


class TestZyncMemoryConfig:
    """Tests for ZyncMemoryConfig."""

    def test_defaults(self):
        config = ZyncMemoryConfig()

        assert config.decay.half_life_hours == 168.0
        assert config.pruning.default_threshold == 0.3
        assert config.lattice.co_occurrence_weight == 0.3
        assert config.consolidation.confidence_boost == 0.1

    def test_missing_file_gives_defaults(self, tmp_path):
        config = ZyncMemoryConfig.load(tmp_path / "absent.json")

        assert config == ZyncMemoryConfig()

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "nested" / "config.json"
        config = ZyncMemoryConfig(
            decay=DecayConfig(half_life_hours=12.0),
            lattice=LatticeConfig(thematic_link_weight=0.9),
        )

        config.save(path)
        loaded = ZyncMemoryConfig.load(path)

        assert loaded == config
        assert json.loads(path.read_text())["decay"]["half_life_hours"] == 12.0

    def test_partial_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"pruning": {"default_threshold": 0.5}}))

        config = ZyncMemoryConfig.load(path)

        assert config.pruning.default_threshold == 0.5
        assert config.decay.half_life_hours == 168.0

    def test_corrupt_file_gives_defaults(self, tmp_path, caplog):
        path = tmp_path / "config.json"
        path.write_text("{not json")

        with caplog.at_level("WARNING"):
            config = ZyncMemoryConfig.load(path)

        assert config == ZyncMemoryConfig()
        assert "using defaults" in caplog.text

    def test_env_var_overrides_path(self, tmp_path, monkeypatch):
        path = tmp_path / "from-env.json"
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))

        assert ZyncMemoryConfig.default_path() == path

        ZyncMemoryConfig(decay=DecayConfig(half_life_hours=1.0)).save()
        assert ZyncMemoryConfig.load().decay.half_life_hours == 1.0

    def test_default_location(self, tmp_path, monkeypatch):
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(Path, "home", lambda: tmp_path)

        assert ZyncMemoryConfig.default_path() == tmp_path / ".zync" / "memory-config.json"
