"""
Configuration management for the Zync memory engine.

Configuration lives in a JSON file (default ~/.zync/memory-config.json). The
location can be overridden with the ZYNC_MEMORY_CONFIG environment variable,
which is also read from a .env file when present.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "ZYNC_MEMORY_CONFIG"


@dataclass
class DecayConfig:
    """Temporal decay of memory confidence."""

    # Effective confidence halves every half_life_hours (default one week)
    half_life_hours: float = 168.0


@dataclass
class PruningConfig:
    """Defaults for confidence-based pruning."""

    default_threshold: float = 0.3


@dataclass
class LatticeConfig:
    """Weights used when ingesting semantic tags into the lattice."""

    ingested_confidence: float = 0.8
    reinforcement_step: float = 0.05
    co_occurrence_weight: float = 0.3
    co_occurrence_increment: float = 0.3
    source_link_weight: float = 0.5
    thematic_link_weight: float = 0.4


@dataclass
class ConsolidationConfig:
    """Duplicate-merging behaviour."""

    confidence_boost: float = 0.1


@dataclass
class ZyncMemoryConfig:
    """Complete memory engine configuration."""

    decay: DecayConfig = field(default_factory=DecayConfig)
    pruning: PruningConfig = field(default_factory=PruningConfig)
    lattice: LatticeConfig = field(default_factory=LatticeConfig)
    consolidation: ConsolidationConfig = field(default_factory=ConsolidationConfig)

    @staticmethod
    def default_path() -> Path:
        """Config path from the environment (or .env), else ~/.zync."""
        load_dotenv()
        env_path = os.environ.get(CONFIG_ENV_VAR)
        if env_path:
            return Path(env_path).expanduser()
        return Path.home() / ".zync" / "memory-config.json"

    @classmethod
    def load(cls, path: Path | None = None) -> ZyncMemoryConfig:
        """Load configuration from file. Missing or unreadable files yield defaults."""
        if path is None:
            path = cls.default_path()

        if not path.exists():
            return cls()

        try:
            with open(path) as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Could not read config {path}: {e}; using defaults")
            return cls()

        config = cls(
            decay=DecayConfig(**data.get("decay", {})),
            pruning=PruningConfig(**data.get("pruning", {})),
            lattice=LatticeConfig(**data.get("lattice", {})),
            consolidation=ConsolidationConfig(**data.get("consolidation", {})),
        )
        logger.info(f"Loaded memory config from {path}")
        return config

    def save(self, path: Path | None = None) -> None:
        """Save configuration to file."""
        if path is None:
            path = self.default_path()

        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            json.dump(asdict(self), f, indent=2)


# Default configuration instance
default_config = ZyncMemoryConfig()
