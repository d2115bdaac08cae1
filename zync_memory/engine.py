"""
Memory engine: the service object owning both graphs.

Construct one per application context and pass it to consumers; there is no
module-level instance. The two graphs are independent units of work with no
cross-graph transaction.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .config import ZyncMemoryConfig
from .decay import DecayPolicy
from .inspection import MemoryInspector
from .lattice import SymbolicLattice
from .snapshot import SNAPSHOT_VERSION, parse_engine_snapshot
from .topological_memory import TopologicalMemory

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


class MemoryEngine:
    """
    Topological memory, symbolic lattice and inspector built from one config.

    Example:
        >>> engine = MemoryEngine()
        >>> root = engine.memory.insert_node("Use BFS for activation", 0.9)
        >>> engine.lattice.ingest_semantic_tags(["Graph", "Search"])
        >>> len(engine.lattice.find_activation_path("Graph", "Search"))
        2
    """

    def __init__(
        self,
        config: ZyncMemoryConfig | None = None,
        clock: Callable[[], float] | None = None,
    ):
        self.config = config or ZyncMemoryConfig()
        self.memory = TopologicalMemory(
            decay_policy=DecayPolicy.from_config(self.config.decay),
            clock=clock,
            consolidation=self.config.consolidation,
        )
        self.lattice = SymbolicLattice(config=self.config.lattice)
        self.inspector = MemoryInspector(self.memory, self.lattice)

    @classmethod
    def from_config_file(
        cls,
        path: Path | None = None,
        clock: Callable[[], float] | None = None,
    ) -> MemoryEngine:
        return cls(config=ZyncMemoryConfig.load(path), clock=clock)

    def prune(self, threshold: float | None = None) -> int:
        """Prune memory at threshold (default from configuration)."""
        if threshold is None:
            threshold = self.config.pruning.default_threshold
        return self.memory.prune_memory(threshold)

    def snapshot(self) -> dict[str, Any]:
        """Plain-dict snapshot of both graphs."""
        return {
            "version": SNAPSHOT_VERSION,
            "memory": self.memory.to_snapshot(),
            "lattice": self.lattice.to_snapshot(),
        }

    @classmethod
    def restore(
        cls,
        data: Any,
        config: ZyncMemoryConfig | None = None,
        clock: Callable[[], float] | None = None,
    ) -> MemoryEngine:
        """
        Build an engine from a snapshot.

        Raises:
            SnapshotIntegrityError: If either graph's snapshot is invalid
        """
        snapshot = parse_engine_snapshot(data)
        engine = cls(config=config, clock=clock)
        engine.memory.restore(snapshot.memory)
        engine.lattice.restore(snapshot.lattice)
        logger.info("Memory engine restored from snapshot")
        return engine
