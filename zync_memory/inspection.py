"""
Read-only views over the memory graphs for UI consumers.

Listings are sorted and filtered here, not in the graphs: graph snapshots are
ordered by identity, display order is a caller concern. Everything returned
is a copy.

The dashboard shows a simpler telemetry shape (strength, last access,
temporal weight). TelemetryNode is a separate type, derived from
a MemoryNode only through to_telemetry().
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, Field

from .lattice import SymbolicLattice
from .topological_memory import TopologicalMemory
from .types import GhostBranch, LatticeNode, MemoryNode


class TelemetryNode(BaseModel):
    """Dashboard projection of a memory node."""

    id: str
    concept: str
    strength: int = Field(ge=0, le=100)
    last_accessed: float
    temporal_weight: float = Field(ge=0.0, le=1.0)


@dataclass
class MemoryStats:
    """Aggregate counts across both graphs."""

    node_count: int
    ghost_count: int
    root_count: int
    concept_count: int
    edge_count: int
    mean_effective_confidence: float


class MemoryInspector:
    """
    Sorted, filtered, copy-only views of the memory graphs.

    Args:
        memory: Topological memory to inspect
        lattice: Optional symbolic lattice to inspect
    """

    def __init__(self, memory: TopologicalMemory, lattice: SymbolicLattice | None = None):
        self.memory = memory
        self.lattice = lattice

    def list_nodes(self, newest_first: bool = True, query: str | None = None) -> list[MemoryNode]:
        """
        Memory nodes sorted by timestamp.

        Args:
            newest_first: Sort order
            query: Case-insensitive substring matched against content or id
        """
        nodes = sorted(
            self.memory.get_all_nodes(), key=lambda n: n.timestamp, reverse=newest_first
        )
        if query:
            needle = query.lower()
            nodes = [n for n in nodes if needle in n.content.lower() or needle in n.id.lower()]
        return nodes

    def list_ghost_branches(
        self, newest_first: bool = True, query: str | None = None
    ) -> list[GhostBranch]:
        """Ghost branches sorted by timestamp, optionally filtered on content or reason."""
        ghosts = sorted(
            self.memory.get_all_ghost_branches(), key=lambda g: g.timestamp, reverse=newest_first
        )
        if query:
            needle = query.lower()
            ghosts = [
                g
                for g in ghosts
                if needle in g.content.lower() or needle in g.reason_for_rejection.lower()
            ]
        return ghosts

    def search_concepts(self, query: str) -> list[LatticeNode]:
        """Lattice concepts whose label contains query (case-insensitive)."""
        if self.lattice is None:
            return []
        needle = query.lower()
        return [n for n in self.lattice.get_nodes() if needle in n.label.lower()]

    def to_telemetry(self, node: MemoryNode, now: float | None = None) -> TelemetryNode:
        """Map a memory node onto the dashboard telemetry shape."""
        if now is None:
            now = self.memory.now()
        weight = self.memory.decay_policy.decay_factor(now - node.timestamp)
        return TelemetryNode(
            id=node.id,
            concept=node.content,
            strength=round(node.confidence * 100),
            last_accessed=node.timestamp,
            temporal_weight=weight,
        )

    def telemetry(self, now: float | None = None) -> list[TelemetryNode]:
        """Telemetry for every memory node, newest first."""
        if now is None:
            now = self.memory.now()
        return [self.to_telemetry(n, now) for n in self.list_nodes(newest_first=True)]

    def stats(self, now: float | None = None) -> MemoryStats:
        if now is None:
            now = self.memory.now()
        nodes = self.memory.get_all_nodes()
        policy = self.memory.decay_policy
        effective = [policy.effective_confidence(n.confidence, n.timestamp, now) for n in nodes]
        return MemoryStats(
            node_count=len(nodes),
            ghost_count=self.memory.ghost_count,
            root_count=sum(1 for n in nodes if n.parent_id is None),
            concept_count=self.lattice.node_count if self.lattice else 0,
            edge_count=self.lattice.edge_count if self.lattice else 0,
            mean_effective_confidence=sum(effective) / len(effective) if effective else 0.0,
        )
