"""
Shared type definitions for the Zync memory engine.

Entities of both graphs (topological memory and symbolic lattice), query
results, and the error classes raised by graph operations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

# Scalar attribute values allowed in a lattice node's symbolic tags
TagValue = Union[str, int, float, bool]


# =============================================================================
# Topological Memory Entities
# =============================================================================


@dataclass
class MemoryNode:
    """
    A remembered, confidence-scored conclusion.

    Nodes form a forest through parent_id/children_ids. Ghost branches
    recorded at this point of the reasoning are listed in ghost_branch_ids.
    """

    id: str
    content: str
    confidence: float
    timestamp: float  # POSIX seconds
    parent_id: str | None = None
    children_ids: list[str] = field(default_factory=list)
    ghost_branch_ids: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)

    @property
    def is_root(self) -> bool:
        return self.parent_id is None


@dataclass
class GhostBranch:
    """An alternative conclusion that was considered but not adopted."""

    id: str
    content: str
    reason_for_rejection: str
    origin_node_id: str
    timestamp: float


@dataclass
class ConsolidationResult:
    """Result of merging duplicate memories."""

    merged_count: int
    clusters: int


# =============================================================================
# Symbolic Lattice Entities
# =============================================================================


@dataclass
class LatticeNode:
    """A symbolic concept in the lattice."""

    id: str
    label: str
    confidence: float = 0.8
    type: str = "concept"  # concept, entity, rule, constraint, memory
    symbolic_tags: dict[str, TagValue] = field(default_factory=dict)


@dataclass
class LatticeEdge:
    """A weighted, typed relation between two concepts."""

    source_id: str
    target_id: str
    relation_type: str
    weight: float = 1.0

    def connects(self, a: str, b: str) -> bool:
        """True if the edge joins a and b in either direction."""
        return (self.source_id == a and self.target_id == b) or (
            self.source_id == b and self.target_id == a
        )


@dataclass
class LatticePath:
    """
    An activation path between two concepts.

    confidence_score is informational: the path itself is chosen by edge
    count, not by score.
    """

    nodes: list[LatticeNode]
    edges: list[LatticeEdge] = field(default_factory=list)
    confidence_score: float = 0.0

    @property
    def node_ids(self) -> list[str]:
        return [n.id for n in self.nodes]

    def __len__(self) -> int:
        return len(self.nodes)


@dataclass
class ActivatedSubgraph:
    """Nodes matching a set of labels plus the edges strictly between them."""

    nodes: list[LatticeNode] = field(default_factory=list)
    edges: list[LatticeEdge] = field(default_factory=list)


@dataclass
class DreamResult:
    """Result of linking concepts that share symbolic tags."""

    new_edges: int
    insights: list[str] = field(default_factory=list)


# =============================================================================
# Error Classes
# =============================================================================


class ZyncMemoryError(Exception):
    """Base class for memory engine errors."""

    pass


class InvalidParentError(ZyncMemoryError):
    """A memory node names a parent that does not exist."""

    def __init__(self, parent_id: str):
        self.parent_id = parent_id
        super().__init__(f"Parent node '{parent_id}' does not exist")


class InvalidOriginError(ZyncMemoryError):
    """A ghost branch names a missing origin or has no rejection reason."""

    def __init__(self, origin_node_id: str, reason: str):
        self.origin_node_id = origin_node_id
        self.reason = reason
        super().__init__(f"Invalid ghost origin '{origin_node_id}': {reason}")


class NodeNotFoundError(ZyncMemoryError):
    """Raised when a node is not found."""

    def __init__(self, node_id: str, graph: str = "memory"):
        self.node_id = node_id
        self.graph = graph
        super().__init__(f"Node '{node_id}' not found in {graph} graph")


class DuplicateIdError(ZyncMemoryError):
    """Raised when inserting a node whose id is already taken."""

    def __init__(self, node_id: str, graph: str = "lattice"):
        self.node_id = node_id
        self.graph = graph
        super().__init__(f"Node '{node_id}' already exists in {graph} graph")


class DanglingEndpointError(ZyncMemoryError):
    """Raised when an edge references a node that does not exist."""

    def __init__(self, source_id: str, target_id: str, missing: list[str]):
        self.source_id = source_id
        self.target_id = target_id
        self.missing = missing
        super().__init__(
            f"Edge {source_id} -> {target_id} has missing endpoint(s): {', '.join(missing)}"
        )


class SnapshotIntegrityError(ZyncMemoryError):
    """A snapshot is malformed or violates referential integrity."""

    def __init__(self, problems: list[str]):
        self.problems = problems
        summary = "; ".join(problems[:5])
        if len(problems) > 5:
            summary += f" (+{len(problems) - 5} more)"
        super().__init__(f"Invalid snapshot: {summary}")
