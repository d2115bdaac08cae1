"""
Generic in-memory node/edge container.

Storage primitive shared by the topological memory and the symbolic lattice.
Nodes are kept in an insertion-ordered mapping keyed by id; edges in an
insertion-ordered list. The store performs no semantic validation beyond id
uniqueness; graph classes enforce their own invariants and locking.
"""

from __future__ import annotations

from typing import Generic, Iterator, Protocol, TypeVar

from .types import DuplicateIdError, NodeNotFoundError


class HasId(Protocol):
    id: str


N = TypeVar("N", bound=HasId)
E = TypeVar("E")


class GraphStore(Generic[N, E]):
    """
    Mapping-backed node/edge container with lookup by id.

    Args:
        name: Graph name used in error messages ("memory", "lattice", ...)
    """

    def __init__(self, name: str = "graph"):
        self.name = name
        self._nodes: dict[str, N] = {}
        self._edges: list[E] = []

    # =========================================================================
    # Nodes
    # =========================================================================

    def add_node(self, node: N) -> None:
        """
        Store a node under its id.

        Raises:
            DuplicateIdError: If the id is already present
        """
        if node.id in self._nodes:
            raise DuplicateIdError(node.id, self.name)
        self._nodes[node.id] = node

    def get_node(self, node_id: str) -> N | None:
        return self._nodes.get(node_id)

    def require_node(self, node_id: str) -> N:
        """
        Get a node that must exist.

        Raises:
            NodeNotFoundError: If the id is absent
        """
        node = self._nodes.get(node_id)
        if node is None:
            raise NodeNotFoundError(node_id, self.name)
        return node

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def remove_node(self, node_id: str) -> N:
        """
        Remove and return a node.

        Raises:
            NodeNotFoundError: If the id is absent
        """
        try:
            return self._nodes.pop(node_id)
        except KeyError:
            raise NodeNotFoundError(node_id, self.name) from None

    def nodes(self) -> list[N]:
        """Nodes in insertion order."""
        return list(self._nodes.values())

    # =========================================================================
    # Edges
    # =========================================================================

    def add_edge(self, edge: E) -> None:
        self._edges.append(edge)

    def edges(self) -> list[E]:
        """Edges in insertion order."""
        return list(self._edges)

    @property
    def edge_count(self) -> int:
        return len(self._edges)

    # =========================================================================
    # Container protocol
    # =========================================================================

    def clear(self) -> None:
        self._nodes.clear()
        self._edges.clear()

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __iter__(self) -> Iterator[N]:
        return iter(list(self._nodes.values()))
