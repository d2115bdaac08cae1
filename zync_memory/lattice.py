"""
Symbolic lattice: a graph of concepts and weighted relations.

Concepts arrive from upstream tag extraction as already-normalized label
strings. Ingestion merges concepts by label and strengthens co-occurrence
edges each time two concepts are seen together, so repeated co-occurrence is
observable as growing edge weight.

Queries:
- find_activation_path(): shortest path by edge count (unweighted BFS, edges
  treated as undirected). Edge weights do not influence path choice.
- get_activated_subgraph(): exact-label activation plus the edges strictly
  between activated concepts; activation does not spread.
"""

from __future__ import annotations

import copy
import logging
import threading
import uuid
from collections import deque
from dataclasses import asdict
from typing import Any

from .config import LatticeConfig
from .graph_store import GraphStore
from .snapshot import (
    LatticeEdgeRecord,
    LatticeNodeRecord,
    LatticeSnapshot,
    parse_lattice_snapshot,
)
from .types import (
    ActivatedSubgraph,
    DanglingEndpointError,
    DreamResult,
    LatticeEdge,
    LatticeNode,
    LatticePath,
    SnapshotIntegrityError,
)

logger = logging.getLogger(__name__)

# Relation types created by the lattice itself
CO_OCCURRING = "co_occurring"
RELATED_TO = "related_to"
THEMATICALLY_LINKED = "thematically_linked"


class SymbolicLattice:
    """
    Concept graph with activation queries and tag ingestion.

    All operations are serialized on a per-graph re-entrant lock; reads
    return copies.

    Args:
        config: Weights used by ingestion and tag linking
    """

    VALID_NODE_TYPES = frozenset({"concept", "entity", "rule", "constraint", "memory"})

    def __init__(self, config: LatticeConfig | None = None):
        self.config = config or LatticeConfig()
        self._store: GraphStore[LatticeNode, LatticeEdge] = GraphStore("lattice")
        # label -> id of the first node carrying that label
        self._label_index: dict[str, str] = {}
        self._lock = threading.RLock()

    # =========================================================================
    # Low-level Mutation
    # =========================================================================

    def add_node(self, node: LatticeNode) -> None:
        """
        Insert a concept by id. Does not deduplicate by label.

        Raises:
            DuplicateIdError: If the id already exists
            ValueError: If type or confidence is invalid
        """
        if node.type not in self.VALID_NODE_TYPES:
            raise ValueError(
                f"Invalid node type: {node.type}. Must be one of: {self.VALID_NODE_TYPES}"
            )
        if not 0.0 <= node.confidence <= 1.0:
            raise ValueError(f"Confidence must be between 0.0 and 1.0, got: {node.confidence}")

        with self._lock:
            self._store.add_node(copy.deepcopy(node))
            self._label_index.setdefault(node.label, node.id)

    def add_edge(self, edge: LatticeEdge) -> None:
        """
        Insert an edge between two existing concepts.

        Parallel edges between the same pair are allowed.

        Raises:
            DanglingEndpointError: If either endpoint does not exist
            ValueError: If weight is negative or NaN
        """
        if not edge.weight >= 0.0:
            raise ValueError(f"Edge weight must be >= 0.0, got: {edge.weight}")

        with self._lock:
            missing = [
                endpoint
                for endpoint in dict.fromkeys((edge.source_id, edge.target_id))
                if not self._store.has_node(endpoint)
            ]
            if missing:
                raise DanglingEndpointError(edge.source_id, edge.target_id, missing)
            self._store.add_edge(copy.deepcopy(edge))

    def clear(self) -> None:
        with self._lock:
            self._store.clear()
            self._label_index.clear()

    # =========================================================================
    # Reads
    # =========================================================================

    def get_node(self, node_id: str) -> LatticeNode | None:
        with self._lock:
            node = self._store.get_node(node_id)
            return copy.deepcopy(node) if node is not None else None

    def get_nodes(self) -> list[LatticeNode]:
        with self._lock:
            return copy.deepcopy(self._store.nodes())

    def get_edges(self) -> list[LatticeEdge]:
        with self._lock:
            return copy.deepcopy(self._store.edges())

    def find_node_by_label(self, label: str) -> LatticeNode | None:
        """First node (in insertion order) whose label equals `label`."""
        with self._lock:
            node_id = self._label_index.get(label)
            return self.get_node(node_id) if node_id is not None else None

    @property
    def node_count(self) -> int:
        return len(self._store)

    @property
    def edge_count(self) -> int:
        return self._store.edge_count

    # =========================================================================
    # Queries
    # =========================================================================

    def find_activation_path(self, start_label: str, end_label: str) -> LatticePath | None:
        """
        Shortest path by edge count between two labelled concepts.

        Each label resolves to the first concept carrying it. Edges are
        traversed in both directions; ties are broken by edge insertion order.

        Args:
            start_label: Label of the start concept
            end_label: Label of the end concept

        Returns:
            LatticePath from start to end inclusive, or None if either label
            is unknown or no path exists
        """
        with self._lock:
            start_id = self._label_index.get(start_label)
            end_id = self._label_index.get(end_label)
            if start_id is None or end_id is None:
                return None

            adjacency: dict[str, list[tuple[str, LatticeEdge]]] = {}
            for edge in self._store.edges():
                adjacency.setdefault(edge.source_id, []).append((edge.target_id, edge))
                if edge.target_id != edge.source_id:
                    adjacency.setdefault(edge.target_id, []).append((edge.source_id, edge))

            # BFS recording the edge used to reach each node
            came_from: dict[str, tuple[str, LatticeEdge] | None] = {start_id: None}
            queue = deque([start_id])
            while queue:
                current = queue.popleft()
                if current == end_id:
                    break
                for neighbor, edge in adjacency.get(current, []):
                    if neighbor not in came_from:
                        came_from[neighbor] = (current, edge)
                        queue.append(neighbor)

            if end_id not in came_from:
                return None

            node_ids = [end_id]
            edges: list[LatticeEdge] = []
            step = came_from[end_id]
            while step is not None:
                previous, edge = step
                node_ids.append(previous)
                edges.append(edge)
                step = came_from[previous]
            node_ids.reverse()
            edges.reverse()

            nodes = [self._store.require_node(i) for i in node_ids]
            score = nodes[0].confidence
            for edge, target in zip(edges, nodes[1:]):
                score *= edge.weight * target.confidence

            return LatticePath(
                nodes=copy.deepcopy(nodes),
                edges=copy.deepcopy(edges),
                confidence_score=score,
            )

    def get_activated_subgraph(self, labels: list[str]) -> ActivatedSubgraph:
        """
        Concepts whose label exactly matches one of `labels`, plus edges
        whose both endpoints are activated.

        Matching is case-sensitive and exact. Neighbours of activated
        concepts are not activated.
        """
        wanted = set(labels)
        with self._lock:
            nodes = [n for n in self._store.nodes() if n.label in wanted]
            active_ids = {n.id for n in nodes}
            edges = [
                e
                for e in self._store.edges()
                if e.source_id in active_ids and e.target_id in active_ids
            ]
            return ActivatedSubgraph(nodes=copy.deepcopy(nodes), edges=copy.deepcopy(edges))

    # =========================================================================
    # Ingestion
    # =========================================================================

    def _find_undirected_edge(self, a: str, b: str, relation_type: str) -> LatticeEdge | None:
        for edge in self._store.edges():
            if edge.relation_type == relation_type and edge.connects(a, b):
                return edge
        return None

    def _strengthen(
        self,
        source_id: str,
        target_id: str,
        relation_type: str,
        initial_weight: float,
        increment: float,
    ) -> LatticeEdge:
        edge = self._find_undirected_edge(source_id, target_id, relation_type)
        if edge is None:
            edge = LatticeEdge(
                source_id=source_id,
                target_id=target_id,
                relation_type=relation_type,
                weight=initial_weight,
            )
            self._store.add_edge(edge)
        else:
            edge.weight += increment
            logger.debug(
                f"Strengthened {relation_type} edge {source_id} <-> {target_id} "
                f"to {edge.weight:.2f}"
            )
        return edge

    def _concept_for_label(self, label: str) -> str:
        node_id = self._label_index.get(label)
        if node_id is None:
            node = LatticeNode(
                id=f"concept-{uuid.uuid4()}",
                label=label,
                confidence=self.config.ingested_confidence,
                type="concept",
            )
            self._store.add_node(node)
            self._label_index[label] = node.id
            return node.id

        # Reinforce existing concept
        node = self._store.require_node(node_id)
        node.confidence = min(1.0, node.confidence + self.config.reinforcement_step)
        return node_id

    def ingest_semantic_tags(self, tags: list[str], source_id: str | None = None) -> None:
        """
        Merge a batch of co-occurring tags into the lattice.

        Each distinct tag creates a concept, or reuses (and reinforces) the
        concept already carrying that label. Every unordered pair of distinct
        tags gets one co_occurring edge, created at the configured initial
        weight or strengthened by the configured increment. When source_id
        names an existing concept, each tag is also linked from it by a
        related_to edge, created or strengthened the same way.

        Args:
            tags: Normalized labels from upstream extraction
            source_id: Optional concept the tags were extracted from
        """
        labels = list(dict.fromkeys(tags))
        cfg = self.config

        with self._lock:
            ids = [self._concept_for_label(label) for label in labels]

            for i in range(len(ids)):
                for j in range(i + 1, len(ids)):
                    self._strengthen(
                        ids[i],
                        ids[j],
                        CO_OCCURRING,
                        cfg.co_occurrence_weight,
                        cfg.co_occurrence_increment,
                    )

            if source_id is not None:
                if self._store.has_node(source_id):
                    for node_id in ids:
                        if node_id != source_id:
                            self._strengthen(
                                source_id,
                                node_id,
                                RELATED_TO,
                                cfg.source_link_weight,
                                cfg.co_occurrence_increment,
                            )
                else:
                    logger.warning(f"Ignoring unknown ingestion source '{source_id}'")

            logger.debug(f"Ingested {len(labels)} semantic tags")

    def link_shared_tags(self) -> DreamResult:
        """
        Link unconnected concepts that share a symbolic tag value.

        For every pair of concepts with no edge between them (in either
        direction, any relation), a thematically_linked edge is added when
        both carry the same value for at least one symbolic tag key.

        Returns:
            DreamResult with the number of new edges and readable insights
        """
        with self._lock:
            nodes = self._store.nodes()
            connected = {
                frozenset((e.source_id, e.target_id)) for e in self._store.edges()
            }
            result = DreamResult(new_edges=0)

            for i in range(len(nodes)):
                for j in range(i + 1, len(nodes)):
                    a, b = nodes[i], nodes[j]
                    if frozenset((a.id, b.id)) in connected:
                        continue
                    shared = [
                        key
                        for key, value in a.symbolic_tags.items()
                        if key in b.symbolic_tags and b.symbolic_tags[key] == value
                    ]
                    if not shared:
                        continue

                    self._store.add_edge(
                        LatticeEdge(
                            source_id=a.id,
                            target_id=b.id,
                            relation_type=THEMATICALLY_LINKED,
                            weight=self.config.thematic_link_weight,
                        )
                    )
                    connected.add(frozenset((a.id, b.id)))
                    result.new_edges += 1
                    result.insights.append(
                        f"Linked [{a.label}] and [{b.label}] via shared context: "
                        f"{', '.join(shared)}"
                    )

            if result.new_edges:
                logger.info(f"Linked {result.new_edges} concept pairs by shared tags")
            return result

    # =========================================================================
    # Snapshots
    # =========================================================================

    def to_snapshot(self) -> dict[str, Any]:
        """Plain-dict snapshot of all concepts and edges."""
        with self._lock:
            snapshot = LatticeSnapshot(
                nodes=[LatticeNodeRecord(**asdict(n)) for n in self._store.nodes()],
                edges=[LatticeEdgeRecord(**asdict(e)) for e in self._store.edges()],
            )
            return snapshot.model_dump()

    def restore(self, data: Any) -> None:
        """
        Replace the lattice contents with a snapshot.

        Raises:
            SnapshotIntegrityError: If the snapshot is malformed or inconsistent
        """
        snapshot = parse_lattice_snapshot(data)
        bad_types = [
            f"concept '{record.id}' has invalid type '{record.type}'"
            for record in snapshot.nodes
            if record.type not in self.VALID_NODE_TYPES
        ]
        if bad_types:
            raise SnapshotIntegrityError(bad_types)

        with self._lock:
            self.clear()
            for record in snapshot.nodes:
                node = LatticeNode(**record.model_dump())
                self._store.add_node(node)
                self._label_index.setdefault(node.label, node.id)
            for record in snapshot.edges:
                self._store.add_edge(LatticeEdge(**record.model_dump()))
            logger.info(
                f"Restored lattice: {len(self._store)} concepts, "
                f"{self._store.edge_count} edges"
            )

    @classmethod
    def from_snapshot(cls, data: Any, config: LatticeConfig | None = None) -> SymbolicLattice:
        lattice = cls(config=config)
        lattice.restore(data)
        return lattice
