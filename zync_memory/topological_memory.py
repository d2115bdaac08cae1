"""
Topological memory: a confidence-weighted forest of reasoned conclusions.

Accepted conclusions are stored as MemoryNodes linked by parent/child
relations. Alternatives that were considered and rejected are kept as
GhostBranches hanging off the node they branched from, for auditability.

Deleting a node re-parents its children to the deleted node's parent (roots'
children become roots), so descendant knowledge stays reachable. Pruning
deletes every node whose decayed confidence falls below a threshold, using
the same rule.
"""

from __future__ import annotations

import copy
import logging
import threading
import time
import uuid
from dataclasses import asdict
from typing import TYPE_CHECKING, Any

from .config import ConsolidationConfig
from .decay import DEFAULT_DECAY_POLICY, DecayPolicy
from .graph_store import GraphStore
from .snapshot import (
    GhostBranchRecord,
    MemoryNodeRecord,
    MemorySnapshot,
    parse_memory_snapshot,
)
from .types import (
    ConsolidationResult,
    GhostBranch,
    InvalidOriginError,
    InvalidParentError,
    MemoryNode,
)

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

SUMMARY_TAGS = ("compressed", "summary")


def _validate_confidence(confidence: float) -> None:
    if not 0.0 <= confidence <= 1.0:
        raise ValueError(f"Confidence must be between 0.0 and 1.0, got: {confidence}")


class TopologicalMemory:
    """
    Forest of conclusions with ghost branches and confidence-based pruning.

    All operations are serialized on a per-graph re-entrant lock; reads
    return copies so callers cannot mutate graph internals.

    Args:
        decay_policy: Policy used to compute effective confidence
        clock: Returns the current time in POSIX seconds (injectable for tests)
        consolidation: Settings for duplicate merging
    """

    def __init__(
        self,
        decay_policy: DecayPolicy | None = None,
        clock: Callable[[], float] | None = None,
        consolidation: ConsolidationConfig | None = None,
    ):
        self.decay_policy = decay_policy or DEFAULT_DECAY_POLICY
        self.consolidation_config = consolidation or ConsolidationConfig()
        self._clock = clock or time.time
        self._nodes: GraphStore[MemoryNode, Any] = GraphStore("memory")
        self._ghosts: GraphStore[GhostBranch, Any] = GraphStore("ghost")
        self._lock = threading.RLock()

    @staticmethod
    def _new_id(prefix: str) -> str:
        return f"{prefix}-{uuid.uuid4()}"

    # =========================================================================
    # Insertion
    # =========================================================================

    def insert_node(
        self,
        content: str,
        confidence: float = 1.0,
        parent_id: str | None = None,
    ) -> MemoryNode:
        """
        Insert a conclusion, optionally derived from an existing node.

        Args:
            content: Text of the conclusion
            confidence: Confidence score [0.0, 1.0]
            parent_id: Node this conclusion was derived from (None for a root)

        Returns:
            Copy of the new node

        Raises:
            InvalidParentError: If parent_id is given but does not exist
            ValueError: If confidence is out of range
        """
        _validate_confidence(confidence)

        with self._lock:
            if parent_id is not None and not self._nodes.has_node(parent_id):
                raise InvalidParentError(parent_id)

            node = MemoryNode(
                id=self._new_id("mem"),
                content=content,
                confidence=confidence,
                timestamp=self._clock(),
                parent_id=parent_id,
            )
            self._nodes.add_node(node)
            if parent_id is not None:
                self._nodes.require_node(parent_id).children_ids.append(node.id)

            logger.debug(f"Inserted memory node {node.id} (parent={parent_id})")
            return copy.deepcopy(node)

    def record_ghost(
        self,
        content: str,
        reason_for_rejection: str,
        origin_node_id: str,
    ) -> GhostBranch:
        """
        Record an alternative conclusion that was rejected at origin_node_id.

        Args:
            content: Text of the rejected alternative
            reason_for_rejection: Why it was rejected (required)
            origin_node_id: Memory node the alternative branched from

        Returns:
            Copy of the new ghost branch

        Raises:
            InvalidOriginError: If the origin does not exist or reason is blank
        """
        if not reason_for_rejection or not reason_for_rejection.strip():
            raise InvalidOriginError(origin_node_id, "a reason for rejection is required")

        with self._lock:
            origin = self._nodes.get_node(origin_node_id)
            if origin is None:
                raise InvalidOriginError(origin_node_id, "origin node does not exist")

            ghost = GhostBranch(
                id=self._new_id("ghost"),
                content=content,
                reason_for_rejection=reason_for_rejection,
                origin_node_id=origin_node_id,
                timestamp=self._clock(),
            )
            self._ghosts.add_node(ghost)
            origin.ghost_branch_ids.append(ghost.id)

            logger.debug(f"Recorded ghost branch {ghost.id} at {origin_node_id}")
            return copy.deepcopy(ghost)

    # =========================================================================
    # Deletion and Pruning
    # =========================================================================

    def delete_node(self, node_id: str) -> None:
        """
        Delete a node, its ghost branches, and re-parent its children.

        Children move to the deleted node's parent, taking its place in the
        parent's child order. Children of a deleted root become roots.

        Raises:
            NodeNotFoundError: If the node does not exist
        """
        with self._lock:
            self._delete_locked(node_id)

    def _delete_locked(self, node_id: str) -> None:
        node = self._nodes.require_node(node_id)

        for ghost_id in node.ghost_branch_ids:
            self._ghosts.remove_node(ghost_id)

        for child_id in node.children_ids:
            self._nodes.require_node(child_id).parent_id = node.parent_id

        if node.parent_id is not None:
            parent = self._nodes.require_node(node.parent_id)
            idx = parent.children_ids.index(node_id)
            parent.children_ids[idx : idx + 1] = node.children_ids

        self._nodes.remove_node(node_id)
        logger.debug(
            f"Deleted memory node {node_id} "
            f"({len(node.children_ids)} children re-parented to {node.parent_id}, "
            f"{len(node.ghost_branch_ids)} ghosts removed)"
        )

    def prune_memory(self, confidence_threshold: float) -> int:
        """
        Delete every node whose effective confidence is below the threshold.

        Effective confidences are evaluated at a single instant before any
        deletion. Ghost branches go only with their origin node; children of
        pruned nodes are re-parented as in delete_node().

        Args:
            confidence_threshold: Threshold in [0.0, 1.0]

        Returns:
            Number of nodes removed
        """
        if not 0.0 <= confidence_threshold <= 1.0:
            raise ValueError(
                f"Threshold must be between 0.0 and 1.0, got: {confidence_threshold}"
            )

        with self._lock:
            now = self._clock()
            doomed = [
                node.id
                for node in self._nodes
                if self.decay_policy.should_prune(
                    node.confidence, node.timestamp, now, confidence_threshold
                )
            ]
            for node_id in doomed:
                self._delete_locked(node_id)

            if doomed:
                logger.info(
                    f"Pruned {len(doomed)} memory nodes below {confidence_threshold}"
                )
            return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._nodes.clear()
            self._ghosts.clear()
            logger.info("Topological memory wiped")

    # =========================================================================
    # Confidence
    # =========================================================================

    def update_confidence(self, node_id: str, confidence: float) -> MemoryNode:
        """Reassign a node's stored confidence."""
        _validate_confidence(confidence)
        with self._lock:
            node = self._nodes.require_node(node_id)
            node.confidence = confidence
            return copy.deepcopy(node)

    def effective_confidence(self, node_id: str, now: float | None = None) -> float:
        """Decayed confidence of a node at `now` (default: the current time)."""
        with self._lock:
            node = self._nodes.require_node(node_id)
            if now is None:
                now = self._clock()
            return self.decay_policy.effective_confidence(node.confidence, node.timestamp, now)

    def now(self) -> float:
        return self._clock()

    # =========================================================================
    # Reads
    # =========================================================================

    def get_node(self, node_id: str) -> MemoryNode | None:
        with self._lock:
            node = self._nodes.get_node(node_id)
            return copy.deepcopy(node) if node is not None else None

    def get_ghost(self, ghost_id: str) -> GhostBranch | None:
        with self._lock:
            ghost = self._ghosts.get_node(ghost_id)
            return copy.deepcopy(ghost) if ghost is not None else None

    def get_all_nodes(self) -> list[MemoryNode]:
        """Copies of all nodes in insertion order."""
        with self._lock:
            return copy.deepcopy(self._nodes.nodes())

    def get_all_ghost_branches(self) -> list[GhostBranch]:
        """Copies of all ghost branches in insertion order."""
        with self._lock:
            return copy.deepcopy(self._ghosts.nodes())

    def get_roots(self) -> list[MemoryNode]:
        with self._lock:
            return [copy.deepcopy(n) for n in self._nodes if n.parent_id is None]

    def get_trace(self, node_id: str) -> list[MemoryNode]:
        """
        Ancestry of a node, root first and the node itself last.

        Returns an empty list for an unknown id.
        """
        with self._lock:
            trace: list[MemoryNode] = []
            current = self._nodes.get_node(node_id)
            while current is not None:
                trace.append(copy.deepcopy(current))
                if current.parent_id is None:
                    break
                current = self._nodes.get_node(current.parent_id)
            trace.reverse()
            return trace

    def get_ghost_branches_for_trace(self, node_id: str) -> list[GhostBranch]:
        """Ghost branches recorded anywhere along a node's trace, root first."""
        with self._lock:
            ghosts: list[GhostBranch] = []
            for node in self.get_trace(node_id):
                for ghost_id in node.ghost_branch_ids:
                    ghosts.append(copy.deepcopy(self._ghosts.require_node(ghost_id)))
            return ghosts

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def ghost_count(self) -> int:
        return len(self._ghosts)

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    # =========================================================================
    # Maintenance
    # =========================================================================

    def _depth(self, node_id: str) -> int:
        depth = 0
        node = self._nodes.require_node(node_id)
        while node.parent_id is not None:
            depth += 1
            node = self._nodes.require_node(node.parent_id)
        return depth

    def _is_ancestor(self, ancestor_id: str, node_id: str) -> bool:
        parent_id = self._nodes.require_node(node_id).parent_id
        while parent_id is not None:
            if parent_id == ancestor_id:
                return True
            parent_id = self._nodes.require_node(parent_id).parent_id
        return False

    def compress_cluster(
        self,
        node_ids: list[str],
        summary_content: str,
        confidence: float = 1.0,
    ) -> MemoryNode:
        """
        Replace a cluster of nodes with a single summary node.

        The summary is attached where the shallowest cluster member was
        attached. It adopts every child of a cluster member that is not
        itself in the cluster, and every ghost branch of the cluster.

        Args:
            node_ids: Nodes to compress
            summary_content: Summarized content (typically produced upstream)
            confidence: Confidence of the summary node

        Returns:
            Copy of the summary node

        Raises:
            ValueError: If node_ids is empty or confidence is out of range
            NodeNotFoundError: If any id does not exist
        """
        if not node_ids:
            raise ValueError("Cannot compress an empty cluster")
        _validate_confidence(confidence)

        with self._lock:
            cluster = list(dict.fromkeys(node_ids))
            for node_id in cluster:
                self._nodes.require_node(node_id)
            members = set(cluster)

            # The parent of the shallowest member cannot be a member itself
            shallowest = min(cluster, key=self._depth)
            parent_id = self._nodes.require_node(shallowest).parent_id

            summary = MemoryNode(
                id=self._new_id("summary"),
                content=summary_content,
                confidence=confidence,
                timestamp=self._clock(),
                parent_id=parent_id,
                tags=list(SUMMARY_TAGS),
            )

            for node_id in cluster:
                node = self._nodes.require_node(node_id)
                summary.children_ids.extend(c for c in node.children_ids if c not in members)
                summary.ghost_branch_ids.extend(node.ghost_branch_ids)
                if node.parent_id is not None and node.parent_id not in members:
                    self._nodes.require_node(node.parent_id).children_ids.remove(node_id)

            for node_id in cluster:
                self._nodes.remove_node(node_id)
            self._nodes.add_node(summary)

            for child_id in summary.children_ids:
                self._nodes.require_node(child_id).parent_id = summary.id
            for ghost_id in summary.ghost_branch_ids:
                self._ghosts.require_node(ghost_id).origin_node_id = summary.id
            if parent_id is not None:
                self._nodes.require_node(parent_id).children_ids.append(summary.id)

            logger.info(f"Compressed {len(cluster)} nodes into {summary.id}")
            return copy.deepcopy(summary)

    def consolidate(self, confidence_boost: float | None = None) -> ConsolidationResult:
        """
        Merge memories with identical content.

        Content is compared case-insensitively after trimming whitespace.
        The oldest node of each group is kept and boosted; duplicates hand
        over their ghosts and children and are removed.

        Args:
            confidence_boost: Added to the keeper per merged duplicate
                (default from configuration), capped at 1.0

        Returns:
            ConsolidationResult with statistics
        """
        if confidence_boost is None:
            confidence_boost = self.consolidation_config.confidence_boost

        with self._lock:
            content_groups: dict[str, list[MemoryNode]] = {}
            for node in self._nodes:
                content_groups.setdefault(node.content.strip().lower(), []).append(node)

            merged_count = 0
            for nodes in content_groups.values():
                if len(nodes) < 2:
                    continue
                nodes.sort(key=lambda n: n.timestamp)
                keeper = nodes[0]
                for duplicate in nodes[1:]:
                    self._merge_into(duplicate.id, keeper.id, confidence_boost)
                    merged_count += 1

            if merged_count:
                logger.info(
                    f"Consolidated {merged_count} duplicate memories "
                    f"into {len(content_groups)} distinct conclusions"
                )
            return ConsolidationResult(merged_count=merged_count, clusters=len(content_groups))

    def _merge_into(self, duplicate_id: str, keeper_id: str, boost: float) -> None:
        duplicate = self._nodes.require_node(duplicate_id)
        keeper = self._nodes.require_node(keeper_id)

        for ghost_id in duplicate.ghost_branch_ids:
            self._ghosts.require_node(ghost_id).origin_node_id = keeper_id
            keeper.ghost_branch_ids.append(ghost_id)
        duplicate.ghost_branch_ids = []

        if self._is_ancestor(duplicate_id, keeper_id):
            # Keeper lives under the duplicate: adopting its children would loop
            self._delete_locked(duplicate_id)
        else:
            if duplicate.parent_id is not None:
                self._nodes.require_node(duplicate.parent_id).children_ids.remove(duplicate_id)
            for child_id in duplicate.children_ids:
                self._nodes.require_node(child_id).parent_id = keeper_id
                keeper.children_ids.append(child_id)
            self._nodes.remove_node(duplicate_id)

        keeper.confidence = min(1.0, keeper.confidence + boost)

    # =========================================================================
    # Snapshots
    # =========================================================================

    def to_snapshot(self) -> dict[str, Any]:
        """Plain-dict snapshot of all nodes and ghost branches."""
        with self._lock:
            snapshot = MemorySnapshot(
                nodes=[MemoryNodeRecord(**asdict(n)) for n in self._nodes],
                ghost_branches=[GhostBranchRecord(**asdict(g)) for g in self._ghosts],
            )
            return snapshot.model_dump()

    def restore(self, data: Any) -> None:
        """
        Replace the graph contents with a snapshot.

        The snapshot is fully validated before anything is replaced.

        Raises:
            SnapshotIntegrityError: If the snapshot is malformed or inconsistent
        """
        snapshot = parse_memory_snapshot(data)
        with self._lock:
            self._nodes.clear()
            self._ghosts.clear()
            for record in snapshot.nodes:
                self._nodes.add_node(MemoryNode(**record.model_dump()))
            for record in snapshot.ghost_branches:
                self._ghosts.add_node(GhostBranch(**record.model_dump()))
            logger.info(
                f"Restored topological memory: {len(self._nodes)} nodes, "
                f"{len(self._ghosts)} ghost branches"
            )

    @classmethod
    def from_snapshot(
        cls,
        data: Any,
        decay_policy: DecayPolicy | None = None,
        clock: Callable[[], float] | None = None,
        consolidation: ConsolidationConfig | None = None,
    ) -> TopologicalMemory:
        memory = cls(decay_policy=decay_policy, clock=clock, consolidation=consolidation)
        memory.restore(data)
        return memory
