"""
Plain-data snapshots of the memory graphs.

Snapshots are JSON-compatible dicts. Restoring one validates its shape with
pydantic models and then checks referential integrity, so a restored graph
never holds a dangling parent, child, origin or edge endpoint.
"""

from __future__ import annotations

from typing import Any, Union

from pydantic import BaseModel, Field, ValidationError

from .types import SnapshotIntegrityError

SNAPSHOT_VERSION = 1


# =============================================================================
# Records
# =============================================================================


class MemoryNodeRecord(BaseModel):
    id: str
    content: str
    confidence: float = Field(ge=0.0, le=1.0)
    timestamp: float
    parent_id: str | None = None
    children_ids: list[str] = Field(default_factory=list)
    ghost_branch_ids: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)


class GhostBranchRecord(BaseModel):
    id: str
    content: str
    reason_for_rejection: str = Field(min_length=1)
    origin_node_id: str
    timestamp: float


class MemorySnapshot(BaseModel):
    """Snapshot of a topological memory graph."""

    nodes: list[MemoryNodeRecord] = Field(default_factory=list)
    ghost_branches: list[GhostBranchRecord] = Field(default_factory=list)


class LatticeNodeRecord(BaseModel):
    id: str
    label: str
    confidence: float = Field(default=0.8, ge=0.0, le=1.0)
    type: str = "concept"
    symbolic_tags: dict[str, Union[bool, int, float, str]] = Field(default_factory=dict)


class LatticeEdgeRecord(BaseModel):
    source_id: str
    target_id: str
    relation_type: str
    weight: float = Field(default=1.0, ge=0.0)


class LatticeSnapshot(BaseModel):
    """Snapshot of a symbolic lattice."""

    nodes: list[LatticeNodeRecord] = Field(default_factory=list)
    edges: list[LatticeEdgeRecord] = Field(default_factory=list)


class EngineSnapshot(BaseModel):
    """Snapshot of both graphs owned by a memory engine."""

    version: int = SNAPSHOT_VERSION
    memory: MemorySnapshot = Field(default_factory=MemorySnapshot)
    lattice: LatticeSnapshot = Field(default_factory=LatticeSnapshot)


# =============================================================================
# Parsing
# =============================================================================


def _parse(model: type[BaseModel], data: Any) -> Any:
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except ValidationError as e:
        problems = [
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in e.errors()
        ]
        raise SnapshotIntegrityError(problems) from e


def parse_memory_snapshot(data: Any) -> MemorySnapshot:
    """
    Validate a memory snapshot.

    Raises:
        SnapshotIntegrityError: If the shape is wrong or references dangle
    """
    snapshot: MemorySnapshot = _parse(MemorySnapshot, data)
    problems = check_memory_integrity(snapshot)
    if problems:
        raise SnapshotIntegrityError(problems)
    return snapshot


def parse_lattice_snapshot(data: Any) -> LatticeSnapshot:
    """
    Validate a lattice snapshot.

    Raises:
        SnapshotIntegrityError: If the shape is wrong or references dangle
    """
    snapshot: LatticeSnapshot = _parse(LatticeSnapshot, data)
    problems = check_lattice_integrity(snapshot)
    if problems:
        raise SnapshotIntegrityError(problems)
    return snapshot


def parse_engine_snapshot(data: Any) -> EngineSnapshot:
    snapshot: EngineSnapshot = _parse(EngineSnapshot, data)
    if snapshot.version != SNAPSHOT_VERSION:
        raise SnapshotIntegrityError(
            [f"unsupported snapshot version {snapshot.version}"]
        )
    problems = check_memory_integrity(snapshot.memory) + check_lattice_integrity(
        snapshot.lattice
    )
    if problems:
        raise SnapshotIntegrityError(problems)
    return snapshot


# =============================================================================
# Integrity Checks
# =============================================================================


def _duplicates(ids: list[str]) -> list[str]:
    seen: set[str] = set()
    dupes: list[str] = []
    for i in ids:
        if i in seen and i not in dupes:
            dupes.append(i)
        seen.add(i)
    return dupes


def _find_cycles(parents: dict[str, str | None]) -> list[str]:
    """Ids at which a parent chain loops back on itself."""
    acyclic: set[str] = set()
    reported: set[str] = set()
    for start in parents:
        path: list[str] = []
        seen: set[str] = set()
        current: str | None = start
        while current is not None and current not in acyclic:
            if current in seen:
                reported.add(current)
                break
            seen.add(current)
            path.append(current)
            current = parents.get(current)
        else:
            acyclic.update(path)
    return sorted(reported)


def check_memory_integrity(snapshot: MemorySnapshot) -> list[str]:
    """Return a list of referential-integrity problems (empty if sound)."""
    problems: list[str] = []

    for dup in _duplicates([n.id for n in snapshot.nodes]):
        problems.append(f"duplicate node id '{dup}'")
    for dup in _duplicates([g.id for g in snapshot.ghost_branches]):
        problems.append(f"duplicate ghost id '{dup}'")

    nodes = {n.id: n for n in snapshot.nodes}
    ghosts = {g.id: g for g in snapshot.ghost_branches}

    for node in snapshot.nodes:
        if node.parent_id is not None:
            parent = nodes.get(node.parent_id)
            if parent is None:
                problems.append(f"node '{node.id}' has missing parent '{node.parent_id}'")
            elif node.id not in parent.children_ids:
                problems.append(f"parent '{parent.id}' does not list child '{node.id}'")

        if _duplicates(node.children_ids):
            problems.append(f"node '{node.id}' lists a child twice")
        for child_id in node.children_ids:
            child = nodes.get(child_id)
            if child is None:
                problems.append(f"node '{node.id}' lists missing child '{child_id}'")
            elif child.parent_id != node.id:
                problems.append(f"child '{child_id}' does not name '{node.id}' as parent")

        if _duplicates(node.ghost_branch_ids):
            problems.append(f"node '{node.id}' lists a ghost twice")

        for ghost_id in node.ghost_branch_ids:
            ghost = ghosts.get(ghost_id)
            if ghost is None:
                problems.append(f"node '{node.id}' lists missing ghost '{ghost_id}'")
            elif ghost.origin_node_id != node.id:
                problems.append(f"ghost '{ghost_id}' does not originate at '{node.id}'")

    for ghost in snapshot.ghost_branches:
        origin = nodes.get(ghost.origin_node_id)
        if origin is None:
            problems.append(f"ghost '{ghost.id}' has missing origin '{ghost.origin_node_id}'")
        elif ghost.id not in origin.ghost_branch_ids:
            problems.append(f"origin '{origin.id}' does not list ghost '{ghost.id}'")
        if not ghost.reason_for_rejection.strip():
            problems.append(f"ghost '{ghost.id}' has a blank rejection reason")

    for node_id in _find_cycles({n.id: n.parent_id for n in snapshot.nodes}):
        problems.append(f"parent cycle through '{node_id}'")

    return problems


def check_lattice_integrity(snapshot: LatticeSnapshot) -> list[str]:
    """Return a list of referential-integrity problems (empty if sound)."""
    problems: list[str] = []

    for dup in _duplicates([n.id for n in snapshot.nodes]):
        problems.append(f"duplicate concept id '{dup}'")

    node_ids = {n.id for n in snapshot.nodes}
    for i, edge in enumerate(snapshot.edges):
        for endpoint in (edge.source_id, edge.target_id):
            if endpoint not in node_ids:
                problems.append(f"edge #{i} references missing concept '{endpoint}'")

    return problems
