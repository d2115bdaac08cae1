"""
Zync Memory: dual-graph memory engine for a conversational AI workspace.

- Topological memory: a confidence-weighted forest of reasoned conclusions,
  with rejected alternatives kept as ghost branches
- Symbolic lattice: concepts and weighted relations with activation-path and
  activated-subgraph queries
- Decay policy: time-based effective confidence used for pruning
- Inspector: sorted, filtered, copy-only views for UI consumers
"""

__version__ = "0.1.0"

from .config import (
    ConsolidationConfig,
    DecayConfig,
    LatticeConfig,
    PruningConfig,
    ZyncMemoryConfig,
)
from .decay import DecayPolicy
from .engine import MemoryEngine
from .graph_store import GraphStore
from .inspection import MemoryInspector, MemoryStats, TelemetryNode
from .lattice import CO_OCCURRING, RELATED_TO, THEMATICALLY_LINKED, SymbolicLattice
from .snapshot import SnapshotIntegrityError
from .topological_memory import TopologicalMemory
from .types import (
    ActivatedSubgraph,
    ConsolidationResult,
    DanglingEndpointError,
    DreamResult,
    DuplicateIdError,
    GhostBranch,
    InvalidOriginError,
    InvalidParentError,
    LatticeEdge,
    LatticeNode,
    LatticePath,
    MemoryNode,
    NodeNotFoundError,
    ZyncMemoryError,
)

__all__ = [
    # Engine
    "MemoryEngine",
    # Graphs
    "TopologicalMemory",
    "SymbolicLattice",
    "GraphStore",
    "DecayPolicy",
    "MemoryInspector",
    # Entities
    "MemoryNode",
    "GhostBranch",
    "LatticeNode",
    "LatticeEdge",
    "LatticePath",
    "ActivatedSubgraph",
    "ConsolidationResult",
    "DreamResult",
    "TelemetryNode",
    "MemoryStats",
    # Relation types
    "CO_OCCURRING",
    "RELATED_TO",
    "THEMATICALLY_LINKED",
    # Config
    "ZyncMemoryConfig",
    "DecayConfig",
    "PruningConfig",
    "LatticeConfig",
    "ConsolidationConfig",
    # Errors
    "ZyncMemoryError",
    "InvalidParentError",
    "InvalidOriginError",
    "NodeNotFoundError",
    "DuplicateIdError",
    "DanglingEndpointError",
    "SnapshotIntegrityError",
]
