"""
Property-based tests for the symbolic lattice.
"""

import sys
from pathlib import Path

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from zync_memory.lattice import CO_OCCURRING, SymbolicLattice

labels = st.sampled_from(["Graph", "Search", "BFS", "Cache", "Memory", "Decay", "Lattice"])
batches = st.lists(st.lists(labels, max_size=5), max_size=15)


class TestIngestionProperties:
    """Ingestion merges by label and never duplicates co-occurrence edges."""

    @pytest.mark.hypothesis
    @given(batches)
    @settings(max_examples=100, deadline=None)
    def test_one_concept_per_label(self, tag_batches):
        lattice = SymbolicLattice()
        for tags in tag_batches:
            lattice.ingest_semantic_tags(tags)

        seen = {label for tags in tag_batches for label in tags}
        node_labels = [n.label for n in lattice.get_nodes()]
        assert sorted(node_labels) == sorted(seen)

    @pytest.mark.hypothesis
    @given(batches)
    @settings(max_examples=100, deadline=None)
    def test_one_edge_per_pair(self, tag_batches):
        lattice = SymbolicLattice()
        for tags in tag_batches:
            lattice.ingest_semantic_tags(tags)

        pairs = [
            frozenset((e.source_id, e.target_id))
            for e in lattice.get_edges()
            if e.relation_type == CO_OCCURRING
        ]
        assert len(pairs) == len(set(pairs))
        assert all(len(pair) == 2 for pair in pairs)

    @pytest.mark.hypothesis
    @given(batches)
    @settings(max_examples=100, deadline=None)
    def test_edge_weight_tracks_co_occurrence_count(self, tag_batches):
        lattice = SymbolicLattice()
        counts: dict[frozenset, int] = {}
        for tags in tag_batches:
            lattice.ingest_semantic_tags(tags)
            distinct = list(dict.fromkeys(tags))
            for i in range(len(distinct)):
                for j in range(i + 1, len(distinct)):
                    key = frozenset((distinct[i], distinct[j]))
                    counts[key] = counts.get(key, 0) + 1

        labels_by_id = {n.id: n.label for n in lattice.get_nodes()}
        for edge in lattice.get_edges():
            key = frozenset((labels_by_id[edge.source_id], labels_by_id[edge.target_id]))
            assert edge.weight == pytest.approx(0.3 * counts[key])


class TestActivationPathProperties:
    """Activation paths are well-formed walks through the lattice."""

    @pytest.mark.hypothesis
    @given(batches, labels, labels)
    @settings(max_examples=100, deadline=None)
    def test_path_is_connected_walk(self, tag_batches, start, end):
        lattice = SymbolicLattice()
        for tags in tag_batches:
            lattice.ingest_semantic_tags(tags)

        path = lattice.find_activation_path(start, end)
        if path is None:
            return

        assert path.nodes[0].label == start
        assert path.nodes[-1].label == end
        assert len(path.edges) == len(path.nodes) - 1
        assert len(set(path.node_ids)) == len(path.node_ids)
        for edge, (a, b) in zip(path.edges, zip(path.node_ids, path.node_ids[1:])):
            assert edge.connects(a, b)
        assert 0.0 <= path.confidence_score

    @pytest.mark.hypothesis
    @given(batches, st.lists(labels, max_size=4))
    @settings(max_examples=100, deadline=None)
    def test_activated_subgraph_is_closed(self, tag_batches, activated):
        lattice = SymbolicLattice()
        for tags in tag_batches:
            lattice.ingest_semantic_tags(tags)

        subgraph = lattice.get_activated_subgraph(activated)

        ids = {n.id for n in subgraph.nodes}
        assert {n.label for n in subgraph.nodes} <= set(activated)
        for edge in subgraph.edges:
            assert edge.source_id in ids and edge.target_id in ids
