"""
Unit tests for graph construction, ancestry, cycles and redundancy.
"""

from learnpath.engines.prerequisites import (
    ModuleDraft,
    ancestors,
    build_graph,
    find_redundant_edge,
    has_cycle,
    has_redundancy,
    transitive_closure,
)


def _graph(**edges):
    return {key: list(prereqs) for key, prereqs in edges.items()}


class TestBuildGraph:
    """Tests for adjacency construction."""

    def test_flattens_groups(self):
        graph = build_graph([
            ModuleDraft(key="a", name="A"),
            ModuleDraft(key="d", name="D", prerequisites=[["a", "b"], ["c", "a"]]),
        ])
        assert graph == {"a": [], "d": ["a", "b", "c"]}

    def test_later_entry_wins(self):
        graph = build_graph([
            ModuleDraft(key="a", name="A", prerequisites=[["b"]]),
            ModuleDraft(key="a", name="A", prerequisites=[]),
        ])
        assert graph == {"a": []}


class TestAncestors:
    """Tests for transitive ancestry."""

    def test_chain(self):
        graph = _graph(a=[], b=["a"], c=["b"])
        assert ancestors("c", graph) == {"a", "b"}
        assert ancestors("a", graph) == set()

    def test_unknown_key(self):
        assert ancestors("missing", _graph(a=[])) == set()

    def test_terminates_on_cycle(self):
        graph = _graph(a=["b"], b=["a"])
        assert ancestors("a", graph) == {"a", "b"}


class TestHasCycle:
    """Tests for Kahn-based cycle detection."""

    def test_acyclic(self):
        assert has_cycle(_graph(a=[], b=["a"], c=["b", "a"])) is False

    def test_empty_graph(self):
        assert has_cycle({}) is False

    def test_two_node_cycle(self):
        assert has_cycle(_graph(a=["b"], b=["a"])) is True

    def test_three_node_cycle(self):
        assert has_cycle(_graph(a=["c"], b=["a"], c=["b"])) is True

    def test_self_loop(self):
        assert has_cycle(_graph(a=["a"])) is True

    def test_referenced_only_nodes(self):
        # "x" is never listed as a node but is still counted
        assert has_cycle(_graph(a=["x"])) is False


class TestRedundancy:
    """Tests for transitive closure and redundant edges."""

    def test_closure(self):
        closure = transitive_closure(_graph(a=[], b=["a"], c=["b"]))
        assert closure == {"a": set(), "b": {"a"}, "c": {"a", "b"}}

    def test_closure_terminates_on_cycle(self):
        closure = transitive_closure(_graph(a=["b"], b=["a"]))
        assert closure["a"] == {"a", "b"}

    def test_redundant_edge_found(self):
        edge = find_redundant_edge(_graph(a=[], b=["a"], d=["a", "b"]))
        assert edge is not None
        assert edge.module_key == "d"
        assert edge.redundant_key == "a"
        assert edge.via_key == "b"

    def test_redundancy_across_groups(self):
        # Flattening makes [[a], [b]] equivalent to depending on both
        graph = build_graph([
            ModuleDraft(key="a", name="A"),
            ModuleDraft(key="b", name="B", prerequisites=[["a"]]),
            ModuleDraft(key="d", name="D", prerequisites=[["b"], ["a"]]),
        ])
        assert has_redundancy(graph) is True

    def test_deep_redundancy(self):
        assert has_redundancy(_graph(a=[], b=["a"], c=["b"], d=["c", "a"])) is True

    def test_no_redundancy(self):
        assert has_redundancy(_graph(a=[], b=[], c=["a", "b"], d=["c"])) is False

    def test_prefer_reports_focus_first(self):
        graph = _graph(a=[], b=["a"], c=["a", "b"], d=["a", "b"])
        assert find_redundant_edge(graph, prefer="d").module_key == "d"
        assert find_redundant_edge(graph).module_key == "c"
