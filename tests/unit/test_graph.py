import pytest

from feature_env.planner.errors import DependencyCycleError, ValidationError
from feature_env.planner.graph import DependencyGraph


def test_topological_order_deterministic() -> None:
    graph = DependencyGraph(nodes=["a", "b", "c"], dependencies={"b": ["a"], "c": ["a"]})
    assert graph.topological_order() == ["a", "b", "c"]


def test_topological_order_ignores_external_deps() -> None:
    graph = DependencyGraph(nodes=["a", "b"], dependencies={"b": ["existing:identity"]})
    assert graph.topological_order() == ["a", "b"]


def test_cycle_detection() -> None:
    graph = DependencyGraph(nodes=["a", "b"], dependencies={"a": ["b"], "b": ["a"]})
    with pytest.raises(DependencyCycleError, match="a, b"):
        graph.topological_order()


def test_priority_ordering() -> None:
    """Nodes with lower priority come first when no deps constrain order."""
    graph = DependencyGraph(
        nodes=["high", "low"],
        dependencies={},
        priorities={"high": 100, "low": 0},
    )
    assert graph.topological_order() == ["low", "high"]


def test_priority_does_not_override_deps() -> None:
    graph = DependencyGraph(
        nodes=["high", "low"],
        dependencies={"low": ["high"]},
        priorities={"high": 100, "low": 0},
    )
    assert graph.topological_order() == ["high", "low"]


def test_reverse_topological_order() -> None:
    graph = DependencyGraph(nodes=["a", "b"], dependencies={"b": ["a"]})
    assert graph.reverse_topological_order() == ["b", "a"]


def test_layers_group_independent_nodes() -> None:
    graph = DependencyGraph(
        nodes=["account", "share", "mount", "worker", "nordic"],
        dependencies={
            "share": ["account"],
            "mount": ["account", "share"],
            "worker": ["mount"],
        },
    )
    assert graph.layers() == [["account", "nordic"], ["share"], ["mount"], ["worker"]]


def test_layers_cycle_detection() -> None:
    graph = DependencyGraph(nodes=["a", "b", "c"], dependencies={"a": ["b"], "b": ["a"]})
    with pytest.raises(DependencyCycleError) as exc_info:
        graph.layers()
    assert exc_info.value.names == ["a", "b"]


def test_self_dependency_is_a_cycle() -> None:
    graph = DependencyGraph(nodes=["a", "b"], dependencies={"a": ["a"]})
    with pytest.raises(DependencyCycleError) as exc_info:
        graph.topological_order()
    assert exc_info.value.names == ["a"]
    assert exc_info.value.reason == "dependency-cycle"


def test_cycle_is_a_validation_error() -> None:
    graph = DependencyGraph(nodes=["a", "b"], dependencies={"a": ["b"], "b": ["a"]})
    with pytest.raises(ValidationError, match="dependency-cycle"):
        graph.layers()
