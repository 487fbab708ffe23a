import math

import pytest

from linkrank.graph import (
    ConvergenceError,
    EmptyGraphError,
    InvalidParameterError,
    Pagerank,
    pagerank,
    top_scores,
)


def _build(*pairs):
    graph = Pagerank()
    for source, target in pairs:
        graph.link(source, target)
    return graph


def _collect(graph, damping=0.85, tolerance=1e-9, max_iterations=None):
    out = []
    iterations = graph.rank(
        damping,
        tolerance,
        lambda label, score: out.append((label, score)),
        max_iterations=max_iterations,
    )
    return out, iterations


def test_link_interns_labels_in_first_seen_order():
    graph = _build(("b", "a"), ("a", "c"), ("c", "b"))
    assert graph.labels == ("b", "a", "c")
    assert [graph.index_of(label) for label in ("b", "a", "c")] == [0, 1, 2]
    assert graph.label_of(2) == "c"
    assert len(graph) == graph.len() == 3


def test_repeated_link_keeps_two_nodes_and_counts_parallel_edges():
    graph = Pagerank()
    for _ in range(5):
        graph.link("x", "y")
    assert len(graph) == 2
    assert graph.out_degree("x") == 5
    assert graph.in_degree("y") == 5
    assert graph.out_degree("y") == 0
    assert graph.edge_count == 5


def test_self_loop_counts_as_out_and_in_edge():
    graph = _build(("a", "a"))
    assert len(graph) == 1
    assert graph.out_degree("a") == 1
    assert graph.in_degree("a") == 1


def test_empty_string_is_a_valid_label():
    graph = _build(("", "a"), ("a", ""))
    assert len(graph) == 2
    assert "" in graph
    scores = graph.scores()
    assert scores[""] == pytest.approx(0.5)


def test_out_degree_matches_incoming_appearances():
    graph = _build(("a", "b"), ("a", "b"), ("b", "c"), ("c", "a"), ("c", "c"), ("d", "a"))
    appearances = {label: 0 for label in graph.labels}
    for target in graph.labels:
        for source in graph.sources(target):
            appearances[source] += 1
    assert appearances == {label: graph.out_degree(label) for label in graph.labels}
    assert appearances == {"a": 2, "b": 1, "c": 2, "d": 1}
    assert graph.sources("b") == ("a", "a")
    assert sum(graph.in_degree(label) for label in graph.labels) == graph.edge_count == 6


def test_scores_sum_to_one():
    graph = _build(("a", "b"), ("b", "c"), ("c", "a"), ("a", "c"), ("d", "c"), ("e", "d"))
    out, _ = _collect(graph)
    assert math.fsum(score for _, score in out) == pytest.approx(1.0, abs=1e-9)


def test_results_are_reported_once_per_node_in_index_order():
    graph = _build(("z", "y"), ("y", "x"), ("x", "z"), ("w", "z"))
    out, _ = _collect(graph)
    assert [label for label, _ in out] == ["z", "y", "x", "w"]


def test_single_isolated_node_gets_all_mass():
    graph = Pagerank()
    graph.add_node("only")
    out, _ = _collect(graph)
    assert out == [("only", pytest.approx(1.0))]


def test_single_self_loop_gets_all_mass():
    out, _ = _collect(_build(("a", "a")))
    assert out == [("a", pytest.approx(1.0))]


@pytest.mark.parametrize("damping", [0.1, 0.5, 0.85, 0.99])
def test_mutual_link_splits_evenly(damping):
    out, _ = _collect(_build(("A", "B"), ("B", "A")), damping=damping)
    assert dict(out) == {"A": pytest.approx(0.5), "B": pytest.approx(0.5)}


def test_dangling_node_mass_is_redistributed():
    out, _ = _collect(_build(("A", "B"), ("B", "C")))
    scores = dict(out)
    assert scores["C"] > 0.0
    assert scores["C"] > scores["B"] > scores["A"]
    assert sum(scores.values()) == pytest.approx(1.0, abs=1e-9)


def test_duplicate_edge_without_competition_changes_nothing():
    single = _build(("A", "B"))
    single.add_node("C")
    doubled = _build(("A", "B"), ("A", "B"))
    doubled.add_node("C")

    single_scores = single.scores(tolerance=1e-12)
    doubled_scores = doubled.scores(tolerance=1e-12)
    for label in ("A", "B", "C"):
        assert doubled_scores[label] == pytest.approx(single_scores[label], abs=1e-9)


def test_duplicate_edge_with_competition_shifts_share():
    single = _build(("A", "B"), ("A", "C"))
    doubled = _build(("A", "B"), ("A", "B"), ("A", "C"))

    single_scores = single.scores(tolerance=1e-12)
    doubled_scores = doubled.scores(tolerance=1e-12)
    assert single_scores["B"] == pytest.approx(single_scores["C"])
    assert doubled_scores["B"] > single_scores["B"]
    assert doubled_scores["B"] > doubled_scores["C"]


def test_converges_within_bounded_iterations():
    pairs = [(f"n{i}", f"n{(i * 7 + 3) % 20}") for i in range(20)]
    pairs += [(f"n{i}", f"n{(i + 1) % 20}") for i in range(0, 20, 3)]
    out, iterations = _collect(_build(*pairs), tolerance=1e-6, max_iterations=500)
    assert 1 <= iterations < 500
    assert len(out) == 20


def test_first_iteration_runs_even_with_large_tolerance():
    _, iterations = _collect(_build(("a", "b")), tolerance=10.0)
    assert iterations == 1


def test_rank_does_not_mutate_graph():
    graph = _build(("a", "b"), ("b", "c"))
    before = (graph.labels, graph.edge_count, [graph.in_degree(l) for l in graph.labels])
    _collect(graph)
    _collect(graph)
    after = (graph.labels, graph.edge_count, [graph.in_degree(l) for l in graph.labels])
    assert before == after


def test_empty_graph_raises_without_callbacks():
    calls = []
    with pytest.raises(EmptyGraphError):
        Pagerank().rank(0.85, 1e-6, lambda label, score: calls.append(label))
    assert calls == []


@pytest.mark.parametrize(
    "damping,tolerance",
    [
        (0.0, 1e-6),
        (1.0, 1e-6),
        (-0.2, 1e-6),
        (1.5, 1e-6),
        (float("nan"), 1e-6),
        (0.85, 0.0),
        (0.85, -1e-3),
        (0.85, float("nan")),
    ],
)
def test_invalid_parameters_are_rejected(damping, tolerance):
    calls = []
    with pytest.raises(InvalidParameterError):
        _build(("a", "b")).rank(damping, tolerance, lambda label, score: calls.append(label))
    assert calls == []


def test_invalid_parameter_is_a_value_error():
    with pytest.raises(ValueError):
        _build(("a", "b")).rank(0.85, 1e-6, lambda label, score: None, max_iterations=0)


def test_iteration_cap_raises_without_callbacks():
    calls = []
    graph = _build(("A", "B"), ("B", "C"), ("C", "D"))
    with pytest.raises(ConvergenceError) as excinfo:
        graph.rank(0.85, 1e-300, lambda label, score: calls.append(label), max_iterations=2)
    assert excinfo.value.iterations == 2
    assert excinfo.value.delta > 0.0
    assert calls == []


def test_pagerank_function_matches_class_and_keeps_isolated_nodes():
    scores = pagerank(["a", "b", "lonely"], {"a": ["b"], "b": ["a"]}, tolerance=1e-10)
    assert list(scores) == ["a", "b", "lonely"]
    assert scores["a"] == pytest.approx(scores["b"])
    assert scores["lonely"] < scores["a"]
    assert sum(scores.values()) == pytest.approx(1.0)


def test_pagerank_function_on_empty_input():
    assert pagerank([], {}) == {}


def test_top_scores_orders_and_truncates():
    scores = [("a", 0.2), ("b", 0.5), ("c", 0.2), ("d", 0.1)]
    assert top_scores(scores, 2) == [("b", 0.5), ("a", 0.2)]
    assert top_scores(scores, None) == scores


@pytest.mark.parametrize("damping", [0.5, 0.85])
def test_chain_reaches_exact_fixed_point(damping):
    # A -> B -> C with C dangling: A = x, B = x(1+d), C = x(1+d+d^2)
    x = 1.0 / (3.0 + 2.0 * damping + damping ** 2)
    scores = _build(("A", "B"), ("B", "C")).scores(damping=damping, tolerance=1e-13)
    assert scores["A"] == pytest.approx(x, abs=1e-10)
    assert scores["B"] == pytest.approx(x * (1.0 + damping), abs=1e-10)
    assert scores["C"] == pytest.approx(x * (1.0 + damping + damping ** 2), abs=1e-10)


def test_isolated_node_gets_teleport_and_dangling_share():
    # a <-> b plus isolated c: c = d*c/3 + (1-d)/3, so c = (1-d)/(3-d)
    damping = 0.85
    scores = pagerank(["a", "b", "c"], {"a": ["b"], "b": ["a"]}, damping=damping, tolerance=1e-13)
    expected_c = (1.0 - damping) / (3.0 - damping)
    assert scores["c"] == pytest.approx(expected_c, abs=1e-10)
    assert scores["a"] == pytest.approx((1.0 - expected_c) / 2.0, abs=1e-10)
