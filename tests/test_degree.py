from degree import degree_histogram
from graph_store import EmailGraph


def test_star_histogram(star_graph):
    assert degree_histogram(star_graph(6)) == [(1, 6), (6, 1)]


def test_histogram_is_sorted_by_degree(path_graph):
    assert degree_histogram(path_graph) == [(1, 2), (2, 2)]


def test_isolated_vertices_have_degree_zero():
    g = EmailGraph()
    g.add_edge("a", "b")
    g.add_vertex("c")
    assert degree_histogram(g.freeze()) == [(0, 1), (1, 2)]


def test_empty_graph_histogram(empty_graph):
    assert degree_histogram(empty_graph) == []
