import community as community_louvain
import networkx as nx
import pytest

from community_detection import (
    CommunityResult,
    _aggregate,
    _best_community,
    _LevelGraph,
    _local_moving,
    detect_communities,
    modularity,
)
from graph_store import EmailGraph, build_graph


def _karate():
    G = nx.karate_club_graph()
    return build_graph((str(u), str(v)) for u, v in G.edges())


def test_two_clusters_are_recovered(two_clusters):
    result = detect_communities(two_clusters)
    left = {result.assignment[f"a{i}"] for i in range(1, 5)}
    right = {result.assignment[f"b{i}"] for i in range(1, 5)}

    assert len(left) == 1
    assert len(right) == 1
    assert left != right


def test_partition_beats_singletons(two_clusters):
    result = detect_communities(two_clusters)
    singletons = {v: i for i, v in enumerate(two_clusters.vertices)}
    assert result.modularity >= modularity(two_clusters, singletons)
    assert result.modularity > 0.3


def test_modularity_matches_python_louvain(two_clusters):
    result = detect_communities(two_clusters)
    G = two_clusters.to_networkx()
    expected = community_louvain.modularity(result.assignment, G)
    assert result.modularity == pytest.approx(expected)


def test_modularity_function_on_arbitrary_partition():
    graph = _karate()
    G = graph.to_networkx()
    partition = {v: int(v) % 3 for v in graph.vertices}
    assert modularity(graph, partition) == pytest.approx(community_louvain.modularity(partition, G))


def test_karate_club_quality():
    graph = _karate()
    result = detect_communities(graph)
    assert result.modularity > 0.35
    assert 2 <= result.community_count <= 6
    assert result.levels >= 1


def test_community_ids_are_compact():
    result = detect_communities(_karate())
    ids = set(result.assignment.values())
    assert ids == set(range(len(ids)))


def test_detection_is_deterministic():
    first = detect_communities(_karate())
    second = detect_communities(_karate())
    assert first == second


def test_members_groups_vertices(two_clusters):
    result = detect_communities(two_clusters)
    members = result.members()
    assert sorted(len(ms) for ms in members.values()) == [5, 5]
    assert sum(len(ms) for ms in members.values()) == two_clusters.vertex_count()


def test_disconnected_components_never_share_a_community():
    graph = build_graph([("a", "b"), ("b", "c"), ("c", "a"), ("x", "y"), ("y", "z"), ("z", "x")])
    result = detect_communities(graph)
    assert result.assignment["a"] == result.assignment["b"] == result.assignment["c"]
    assert result.assignment["x"] == result.assignment["y"] == result.assignment["z"]
    assert result.assignment["a"] != result.assignment["x"]
    assert result.modularity == pytest.approx(0.5)


def test_empty_graph(empty_graph):
    result = detect_communities(empty_graph)
    assert isinstance(result, CommunityResult)
    assert result.assignment == {}
    assert result.modularity == 0.0
    assert result.community_count == 0


def test_no_edges_gives_singletons():
    g = EmailGraph()
    for v in ("a", "b", "c"):
        g.add_vertex(v)
    result = detect_communities(g.freeze())
    assert result.assignment == {"a": 0, "b": 1, "c": 2}
    assert result.modularity == 0.0
    assert result.levels == 0


def test_max_passes_limits_levels():
    result = detect_communities(_karate(), max_passes=1)
    assert result.levels == 1


def test_equal_gain_candidates_go_to_lowest_id():
    # node removed from its own (now empty) community 0; communities 1 and 3 tie
    tot = [0.0, 2.0, 0.0, 2.0]
    assert _best_community({3: 1.0, 1: 1.0}, tot, old=0, ki=2.0, m2=16.0) == 1


def test_gain_equal_to_staying_does_not_move():
    # community 1 has a lower id but only matches the gain of staying in 2
    tot = [0.0, 2.0, 2.0]
    assert _best_community({2: 1.0, 1: 1.0}, tot, old=2, ki=2.0, m2=16.0) == 2


def test_no_better_community_keeps_node():
    assert _best_community({}, [0.0], old=0, ki=2.0, m2=16.0) == 0
    # joining a heavy community would lower modularity
    assert _best_community({1: 1.0}, [0.0, 100.0], old=0, ki=2.0, m2=16.0) == 0


def test_tied_connector_joins_lowest_community():
    # x touches one vertex of each triangle; both triangles are equally attractive
    graph = build_graph([
        ("p1", "p2"), ("p2", "p3"), ("p1", "p3"),
        ("q1", "q2"), ("q2", "q3"), ("q1", "q3"),
        ("x", "p1"), ("x", "q1"),
    ])
    result = detect_communities(graph)
    a = result.assignment
    assert a["p1"] == a["p2"] == a["p3"] == a["x"] == 0
    assert a["q1"] == a["q2"] == a["q3"] == 1


def test_local_moving_sweeps_until_stable(two_clusters):
    level = _LevelGraph.from_frozen(two_clusters)
    com, mod = _local_moving(level)
    assert len(set(com[:5])) == 1
    assert len(set(com[5:])) == 1
    assert com[0] != com[5]
    assert mod == pytest.approx(modularity(two_clusters, dict(zip(two_clusters.vertices, com))))


def test_aggregate_keeps_internal_weight_as_self_loops(two_clusters):
    level = _LevelGraph.from_frozen(two_clusters)
    partition = [0] * 5 + [1] * 5   # a0..a4, b0..b4
    agg = _aggregate(level, partition, 2)

    assert agg.loops == [10.0, 10.0]
    assert agg.nbrs == [{1: 1.0}, {0: 1.0}]
    assert agg.degrees == [21.0, 21.0]
    assert agg.total_weight == level.total_weight == 21.0
