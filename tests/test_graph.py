import numpy as np
import pandas as pd
import networkx as nx
import pytest

from lsolver.dataset import make_graph, random_demand, signed_demand, load_graph
from lsolver.errors import InvalidInput
from lsolver.graph import Graph


def test_path_graph_interface(path3):
    assert path3.num_vertices() == 3
    assert np.allclose(path3.degree_vector(), [1., 2., 1.])
    P = path3.transition_matrix()
    assert np.allclose(P, [[0., 1., 0.], [0.5, 0., 0.5], [0., 1., 0.]])
    L = path3.laplacian_matrix().toarray()
    assert np.allclose(L, [[1., -1., 0.], [-1., 2., -1.], [0., -1., 1.]])


def test_read_data_moves_sink_last():
    node_data = pd.DataFrame({'node_id': [10, 20, 30, 40]})
    link_data = pd.DataFrame({'from_': [10, 20, 30], 'to_': [20, 30, 40], 'w': [1., 2., 3.]})
    g = Graph().read_data(node_data, link_data, weight='w', sink=20)
    assert list(g.nodes) == [10, 30, 40, 20]
    assert g.sink == 20
    # degrees: 10->1, 30->2+3, 40->3, 20->1+2
    assert np.allclose(g.degree_vector(), [1., 5., 3., 3.])
    P = g.transition_matrix()
    assert np.allclose(P.sum(axis=1), 1.)
    assert np.isclose(P[1, 3], 2. / 5.)


def test_laplacian_rows_sum_to_zero():
    g = make_graph('grid', 3)
    L = g.laplacian_matrix()
    assert np.allclose(np.asarray(L.sum(axis=1)).ravel(), 0.)
    assert (abs(L - L.T) > 1e-12).nnz == 0


def test_weights_and_self_loops():
    G = nx.Graph()
    G.add_edge('a', 'b', weight=2.)
    G.add_edge('b', 'c', weight=1.)
    G.add_edge('b', 'b', weight=5.)
    g = Graph.from_networkx(G, weight='weight')
    assert np.allclose(g.degree_vector(), [2., 3., 1.])
    A = g.adjacency_matrix().toarray()
    assert np.allclose(A, [[0., 2., 0.], [2., 0., 1.], [0., 1., 0.]])


def test_disconnected_graph_is_rejected():
    G = nx.Graph([(0, 1), (2, 3)])
    with pytest.raises(InvalidInput, match='disconnected'):
        Graph.from_networkx(G)


def test_isolated_vertex_is_rejected():
    G = nx.path_graph(3)
    G.add_node(3)
    with pytest.raises(InvalidInput, match='isolated'):
        Graph.from_networkx(G)


def test_single_vertex_is_rejected():
    G = nx.Graph()
    G.add_node(0)
    with pytest.raises(InvalidInput):
        Graph.from_networkx(G)


def test_non_positive_weight_is_rejected():
    G = nx.Graph()
    G.add_edge(0, 1, weight=0.)
    with pytest.raises(InvalidInput):
        Graph.from_networkx(G, weight='weight')


def test_directed_graph_is_rejected():
    with pytest.raises(InvalidInput):
        Graph.from_networkx(nx.DiGraph([(0, 1)]))


@pytest.mark.parametrize('kind,size,n', [('path', 5, 5), ('cycle', 6, 6), ('grid', 3, 9), ('random', 20, 20)])
def test_generated_graphs(kind, size, n):
    g = make_graph(kind, size, seed=1)
    assert g.num_vertices() == n
    assert np.allclose(g.transition_matrix().sum(axis=1), 1.)


def test_unknown_kind():
    with pytest.raises(InvalidInput):
        make_graph('star', 4)


def test_demands_sum_to_zero():
    b = random_demand(10, seed=0)
    assert np.isclose(b.sum(), 0.)
    assert np.all(b[:-1] >= 0.) and b[-1] < 0.
    assert np.isclose(signed_demand(10, seed=0).sum(), 0.)


def test_load_graph_from_csv(tmp_path):
    pd.DataFrame({'node_id': [0, 1, 2]}).to_csv(tmp_path / 'node.csv', index=False)
    pd.DataFrame({'from_': [0, 1], 'to_': [1, 2]}).to_csv(tmp_path / 'link.csv', index=False)
    g = load_graph(tmp_path / 'node.csv', tmp_path / 'link.csv')
    assert np.allclose(g.degree_vector(), [1., 2., 1.])
