import logging
import numpy as np
import networkx as nx
from scipy.sparse import csr_matrix, diags

from lsolver.errors import InvalidInput

logger = logging.getLogger(__name__)


class Graph(object):
    """Undirected weighted graph seen as a random walk.
    The last vertex index is the sink (ground node) of the Laplacian system.
    """

    def __init__(self):
        self.nodes = None
        self.index = None
        self.sink = None
        self.A = None
        pass

    def read_data(self, node_data, link_data, weight=None, sink=None):
        """
        Arguments:
            node_data: pandas dataframe ('node_id', ...)
            link_data: pandas dataframe ('from_', 'to_', [weight])
            weight: column of link_data holding link weights, unit weights if None
            sink: node_id placed at the last index, last row of node_data if None
        """
        nodes = list(node_data['node_id'].values)
        senders = link_data['from_'].values
        receivers = link_data['to_'].values
        if weight is None:
            w = np.ones(len(link_data), dtype=float)
        else:
            w = link_data[weight].values.astype(float)
        self._build(nodes, list(zip(senders, receivers, w)), sink)
        return self

    @classmethod
    def from_networkx(cls, G, sink=None, weight=None):
        if G.is_directed():
            raise InvalidInput('the Laplacian system needs an undirected graph')
        links = []
        for u, v, data in G.edges(data=True):
            w = 1. if weight is None else float(data.get(weight, 1.))
            links.append((u, v, w))
        g = cls()
        g._build(list(G.nodes()), links, sink)
        return g

    def _build(self, nodes, links, sink):
        if len(set(nodes)) != len(nodes):
            raise InvalidInput('node ids must be unique')
        if sink is None:
            sink = nodes[-1]
        if sink not in nodes:
            raise InvalidInput(f'sink {sink} is not a node of the graph')
        nodes = [v for v in nodes if v != sink] + [sink]
        n = len(nodes)
        if n < 2:
            raise InvalidInput(f'at least two vertices are required, got {n}')
        self.nodes = np.array(nodes)
        self.index = {v: i for i, v in enumerate(nodes)}
        self.sink = sink

        senders, receivers, weights = [], [], []
        n_loops = 0
        for u, v, w in links:
            if u not in self.index or v not in self.index:
                raise InvalidInput(f'link ({u}, {v}) refers to an unknown node')
            if not np.isfinite(w) or w <= 0.:
                raise InvalidInput(f'link ({u}, {v}) has non-positive weight {w}')
            if u == v:
                n_loops += 1
                continue
            i, j = self.index[u], self.index[v]
            senders += [i, j]
            receivers += [j, i]
            weights += [w, w]
        if n_loops > 0:
            logger.warning('dropped %d self-loops', n_loops)
        # duplicate entries are summed by csr_matrix
        self.A = csr_matrix((weights, (senders, receivers)), shape=(n, n)) # N x N
        self.d = np.asarray(self.A.sum(axis=1)).ravel() # N,

        if np.any(self.d <= 0.):
            isolated = self.nodes[self.d <= 0.]
            raise InvalidInput(f'isolated vertices: {list(isolated)}')
        G = nx.Graph()
        G.add_nodes_from(range(n))
        G.add_edges_from(zip(senders, receivers))
        if not nx.is_connected(G):
            raise InvalidInput(f'graph is disconnected ({nx.number_connected_components(G)} components)')

    def num_vertices(self):
        return len(self.nodes)

    def adjacency_matrix(self):
        return self.A.copy()

    def degree_vector(self):
        return self.d.copy()

    def transition_matrix(self):
        # P = D^-1 A
        P = diags(1. / self.d) @ self.A
        return P.toarray()

    def laplacian_matrix(self):
        # L = D - A
        return (diags(self.d) - self.A).tocsr()
