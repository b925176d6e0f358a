import numpy as np
import pandas as pd
import networkx as nx

from lsolver.errors import InvalidInput
from lsolver.graph import Graph

GRAPH_KINDS = ('path', 'cycle', 'grid', 'random')


def make_graph(kind, size, seed=None, p=None):
    """networkx generated instance; nodes are relabelled 0..n-1, the last one is the sink
    size: number of vertices (side length for 'grid')
    """
    if kind == 'path':
        G = nx.path_graph(size)
    elif kind == 'cycle':
        G = nx.cycle_graph(size)
    elif kind == 'grid':
        G = nx.convert_node_labels_to_integers(nx.grid_2d_graph(size, size))
    elif kind == 'random':
        if p is None: p = min(1., 2. * np.log(size) / size)
        rng = np.random.default_rng(seed)
        # resample until connected
        for _ in range(100):
            G = nx.gnp_random_graph(size, p, seed=int(rng.integers(2**31)))
            if nx.is_connected(G):
                break
        else:
            raise InvalidInput(f'no connected G({size}, {p:.3f}) sample found')
    else:
        raise InvalidInput(f'unknown graph kind {kind!r}, choose from {GRAPH_KINDS}')
    return Graph.from_networkx(G)


def load_graph(node_csv, link_csv, weight=None, sink=None):
    node_data = pd.read_csv(node_csv)
    link_data = pd.read_csv(link_csv)
    g = Graph()
    return g.read_data(node_data, link_data, weight=weight, sink=sink)


def random_demand(n, seed=None, n_sources=None):
    """zero-sum demand: random positive sources, the sink absorbs everything"""
    rng = np.random.default_rng(seed)
    if n_sources is None: n_sources = n - 1
    sources = rng.choice(n - 1, size=min(n_sources, n - 1), replace=False)
    b = np.zeros(n, dtype=float)
    b[sources] = rng.uniform(0.5, 1.5, size=len(sources))
    b[-1] = -b[:-1].sum()
    return b


def signed_demand(n, seed=None):
    """zero-sum demand with mixed signs away from the sink"""
    rng = np.random.default_rng(seed)
    b = rng.normal(size=n)
    b[-1] = -b[:-1].sum()
    return b
