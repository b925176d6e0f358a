import numpy as np
import networkx as nx
import pytest

from lsolver.config import SolverConfig
from lsolver.graph import Graph
from lsolver.sampler import AliasSampler


@pytest.fixture
def path3():
    # 0 - 1 - 2, vertex 2 is the sink
    return Graph.from_networkx(nx.path_graph(3))


@pytest.fixture
def path3_router(path3):
    return AliasSampler(path3.transition_matrix())


@pytest.fixture
def fast_config():
    # ~11k counted steps on three vertices
    return SolverConfig(e1=0.1, e2=0.1, k=0.2, seed=7)


class StubGraph(object):
    """bare collaborator interface, for inputs Graph itself refuses to build"""

    def __init__(self, P, d, L=None):
        self.P = np.asarray(P, dtype=float)
        self.d = np.asarray(d, dtype=float)
        self.L = L

    def num_vertices(self):
        return len(self.d)

    def transition_matrix(self):
        return self.P

    def degree_vector(self):
        return self.d

    def laplacian_matrix(self):
        return self.L


@pytest.fixture
def stub_graph():
    return StubGraph
