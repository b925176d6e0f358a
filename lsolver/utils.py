import time
import numpy as np
from scipy.sparse import linalg as splinalg


class Timer(object):

    def __init__(self):
        self.t0 = time.perf_counter()

    def start(self):
        self.t0 = time.perf_counter()

    def stop(self):
        # seconds since the last start
        return time.perf_counter() - self.t0


def residual(graph, b, x):
    """root-mean-square of L x - b over all vertices"""
    L = graph.laplacian_matrix()
    r = L @ np.asarray(x, dtype=float) - np.asarray(b, dtype=float)
    return float(np.sqrt(np.mean(r ** 2)))


def exact_solution(graph, b):
    """reference solution by a sparse direct solve, grounded at the sink and mean-centered"""
    L = graph.laplacian_matrix().tocsc()
    b = np.asarray(b, dtype=float)
    n = L.shape[0]
    # remove the sink row/column: x[n-1] = 0
    x = np.zeros(n, dtype=float)
    x[:-1] = splinalg.spsolve(L[:-1,:-1], b[:-1])
    return x - x.mean()
