import logging
import numpy as np

from lsolver.errors import NumericDegeneracy

logger = logging.getLogger(__name__)


class UniformSampler(object):
    """Mersenne-Twister uniform source, deterministic once seeded.

    Arguments:
        seed: int, np.random.SeedSequence or None (fresh entropy)
    """

    def __init__(self, seed=None):
        if isinstance(seed, np.random.SeedSequence):
            self.seed_seq = seed
        else:
            self.seed_seq = np.random.SeedSequence(seed)
        self.seed = seed
        self.rng = np.random.Generator(np.random.MT19937(self.seed_seq))

    def uniform(self, size=None):
        return self.rng.random(size)

    def uniform_index(self, n, size=None):
        return self.rng.integers(0, n, size=size)

    def spawn(self, k):
        """independent child streams, e.g. for parallel trials"""
        return [UniformSampler(child) for child in self.seed_seq.spawn(k)]


class AliasTable(object):

    def __init__(self, prob, alias):
        self.prob = prob
        self.alias = alias
        self.n = len(prob)

    @classmethod
    def from_probabilities(cls, p, tol=1e-8):
        """Vose's alias method
        p (array): discrete distribution over n outcomes
        """
        p = np.asarray(p, dtype=float)
        n = p.shape[0]
        if n == 0 or not np.all(np.isfinite(p)):
            raise NumericDegeneracy(f'probabilities must be finite and non-empty: {p}')
        if np.any(p < 0.):
            raise NumericDegeneracy(f'negative probability in {p}')
        if abs(p.sum() - 1.) > tol:
            raise NumericDegeneracy(f'probabilities sum to {p.sum():.12f}, not 1')

        scaled = p * n
        prob = np.zeros(n, dtype=float)
        alias = np.arange(n, dtype=np.int64)
        small = [i for i in range(n) if scaled[i] < 1.]
        large = [i for i in range(n) if scaled[i] >= 1.]
        while small and large:
            s = small.pop()
            l = large.pop()
            prob[s] = scaled[s]
            alias[s] = l
            scaled[l] -= (1. - scaled[s])
            if scaled[l] < 1.:
                small.append(l)
            else:
                large.append(l)
        # leftovers are full columns (either list may hold rounding residue)
        for i in large + small:
            prob[i] = 1.
        return cls(prob, alias)

    def sample(self, sampler):
        c = sampler.uniform_index(self.n)
        r = sampler.uniform()
        return int(c) if r < self.prob[c] else int(self.alias[c])


class AliasSampler(object):
    """alias tables of every row of a transition matrix, stacked as n x n arrays"""

    def __init__(self, P, tol=1e-8):
        P = np.asarray(P, dtype=float)
        if P.ndim != 2 or P.shape[0] != P.shape[1]:
            raise NumericDegeneracy(f'transition matrix must be square, got shape {P.shape}')
        self.n = P.shape[0]
        self.tables = []
        for i in range(self.n):
            try:
                self.tables.append(AliasTable.from_probabilities(P[i], tol=tol))
            except NumericDegeneracy as e:
                raise NumericDegeneracy(f'row {i}: {e}') from e
        self.prob = np.vstack([t.prob for t in self.tables]) # n x n
        self.alias = np.vstack([t.alias for t in self.tables]) # n x n
        logger.debug('built %d alias tables', self.n)

    def sample(self, i, sampler):
        return self.tables[i].sample(sampler)

    def route(self, vertices, sampler):
        """one destination per entry of vertices, drawn from P[vertices[j]]"""
        m = len(vertices)
        cols = sampler.uniform_index(self.n, size=m)
        r = sampler.uniform(size=m)
        keep = r < self.prob[vertices, cols]
        return np.where(keep, cols, self.alias[vertices, cols])
