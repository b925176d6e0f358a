import numpy as np
import pytest
from scipy import stats

from lsolver.errors import NumericDegeneracy
from lsolver.sampler import UniformSampler, AliasTable, AliasSampler


def test_uniform_is_reproducible_under_seed():
    a = UniformSampler(42).uniform(size=1000)
    b = UniformSampler(42).uniform(size=1000)
    assert np.array_equal(a, b)
    assert a.min() >= 0. and a.max() < 1.


def test_uniform_index_range():
    idx = UniformSampler(3).uniform_index(5, size=10000)
    assert idx.min() == 0 and idx.max() == 4
    assert isinstance(UniformSampler(3).uniform(), float)


def test_spawned_streams_differ():
    s1, s2 = UniformSampler(1).spawn(2)
    assert not np.array_equal(s1.uniform(size=100), s2.uniform(size=100))


def _reconstruct(table):
    # mass of each outcome encoded by the (prob, alias) columns
    n = table.n
    mass = table.prob.copy()
    for i in range(n):
        mass[table.alias[i]] += 1. - table.prob[i]
    return mass / n


@pytest.mark.parametrize('p', [
    [0.3, 0.7],
    [0.1, 0.2, 0.3, 0.4],
    [0., 0.5, 0., 0.5],
    [1., 0., 0.],
    [0.25, 0.25, 0.25, 0.25],
])
def test_alias_table_encodes_distribution(p):
    table = AliasTable.from_probabilities(p)
    assert np.allclose(_reconstruct(table), p)
    assert np.all((table.prob >= 0.) & (table.prob <= 1.))


def test_two_point_split_within_one_percent():
    table = AliasTable.from_probabilities([0.3, 0.7])
    sampler = UniformSampler(11)
    draws = np.array([table.sample(sampler) for _ in range(100000)])
    assert abs(np.mean(draws == 0) - 0.3) < 0.01


def test_chi_square_goodness_of_fit():
    p = np.array([0.05, 0.15, 0., 0.3, 0.5])
    router = AliasSampler(np.tile(p, (5, 1)))
    draws = router.route(np.zeros(100000, dtype=np.int64), UniformSampler(5))
    observed = np.bincount(draws, minlength=5)
    assert observed[2] == 0
    support = p > 0
    _, pvalue = stats.chisquare(observed[support], 100000 * p[support])
    assert pvalue > 1e-3


def test_route_follows_each_row(path3_router):
    sampler = UniformSampler(0)
    # P[0] = [0, 1, 0]
    assert np.all(path3_router.route(np.zeros(500, dtype=np.int64), sampler) == 1)
    dest = path3_router.route(np.ones(20000, dtype=np.int64), sampler)
    assert set(np.unique(dest)) == {0, 2}
    assert abs(np.mean(dest == 0) - 0.5) < 0.02
    assert path3_router.sample(2, sampler) == 1


def test_route_with_no_senders(path3_router):
    dest = path3_router.route(np.array([], dtype=np.int64), UniformSampler(0))
    assert len(dest) == 0


@pytest.mark.parametrize('p', [[0.3, 0.6], [0.5, 0.7], [-0.2, 1.2], [np.nan, 1.]])
def test_degenerate_probabilities_are_rejected(p):
    with pytest.raises(NumericDegeneracy):
        AliasTable.from_probabilities(p)


def test_bad_row_is_reported():
    P = [[0., 1.], [0.4, 0.4]]
    with pytest.raises(NumericDegeneracy, match='row 1'):
        AliasSampler(P)
