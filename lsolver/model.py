import logging
from dataclasses import dataclass

import numpy as np
from scipy.sparse import issparse

from lsolver.config import DEFAULT_CONFIG
from lsolver.errors import InvalidInput, NoStableRateFound
from lsolver.sampler import AliasSampler, UniformSampler
from lsolver.utils import residual

logger = logging.getLogger(__name__)


@dataclass
class SimulationRun:
    beta: float
    steps: int
    epochs: int
    throughput: float
    drift: float
    converged: bool


def compute_J(b):
    """injection rates relative to the sink demand, J[n-1] is unused (0)"""
    b = np.asarray(b, dtype=float)
    if b[-1] == 0.:
        raise InvalidInput('b[n-1] must be non-zero, it is the reference demand')
    J = -b / b[-1]
    J[-1] = 0.
    return J


def split_demand(b):
    """b = b_plus - b_minus, both with non-negative injection rates.
    Returns:
        list of (sign, component) pairs, components without demand are left out
    """
    b = np.asarray(b, dtype=float)
    pos = np.maximum(b[:-1], 0.)
    neg = np.maximum(-b[:-1], 0.)
    parts = []
    for sign, part in ((1., pos), (-1., neg)):
        if part.sum() > 0.:
            parts.append((sign, np.append(part, -part.sum())))
    return parts


def compute_zstar(eta, d):
    return -np.sum(eta / d)


def canonical_solution(eta, beta, d, b, method='center'):
    """x = (-b[n-1]/beta) * eta/d, made unique by mean-centering.
    method='zstar' reproduces the older correction term instead of centering.
    """
    eta = np.asarray(eta, dtype=float)
    d = np.asarray(d, dtype=float)
    if not beta > 0.:
        raise InvalidInput(f'beta must be positive, got {beta}')
    scale = -b[-1] / beta
    if method == 'center':
        x = scale * (eta / d)
        return x - x.mean()
    elif method == 'zstar':
        zstar = compute_zstar(eta, d)
        return scale * (eta / d + zstar * (d / d.sum()))
    raise InvalidInput(f'unknown canonical method {method!r}')


class QueueSimulator(object):
    """Synchronous simulation of the packet network induced by a random walk.

    Every non-sink vertex injects a packet with probability beta*J[i] and forwards
    at most one packet per step. Forwarded packets land in an inbox that is merged
    into the queues only after all vertices acted, so arrivals become visible in
    the next step. The sink absorbs everything it receives.
    """

    def __init__(self, alias_sampler, J, sampler, config=DEFAULT_CONFIG):
        J = np.asarray(J, dtype=float)
        if J.shape != (alias_sampler.n,):
            raise InvalidInput(f'J has shape {J.shape}, expected ({alias_sampler.n},)')
        if np.any(J[:-1] < 0.):
            raise InvalidInput('injection rates must be non-negative')
        self.router = alias_sampler
        self.J = J
        self.n = alias_sampler.n
        self.sampler = sampler
        self.config = config
        self.last_run = None

    def estimate_occupancy(self, beta):
        """
        Returns:
            eta (array): fraction of counted steps each queue was non-empty after injection
            converged (bool): False when the epoch cap forced termination
        """
        config = self.config
        n = self.n
        rates = np.clip(beta * self.J[:-1], 0., 1.)
        sources = np.arange(n - 1)
        required = config.samples_required(n)

        Q = np.zeros(n, dtype=np.int64)
        busy_counts = np.zeros(n, dtype=np.int64)
        steps = 0
        injected, delivered = 0, 0
        stat, drift = None, np.inf
        converged = False

        epoch = 0
        while epoch < config.max_epochs:
            counting = epoch >= config.warmup_epochs
            for _ in range(config.epoch_length):
                arrivals = self.sampler.uniform(n - 1) < rates
                Q[:-1] += arrivals
                busy = Q[:-1] > 0
                senders = sources[busy]
                Q[senders] -= 1
                dest = self.router.route(senders, self.sampler)
                inbox = np.bincount(dest, minlength=n)
                # commit the step
                Q += inbox
                Q[-1] = 0
                if counting:
                    busy_counts[:-1] += busy
                    injected += arrivals.sum()
                    delivered += inbox[-1]
            epoch += 1
            if not counting:
                continue
            steps += config.epoch_length

            # normalized throughput
            new_stat = delivered / injected if injected > 0 else 0.
            if stat is not None:
                drift = abs(new_stat - stat)
            stat = new_stat
            if steps >= required and drift < config.drift_tol:
                converged = True
                break

        eta = busy_counts / steps
        eta[-1] = 0.
        self.last_run = SimulationRun(beta, steps, epoch, stat, drift, converged)
        if not converged:
            logger.warning('beta=%.3e: epoch cap %d reached (drift %.2e, %d steps)',
                           beta, config.max_epochs, drift, steps)
        return eta, converged


class BetaSearch(object):

    def __init__(self, config=DEFAULT_CONFIG, sampler=None):
        self.config = config
        self.sampler = sampler if sampler is not None else UniformSampler(config.seed)
        self.beta_hist = []
        self.runs = []

    def find_stable_beta(self, graph, J, alias_sampler):
        """halve beta until max(eta) <= safety*(1-e1-e2)
        Returns:
            beta, eta
        """
        config = self.config
        bound = config.stability_bound
        simulator = QueueSimulator(alias_sampler, J, self.sampler, config)
        self.beta_hist, self.runs = [], []

        beta = config.initial_beta
        for _ in range(config.max_halvings):
            if beta <= config.min_beta:
                raise NoStableRateFound(
                    f'beta fell to {beta:.3e} (floor {config.min_beta:.3e}) on a graph with {graph.num_vertices()} vertices')
            eta, converged = simulator.estimate_occupancy(beta)
            self.beta_hist.append(beta)
            self.runs.append(simulator.last_run)
            mx = np.max(eta)
            logger.debug('beta=%.3e max(eta)=%.4f bound=%.4f converged=%s', beta, mx, bound, converged)
            if converged and mx <= bound:
                return beta, eta
            beta /= 2
        raise NoStableRateFound(
            f'no stable beta within {config.max_halvings} halvings (last candidate {self.beta_hist[-1]:.3e})')


class QueueSolver(object):
    def __init__(self,
                config=None,
                sampler=None,
                print_process=False
                ):

        # setting
        self.config = config if config is not None else DEFAULT_CONFIG
        self.sampler = sampler
        self.print_process = print_process

        # outputs of the last solve
        self.parts = []
        self.eta = []
        self.betas = []
        self.beta_hist = []
        self.x = None

    def _validate(self, graph, b):
        n = graph.num_vertices()
        if n < 2:
            raise InvalidInput(f'at least two vertices are required, got {n}')
        P = graph.transition_matrix()
        if issparse(P):
            P = P.toarray()
        P = np.asarray(P, dtype=float)
        if P.shape != (n, n):
            raise InvalidInput(f'transition matrix has shape {P.shape}, expected ({n}, {n})')
        row_sums = P.sum(axis=1)
        bad = np.where(np.abs(row_sums - 1.) > self.config.prob_tol)[0]
        if len(bad) > 0:
            raise InvalidInput(f'rows {list(bad)} of the transition matrix do not sum to 1')
        d = np.asarray(graph.degree_vector(), dtype=float)
        if d.shape != (n,) or np.any(d <= 0.):
            raise InvalidInput('degree vector must hold n strictly positive entries')
        b = np.asarray(b, dtype=float)
        if b.shape != (n,):
            raise InvalidInput(f'b has shape {b.shape}, expected ({n},)')
        if not np.all(np.isfinite(b)):
            raise InvalidInput('b must be finite')
        if b[-1] == 0.:
            raise InvalidInput('b[n-1] must be non-zero, it is the reference demand')
        if abs(b.sum()) > 1e-8 * max(1., np.abs(b).max()):
            logger.warning('b sums to %.3e, the Laplacian system has no exact solution', b.sum())
        return P, d, b

    def solve(self, graph, b):
        """
        Returns:
            x (array): canonical solution of L x = b
            beta (float): accepted injection scale
        """
        P, d, b = self._validate(graph, b)
        config = self.config
        sampler = self.sampler if self.sampler is not None else UniformSampler(config.seed)

        alias_sampler = AliasSampler(P, tol=config.prob_tol)
        J = compute_J(b)
        if np.all(J[:-1] >= 0.):
            parts = [(1., b)]
        else:
            parts = split_demand(b)
            if self.print_process:
                logger.info('signed demand: solving %d components', len(parts))

        x = np.zeros_like(b)
        self.parts = parts
        self.eta, self.betas, self.beta_hist = [], [], []
        for sign, bk in parts:
            search = BetaSearch(config, sampler)
            beta, eta = search.find_stable_beta(graph, compute_J(bk), alias_sampler)
            x += sign * canonical_solution(eta, beta, d, bk, method=config.canonical)
            self.eta.append(eta)
            self.betas.append(beta)
            self.beta_hist.append(search.beta_hist)
        if config.canonical == 'center':
            x -= x.mean()
        self.x = x

        beta = min(self.betas)
        logger.info('accepted beta=%.4e after %d simulation runs', beta, sum(len(h) for h in self.beta_hist))
        if self.print_process:
            logger.info('RMS residual: %.6f', residual(graph, b, x))
        return x, beta


def solve(graph, b, config=None, sampler=None):
    return QueueSolver(config, sampler).solve(graph, b)
