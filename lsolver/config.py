import math
from dataclasses import dataclass, asdict, replace
from typing import Optional

from lsolver.errors import ConfigError

CANONICAL_METHODS = ('center', 'zstar')


@dataclass(frozen=True)
class SolverConfig:
    """Algorithm parameters of the queueing solver.

    Arguments:
        e1, e2: tolerances of the stability bound safety*(1-e1-e2)
        k: accuracy constant, together with e2 fixes the sample floor 4 ln(n) / (k^2 e2^2)
        safety: margin below the theoretical stability boundary
        initial_beta: first candidate injection scale of the halving search
        epoch_length: simulation steps per epoch
        max_epochs: epoch cap of one simulation run (forced termination)
        drift_tol: convergence threshold on the epoch-to-epoch throughput change
        warmup_epochs: epochs discarded before occupancy is counted
        max_halvings: maximum number of beta candidates
        min_beta: beta floor, reaching it means no stable rate exists
        prob_tol: tolerance on row sums of the transition matrix
        seed: seed of the uniform sampler, None draws fresh entropy
        canonical: 'center' (mean-centering) or 'zstar' (legacy correction)
    """

    e1: float = 0.1
    e2: float = 0.1
    k: float = 0.1
    safety: float = 0.75
    initial_beta: float = 0.5
    epoch_length: int = 1000
    max_epochs: int = 2000
    drift_tol: float = 1e-3
    warmup_epochs: int = 0
    max_halvings: int = 50
    min_beta: float = 1e-12
    prob_tol: float = 1e-8
    seed: Optional[int] = None
    canonical: str = 'center'

    def __post_init__(self):
        self.validate()

    @property
    def stability_bound(self):
        return self.safety * (1 - self.e1 - self.e2)

    def samples_required(self, n):
        """number of counted steps needed before a run may be declared converged"""
        T = math.ceil(4 * math.log(n) / (self.k * self.k * self.e2 * self.e2))
        return max(T, self.epoch_length)

    def validate(self):
        for name in ('e1', 'e2', 'k'):
            v = getattr(self, name)
            if not 0. < v < 1.:
                raise ConfigError(f'{name} must lie in (0, 1), got {v}')
        if self.e1 + self.e2 >= 1.:
            raise ConfigError(f'e1 + e2 must be below 1, got {self.e1 + self.e2}')
        if not 0. < self.safety <= 1.:
            raise ConfigError(f'safety must lie in (0, 1], got {self.safety}')
        if not self.initial_beta > 0.:
            raise ConfigError(f'initial_beta must be positive, got {self.initial_beta}')
        if self.min_beta < 0. or self.min_beta >= self.initial_beta:
            raise ConfigError(f'min_beta must lie in [0, initial_beta), got {self.min_beta}')
        for name in ('epoch_length', 'max_epochs', 'max_halvings'):
            v = getattr(self, name)
            if not isinstance(v, int) or v <= 0:
                raise ConfigError(f'{name} must be a positive integer, got {v}')
        if not isinstance(self.warmup_epochs, int) or self.warmup_epochs < 0:
            raise ConfigError(f'warmup_epochs must be a non-negative integer, got {self.warmup_epochs}')
        if self.warmup_epochs >= self.max_epochs:
            raise ConfigError('warmup_epochs must be smaller than max_epochs')
        if not self.drift_tol > 0.:
            raise ConfigError(f'drift_tol must be positive, got {self.drift_tol}')
        if not self.prob_tol > 0.:
            raise ConfigError(f'prob_tol must be positive, got {self.prob_tol}')
        if self.canonical not in CANONICAL_METHODS:
            raise ConfigError(f'canonical must be one of {CANONICAL_METHODS}, got {self.canonical!r}')

    def update(self, **kwargs):
        return replace(self, **kwargs)

    def to_dict(self):
        return asdict(self)


DEFAULT_CONFIG = SolverConfig()
