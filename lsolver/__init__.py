from lsolver.config import SolverConfig, DEFAULT_CONFIG
from lsolver.errors import (SolverError, InvalidInput, ConfigError, NumericDegeneracy,
                            ConvergenceFailure, NoStableRateFound)
from lsolver.graph import Graph
from lsolver.sampler import UniformSampler, AliasTable, AliasSampler
from lsolver.model import (QueueSimulator, BetaSearch, QueueSolver, canonical_solution,
                           compute_J, solve)
from lsolver.utils import residual, exact_solution

__version__ = '0.1.0'
