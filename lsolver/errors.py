class SolverError(Exception):
    pass


class InvalidInput(SolverError, ValueError):
    """malformed graph or demand vector"""
    pass


class ConfigError(InvalidInput):
    pass


class NumericDegeneracy(SolverError, ValueError):
    """probabilities handed to the alias construction do not sum to one"""
    pass


class ConvergenceFailure(SolverError):
    pass


class NoStableRateFound(ConvergenceFailure):
    pass
