# Exception types raised by the tuning core


class TuningError(Exception):
    """Base class for all tuning errors."""
    pass


class InvalidArgument(TuningError, ValueError):
    """Raised when n, k, r, the grid, the seed or the dataset shape is invalid."""
    pass


class TrainingFailure(TuningError, RuntimeError):
    """Raised by a train capability when a model cannot be fit."""
    pass


class DegenerateScore(TuningError, ArithmeticError):
    """Raised when a goodness-of-fit score is undefined (e.g. zero total sum of squares)."""
    pass
