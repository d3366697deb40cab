# Pooled held-out scoring
# One scoring strategy per outcome kind; scores are computed over the pooled
# predictions of a whole replicate

from enum import Enum
from typing import Callable, Dict, Tuple

import numpy as np
from sklearn.metrics import accuracy_score, log_loss, mean_absolute_error, mean_squared_error

from .errors import DegenerateScore, InvalidArgument


class OutcomeKind(str, Enum):
    CONTINUOUS = 'continuous'
    BINARY = 'binary'

    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise InvalidArgument(
                f"Unknown outcome kind '{value}'. Allowed: {[k.value for k in cls]}"
            ) from None


def _as_arrays(y_true, y_pred) -> Tuple[np.ndarray, np.ndarray]:
    y_true = np.asarray(y_true, dtype=float).ravel()
    y_pred = np.asarray(y_pred, dtype=float).ravel()
    if y_true.shape != y_pred.shape:
        raise InvalidArgument(f"Got {y_pred.size} predictions for {y_true.size} outcomes")
    if y_true.size == 0:
        raise DegenerateScore("Cannot score an empty set of predictions")
    if not np.isfinite(y_pred).all():
        raise DegenerateScore(f"{int((~np.isfinite(y_pred)).sum())} predictions are not finite")
    return y_true, y_pred


def pooled_r2(y_true, y_pred) -> float:
    """1 - SSE/SST over all pooled held-out predictions."""
    y_true, y_pred = _as_arrays(y_true, y_pred)
    sse = float(np.sum((y_true - y_pred) ** 2))
    sst = float(np.sum((y_true - y_true.mean()) ** 2))
    if sst == 0.0:
        raise DegenerateScore("Total sum of squares is zero (constant outcome); R2 is undefined")
    return 1.0 - sse / sst


def pooled_rmse(y_true, y_pred) -> float:
    y_true, y_pred = _as_arrays(y_true, y_pred)
    return float(np.sqrt(mean_squared_error(y_true, y_pred)))


def pooled_mae(y_true, y_pred) -> float:
    y_true, y_pred = _as_arrays(y_true, y_pred)
    return float(mean_absolute_error(y_true, y_pred))


def _check_probabilities(y_pred):
    if (y_pred < 0).any() or (y_pred > 1).any():
        raise InvalidArgument("Binary predictions must be probabilities in [0, 1]")


def deviance_r2(y_true, y_pred) -> float:
    """
    Deviance-based pseudo R2 for binary outcomes: 1 - D_model / D_null.

    D_null is the deviance of predicting the observed base rate for every
    record.
    """
    y_true, y_pred = _as_arrays(y_true, y_pred)
    _check_probabilities(y_pred)
    base_rate = y_true.mean()
    if base_rate in (0.0, 1.0):
        raise DegenerateScore("Outcome has a single class; null deviance is zero")
    y_int = y_true.astype(int)
    d_model = log_loss(y_int, y_pred, labels=[0, 1], normalize=False)
    d_null = log_loss(y_int, np.full_like(y_true, base_rate), labels=[0, 1], normalize=False)
    return 1.0 - d_model / d_null


def brier_skill(y_true, y_pred) -> float:
    """1 - Brier / Brier_null, i.e. R2 of the predicted probabilities."""
    y_true, y_pred = _as_arrays(y_true, y_pred)
    _check_probabilities(y_pred)
    return pooled_r2(y_true, y_pred)


def pooled_accuracy(y_true, y_pred) -> float:
    y_true, y_pred = _as_arrays(y_true, y_pred)
    _check_probabilities(y_pred)
    return float(accuracy_score(y_true.astype(int), (y_pred >= 0.5).astype(int)))


class Scorer:
    """A named pooled scoring strategy with its direction and outcome kind."""

    def __init__(self, name: str, func: Callable, greater_is_better: bool, kind: OutcomeKind):
        self.name = name
        self.func = func
        self.greater_is_better = greater_is_better
        self.kind = kind

    def __call__(self, y_true, y_pred) -> float:
        return self.func(y_true, y_pred)

    def __repr__(self):
        direction = 'max' if self.greater_is_better else 'min'
        return f"Scorer({self.name!r}, {direction}, {self.kind.value})"


SCORERS: Dict[str, Scorer] = {
    'r2': Scorer('r2', pooled_r2, True, OutcomeKind.CONTINUOUS),
    'rmse': Scorer('rmse', pooled_rmse, False, OutcomeKind.CONTINUOUS),
    'mae': Scorer('mae', pooled_mae, False, OutcomeKind.CONTINUOUS),
    'deviance_r2': Scorer('deviance_r2', deviance_r2, True, OutcomeKind.BINARY),
    'brier_skill': Scorer('brier_skill', brier_skill, True, OutcomeKind.BINARY),
    'accuracy': Scorer('accuracy', pooled_accuracy, True, OutcomeKind.BINARY),
}

DEFAULT_METRICS = {
    OutcomeKind.CONTINUOUS: 'r2',
    OutcomeKind.BINARY: 'deviance_r2',
}


def get_scorer(metric=None, outcome_kind=OutcomeKind.CONTINUOUS) -> Scorer:
    """Resolve a metric name (or the outcome kind's default) to a Scorer."""
    kind = OutcomeKind.parse(outcome_kind)
    name = metric or DEFAULT_METRICS[kind]
    if name not in SCORERS:
        raise InvalidArgument(f"Unknown metric '{name}'. Allowed: {sorted(SCORERS)}")
    scorer = SCORERS[name]
    if scorer.kind != kind:
        raise InvalidArgument(f"Metric '{name}' does not apply to {kind.value} outcomes")
    return scorer
