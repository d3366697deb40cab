# Repeated k-fold grid-search tuning
# Drives injected train/predict capabilities over replicates x folds x grid points

from dataclasses import dataclass
from typing import Any, Callable, Dict, List

import numpy as np
import pandas as pd
from joblib import Parallel, delayed

from .errors import InvalidArgument
from .grid import GridSpec, expand_grid, format_point
from .partition import check_int, check_seed, derive_seed, iter_folds, partition
from .scoring import OutcomeKind, Scorer, get_scorer


@dataclass
class ScoreMatrix:
    """
    Per-replicate pooled held-out scores for every grid point.

    scores[i, j] is the score of grid point j computed over the pooled
    held-out predictions of replicate i.
    """
    grid: List[Dict[str, Any]]
    scores: np.ndarray
    metric: str
    greater_is_better: bool

    @property
    def n_replicates(self) -> int:
        return self.scores.shape[0]

    @property
    def mean_scores(self) -> np.ndarray:
        return self.scores.mean(axis=0)

    @property
    def std_scores(self) -> np.ndarray:
        return self.scores.std(axis=0)

    def best_index(self) -> int:
        """Index of the best grid point; ties go to the first in grid order."""
        means = self.mean_scores
        return int(np.argmax(means) if self.greater_is_better else np.argmin(means))

    @property
    def best_params(self) -> Dict[str, Any]:
        return dict(self.grid[self.best_index()])

    @property
    def best_score(self) -> float:
        return float(self.mean_scores[self.best_index()])

    def to_frame(self) -> pd.DataFrame:
        """Replicates as rows, grid points (labelled) as columns."""
        return pd.DataFrame(
            self.scores,
            index=pd.RangeIndex(self.n_replicates, name='replicate'),
            columns=[format_point(p) for p in self.grid],
        )

    def summary(self) -> pd.DataFrame:
        """One row per grid point: hyperparameters, mean and std of the score."""
        rows = []
        for j, point in enumerate(self.grid):
            row = dict(point)
            row[f'{self.metric}_mean'] = float(self.mean_scores[j])
            row[f'{self.metric}_std'] = float(self.std_scores[j])
            rows.append(row)
        return pd.DataFrame(rows)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'metric': self.metric,
            'greater_is_better': self.greater_is_better,
            'grid': [dict(p) for p in self.grid],
            'scores': self.scores.tolist(),
            'mean': [float(v) for v in self.mean_scores],
            'std': [float(v) for v in self.std_scores],
            'best_index': self.best_index(),
        }


def _take(data, idx):
    if hasattr(data, 'iloc'):
        return data.iloc[idx]
    return np.asarray(data)[idx]


def _fit_predict(train, predict, X, y, train_idx, holdout_idx, params):
    model = train(_take(X, train_idx), _take(y, train_idx), dict(params))
    pred = np.asarray(predict(model, _take(X, holdout_idx)), dtype=float).ravel()
    if pred.shape[0] != len(holdout_idx):
        raise InvalidArgument(
            f"predict returned {pred.shape[0]} values for {len(holdout_idx)} held-out records"
        )
    return pred


def _validate_inputs(X, y, k, r, seed, kind):
    n = len(X)
    if len(y) != n:
        raise InvalidArgument(f"X has {n} records but y has {len(y)}")
    k = check_int('k', k, 2)
    r = check_int('r', r, 1)
    seed = check_seed(seed)
    if n < k:
        raise InvalidArgument(f"k ({k}) cannot exceed the number of records n ({n})")

    try:
        y_values = np.asarray(y, dtype=float).ravel()
    except (TypeError, ValueError) as e:
        raise InvalidArgument(f"Outcome must be numeric (0/1 for binary outcomes): {e}") from e
    if not np.isfinite(y_values).all():
        raise InvalidArgument("Outcome contains NaN or infinite values")
    if kind == OutcomeKind.BINARY and not np.isin(y_values, [0.0, 1.0]).all():
        raise InvalidArgument("Binary outcome must be encoded as 0/1")
    return n, k, r, seed, y_values


def tune(X, y, grid: GridSpec, k: int, r: int, seed: int,
         train: Callable, predict: Callable,
         outcome_kind=OutcomeKind.CONTINUOUS, metric: str = None,
         n_jobs: int = 1, verbose: bool = True):
    """
    Select hyperparameters by repeated k-fold cross-validation.

    For every replicate the records are re-partitioned with a seed derived
    from (seed, replicate). For every fold and grid point a model is trained
    on the other folds and predicts the held-out fold. Predictions of one grid
    point are pooled over all folds of the replicate and scored once; the
    per-replicate scores are then averaged per grid point.

    Args:
        X: Feature table (DataFrame or array), n records
        y: Outcome vector, n records
        grid: Mapping of name -> candidate values, or a list of grid points
        k: Number of folds (2 <= k <= n)
        r: Number of replicates (>= 1)
        seed: Non-negative integer base seed
        train: train(X_train, y_train, params) -> model
        predict: predict(model, X_holdout) -> predictions
        outcome_kind: OutcomeKind or 'continuous' / 'binary'
        metric: Scorer name (default depends on outcome_kind)
        n_jobs: joblib workers for the fits of one replicate
        verbose: Print progress

    Returns:
        (best_params, score_matrix)

    Raises:
        InvalidArgument: bad inputs, raised before any model is trained
        TrainingFailure: propagated unchanged from `train`
        DegenerateScore: the metric is undefined for a replicate
    """
    kind = OutcomeKind.parse(outcome_kind)
    scorer: Scorer = get_scorer(metric, kind)
    points = expand_grid(grid)
    n, k, r, seed, y_values = _validate_inputs(X, y, k, r, seed, kind)

    if verbose:
        print(f"Tuning {len(points)} grid points with {k}-fold x {r} replicates CV "
              f"({kind.value}, metric={scorer.name})...")

    scores = np.empty((r, len(points)), dtype=float)

    for rep in range(r):
        parts = partition(n, k, derive_seed(seed, rep))
        folds = list(iter_folds(parts, n))
        tasks = [(fold, g) for fold in range(k) for g in range(len(points))]

        results = Parallel(n_jobs=n_jobs)(
            delayed(_fit_predict)(train, predict, X, y, folds[fold][1], folds[fold][2], points[g])
            for fold, g in tasks
        )

        # one pooled prediction vector per grid point
        pooled = np.full((len(points), n), np.nan)
        for (fold, g), pred in zip(tasks, results):
            pooled[g, folds[fold][2]] = pred

        for g in range(len(points)):
            scores[rep, g] = scorer(y_values, pooled[g])

        if verbose:
            best_g = int(np.argmax(scores[rep]) if scorer.greater_is_better else np.argmin(scores[rep]))
            print(f"  replicate {rep + 1}/{r}: best {scorer.name}={scores[rep, best_g]:.4f} "
                  f"({format_point(points[best_g])})")

    matrix = ScoreMatrix(
        grid=points,
        scores=scores,
        metric=scorer.name,
        greater_is_better=scorer.greater_is_better,
    )
    return matrix.best_params, matrix
