import pytest
import numpy as np
import pandas as pd

from tuning.driver import tune, ScoreMatrix
from tuning.errors import InvalidArgument, TrainingFailure, DegenerateScore
from tuning.models import make_trainer


def _oracle_capabilities(y_true):
    """
    Toy train/predict pair over the grid point 'kind':
      - 'oracle' predicts the true outcome of each held-out record
      - 'mean' predicts the training mean
      - 'zero' predicts 0
    """
    y_true = np.asarray(y_true, dtype=float)

    def train(X, y, params):
        return {"kind": params["kind"], "mean": float(np.mean(y))}

    def predict(model, X):
        idx = np.asarray(X["row"], dtype=int)
        if model["kind"] == "oracle":
            return y_true[idx]
        if model["kind"] == "mean":
            return np.full(len(idx), model["mean"])
        return np.zeros(len(idx))

    return train, predict


@pytest.fixture
def oracle_data(seed):
    rng = np.random.default_rng(seed)
    n = 30
    X = pd.DataFrame({"row": np.arange(n), "x": rng.normal(size=n)})
    y = pd.Series(rng.normal(loc=5.0, size=n), name="y")
    return X, y


def test_tune_selects_exact_predictor(oracle_data):
    X, y = oracle_data
    train, predict = _oracle_capabilities(y)
    grid = [{"kind": "zero"}, {"kind": "oracle"}, {"kind": "mean"}]

    best, matrix = tune(X, y, grid, k=3, r=2, seed=1, train=train, predict=predict, verbose=False)

    assert best == {"kind": "oracle"}
    assert matrix.scores.shape == (2, 3)
    assert np.allclose(matrix.scores[:, 1], 1.0)
    assert matrix.best_index() == 1


def test_tune_lower_is_better_metric(oracle_data):
    X, y = oracle_data
    train, predict = _oracle_capabilities(y)
    grid = [{"kind": "mean"}, {"kind": "zero"}, {"kind": "oracle"}]

    best, matrix = tune(X, y, grid, k=3, r=2, seed=1, train=train, predict=predict,
                        metric="rmse", verbose=False)

    assert best == {"kind": "oracle"}
    assert not matrix.greater_is_better
    assert np.allclose(matrix.scores[:, 2], 0.0)


def test_tune_ties_go_to_first_grid_point(oracle_data):
    X, y = oracle_data
    train, predict = _oracle_capabilities(y)
    grid = [{"kind": "mean", "tag": 1}, {"kind": "mean", "tag": 2}]

    best, _ = tune(X, y, grid, k=5, r=1, seed=0, train=train, predict=predict, verbose=False)
    assert best == {"kind": "mean", "tag": 1}


def test_tune_is_reproducible(linear_xy):
    X, y = linear_xy
    train, predict = make_trainer("ridge", "continuous", seed=0)
    grid = {"alpha": [0.01, 1.0, 100.0]}

    best1, m1 = tune(X, y, grid, k=5, r=3, seed=11, train=train, predict=predict, verbose=False)
    best2, m2 = tune(X, y, grid, k=5, r=3, seed=11, train=train, predict=predict, verbose=False)

    assert best1 == best2
    assert np.array_equal(m1.scores, m2.scores)


def test_tune_different_seed_changes_scores(linear_xy):
    X, y = linear_xy
    train, predict = make_trainer("ridge", "continuous", seed=0)
    grid = {"alpha": [1.0, 100.0]}

    _, m1 = tune(X, y, grid, k=5, r=2, seed=1, train=train, predict=predict, verbose=False)
    _, m2 = tune(X, y, grid, k=5, r=2, seed=2, train=train, predict=predict, verbose=False)
    assert not np.allclose(m1.scores, m2.scores)


def test_tune_pools_predictions_per_replicate(linear_xy):
    """Each replicate score is 1 - SSE/SST over all n pooled predictions."""
    X, y = linear_xy
    calls = []

    def train(X_train, y_train, params):
        return float(np.mean(y_train))

    def predict(model, X_holdout):
        calls.append(len(X_holdout))
        return np.full(len(X_holdout), model)

    _, matrix = tune(X, y, {"dummy": [0]}, k=5, r=1, seed=3, train=train, predict=predict, verbose=False)

    assert sum(calls) == len(y)
    # training-fold means differ from the global mean, so pooled R2 is slightly negative
    assert matrix.scores[0, 0] < 0.0


def test_grid_points_are_scored_in_isolation(oracle_data):
    """A bad grid point evaluated after a perfect one must not inherit its predictions."""
    X, y = oracle_data
    train, predict = _oracle_capabilities(y)
    grid = [{"kind": "oracle"}, {"kind": "zero"}]

    _, matrix = tune(X, y, grid, k=3, r=2, seed=5, train=train, predict=predict, verbose=False)

    y_arr = y.to_numpy()
    expected_zero = 1 - np.sum(y_arr ** 2) / np.sum((y_arr - y_arr.mean()) ** 2)
    assert np.allclose(matrix.scores[:, 1], expected_zero)


def test_training_failure_propagates(oracle_data):
    X, y = oracle_data
    seen = []

    def train(X_train, y_train, params):
        seen.append(params["kind"])
        if params["kind"] == "broken":
            raise TrainingFailure("cannot fit")
        return None

    def predict(model, X_holdout):
        return np.zeros(len(X_holdout))

    with pytest.raises(TrainingFailure, match="cannot fit"):
        tune(X, y, [{"kind": "ok"}, {"kind": "broken"}], k=3, r=2, seed=0,
             train=train, predict=predict, verbose=False)
    assert "broken" in seen


def test_degenerate_outcome_raises(oracle_data):
    X, _ = oracle_data
    y = pd.Series(np.full(len(X), 2.0))

    def train(X_train, y_train, params):
        return 2.0

    def predict(model, X_holdout):
        return np.full(len(X_holdout), model)

    with pytest.raises(DegenerateScore):
        tune(X, y, {"a": [1]}, k=3, r=1, seed=0, train=train, predict=predict, verbose=False)


def test_wrong_prediction_length_raises(oracle_data):
    X, y = oracle_data

    def train(X_train, y_train, params):
        return None

    def predict(model, X_holdout):
        return np.zeros(len(X_holdout) + 1)

    with pytest.raises(InvalidArgument, match="held-out records"):
        tune(X, y, {"a": [1]}, k=3, r=1, seed=0, train=train, predict=predict, verbose=False)


@pytest.mark.parametrize("kwargs", [
    {"k": 1},
    {"k": 0},
    {"k": 31},
    {"r": 0},
    {"seed": -1},
    {"seed": 1.5},
    {"grid": {}},
    {"grid": {"a": []}},
])
def test_invalid_arguments_fail_before_training(oracle_data, kwargs):
    X, y = oracle_data
    calls = []

    def train(X_train, y_train, params):
        calls.append(1)
        return None

    def predict(model, X_holdout):
        return np.zeros(len(X_holdout))

    args = {"grid": {"a": [1, 2]}, "k": 3, "r": 2, "seed": 0}
    args.update(kwargs)
    with pytest.raises(InvalidArgument):
        tune(X, y, train=train, predict=predict, verbose=False, **args)
    assert calls == [], "No model should be trained when arguments are invalid"


def test_mismatched_lengths_rejected(oracle_data):
    X, y = oracle_data
    train, predict = _oracle_capabilities(y)
    with pytest.raises(InvalidArgument, match="records"):
        tune(X, y.iloc[:-1], {"kind": ["mean"]}, k=3, r=1, seed=0,
             train=train, predict=predict, verbose=False)


def test_binary_outcome_must_be_zero_one(oracle_data):
    X, _ = oracle_data
    y = pd.Series(np.tile([1, 2], len(X) // 2))
    train, predict = _oracle_capabilities(y)
    with pytest.raises(InvalidArgument, match="0/1"):
        tune(X, y, {"kind": ["mean"]}, k=3, r=1, seed=0, train=train, predict=predict,
             outcome_kind="binary", verbose=False)


def test_non_numeric_outcome_rejected_before_training(oracle_data):
    X, _ = oracle_data
    y = pd.Series(["low", "high"] * (len(X) // 2))
    calls = []

    def train(X_train, y_train, params):
        calls.append(1)
        return None

    def predict(model, X_holdout):
        return np.zeros(len(X_holdout))

    with pytest.raises(InvalidArgument, match="numeric"):
        tune(X, y, {"a": [1]}, k=3, r=1, seed=0, train=train, predict=predict, verbose=False)
    assert calls == []


def test_parallel_matches_sequential(linear_xy):
    X, y = linear_xy
    train, predict = make_trainer("ridge", "continuous", seed=0)
    grid = {"alpha": [0.1, 10.0]}

    _, seq = tune(X, y, grid, k=4, r=2, seed=9, train=train, predict=predict, n_jobs=1, verbose=False)
    _, par = tune(X, y, grid, k=4, r=2, seed=9, train=train, predict=predict, n_jobs=2, verbose=False)
    assert np.allclose(seq.scores, par.scores)


def test_binary_tuning_with_logistic_regression(tiny_housing_df):
    X = tiny_housing_df[["sqft", "rooms", "age", "district"]]
    y = (tiny_housing_df["expensive"] == "yes").astype(int)
    train, predict = make_trainer("logistic_regression", "binary", seed=0, base_params={"max_iter": 500})

    best, matrix = tune(X, y, {"C": [0.001, 1.0]}, k=3, r=2, seed=4,
                        train=train, predict=predict, outcome_kind="binary", verbose=False)

    assert matrix.metric == "deviance_r2"
    assert best in matrix.grid
    assert np.isfinite(matrix.scores).all()


def test_score_matrix_views():
    matrix = ScoreMatrix(
        grid=[{"alpha": 0.1}, {"alpha": 1.0}],
        scores=np.array([[0.5, 0.7], [0.6, 0.9]]),
        metric="r2",
        greater_is_better=True,
    )
    assert matrix.best_index() == 1
    assert matrix.best_params == {"alpha": 1.0}
    assert matrix.best_score == pytest.approx(0.8)

    frame = matrix.to_frame()
    assert list(frame.columns) == ["alpha=0.1", "alpha=1.0"]
    assert frame.shape == (2, 2)

    summary = matrix.summary()
    assert list(summary["r2_mean"]) == pytest.approx([0.55, 0.8])

    d = matrix.to_dict()
    assert d["best_index"] == 1
    assert d["scores"] == [[0.5, 0.7], [0.6, 0.9]]
