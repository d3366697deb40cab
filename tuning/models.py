# Model building utilities
# Estimator factories plus the train/predict capabilities handed to the tuner

import warnings

import numpy as np
import pandas as pd
from sklearn.compose import ColumnTransformer, make_column_selector
from sklearn.ensemble import RandomForestClassifier, RandomForestRegressor
from sklearn.exceptions import ConvergenceWarning
from sklearn.linear_model import Lasso, LogisticRegression, Ridge
from sklearn.neural_network import MLPClassifier, MLPRegressor
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import OneHotEncoder, StandardScaler
from xgboost import XGBClassifier, XGBRegressor
from xgboost.core import XGBoostError

from .errors import InvalidArgument, TrainingFailure
from .scoring import OutcomeKind


SUPPORTED_MODELS = {
    'continuous': ['ridge', 'lasso', 'random_forest_reg', 'gbm_reg', 'mlp_reg'],
    'binary': ['logistic_regression', 'random_forest_clf', 'gbm_clf', 'mlp_clf'],
}

# Models that support random_state parameter
MODELS_WITH_RANDOM_STATE = [
    'random_forest_reg', 'gbm_reg', 'mlp_reg',
    'logistic_regression', 'random_forest_clf', 'gbm_clf', 'mlp_clf'
]

# Models that are deterministic (no random_state needed)
DETERMINISTIC_MODELS = ['ridge', 'lasso']

# Errors raised by estimators on bad data or bad hyperparameters
_FIT_ERRORS = (ValueError, TypeError, np.linalg.LinAlgError, XGBoostError, ConvergenceWarning)


def model_kind(model_type):
    """Return the OutcomeKind a model type predicts."""
    for kind, models in SUPPORTED_MODELS.items():
        if model_type in models:
            return OutcomeKind(kind)
    raise InvalidArgument(f"Unknown model type: '{model_type}'. Supported: {SUPPORTED_MODELS}")


def _normalize_params(model_type, params):
    params = dict(params or {})
    # Single hidden layer networks are tuned by width
    if model_type in ('mlp_reg', 'mlp_clf') and 'hidden_units' in params:
        params['hidden_layer_sizes'] = (int(params.pop('hidden_units')),)
    return params


def build_preprocessor():
    """Standardize numeric columns, one-hot encode everything else."""
    return ColumnTransformer([
        ('num', StandardScaler(), make_column_selector(dtype_include=np.number)),
        ('cat', OneHotEncoder(handle_unknown='ignore', sparse_output=False),
         make_column_selector(dtype_exclude=np.number)),
    ])


def build_estimator(model_type, params=None, seed=0):
    """
    Build a bare estimator for `model_type`.

    Note: Ridge and Lasso are deterministic solvers and don't use random_state.
    Tree ensembles, boosted trees and networks use random_state for reproducibility.
    """
    params = _normalize_params(model_type, params)

    # Continuous outcome models
    if model_type == 'ridge':
        return Ridge(**params)

    elif model_type == 'lasso':
        return Lasso(**params)

    elif model_type == 'random_forest_reg':
        return RandomForestRegressor(random_state=seed, **params)

    elif model_type == 'gbm_reg':
        return XGBRegressor(random_state=seed, verbosity=0, **params)

    elif model_type == 'mlp_reg':
        return MLPRegressor(random_state=seed, **params)

    # Binary outcome models
    elif model_type == 'logistic_regression':
        return LogisticRegression(random_state=seed, **params)

    elif model_type == 'random_forest_clf':
        return RandomForestClassifier(random_state=seed, **params)

    elif model_type == 'gbm_clf':
        return XGBClassifier(random_state=seed, verbosity=0, eval_metric='logloss', **params)

    elif model_type == 'mlp_clf':
        return MLPClassifier(random_state=seed, **params)

    else:
        raise InvalidArgument(
            f"Unknown model type: '{model_type}'. "
            f"Supported: {SUPPORTED_MODELS}"
        )


def build_model(model_type, params=None, seed=0):
    """Build a preprocessing + estimator pipeline for `model_type`."""
    return Pipeline([
        ('preprocess', build_preprocessor()),
        ('model', build_estimator(model_type, params, seed)),
    ])


def _as_frame(X):
    if isinstance(X, pd.DataFrame):
        return X
    return pd.DataFrame(np.asarray(X))


def make_trainer(model_type, outcome_kind, seed=0, base_params=None, strict_convergence=False):
    """
    Build the (train, predict) capabilities for the tuning driver.

    train(X, y, params) fits a fresh pipeline with base_params updated by the
    grid point; estimator errors are re-raised as TrainingFailure.
    predict(model, X) returns predictions for continuous outcomes and the
    positive-class probability for binary outcomes.
    """
    kind = OutcomeKind.parse(outcome_kind)
    if model_kind(model_type) != kind:
        raise InvalidArgument(f"Model '{model_type}' cannot be used for {kind.value} outcomes")
    base_params = dict(base_params or {})

    def train(X, y, params):
        merged = {**base_params, **(params or {})}
        if kind == OutcomeKind.BINARY and len(np.unique(np.asarray(y))) < 2:
            raise TrainingFailure(f"{model_type}: training data contains a single class")
        try:
            model = build_model(model_type, merged, seed)
            with warnings.catch_warnings():
                if strict_convergence:
                    warnings.simplefilter('error', ConvergenceWarning)
                model.fit(_as_frame(X), np.asarray(y))
        except _FIT_ERRORS as e:
            raise TrainingFailure(f"{model_type} failed to fit with {merged}: {e}") from e
        return model

    if kind == OutcomeKind.CONTINUOUS:
        def predict(model, X):
            return np.asarray(model.predict(_as_frame(X)), dtype=float)
    else:
        def predict(model, X):
            proba = model.predict_proba(_as_frame(X))
            positive = list(model.classes_).index(1)
            return np.asarray(proba[:, positive], dtype=float)

    return train, predict


def get_model_info(model_type):
    """Get information about a model type."""
    info = {
        'type': model_type,
        'supports_random_state': model_type in MODELS_WITH_RANDOM_STATE,
        'is_deterministic': model_type in DETERMINISTIC_MODELS,
        'outcome_kind': model_kind(model_type).value,
    }
    return info
