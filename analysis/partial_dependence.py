# Partial dependence
# Average prediction as one feature is swept over its observed range

import numpy as np
import pandas as pd
from typing import Callable, Dict, List, Tuple


def compute_partial_dependence(
    model,
    X: pd.DataFrame,
    features: List[str],
    predict: Callable,
    grid_resolution: int = 20,
    percentiles: Tuple[float, float] = (0.05, 0.95)
) -> Dict:
    """
    Compute partial dependence for selected numeric features.

    Args:
        model: Fitted model
        X: Feature table
        features: Names of numeric features to analyze
        predict: predict(model, X) capability (probabilities for binary outcomes)
        grid_resolution: Number of grid points
        percentiles: Percentile range for feature values

    Returns:
        Dict feature -> {'grid', 'pd_values', 'feature_range'}
    """
    results = {}

    for feature in features:
        if feature not in X.columns:
            raise ValueError(f"Feature '{feature}' not found. Available: {list(X.columns)}")
        if not pd.api.types.is_numeric_dtype(X[feature]):
            raise ValueError(f"Partial dependence needs a numeric feature, '{feature}' is {X[feature].dtype}")

        values = X[feature].to_numpy(dtype=float)
        low = np.percentile(values, percentiles[0] * 100)
        high = np.percentile(values, percentiles[1] * 100)
        grid = np.unique(np.linspace(low, high, grid_resolution))

        pd_values = []
        for grid_val in grid:
            X_modified = X.copy()
            X_modified[feature] = grid_val
            pd_values.append(float(np.mean(predict(model, X_modified))))

        results[feature] = {
            'grid': grid,
            'pd_values': np.array(pd_values),
            'feature_range': (float(low), float(high)),
        }

    return results
