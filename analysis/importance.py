# Variable importance
# Permutation importance of the raw feature columns of a fitted pipeline

import numpy as np
import pandas as pd
from sklearn.inspection import permutation_importance

DEFAULT_SCORING = {
    'continuous': 'r2',
    'binary': 'neg_log_loss',
}


def compute_permutation_importance(
    model,
    X: pd.DataFrame,
    y,
    outcome_kind: str = 'continuous',
    n_repeats: int = 10,
    scoring: str = None,
    random_state: int = 42
) -> pd.DataFrame:
    """
    Compute permutation importance for a fitted model.

    Columns are permuted in the raw feature table, so a one-hot encoded
    categorical feature is scored as one variable.

    Args:
        model: Fitted pipeline from tuning.models.build_model
        X: Feature table
        y: Target values
        outcome_kind: 'continuous' or 'binary', picks the default scoring
        n_repeats: Number of permutation repeats
        scoring: sklearn scoring name (overrides the default)
        random_state: Random seed

    Returns:
        DataFrame sorted by mean importance, most important first
    """
    result = permutation_importance(
        model, X, np.asarray(y),
        n_repeats=n_repeats,
        random_state=random_state,
        scoring=scoring or DEFAULT_SCORING[outcome_kind],
    )

    importance_df = pd.DataFrame({
        'feature': list(X.columns),
        'importance_mean': result.importances_mean,
        'importance_std': result.importances_std,
        'importance_min': result.importances.min(axis=1),
        'importance_max': result.importances.max(axis=1)
    })

    return importance_df.sort_values(
        'importance_mean',
        ascending=False
    ).reset_index(drop=True)
