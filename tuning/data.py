# Data loading and preprocessing utilities

import numpy as np
import pandas as pd


def load_dataset(config, dataset_path=None):
    """Load a delimited dataset from the given path or the configured one."""
    path = dataset_path or config['data'].get('dataset_path')
    if path is None:
        raise ValueError("No dataset path given (use --dataset or data.dataset_path)")

    sep = config['data'].get('separator', ',')
    print(f"Loading dataset: {path}")
    df = pd.read_csv(path, sep=sep)

    return df, path


def encode_binary_target(y, positive_class=None):
    """
    Encode a two-level outcome as 0/1.

    The positive class is `positive_class` if given, otherwise the second
    level in sorted order (so 0/1 and False/True keep their meaning).
    """
    levels = y.dropna().unique().tolist()
    try:
        levels = sorted(levels)
    except TypeError:
        # mixed types have no natural order
        levels = sorted(levels, key=str)
    if len(levels) != 2:
        raise ValueError(f"Binary target '{y.name}' must have exactly 2 levels, found {len(levels)}: {levels[:10]}")

    if positive_class is None:
        positive_class = levels[1]
    elif positive_class not in levels:
        # YAML may give the label as a string
        matches = [lvl for lvl in levels if str(lvl) == str(positive_class)]
        if not matches:
            raise ValueError(f"positive_class '{positive_class}' not found in target levels {levels}")
        positive_class = matches[0]

    encoded = (y == positive_class).astype(float)
    encoded[y.isnull()] = np.nan
    if not encoded.isnull().any():
        encoded = encoded.astype(int)
    return encoded.rename(y.name)


def preprocess_data(df, config):
    """
    Preprocess dataset: extract features and target.

    Returns:
        X: DataFrame of features
        y: Series of target values (0/1 for binary outcomes)
    """
    target = config['data']['target_column']
    preprocessing = config.get('preprocessing', {}) or {}

    # Drop auxiliary columns
    cols_to_drop = preprocessing.get('columns_to_drop', []) or []
    df = df.drop(columns=[c for c in cols_to_drop if c in df.columns and c != target])

    # Get ignored columns (not dropped, just not used as features)
    ignored = preprocessing.get('ignored_columns', []) or []
    ignored = [c for c in ignored if c in df.columns and c != target]

    # Verify target exists
    if target not in df.columns:
        raise ValueError(f"Target column '{target}' not found in dataset. Available: {list(df.columns)}")

    feature_cols = [c for c in df.columns if c != target and c not in ignored]

    X = df[feature_cols].copy()
    y = df[target].copy()

    if config['data'].get('outcome_kind') == 'binary':
        y = encode_binary_target(y, config['data'].get('positive_class'))

    if ignored:
        print(f"IGNORED columns (not used in training): {ignored}")

    return X, y


def validate_data_integrity(X, y, config):
    """
    Validate data integrity before tuning.

    Checks:
    - At least n_splits records
    - No NaN/infinite values
    - Binary target holds only 0/1
    """
    errors = []

    n_splits = config['cross_validation']['n_splits']
    if len(X) < n_splits:
        errors.append(f"Dataset has {len(X)} rows, fewer than n_splits={n_splits}")

    # Check for NaN in features
    nan_cols = X.columns[X.isnull().any()].tolist()
    if nan_cols:
        errors.append(f"NaN values found in features: {nan_cols}")

    # Check for NaN in target
    if y.isnull().any():
        errors.append(f"NaN values found in target ({y.name}): {y.isnull().sum()} missing")

    # Check for infinite values in features
    numeric_cols = X.select_dtypes(include=[np.number]).columns
    for col in numeric_cols:
        if not np.isfinite(X[col]).all():
            errors.append(f"Infinite values found in feature: {col}")

    if not pd.api.types.is_numeric_dtype(y):
        errors.append(f"Target ({y.name}) must be numeric; use outcome_kind 'binary' for two-level labels")
    elif not np.isfinite(y.dropna()).all():
        errors.append(f"Infinite values found in target: {y.name}")

    if config['data'].get('outcome_kind') == 'binary' and not y.dropna().isin([0, 1]).all():
        errors.append(f"Binary target ({y.name}) must be encoded as 0/1")

    if errors:
        raise ValueError("Data integrity check failed:\n  - " + "\n  - ".join(errors))

    return True
