# I/O utilities for the tuning pipeline
# One directory per tuning run: config, score matrix, fold membership, refit model

import os
import json
import hashlib
from datetime import datetime

import numpy as np
import yaml
import joblib
import pandas as pd


def load_config(config_path):
    """
    Read a tuning config (experiment, data, model grid, cross_validation).

    Only parses the YAML; validate_config() checks the keys.
    """
    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Tuning config not found: {config_path}")

    with open(config_path, 'r') as f:
        config = yaml.safe_load(f)

    if config is None:
        raise ValueError(f"Tuning config is empty: {config_path}")

    return config


def config_hash(config):
    """Short digest of the config, so runs of the same grid share a suffix."""
    config_str = json.dumps(config, sort_keys=True, default=str)
    return hashlib.md5(config_str.encode()).hexdigest()[:8]


def dataset_hash(df):
    """Digest of the dataset's shape, columns and edge rows, stored in data_profile.json."""
    # edge rows catch reordering, which changes every fold
    content = f"{df.shape}|{df.columns.tolist()}|{df.head(10).to_json()}|{df.tail(10).to_json()}"
    return hashlib.md5(content.encode()).hexdigest()[:12]


def create_run_dir(config, output_dir=None):
    """
    Make <output_dir>/<experiment>_<timestamp>_<config hash>/ for one tuning run.

    output_dir defaults to experiment.output_dir, then 'runs'.
    """
    output_dir = output_dir or config['experiment'].get('output_dir', 'runs')
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    run_dir = os.path.join(output_dir, f"{config['experiment']['name']}_{stamp}_{config_hash(config)}")
    os.makedirs(run_dir, exist_ok=True)
    return run_dir


def save_fold_labels(run_dir, labels, index=None):
    """
    Write folds.csv: one row per record, one fold_rep<i> column per replicate.

    labels is the (replicates, records) array from replicate_fold_labels().
    """
    labels = np.asarray(labels)
    frame = pd.DataFrame(
        labels.T,
        index=index if index is not None else pd.RangeIndex(labels.shape[1]),
        columns=[f'fold_rep{i}' for i in range(labels.shape[0])],
    )
    frame.index.name = 'record'
    path = os.path.join(run_dir, 'folds.csv')
    frame.to_csv(path)
    return path


def _json_safe(value):
    # numpy scalars and tuples from grid points
    if hasattr(value, 'item'):
        return value.item()
    if isinstance(value, tuple):
        return list(value)
    return value


def save_results(run_dir, config, best_params, score_matrix, model):
    """
    Save tuning artifacts to run directory.

    Writes config.yaml, metrics.json (best point plus full score matrix),
    score_matrix.csv, a per-grid-point summary and the refit model.
    """
    with open(os.path.join(run_dir, 'config.yaml'), 'w') as f:
        yaml.dump(config, f, default_flow_style=False)

    matrix = score_matrix.to_dict()
    results_json = {
        'experiment_name': config['experiment']['name'],
        'seed': config['experiment']['seed'],
        'model_type': config['model']['type'],
        'target_column': config['data']['target_column'],
        'outcome_kind': config['data']['outcome_kind'],
        'n_splits': config['cross_validation']['n_splits'],
        'n_repeats': config['cross_validation']['n_repeats'],
        'best_params': {k: _json_safe(v) for k, v in best_params.items()},
        'best_score': score_matrix.best_score,
        'score_matrix': {
            **matrix,
            'grid': [{k: _json_safe(v) for k, v in p.items()} for p in matrix['grid']],
        },
    }

    with open(os.path.join(run_dir, 'metrics.json'), 'w') as f:
        json.dump(results_json, f, indent=2)

    score_matrix.to_frame().to_csv(os.path.join(run_dir, 'score_matrix.csv'))
    score_matrix.summary().to_csv(os.path.join(run_dir, 'grid_summary.csv'), index=False)

    model_path = os.path.join(run_dir, 'model.joblib')
    joblib.dump(model, model_path)
    print(f"Model saved to: {model_path}")

    print(f"Results saved to: {run_dir}")
    return run_dir


def save_data_profile(run_dir, df, X, y, dataset_path):
    """Save dataset fingerprint/profile for reproducibility tracking."""
    numeric_target = pd.api.types.is_numeric_dtype(y)
    profile = {
        'dataset_path': str(dataset_path) if dataset_path else None,
        'dataset_hash': dataset_hash(df),
        'total_rows': len(df),
        'total_columns': len(df.columns),
        'feature_count': len(X.columns),
        'features_used': list(X.columns),
        'target_column': y.name,
        'target_stats': {
            'mean': float(y.mean()) if numeric_target else None,
            'std': float(y.std()) if numeric_target else None,
            'min': float(y.min()) if numeric_target else None,
            'max': float(y.max()) if numeric_target else None,
            'unique_values': int(y.nunique()),
            'value_counts': {str(k): int(v) for k, v in y.value_counts().items()} if y.nunique() <= 10 else None
        },
        'missing_values': int(X.isnull().sum().sum()),
        'timestamp': datetime.now().isoformat()
    }

    with open(os.path.join(run_dir, 'data_profile.json'), 'w') as f:
        json.dump(profile, f, indent=2)

    return profile
