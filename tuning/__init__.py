# Tuning package
# Seeded k-fold partitioning and repeated cross-validated grid search

from .errors import TuningError, InvalidArgument, TrainingFailure, DegenerateScore
from .partition import partition, derive_seed, iter_folds, fold_labels, replicate_fold_labels
from .grid import expand_grid, format_point
from .scoring import OutcomeKind, SCORERS, get_scorer
from .driver import tune, ScoreMatrix
from .models import build_model, make_trainer, SUPPORTED_MODELS
from .config_schema import validate_config, ConfigValidationError
from .io import load_config, save_results, create_run_dir, save_data_profile, save_fold_labels
from .data import load_dataset, preprocess_data, validate_data_integrity

__all__ = [
    'TuningError',
    'InvalidArgument',
    'TrainingFailure',
    'DegenerateScore',
    'partition',
    'derive_seed',
    'iter_folds',
    'fold_labels',
    'replicate_fold_labels',
    'expand_grid',
    'format_point',
    'OutcomeKind',
    'SCORERS',
    'get_scorer',
    'tune',
    'ScoreMatrix',
    'build_model',
    'make_trainer',
    'SUPPORTED_MODELS',
    'validate_config',
    'ConfigValidationError',
    'load_config',
    'save_results',
    'create_run_dir',
    'save_data_profile',
    'save_fold_labels',
    'load_dataset',
    'preprocess_data',
    'validate_data_integrity',
]
