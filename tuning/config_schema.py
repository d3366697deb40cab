# Config schema validation
# Validates config structure, types, model/outcome consistency and the grid

from .models import SUPPORTED_MODELS
from .scoring import SCORERS

REQUIRED_KEYS = {
    'experiment': ['name', 'seed'],
    'data': ['target_column', 'outcome_kind'],
    'model': ['type', 'grid'],
    'cross_validation': ['n_splits', 'n_repeats'],
}

ALLOWED_OUTCOME_KINDS = ['continuous', 'binary']

ALLOWED_MODEL_TYPES = SUPPORTED_MODELS['continuous'] + SUPPORTED_MODELS['binary']


class ConfigValidationError(Exception):
    """Raised when config validation fails."""
    pass


def _is_int(value):
    return isinstance(value, int) and not isinstance(value, bool)


def validate_config(config):
    """
    Validate tuning configuration.

    Args:
        config: dict - Configuration dictionary

    Raises:
        ConfigValidationError if validation fails
    """
    if not isinstance(config, dict):
        raise ConfigValidationError("Config must be a mapping")

    errors = []

    # Check required top-level keys
    for section, required_keys in REQUIRED_KEYS.items():
        if section not in config or not isinstance(config[section], dict):
            errors.append(f"Missing required section: '{section}'")
            continue
        for key in required_keys:
            if key not in config[section]:
                errors.append(f"Missing required key: '{section}.{key}'")

    if errors:
        raise ConfigValidationError("Config validation failed:\n  - " + "\n  - ".join(errors))

    # Validate outcome kind and model type
    outcome_kind = config['data'].get('outcome_kind')
    if outcome_kind not in ALLOWED_OUTCOME_KINDS:
        errors.append(f"Invalid outcome_kind '{outcome_kind}'. Allowed: {ALLOWED_OUTCOME_KINDS}")

    model_type = config['model'].get('type')
    if model_type not in ALLOWED_MODEL_TYPES:
        errors.append(f"Invalid model type '{model_type}'. Allowed: {ALLOWED_MODEL_TYPES}")
    elif outcome_kind in ALLOWED_OUTCOME_KINDS and model_type not in SUPPORTED_MODELS[outcome_kind]:
        errors.append(
            f"Model type '{model_type}' does not fit {outcome_kind} outcomes. "
            f"Allowed: {SUPPORTED_MODELS[outcome_kind]}"
        )

    # Validate grid: mapping of name -> non-empty list
    grid = config['model'].get('grid')
    if not isinstance(grid, dict) or not grid:
        errors.append("model.grid must be a non-empty mapping of hyperparameter -> list of values")
    else:
        for name, values in grid.items():
            if not isinstance(values, list) or not values:
                errors.append(f"model.grid.{name} must be a non-empty list")

    params = config['model'].get('params', {})
    if params is not None and not isinstance(params, dict):
        errors.append("model.params must be a mapping")

    # Validate types
    seed = config['experiment'].get('seed')
    if not _is_int(seed) or seed < 0:
        errors.append("experiment.seed must be a non-negative integer")

    n_splits = config['cross_validation'].get('n_splits')
    if not _is_int(n_splits):
        errors.append("cross_validation.n_splits must be an integer")
    elif n_splits < 2:
        errors.append("cross_validation.n_splits must be >= 2")

    n_repeats = config['cross_validation'].get('n_repeats')
    if not _is_int(n_repeats):
        errors.append("cross_validation.n_repeats must be an integer")
    elif n_repeats < 1:
        errors.append("cross_validation.n_repeats must be >= 1")

    # Optional tuning section
    tuning = config.get('tuning', {}) or {}
    metric = tuning.get('metric')
    if metric is not None:
        if metric not in SCORERS:
            errors.append(f"Invalid metric '{metric}'. Allowed: {sorted(SCORERS)}")
        elif outcome_kind in ALLOWED_OUTCOME_KINDS and SCORERS[metric].kind.value != outcome_kind:
            errors.append(f"Metric '{metric}' does not apply to {outcome_kind} outcomes")

    n_jobs = tuning.get('n_jobs', 1)
    if not _is_int(n_jobs) or n_jobs == 0:
        errors.append("tuning.n_jobs must be a non-zero integer")

    # Optional analysis section
    analysis = config.get('analysis', {}) or {}
    pd_features = analysis.get('partial_dependence', [])
    if pd_features is not None and not isinstance(pd_features, list):
        errors.append("analysis.partial_dependence must be a list of feature names")

    if errors:
        raise ConfigValidationError("Config validation failed:\n  - " + "\n  - ".join(errors))

    return True
