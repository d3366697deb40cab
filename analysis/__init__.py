# Analysis Module
# Diagnostics for a finished tuning run and its refit model

from .stability import (
    summarize_score_matrix,
    plot_score_matrix
)

from .importance import compute_permutation_importance

from .partial_dependence import compute_partial_dependence

__all__ = [
    'summarize_score_matrix',
    'plot_score_matrix',
    'compute_permutation_importance',
    'compute_partial_dependence'
]
