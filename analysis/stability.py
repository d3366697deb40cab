# Stability Analysis Module
# Spread of replicate scores per grid point, and how clearly the winner wins

import numpy as np
import pandas as pd
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
from typing import Optional, Tuple
from scipy import stats

from tuning.driver import ScoreMatrix
from tuning.grid import format_point


def summarize_score_matrix(
    score_matrix: ScoreMatrix,
    test_significance: bool = True
) -> pd.DataFrame:
    """
    Summarize replicate scores per grid point.

    Args:
        score_matrix: Result of tune()
        test_significance: Paired t-test of every grid point against the best
            (replicates are paired because they share the same folds)

    Returns:
        DataFrame with one row per grid point, ordered as the grid
    """
    scores = score_matrix.scores
    best = score_matrix.best_index()
    metric = score_matrix.metric

    rows = []
    for j, point in enumerate(score_matrix.grid):
        values = scores[:, j]
        row = {
            'grid_point': format_point(point),
            f'{metric}_mean': np.mean(values),
            f'{metric}_std': np.std(values),
            f'{metric}_min': np.min(values),
            f'{metric}_max': np.max(values),
            'range': np.max(values) - np.min(values),
            'n_replicates': len(values),
            'is_best': j == best,
        }

        if test_significance and len(values) >= 2 and j != best:
            diff = values - scores[:, best]
            if np.allclose(diff, 0.0):
                p_value = 1.0
            elif np.allclose(diff, diff[0]):
                # zero variance in clearly nonzero paired differences
                p_value = 0.0
            else:
                _, p_value = stats.ttest_rel(values, scores[:, best])
            row['pvalue_vs_best'] = float(p_value)
            row['significant_vs_best'] = bool(p_value < 0.05)

        rows.append(row)

    return pd.DataFrame(rows)


def plot_score_matrix(
    score_matrix: ScoreMatrix,
    title: str = None,
    figsize: Tuple[int, int] = (12, 6),
    save_path: Optional[str] = None
) -> plt.Figure:
    """Boxplot of replicate scores per grid point, best point highlighted."""
    fig, ax = plt.subplots(figsize=figsize)

    labels = [format_point(p) for p in score_matrix.grid]
    box_data = [score_matrix.scores[:, j] for j in range(len(labels))]
    best = score_matrix.best_index()

    bp = ax.boxplot(box_data, patch_artist=True)
    for j, patch in enumerate(bp['boxes']):
        patch.set_facecolor('#F18F01' if j == best else '#2E86AB')
        patch.set_alpha(0.7)

    positions = np.arange(1, len(labels) + 1)
    ax.plot(positions, score_matrix.mean_scores, 'k^', label='Mean over replicates')
    ax.set_xticks(positions)
    ax.set_xticklabels(labels, rotation=45, ha='right', fontsize=8)
    ax.set_ylabel(score_matrix.metric)
    ax.set_title(title or f'{score_matrix.metric} across {score_matrix.n_replicates} replicates')
    ax.grid(axis='y', alpha=0.3)
    ax.legend()

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')

    return fig
