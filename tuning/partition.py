# K-fold partitioning
# Deterministic, seeded splits of n record indices into k near-equal folds

import numbers

import numpy as np

from .errors import InvalidArgument


def check_int(name, value, minimum):
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise InvalidArgument(f"{name} must be an integer, got {value!r}")
    if value < minimum:
        raise InvalidArgument(f"{name} must be >= {minimum}, got {value}")
    return int(value)


def check_seed(seed):
    """Validate a seed and return it as a plain int."""
    return check_int('seed', seed, 0)


def partition(n, k, seed):
    """
    Split indices 0..n-1 into k disjoint folds.

    The indices are shuffled with a generator seeded by `seed`, then cut into
    contiguous runs: the first n % k folds get n // k + 1 indices, the rest
    get n // k. The same (n, k, seed) always gives the same folds.

    Args:
        n: Number of records (>= 1)
        k: Number of folds (1 <= k <= n)
        seed: Non-negative integer seed

    Returns:
        List of k sorted numpy integer arrays
    """
    n = check_int('n', n, 1)
    k = check_int('k', k, 1)
    seed = check_seed(seed)
    if k > n:
        raise InvalidArgument(f"k ({k}) cannot exceed the number of records n ({n})")

    order = np.random.default_rng(seed).permutation(n)

    m = n // k
    rmdr = n - m * k
    sizes = [m + 1] * rmdr + [m] * (k - rmdr)
    bounds = np.concatenate([[0], np.cumsum(sizes)])

    return [np.sort(order[bounds[i]:bounds[i + 1]]) for i in range(k)]


def derive_seed(base_seed, replicate):
    """
    Derive the partition seed of one replicate.

    Depends only on (base_seed, replicate), so replicates differ from each
    other while the whole run stays reproducible in any execution order.
    """
    base_seed = check_seed(base_seed)
    replicate = check_int('replicate', replicate, 0)
    state = np.random.SeedSequence([base_seed, replicate]).generate_state(1)
    return int(state[0])


def iter_folds(parts, n):
    """
    Iterate over the folds of one partition.

    Yields:
        (fold_index, train_idx, holdout_idx) where train_idx is the sorted
        complement of the held-out fold
    """
    for fold_idx, holdout_idx in enumerate(parts):
        mask = np.ones(n, dtype=bool)
        mask[holdout_idx] = False
        yield fold_idx, np.flatnonzero(mask), holdout_idx


def fold_labels(parts, n):
    """Return an array giving the fold number of every record."""
    labels = np.full(n, -1, dtype=int)
    for fold_idx, idx in enumerate(parts):
        labels[idx] = fold_idx
    if (labels < 0).any():
        raise InvalidArgument("Folds do not cover every record")
    return labels


def replicate_fold_labels(n, k, r, seed):
    """
    Fold number of every record in each of the r replicates of a tuning run.

    Uses the same per-replicate seeds as tune(), so row i shows exactly which
    records were held out together in replicate i.

    Returns:
        Integer array of shape (r, n)
    """
    r = check_int('r', r, 1)
    return np.vstack([fold_labels(partition(n, k, derive_seed(seed, rep)), n) for rep in range(r)])
