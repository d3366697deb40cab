# Tuning runner
# Repeated k-fold grid search for one model config, or a comparison of several

import argparse
import json
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from tuning.config_schema import validate_config, ConfigValidationError
from tuning.io import load_config, save_results, create_run_dir, save_data_profile, save_fold_labels
from tuning.data import load_dataset, preprocess_data, validate_data_integrity
from tuning.driver import tune
from tuning.grid import format_point
from tuning.partition import replicate_fold_labels
from tuning.models import make_trainer
from analysis.stability import summarize_score_matrix, plot_score_matrix
from analysis.importance import compute_permutation_importance
from analysis.partial_dependence import compute_partial_dependence


def run_tuning(config_path, dataset_path=None, output_dir=None):
    """
    Tune one model by repeated k-fold CV and save the run.

    Args:
        config_path: Path to YAML config file
        dataset_path: Optional path to dataset CSV (overrides config)
        output_dir: Optional output directory (overrides config)

    Returns:
        run_dir: Path to tuning output directory
    """
    config = load_config(config_path)

    if output_dir:
        config['experiment']['output_dir'] = output_dir

    try:
        validate_config(config)
    except ConfigValidationError as e:
        print(f"\nCONFIG ERROR:\n{e}")
        raise

    seed = config['experiment']['seed']
    target = config['data']['target_column']
    outcome_kind = config['data']['outcome_kind']
    model_type = config['model']['type']
    cv_config = config['cross_validation']
    tuning_config = config.get('tuning', {}) or {}
    analysis_config = config.get('analysis', {}) or {}

    print("=" * 60)
    print("GRID SEARCH TUNING")
    print("=" * 60)
    print(f"Experiment: {config['experiment']['name']}")
    print(f"Target: {target} ({outcome_kind})")
    print(f"Model: {model_type}")
    print(f"Seed: {seed}")
    print("=" * 60)

    # Load data
    df, actual_path = load_dataset(config, dataset_path)
    X, y = preprocess_data(df, config)
    validate_data_integrity(X, y, config)

    print(f"\nDataset shape: {X.shape}")
    print(f"Features: {len(X.columns)}")

    if outcome_kind == 'continuous':
        print(f"Target stats: mean={y.mean():.4f}, std={y.std():.4f}, min={y.min():.4f}, max={y.max():.4f}")
    else:
        print(f"Class distribution: {y.value_counts().to_dict()}")

    train, predict = make_trainer(
        model_type,
        outcome_kind,
        seed=seed,
        base_params=config['model'].get('params') or {},
        strict_convergence=tuning_config.get('strict_convergence', False),
    )

    best_params, score_matrix = tune(
        X, y,
        grid=config['model']['grid'],
        k=cv_config['n_splits'],
        r=cv_config['n_repeats'],
        seed=seed,
        train=train,
        predict=predict,
        outcome_kind=outcome_kind,
        metric=tuning_config.get('metric'),
        n_jobs=tuning_config.get('n_jobs', 1),
    )

    print("\n" + "=" * 60)
    print(f"RESULTS ({cv_config['n_splits']}-fold x {cv_config['n_repeats']} replicates)")
    print("=" * 60)
    for j, point in enumerate(score_matrix.grid):
        marker = '*' if j == score_matrix.best_index() else ' '
        print(f"{marker} {format_point(point):40s} | {score_matrix.metric}: "
              f"{score_matrix.mean_scores[j]:.4f} ± {score_matrix.std_scores[j]:.4f}")
    print(f"\nBest: {format_point(best_params)} ({score_matrix.metric}={score_matrix.best_score:.4f})")

    # Refit best grid point on all data
    model = train(X, y, best_params)

    run_dir = create_run_dir(config)
    save_data_profile(run_dir, df, X, y, actual_path)
    save_results(run_dir, config, best_params, score_matrix, model)
    save_fold_labels(
        run_dir,
        replicate_fold_labels(len(X), cv_config['n_splits'], cv_config['n_repeats'], seed),
        index=X.index,
    )

    summarize_score_matrix(score_matrix).to_csv(os.path.join(run_dir, 'stability.csv'), index=False)

    if analysis_config.get('importance', False):
        importance = compute_permutation_importance(
            model, X, y,
            outcome_kind=outcome_kind,
            n_repeats=analysis_config.get('importance_repeats', 10),
            random_state=seed,
        )
        importance.to_csv(os.path.join(run_dir, 'importance.csv'), index=False)
        print("\nTop features (permutation importance):")
        for _, row in importance.head(5).iterrows():
            print(f"  {row['feature']:30s} {row['importance_mean']:.4f} ± {row['importance_std']:.4f}")

    pd_features = analysis_config.get('partial_dependence') or []
    if pd_features:
        pd_results = compute_partial_dependence(model, X, pd_features, predict)
        with open(os.path.join(run_dir, 'partial_dependence.json'), 'w') as f:
            json.dump({
                feature: {
                    'grid': res['grid'].tolist(),
                    'pd_values': res['pd_values'].tolist(),
                    'feature_range': list(res['feature_range']),
                }
                for feature, res in pd_results.items()
            }, f, indent=2)

    if analysis_config.get('save_plots', False):
        import matplotlib.pyplot as plt
        fig = plot_score_matrix(score_matrix, save_path=os.path.join(run_dir, 'score_matrix.png'))
        plt.close(fig)

    print("\n" + "=" * 60)
    print("Tuning complete!")
    print("=" * 60)

    return run_dir


def run_comparison(config_paths, dataset_path=None, output_dir=None):
    """
    Tune several model configs on the same data and compare their best scores.

    Configs sharing seed, n_splits and n_repeats are evaluated on identical
    folds, so their scores are directly comparable.
    """
    summary = {}

    for config_path in config_paths:
        run_dir = run_tuning(config_path, dataset_path, output_dir)
        with open(os.path.join(run_dir, 'metrics.json'), 'r') as f:
            metrics = json.load(f)
        summary[metrics['experiment_name']] = {
            'model_type': metrics['model_type'],
            'metric': metrics['score_matrix']['metric'],
            'best_score': metrics['best_score'],
            'best_params': metrics['best_params'],
            'run_dir': run_dir,
        }

    print("\n" + "=" * 70)
    print("MODEL COMPARISON")
    print("=" * 70)
    for name, res in summary.items():
        print(f"{name:25s} | {res['model_type']:20s} | {res['metric']}: {res['best_score']:.4f} "
              f"| {format_point(res['best_params'])}")

    return summary


def main():
    parser = argparse.ArgumentParser(
        description='Tune model hyperparameters by repeated k-fold cross-validation'
    )
    parser.add_argument('--config', '-c', type=str, nargs='+', default=['configs/ridge.yaml'],
                       help='Path(s) to config YAML file; several configs are compared')
    parser.add_argument('--dataset', '-d', type=str, default=None,
                       help='Path to dataset CSV (overrides config)')
    parser.add_argument('--output-dir', '-o', type=str, default=None,
                       help='Output directory (overrides config)')
    args = parser.parse_args()

    if len(args.config) > 1:
        run_comparison(args.config, args.dataset, args.output_dir)
    else:
        run_tuning(args.config[0], args.dataset, args.output_dir)


if __name__ == "__main__":
    main()
