import pytest
import pandas as pd
import numpy as np


@pytest.fixture(scope="session")
def seed():
    return 42


@pytest.fixture
def tiny_housing_df(seed):
    """
    Small deterministic dataframe with a continuous and a binary target.
    Includes:
      - price (continuous target, linear in the features plus noise)
      - expensive (two-level categorical target derived from price)
      - id (auxiliary column that must be dropped)
      - numeric and categorical features
    """
    rng = np.random.default_rng(seed)
    n = 60

    df = pd.DataFrame({
        "id": np.arange(n),
        "sqft": rng.normal(loc=100.0, scale=20.0, size=n),
        "rooms": rng.integers(1, 6, size=n),
        "age": rng.uniform(0, 50, size=n),
        "district": rng.choice(["north", "south", "east"], size=n),
    })
    district_effect = df["district"].map({"north": 10.0, "south": -5.0, "east": 0.0})
    df["price"] = 2.0 * df["sqft"] + 5.0 * df["rooms"] - 0.3 * df["age"] + district_effect + rng.normal(0, 5.0, size=n)
    df["expensive"] = np.where(df["price"] > df["price"].median(), "yes", "no")

    return df


@pytest.fixture
def linear_xy(seed):
    """Purely numeric regression data: y = 3*x0 - 2*x1 + noise."""
    rng = np.random.default_rng(seed)
    X = pd.DataFrame(rng.normal(size=(50, 3)), columns=["x0", "x1", "x2"])
    y = pd.Series(3 * X["x0"] - 2 * X["x1"] + rng.normal(0, 0.1, size=50), name="y")
    return X, y


@pytest.fixture
def base_regression_config(tmp_path, seed):
    """
    Minimal config for ridge tuning on price.
    """
    cfg = {
        "experiment": {
            "name": "pytest_ridge",
            "seed": seed,
            "output_dir": str(tmp_path / "runs")
        },
        "data": {
            "dataset_path": "DUMMY.csv",
            "target_column": "price",
            "outcome_kind": "continuous"
        },
        "preprocessing": {
            "columns_to_drop": ["id"],
            "ignored_columns": ["expensive"]
        },
        "model": {
            "type": "ridge",
            "grid": {
                "alpha": [0.1, 1.0, 10.0]
            }
        },
        "cross_validation": {
            "n_splits": 4,
            "n_repeats": 2
        },
        "tuning": {
            "metric": "r2",
            "n_jobs": 1
        },
        "analysis": {
            "importance": False,
            "save_plots": False
        }
    }
    return cfg


@pytest.fixture
def base_binary_config(tmp_path, seed):
    cfg = {
        "experiment": {
            "name": "pytest_logistic",
            "seed": seed,
            "output_dir": str(tmp_path / "runs")
        },
        "data": {
            "dataset_path": "DUMMY.csv",
            "target_column": "expensive",
            "outcome_kind": "binary",
            "positive_class": "yes"
        },
        "preprocessing": {
            "columns_to_drop": ["id"],
            "ignored_columns": ["price"]
        },
        "model": {
            "type": "logistic_regression",
            "params": {
                "max_iter": 500
            },
            "grid": {
                "C": [0.1, 1.0]
            }
        },
        "cross_validation": {
            "n_splits": 3,
            "n_repeats": 2
        },
        "analysis": {
            "save_plots": False
        }
    }
    return cfg


@pytest.fixture
def patch_dataset_loader(monkeypatch, tiny_housing_df):
    """
    Monkeypatch load_dataset so runs don't hit disk.
    """
    def _fake_load_dataset(config, dataset_path=None):
        return tiny_housing_df.copy(), "test_dataset.csv"

    monkeypatch.setattr("tuning.data.load_dataset", _fake_load_dataset)
    monkeypatch.setattr("runners.run_tuning.load_dataset", _fake_load_dataset)
    return _fake_load_dataset


@pytest.fixture
def write_yaml(tmp_path):
    import yaml
    def _write(cfg, name="temp.yaml"):
        p = tmp_path / name
        with open(p, "w") as f:
            yaml.safe_dump(cfg, f, default_flow_style=False)
        return str(p)
    return _write
