"""Test configuration for pytest."""
import os
from pathlib import Path
from typing import Any, Dict

import numpy as np
import pandas as pd
import pytest


@pytest.fixture(scope="session")
def multiclass_data():
    """150 rows, one numeric and one 3-level categorical predictor, 3-class outcome."""
    rng = np.random.RandomState(42)
    n_samples = 150

    x = pd.DataFrame({
        "num": rng.randn(n_samples),
        "cat": pd.Categorical(rng.choice(["a", "b", "c"], n_samples), categories=["a", "b", "c"]),
    })

    score = x["num"].to_numpy() + x["cat"].cat.codes.to_numpy() + 0.3 * rng.randn(n_samples)
    labels = np.where(score < 0.5, "low", np.where(score < 1.5, "mid", "high"))
    y = pd.Series(pd.Categorical(labels, categories=["high", "low", "mid"]), name="y")

    return x, y


@pytest.fixture(scope="session")
def binary_data():
    """200 rows, two numeric predictors, two-level outcome."""
    rng = np.random.RandomState(7)
    n_samples = 200

    x = pd.DataFrame({
        "feature_00": rng.randn(n_samples),
        "feature_01": rng.randn(n_samples),
    })
    probabilities = 1 / (1 + np.exp(-2 * x["feature_00"].to_numpy()))
    labels = np.where(rng.binomial(1, probabilities) == 1, "yes", "no")
    y = pd.Series(pd.Categorical(labels, categories=["no", "yes"]), name="y")

    return x, y


@pytest.fixture(scope="session")
def regression_data():
    """200 rows, three numeric predictors, continuous outcome."""
    rng = np.random.RandomState(0)
    n_samples = 200

    x = pd.DataFrame(rng.randn(n_samples, 3), columns=["a", "b", "c"])
    y = pd.Series(2 * x["a"] - x["b"] + 0.1 * rng.randn(n_samples), name="y")

    return x, y


@pytest.fixture
def sample_config_dict() -> Dict[str, Any]:
    """Sample engine configuration mapping."""
    return {
        'lightgbm': {
            'num_iterations': 20,
            'learning_rate': 0.2,
            'feature_fraction': 2,
            'early_stopping_rounds': 5,
            'validation': 0.2,
            'quiet': True,
            'random_state': 42
        },
        'cart': {
            'tree_depth': 4,
            'min_n': 5
        },
        'forest': {
            'trees': 25,
            'min_n': 5,
            'random_state': 1
        }
    }


@pytest.fixture
def temp_config_file(tmp_path: Path, sample_config_dict: Dict[str, Any]) -> Path:
    """Temporary YAML config file."""
    import yaml

    config_file = tmp_path / "engines.yaml"
    with open(config_file, 'w') as f:
        yaml.dump(sample_config_dict, f)

    return config_file


@pytest.fixture(autouse=True)
def cleanup_environment():
    """Clean up environment variables after each test."""
    original_env = dict(os.environ)

    yield

    os.environ.clear()
    os.environ.update(original_env)


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as integration test"
    )
    config.addinivalue_line(
        "markers", "unit: mark test as unit test"
    )
    config.addinivalue_line(
        "markers", "config: mark test as configuration-related"
    )
    config.addinivalue_line(
        "markers", "models: mark test as model-related"
    )
    config.addinivalue_line(
        "markers", "data: mark test as data-related"
    )


def pytest_collection_modifyitems(config, items):
    """Auto-mark tests based on their file names."""
    for item in items:
        path = str(item.fspath)

        if "integration" in path or "trainer" in path:
            item.add_marker(pytest.mark.integration)

        if "config" in path:
            item.add_marker(pytest.mark.config)
        elif "lightgbm" in path or "adapter" in path or "trainer" in path:
            item.add_marker(pytest.mark.models)
        elif "encoding" in path:
            item.add_marker(pytest.mark.data)
