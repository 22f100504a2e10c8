import numpy as np
import pandas as pd
import pytest
from sklearn.datasets import load_iris, make_friedman1
from sklearn.linear_model import LinearRegression, LogisticRegression

from pdstat import ClassifierAdapter, FunctionAdapter, RegressorAdapter


@pytest.fixture
def regression_data(n_samples, n_features, seed):
    """
    Friedman #1 regression problem.

    Parameters
    ----------
    n_samples : int
        Number of samples in the dataset.
    n_features : int
        Number of features, at least 5. Only the first 5 are informative.
    seed : int
        Random seed for reproducibility.

    Returns
    -------
    X : ndarray of shape (n_samples, n_features)
        Feature matrix, uniform in [0, 1].
    y : ndarray of shape (n_samples,)
        Target vector.
    """
    X, y = make_friedman1(
        n_samples=n_samples, n_features=n_features, noise=0.1, random_state=seed
    )
    return X, y


@pytest.fixture
def linear_adapter(regression_data):
    """Linear regression fitted on the Friedman data."""
    X, y = regression_data
    return RegressorAdapter(LinearRegression().fit(X, y))


@pytest.fixture
def iris():
    """Iris dataset as a DataFrame and its target."""
    X, y = load_iris(return_X_y=True, as_frame=True)
    return X, y


@pytest.fixture
def iris_adapter(iris):
    """Logistic regression on iris, all class probabilities are positive."""
    X, y = iris
    return ClassifierAdapter(LogisticRegression(max_iter=1000).fit(X, y))


@pytest.fixture
def constant_adapter():
    """A regression function always predicting 10."""
    return FunctionAdapter(lambda X: np.full(len(X), 10.0))


@pytest.fixture
def mixed_data():
    """DataFrame with two numeric features and a categorical one."""
    rng = np.random.default_rng(0)
    n_samples = 60
    return pd.DataFrame(
        {
            "temp": rng.normal(20.0, 5.0, n_samples),
            "humidity": rng.uniform(0.2, 0.9, n_samples),
            "season": pd.Categorical(
                rng.choice(["spring", "summer", "fall", "winter"], n_samples)
            ),
        }
    )
