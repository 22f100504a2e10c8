import numpy as np
import pytest
from numpy.testing import assert_array_almost_equal, assert_array_equal
from sklearn.exceptions import NotFittedError
from sklearn.linear_model import LinearRegression, LogisticRegression, RidgeClassifier
from sklearn.multioutput import MultiOutputClassifier

from pdstat import (
    BasePredictionAdapter,
    ClassifierAdapter,
    FunctionAdapter,
    RegressorAdapter,
    UnsupportedOutputError,
)


@pytest.mark.parametrize(
    "n_samples, n_features, seed",
    [(100, 5, 0)],
    ids=["default data"],
)
def test_regressor_adapter(regression_data, linear_adapter):
    """The regressor adapter returns one prediction per observation"""
    X, _ = regression_data
    assert not linear_adapter.is_classification
    assert linear_adapter.classes_ is None
    predictions = linear_adapter.check_predictions(
        linear_adapter.predict(X), X.shape[0]
    )
    assert predictions.shape == (100,)
    assert_array_equal(predictions, linear_adapter.estimator.predict(X))


def test_classifier_adapter(iris, iris_adapter):
    """The classifier adapter returns the class probabilities"""
    X, _ = iris
    assert iris_adapter.is_classification
    assert_array_equal(iris_adapter.classes_, [0, 1, 2])
    iris_adapter.check_output("logit")
    predictions = iris_adapter.check_predictions(iris_adapter.predict(X), len(X))
    assert predictions.shape == (150, 3)
    assert_array_almost_equal(predictions.sum(axis=1), np.ones(150))


def test_function_adapter_binary_probability():
    """For two classes, the probability of the second class is enough"""
    adapter = FunctionAdapter(lambda X: np.full(X.shape[0], 0.25), classes=["a", "b"])
    predictions = adapter.check_predictions(adapter.predict(np.zeros((4, 2))), 4)
    assert_array_equal(predictions, np.tile([0.75, 0.25], (4, 1)))


def test_regression_column_vector():
    """Predictions of shape (n_samples, 1) are flattened"""
    adapter = FunctionAdapter(lambda X: np.ones((X.shape[0], 1)))
    predictions = adapter.check_predictions(adapter.predict(np.zeros((3, 2))), 3)
    assert predictions.shape == (3,)


def test_repr():
    adapter = FunctionAdapter(np.sum, classes=[0, 1])
    assert repr(adapter).startswith("FunctionAdapter(predict_function=")


class TestAdapterExceptions:
    """Test class for adapter exceptions"""

    def test_base_predict(self):
        with pytest.raises(NotImplementedError):
            BasePredictionAdapter().predict(np.zeros((2, 2)))

    def test_not_fitted(self):
        with pytest.raises(NotFittedError):
            RegressorAdapter(LinearRegression())
        with pytest.raises(NotFittedError):
            ClassifierAdapter(LogisticRegression())

    def test_wrong_estimator_type(self, iris):
        X, y = iris
        classifier = LogisticRegression(max_iter=1000).fit(X, y)
        with pytest.raises(ValueError, match="'estimator' must be a fitted regressor"):
            RegressorAdapter(classifier)
        regressor = LinearRegression().fit(X, y)
        with pytest.raises(
            ValueError, match="'estimator' must be a fitted classifier"
        ):
            ClassifierAdapter(regressor)

    def test_multioutput_classifier(self, iris):
        X, y = iris
        Y = np.column_stack([y, y == 0])
        estimator = MultiOutputClassifier(LogisticRegression(max_iter=1000)).fit(X, Y)
        with pytest.raises(ValueError, match="Multiclass-multioutput"):
            ClassifierAdapter(estimator)

    def test_no_predict_proba(self, iris):
        X, y = iris
        adapter = ClassifierAdapter(RidgeClassifier().fit(X, y))
        with pytest.raises(
            UnsupportedOutputError, match="does not implement predict_proba"
        ):
            adapter.check_output("probability")

    def test_not_a_simplex(self):
        adapter = FunctionAdapter(
            lambda X: np.column_stack([X[:, 0], -X[:, 0]]), classes=[0, 1]
        )
        with pytest.raises(UnsupportedOutputError, match="not a probability simplex"):
            adapter.check_predictions(adapter.predict(np.ones((3, 2))), 3)

    def test_rows_not_summing_to_one(self):
        adapter = FunctionAdapter(
            lambda X: np.full((X.shape[0], 3), 0.3), classes=[0, 1, 2]
        )
        with pytest.raises(UnsupportedOutputError, match="not a probability simplex"):
            adapter.check_predictions(adapter.predict(np.ones((3, 2))), 3)

    def test_wrong_number_of_classes(self):
        adapter = FunctionAdapter(
            lambda X: np.full((X.shape[0], 2), 0.5), classes=[0, 1, 2]
        )
        with pytest.raises(UnsupportedOutputError, match=r"shape \(3, 3\)"):
            adapter.check_predictions(adapter.predict(np.ones((3, 2))), 3)

    def test_multioutput_regression(self):
        adapter = FunctionAdapter(lambda X: np.zeros((X.shape[0], 2)))
        with pytest.raises(
            UnsupportedOutputError, match="Multi-output models are not supported"
        ):
            adapter.check_predictions(adapter.predict(np.ones((3, 2))), 3)

    def test_single_class(self):
        with pytest.raises(UnsupportedOutputError, match="at least 2 classes"):
            FunctionAdapter(np.sum, classes=["only"])

    def test_not_callable(self):
        with pytest.raises(ValueError, match="'predict_function' must be callable"):
            FunctionAdapter("predict")
