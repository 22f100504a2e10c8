"""
Prediction adapters: the single interface through which partial dependence
calls a fitted model.

The adapter is chosen by the caller for the model family at hand, the
partial dependence engine never inspects the model itself.
"""

import numpy as np
from sklearn.base import is_classifier, is_regressor
from sklearn.utils.validation import check_is_fitted

from pdstat._utils.exception import UnsupportedOutputError

# tolerance on the sum of the class probabilities of one observation
PROBABILITY_TOLERANCE = 1e-6


class BasePredictionAdapter:
    """
    Base class of prediction adapters.

    An adapter returns, for a dataset of ``n_samples`` observations, one
    prediction per observation (regression) or one probability vector per
    observation (classification). It must be deterministic: the same input
    gives the same output.

    Attributes
    ----------
    classes_ : ndarray of shape (n_classes,) or None
        The class labels for a classification adapter, None for regression.
    """

    def __repr__(self):
        params = ", ".join(f"{key}={value!r}" for key, value in vars(self).items())
        return f"{self.__class__.__name__}({params})"

    @property
    def classes_(self):
        return None

    @property
    def is_classification(self):
        """True if the adapter returns class probabilities."""
        return self.classes_ is not None

    def predict(self, X):
        """
        Predict on a dataset.

        Parameters
        ----------
        X : DataFrame or ndarray of shape (n_samples, n_features)
            The dataset, in the format the model was fitted on.

        Returns
        -------
        ndarray of shape (n_samples,) or (n_samples, n_classes)
        """
        raise NotImplementedError()

    def check_output(self, scale):
        """
        Check that the adapter can supply the output needed by `scale`.

        Parameters
        ----------
        scale : {'logit', 'probability'}
            The scale of the classification scores. Ignored for regression.

        Raises
        ------
        UnsupportedOutputError
            If class probabilities are required and can not be computed.
        """

    def check_predictions(self, predictions, n_samples):
        """
        Validate and normalize the raw output of :meth:`predict`.

        Parameters
        ----------
        predictions : array-like
            Output of :meth:`predict`.
        n_samples : int
            Number of observations that were predicted.

        Returns
        -------
        ndarray of shape (n_samples,) for regression or
        (n_samples, n_classes) for classification.

        Raises
        ------
        UnsupportedOutputError
            If the shape is not the expected one or if a classification
            output is not a probability simplex.
        """
        predictions = np.asarray(predictions, dtype=np.float64)
        if not self.is_classification:
            # (n_samples, 1) for the regressors in cross_decomposition
            if predictions.ndim == 2 and predictions.shape[1] == 1:
                predictions = predictions[:, 0]
            if predictions.shape != (n_samples,):
                raise UnsupportedOutputError(
                    f"Expected one prediction per observation, shape ({n_samples},), "
                    f"got shape {predictions.shape}. Multi-output models are not "
                    "supported."
                )
            return predictions

        n_classes = len(self.classes_)
        if predictions.ndim == 1 and n_classes == 2:
            # probability of the second class only
            predictions = np.column_stack([1.0 - predictions, predictions])
        if predictions.shape != (n_samples, n_classes):
            raise UnsupportedOutputError(
                f"Expected class probabilities of shape ({n_samples}, {n_classes}), "
                f"got shape {predictions.shape}."
            )
        if (
            np.any(predictions < 0.0)
            or np.any(predictions > 1.0)
            or not np.allclose(
                predictions.sum(axis=1), 1.0, rtol=0.0, atol=PROBABILITY_TOLERANCE
            )
        ):
            raise UnsupportedOutputError(
                "The classification output is not a probability simplex: every "
                "value must be in [0, 1] and each row must sum to 1. Raw scores "
                "such as decision functions are not supported."
            )
        return predictions


class RegressorAdapter(BasePredictionAdapter):
    """
    Adapter for a fitted scikit-learn regressor, using ``predict``.

    Parameters
    ----------
    estimator : BaseEstimator
        A fitted regressor. Single output only.
    """

    def __init__(self, estimator):
        check_is_fitted(estimator)
        if not is_regressor(estimator):
            raise ValueError("'estimator' must be a fitted regressor.")
        self.estimator = estimator

    def predict(self, X):
        return self.estimator.predict(X)


class ClassifierAdapter(BasePredictionAdapter):
    """
    Adapter for a fitted scikit-learn classifier, using ``predict_proba``.

    Parameters
    ----------
    estimator : BaseEstimator
        A fitted binary or multiclass classifier. Multiclass-multioutput
        classifiers are not supported.

    Attributes
    ----------
    classes_ : ndarray of shape (n_classes,)
        The classes of the estimator, in the order of the columns of
        ``predict_proba``.
    """

    def __init__(self, estimator):
        check_is_fitted(estimator)
        if not is_classifier(estimator):
            raise ValueError("'estimator' must be a fitted classifier.")
        if isinstance(estimator.classes_[0], np.ndarray):
            raise ValueError("Multiclass-multioutput estimators are not supported")
        self.estimator = estimator

    @property
    def classes_(self):
        return np.asarray(self.estimator.classes_)

    def check_output(self, scale):
        if not hasattr(self.estimator, "predict_proba"):
            raise UnsupportedOutputError(
                f"{self.estimator.__class__.__name__} does not implement "
                f"predict_proba: class probabilities are required for the "
                f"'{scale}' scale."
            )

    def predict(self, X):
        return self.estimator.predict_proba(X)


class FunctionAdapter(BasePredictionAdapter):
    """
    Adapter for any prediction function.

    Parameters
    ----------
    predict_function : callable
        Receives the dataset and returns one prediction per observation, or
        one probability vector per observation when `classes` is given. For
        two classes, the probability of the second class alone is accepted.
    classes : array-like of shape (n_classes,), default=None
        The class labels, in the order of the probability columns. If None,
        the function is a regression function.

    Examples
    --------
    >>> adapter = FunctionAdapter(lambda X: X[:, 0] + X[:, 1])
    >>> adapter.is_classification
    False
    """

    def __init__(self, predict_function, classes=None):
        if not callable(predict_function):
            raise ValueError("'predict_function' must be callable.")
        if classes is not None and len(classes) < 2:
            raise UnsupportedOutputError(
                "A classification function needs at least 2 classes, "
                f"got {len(classes)}."
            )
        self.predict_function = predict_function
        self.classes = classes

    @property
    def classes_(self):
        if self.classes is None:
            return None
        return np.asarray(self.classes)

    def predict(self, X):
        return self.predict_function(X)
