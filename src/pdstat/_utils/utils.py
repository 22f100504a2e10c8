import numbers
from collections.abc import Mapping

import numpy as np
import pandas as pd
from scipy import sparse
from sklearn.inspection._pd_utils import _check_feature_names, _get_feature_index
from sklearn.utils import _safe_indexing, check_array

from pdstat._utils.exception import InvalidFeatureError


def _check_option(value, name, options):
    """
    Validates that a parameter takes one of the supported values.

    Parameters
    ----------
    value : object
        The value given by the user.
    name : str
        Name of the parameter, used in the error message.
    options : tuple
        The supported values.

    Returns
    -------
    object
        The validated value.

    Raises
    ------
    ValueError
        If the value is not one of the options.
    """
    if value in options:
        return value
    raise ValueError(
        "The {} '{}' is not valid. Supported values are: {}.".format(
            name, value, ", ".join(repr(option) for option in options)
        )
    )


def _check_dataset(X):
    """
    Convert the user dataset to a 2D structure that supports column indexing.

    DataFrames and arrays are returned as they are (they are never modified
    afterwards). A list of mappings is converted to a DataFrame, any other
    sequence with ``check_array``.

    Parameters
    ----------
    X : DataFrame, ndarray, list of dict or list of sequences
        The training data.

    Returns
    -------
    X_ : DataFrame or ndarray of shape (n_samples, n_features)

    Raises
    ------
    InvalidFeatureError
        If the observations of a list of mappings do not share the same
        features.
    ValueError
        If the data is sparse, empty or not two-dimensional.
    """
    if sparse.issparse(X):
        raise ValueError(
            "Sparse matrices are not supported: partial dependence overwrites "
            "whole columns. Convert the data with `X.toarray()`."
        )
    if isinstance(X, (list, tuple)) and len(X) > 0 and isinstance(X[0], Mapping):
        schema = list(X[0].keys())
        for index, observation in enumerate(X):
            if list(observation.keys()) != schema:
                raise InvalidFeatureError(
                    f"The observation #{index} has the features "
                    f"{list(observation.keys())}, expected {schema}."
                )
        X_ = pd.DataFrame.from_records(list(X), columns=schema)
    elif hasattr(X, "__array__"):
        # DataFrames keep their dtypes, arrays are not copied
        X_ = X
    else:
        # Use check_array only on lists and other non-array-likes.
        try:
            X_ = check_array(X, ensure_all_finite="allow-nan", dtype="numeric")
        except ValueError:
            X_ = check_array(X, ensure_all_finite="allow-nan", dtype=object)

    if len(X_.shape) != 2:
        raise ValueError(
            f"Expected a 2D dataset, got an array of shape {X_.shape} instead."
        )
    if X_.shape[0] == 0:
        raise ValueError("The dataset is empty, at least one observation is needed.")
    return X_


def _check_features(X_, features, feature_names=None):
    """
    Resolve the features of interest to column positions and names.

    Parameters
    ----------
    X_ : DataFrame or ndarray of shape (n_samples, n_features)
        The dataset.
    features : int, str or sequence of int or str
        The features of interest, by name or by position.
    feature_names : array-like of str, default=None
        Names of the columns of `X_`. If None, the column names of a
        DataFrame or ``x0, x1, ...`` for an array.

    Returns
    -------
    features_indices : ndarray of int
        Positions of the features in `X_`, in the order given.
    names : list
        Names of the features, in the order given.

    Raises
    ------
    InvalidFeatureError
        If a feature is not in the dataset, if the list is empty or contains
        duplicates.
    """
    n_features = X_.shape[1]
    try:
        feature_names = _check_feature_names(X_, feature_names)
    except ValueError as exc:
        raise InvalidFeatureError(str(exc)) from exc
    if len(feature_names) != n_features:
        raise InvalidFeatureError(
            f"'feature_names' has {len(feature_names)} elements while the "
            f"dataset contains {n_features} features."
        )

    if features is None:
        raise InvalidFeatureError("At least one feature of interest is required.")
    if isinstance(features, (str, numbers.Integral)):
        features = [features]
    features = list(features)
    if len(features) == 0:
        raise InvalidFeatureError("At least one feature of interest is required.")

    features_indices = []
    for feature in features:
        if isinstance(feature, str):
            try:
                index = _get_feature_index(feature, feature_names=feature_names)
            except ValueError as exc:
                raise InvalidFeatureError(
                    f"The feature {feature!r} is not in the dataset. "
                    f"Available features: {feature_names}."
                ) from exc
        elif isinstance(feature, numbers.Integral) and not isinstance(feature, bool):
            if not 0 <= feature < n_features:
                raise InvalidFeatureError(
                    "all features must be in [0, {}], got {}.".format(
                        n_features - 1, feature
                    )
                )
            index = int(feature)
        else:
            raise InvalidFeatureError(
                f"Features must be given by name or position, got {feature!r}."
            )
        features_indices.append(index)

    if len(set(features_indices)) != len(features_indices):
        raise InvalidFeatureError(f"The features {features} contain duplicates.")
    features_indices = np.asarray(features_indices, dtype=np.intp)
    return features_indices, [feature_names[index] for index in features_indices]


def _is_categorical_column(column):
    """
    Tell whether a column holds categories rather than numbers.

    Pandas categorical columns, strings, booleans and objects that cannot be
    converted to float are categorical.
    """
    if isinstance(getattr(column, "dtype", None), pd.CategoricalDtype):
        return True
    values = np.asarray(column)
    if values.dtype.kind in "USb":
        return True
    if values.dtype.kind == "O":
        try:
            values.astype(np.float64)
        except (TypeError, ValueError):
            return True
    return False


def _check_categorical_features(
    X_, features_indices, categorical_features=None, feature_names=None
):
    """
    Decide for each feature of interest whether it is categorical.

    Parameters
    ----------
    X_ : DataFrame or ndarray of shape (n_samples, n_features)
        The dataset.
    features_indices : ndarray of int
        Positions of the features of interest.
    categorical_features : array-like, default=None
        - None: categorical features are detected from the column types
        - boolean array: mask of shape (n_features,)
        - array of int/str: indices/names of categorical features
        Columns that can not be read as numbers are always categorical.
    feature_names : array-like of str, default=None
        Names of the columns of `X_`.

    Returns
    -------
    is_categorical : list of bool
        One flag per feature of interest.
    """
    detected = [
        _is_categorical_column(_safe_indexing(X_, index, axis=1))
        for index in features_indices
    ]
    if categorical_features is None:
        return detected

    n_features = X_.shape[1]
    categorical_features = np.asarray(categorical_features)
    if categorical_features.size == 0:
        raise ValueError(
            "Passing an empty list (`[]`) to `categorical_features` is not "
            "supported. Use `None` instead to indicate that categorical "
            "features are detected from the column types."
        )
    if categorical_features.dtype.kind == "b":
        # categorical features provided as a list of boolean
        if categorical_features.size != n_features:
            raise ValueError(
                "When `categorical_features` is a boolean array-like, "
                "the array should be of shape (n_features,). Got "
                f"{categorical_features.size} elements while `X` contains "
                f"{n_features} features."
            )
        declared = [bool(categorical_features[index]) for index in features_indices]
    elif categorical_features.dtype.kind in ("i", "O", "U"):
        # categorical features provided as a list of indices or feature names
        feature_names = _check_feature_names(X_, feature_names)
        categorical_indices = []
        for categorical in categorical_features.tolist():
            try:
                categorical_indices.append(
                    _get_feature_index(categorical, feature_names=feature_names)
                )
            except ValueError as exc:
                raise InvalidFeatureError(
                    f"The categorical feature {categorical!r} is not in the dataset."
                ) from exc
        declared = [index in categorical_indices for index in features_indices]
    else:
        raise ValueError(
            "Expected `categorical_features` to be an array-like of boolean,"
            f" integer, or string. Got {categorical_features.dtype} instead."
        )
    return [
        is_declared or is_detected
        for is_declared, is_detected in zip(declared, detected)
    ]
