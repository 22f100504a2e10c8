import numbers
from collections.abc import Iterable

import numpy as np
from scipy.stats.mstats import mquantiles
from sklearn.utils import _safe_indexing
from sklearn.utils.extmath import cartesian

from pdstat._utils.exception import InvalidFeatureError, InvalidResolutionError
from pdstat._utils.utils import (
    _check_categorical_features,
    _check_dataset,
    _check_features,
)

GRID_METHODS = ("quantile", "uniform")


def _check_grid_resolution(grid_resolution):
    """grid_resolution is a positive integer or None (all unique values)."""
    if grid_resolution is None:
        return
    if (
        not isinstance(grid_resolution, numbers.Integral)
        or isinstance(grid_resolution, bool)
        or grid_resolution <= 0
    ):
        raise InvalidResolutionError(
            "'grid_resolution' must be a strictly positive integer or None, "
            f"got {grid_resolution!r}."
        )


def _check_percentiles(percentiles):
    if not isinstance(percentiles, Iterable) or len(percentiles) != 2:
        raise InvalidResolutionError("'percentiles' must be a sequence of 2 elements.")
    if not all(0 <= x <= 1 for x in percentiles):
        raise InvalidResolutionError("'percentiles' values must be in [0, 1].")
    if percentiles[0] >= percentiles[1]:
        raise InvalidResolutionError(
            "percentiles[0] must be strictly less than percentiles[1]."
        )


def _convert_custom_values(values):
    # object types are always used for string arrays
    dtype = object if any(isinstance(v, str) for v in values) else None
    return np.asarray(values, dtype=dtype)


def _trim_outliers(x):
    """Drop the values beyond 1.5 interquartile range of the quartiles."""
    q1, q3 = np.percentile(x, [25, 75])
    whisker = 1.5 * (q3 - q1)
    return x[(x >= q1 - whisker) & (x <= q3 + whisker)]


def feature_values(
    x,
    *,
    grid_resolution=51,
    grid_method="quantile",
    percentiles=(0.0, 1.0),
    is_categorical=False,
    trim_outliers=False,
    custom_values=None,
):
    """
    Compute the values at which partial dependence is evaluated for one
    feature.

    Parameters
    ----------
    x : array-like of shape (n_samples,)
        Training values of the feature.

    grid_resolution : int or None, default=51
        Maximal number of grid values for a numeric feature. If the feature
        has at most `grid_resolution` unique values, or if None, the unique
        values are used.

    grid_method : {'quantile', 'uniform'}, default='quantile'
        How values are chosen for a numeric feature with more unique values
        than `grid_resolution`:
        - 'quantile': empirical quantiles at `grid_resolution` evenly spaced
          probabilities between the two `percentiles` (duplicates removed)
        - 'uniform': `grid_resolution` evenly spaced values between the
          empirical percentiles

    percentiles : tuple of float, default=(0.0, 1.0)
        Lower and upper percentiles bounding the grid of a numeric feature.
        The default spans the observed range.

    is_categorical : bool, default=False
        If True, all unique observed levels are used.

    trim_outliers : bool, default=False
        If True, values beyond 1.5 interquartile range are removed from a
        numeric feature before computing its grid.

    custom_values : array-like of shape (n_values,), default=None
        Explicit values, used as given.

    Returns
    -------
    values : ndarray of shape (n_values,)
        The grid values of the feature.

    Raises
    ------
    InvalidResolutionError
        If the resolution, the percentiles or the grid method are invalid.
    ValueError
        If the custom values are not one-dimensional or if the categories
        can not be sorted.
    """
    _check_grid_resolution(grid_resolution)
    _check_percentiles(percentiles)
    if grid_method not in GRID_METHODS:
        raise InvalidResolutionError(
            f"'grid_method' must be one of {GRID_METHODS}, got {grid_method!r}."
        )

    if custom_values is not None:
        values = _convert_custom_values(custom_values)
        if values.ndim != 1:
            raise ValueError(
                "The custom grid for some features is not a one-dimensional array. "
                f"Got {values.ndim} dimensions."
            )
        if values.size == 0:
            raise InvalidResolutionError("The custom grid of a feature is empty.")
        return values

    x = np.asarray(x)
    if is_categorical:
        try:
            uniques = np.unique(x)
        except TypeError as exc:
            # `np.unique` will fail in the presence of `np.nan` and `str`
            # categories due to sorting.
            raise ValueError(
                "The column contains mixed data types. Finding unique "
                "categories fail due to sorting. It usually means that the column "
                "contains `np.nan` values together with `str` categories."
            ) from exc
        return np.asarray(uniques, dtype=object)

    if x.dtype.kind == "O":
        x = x.astype(np.float64)
    # TODO: missing values are dropped from the grid, they could be evaluated
    # as a grid value of their own.
    x = x[~np.isnan(x)]
    if x.size == 0:
        raise ValueError("The column has no finite value to build a grid from.")
    if trim_outliers:
        x = _trim_outliers(x)

    uniques = np.unique(x)
    if grid_resolution is None or uniques.shape[0] <= grid_resolution:
        # low resolution feature, use the unique values
        return uniques

    if grid_method == "quantile":
        probabilities = np.linspace(percentiles[0], percentiles[1], grid_resolution)
        return np.unique(np.asarray(mquantiles(x, prob=probabilities)))

    emp_percentiles = np.asarray(mquantiles(x, prob=percentiles))
    if np.allclose(emp_percentiles[0], emp_percentiles[1]):
        raise InvalidResolutionError(
            "percentiles are too close to each other, "
            "unable to build the grid. Please choose percentiles "
            "that are further apart."
        )
    return np.linspace(
        emp_percentiles[0], emp_percentiles[1], num=grid_resolution, endpoint=True
    )


def _custom_values_for_features(custom_values, features_indices, names):
    """
    Map the user custom values, keyed by feature name or column position in
    the dataset, to the position of the feature in the feature subset.
    """
    if not custom_values:
        return {}
    mapped = {}
    for key, values in custom_values.items():
        is_position = isinstance(key, numbers.Integral) and not isinstance(key, bool)
        matches = [
            i
            for i, (index, name) in enumerate(zip(features_indices, names))
            if (is_position and key == index) or key == name
        ]
        if len(matches) == 0:
            raise InvalidFeatureError(
                f"'custom_values' has values for {key!r} which is not one of "
                f"the features of interest {list(names)}."
            )
        mapped[matches[0]] = values
    return mapped


def _grid_from_X(
    X_subset,
    is_categorical,
    grid_resolution,
    grid_method,
    percentiles,
    custom_values,
    trim_outliers=False,
):
    """
    Compute the value set of each column of `X_subset`.

    Parameters
    ----------
    X_subset : array-like of shape (n_samples, n_target_features)
        The columns of the features of interest.
    is_categorical : list of bool
        For each feature, indicates whether it is categorical or not.
    grid_resolution, grid_method, percentiles, trim_outliers :
        See :func:`feature_values`.
    custom_values : dict
        Mapping from column index of `X_subset` to custom values.

    Returns
    -------
    values : list of 1d ndarrays
        The grid values of each feature.
    """
    return [
        feature_values(
            _safe_indexing(X_subset, index, axis=1),
            grid_resolution=grid_resolution,
            grid_method=grid_method,
            percentiles=percentiles,
            is_categorical=is_cat,
            trim_outliers=trim_outliers,
            custom_values=custom_values.get(index),
        )
        for index, is_cat in enumerate(is_categorical)
    ]


def build_grid(
    X,
    features,
    *,
    grid_resolution=51,
    grid_method="quantile",
    percentiles=(0.0, 1.0),
    categorical_features=None,
    feature_names=None,
    custom_values=None,
    trim_outliers=False,
):
    """
    Build the grid of values at which partial dependence is evaluated.

    The grid is the cartesian product of the value sets of the features. The
    last feature varies fastest: with features ``[a, b]`` the grid is
    ``(a0, b0), (a0, b1), ..., (a1, b0), ...``.

    Parameters
    ----------
    X : DataFrame, ndarray or list of dict of shape (n_samples, n_features)
        Training data.
    features : int, str or sequence of int or str
        The features of interest, by name or position.
    grid_resolution : int or None, default=51
        See :func:`feature_values`.
    grid_method : {'quantile', 'uniform'}, default='quantile'
        See :func:`feature_values`.
    percentiles : tuple of float, default=(0.0, 1.0)
        See :func:`feature_values`.
    categorical_features : array-like, default=None
        Boolean mask, indices or names of categorical features. Columns of
        strings, booleans or pandas categories are always categorical.
    feature_names : array-like of str, default=None
        Names of the columns of `X` when it is an array.
    custom_values : dict, default=None
        Mapping from feature name or column position in `X` to the values to
        use for that feature.
    trim_outliers : bool, default=False
        See :func:`feature_values`.

    Returns
    -------
    grid : ndarray of shape (n_points, n_target_features)
        One row per grid point, ``n_points`` is the product of the lengths
        of `values`.
    values : list of 1d ndarrays
        The value set of each feature.

    Raises
    ------
    InvalidFeatureError
        If a feature is not in the dataset.
    InvalidResolutionError
        If the grid configuration is invalid.
    """
    X_ = _check_dataset(X)
    features_indices, names = _check_features(X_, features, feature_names)
    is_categorical = _check_categorical_features(
        X_, features_indices, categorical_features, feature_names
    )
    values = _grid_from_X(
        _safe_indexing(X_, features_indices, axis=1),
        is_categorical,
        grid_resolution,
        grid_method,
        percentiles,
        _custom_values_for_features(custom_values, features_indices, names),
        trim_outliers,
    )
    return cartesian(values), values
