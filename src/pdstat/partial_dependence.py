import warnings

import numpy as np
import pandas as pd
from joblib import Parallel, delayed
from sklearn.base import BaseEstimator
from sklearn.utils import _safe_indexing
from sklearn.utils._indexing import _safe_assign
from sklearn.utils.extmath import cartesian
from sklearn.utils.validation import _check_sample_weight, check_is_fitted
from tqdm import tqdm

from pdstat._utils.exception import (
    InsufficientDimensionError,
    InvalidFeatureError,
    InvalidResolutionError,
    PredictionFailureError,
)
from pdstat._utils.utils import (
    _check_categorical_features,
    _check_dataset,
    _check_features,
    _check_option,
)
from pdstat.adapters import BasePredictionAdapter
from pdstat.extrapolation import ConvexHullRegion, decile_rug
from pdstat.grid import GRID_METHODS, _custom_values_for_features, _grid_from_X
from pdstat.statistical_tools.centered_logit import centered_logit

KINDS = ("average", "individual")
SCALES = ("logit", "probability")
HULL_POLICIES = ("remove", "mark")
# columns added to the table after the features of interest
RESERVED_COLUMNS = ("value", "observation_id", "extrapolated")


def _working_copy(X, features_indices, grid_point):
    """
    Copy of `X` where the features of interest are set to the values of one
    grid point for every observation.
    """
    X_ = X.copy()
    n_samples = X_.shape[0]
    for index, value in zip(features_indices, grid_point):
        if hasattr(X_, "iloc"):
            # replace the whole column so that pandas infers the new dtype
            column = X_.columns[index]
            dtype = X_[column].dtype
            if isinstance(dtype, pd.CategoricalDtype):
                X_[column] = pd.Categorical(
                    [value] * n_samples,
                    categories=dtype.categories,
                    ordered=dtype.ordered,
                )
            else:
                X_[column] = np.full(n_samples, value)
        else:
            _safe_assign(X_, value, column_indexer=index)
    return X_


def _upcast_for_grid(X_, grid):
    """Array dtype able to hold both the data and the grid values."""
    if hasattr(X_, "iloc"):
        return X_
    if X_.dtype.kind in "USO" or grid.dtype.kind == "O":
        dtype = np.dtype(object)
    else:
        dtype = np.result_type(X_.dtype, grid.dtype)
    return X_ if dtype == X_.dtype else X_.astype(dtype)


def _joblib_predict_grid_point(adapter, X, features_indices, grid_point):
    """
    Predict the working copy of one grid point. Used in parallel.

    Returns
    -------
    ndarray of shape (n_samples,) for regression or (n_samples, n_classes)
    for classification.
    """
    X_ = _working_copy(X, features_indices, grid_point)
    try:
        predictions = adapter.predict(X_)
    except Exception as exc:
        raise PredictionFailureError(
            f"The prediction failed for the grid point {tuple(grid_point)}: {exc!r}",
            grid_point=tuple(grid_point),
        ) from exc
    return adapter.check_predictions(predictions, X_.shape[0])


class PartialDependence(BaseEstimator):
    """
    Partial dependence :footcite:t:`friedman2001greedy` and individual
    conditional expectation (ICE) :footcite:t:`goldstein2015peeking` of the
    predictions of a fitted model on a subset of features.

    For each point of a grid of values of the features of interest, the
    features are set to the grid values for every observation of the
    training data, the model predicts, and the predictions are averaged
    (partial dependence) or kept per observation (ICE). For classifiers the
    score of one class is either its probability or its centered log-odds
    :func:`~pdstat.statistical_tools.centered_logit`.

    Parameters
    ----------
    adapter : BasePredictionAdapter
        Gives access to the predictions of the model, see
        :class:`~pdstat.adapters.RegressorAdapter`,
        :class:`~pdstat.adapters.ClassifierAdapter` and
        :class:`~pdstat.adapters.FunctionAdapter`.

    features : int, str or sequence of int or str
        The features of interest, by name or position. Usually 1 to 3.

    kind : {'average', 'individual'}, default='average'
        - 'average': one row per grid point with the mean prediction
        - 'individual': one row per grid point and observation (ICE)

    scale : {'logit', 'probability'}, default='logit'
        Scale of the classification scores: centered log-odds or
        probabilities of `which_class`. Ignored for regression.

    which_class : object, default=None
        Label of the class of interest. If None, the first class of the
        adapter.

    grid_resolution : int or None, default=51
        Maximal number of grid values per numeric feature. If None, all the
        unique values are used.

    grid_method : {'quantile', 'uniform'}, default='quantile'
        Quantile-based or evenly spaced grid values for numeric features,
        see :func:`~pdstat.grid.feature_values`.

    percentiles : tuple of float, default=(0.0, 1.0)
        Lower and upper percentiles bounding the grid of numeric features.

    custom_values : dict, default=None
        Mapping from feature name or column position in `X` to the values to
        use for that feature instead of the generated grid.

    categorical_features : array-like, default=None
        Boolean mask, indices or names of the categorical features. Columns
        of strings, booleans or pandas categories are always categorical.

    feature_names : array-like of str, default=None
        Names of the columns when the data is an array.
        If None, uses ``x0, x1, ...`` for arrays and column names for pandas.

    trim_outliers : bool, default=False
        Remove values beyond 1.5 interquartile range before computing the
        grid of numeric features.

    sample_weight : array-like of shape (n_samples,), default=None
        Weights of the observations in the average. Ignored for 'individual'.

    restrict_to_hull : bool, default=False
        Restrict the grid to the convex hull of the training data in the
        plane of the first two features, which must be numeric.

    hull_policy : {'remove', 'mark'}, default='remove'
        With `restrict_to_hull`, either remove the grid points outside the
        hull (before any prediction) or keep them and flag them in an
        ``extrapolated`` column.

    centered : bool, default=False
        For 'individual', subtract from each curve its value at the first
        grid point (centered ICE).

    probability_floor : float, default=None
        Probabilities below this floor are raised to it before computing
        log-odds. If None, a zero probability raises an error.

    n_jobs : int, default=1
        Number of jobs to run in parallel, the grid points are independent.
        -1 means using all processors.

    timeout : float, default=None
        Timeout in seconds of each parallel task, see :class:`joblib.Parallel`.

    verbose : int, default=0
        Show a progress bar and the joblib messages when greater than 0.
        With `n_jobs > 1` the progress bar counts the grid points sent to
        the workers, not the finished ones.

    Attributes
    ----------
    grid_ : ndarray of shape (n_points, n_target_features)
        Grid points, the last feature varies fastest.

    values_ : list of ndarray
        The value set of each feature.

    feature_names_ : list
        Names of the features of interest.

    features_indices_ : ndarray of int
        Column positions of the features of interest.

    is_categorical_ : list of bool
        Whether each feature of interest is categorical.

    rug_ : dict
        Minimum, deciles and maximum of each numeric feature of interest.

    hull_ : ConvexHullRegion or None
        Convex hull of the first two features when `restrict_to_hull`.

    extrapolated_ : ndarray of shape (n_points,) of bool
        Grid points outside the hull.

    ice_ : ndarray of shape (n_points, n_samples)
        Score of each observation at each grid point.

    averaged_ : ndarray of shape (n_points,)
        Partial dependence at each grid point.

    table_ : DataFrame
        The partial dependence table, see :meth:`compute`.

    See Also
    --------
    sklearn.inspection.partial_dependence : Similar functionality in scikit-learn

    References
    ----------
    .. footbibliography::
    """

    def __init__(
        self,
        adapter,
        features,
        *,
        kind="average",
        scale="logit",
        which_class=None,
        grid_resolution=51,
        grid_method="quantile",
        percentiles=(0.0, 1.0),
        custom_values=None,
        categorical_features=None,
        feature_names=None,
        trim_outliers=False,
        sample_weight=None,
        restrict_to_hull=False,
        hull_policy="remove",
        centered=False,
        probability_floor=None,
        n_jobs: int = 1,
        timeout=None,
        verbose: int = 0,
    ):
        if not isinstance(adapter, BasePredictionAdapter):
            raise ValueError(
                "'adapter' must be a prediction adapter, wrap the model in a "
                "RegressorAdapter, a ClassifierAdapter or a FunctionAdapter."
            )
        self.adapter = adapter
        self.features = features
        self.kind = kind
        self.scale = scale
        self.which_class = which_class
        self.grid_resolution = grid_resolution
        self.grid_method = grid_method
        self.percentiles = percentiles
        self.custom_values = custom_values
        self.categorical_features = categorical_features
        self.feature_names = feature_names
        self.trim_outliers = trim_outliers
        self.sample_weight = sample_weight
        self.restrict_to_hull = restrict_to_hull
        self.hull_policy = hull_policy
        self.centered = centered
        self.probability_floor = probability_floor
        self.n_jobs = n_jobs
        self.timeout = timeout
        self.verbose = verbose

    def _check_which_class(self):
        """Column of the class of interest in the adapter probabilities."""
        classes = self.adapter.classes_
        if classes is None:
            if self.which_class is not None:
                warnings.warn("which_class won't be used for a regression")
            return None
        if self.which_class is None:
            return 0
        if (
            isinstance(self.which_class, (bool, np.bool_))
            and np.asarray(classes).dtype.kind != "b"
        ):
            # True == 1 would select the class 1
            raise ValueError(
                f"which_class must be a class label, got {self.which_class!r}."
            )
        matches = [
            index for index, label in enumerate(classes) if label == self.which_class
        ]
        if len(matches) == 0:
            raise ValueError(
                f"which_class={self.which_class!r} is not one of the classes "
                f"{list(classes)}."
            )
        return matches[0]

    def fit(self, X, y=None):
        """
        Validate the configuration and build the grid on the training data.

        Parameters
        ----------
        X : DataFrame, ndarray or list of dict of shape (n_samples, n_features)
            Training data, in the format the model was fitted on.

        y : array-like of shape (n_samples,)
            (Not used) Target values. Not used, present here for API
            consistency.

        Returns
        -------
        self : object
            Returns the instance itself.

        Raises
        ------
        InvalidFeatureError
            If a feature is not in the dataset.
        InvalidResolutionError
            If the grid configuration is invalid or if no grid point is left
            inside the convex hull.
        UnsupportedOutputError
            If the adapter can not supply class probabilities.
        InsufficientDimensionError
            If the hull restriction is requested with fewer than two numeric
            features.
        """
        if y is not None:
            warnings.warn("y won't be used")
        _check_option(self.kind, "kind", KINDS)
        _check_option(self.scale, "scale", SCALES)
        _check_option(self.hull_policy, "hull_policy", HULL_POLICIES)
        if self.grid_method not in GRID_METHODS:
            raise InvalidResolutionError(
                f"'grid_method' must be one of {GRID_METHODS}, "
                f"got {self.grid_method!r}."
            )
        if self.adapter.is_classification:
            self.adapter.check_output(self.scale)
        self.class_index_ = self._check_which_class()

        X_ = _check_dataset(X)
        self.n_features_in_ = X_.shape[1]
        self.features_indices_, self.feature_names_ = _check_features(
            X_, self.features, self.feature_names
        )
        reserved = [name for name in self.feature_names_ if name in RESERVED_COLUMNS]
        if len(reserved) > 0:
            raise InvalidFeatureError(
                f"The features {reserved} have the name of a column of the partial "
                f"dependence table {RESERVED_COLUMNS}, rename them."
            )
        self.is_categorical_ = _check_categorical_features(
            X_, self.features_indices_, self.categorical_features, self.feature_names
        )
        self.values_ = _grid_from_X(
            _safe_indexing(X_, self.features_indices_, axis=1),
            self.is_categorical_,
            self.grid_resolution,
            self.grid_method,
            self.percentiles,
            _custom_values_for_features(
                self.custom_values, self.features_indices_, self.feature_names_
            ),
            self.trim_outliers,
        )
        grid = cartesian(self.values_)

        self.rug_ = {
            name: decile_rug(_safe_indexing(X_, index, axis=1))
            for name, index, is_cat in zip(
                self.feature_names_, self.features_indices_, self.is_categorical_
            )
            if not is_cat
        }

        self.hull_ = None
        inside = np.ones(grid.shape[0], dtype=bool)
        if self.restrict_to_hull:
            if len(self.features_indices_) < 2 or any(self.is_categorical_[:2]):
                raise InsufficientDimensionError(
                    "The convex hull restriction needs at least two features of "
                    "interest and the first two must be numeric."
                )
            self.hull_ = ConvexHullRegion().fit(
                _safe_indexing(X_, self.features_indices_[:2], axis=1)
            )
            inside = self.hull_.contains(grid[:, :2].astype(np.float64))
            if self.hull_policy == "remove":
                grid = grid[inside]
                inside = inside[inside]
                if grid.shape[0] == 0:
                    raise InvalidResolutionError(
                        "No grid point lies inside the convex hull of the "
                        "training data. Increase 'grid_resolution'."
                    )
        self.grid_ = grid
        self.extrapolated_ = np.logical_not(inside)

        self.ice_ = None
        self.averaged_ = None
        self.table_ = None
        return self

    def _predict_grid(self, X_):
        """
        Predictions of the adapter at every grid point.

        Returns
        -------
        ndarray of shape (n_points, n_samples) for regression or
        (n_points, n_samples, n_classes) for classification.
        """
        predictions = Parallel(
            n_jobs=self.n_jobs, timeout=self.timeout, verbose=self.verbose
        )(
            delayed(_joblib_predict_grid_point)(
                self.adapter, X_, self.features_indices_, grid_point
            )
            for grid_point in tqdm(
                self.grid_, total=self.grid_.shape[0], disable=self.verbose == 0
            )
        )
        return np.stack(predictions, axis=0)

    def _scores(self, predictions):
        """Reduce class probabilities to the score of the class of interest."""
        if self.class_index_ is None:
            return predictions
        if self.scale == "probability":
            return predictions[:, :, self.class_index_]
        n_points, n_samples, n_classes = predictions.shape
        scores = centered_logit(
            predictions.reshape(n_points * n_samples, n_classes),
            self.class_index_,
            probability_floor=self.probability_floor,
        )
        return scores.reshape(n_points, n_samples)

    def compute(self, X):
        """
        Compute the partial dependence table.

        Parameters
        ----------
        X : DataFrame, ndarray or list of dict of shape (n_samples, n_features)
            Training data, usually the one given to :meth:`fit`. It is never
            modified.

        Returns
        -------
        table : DataFrame
            One column per feature of interest, in the order given, then:
            - ``value``: the mean score ('average') or the score of one
              observation ('individual')
            - ``observation_id``: position of the observation in `X`, only
              for 'individual'
            - ``extrapolated``: True outside the convex hull, only with
              ``restrict_to_hull=True`` and ``hull_policy='mark'``
            There is one row per grid point ('average') or one row per grid
            point and observation ('individual', all the observations of the
            first grid point come first).

        Raises
        ------
        PredictionFailureError
            If the adapter fails for a grid point. No table is produced.
        UnsupportedOutputError
            If the adapter output has not the expected shape.
        DegenerateProbabilityError
            If a zero probability makes the log-odds undefined.
        """
        check_is_fitted(self, "grid_")
        X_ = _check_dataset(X)
        if X_.shape[1] != self.n_features_in_:
            raise InvalidFeatureError(
                f"X has {X_.shape[1]} features, but {self.__class__.__name__} "
                f"was fitted with {self.n_features_in_} features."
            )
        sample_weight = None
        if self.kind == "individual":
            if self.sample_weight is not None:
                warnings.warn(
                    "sample_weight won't be used for individual conditional "
                    "expectation"
                )
        else:
            if self.centered:
                warnings.warn(
                    "centered won't be used for the average partial dependence"
                )
            if self.sample_weight is not None:
                sample_weight = _check_sample_weight(self.sample_weight, X_)

        self.ice_ = None
        self.averaged_ = None
        self.table_ = None
        predictions = self._predict_grid(_upcast_for_grid(X_, self.grid_))
        ice = self._scores(predictions)
        if self.kind == "individual" and self.centered:
            ice = ice - ice[0]
        averaged = np.average(ice, axis=1, weights=sample_weight)

        self.ice_ = ice
        self.averaged_ = averaged
        self.table_ = self._build_table(ice, averaged)
        return self.table_

    def _build_table(self, ice, averaged):
        n_points, n_samples = ice.shape
        if self.kind == "average":
            point_index = np.arange(n_points)
        else:
            point_index = np.repeat(np.arange(n_points), n_samples)

        columns = {}
        for position, name in enumerate(self.feature_names_):
            columns[name] = self.grid_[point_index, position]
        if self.kind == "average":
            columns["value"] = averaged
        else:
            columns["value"] = ice.ravel()
            columns["observation_id"] = np.tile(np.arange(n_samples), n_points)
        if self.restrict_to_hull and self.hull_policy == "mark":
            columns["extrapolated"] = self.extrapolated_[point_index]
        return pd.DataFrame(columns).infer_objects()

    def fit_compute(self, X, y=None):
        """
        Convenience method to build the grid and compute the table in one
        step.

        Parameters
        ----------
        X : DataFrame, ndarray or list of dict of shape (n_samples, n_features)
            Training data.

        y : array-like of shape (n_samples,), default=None
            Not used, kept for API compatibility.

        Returns
        -------
        table : DataFrame
            See :meth:`compute`.
        """
        self.fit(X, y)
        return self.compute(X)


def partial_dependence(
    adapter,
    X,
    features,
    *,
    kind="average",
    scale="logit",
    which_class=None,
    grid_resolution=51,
    grid_method="quantile",
    percentiles=(0.0, 1.0),
    custom_values=None,
    categorical_features=None,
    feature_names=None,
    trim_outliers=False,
    sample_weight=None,
    restrict_to_hull=False,
    hull_policy="remove",
    centered=False,
    probability_floor=None,
    n_jobs: int = 1,
    timeout=None,
    verbose: int = 0,
):
    """
    Partial dependence table of the predictions of `adapter` on `features`.

    Shortcut for ``PartialDependence(adapter, features, ...).fit_compute(X)``,
    see :class:`PartialDependence` for the parameters.

    Returns
    -------
    table : DataFrame
        Feature columns, then ``value`` (and ``observation_id`` for
        ``kind='individual'``, ``extrapolated`` for ``hull_policy='mark'``).
    """
    method = PartialDependence(
        adapter,
        features,
        kind=kind,
        scale=scale,
        which_class=which_class,
        grid_resolution=grid_resolution,
        grid_method=grid_method,
        percentiles=percentiles,
        custom_values=custom_values,
        categorical_features=categorical_features,
        feature_names=feature_names,
        trim_outliers=trim_outliers,
        sample_weight=sample_weight,
        restrict_to_hull=restrict_to_hull,
        hull_policy=hull_policy,
        centered=centered,
        probability_floor=probability_floor,
        n_jobs=n_jobs,
        timeout=timeout,
        verbose=verbose,
    )
    return method.fit_compute(X)
