import numpy as np
from scipy.spatial import ConvexHull, QhullError
from sklearn.base import BaseEstimator
from sklearn.utils.validation import check_is_fitted

from pdstat._utils.exception import InsufficientDimensionError


def decile_rug(x):
    """
    Positions of the rug marks of a feature: the minimum, the nine deciles
    and the maximum of its training values.

    Parameters
    ----------
    x : array-like of shape (n_samples,)
        Training values of a numeric feature. Missing values are ignored.

    Returns
    -------
    ndarray of shape (11,)
        Quantiles of `x` at 0, 0.1, ..., 0.9, 1.
    """
    x = np.asarray(x, dtype=np.float64).ravel()
    x = x[np.isfinite(x)]
    if x.size == 0:
        raise ValueError("The rug needs at least one finite value.")
    return np.quantile(x, np.linspace(0.0, 1.0, 11))


class ConvexHullRegion(BaseEstimator):
    """
    Convex hull of the training data in the plane of two features.

    Grid points outside the hull are far from the training data and the
    partial dependence there is an extrapolation of the model.

    Parameters
    ----------
    tol : float, default=1e-10
        Points at a distance from the hull smaller than `tol` times the
        magnitude of the training data are inside. Points on the boundary
        are inside.

    Attributes
    ----------
    vertices_ : ndarray of shape (n_vertices, 2)
        Vertices of the hull, in counterclockwise order.
    equations_ : ndarray of shape (n_vertices, 3)
        Hyperplane equations ``[normal, offset]`` of the edges, the inside
        of the hull is where ``normal @ point + offset <= 0``.
    tolerance_ : float
        Absolute tolerance used by :meth:`contains`.
    """

    def __init__(self, tol=1e-10):
        self.tol = tol

    def fit(self, X, y=None):
        """
        Compute the convex hull of the first two columns of `X`.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Numeric training data, ``n_features >= 2``. Only the first two
            columns are used, rows with missing values are ignored.
        y : None
            Not used, present here for API consistency.

        Returns
        -------
        self : object
            Returns the instance itself.

        Raises
        ------
        InsufficientDimensionError
            If `X` has fewer than two columns or if its points do not span
            two dimensions (fewer than three distinct points or all on a
            line).
        """
        X_ = np.asarray(X, dtype=np.float64)
        if X_.ndim != 2 or X_.shape[1] < 2:
            raise InsufficientDimensionError(
                "A convex hull needs two features, got data of shape "
                f"{X_.shape}."
            )
        X_ = X_[:, :2]
        X_ = X_[np.all(np.isfinite(X_), axis=1)]
        if X_.shape[0] < 3:
            raise InsufficientDimensionError(
                f"A convex hull needs at least 3 points, got {X_.shape[0]}."
            )
        try:
            hull = ConvexHull(X_)
        except QhullError as exc:
            raise InsufficientDimensionError(
                "The training points do not span two dimensions, the convex "
                "hull is not defined."
            ) from exc
        self.vertices_ = X_[hull.vertices]
        self.equations_ = hull.equations
        self.tolerance_ = self.tol * max(1.0, np.max(np.abs(X_)))
        return self

    def contains(self, points):
        """
        Test which points are inside the hull.

        Parameters
        ----------
        points : array-like of shape (n_points, 2)
            Points in the plane of the two features.

        Returns
        -------
        ndarray of shape (n_points,) of bool
            True for the points inside the hull or on its boundary.
        """
        check_is_fitted(self, "equations_")
        points = np.atleast_2d(np.asarray(points, dtype=np.float64))
        if points.shape[1] != 2:
            raise InsufficientDimensionError(
                f"Points must have two coordinates, got shape {points.shape}."
            )
        distances = points @ self.equations_[:, :2].T + self.equations_[:, 2]
        return np.all(distances <= self.tolerance_, axis=1)

    def inside_hull(self, point):
        """
        Test if one point is inside the hull.

        Parameters
        ----------
        point : array-like of shape (2,)
            Values of the two features.

        Returns
        -------
        bool
        """
        point = np.asarray(point, dtype=np.float64).ravel()
        if point.shape != (2,):
            raise InsufficientDimensionError(
                f"A point must have two coordinates, got {point.shape[0]}."
            )
        return bool(self.contains(point[np.newaxis, :])[0])
