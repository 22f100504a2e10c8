import numpy as np
import pytest
from numpy.testing import assert_almost_equal, assert_array_equal
from sklearn.exceptions import NotFittedError

from pdstat import ConvexHullRegion, InsufficientDimensionError, decile_rug


def test_decile_rug():
    """Minimum, deciles and maximum"""
    rug = decile_rug(np.arange(101.0))
    assert_almost_equal(rug, np.arange(0.0, 101.0, 10.0))


def test_decile_rug_ignores_missing():
    rug = decile_rug(np.array([np.nan, 0.0, 10.0, np.inf]))
    assert_almost_equal(rug[[0, -1]], [0.0, 10.0])


@pytest.fixture
def square_hull():
    """Hull of the unit square with an inner point"""
    X = np.array([[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 1.0], [0.5, 0.5]])
    return ConvexHullRegion().fit(X)


def test_hull_vertices(square_hull):
    assert square_hull.vertices_.shape == (4, 2)
    assert square_hull.equations_.shape == (4, 3)


def test_inside_hull(square_hull):
    """Points inside, on the boundary and outside"""
    assert square_hull.inside_hull([0.5, 0.2])
    assert square_hull.inside_hull([1.0, 0.5])
    assert square_hull.inside_hull([0.0, 0.0])
    assert not square_hull.inside_hull([1.5, 0.5])
    assert not square_hull.inside_hull([-1e-3, 0.5])


def test_inside_hull_idempotent(square_hull):
    """The same point gives the same answer"""
    answers = [square_hull.inside_hull([0.99, 0.01]) for _ in range(5)]
    assert answers == [True] * 5


def test_hull_permutation_invariance():
    """The order of the training points does not change the hull"""
    rng = np.random.default_rng(0)
    X = rng.normal(size=(100, 2))
    points = rng.normal(scale=2.0, size=(200, 2))
    inside = ConvexHullRegion().fit(X).contains(points)
    inside_permuted = ConvexHullRegion().fit(X[rng.permutation(100)]).contains(points)
    assert_array_equal(inside, inside_permuted)
    assert 0 < inside.sum() < 200


def test_hull_training_points_inside():
    rng = np.random.default_rng(1)
    X = rng.uniform(size=(50, 2))
    assert np.all(ConvexHullRegion().fit(X).contains(X))


def test_hull_uses_first_two_columns():
    rng = np.random.default_rng(2)
    X = rng.uniform(size=(50, 3))
    hull = ConvexHullRegion().fit(X)
    assert_array_equal(hull.contains(X[:, :2]), np.ones(50, dtype=bool))


class TestHullExceptions:
    """Test class for convex hull exceptions"""

    def test_one_feature(self):
        with pytest.raises(InsufficientDimensionError, match="needs two features"):
            ConvexHullRegion().fit(np.zeros((10, 1)))

    def test_two_points(self):
        with pytest.raises(InsufficientDimensionError, match="at least 3 points"):
            ConvexHullRegion().fit(np.array([[0.0, 0.0], [1.0, 1.0]]))

    def test_collinear_points(self):
        X = np.column_stack([np.arange(10.0), 2 * np.arange(10.0)])
        with pytest.raises(InsufficientDimensionError, match="do not span"):
            ConvexHullRegion().fit(X)

    def test_point_dimension(self, square_hull):
        with pytest.raises(InsufficientDimensionError, match="two coordinates"):
            square_hull.inside_hull([0.5, 0.5, 0.5])

    def test_not_fitted(self):
        with pytest.raises(NotFittedError):
            ConvexHullRegion().contains([[0.0, 0.0]])
