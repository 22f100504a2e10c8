class InvalidFeatureError(ValueError):
    """
    Raised when a requested feature is not part of the dataset schema.

    Parameters
    ----------
    message: str
        Message of explanation of the error
    """


class InvalidResolutionError(ValueError):
    """
    Raised when the grid configuration (resolution, percentiles or grid
    method) cannot produce a grid.
    """


class UnsupportedOutputError(ValueError):
    """
    Raised when a prediction adapter cannot supply the output requested,
    e.g. class probabilities from a classifier without ``predict_proba``.
    """


class PredictionFailureError(RuntimeError):
    """
    Raised when the prediction adapter fails for a grid point. The original
    exception is available as ``__cause__``.

    Parameters
    ----------
    message: str
        Message of explanation of the error
    grid_point: tuple or None
        The grid values being evaluated when the failure happened.
    """

    def __init__(self, message, grid_point=None):
        super().__init__(message)
        self.message = message
        self.grid_point = grid_point

    def __reduce__(self):
        # keep the grid point when the error crosses a joblib worker boundary
        return (type(self), (self.message, self.grid_point))


class DegenerateProbabilityError(ValueError):
    """
    Raised when a zero probability makes the log-odds undefined.
    """


class InsufficientDimensionError(ValueError):
    """
    Raised when a convex hull is requested on fewer than two features or on
    points that do not span two dimensions.
    """
