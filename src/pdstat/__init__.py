from ._utils.exception import (
    DegenerateProbabilityError,
    InsufficientDimensionError,
    InvalidFeatureError,
    InvalidResolutionError,
    PredictionFailureError,
    UnsupportedOutputError,
)
from .adapters import (
    BasePredictionAdapter,
    ClassifierAdapter,
    FunctionAdapter,
    RegressorAdapter,
)
from .extrapolation import ConvexHullRegion, decile_rug
from .grid import build_grid, feature_values
from .partial_dependence import PartialDependence, partial_dependence
from .statistical_tools import centered_logit, class_scores

try:
    from ._version import __version__
except ImportError:
    __version__ = "0.0.0+unknown"

__all__ = [
    "BasePredictionAdapter",
    "build_grid",
    "centered_logit",
    "class_scores",
    "ClassifierAdapter",
    "ConvexHullRegion",
    "decile_rug",
    "DegenerateProbabilityError",
    "feature_values",
    "FunctionAdapter",
    "InsufficientDimensionError",
    "InvalidFeatureError",
    "InvalidResolutionError",
    "partial_dependence",
    "PartialDependence",
    "PredictionFailureError",
    "RegressorAdapter",
    "UnsupportedOutputError",
]
