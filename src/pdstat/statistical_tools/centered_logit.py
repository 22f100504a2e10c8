import warnings

import numpy as np

from pdstat._utils.exception import DegenerateProbabilityError, UnsupportedOutputError


def class_scores(proba, probability_floor=None):
    """
    Centered log-odds of every class.

    For an observation with class probabilities :math:`p_1, ..., p_K`, the
    score of class :math:`k` is

    .. math::

        s_k = \\ln p_k - \\frac{1}{K} \\sum_{j=1}^{K} \\ln p_j

    so that the scores of an observation sum to zero. This is the scale used
    to display the partial dependence of a classifier.

    Parameters
    ----------
    proba : array-like of shape (n_samples, n_classes)
        Class probabilities, one row per observation.
    probability_floor : float, default=None
        If given, probabilities below the floor are raised to it before the
        logarithm. Must be in (0, 1 / n_classes). A warning reports how many
        probabilities were modified. If None, a zero probability is an error.

    Returns
    -------
    ndarray of shape (n_samples, n_classes)
        Centered log-odds of each class.

    Raises
    ------
    UnsupportedOutputError
        If there are fewer than 2 classes.
    DegenerateProbabilityError
        If a probability is zero and no floor is given.
    """
    proba = np.asarray(proba, dtype=np.float64)
    if proba.ndim != 2 or proba.shape[1] < 2:
        raise UnsupportedOutputError(
            "Centered log-odds need probabilities of shape (n_samples, n_classes) "
            f"with at least 2 classes, got shape {proba.shape}."
        )
    n_classes = proba.shape[1]

    if probability_floor is not None:
        if not 0.0 < probability_floor < 1.0 / n_classes:
            raise ValueError(
                f"'probability_floor' must be in (0, {1.0 / n_classes}), "
                f"got {probability_floor}."
            )
        n_floored = np.count_nonzero(proba < probability_floor)
        if n_floored > 0:
            warnings.warn(
                f"{n_floored} probabilities below {probability_floor} were raised "
                "to the floor before computing the log-odds."
            )
            proba = np.maximum(proba, probability_floor)

    n_zeros = np.count_nonzero(proba <= 0.0)
    if n_zeros > 0:
        raise DegenerateProbabilityError(
            f"{n_zeros} class probabilities are zero: the log-odds are undefined. "
            "Use the 'probability' scale or set 'probability_floor'."
        )

    log_proba = np.log(proba)
    return log_proba - np.mean(log_proba, axis=1, keepdims=True)


def centered_logit(proba, class_index, probability_floor=None):
    """
    Centered log-odds of one class.

    Parameters
    ----------
    proba : array-like of shape (n_samples, n_classes)
        Class probabilities, one row per observation.
    class_index : int
        Column of `proba` holding the class of interest.
    probability_floor : float, default=None
        See :func:`class_scores`.

    Returns
    -------
    ndarray of shape (n_samples,)
        The score of the class of interest for each observation.

    See Also
    --------
    class_scores : scores of all the classes.
    """
    return class_scores(proba, probability_floor=probability_floor)[:, class_index]
