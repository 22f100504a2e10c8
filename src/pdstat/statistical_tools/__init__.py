from .centered_logit import centered_logit, class_scores

__all__ = [
    "centered_logit",
    "class_scores",
]
