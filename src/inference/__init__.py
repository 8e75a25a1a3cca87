"""Transform, prior construction, hierarchical model and posterior storage."""

from .model import FitResult, ModelConfig, TeamQualityModel
from .posterior import PosteriorSamples
from .priors import prior_scores_from_ranks
from .transform import inverse_transform_differential, transform_differential

__all__ = [
    "FitResult",
    "ModelConfig",
    "TeamQualityModel",
    "PosteriorSamples",
    "prior_scores_from_ranks",
    "inverse_transform_differential",
    "transform_differential",
]
