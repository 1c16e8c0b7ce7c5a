from .constraints import ConstraintEnforcer, clamp_region, resolve_aspect_ratio, to_display_constraints
from .output import fit_output_size
from .quality import QualityEvaluator
from .scale import NEUTRAL_SCALE, scale_of, to_display, to_original

__all__ = [
    "ConstraintEnforcer",
    "NEUTRAL_SCALE",
    "QualityEvaluator",
    "clamp_region",
    "fit_output_size",
    "resolve_aspect_ratio",
    "scale_of",
    "to_display",
    "to_display_constraints",
    "to_original",
]
