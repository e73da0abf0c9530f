"""
Make-up gain correction: decide whether a rendered master should be rendered
once more with a different make-up gain. There is at most one correction pass.
"""
import logging
from typing import Optional

from mastering.chain.presets import BASIC_PROFILE, TierProfile
from mastering.core.params import clamp_if_bounds
from mastering.core.types import VolumeAnalysis
from mastering.qc.thresholds import GAIN_CORRECTION

logger = logging.getLogger("mastering.qc")


def basic_optimal_gain(analysis: VolumeAnalysis, correction: Optional[dict] = None) -> float:
    """
    target / average ratio clamped to [gain_min, gain_max] when correction is
    needed, otherwise the default gentle make-up gain.
    """
    correction = correction or GAIN_CORRECTION
    if not analysis.needs_correction:
        return correction["default_gain"]
    raw = correction["target_ratio"] / analysis.average_ratio
    return clamp_if_bounds(raw, correction["gain_min"], correction["gain_max"])


def optimal_gain(analysis: VolumeAnalysis, profile: TierProfile = BASIC_PROFILE) -> float:
    """Tier-aware optimal make-up gain (premium scales the basic result up)."""
    return basic_optimal_gain(analysis) * profile.gain_multiplier


def needs_rerender(optimal: float, profile: TierProfile = BASIC_PROFILE,
                   applied: Optional[float] = None) -> bool:
    """True when optimal differs from the applied make-up gain by more than the tier threshold."""
    applied = profile.initial_makeup_gain if applied is None else applied
    delta = abs(optimal - applied)
    decision = delta > profile.retry_threshold
    logger.info(
        "Make-up gain %s: applied %.3f, optimal %.3f (delta %.3f, threshold %.2f)",
        "re-render" if decision else "kept", applied, optimal, delta, profile.retry_threshold,
    )
    return decision
