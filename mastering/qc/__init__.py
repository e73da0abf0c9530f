"""
Loudness analysis and make-up gain correction for rendered masters.
"""
from mastering.qc.loudness import analyze
from mastering.qc.gain_correction import optimal_gain, needs_rerender
from mastering.qc.thresholds import LOUDNESS_THRESHOLDS, GAIN_CORRECTION

__all__ = ["analyze", "optimal_gain", "needs_rerender", "LOUDNESS_THRESHOLDS", "GAIN_CORRECTION"]
