"""
Segment-wise loudness comparison between the original and the rendered master.
Uses channel 0 of each buffer as the reference channel. Never raises for
silent or degenerate input.
"""
import logging
from typing import List, Optional

import numpy as np

from mastering.core.types import SampleBuffer, VolumeAnalysis
from mastering.qc.thresholds import LOUDNESS_THRESHOLDS

logger = logging.getLogger("mastering.qc")


def _segment_bounds(length: int, segments: int) -> List[tuple]:
    """
    Equal contiguous segments; the last one absorbs the remainder.
    Buffers shorter than `segments` samples get one segment per sample.
    """
    size = length // segments
    if size == 0:
        return [(i, i + 1) for i in range(length)]
    bounds = [(i * size, (i + 1) * size) for i in range(segments)]
    bounds[-1] = (bounds[-1][0], length)
    return bounds


def _rms(x: np.ndarray) -> float:
    if x.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(x.astype(np.float64) ** 2)))


def segment_ratios(original: np.ndarray, processed: np.ndarray, thresholds: Optional[dict] = None) -> List[float]:
    thresholds = thresholds or LOUDNESS_THRESHOLDS
    length = min(original.shape[-1], processed.shape[-1])
    ratios = []
    for start, end in _segment_bounds(length, thresholds["segments"]):
        orig_rms = _rms(original[start:end])
        if orig_rms < thresholds["silence_rms"]:
            ratios.append(1.0)
            continue
        ratios.append(_rms(processed[start:end]) / orig_rms)
    return ratios


def analyze(original: SampleBuffer, processed: SampleBuffer, thresholds: Optional[dict] = None) -> VolumeAnalysis:
    """
    Compare processed against original.

    Returns:
        VolumeAnalysis with per-segment ratios (processed/original RMS), the mean
        of the retained ratios, consistency = 1 / (1 + variance) and the
        needs-correction flag.
    """
    thresholds = thresholds or LOUDNESS_THRESHOLDS
    orig = original.channel(0).detach().cpu().numpy()
    proc = processed.channel(0).detach().cpu().numpy()

    ratios = segment_ratios(orig, proc, thresholds)
    valid = [r for r in ratios if thresholds["ratio_min"] < r < thresholds["ratio_max"]]

    if valid:
        average = float(np.mean(valid))
        variance = float(np.mean((np.asarray(valid) - average) ** 2))
    else:
        # Everything looked like silence or noise; nothing to correct against
        average = 1.0
        variance = 0.0

    consistency = 1.0 / (1.0 + variance)
    needs_correction = (
        consistency < thresholds["consistency_min"]
        or abs(average - 1.0) > thresholds["average_deviation_max"]
    )

    analysis = VolumeAnalysis(
        segment_ratios=ratios,
        average_ratio=average,
        consistency_score=consistency,
        needs_correction=needs_correction,
    )
    logger.info(
        "Loudness: avg ratio %.3f, consistency %.3f, %d/%d segments kept, needs correction=%s",
        average, consistency, len(valid), len(ratios), needs_correction,
    )
    return analysis
