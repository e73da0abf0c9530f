"""
Offline chain rendering. Deterministic, single pass, no randomness.
Every stage returns a new tensor; the input buffer is never modified.
"""
import logging
from typing import List, Optional, Tuple

from mastering.chain.stages import StageKind, StageSpec
from mastering.core.progress import ProgressSpan
from mastering.core.types import SampleBuffer
from mastering.dsp.dynamics import Dynamics
from mastering.dsp.filters import Filter
from mastering.dsp.gain import apply_gain, stereo_widen
from mastering.errors import StageRenderFailure

logger = logging.getLogger("mastering.render")


def apply(stage: StageSpec, buffer: SampleBuffer) -> SampleBuffer:
    """Run one stage over buffer and return the new buffer."""
    x = buffer.samples
    sr = buffer.sample_rate
    kind = stage.kind

    if kind == StageKind.HIGH_PASS:
        y = Filter.highpass(x, sr, stage.frequency, stage.q, stage_name=stage.name)
    elif kind == StageKind.LOW_PASS:
        y = Filter.lowpass(x, sr, stage.frequency, stage.q, stage_name=stage.name)
    elif kind == StageKind.NOTCH:
        y = Filter.notch(x, sr, stage.frequency, stage.q, stage_name=stage.name)
    elif kind == StageKind.PEAKING:
        y = Filter.peaking(x, sr, stage.frequency, stage.gain_db, stage.q, stage_name=stage.name)
    elif kind in (StageKind.NOISE_GATE, StageKind.COMPRESSOR, StageKind.LIMITER):
        y = Dynamics.process(
            x, sr,
            threshold_db=stage.threshold_db,
            ratio=stage.ratio,
            knee_db=stage.knee_db,
            attack_s=stage.attack_s,
            release_s=stage.release_s,
            stage_name=stage.name,
        )
    elif kind == StageKind.GAIN:
        y = apply_gain(x, stage.gain, stage_name=stage.name)
    elif kind == StageKind.STEREO_WIDEN:
        y = stereo_widen(x, stage.width, stage_name=stage.name)
    else:
        raise StageRenderFailure(stage.name, f"unknown stage kind {kind!r}")

    return buffer.with_samples(y)


def _group_ends(chain: Tuple[StageSpec, ...]) -> List[int]:
    """Indices of the last stage of each consecutive group."""
    ends = []
    for i, stage in enumerate(chain):
        if i + 1 == len(chain) or chain[i + 1].group != stage.group:
            ends.append(i)
    return ends


def render(
    buffer: SampleBuffer,
    chain: Tuple[StageSpec, ...],
    progress: Optional[ProgressSpan] = None,
) -> SampleBuffer:
    """
    Apply every stage of chain in order. Output has the input's length,
    channel count and sample rate. Raises StageRenderFailure on any bad stage.
    """
    group_ends = set(_group_ends(chain))
    total_groups = len(group_ends)
    groups_done = 0

    current = buffer
    for i, stage in enumerate(chain):
        # Bad parameter types surface as StageRenderFailure
        try:
            current = apply(stage, current)
        except (TypeError, ValueError) as e:
            raise StageRenderFailure(stage.name, str(e)) from e
        if i in group_ends:
            groups_done += 1
            if progress is not None:
                progress.fraction(groups_done, total_groups)
            logger.debug("Group %r done (%d/%d)", stage.group, groups_done, total_groups)

    if current.samples.shape != buffer.samples.shape:
        raise StageRenderFailure(
            "chain",
            f"output shape {tuple(current.samples.shape)} != input {tuple(buffer.samples.shape)}",
        )
    return current


def safe_render(
    buffer: SampleBuffer,
    chain: Tuple[StageSpec, ...],
    progress: Optional[ProgressSpan] = None,
) -> Tuple[SampleBuffer, bool]:
    """
    render(), but a StageRenderFailure yields the input buffer unchanged.
    Returns (buffer, ok).
    """
    try:
        return render(buffer, chain, progress), True
    except StageRenderFailure as e:
        logger.warning("Render failed, delivering unprocessed audio: %s", e)
        if progress is not None:
            progress.fraction(1, 1)
        return buffer, False
