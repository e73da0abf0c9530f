"""
Scalar gain and stereo width.
"""
import torch

from mastering.core.params import require_finite
from mastering.errors import StageRenderFailure


def apply_gain(waveform: torch.Tensor, gain: float, stage_name: str = "gain") -> torch.Tensor:
    """Constant linear gain over the whole buffer."""
    require_finite(stage_name, gain=gain)
    return waveform * float(gain)


def mid_side_split(left: torch.Tensor, right: torch.Tensor):
    mid = 0.5 * (left + right)
    side = 0.5 * (left - right)
    return mid, side


def mid_side_merge(mid: torch.Tensor, side: torch.Tensor):
    return mid + side, mid - side


def stereo_widen(waveform: torch.Tensor, width: float, stage_name: str = "stereo_widen") -> torch.Tensor:
    """
    Scale the side signal of channels 0/1 by width.
    Mono passes through unchanged; channels past the first two are untouched.
    """
    require_finite(stage_name, width=width)
    if width < 0:
        raise StageRenderFailure(stage_name, f"width must be >= 0, got {width}")
    if waveform.dim() < 2 or waveform.shape[0] < 2:
        return waveform.clone()

    out = waveform.clone()
    mid, side = mid_side_split(waveform[0], waveform[1])
    out[0], out[1] = mid_side_merge(mid, side * float(width))
    return out
