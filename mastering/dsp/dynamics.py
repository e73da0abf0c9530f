"""
Feed-forward dynamics processor shared by gate, compressor, limiter and maximizer.

Detector: max |x| across channels (linked), peak hold with exponential release,
then a one-pole attack smoother. Both time constants are in seconds and turned
into per-sample coefficients with the buffer's sample rate.

The release peak-hold y[n] = max(|x[n]|, c * y[n-1]) is evaluated without a
Python loop: in the log domain it becomes a running maximum of
log|x[n]| + n/tau, shifted back by n/tau.
"""
import math

import numpy as np
import torch
import torchaudio.functional as F

from mastering.core.params import require_finite, require_positive
from mastering.errors import StageRenderFailure

EPS = 1e-12


def time_to_coeff(seconds: float, sample_rate: int) -> float:
    """One-pole smoothing coefficient for a time constant."""
    if seconds <= 0:
        return 0.0
    return math.exp(-1.0 / (seconds * sample_rate))


def _release_peak_hold(level: np.ndarray, release_s: float, sample_rate: int) -> np.ndarray:
    """Instant-attack, exponential-release peak envelope of a non-negative signal."""
    log_level = np.log(level + EPS)
    if release_s <= 0:
        return level.copy()
    decay_per_sample = 1.0 / (release_s * sample_rate)
    ramp = np.arange(level.shape[0], dtype=np.float64) * decay_per_sample
    held = np.maximum.accumulate(log_level + ramp) - ramp
    return np.exp(held)


def _attack_smooth(env: np.ndarray, attack_s: float, sample_rate: int) -> np.ndarray:
    a = time_to_coeff(attack_s, sample_rate)
    if a == 0.0:
        return env
    x = torch.from_numpy(env).view(1, -1)
    b_coeffs = torch.tensor([1.0 - a, 0.0], dtype=torch.float64)
    a_coeffs = torch.tensor([1.0, -a], dtype=torch.float64)
    # Start from the first detector value instead of silence
    y = F.lfilter(x - x[:, :1], a_coeffs, b_coeffs, clamp=False) + x[:, :1]
    return y.view(-1).numpy()


def gain_computer_db(level_db: np.ndarray, threshold_db: float, ratio: float, knee_db: float) -> np.ndarray:
    """
    Static curve: output level minus input level, in dB (<= 0).
    Soft knee of width knee_db centred on threshold_db.
    """
    over = level_db - threshold_db
    out = level_db.copy()
    slope = 1.0 / ratio - 1.0

    if knee_db > 0:
        in_knee = np.abs(2.0 * over) <= knee_db
        out[in_knee] = level_db[in_knee] + slope * (over[in_knee] + knee_db / 2.0) ** 2 / (2.0 * knee_db)
        above = 2.0 * over > knee_db
    else:
        above = over > 0
    out[above] = threshold_db + over[above] / ratio
    return out - level_db


class Dynamics:
    @staticmethod
    def process(
        waveform: torch.Tensor,
        sample_rate: int,
        threshold_db: float,
        ratio: float,
        knee_db: float = 0.0,
        attack_s: float = 0.003,
        release_s: float = 0.25,
        stage_name: str = "dynamics",
    ) -> torch.Tensor:
        """
        Compress waveform (channels, time) above threshold_db by ratio.
        ratio <= 1 returns an unchanged copy.
        Levels below the knee pass at unity gain; loudness is restored by the
        chain's make-up gain stage.
        """
        require_finite(stage_name, threshold_db=threshold_db, ratio=ratio, knee_db=knee_db)
        require_positive(stage_name, attack_s=attack_s, release_s=release_s)
        if knee_db < 0:
            raise StageRenderFailure(stage_name, f"knee_db must be >= 0, got {knee_db}")
        if ratio <= 1.0 or waveform.shape[-1] == 0:
            return waveform.clone()

        x = waveform if waveform.dim() > 1 else waveform.view(1, -1)
        detector = x.abs().amax(dim=0).to(torch.float64).numpy()

        env = _release_peak_hold(detector, release_s, sample_rate)
        env = _attack_smooth(env, attack_s, sample_rate)

        level_db = 20.0 * np.log10(np.maximum(env, EPS))
        gain_db = gain_computer_db(level_db, threshold_db, ratio, knee_db)
        gain = torch.from_numpy(10.0 ** (gain_db / 20.0)).to(torch.float32)

        y = x * gain.view(1, -1)
        if not torch.isfinite(y).all():
            raise StageRenderFailure(stage_name, "dynamics output is not finite")
        return y.view_as(waveform)
