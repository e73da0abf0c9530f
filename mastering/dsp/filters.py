"""
Biquad filters built on torchaudio.functional.lfilter.
Coefficients follow the RBJ Audio-EQ-Cookbook (Q linear, peaking gain in dB).
All filters are IIR (minimum-phase); each channel is filtered independently.

lfilter runs with clamp=False: a boost may push a stage past full scale and
it is the limiter's job, not the filter's, to bring it back.
Filtering is done in float64 because the 60/120 Hz notches at Q 30 put the
poles very close to the unit circle.
"""
import math
from typing import Tuple

import torch
import torchaudio.functional as F

from mastering.core.params import require_finite, require_positive
from mastering.errors import StageRenderFailure

Coeffs = Tuple[Tuple[float, float, float], Tuple[float, float, float]]


def _nyquist_safe(freq: float, sample_rate: int) -> float:
    # Ensure freq is within Nyquist
    return min(freq, sample_rate / 2 - 1)


def _w0_alpha(freq: float, sample_rate: int, q: float) -> Tuple[float, float, float]:
    w0 = 2.0 * math.pi * freq / sample_rate
    return w0, math.cos(w0), math.sin(w0) / (2.0 * q)


def _normalize(b0, b1, b2, a0, a1, a2) -> Coeffs:
    return (b0 / a0, b1 / a0, b2 / a0), (1.0, a1 / a0, a2 / a0)


def highpass_coeffs(freq: float, sample_rate: int, q: float) -> Coeffs:
    _, cos_w0, alpha = _w0_alpha(freq, sample_rate, q)
    b0 = (1.0 + cos_w0) / 2.0
    b1 = -(1.0 + cos_w0)
    b2 = (1.0 + cos_w0) / 2.0
    return _normalize(b0, b1, b2, 1.0 + alpha, -2.0 * cos_w0, 1.0 - alpha)


def lowpass_coeffs(freq: float, sample_rate: int, q: float) -> Coeffs:
    _, cos_w0, alpha = _w0_alpha(freq, sample_rate, q)
    b0 = (1.0 - cos_w0) / 2.0
    b1 = 1.0 - cos_w0
    b2 = (1.0 - cos_w0) / 2.0
    return _normalize(b0, b1, b2, 1.0 + alpha, -2.0 * cos_w0, 1.0 - alpha)


def notch_coeffs(freq: float, sample_rate: int, q: float) -> Coeffs:
    _, cos_w0, alpha = _w0_alpha(freq, sample_rate, q)
    return _normalize(1.0, -2.0 * cos_w0, 1.0, 1.0 + alpha, -2.0 * cos_w0, 1.0 - alpha)


def peaking_coeffs(freq: float, sample_rate: int, q: float, gain_db: float) -> Coeffs:
    _, cos_w0, alpha = _w0_alpha(freq, sample_rate, q)
    a = 10.0 ** (gain_db / 40.0)
    return _normalize(
        1.0 + alpha * a,
        -2.0 * cos_w0,
        1.0 - alpha * a,
        1.0 + alpha / a,
        -2.0 * cos_w0,
        1.0 - alpha / a,
    )


def magnitude_db(coeffs: Coeffs, freq: float, sample_rate: int) -> float:
    """Magnitude response of a biquad at freq, in dB."""
    (b0, b1, b2), (a0, a1, a2) = coeffs
    w = 2.0 * math.pi * freq / sample_rate
    z1 = complex(math.cos(w), -math.sin(w))
    z2 = z1 * z1
    h = (b0 + b1 * z1 + b2 * z2) / (a0 + a1 * z1 + a2 * z2)
    return 20.0 * math.log10(max(abs(h), 1e-300))


def apply_biquad(waveform: torch.Tensor, coeffs: Coeffs, stage_name: str = "biquad") -> torch.Tensor:
    """
    Run a biquad over waveform (..., time). Returns float32, same shape.
    """
    b, a = coeffs
    require_finite(stage_name, b0=b[0], b1=b[1], b2=b[2], a1=a[1], a2=a[2])
    x = waveform.to(torch.float64)
    b_coeffs = torch.tensor(b, dtype=torch.float64, device=x.device)
    a_coeffs = torch.tensor(a, dtype=torch.float64, device=x.device)
    y = F.lfilter(x, a_coeffs, b_coeffs, clamp=False)
    if not torch.isfinite(y).all():
        raise StageRenderFailure(stage_name, "filter output is not finite")
    return y.to(torch.float32)


class Filter:
    @staticmethod
    def highpass(waveform: torch.Tensor, sample_rate: int, cutoff_freq: float, q: float = 0.707,
                 stage_name: str = "highpass") -> torch.Tensor:
        """HighPass biquad. Used for rumble and sub-bass cleanup."""
        require_positive(stage_name, frequency=cutoff_freq, q=q)
        cutoff_freq = _nyquist_safe(cutoff_freq, sample_rate)
        return apply_biquad(waveform, highpass_coeffs(cutoff_freq, sample_rate, q), stage_name)

    @staticmethod
    def lowpass(waveform: torch.Tensor, sample_rate: int, cutoff_freq: float, q: float = 0.707,
                stage_name: str = "lowpass") -> torch.Tensor:
        """LowPass biquad."""
        require_positive(stage_name, frequency=cutoff_freq, q=q)
        cutoff_freq = _nyquist_safe(cutoff_freq, sample_rate)
        return apply_biquad(waveform, lowpass_coeffs(cutoff_freq, sample_rate, q), stage_name)

    @staticmethod
    def notch(waveform: torch.Tensor, sample_rate: int, center_freq: float, q: float = 30.0,
              stage_name: str = "notch") -> torch.Tensor:
        """Narrow band-reject (mains hum and harmonics)."""
        require_positive(stage_name, frequency=center_freq, q=q)
        center_freq = _nyquist_safe(center_freq, sample_rate)
        return apply_biquad(waveform, notch_coeffs(center_freq, sample_rate, q), stage_name)

    @staticmethod
    def peaking(waveform: torch.Tensor, sample_rate: int, center_freq: float, gain_db: float,
                q: float = 1.0, stage_name: str = "peaking") -> torch.Tensor:
        """
        Peaking EQ bell.
        gain_db: positive = boost, negative = cut.
        """
        require_positive(stage_name, frequency=center_freq, q=q)
        require_finite(stage_name, gain_db=gain_db)
        if gain_db == 0:
            return waveform.clone()
        center_freq = _nyquist_safe(center_freq, sample_rate)
        return apply_biquad(waveform, peaking_coeffs(center_freq, sample_rate, q, gain_db), stage_name)
