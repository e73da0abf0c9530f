"""
16-bit linear PCM WAV encoding.

Layout (44-byte header, little-endian): RIFF/WAVE, "fmt " chunk with format tag 1,
channel count, sample rate, byte rate, block align = channels * 2, 16 bits per
sample, then "data" chunk of length * channels * 2 bytes, channel-interleaved.
Samples are clamped to [-1, 1] and quantized as round(x * 32767), with exact
halves rounded to even (numpy's rounding).
"""
import numpy as np
import torch

from mastering.core.io import AudioIO
from mastering.core.types import SampleBuffer

PCM_SCALE = 32767.0
HEADER_BYTES = 44


def quantize(samples: torch.Tensor) -> np.ndarray:
    """(channels, length) float -> (length, channels) int16, frame-interleaved order."""
    data = samples.detach().cpu().to(torch.float64).numpy()
    data = np.nan_to_num(data, nan=0.0, posinf=1.0, neginf=-1.0)
    data = np.clip(data, -1.0, 1.0)
    pcm = np.round(data * PCM_SCALE).astype(np.int16)
    return np.ascontiguousarray(pcm.T)


def encode(buffer: SampleBuffer) -> bytes:
    """Serialize buffer to a canonical 16-bit PCM WAV byte string."""
    # int16 frames are written as-is, so libsndfile does no rescaling
    return AudioIO.to_bytes(quantize(buffer.samples), buffer.sample_rate, subtype="PCM_16")

