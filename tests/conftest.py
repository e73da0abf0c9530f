"""
Shared signal builders for the mastering tests.
"""
import sys
import os
import math

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import pytest
import torch

from mastering.core.types import SampleBuffer


def sine(freq: float, seconds: float, sample_rate: int, amplitude: float = 0.5) -> torch.Tensor:
    n = int(round(seconds * sample_rate))
    t = torch.arange(n, dtype=torch.float64) / sample_rate
    return (amplitude * torch.sin(2.0 * math.pi * freq * t)).to(torch.float32)


def rms(x: torch.Tensor) -> float:
    return float(torch.sqrt(torch.mean(x.to(torch.float64) ** 2) + 1e-24))


def make_buffer(freq: float = 440.0, seconds: float = 1.0, sample_rate: int = 44100,
                channels: int = 1, amplitude: float = 0.5) -> SampleBuffer:
    mono = sine(freq, seconds, sample_rate, amplitude)
    return SampleBuffer(samples=mono.repeat(channels, 1), sample_rate=sample_rate)


@pytest.fixture
def mono_buffer():
    return make_buffer(seconds=1.0)


@pytest.fixture
def stereo_buffer():
    """Left/right differ so stereo width has something to act on."""
    sr = 44100
    left = sine(440.0, 1.0, sr, 0.5)
    right = sine(660.0, 1.0, sr, 0.3)
    return SampleBuffer.from_channels([left, right], sr)


@pytest.fixture
def noise_buffer():
    gen = torch.Generator().manual_seed(1234)
    samples = (torch.rand(2, 22050, generator=gen) * 2.0 - 1.0) * 0.3
    return SampleBuffer(samples=samples, sample_rate=22050)
