from dataclasses import dataclass
from typing import List, Optional

import torch


@dataclass(frozen=True)
class SampleBuffer:
    """
    Multichannel float PCM. samples has shape (channels, length), float32.
    Treated as a value: transforms build a new buffer via with_samples().
    """
    samples: torch.Tensor
    sample_rate: int

    def __post_init__(self):
        if self.samples.dim() != 2:
            raise ValueError(f"samples must be 2D (channels, length), got shape {tuple(self.samples.shape)}")
        if self.samples.dtype != torch.float32:
            object.__setattr__(self, "samples", self.samples.to(torch.float32))
        if int(self.sample_rate) <= 0:
            raise ValueError(f"sample_rate must be positive, got {self.sample_rate}")

    @property
    def channels(self) -> int:
        return int(self.samples.shape[0])

    @property
    def length(self) -> int:
        """Samples per channel."""
        return int(self.samples.shape[1])

    @property
    def duration_s(self) -> float:
        return self.length / float(self.sample_rate)

    def channel(self, index: int) -> torch.Tensor:
        return self.samples[index]

    def with_samples(self, samples: torch.Tensor) -> "SampleBuffer":
        """New buffer at the same sample rate."""
        return SampleBuffer(samples=samples, sample_rate=self.sample_rate)

    @classmethod
    def from_channels(cls, channels: List[torch.Tensor], sample_rate: int) -> "SampleBuffer":
        lengths = {int(c.shape[-1]) for c in channels}
        if len(lengths) != 1:
            raise ValueError(f"channel lengths differ: {sorted(lengths)}")
        return cls(samples=torch.stack([c.reshape(-1).float() for c in channels]), sample_rate=sample_rate)


@dataclass
class VolumeAnalysis:
    segment_ratios: List[float]
    average_ratio: float
    consistency_score: float
    needs_correction: bool

    def summary(self) -> dict:
        return {
            "average_ratio": self.average_ratio,
            "consistency_score": self.consistency_score,
            "needs_correction": self.needs_correction,
            "segment_ratios": list(self.segment_ratios),
        }


@dataclass
class ProcessingResult:
    """Two independent WAV byte streams plus what the host may want to show."""
    preview_bytes: bytes
    full_bytes: bytes
    tier: str
    sample_rate: int
    channels: int
    full_length: int
    preview_length: int
    applied_gain: Optional[float] = None
    rerendered: bool = False
    analysis: Optional[VolumeAnalysis] = None
    degraded: bool = False
