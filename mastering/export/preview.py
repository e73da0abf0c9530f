"""
Preview artifact: plain truncation, no fade, no resampling.
"""

from mastering.core.types import SampleBuffer


def preview_length(buffer: SampleBuffer, max_seconds: float) -> int:
    return min(buffer.length, int(max_seconds * buffer.sample_rate))


def trim(buffer: SampleBuffer, max_seconds: float) -> SampleBuffer:
    """First min(length, max_seconds * sample_rate) samples of every channel."""
    if max_seconds < 0:
        raise ValueError(f"max_seconds must be >= 0, got {max_seconds}")
    n = preview_length(buffer, max_seconds)
    if n == buffer.length:
        return buffer
    return buffer.with_samples(buffer.samples[:, :n].clone())
