import io
import logging
from typing import Optional

import numpy as np
import soundfile as sf
import torch

from mastering.core.types import SampleBuffer
from mastering.errors import DecodeFailure

logger = logging.getLogger("mastering.io")

# Upload screen accepts audio/*; octet-stream is what browsers send when they can't tell.
GENERIC_MIME_TYPES = frozenset({"application/octet-stream"})


def _check_mime(mime: Optional[str]) -> None:
    if not mime:
        return
    base = mime.split(";", 1)[0].strip().lower()
    if base.startswith("audio/") or base in GENERIC_MIME_TYPES:
        return
    raise DecodeFailure(f"Unsupported media type: {mime}", unsupported_type=True)


class AudioIO:
    @staticmethod
    def decode(data: bytes, mime: Optional[str] = None) -> SampleBuffer:
        """
        Decode encoded audio bytes into a SampleBuffer (float32, channels-first).
        Format parsing is delegated to libsndfile via soundfile.
        Raises DecodeFailure for anything that does not yield at least one sample.
        """
        _check_mime(mime)
        if not data:
            raise DecodeFailure("Empty input")

        try:
            data_np, sample_rate = sf.read(io.BytesIO(data), dtype="float32", always_2d=True)
        except (RuntimeError, TypeError, ValueError) as e:
            raise DecodeFailure(f"Could not decode audio: {e}") from e

        if data_np.shape[0] == 0 or data_np.shape[1] == 0:
            raise DecodeFailure("Decoded audio has no samples")

        # soundfile returns (frames, channels)
        samples = torch.from_numpy(np.ascontiguousarray(data_np.T))
        buffer = SampleBuffer(samples=samples, sample_rate=int(sample_rate))
        logger.info(
            "Decoded %d ch @ %d Hz, %.2f s (%d bytes in)",
            buffer.channels, buffer.sample_rate, buffer.duration_s, len(data),
        )
        return buffer

    @staticmethod
    def to_bytes(frames: np.ndarray, sample_rate: int, subtype: str = "PCM_16") -> bytes:
        """Write (frames, channels) samples as an in-memory WAV file."""
        out = io.BytesIO()
        sf.write(out, frames, sample_rate, format="WAV", subtype=subtype)
        return out.getvalue()

    @staticmethod
    def save(path: str, wav_bytes: bytes) -> None:
        """Write already-encoded WAV bytes to disk."""
        with open(path, "wb") as f:
            f.write(wav_bytes)
