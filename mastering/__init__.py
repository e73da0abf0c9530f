"""
Tiered offline audio mastering.
"""
from mastering.core.types import ProcessingResult, SampleBuffer, VolumeAnalysis
from mastering.errors import DecodeFailure, MasteringError, StageRenderFailure
from mastering.pipeline import MasteringPipeline, master

__version__ = "1.0.0"

__all__ = [
    "MasteringPipeline",
    "master",
    "SampleBuffer",
    "VolumeAnalysis",
    "ProcessingResult",
    "MasteringError",
    "DecodeFailure",
    "StageRenderFailure",
]
