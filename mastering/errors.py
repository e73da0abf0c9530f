"""
Error taxonomy for the mastering pipeline.
Only DecodeFailure is meant to reach the caller; StageRenderFailure is recovered
by safe_render, which ships the unprocessed buffer instead.
"""


class MasteringError(Exception):
    """Base class for mastering errors."""


class DecodeFailure(MasteringError):
    """Input bytes could not be turned into a SampleBuffer."""

    def __init__(self, message: str, unsupported_type: bool = False):
        super().__init__(message)
        self.unsupported_type = unsupported_type


class StageRenderFailure(MasteringError):
    """A stage could not be built or produced non-finite output."""

    def __init__(self, stage_name: str, message: str):
        super().__init__(f"{stage_name}: {message}")
        self.stage_name = stage_name
