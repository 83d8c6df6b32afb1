"""Audio capture pipeline and post-processing tools."""

from .pipeline import AudioCapturePipeline, PipelineHandle
from .probe import DurationProbe
from .trim import SilenceTrimmer

__all__ = [
    'AudioCapturePipeline',
    'PipelineHandle',
    'DurationProbe',
    'SilenceTrimmer'
]
