"""
Interfaces module - adapters between the annotation core and the outside.

Provides the video surface capability consumed by the core and the adapter
turning raw front end events into controller calls.
"""

from .input_adapter import InputAdapter
from .video import SimulatedVideo, VideoSurface

__all__ = ["InputAdapter", "SimulatedVideo", "VideoSurface"]
