"""
Video surface consumed by the annotation core.

The engine never looks a player up globally: one object implementing
:class:`VideoSurface` is built at startup and handed to the interaction
controller and the visibility monitor.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class VideoSurface(ABC):
    """Playback capability: current time, duration, play state."""

    @property
    @abstractmethod
    def current_time(self) -> float:
        pass

    @property
    @abstractmethod
    def duration(self) -> float:
        pass

    @property
    @abstractmethod
    def paused(self) -> bool:
        pass

    @abstractmethod
    def play(self) -> None:
        pass

    @abstractmethod
    def pause(self) -> None:
        pass


class SimulatedVideo(VideoSurface):
    """
    Headless playback model driven by a monotonic clock.

    Starts paused at ``0``. While playing, the current time advances with
    the clock and stops at ``duration``.

    Args:
        duration: Length of the video in seconds
        clock: Function returning seconds, defaults to time.monotonic
    """

    def __init__(self, duration: float = 0.0, clock: Optional[Callable[[], float]] = None):
        self._duration = float(duration)
        self._clock = clock or time.monotonic
        self._position = 0.0
        self._started_at: Optional[float] = None

    @property
    def current_time(self) -> float:
        if self._started_at is None:
            return self._position
        elapsed = self._clock() - self._started_at
        position = self._position + elapsed
        if self._duration > 0:
            position = min(position, self._duration)
        return position

    @property
    def duration(self) -> float:
        return self._duration

    @property
    def paused(self) -> bool:
        return self._started_at is None

    def play(self) -> None:
        if self._started_at is None:
            self._started_at = self._clock()
            logger.debug(f"Playback started at {self._position:.2f}s")

    def pause(self) -> None:
        if self._started_at is not None:
            self._position = self.current_time
            self._started_at = None
            logger.debug(f"Playback paused at {self._position:.2f}s")

    def seek(self, seconds: float) -> None:
        """Jump to ``seconds``, clamped to ``[0, duration]``."""
        position = max(0.0, float(seconds))
        if self._duration > 0:
            position = min(position, self._duration)
        self._position = position
        if self._started_at is not None:
            self._started_at = self._clock()
