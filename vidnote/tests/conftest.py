"""
Test fixtures for vidnote tests.

Provides a paused simulated video, stores, controllers and a configuration
pointing at temporary files.
"""

import itertools

import pytest

from vidnote.core.annotation import (
    AnnotationStore,
    ApplicationState,
    InteractionController,
    LineAnnotation,
    RectangleAnnotation,
    TextAnnotation,
)
from vidnote.interfaces import SimulatedVideo
from vidnote.utils.config import get_config
from vidnote.utils.misc import IdAllocator


class FakeClock:
    """Manually advanced clock (seconds)."""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def video(clock):
    """A paused 60 seconds video at t=0."""
    return SimulatedVideo(duration=60.0, clock=clock)


@pytest.fixture
def timestamps():
    """Deterministic ISO timestamps: T1, T2, ..."""
    counter = itertools.count(1)
    return lambda: f"T{next(counter)}"


@pytest.fixture
def store():
    return AnnotationStore()


@pytest.fixture
def controller(store, video, timestamps):
    ids = IdAllocator(clock=lambda: 0)
    return InteractionController(
        store, video, video_id="vid-1", ids=ids, clock=timestamps
    )


@pytest.fixture
def cfg(tmp_path):
    """Configuration writing to temporary files only."""
    return get_config(
        env={
            "VIDNOTE_video_id": "vid-1",
            "VIDNOTE_storage__path": str(tmp_path / "storage.json"),
            "VIDNOTE_storage__debounce": "0.01",
            "VIDNOTE_api__base_url": "http://testserver/api",
            "VIDNOTE_playback__poll_interval": "0.01",
        }
    )


def make_rectangle(id=1, start=0.0, end=2.0, **geometry):
    """Rectangle from (10, 10) to (50, 40) unless told otherwise."""
    values = {"start_x": 10.0, "start_y": 10.0, "end_x": 50.0, "end_y": 40.0}
    values.update(geometry)
    return RectangleAnnotation(
        id=id,
        start=start,
        end=end,
        width=abs(values["end_x"] - values["start_x"]),
        height=abs(values["end_y"] - values["start_y"]),
        **values,
    )


def make_line(id=2, start=0.0, end=2.0):
    return LineAnnotation(
        id=id, start=start, end=end, start_x=0.0, start_y=0.0, end_x=100.0, end_y=0.0
    )


def make_text(id=3, start=0.0, end=2.0, text="hello"):
    return TextAnnotation(id=id, start=start, end=end, x=200.0, y=100.0, text=text)


@pytest.fixture
def populated_state():
    return ApplicationState(annotations=(make_rectangle(), make_line(), make_text()))
