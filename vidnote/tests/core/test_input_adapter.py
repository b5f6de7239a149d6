"""Tests for InputAdapter."""

from unittest.mock import Mock

import pytest

from vidnote.core.annotation import AnnotationSession, GestureState, Tool
from vidnote.interfaces import InputAdapter


@pytest.fixture
def adapter(video, cfg):
    session = AnnotationSession(video, cfg)
    return InputAdapter(session, bounds=(100, 50), update_callback=Mock())


def mouse(kind, x, y, **extra):
    return {"type": kind, "clientX": x, "clientY": y, **extra}


class TestInputAdapter:
    def test_coordinates_are_relative_to_the_video(self, adapter):
        adapter.session.set_tool("rectangle")

        adapter.handle(mouse("mousedown", 110, 60))
        adapter.handle(mouse("mousemove", 150, 110))
        adapter.handle(mouse("mouseup", 150, 110))

        annotation = adapter.session.state.annotations[0]
        assert (annotation.start_x, annotation.start_y) == (10, 10)
        assert (annotation.end_x, annotation.end_y) == (50, 60)

    def test_set_bounds(self, adapter):
        adapter.set_bounds(0, 0)
        pointer = adapter.to_pointer(mouse("mousedown", 5, 6, targetId=3))
        assert (pointer.x, pointer.y, pointer.target_id) == (5, 6, 3)

    def test_mouseup_without_coordinates(self, adapter):
        adapter.session.set_tool("line")
        adapter.handle(mouse("mousedown", 100, 50))
        adapter.handle({"type": "mouseup"})

        assert adapter.session.controller.gesture is GestureState.IDLE
        assert len(adapter.session.state.annotations) == 1

    def test_text_entry_events(self, adapter):
        adapter.session.set_tool(Tool.TEXT)
        adapter.handle(mouse("mousedown", 120, 70))
        adapter.handle({"type": "input", "value": "note"})
        adapter.handle({"type": "blur"})

        annotation = adapter.session.state.annotations[0]
        assert (annotation.x, annotation.y, annotation.text) == (20, 20, "note")

    def test_keyboard_shortcuts(self, adapter):
        adapter.session.set_tool("line")
        adapter.handle(mouse("mousedown", 100, 50))
        adapter.handle(mouse("mouseup", 120, 50))

        assert adapter.handle({"type": "keydown", "key": "z", "metaKey": True})
        assert adapter.session.state.annotations == ()
        assert adapter.handle({"type": "keydown", "key": "z", "ctrlKey": True, "shiftKey": True})
        assert len(adapter.session.state.annotations) == 1

    def test_redraw_requests(self, adapter):
        adapter.session.set_color("#000000")
        adapter.update_callback.assert_called()

    def test_unknown_events_are_not_consumed(self, adapter):
        assert not adapter.handle({"type": "wheel"})
