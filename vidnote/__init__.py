"""Annotation state and interaction engine for video timelines."""

from pathlib import Path

__version__ = (Path(__file__).parent / "VERSION").read_text().strip()
