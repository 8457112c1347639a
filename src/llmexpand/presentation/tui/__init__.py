"""Textual playground for trying suggestions interactively."""

from .app import PlaygroundApp

__all__ = ["PlaygroundApp"]
