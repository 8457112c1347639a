"""Presentation layer: terminal front ends."""
