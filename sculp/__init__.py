"""Sculp - smart hypertrophy training app."""

__version__ = "0.1.0"
