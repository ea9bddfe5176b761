"""Prompt-to-video generation: style variants authored by Gemini, rendered by Remotion."""

__version__ = "0.1.0"
