"""MindFlow: dump your thoughts, let AI sort them into cards."""

__version__ = "0.1.0"
