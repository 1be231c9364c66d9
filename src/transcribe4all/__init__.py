"""Audio transcription service built around an in-process task executor."""

__version__ = "0.1.0"
