"""modctl: task orchestration CLI for modular application repositories."""

__version__ = "0.1.0"
