"""Command-line interface for constructkit."""

__version__ = "0.1.0"
