"""Exceptions raised by the construct engines."""

from __future__ import annotations


class ConstructKitError(Exception):
    """Base class for every error raised by constructkit."""


class ConstructNotFoundError(ConstructKitError, LookupError):
    def __init__(self, construct_id: str):
        self.construct_id = construct_id
        super().__init__(f"Construct not found: {construct_id}")


class UnsupportedFormatError(ConstructKitError, ValueError):
    pass
