"""Core exceptions for s3metacache."""

from typing import Any


class MetaCacheError(Exception):
    """Base exception for s3metacache."""

    pass


class StoreError(MetaCacheError):
    """The object store failed an operation.

    ``payload`` is whatever the store reported (an exception, an error
    response dict, a message) and is passed through untouched.
    """

    def __init__(self, message: str, payload: Any = None):
        super().__init__(message)
        self.payload = payload
