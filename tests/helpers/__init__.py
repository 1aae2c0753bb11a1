"""Test helpers for taskboard tests.

This package provides an in-memory backend that records calls and lets a
test fail, crash or hold any operation.
"""

from tests.helpers.fake_backend import FakeBackend

__all__ = [
    "FakeBackend",
]
