"""Test helper utilities"""

from .fakes import FakeConnection, FakeCursor, FakeS3Client, FakeSecretsClient, client_error

__all__ = [
    "FakeConnection",
    "FakeCursor",
    "FakeS3Client",
    "FakeSecretsClient",
    "client_error",
]
