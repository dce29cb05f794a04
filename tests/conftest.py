"""Shared pytest configuration for helpcheck tests."""

import json
from pathlib import Path

import pytest


@pytest.fixture
def write_settings(tmp_path):
    """Write a helpcheck.json into a directory and return its path."""

    def _write(data, directory: Path = tmp_path) -> Path:
        path = directory / "helpcheck.json"
        path.write_text(json.dumps(data))
        return path

    return _write


@pytest.fixture
def sample_module(tmp_path):
    """A small Python module with one well documented and one sloppy function."""
    path = tmp_path / "sample_api.py"
    path.write_text(
        '''
"""Sample API."""


def grant(permission: str, resource: tuple, *, expires: int | None = None):
    """Grant a permission on a resource.

    The grant is recorded immediately and is visible to later checks.

    Args:
        permission: The permission to grant.
        resource: The resource tuple.
        expires: Seconds until the grant
            expires.

    Returns:
        The grant ID.

    Example:
        grant(permission="read", resource=("doc", "1"))

        grant(permission="write", resource=("doc", "2"), expires=60)
    """
    return 1


def revoke(permission, resource, *args, **kwargs):
    """Revoke a permission.

    Args:
        permission: The permission to revoke
    """
    return None


def _private(x):
    return x


class Client:
    """Client wrapper."""

    def ping(self, timeout: float = 1.0):
        """Ping the server.

        Sends a single request and waits for the answer.

        Args:
            timeout: Seconds to wait.

        Example:
            client.ping(timeout=2.0)
        """
        return True
'''
    )
    return path
