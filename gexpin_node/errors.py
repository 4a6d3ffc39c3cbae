"""
Error taxonomy for the pinning gateway.

Every error knows the HTTP status it is rendered with; the app installs a
single handler that turns any GatewayError into a plain-text response.
"""

from __future__ import annotations


class GatewayError(Exception):
    status_code: int = 500


class InputError(GatewayError):
    """Malformed or non-GitHub URL."""

    status_code = 400


class MethodNotAllowedError(InputError):
    """Anything but POST on /pin_package."""

    status_code = 403


class ResolutionError(GatewayError):
    """lastpubver could not be fetched or parsed."""

    status_code = 400


class StorageError(GatewayError):
    """The IPFS node failed to enumerate refs or to pin."""

    status_code = 500


class NodeUnavailableError(StorageError):
    status_code = 503


class PersistenceError(GatewayError):
    """Writing the pin log failed (the pin itself already happened)."""

    status_code = 500


class StartupError(Exception):
    """Raised while bringing the service up; fatal for the process."""
