"""Exceptions raised by reg_notify_core.

The dispatcher matches on these types rather than inspecting error payloads,
so the transport is the only place that knows what an httpx failure looks like.
"""

from __future__ import annotations


class NotifierError(Exception):
    """Base class for every error raised by this package."""


class InvalidClientIdError(NotifierError, ValueError):
    """The compact client ID could not be decoded into owner/repository/installation."""

    def __init__(self, client_id: str):
        super().__init__(f"Invalid client ID: {client_id}")
        self.client_id = client_id


class RemoteApiError(NotifierError):
    """The notification service answered with an error status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class TransportError(NotifierError):
    """The request never got a response (DNS, connection reset, timeout...)."""
