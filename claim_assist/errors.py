"""Exception hierarchy for Claim Assist.

Every error carries the HTTP status it maps to at the app boundary, where
it is rendered as ``{"error": message}``.
"""

from __future__ import annotations


class ClaimAssistError(Exception):
    """Base exception for all Claim Assist errors."""

    status_code: int = 500

    def __init__(self, message: str, *, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(ClaimAssistError):
    """Malformed input. Never retried; the caller must fix the request."""

    status_code = 400


class AuthError(ClaimAssistError):
    """Missing, invalid or expired credential."""

    status_code = 401


class AccessDenied(ClaimAssistError):
    """Credential is valid but does not belong to a signed-in user."""

    status_code = 403


class NotFoundError(ClaimAssistError):
    """Record is absent or not owned by the caller."""

    status_code = 404


class PayloadTooLarge(ClaimAssistError):
    status_code = 413


class UpstreamError(ClaimAssistError):
    """The AI workflow failed, timed out or returned a malformed payload."""

    status_code = 502


class StoreError(ClaimAssistError):
    """A primary read or write against the relational store failed."""

    status_code = 500


class PersistenceWarning(ClaimAssistError):
    """A secondary write failed. Logged by the caller, never surfaced."""
