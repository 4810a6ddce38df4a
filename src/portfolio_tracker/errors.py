"""
errors.py – Error taxonomy shared by every component
====================================================

  TrackerError
  ├── ValidationError        local rule failed; no remote call was made
  ├── ConfirmationDeclined   user aborted a destructive action (a no-op)
  └── StoreError             remote call failed or was not applied
      ├── NetworkError       connection failure, timeout, cancellation
      ├── ServerError        HTTP error status or {"ok": false} envelope
      └── ProtocolError      response did not match the operation contract
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from portfolio_tracker.guardrails import GuardrailResult


class TrackerError(Exception):
    """Base class for all portfolio/certificate tracker errors."""


class ValidationError(TrackerError):
    """Raised when local input rules block an operation."""

    def __init__(self, message: str, result: Optional["GuardrailResult"] = None):
        super().__init__(message)
        self.message = message
        self.result  = result


class ConfirmationDeclined(TrackerError):
    """Raised by a confirmation callback to abort a destructive action."""


class StoreError(TrackerError):
    """A remote store call failed; the operation is treated as not applied."""


class NetworkError(StoreError):
    pass


class ServerError(StoreError):
    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status  = status


class ProtocolError(StoreError):
    pass
