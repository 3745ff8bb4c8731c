from __future__ import annotations


class IdCardError(Exception):
    """Base class for portal errors."""


class StoreUnavailableError(IdCardError):
    """The local record store rejected a read or write (quota, disabled, offline)."""


class SubmissionFailed(IdCardError):
    """A submission did not complete. The saved draft is left untouched."""


class InvalidTransition(IdCardError, KeyError):
    """Action not allowed from the current form state."""
