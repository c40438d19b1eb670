"""Exception types raised by catalog, store and vault operations."""

from __future__ import annotations


class ConfsyncError(Exception):
    """Base class for every error confsync raises on purpose."""


class StoreNotFoundError(ConfsyncError):
    """A catalog entry or user answer names a store that is not registered."""

    def __init__(self, name: str = "") -> None:
        self.name = name
        super().__init__("store not found" + (f": {name}" if name else ""))


class AuthenticationError(ConfsyncError):
    """Credentials could not be established against a store backend."""


class RemoteStoreError(ConfsyncError):
    """A remote store answered with an unexpected status or failed a call."""


class CredentialNotFoundError(ConfsyncError):
    """The credential vault holds no value for the requested key."""


class PromptRequiredError(ConfsyncError):
    """A value had to be asked for but prompting is disabled."""


class CatalogError(ConfsyncError):
    """The catalog file is unreadable or violates its invariants."""
