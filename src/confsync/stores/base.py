"""
Store contract -- what every remote backend must be able to do.

A store is resolved per catalog file, initialized with ``pre`` (login,
coordinates), then asked to ``push``, ``pull`` or ``purge`` that file.
Session state lives on the store instance; only the identifying fields
needed to rebuild it are written back into ``file.data``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone

from pydantic import BaseModel, Field

from ..catalog import CatalogFile, FileType
from ..config import UserOptions
from ..prompt import UserIO
from ..vaults import CredentialVault

VERSION_FEATURE = "VERSIONING"
ENV_FEATURE = "env"
JSON_FEATURE = "json"

# Key under which versioning stores report the version a push produced.
VERSION_DATA_KEY = "STORE_VERSION"


class Attributes(BaseModel):
    """Remote-side facts returned alongside pulled contents."""

    last_modified: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    version: str = ""


class Store(ABC):
    """Abstract remote store."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Stable identifier persisted in the catalog."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Help text shown by ``confsync stores``."""

    @abstractmethod
    def supports_file_type(self, file_type: FileType) -> bool:
        """Whether files of this type can be bound to the store."""

    def can_handle_file(self, file: CatalogFile) -> bool:
        return self.supports_file_type(file.type)

    @abstractmethod
    def pre(
        self,
        context_id: str,
        file: CatalogFile,
        vault: CredentialVault,
        options: UserOptions,
        io: UserIO,
    ) -> None:
        """Authenticate and resolve the coordinates for ``file``.

        Args:
            context_id: Credential scope (the catalog context).
            file: Catalog entry being processed. Answers to prompts are
                written into ``file.data``.
            vault: Where cached credentials are read and written.
            options: Per-run user options.
            io: Prompt input/output.

        Raises:
            AuthenticationError: If a session cannot be established.
        """

    @abstractmethod
    def push(
        self, context_key: str, file: CatalogFile, contents: bytes
    ) -> tuple[dict[str, str], bool]:
        """Write local contents remotely.

        Returns:
            The new ``file.data`` and whether the store supports versioning.
        """

    @abstractmethod
    def pull(self, context_key: str, file: CatalogFile) -> tuple[bytes, Attributes]:
        """Read the remote contents owned by ``file``."""

    @abstractmethod
    def purge(self, context_key: str, file: CatalogFile) -> None:
        """Delete everything ``file`` owns remotely."""

    def get_tokens(self, tokens: dict[str, str]) -> dict[str, str]:
        return {}

    def set_tokens(self, tokens: dict[str, str], always: bool = False) -> dict[str, str]:
        return {}
