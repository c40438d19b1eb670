"""
Credential vaults -- where stores cache tokens and usernames.

Values are scoped by a context id (the catalog's context), so two
catalogs on the same machine can log in as different users.

EnvVault: process environment, handy for CI.
FileVault: YAML file under CONFSYNC_HOME, readable only by the owner.
ChainVault: first vault holding a key wins; writes go to the last one.
"""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import yaml

from .errors import CredentialNotFoundError

logger = logging.getLogger("confsync.vaults")


class CredentialVault(ABC):
    """Get/set key-value credentials scoped by context id."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Short vault identifier."""

    @abstractmethod
    def _lookup(self, context_id: str, key: str) -> Optional[str]:
        """Return the stored value or None."""

    @abstractmethod
    def set(self, context_id: str, key: str, value: str) -> None:
        """Store a value for ``key`` in ``context_id``."""

    def get(
        self,
        context_id: str,
        key: str,
        default: Optional[str] = None,
        description: str = "",
        is_secret: bool = False,
    ) -> str:
        """Fetch a credential.

        Args:
            context_id: Scope of the credential.
            key: Credential name, e.g. ``SHIPMENT_TOKEN``.
            default: Returned when nothing is stored.
            description: What the value is for, used in errors.
            is_secret: Keeps the value out of debug logs.

        Returns:
            str: The stored value, or ``default``.

        Raises:
            CredentialNotFoundError: Nothing stored and no default.
        """
        value = self._lookup(context_id, key)
        if value is not None:
            logger.debug(
                "%s: found %s=%s", self.name, key, "***" if is_secret else value
            )
            return value
        if default is not None:
            return default
        hint = f" ({description})" if description else ""
        raise CredentialNotFoundError(f"{key} not found in {self.name} vault{hint}")


class EnvVault(CredentialVault):
    """Credentials from environment variables; context id is ignored."""

    @property
    def name(self) -> str:
        return "env"

    def _lookup(self, context_id: str, key: str) -> Optional[str]:
        return os.environ.get(key)

    def set(self, context_id: str, key: str, value: str) -> None:
        os.environ[key] = value


class FileVault(CredentialVault):
    """Credentials cached in ``credentials.yaml`` as ``{context: {key: value}}``."""

    def __init__(self, home: Path):
        self.path = Path(home).expanduser() / "credentials.yaml"

    @property
    def name(self) -> str:
        return "file"

    def _load(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = yaml.safe_load(self.path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            logger.warning("Unreadable credential file %s: %s", self.path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def _lookup(self, context_id: str, key: str) -> Optional[str]:
        scope = self._load().get(context_id) or {}
        value = scope.get(key)
        return None if value is None else str(value)

    def set(self, context_id: str, key: str, value: str) -> None:
        data = self._load()
        data.setdefault(context_id, {})[key] = value

        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.touch(mode=0o600, exist_ok=True)
        os.chmod(self.path, 0o600)
        self.path.write_text(
            yaml.safe_dump(data, default_flow_style=False), encoding="utf-8"
        )


class ChainVault(CredentialVault):
    """Reads through several vaults in order, writes to the last."""

    def __init__(self, *vaults: CredentialVault):
        if not vaults:
            raise ValueError("ChainVault needs at least one vault")
        self.vaults = vaults

    @property
    def name(self) -> str:
        return "+".join(v.name for v in self.vaults)

    def _lookup(self, context_id: str, key: str) -> Optional[str]:
        for vault in self.vaults:
            value = vault._lookup(context_id, key)
            if value is not None:
                return value
        return None

    def set(self, context_id: str, key: str, value: str) -> None:
        self.vaults[-1].set(context_id, key, value)
