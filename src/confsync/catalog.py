"""
Catalog -- the manifest of tracked files and where they live remotely.

The catalog sits next to the files it tracks (``confsync.yml`` by
default). Each entry binds a local path to a store name plus whatever
metadata that store needs to find the file again on another machine.

    version: v1
    context: 5f0c...
    files:
      .env:
        path: .env
        store: aws-parameter
        type: env
        data:
          ENV_DB_HOST: env
"""

from __future__ import annotations

import hashlib
import uuid
from enum import Enum
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from .errors import CatalogError

CATALOG_HEADER = """\
# This catalog lists files stored remotely based on each file's current location.
# To restore the files, run 'confsync pull' in the same directory as this catalog.
# If this file is deleted without running 'confsync purge' first, the remote
# contents will be orphaned with no way to recover them.
"""


class FileType(str, Enum):
    """Kinds of tracked files; stores use this to decide eligibility."""

    ENV = "env"
    JSON = "json"
    GENERIC = "generic"

    @classmethod
    def detect(cls, path: Union[str, Path]) -> "FileType":
        """Guess the file type from its name."""
        name = Path(path).name.lower()
        if name == ".env" or name.endswith(".env") or name.startswith(".env."):
            return cls.ENV
        if name.endswith(".json"):
            return cls.JSON
        return cls.GENERIC


class CatalogFile(BaseModel):
    """One locally tracked file and its store binding."""

    path: str
    store: str = ""
    type: FileType = FileType.GENERIC
    data: dict[str, str] = Field(default_factory=dict)
    versions: list[str] = Field(default_factory=list)

    @property
    def is_env(self) -> bool:
        return self.type == FileType.ENV


class Catalog(BaseModel):
    """Root manifest: tracked files keyed by their local path."""

    version: str = "v1"
    context: str = Field(default_factory=lambda: uuid.uuid4().hex)
    files: dict[str, CatalogFile] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _keys_match_paths(self) -> "Catalog":
        for key, entry in self.files.items():
            if key != entry.path:
                raise ValueError(
                    f"catalog key {key!r} does not match file path {entry.path!r}"
                )
        return self

    def add(self, file: CatalogFile) -> CatalogFile:
        """Track a file, replacing any entry with the same path."""
        self.files[file.path] = file
        return file

    def get(self, path: str) -> Optional[CatalogFile]:
        return self.files.get(path)

    def remove(self, path: str) -> CatalogFile:
        """Stop tracking a file.

        Raises:
            CatalogError: If the path is not tracked.
        """
        try:
            return self.files.pop(path)
        except KeyError:
            raise CatalogError(f"{path} is not tracked by this catalog") from None

    def context_key(self, path: str) -> str:
        """Remote naming scope for one tracked file."""
        return f"{self.context}/{hash_path(path)}"


def hash_path(path: str) -> str:
    """Stable short identifier for a local path."""
    return hashlib.md5(path.encode("utf-8")).hexdigest()


def write(path: Union[str, Path], catalog: Catalog) -> None:
    """Save the catalog as commented YAML in a single write."""
    body = yaml.safe_dump(
        catalog.model_dump(mode="json"),
        default_flow_style=False,
        sort_keys=False,
    )
    Path(path).write_text(CATALOG_HEADER + body, encoding="utf-8")


def read(path: Union[str, Path]) -> Catalog:
    """Load a catalog; a missing file yields a new, empty catalog.

    Raises:
        CatalogError: If the file is not valid YAML or not a catalog.
    """
    target = Path(path)
    if not target.exists():
        return Catalog()

    try:
        data = yaml.safe_load(target.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise CatalogError(f"{target}: {exc}") from exc

    try:
        return Catalog(**data)
    except (TypeError, ValidationError) as exc:
        raise CatalogError(f"{target}: {exc}") from exc
