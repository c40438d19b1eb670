"""
Sync Engine -- walks the catalog and drives each file through its store.

    confsync push  ->  select store -> pre -> push  -> record data
    confsync pull  ->  select store -> pre -> pull  -> write file
    confsync purge ->  select store -> pre -> purge -> untrack

Files are processed one at a time. A failure on one file is recorded
and the run moves on to the next; nothing is retried or rolled back.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable, Optional

from pydantic import BaseModel

from . import catalog as catalog_io
from .catalog import Catalog, CatalogFile, FileType
from .config import UserOptions
from .errors import ConfsyncError
from .prompt import UserIO
from .stores.base import VERSION_DATA_KEY, Store
from .stores.registry import StoreRegistry
from .vaults import CredentialVault

logger = logging.getLogger("confsync.engine")


class FileResult(BaseModel):
    """Outcome of one file in a push/pull/purge run."""

    path: str
    store: str = ""
    ok: bool = True
    message: str = ""


class SyncEngine:
    """Push, pull and purge the files tracked by one catalog.

    Paths in the catalog are relative to the catalog's directory.
    """

    def __init__(
        self,
        catalog_path: Path,
        registry: StoreRegistry,
        vault: CredentialVault,
        options: Optional[UserOptions] = None,
        io: Optional[UserIO] = None,
    ):
        self.catalog_path = Path(catalog_path)
        self.root = self.catalog_path.parent
        self.registry = registry
        self.vault = vault
        self.options = options or UserOptions()
        self.io = io or UserIO(interactive=self.options.prompt_user)
        self.catalog: Catalog = catalog_io.read(self.catalog_path)

    def save(self) -> None:
        """Persist the catalog."""
        catalog_io.write(self.catalog_path, self.catalog)

    def _local(self, path: str) -> Path:
        return self.root / path

    def track(self, path: str, store: Optional[str] = None) -> CatalogFile:
        """Start tracking a local file.

        Args:
            path: File path relative to the catalog directory.
            store: Bind to this store right away instead of asking on push.

        Raises:
            FileNotFoundError: The file does not exist.
            StoreNotFoundError: ``store`` is not registered.
        """
        if not self._local(path).is_file():
            raise FileNotFoundError(path)
        if store:
            self.registry.lookup(store)

        existing = self.catalog.get(path)
        if existing:
            if store:
                existing.store = store
            self.save()
            return existing

        entry = self.catalog.add(
            CatalogFile(path=path, store=store or "", type=FileType.detect(path))
        )
        self.save()
        logger.info("Tracking %s", path)
        return entry

    def _entries(self, paths: Optional[Iterable[str]]) -> list[tuple[str, Optional[CatalogFile]]]:
        if not paths:
            return list(self.catalog.files.items())
        return [(p, self.catalog.get(p)) for p in paths]

    def _run(
        self,
        paths: Optional[Iterable[str]],
        action: Callable[[CatalogFile, Store], str],
    ) -> list[FileResult]:
        results = []
        for path, entry in self._entries(paths):
            if entry is None:
                results.append(FileResult(path=path, ok=False, message="not tracked"))
                continue

            # select() and pre() write into the entry; only a completed action keeps it.
            bound_store, bound_data = entry.store, dict(entry.data)
            try:
                store = self.registry.select(
                    entry, self.catalog, self.vault, self.options, self.io
                )
                message = action(entry, store)
            except (ConfsyncError, OSError) as exc:
                entry.store, entry.data = bound_store, bound_data
                logger.warning("%s: %s", path, exc)
                results.append(
                    FileResult(path=path, store=entry.store, ok=False, message=str(exc))
                )
                continue

            results.append(FileResult(path=path, store=store.name, message=message))
        return results

    def push(self, paths: Optional[Iterable[str]] = None) -> list[FileResult]:
        """Push tracked files (all of them when ``paths`` is empty)."""
        return self._run(paths, self._push_one)

    def _push_one(self, entry: CatalogFile, store: Store) -> str:
        contents = self._local(entry.path).read_bytes()
        data, versioned = store.push(
            self.catalog.context_key(entry.path), entry, contents
        )

        entry.data = data
        entry.store = store.name
        message = "pushed"
        if versioned:
            version = data.get(VERSION_DATA_KEY, "")
            if version and version not in entry.versions:
                entry.versions.append(version)
                message = f"pushed (version {version})"
        self.save()
        return message

    def pull(
        self, paths: Optional[Iterable[str]] = None, force: bool = False
    ) -> list[FileResult]:
        """Pull tracked files, keeping local files that are newer unless forced."""
        force = force or self.options.force
        return self._run(paths, lambda e, s: self._pull_one(e, s, force))

    def _pull_one(self, entry: CatalogFile, store: Store, force: bool) -> str:
        contents, attributes = store.pull(self.catalog.context_key(entry.path), entry)

        target = self._local(entry.path)
        if target.exists() and target.read_bytes() == contents:
            return "up to date"
        if target.exists() and not force:
            local_mtime = datetime.fromtimestamp(target.stat().st_mtime, timezone.utc)
            if local_mtime > attributes.last_modified:
                logger.warning(
                    "%s is newer locally (%s) than remotely (%s); skipped",
                    entry.path, local_mtime, attributes.last_modified,
                )
                return "skipped: local file is newer"

        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(contents)
        self.save()
        logger.info("Pulled %s from %s", entry.path, store.name)
        return "pulled"

    def purge(self, paths: Iterable[str]) -> list[FileResult]:
        """Delete remote contents and stop tracking the files."""
        paths = list(paths)
        if not paths:
            return []
        return self._run(paths, self._purge_one)

    def _purge_one(self, entry: CatalogFile, store: Store) -> str:
        store.purge(self.catalog.context_key(entry.path), entry)
        self.catalog.remove(entry.path)
        self.save()
        return "purged"
