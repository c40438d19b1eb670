"""
Store registry and selection.

The registry is built once per process and handed to whoever needs to
resolve stores; there is no module-level store table.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from ..catalog import Catalog, CatalogFile, FileType
from ..config import Settings, UserOptions
from ..errors import StoreNotFoundError
from ..prompt import PromptOptions, UserIO, get_val_from_user
from ..vaults import CredentialVault
from .base import Store
from .parameter import ParameterStore
from .s3 import S3Store
from .shipment import ShipmentStore

logger = logging.getLogger("confsync.stores.registry")


class StoreRegistry:
    """Named set of store instances, one per store name."""

    def __init__(self, stores: Iterable[Store] = ()):
        self._stores: dict[str, Store] = {}
        for store in stores:
            self.register(store)

    def register(self, store: Store) -> None:
        """Add a store.

        Raises:
            ValueError: If a store with the same name is registered.
        """
        if store.name in self._stores:
            raise ValueError(f"store already registered: {store.name}")
        self._stores[store.name] = store

    def get(self) -> dict[str, Store]:
        return dict(self._stores)

    def lookup(self, name: str) -> Store:
        try:
            return self._stores[name]
        except KeyError:
            raise StoreNotFoundError(name) from None

    def names_for(self, file_type: FileType) -> list[str]:
        """Sorted names of stores accepting ``file_type``."""
        return sorted(
            name
            for name, store in self._stores.items()
            if store.supports_file_type(file_type)
        )

    def select(
        self,
        file: CatalogFile,
        catalog: Catalog,
        vault: CredentialVault,
        options: UserOptions,
        io: UserIO,
    ) -> Store:
        """Resolve and initialize the store for ``file``.

        A file already bound to a store always gets that store back. An
        unbound file is offered the stores that support its type and the
        chosen name is written into ``file.store``. Either way the
        store's ``pre`` runs before it is returned.

        Raises:
            StoreNotFoundError: The bound name is unknown, or the chosen
                name is not a store supporting the file's type.
        """
        if file.store:
            store = self.lookup(file.store)
            store.pre(catalog.context, file, vault, options, io)
            return store

        supported = self.names_for(file.type)
        answer = get_val_from_user(
            "Remote Store",
            PromptOptions(
                description=(
                    f"The remote storage solution where {file.path} data will "
                    f"be pushed. ({','.join(supported)})"
                ),
                default_value=options.default_store,
            ),
            io,
        )
        if answer not in supported:
            raise StoreNotFoundError(answer)

        store = self.lookup(answer)
        store.pre(catalog.context, file, vault, options, io)
        file.store = store.name
        logger.debug("Bound %s to store %s", file.path, store.name)
        return store


def default_registry(settings: Optional[Settings] = None) -> StoreRegistry:
    """Registry holding every store confsync ships with."""
    settings = settings or Settings()
    return StoreRegistry(
        [
            ShipmentStore(settings),
            S3Store(settings),
            ParameterStore(settings),
        ]
    )
