"""Tests for store registration and selection."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from confsync.catalog import Catalog, CatalogFile, FileType
from confsync.config import Settings, UserOptions
from confsync.errors import StoreNotFoundError
from confsync.stores.base import Attributes, Store
from confsync.stores.registry import StoreRegistry, default_registry


class RecordingStore(Store):
    """Store double that records pre() calls."""

    def __init__(self, name: str, types=(FileType.ENV, FileType.JSON, FileType.GENERIC)):
        self._name = name
        self._types = set(types)
        self.pre_calls: list[tuple[str, str]] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return f"{self._name} test store"

    def supports_file_type(self, file_type):
        return file_type in self._types

    def pre(self, context_id, file, vault, options, io):
        self.pre_calls.append((context_id, file.path))

    def push(self, context_key, file, contents):
        return {}, False

    def pull(self, context_key, file):
        return b"", Attributes()

    def purge(self, context_key, file):
        return None


@pytest.fixture
def registry() -> StoreRegistry:
    return StoreRegistry(
        [
            RecordingStore("alpha"),
            RecordingStore("envonly", types=[FileType.ENV]),
        ]
    )


class TestStoreRegistry:
    def test_duplicate_name_rejected(self, registry):
        with pytest.raises(ValueError):
            registry.register(RecordingStore("alpha"))

    def test_get_returns_copy(self, registry):
        stores = registry.get()
        stores.clear()
        assert set(registry.get()) == {"alpha", "envonly"}

    def test_names_for_filters_by_type(self, registry):
        assert registry.names_for(FileType.ENV) == ["alpha", "envonly"]
        assert registry.names_for(FileType.JSON) == ["alpha"]

    def test_default_registry_contents(self):
        names = set(default_registry(Settings()).get())
        assert names == {"shipment", "aws-s3", "aws-parameter"}

    def test_default_token_hooks_are_noops(self, registry):
        store = registry.lookup("alpha")
        assert store.get_tokens({"A": "1"}) == {}
        assert store.set_tokens({"A": "1"}, always=True) == {}


class TestSelect:
    def test_bound_store_returned_without_prompt(self, registry, memory_vault, make_io):
        clog = Catalog(context="ctx")
        file = clog.add(CatalogFile(path=".env", store="envonly", type=FileType.ENV))
        io = make_io()

        first = registry.select(file, clog, memory_vault, UserOptions(), io)
        second = registry.select(file, clog, memory_vault, UserOptions(), io)

        assert first is second is registry.lookup("envonly")
        assert io.asked == []
        assert first.pre_calls == [("ctx", ".env"), ("ctx", ".env")]

    def test_unknown_bound_store_fails_without_side_effects(self, registry, memory_vault, make_io):
        clog = Catalog()
        file = clog.add(CatalogFile(path=".env", store="unknown"))
        io = make_io()
        io.ask = MagicMock()

        with pytest.raises(StoreNotFoundError):
            registry.select(file, clog, memory_vault, UserOptions(), io)

        io.ask.assert_not_called()
        assert all(not s.pre_calls for s in registry.get().values())
        assert memory_vault.writes == []

    def test_unbound_file_prompts_and_binds(self, registry, memory_vault, make_io):
        clog = Catalog(context="ctx")
        file = clog.add(CatalogFile(path="app.json", type=FileType.JSON))
        io = make_io({"Remote Store": "alpha"})

        store = registry.select(file, clog, memory_vault, UserOptions(), io)

        assert store.name == "alpha"
        assert file.store == "alpha"
        assert io.asked == ["Remote Store"]
        assert "(alpha)" in io.console.file.getvalue()
        assert store.pre_calls == [("ctx", "app.json")]

    def test_unbound_file_uses_default_store(self, registry, memory_vault, make_io):
        clog = Catalog()
        file = clog.add(CatalogFile(path=".env", type=FileType.ENV))
        options = UserOptions(default_store="envonly", prompt_user=False)

        store = registry.select(file, clog, memory_vault, options, make_io(interactive=False))

        assert store.name == "envonly"
        assert file.store == "envonly"

    def test_unknown_answer_raises(self, registry, memory_vault, make_io):
        clog = Catalog()
        file = clog.add(CatalogFile(path=".env", type=FileType.ENV))

        with pytest.raises(StoreNotFoundError):
            registry.select(
                file, clog, memory_vault, UserOptions(), make_io({"Remote Store": "nope"})
            )
        assert file.store == ""

    def test_store_without_type_support_rejected(self, registry, memory_vault, make_io):
        clog = Catalog()
        file = clog.add(CatalogFile(path="app.json", type=FileType.JSON))

        with pytest.raises(StoreNotFoundError, match="envonly"):
            registry.select(
                file, clog, memory_vault, UserOptions(), make_io({"Remote Store": "envonly"})
            )

        assert file.store == ""
        assert registry.lookup("envonly").pre_calls == []

    def test_error_message(self):
        assert str(StoreNotFoundError()) == "store not found"
