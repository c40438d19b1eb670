"""Shared test fixtures for confsync."""

from __future__ import annotations

import io
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional, Union
from unittest.mock import MagicMock

import pytest
from rich.console import Console

from confsync.catalog import CatalogFile, FileType
from confsync.config import Settings
from confsync.errors import AuthenticationError, RemoteStoreError
from confsync.prompt import UserIO
from confsync.stores.base import VERSION_DATA_KEY, Attributes, Store
from confsync.stores.envvars import parse_env
from confsync.vaults import CredentialVault


class MemoryVault(CredentialVault):
    """In-memory vault that records every write."""

    def __init__(self, initial: Optional[dict] = None):
        self.data: dict[str, dict[str, str]] = {k: dict(v) for k, v in (initial or {}).items()}
        self.writes: list[tuple[str, str, str]] = []

    @property
    def name(self) -> str:
        return "memory"

    def _lookup(self, context_id, key):
        return self.data.get(context_id, {}).get(key)

    def set(self, context_id, key, value):
        self.writes.append((context_id, key, value))
        self.data.setdefault(context_id, {})[key] = value


class ScriptedIO(UserIO):
    """UserIO answering prompts from a dict keyed by prompt label."""

    def __init__(self, answers: Optional[dict[str, str]] = None, interactive: bool = True):
        self.answers = dict(answers or {})
        self.asked: list[str] = []
        super().__init__(
            console=Console(file=io.StringIO()),
            interactive=interactive,
            ask=self._answer,
        )

    def _answer(self, label: str, default: Optional[str], hide_input: bool) -> str:
        self.asked.append(label)
        if label in self.answers:
            return self.answers[label]
        if default is not None:
            return default
        raise AssertionError(f"unexpected prompt: {label}")


class FakeShipmentService:
    """In-memory shipment + auth service served through ``requests.request``."""

    AUTH = "http://auth.test"
    API = "http://shipit.test"

    def __init__(self, password: str = "secret"):
        self.password = password
        self.valid_tokens: set[str] = set()
        self.env_vars: dict[tuple[str, str, str], dict[str, dict[str, str]]] = {}
        self.calls: list[tuple[str, str]] = []
        self.fail: dict[tuple[str, str], Union[int, Exception]] = {}
        self._issued = 0

    def settings(self) -> Settings:
        return Settings(shipment_auth_url=self.AUTH, shipment_api_url=self.API)

    def container(self, shipment: str, env: str, container: str) -> dict[str, dict[str, str]]:
        return self.env_vars.setdefault((shipment, env, container), {})

    def mutations(self) -> list[tuple[str, str]]:
        return [c for c in self.calls if c[0] in ("POST", "PUT", "DELETE") and "/auth/" not in c[1]]

    @staticmethod
    def _response(status: int, body=None, reason: str = ""):
        resp = MagicMock()
        resp.status_code = status
        resp.reason = reason or {200: "OK", 201: "Created", 401: "Unauthorized",
                                 404: "Not Found", 409: "Conflict", 500: "Internal Server Error"}.get(status, "")
        resp.json.return_value = body if body is not None else {}
        return resp

    def request(self, method, url, headers=None, json=None, timeout=None):
        if url.startswith(self.AUTH):
            path = url[len(self.AUTH):]
            self.calls.append((method, path))
            return self._auth(path, json or {})

        path = url[len(self.API):]
        self.calls.append((method, path))
        if (method, path) in self.fail:
            failure = self.fail[(method, path)]
            if isinstance(failure, Exception):
                raise failure
            return self._response(failure)
        if (headers or {}).get("x-token") not in self.valid_tokens:
            return self._response(401)

        parts = path.strip("/").split("/")
        # v1 shipment S environment E [container C (envVars | envVar K)]
        shipment, env = parts[2], parts[4]
        if len(parts) == 5 and method == "GET":
            containers = [
                {
                    "name": c,
                    "envVars": [{"name": k, **v} for k, v in keys.items()],
                }
                for (s, e, c), keys in self.env_vars.items()
                if s == shipment and e == env
            ]
            return self._response(200, {"name": shipment, "containers": containers})

        keys = self.container(shipment, env, parts[6])
        if parts[7] == "envVars" and method == "POST":
            if json["name"] in keys:
                return self._response(409)
            keys[json["name"]] = {"value": json["value"], "type": json["type"]}
            return self._response(201, json)

        name = parts[8]
        if name not in keys:
            return self._response(404)
        if method == "PUT":
            keys[name] = {"value": json["value"], "type": json["type"]}
            return self._response(200, json)
        if method == "DELETE":
            del keys[name]
            return self._response(200)
        return self._response(500)

    def _auth(self, path: str, body: dict):
        if path == "/v1/auth/gettoken":
            if body.get("password") != self.password:
                return self._response(401)
            self._issued += 1
            token = f"tok-{self._issued}"
            self.valid_tokens.add(token)
            return self._response(200, {"token": token})
        if path == "/v1/auth/checktoken":
            return self._response(200, {"valid": body.get("token") in self.valid_tokens})
        return self._response(404)


class MemoryStore(Store):
    """Whole-file store kept in a dict, with optional failures."""

    def __init__(self, name="memory", versioned=False):
        self._name = name
        self.versioned = versioned
        self.objects: dict[str, bytes] = {}
        self.modified: dict[str, datetime] = {}
        self.fail_on: set[str] = set()
        self.deny_login = False
        self.pre_count = 0
        self.parses_env = False

    @property
    def name(self):
        return self._name

    @property
    def description(self):
        return "memory"

    def supports_file_type(self, file_type):
        return True

    def pre(self, context_id, file, vault, options, io):
        self.pre_count += 1
        if self.deny_login:
            raise AuthenticationError("denied")

    def push(self, context_key, file, contents):
        if file.path in self.fail_on:
            raise RemoteStoreError("503 Service Unavailable")
        if self.parses_env and file.is_env:
            parse_env(contents, file.path)
        self.objects[context_key] = contents
        self.modified[context_key] = datetime.now(timezone.utc)
        data = {"KEY": context_key}
        if self.versioned:
            data[VERSION_DATA_KEY] = f"v{len(self.objects)}"
        return data, self.versioned

    def pull(self, context_key, file):
        if context_key not in self.objects:
            raise RemoteStoreError("404 Not Found")
        return self.objects[context_key], Attributes(last_modified=self.modified[context_key])

    def purge(self, context_key, file):
        self.objects.pop(context_key, None)


@pytest.fixture
def memory_vault() -> MemoryVault:
    return MemoryVault()


@pytest.fixture
def make_io() -> Callable[..., ScriptedIO]:
    return ScriptedIO


@pytest.fixture
def shipment_service(monkeypatch) -> FakeShipmentService:
    """Fake shipment service patched over requests.request."""
    service = FakeShipmentService()
    monkeypatch.setattr("confsync.stores.shipment.requests.request", service.request)
    return service


@pytest.fixture
def env_file() -> Callable[..., CatalogFile]:
    def _make(path: str = ".env", **data: str) -> CatalogFile:
        return CatalogFile(path=path, type=FileType.ENV, data=dict(data))
    return _make


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """Directory holding tracked files and the catalog."""
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def store() -> MemoryStore:
    """Whole-file in-memory store named ``memory``."""
    return MemoryStore()
