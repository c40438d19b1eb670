"""
Shipment store -- env vars on a shipment container.

Each key of a .env file becomes one environment variable on the
container identified by shipment, environment and container name.
Users log in with their directory credentials; the resulting token is
cached in the credential vault until the auth service rejects it.

    GET    {api}/v1/shipment/{name}/environment/{env}
    POST   {api}/v1/shipment/{name}/environment/{env}/container/{c}/envVars
    PUT    {api}/v1/shipment/{name}/environment/{env}/container/{c}/envVar/{key}
    DELETE {api}/v1/shipment/{name}/environment/{env}/container/{c}/envVar/{key}
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

import requests

from ..catalog import CatalogFile, FileType
from ..config import Settings, UserOptions
from ..errors import AuthenticationError, RemoteStoreError
from ..prompt import PromptOptions, UserIO, get_val_from_user
from ..vaults import CredentialVault
from .base import Attributes, Store
from .envvars import (
    ENV_PREFIX,
    ENV_TYPE_HIDDEN,
    ENV_VAR_MARKER,
    MODIFIED_KEY,
    add_env_prefix,
    format_modified,
    is_classification,
    is_owned,
    parse_env,
    parse_modified,
    render_env,
    strip_env_prefix,
)

logger = logging.getLogger("confsync.stores.shipment")

TOKEN_KEY = "SHIPMENT_TOKEN"
USER_KEY = "SHIPMENT_USER"
PASS_KEY = "SHIPMENT_PASS"

SHIPMENT_KEY = "SHIPMENT_NAME"
CONTAINER_KEY = "SHIPMENT_CONTAINER"
ENV_KEY = "SHIPMENT_ENV"


@dataclass
class ShipmentAuth:
    user: str = ""
    token: str = ""


@dataclass
class ShipmentTarget:
    name: str = ""
    container: str = ""
    env: str = ""


@dataclass
class RemoteKey:
    value: str
    type: str


class ShipmentStore(Store):
    """Container environment variables on the shipment service."""

    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or Settings()
        self.auth_url = settings.shipment_auth_url.rstrip("/")
        self.api_url = settings.shipment_api_url.rstrip("/")
        self.timeout = settings.http_timeout

        self.auth = ShipmentAuth()
        self.target = ShipmentTarget()

    @property
    def name(self) -> str:
        return "shipment"

    @property
    def description(self) -> str:
        return (
            "Environment variables listed in a .env file are stored on a "
            "shipment container.\n\n"
            "Pushing prompts for directory credentials; the access token is "
            "cached and credentials are asked for again once it expires.\n\n"
            "A shipment, environment and container identify where the "
            "variables live."
        )

    def supports_file_type(self, file_type: FileType) -> bool:
        return file_type == FileType.ENV

    def can_handle_file(self, file: CatalogFile) -> bool:
        return file.is_env

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def pre(
        self,
        context_id: str,
        file: CatalogFile,
        vault: CredentialVault,
        options: UserOptions,
        io: UserIO,
    ) -> None:
        self.auth = ShipmentAuth(
            user=vault.get(context_id, USER_KEY, default=""),
            token=vault.get(context_id, TOKEN_KEY, default="", is_secret=True),
        )

        authenticated = False
        if self.auth.user and self.auth.token:
            authenticated = self._is_authenticated(self.auth)

        if not authenticated:
            user = get_val_from_user(
                USER_KEY, PromptOptions(description="Shipment login id."), io
            )
            password = get_val_from_user(
                PASS_KEY,
                PromptOptions(description="Shipment password.", hide_input=True),
                io,
            )
            token = self._login(user, password)

            vault.set(context_id, USER_KEY, user)
            vault.set(context_id, TOKEN_KEY, token)
            self.auth = ShipmentAuth(user=user, token=token)
            logger.info("Logged in to shipment service as %s", user)

        self.target = ShipmentTarget(
            name=self._coordinate(file, SHIPMENT_KEY, "Shipment name.", io),
            container=self._coordinate(file, CONTAINER_KEY, "Container name.", io),
            env=self._coordinate(file, ENV_KEY, "Shipment environment (e.g. dev).", io),
        )

    @staticmethod
    def _coordinate(file: CatalogFile, key: str, description: str, io: UserIO) -> str:
        value = file.data.get(key)
        if not value:
            value = get_val_from_user(key, PromptOptions(description=description), io)
            file.data[key] = value
        return value

    def _is_authenticated(self, auth: ShipmentAuth) -> bool:
        try:
            resp = requests.request(
                "POST",
                f"{self.auth_url}/v1/auth/checktoken",
                json={"username": auth.user, "token": auth.token},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("Token check failed: %s", exc)
            return False

        if resp.status_code != 200:
            return False
        return bool(resp.json().get("valid"))

    def _login(self, user: str, password: str) -> str:
        try:
            resp = requests.request(
                "POST",
                f"{self.auth_url}/v1/auth/gettoken",
                json={"username": user, "password": password},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise AuthenticationError(f"login failed: {exc}") from exc

        if resp.status_code != 200:
            raise AuthenticationError(
                f"login failed for {user}: {resp.status_code} {resp.reason}"
            )

        token = resp.json().get("token")
        if not token:
            raise AuthenticationError(f"login failed for {user}: no token issued")
        return token

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    def push(
        self, context_key: str, file: CatalogFile, contents: bytes
    ) -> tuple[dict[str, str], bool]:
        data = {
            SHIPMENT_KEY: self.target.name,
            CONTAINER_KEY: self.target.container,
            ENV_KEY: self.target.env,
        }

        local_keys = parse_env(contents, file.path)
        local_keys[MODIFIED_KEY] = format_modified(datetime.now(timezone.utc))

        for key, value in local_keys.items():
            prefixed = add_env_prefix(key)

            key_type = ENV_TYPE_HIDDEN
            stored = file.data.get(prefixed)
            if stored and stored != ENV_VAR_MARKER:
                key_type = stored

            pair = {"name": key, "value": value, "type": key_type}
            try:
                self._create_key(pair)
            except (RemoteStoreError, requests.RequestException) as exc:
                logger.debug("Create of %s failed (%s), updating", key, exc)
                self._update_key(pair)

            data[prefixed] = key_type

        remote_keys = self._get_keys()
        for key in remote_keys:
            if is_owned(key, file.data) and key not in local_keys:
                logger.info("Deleting %s from %s", key, self.target.name)
                self._delete_key(key)

        return data, False

    def pull(self, context_key: str, file: CatalogFile) -> tuple[bytes, Attributes]:
        keys = self._get_keys()

        body = render_env(
            (key, remote.value)
            for key, remote in keys.items()
            if key != MODIFIED_KEY and is_owned(key, file.data)
        )

        attributes = Attributes()
        if MODIFIED_KEY in keys:
            try:
                attributes.last_modified = parse_modified(keys[MODIFIED_KEY].value)
            except ValueError:
                logger.warning(
                    "Ignoring unparseable %s: %r", MODIFIED_KEY, keys[MODIFIED_KEY].value
                )

        return body, attributes

    def purge(self, context_key: str, file: CatalogFile) -> None:
        for key, value in file.data.items():
            if key.startswith(ENV_PREFIX) and is_classification(value):
                self._delete_key(strip_env_prefix(key))

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    def _container_url(self) -> str:
        t = self.target
        return (
            f"{self.api_url}/v1/shipment/{t.name}"
            f"/environment/{t.env}/container/{t.container}"
        )

    def _request(
        self,
        method: str,
        url: str,
        expected: int,
        body: Optional[dict[str, Any]] = None,
    ) -> requests.Response:
        headers = {
            "x-token": self.auth.token,
            "x-username": self.auth.user,
            "Content-Type": "application/json",
        }
        resp = requests.request(
            method, url, headers=headers, json=body, timeout=self.timeout
        )
        if resp.status_code != expected:
            raise RemoteStoreError(f"{resp.status_code} {resp.reason}")
        return resp

    def _create_key(self, pair: dict[str, str]) -> None:
        self._request("POST", f"{self._container_url()}/envVars", 201, pair)
        logger.debug("Created %s", pair["name"])

    def _update_key(self, pair: dict[str, str]) -> None:
        self._request(
            "PUT", f"{self._container_url()}/envVar/{pair['name']}", 200, pair
        )
        logger.debug("Updated %s", pair["name"])

    def _delete_key(self, key: str) -> None:
        self._request("DELETE", f"{self._container_url()}/envVar/{key}", 200)

    def _get_keys(self) -> dict[str, RemoteKey]:
        t = self.target
        url = f"{self.api_url}/v1/shipment/{t.name}/environment/{t.env}"
        resp = self._request("GET", url, 200)

        keys: dict[str, RemoteKey] = {}
        for container in resp.json().get("containers") or []:
            if container.get("name") != t.container:
                continue
            for env_var in container.get("envVars") or []:
                name = env_var.get("name")
                if not name:
                    logger.warning("Skipping unnamed env var on %s", t.container)
                    continue
                keys[name] = RemoteKey(
                    value=env_var.get("value", ""), type=env_var.get("type", "")
                )
        return keys
