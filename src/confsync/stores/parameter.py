"""
Parameter store -- one SecureString per env var in AWS SSM.

Parameters are written under ``/<context key>/<NAME>``. Only names the
catalog file has claimed (``ENV_<NAME>`` in its data) are pulled,
reconciled away or purged.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..catalog import CatalogFile, FileType
from ..config import Settings, UserOptions
from ..errors import RemoteStoreError
from ..prompt import UserIO
from ..vaults import CredentialVault
from .base import Attributes, Store
from .envvars import (
    ENV_PREFIX,
    ENV_VAR_MARKER,
    MODIFIED_KEY,
    add_env_prefix,
    format_modified,
    is_env_var_type,
    is_owned,
    parse_env,
    parse_modified,
    render_env,
    strip_env_prefix,
)

logger = logging.getLogger("confsync.stores.parameter")

KMS_KEY = "AWS_PARAMETER_KMS_KEY_ID"

# SSM rejects empty parameter values; empty variables are stored as this.
EMPTY_VALUE = "<confsync:empty>"


class ParameterStore(Store):
    """AWS SSM Parameter Store for .env files."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()
        self.kms_key_id = ""
        self._ssm = None

    @property
    def name(self) -> str:
        return "aws-parameter"

    @property
    def description(self) -> str:
        return (
            "Each variable of a .env file is stored as an encrypted "
            "SecureString parameter in AWS SSM Parameter Store.\n\n"
            "Set AWS_PARAMETER_KMS_KEY_ID to encrypt with a customer "
            "managed key instead of the account default."
        )

    def supports_file_type(self, file_type: FileType) -> bool:
        return file_type == FileType.ENV

    def _client(self) -> Any:
        """Create (once) the boto3 SSM client."""
        if self._ssm is None:
            self._ssm = boto3.client("ssm", region_name=self.settings.aws_region)
        return self._ssm

    def pre(
        self,
        context_id: str,
        file: CatalogFile,
        vault: CredentialVault,
        options: UserOptions,
        io: UserIO,
    ) -> None:
        self.kms_key_id = vault.get(context_id, KMS_KEY, default="")

    @staticmethod
    def _path(context_key: str) -> str:
        return f"/{context_key}"

    def _put(self, context_key: str, key: str, value: str) -> None:
        params: dict[str, Any] = {
            "Name": f"{self._path(context_key)}/{key}",
            "Value": value or EMPTY_VALUE,
            "Type": "SecureString",
            "Overwrite": True,
        }
        if self.kms_key_id:
            params["KeyId"] = self.kms_key_id
        try:
            self._client().put_parameter(**params)
        except (BotoCoreError, ClientError) as exc:
            raise RemoteStoreError(f"ssm put {params['Name']}: {exc}") from exc

    def _delete(self, context_key: str, key: str) -> None:
        name = f"{self._path(context_key)}/{key}"
        try:
            self._client().delete_parameter(Name=name)
        except (BotoCoreError, ClientError) as exc:
            raise RemoteStoreError(f"ssm delete {name}: {exc}") from exc
        logger.info("Deleted parameter %s", name)

    def _get_keys(self, context_key: str) -> dict[str, str]:
        keys: dict[str, str] = {}
        try:
            paginator = self._client().get_paginator("get_parameters_by_path")
            for page in paginator.paginate(
                Path=self._path(context_key), Recursive=False, WithDecryption=True
            ):
                for param in page.get("Parameters", []):
                    keys[param["Name"].rsplit("/", 1)[-1]] = _decode(param.get("Value", ""))
        except (BotoCoreError, ClientError) as exc:
            raise RemoteStoreError(f"ssm list {self._path(context_key)}: {exc}") from exc
        return keys

    def push(
        self, context_key: str, file: CatalogFile, contents: bytes
    ) -> tuple[dict[str, str], bool]:
        data: dict[str, str] = {}

        local_keys = parse_env(contents, file.path)
        local_keys[MODIFIED_KEY] = format_modified(datetime.now(timezone.utc))

        for key, value in local_keys.items():
            self._put(context_key, key, value)
            data[add_env_prefix(key)] = ENV_VAR_MARKER

        for key in self._get_keys(context_key):
            if is_owned(key, file.data) and key not in local_keys:
                self._delete(context_key, key)

        logger.info("Pushed %d parameters for %s", len(local_keys), file.path)
        return data, False

    def pull(self, context_key: str, file: CatalogFile) -> tuple[bytes, Attributes]:
        keys = self._get_keys(context_key)

        body = render_env(
            (key, value)
            for key, value in keys.items()
            if key != MODIFIED_KEY and is_owned(key, file.data)
        )

        attributes = Attributes()
        if MODIFIED_KEY in keys:
            try:
                attributes.last_modified = parse_modified(keys[MODIFIED_KEY])
            except ValueError:
                logger.warning("Ignoring unparseable %s for %s", MODIFIED_KEY, file.path)
        return body, attributes

    def purge(self, context_key: str, file: CatalogFile) -> None:
        for key, value in file.data.items():
            if key.startswith(ENV_PREFIX) and is_env_var_type(value):
                self._delete(context_key, strip_env_prefix(key))


def _decode(value: str) -> str:
    return "" if value == EMPTY_VALUE else value
