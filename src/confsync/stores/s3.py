"""S3 store -- whole files as encrypted objects in a bucket."""

from __future__ import annotations

import logging
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..catalog import CatalogFile, FileType
from ..config import Settings, UserOptions
from ..errors import RemoteStoreError
from ..prompt import PromptOptions, UserIO, get_val_from_user
from ..vaults import CredentialVault
from .base import VERSION_DATA_KEY, Attributes, Store

logger = logging.getLogger("confsync.stores.s3")

BUCKET_KEY = "AWS_S3_BUCKET"
KMS_KEY = "AWS_S3_KMS_KEY_ID"


class S3Store(Store):
    """Object storage in an S3 bucket, one object per tracked file.

    Objects are named after the catalog context key, so files with the
    same name in different catalogs never collide. Server-side
    encryption is always requested: SSE-KMS when a key id is available
    in the vault, SSE-S3 otherwise.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()
        self.bucket = ""
        self.kms_key_id = ""
        self._s3 = None

    @property
    def name(self) -> str:
        return "aws-s3"

    @property
    def description(self) -> str:
        return (
            "Any file can be stored as an encrypted object in an S3 bucket.\n\n"
            "AWS credentials come from the usual places (environment, "
            "~/.aws/credentials, instance profile). Set AWS_S3_KMS_KEY_ID "
            "to encrypt with a customer managed key. Bucket versioning is "
            "recorded when enabled."
        )

    def supports_file_type(self, file_type: FileType) -> bool:
        return True

    def _client(self) -> Any:
        """Create (once) the boto3 S3 client."""
        if self._s3 is None:
            self._s3 = boto3.client("s3", region_name=self.settings.aws_region)
        return self._s3

    def pre(
        self,
        context_id: str,
        file: CatalogFile,
        vault: CredentialVault,
        options: UserOptions,
        io: UserIO,
    ) -> None:
        bucket = file.data.get(BUCKET_KEY) or vault.get(context_id, BUCKET_KEY, default="")
        if not bucket:
            bucket = get_val_from_user(
                BUCKET_KEY,
                PromptOptions(
                    description=f"S3 bucket that will hold {file.path}.",
                    default_value=self.settings.s3_bucket or "",
                ),
                io,
            )
        file.data[BUCKET_KEY] = bucket
        self.bucket = bucket
        self.kms_key_id = vault.get(context_id, KMS_KEY, default="")

    def push(
        self, context_key: str, file: CatalogFile, contents: bytes
    ) -> tuple[dict[str, str], bool]:
        params: dict[str, Any] = {
            "Bucket": self.bucket,
            "Key": context_key,
            "Body": contents,
        }
        if self.kms_key_id:
            params["ServerSideEncryption"] = "aws:kms"
            params["SSEKMSKeyId"] = self.kms_key_id
        else:
            params["ServerSideEncryption"] = "AES256"

        try:
            resp = self._client().put_object(**params)
        except (BotoCoreError, ClientError) as exc:
            raise RemoteStoreError(f"s3 put {self.bucket}/{context_key}: {exc}") from exc

        logger.info("Pushed %s to s3://%s/%s", file.path, self.bucket, context_key)

        data = {BUCKET_KEY: self.bucket}
        version = resp.get("VersionId")
        if version and version != "null":
            data[VERSION_DATA_KEY] = version
        return data, True

    def pull(self, context_key: str, file: CatalogFile) -> tuple[bytes, Attributes]:
        try:
            resp = self._client().get_object(Bucket=self.bucket, Key=context_key)
            body = resp["Body"].read()
        except (BotoCoreError, ClientError) as exc:
            raise RemoteStoreError(f"s3 get {self.bucket}/{context_key}: {exc}") from exc

        attributes = Attributes(version=resp.get("VersionId") or "")
        if resp.get("LastModified"):
            attributes.last_modified = resp["LastModified"]
        return body, attributes

    def purge(self, context_key: str, file: CatalogFile) -> None:
        try:
            self._client().delete_object(Bucket=self.bucket, Key=context_key)
        except (BotoCoreError, ClientError) as exc:
            raise RemoteStoreError(
                f"s3 delete {self.bucket}/{context_key}: {exc}"
            ) from exc
        logger.info("Deleted s3://%s/%s", self.bucket, context_key)
