"""
core.domain.storage — Object storage collaborator for case attachments.

The case services never manipulate bytes beyond handing them over:
they call ``put`` with a logical key and persist the returned
``StoredObject`` (key + retrievable URL) on the case.  ``delete`` is
used to clean up an object whose dependent database write failed.

Two backends are provided and chosen by ``settings.OBJECT_STORAGE_BACKEND``:

* ``"s3"``    — ``S3ObjectStorage``: boto3 client against AWS S3 or any
  S3-compatible endpoint (MinIO, LocalStack).
* ``"local"`` — ``LocalObjectStorage``: Django's ``default_storage``
  (``MEDIA_ROOT``); used in development and tests.

Every backend failure is logged with its traceback and re-raised as
``core.domain.exceptions.ExternalServiceError`` (HTTP 502).

Usage::

    from core.domain.storage import get_object_storage

    stored = get_object_storage().put(
        key="certificates/42/certificate.pdf",
        data=upload.read(),
        content_type=upload.content_type,
    )
    marriage.certificate_file = stored.key
    marriage.certificate_file_url = stored.url
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage

from core.domain.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredObject:
    """Reference to an object persisted by a storage backend.

    Attributes:
        key: The logical object key (path within the bucket / media root).
        url: A URL the object can be retrieved from.
        size_bytes: Size of the stored content in bytes.
    """

    key: str
    url: str
    size_bytes: int


class S3ObjectStorage:
    """S3-compatible object storage backed by boto3."""

    def __init__(
        self,
        bucket: str,
        *,
        region: str = "us-east-1",
        endpoint_url: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        connect_timeout: float = 5.0,
        read_timeout: float = 30.0,
        max_retries: int = 3,
    ) -> None:
        self._bucket = bucket
        self._region = region
        self._endpoint_url = endpoint_url

        config = Config(
            connect_timeout=connect_timeout,
            read_timeout=read_timeout,
            retries={"max_attempts": max_retries, "mode": "standard"},
            signature_version="s3v4",
        )
        self._client = boto3.client(
            "s3",
            endpoint_url=endpoint_url or None,
            aws_access_key_id=access_key or None,
            aws_secret_access_key=secret_key or None,
            region_name=region,
            config=config,
        )

    @classmethod
    def from_settings(cls) -> S3ObjectStorage:
        return cls(
            bucket=settings.AWS_S3_BUCKET_NAME,
            region=settings.AWS_REGION,
            endpoint_url=settings.AWS_S3_ENDPOINT_URL,
            access_key=settings.AWS_ACCESS_KEY_ID,
            secret_key=settings.AWS_SECRET_ACCESS_KEY,
        )

    def url_for(self, key: str) -> str:
        if self._endpoint_url:
            return f"{self._endpoint_url.rstrip('/')}/{self._bucket}/{key}"
        return f"https://{self._bucket}.s3.{self._region}.amazonaws.com/{key}"

    def put(self, key: str, data: bytes, *, content_type: str = "application/octet-stream") -> StoredObject:
        try:
            self._client.put_object(
                Bucket=self._bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            logger.exception("S3 upload failed for %s/%s", self._bucket, key)
            raise ExternalServiceError(
                "File upload failed. Please try again later.",
                service="object_storage",
            ) from e

        logger.info("Uploaded %s/%s (%d bytes)", self._bucket, key, len(data))
        return StoredObject(key=key, url=self.url_for(key), size_bytes=len(data))

    def delete(self, key: str) -> None:
        try:
            self._client.delete_object(Bucket=self._bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            logger.exception("S3 delete failed for %s/%s", self._bucket, key)
            raise ExternalServiceError(
                "File deletion failed.",
                service="object_storage",
            ) from e
        logger.info("Deleted %s/%s", self._bucket, key)


class LocalObjectStorage:
    """Object storage on Django's ``default_storage`` (``MEDIA_ROOT``)."""

    def put(self, key: str, data: bytes, *, content_type: str = "application/octet-stream") -> StoredObject:
        try:
            if default_storage.exists(key):
                default_storage.delete(key)
            saved_key = default_storage.save(key, ContentFile(data))
        except OSError as e:
            logger.exception("Local storage write failed for %s", key)
            raise ExternalServiceError(
                "File upload failed. Please try again later.",
                service="object_storage",
            ) from e

        logger.info("Stored %s locally (%d bytes)", saved_key, len(data))
        return StoredObject(key=saved_key, url=default_storage.url(saved_key), size_bytes=len(data))

    def delete(self, key: str) -> None:
        try:
            default_storage.delete(key)
        except OSError as e:
            logger.exception("Local storage delete failed for %s", key)
            raise ExternalServiceError(
                "File deletion failed.",
                service="object_storage",
            ) from e
        logger.info("Deleted local object %s", key)


_BACKENDS = {
    "s3": S3ObjectStorage.from_settings,
    "local": LocalObjectStorage,
}


@lru_cache(maxsize=None)
def _build_backend(name: str) -> S3ObjectStorage | LocalObjectStorage:
    try:
        factory = _BACKENDS[name]
    except KeyError:
        raise ExternalServiceError(
            f"Unknown object storage backend '{name}'.",
            service="object_storage",
        )
    return factory()


def get_object_storage() -> S3ObjectStorage | LocalObjectStorage:
    """Return the backend selected by ``settings.OBJECT_STORAGE_BACKEND``."""
    return _build_backend(getattr(settings, "OBJECT_STORAGE_BACKEND", "local"))
