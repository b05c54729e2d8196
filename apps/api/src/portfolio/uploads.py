from __future__ import annotations

import base64
import binascii
import logging
import math
import uuid
from dataclasses import dataclass

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from portfolio import config
from portfolio.errors import BadRequestError, ConfigurationError, UpstreamError


logger = logging.getLogger(__name__)

MIME_TO_EXT = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/gif": "gif",
    "image/webp": "webp",
}
ALLOWED_MIME_TYPES = tuple(MIME_TO_EXT)


class InvalidUploadError(BadRequestError):
    pass


class UploadNotConfiguredError(ConfigurationError):
    pass


class UploadFailedError(UpstreamError):
    pass


@dataclass(frozen=True)
class S3Settings:
    bucket: str | None
    region: str
    endpoint: str | None
    access_key_id: str | None
    secret_access_key: str | None
    public_url: str | None

    @classmethod
    def from_config(cls) -> S3Settings:
        return cls(
            bucket=config.S3_BUCKET,
            region=config.S3_REGION,
            endpoint=config.S3_ENDPOINT,
            access_key_id=config.S3_ACCESS_KEY_ID,
            secret_access_key=config.S3_SECRET_ACCESS_KEY,
            public_url=config.S3_PUBLIC_URL,
        )

    def is_configured(self) -> bool:
        return all(
            (self.bucket, self.endpoint, self.access_key_id, self.secret_access_key, self.public_url)
        )


@dataclass(frozen=True)
class UploadedImage:
    url: str
    key: str


def build_s3_client(settings: S3Settings):
    if not settings.is_configured():
        raise UploadNotConfiguredError("Image upload is not configured. Set S3 environment variables.")
    return boto3.client(
        "s3",
        endpoint_url=settings.endpoint,
        region_name=settings.region,
        aws_access_key_id=settings.access_key_id,
        aws_secret_access_key=settings.secret_access_key,
        config=Config(s3={"addressing_style": "path"}),
    )


def estimated_size(data_base64: str) -> int:
    return math.ceil(len(data_base64) * 0.75)


def decode_image(data_base64: str, mime_type: str, *, max_bytes: int) -> bytes:
    if mime_type not in MIME_TO_EXT:
        raise InvalidUploadError(f"File type not allowed. Accepted: {', '.join(ALLOWED_MIME_TYPES)}")
    if not data_base64:
        raise InvalidUploadError("File data is required")
    if estimated_size(data_base64) > max_bytes:
        raise InvalidUploadError(
            f"File is too large. Maximum size is {max_bytes / 1024 / 1024:g}MB."
        )
    try:
        return base64.b64decode(data_base64, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidUploadError("File data is not valid base64") from exc


def upload_image(
    data_base64: str,
    mime_type: str,
    *,
    settings: S3Settings | None = None,
    client=None,
) -> UploadedImage:
    settings = settings or S3Settings.from_config()
    body = decode_image(data_base64, mime_type, max_bytes=config.MAX_UPLOAD_SIZE_BYTES)
    if client is None:
        client = build_s3_client(settings)
    elif not settings.is_configured():
        raise UploadNotConfiguredError("Image upload is not configured. Set S3 environment variables.")

    key = f"uploads/{uuid.uuid4()}.{MIME_TO_EXT[mime_type]}"
    try:
        client.put_object(Bucket=settings.bucket, Key=key, Body=body, ContentType=mime_type)
    except (BotoCoreError, ClientError) as exc:
        logger.exception("image_upload_failed", extra={"object_key": key})
        raise UploadFailedError("Upload failed, check S3 credentials") from exc

    logger.info("image_uploaded", extra={"object_key": key})
    return UploadedImage(url=f"{settings.public_url.rstrip('/')}/{key}", key=key)
