# app/services/storage.py
import logging
from pathlib import Path
from typing import Optional

import aiofiles
import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.core.config import settings

logger = logging.getLogger(__name__)


def upload_root() -> Path:
    """Local upload directory, read from settings on every call."""
    return Path(settings.UPLOAD_DIR)


def _get_s3_client() -> Optional[boto3.client]:
    """
    Return a boto3 S3 client configured for AWS, Cloudflare R2 or MinIO.
    If no S3_ENDPOINT or credentials are configured, returns None.
    """
    endpoint = settings.S3_ENDPOINT
    access_key = settings.S3_ACCESS_KEY
    secret_key = settings.S3_SECRET_KEY

    # MinIO settings win when the provider says so
    if settings.S3_PROVIDER and settings.S3_PROVIDER.lower() == "minio" and settings.MINIO_ENDPOINT:
        endpoint = settings.MINIO_ENDPOINT
        access_key = settings.MINIO_ACCESS_KEY
        secret_key = settings.MINIO_SECRET_KEY

    if not endpoint or not access_key or not secret_key or not settings.S3_BUCKET:
        return None

    return boto3.client(
        "s3",
        endpoint_url=str(endpoint),
        aws_access_key_id=access_key,
        aws_secret_access_key=secret_key,
        config=Config(signature_version="s3v4"),
        region_name=(settings.S3_REGION or None),
    )


def uses_s3() -> bool:
    return _get_s3_client() is not None


def ensure_bucket(client, bucket: str) -> bool:
    """
    Ensure the bucket exists (MinIO needs this in dev).
    Returns True if the bucket exists or was created.
    """
    try:
        client.head_bucket(Bucket=bucket)
        return True
    except ClientError:
        try:
            client.create_bucket(Bucket=bucket)
            return True
        except ClientError:
            return False


async def save_bytes(key: str, data: bytes, content_type: str = "application/octet-stream") -> str:
    """
    Store ``data`` under ``key`` (``resumes/...`` or ``portfolios/...``).
    Goes to S3 when configured, otherwise to the local upload directory.
    Returns the key.
    """
    s3 = _get_s3_client()
    if s3:
        ensure_bucket(s3, settings.S3_BUCKET)
        s3.put_object(Bucket=settings.S3_BUCKET, Key=key, Body=data, ContentType=content_type)
        logger.info("Stored %s in bucket %s (%d bytes)", key, settings.S3_BUCKET, len(data))
        return key

    path = upload_root() / key
    path.parent.mkdir(parents=True, exist_ok=True)
    async with aiofiles.open(path, "wb") as out:
        await out.write(data)
    logger.info("Stored %s on local disk (%d bytes)", path, len(data))
    return key


def delete_object(key: str) -> bool:
    """
    Delete a stored object. Returns True when the object is gone afterwards.
    """
    s3 = _get_s3_client()
    if s3:
        try:
            s3.delete_object(Bucket=settings.S3_BUCKET, Key=key)
            return True
        except (ClientError, BotoCoreError):
            logger.exception("S3 delete failed for %s", key)
            return False

    path = upload_root() / key
    try:
        path.unlink(missing_ok=True)
        return True
    except OSError:
        logger.exception("Local delete failed for %s", path)
        return False


def local_path(key: str) -> Optional[Path]:
    """Path of a locally stored object, or None when it does not exist."""
    path = upload_root() / key
    return path if path.is_file() else None


def generate_presigned_url(key: str, expires_in: int = 3600) -> Optional[str]:
    """Presigned GET URL for S3 storage; None when S3 is not configured."""
    s3 = _get_s3_client()
    if not s3:
        return None
    try:
        return s3.generate_presigned_url(
            "get_object",
            Params={"Bucket": settings.S3_BUCKET, "Key": key},
            ExpiresIn=expires_in,
        )
    except (ClientError, BotoCoreError):
        logger.exception("generate_presigned_url failed for %s", key)
        return None


def download_to_bytes(key: str) -> Optional[bytes]:
    s3 = _get_s3_client()
    if s3:
        try:
            resp = s3.get_object(Bucket=settings.S3_BUCKET, Key=key)
            return resp["Body"].read()
        except (ClientError, BotoCoreError):
            logger.exception("S3 download failed for %s", key)
            return None
    path = local_path(key)
    return path.read_bytes() if path else None
