import io
import logging
import uuid
from datetime import datetime, timezone
from functools import lru_cache
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import HTTPException, UploadFile
from PIL import Image, UnidentifiedImageError

from app import config

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when an object could not be stored."""


@lru_cache(maxsize=1)
def get_s3_client():
    return boto3.client(
        service_name="s3",
        endpoint_url=config.STORAGE_ENDPOINT_URL,
        aws_access_key_id=config.STORAGE_ACCESS_KEY_ID,
        aws_secret_access_key=config.STORAGE_SECRET_ACCESS_KEY,
        region_name=config.STORAGE_REGION,
    )


def compress_image(data: bytes, max_dimension=config.IMAGE_MAX_DIMENSION, quality=config.IMAGE_QUALITY):
    try:
        img = Image.open(io.BytesIO(data))
        img = img.convert("RGB")
    except (UnidentifiedImageError, OSError) as e:
        raise ValueError("Uploaded file is not a valid image") from e

    # Resize while keeping aspect ratio
    w, h = img.size
    if w > max_dimension and w >= h:
        img = img.resize((max_dimension, max(1, round(h * max_dimension / w))), Image.LANCZOS)
    elif h > max_dimension:
        img = img.resize((max(1, round(w * max_dimension / h)), max_dimension), Image.LANCZOS)

    # Try WebP first
    buffer = io.BytesIO()

    try:
        img.save(buffer, format="WEBP", quality=quality, method=6)
        ext = "webp"
    except (OSError, KeyError) as e:
        logger.warning("WebP encoding failed, falling back to JPEG: %s", e)

        buffer = io.BytesIO()
        img.save(buffer, format="JPEG", quality=quality, optimize=True)
        ext = "jpg"

    buffer.seek(0)
    return buffer, ext


CONTENT_TYPES = {"webp": "image/webp", "jpg": "image/jpeg"}


def upload_image(data: bytes, owner_id: str, bucket: str) -> str:
    buffer, ext = compress_image(data)

    ts = int(datetime.now(timezone.utc).timestamp() * 1000)
    key = f"{owner_id}/{ts}-{uuid.uuid4().hex[:8]}.{ext}"

    try:
        get_s3_client().upload_fileobj(
            buffer,
            bucket,
            key,
            ExtraArgs={"ContentType": CONTENT_TYPES[ext], "CacheControl": "max-age=3600"},
        )
    except (BotoCoreError, ClientError) as e:
        logger.error("Error uploading image to %s/%s: %s", bucket, key, e)
        raise StorageError(f"Could not upload image to {bucket}") from e

    return key


def delete_image(key: str, bucket: str) -> None:
    # orphaned objects are tolerated, so failures are only logged
    try:
        get_s3_client().delete_object(Bucket=bucket, Key=key)
    except (BotoCoreError, ClientError) as e:
        logger.error("Error deleting object %s/%s: %s", bucket, key, e)


def public_url(bucket: str, key: str, expires_in=3600) -> Optional[str]:
    if config.STORAGE_PUBLIC_URL:
        return f"{config.STORAGE_PUBLIC_URL}/{bucket}/{key}"

    try:
        return get_s3_client().generate_presigned_url(
            "get_object",
            Params={"Bucket": bucket, "Key": key},
            ExpiresIn=expires_in,
        )
    except (BotoCoreError, ClientError) as e:
        logger.error("Error generating URL for %s/%s: %s", bucket, key, e)
        return None


async def read_upload(upload: Optional[UploadFile]) -> Optional[bytes]:
    """Read an optional form upload, enforcing the size limit."""
    if upload is None or not upload.filename:
        return None

    raw_bytes = await upload.read()

    if not raw_bytes:
        return None

    if len(raw_bytes) > config.MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=400, detail=f"Image exceeds {config.MAX_UPLOAD_SIZE_MB}MB limit")

    return raw_bytes


def store_upload(data: Optional[bytes], owner_id, bucket: str) -> Optional[str]:
    """Upload already-read bytes, translating failures into HTTP errors."""
    if data is None:
        return None

    try:
        return upload_image(data, str(owner_id), bucket)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StorageError:
        raise HTTPException(status_code=502, detail="Error al subir la imagen")
