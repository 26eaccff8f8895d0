"""Object storage for uploaded media.

Files go to S3 (or an S3-compatible endpoint) when ``S3_BUCKET_NAME`` is set,
otherwise to ``UPLOAD_FOLDER`` which the app serves under ``/uploads``.
"""
from __future__ import annotations

import os
import secrets
import time
from dataclasses import dataclass
from io import BytesIO

import boto3
from botocore.client import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError
from flask import current_app, url_for
from PIL import Image, UnidentifiedImageError
from werkzeug.datastructures import FileStorage

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}
DOCUMENT_EXTENSIONS = IMAGE_EXTENSIONS | {".pdf"}


class StorageError(RuntimeError):
    pass


@dataclass(frozen=True)
class StoredObject:
    key: str
    url: str


def generate_key(prefix: str, filename: str | None) -> str:
    # timestamp + random suffix, extension preserved
    ext = os.path.splitext(filename or "")[1].lower()[:10]
    return f"{prefix.strip('/')}/{int(time.time() * 1000)}-{secrets.token_hex(8)}{ext}"


def _s3_client():
    return boto3.client(
        's3',
        region_name=current_app.config.get("S3_REGION") or None,
        aws_access_key_id=current_app.config.get("S3_ACCESS_KEY_ID") or None,
        aws_secret_access_key=current_app.config.get("S3_SECRET_ACCESS_KEY") or None,
        endpoint_url=current_app.config.get("S3_ENDPOINT_URL") or None,
        config=BotoConfig(s3={'addressing_style': 'virtual'})
    )


def public_url(key: str) -> str:
    s3_bucket = current_app.config.get("S3_BUCKET_NAME")
    if not s3_bucket:
        # Relative URL; Nginx proxies /uploads in deployments
        return url_for("uploads", filename=key, _external=False)
    base = current_app.config.get("S3_PUBLIC_URL_BASE")
    if base:
        return f"{base.rstrip('/')}/{key}"
    region = current_app.config.get("S3_REGION") or 'us-east-1'
    return f"https://{s3_bucket}.s3.{region}.amazonaws.com/{key}"


def put_object(key: str, data: bytes, content_type: str | None = None) -> str:
    """Store ``data`` under ``key`` and return its public URL."""
    s3_bucket = current_app.config.get("S3_BUCKET_NAME")
    try:
        if s3_bucket:
            _s3_client().put_object(
                Bucket=s3_bucket,
                Key=key,
                Body=data,
                ContentType=content_type or 'application/octet-stream',
                ACL='public-read',
            )
        else:
            path = os.path.join(current_app.config["UPLOAD_FOLDER"], *key.split("/"))
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, 'wb') as f:
                f.write(data)
    except (BotoCoreError, ClientError, OSError) as e:
        current_app.logger.exception("Upload failed for key %s", key)
        raise StorageError(f"Upload failed for {key}") from e
    return public_url(key)


def delete_object(key: str) -> None:
    """Best-effort removal; failures are logged, never raised."""
    s3_bucket = current_app.config.get("S3_BUCKET_NAME")
    try:
        if s3_bucket:
            _s3_client().delete_object(Bucket=s3_bucket, Key=key)
        else:
            path = os.path.join(current_app.config["UPLOAD_FOLDER"], *key.split("/"))
            if os.path.isfile(path):
                os.remove(path)
    except (BotoCoreError, ClientError, OSError):
        current_app.logger.warning("Could not delete stored object %s", key, exc_info=True)


def delete_objects(objects: list[StoredObject]) -> None:
    for obj in objects:
        delete_object(obj.key)


def upload_file(file: FileStorage, prefix: str) -> StoredObject:
    key = generate_key(prefix, file.filename)
    file.stream.seek(0)
    data = file.read()
    url = put_object(key, data, file.mimetype)
    return StoredObject(key=key, url=url)


def upload_files(files: list[FileStorage], prefix: str) -> list[StoredObject]:
    """Upload sequentially; on failure the objects stored so far are removed."""
    stored: list[StoredObject] = []
    try:
        for f in files:
            stored.append(upload_file(f, prefix))
    except StorageError:
        delete_objects(stored)
        raise
    return stored


def image_error(file: FileStorage | None, label: str) -> str | None:
    """Return a user-facing message when ``file`` is not a usable image."""
    if file is None or not file.filename:
        return f"Please upload {label}."
    ext = os.path.splitext(file.filename)[1].lower()
    if ext not in IMAGE_EXTENSIONS:
        return f"Unsupported file type for {label}."
    try:
        file.stream.seek(0)
        Image.open(BytesIO(file.read())).verify()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError):
        return f"The file uploaded for {label} is not a valid image."
    finally:
        file.stream.seek(0)
    return None


def document_error(file: FileStorage | None, label: str) -> str | None:
    """Like image_error, but PDFs are accepted without decoding."""
    if file is None or not file.filename:
        return f"Please upload {label}."
    ext = os.path.splitext(file.filename)[1].lower()
    if ext not in DOCUMENT_EXTENSIONS:
        return f"Unsupported file type for {label}."
    if ext == ".pdf":
        return None
    return image_error(file, label)
