"""
Embedded image handling.

Import sheets may carry pictures as base64 data URIs.  Each one is
decoded, shrunk to fit a bounding box, re-encoded as JPEG and uploaded to
the blob store; the record keeps only the resulting URL.  Anything that
goes wrong degrades to a fallback URL (or None) plus a row warning.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import io
import re
import uuid
from dataclasses import dataclass
from typing import Any

from PIL import Image, UnidentifiedImageError

from workforce_ingest.core.logging import get_logger
from workforce_ingest.pipeline.errors import MediaProcessingError, StorageError
from workforce_ingest.schemas.fields import MediaFieldSpec, is_blank
from workforce_ingest.storage.base import BlobStore

logger = get_logger(__name__)

DATA_URI_RE = re.compile(r"^data:image/(jpeg|png|gif|webp);base64,(.+)$", re.IGNORECASE | re.DOTALL)
HTTP_URL_RE = re.compile(r"^https?://", re.IGNORECASE)


@dataclass
class MediaAsset:
    """Result of processing one media column of one row."""

    field: str
    data_uri: str | None = None
    external_url: str | None = None
    storage_url: str | None = None
    warning: str | None = None

    @property
    def url(self) -> str | None:
        return self.storage_url or self.external_url


def _as_url(value: Any) -> str | None:
    if isinstance(value, str) and HTTP_URL_RE.match(value.strip()):
        return value.strip()
    return None


def fallback_url(spec: MediaFieldSpec, values: dict[str, Any]) -> str | None:
    """The fallback column if it holds an http(s) URL, else the source value itself if it is one."""
    if spec.fallback_source:
        url = _as_url(values.get(spec.fallback_source))
        if url:
            return url
    return _as_url(values.get(spec.source))


def decode_data_uri(value: str) -> bytes | None:
    """
    Bytes of a supported image data URI, or None when `value` does not
    match the jpeg/png/gif/webp pattern.

    Raises:
        MediaProcessingError: the payload is not valid base64.
    """
    match = DATA_URI_RE.match(value.strip())
    if not match:
        return None
    try:
        return base64.b64decode(match.group(2), validate=False)
    except (binascii.Error, ValueError) as exc:
        raise MediaProcessingError(f"Invalid base64 image data: {exc}") from exc


def compress_image(data: bytes, max_size: tuple[int, int], quality: int = 75) -> bytes:
    """
    Fit an image inside `max_size` (aspect kept, never enlarged) and
    re-encode it as JPEG.

    Raises:
        MediaProcessingError: the bytes are not a readable image.
    """
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.load()
            if image.mode in ("RGBA", "LA", "P"):
                image = image.convert("RGBA")
                background = Image.new("RGB", image.size, (255, 255, 255))
                background.paste(image, mask=image.getchannel("A"))
                image = background
            elif image.mode != "RGB":
                image = image.convert("RGB")
            image.thumbnail(max_size)

            buffer = io.BytesIO()
            image.save(buffer, format="JPEG", quality=quality)
            return buffer.getvalue()
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as exc:
        raise MediaProcessingError(f"Could not process image: {exc}") from exc


def blob_path(folder: str, owner: str | None) -> str:
    """<folder>/<owner or random>/<random>.jpg"""
    return f"{folder}/{owner or uuid.uuid4().hex}/{uuid.uuid4()}.jpg"


class MediaProcessor:
    """Turns the media columns of a row into stored-image URLs."""

    def __init__(self, blob_store: BlobStore, jpeg_quality: int = 75) -> None:
        self.blob_store = blob_store
        self.jpeg_quality = jpeg_quality

    async def process(
        self,
        spec: MediaFieldSpec,
        values: dict[str, Any],
        owner: str | None = None,
    ) -> MediaAsset:
        raw = values.get(spec.source)
        asset = MediaAsset(field=spec.target, external_url=fallback_url(spec, values))

        if is_blank(raw) or not isinstance(raw, str) or not raw.strip().lower().startswith("data:"):
            return asset

        asset.data_uri = raw
        try:
            data = decode_data_uri(raw)
            if data is None:
                asset.warning = f"{spec.source}: unsupported image data; only jpeg, png, gif and webp data URIs are accepted"
                return asset

            compressed = await asyncio.to_thread(compress_image, data, spec.max_size, self.jpeg_quality)
            path = blob_path(spec.folder, owner)
            asset.storage_url = await self.blob_store.upload(path, compressed, "image/jpeg")
            logger.debug("Image uploaded", field=spec.target, path=path, size=len(compressed))

        except (MediaProcessingError, StorageError) as exc:
            asset.warning = f"{spec.source}: {exc}"
            logger.warning("Image processing failed", field=spec.target, error=str(exc))

        return asset
