from pathlib import PurePosixPath
from typing import List, Optional
import logging
from botocore.exceptions import BotoCoreError, ClientError

from gallery.storage.s3 import S3Service
from gallery.analysis.vision import VisionClient
from gallery.image_service.metadata import encode_metadata, decode_metadata, matches_tag, ordered_tags
from gallery.image_service.thumbnail import generate_thumbnail
from gallery.image_service.models import AnalysisResult, DisplayItem, IngestResult, ImageDetail
from gallery.settings import settings
from gallery.exceptions import (
    UnsupportedContentException,
    StorageWriteException,
    StorageReadException,
    AnalysisUnavailableException,
    AnalysisEmptyException,
    ImageNotFoundException,
)

log = logging.getLogger(__name__)

def image_key(filename: Optional[str]) -> str:
    """Object key for an upload: the bare file name with any directory parts dropped."""
    return PurePosixPath((filename or "").replace("\\", "/")).name

def thumbnail_uri_for(s3: S3Service, key: str) -> str:
    """Thumbnails share the original's key, only the collection differs."""
    return s3.object_uri(settings.thumbnails_bucket, key)

def validate_upload(filename: Optional[str], content_type: Optional[str], data: Optional[bytes]) -> str:
    """Checks an upload before anything is stored and returns its object key."""
    if not data:
        raise UnsupportedContentException("Uploaded file is empty")
    if not content_type or not content_type.lower().startswith("image"):
        raise UnsupportedContentException("Only image files may be uploaded")
    key = image_key(filename)
    if not key or key in (".", ".."):
        raise UnsupportedContentException("Uploaded file has no usable name")
    return key

def analysis_reference(s3: S3Service, key: str) -> str:
    if settings.vision_use_presigned_url:
        return s3.generate_presigned_url(settings.photos_bucket, key)
    return s3.object_uri(settings.photos_bucket, key)

def ingest_image(
    s3: S3Service,
    vision: VisionClient,
    filename: Optional[str],
    content_type: Optional[str],
    data: Optional[bytes],
) -> IngestResult:
    """
        Stores an upload and its derived data, in order: original, thumbnail
        rendering, analysis, metadata on the original, thumbnail object.

        Nothing is rolled back. A failure after the original is stored leaves
        it in place without metadata or thumbnail. Analysis is best-effort: if
        it fails the caption falls back to the file name and no tags are kept.
    """
    key = validate_upload(filename, content_type, data)

    try:
        s3.put(settings.photos_bucket, key, data, content_type)
    except (BotoCoreError, ClientError) as e:
        log.error(f"S3 upload of original {key} failed: {e}")
        raise StorageWriteException(f"Failed to store image: {e}")

    # InvalidImageException propagates; the original stays stored
    thumbnail = generate_thumbnail(data)

    image_uri = s3.object_uri(settings.photos_bucket, key)
    analyzed = True
    try:
        analysis = vision.analyze(analysis_reference(s3, key))
    except (AnalysisUnavailableException, AnalysisEmptyException) as e:
        log.warning("Analysis of %s skipped: %s", key, e.detail)
        analysis = AnalysisResult(caption=key, tags=[])
        analyzed = False

    try:
        s3.set_metadata(settings.photos_bucket, key, encode_metadata(analysis.caption, analysis.tags))
    except (BotoCoreError, ClientError) as e:
        log.error(f"S3 metadata write for {key} failed: {e}")
        raise StorageWriteException(f"Failed to save image metadata: {e}")

    try:
        s3.put(settings.thumbnails_bucket, key, thumbnail, "image/png")
    except (BotoCoreError, ClientError) as e:
        log.error(f"S3 upload of thumbnail {key} failed: {e}")
        raise StorageWriteException(f"Failed to store thumbnail: {e}")

    log.info("Ingested %s (%d tags)", key, len(analysis.tags))
    return IngestResult(
        key=key,
        image_uri=image_uri,
        thumbnail_uri=thumbnail_uri_for(s3, key),
        caption=analysis.caption,
        tags=analysis.tags,
        analyzed=analyzed,
    )

def list_images(s3: S3Service, tag: Optional[str] = None) -> List[DisplayItem]:
    """Lists stored images in storage order, keeping those carrying `tag` if one is given."""
    items = []
    try:
        for obj in s3.list_all(settings.photos_bucket):
            try:
                metadata = s3.get_metadata(settings.photos_bucket, obj["key"])
            except ClientError as e:
                if not _is_missing(e):
                    raise
                # removed after it was listed
                log.debug("Skipping %s, gone since listing", obj["key"])
                continue
            if not matches_tag(metadata, tag):
                continue
            caption, _ = decode_metadata(metadata, fallback=obj["key"])
            items.append(DisplayItem(
                image_uri=obj["uri"],
                thumbnail_uri=thumbnail_uri_for(s3, obj["key"]),
                caption=caption,
            ))
    except (BotoCoreError, ClientError) as e:
        log.error(f"S3 listing failed: {e}")
        raise StorageReadException(f"Failed to list images: {e}")
    return items

def _is_missing(e: ClientError) -> bool:
    return e.response.get("Error", {}).get("Code") in ("404", "NoSuchKey", "NotFound")

def get_image(s3: S3Service, key: str) -> ImageDetail:
    """Gets a single image with its tags in stored order."""
    try:
        metadata = s3.get_metadata(settings.photos_bucket, key)
    except ClientError as e:
        if _is_missing(e):
            raise ImageNotFoundException(key)
        log.error(f"S3 head_object for {key} failed: {e}")
        raise StorageReadException(f"Failed to read image metadata: {e}")
    except BotoCoreError as e:
        log.error(f"S3 head_object for {key} failed: {e}")
        raise StorageReadException(f"Failed to read image metadata: {e}")

    caption, _ = decode_metadata(metadata, fallback=key)
    image_uri = s3.object_uri(settings.photos_bucket, key)
    return ImageDetail(
        key=key,
        image_uri=image_uri,
        thumbnail_uri=thumbnail_uri_for(s3, key),
        caption=caption,
        tags=ordered_tags(metadata),
    )

def get_download_url(s3: S3Service, key: str, expires_in: Optional[int] = None) -> str:
    """Presigned GET URL for an existing original."""
    get_image(s3, key)
    try:
        return s3.generate_presigned_url(settings.photos_bucket, key, expires_in=expires_in)
    except (BotoCoreError, ClientError) as e:
        log.error(f"Failed to generate presigned URL: {e}")
        raise StorageReadException(f"Failed to generate download URL: {e}")
