from fastapi import APIRouter, Depends, UploadFile, File, Query, Response
from starlette.concurrency import run_in_threadpool
from typing import Optional
import logging

from gallery.storage.s3 import S3Service
from gallery.analysis.vision import VisionClient
from gallery.dependencies.dependencies import get_s3_service, get_vision_client
from gallery.image_service.service import ingest_image, list_images, get_image, get_download_url
from gallery.image_service.models import IngestResult, ListImagesResponse, ImageDetail, DownloadResponse
from gallery.settings import settings

log = logging.getLogger(__name__)

router = APIRouter(
    prefix="/images",
    tags=["photo-gallery"]
)

@router.post("", response_model=IngestResult, status_code=201)
async def upload_image(
    file: UploadFile = File(...),
    response: Response = None,
    s3: S3Service = Depends(get_s3_service),
    vision: VisionClient = Depends(get_vision_client)
):
    """Uploads an image, stores its thumbnail and records its caption and tags."""
    if response:
        response.headers["X-Content-Type-Options"] = "nosniff"

    contents = await file.read()

    # Storage and analysis calls block; keep them off the event loop
    return await run_in_threadpool(
        ingest_image,
        s3,
        vision,
        file.filename,
        file.content_type,
        contents,
    )

@router.get("", response_model=ListImagesResponse)
def list_images_handler(
    tag: Optional[str] = Query(None, description="Only images carrying this tag (case-insensitive)"),
    s3: S3Service = Depends(get_s3_service)
):
    """Lists stored images, optionally filtered by tag."""
    term = tag.strip() if tag else None
    return ListImagesResponse(images=list_images(s3, term), tag=term)

@router.get("/{key}", response_model=ImageDetail)
def get_image_handler(
    key: str,
    s3: S3Service = Depends(get_s3_service)
):
    """Gets one image with its caption and ordered tags."""
    return get_image(s3, key)

@router.get("/{key}/download", response_model=DownloadResponse)
def get_presigned_url(
    key: str,
    expires_in: Optional[int] = Query(None, ge=60, le=86400, description="Expiration time in seconds (60-86400)"),
    s3: S3Service = Depends(get_s3_service)
):
    """
    Generates a presigned URL for downloading the original image.

    The URL is valid for a limited time (default 15 minutes, max 24 hours).
    """
    url = get_download_url(s3, key, expires_in=expires_in)
    return DownloadResponse(
        key=key,
        download_url=url,
        expires_in=expires_in or settings.presign_expire_seconds,
    )
