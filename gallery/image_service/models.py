from typing import List, Optional
from pydantic import BaseModel, ConfigDict

class AnalysisResult(BaseModel):
    """Caption and tags for one image, tags in the order the service ranked them."""
    model_config = ConfigDict(frozen=True)

    caption: str
    tags: List[str] = []

class DisplayItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    image_uri: str
    thumbnail_uri: str
    caption: str

class IngestResult(BaseModel):
    key: str
    image_uri: str
    thumbnail_uri: str
    caption: str
    tags: List[str]
    analyzed: bool

class ImageDetail(BaseModel):
    key: str
    image_uri: str
    thumbnail_uri: str
    caption: str
    tags: List[str]

class ListImagesResponse(BaseModel):
    images: List[DisplayItem]
    tag: Optional[str] = None

class DownloadResponse(BaseModel):
    key: str
    download_url: str
    expires_in: int
