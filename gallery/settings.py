from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import Optional

class Settings(BaseSettings):
    aws_region: str = Field("us-east-1")
    aws_endpoint_url: Optional[str] = Field(None)
    aws_access_key_id: str = Field("test")
    aws_secret_access_key: str = Field("test")

    # One bucket per collection; thumbnail keys mirror original keys
    photos_bucket: str = Field("photos")
    thumbnails_bucket: str = Field("thumbnails")
    # Base address used to build object URIs (defaults to the S3 endpoint)
    public_endpoint: Optional[str] = Field(None)
    presign_expire_seconds: int = Field(900)

    thumbnail_size: int = Field(192)

    vision_endpoint: Optional[str] = Field(None)
    vision_key: Optional[str] = Field(None)
    vision_language: str = Field("en")
    vision_timeout_seconds: float = Field(30.0)
    vision_use_presigned_url: bool = Field(False)

    app_title: str = Field("Photo Gallery Service")
    log_level: str = Field("INFO")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="allow",  # tolerate unknown vars if needed
    )

settings = Settings()
