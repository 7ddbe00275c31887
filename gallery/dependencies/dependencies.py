from fastapi import Request
from gallery.storage.s3 import S3Service
from gallery.analysis.vision import VisionClient

def get_s3_service(request: Request) -> S3Service:
    """Dependency provider for S3Service"""
    return request.app.state.s3

def get_vision_client(request: Request) -> VisionClient:
    """Dependency provider for the image analysis client"""
    return request.app.state.vision
