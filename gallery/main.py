from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import uvicorn
import logging

from gallery.storage.s3 import S3Service
from gallery.analysis.vision import VisionClient
from gallery.settings import settings
from gallery.routers.images import router as image_router
from gallery.exceptions import add_exception_handlers

logging.basicConfig(level=settings.log_level.upper())
log = logging.getLogger("photo-gallery")

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
        Creates the object store and analysis clients on startup and closes
        them on shutdown. Clients already placed on app.state are kept.
    """
    if getattr(app.state, "s3", None) is None:
        app.state.s3 = S3Service()
    if getattr(app.state, "vision", None) is None:
        app.state.vision = VisionClient()
    log.info("Photo gallery ready (originals=%s, thumbnails=%s)", settings.photos_bucket, settings.thumbnails_bucket)
    yield
    app.state.s3.close()
    app.state.vision.close()

app = FastAPI(
    title=settings.app_title,
    lifespan=lifespan,
    description="Photo gallery with automatic captions and tags",
    root_path = "/api/v1"
)

add_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=['*'],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(image_router)

@app.get("/")
def read_root():
    """
        Health check
    """
    return "Photo Gallery Service is running."

if __name__ == "__main__":
    uvicorn.run("gallery.main:app", host="0.0.0.0", port=8000, reload=True)
