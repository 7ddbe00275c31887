from io import BytesIO
import logging
from PIL import Image, UnidentifiedImageError

from gallery.exceptions import InvalidImageException
from gallery.settings import settings

log = logging.getLogger(__name__)

def generate_thumbnail(data: bytes, size: int = None) -> bytes:
    """
        Renders a size x size PNG preview of the image.

        The source is stretched to cover the whole square, so aspect ratio is
        not preserved. Resampling is bicubic and the result is pasted onto the
        canvas as-is (no alpha blending with the background).
    """
    size = size or settings.thumbnail_size
    try:
        source = Image.open(BytesIO(data))
        source.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise InvalidImageException(f"Invalid image file: {e}")

    mode = "RGBA" if source.mode in ("RGBA", "LA", "P") else "RGB"
    resized = source.convert(mode).resize((size, size), Image.Resampling.BICUBIC)

    canvas = Image.new(mode, (size, size))
    canvas.paste(resized, (0, 0))

    buf = BytesIO()
    canvas.save(buf, format="PNG")
    log.debug("Generated %dx%d thumbnail from %dx%d %s", size, size, source.width, source.height, source.format)
    return buf.getvalue()
