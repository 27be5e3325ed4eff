"""
Ticket renderer.
Rasterizes the first page of a ticket PDF and encodes it for the model.
Only one in-memory image is kept per ticket; nothing is saved to disk.
"""

import base64
import io
from pathlib import Path
from typing import Union

from pdf2image import convert_from_path
from pdf2image.exceptions import PDFInfoNotInstalledError, PDFPageCountError, PDFSyntaxError
from PIL import Image

from ticketcal.errors import RenderError
from ticketcal.logging_helper import Log

DEFAULT_DPI = 200
# Maximum encoded image size in bytes (20MB - common provider limit)
MAX_IMAGE_SIZE = 20 * 1024 * 1024
JPEG_QUALITY = 85
JPEG_FALLBACK_QUALITY = 60


def render_first_page(path: Union[str, Path], dpi: int = DEFAULT_DPI) -> Image.Image:
    """
    Render the first page of a PDF to an image.

    Args:
        path: Ticket file path
        dpi: Render resolution

    Returns:
        PIL Image of page one

    Raises:
        RenderError: if the path is not a readable PDF
    """
    Log.section("Ticket Renderer")
    path = Path(path)
    Log.info(f"Rendering first page of {path}")

    if not path.is_file():
        Log.kv({"stage": "render", "result": "failed", "reason": "not_a_file", "path": str(path)})
        raise RenderError(f"Not a file: {path}", path=path)

    try:
        pages = convert_from_path(str(path), dpi=dpi, first_page=1, last_page=1)
    except (PDFInfoNotInstalledError, PDFPageCountError, PDFSyntaxError) as e:
        Log.kv({"stage": "render", "result": "failed", "reason": type(e).__name__, "path": str(path)})
        raise RenderError(f"Could not render {path}: {e}", path=path) from e
    except (OSError, ValueError) as e:
        Log.kv({"stage": "render", "result": "failed", "reason": "io_error", "path": str(path)})
        raise RenderError(f"Could not render {path}: {e}", path=path) from e

    if not pages:
        Log.kv({"stage": "render", "result": "failed", "reason": "no_pages", "path": str(path)})
        raise RenderError(f"No pages rendered from {path}", path=path)

    image = pages[0]
    Log.kv({"stage": "render", "result": "success", "image_size": f"{image.size[0]}x{image.size[1]}"})
    return image


def _encode_jpeg(image: Image.Image, quality: int) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format='JPEG', quality=quality, optimize=True)
    return buffer.getvalue()


def image_to_data_uri(image: Image.Image) -> str:
    """
    Encode an image as a base64 JPEG data URI.

    Raises:
        RenderError: if the image cannot be encoded within MAX_IMAGE_SIZE
    """
    try:
        # Convert to RGB if necessary (JPEG has no alpha channel)
        if image.mode != 'RGB':
            image = image.convert('RGB')

        image_bytes = _encode_jpeg(image, JPEG_QUALITY)
        if len(image_bytes) > MAX_IMAGE_SIZE:
            Log.warn(f"Image size {len(image_bytes)} bytes exceeds limit, compressing...")
            image_bytes = _encode_jpeg(image, JPEG_FALLBACK_QUALITY)
    except (OSError, ValueError) as e:
        raise RenderError(f"Failed to encode image: {e}") from e

    if len(image_bytes) > MAX_IMAGE_SIZE:
        raise RenderError(f"Image too large even after compression: {len(image_bytes)} bytes")

    base64_string = base64.b64encode(image_bytes).decode('ascii')
    Log.info(f"Image converted to base64: {len(base64_string)} chars")
    return f"data:image/jpeg;base64,{base64_string}"
