"""Image and data URI helpers for the vision extraction call."""

import base64
import binascii
import logging
import re
from io import BytesIO

from PIL import Image, ImageOps, UnidentifiedImageError

logger = logging.getLogger(__name__)

_DATA_URI = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<data>.*)$", re.DOTALL)


class InvalidImageError(ValueError):
    """The supplied image or data URI cannot be used for extraction."""
    pass


def file_to_data_uri(content: bytes, mime_type: str) -> str:
    """Encode raw file bytes as `data:<mime>;base64,<data>`."""
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def parse_data_uri(data_uri: str) -> tuple[str, bytes]:
    """
    Split a base64 data URI into its MIME type and decoded bytes.

    Raises:
        InvalidImageError: If the URI is malformed or not an image
    """
    match = _DATA_URI.match(data_uri or "")
    if not match:
        raise InvalidImageError("Expected a data URI of the form 'data:<mimetype>;base64,<encoded_data>'")

    mime_type = match.group("mime").lower()
    if not mime_type.startswith("image/"):
        raise InvalidImageError(f"Unsupported MIME type for extraction: {mime_type}")

    try:
        content = base64.b64decode(match.group("data"), validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidImageError(f"Invalid base64 image data: {e}") from e

    if not content:
        raise InvalidImageError("Image data is empty")
    return mime_type, content


def prepare_image(content: bytes, max_size: int = 1536) -> tuple[str, str]:
    """
    Prepare image for LLM vision API: validate, resize, convert, encode.

    Returns:
        Tuple of (base64_string, mime_type) e.g. ("abc...", "image/png")
    """
    try:
        pil_img = Image.open(BytesIO(content))
        pil_img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidImageError(f"Could not read image: {e}") from e

    # Camera photos carry their rotation in EXIF
    pil_img = ImageOps.exif_transpose(pil_img)

    if pil_img.mode != "RGB":
        pil_img = pil_img.convert("RGB")

    w, h = pil_img.size
    if max(w, h) > max_size:
        scale = max_size / max(w, h)
        new_w, new_h = int(w * scale), int(h * scale)
        pil_img = pil_img.resize((new_w, new_h), Image.LANCZOS)
        logger.info(f"Resized image from {w}x{h} to {new_w}x{new_h}")

    buffer = BytesIO()
    pil_img.save(buffer, format="PNG", optimize=True)
    b64 = base64.b64encode(buffer.getvalue()).decode("utf-8")

    logger.info(f"Prepared image: {pil_img.size[0]}x{pil_img.size[1]}, PNG, {len(buffer.getvalue()):,} bytes")
    return b64, "image/png"
