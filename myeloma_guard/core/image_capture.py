"""
Image Capture

Turns uploaded bytes into a base64 ImageAttachment. Pillow is only used to
confirm the bytes decode as an image and to read the real format; the
payload itself is the untouched upload.
"""

import base64
import io
import logging
from typing import Optional

from PIL import Image, UnidentifiedImageError

from myeloma_guard.core.errors import ImageCaptureError
from myeloma_guard.models.schemas import ImageAttachment

logger = logging.getLogger(__name__)


def capture(
    file_bytes: bytes, declared_mime_type: Optional[str] = None
) -> ImageAttachment:
    """Encode an uploaded image file.

    Args:
        file_bytes: Raw file contents.
        declared_mime_type: Content type sent with the upload, used when
            Pillow cannot name the format.

    Returns:
        The attachment with base64 payload and MIME type.

    Raises:
        ImageCaptureError: If the bytes are empty or not a decodable image.
    """
    if not file_bytes:
        raise ImageCaptureError("Uploaded file is empty")

    try:
        with Image.open(io.BytesIO(file_bytes)) as img:
            fmt = img.format
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as exc:
        logger.warning("Image decode failed: %s", exc)
        raise ImageCaptureError("Uploaded file is not a readable image") from exc

    mime_type = Image.MIME.get(fmt or "") or declared_mime_type
    if not mime_type:
        raise ImageCaptureError("Could not determine image type")

    return ImageAttachment(
        payload=base64.b64encode(file_bytes).decode("ascii"),
        mime_type=mime_type,
    )


def decode_payload(attachment: ImageAttachment) -> bytes:
    """Return the raw bytes behind an attachment's base64 payload."""
    return base64.b64decode(attachment.payload)
