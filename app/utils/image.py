import base64
import binascii
import io
import logging
import re
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError

from app.config import MAX_IMAGE_BYTES
from app.services.gateway import InputValidationError, UnsupportedMediaError

logger = logging.getLogger(__name__)

# "data:image/jpeg;base64,..." prefix sent by browsers' FileReader
_DATA_URL_PREFIX = re.compile(r"^data:[\w/+.-]*;base64,", re.IGNORECASE)

SUPPORTED_FORMATS = {"JPEG", "PNG", "WEBP", "GIF", "BMP"}


@dataclass(frozen=True)
class DecodedImage:
    data: bytes
    mime_type: str
    base64: str  # canonical base64 without data-URL prefix or whitespace

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.base64}"


def decode_image_payload(image_base64: str, max_bytes: int = MAX_IMAGE_BYTES) -> DecodedImage:
    """Decode a base64 (or data-URL) image and verify it is a readable picture."""
    payload = _DATA_URL_PREFIX.sub("", (image_base64 or "").strip())
    payload = "".join(payload.split())
    if not payload:
        raise InputValidationError("Image data is empty.")

    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        logger.warning(f"Rejected image payload: invalid base64 ({e})")
        raise UnsupportedMediaError("Image data is not valid base64.")

    if len(data) > max_bytes:
        raise InputValidationError(
            f"Image is too large ({len(data) // 1024} KB). Maximum is {max_bytes // 1024} KB."
        )

    try:
        with Image.open(io.BytesIO(data)) as img:
            image_format = img.format
            img.verify()
    except Image.DecompressionBombError as e:
        logger.warning(f"Rejected image payload: {e}")
        raise InputValidationError("Image is too large (pixel dimensions exceed the limit).")
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        logger.warning(f"Rejected image payload: cannot decode ({e})")
        raise UnsupportedMediaError("Image could not be decoded.")

    if image_format not in SUPPORTED_FORMATS:
        raise UnsupportedMediaError(f"Unsupported image format: {image_format}")

    mime_type = Image.MIME.get(image_format, "image/jpeg")
    return DecodedImage(data=data, mime_type=mime_type, base64=base64.b64encode(data).decode("utf-8"))
