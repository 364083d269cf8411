"""
Avatar upload validation and image processing.

Uploads are checked for extension and size before Pillow decodes them;
every accepted image is cropped and resized to a fixed square and
re-encoded as PNG so that the avatar endpoint can always serve
``image/png``.
"""

from __future__ import annotations

import io
import logging

from PIL import Image, ImageOps, UnidentifiedImageError
from werkzeug.datastructures import FileStorage

logger = logging.getLogger(__name__)

PNG_COMPATIBLE_MODES = {"1", "L", "LA", "P", "RGB", "RGBA"}


class AvatarError(ValueError):
    """The uploaded avatar was rejected; the message is returned to the client."""


def read_upload(
    upload: FileStorage | None,
    *,
    max_bytes: int,
    extensions: tuple[str, ...],
) -> bytes:
    """
    Validate an uploaded file and return its raw bytes.

    Args:
        upload: The ``avatar`` entry from ``request.files``.
        max_bytes: Largest accepted size in bytes.
        extensions: Accepted lower-case filename extensions.

    Raises:
        AvatarError: If no file was sent, the extension is not accepted,
            or the file is larger than *max_bytes*.
    """
    if upload is None or not upload.filename:
        raise AvatarError("Please upload an avatar")

    extension = upload.filename.rsplit(".", 1)[-1].lower() if "." in upload.filename else ""
    if extension not in extensions:
        allowed = ", ".join(f".{ext}" for ext in extensions)
        raise AvatarError(f"Please upload an image file ({allowed})")

    # Read one byte past the limit so oversized files are detected without
    # buffering all of them.
    data = upload.stream.read(max_bytes + 1)
    if len(data) > max_bytes:
        raise AvatarError(f"File too large; the limit is {max_bytes} bytes")
    return data


def process_avatar(data: bytes, size: tuple[int, int]) -> bytes:
    """
    Crop-resize *data* to *size* and re-encode it as PNG.

    Raises:
        AvatarError: If Pillow cannot decode the image.
    """
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.load()
            if image.mode not in PNG_COMPATIBLE_MODES:
                image = image.convert("RGBA")
            fitted = ImageOps.fit(image, size, method=Image.Resampling.LANCZOS)
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as exc:
        logger.info("Unable to decode uploaded avatar: %s", exc)
        raise AvatarError("Unable to process image") from exc

    buffer = io.BytesIO()
    fitted.save(buffer, format="PNG")
    return buffer.getvalue()
