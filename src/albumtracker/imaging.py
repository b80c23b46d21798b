"""
Image preparation.

Loads a photo, shrinks it to fit a bounding box and re-encodes it as JPEG so
it can travel base64-encoded inside a JSON request body.
"""

from __future__ import annotations

import base64
import io
import logging
import threading
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError

from albumtracker.errors import AssetIOError, DecodeError

DEFAULT_MAX_DIMENSION = 1024
DEFAULT_JPEG_QUALITY = 85
ENCODED_FORMAT = "JPEG"

LOGGER = logging.getLogger("albumtracker.imaging")

_init_lock = threading.Lock()
_initialized = False


@dataclass(frozen=True)
class EncodedImage:
    """
    A size-bounded image payload derived from one source file.

    Attributes:
        source: Path of the file the payload was derived from
        content: Encoded image bytes
        format: Pillow format name of ``content``
        size: (width, height) after resizing
    """

    source: Path
    content: bytes
    format: str
    size: tuple[int, int]

    def to_base64(self) -> str:
        return base64.b64encode(self.content).decode("ascii")


def ensure_codecs() -> None:
    """
    Load Pillow's format plugins exactly once per process.

    The first caller pays for the registry scan; later callers return
    immediately. There is no teardown.
    """
    global _initialized
    with _init_lock:
        if _initialized:
            return
        Image.init()
        _initialized = True
        LOGGER.debug("image_codecs_initialized", extra={"formats": len(Image.OPEN)})


def prepare(
    path: Path,
    *,
    max_dimension: int = DEFAULT_MAX_DIMENSION,
    quality: int = DEFAULT_JPEG_QUALITY,
) -> EncodedImage:
    """
    Decode, resize and re-encode an image file.

    The image is rotated according to its EXIF orientation, converted to RGB
    and shrunk so that neither side exceeds ``max_dimension``. Smaller images
    are never enlarged.

    Parameters:
        path: Image file to read
        max_dimension: Bounding box side in pixels
        quality: JPEG quality

    Returns:
        EncodedImage holding JPEG bytes

    Raises:
        AssetIOError: If the file cannot be read
        DecodeError: If the file is not a supported, intact image
    """
    ensure_codecs()
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise AssetIOError(f"{path}: cannot read file ({e})") from e

    try:
        with Image.open(io.BytesIO(raw)) as im:
            im.load()
            img = ImageOps.exif_transpose(im)
            if img.mode != "RGB":
                img = img.convert("RGB")
            img.thumbnail((max_dimension, max_dimension))
            buf = io.BytesIO()
            img.save(buf, format=ENCODED_FORMAT, quality=quality, optimize=True)
    except UnidentifiedImageError as e:
        raise DecodeError(f"{path}: not a supported image format") from e
    except (Image.DecompressionBombError, OSError, SyntaxError, ValueError) as e:
        # Truncated or corrupt data surfaces as OSError from the decoder.
        raise DecodeError(f"{path}: corrupt image data ({e})") from e

    encoded = EncodedImage(
        source=path,
        content=buf.getvalue(),
        format=ENCODED_FORMAT,
        size=img.size,
    )
    LOGGER.info(
        "image_prepared",
        extra={"path": str(path), "size": list(encoded.size), "bytes": len(encoded.content)},
    )
    return encoded
