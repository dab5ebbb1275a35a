"""Image loading and PNG/base64 encoding."""

import base64
import io
from pathlib import Path
from typing import Union

from PIL import Image

from xtract.exceptions import EncodeError, LoadError
from xtract.logger import Timer, get_logger

logger = get_logger(__name__)

PNG_MIME_TYPE = "image/png"


def load_image(path: Union[str, Path]) -> Image.Image:
    """Load and fully decode an image file.

    Any format Pillow can read is accepted. Pixels are returned as decoded,
    without resizing or colour conversion.

    Args:
        path: Path to the image file

    Returns:
        Decoded Pillow image

    Raises:
        LoadError: If the file is missing, unreadable or not a known image format
    """
    path = Path(path)

    try:
        with Timer("image_load") as timer:
            file_bytes = path.read_bytes()
            image = Image.open(io.BytesIO(file_bytes))
            # Image.open is lazy; force decoding so corrupt data fails here
            image.load()
    except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as exc:
        logger.error(
            "Failed to load image",
            extra_data={
                "path": path,
                "error_type": type(exc).__name__,
                "error": str(exc),
            },
        )
        raise LoadError(f"Failed to load image from {path}: {exc}") from exc

    logger.info(
        "Image loaded successfully",
        extra_data={
            "path": path,
            "source_format": image.format,
            "mode": image.mode,
            "width": image.width,
            "height": image.height,
            "load_time_ms": timer.get_elapsed_ms(),
        },
    )
    return image


def encode_image_to_base64(image: Image.Image) -> str:
    """Re-encode an image as PNG and return it as base64 text.

    Every source format is normalized to PNG, so the payload size can differ
    from the file on disk. The output has no line breaks.

    Raises:
        EncodeError: If Pillow cannot write the image as PNG (e.g. CMYK mode)
    """
    buffer = io.BytesIO()
    try:
        with Timer("png_encode") as timer:
            image.save(buffer, format="PNG")
    except (OSError, ValueError, KeyError) as exc:
        logger.error(
            "Failed to encode image to PNG",
            extra_data={"mode": image.mode, "error": str(exc)},
        )
        raise EncodeError(f"Failed to encode image to PNG: {exc}") from exc

    png_bytes = buffer.getvalue()
    encoded = base64.b64encode(png_bytes).decode("ascii")

    logger.debug(
        "Encoded image to base64 PNG",
        extra_data={
            "png_size_bytes": len(png_bytes),
            "base64_length": len(encoded),
            "encode_time_ms": timer.get_elapsed_ms(),
        },
    )
    return encoded


def to_data_url(payload: str, mime_type: str = PNG_MIME_TYPE) -> str:
    """Embed a base64 payload in a ``data:`` URL."""
    return f"data:{mime_type};base64,{payload}"
