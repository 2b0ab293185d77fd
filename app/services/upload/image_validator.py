"""
Image validation by magic-number sniffing.

The real format is decided from the leading bytes alone; the client's
filename and declared content type are never consulted. Dimensions are
read straight from each format's header so no decoder is needed.
"""

import struct
from dataclasses import dataclass
from typing import Optional

from app.utils.constants import ALLOWED_IMAGE_TYPES, MAX_IMAGE_DIMENSION, MAX_UPLOAD_SIZE_BYTES
from app.utils.errors import ValidationError

JPEG_SIGNATURE = b"\xff\xd8\xff"
PNG_SIGNATURE = b"\x89PNG"
GIF_SIGNATURE = b"GIF8"
RIFF_SIGNATURE = b"RIFF"
WEBP_SIGNATURE = b"WEBP"

# Start-of-frame markers carrying height/width in baseline, extended,
# progressive and lossless JPEGs
JPEG_SOF_MARKERS = {0xC0, 0xC1, 0xC2, 0xC3}
# Markers without a length field
JPEG_STANDALONE_MARKERS = {0x01, 0xD8, 0xD9} | set(range(0xD0, 0xD8))


@dataclass
class ImageInfo:
    mime: str
    width: Optional[int]
    height: Optional[int]

    @property
    def extension(self) -> str:
        return ALLOWED_IMAGE_TYPES[self.mime]


def detect_mime(data: bytes) -> Optional[str]:
    """Return the image MIME type implied by the leading bytes, if any."""
    if data.startswith(JPEG_SIGNATURE):
        return "image/jpeg"
    if data.startswith(PNG_SIGNATURE):
        return "image/png"
    if data.startswith(GIF_SIGNATURE):
        return "image/gif"
    if data[:4] == RIFF_SIGNATURE and data[8:12] == WEBP_SIGNATURE:
        return "image/webp"
    return None


def _jpeg_dimensions(data: bytes) -> Optional[tuple[int, int]]:
    offset = 2
    size = len(data)
    while offset + 4 <= size:
        if data[offset] != 0xFF:
            offset += 1
            continue
        marker = data[offset + 1]
        if marker == 0xFF:  # fill byte
            offset += 1
            continue
        if marker in JPEG_STANDALONE_MARKERS:
            offset += 2
            continue
        (segment_length,) = struct.unpack(">H", data[offset + 2 : offset + 4])
        if marker in JPEG_SOF_MARKERS:
            if offset + 9 > size:
                return None
            height, width = struct.unpack(">HH", data[offset + 5 : offset + 9])
            return width, height
        offset += 2 + segment_length
    return None


def _png_dimensions(data: bytes) -> Optional[tuple[int, int]]:
    if len(data) < 24:
        return None
    return struct.unpack(">II", data[16:24])


def _gif_dimensions(data: bytes) -> Optional[tuple[int, int]]:
    if len(data) < 10:
        return None
    return struct.unpack("<HH", data[6:10])


def _webp_dimensions(data: bytes) -> Optional[tuple[int, int]]:
    chunk = data[12:16]
    if chunk == b"VP8 " and len(data) >= 30:
        width, height = struct.unpack("<HH", data[26:30])
        return width & 0x3FFF, height & 0x3FFF
    if chunk == b"VP8L" and len(data) >= 25:
        bits = int.from_bytes(data[21:25], "little")
        return (bits & 0x3FFF) + 1, ((bits >> 14) & 0x3FFF) + 1
    if chunk == b"VP8X" and len(data) >= 30:
        width = int.from_bytes(data[24:27], "little") + 1
        height = int.from_bytes(data[27:30], "little") + 1
        return width, height
    return None


_DIMENSION_PARSERS = {
    "image/jpeg": _jpeg_dimensions,
    "image/png": _png_dimensions,
    "image/gif": _gif_dimensions,
    "image/webp": _webp_dimensions,
}


def validate_image(data: bytes, declared_size: Optional[int] = None) -> ImageInfo:
    """
    Validate an uploaded image.

    Args:
        data: The complete file content
        declared_size: Size reported by the client, checked before reading headers

    Returns:
        ImageInfo with the verified MIME type. Width and height are None when
        the header carries no readable dimensions.

    Raises:
        ValidationError: Too large, not a supported image, or out-of-bounds dimensions
    """
    size = max(len(data), declared_size or 0)
    if size > MAX_UPLOAD_SIZE_BYTES:
        raise ValidationError("File too large. Maximum size is 5MB.")
    if not data:
        raise ValidationError("No file provided")

    mime = detect_mime(data)
    if mime is None:
        raise ValidationError("Invalid file type. Only JPEG, PNG, GIF and WebP images are allowed.")

    dimensions = _DIMENSION_PARSERS[mime](data)
    if dimensions is None:
        return ImageInfo(mime=mime, width=None, height=None)

    width, height = dimensions
    if width == 0 or height == 0:
        raise ValidationError("Invalid image dimensions.")
    if width > MAX_IMAGE_DIMENSION or height > MAX_IMAGE_DIMENSION:
        raise ValidationError(
            f"Image dimensions too large. Maximum is {MAX_IMAGE_DIMENSION}x{MAX_IMAGE_DIMENSION} pixels."
        )
    return ImageInfo(mime=mime, width=width, height=height)
