import struct

import pytest

from app.services.upload import detect_mime, generate_upload_key, validate_image
from app.utils.constants import MAX_UPLOAD_SIZE_BYTES
from app.utils.errors import ValidationError


def png(width: int, height: int) -> bytes:
    ihdr = struct.pack(">II", width, height) + b"\x08\x06\x00\x00\x00"
    return b"\x89PNG\r\n\x1a\n" + struct.pack(">I", 13) + b"IHDR" + ihdr + b"\x00" * 4


def jpeg(width: int, height: int) -> bytes:
    app0 = b"\xff\xe0" + struct.pack(">H", 16) + b"JFIF\x00" + b"\x00" * 9
    sof = b"\xff\xc0" + struct.pack(">HBHH", 17, 8, height, width) + b"\x00" * 10
    return b"\xff\xd8" + app0 + sof + b"\xff\xd9"


def gif(width: int, height: int) -> bytes:
    return b"GIF89a" + struct.pack("<HH", width, height) + b"\x00" * 8


def webp_vp8(width: int, height: int) -> bytes:
    header = b"RIFF" + struct.pack("<I", 30) + b"WEBP" + b"VP8 " + struct.pack("<I", 10)
    frame = b"\x00" * 3 + b"\x9d\x01\x2a" + struct.pack("<HH", width, height)
    return header + frame + b"\x00" * 4


def test_disguised_file_is_rejected():
    executable = b"MZ\x90\x00" + b"\x00" * 100  # saved as "cat.jpg"
    with pytest.raises(ValidationError, match="Invalid file type"):
        validate_image(executable)


def test_png_dimension_bounds():
    with pytest.raises(ValidationError, match="dimensions too large"):
        validate_image(png(5000, 3000))

    info = validate_image(png(4096, 4096))
    assert (info.mime, info.width, info.height, info.extension) == ("image/png", 4096, 4096, "png")


def test_zero_dimensions_rejected():
    with pytest.raises(ValidationError, match="Invalid image dimensions"):
        validate_image(png(0, 10))


def test_jpeg_dimensions_from_frame_marker():
    info = validate_image(jpeg(640, 480))
    assert (info.mime, info.width, info.height, info.extension) == ("image/jpeg", 640, 480, "jpg")

    with pytest.raises(ValidationError):
        validate_image(jpeg(4097, 10))


def test_gif_dimensions_little_endian():
    info = validate_image(gif(300, 200))
    assert (info.mime, info.width, info.height) == ("image/gif", 300, 200)


def test_webp_vp8_dimensions_are_masked():
    # Top two bits carry the scaling factor
    info = validate_image(webp_vp8(0xC000 | 800, 600))
    assert (info.mime, info.width, info.height, info.extension) == ("image/webp", 800, 600, "webp")


def test_riff_without_webp_is_rejected():
    wav = b"RIFF" + struct.pack("<I", 36) + b"WAVEfmt " + b"\x00" * 30
    assert detect_mime(wav) is None
    with pytest.raises(ValidationError):
        validate_image(wav)


def test_size_checked_before_content():
    with pytest.raises(ValidationError, match="too large"):
        validate_image(b"\x00" * 10, declared_size=MAX_UPLOAD_SIZE_BYTES + 1)
    with pytest.raises(ValidationError, match="too large"):
        validate_image(b"\x89PNG" + b"\x00" * MAX_UPLOAD_SIZE_BYTES)


def test_empty_upload():
    with pytest.raises(ValidationError):
        validate_image(b"")


def test_upload_key_ignores_client_name():
    key = generate_upload_key("png")
    assert key.startswith("uploads/")
    assert key.endswith(".png")
    assert len(key) == len("uploads/") + 36 + len(".png")
