import struct

import pytest

from propset2text.exceptions import PropertyDecodeError
from propset2text.extractors.util.image_utils import detect_image_type, wrap_dib_as_bmp
from propset2text.hpsf.byte_cursor import ByteCursor
from propset2text.hpsf.summary import SummaryInformation
from propset2text.hpsf.property_set import parse_property_set
from propset2text.hpsf.thumbnail import Thumbnail
from propset2text.hpsf.variant import ClipboardData, TypedValue, VariantType, decode_typed_value
from propset2text.tests.stream_builders import (
    SAMPLE_THUMBNAIL_PAYLOAD,
    SAMPLE_WMF,
    clipboard,
    summary_stream,
)

# 1x1 pixel, 24 bits per pixel
_DIB = struct.pack("<IiiHHIIiiII", 40, 1, 1, 1, 24, 0, 4, 0, 0, 0, 0) + b"\x00\x00\xff\x00"


def _thumbnail(format_tag: int, format_code: int | None, payload: bytes) -> Thumbnail:
    return Thumbnail(decode_typed_value(ByteCursor(clipboard(format_tag, format_code, payload)), 1252))


def test_metafilepict_thumbnail() -> None:
    thumbnail = _thumbnail(-1, 3, SAMPLE_THUMBNAIL_PAYLOAD)

    assert thumbnail.get_clipboard_format_tag() == -1
    assert thumbnail.get_clipboard_format() == 3
    assert thumbnail.get_thumbnail() == SAMPLE_THUMBNAIL_PAYLOAD
    assert thumbnail.get_thumbnail_as_wmf() == SAMPLE_WMF
    assert thumbnail.get_image() == SAMPLE_WMF
    assert thumbnail.get_content_type() == "image/x-wmf"


def test_thumbnail_from_raw_property_bytes() -> None:
    # size prefix, format tag, format code, payload
    body = struct.pack("<iI", -1, 3) + SAMPLE_THUMBNAIL_PAYLOAD
    thumbnail = Thumbnail(struct.pack("<I", len(body)) + body)

    assert thumbnail.get_thumbnail_as_wmf() == SAMPLE_WMF


def test_wmf_of_other_format_returns_raw_payload() -> None:
    thumbnail = _thumbnail(-1, 14, b"\x01\x00\x00\x00" + b"\x00" * 36 + b" EMF")

    assert thumbnail.get_thumbnail_as_wmf() == thumbnail.get_thumbnail()
    assert thumbnail.get_content_type() == "image/x-emf"


def test_dib_thumbnail_is_wrapped_as_bmp() -> None:
    thumbnail = _thumbnail(-1, 8, _DIB)
    bmp = thumbnail.get_thumbnail_as_bmp()

    assert bmp[:2] == b"BM"
    assert bmp[14:] == _DIB
    assert struct.unpack_from("<I", bmp, 10)[0] == 14 + 40
    assert thumbnail.get_image() == bmp
    assert thumbnail.get_content_type() == "image/bmp"


def test_named_format_has_no_format_code() -> None:
    thumbnail = Thumbnail(ClipboardData(4, format_name="PNG", data=b"\x89PNG\r\n\x1a\n"))

    assert thumbnail.get_clipboard_format_name() == "PNG"
    assert thumbnail.get_content_type() == "image/png"
    with pytest.raises(PropertyDecodeError):
        thumbnail.get_clipboard_format()


def test_non_clipboard_value_is_rejected() -> None:
    with pytest.raises(PropertyDecodeError):
        Thumbnail(TypedValue(VariantType.VT_LPSTR, "not an image"))


def test_truncated_raw_bytes_are_rejected() -> None:
    with pytest.raises(PropertyDecodeError):
        Thumbnail(struct.pack("<Ii", 100, -1))


def test_summary_information_exposes_thumbnail() -> None:
    summary = SummaryInformation(parse_property_set(summary_stream(with_thumbnail=True)))

    assert summary.get_thumbnail().vt == VariantType.VT_CF
    assert summary.thumbnail.get_thumbnail_as_wmf() == SAMPLE_WMF


def test_summary_information_without_thumbnail() -> None:
    summary = SummaryInformation(parse_property_set(summary_stream()))

    assert summary.get_thumbnail() is None
    assert summary.thumbnail is None


def test_detect_image_type() -> None:
    assert detect_image_type(SAMPLE_WMF) == ("wmf", "image/x-wmf")
    assert detect_image_type(b"\xd7\xcd\xc6\x9a" + b"\x00" * 18) == ("wmf", "image/x-wmf")
    assert detect_image_type(b"\xff\xd8\xff\xe0") == ("jpeg", "image/jpeg")
    assert detect_image_type(b"abc") is None
    assert detect_image_type(b"\x00" * 20) is None


def test_wrap_dib_rejects_unknown_headers() -> None:
    assert wrap_dib_as_bmp(b"\x00" * 10) is None
    assert wrap_dib_as_bmp(struct.pack("<I", 12) + b"\x00" * 40) is None
