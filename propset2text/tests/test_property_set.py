import io
import struct
import uuid

import pytest

from propset2text.exceptions import MarkUnsupportedError, NotAPropertySetStreamError
from propset2text.hpsf.limits import DecodeLimits
from propset2text.hpsf.names import (
    FMTID_DOC_SUMMARY_INFORMATION,
    FMTID_SUMMARY_INFORMATION,
    FMTID_USER_DEFINED_PROPERTIES,
)
from propset2text.hpsf.property_set import is_property_set_stream, parse_property_set
from propset2text.tests.stream_builders import (
    build_property_set,
    build_section,
    document_summary_stream,
    lpstr,
    summary_stream,
)


class _ForwardOnlyStream:
    def __init__(self, data: bytes):
        self._buffer = io.BytesIO(data)

    def read(self, size: int = -1) -> bytes:
        return self._buffer.read(size)

    def seekable(self) -> bool:
        return False


def test_parses_header_and_sections() -> None:
    class_id = uuid.UUID("00020906-0000-0000-C000-000000000046")
    data = build_property_set(
        [(FMTID_SUMMARY_INFORMATION, build_section([(2, lpstr("Title"))]))],
        class_id=class_id,
    )
    property_set = parse_property_set(data)

    assert property_set.byte_order == 0xFFFE
    assert property_set.format == 0
    assert property_set.os_version == 0x00020006
    assert property_set.class_id == class_id
    assert property_set.section_count == 1
    assert property_set.is_summary_information
    assert not property_set.is_document_summary_information
    assert property_set.first_section.get_value(2) == "Title"


def test_document_summary_has_user_defined_section() -> None:
    property_set = parse_property_set(document_summary_stream())

    assert property_set.is_document_summary_information
    assert property_set.section_count == 2
    assert property_set.get_section(FMTID_DOC_SUMMARY_INFORMATION) is property_set.sections[0]
    assert property_set.user_defined_section.fmtid == FMTID_USER_DEFINED_PROPERTIES
    assert property_set.get_section(uuid.uuid4()) is None


def test_file_like_source_is_rewound() -> None:
    stream = io.BytesIO(summary_stream())
    stream.read(10)

    assert parse_property_set(stream) == parse_property_set(summary_stream())


def test_parsing_is_deterministic() -> None:
    data = document_summary_stream()

    assert parse_property_set(data) == parse_property_set(data)


def test_bad_byte_order_marker_raises() -> None:
    data = bytearray(summary_stream())
    struct.pack_into("<H", data, 0, 0xFEFF)

    with pytest.raises(NotAPropertySetStreamError):
        parse_property_set(bytes(data))
    assert not is_property_set_stream(bytes(data))


def test_short_stream_raises() -> None:
    with pytest.raises(NotAPropertySetStreamError):
        parse_property_set(b"\xfe\xff\x00\x00")
    assert not is_property_set_stream(b"\xfe\xff")


def test_section_offset_outside_stream_raises() -> None:
    data = bytearray(summary_stream())
    # offset field of the first section declaration
    struct.pack_into("<I", data, 28 + 16, len(data) + 8)

    with pytest.raises(NotAPropertySetStreamError) as excinfo:
        parse_property_set(bytes(data))
    assert excinfo.value.__cause__ is not None


def test_truncated_section_table_raises() -> None:
    data = summary_stream()[:28] + b"\x00" * 4

    with pytest.raises(NotAPropertySetStreamError):
        parse_property_set(data)


def test_section_count_beyond_limit_raises() -> None:
    with pytest.raises(NotAPropertySetStreamError):
        parse_property_set(document_summary_stream(), limits=DecodeLimits(max_sections=1))


def test_stream_that_cannot_be_rewound_raises() -> None:
    with pytest.raises(MarkUnsupportedError):
        parse_property_set(_ForwardOnlyStream(summary_stream()))
    assert not is_property_set_stream(_ForwardOnlyStream(summary_stream()))


def test_closed_stream_raises() -> None:
    stream = io.BytesIO(summary_stream())
    stream.close()

    with pytest.raises(MarkUnsupportedError):
        parse_property_set(stream)


def test_detects_property_set_stream() -> None:
    assert is_property_set_stream(summary_stream())
    assert is_property_set_stream(io.BytesIO(summary_stream()))
