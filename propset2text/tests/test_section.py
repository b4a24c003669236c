import logging
import struct
import unittest

import pytest

from propset2text.exceptions import PropertyDecodeError
from propset2text.hpsf.limits import DecodeLimits
from propset2text.hpsf.names import FMTID_SUMMARY_INFORMATION, FMTID_USER_DEFINED_PROPERTIES
from propset2text.hpsf.section import parse_section
from propset2text.hpsf.variant import DecodeFailure, TypedValue, VariantType
from propset2text.tests.stream_builders import (
    build_section,
    dictionary,
    i2,
    i4,
    lpstr,
    typed,
)

tc = unittest.TestCase()


def test_parses_properties_in_table_order() -> None:
    data = build_section([(1, i2(1252)), (4, lpstr("Mickey")), (2, lpstr("Title"))])
    section = parse_section(data, 0, FMTID_SUMMARY_INFORMATION)

    assert section.codepage == 1252
    assert section.size == len(data)
    assert list(section) == [1, 4, 2]
    assert section.get_value(4) == "Mickey"
    assert section.get(2) == TypedValue(VariantType.VT_LPSTR, "Title")
    assert section.get_value(99) is None
    assert not section.is_user_defined


def test_section_at_offset() -> None:
    data = b"\xee" * 12 + build_section([(2, lpstr("Title"))])
    section = parse_section(data, 12, FMTID_SUMMARY_INFORMATION)

    assert section.get_value(2) == "Title"


def test_dictionary_is_decoded_separately() -> None:
    data = build_section(
        [
            (0, dictionary([(2, "Client"), (3, "Division")])),
            (1, i2(1252)),
            (2, lpstr("sample client")),
        ]
    )
    section = parse_section(data, 0, FMTID_USER_DEFINED_PROPERTIES)

    assert section.is_user_defined
    assert 0 not in section
    assert list(section.dictionary) == [2, 3]
    assert section.dictionary.name_for(3) == "Division"
    assert section.dictionary.name_for(7) == "7"


def test_unicode_dictionary() -> None:
    data = build_section(
        [
            (0, dictionary([(2, "Kunde"), (3, "Straße")], codepage=1200)),
            (1, i2(1200)),
            (2, lpstr("Schreiner", "utf-16-le")),
        ]
    )
    section = parse_section(data, 0, FMTID_USER_DEFINED_PROPERTIES)

    assert section.codepage == 1200
    tc.assertEqual({2: "Kunde", 3: "Straße"}, dict(section.dictionary.entries))
    assert section.get_value(2) == "Schreiner"


def test_missing_codepage_uses_configured_default() -> None:
    data = build_section([(2, lpstr("Привет", "cp1251"))])

    section = parse_section(
        data, 0, FMTID_SUMMARY_INFORMATION, limits=DecodeLimits(default_codepage=1251)
    )

    assert section.codepage == 1251
    assert section.get_value(2) == "Привет"


def test_negative_codepage_is_normalized() -> None:
    data = build_section([(1, i2(-535)), (2, lpstr("Grüße", "utf-8"))])
    section = parse_section(data, 0, FMTID_SUMMARY_INFORMATION)

    assert section.codepage == 65001
    assert section.get_value(2) == "Grüße"


def test_bad_value_offset_only_affects_that_property(caplog) -> None:
    value = lpstr("still here")
    table_size = 8 + 2 * 8
    data = struct.pack("<II", table_size + len(value), 2)
    data += struct.pack("<II", 3, 0x1000) + struct.pack("<II", 2, table_size)
    data += value

    with caplog.at_level(logging.WARNING):
        section = parse_section(data, 0, FMTID_SUMMARY_INFORMATION)

    assert isinstance(section.get(3), DecodeFailure)
    assert section.get(3).property_id == 3
    assert section.get_value(2) == "still here"
    assert "Property 3" in caplog.text


def test_truncated_value_only_affects_that_property() -> None:
    data = build_section(
        [
            (2, lpstr("Title")),
            (3, typed(VariantType.VT_LPSTR, struct.pack("<I", 500) + b"abc")),
        ]
    )
    section = parse_section(data, 0, FMTID_SUMMARY_INFORMATION)

    assert section.get_value(2) == "Title"
    assert isinstance(section.get(3), DecodeFailure)


def test_unknown_type_only_affects_that_property() -> None:
    data = build_section([(2, typed(0x0099, b"\x00" * 4)), (4, lpstr("Mickey"))])
    section = parse_section(data, 0, FMTID_SUMMARY_INFORMATION)

    assert section.get(2).raw_tag == 0x0099
    assert section.get_value(4) == "Mickey"


def test_deeply_nested_variant_only_affects_that_property() -> None:
    nested = struct.pack("<HH", VariantType.VT_VARIANT, 0) * 2000 + i4(7)
    data = build_section([(5, nested), (4, lpstr("Mickey"))])
    section = parse_section(data, 0, FMTID_SUMMARY_INFORMATION)

    assert isinstance(section.get(5), DecodeFailure)
    assert section.get(5).property_id == 5
    assert "nesting" in section.get(5).reason
    assert section.get_value(4) == "Mickey"


def test_duplicate_property_ids_keep_the_first() -> None:
    data = build_section([(2, lpstr("first")), (2, lpstr("second"))])
    section = parse_section(data, 0, FMTID_SUMMARY_INFORMATION)

    assert len(section) == 1
    assert section.get_value(2) == "first"


def test_values_are_read_within_section_bounds() -> None:
    # The value's declared size runs into the bytes after the section
    inner = build_section([(2, typed(VariantType.VT_I4, b""))])
    data = inner + struct.pack("<i", 99)
    section = parse_section(data, 0, FMTID_SUMMARY_INFORMATION)

    assert isinstance(section.get(2), DecodeFailure)


def test_oversized_section_is_clamped(caplog) -> None:
    data = bytearray(build_section([(14, i4(3))]))
    struct.pack_into("<I", data, 0, len(data) + 100)

    with caplog.at_level(logging.WARNING):
        section = parse_section(bytes(data), 0, FMTID_SUMMARY_INFORMATION)

    assert section.size == len(data)
    assert section.get_value(14) == 3
    assert "declares" in caplog.text


def test_section_size_below_header_raises() -> None:
    with pytest.raises(PropertyDecodeError):
        parse_section(struct.pack("<II", 4, 0), 0, FMTID_SUMMARY_INFORMATION)


def test_property_count_beyond_limit_raises() -> None:
    data = build_section([(2, i4(1)), (3, i4(2))])

    with pytest.raises(PropertyDecodeError):
        parse_section(
            data, 0, FMTID_SUMMARY_INFORMATION, limits=DecodeLimits(max_properties=1)
        )


def test_forged_property_count_is_clamped_to_section_size() -> None:
    data = bytearray(build_section([(2, i4(1))]))
    struct.pack_into("<I", data, 4, 1000)

    section = parse_section(bytes(data), 0, FMTID_SUMMARY_INFORMATION)

    # Only the first table entry fits; the rest overlaps the values
    assert section.get_value(2) == 1
