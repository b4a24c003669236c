"""
Section Parser

A section is one property table inside a property set stream:

    u32 size            byte length of the section, header included
    u32 count           number of properties
    (u32 id, u32 offset) * count
    ... values, each at its offset relative to the section start

Decoding is restricted to the section's declared bytes. Value-level errors
are recorded as DecodeFailure entries for the affected property only.
"""

import logging
import uuid
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional

from propset2text.exceptions import PropertyDecodeError
from propset2text.hpsf.byte_cursor import ByteCursor
from propset2text.hpsf.codepage import normalize_codepage
from propset2text.hpsf.dictionary import Dictionary, decode_dictionary
from propset2text.hpsf.limits import DEFAULT_DECODE_LIMITS, DecodeLimits
from propset2text.hpsf.names import (
    FMTID_USER_DEFINED_PROPERTIES,
    PID_CODEPAGE,
    PID_DICTIONARY,
)
from propset2text.hpsf.variant import (
    DecodeFailure,
    PropertyValue,
    TypedValue,
    decode_typed_value,
)

logger = logging.getLogger(__name__)

_SECTION_HEADER_SIZE = 8
_PROPERTY_ENTRY_SIZE = 8


@dataclass(frozen=True)
class Section:
    fmtid: uuid.UUID
    size: int
    codepage: int
    properties: Mapping[int, PropertyValue]
    dictionary: Optional[Dictionary] = None

    def __contains__(self, property_id: int) -> bool:
        return property_id in self.properties

    def __iter__(self) -> Iterator[int]:
        return iter(self.properties)

    def __len__(self) -> int:
        return len(self.properties)

    def get(self, property_id: int) -> Optional[PropertyValue]:
        return self.properties.get(property_id)

    def get_value(self, property_id: int) -> Any:
        """Plain Python value of a property; None if absent or undecodable."""
        value = self.properties.get(property_id)
        if isinstance(value, TypedValue):
            return value.value
        return None

    @property
    def is_user_defined(self) -> bool:
        return self.fmtid == FMTID_USER_DEFINED_PROPERTIES


def _read_property_table(
    section: ByteCursor, size: int, limits: DecodeLimits
) -> list[tuple[int, int]]:
    section.seek(4)
    count = section.read_u32()
    if count > limits.max_properties:
        raise PropertyDecodeError(
            f"Property count {count} exceeds limit {limits.max_properties}"
        )
    max_entries = (size - _SECTION_HEADER_SIZE) // _PROPERTY_ENTRY_SIZE
    if count > max_entries:
        logger.warning(
            f"Section declares {count} properties but has room for {max_entries}"
        )
        count = max_entries
    return [(section.read_u32(), section.read_u32()) for _ in range(count)]


def _read_codepage(
    section: ByteCursor, table: list[tuple[int, int]], limits: DecodeLimits
) -> int:
    for property_id, offset in table:
        if property_id != PID_CODEPAGE:
            continue
        try:
            section.seek(offset)
            value = decode_typed_value(section, limits.default_codepage, limits=limits)
        except PropertyDecodeError as exc:
            logger.warning(f"Unreadable codepage property, using default: {exc}")
            break
        if isinstance(value, TypedValue) and isinstance(value.value, int):
            return normalize_codepage(value.value)
        logger.warning(f"Codepage property has unexpected value {value!r}, using default")
        break
    return limits.default_codepage


def parse_section(
    data: bytes | memoryview,
    offset: int,
    fmtid: uuid.UUID,
    *,
    limits: DecodeLimits = DEFAULT_DECODE_LIMITS,
) -> Section:
    """
    Parse the section starting at ``offset`` of a property set stream.

    Raises:
        PropertyDecodeError: The section header or property table is not
            readable; the section as a whole cannot be decoded.
    """
    stream = ByteCursor(data)
    stream.seek(offset)
    size = stream.read_u32()
    if size < _SECTION_HEADER_SIZE:
        raise PropertyDecodeError(f"Section at offset {offset} has invalid size {size}")
    available = len(stream) - offset
    if size > available:
        logger.warning(
            f"Section at offset {offset} declares {size} bytes, only {available} present"
        )
        size = available

    section = stream.sub_cursor(offset, size)
    table = _read_property_table(section, size, limits)
    codepage = _read_codepage(section, table, limits)
    logger.debug(
        f"Section {fmtid}: {len(table)} properties, {size} bytes, codepage {codepage}"
    )

    properties: dict[int, PropertyValue] = {}
    dictionary = None
    for property_id, value_offset in table:
        if property_id == PID_DICTIONARY:
            if dictionary is not None:
                continue
            try:
                section.seek(value_offset)
                dictionary = decode_dictionary(section, codepage, limits=limits)
            except PropertyDecodeError as exc:
                logger.warning(f"Dictionary of section {fmtid} is not decodable: {exc}")
            continue

        if property_id in properties:
            logger.debug(f"Ignoring duplicate property id {property_id}")
            continue

        try:
            section.seek(value_offset)
            value = decode_typed_value(section, codepage, limits=limits)
        except PropertyDecodeError as exc:
            logger.warning(f"Property {property_id} of section {fmtid} is not decodable: {exc}")
            value = DecodeFailure(str(exc))
        if isinstance(value, DecodeFailure):
            value = replace(value, property_id=property_id)
        properties[property_id] = value

    return Section(
        fmtid=fmtid,
        size=size,
        codepage=codepage,
        properties=MappingProxyType(properties),
        dictionary=dictionary,
    )
