"""
Property Set Parser
===================

Entry point for decoding one property set stream (MS-OLEPS
PropertySetStream), e.g. the ``\\x05SummaryInformation`` stream of an OLE2
compound document.

Stream header (28 bytes, little-endian):
    - 0x00 u16 byte order, must be 0xFFFE
    - 0x02 u16 format version (0 or 1)
    - 0x04 u32 OS version (informational)
    - 0x08 16 bytes class id
    - 0x18 u32 number of sections

followed by one (16-byte FMTID, u32 offset) pair per section. Each section
is decoded by parse_section within its own declared byte length.

Structural errors raise NotAPropertySetStreamError for the whole stream;
errors inside values never escape the section parser.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import BinaryIO, Optional, Union

from propset2text.exceptions import (
    MarkUnsupportedError,
    NotAPropertySetStreamError,
    PropertyDecodeError,
)
from propset2text.hpsf.byte_cursor import ByteCursor
from propset2text.hpsf.limits import DEFAULT_DECODE_LIMITS, DecodeLimits
from propset2text.hpsf.names import (
    FMTID_DOC_SUMMARY_INFORMATION,
    FMTID_SUMMARY_INFORMATION,
    FMTID_USER_DEFINED_PROPERTIES,
)
from propset2text.hpsf.section import Section, parse_section

logger = logging.getLogger(__name__)

BYTE_ORDER_ASSERTION = 0xFFFE
HEADER_SIZE = 28

PropertySetSource = Union[bytes, bytearray, memoryview, BinaryIO]


@dataclass(frozen=True)
class PropertySet:
    byte_order: int
    format: int
    os_version: int
    class_id: uuid.UUID
    sections: tuple

    @property
    def section_count(self) -> int:
        return len(self.sections)

    @property
    def first_section(self) -> Optional[Section]:
        return self.sections[0] if self.sections else None

    def get_section(self, fmtid: uuid.UUID) -> Optional[Section]:
        for section in self.sections:
            if section.fmtid == fmtid:
                return section
        return None

    @property
    def is_summary_information(self) -> bool:
        first = self.first_section
        return first is not None and first.fmtid == FMTID_SUMMARY_INFORMATION

    @property
    def is_document_summary_information(self) -> bool:
        first = self.first_section
        return first is not None and first.fmtid == FMTID_DOC_SUMMARY_INFORMATION

    @property
    def user_defined_section(self) -> Optional[Section]:
        return self.get_section(FMTID_USER_DEFINED_PROPERTIES)


def _read_source(source: PropertySetSource) -> bytes:
    """Read the complete stream, rewinding file-like sources first."""
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)

    seekable = getattr(source, "seekable", None)
    if not callable(seekable) or not hasattr(source, "read"):
        raise MarkUnsupportedError(
            f"Property set source {type(source).__name__} cannot be rewound"
        )
    try:
        if not seekable():
            raise MarkUnsupportedError(
                f"Property set source {type(source).__name__} cannot be rewound"
            )
        source.seek(0)
        data = source.read()
    except (OSError, ValueError) as exc:
        # ValueError: I/O operation on a closed file
        raise MarkUnsupportedError("Property set source cannot be re-read", cause=exc) from exc
    if not isinstance(data, (bytes, bytearray)):
        raise MarkUnsupportedError(
            f"Property set source returned {type(data).__name__}, expected bytes"
        )
    return bytes(data)


def is_property_set_stream(source: PropertySetSource) -> bool:
    """Check the stream header without decoding any section."""
    try:
        data = _read_source(source)
    except MarkUnsupportedError:
        return False
    if len(data) < HEADER_SIZE:
        return False
    return ByteCursor(data).read_u16() == BYTE_ORDER_ASSERTION


def parse_property_set(
    source: PropertySetSource,
    *,
    limits: DecodeLimits = DEFAULT_DECODE_LIMITS,
) -> PropertySet:
    """
    Decode a property set stream.

    Args:
        source: The stream bytes, or a seekable binary file object.
        limits: Bounds for counts read from the untrusted stream.

    Returns:
        PropertySet with one Section per declared section.

    Raises:
        NotAPropertySetStreamError: Bad byte order marker, truncated header
            or an unreadable section table.
        MarkUnsupportedError: ``source`` is a stream that cannot be rewound.
    """
    data = _read_source(source)
    if len(data) < HEADER_SIZE:
        raise NotAPropertySetStreamError(
            f"Stream of {len(data)} bytes is too short for a property set header"
        )

    cursor = ByteCursor(data)
    byte_order = cursor.read_u16()
    if byte_order != BYTE_ORDER_ASSERTION:
        raise NotAPropertySetStreamError(
            f"Invalid byte order marker 0x{byte_order:04X}, expected 0x{BYTE_ORDER_ASSERTION:04X}"
        )
    fmt = cursor.read_u16()
    os_version = cursor.read_u32()
    class_id = cursor.read_guid()
    section_count = cursor.read_u32()
    if section_count > limits.max_sections:
        raise NotAPropertySetStreamError(
            f"Section count {section_count} exceeds limit {limits.max_sections}"
        )
    logger.debug(
        f"Property set format {fmt}, os version 0x{os_version:08X}, "
        f"{section_count} sections"
    )

    sections = []
    try:
        declarations = [
            (cursor.read_guid(), cursor.read_u32()) for _ in range(section_count)
        ]
        for fmtid, offset in declarations:
            sections.append(parse_section(data, offset, fmtid, limits=limits))
    except PropertyDecodeError as exc:
        raise NotAPropertySetStreamError(
            f"Malformed section table: {exc}", cause=exc
        ) from exc

    return PropertySet(
        byte_order=byte_order,
        format=fmt,
        os_version=os_version,
        class_id=class_id,
        sections=tuple(sections),
    )
