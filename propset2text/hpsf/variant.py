"""
Typed Value Decoder
===================

Decodes one variant-typed property value (MS-OLEPS TypedPropertyValue).

Wire layout
-----------
Every value starts with a 32-bit type header: a 16-bit VARTYPE tag followed
by 16 bits of padding. The tag fully determines how the following bytes are
read:

    - fixed-width scalars (VT_I2, VT_I4, VT_R8, VT_BOOL, VT_FILETIME, ...)
      are read at their native width
    - VT_LPSTR / VT_BSTR: u32 byte count, codepage bytes, padded to 4
    - VT_LPWSTR: u32 character count, UTF-16LE code units, padded to 4
    - VT_BLOB / VT_BLOB_OBJECT: u32 byte count, raw bytes, padded to 4
    - VT_CF: u32 size, i32 clipboard format tag, format code/name/FMTID,
      image payload, padded to 4
    - VT_VECTOR | T: u32 element count followed by the elements
    - VT_ARRAY | T: element type, dimension table, then the elements

Failure handling
----------------
Structural problems (truncation, counts beyond DecodeLimits) raise
PropertyDecodeError: the size of the value is unknown and the caller must
give up on it. Problems that leave the value's extent intact (an unknown
tag, an undecodable string) are returned as DecodeFailure values so that
sibling properties and vector elements still decode.
"""

import datetime
import decimal
import logging
import math
import uuid
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Callable, Optional, Union

from propset2text.exceptions import PropertyDecodeError
from propset2text.hpsf.byte_cursor import ByteCursor
from propset2text.hpsf.codepage import (
    decode_codepage_string,
    decode_utf16_string,
)
from propset2text.hpsf.limits import DEFAULT_DECODE_LIMITS, DecodeLimits

logger = logging.getLogger(__name__)


class VariantType(IntEnum):
    VT_EMPTY = 0x0000
    VT_NULL = 0x0001
    VT_I2 = 0x0002
    VT_I4 = 0x0003
    VT_R4 = 0x0004
    VT_R8 = 0x0005
    VT_CY = 0x0006
    VT_DATE = 0x0007
    VT_BSTR = 0x0008
    VT_ERROR = 0x000A
    VT_BOOL = 0x000B
    VT_VARIANT = 0x000C
    VT_DECIMAL = 0x000E
    VT_I1 = 0x0010
    VT_UI1 = 0x0011
    VT_UI2 = 0x0012
    VT_UI4 = 0x0013
    VT_I8 = 0x0014
    VT_UI8 = 0x0015
    VT_INT = 0x0016
    VT_UINT = 0x0017
    VT_LPSTR = 0x001E
    VT_LPWSTR = 0x001F
    VT_FILETIME = 0x0040
    VT_BLOB = 0x0041
    VT_BLOB_OBJECT = 0x0046
    VT_CF = 0x0047
    VT_CLSID = 0x0048


VT_VECTOR = 0x1000
VT_ARRAY = 0x2000
VT_TYPEMASK = 0x0FFF

# Upper bound on the dimension count of a VT_ARRAY value
_MAX_ARRAY_DIMENSIONS = 31

# FILETIME counts 100ns ticks since 1601-01-01 UTC
_FILETIME_EPOCH = datetime.datetime(1601, 1, 1, tzinfo=datetime.timezone.utc)
# OLE automation dates count days since 1899-12-30
_OLE_DATE_EPOCH = datetime.datetime(1899, 12, 30)


# =============================================================================
# Value types
# =============================================================================


@dataclass(frozen=True)
class FileTime:
    """A VT_FILETIME value: 64-bit count of 100-nanosecond ticks."""

    ticks: int

    def to_datetime(self) -> Optional[datetime.datetime]:
        """UTC timestamp, or None for a zero / unrepresentable tick count."""
        if self.ticks == 0:
            return None
        try:
            return _FILETIME_EPOCH + datetime.timedelta(microseconds=self.ticks // 10)
        except OverflowError:
            return None

    def to_timedelta(self) -> datetime.timedelta:
        """Interpret the tick count as a duration (e.g. total editing time)."""
        return datetime.timedelta(microseconds=self.ticks // 10)


@dataclass(frozen=True)
class ClipboardData:
    """
    A VT_CF value.

    format_tag semantics:
        -1: Windows clipboard format, ``format_code`` holds the CF_* id
        -2: Macintosh clipboard format, ``format_code`` holds the id
        -3: ``format_id`` holds an FMTID
         0: no format
        >0: ``format_name`` holds a registered format name
    """

    format_tag: int
    format_code: Optional[int] = None
    format_name: Optional[str] = None
    format_id: Optional[uuid.UUID] = None
    data: bytes = b""


@dataclass(frozen=True)
class VariantArray:
    """A VT_ARRAY value; elements are stored flattened in row-major order."""

    element_type: int
    dimensions: tuple  # ((size, index_offset), ...)
    elements: tuple


@dataclass(frozen=True)
class DecodeFailure:
    """Marker stored in place of a value that could not be decoded."""

    reason: str
    raw_tag: Optional[int] = None
    property_id: Optional[int] = None

    def __str__(self) -> str:
        if self.raw_tag is None:
            return f"(undecodable: {self.reason})"
        return f"(undecodable: {self.reason} [type 0x{self.raw_tag:04X}])"


@dataclass(frozen=True)
class TypedValue:
    """A decoded property value together with its variant tag."""

    vt: int
    value: Any

    @property
    def base_type(self) -> int:
        return self.vt & VT_TYPEMASK

    @property
    def is_vector(self) -> bool:
        return bool(self.vt & VT_VECTOR)

    @property
    def is_array(self) -> bool:
        return bool(self.vt & VT_ARRAY)


PropertyValue = Union[TypedValue, DecodeFailure]


# =============================================================================
# Scalar decoders
# =============================================================================

_Decoder = Callable[[ByteCursor, int, DecodeLimits], Any]


def _read_empty(cursor: ByteCursor, codepage: int, limits: DecodeLimits) -> None:
    return None


def _read_bool(cursor: ByteCursor, codepage: int, limits: DecodeLimits) -> bool:
    # VARIANT_BOOL: 0x0000 is false, 0xFFFF is true; be lenient on the rest
    return cursor.read_u16() != 0


def _read_currency(cursor: ByteCursor, codepage: int, limits: DecodeLimits) -> decimal.Decimal:
    # CY: signed 64-bit integer scaled by 10 000
    return decimal.Decimal(cursor.read_i64()).scaleb(-4)


def _read_date(cursor: ByteCursor, codepage: int, limits: DecodeLimits) -> datetime.datetime:
    days = cursor.read_f64()
    if not math.isfinite(days):
        raise PropertyDecodeError(f"Invalid VT_DATE value: {days}")
    try:
        return _OLE_DATE_EPOCH + datetime.timedelta(days=days)
    except OverflowError as exc:
        raise PropertyDecodeError(f"VT_DATE out of range: {days}", cause=exc) from exc


def _read_decimal(cursor: ByteCursor, codepage: int, limits: DecodeLimits) -> decimal.Decimal:
    cursor.skip(2)  # wReserved
    scale = cursor.read_u8()
    sign = cursor.read_u8()
    high = cursor.read_u32()
    low = cursor.read_u64()
    if scale > 28:
        raise PropertyDecodeError(f"Invalid VT_DECIMAL scale: {scale}")
    # Built from text so that all 96 bits survive the default context precision
    sign_text = "-" if sign & 0x80 else ""
    return decimal.Decimal(f"{sign_text}{(high << 64) | low}E-{scale}")


def _read_filetime(cursor: ByteCursor, codepage: int, limits: DecodeLimits) -> FileTime:
    return FileTime(cursor.read_u64())


def _read_clsid(cursor: ByteCursor, codepage: int, limits: DecodeLimits) -> uuid.UUID:
    return cursor.read_guid()


def _read_sized(cursor: ByteCursor, limits: DecodeLimits, what: str) -> bytes:
    size = cursor.read_u32()
    if size > limits.max_string_bytes:
        raise PropertyDecodeError(
            f"{what} size {size} exceeds limit {limits.max_string_bytes}"
        )
    raw = cursor.read_bytes(size)
    cursor.align(4)
    return raw


def _read_codepage_string(cursor: ByteCursor, codepage: int, limits: DecodeLimits) -> Any:
    raw = _read_sized(cursor, limits, "String")
    try:
        # decode_codepage_string maps codepage 1200 to UTF-16 by itself
        return decode_codepage_string(raw, codepage)
    except PropertyDecodeError as exc:
        return DecodeFailure(str(exc))


def _read_unicode_string(cursor: ByteCursor, codepage: int, limits: DecodeLimits) -> Any:
    length = cursor.read_u32()
    if length * 2 > limits.max_string_bytes:
        raise PropertyDecodeError(
            f"Unicode string length {length} exceeds limit {limits.max_string_bytes}"
        )
    raw = cursor.read_bytes(length * 2)
    cursor.align(4)
    try:
        return decode_utf16_string(raw)
    except PropertyDecodeError as exc:
        return DecodeFailure(str(exc))


def _read_blob(cursor: ByteCursor, codepage: int, limits: DecodeLimits) -> bytes:
    return _read_sized(cursor, limits, "Blob")


def _read_clipboard(cursor: ByteCursor, codepage: int, limits: DecodeLimits) -> ClipboardData:
    body = _read_sized(cursor, limits, "Clipboard data")
    return parse_clipboard_data(body, codepage)


def parse_clipboard_data(body: bytes, codepage: int = 1252) -> ClipboardData:
    """
    Split the body of a VT_CF value (without its size prefix) into format
    information and image payload.
    """
    inner = ByteCursor(body)
    tag = inner.read_i32()
    if tag in (-1, -2):
        code = inner.read_u32()
        return ClipboardData(tag, format_code=code, data=inner.read_bytes(inner.remaining))
    if tag == -3:
        fmtid = inner.read_guid()
        return ClipboardData(tag, format_id=fmtid, data=inner.read_bytes(inner.remaining))
    if tag > 0:
        # Positive tags give the byte length of a registered format name
        raw_name = inner.read_bytes(tag)
        name = decode_codepage_string(raw_name, codepage)
        return ClipboardData(tag, format_name=name, data=inner.read_bytes(inner.remaining))
    return ClipboardData(tag, data=inner.read_bytes(inner.remaining))


_SCALAR_DECODERS: dict[int, _Decoder] = {
    VariantType.VT_EMPTY: _read_empty,
    VariantType.VT_NULL: _read_empty,
    VariantType.VT_I1: lambda c, cp, lim: c.read_i8(),
    VariantType.VT_UI1: lambda c, cp, lim: c.read_u8(),
    VariantType.VT_I2: lambda c, cp, lim: c.read_i16(),
    VariantType.VT_UI2: lambda c, cp, lim: c.read_u16(),
    VariantType.VT_I4: lambda c, cp, lim: c.read_i32(),
    VariantType.VT_INT: lambda c, cp, lim: c.read_i32(),
    VariantType.VT_UI4: lambda c, cp, lim: c.read_u32(),
    VariantType.VT_UINT: lambda c, cp, lim: c.read_u32(),
    VariantType.VT_ERROR: lambda c, cp, lim: c.read_u32(),
    VariantType.VT_I8: lambda c, cp, lim: c.read_i64(),
    VariantType.VT_UI8: lambda c, cp, lim: c.read_u64(),
    VariantType.VT_R4: lambda c, cp, lim: c.read_f32(),
    VariantType.VT_R8: lambda c, cp, lim: c.read_f64(),
    VariantType.VT_CY: _read_currency,
    VariantType.VT_DATE: _read_date,
    VariantType.VT_DECIMAL: _read_decimal,
    VariantType.VT_BOOL: _read_bool,
    VariantType.VT_BSTR: _read_codepage_string,
    VariantType.VT_LPSTR: _read_codepage_string,
    VariantType.VT_LPWSTR: _read_unicode_string,
    VariantType.VT_FILETIME: _read_filetime,
    VariantType.VT_BLOB: _read_blob,
    VariantType.VT_BLOB_OBJECT: _read_blob,
    VariantType.VT_CF: _read_clipboard,
    VariantType.VT_CLSID: _read_clsid,
}

# Element types allowed after VT_VECTOR / VT_ARRAY (MS-OLEPS 2.15)
_VECTOR_ELEMENT_TYPES = frozenset(VariantType) - {
    VariantType.VT_EMPTY,
    VariantType.VT_NULL,
    VariantType.VT_DECIMAL,
    VariantType.VT_BLOB,
    VariantType.VT_BLOB_OBJECT,
}
_ARRAY_ELEMENT_TYPES = frozenset(VariantType) - {
    VariantType.VT_EMPTY,
    VariantType.VT_NULL,
    VariantType.VT_I8,
    VariantType.VT_UI8,
    VariantType.VT_LPSTR,
    VariantType.VT_LPWSTR,
    VariantType.VT_FILETIME,
    VariantType.VT_BLOB,
    VariantType.VT_BLOB_OBJECT,
    VariantType.VT_CF,
    VariantType.VT_CLSID,
}


# =============================================================================
# Vector / array decoding
# =============================================================================


def _read_elements(
    cursor: ByteCursor,
    element_type: int,
    count: int,
    codepage: int,
    limits: DecodeLimits,
    depth: int,
) -> tuple:
    if count > limits.max_vector_elements:
        raise PropertyDecodeError(
            f"Element count {count} exceeds limit {limits.max_vector_elements}"
        )
    if count > cursor.remaining:
        raise PropertyDecodeError(
            f"Element count {count} exceeds the {cursor.remaining} remaining bytes"
        )

    elements = []
    for _ in range(count):
        if element_type != VariantType.VT_VARIANT:
            elements.append(_SCALAR_DECODERS[element_type](cursor, codepage, limits))
            continue
        element = decode_typed_value(cursor, codepage, limits=limits, depth=depth + 1)
        if isinstance(element, DecodeFailure) and element.raw_tag is not None:
            # The size of an unknown element is unknown, so is everything after it
            raise PropertyDecodeError(
                f"Unsupported variant element type 0x{element.raw_tag:04X}"
            )
        cursor.align(4)
        elements.append(element)
    return tuple(elements)


def _read_vector(
    cursor: ByteCursor, element_type: int, codepage: int, limits: DecodeLimits, depth: int
) -> tuple:
    count = cursor.read_u32()
    elements = _read_elements(cursor, element_type, count, codepage, limits, depth)
    cursor.align(4)
    return elements


def _read_array(
    cursor: ByteCursor, element_type: int, codepage: int, limits: DecodeLimits, depth: int
) -> VariantArray:
    declared_type = cursor.read_u32() & 0xFFFF
    if declared_type != element_type:
        raise PropertyDecodeError(
            f"Array header type 0x{declared_type:04X} does not match 0x{element_type:04X}"
        )
    num_dimensions = cursor.read_u32()
    if not 1 <= num_dimensions <= _MAX_ARRAY_DIMENSIONS:
        raise PropertyDecodeError(f"Invalid array dimension count: {num_dimensions}")

    dimensions = []
    total = 1
    for _ in range(num_dimensions):
        size = cursor.read_u32()
        index_offset = cursor.read_i32()
        dimensions.append((size, index_offset))
        total *= size
        if total > limits.max_vector_elements:
            raise PropertyDecodeError(
                f"Array element count exceeds limit {limits.max_vector_elements}"
            )

    elements = _read_elements(cursor, element_type, total, codepage, limits, depth)
    cursor.align(4)
    return VariantArray(element_type, tuple(dimensions), elements)


# =============================================================================
# Public API
# =============================================================================


def decode_value(
    vt: int,
    cursor: ByteCursor,
    codepage: int,
    *,
    limits: DecodeLimits = DEFAULT_DECODE_LIMITS,
    depth: int = 0,
) -> PropertyValue:
    """
    Decode the payload of a value whose variant tag ``vt`` was already read.

    ``depth`` counts the VT_VARIANT levels enclosing the value.

    Returns:
        TypedValue for supported tags, DecodeFailure for unknown tags or
        payloads whose extent was readable but whose content was not.

    Raises:
        PropertyDecodeError: The payload is truncated, exceeds ``limits`` or
            nests variants deeper than ``limits.max_nesting_depth``.
    """
    base = vt & VT_TYPEMASK
    modifier = vt & ~VT_TYPEMASK

    if vt == VariantType.VT_VARIANT:
        # The payload is another complete typed value
        return TypedValue(
            vt, decode_typed_value(cursor, codepage, limits=limits, depth=depth + 1)
        )

    if modifier == 0 and base in _SCALAR_DECODERS:
        value = _SCALAR_DECODERS[base](cursor, codepage, limits)
        if isinstance(value, DecodeFailure):
            return value
        return TypedValue(vt, value)

    if modifier == VT_VECTOR and base in _VECTOR_ELEMENT_TYPES:
        return TypedValue(vt, _read_vector(cursor, base, codepage, limits, depth))

    if modifier == VT_ARRAY and base in _ARRAY_ELEMENT_TYPES:
        return TypedValue(vt, _read_array(cursor, base, codepage, limits, depth))

    logger.debug(f"Unsupported variant type 0x{vt:04X}")
    return DecodeFailure("unsupported variant type", raw_tag=vt)


def decode_typed_value(
    cursor: ByteCursor,
    codepage: int,
    *,
    limits: DecodeLimits = DEFAULT_DECODE_LIMITS,
    depth: int = 0,
) -> PropertyValue:
    """Read a 32-bit type header and decode the value that follows it."""
    if depth > limits.max_nesting_depth:
        raise PropertyDecodeError(
            f"Variant nesting exceeds limit {limits.max_nesting_depth}"
        )
    vt = cursor.read_u16()
    cursor.skip(2)  # padding
    return decode_value(vt, cursor, codepage, limits=limits, depth=depth)


def unwrap(value: Optional[PropertyValue]) -> Any:
    """Return the plain Python value of a TypedValue (None for failures)."""
    if isinstance(value, TypedValue):
        return value.value
    return None


# =============================================================================
# Text rendering
# =============================================================================

NOT_SET = "(not set)"


def _format_guid(value: uuid.UUID) -> str:
    return "{" + str(value).upper() + "}"


def render_value(value: Any, *, as_duration: bool = False) -> str:
    """
    Render a decoded value as normalized primitive text.

    No locale-dependent formatting is applied: numbers use ``str``,
    timestamps ISO-8601, booleans ``true``/``false``.
    """
    if isinstance(value, TypedValue):
        return render_value(value.value, as_duration=as_duration)
    if value is None:
        return NOT_SET
    if isinstance(value, DecodeFailure):
        return str(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, FileTime):
        if as_duration:
            return str(value.to_timedelta())
        timestamp = value.to_datetime()
        return timestamp.isoformat() if timestamp else NOT_SET
    if isinstance(value, datetime.datetime):
        return value.isoformat()
    if isinstance(value, uuid.UUID):
        return _format_guid(value)
    if isinstance(value, ClipboardData):
        if value.format_code is not None:
            fmt = str(value.format_code)
        elif value.format_name is not None:
            fmt = value.format_name
        elif value.format_id is not None:
            fmt = _format_guid(value.format_id)
        else:
            fmt = "none"
        return f"<clipboard: tag {value.format_tag}, format {fmt}, {len(value.data)} bytes>"
    if isinstance(value, (bytes, bytearray)):
        return f"<binary: {len(value)} bytes>"
    if isinstance(value, VariantArray):
        return render_value(value.elements)
    if isinstance(value, tuple):
        return "[" + ", ".join(render_value(item) for item in value) + "]"
    return str(value)
