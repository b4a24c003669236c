"""
Bounds-checked little-endian reader over an immutable byte buffer.

Every decoder in this package reads through a ByteCursor. A read that would
run past the end of the cursor's window raises PropertyDecodeError rather
than returning short data, so truncated streams never yield silently wrong
values.
"""

import struct
import uuid

from propset2text.exceptions import PropertyDecodeError

# =============================================================================
# Pre-compiled structs for primitive reads
# =============================================================================

_U8 = struct.Struct("<B")
_I8 = struct.Struct("<b")
_U16 = struct.Struct("<H")
_I16 = struct.Struct("<h")
_U32 = struct.Struct("<I")
_I32 = struct.Struct("<i")
_U64 = struct.Struct("<Q")
_I64 = struct.Struct("<q")
_F32 = struct.Struct("<f")
_F64 = struct.Struct("<d")

GUID_SIZE = 16


class ByteCursor:
    """Sequential reader over ``data[start:end]`` with absolute positioning."""

    __slots__ = ("_data", "_start", "_end", "_pos")

    def __init__(self, data: bytes | memoryview, start: int = 0, end: int | None = None):
        view = data if isinstance(data, memoryview) else memoryview(data)
        if end is None:
            end = len(view)
        if start < 0 or end > len(view) or start > end:
            raise PropertyDecodeError(
                f"Invalid cursor window [{start}, {end}) over {len(view)} bytes"
            )
        self._data = view
        self._start = start
        self._end = end
        self._pos = start

    @property
    def position(self) -> int:
        """Position relative to the start of the cursor window."""
        return self._pos - self._start

    @property
    def remaining(self) -> int:
        return self._end - self._pos

    def __len__(self) -> int:
        return self._end - self._start

    def seek(self, offset: int) -> None:
        """Move to ``offset`` relative to the start of the window."""
        if offset < 0 or offset > self._end - self._start:
            raise PropertyDecodeError(
                f"Offset {offset} outside of {self._end - self._start} byte window"
            )
        self._pos = self._start + offset

    def skip(self, count: int) -> None:
        self._require(count)
        self._pos += count

    def align(self, boundary: int = 4) -> None:
        """Consume padding up to the next ``boundary`` (window relative).

        Padding past the end of the window is tolerated: writers commonly
        omit the trailing pad of the last value in a section.
        """
        misalignment = self.position % boundary
        if misalignment:
            self._pos = min(self._pos + boundary - misalignment, self._end)

    def sub_cursor(self, offset: int, length: int) -> "ByteCursor":
        """Cursor restricted to ``length`` bytes at ``offset`` of this window."""
        if offset < 0 or length < 0 or offset + length > self._end - self._start:
            raise PropertyDecodeError(
                f"Sub-window [{offset}, {offset + length}) exceeds "
                f"{self._end - self._start} byte window"
            )
        return ByteCursor(self._data, self._start + offset, self._start + offset + length)

    def _require(self, count: int) -> None:
        if count < 0 or self._pos + count > self._end:
            raise PropertyDecodeError(
                f"Truncated data: need {count} bytes at position {self.position}, "
                f"{self.remaining} available"
            )

    def _unpack(self, fmt: struct.Struct):
        self._require(fmt.size)
        (value,) = fmt.unpack_from(self._data, self._pos)
        self._pos += fmt.size
        return value

    def read_u8(self) -> int:
        return self._unpack(_U8)

    def read_i8(self) -> int:
        return self._unpack(_I8)

    def read_u16(self) -> int:
        return self._unpack(_U16)

    def read_i16(self) -> int:
        return self._unpack(_I16)

    def read_u32(self) -> int:
        return self._unpack(_U32)

    def read_i32(self) -> int:
        return self._unpack(_I32)

    def read_u64(self) -> int:
        return self._unpack(_U64)

    def read_i64(self) -> int:
        return self._unpack(_I64)

    def read_f32(self) -> float:
        return self._unpack(_F32)

    def read_f64(self) -> float:
        return self._unpack(_F64)

    def read_bytes(self, count: int) -> bytes:
        self._require(count)
        value = bytes(self._data[self._pos : self._pos + count])
        self._pos += count
        return value

    def read_guid(self) -> uuid.UUID:
        # GUIDs are stored with their first three fields little-endian
        return uuid.UUID(bytes_le=self.read_bytes(GUID_SIZE))
