"""
Thumbnail Decoder

Interprets the VT_CF value of PID_THUMBNAIL (SummaryInformation) as
clipboard data. The payload is only sliced, never decoded as an image.

Raw VT_CF bytes as stored in the stream look like this:

    0x00 u32 size of everything that follows
    0x04 i32 clipboard format tag (-1 = Windows format code follows)
    0x08 u32 clipboard format code (3 = CF_METAFILEPICT)
    0x0C     payload; for CF_METAFILEPICT an 8-byte METAFILEPICT header
             and the Windows Metafile starting at 0x14
"""

import logging
import struct
from typing import Optional, Union

from propset2text.exceptions import PropertyDecodeError
from propset2text.extractors.util.image_utils import (
    CF_DIB,
    CF_METAFILEPICT,
    CFTAG_MACINTOSH,
    CFTAG_WINDOWS,
    detect_image_type,
    strip_metafilepict_header,
    wrap_dib_as_bmp,
)
from propset2text.hpsf.variant import (
    ClipboardData,
    DecodeFailure,
    TypedValue,
    VariantType,
    parse_clipboard_data,
)

logger = logging.getLogger(__name__)

ThumbnailSource = Union[TypedValue, ClipboardData, bytes]


def _to_clipboard_data(source: ThumbnailSource) -> ClipboardData:
    if isinstance(source, ClipboardData):
        return source
    if isinstance(source, TypedValue):
        if source.vt != VariantType.VT_CF or not isinstance(source.value, ClipboardData):
            raise PropertyDecodeError(
                f"Thumbnail property has type 0x{source.vt:04X}, expected VT_CF"
            )
        return source.value
    if isinstance(source, DecodeFailure):
        raise PropertyDecodeError(f"Thumbnail property is not decodable: {source.reason}")
    if isinstance(source, (bytes, bytearray, memoryview)):
        raw = bytes(source)
        if len(raw) < 8:
            raise PropertyDecodeError(f"Thumbnail data of {len(raw)} bytes is too short")
        (size,) = struct.unpack_from("<I", raw, 0)
        if size > len(raw) - 4:
            raise PropertyDecodeError(
                f"Thumbnail declares {size} bytes, only {len(raw) - 4} present"
            )
        return parse_clipboard_data(raw[4 : 4 + size])
    raise TypeError(f"Cannot build a thumbnail from {type(source).__name__}")


class Thumbnail:
    """View over the clipboard data of a thumbnail property."""

    def __init__(self, source: ThumbnailSource):
        self._clipboard = _to_clipboard_data(source)

    @property
    def clipboard_data(self) -> ClipboardData:
        return self._clipboard

    def get_clipboard_format_tag(self) -> int:
        return self._clipboard.format_tag

    def get_clipboard_format(self) -> int:
        """
        The clipboard format code.

        Raises:
            PropertyDecodeError: The format tag does not carry a format code
                (it names a format or an FMTID instead).
        """
        if self._clipboard.format_code is None:
            raise PropertyDecodeError(
                f"Clipboard format tag {self._clipboard.format_tag} carries no format code"
            )
        return self._clipboard.format_code

    def get_clipboard_format_name(self) -> Optional[str]:
        return self._clipboard.format_name

    def get_thumbnail(self) -> bytes:
        """The raw payload following the format information."""
        return self._clipboard.data

    def _is_windows_format(self, code: int) -> bool:
        return (
            self._clipboard.format_tag == CFTAG_WINDOWS
            and self._clipboard.format_code == code
        )

    def get_thumbnail_as_wmf(self) -> bytes:
        """
        The Windows Metafile for CF_METAFILEPICT thumbnails, the raw payload
        for every other format.
        """
        if self._is_windows_format(CF_METAFILEPICT):
            return strip_metafilepict_header(self._clipboard.data)
        logger.debug("Thumbnail is not CF_METAFILEPICT, returning raw payload")
        return self._clipboard.data

    def get_thumbnail_as_bmp(self) -> bytes:
        """A BMP file for CF_DIB thumbnails, the raw payload otherwise."""
        if self._is_windows_format(CF_DIB):
            bmp = wrap_dib_as_bmp(self._clipboard.data)
            if bmp is not None:
                return bmp
            logger.debug("CF_DIB thumbnail has an unsupported bitmap header")
        return self._clipboard.data

    def get_image(self) -> bytes:
        """The payload converted to a standalone image file where possible."""
        if self._is_windows_format(CF_METAFILEPICT):
            return self.get_thumbnail_as_wmf()
        if self._is_windows_format(CF_DIB):
            return self.get_thumbnail_as_bmp()
        return self._clipboard.data

    def get_content_type(self) -> str:
        detected = detect_image_type(self.get_image())
        if detected is not None:
            return detected[1]
        if self._is_windows_format(CF_METAFILEPICT):
            # Non-placeable metafiles without a standard header
            return "image/x-wmf"
        if self._clipboard.format_tag == CFTAG_MACINTOSH:
            return "image/x-pict"
        return "application/octet-stream"
