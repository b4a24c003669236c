"""
Thumbnail Image Utilities
=========================

Signature detection and container wrapping for the image payloads found in
VT_CF (clipboard format) thumbnail properties.

Thumbnails are stored as Windows clipboard data. The clipboard format code
tells how the payload is laid out:

    - CF_METAFILEPICT (3): 8-byte METAFILEPICT header, then a Windows Metafile
    - CF_DIB (8): a BITMAPINFOHEADER based device independent bitmap
    - CF_ENHMETAFILE (14): an Enhanced Metafile
"""

import struct

# =============================================================================
# Clipboard format tags and codes
# =============================================================================
CFTAG_WINDOWS = -1  # format code is a Windows CF_* value
CFTAG_MACINTOSH = -2  # format code is a Macintosh format value
CFTAG_FMTID = -3  # format is identified by an FMTID
CFTAG_NODATA = 0  # no format

CF_BITMAP = 2
CF_METAFILEPICT = 3
CF_DIB = 8
CF_ENHMETAFILE = 14

# mm, xExt, yExt and hMF of the METAFILEPICT structure preceding the metafile
METAFILEPICT_HEADER_SIZE = 8

# =============================================================================
# Image Signatures for Format Detection
# =============================================================================
PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
JPEG_SIGNATURE = b"\xff\xd8\xff"
GIF_SIGNATURE = b"GIF8"
BMP_SIGNATURE = b"BM"
# Aldus placeable metafile key
WMF_PLACEABLE_SIGNATURE = b"\xd7\xcd\xc6\x9a"
# EMR_HEADER record type followed by the " EMF" signature at offset 40
EMF_RECORD_TYPE = b"\x01\x00\x00\x00"
EMF_SIGNATURE = b" EMF"


def _is_plain_wmf(data: bytes) -> bool:
    # METAHEADER: type 1 (memory) or 2 (disk), header size 9 words
    if len(data) < 18:
        return False
    mt_type, header_words = struct.unpack_from("<HH", data, 0)
    return mt_type in (1, 2) and header_words == 9


def detect_image_type(data: bytes) -> tuple[str, str] | None:
    """
    Detect image type from binary data by checking file signatures.

    Args:
        data: Raw image bytes.

    Returns:
        Tuple of (extension, content_type) or None if not recognized.
    """
    if len(data) < 4:
        return None

    if data[:8] == PNG_SIGNATURE:
        return ("png", "image/png")
    if data[:3] == JPEG_SIGNATURE:
        return ("jpeg", "image/jpeg")
    if data[:4] == GIF_SIGNATURE:
        return ("gif", "image/gif")
    if data[:2] == BMP_SIGNATURE:
        return ("bmp", "image/bmp")
    if data[:4] == WMF_PLACEABLE_SIGNATURE or _is_plain_wmf(data):
        return ("wmf", "image/x-wmf")
    if data[:4] == EMF_RECORD_TYPE and data[40:44] == EMF_SIGNATURE:
        return ("emf", "image/x-emf")

    return None


def strip_metafilepict_header(payload: bytes) -> bytes:
    """Return the metafile that follows the METAFILEPICT header."""
    return payload[METAFILEPICT_HEADER_SIZE:]


def wrap_dib_as_bmp(dib_data: bytes) -> bytes | None:
    """
    Wrap DIB (Device Independent Bitmap) data in a BMP file header.

    Args:
        dib_data: Raw DIB data starting with a BITMAPINFOHEADER or one of its
            larger successors (V4 / V5 headers).

    Returns:
        Complete BMP file data, or None if the DIB is invalid.
    """
    if len(dib_data) < 40:
        return None

    header_size = struct.unpack_from("<I", dib_data, 0)[0]
    if header_size not in (40, 108, 124) or header_size > len(dib_data):
        return None

    try:
        bits_per_pixel, compression = struct.unpack_from("<HI", dib_data, 14)
        colors_used = struct.unpack_from("<I", dib_data, 32)[0]

        if bits_per_pixel not in (1, 4, 8, 16, 24, 32):
            return None

        # Indexed formats carry a color table after the header
        color_table_size = 0
        if bits_per_pixel <= 8:
            color_table_size = (colors_used or (1 << bits_per_pixel)) * 4
        elif compression == 3 and header_size == 40:
            # BI_BITFIELDS: three DWORD color masks follow the header
            color_table_size = 12

        # BMP file header (14 bytes)
        file_size = 14 + len(dib_data)
        pixel_offset = 14 + header_size + color_table_size

        bmp_header = BMP_SIGNATURE + struct.pack("<IHHI", file_size, 0, 0, pixel_offset)
        return bmp_header + dib_data

    except struct.error:
        return None
