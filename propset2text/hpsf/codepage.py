"""
Codepage String Decoder
=======================

Property set strings are stored either as UTF-16LE (LPWSTR, or any string
in a section whose codepage is 1200) or as bytes in the section's ANSI
codepage. The codepage is a Windows codepage identifier stored in the
PID_CODEPAGE property; this module maps it to a Python codec.

Codepage identifiers are written as a signed 16-bit VT_I2, so values above
32767 (UTF-8 = 65001, Mac codepages = 10000+) arrive negative and are
normalised here.
"""

import codecs
import logging
from types import MappingProxyType

from propset2text.exceptions import CodepageUnsupportedError, PropertyDecodeError

logger = logging.getLogger(__name__)

CP_UTF16 = 1200
CP_UTF16_BE = 1201
CP_UTF8 = 65001
CP_WINDOWS_1252 = 1252

# Codepages whose Python codec name is not simply "cp<id>"
_SPECIAL_CODEPAGES = MappingProxyType(
    {
        CP_UTF16: "utf-16-le",
        CP_UTF16_BE: "utf-16-be",
        CP_UTF8: "utf-8",
        10000: "mac-roman",
        10001: "shift_jis",
        10003: "euc_kr",
        10004: "mac-arabic",
        10006: "mac-greek",
        10007: "mac-cyrillic",
        10008: "gb2312",
        10029: "mac-latin2",
        10079: "mac-iceland",
        10081: "mac-turkish",
        20127: "ascii",
        20866: "koi8-r",
        20932: "euc_jp",
        20936: "gb2312",
        21866: "koi8-u",
        28591: "iso8859-1",
        28592: "iso8859-2",
        28593: "iso8859-3",
        28594: "iso8859-4",
        28595: "iso8859-5",
        28596: "iso8859-6",
        28597: "iso8859-7",
        28598: "iso8859-8",
        28599: "iso8859-9",
        28603: "iso8859-13",
        28605: "iso8859-15",
        50220: "iso2022_jp",
        50225: "iso2022_kr",
        51932: "euc_jp",
        51949: "euc_kr",
        52936: "hz",
        54936: "gb18030",
    }
)


def normalize_codepage(codepage: int) -> int:
    """Map a codepage read as signed 16-bit back to its unsigned identifier."""
    if codepage < 0:
        return codepage & 0xFFFF
    return codepage


def is_unicode_codepage(codepage: int) -> bool:
    return normalize_codepage(codepage) == CP_UTF16


def codepage_to_encoding(codepage: int) -> str:
    """
    Return the Python codec name for a Windows codepage identifier.

    Raises:
        CodepageUnsupportedError: Python has no codec for the codepage.
    """
    codepage = normalize_codepage(codepage)
    name = _SPECIAL_CODEPAGES.get(codepage, f"cp{codepage}")
    try:
        return codecs.lookup(name).name
    except LookupError as exc:
        raise CodepageUnsupportedError(codepage, cause=exc) from exc


def _strip_terminator(text: str) -> str:
    # Strings are NUL terminated; some writers pad with extra NULs as well
    end = text.find("\x00")
    return text if end < 0 else text[:end]


def decode_codepage_string(raw: bytes, codepage: int) -> str:
    """
    Decode ``raw`` in ``codepage`` and drop the NUL terminator.

    Codepage 1200 always decodes as UTF-16LE, whatever the nominal string
    type of the property was.

    Raises:
        CodepageUnsupportedError: The codepage has no Python codec.
        PropertyDecodeError: The bytes are not valid in the codepage.
    """
    if is_unicode_codepage(codepage):
        return decode_utf16_string(raw)
    encoding = codepage_to_encoding(codepage)
    try:
        return _strip_terminator(raw.decode(encoding))
    except UnicodeDecodeError as exc:
        raise PropertyDecodeError(
            f"Invalid {encoding} string data", cause=exc
        ) from exc


def decode_utf16_string(raw: bytes) -> str:
    """Decode UTF-16LE code units and drop the NUL terminator."""
    if len(raw) % 2:
        # An odd trailing byte cannot be part of a code unit
        logger.debug(f"Dropping odd trailing byte of {len(raw)} byte UTF-16 string")
        raw = raw[:-1]
    try:
        return _strip_terminator(raw.decode("utf-16-le"))
    except UnicodeDecodeError as exc:
        raise PropertyDecodeError("Invalid UTF-16 string data", cause=exc) from exc
