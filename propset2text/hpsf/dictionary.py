"""
Dictionary Resolver

Decodes the dictionary stored under property id 0 of a user-defined
section. It maps property ids to the names the user gave the custom
properties (e.g. 2 -> "Client").

Entry layout: u32 property id, u32 name length in characters (including
the NUL terminator), then the name. With codepage 1200 the name is UTF-16LE
and every entry is padded to a 4-byte boundary; otherwise it is ``length``
bytes in the section codepage without padding.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterator, Mapping, Union

from propset2text.exceptions import PropertyDecodeError
from propset2text.hpsf.byte_cursor import ByteCursor
from propset2text.hpsf.codepage import decode_codepage_string, is_unicode_codepage
from propset2text.hpsf.limits import DEFAULT_DECODE_LIMITS, DecodeLimits
from propset2text.hpsf.variant import DecodeFailure

logger = logging.getLogger(__name__)

DictionaryName = Union[str, DecodeFailure]


@dataclass(frozen=True)
class Dictionary:
    entries: Mapping[int, DictionaryName]

    def __contains__(self, property_id: int) -> bool:
        return property_id in self.entries

    def __iter__(self) -> Iterator[int]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def get(self, property_id: int) -> DictionaryName | None:
        return self.entries.get(property_id)

    def name_for(self, property_id: int) -> str:
        """Display name of a property; its numeric id when it has no entry."""
        name = self.entries.get(property_id)
        if name is None:
            return str(property_id)
        return str(name)


def decode_dictionary(
    cursor: ByteCursor,
    codepage: int,
    *,
    limits: DecodeLimits = DEFAULT_DECODE_LIMITS,
) -> Dictionary:
    """
    Decode a dictionary at the cursor position.

    Names that cannot be decoded are stored as DecodeFailure markers so that
    one bad entry does not hide the others.

    Raises:
        PropertyDecodeError: The dictionary is truncated or its entry count
            exceeds ``limits``.
    """
    count = cursor.read_u32()
    if count > limits.max_dictionary_entries:
        raise PropertyDecodeError(
            f"Dictionary entry count {count} exceeds limit {limits.max_dictionary_entries}"
        )

    unicode = is_unicode_codepage(codepage)
    entries: dict[int, DictionaryName] = {}
    for _ in range(count):
        property_id = cursor.read_u32()
        length = cursor.read_u32()
        raw = cursor.read_bytes(length * 2 if unicode else length)
        if unicode:
            cursor.align(4)

        try:
            name: DictionaryName = decode_codepage_string(raw, codepage)
        except PropertyDecodeError as exc:
            logger.warning(f"Undecodable dictionary name for property {property_id}: {exc}")
            name = DecodeFailure(str(exc))

        if property_id in entries:
            logger.debug(f"Ignoring duplicate dictionary entry for property {property_id}")
            continue
        entries[property_id] = name

    return Dictionary(MappingProxyType(entries))
