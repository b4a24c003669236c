from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DecodeLimits:
    """
    Bounds applied while decoding untrusted property set streams.

    Counts read from a stream are checked against these values before any
    allocation happens, so a forged count cannot make the parser loop or
    allocate far beyond what the stream could actually contain.
    """

    # Windows ANSI (Western European) when a section has no PID_CODEPAGE
    default_codepage: int = 1252
    max_sections: int = 64
    max_properties: int = 4096
    max_dictionary_entries: int = 4096
    max_vector_elements: int = 65_536
    max_string_bytes: int = 16 * 1024 * 1024  # 16 MiB
    # VT_VARIANT values and vectors of variants may contain further variants
    max_nesting_depth: int = 16


DEFAULT_DECODE_LIMITS = DecodeLimits()
