"""
Well-known property set identifiers and display names.

The tables are immutable module-level constants; lookups need no locking.
"""

import uuid
from types import MappingProxyType
from typing import Mapping

# =============================================================================
# Stream names and format identifiers
# =============================================================================

SUMMARY_INFORMATION_STREAM = "\x05SummaryInformation"
DOCUMENT_SUMMARY_INFORMATION_STREAM = "\x05DocumentSummaryInformation"

FMTID_SUMMARY_INFORMATION = uuid.UUID("F29F85E0-4FF9-1068-AB91-08002B27B3D9")
FMTID_DOC_SUMMARY_INFORMATION = uuid.UUID("D5CDD502-2E9C-101B-9397-08002B2CF9AE")
FMTID_USER_DEFINED_PROPERTIES = uuid.UUID("D5CDD505-2E9C-101B-9397-08002B2CF9AE")

# =============================================================================
# Property ids shared by all sections
# =============================================================================

PID_DICTIONARY = 0
PID_CODEPAGE = 1
PID_LOCALE = 0x80000000
PID_BEHAVIOUR = 0x80000003

# Ids with a meaning of their own in user-defined sections; never custom fields
RESERVED_PROPERTY_IDS = frozenset({PID_DICTIONARY, PID_CODEPAGE, PID_LOCALE, PID_BEHAVIOUR})

# =============================================================================
# SummaryInformation property ids
# =============================================================================

PID_TITLE = 2
PID_SUBJECT = 3
PID_AUTHOR = 4
PID_KEYWORDS = 5
PID_COMMENTS = 6
PID_TEMPLATE = 7
PID_LASTAUTHOR = 8
PID_REVNUMBER = 9
PID_EDITTIME = 10
PID_LASTPRINTED = 11
PID_CREATE_DTM = 12
PID_LASTSAVE_DTM = 13
PID_PAGECOUNT = 14
PID_WORDCOUNT = 15
PID_CHARCOUNT = 16
PID_THUMBNAIL = 17
PID_APPNAME = 18
PID_SECURITY = 19

# =============================================================================
# DocumentSummaryInformation property ids
# =============================================================================

PID_CATEGORY = 2
PID_PRESFORMAT = 3
PID_BYTECOUNT = 4
PID_LINECOUNT = 5
PID_PARCOUNT = 6
PID_SLIDECOUNT = 7
PID_NOTECOUNT = 8
PID_HIDDENCOUNT = 9
PID_MMCLIPCOUNT = 10
PID_SCALE = 11
PID_HEADINGPAIR = 12
PID_DOCPARTS = 13
PID_MANAGER = 14
PID_COMPANY = 15
PID_LINKSDIRTY = 16
PID_CCHWITHSPACES = 17
PID_SHAREDDOC = 19
PID_LINKBASE = 20
PID_HLINKS = 21
PID_HYPERLINKSCHANGED = 22
PID_VERSION = 23
PID_DIGSIG = 24
PID_CONTENTTYPE = 26
PID_CONTENTSTATUS = 27
PID_LANGUAGE = 28
PID_DOCVERSION = 29

_COMMON_NAMES = {
    PID_DICTIONARY: "PID_DICTIONARY",
    PID_CODEPAGE: "PID_CODEPAGE",
    PID_LOCALE: "PID_LOCALE",
    PID_BEHAVIOUR: "PID_BEHAVIOUR",
}

SUMMARY_INFORMATION_NAMES: Mapping[int, str] = MappingProxyType(
    {
        **_COMMON_NAMES,
        PID_TITLE: "PID_TITLE",
        PID_SUBJECT: "PID_SUBJECT",
        PID_AUTHOR: "PID_AUTHOR",
        PID_KEYWORDS: "PID_KEYWORDS",
        PID_COMMENTS: "PID_COMMENTS",
        PID_TEMPLATE: "PID_TEMPLATE",
        PID_LASTAUTHOR: "PID_LASTAUTHOR",
        PID_REVNUMBER: "PID_REVNUMBER",
        PID_EDITTIME: "PID_EDITTIME",
        PID_LASTPRINTED: "PID_LASTPRINTED",
        PID_CREATE_DTM: "PID_CREATE_DTM",
        PID_LASTSAVE_DTM: "PID_LASTSAVE_DTM",
        PID_PAGECOUNT: "PID_PAGECOUNT",
        PID_WORDCOUNT: "PID_WORDCOUNT",
        PID_CHARCOUNT: "PID_CHARCOUNT",
        PID_THUMBNAIL: "PID_THUMBNAIL",
        PID_APPNAME: "PID_APPNAME",
        PID_SECURITY: "PID_SECURITY",
    }
)

DOCUMENT_SUMMARY_INFORMATION_NAMES: Mapping[int, str] = MappingProxyType(
    {
        **_COMMON_NAMES,
        PID_CATEGORY: "PID_CATEGORY",
        PID_PRESFORMAT: "PID_PRESFORMAT",
        PID_BYTECOUNT: "PID_BYTECOUNT",
        PID_LINECOUNT: "PID_LINECOUNT",
        PID_PARCOUNT: "PID_PARCOUNT",
        PID_SLIDECOUNT: "PID_SLIDECOUNT",
        PID_NOTECOUNT: "PID_NOTECOUNT",
        PID_HIDDENCOUNT: "PID_HIDDENCOUNT",
        PID_MMCLIPCOUNT: "PID_MMCLIPCOUNT",
        PID_SCALE: "PID_SCALE",
        PID_HEADINGPAIR: "PID_HEADINGPAIR",
        PID_DOCPARTS: "PID_DOCPARTS",
        PID_MANAGER: "PID_MANAGER",
        PID_COMPANY: "PID_COMPANY",
        PID_LINKSDIRTY: "PID_LINKSDIRTY",
        PID_CCHWITHSPACES: "PID_CCHWITHSPACES",
        PID_SHAREDDOC: "PID_SHAREDDOC",
        PID_LINKBASE: "PID_LINKBASE",
        PID_HLINKS: "PID_HLINKS",
        PID_HYPERLINKSCHANGED: "PID_HYPERLINKSCHANGED",
        PID_VERSION: "PID_VERSION",
        PID_DIGSIG: "PID_DIGSIG",
        PID_CONTENTTYPE: "PID_CONTENTTYPE",
        PID_CONTENTSTATUS: "PID_CONTENTSTATUS",
        PID_LANGUAGE: "PID_LANGUAGE",
        PID_DOCVERSION: "PID_DOCVERSION",
    }
)

_NAMES_BY_FMTID: Mapping[uuid.UUID, Mapping[int, str]] = MappingProxyType(
    {
        FMTID_SUMMARY_INFORMATION: SUMMARY_INFORMATION_NAMES,
        FMTID_DOC_SUMMARY_INFORMATION: DOCUMENT_SUMMARY_INFORMATION_NAMES,
    }
)

# Ids whose FILETIME is a duration rather than a timestamp
DURATION_PROPERTIES = frozenset({(FMTID_SUMMARY_INFORMATION, PID_EDITTIME)})


def names_for_fmtid(fmtid: uuid.UUID) -> Mapping[int, str] | None:
    return _NAMES_BY_FMTID.get(fmtid)


def fallback_display_name(property_id: int) -> str:
    return f"PID_{property_id}"


def property_display_name(fmtid: uuid.UUID, property_id: int) -> str:
    """Well-known name of a property, ``PID_<n>`` for ids not in the table."""
    table = names_for_fmtid(fmtid)
    if table is not None and property_id in table:
        return table[property_id]
    return fallback_display_name(property_id)
