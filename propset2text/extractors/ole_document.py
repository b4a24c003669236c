"""
OLE Document Handle
===================

A higher-level handle over a legacy Office compound document (.doc, .xls,
.ppt, .vsd). It owns the olefile container it opens, detects the kind of
document from the main stream, and exposes the two standard property sets
as parsed views.

The handle can be passed to PropertiesExtractor, which then borrows the
container: closing the extractor leaves the document usable, closing the
document releases the container.

Usage
-----
    >>> from propset2text.extractors.ole_document import OleDocument
    >>> with OleDocument("report.xls") as doc:
    ...     print(doc.kind, doc.summary_information.author)
"""

import io
import logging
from pathlib import Path
from typing import BinaryIO, Optional, Union

import olefile

from propset2text.exceptions import (
    ContainerClosedError,
    ExtractionFileFormatNotSupportedError,
)
from propset2text.hpsf.limits import DEFAULT_DECODE_LIMITS, DecodeLimits
from propset2text.hpsf.names import (
    DOCUMENT_SUMMARY_INFORMATION_STREAM,
    SUMMARY_INFORMATION_STREAM,
)
from propset2text.hpsf.property_set import PropertySet, parse_property_set
from propset2text.hpsf.summary import DocumentSummaryInformation, SummaryInformation

logger = logging.getLogger(__name__)

# Main stream name -> document kind, checked in order
DOCUMENT_STREAMS = (
    ("WordDocument", "doc"),
    ("Workbook", "xls"),
    ("Book", "xls"),
    ("PowerPoint Document", "ppt"),
    ("VisioDocument", "vsd"),
)

OleSource = Union[bytes, bytearray, str, Path, BinaryIO]


def open_container(source: OleSource) -> olefile.OleFileIO:
    """
    Open an OLE2 compound file from a path, raw bytes or a binary file.

    Raises:
        ExtractionFileFormatNotSupportedError: The data is not a compound file.
    """
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(bytes(source))
    elif isinstance(source, Path):
        source = str(source)

    label = source if isinstance(source, str) else type(source).__name__
    if hasattr(source, "seek"):
        source.seek(0)
    if not olefile.isOleFile(source):
        raise ExtractionFileFormatNotSupportedError(
            label, f"Not an OLE2 compound document: {label}"
        )
    if hasattr(source, "seek"):
        source.seek(0)
    try:
        return olefile.OleFileIO(source)
    except OSError as exc:
        raise ExtractionFileFormatNotSupportedError(
            label, f"Corrupt OLE2 compound document: {label}", cause=exc
        ) from exc


def detect_document_kind(container: olefile.OleFileIO) -> str:
    for stream_name, kind in DOCUMENT_STREAMS:
        if container.exists(stream_name):
            return kind
    return ""


class OleDocument:
    """Legacy Office document exposing its container and property sets."""

    def __init__(self, source: OleSource, *, limits: DecodeLimits = DEFAULT_DECODE_LIMITS):
        self._container = open_container(source)
        self._limits = limits
        self._closed = False
        self.kind = detect_document_kind(self._container)
        self._summary: Optional[SummaryInformation] = None
        self._document_summary: Optional[DocumentSummaryInformation] = None
        self._loaded: set[str] = set()
        logger.debug(f"Opened OLE document of kind [{self.kind or 'unknown'}]")

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def container(self) -> olefile.OleFileIO:
        if self._closed:
            raise ContainerClosedError("Document has been closed")
        return self._container

    def _read_property_set(self, stream_name: str) -> Optional[PropertySet]:
        container = self.container
        if not container.exists(stream_name):
            logger.debug(f"Stream [{stream_name!r}] not present")
            return None
        with container.openstream(stream_name) as stream:
            return parse_property_set(stream, limits=self._limits)

    @property
    def summary_information(self) -> Optional[SummaryInformation]:
        if SUMMARY_INFORMATION_STREAM not in self._loaded:
            property_set = self._read_property_set(SUMMARY_INFORMATION_STREAM)
            if property_set is not None:
                self._summary = SummaryInformation(property_set)
            self._loaded.add(SUMMARY_INFORMATION_STREAM)
        return self._summary

    @property
    def document_summary_information(self) -> Optional[DocumentSummaryInformation]:
        if DOCUMENT_SUMMARY_INFORMATION_STREAM not in self._loaded:
            property_set = self._read_property_set(DOCUMENT_SUMMARY_INFORMATION_STREAM)
            if property_set is not None:
                self._document_summary = DocumentSummaryInformation(property_set)
            self._loaded.add(DOCUMENT_SUMMARY_INFORMATION_STREAM)
        return self._document_summary

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._container.close()

    def __enter__(self) -> "OleDocument":
        return self

    def __exit__(self, *args) -> None:
        self.close()
