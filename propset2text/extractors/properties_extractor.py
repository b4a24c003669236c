"""
Property Set Extractor
======================

Renders the SummaryInformation and DocumentSummaryInformation property sets
of an OLE2 compound document as text, one ``NAME = value`` line per
property:

    PID_TITLE = Quarterly report
    PID_AUTHOR = marshall
    PID_CODEPAGE = 1252
    PID_COMPANY = Schreiner
    Client = sample client

Summary properties come first, then DocumentSummary properties, then the
custom (user-defined) properties named by the dictionary of the
DocumentSummary stream's second section. Within a section properties keep
the order of the section's property table.

Sources
-------
PropertiesExtractor accepts three kinds of sources, each wrapped in a
ContainerSource adapter:

    - an ``olefile.OleFileIO`` container: owned by default, closed by
      PropertiesExtractor.close()
    - a document handle exposing ``container`` (e.g. OleDocument): borrowed,
      its pre-parsed ``summary_information`` views are reused
    - another PropertiesExtractor: its container is shared, never closed here

Usage
-----
    >>> from propset2text.extractors.properties_extractor import PropertiesExtractor
    >>> with PropertiesExtractor.from_path("report.doc") as extractor:
    ...     print(extractor.get_text())
"""

import io
import logging
from pathlib import Path
from typing import Any, Generator, Optional, Protocol, Union

import olefile

from propset2text.exceptions import (
    ContainerClosedError,
    ExtractionError,
    NotAPropertySetStreamError,
)
from propset2text.extractors.data_types import (
    PropertiesContent,
    PropertiesMetadata,
    PropertiesThumbnail,
    PropertyEntry,
)
from propset2text.extractors.ole_document import (
    OleSource,
    detect_document_kind,
    open_container,
)
from propset2text.hpsf.codepage import normalize_codepage
from propset2text.hpsf.limits import DEFAULT_DECODE_LIMITS, DecodeLimits
from propset2text.hpsf.names import (
    DOCUMENT_SUMMARY_INFORMATION_STREAM,
    DURATION_PROPERTIES,
    PID_CODEPAGE,
    SUMMARY_INFORMATION_STREAM,
    property_display_name,
)
from propset2text.hpsf.property_set import PropertySet, parse_property_set
from propset2text.hpsf.section import Section
from propset2text.hpsf.summary import DocumentSummaryInformation, SummaryInformation
from propset2text.hpsf.thumbnail import Thumbnail
from propset2text.hpsf.variant import TypedValue, render_value

logger = logging.getLogger(__name__)

_MISSING = object()

# =============================================================================
# Container sources
# =============================================================================


class ContainerSource(Protocol):
    """Anything that yields a compound-file container and its property sets."""

    @property
    def closed(self) -> bool: ...

    def get_container(self) -> olefile.OleFileIO: ...

    def read_property_set(
        self, stream_name: str, limits: DecodeLimits
    ) -> Optional[PropertySet]: ...

    def close(self) -> None: ...


class OleContainerSource:
    """Adapter over a bare olefile container."""

    def __init__(self, container: olefile.OleFileIO):
        self._container = container
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def get_container(self) -> olefile.OleFileIO:
        if self._closed:
            raise ContainerClosedError("Container has been closed")
        return self._container

    def read_property_set(
        self, stream_name: str, limits: DecodeLimits
    ) -> Optional[PropertySet]:
        container = self.get_container()
        if not container.exists(stream_name):
            logger.debug(f"Stream [{stream_name!r}] not present")
            return None
        with container.openstream(stream_name) as stream:
            return parse_property_set(stream, limits=limits)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._container.close()


class DocumentSource:
    """Adapter over a document handle that forwards its container."""

    def __init__(self, document: Any):
        self._document = document

    @property
    def closed(self) -> bool:
        return bool(getattr(self._document, "closed", False))

    def get_container(self) -> olefile.OleFileIO:
        if self.closed:
            raise ContainerClosedError("Document has been closed")
        return self._document.container

    def read_property_set(
        self, stream_name: str, limits: DecodeLimits
    ) -> Optional[PropertySet]:
        # Reuse the document's parsed views when it offers them
        accessor = {
            SUMMARY_INFORMATION_STREAM: "summary_information",
            DOCUMENT_SUMMARY_INFORMATION_STREAM: "document_summary_information",
        }[stream_name]
        if self.closed:
            raise ContainerClosedError("Document has been closed")
        view = getattr(self._document, accessor, _MISSING)
        if view is _MISSING:
            return OleContainerSource(self.get_container()).read_property_set(
                stream_name, limits
            )
        return view.property_set if view is not None else None

    def close(self) -> None:
        self._document.close()


class SharedExtractorSource:
    """Adapter sharing the container of another extractor."""

    def __init__(self, extractor: "PropertiesExtractor"):
        self._shared = extractor._source

    @property
    def closed(self) -> bool:
        return self._shared.closed

    def get_container(self) -> olefile.OleFileIO:
        return self._shared.get_container()

    def read_property_set(
        self, stream_name: str, limits: DecodeLimits
    ) -> Optional[PropertySet]:
        return self._shared.read_property_set(stream_name, limits)

    def close(self) -> None:
        # The container belongs to the extractor it was shared from
        logger.debug("Not closing a container shared from another extractor")


ExtractorSource = Union[olefile.OleFileIO, "PropertiesExtractor", Any]


def as_container_source(source: ExtractorSource) -> ContainerSource:
    if isinstance(source, PropertiesExtractor):
        return SharedExtractorSource(source)
    if isinstance(source, olefile.OleFileIO):
        return OleContainerSource(source)
    if hasattr(source, "container"):
        return DocumentSource(source)
    raise TypeError(f"Cannot extract properties from {type(source).__name__}")


# =============================================================================
# Rendering
# =============================================================================


def render_section_entries(section: Section) -> list[PropertyEntry]:
    """Well-known properties of a section, in property table order."""
    entries = []
    for property_id, value in section.properties.items():
        name = property_display_name(section.fmtid, property_id)
        if (
            property_id == PID_CODEPAGE
            and isinstance(value, TypedValue)
            and isinstance(value.value, int)
        ):
            # Stored as a signed VT_I2, so 65001 arrives as -535
            text = str(normalize_codepage(value.value))
        else:
            text = render_value(
                value, as_duration=(section.fmtid, property_id) in DURATION_PROPERTIES
            )
        entries.append(PropertyEntry(name=name, value=text))
    return entries


def render_custom_entries(
    document_summary: DocumentSummaryInformation,
) -> list[PropertyEntry]:
    return [
        PropertyEntry(name=name, value=render_value(value))
        for name, value in document_summary.custom_property_items()
    ]


def _entries_text(entries: list[PropertyEntry]) -> str:
    return "".join(entry.to_line() for entry in entries)


def _thumbnail_content(thumbnail: Thumbnail) -> PropertiesThumbnail:
    data = thumbnail.get_image()
    clipboard = thumbnail.clipboard_data
    return PropertiesThumbnail(
        clipboard_format_tag=clipboard.format_tag,
        clipboard_format=clipboard.format_code,
        content_type=thumbnail.get_content_type(),
        data=data,
        size_bytes=len(data),
    )


# =============================================================================
# Extractor
# =============================================================================


class PropertiesExtractor:
    """
    Text extractor for the property sets of a compound document.

    Args:
        source: An olefile container, a document handle with a ``container``
            attribute, or another PropertiesExtractor.
        owns_container: Whether close() releases the container. Defaults to
            True for bare containers and False for every other source.
        limits: Decoding bounds applied to every property set stream.
    """

    def __init__(
        self,
        source: ExtractorSource,
        *,
        owns_container: Optional[bool] = None,
        limits: DecodeLimits = DEFAULT_DECODE_LIMITS,
    ):
        self._source = as_container_source(source)
        if owns_container is None:
            owns_container = isinstance(source, olefile.OleFileIO)
        self._owns_container = owns_container
        self._limits = limits
        self._closed = False

    @classmethod
    def from_path(
        cls, path: Union[str, Path], *, limits: DecodeLimits = DEFAULT_DECODE_LIMITS
    ) -> "PropertiesExtractor":
        """Open a compound file and own its container."""
        return cls(open_container(path), owns_container=True, limits=limits)

    @classmethod
    def from_bytes(
        cls, data: OleSource, *, limits: DecodeLimits = DEFAULT_DECODE_LIMITS
    ) -> "PropertiesExtractor":
        return cls(open_container(data), owns_container=True, limits=limits)

    @property
    def owns_container(self) -> bool:
        return self._owns_container

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def container(self) -> olefile.OleFileIO:
        self._check_open()
        return self._source.get_container()

    def _check_open(self) -> None:
        if self._closed:
            raise ContainerClosedError("Extractor has been closed")
        if self._source.closed:
            raise ContainerClosedError("Underlying container has been closed")

    def _read_property_set(self, stream_name: str) -> Optional[PropertySet]:
        self._check_open()
        return self._source.read_property_set(stream_name, self._limits)

    # -------------------------------------------------------------------------
    # Parsed property sets
    # -------------------------------------------------------------------------

    def get_summary_information(self) -> Optional[SummaryInformation]:
        property_set = self._read_property_set(SUMMARY_INFORMATION_STREAM)
        return SummaryInformation(property_set) if property_set is not None else None

    def get_document_summary_information(self) -> Optional[DocumentSummaryInformation]:
        property_set = self._read_property_set(DOCUMENT_SUMMARY_INFORMATION_STREAM)
        if property_set is None:
            return None
        return DocumentSummaryInformation(property_set)

    def get_thumbnail(self) -> Optional[Thumbnail]:
        summary = self.get_summary_information()
        return summary.thumbnail if summary is not None else None

    # -------------------------------------------------------------------------
    # Text
    # -------------------------------------------------------------------------

    def _summary_entries(self) -> list[PropertyEntry]:
        summary = self.get_summary_information()
        if summary is None:
            return []
        return render_section_entries(summary.section)

    def _document_summary_entries(self) -> tuple[list[PropertyEntry], list[PropertyEntry]]:
        document_summary = self.get_document_summary_information()
        if document_summary is None:
            return [], []
        return (
            render_section_entries(document_summary.section),
            render_custom_entries(document_summary),
        )

    def get_summary_information_text(self) -> str:
        return _entries_text(self._summary_entries())

    def get_document_summary_information_text(self) -> str:
        """DocumentSummary properties followed by the custom properties."""
        standard, custom = self._document_summary_entries()
        return _entries_text(standard + custom)

    def get_text(self) -> str:
        """
        Summary text followed by DocumentSummary text.

        A stream that is not a property set renders as one failure line and
        does not hide the other stream.
        """
        parts = []
        for stream_name, render in (
            (SUMMARY_INFORMATION_STREAM, self.get_summary_information_text),
            (DOCUMENT_SUMMARY_INFORMATION_STREAM, self.get_document_summary_information_text),
        ):
            try:
                parts.append(render())
            except NotAPropertySetStreamError as exc:
                logger.warning(f"Stream [{stream_name!r}] is not a property set: {exc}")
                entry = PropertyEntry(
                    name=stream_name.lstrip("\x05"), value=f"(undecodable: {exc})"
                )
                parts.append(entry.to_line())
        return "".join(parts)

    def extract(self, path: Union[str, Path, None] = None) -> PropertiesContent:
        """Collect all property set content into a PropertiesContent."""
        summary = self.get_summary_information()
        document_summary = self.get_document_summary_information()

        metadata = PropertiesMetadata(
            document_kind=detect_document_kind(self.container),
            has_summary_information=summary is not None,
            has_document_summary_information=document_summary is not None,
            codepage=summary.codepage if summary is not None else None,
        )
        metadata.populate_from_path(path)

        content = PropertiesContent(metadata=metadata)
        if summary is not None:
            content.summary_information = render_section_entries(summary.section)
            thumbnail = summary.thumbnail
            if thumbnail is not None:
                content.thumbnail = _thumbnail_content(thumbnail)
        if document_summary is not None:
            content.document_summary_information = render_section_entries(
                document_summary.section
            )
            content.custom_properties = render_custom_entries(document_summary)
        return content

    # -------------------------------------------------------------------------
    # Resource handling
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """Release the container if this extractor owns it."""
        if self._closed:
            return
        self._closed = True
        if self._owns_container:
            logger.debug("Closing owned container")
            self._source.close()

    def __enter__(self) -> "PropertiesExtractor":
        return self

    def __exit__(self, *args) -> None:
        self.close()


# =============================================================================
# Main entry point
# =============================================================================


def read_properties(
    file_like: io.BytesIO, path: str | None = None
) -> Generator[PropertiesContent, Any, None]:
    """
    Extract the property sets of an OLE2 compound document.

    Uses a generator pattern for API consistency with the other readers.
    Compound documents yield exactly one PropertiesContent.

    Raises:
        ExtractionFileFormatNotSupportedError: Not a compound document.
        NotAPropertySetStreamError: A property set stream is malformed.
        ExtractionError: Any other extraction failure.
    """
    try:
        file_like.seek(0)
        with PropertiesExtractor(open_container(file_like)) as extractor:
            content = extractor.extract(path)
    except ExtractionError:
        raise
    except Exception as exc:
        raise ExtractionError("Failed to extract property sets", cause=exc) from exc
    yield content
