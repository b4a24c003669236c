"""
propset2text: Property set metadata extraction for OLE2 compound documents.

Decodes the SummaryInformation and DocumentSummaryInformation property sets
of legacy Office documents (.doc, .xls, .ppt, .vsd, ...) including custom
properties and the embedded thumbnail, and renders them as
``NAME = value`` text.
"""

import io
from pathlib import Path
from typing import Any, Generator

from propset2text.exceptions import (
    CodepageUnsupportedError,
    ContainerClosedError,
    ExtractionError,
    ExtractionFileFormatNotSupportedError,
    MarkUnsupportedError,
    NotAPropertySetStreamError,
    PropertyDecodeError,
)
from propset2text.extractors.data_types import PropertiesContent
from propset2text.extractors.ole_document import OleDocument
from propset2text.extractors.properties_extractor import PropertiesExtractor
from propset2text.hpsf.property_set import PropertySet, parse_property_set
from propset2text.hpsf.summary import DocumentSummaryInformation, SummaryInformation
from propset2text.hpsf.thumbnail import Thumbnail

__version__ = "0.1.0"


def read_properties(
    file_like: io.BytesIO, path: str | None = None
) -> Generator[PropertiesContent, Any, None]:
    """Extract the property sets of a compound document held in memory."""
    from propset2text.extractors.properties_extractor import (
        read_properties as _read_properties,
    )

    return _read_properties(file_like, path)


def read_file(
    path: str | Path,
) -> Generator[PropertiesContent, Any, None]:
    """
    Read and extract the property sets of a compound document file.

    Args:
        path: Path to the file to read.

    Yields:
        A single PropertiesContent with the rendered Summary,
        DocumentSummary and custom properties.

    Raises:
        ExtractionFileFormatNotSupportedError: The file is not an OLE2
            compound document.
        NotAPropertySetStreamError: A property set stream is malformed.
        FileNotFoundError: If the file does not exist.

    Example:
        >>> import propset2text
        >>> for result in propset2text.read_file("document.doc"):
        ...     print(result.get_full_text())
    """
    path = Path(path)
    with open(path, "rb") as f:
        yield from read_properties(io.BytesIO(f.read()), str(path))


__all__ = [
    # Version
    "__version__",
    # Main functions
    "read_file",
    "read_properties",
    "parse_property_set",
    # Classes
    "PropertiesExtractor",
    "PropertiesContent",
    "OleDocument",
    "PropertySet",
    "SummaryInformation",
    "DocumentSummaryInformation",
    "Thumbnail",
    # Errors
    "ExtractionError",
    "ExtractionFileFormatNotSupportedError",
    "NotAPropertySetStreamError",
    "MarkUnsupportedError",
    "PropertyDecodeError",
    "CodepageUnsupportedError",
    "ContainerClosedError",
]
