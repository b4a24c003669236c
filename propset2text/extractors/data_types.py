import typing
from abc import abstractmethod
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import List, Optional, Protocol


@dataclass
class FileMetadataInterface:
    filename: str | None = None
    file_extension: str | None = None
    file_path: str | None = None
    folder_path: str | None = None

    def populate_from_path(self, path: str | Path | None) -> None:
        """Populate file metadata fields from a path."""
        if path is None:
            return
        p = Path(path)
        self.filename = p.name
        self.file_extension = p.suffix
        self.file_path = str(p.resolve()) if p.exists() else str(p)
        self.folder_path = (
            str(p.parent.resolve()) if p.parent.exists() else str(p.parent)
        )

    def to_dict(self) -> dict:
        return asdict(self)


class ExtractionInterface(Protocol):
    @abstractmethod
    def iterator(self) -> typing.Iterator[str]:
        """
        Returns an iterator over the extracted text blocks.
        For property sets these are the SummaryInformation block followed by
        the DocumentSummaryInformation block (custom properties included).
        """
        ...

    @abstractmethod
    def get_full_text(self) -> str:
        """All extracted text as one single block of text"""
        ...

    @abstractmethod
    def get_metadata(self) -> FileMetadataInterface:
        """Returns the metadata of the extracted file"""
        ...


###############
# property sets
###############


@dataclass
class PropertyEntry:
    # display name: PID_* for well-known ids, the dictionary name for custom ones
    name: str
    value: str

    def to_line(self) -> str:
        return f"{self.name} = {self.value}\n"


@dataclass
class PropertiesThumbnail:
    clipboard_format_tag: int = 0
    clipboard_format: Optional[int] = None
    content_type: str = ""
    data: bytes = b""
    size_bytes: int = 0


@dataclass
class PropertiesMetadata(FileMetadataInterface):
    # "doc", "xls", "ppt", "vsd" or "" when the main stream is unknown
    document_kind: str = ""
    has_summary_information: bool = False
    has_document_summary_information: bool = False
    codepage: Optional[int] = None


@dataclass
class PropertiesContent(ExtractionInterface):
    summary_information: List[PropertyEntry] = field(default_factory=list)
    document_summary_information: List[PropertyEntry] = field(default_factory=list)
    custom_properties: List[PropertyEntry] = field(default_factory=list)
    thumbnail: Optional[PropertiesThumbnail] = None
    metadata: PropertiesMetadata = field(default_factory=PropertiesMetadata)

    def get_summary_information_text(self) -> str:
        return "".join(entry.to_line() for entry in self.summary_information)

    def get_document_summary_information_text(self) -> str:
        return "".join(
            entry.to_line()
            for entry in self.document_summary_information + self.custom_properties
        )

    def iterator(self) -> typing.Iterator[str]:
        yield self.get_summary_information_text()
        yield self.get_document_summary_information_text()

    def get_full_text(self) -> str:
        return "".join(self.iterator())

    def get_metadata(self) -> PropertiesMetadata:
        return self.metadata
