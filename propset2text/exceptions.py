class ExtractionError(Exception):
    """Base class for all errors raised while extracting property sets."""

    def __init__(self, message: str = None, *, cause: Exception = None):
        if message is None:
            message = "Property set extraction failed"
        super().__init__(message)
        # Use exception chaining if cause is provided
        self.__cause__ = cause


class ExtractionFileFormatNotSupportedError(ExtractionError):
    """Raised when the file is not an OLE2 compound document."""

    def __init__(self, file_path: str, message: str = None, *, cause: Exception = None):
        self.file_path = file_path
        if message is None:
            message = f"Extraction file format not supported: {file_path}"
        super().__init__(message, cause=cause)


class PropertySetError(ExtractionError):
    """Raised for structural failures of a single property set stream."""


class NotAPropertySetStreamError(PropertySetError):
    """Raised when a stream does not start with a property set header."""


class MarkUnsupportedError(PropertySetError):
    """Raised when the input stream cannot be rewound and re-read."""


class PropertyDecodeError(PropertySetError):
    """
    Raised when the bytes of a single property are malformed.

    The section parser catches this error and records a DecodeFailure value
    for the affected property instead of aborting the section.
    """


class CodepageUnsupportedError(PropertyDecodeError):
    """Raised when a string is declared in a codepage Python has no codec for."""

    def __init__(self, codepage: int, message: str = None, *, cause: Exception = None):
        self.codepage = codepage
        if message is None:
            message = f"Unsupported codepage: {codepage}"
        super().__init__(message, cause=cause)


class ContainerClosedError(ExtractionError):
    """Raised when an extractor is used after its owned container was closed."""
