"""Error taxonomy for drawing validation, DXF exchange and persistence."""

from enum import Enum
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from ..io.dxf_reader import ImportWarning


class ValidationErrorKind(str, Enum):
    """Geometry model invariant violations."""

    INVALID_GEOMETRY = "InvalidGeometry"
    DUPLICATE_LAYER = "DuplicateLayer"
    DUPLICATE_BLOCK = "DuplicateBlock"
    DANGLING_REFERENCE = "DanglingReference"


class TokenizeErrorKind(str, Enum):
    """Lexical problems in DXF content."""

    UNPAIRED_GROUP_CODE = "UnpairedGroupCode"
    MALFORMED_NUMBER = "MalformedNumber"
    UNEXPECTED_EOF = "UnexpectedEof"
    UNSUPPORTED_ENCODING = "UnsupportedEncoding"


class ExportErrorKind(str, Enum):
    """DXF export failures."""

    UNSUPPORTED_ENTITY = "UnsupportedEntity"
    IO_FAILURE = "IoFailure"


class PersistErrorKind(str, Enum):
    """Native document persistence failures."""

    IO_FAILURE = "IoFailure"
    CORRUPT_DATA = "CorruptData"
    VERSION_MISMATCH = "VersionMismatch"


class EasyDraftError(Exception):
    """Base class for all errors raised by easydraft."""

    category = "Error"

    def user_message(self) -> str:
        """Format the error for display by the host application."""
        return f"{self.category}: {self}"


class ValidationError(EasyDraftError, ValueError):
    """A drawing or entity violates a geometry model invariant."""

    category = "Invalid drawing"

    def __init__(self, kind: ValidationErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind


class TokenizeError(EasyDraftError):
    """Malformed DXF lexical structure."""

    category = "Malformed DXF"

    def __init__(
        self, kind: TokenizeErrorKind, message: str, line: Optional[int] = None
    ) -> None:
        if line is not None:
            message = f"{message} (line {line})"
        super().__init__(message)
        self.kind = kind
        self.line = line


class DXFImportError(EasyDraftError):
    """Fatal structural problem while importing a DXF file.

    Carries the non-fatal warnings collected before the failure so the host
    can still show them.
    """

    category = "DXF import failed"

    def __init__(
        self, message: str, warnings: Optional[List["ImportWarning"]] = None
    ) -> None:
        super().__init__(message)
        self.warnings = list(warnings or [])


class ExportError(EasyDraftError):
    """DXF export failure."""

    category = "DXF export failed"

    def __init__(self, kind: ExportErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind


class PersistError(EasyDraftError):
    """Native document save/load failure."""

    category = "Document error"

    def __init__(self, kind: PersistErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind


class CommandArgumentError(EasyDraftError):
    """A command received an unusable path or buffer."""

    category = "Invalid argument"
