"""DXF tokenizer: turns text DXF content into (group code, value) tokens.

Line pairing is done by ezdxf's ASCII tag loader; this module adds value
typing, line numbers and the error kinds the reader recovers from.
"""

import io
import logging
import math
from enum import Enum
from typing import Iterator, NamedTuple, Union

from ezdxf.lldxf.const import DXFStructureError
from ezdxf.lldxf.tagger import ascii_tags_loader
from ezdxf.lldxf.types import DXFTag, tag_type

from ..config import BINARY_DXF_SENTINEL
from ..core.errors import TokenizeError, TokenizeErrorKind

logger = logging.getLogger(__name__)

# Text content keeps its whitespace, other string values lose trailing blanks
TEXT_CODES = {1, 3}


class ValueType(str, Enum):
    """Value type of a DXF group code."""

    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"


_VALUE_TYPES = {int: ValueType.INTEGER, float: ValueType.FLOAT}

TokenValue = Union[str, int, float]


def group_code_type(code: int) -> ValueType:
    """Get the value type for a group code.

    Codes missing from the ezdxf type table are treated as strings.
    """
    return _VALUE_TYPES.get(tag_type(code), ValueType.STRING)


class Token(NamedTuple):
    """A single DXF group code/value pair."""

    code: int
    value: TokenValue
    line: int  # 1-based line number of the group code


def decode_dxf_bytes(data: bytes) -> str:
    """Decode raw DXF bytes to text.

    Args:
        data: File content

    Returns:
        Decoded text (UTF-8, falling back to cp1252 for legacy files)

    Raises:
        TokenizeError: If the content is a binary DXF file
    """
    if data.startswith(BINARY_DXF_SENTINEL):
        raise TokenizeError(
            TokenizeErrorKind.UNSUPPORTED_ENCODING,
            "Binary DXF files are not supported, save as ASCII DXF",
            line=1,
        )
    if data.startswith(b"\xef\xbb\xbf"):
        data = data[3:]
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        logger.info("DXF content is not UTF-8, decoding as cp1252")
        return data.decode("cp1252", errors="replace")


def _parse_value(code: int, raw: str, line: int) -> TokenValue:
    value_type = group_code_type(code)
    if value_type is ValueType.STRING:
        return raw if code in TEXT_CODES else raw.rstrip()

    text = raw.strip()
    try:
        if value_type is ValueType.INTEGER:
            try:
                return int(text)
            except ValueError:
                # Some writers emit integers with a decimal part
                number = float(text)
                if not number.is_integer():
                    raise
                return int(number)
        number = float(text)
    except ValueError:
        raise TokenizeError(
            TokenizeErrorKind.MALFORMED_NUMBER,
            f"Group code {code} expects a number, got {text!r}",
            line=line,
        )
    if not math.isfinite(number):
        raise TokenizeError(
            TokenizeErrorKind.MALFORMED_NUMBER,
            f"Group code {code} value {text!r} is not finite",
            line=line,
        )
    return number


class _LineReader:
    """Text stream for the tag loader that counts the lines it hands out."""

    def __init__(self, text: str) -> None:
        self._stream = io.StringIO(text)
        self.lines = 0
        self.last = ""

    def readline(self) -> str:
        line = self._stream.readline()
        if line:
            self.lines += 1
            self.last = line
        return line

    def rest_is_blank(self) -> bool:
        return not self.last.strip() and not self._stream.read().strip()


class TokenStream:
    """Lazy iterator of DXF tokens over the lines of a text DXF file.

    The stream is not seekable; re-tokenize the content to start over. When a
    MALFORMED_NUMBER error is raised the offending pair has already been
    consumed, so iteration may continue with the next pair. The other error
    kinds leave the stream unusable. Content after the EOF marker is ignored.
    """

    def __init__(self, content: Union[str, bytes]) -> None:
        """Initialize token stream.

        Args:
            content: DXF file content as text or raw bytes
        """
        if isinstance(content, (bytes, bytearray)):
            content = decode_dxf_bytes(bytes(content))
        # splitlines() would also split on form feeds and other separators
        text = content.replace("\r\n", "\n").replace("\r", "\n")
        self._reader = _LineReader(text)
        self._tags: Iterator[DXFTag] = ascii_tags_loader(
            self._reader, skip_comments=False
        )
        self._done = False
        self.count = 0

    def __iter__(self) -> "TokenStream":
        return self

    def __next__(self) -> Token:
        if self._done:
            raise StopIteration
        try:
            tag = next(self._tags)
        except StopIteration:
            self._done = True
            if self._reader.lines % 2:
                raise TokenizeError(
                    TokenizeErrorKind.UNEXPECTED_EOF,
                    f"Group code {self._reader.last.strip()} has no value",
                    line=self._reader.lines,
                )
            raise
        except DXFStructureError:
            self._done = True
            if self._reader.rest_is_blank():
                raise StopIteration
            raise TokenizeError(
                TokenizeErrorKind.UNPAIRED_GROUP_CODE,
                f"Expected an integer group code, got {self._reader.last.strip()!r}",
                line=self._reader.lines,
            )

        # The loader has read the group code line and its value line
        code_line = self._reader.lines - 1
        value = _parse_value(tag.code, tag.value, code_line + 1)
        self.count += 1
        return Token(tag.code, value, code_line)


def tokenize(content: Union[str, bytes]) -> Iterator[Token]:
    """Tokenize DXF content.

    Args:
        content: DXF file content as text or raw bytes

    Returns:
        Lazy token iterator
    """
    return TokenStream(content)
