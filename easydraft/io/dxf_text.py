"""DXF string value encoding: caret escapes, unicode escapes and MTEXT codes."""

from ezdxf.lldxf.encoding import decode_dxf_unicode, has_dxf_unicode
from ezdxf.tools.text import caret_decode, plain_mtext


def _decode_unicode(value: str) -> str:
    if not has_dxf_unicode(value):
        return value
    value = decode_dxf_unicode(value)
    # Characters outside the BMP arrive as surrogate pairs
    return value.encode("utf-16", "surrogatepass").decode("utf-16", "replace")


def decode_dxf_string(value: str) -> str:
    """Decode unicode (\\U+00E4) and caret (^J) escapes in a DXF string."""
    value = _decode_unicode(value)
    if "^" in value:
        value = caret_decode(value)
    return value


def encode_dxf_string(value: str) -> str:
    """Encode a string as a single-line, ASCII-only DXF value.

    Trailing spaces are written as unicode escapes, since many readers
    strip trailing whitespace from value lines.
    """
    chars = []
    for ch in value:
        code = ord(ch)
        if ch == "^":
            chars.append("^ ")
        elif code < 32:
            chars.append("^" + chr(code + 64))
        elif code < 128:
            chars.append(ch)
        elif code <= 0xFFFF:
            chars.append(f"\\U+{code:04X}")
        else:
            high, low = divmod(code - 0x10000, 0x400)
            chars.append(f"\\U+{0xD800 + high:04X}\\U+{0xDC00 + low:04X}")
    encoded = "".join(chars)
    stripped = encoded.rstrip(" ")
    return stripped + "\\U+0020" * (len(encoded) - len(stripped))


def clean_mtext(value: str) -> str:
    """Convert raw MTEXT content to plain text, keeping paragraph breaks.

    Caret escapes are decoded by the MTEXT parser, so pass the value
    without running decode_dxf_string() on it first.
    """
    return plain_mtext(_decode_unicode(value)).strip()
