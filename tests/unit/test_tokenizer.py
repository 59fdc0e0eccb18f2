"""Unit tests for the DXF tokenizer and string value encoding."""

import random

import pytest

from easydraft.config import BINARY_DXF_SENTINEL
from easydraft.core.errors import TokenizeError, TokenizeErrorKind
from easydraft.io.dxf_text import clean_mtext, decode_dxf_string, encode_dxf_string
from easydraft.io.dxf_tokenizer import (
    Token,
    ValueType,
    decode_dxf_bytes,
    group_code_type,
    tokenize,
)


def drain(content) -> int:
    """Consume a token stream the way the reader does.

    Returns:
        Number of tokens produced
    """
    stream = tokenize(content)
    count = 0
    while True:
        try:
            next(stream)
        except StopIteration:
            return count
        except TokenizeError as e:
            if e.kind is not TokenizeErrorKind.MALFORMED_NUMBER:
                return count
            continue
        count += 1


class TestGroupCodeTypes:
    """Test the group code value type table."""

    @pytest.mark.parametrize(
        "code,expected",
        [
            (0, ValueType.STRING),
            (8, ValueType.STRING),
            (10, ValueType.FLOAT),
            (42, ValueType.FLOAT),
            (62, ValueType.INTEGER),
            (70, ValueType.INTEGER),
            (100, ValueType.STRING),
            (210, ValueType.FLOAT),
            (330, ValueType.STRING),
            (999, ValueType.STRING),
            (1040, ValueType.FLOAT),
            (1071, ValueType.INTEGER),
        ],
    )
    def test_known_codes(self, code, expected):
        """Test value types of common group codes."""
        assert group_code_type(code) is expected

    def test_unknown_codes_are_strings(self):
        """Test the default for codes outside the table."""
        assert group_code_type(5000) is ValueType.STRING
        assert group_code_type(-1) is ValueType.STRING


class TestTokenize:
    """Test tokenizing DXF text."""

    def test_basic_pairs(self):
        """Test typed values and line numbers."""
        tokens = list(tokenize("0\nSECTION\n2\nENTITIES\n10\n1.5\n70\n3\n"))
        assert tokens == [
            Token(0, "SECTION", 1),
            Token(2, "ENTITIES", 3),
            Token(10, 1.5, 5),
            Token(70, 3, 7),
        ]
        assert isinstance(tokens[3].value, int)

    def test_whitespace_and_line_endings(self):
        """Test CRLF line endings and padded codes and numbers."""
        tokens = list(tokenize("  0\r\nLINE\r\n 10\r\n  2.25  \r\n"))
        assert tokens == [Token(0, "LINE", 1), Token(10, 2.25, 3)]

    def test_string_value_whitespace(self):
        """Test that names lose trailing whitespace and text keeps it."""
        tokens = list(tokenize("8\n  Walls  \n1\n  indented text  \n3\n \n"))
        assert [t.value for t in tokens] == ["  Walls", "  indented text  ", " "]

    def test_empty_string_value(self):
        """Test an empty value line."""
        tokens = list(tokenize("1\n\n0\nEOF\n"))
        assert tokens == [Token(1, "", 1), Token(0, "EOF", 3)]

    def test_trailing_blank_lines_ignored(self):
        """Test that blank lines at the end are not an unpaired code."""
        assert drain("0\nEOF\n\n\n  \n") == 1
        assert list(tokenize("0\nLINE\n\n  \n")) == [Token(0, "LINE", 1)]

    def test_empty_value_on_last_line(self):
        """Test that an empty value closing the file is kept."""
        tokens = list(tokenize("0\nTEXT\n1\n\n"))
        assert tokens == [Token(0, "TEXT", 1), Token(1, "", 3)]

    def test_content_after_eof_ignored(self):
        """Test that data beyond the EOF marker is not tokenized."""
        tokens = list(tokenize("0\nEOF\ngarbage\n0\nLINE\n"))
        assert tokens == [Token(0, "EOF", 1)]

    def test_integer_with_decimal_part(self):
        """Test integers written as floats."""
        tokens = list(tokenize("70\n1.0\n"))
        assert tokens[0].value == 1

        with pytest.raises(TokenizeError) as exc_info:
            list(tokenize("70\n1.5\n"))
        assert exc_info.value.kind is TokenizeErrorKind.MALFORMED_NUMBER

    def test_malformed_number_is_recoverable(self):
        """Test that iteration continues after a malformed number."""
        stream = tokenize("10\nabc\n20\n2.0\n")
        with pytest.raises(TokenizeError) as exc_info:
            next(stream)
        assert exc_info.value.kind is TokenizeErrorKind.MALFORMED_NUMBER
        assert exc_info.value.line == 2
        assert next(stream) == Token(20, 2.0, 3)

    def test_non_finite_numbers_rejected(self):
        """Test that nan and inf are malformed numbers."""
        for text in ("nan", "inf", "-Infinity"):
            with pytest.raises(TokenizeError) as exc_info:
                list(tokenize(f"10\n{text}\n"))
            assert exc_info.value.kind is TokenizeErrorKind.MALFORMED_NUMBER

    def test_unpaired_group_code(self):
        """Test a non-integer group code line."""
        stream = tokenize("0\nLINE\nLINE\n8\n")
        assert next(stream) == Token(0, "LINE", 1)
        with pytest.raises(TokenizeError) as exc_info:
            next(stream)
        assert exc_info.value.kind is TokenizeErrorKind.UNPAIRED_GROUP_CODE
        assert exc_info.value.line == 3
        assert "line 3" in str(exc_info.value)
        with pytest.raises(StopIteration):
            next(stream)

    def test_group_code_without_value(self):
        """Test a group code on the last line."""
        with pytest.raises(TokenizeError) as exc_info:
            list(tokenize("0\nSECTION\n2\n"))
        assert exc_info.value.kind is TokenizeErrorKind.UNEXPECTED_EOF

    def test_values_are_not_unescaped(self):
        """Test that caret escapes are left to the reader."""
        tokens = list(tokenize("1\nA^JB\n"))
        assert tokens[0].value == "A^JB"

    def test_token_count(self):
        """Test the number of produced tokens."""
        stream = tokenize("0\nSECTION\n2\nHEADER\n0\nENDSEC\n")
        list(stream)
        assert stream.count == 3

    def test_tokenizer_is_total(self):
        """Test that arbitrary input only ends or raises TokenizeError."""
        samples = [
            "",
            "\n",
            "0",
            "abc",
            "0\n",
            "999\ncomment only",
            "\x00\x01\x02",
            "10\n1e999\n70\n99999999999999999999\n",
            "70\ninf\n70\n-0\n",
            "-5\nnegative code\n",
        ]
        rng = random.Random(1234)
        alphabet = "0123456789 .-+eE\n\rABCxyz^\\"
        for _ in range(300):
            length = rng.randint(0, 60)
            samples.append("".join(rng.choice(alphabet) for _ in range(length)))
        for _ in range(100):
            samples.append(bytes(rng.randrange(256) for _ in range(rng.randint(0, 40))))

        for sample in samples:
            assert drain(sample) >= 0


class TestDecodeBytes:
    """Test raw DXF content decoding."""

    def test_binary_dxf_rejected(self):
        """Test that binary DXF is reported as unsupported."""
        with pytest.raises(TokenizeError) as exc_info:
            tokenize(BINARY_DXF_SENTINEL + b"\x00\x00")
        assert exc_info.value.kind is TokenizeErrorKind.UNSUPPORTED_ENCODING

    def test_utf8_with_bom(self):
        """Test that a UTF-8 byte order mark is dropped."""
        content = "\ufeff0\nEOF\n".encode("utf-8")
        assert decode_dxf_bytes(content) == "0\nEOF\n"
        assert list(tokenize(content)) == [Token(0, "EOF", 1)]

    def test_legacy_codepage_fallback(self):
        """Test that non-UTF-8 content is decoded as cp1252."""
        tokens = list(tokenize(b"1\ncaf\xe9\n"))
        assert tokens[0].value == "café"


class TestDXFStrings:
    """Test DXF string escapes."""

    @pytest.mark.parametrize(
        "text,encoded",
        [
            ("plain", "plain"),
            ("two\nlines", "two^Jlines"),
            ("tab\there", "tab^Ihere"),
            ("caret^", "caret^\\U+0020"),
            ("Room 1  ", "Room 1\\U+0020\\U+0020"),
            (" ", "\\U+0020"),
            ("x^ ", "x^\\U+0020\\U+0020"),
            ("^a", "^ a"),
            ("ä", "\\U+00E4"),
            ("\U0001F600", "\\U+D83D\\U+DE00"),
        ],
    )
    def test_encode_and_decode(self, text, encoded):
        """Test escaping of control, caret and non-ASCII characters."""
        assert encode_dxf_string(text) == encoded
        assert decode_dxf_string(encoded) == text

    def test_encoded_strings_are_ascii_single_line(self):
        """Test that encoded values fit on one ASCII line."""
        encoded = encode_dxf_string("a\r\nb\x00ö€")
        encoded.encode("ascii")
        assert "\n" not in encoded
        assert "\r" not in encoded

    def test_decode_lone_caret(self):
        """Test carets that do not start an escape."""
        assert decode_dxf_string("a^") == "a^"
        assert decode_dxf_string("^ ") == "^"

    def test_encoded_strings_survive_value_line_stripping(self):
        """Test that trailing spaces are not written as bare blanks."""
        for text in ("Room 1  ", " ", "\t "):
            encoded = encode_dxf_string(text)
            assert encoded == encoded.rstrip()
            assert decode_dxf_string(encoded.rstrip()) == text

    def test_clean_mtext(self):
        """Test removal of inline MTEXT formatting."""
        assert clean_mtext("{\\fArial|b0;Hello}\\PWorld") == "Hello\nWorld"
        assert clean_mtext("\\LUnder\\l\\~text") == "Under text"
        assert clean_mtext("\\H2.5;\\C1;Red") == "Red"
        assert clean_mtext("a\\\\b \\{c\\}") == "a\\b {c}"
