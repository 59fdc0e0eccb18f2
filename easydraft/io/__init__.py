"""Input/Output operations for DXF files and native documents."""

from .dxf_reader import DXFReader, ImportResult, ImportWarning, read_dxf, read_dxf_file
from .dxf_tokenizer import Token, TokenStream, tokenize
from .dxf_writer import DXFWriter, write_dxf_file
from .native_format import NativeFormat, load_document, save_document

__all__ = [
    "DXFReader",
    "DXFWriter",
    "ImportResult",
    "ImportWarning",
    "NativeFormat",
    "Token",
    "TokenStream",
    "tokenize",
    "read_dxf",
    "read_dxf_file",
    "write_dxf_file",
    "load_document",
    "save_document",
]
