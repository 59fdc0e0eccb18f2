"""Command facade: the four file operations exposed to the host application.

Every command validates its arguments, runs synchronously and returns a
CommandResult. Library errors are turned into a user-displayable message and
never propagate to the caller.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar, Union

from ..io.dxf_reader import read_dxf, read_dxf_file
from ..io.dxf_writer import write_dxf_file
from ..io.native_format import load_document, save_document
from .errors import CommandArgumentError, DXFImportError, EasyDraftError
from .models import Drawing

logger = logging.getLogger(__name__)

T = TypeVar("T")

PathLike = Union[str, "os.PathLike[str]"]


@dataclass
class CommandResult(Generic[T]):
    """Outcome of a facade command."""

    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    @classmethod
    def success(
        cls, value: Optional[T] = None, warnings: Optional[List[str]] = None
    ) -> "CommandResult[T]":
        return cls(ok=True, value=value, warnings=list(warnings or []))

    @classmethod
    def failure(
        cls, error: str, warnings: Optional[List[str]] = None
    ) -> "CommandResult[T]":
        return cls(ok=False, error=error, warnings=list(warnings or []))


def _check_path(path: Any, must_exist: bool) -> Path:
    """Validate a command path argument.

    Args:
        path: Path given by the host
        must_exist: True for a file to read, False for a file to write

    Returns:
        Validated path

    Raises:
        CommandArgumentError: If the path cannot be used
    """
    if not isinstance(path, (str, os.PathLike)):
        raise CommandArgumentError(f"Path must be a string, got {type(path).__name__}")
    text = os.fspath(path)
    if not isinstance(text, str):
        raise CommandArgumentError("Path must be a string")
    if not text.strip():
        raise CommandArgumentError("Path must not be empty")
    if "\x00" in text:
        raise CommandArgumentError("Path must not contain a NUL character")

    file_path = Path(text)
    if file_path.is_dir():
        raise CommandArgumentError(f"Path is a directory: {file_path}")
    if must_exist and not file_path.is_file():
        raise CommandArgumentError(f"File not found: {file_path}")
    if not must_exist:
        parent = file_path.parent
        if not parent.is_dir():
            raise CommandArgumentError(f"Directory does not exist: {parent}")
    return file_path


def _check_drawing(drawing: Any) -> Drawing:
    if not isinstance(drawing, Drawing):
        raise CommandArgumentError(
            f"Expected a Drawing, got {type(drawing).__name__}"
        )
    return drawing


def _run(name: str, action: Callable[[], CommandResult]) -> CommandResult:
    """Run a command body and convert every failure into a CommandResult."""
    try:
        return action()
    except DXFImportError as e:
        logger.warning(f"{name} failed: {e}")
        return CommandResult.failure(
            e.user_message(), [str(w) for w in e.warnings]
        )
    except EasyDraftError as e:
        logger.warning(f"{name} failed: {e}")
        return CommandResult.failure(e.user_message())
    except Exception as e:
        # Nothing may escape into the host application
        logger.exception(f"Unexpected error in {name}")
        return CommandResult.failure(f"Internal error: {e}")


def save_file(drawing: Drawing, path: PathLike) -> CommandResult[None]:
    """Save a drawing as a native document.

    Args:
        drawing: Drawing to save
        path: Target file; its directory must exist

    Returns:
        CommandResult with no value
    """

    def action() -> CommandResult:
        target = _check_path(path, must_exist=False)
        save_document(_check_drawing(drawing), target)
        return CommandResult.success()

    return _run("save_file", action)


def load_file(path: PathLike) -> CommandResult[Drawing]:
    """Load a drawing from a native document.

    Returns:
        CommandResult holding the loaded Drawing
    """

    def action() -> CommandResult:
        source = _check_path(path, must_exist=True)
        return CommandResult.success(load_document(source))

    return _run("load_file", action)


def export_dxf(drawing: Drawing, path: PathLike) -> CommandResult[None]:
    """Export a drawing to a DXF file."""

    def action() -> CommandResult:
        target = _check_path(path, must_exist=False)
        write_dxf_file(_check_drawing(drawing), target)
        return CommandResult.success()

    return _run("export_dxf", action)


def import_dxf(source: Union[PathLike, bytes]) -> CommandResult[Drawing]:
    """Import a DXF file from disk or from an in-memory buffer.

    Args:
        source: Path of a DXF file, or the raw DXF content as bytes

    Returns:
        CommandResult holding the imported Drawing and the import warnings
    """

    def action() -> CommandResult:
        if isinstance(source, (bytes, bytearray)):
            if not source:
                raise CommandArgumentError("DXF buffer must not be empty")
            result = read_dxf(bytes(source))
        else:
            result = read_dxf_file(_check_path(source, must_exist=True))
        return CommandResult.success(
            result.drawing, [str(w) for w in result.warnings]
        )

    return _run("import_dxf", action)


COMMANDS: Dict[str, Callable[..., CommandResult]] = {
    "save_file": save_file,
    "load_file": load_file,
    "export_dxf": export_dxf,
    "import_dxf": import_dxf,
}


def dispatch(name: str, *args: Any) -> CommandResult:
    """Execute a command by name.

    Args:
        name: Key of COMMANDS
        *args: Positional arguments of the command

    Returns:
        The command's result, or a failed result for an unknown name or
        a wrong number of arguments
    """
    command = COMMANDS.get(name)
    if command is None:
        return CommandResult.failure(f"Unknown command: {name}")
    try:
        return command(*args)
    except TypeError as e:
        return CommandResult.failure(f"Invalid arguments for {name}: {e}")
