"""Core compiler data: source files, positions, diagnostics and tokens."""

from __future__ import annotations

import dataclasses
import os
import sys
from dataclasses import dataclass, field
from enum import IntEnum
from typing import BinaryIO, Iterable, TextIO

_INT_MAX = 2**31 - 1
_U64_MASK = 2**64 - 1


class DiagLevel(IntEnum):
    """Diagnostic message severity level."""

    HINT = 0
    INFO = 1
    WARN = 2
    ERR = 3


class TokenType(IntEnum):
    """Token type."""

    KEYWORD = 0
    IDENT = 1
    ICONST = 2
    CCONST = 3
    SCONST = 4
    OTHER = 5
    GARBAGE = 6
    EOL = 7
    EOF = 8
    AST = 9


@dataclass
class Pos:
    """Position in a source file: zero-indexed line and column, byte offset and length."""

    srcfile: SourceFile | None = None
    incfile: IncludeFile | None = None
    line: int = 0
    col: int = 0
    off: int = 0
    len: int = 0


@dataclass
class IncludeFile:
    """Include file instance."""

    srcfile: SourceFile
    inc_from: Pos


class SourceFile:
    """A source file, either held in memory or read from disk."""

    def __init__(
        self,
        ctx: CompilerContext,
        path: str,
        *,
        content: bytes | None = None,
        fd: BinaryIO | None = None,
    ) -> None:
        self.ctx = ctx
        self.path = path
        self.name = os.path.basename(path)
        self.is_ram_file = content is not None
        self.content = content
        self._fd = fd
        self._fd_off = 0

    def __repr__(self) -> str:
        kind = "ram" if self.is_ram_file else "disk"
        return f"SourceFile({self.path!r}, {kind})"

    def _read_raw(self, off: int) -> int:
        """Read the byte at `off`, or -1 at end of file."""
        if self.is_ram_file:
            assert self.content is not None
            if off >= len(self.content):
                return -1
            return self.content[off]
        if self._fd is None:
            raise ValueError(f"source file {self.path!r} is closed")
        if self._fd_off != off:
            self._fd.seek(off)
            self._fd_off = off
        data = self._fd.read(1)
        if not data:
            return -1
        self._fd_off += 1
        return data[0]

    def getc(self, pos: Pos) -> str:
        """Read one character at `pos` and advance it.

        Line endings (CR, LF and CRLF) are all returned as ``"\\n"``.
        Returns an empty string at end of file.
        """
        c = self._read_raw(pos.off)
        if c != -1:
            pos.off += 1
        if c == 0x0D:
            if self._read_raw(pos.off) == 0x0A:
                pos.off += 1
            pos.line += 1
            pos.col = 0
            return "\n"
        if c == 0x0A:
            pos.line += 1
            pos.col = 0
            return "\n"
        pos.col += 1
        return "" if c == -1 else chr(c)

    def close(self) -> None:
        """Release the file's resources."""
        if self._fd is not None:
            self._fd.close()
            self._fd = None
        self.content = None if not self.is_ram_file else self.content


@dataclass
class Diagnostic:
    """Diagnostic message."""

    pos: Pos
    lvl: DiagLevel
    msg: str


class CompilerContext:
    """Compilation context: open source files and collected diagnostics."""

    def __init__(self) -> None:
        self.sources: list[SourceFile] = []
        self.diagnostics: list[Diagnostic] = []

    def diagnostic(self, pos: Pos, lvl: DiagLevel, msg: str) -> Diagnostic:
        """Record a diagnostic message and return it."""
        diag = Diagnostic(pos=pos, lvl=DiagLevel(lvl), msg=msg)
        self.diagnostics.append(diag)
        return diag

    def open_source(self, path: str | os.PathLike[str]) -> SourceFile:
        """Open a source file from disk; raises OSError if it cannot be opened."""
        path_str = os.fspath(path)
        fd = open(path_str, "rb")
        file = SourceFile(self, path_str, fd=fd)
        self.sources.append(file)
        return file

    def create_source(self, virt_path: str, data: bytes | str) -> SourceFile:
        """Create an in-memory source file from binary data."""
        if isinstance(data, str):
            data = data.encode()
        if len(data) > _INT_MAX:
            raise ValueError("source data is too large")
        file = SourceFile(self, virt_path, content=bytes(data))
        self.sources.append(file)
        return file

    def close(self) -> None:
        """Close all source files and drop all diagnostics."""
        for src in self.sources:
            src.close()
        self.sources.clear()
        self.diagnostics.clear()

    def __enter__(self) -> CompilerContext:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


def pos_between(start: Pos, end: Pos) -> Pos:
    """Position from start to end (exclusive)."""
    return dataclasses.replace(start, len=end.off - start.off)


def pos_including(start: Pos, end: Pos) -> Pos:
    """Position from start to end (inclusive)."""
    return dataclasses.replace(start, len=end.off - start.off + end.len)


_DIAG_PREFIX = {
    DiagLevel.ERR: "\033[31merror",
    DiagLevel.WARN: "\033[33mwarning",
    DiagLevel.INFO: "\033[34minfo",
    DiagLevel.HINT: "\033[35mhint",
}


def format_diagnostic(diag: Diagnostic) -> str:
    """Format a diagnostic as a coloured terminal line (without newline)."""
    prefix = _DIAG_PREFIX[diag.lvl]
    if diag.pos.srcfile is not None:
        where = f"{diag.pos.srcfile.path}:{diag.pos.line + 1}:{diag.pos.col + 1}"
    else:
        where = "???:?:?"
    return f"\033[34;1m{where}: {prefix}: \033[0m{diag.msg}\033[0m"


def print_diagnostic(diag: Diagnostic, file: TextIO | None = None) -> None:
    """Print a diagnostic to `file` (standard output by default)."""
    print(format_diagnostic(diag), file=file if file is not None else sys.stdout)


@dataclass
class Token:
    """Token or AST node."""

    pos: Pos = field(default_factory=Pos)
    type: TokenType = TokenType.AST
    subtype: int = 0
    strval: str | bytes | None = None
    ival: int = 0
    params: list[Token] = field(default_factory=list)

    def append_param(self, param: Token) -> None:
        """Append one parameter to this AST node."""
        self.params.append(param)

    def append_params(self, params: Iterable[Token]) -> None:
        """Append several parameters to this AST node."""
        self.params.extend(params)

    def with_strval(self, strval: str | bytes | None) -> Token:
        """Copy of this token with a different string value."""
        return dataclasses.replace(self, strval=strval)

    def with_ival(self, ival: int) -> Token:
        """Copy of this token with a different integer value (kept to 64 bits)."""
        return dataclasses.replace(self, ival=ival & _U64_MASK)

    def with_pos(self, pos: Pos) -> Token:
        """Copy of this token with a different position."""
        return dataclasses.replace(self, pos=pos)


def ast_empty(subtype: int, pos: Pos) -> Token:
    """Create an empty AST node with a position."""
    return Token(pos=pos, type=TokenType.AST, subtype=subtype)


def ast_from(subtype: int, params: Iterable[Token]) -> Token:
    """Create an AST node whose position spans all of its parameters."""
    params = list(params)
    min_pos = Pos()
    max_pos = Pos()
    for param in params:
        p = param.pos
        if min_pos.srcfile is None or p.off < min_pos.off:
            min_pos = p
        if max_pos.srcfile is None or p.off + p.len > max_pos.off + max_pos.len:
            max_pos = p
    return Token(
        pos=pos_including(min_pos, max_pos),
        type=TokenType.AST,
        subtype=subtype,
        params=params,
    )