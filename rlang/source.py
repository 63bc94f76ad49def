"""Source files: loading, and mapping character offsets to locations."""

from __future__ import annotations

import bisect
from dataclasses import dataclass

from .errors import FileLocation, FileOpenFailure, FileReadFailure, RLangError
from .result import Err, Ok, Result


@dataclass(frozen=True)
class SourceInfo:
    filename: str
    lines: tuple[str, ...]
    line_ends: tuple[int, ...]
    """``line_ends[k]`` is the offset one past the end of line ``k`` (0-based)."""

    @classmethod
    def from_text(cls, filename: str, text: str) -> SourceInfo:
        lines = tuple(text.splitlines(keepends=True))
        ends: list[int] = []
        total = 0
        for line in lines:
            total += len(line)
            ends.append(total)
        return cls(filename, lines, tuple(ends))

    @classmethod
    def load(cls, filename: str, context: FileLocation) -> Result[SourceInfo, RLangError]:
        """Read ``filename``; failures are reported at ``context``."""
        try:
            handle = open(filename, encoding="utf-8")
        except OSError as e:
            return Err(RLangError(FileOpenFailure(filename, type(e).__name__), context))

        lines: list[str] = []
        with handle:
            try:
                for line in handle:
                    lines.append(line)
            except (OSError, UnicodeDecodeError) as e:
                return Err(
                    RLangError(
                        FileReadFailure(filename, len(lines) + 1, type(e).__name__),
                        context,
                    )
                )
        return Ok(cls.from_text(filename, "".join(lines)))

    @property
    def text(self) -> str:
        return "".join(self.lines)

    def to_file_location(self, offset: int) -> FileLocation:
        """1-based line and column of the character at ``offset``."""
        lineno = bisect.bisect_right(self.line_ends, offset)
        if lineno == len(self.lines) and self.lines and not self.lines[-1].endswith(("\n", "\r")):
            # End of a file without a trailing newline.
            lineno -= 1
        start = self.line_ends[lineno - 1] if lineno > 0 else 0
        return FileLocation(self.filename, lineno + 1, offset - start + 1)

    def get_line(self, lineno: int) -> str:
        """Text of 1-based line ``lineno`` without its line terminator."""
        if 1 <= lineno <= len(self.lines):
            return self.lines[lineno - 1].rstrip("\r\n")
        return ""
