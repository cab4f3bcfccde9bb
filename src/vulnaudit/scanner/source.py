"""Source model — the boundary between raw file content and the detectors.

Detectors work on :class:`SourceFile` objects, never on raw bytes, so a
language-aware model can replace :class:`TextSourceModel` without touching
the detectors or the aggregator.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Protocol, Tuple, Union

Content = Union[str, bytes]

# sniff window for binary detection, same heuristic as git
_BINARY_SNIFF_BYTES = 8000

_LANGUAGES = {
    ".py": "python",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".java": "java",
    ".go": "go",
    ".rb": "ruby",
    ".php": "php",
    ".cs": "csharp",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".json": "json",
    ".tf": "terraform",
    ".sh": "shell",
    ".env": "dotenv",
}


class SourceError(Exception):
    """Raised when content cannot be treated as text (binary or undecodable)."""


@dataclass(frozen=True)
class SourceFile:
    """A text file split into lines. Line numbers are 1-based."""

    path: str
    lines: Tuple[str, ...]
    language: str = "text"

    def numbered(self):
        """Yield ``(line_no, text)`` pairs."""
        return enumerate(self.lines, 1)


class SourceModel(Protocol):
    def parse(self, path: str, content: Content) -> SourceFile: ...


def detect_language(path: str) -> str:
    name = PurePosixPath(path).name
    if name.startswith(".env"):
        return "dotenv"
    return _LANGUAGES.get(PurePosixPath(path).suffix.lower(), "text")


class TextSourceModel:
    """Lexical source model: decodes UTF-8 and splits into lines."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding

    def parse(self, path: str, content: Content) -> SourceFile:
        if isinstance(content, bytes):
            if b"\0" in content[:_BINARY_SNIFF_BYTES]:
                raise SourceError(f"{path}: binary content")
            try:
                text = content.decode(self.encoding)
            except UnicodeDecodeError as exc:
                raise SourceError(f"{path}: not valid {self.encoding} text") from exc
        elif isinstance(content, str):
            text = content
            if "\0" in text[:_BINARY_SNIFF_BYTES]:
                raise SourceError(f"{path}: binary content")
        else:
            raise SourceError(f"{path}: unsupported content type {type(content).__name__}")

        return SourceFile(
            path=path,
            lines=tuple(text.splitlines()),
            language=detect_language(path),
        )
