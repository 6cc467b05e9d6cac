"""File extension to language tag mapping."""

from __future__ import annotations

import os

UNKNOWN_LANGUAGE = "unknown"

_LANGUAGE_BY_EXTENSION: dict[str, str] = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".php": "php",
    ".py": "python",
    ".java": "java",
    ".cs": "csharp",
    ".cpp": "cpp",
    ".hpp": "cpp",
    ".c": "c",
    ".h": "c",
    ".rb": "ruby",
    ".go": "go",
    ".rs": "rust",
    ".swift": "swift",
    ".kt": "kotlin",
}


def detect_language(path: str) -> str:
    """Return the language tag for a path's lower-cased extension."""
    _, extension = os.path.splitext(path)
    return _LANGUAGE_BY_EXTENSION.get(extension.lower(), UNKNOWN_LANGUAGE)


def known_languages() -> tuple[str, ...]:
    """Return every mapped language tag in deterministic order."""
    return tuple(sorted(set(_LANGUAGE_BY_EXTENSION.values())))
