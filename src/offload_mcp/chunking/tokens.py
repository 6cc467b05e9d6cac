"""Heuristic token estimation and context window budgeting."""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass

from offload_mcp.chunking.conversation import ChunkedConversation, PromptStages, build_conversation
from offload_mcp.chunking.planner import chunk_payload

DEFAULT_ESTIMATION_FACTOR = 1.2
CHUNK_BUDGET_RATIO = 0.7
MEMO_MAX_CHARS = 10_000
MEMO_MAX_ENTRIES = 1024

_CODE_INDICATORS = (
    "function",
    "class",
    "const",
    "let",
    "var",
    "import",
    "export",
    "=>",
    "{",
    "}",
    "()",
    ";",
    "//",
    "/*",
    "*/",
    "<?php",
    "def ",
    "if __name__",
)
_TECHNICAL_TERMS = (
    "algorithm",
    "implementation",
    "architecture",
    "methodology",
    "optimization",
    "configuration",
    "initialization",
    "synchronization",
    "authentication",
    "authorization",
    "encryption",
    "serialization",
)
_BLOCK_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
_LINE_COMMENT_RE = re.compile(r"//.*$", re.MULTILINE)
_HASH_COMMENT_RE = re.compile(r"^\s*#.*$", re.MULTILINE)
_HTML_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)
_CODE_TOKEN_SPLIT_RE = re.compile(r"[\s(){}\[\];,.]+")
_CODE_SYMBOL_RE = re.compile(r"[{}\[\]();,.=+\-*/]")
_STRUCTURAL_RE = re.compile(r"[{}\[\]\":,]")
_STRUCTURAL_OR_SPACE_RE = re.compile(r"[{}\[\]\":,\s]")
_CJK_RE = re.compile(r"[\u4e00-\u9fff\u3400-\u4dbf\u3040-\u309f\u30a0-\u30ff]")
_COMPLEX_SCRIPT_RE = re.compile(r"[\u0600-\u06ff\u0590-\u05ff\u0700-\u074f]")


class TokenEstimator:
    """Content-aware token estimator with a bounded per-instance memo for short strings."""

    def __init__(
        self,
        estimation_factor: float = DEFAULT_ESTIMATION_FACTOR,
        memo_max_entries: int = MEMO_MAX_ENTRIES,
    ) -> None:
        self._factor = estimation_factor
        self._memo_max_entries = max(1, memo_max_entries)
        self._memo: dict[str, int] = {}

    def estimate(self, value: object) -> int:
        """Estimate tokens for a string, list, mapping or scalar."""
        if value is None:
            return 0
        if isinstance(value, str):
            cached = self._memo.get(value)
            if cached is not None:
                return cached
        tokens = math.ceil(self._raw_estimate(value) * self._factor)
        if isinstance(value, str) and len(value) < MEMO_MAX_CHARS:
            if len(self._memo) >= self._memo_max_entries:
                # Insertion order: the first key is the oldest.
                del self._memo[next(iter(self._memo))]
            self._memo[value] = tokens
        return tokens

    def clear(self) -> None:
        """Drop memoised estimates."""
        self._memo.clear()

    def memo_size(self) -> int:
        """Return the number of memoised strings."""
        return len(self._memo)

    def _raw_estimate(self, value: object) -> int:
        if isinstance(value, str):
            return _estimate_text(value, self)
        if isinstance(value, list | tuple):
            return 2 + sum(self.estimate(item) + 1 for item in value)
        if isinstance(value, dict):
            return 2 + sum(
                self.estimate(str(key)) + 1 + self.estimate(item) + 1
                for key, item in value.items()
            )
        return _estimate_text(str(value), self)


def estimate_tokens(text: str, estimation_factor: float = DEFAULT_ESTIMATION_FACTOR) -> int:
    """Estimate tokens for one string with a throwaway estimator."""
    return TokenEstimator(estimation_factor).estimate(text)


def _estimate_text(text: str, estimator: TokenEstimator) -> int:
    if not text:
        return 0
    if _is_code(text):
        return _estimate_code(text)
    if _is_structured(text):
        return _estimate_structured(text, estimator)
    return math.ceil(len(text) / _chars_per_token(text))


def _is_code(text: str) -> bool:
    return sum(1 for indicator in _CODE_INDICATORS if indicator in text) >= 2


def _is_structured(text: str) -> bool:
    trimmed = text.strip()
    return (
        (trimmed.startswith("{") and trimmed.endswith("}"))
        or (trimmed.startswith("[") and trimmed.endswith("]"))
        or trimmed.startswith("<?xml")
        or "<html" in trimmed
    )


def _estimate_code(code: str) -> int:
    cleaned = _BLOCK_COMMENT_RE.sub("", code)
    cleaned = _LINE_COMMENT_RE.sub("", cleaned)
    cleaned = _HASH_COMMENT_RE.sub("", cleaned)
    cleaned = _HTML_COMMENT_RE.sub("", cleaned)
    words = [token for token in _CODE_TOKEN_SPLIT_RE.split(cleaned) if token]
    symbols = len(_CODE_SYMBOL_RE.findall(code))
    return len(words) + math.ceil(symbols * 0.5)


def _estimate_structured(text: str, estimator: TokenEstimator) -> int:
    trimmed = text.strip()
    if trimmed.startswith(("{", "[")):
        try:
            parsed = json.loads(trimmed)
        except ValueError:
            parsed = None
        if isinstance(parsed, dict | list):
            return estimator._raw_estimate(parsed)
    structural = len(_STRUCTURAL_RE.findall(text))
    content_length = len(_STRUCTURAL_OR_SPACE_RE.sub("", text))
    return structural + math.ceil(content_length / 4)


def _chars_per_token(text: str) -> float:
    if _CJK_RE.search(text):
        return 2.5
    if _COMPLEX_SCRIPT_RE.search(text):
        return 3.0
    lowered = text.lower()
    if sum(1 for term in _TECHNICAL_TERMS if term in lowered) >= 3:
        return 3.2
    return 3.8


@dataclass(slots=True, frozen=True)
class ContextWindow:
    """Model context limit with a safety margin."""

    context_limit: int
    safety_margin: float = 0.8

    def __post_init__(self) -> None:
        if self.context_limit < 1:
            raise ValueError("context_limit must be >= 1")
        if not 0 < self.safety_margin <= 1:
            raise ValueError("safety_margin must be in (0, 1]")

    @property
    def effective_limit(self) -> int:
        """Usable tokens after the safety margin."""
        return math.floor(self.context_limit * self.safety_margin)

    def should_chunk(self, estimated_tokens: int) -> bool:
        """Return True when a payload estimate exceeds the safe limit."""
        return estimated_tokens > self.context_limit * self.safety_margin

    def chunk_budget_tokens(self) -> int:
        """Per-chunk token budget, leaving room for prompt overhead."""
        return max(1, math.floor(self.effective_limit * CHUNK_BUDGET_RATIO))


def plan_conversation(
    stages: PromptStages,
    window: ContextWindow,
    estimator: TokenEstimator | None = None,
) -> ChunkedConversation:
    """Chunk the data payload only when it would overflow `window`, then assemble."""
    active = estimator or TokenEstimator()
    if window.should_chunk(active.estimate(stages.data_payload)):
        chunks = chunk_payload(stages.data_payload, window.chunk_budget_tokens())
    else:
        chunks = [stages.data_payload]
    return build_conversation(stages, chunks)
