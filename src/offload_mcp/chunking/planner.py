"""Budget-bounded payload chunking that prefers file-section boundaries."""

from __future__ import annotations

SECTION_SEPARATOR = "=" * 80
SECTION_DELIMITER = f"\n{SECTION_SEPARATOR}\n"
CHARS_PER_TOKEN = 4


def chunk_payload(payload: str, max_chunk_tokens: int) -> list[str]:
    """Split `payload` into chunks of at most `max_chunk_tokens * 4` characters.

    Payloads carrying the section delimiter are packed section by section,
    oversized sections are split by lines, and oversized lines are hard-sliced.
    Payloads without the delimiter are sliced at the character budget. Chunks
    that are blank after trimming are dropped, so a blank payload yields no
    chunks. Budgets below one token count as one.
    """
    if not payload.strip():
        return []
    budget = max(1, max_chunk_tokens) * CHARS_PER_TOKEN
    if len(payload) <= budget:
        return [payload]

    sections = payload.split(SECTION_DELIMITER)
    if len(sections) == 1:
        chunks = slice_text(payload, budget)
    else:
        chunks = _pack_sections(sections, budget)
    return [chunk for chunk in chunks if chunk.strip()]


def _pack_sections(sections: list[str], budget: int) -> list[str]:
    chunks: list[str] = []
    current = ""
    for section in sections:
        if current:
            combined = f"{current}{SECTION_DELIMITER}{section}"
            if len(combined) <= budget:
                current = combined
                continue
            chunks.append(current.strip())
            current = ""
        if len(section) > budget:
            chunks.extend(split_section(section, budget))
        else:
            current = section
    if current:
        chunks.append(current.strip())
    return chunks


def split_section(section: str, budget: int) -> list[str]:
    """Pack one oversized section by lines, hard-slicing lines above `budget`."""
    chunks: list[str] = []
    current: str | None = None
    for line in section.split("\n"):
        if current is not None and len(current) + 1 + len(line) <= budget:
            current = f"{current}\n{line}"
            continue
        if current is not None:
            chunks.append(current)
            current = None
        if len(line) <= budget:
            current = line
            continue
        pieces = slice_text(line, budget)
        chunks.extend(pieces[:-1])
        current = pieces[-1]
    if current is not None:
        chunks.append(current)
    return chunks


def slice_text(text: str, budget: int) -> list[str]:
    """Cut `text` into consecutive pieces of at most `budget` characters."""
    return [text[start : start + budget] for start in range(0, len(text), budget)]
