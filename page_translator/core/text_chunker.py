import re
import math
import logging
from typing import List, Tuple, Optional, Sequence
from .constants import DEFAULT_MAX_CHUNK_SIZE, Chunk, ChunkResult

logger = logging.getLogger(__name__)

# Structure-aware delimiters, tried in priority order.
# (name, pattern, is_block) - block delimiters are kept whole as their own part,
# the others only mark where a new part starts.
MARKDOWN_DELIMITERS: List[Tuple[str, re.Pattern, bool]] = [
    ("heading", re.compile(r'\n#{1,6} '), False),
    ("code_block", re.compile(r'\n```[\s\S]*?\n```'), True),
    ("image", re.compile(r'\n!\[.*?\]\(.*?\)'), True),
    ("link", re.compile(r'\n\[.*?\]\(.*?\)'), True),
    ("horizontal_rule", re.compile(r'\n---'), False),
    ("bold", re.compile(r'\n\*\*'), False),
    ("emphasis", re.compile(r'\n\*'), False),
    ("list", re.compile(r'\n- '), False),
    ("numbered_list", re.compile(r'\n[0-9]+\. '), False),
    ("paragraph", re.compile(r'\n\n'), False),
    ("newline", re.compile(r'\n'), False),
    ("whitespace", re.compile(r'[ \t]+'), False),
    ("end", re.compile(r'$'), False),
]

_LEADING_WS = re.compile(r'^\s*')
_TRAILING_WS = re.compile(r'\s*$')


def _split_on(text: str, pattern: re.Pattern, is_block: bool) -> List[str]:
    """
    Split text so that each delimiter stays attached to the part that follows it.
    Joining the returned parts always gives back the input.
    """
    cuts = set()
    for match in pattern.finditer(text):
        cuts.add(match.start())
        if is_block:
            cuts.add(match.end())

    positions = sorted(c for c in cuts if 0 < c < len(text))
    if not positions:
        return [text]

    parts = []
    prev = 0
    for pos in positions:
        parts.append(text[prev:pos])
        prev = pos
    parts.append(text[prev:])
    return parts


def _slice_fixed(text: str, max_chunk_size: int) -> List[str]:
    """Last resort: cut at exact character offsets, may break words."""
    return [text[i:i + max_chunk_size] for i in range(0, len(text), max_chunk_size)]


def _coalesce(parts: Sequence[str], max_chunk_size: int) -> List[str]:
    """Greedily pack consecutive parts into chunks no longer than max_chunk_size."""
    chunks = []
    merged = ""
    for part in parts:
        if len(merged) + len(part) <= max_chunk_size:
            merged += part
        else:
            if merged:
                chunks.append(merged)
            merged = part
    if merged:
        chunks.append(merged)
    return chunks


def _split_from(text: str, max_chunk_size: int, level: int) -> List[str]:
    for idx in range(level, len(MARKDOWN_DELIMITERS)):
        name, pattern, is_block = MARKDOWN_DELIMITERS[idx]
        parts = _split_on(text, pattern, is_block)
        if len(parts) < 2:
            continue

        fitting = [p for p in parts if len(p) <= max_chunk_size]
        if len(fitting) < 2:
            continue

        logger.debug(f"Splitting {len(text)} chars on '{name}' into {len(parts)} parts")
        pieces: List[str] = []
        for part in parts:
            if len(part) <= max_chunk_size:
                pieces.append(part)
            else:
                # Oversized part: fall through to the finer delimiters
                pieces.extend(_split_from(part, max_chunk_size, idx + 1))
        return _coalesce(pieces, max_chunk_size)

    logger.debug(f"No structural split point for {len(text)} chars, slicing at {max_chunk_size}")
    return _slice_fixed(text, max_chunk_size)


def split_text(text: str, max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE) -> List[str]:
    """
    Split long text into transport-safe chunks, preserving Markdown structure.

    Short text comes back as a single chunk. Joining the chunks with no
    separator reproduces the input exactly.

    Args:
        text: Text to split.
        max_chunk_size: Maximum characters per chunk.

    Returns:
        Ordered list of chunk texts.
    """
    if max_chunk_size < 1:
        raise ValueError("max_chunk_size must be positive")

    if len(text) <= max_chunk_size:
        return [text]

    return _split_from(text, max_chunk_size, 0)


def build_chunks(task_id: str, text: str, max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE) -> List[Chunk]:
    """Split text and tag every piece with its parent task and position."""
    return [Chunk(parent_task_id=task_id, index=i, text=piece)
            for i, piece in enumerate(split_text(text, max_chunk_size))]


def merge_chunks(chunks: Sequence[str]) -> str:
    """Concatenate translated chunks. No separators are re-inserted."""
    return "".join(chunks)


def preserve_edge_whitespace(original: str, translated: str) -> str:
    """
    Re-apply the original chunk's leading/trailing whitespace.
    The provider trims its output, which would otherwise glue paragraphs together.
    """
    leading = _LEADING_WS.match(original).group(0)
    trailing = _TRAILING_WS.search(original).group(0) if original.strip() else ""
    return f"{leading}{translated.strip()}{trailing}"


def estimate_token_count(text: str) -> int:
    """Rough token estimate: about 3 characters per token."""
    return math.ceil(len(text) / 3)


class ChunkMerger:
    """
    Recombines per-chunk results of one task.
    A failed chunk falls back to its original text; the task only fails
    when every chunk with something to translate failed.
    """

    def __init__(self, expected_count: int):
        self.expected_count = expected_count

    def merge(self, results: Sequence[ChunkResult]) -> Tuple[str, int]:
        """
        Returns:
            Tuple of (merged_text, failed_chunk_count)

        Raises:
            ValueError: If the number of results does not match the chunk count.
            The first chunk's error if every non-blank chunk failed.
        """
        if len(results) != self.expected_count:
            raise ValueError(f"Expected {self.expected_count} chunk results, got {len(results)}")

        ordered = sorted(results, key=lambda r: r.chunk.index)
        failed = [r for r in ordered if not r.success]

        # Whitespace-only chunks pass through untouched and do not count as translated
        translatable = [r for r in ordered if r.chunk.text.strip()] or ordered
        if failed and all(not r.success for r in translatable):
            first_error: Optional[BaseException] = failed[0].error
            if first_error is not None:
                raise first_error
            raise RuntimeError("All chunks failed to translate")

        texts = []
        for res in ordered:
            if res.success and res.translated_text is not None:
                texts.append(res.translated_text)
            else:
                logger.warning(f"Chunk {res.chunk.index} failed ({res.error}), keeping original text")
                texts.append(res.chunk.text)

        return merge_chunks(texts), len(failed)
