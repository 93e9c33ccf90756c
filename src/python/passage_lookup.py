"""
Passage lookup against an in-memory corpus index, plus the corpus text parser.

A corpus index maps "{book}{chapter}:{verse}" to verse text, e.g.
"Genesis1:1" -> "起初，神创造天地。". There is no chapter-length metadata, so
a range ends at the first verse number with no entry: a chapter is the
contiguous run of verses from 1.
"""

import re
from typing import Dict, Iterable, List, Optional, Union

from scripture_model import CorpusIndex, MAX_UNRANGED_VERSES, Verse


# ============================================================================
# CORPUS INDEX
# ============================================================================

# Source lines look like: "Genesis 1:1 起初，神创造天地。"
CORPUS_LINE_RE = re.compile(r'^([a-zA-Z0-9]+)\s+(\d+):(\d+)\s+(.*)$')


def corpus_key(book: str, chapter: int, verse: int) -> str:
    """Compose the index key for one verse (no zero padding)."""
    return f"{book}{chapter}:{verse}"


def parse_corpus_text(text: Union[str, Iterable[str]]) -> Dict[str, str]:
    """
    Build a corpus index from line-oriented source text.

    Blank lines and lines that do not match CORPUS_LINE_RE are skipped.
    A repeated address keeps the last line seen.

    Args:
        text: Whole file contents, or an iterable of lines

    Returns:
        Dict of corpus key -> trimmed verse text
    """
    lines = text.splitlines() if isinstance(text, str) else text
    index: Dict[str, str] = {}
    for line in lines:
        line = line.strip()
        if not line:
            continue
        match = CORPUS_LINE_RE.match(line)
        if not match:
            continue
        book, chapter, verse, content = match.groups()
        index[corpus_key(book, int(chapter), int(verse))] = content.strip()
    return index


# ============================================================================
# LOOKUP
# ============================================================================

def effective_end_verse(start_verse: int, end_verse: Optional[int],
                        max_unranged: int = MAX_UNRANGED_VERSES) -> int:
    """Upper bound for a lookup: end_verse, or a max_unranged window from start."""
    if end_verse is None:
        return start_verse + max_unranged - 1
    return end_verse


def lookup_passage(
    book: str,
    chapter: int,
    start_verse: int,
    end_verse: Optional[int],
    corpus: CorpusIndex,
    max_unranged: int = MAX_UNRANGED_VERSES,
) -> List[Verse]:
    """
    Collect verses start_verse..end_verse from the corpus.

    Iteration stops at the first missing verse; later verses in the range
    are not returned even if they exist.

    Args:
        book: Canonical English book key
        chapter: Chapter number
        start_verse: First verse
        end_verse: Last verse, or None for an unranged window
        corpus: Index for one translation
        max_unranged: Window size when end_verse is None

    Returns:
        Verses in order; empty if start_verse itself is missing
    """
    last = effective_end_verse(start_verse, end_verse, max_unranged)
    verses: List[Verse] = []
    for number in range(start_verse, last + 1):
        text = corpus.get(corpus_key(book, chapter, number))
        if not text:
            break
        verses.append(Verse(number=number, text=text))
    return verses
