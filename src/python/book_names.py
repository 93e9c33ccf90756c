"""
Book name resolution: ambiguity table, canonical English keys, display names.

Order of use matters: a token is disambiguated first, and only a token that
reduced to exactly one candidate is canonicalized. Neither lookup fails; a
token missing from a table passes through unchanged.
"""

import sys
from typing import List, Mapping, Optional, Tuple

from scripture_model import ResolverTables


class BookNameResolver:
    """Maps typed book tokens to corpus keys and display names."""

    def __init__(self, tables: ResolverTables):
        self.aliases = tables.book_aliases
        self.reverse_names = tables.reverse_names
        self.ambiguous = tables.ambiguous_books

    def resolve_ambiguous(self, token: str) -> List[str]:
        """Candidate books for a token, in table order; [token] if unambiguous."""
        candidates = self.ambiguous.get(token)
        if not candidates:
            return [token]
        return list(candidates)

    def to_canonical_english(self, token: str) -> str:
        """Corpus key for a token; the token itself if it has no alias."""
        return self.aliases.get(token, token)

    def to_display_chinese(self, canonical_english: str, fallback: Optional[str] = None) -> str:
        """Display name for a corpus key; fallback (or the key) if unknown."""
        name = self.reverse_names.get(canonical_english)
        if name:
            return name
        return fallback if fallback is not None else canonical_english


def validate_name_tables(
    book_aliases: Mapping[str, str],
    reverse_names: Mapping[str, str],
) -> List[Tuple[str, str]]:
    """
    Check that every alias target has a display name.

    The two tables are loaded independently; a target without a reverse
    entry still resolves, it just displays as the typed token.

    Args:
        book_aliases: Typed token -> canonical English key
        reverse_names: Canonical English key -> display name

    Returns:
        (alias, canonical key) pairs whose key has no display name, sorted
    """
    missing = []
    for alias, canonical in book_aliases.items():
        if canonical not in reverse_names:
            missing.append((alias, canonical))
    return sorted(missing)


def report_missing_names(missing: List[Tuple[str, str]], limit: int = 10):
    """Print a warning summary of alias targets with no display name."""
    if not missing:
        return
    keys = sorted({canonical for _alias, canonical in missing})
    shown = ', '.join(keys[:limit])
    more = f" (+{len(keys) - limit} more)" if len(keys) > limit else ""
    print(f"  ⚠ {len(keys)} book keys have no display name: {shown}{more}",
          file=sys.stderr, flush=True)
