"""
Scripture Resolver - reference string in, passage (or a reason why not) out

Pipeline for one request:

  1. Reject empty input
  2. Parse the reference (ReferenceParser)
  3. Expand the book token through the ambiguity table; more than one
     candidate ends the request with AmbiguousBook
  4. Canonicalize the single candidate to its English corpus key and derive
     its display name
  5. Look up the verse range in the selected translation's corpus
  6. Nothing found -> NotFound, otherwise ResolutionSuccess with a title

Every outcome is returned, never raised. The only exception is
UnknownTranslationError, which signals a caller bug rather than a bad query.
"""

import sys
from typing import Dict, List, Mapping, Optional, Union

from book_names import BookNameResolver
from passage_lookup import lookup_passage
from reference_parser import ReferenceParser
from scripture_model import (
    ResolverSettings,
    ResolverTables,
    ResolutionSuccess,
    AmbiguousBook,
    ParseFailure,
    NotFound,
    UnknownTranslationError,
)

ResolutionResult = Union[ResolutionSuccess, AmbiguousBook, ParseFailure, NotFound]


def _debug_log(message: str, debug: bool = False, prefix: str = "[RESOLVE]"):
    """Print debug message if debug mode is enabled."""
    if debug:
        print(f"{prefix} {message}", file=sys.stderr, flush=True)


def format_title(translation: str, book: str, chapter: int, start_verse: int, end_verse: int) -> str:
    """Passage heading, e.g. "和合本：创世记 1章1-1节"."""
    return f"{translation}：{book} {chapter}章{start_verse}-{end_verse}节"


class ScriptureResolver:
    """Resolves reference strings against preloaded tables and corpora.

    Tables and corpora are handed in fully loaded and are never modified.
    """

    def __init__(
        self,
        tables: ResolverTables,
        corpora: Mapping[str, Mapping[str, str]],
        settings: Optional[ResolverSettings] = None,
    ):
        self.tables = tables
        self.corpora: Dict[str, Mapping[str, str]] = dict(corpora)
        self.settings = settings or ResolverSettings(translations={}, default_translation=None)
        self.parser = ReferenceParser(tables.numerals)
        self.names = BookNameResolver(tables)

    @property
    def translations(self) -> List[str]:
        return list(self.corpora)

    @property
    def default_translation(self) -> Optional[str]:
        if self.settings.default_translation in self.corpora:
            return self.settings.default_translation
        return next(iter(self.corpora), None)

    def corpus_for(self, translation: Optional[str]) -> Mapping[str, str]:
        """Corpus index for a translation name (None selects the default)."""
        name = translation or self.default_translation
        if name not in self.corpora:
            raise UnknownTranslationError(str(name), self.translations)
        return self.corpora[name]

    def resolve(self, raw_input: str, translation: Optional[str] = None) -> ResolutionResult:
        """
        Resolve one reference.

        Args:
            raw_input: Reference as typed, e.g. "创1:1", "约翰3:16", "Genesis3"
            translation: Translation name; None selects the default

        Returns:
            ResolutionSuccess, AmbiguousBook, ParseFailure or NotFound

        Raises:
            UnknownTranslationError: translation was never loaded
        """
        debug = self.settings.debug
        if not raw_input or not raw_input.strip():
            return ParseFailure(raw_input=raw_input or '', reason='empty_input')

        translation = translation or self.default_translation
        corpus = self.corpus_for(translation)

        parsed = self.parser.parse(raw_input)
        if parsed is None:
            reason = self.parser.failure_reason(raw_input)
            _debug_log(f"{raw_input!r} not parsed: {reason}", debug)
            return ParseFailure(raw_input=raw_input, reason=reason)
        _debug_log(f"{raw_input!r} -> {parsed.to_dict()}", debug)

        candidates = self.names.resolve_ambiguous(parsed.book)
        if len(candidates) > 1:
            _debug_log(f"ambiguous book {parsed.book!r}: {candidates}", debug)
            return AmbiguousBook(token=parsed.book, candidates=candidates)

        candidate = candidates[0]
        canonical = self.names.to_canonical_english(candidate)
        display = self.names.to_display_chinese(canonical, fallback=candidate)

        verses = lookup_passage(
            canonical,
            parsed.chapter,
            parsed.start_verse,
            parsed.end_verse,
            corpus,
            max_unranged=self.settings.max_unranged_verses,
        )
        _debug_log(f"{canonical} {parsed.chapter}: {len(verses)} verses in {translation}", debug)

        if not verses:
            return NotFound(
                translation=translation,
                book=display,
                canonical_book=canonical,
                chapter=parsed.chapter,
                start_verse=parsed.start_verse,
            )

        start_verse, end_verse = verses[0].number, verses[-1].number
        return ResolutionSuccess(
            title=format_title(translation, display, parsed.chapter, start_verse, end_verse),
            translation=translation,
            book=display,
            canonical_book=canonical,
            chapter=parsed.chapter,
            start_verse=start_verse,
            end_verse=end_verse,
            verses=verses,
        )
