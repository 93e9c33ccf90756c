"""
Reference Parser - free-form scripture references to structured lookups

Turns what a reader types ("创3:1", "创3:1-5", "创3", "创三:1", "Genesis3:1")
into a ParsedReference {book, chapter, start_verse, end_verse}.

The grammar is an ordered list of named rules. Rules overlap, so the order
is part of the contract: the first rule whose pattern matches AND whose
chapter token resolves to a non-zero integer wins. A rule that matches but
whose chapter does not resolve is skipped, and the next rule is tried
against the same input.

Chinese numeral chapters are looked up as whole tokens in the numeral table.
There is no arithmetic on numeral parts: "二十三" must be a key in the table
for chapter 23 to parse. Some book abbreviations end in a numeral character
("约三" is 3 John), so the Chinese rule tries every book/chapter split, from
the longest numeral suffix down to a single character:

    创十二:1  ->  创 + 十二     (12)
    约三一:1  ->  约 + 三一     (not a key)
              ->  约三 + 一     (1)
"""

import re
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple, Union

from scripture_model import NumeralTable, ParsedReference


# ============================================================================
# CHARACTER CLASSES
# ============================================================================

# Book names: CJK unified ideographs or Latin letters, no digits
BOOK_CHARS = 'a-zA-Z\u4e00-\u9fa5'

# Characters always accepted in a Chinese numeral chapter. Characters found in
# the numeral table keys are added per parser.
CHINESE_NUMERAL_CHARS = '零〇一二两三四五六七八九十百'

# Full-width punctuation readers commonly type in place of ':' and '-'
_PUNCTUATION_MAP = str.maketrans({
    '：': ':',
    '－': '-',
    '—': '-',
    '–': '-',
})

_WHITESPACE_RE = re.compile(r'\s+')


def normalize_reference_input(raw: str) -> str:
    """Strip all whitespace and fold full-width separators to ASCII."""
    return _WHITESPACE_RE.sub('', raw or '').translate(_PUNCTUATION_MAP)


# ============================================================================
# NUMERAL RESOLUTION
# ============================================================================

def resolve_numeral(token: str, table: NumeralTable) -> Optional[int]:
    """
    Look up a Chinese numeral token in the numeral table.

    Categories are searched in table order and the first exact match wins.

    Returns:
        The integer value, or None if no category contains the token
    """
    for _category, values in table:
        if token in values:
            return values[token]
    return None


class NumeralResolver:
    """Resolves Chinese numeral tokens against one numeral table."""

    def __init__(self, table: NumeralTable):
        self.table = table

    def resolve(self, token: str) -> Optional[int]:
        return resolve_numeral(token, self.table)

    def characters(self) -> str:
        """Every character appearing in a numeral key, in first-seen order."""
        seen = []
        for _category, values in self.table:
            for key in values:
                for char in key:
                    if char not in seen:
                        seen.append(char)
        return ''.join(seen)


# ============================================================================
# GRAMMAR
# ============================================================================

@dataclass(frozen=True)
class RuleMatch:
    """Raw captures from one grammar rule, before any numeral resolution."""
    book: str
    chapter_token: str
    first_verse: Optional[str] = None
    last_verse: Optional[str] = None


@dataclass(frozen=True)
class GrammarRule:
    """
    A named pattern from normalized input to an optional RuleMatch.

    With split_chapter set, the pattern captures the longest chapter token
    and candidates() also yields the shorter splits, moving one leading
    chapter character at a time onto the book.
    """
    name: str
    pattern: re.Pattern
    split_chapter: bool = False

    def match(self, text: str) -> Optional[RuleMatch]:
        m = self.pattern.match(text)
        if not m:
            return None
        groups = m.groups()
        return RuleMatch(
            book=groups[0],
            chapter_token=groups[1],
            first_verse=groups[2] if len(groups) > 2 else None,
            last_verse=groups[3] if len(groups) > 3 else None,
        )

    def candidates(self, text: str) -> Iterator[RuleMatch]:
        """Every book/chapter reading of text, longest chapter token first."""
        match = self.match(text)
        if match is None:
            return
        yield match
        if not self.split_chapter:
            return
        book, chapter_token = match.book, match.chapter_token
        while len(chapter_token) > 1:
            book, chapter_token = book + chapter_token[0], chapter_token[1:]
            yield RuleMatch(book, chapter_token, match.first_verse, match.last_verse)


GRAMMAR_RULE_NAMES = (
    'arabic_single_verse',   # 创3:1 / Genesis3:1
    'arabic_verse_range',    # 创3:1-5 / Genesis3:1-5
    'arabic_whole_chapter',  # 创3 / Genesis3
    'chinese_single_verse',  # 创三:1 / Genesis三:1
)


def build_grammar(numeral_chars: str = '') -> List[GrammarRule]:
    """
    Build the ordered grammar rules.

    Args:
        numeral_chars: Extra characters accepted in a Chinese numeral chapter

    Returns:
        Rules in trial order (see GRAMMAR_RULE_NAMES)
    """
    book = f'([{BOOK_CHARS}]+)'
    extra = ''.join(c for c in numeral_chars if c not in CHINESE_NUMERAL_CHARS)
    numeral_class = re.escape(CHINESE_NUMERAL_CHARS + extra)
    patterns = (
        rf'^{book}(\d+):(\d+)$',
        rf'^{book}(\d+):(\d+)-(\d+)$',
        rf'^{book}(\d+)$',
        # Lazy book: the longest numeral run at the end is tried first
        rf'^([{BOOK_CHARS}]+?)([{numeral_class}]+):(\d+)$',
    )
    return [
        GrammarRule(
            name=name,
            pattern=re.compile(pattern),
            split_chapter=(name == 'chinese_single_verse'),
        )
        for name, pattern in zip(GRAMMAR_RULE_NAMES, patterns)
    ]


def _verse_bounds(first: Optional[str], last: Optional[str]) -> Tuple[int, Optional[int]]:
    """
    Derive (start_verse, end_verse) from the captured verse tokens.

    A zero verse counts as not given: start falls back to 1 and end falls
    back to start, then to None (whole chapter).
    """
    start = int(first) if first else 0
    end = int(last) if last else 0
    return start or 1, end or start or None


# ============================================================================
# PARSER
# ============================================================================

class ReferenceParser:
    """Parses reference strings using an ordered grammar and a numeral table."""

    def __init__(self, numerals: Union[NumeralResolver, NumeralTable]):
        if not isinstance(numerals, NumeralResolver):
            numerals = NumeralResolver(numerals)
        self.numerals = numerals
        self.rules = build_grammar(numerals.characters())

    def _chapter(self, token: str) -> Optional[int]:
        if token.isdigit():
            return int(token)
        return self.numerals.resolve(token)

    def _readings(self, raw: str) -> Iterator[ParsedReference]:
        """The first reading with a usable chapter from each rule, in rule order."""
        text = normalize_reference_input(raw)
        if not text:
            return

        for rule in self.rules:
            for match in rule.candidates(text):
                chapter = self._chapter(match.chapter_token)
                # Chapter 0 and an unknown numeral both fail this reading
                if not chapter:
                    continue

                start_verse, end_verse = _verse_bounds(match.first_verse, match.last_verse)
                yield ParsedReference(
                    book=match.book,
                    chapter=chapter,
                    start_verse=start_verse,
                    end_verse=end_verse,
                    rule=rule.name,
                )
                break

    def parse(self, raw: str) -> Optional[ParsedReference]:
        """
        Parse a raw reference string.

        Args:
            raw: Reference as typed (whitespace anywhere is ignored)

        Returns:
            ParsedReference, or None when no rule yields a usable chapter
            and an ordered verse range
        """
        for reference in self._readings(raw):
            if reference.end_verse is None or reference.end_verse >= reference.start_verse:
                return reference
        return None

    def failure_reason(self, raw: str) -> str:
        """
        Why parse() returned None for raw.

        Returns:
            'empty_input', 'reversed_range' (a rule matched but its end verse
            precedes its start verse) or 'no_rule_matched'
        """
        if not normalize_reference_input(raw):
            return 'empty_input'
        if any(ref.end_verse is not None and ref.end_verse < ref.start_verse
               for ref in self._readings(raw)):
            return 'reversed_range'
        return 'no_rule_matched'


def parse_reference(raw: str, numerals: NumeralTable) -> Optional[ParsedReference]:
    """Convenience wrapper: parse one reference against a numeral table."""
    return ReferenceParser(numerals).parse(raw)
