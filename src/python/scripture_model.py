"""
Scripture Model - Data structures shared by the reference resolver

This module defines the dataclasses passed between the parser, the book name
resolver, the passage lookup and the resolution pipeline, plus the immutable
configuration bundle they all read from.

Design principles:
- Configuration tables and corpora are read-only once loaded
- Parsed references and results are transient, one per request
- Every result is JSON-serializable for the stdin/stdout bridge
- Query outcomes are values, not exceptions
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import List, Optional, Dict, Any, Mapping, Tuple, Literal


# ============================================================================
# TYPE ALIASES
# ============================================================================

NumeralCategory = Tuple[str, Mapping[str, int]]
NumeralTable = Tuple[NumeralCategory, ...]  # Ordered: first match wins
CorpusIndex = Mapping[str, str]  # "{book}{chapter}:{verse}" -> verse text

ResultStatus = Literal['success', 'ambiguous', 'parse_failure', 'not_found']


# ============================================================================
# DEFAULTS
# ============================================================================

DEFAULT_DATA_DIR = Path(__file__).resolve().parent.parent.parent / "data"

DEFAULT_CONFIG_FILES = {
    'chinese_numbers': 'chineseNumbers.json',
    'english_to_chinese': 'englishToChinese.json',
    'book_mappings': 'bookMappings.json',
    'ambiguous_books': 'ambiguousBooks.json',
}

DEFAULT_TRANSLATIONS = {
    '和合本': 'WCB20251113.txt',
    '环球译本': 'CUVS-NP20251113.txt',
}

# Hard cap on verses returned for a reference without an explicit end verse
MAX_UNRANGED_VERSES = 20

REQUEST_TIMEOUT = 10

# User-facing messages
EMPTY_INPUT_MESSAGE = '请输入经文位置（示例：创1:1、约翰3:16）'
PARSE_FAILURE_MESSAGE = '格式解析失败，请检查输入（示例：创1:1、约翰3:16）'
REVERSED_RANGE_MESSAGE = '经文范围无效：结束节不能小于起始节（示例：创1:1-5）'


# ============================================================================
# ERRORS
# ============================================================================

class ScriptureDataError(Exception):
    """Base class for load-time failures."""


class ConfigLoadError(ScriptureDataError):
    """A required mapping table could not be loaded. Fatal."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"{source} 加载失败：{reason}")


class CorpusLoadError(ScriptureDataError):
    """A translation's text could not be loaded. Callers may recover."""

    def __init__(self, translation: str, source: str, reason: str):
        self.translation = translation
        self.source = source
        self.reason = reason
        super().__init__(f"{translation} 经文文件加载失败（{source}）：{reason}")


class UnknownTranslationError(KeyError):
    """The caller selected a translation the resolver was never given."""

    def __init__(self, translation: str, available: List[str]):
        self.translation = translation
        self.available = available
        super().__init__(translation)

    def __str__(self) -> str:
        return f"Unknown translation: {self.translation} (available: {', '.join(self.available)})"


# ============================================================================
# SETTINGS
# ============================================================================

def _env_flag(name: str) -> bool:
    return os.environ.get(name, '').strip().lower() in ('1', 'true', 'yes', 'on')


@dataclass
class ResolverSettings:
    """Configuration for loading data and serving lookups."""
    data_source: str = str(DEFAULT_DATA_DIR)  # Directory or http(s) base URL
    config_files: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_CONFIG_FILES))
    translations: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_TRANSLATIONS))
    default_translation: Optional[str] = None
    max_unranged_verses: int = MAX_UNRANGED_VERSES
    strict_name_tables: bool = False
    request_timeout: float = REQUEST_TIMEOUT
    debug: bool = False

    def __post_init__(self):
        if self.max_unranged_verses < 1:
            raise ValueError("max_unranged_verses must be at least 1")
        if self.default_translation is None and self.translations:
            self.default_translation = next(iter(self.translations))

    @classmethod
    def from_env(cls) -> 'ResolverSettings':
        """Build settings from SCRIPTURE_* environment variables."""
        settings = cls(
            data_source=os.environ.get('SCRIPTURE_DATA_SOURCE', str(DEFAULT_DATA_DIR)),
            strict_name_tables=_env_flag('SCRIPTURE_STRICT_NAMES'),
            debug=_env_flag('SCRIPTURE_DEBUG'),
        )
        translation = os.environ.get('SCRIPTURE_TRANSLATION')
        if translation:
            settings.default_translation = translation
        return settings


# ============================================================================
# CONFIGURATION TABLES
# ============================================================================

@dataclass(frozen=True)
class ResolverTables:
    """The four mapping tables, frozen after load.

    numerals is an ordered tuple of (category, mapping) pairs; the order is
    the lookup order.
    """
    numerals: NumeralTable
    book_aliases: Mapping[str, str]
    reverse_names: Mapping[str, str]
    ambiguous_books: Mapping[str, Tuple[str, ...]]

    @classmethod
    def build(
        cls,
        numerals: Any,
        book_aliases: Mapping[str, str],
        reverse_names: Mapping[str, str],
        ambiguous_books: Mapping[str, Any],
    ) -> 'ResolverTables':
        """Freeze plain dicts/lists into a ResolverTables bundle.

        numerals may be a mapping of category -> {numeral: int} (insertion
        order kept) or an iterable of (category, mapping) pairs.
        """
        pairs = numerals.items() if isinstance(numerals, Mapping) else numerals
        frozen_numerals = tuple(
            (str(category), MappingProxyType(dict(values)))
            for category, values in pairs
        )
        return cls(
            numerals=frozen_numerals,
            book_aliases=MappingProxyType(dict(book_aliases)),
            reverse_names=MappingProxyType(dict(reverse_names)),
            ambiguous_books=MappingProxyType({
                token: tuple(candidates) for token, candidates in ambiguous_books.items()
            }),
        )


# ============================================================================
# REFERENCES AND VERSES
# ============================================================================

@dataclass(frozen=True)
class ParsedReference:
    """A reference as typed, split into its parts.

    end_verse is None for a whole-chapter request (no verse given).
    """
    book: str
    chapter: int
    start_verse: int = 1
    end_verse: Optional[int] = None
    rule: str = ''  # Name of the grammar rule that matched

    def to_dict(self) -> Dict[str, Any]:
        return {
            'book': self.book,
            'chapter': self.chapter,
            'startVerse': self.start_verse,
            'endVerse': self.end_verse,
            'rule': self.rule,
        }


@dataclass(frozen=True)
class Verse:
    """A single verse returned by a lookup."""
    number: int
    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {'verse': self.number, 'text': self.text}


# ============================================================================
# RESOLUTION RESULTS
# ============================================================================

@dataclass
class ResolutionSuccess:
    """One or more verses were found."""
    title: str
    translation: str
    book: str  # Display name
    canonical_book: str
    chapter: int
    start_verse: int
    end_verse: int
    verses: List[Verse]
    status: ResultStatus = 'success'

    @property
    def message(self) -> str:
        return self.title

    def as_text(self) -> str:
        """Title line followed by one numbered line per verse."""
        lines = [self.title]
        lines.extend(f"{verse.number} {verse.text}" for verse in self.verses)
        return '\n'.join(lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status,
            'title': self.title,
            'translation': self.translation,
            'book': self.book,
            'canonicalBook': self.canonical_book,
            'chapter': self.chapter,
            'startVerse': self.start_verse,
            'endVerse': self.end_verse,
            'verses': [v.to_dict() for v in self.verses],
            'text': self.as_text(),
        }


@dataclass
class AmbiguousBook:
    """The book token names more than one book; the user must pick."""
    token: str
    candidates: List[str]
    status: ResultStatus = 'ambiguous'

    @property
    def message(self) -> str:
        return f"检测到歧义经卷：{' / '.join(self.candidates)}\n请输入完整名称"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status,
            'token': self.token,
            'candidates': list(self.candidates),
            'message': self.message,
        }


@dataclass
class ParseFailure:
    """Input that could not be turned into a reference; reason says why."""
    raw_input: str
    reason: Literal['empty_input', 'no_rule_matched', 'reversed_range'] = 'no_rule_matched'
    status: ResultStatus = 'parse_failure'

    @property
    def message(self) -> str:
        if self.reason == 'empty_input':
            return EMPTY_INPUT_MESSAGE
        if self.reason == 'reversed_range':
            return REVERSED_RANGE_MESSAGE
        return PARSE_FAILURE_MESSAGE

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status,
            'input': self.raw_input,
            'reason': self.reason,
            'message': self.message,
        }


@dataclass
class NotFound:
    """A well-formed, unambiguous reference with nothing in the corpus."""
    translation: str
    book: str  # Display name
    canonical_book: str
    chapter: int
    start_verse: int
    status: ResultStatus = 'not_found'

    @property
    def message(self) -> str:
        return f"未找到【{self.book} {self.chapter}章】相关经文"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status,
            'translation': self.translation,
            'book': self.book,
            'canonicalBook': self.canonical_book,
            'chapter': self.chapter,
            'startVerse': self.start_verse,
            'message': self.message,
        }
