"""
Scripture Loader - fetches mapping tables and corpus texts

Data lives either in a local directory or behind an http(s) base URL:

    chineseNumbers.json    category -> {numeral: int}
    englishToChinese.json  canonical English key -> display name
    bookMappings.json      typed token -> canonical English key
    ambiguousBooks.json    ambiguous token -> [candidate, ...]
    <corpus>.txt           "Genesis 1:1 起初，神创造天地。" per line

Loading has two phases and they fail differently:
1. Configuration tables. Any failure raises ConfigLoadError and nothing is
   served.
2. Corpora. A failure is logged and that translation gets an empty index;
   lookups against it come back as not found.
"""

import json
import sys
import time
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Any, Mapping, Optional

import requests

from book_names import validate_name_tables, report_missing_names
from passage_lookup import parse_corpus_text
from scripture_resolver import ScriptureResolver
from scripture_model import (
    ResolverSettings,
    ResolverTables,
    ConfigLoadError,
    CorpusLoadError,
)


# ============================================================================
# LOGGING
# ============================================================================

def _log(message: str):
    """Status line on stderr (stdout carries the bridge protocol)."""
    print(message, file=sys.stderr, flush=True)


def _debug_log(message: str, debug: bool = False, prefix: str = "[LOAD]"):
    """Print debug message if debug mode is enabled."""
    if debug:
        print(f"{prefix} {message}", file=sys.stderr, flush=True)


# ============================================================================
# SOURCE CLIENT
# ============================================================================

class ScriptureSourceClient:
    """Reads data files from a local directory or an http(s) base URL."""

    def __init__(self, data_source: str, timeout: float = 10, debug: bool = False):
        self.data_source = str(data_source)
        self.timeout = timeout
        self.debug = debug

    @property
    def is_remote(self) -> bool:
        return self.data_source.startswith(('http://', 'https://'))

    def location(self, name: str) -> str:
        """Full path or URL for a data file."""
        if self.is_remote:
            return f"{self.data_source.rstrip('/')}/{name}"
        return str(Path(self.data_source) / name)

    def fetch_text(self, name: str) -> str:
        """
        Read a data file as UTF-8 text.

        Raises:
            requests.RequestException: network failure or non-200 status
            OSError: local file missing or unreadable
            ValueError: contents are not UTF-8
        """
        location = self.location(name)
        started = time.time()
        if self.is_remote:
            response = requests.get(location, timeout=self.timeout)
            if response.status_code != 200:
                raise requests.HTTPError(
                    f"HTTP {response.status_code} for {location}", response=response
                )
            text = response.content.decode('utf-8-sig')
        else:
            with open(location, 'r', encoding='utf-8-sig') as f:
                text = f.read()
        _debug_log(f"read {location} ({len(text)} chars, {time.time() - started:.2f}s)", self.debug)
        return text

    def fetch_json(self, name: str) -> Any:
        """Read and decode a JSON data file. Raises ValueError on bad JSON."""
        return json.loads(self.fetch_text(name))


# ============================================================================
# CONFIGURATION TABLES
# ============================================================================

def _require_object(data: Any, source: str) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise ConfigLoadError(source, f"expected a JSON object, got {type(data).__name__}")
    return data


def _check_numerals(data: Dict[str, Any], source: str):
    for category, values in data.items():
        if not isinstance(values, dict):
            raise ConfigLoadError(source, f"category '{category}' is not an object")
        for numeral, value in values.items():
            if not isinstance(value, int) or isinstance(value, bool):
                raise ConfigLoadError(source, f"'{numeral}' in '{category}' is not an integer")


def _check_string_map(data: Dict[str, Any], source: str):
    for key, value in data.items():
        if not isinstance(value, str):
            raise ConfigLoadError(source, f"value for '{key}' is not a string")


def _check_ambiguous(data: Dict[str, Any], source: str):
    for key, value in data.items():
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ConfigLoadError(source, f"candidates for '{key}' are not a list of strings")


_TABLE_CHECKS = {
    'chinese_numbers': _check_numerals,
    'english_to_chinese': _check_string_map,
    'book_mappings': _check_string_map,
    'ambiguous_books': _check_ambiguous,
}


def load_resolver_tables(client: ScriptureSourceClient, settings: ResolverSettings) -> ResolverTables:
    """
    Load the four mapping tables and freeze them.

    Raises:
        ConfigLoadError: a file is missing, unreachable, not valid JSON, has
            the wrong shape, or (with strict_name_tables) an alias target has
            no display name
    """
    raw: Dict[str, Dict[str, Any]] = {}
    for key, check in _TABLE_CHECKS.items():
        name = settings.config_files.get(key)
        if not name:
            raise ConfigLoadError(key, "no file configured")
        source = client.location(name)
        try:
            data = client.fetch_json(name)
        except (requests.RequestException, OSError) as e:
            raise ConfigLoadError(source, str(e)) from e
        except UnicodeDecodeError as e:
            raise ConfigLoadError(source, f"not UTF-8 text: {e}") from e
        except ValueError as e:
            raise ConfigLoadError(source, f"invalid JSON: {e}") from e
        data = _require_object(data, source)
        check(data, source)
        raw[key] = data
        _debug_log(f"{name}: {len(data)} entries", settings.debug)

    missing = validate_name_tables(raw['book_mappings'], raw['english_to_chinese'])
    if missing and settings.strict_name_tables:
        keys = ', '.join(sorted({canonical for _alias, canonical in missing}))
        raise ConfigLoadError(
            client.location(settings.config_files['english_to_chinese']),
            f"no display name for: {keys}",
        )
    report_missing_names(missing)

    _log("✓ All configuration tables loaded")
    return ResolverTables.build(
        numerals=raw['chinese_numbers'],
        book_aliases=raw['book_mappings'],
        reverse_names=raw['english_to_chinese'],
        ambiguous_books=raw['ambiguous_books'],
    )


# ============================================================================
# CORPORA
# ============================================================================

def load_corpus(client: ScriptureSourceClient, translation: str, name: str) -> Mapping[str, str]:
    """
    Load and index one translation.

    Raises:
        CorpusLoadError: the file is missing or unreachable
    """
    try:
        text = client.fetch_text(name)
    except (requests.RequestException, OSError, ValueError) as e:
        raise CorpusLoadError(translation, client.location(name), str(e)) from e
    return MappingProxyType(parse_corpus_text(text))


def load_corpora(client: ScriptureSourceClient, translations: Mapping[str, str]) -> Dict[str, Mapping[str, str]]:
    """
    Load every translation, substituting an empty index for any that fail.

    Returns:
        Translation name -> corpus index, in the order given
    """
    corpora: Dict[str, Mapping[str, str]] = {}
    for translation, name in translations.items():
        try:
            corpora[translation] = load_corpus(client, translation, name)
            _log(f"✓ {translation}: {len(corpora[translation])} verses")
        except CorpusLoadError as e:
            _log(f"⚠ {e}")
            corpora[translation] = MappingProxyType({})
    return corpora


def initialize_resolver(settings: Optional[ResolverSettings] = None,
                        client: Optional[ScriptureSourceClient] = None):
    """
    Load everything and return a ready ScriptureResolver.

    Configuration tables load first; a ConfigLoadError propagates and no
    resolver is built. Corpora load second and never abort.
    """
    settings = settings or ResolverSettings.from_env()
    client = client or ScriptureSourceClient(
        settings.data_source, timeout=settings.request_timeout, debug=settings.debug
    )
    _log(f"ℹ Loading scripture data from: {client.data_source}")
    tables = load_resolver_tables(client, settings)
    corpora = load_corpora(client, settings.translations)
    return ScriptureResolver(tables, corpora, settings=settings)
