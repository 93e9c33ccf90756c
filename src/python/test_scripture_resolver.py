#!/usr/bin/env python3
"""
End-to-end tests for the resolution pipeline.

Scenarios:
- A: single verse found, title built from the display name
- B: ambiguous book token, lookup never attempted
- C: chapter missing from the corpus -> not found
- D: empty input -> format guidance before parsing
Plus translation selection, display-name fallback and JSON output.
"""

import sys
import os
import unittest
from unittest.mock import patch

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import scripture_resolver
from scripture_model import (
    EMPTY_INPUT_MESSAGE,
    PARSE_FAILURE_MESSAGE,
    REVERSED_RANGE_MESSAGE,
    AmbiguousBook,
    NotFound,
    ParseFailure,
    ResolutionSuccess,
    ResolverSettings,
    ResolverTables,
    UnknownTranslationError,
    Verse,
)
from scripture_resolver import ScriptureResolver, format_title


# ============================================================================
# FIXTURES
# ============================================================================

def make_tables() -> ResolverTables:
    return ResolverTables.build(
        numerals={
            '基本': {'一': 1, '二': 2, '三': 3, '十': 10},
            '组合': {'十六': 16},
        },
        book_aliases={
            '创': 'Genesis',
            '创世记': 'Genesis',
            '约翰福音': 'John',
            '约': 'John',
            '诗': 'Psalms',
            '犹': 'Jude',
        },
        reverse_names={
            'Genesis': '创世记',
            'John': '约翰福音',
            'Psalms': '诗篇',
        },
        ambiguous_books={
            '约翰': ['约翰福音', '约翰一书', '约翰二书'],
        },
    )


def make_corpora() -> dict:
    union = {
        'Genesis1:1': '起初，神创造天地。',
        'Genesis1:2': '地是空虚混沌，渊面黑暗；神的灵运行在水面上。',
        'Genesis1:3': '神说：“要有光”，就有了光。',
        'John3:16': '神爱世人，甚至将他的独生子赐给他们。',
        'Jude1:1': '耶稣基督的仆人，雅各的弟兄犹大。',
    }
    for v in range(1, 31):
        union[f'Psalms119:{v}'] = f'诗篇一百一十九篇{v}节'
    return {
        '和合本': union,
        '环球译本': {'Genesis1:1': '太初，神创造了天地。'},
    }


def make_resolver(**settings) -> ScriptureResolver:
    return ScriptureResolver(
        make_tables(),
        make_corpora(),
        settings=ResolverSettings(translations={'和合本': '', '环球译本': ''}, **settings),
    )


# ============================================================================
# SCENARIOS
# ============================================================================

class TestScenarios(unittest.TestCase):

    def setUp(self):
        self.resolver = make_resolver()

    def test_a_single_verse(self):
        result = self.resolver.resolve('创1:1', '和合本')
        self.assertIsInstance(result, ResolutionSuccess)
        self.assertIn('创世记 1章1-1节', result.title)
        self.assertEqual(result.title, '和合本：创世记 1章1-1节')
        self.assertEqual(result.verses, [Verse(1, '起初，神创造天地。')])
        self.assertEqual(result.canonical_book, 'Genesis')

    def test_b_ambiguous_book(self):
        with patch.object(scripture_resolver, 'lookup_passage') as lookup:
            result = self.resolver.resolve('约翰3:16', '和合本')
        self.assertIsInstance(result, AmbiguousBook)
        self.assertEqual(result.candidates, ['约翰福音', '约翰一书', '约翰二书'])
        self.assertEqual(result.message, '检测到歧义经卷：约翰福音 / 约翰一书 / 约翰二书\n请输入完整名称')
        lookup.assert_not_called()

    def test_c_missing_chapter(self):
        result = self.resolver.resolve('创99:1', '和合本')
        self.assertIsInstance(result, NotFound)
        self.assertEqual((result.book, result.chapter), ('创世记', 99))
        self.assertEqual(result.message, '未找到【创世记 99章】相关经文')

    def test_d_empty_input(self):
        for raw in ('', '   ', '\t\n'):
            with self.subTest(raw=raw):
                with patch.object(self.resolver.parser, 'parse') as parse:
                    result = self.resolver.resolve(raw, '和合本')
                self.assertIsInstance(result, ParseFailure)
                self.assertEqual(result.reason, 'empty_input')
                self.assertEqual(result.message, EMPTY_INPUT_MESSAGE)
                parse.assert_not_called()


# ============================================================================
# PIPELINE BEHAVIOUR
# ============================================================================

class TestResolve(unittest.TestCase):

    def setUp(self):
        self.resolver = make_resolver()

    def test_parse_failure(self):
        result = self.resolver.resolve('hello', '和合本')
        self.assertIsInstance(result, ParseFailure)
        self.assertEqual(result.reason, 'no_rule_matched')
        self.assertEqual(result.message, PARSE_FAILURE_MESSAGE)

    def test_reversed_range_is_reported(self):
        result = self.resolver.resolve('创1:3-2', '和合本')
        self.assertIsInstance(result, ParseFailure)
        self.assertEqual(result.reason, 'reversed_range')
        self.assertEqual(result.message, REVERSED_RANGE_MESSAGE)
        self.assertEqual(result.to_dict()['reason'], 'reversed_range')

    def test_range_stops_at_end_of_chapter(self):
        result = self.resolver.resolve('创1:2-10')
        self.assertEqual([v.number for v in result.verses], [2, 3])
        self.assertEqual(result.title, '和合本：创世记 1章2-3节')

    def test_whole_chapter_is_capped(self):
        result = self.resolver.resolve('诗119')
        self.assertEqual(len(result.verses), 20)
        self.assertEqual(result.title, '和合本：诗篇 119章1-20节')

    def test_whole_chapter_cap_from_settings(self):
        result = make_resolver(max_unranged_verses=5).resolve('诗119')
        self.assertEqual(len(result.verses), 5)

    def test_chinese_numeral_chapter(self):
        result = self.resolver.resolve('约三:16')
        self.assertIsInstance(result, ResolutionSuccess)
        self.assertEqual(result.verses[0].text, '神爱世人，甚至将他的独生子赐给他们。')

    def test_full_book_name_after_disambiguation(self):
        result = self.resolver.resolve('约翰福音3:16')
        self.assertEqual(result.book, '约翰福音')

    def test_english_key_typed_directly(self):
        result = self.resolver.resolve('Genesis1:1')
        self.assertEqual(result.book, '创世记')

    def test_missing_display_name_falls_back_to_token(self):
        result = self.resolver.resolve('犹1:1')
        self.assertEqual(result.book, '犹')
        self.assertEqual(result.canonical_book, 'Jude')

    def test_unknown_book_is_not_found(self):
        result = self.resolver.resolve('马太1:1')
        self.assertIsInstance(result, NotFound)
        self.assertEqual(result.canonical_book, '马太')

    def test_translation_selection(self):
        result = self.resolver.resolve('创1:1', '环球译本')
        self.assertEqual(result.verses[0].text, '太初，神创造了天地。')
        self.assertTrue(result.title.startswith('环球译本：'))

    def test_default_translation(self):
        self.assertEqual(self.resolver.default_translation, '和合本')
        self.assertEqual(self.resolver.resolve('创1:1').translation, '和合本')

    def test_empty_corpus_degrades_to_not_found(self):
        resolver = ScriptureResolver(make_tables(), {'和合本': {}})
        self.assertIsInstance(resolver.resolve('创1:1'), NotFound)

    def test_unknown_translation_raises(self):
        with self.assertRaises(UnknownTranslationError):
            self.resolver.resolve('创1:1', '不存在')

    def test_translations_in_load_order(self):
        self.assertEqual(self.resolver.translations, ['和合本', '环球译本'])


# ============================================================================
# OUTPUT
# ============================================================================

class TestResultOutput(unittest.TestCase):

    def setUp(self):
        self.resolver = make_resolver()

    def test_success_as_text(self):
        result = self.resolver.resolve('创1:1-2')
        self.assertEqual(
            result.as_text(),
            '和合本：创世记 1章1-2节\n'
            '1 起初，神创造天地。\n'
            '2 地是空虚混沌，渊面黑暗；神的灵运行在水面上。',
        )

    def test_success_to_dict(self):
        data = self.resolver.resolve('创1:1').to_dict()
        self.assertEqual(data['status'], 'success')
        self.assertEqual(data['canonicalBook'], 'Genesis')
        self.assertEqual(data['verses'], [{'verse': 1, 'text': '起初，神创造天地。'}])

    def test_other_results_to_dict(self):
        self.assertEqual(self.resolver.resolve('约翰3:16').to_dict()['status'], 'ambiguous')
        self.assertEqual(self.resolver.resolve('').to_dict()['status'], 'parse_failure')
        self.assertEqual(self.resolver.resolve('创99').to_dict()['status'], 'not_found')

    def test_format_title(self):
        self.assertEqual(format_title('和合本', '诗篇', 23, 1, 6), '和合本：诗篇 23章1-6节')


if __name__ == '__main__':
    unittest.main()
