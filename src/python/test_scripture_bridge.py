#!/usr/bin/env python3
"""
Tests for the JSON command bridge.

Verifies that:
- resolve / resolve_batch return result dicts for every outcome
- list_translations reports load order and the default
- check_dependencies reports requests
- main() emits exactly one JSON line, including on bad input and on
  configuration failure
"""

import sys
import os
import io
import json
import unittest
from unittest.mock import patch

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import scripture_bridge
from scripture_bridge import check_dependencies, handle_command, main, set_resolver
from scripture_model import ConfigLoadError, ResolverSettings, ResolverTables
from scripture_resolver import ScriptureResolver


def make_resolver() -> ScriptureResolver:
    tables = ResolverTables.build(
        numerals={'基本': {'一': 1, '三': 3}},
        book_aliases={'创': 'Genesis', '约': 'John'},
        reverse_names={'Genesis': '创世记', 'John': '约翰福音'},
        ambiguous_books={'约翰': ['约翰福音', '约翰一书', '约翰二书']},
    )
    corpora = {
        '和合本': {'Genesis1:1': '起初，神创造天地。', 'John3:16': '神爱世人'},
        '环球译本': {},
    }
    settings = ResolverSettings(translations={'和合本': '', '环球译本': ''})
    return ScriptureResolver(tables, corpora, settings=settings)


def run_main(stdin_text: str):
    """Run main() with the given stdin; return (exit code, parsed stdout line)."""
    stdout = io.StringIO()
    with patch.object(sys, 'stdin', io.StringIO(stdin_text)), \
            patch.object(sys, 'stdout', stdout):
        code = main()
    lines = stdout.getvalue().strip().splitlines()
    return code, json.loads(lines[-1]), len(lines)


class BridgeTestCase(unittest.TestCase):

    def setUp(self):
        set_resolver(make_resolver())

    def tearDown(self):
        set_resolver(None)


class TestHandleCommand(BridgeTestCase):

    def test_resolve_success(self):
        result = handle_command({'command': 'resolve', 'reference': '创1:1', 'translation': '和合本'})
        self.assertEqual(result['status'], 'success')
        self.assertEqual(result['title'], '和合本：创世记 1章1-1节')

    def test_resolve_uses_default_translation(self):
        result = handle_command({'command': 'resolve', 'reference': '约3:16'})
        self.assertEqual(result['translation'], '和合本')

    def test_resolve_ambiguous(self):
        result = handle_command({'command': 'resolve', 'reference': '约翰3:16'})
        self.assertEqual(result['status'], 'ambiguous')
        self.assertEqual(result['candidates'], ['约翰福音', '约翰一书', '约翰二书'])

    def test_resolve_not_found_in_empty_translation(self):
        result = handle_command({'command': 'resolve', 'reference': '创1:1', 'translation': '环球译本'})
        self.assertEqual(result['status'], 'not_found')

    def test_resolve_requires_reference(self):
        self.assertEqual(handle_command({'command': 'resolve'}), {'error': 'reference is required'})

    def test_resolve_unknown_translation(self):
        result = handle_command({'command': 'resolve', 'reference': '创1:1', 'translation': 'KJV'})
        self.assertIn('Unknown translation: KJV', result['error'])

    def test_resolve_batch(self):
        result = handle_command({'command': 'resolve_batch', 'references': ['创1:1', '', '创三']})
        self.assertEqual([r['status'] for r in result['results']],
                         ['success', 'parse_failure', 'parse_failure'])

    def test_resolve_batch_requires_list(self):
        self.assertIn('error', handle_command({'command': 'resolve_batch', 'references': '创1:1'}))

    def test_list_translations(self):
        self.assertEqual(handle_command({'command': 'list_translations'}),
                         {'translations': ['和合本', '环球译本'], 'default': '和合本'})

    def test_unknown_command(self):
        self.assertEqual(handle_command({'command': 'transcribe'}), {'error': 'Unknown command: transcribe'})

    def test_check_dependencies(self):
        result = check_dependencies()
        self.assertTrue(result['dependencies']['requests'])
        self.assertTrue(result['all_installed'])


class TestMain(BridgeTestCase):

    def test_emits_result_line(self):
        code, payload, count = run_main(json.dumps({'command': 'resolve', 'reference': '创1:1'}))
        self.assertEqual(code, 0)
        self.assertEqual(count, 1)
        self.assertEqual(payload['type'], 'result')
        self.assertEqual(payload['verses'], [{'verse': 1, 'text': '起初，神创造天地。'}])

    def test_empty_input(self):
        code, payload, _ = run_main('   ')
        self.assertEqual(code, 1)
        self.assertEqual(payload, {'type': 'error', 'error': 'No input provided'})

    def test_invalid_json(self):
        code, payload, _ = run_main('{"command": ')
        self.assertEqual(code, 1)
        self.assertTrue(payload['error'].startswith('Invalid JSON input'))

    def test_non_object_command(self):
        code, payload, _ = run_main('["resolve"]')
        self.assertEqual(code, 1)
        self.assertEqual(payload['error'], 'Command must be a JSON object')

    def test_config_failure_is_reported(self):
        set_resolver(None)
        error = ConfigLoadError('bookMappings.json', 'HTTP 404')
        with patch.object(scripture_bridge, 'initialize_resolver', side_effect=error):
            code, payload, _ = run_main(json.dumps({'command': 'resolve', 'reference': '创1:1'}))
        self.assertEqual(code, 1)
        self.assertEqual(payload['type'], 'error')
        self.assertIn('bookMappings.json', payload['error'])


if __name__ == '__main__':
    unittest.main()
