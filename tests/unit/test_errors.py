#!/usr/bin/env python3
"""Tests for the shared error model"""

import os
import sys
import unittest

PROJECT_ROOT = os.path.join(os.path.dirname(__file__), '..', '..')
sys.path.insert(0, os.path.join(PROJECT_ROOT, 'src'))

from paperflow.errors import ErrorCode, PaperflowError, is_paperflow_error, wrap_error  # noqa: E402


class TestPaperflowError(unittest.TestCase):
    def test_fields_and_suggestion(self):
        err = PaperflowError('boom', ErrorCode.FONT_LOAD_FAILED, {'family': 'Nope'})
        self.assertEqual(err.message, 'boom')
        self.assertEqual(err.code, ErrorCode.FONT_LOAD_FAILED)
        self.assertEqual(err.context, {'family': 'Nope'})
        self.assertIn('"Nope"', err.suggestion)

    def test_explicit_suggestion_wins(self):
        err = PaperflowError('x', ErrorCode.NO_PAGES, {'suggestion': 'add a page', 'n': 0})
        self.assertEqual(err.suggestion, 'add a page')
        self.assertEqual(err.context, {'n': 0})

    def test_code_accepts_string(self):
        self.assertIs(PaperflowError('x', 'NO_PAGES').code, ErrorCode.NO_PAGES)

    def test_str_includes_code_and_context(self):
        text = str(PaperflowError('bad src', ErrorCode.LOCAL_FILE_NOT_SUPPORTED, {'src': './a.png'}))
        self.assertIn('[LOCAL_FILE_NOT_SUPPORTED]', text)
        self.assertIn('Suggestion:', text)
        self.assertIn('"src": "./a.png"', text)

    def test_to_dict(self):
        d = PaperflowError('gone', ErrorCode.UNKNOWN_ERROR).to_dict()
        self.assertEqual(d['code'], 'UNKNOWN_ERROR')
        self.assertEqual(d['message'], 'gone')
        self.assertIsNone(d['suggestion'])
        self.assertEqual(d['context'], {})

    def test_unknown_engine_lists_available(self):
        err = PaperflowError('x', ErrorCode.UNKNOWN_ENGINE, {'engine': 'tex', 'available': ['a', 'b']})
        self.assertIn('a, b', err.suggestion)


class TestWrapError(unittest.TestCase):
    def test_passthrough(self):
        original = PaperflowError('x', ErrorCode.NO_PAGES)
        self.assertIs(wrap_error(original, ErrorCode.RENDER_FAILED), original)

    def test_wraps_foreign_errors(self):
        err = wrap_error(ValueError('bad value'), ErrorCode.RENDER_FAILED, {'stage': 'engine'})
        self.assertTrue(is_paperflow_error(err))
        self.assertEqual(err.code, ErrorCode.RENDER_FAILED)
        self.assertEqual(err.message, 'bad value')
        self.assertEqual(err.context, {'stage': 'engine', 'original_error': 'ValueError'})
        self.assertFalse(is_paperflow_error(ValueError()))


if __name__ == '__main__':
    unittest.main()
