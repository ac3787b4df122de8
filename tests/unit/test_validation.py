#!/usr/bin/env python3
"""Tests for structural validation of converted pages"""

import os
import sys
import unittest

PROJECT_ROOT = os.path.join(os.path.dirname(__file__), '..', '..')
sys.path.insert(0, os.path.join(PROJECT_ROOT, 'src'))

from paperflow import convert_tree, image, link, page, text, validate_pages, view  # noqa: E402
from paperflow.ir import IRNode, IRPage, Margin, PageSize  # noqa: E402


def _pages(root):
    return convert_tree(root).pages


class TestValidatePages(unittest.TestCase):
    def test_valid_document(self):
        result = validate_pages(_pages(page(view(text('hi'), link('x', href='https://x.test')))))
        self.assertTrue(result.ok())
        self.assertEqual(result.issues, [])

    def test_no_pages(self):
        result = validate_pages([])
        self.assertFalse(result.ok())
        self.assertEqual(result.errors()[0].path, '/pages')

    def test_empty_page_is_warning(self):
        result = validate_pages(_pages(page()))
        self.assertTrue(result.ok())
        self.assertEqual(result.issues[0].severity, 'warn')

    def test_nested_page_rejected(self):
        result = validate_pages(_pages(page(view(page(text('inner'))))))
        self.assertFalse(result.ok())
        self.assertEqual(result.errors()[0].path, '/pages/0/children/0/children/0')

    def test_link_without_href(self):
        result = validate_pages(_pages(page(link('x', href='  '))))
        self.assertEqual([i.path for i in result.errors()], ['/pages/0/children/0/href'])

    def test_opacity_range(self):
        result = validate_pages(_pages(page(view(style={'opacity': 1.5}))))
        self.assertEqual(result.errors()[0].path, '/pages/0/children/0/style/opacity')

    def test_margins_must_leave_room(self):
        pages = [IRPage(PageSize(100, 100), Margin(10, 60, 10, 60), (IRNode('text', props={'content': 'x'}),))]
        self.assertIn('no content area', validate_pages(pages).errors()[0].message)
        pages = [IRPage(PageSize(100, 100), Margin(-1, 0, 0, 0), (IRNode('text', props={'content': 'x'}),))]
        self.assertIn('negative', validate_pages(pages).errors()[0].message)

    def test_non_positive_size(self):
        pages = [IRPage(PageSize(0, 100), Margin(), (IRNode('text', props={'content': 'x'}),))]
        self.assertEqual(validate_pages(pages).errors()[0].path, '/pages/0/size')

    def test_unknown_kind_and_image_without_id(self):
        pages = [IRPage(PageSize(100, 100), Margin(), (IRNode('table'), IRNode('image')))]
        messages = [i.message for i in validate_pages(pages).errors()]
        self.assertIn("Unknown node kind 'table'", messages)
        self.assertIn('Image element missing src', messages)

    def test_image_with_src_passes(self):
        self.assertTrue(validate_pages(_pages(page(image('https://x.test/a.png')))).ok())


if __name__ == '__main__':
    unittest.main()
