#!/usr/bin/env python3
"""Tests for image source classification, format detection and resolution"""

import base64
import http.client
import os
import sys
import unittest

PROJECT_ROOT = os.path.join(os.path.dirname(__file__), '..', '..')
sys.path.insert(0, os.path.join(PROJECT_ROOT, 'src'))

from paperflow.cache import AssetCache  # noqa: E402
from paperflow.errors import ErrorCode, PaperflowError  # noqa: E402
from paperflow.images import (  # noqa: E402
    BytesSource,
    DataUriSource,
    DeferredSource,
    ImageResolver,
    UrlSource,
    classify_source,
    describe_source,
    detect_image_format,
    image_id,
    load_data_uri,
)
from paperflow.ir import IRImageUsage  # noqa: E402
from paperflow.transport import HttpResponse  # noqa: E402

PNG = b'\x89PNG\r\n\x1a\n' + b'\x00' * 16
JPEG = b'\xff\xd8\xff\xe0' + b'\x00' * 16
WEBP = b'RIFF\x00\x00\x00\x00WEBPVP8 '
GIF = b'GIF89a' + b'\x00' * 10
SVG = b'<svg xmlns="http://www.w3.org/2000/svg"></svg>'


class FakeFetch:
    def __init__(self, responses=None, default=PNG):
        self.calls = []
        self.responses = responses or {}
        self.default = default

    def __call__(self, url, headers=None):
        self.calls.append((url, headers))
        response = self.responses.get(url)
        if isinstance(response, BaseException):
            raise response
        if isinstance(response, int):
            return HttpResponse(status=response)
        if isinstance(response, bytes):
            return HttpResponse(status=200, body=response)
        return HttpResponse(status=200, body=self.default)


class TestImageFormat(unittest.TestCase):
    def test_magic_bytes(self):
        self.assertEqual(detect_image_format(PNG), 'png')
        self.assertEqual(detect_image_format(JPEG), 'jpeg')
        self.assertEqual(detect_image_format(WEBP), 'webp')
        self.assertEqual(detect_image_format(GIF), 'gif')
        self.assertEqual(detect_image_format(SVG), 'svg')
        self.assertEqual(detect_image_format(b'<?xml version="1.0"?><svg/>'), 'svg')

    def test_unknown_format(self):
        with self.assertRaises(PaperflowError) as ctx:
            detect_image_format(b'\x00\x01\x02\x03\x04\x05\x06\x07\x08')
        self.assertEqual(ctx.exception.code, ErrorCode.UNKNOWN_IMAGE_FORMAT)
        self.assertEqual(ctx.exception.context['first_bytes'], '00 01 02 03 04 05 06 07')


class TestClassifySource(unittest.TestCase):
    def test_variants(self):
        self.assertEqual(classify_source('https://x.test/a.png'), UrlSource('https://x.test/a.png'))
        self.assertEqual(classify_source('http://x.test/a.png'), UrlSource('http://x.test/a.png'))
        self.assertIsInstance(classify_source('data:image/png;base64,AAAA'), DataUriSource)
        self.assertEqual(classify_source(PNG), BytesSource(PNG))
        self.assertEqual(classify_source(bytearray(b'ab')), BytesSource(b'ab'))

        def producer():
            return PNG

        self.assertEqual(classify_source(producer), DeferredSource(producer))

    def test_local_path_rejected(self):
        for src in ('./logo.png', '/abs/logo.png', 'logo.png', 'file:///tmp/x.png'):
            with self.assertRaises(PaperflowError) as ctx:
                classify_source(src)
            self.assertEqual(ctx.exception.code, ErrorCode.LOCAL_FILE_NOT_SUPPORTED)
            self.assertEqual(ctx.exception.context['src'], src)
            self.assertIn('URL', ctx.exception.suggestion)

    def test_unsupported_type(self):
        with self.assertRaises(PaperflowError) as ctx:
            classify_source(12345)
        self.assertEqual(ctx.exception.code, ErrorCode.INVALID_IMAGE_SOURCE)
        self.assertEqual(ctx.exception.context['type'], 'int')


class TestImageIds(unittest.TestCase):
    def test_equal_sources_share_id(self):
        self.assertEqual(image_id('https://x.test/a.png'), image_id('https://x.test/a.png'))
        self.assertEqual(image_id(PNG), image_id(bytes(PNG)))
        self.assertEqual(image_id(UrlSource('https://x.test/a.png')), image_id('https://x.test/a.png'))
        self.assertNotEqual(image_id('https://x.test/a.png'), image_id('https://x.test/b.png'))

    def test_empty_bytes(self):
        self.assertTrue(image_id(b'').startswith('img_'))
        self.assertFalse(image_id(b'').startswith('img_obj_'))

    def test_deferred_identity(self):
        def a():
            return PNG

        def b():
            return PNG

        self.assertTrue(image_id(a).startswith('img_obj_'))
        self.assertEqual(image_id(a), image_id(a))
        self.assertNotEqual(image_id(a), image_id(b))

    def test_describe(self):
        self.assertEqual(describe_source(PNG), f'<bytes:{len(PNG)}>')
        self.assertEqual(describe_source('x' * 300), 'x' * 200 + '...')


class TestDataUri(unittest.TestCase):
    def test_decodes_payload(self):
        uri = 'data:image/jpg;base64,' + base64.b64encode(JPEG).decode('ascii')
        img = load_data_uri(uri)
        self.assertEqual(img.data, JPEG)
        self.assertEqual(img.format, 'jpeg')
        self.assertEqual(img.mime_type, 'image/jpeg')

    def test_svg_xml_subtype(self):
        uri = 'data:image/svg+xml;base64,' + base64.b64encode(SVG).decode('ascii')
        self.assertEqual(load_data_uri(uri).format, 'svg')

    def test_malformed(self):
        for uri in ('data:text/plain;base64,AAAA', 'data:image/png,raw', 'data:image/png;base64,@@@@'):
            with self.assertRaises(PaperflowError) as ctx:
                load_data_uri(uri)
            self.assertEqual(ctx.exception.code, ErrorCode.INVALID_BASE64_IMAGE)

    def test_round_trip_data_uri(self):
        uri = 'data:image/png;base64,' + base64.b64encode(PNG).decode('ascii')
        self.assertEqual(load_data_uri(uri).to_data_uri(), uri)


class TestImageResolver(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.cache = AssetCache('test-images')

    async def test_url_fetched_once(self):
        fetch = FakeFetch()
        resolver = ImageResolver(cache=self.cache, fetch=fetch)
        first = await resolver.resolve('https://x.test/a.png')
        second = await resolver.resolve('https://x.test/a.png')
        self.assertIs(first, second)
        self.assertEqual(first.format, 'png')
        self.assertEqual(len(fetch.calls), 1)
        self.assertEqual(fetch.calls[0][1], {'Cache-Control': 'max-stale'})

    async def test_url_status_error(self):
        fetch = FakeFetch({'https://x.test/missing.png': 404})
        resolver = ImageResolver(cache=self.cache, fetch=fetch)
        with self.assertRaises(PaperflowError) as ctx:
            await resolver.resolve('https://x.test/missing.png')
        err = ctx.exception
        self.assertEqual(err.code, ErrorCode.IMAGE_LOAD_FAILED)
        self.assertEqual(err.context['status'], 404)
        self.assertEqual(err.context['url'], 'https://x.test/missing.png')
        self.assertEqual(len(self.cache), 0)

    async def test_url_transport_error(self):
        fetch = FakeFetch({'https://x.test/a.png': TimeoutError('timed out')})
        resolver = ImageResolver(cache=self.cache, fetch=fetch)
        with self.assertRaises(PaperflowError) as ctx:
            await resolver.resolve('https://x.test/a.png')
        self.assertEqual(ctx.exception.code, ErrorCode.IMAGE_FETCH_ERROR)

    async def test_url_rejected_by_http_client_wrapped(self):
        url = 'http://x.test/a b.png'
        fetch = FakeFetch({url: http.client.InvalidURL('URL can\'t contain control characters')})
        resolver = ImageResolver(cache=self.cache, fetch=fetch)
        with self.assertRaises(PaperflowError) as ctx:
            await resolver.resolve(url)
        err = ctx.exception
        self.assertEqual(err.code, ErrorCode.IMAGE_FETCH_ERROR)
        self.assertEqual(err.context['url'], url)
        self.assertEqual(err.context['original_error'], 'InvalidURL')
        self.assertEqual(len(self.cache), 0)

    async def test_url_unknown_format_carries_url(self):
        fetch = FakeFetch({'https://x.test/page': b'\x00\x00\x00\x00 not an image'})
        resolver = ImageResolver(cache=self.cache, fetch=fetch)
        with self.assertRaises(PaperflowError) as ctx:
            await resolver.resolve('https://x.test/page')
        self.assertEqual(ctx.exception.code, ErrorCode.UNKNOWN_IMAGE_FORMAT)
        self.assertEqual(ctx.exception.context['url'], 'https://x.test/page')

    async def test_bytes_and_data_uri(self):
        resolver = ImageResolver(cache=self.cache, fetch=FakeFetch())
        img = await resolver.resolve(GIF)
        self.assertEqual((img.format, img.data), ('gif', GIF))
        uri = 'data:image/webp;base64,' + base64.b64encode(WEBP).decode('ascii')
        self.assertEqual((await resolver.resolve(uri)).format, 'webp')

    async def test_deferred_sync_and_async(self):
        fetch = FakeFetch()
        resolver = ImageResolver(cache=self.cache, fetch=fetch)

        def sync_producer():
            return JPEG

        async def async_producer():
            return 'https://x.test/from-async.png'

        self.assertEqual((await resolver.resolve(sync_producer)).format, 'jpeg')
        self.assertEqual((await resolver.resolve(async_producer)).format, 'png')
        self.assertEqual(fetch.calls[0][0], 'https://x.test/from-async.png')

    async def test_deferred_failure_wrapped(self):
        def broken():
            raise RuntimeError('no chart today')

        resolver = ImageResolver(cache=self.cache, fetch=FakeFetch())
        with self.assertRaises(PaperflowError) as ctx:
            await resolver.resolve(broken)
        self.assertEqual(ctx.exception.code, ErrorCode.IMAGE_LOAD_FAILED)
        self.assertEqual(ctx.exception.context['original_error'], 'RuntimeError')

    async def test_deferred_chain_is_bounded(self):
        def endless():
            return endless

        resolver = ImageResolver(cache=self.cache, fetch=FakeFetch())
        with self.assertRaises(PaperflowError) as ctx:
            await resolver.resolve(endless)
        self.assertEqual(ctx.exception.code, ErrorCode.INVALID_IMAGE_SOURCE)

    async def test_load_images_tolerates_failures(self):
        fetch = FakeFetch({'https://x.test/bad.png': 500})
        resolver = ImageResolver(cache=self.cache, fetch=fetch)
        good = IRImageUsage(image_id('https://x.test/a.png'), 'https://x.test/a.png', 'https://x.test/a.png')
        bad = IRImageUsage(image_id('https://x.test/bad.png'), 'https://x.test/bad.png', 'https://x.test/bad.png')
        with self.assertWarns(UserWarning):
            images = await resolver.load_images([good, bad, good])
        self.assertEqual(list(images), [good.id])
        self.assertEqual(images[good.id].format, 'png')
        self.assertEqual(len(fetch.calls), 2)

    async def test_load_image_list(self):
        resolver = ImageResolver(cache=self.cache, fetch=FakeFetch({'https://x.test/bad.png': 404}))
        images = await resolver.load_image_list([PNG, 'https://x.test/bad.png'])
        self.assertEqual(len(images), 1)
        with self.assertRaises(PaperflowError) as ctx:
            await resolver.load_image_list(['https://x.test/bad.png', './local.png'])
        self.assertEqual(ctx.exception.code, ErrorCode.IMAGE_LOAD_FAILED)


if __name__ == '__main__':
    unittest.main()
