"""Image resolution: any supported source -> bytes plus detected format.

Supported sources form a closed set:
- UrlSource       http(s) URL, fetched once per process and cached by URL
- DataUriSource   data:image/<fmt>;base64,<payload>
- BytesSource     raw bytes, format sniffed from magic bytes
- DeferredSource  callable (sync or async) returning one of the above

Bare paths are rejected: assets are expected to be hosted remotely.
"""

import asyncio
import base64
import binascii
import hashlib
import inspect
import re
import warnings
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Union

from . import transport
from .cache import IMAGE_CACHE, AssetCache
from .errors import ErrorCode, PaperflowError, wrap_error
from .ir import IRImageUsage

IMAGE_FORMATS = ('png', 'jpeg', 'webp', 'gif', 'svg')

MIME_TYPES = {
    'png': 'image/png',
    'jpeg': 'image/jpeg',
    'webp': 'image/webp',
    'gif': 'image/gif',
    'svg': 'image/svg+xml',
}

DATA_URI_RE = re.compile(r'^data:image/(\w[\w.+-]*);base64,(.+)$')

MAX_DEFERRED_DEPTH = 10


@dataclass(frozen=True)
class UrlSource:
    url: str


@dataclass(frozen=True)
class DataUriSource:
    uri: str


@dataclass(frozen=True)
class BytesSource:
    data: bytes


@dataclass(frozen=True)
class DeferredSource:
    fn: Callable[[], Any]


ImageSource = Union[UrlSource, DataUriSource, BytesSource, DeferredSource]


@dataclass(frozen=True)
class LoadedImage:
    id: str
    data: bytes
    format: str

    @property
    def mime_type(self) -> str:
        return MIME_TYPES.get(self.format, 'image/png')

    def to_data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{base64.b64encode(self.data).decode('ascii')}"


def _digest(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()[:16]


def image_id(source: Any) -> str:
    """Stable identity for a raw source: equal strings or bytes share an id."""
    if isinstance(source, UrlSource):
        source = source.url
    elif isinstance(source, DataUriSource):
        source = source.uri
    elif isinstance(source, BytesSource):
        source = source.data
    elif isinstance(source, DeferredSource):
        source = source.fn
    if isinstance(source, str):
        return f"img_{_digest(source.encode('utf-8'))}"
    if isinstance(source, (bytes, bytearray, memoryview)):
        return f"img_{_digest(bytes(source))}"
    # Deferred producers are only known by identity until they run
    return f"img_obj_{id(source):x}"


def describe_source(source: Any) -> str:
    """Printable reference for a raw source, used in usage lists and messages."""
    if isinstance(source, str):
        return source if len(source) <= 200 else source[:200] + '...'
    if isinstance(source, (bytes, bytearray, memoryview)):
        return f"<bytes:{len(source)}>"
    if callable(source):
        return f"<deferred:{getattr(source, '__name__', type(source).__name__)}>"
    return f"<{type(source).__name__}>"


def classify_source(source: Any) -> ImageSource:
    """Map a raw source value onto one of the supported variants."""
    if isinstance(source, (UrlSource, DataUriSource, BytesSource, DeferredSource)):
        return source
    if isinstance(source, (bytes, bytearray, memoryview)):
        return BytesSource(bytes(source))
    if isinstance(source, str):
        if source.startswith('data:'):
            return DataUriSource(source)
        if source.startswith(('http://', 'https://')):
            return UrlSource(source)
        raise PaperflowError(
            'Local file paths are not supported. Use a URL instead.',
            ErrorCode.LOCAL_FILE_NOT_SUPPORTED,
            {'src': source},
        )
    if callable(source):
        return DeferredSource(source)
    raise PaperflowError(
        f"Invalid image source type: {type(source).__name__}",
        ErrorCode.INVALID_IMAGE_SOURCE,
        {'type': type(source).__name__, 'src': str(source)[:100]},
    )


def detect_image_format(data: bytes) -> str:
    """Detect the image format from leading magic bytes."""
    head = bytes(data[:12])
    if head[:4] == b'\x89PNG':
        return 'png'
    if head[:3] == b'\xff\xd8\xff':
        return 'jpeg'
    if head[:4] == b'RIFF' and head[8:12] == b'WEBP':
        return 'webp'
    if head[:4] == b'GIF8':
        return 'gif'
    text = bytes(data[:100]).decode('utf-8', errors='ignore')
    if '<?xml' in text or '<svg' in text:
        return 'svg'
    raise PaperflowError(
        'Unknown image format. Supported formats: PNG, JPEG, WebP, GIF, SVG',
        ErrorCode.UNKNOWN_IMAGE_FORMAT,
        {'first_bytes': ' '.join(f'{b:02x}' for b in bytes(data[:8]))},
    )


def normalize_format(fmt: str) -> str:
    s = fmt.lower()
    if s in ('jpg', 'jpeg'):
        return 'jpeg'
    if s in ('svg', 'svg+xml'):
        return 'svg'
    if s in IMAGE_FORMATS:
        return s
    return 'png'


def load_bytes(data: bytes) -> LoadedImage:
    data = bytes(data)
    return LoadedImage(id=image_id(data), data=data, format=detect_image_format(data))


def load_data_uri(uri: str) -> LoadedImage:
    m = DATA_URI_RE.match(uri)
    if not m:
        raise PaperflowError(
            'Invalid base64 image data URI. Expected format: data:image/png;base64,<data>',
            ErrorCode.INVALID_BASE64_IMAGE,
            {'data_uri': uri[:50] + '...'},
        )
    fmt, payload = m.group(1), m.group(2)
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise PaperflowError(
            f"Invalid base64 payload: {e}",
            ErrorCode.INVALID_BASE64_IMAGE,
            {'data_uri': uri[:50] + '...'},
        ) from e
    return LoadedImage(id=image_id(uri), data=data, format=normalize_format(fmt))


class ImageResolver:
    """Resolves image sources, caching remote images by URL."""

    def __init__(self, cache: Optional[AssetCache] = None, fetch: Optional[transport.Fetcher] = None):
        self.cache = cache if cache is not None else IMAGE_CACHE
        self.fetch = fetch or transport.fetch

    def clear_cache(self) -> None:
        self.cache.clear()

    async def resolve(self, source: Any) -> LoadedImage:
        return await self._resolve(classify_source(source), 0)

    async def _resolve(self, source: ImageSource, depth: int) -> LoadedImage:
        if isinstance(source, UrlSource):
            return await self._load_url(source.url)
        if isinstance(source, DataUriSource):
            return load_data_uri(source.uri)
        if isinstance(source, BytesSource):
            return load_bytes(source.data)
        if isinstance(source, DeferredSource):
            return await self._load_deferred(source, depth)
        raise PaperflowError(
            f"Invalid image source type: {type(source).__name__}",
            ErrorCode.INVALID_IMAGE_SOURCE,
            {'type': type(source).__name__},
        )

    async def _load_deferred(self, source: DeferredSource, depth: int) -> LoadedImage:
        if depth >= MAX_DEFERRED_DEPTH:
            raise PaperflowError(
                'Deferred image source did not produce an image',
                ErrorCode.INVALID_IMAGE_SOURCE,
                {'type': 'deferred', 'depth': depth},
            )
        try:
            result = source.fn()
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            raise wrap_error(e, ErrorCode.IMAGE_LOAD_FAILED, {'src': describe_source(source.fn)}) from e
        return await self._resolve(classify_source(result), depth + 1)

    async def _load_url(self, url: str) -> LoadedImage:
        cached = self.cache.get(url)
        if cached is not None:
            return cached
        try:
            response = await asyncio.to_thread(self.fetch, url, {'Cache-Control': 'max-stale'})
        except Exception as e:
            raise PaperflowError(
                f"Failed to fetch image: {e}",
                ErrorCode.IMAGE_FETCH_ERROR,
                {'url': url, 'original_error': type(e).__name__},
            ) from e
        if not response.ok:
            raise PaperflowError(
                f"Failed to load image from URL: {response.status}",
                ErrorCode.IMAGE_LOAD_FAILED,
                {'url': url, 'status': response.status},
            )
        try:
            fmt = detect_image_format(response.body)
        except PaperflowError as e:
            e.context['url'] = url
            raise
        return self.cache.put(url, LoadedImage(id=image_id(url), data=response.body, format=fmt))

    async def load_images(self, usages: Sequence[IRImageUsage]) -> Dict[str, LoadedImage]:
        """Resolve every distinct usage concurrently, keyed by usage id.
        Failures are reported as warnings and left out of the result.
        """
        distinct: Dict[str, IRImageUsage] = {}
        for usage in usages:
            distinct.setdefault(usage.id, usage)
        results = await asyncio.gather(
            *(self.resolve(u.original_src) for u in distinct.values()), return_exceptions=True
        )
        images: Dict[str, LoadedImage] = {}
        for usage, result in zip(distinct.values(), results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                warnings.warn(f"Failed to load image {usage.src}: {result}", UserWarning)
                continue
            images[usage.id] = result
        return images

    async def load_image_list(self, sources: Iterable[Any]) -> List[LoadedImage]:
        """Resolve raw sources concurrently; raise the first error only if all fail."""
        results = await asyncio.gather(*(self.resolve(s) for s in sources), return_exceptions=True)
        images: List[LoadedImage] = []
        errors: List[Exception] = []
        for result in results:
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                errors.append(result)
            else:
                images.append(result)
        if not images and errors:
            raise errors[0]
        return images


_default_resolver: Optional[ImageResolver] = None


def default_resolver() -> ImageResolver:
    global _default_resolver
    if _default_resolver is None:
        _default_resolver = ImageResolver()
    return _default_resolver


async def load_image(source: Any) -> LoadedImage:
    return await default_resolver().resolve(source)


def clear_image_cache() -> None:
    IMAGE_CACHE.clear()
