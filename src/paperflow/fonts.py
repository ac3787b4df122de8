"""Font resolution: (family, weight, style) -> font bytes.

Lookup order for a single font:
1) the binary cache (process-wide unless a cache is injected)
2) fonts registered explicitly with register_font()/register_font_data()
3) the public Google Fonts catalog (stylesheet request, then the font file)

Bulk loading for a document fans out every combination concurrently and
succeeds when at least one font could be loaded.
"""

import asyncio
import io
import os
import re
import warnings
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from fontTools.ttLib import TTFont

from . import transport
from .cache import FONT_CACHE, AssetCache
from .errors import ErrorCode, PaperflowError
from .ir import IRFontUsage, IRPage, normalize_font_style, normalize_weight

DEFAULTS = {
    'DEFAULT_FONT': 'Inter',
    'CSS_URL': 'https://fonts.googleapis.com/css2',
    # The catalog serves woff2 to modern desktop browsers and ttf otherwise
    'CSS_USER_AGENT': 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36',
}

# Normalized family -> Google Fonts identifier
BUILT_IN_FONTS = {
    # Sans-serif
    'inter': 'Inter',
    'roboto': 'Roboto',
    'open-sans': 'Open+Sans',
    'opensans': 'Open+Sans',
    'lato': 'Lato',
    'poppins': 'Poppins',
    'montserrat': 'Montserrat',
    'nunito': 'Nunito',
    'raleway': 'Raleway',
    'ubuntu': 'Ubuntu',
    'plus-jakarta-sans': 'Plus+Jakarta+Sans',
    'plusjakartasans': 'Plus+Jakarta+Sans',
    'dm-sans': 'DM+Sans',
    'dmsans': 'DM+Sans',
    'source-sans-pro': 'Source+Sans+Pro',
    'work-sans': 'Work+Sans',
    'nunito-sans': 'Nunito+Sans',
    # Serif
    'merriweather': 'Merriweather',
    'playfair-display': 'Playfair+Display',
    'lora': 'Lora',
    'pt-serif': 'PT+Serif',
    'source-serif-pro': 'Source+Serif+Pro',
    'crimson-text': 'Crimson+Text',
    # Monospace
    'fira-code': 'Fira+Code',
    'jetbrains-mono': 'JetBrains+Mono',
    'source-code-pro': 'Source+Code+Pro',
    'roboto-mono': 'Roboto+Mono',
    'ibm-plex-mono': 'IBM+Plex+Mono',
}

FONT_URL_RE = re.compile(r'url\(([^)]+\.(?:woff2|ttf|otf)[^)]*)\)')

FontKey = Tuple[str, int, str]


def settings() -> Dict[str, str]:
    """DEFAULTS overridden by PAPERFLOW_DEFAULT_FONT / PAPERFLOW_FONTS_CSS_URL."""
    d = DEFAULTS.copy()
    env_font = os.environ.get('PAPERFLOW_DEFAULT_FONT', '').strip()
    if env_font:
        d['DEFAULT_FONT'] = env_font
    env_url = os.environ.get('PAPERFLOW_FONTS_CSS_URL', '').strip()
    if env_url:
        d['CSS_URL'] = env_url
    return d


def normalize_family(family: str) -> str:
    """'"Open  Sans"' -> 'open-sans'"""
    s = re.sub(r'["\']', '', str(family)).lower().strip()
    return re.sub(r'\s+', '-', s)


def primary_family(font_family: str) -> Optional[str]:
    """First entry of a CSS font-family list, unquoted."""
    for part in str(font_family).split(','):
        name = part.strip().strip('"\'').strip()
        if name:
            return name
    return None


def catalog_name(family: str) -> str:
    """Catalog identifier for a normalized family ('open-sans' -> 'Open+Sans')."""
    if family in BUILT_IN_FONTS:
        return BUILT_IN_FONTS[family]
    words = [w for w in family.replace('-', ' ').split(' ') if w]
    return '+'.join(w[:1].upper() + w[1:].lower() for w in words)


def detect_font_format(data: bytes) -> Optional[str]:
    head = bytes(data[:4])
    if head == b'wOF2':
        return 'woff2'
    if head == b'wOFF':
        return 'woff'
    if head == b'OTTO':
        return 'otf'
    if head in (b'\x00\x01\x00\x00', b'true'):
        return 'ttf'
    if head == b'ttcf':
        return 'ttc'
    return None


def read_family_name(data: bytes) -> str:
    """Family name from the font's name table (typographic family first)."""
    try:
        font = TTFont(io.BytesIO(data), lazy=True, fontNumber=0)
        try:
            table = font['name']
            name = table.getDebugName(16) or table.getDebugName(1)
        finally:
            font.close()
    except Exception as e:
        raise PaperflowError(
            f"Could not read font data: {e}",
            ErrorCode.INVALID_FONT_FORMAT,
            {'format': detect_font_format(data), 'size': len(data)},
        ) from e
    if not name:
        raise PaperflowError(
            'Font data has no family name; pass family explicitly',
            ErrorCode.INVALID_FONT_FORMAT,
            {'format': detect_font_format(data), 'size': len(data)},
        )
    return name


@dataclass(frozen=True)
class FontConfig:
    """A registered font: inline bytes or a URL to fetch them from."""

    family: str
    src: Union[bytes, str]
    weight: int = 400
    style: str = 'normal'


@dataclass(frozen=True)
class LoadedFont:
    family: str
    weight: int
    style: str
    data: bytes

    @property
    def format(self) -> Optional[str]:
        return detect_font_format(self.data)


class FontUsageCollector:
    """Accumulates (family, weight, style) usage, deduplicated by family."""

    def __init__(self):
        self._fonts: Dict[str, Tuple[set, set]] = {}

    def add(self, family: str, weight=None, style=None) -> None:
        name = primary_family(family)
        if not name:
            return
        key = normalize_family(name)
        weights, styles = self._fonts.setdefault(key, (set(), set()))
        weights.add(normalize_weight(weight))
        styles.add(normalize_font_style(style))

    def add_style(self, style: Dict) -> None:
        family = style.get('fontFamily')
        if family:
            self.add(family, style.get('fontWeight'), style.get('fontStyle'))

    def usages(self) -> List[IRFontUsage]:
        return [
            IRFontUsage(
                family=family,
                weights=tuple(sorted(weights)),
                styles=tuple(s for s in ('normal', 'italic') if s in styles),
            )
            for family, (weights, styles) in self._fonts.items()
        ]

    def __len__(self) -> int:
        return len(self._fonts)


def detect_fonts(pages: Iterable[IRPage]) -> List[IRFontUsage]:
    """Collect font usage from already converted pages."""
    collector = FontUsageCollector()
    for p in pages:
        for child in p.children:
            for node in child.walk():
                collector.add_style(node.style)
    return collector.usages()


def default_font_usage(family: Optional[str] = None) -> IRFontUsage:
    return IRFontUsage(normalize_family(family or settings()['DEFAULT_FONT']), (400,), ('normal',))


class FontResolver:
    """Resolves fonts through cache, registry and the remote catalog."""

    def __init__(
        self,
        cache: Optional[AssetCache] = None,
        fetch: Optional[transport.Fetcher] = None,
        css_url: Optional[str] = None,
        default_family: Optional[str] = None,
    ):
        cfg = settings()
        self.cache = cache if cache is not None else FONT_CACHE
        self.fetch = fetch or transport.fetch
        self.css_url = css_url or cfg['CSS_URL']
        self.css_user_agent = cfg['CSS_USER_AGENT']
        self.default_family = default_family or cfg['DEFAULT_FONT']
        self._registry: Dict[str, List[FontConfig]] = {}

    # Registry

    def register_font(self, config: FontConfig) -> None:
        family = normalize_family(config.family)
        self._registry.setdefault(family, []).append(config)

    def register_font_data(
        self, data: bytes, family: Optional[str] = None, weight=400, style='normal'
    ) -> FontConfig:
        """Register inline font bytes; the family is read from the font when omitted."""
        data = bytes(data)
        config = FontConfig(
            family=family or read_family_name(data),
            src=data,
            weight=normalize_weight(weight),
            style=normalize_font_style(style),
        )
        self.register_font(config)
        return config

    def find_registered(self, family: str, weight: int, style: str) -> Optional[FontConfig]:
        fonts = self._registry.get(family)
        if not fonts:
            return None
        for f in fonts:
            if f.weight == weight and f.style == style:
                return f
        # Best effort: any face of the family beats a catalog lookup
        return fonts[0]

    def clear_registry(self) -> None:
        self._registry.clear()

    def clear_cache(self) -> None:
        self.cache.clear()

    # Resolution

    async def _get(self, url: str, headers: Optional[Dict[str, str]] = None) -> transport.HttpResponse:
        return await asyncio.to_thread(self.fetch, url, headers)

    async def _registered_data(self, config: FontConfig, weight: int, style: str) -> bytes:
        if isinstance(config.src, (bytes, bytearray, memoryview)):
            return bytes(config.src)
        context = {'family': config.family, 'weight': weight, 'style': style, 'url': config.src}
        try:
            response = await self._get(config.src)
        except Exception as e:
            raise PaperflowError(
                f"Failed to fetch custom font from URL: {e}",
                ErrorCode.FONT_FETCH_ERROR,
                dict(context, original_error=type(e).__name__),
            ) from e
        if not response.ok:
            raise PaperflowError(
                'Failed to fetch custom font from URL',
                ErrorCode.FONT_FETCH_ERROR,
                dict(context, status=response.status),
            )
        return response.body

    def stylesheet_url(self, family: str, weight: int, style: str) -> str:
        italic = style == 'italic'
        axes = 'ital,wght' if italic else 'wght'
        value = f"1,{weight}" if italic else str(weight)
        return f"{self.css_url}?family={catalog_name(family)}:{axes}@{value}&display=swap"

    async def _load_from_catalog(self, family: str, weight: int, style: str) -> bytes:
        context = {'family': family, 'weight': weight, 'style': style}
        url = self.stylesheet_url(family, weight, style)
        try:
            css_response = await self._get(url, {'User-Agent': self.css_user_agent})
            if not css_response.ok:
                raise PaperflowError(
                    f"Font stylesheet request failed: {css_response.status}",
                    ErrorCode.FONT_LOAD_FAILED,
                    dict(context, url=url, status=css_response.status),
                )
            css = css_response.text()
            m = FONT_URL_RE.search(css)
            if not m:
                raise PaperflowError(
                    f"Could not find a font URL in the stylesheet: {css[:200]}",
                    ErrorCode.FONT_LOAD_FAILED,
                    dict(context, url=url),
                )
            url = m.group(1).strip().strip('"\'')
            font_response = await self._get(url)
            if not font_response.ok:
                raise PaperflowError(
                    f"Font file request failed: {font_response.status}",
                    ErrorCode.FONT_LOAD_FAILED,
                    dict(context, url=url, status=font_response.status),
                )
            return font_response.body
        except PaperflowError:
            raise
        except Exception as e:
            raise PaperflowError(
                f"Failed to load font \"{family}\" (weight: {weight}, style: {style}): {e}",
                ErrorCode.FONT_LOAD_FAILED,
                dict(context, url=url, original_error=type(e).__name__),
            ) from e

    async def resolve(self, family: str, weight=400, style='normal') -> LoadedFont:
        """Resolve one font face to bytes, caching the result."""
        name = normalize_family(family)
        weight = normalize_weight(weight)
        style = normalize_font_style(style)
        key: FontKey = (name, weight, style)

        cached = self.cache.get(key)
        if cached is not None:
            return LoadedFont(name, weight, style, cached)

        config = self.find_registered(name, weight, style)
        if config is not None:
            data = await self._registered_data(config, weight, style)
        else:
            data = await self._load_from_catalog(name, weight, style)

        data = self.cache.put(key, data)
        return LoadedFont(name, weight, style, data)

    async def load_fonts_for_document(self, usages: Sequence[IRFontUsage]) -> List[LoadedFont]:
        """Load every face named by the usage list concurrently.

        Returns the faces that loaded. Fails with the first error only when
        none did. An empty usage list loads the default family.
        """
        if not usages:
            usages = [default_font_usage(self.default_family)]
        requests = [
            (u.family, weight, style) for u in usages for weight in u.weights for style in u.styles
        ]
        results = await asyncio.gather(
            *(self.resolve(f, w, s) for f, w, s in requests), return_exceptions=True
        )
        fonts: List[LoadedFont] = []
        errors: List[Tuple[FontKey, Exception]] = []
        for request, result in zip(requests, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                errors.append((request, result))
            else:
                fonts.append(result)
        if not fonts and errors:
            raise errors[0][1]
        for (family, weight, style), error in errors:
            warnings.warn(f"Failed to load font {family} {weight} {style}: {error}", UserWarning)
        return fonts


_default_resolver: Optional[FontResolver] = None


def default_resolver() -> FontResolver:
    global _default_resolver
    if _default_resolver is None:
        _default_resolver = FontResolver()
    return _default_resolver


def register_font(config: FontConfig) -> None:
    default_resolver().register_font(config)


async def load_font(family: str, weight=400, style='normal') -> LoadedFont:
    return await default_resolver().resolve(family, weight, style)


async def load_fonts_for_document(usages: Sequence[IRFontUsage]) -> List[LoadedFont]:
    return await default_resolver().load_fonts_for_document(usages)


def clear_font_cache() -> None:
    FONT_CACHE.clear()
