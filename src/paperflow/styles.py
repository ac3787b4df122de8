"""Utility-class style resolver.

Maps Tailwind-style class tokens ("p-4 text-lg font-bold bg-gray-100") to a
flat style dict using CSS property names. The mapping is a subset of the
Tailwind defaults that makes sense for print; values are in points.

Resolution is pure: the tables below are never mutated, so the same class
string always yields the same dict.
"""

from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

SPACING = MappingProxyType(
    {
        '0': 0,
        'px': 1,
        '0.5': 2,
        '1': 4,
        '1.5': 6,
        '2': 8,
        '2.5': 10,
        '3': 12,
        '3.5': 14,
        '4': 16,
        '5': 20,
        '6': 24,
        '7': 28,
        '8': 32,
        '9': 36,
        '10': 40,
        '11': 44,
        '12': 48,
        '14': 56,
        '16': 64,
        '20': 80,
        '24': 96,
        '28': 112,
        '32': 128,
        '36': 144,
        '40': 160,
        '44': 176,
        '48': 192,
        '52': 208,
        '56': 224,
        '60': 240,
        '64': 256,
        '72': 288,
        '80': 320,
        '96': 384,
    }
)

# name -> (fontSize, lineHeight)
FONT_SIZES = MappingProxyType(
    {
        'xs': (12, 16),
        'sm': (14, 20),
        'base': (16, 24),
        'lg': (18, 28),
        'xl': (20, 28),
        '2xl': (24, 32),
        '3xl': (30, 36),
        '4xl': (36, 40),
        '5xl': (48, 48),
        '6xl': (60, 60),
        '7xl': (72, 72),
        '8xl': (96, 96),
        '9xl': (128, 128),
    }
)

FONT_WEIGHTS = MappingProxyType(
    {
        'thin': 100,
        'extralight': 200,
        'light': 300,
        'normal': 400,
        'medium': 500,
        'semibold': 600,
        'bold': 700,
        'extrabold': 800,
        'black': 900,
    }
)

_SHADES = ('50', '100', '200', '300', '400', '500', '600', '700', '800', '900', '950')

_PALETTE = {
    'gray': (
        '#f9fafb', '#f3f4f6', '#e5e7eb', '#d1d5db', '#9ca3af', '#6b7280',
        '#4b5563', '#374151', '#1f2937', '#111827', '#030712',
    ),
    'slate': (
        '#f8fafc', '#f1f5f9', '#e2e8f0', '#cbd5e1', '#94a3b8', '#64748b',
        '#475569', '#334155', '#1e293b', '#0f172a', '#020617',
    ),
    'red': (
        '#fef2f2', '#fee2e2', '#fecaca', '#fca5a5', '#f87171', '#ef4444',
        '#dc2626', '#b91c1c', '#991b1b', '#7f1d1d', '#450a0a',
    ),
    'orange': (
        '#fff7ed', '#ffedd5', '#fed7aa', '#fdba74', '#fb923c', '#f97316',
        '#ea580c', '#c2410c', '#9a3412', '#7c2d12', '#431407',
    ),
    'yellow': (
        '#fefce8', '#fef9c3', '#fef08a', '#fde047', '#facc15', '#eab308',
        '#ca8a04', '#a16207', '#854d0e', '#713f12', '#422006',
    ),
    'green': (
        '#f0fdf4', '#dcfce7', '#bbf7d0', '#86efac', '#4ade80', '#22c55e',
        '#16a34a', '#15803d', '#166534', '#14532d', '#052e16',
    ),
    'blue': (
        '#eff6ff', '#dbeafe', '#bfdbfe', '#93c5fd', '#60a5fa', '#3b82f6',
        '#2563eb', '#1d4ed8', '#1e40af', '#1e3a8a', '#172554',
    ),
    'indigo': (
        '#eef2ff', '#e0e7ff', '#c7d2fe', '#a5b4fc', '#818cf8', '#6366f1',
        '#4f46e5', '#4338ca', '#3730a3', '#312e81', '#1e1b4b',
    ),
    'purple': (
        '#faf5ff', '#f3e8ff', '#e9d5ff', '#d8b4fe', '#c084fc', '#a855f7',
        '#9333ea', '#7e22ce', '#6b21a8', '#581c87', '#3b0764',
    ),
    'pink': (
        '#fdf2f8', '#fce7f3', '#fbcfe8', '#f9a8d4', '#f472b6', '#ec4899',
        '#db2777', '#be185d', '#9d174d', '#831843', '#500724',
    ),
}


def _build_colors() -> Dict[str, str]:
    colors = {
        'transparent': 'transparent',
        'current': 'currentColor',
        'black': '#000000',
        'white': '#ffffff',
    }
    for name, hexes in _PALETTE.items():
        for shade, value in zip(_SHADES, hexes):
            colors[f'{name}-{shade}'] = value
    return colors


COLORS = MappingProxyType(_build_colors())

BORDER_RADIUS = MappingProxyType(
    {
        'none': 0,
        'sm': 2,
        'md': 6,
        'lg': 8,
        'xl': 12,
        '2xl': 16,
        '3xl': 24,
        'full': 9999,
    }
)

BORDER_WIDTHS = MappingProxyType({'0': 0, '2': 2, '4': 4, '8': 8})

OPACITY = MappingProxyType(
    {
        '0': 0,
        '5': 0.05,
        '10': 0.1,
        '20': 0.2,
        '25': 0.25,
        '30': 0.3,
        '40': 0.4,
        '50': 0.5,
        '60': 0.6,
        '70': 0.7,
        '75': 0.75,
        '80': 0.8,
        '90': 0.9,
        '95': 0.95,
        '100': 1,
    }
)

# Tokens that map to a fixed set of properties
KEYWORDS = MappingProxyType(
    {
        # Display
        'flex': {'display': 'flex'},
        'hidden': {'display': 'none'},
        # Flex direction / wrap
        'flex-row': {'flexDirection': 'row'},
        'flex-row-reverse': {'flexDirection': 'row-reverse'},
        'flex-col': {'flexDirection': 'column'},
        'flex-col-reverse': {'flexDirection': 'column-reverse'},
        'flex-wrap': {'flexWrap': 'wrap'},
        'flex-wrap-reverse': {'flexWrap': 'wrap-reverse'},
        'flex-nowrap': {'flexWrap': 'nowrap'},
        # Flex grow / shrink
        'flex-1': {'flex': '1 1 0%'},
        'flex-auto': {'flex': '1 1 auto'},
        'flex-initial': {'flex': '0 1 auto'},
        'flex-none': {'flex': 'none'},
        'grow': {'flexGrow': 1},
        'grow-0': {'flexGrow': 0},
        'shrink': {'flexShrink': 1},
        'shrink-0': {'flexShrink': 0},
        # Justify content
        'justify-start': {'justifyContent': 'flex-start'},
        'justify-end': {'justifyContent': 'flex-end'},
        'justify-center': {'justifyContent': 'center'},
        'justify-between': {'justifyContent': 'space-between'},
        'justify-around': {'justifyContent': 'space-around'},
        'justify-evenly': {'justifyContent': 'space-evenly'},
        # Align items / self
        'items-start': {'alignItems': 'flex-start'},
        'items-end': {'alignItems': 'flex-end'},
        'items-center': {'alignItems': 'center'},
        'items-baseline': {'alignItems': 'baseline'},
        'items-stretch': {'alignItems': 'stretch'},
        'self-auto': {'alignSelf': 'auto'},
        'self-start': {'alignSelf': 'flex-start'},
        'self-end': {'alignSelf': 'flex-end'},
        'self-center': {'alignSelf': 'center'},
        'self-stretch': {'alignSelf': 'stretch'},
        # Font style / family
        'italic': {'fontStyle': 'italic'},
        'not-italic': {'fontStyle': 'normal'},
        'font-sans': {'fontFamily': 'Inter, system-ui, sans-serif'},
        'font-serif': {'fontFamily': 'Georgia, serif'},
        'font-mono': {'fontFamily': 'JetBrains Mono, monospace'},
        # Text alignment
        'text-left': {'textAlign': 'left'},
        'text-center': {'textAlign': 'center'},
        'text-right': {'textAlign': 'right'},
        'text-justify': {'textAlign': 'justify'},
        # Decoration / transform
        'underline': {'textDecoration': 'underline'},
        'line-through': {'textDecoration': 'line-through'},
        'no-underline': {'textDecoration': 'none'},
        'uppercase': {'textTransform': 'uppercase'},
        'lowercase': {'textTransform': 'lowercase'},
        'capitalize': {'textTransform': 'capitalize'},
        'normal-case': {'textTransform': 'none'},
        # Letter spacing
        'tracking-tighter': {'letterSpacing': -0.8},
        'tracking-tight': {'letterSpacing': -0.4},
        'tracking-normal': {'letterSpacing': 0},
        'tracking-wide': {'letterSpacing': 0.4},
        'tracking-wider': {'letterSpacing': 0.8},
        'tracking-widest': {'letterSpacing': 1.6},
        # Line height
        'leading-none': {'lineHeight': 1},
        'leading-tight': {'lineHeight': 1.25},
        'leading-snug': {'lineHeight': 1.375},
        'leading-normal': {'lineHeight': 1.5},
        'leading-relaxed': {'lineHeight': 1.625},
        'leading-loose': {'lineHeight': 2},
        # Borders
        'rounded': {'borderRadius': 4},
        'border': {'borderWidth': 1, 'borderStyle': 'solid', 'borderColor': '#e5e7eb'},
        'border-t': {'borderTopWidth': 1, 'borderStyle': 'solid'},
        'border-r': {'borderRightWidth': 1, 'borderStyle': 'solid'},
        'border-b': {'borderBottomWidth': 1, 'borderStyle': 'solid'},
        'border-l': {'borderLeftWidth': 1, 'borderStyle': 'solid'},
        'border-solid': {'borderStyle': 'solid'},
        'border-dashed': {'borderStyle': 'dashed'},
        'border-dotted': {'borderStyle': 'dotted'},
        'border-none': {'borderStyle': 'none'},
        # Overflow / position
        'overflow-hidden': {'overflow': 'hidden'},
        'overflow-visible': {'overflow': 'visible'},
        'relative': {'position': 'relative'},
        'absolute': {'position': 'absolute'},
        # Object fit
        'object-contain': {'objectFit': 'contain'},
        'object-cover': {'objectFit': 'cover'},
        'object-fill': {'objectFit': 'fill'},
        'object-none': {'objectFit': 'none'},
    }
)

# prefix -> properties set from one spacing value, longest prefixes first
SPACING_PREFIXES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ('gap-x-', ('columnGap',)),
    ('gap-y-', ('rowGap',)),
    ('gap-', ('gap',)),
    ('px-', ('paddingLeft', 'paddingRight')),
    ('py-', ('paddingTop', 'paddingBottom')),
    ('pt-', ('paddingTop',)),
    ('pr-', ('paddingRight',)),
    ('pb-', ('paddingBottom',)),
    ('pl-', ('paddingLeft',)),
    ('p-', ('padding',)),
    ('mx-', ('marginLeft', 'marginRight')),
    ('my-', ('marginTop', 'marginBottom')),
    ('mt-', ('marginTop',)),
    ('mr-', ('marginRight',)),
    ('mb-', ('marginBottom',)),
    ('ml-', ('marginLeft',)),
    ('m-', ('margin',)),
    ('top-', ('top',)),
    ('right-', ('right',)),
    ('bottom-', ('bottom',)),
    ('left-', ('left',)),
)

# Spacing prefixes that accept 'auto' and a leading '-' for negative values
_MARGIN_PREFIXES = ('mx-', 'my-', 'mt-', 'mr-', 'mb-', 'ml-', 'm-')
_OFFSET_PREFIXES = ('top-', 'right-', 'bottom-', 'left-')

SIZE_PREFIXES: Tuple[Tuple[str, str], ...] = (
    ('min-w-', 'minWidth'),
    ('max-w-', 'maxWidth'),
    ('min-h-', 'minHeight'),
    ('max-h-', 'maxHeight'),
    ('w-', 'width'),
    ('h-', 'height'),
)

_SCREEN = {'width': '100vw', 'height': '100vh'}

StyleMap = Dict[str, Any]


def _percent(value: str) -> Optional[str]:
    """'1/2' -> '50%', '1/3' -> '33.3333%'. None for anything else."""
    num_s, _, den_s = value.partition('/')
    if not (num_s.isdigit() and den_s.isdigit()):
        return None
    num, den = int(num_s), int(den_s)
    if num == 0 or den == 0:
        return None
    text = f"{num / den * 100:.4f}".rstrip('0').rstrip('.')
    return f"{text}%"


def _spacing(token: str) -> StyleMap:
    negative = token.startswith('-')
    body = token[1:] if negative else token
    for prefix, props in SPACING_PREFIXES:
        if not body.startswith(prefix):
            continue
        value = body[len(prefix):]
        if negative and prefix not in _MARGIN_PREFIXES + _OFFSET_PREFIXES:
            return {}
        if value == 'auto' and prefix in _MARGIN_PREFIXES and not negative:
            return {p: 'auto' for p in props}
        if value not in SPACING:
            return {}
        amount = -SPACING[value] if negative else SPACING[value]
        return {p: amount for p in props}
    return {}


def _sizing(token: str) -> StyleMap:
    for prefix, prop in SIZE_PREFIXES:
        if not token.startswith(prefix):
            continue
        value = token[len(prefix):]
        if value == 'full':
            return {prop: '100%'}
        if value == 'screen' and prop in _SCREEN:
            return {prop: _SCREEN[prop]}
        if value == 'auto' and prop in _SCREEN:
            return {prop: 'auto'}
        if value == 'none' and prop.startswith('max'):
            return {prop: 'none'}
        if '/' in value:
            pct = _percent(value)
            return {prop: pct} if pct else {}
        if value in SPACING:
            return {prop: SPACING[value]}
        return {}
    return {}


def _text(value: str) -> StyleMap:
    if value in FONT_SIZES:
        size, line_height = FONT_SIZES[value]
        return {'fontSize': size, 'lineHeight': line_height}
    if value in COLORS:
        return {'color': COLORS[value]}
    return {}


def _font(value: str) -> StyleMap:
    if value in FONT_WEIGHTS:
        return {'fontWeight': FONT_WEIGHTS[value]}
    words = [w for w in value.split('-') if w]
    if not words:
        return {}
    # font-playfair-display -> "Playfair Display"
    return {'fontFamily': ' '.join(w[:1].upper() + w[1:] for w in words)}


def _background(value: str) -> StyleMap:
    if value in COLORS:
        return {'backgroundColor': COLORS[value]}
    return {}


def _border(value: str) -> StyleMap:
    if value in BORDER_WIDTHS:
        return {'borderWidth': BORDER_WIDTHS[value], 'borderStyle': 'solid'}
    if value in COLORS:
        return {'borderColor': COLORS[value]}
    return {}


def _rounded(value: str) -> StyleMap:
    if value in BORDER_RADIUS:
        return {'borderRadius': BORDER_RADIUS[value]}
    return {}


def _opacity(value: str) -> StyleMap:
    if value in OPACITY:
        return {'opacity': OPACITY[value]}
    return {}


def _z_index(value: str) -> StyleMap:
    if value.isdigit():
        return {'zIndex': int(value)}
    return {}


VALUE_PREFIXES: Tuple[Tuple[str, Callable[[str], StyleMap]], ...] = (
    ('text-', _text),
    ('font-', _font),
    ('bg-', _background),
    ('border-', _border),
    ('rounded-', _rounded),
    ('opacity-', _opacity),
    ('z-', _z_index),
)


def resolve_class(token: str) -> StyleMap:
    """Resolve one class token to the properties it sets; {} when unknown."""
    if token in KEYWORDS:
        return dict(KEYWORDS[token])
    for prefix, handler in VALUE_PREFIXES:
        if token.startswith(prefix):
            return handler(token[len(prefix):])
    return _sizing(token) or _spacing(token)


def parse_classes(class_string: Union[None, str, Iterable[str]]) -> StyleMap:
    """Parse a whitespace separated class string into a style dict.

    Tokens are applied left to right, so a later token wins over an earlier
    one that sets the same property. Unknown tokens are ignored.
    """
    if not class_string:
        return {}
    if isinstance(class_string, str):
        tokens: List[str] = class_string.split()
    else:
        tokens = [t for part in class_string for t in str(part).split()]
    style: StyleMap = {}
    for token in tokens:
        style.update(resolve_class(token))
    return style


tw = parse_classes


def merge_styles(base: Optional[StyleMap], override: Optional[StyleMap]) -> StyleMap:
    """Shallow merge where every key of `override` wins over `base`.
    Keys whose resulting value is None are dropped.
    """
    merged = {**(base or {}), **(override or {})}
    return {k: v for k, v in merged.items() if v is not None}
