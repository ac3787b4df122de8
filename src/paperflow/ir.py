"""Intermediate representation consumed by rendering engines.

The IR is produced by the tree converter and assembled into an IRDocument
once every referenced asset has been resolved. Sizes are in points.
"""

import re
import warnings
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple, Union

NODE_KINDS = ('document', 'page', 'container', 'text', 'image', 'link')

IR_VERSION = 1

# Standard page sizes in points (1pt = 1/72 inch)
PAGE_SIZES = {
    'A4': (595.28, 841.89),
    'A3': (841.89, 1190.55),
    'A5': (419.53, 595.28),
    'LETTER': (612.0, 792.0),
    'LEGAL': (612.0, 1008.0),
    'TABLOID': (792.0, 1224.0),
}

DEFAULTS = {
    'PAGESIZE': 'A4',
    'ORIENTATION': 'portrait',
    # Margin of the page synthesized around a root that is not a page
    'MARGIN': 40,
}

FONT_WEIGHTS = {
    'thin': 100,
    'hairline': 100,
    'extralight': 200,
    'ultralight': 200,
    'light': 300,
    'normal': 400,
    'regular': 400,
    'medium': 500,
    'semibold': 600,
    'demibold': 600,
    'bold': 700,
    'extrabold': 800,
    'ultrabold': 800,
    'black': 900,
    'heavy': 900,
}

FONT_STYLES = ('normal', 'italic')


@dataclass(frozen=True)
class PageSize:
    width: float
    height: float


@dataclass(frozen=True)
class Margin:
    top: float = 0.0
    right: float = 0.0
    bottom: float = 0.0
    left: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {'top': self.top, 'right': self.right, 'bottom': self.bottom, 'left': self.left}


@dataclass
class IRNode:
    kind: str
    style: Dict[str, Any] = field(default_factory=dict)
    children: List['IRNode'] = field(default_factory=list)
    props: Dict[str, Any] = field(default_factory=dict)

    @property
    def content(self) -> Optional[str]:
        return self.props.get('content')

    def walk(self):
        """Yield this node and every descendant, depth first."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))


@dataclass(frozen=True)
class IRPage:
    size: PageSize
    margin: Margin
    children: Tuple[IRNode, ...] = ()


@dataclass(frozen=True)
class IRFontUsage:
    family: str
    weights: Tuple[int, ...] = (400,)
    styles: Tuple[str, ...] = ('normal',)


@dataclass(frozen=True)
class IRImageUsage:
    id: str
    src: str
    original_src: Any = None


@dataclass(frozen=True)
class IRDocumentMetadata:
    title: Optional[str] = None
    author: Optional[str] = None
    subject: Optional[str] = None
    creator: Optional[str] = None
    creation_date: Optional[datetime] = None


@dataclass(frozen=True)
class IRDocument:
    pages: Tuple[IRPage, ...]
    fonts: Tuple[IRFontUsage, ...] = ()
    images: Tuple[IRImageUsage, ...] = ()
    metadata: Optional[IRDocumentMetadata] = None
    version: int = IR_VERSION


def _parse_edges(val: str) -> Optional[List[float]]:
    """Parse a CSS-like shorthand ("10", "10 20", "10 20 30", "10 20 30 40").
    Accepts comma and/or whitespace separators. Returns None if invalid.
    """
    parts = [p for p in re.split(r'[\s,]+', val.strip()) if p != '']
    nums: List[float] = []
    for p in parts:
        try:
            nums.append(float(p))
        except ValueError:
            return None
    if len(nums) == 1:
        return [nums[0]] * 4
    if len(nums) == 2:
        return [nums[0], nums[1], nums[0], nums[1]]
    if len(nums) == 3:
        return [nums[0], nums[1], nums[2], nums[1]]
    if len(nums) == 4:
        return nums
    return None


def normalize_margin(margin: Union[None, int, float, str, Dict[str, Any], Margin]) -> Margin:
    """Convert a margin value to a fully populated Margin.

    Numbers apply to all four edges, strings follow CSS shorthand order and
    dicts may name any subset of top/right/bottom/left. Missing edges are 0.
    """
    if margin is None:
        return Margin()
    if isinstance(margin, Margin):
        return margin
    if isinstance(margin, bool):
        warnings.warn(f"Ignoring boolean margin value {margin!r}", UserWarning)
        return Margin()
    if isinstance(margin, (int, float)):
        v = float(margin)
        return Margin(v, v, v, v)
    if isinstance(margin, str):
        edges = _parse_edges(margin)
        if edges is None:
            warnings.warn(f"Unparseable margin '{margin}', using 0", UserWarning)
            return Margin()
        return Margin(*edges)
    if isinstance(margin, dict):
        try:
            return Margin(
                top=float(margin.get('top') or 0),
                right=float(margin.get('right') or 0),
                bottom=float(margin.get('bottom') or 0),
                left=float(margin.get('left') or 0),
            )
        except (TypeError, ValueError):
            warnings.warn(f"Unparseable margin {margin!r}, using 0", UserWarning)
            return Margin()
    warnings.warn(f"Unsupported margin type {type(margin).__name__}, using 0", UserWarning)
    return Margin()


def resolve_page_size(size: Any = None, orientation: Optional[str] = None) -> PageSize:
    """Resolve a preset name, {width, height} dict, (w, h) pair or PageSize.
    Unknown preset names fall back to A4. Landscape swaps the two sides.
    """
    if size is None:
        size = DEFAULTS['PAGESIZE']
    resolved: Optional[PageSize] = None
    if isinstance(size, PageSize):
        resolved = size
    elif isinstance(size, str):
        w, h = PAGE_SIZES.get(size.strip().upper(), PAGE_SIZES['A4'])
        resolved = PageSize(w, h)
    else:
        try:
            if isinstance(size, dict):
                resolved = PageSize(float(size['width']), float(size['height']))
            elif isinstance(size, (tuple, list)) and len(size) == 2:
                resolved = PageSize(float(size[0]), float(size[1]))
        except (KeyError, TypeError, ValueError):
            resolved = None
    if resolved is None:
        warnings.warn(f"Unsupported page size {size!r}, using A4", UserWarning)
        resolved = PageSize(*PAGE_SIZES['A4'])
    if isinstance(orientation, str) and orientation.strip().lower() == 'landscape':
        return PageSize(resolved.height, resolved.width)
    return resolved


def normalize_weight(weight: Any) -> int:
    """Map a numeric or keyword font weight to an integer; 400 when unknown."""
    if weight is None or isinstance(weight, bool):
        return 400
    if isinstance(weight, (int, float)):
        return int(weight)
    s = str(weight).strip().lower()
    if s in FONT_WEIGHTS:
        return FONT_WEIGHTS[s]
    m = re.match(r'^\d+', s)
    if m and int(m.group(0)) > 0:
        return int(m.group(0))
    return 400


def normalize_font_style(style: Any) -> str:
    if isinstance(style, str) and style.strip().lower() in ('italic', 'oblique'):
        return 'italic'
    return 'normal'
