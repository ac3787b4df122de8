"""Component tree -> IR conversion.

The walk expands composite components, classifies primitives, merges class
and explicit styles, and records which fonts and images the document needs.
Nothing is fetched here: deferred image producers are recorded as usages and
resolved later in one concurrent batch.
"""

import types
import warnings
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .components import Composite, Primitive
from .errors import ErrorCode, PaperflowError
from .fonts import FontUsageCollector, default_font_usage
from .images import describe_source, image_id
from .ir import (
    DEFAULTS,
    IRDocument,
    IRDocumentMetadata,
    IRFontUsage,
    IRImageUsage,
    IRNode,
    IRPage,
    normalize_margin,
    resolve_page_size,
)
from .styles import merge_styles, parse_classes

# Composite expansions allowed for one node before the tree is rejected
MAX_EXPANSION_DEPTH = 100
# Primitive nesting allowed below the root
MAX_NESTING_DEPTH = 200

TAG_KINDS = {
    'document': 'document',
    'page': 'page',
    'view': 'container',
    'container': 'container',
    'text': 'text',
    'image': 'image',
    'link': 'link',
}

EXCLUDED_PROPS = ('style', 'className', 'class_name', 'children')

DEFAULT_CREATOR = 'paperflow'


@dataclass
class ConversionResult:
    root: IRNode
    pages: List[IRPage]
    metadata: Optional[IRDocumentMetadata] = None
    fonts: List[IRFontUsage] = field(default_factory=list)
    images: List[IRImageUsage] = field(default_factory=list)


def classify(tag: Any) -> str:
    """Map a primitive tag onto an IR kind; unknown tags become containers."""
    if isinstance(tag, str):
        return TAG_KINDS.get(tag.strip().lower(), 'container')
    return 'container'


def unwrap(node: Any) -> Any:
    """Expand composites until something that is not a Composite remains."""
    current = node
    expansions = 0
    while isinstance(current, Composite):
        if expansions >= MAX_EXPANSION_DEPTH:
            raise PaperflowError(
                f"Component '{current.name}' did not expand to a primitive after "
                f"{MAX_EXPANSION_DEPTH} expansions",
                ErrorCode.INVALID_DOCUMENT,
                {'component': current.name, 'depth': expansions},
            )
        current = current.fn(dict(current.props))
        expansions += 1
    return current


def flatten_children(children: Any) -> List[Any]:
    """Flatten nested lists/tuples/generators, dropping None and booleans."""
    flat: List[Any] = []
    stack = [children]
    while stack:
        item = stack.pop()
        if isinstance(item, types.GeneratorType):
            item = list(item)
        if isinstance(item, (list, tuple)):
            stack.extend(reversed(item))
        elif item is None or isinstance(item, bool):
            continue
        else:
            flat.append(item)
    return flat


def _is_text_value(value: Any) -> bool:
    return isinstance(value, (str, int, float)) and not isinstance(value, bool)


def _text_leaf(value: Any) -> IRNode:
    return IRNode('text', props={'content': str(value)})


def extract_props(props: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in props.items() if k not in EXCLUDED_PROPS and v is not None}


def to_page(node: IRNode) -> IRPage:
    props = node.props
    return IRPage(
        size=resolve_page_size(props.get('size'), props.get('orientation')),
        margin=normalize_margin(props.get('margin')),
        children=tuple(node.children),
    )


def extract_metadata(node: IRNode) -> Optional[IRDocumentMetadata]:
    props = node.props
    if not any(props.get(k) for k in ('title', 'author', 'subject')):
        return None
    return IRDocumentMetadata(
        title=props.get('title'),
        author=props.get('author'),
        subject=props.get('subject'),
        creator=props.get('creator') or DEFAULT_CREATOR,
        creation_date=datetime.now(timezone.utc),
    )


class TreeConverter:
    """Single-use walker holding the font and image usage of one tree."""

    def __init__(self):
        self.fonts = FontUsageCollector()
        self.images: Dict[str, IRImageUsage] = {}

    def track_image(self, src: Any) -> str:
        iid = image_id(src)
        if iid not in self.images:
            self.images[iid] = IRImageUsage(id=iid, src=describe_source(src), original_src=src)
        return iid

    def convert_node(self, node: Any, depth: int = 0) -> IRNode:
        if depth > MAX_NESTING_DEPTH:
            raise PaperflowError(
                f"Component tree is nested deeper than {MAX_NESTING_DEPTH} levels",
                ErrorCode.INVALID_DOCUMENT,
                {'depth': depth},
            )
        expanded = unwrap(node)
        if not isinstance(expanded, Primitive):
            # A composite that rendered text, a list or nothing
            return IRNode('container', children=self.convert_children(expanded, depth + 1))

        kind = classify(expanded.tag)
        raw = expanded.props or {}
        style = merge_styles(
            parse_classes(raw.get('className') or raw.get('class_name')), raw.get('style')
        )
        self.fonts.add_style(style)

        props = extract_props(raw)
        if kind == 'image' and raw.get('src') is not None:
            src = raw['src']
            props['image_id'] = self.track_image(src)
            if not isinstance(src, str):
                props['src'] = describe_source(src)

        kids = expanded.children if expanded.children else raw.get('children')
        flat = flatten_children(kids)
        if kind == 'text' and flat and all(_is_text_value(c) for c in flat):
            # Plain text content collapses into the node itself
            props['content'] = ''.join(str(c) for c in flat)
            children: List[IRNode] = []
        else:
            children = self._convert_flat(flat, depth + 1)

        return IRNode(kind=kind, style=style, children=children, props=props)

    def convert_children(self, children: Any, depth: int) -> List[IRNode]:
        return self._convert_flat(flatten_children(children), depth)

    def _convert_flat(self, flat: List[Any], depth: int) -> List[IRNode]:
        result: List[IRNode] = []
        for child in flat:
            if _is_text_value(child):
                result.append(_text_leaf(child))
            elif isinstance(child, (Primitive, Composite)):
                result.append(self.convert_node(child, depth))
            else:
                warnings.warn(f"Skipping unsupported child of type {type(child).__name__}", UserWarning)
        return result

    def convert(self, root: Any) -> ConversionResult:
        node = self.convert_node(root)
        metadata = None
        if node.kind == 'document':
            metadata = extract_metadata(node)
            pages = [to_page(child) for child in node.children if child.kind == 'page']
        elif node.kind == 'page':
            pages = [to_page(node)]
        else:
            pages = [
                IRPage(
                    size=resolve_page_size(DEFAULTS['PAGESIZE'], DEFAULTS['ORIENTATION']),
                    margin=normalize_margin(DEFAULTS['MARGIN']),
                    children=(node,),
                )
            ]
        return ConversionResult(
            root=node,
            pages=pages,
            metadata=metadata,
            fonts=self.fonts.usages(),
            images=list(self.images.values()),
        )


def convert_tree(root: Any) -> ConversionResult:
    return TreeConverter().convert(root)


def tree_to_ir(root: Any) -> IRDocument:
    """Convert a tree to an IRDocument without resolving any asset."""
    result = convert_tree(root)
    return IRDocument(
        pages=tuple(result.pages),
        fonts=tuple(result.fonts or [default_font_usage()]),
        images=tuple(result.images),
        metadata=result.metadata,
    )
