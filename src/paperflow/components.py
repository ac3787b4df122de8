"""Component tree accepted by the converter.

A tree is made of two node shapes:

- Primitive: a fixed tag (document, page, view/container, text, image, link)
  with props and children.
- Composite: a function from props to another renderable. It is expanded by
  the converter, never by the caller.

Children may also be plain strings or numbers (text leaves), None or booleans
(dropped) and arbitrarily nested lists/tuples (flattened).
"""

import functools
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union

PRIMITIVE_TAGS = ('document', 'page', 'view', 'container', 'text', 'image', 'link')


@dataclass
class Primitive:
    tag: str
    props: Dict[str, Any] = field(default_factory=dict)
    children: List[Any] = field(default_factory=list)


@dataclass
class Composite:
    fn: Callable[[Dict[str, Any]], Any]
    props: Dict[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return getattr(self.fn, '__name__', repr(self.fn))


Node = Union[Primitive, Composite]
Renderable = Union[Node, str, int, float, bool, None, list, tuple]


def _children_prop(children: tuple) -> Any:
    """A single child is passed through as is, several become a list."""
    return children[0] if len(children) == 1 else list(children)


def h(type_: Union[str, Callable[[Dict[str, Any]], Any]], props: Optional[Dict[str, Any]] = None, *children: Any) -> Node:
    """Build a node from a tag name or a component function."""
    props = dict(props or {})
    if callable(type_):
        if children:
            props['children'] = _children_prop(children)
        return Composite(type_, props)
    if children:
        kids: List[Any] = list(children)
    else:
        kids = props.pop('children', [])
        if not isinstance(kids, (list, tuple)):
            kids = [kids]
    props.pop('children', None)
    return Primitive(type_, props, list(kids))


def component(fn: Callable[[Dict[str, Any]], Any]) -> Callable[..., Composite]:
    """Decorator turning `fn(props)` into a factory of Composite nodes.

    >>> @component
    ... def Title(props):
    ...     return text(props['children'], class_name='text-2xl font-bold')
    >>> Title('Hello')  # doctest: +ELLIPSIS
    Composite(...)
    """

    @functools.wraps(fn)
    def factory(*children: Any, **props: Any) -> Composite:
        if children:
            props['children'] = _children_prop(children)
        return Composite(fn, props)

    return factory


def _primitive(tag: str, children: tuple, props: Dict[str, Any]) -> Primitive:
    return Primitive(tag, {k: v for k, v in props.items() if v is not None}, list(children))


def document(*children: Any, title=None, author=None, subject=None, creator=None, **props) -> Primitive:
    return _primitive(
        'document',
        children,
        dict(props, title=title, author=author, subject=subject, creator=creator),
    )


def page(*children: Any, size='A4', margin=None, orientation='portrait', **props) -> Primitive:
    return _primitive('page', children, dict(props, size=size, margin=margin, orientation=orientation))


def view(*children: Any, **props) -> Primitive:
    return _primitive('view', children, props)


def text(*children: Any, **props) -> Primitive:
    return _primitive('text', children, props)


def image(src: Any, **props) -> Primitive:
    return _primitive('image', (), dict(props, src=src))


def link(*children: Any, href: str, **props) -> Primitive:
    return _primitive('link', children, dict(props, href=href))
