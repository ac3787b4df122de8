"""Document assembly and the render entry points.

assemble_document() runs the whole front half of a render:

1) convert the component tree (no I/O)
2) validate structure; structural errors abort before any fetch
3) resolve fonts and images concurrently
4) freeze everything into an IRDocument inside a RenderContext

render() then hands the context to a registered engine.
"""

import asyncio
import base64
import inspect
import pathlib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Union

from .converter import convert_tree
from .errors import ErrorCode, PaperflowError, wrap_error
from .fonts import FontResolver, LoadedFont, default_font_usage
from .fonts import default_resolver as default_font_resolver
from .images import ImageResolver, LoadedImage
from .images import default_resolver as default_image_resolver
from .ir import IRDocument, IRDocumentMetadata
from .validation import validate_pages


@dataclass(frozen=True)
class RenderContext:
    ir: IRDocument
    fonts: List[LoadedFont]
    images: Dict[str, LoadedImage]


class Engine(ABC):
    """Rendering backend contract: bytes of a PDF from a RenderContext.

    render() may be a plain method or a coroutine.
    """

    name = 'engine'

    @abstractmethod
    def render(self, context: RenderContext) -> Any:
        raise NotImplementedError


_ENGINES: Dict[str, Callable[[], Engine]] = {}


def register_engine(name: str, factory: Callable[[], Engine]) -> None:
    _ENGINES[name] = factory


def unregister_engine(name: str) -> None:
    _ENGINES.pop(name, None)


def available_engines() -> List[str]:
    return sorted(_ENGINES)


def get_engine(name: Union[str, Engine]) -> Engine:
    if isinstance(name, Engine):
        return name
    factory = _ENGINES.get(name)
    if factory is None:
        raise PaperflowError(
            f"Unknown engine: {name}",
            ErrorCode.UNKNOWN_ENGINE,
            {'engine': name, 'available': available_engines()},
        )
    return factory()


async def assemble_document(
    root: Any,
    font_resolver: Optional[FontResolver] = None,
    image_resolver: Optional[ImageResolver] = None,
) -> RenderContext:
    """Convert, validate and resolve every asset of a component tree."""
    result = convert_tree(root)
    if not result.pages:
        raise PaperflowError('Document has no pages', ErrorCode.NO_PAGES)
    validation = validate_pages(result.pages)
    if not validation.ok():
        raise PaperflowError(
            f"Invalid document: {validation.errors()[0].message}",
            ErrorCode.INVALID_DOCUMENT,
            {'issues': [f"{i.path}: {i.message}" for i in validation.errors()]},
        )

    font_resolver = font_resolver or default_font_resolver()
    image_resolver = image_resolver or default_image_resolver()
    fonts, images = await asyncio.gather(
        font_resolver.load_fonts_for_document(result.fonts),
        image_resolver.load_images(result.images),
    )

    ir = IRDocument(
        pages=tuple(result.pages),
        fonts=tuple(result.fonts or [default_font_usage(font_resolver.default_family)]),
        images=tuple(result.images),
        metadata=result.metadata,
    )
    return RenderContext(ir=ir, fonts=fonts, images=images)


@dataclass(frozen=True)
class RenderResult:
    data: bytes
    pages: int
    metadata: Optional[IRDocumentMetadata] = None

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode('ascii')

    def to_data_uri(self) -> str:
        return f"data:application/pdf;base64,{self.to_base64()}"

    def save(self, path: Union[str, pathlib.Path]) -> pathlib.Path:
        out = pathlib.Path(path)
        out.write_bytes(self.data)
        return out


async def render(
    root: Any,
    engine: Union[str, Engine] = 'default',
    font_resolver: Optional[FontResolver] = None,
    image_resolver: Optional[ImageResolver] = None,
) -> RenderResult:
    """Render a component tree to PDF bytes with the named engine.

    Errors are always PaperflowError; unexpected failures become RENDER_FAILED.
    """
    try:
        backend = get_engine(engine)
        context = await assemble_document(root, font_resolver, image_resolver)
        data = backend.render(context)
        if inspect.isawaitable(data):
            data = await data
        return RenderResult(data=bytes(data), pages=len(context.ir.pages), metadata=context.ir.metadata)
    except Exception as e:
        if isinstance(e, PaperflowError):
            raise
        raise wrap_error(e, ErrorCode.RENDER_FAILED) from e


def render_sync(root: Any, engine: Union[str, Engine] = 'default', **kwargs) -> RenderResult:
    return asyncio.run(render(root, engine, **kwargs))


async def render_to_bytes(root: Any, engine: Union[str, Engine] = 'default', **kwargs) -> bytes:
    result = await render(root, engine, **kwargs)
    return result.data
