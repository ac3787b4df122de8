from .errors import (
    ErrorCode as ErrorCode,
    PaperflowError as PaperflowError,
    is_paperflow_error as is_paperflow_error,
    wrap_error as wrap_error,
)
from .styles import (
    parse_classes as parse_classes,
    resolve_class as resolve_class,
    merge_styles as merge_styles,
    tw as tw,
)
from .components import (
    Primitive as Primitive,
    Composite as Composite,
    h as h,
    component as component,
    document as document,
    page as page,
    view as view,
    text as text,
    image as image,
    link as link,
)
from .ir import (
    IRDocument as IRDocument,
    IRDocumentMetadata as IRDocumentMetadata,
    IRFontUsage as IRFontUsage,
    IRImageUsage as IRImageUsage,
    IRNode as IRNode,
    IRPage as IRPage,
    Margin as Margin,
    PageSize as PageSize,
    PAGE_SIZES as PAGE_SIZES,
    normalize_margin as normalize_margin,
    resolve_page_size as resolve_page_size,
)
from .cache import AssetCache as AssetCache
from .fonts import (
    FontConfig as FontConfig,
    FontResolver as FontResolver,
    LoadedFont as LoadedFont,
    register_font as register_font,
    load_font as load_font,
    load_fonts_for_document as load_fonts_for_document,
    clear_font_cache as clear_font_cache,
)
from .images import (
    ImageResolver as ImageResolver,
    LoadedImage as LoadedImage,
    detect_image_format as detect_image_format,
    load_image as load_image,
    clear_image_cache as clear_image_cache,
)
from .converter import (
    convert_tree as convert_tree,
    tree_to_ir as tree_to_ir,
)
from .validation import (
    validate_pages as validate_pages,
    ValidationIssue as ValidationIssue,
    ValidationResult as ValidationResult,
)
from .render import (
    Engine as Engine,
    RenderContext as RenderContext,
    RenderResult as RenderResult,
    assemble_document as assemble_document,
    register_engine as register_engine,
    get_engine as get_engine,
    render as render,
    render_sync as render_sync,
    render_to_bytes as render_to_bytes,
)

__version__ = '0.1.0'
