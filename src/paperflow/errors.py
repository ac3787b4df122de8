"""Error model shared by every paperflow module.

Every failure that leaves the package is a PaperflowError carrying a code from
ErrorCode, a message, a free-form context dict and (when one is known for the
code) a suggested fix.
"""

import json
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    # Fonts
    FONT_LOAD_FAILED = 'FONT_LOAD_FAILED'
    FONT_NOT_FOUND = 'FONT_NOT_FOUND'
    INVALID_FONT_FORMAT = 'INVALID_FONT_FORMAT'
    FONT_FETCH_ERROR = 'FONT_FETCH_ERROR'
    # Images
    IMAGE_LOAD_FAILED = 'IMAGE_LOAD_FAILED'
    IMAGE_NOT_FOUND = 'IMAGE_NOT_FOUND'
    INVALID_IMAGE_FORMAT = 'INVALID_IMAGE_FORMAT'
    IMAGE_FETCH_ERROR = 'IMAGE_FETCH_ERROR'
    LOCAL_FILE_NOT_SUPPORTED = 'LOCAL_FILE_NOT_SUPPORTED'
    INVALID_IMAGE_SOURCE = 'INVALID_IMAGE_SOURCE'
    UNKNOWN_IMAGE_FORMAT = 'UNKNOWN_IMAGE_FORMAT'
    INVALID_BASE64_IMAGE = 'INVALID_BASE64_IMAGE'
    # Rendering / structure
    RENDER_FAILED = 'RENDER_FAILED'
    INVALID_DOCUMENT = 'INVALID_DOCUMENT'
    NO_PAGES = 'NO_PAGES'
    UNKNOWN_ENGINE = 'UNKNOWN_ENGINE'
    UNKNOWN_ERROR = 'UNKNOWN_ERROR'


def _suggestion(code: ErrorCode, context: Dict[str, Any]) -> Optional[str]:
    """Return a remediation hint for an error code, or None."""
    if code == ErrorCode.FONT_LOAD_FAILED:
        return (
            f"Check that the font \"{context.get('family')}\" exists. "
            "Try a built-in font like \"Inter\", \"Roboto\", or \"Open Sans\"."
        )
    if code == ErrorCode.FONT_NOT_FOUND:
        return (
            f"The font \"{context.get('family')}\" was not found. "
            "Popular options: Inter, Roboto, Open Sans, Lato, Poppins."
        )
    if code == ErrorCode.INVALID_FONT_FORMAT:
        return "The font file format is not supported. Use TTF, OTF, WOFF or WOFF2 data."
    if code == ErrorCode.FONT_FETCH_ERROR:
        return (
            "Failed to fetch font from URL. Check that the URL is accessible and "
            f"returns a valid font file. URL: {context.get('url')}"
        )
    if code == ErrorCode.IMAGE_LOAD_FAILED:
        return (
            f"Failed to load image from \"{context.get('url')}\". Make sure the URL is "
            "accessible and returns a valid image (PNG, JPEG, WebP, GIF or SVG)."
        )
    if code == ErrorCode.IMAGE_NOT_FOUND:
        return f"Image not found at \"{context.get('src')}\". Check that the URL is correct."
    if code == ErrorCode.IMAGE_FETCH_ERROR:
        return f"The request for \"{context.get('url')}\" did not complete. Check network access."
    if code == ErrorCode.LOCAL_FILE_NOT_SUPPORTED:
        return (
            "Local file paths are not supported. Upload the image to a CDN or object "
            f"store and use its URL instead. Path: \"{context.get('src')}\""
        )
    if code == ErrorCode.INVALID_IMAGE_SOURCE:
        return (
            "Invalid image source. Expected a URL string, a data URI, bytes, or a "
            f"callable returning one of those. Got: {context.get('type')}"
        )
    if code == ErrorCode.UNKNOWN_IMAGE_FORMAT:
        return "Could not detect image format. Supported formats: PNG, JPEG, WebP, GIF, SVG."
    if code == ErrorCode.INVALID_BASE64_IMAGE:
        return "Invalid base64 image data URI. Format should be: data:image/png;base64,<data>"
    if code == ErrorCode.RENDER_FAILED:
        return (
            "PDF rendering failed. Check that the document structure is valid and "
            "all assets (fonts, images) are accessible."
        )
    if code == ErrorCode.INVALID_DOCUMENT:
        return "Invalid document structure. Use a Document root with Page children."
    if code == ErrorCode.NO_PAGES:
        return "Document has no pages. Add at least one Page inside the Document."
    if code == ErrorCode.UNKNOWN_ENGINE:
        available = context.get('available') or []
        return (
            f"Unknown render engine \"{context.get('engine')}\". "
            f"Available engines: {', '.join(available) or 'none registered'}."
        )
    return None


class PaperflowError(Exception):
    """Single error type raised across the package boundary."""

    def __init__(
        self, message: str, code: ErrorCode, context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = ErrorCode(code)
        self.context: Dict[str, Any] = dict(context or {})
        self.suggestion = self.context.pop('suggestion', None) or _suggestion(
            self.code, self.context
        )

    def __str__(self) -> str:
        out = f"PaperflowError [{self.code.value}]: {self.message}"
        if self.suggestion:
            out += f"\n\nSuggestion: {self.suggestion}"
        if self.context:
            out += f"\n\nContext: {json.dumps(self.context, indent=2, default=str)}"
        return out

    def __repr__(self) -> str:
        return f"PaperflowError({self.message!r}, {self.code.value})"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': 'PaperflowError',
            'code': self.code.value,
            'message': self.message,
            'suggestion': self.suggestion,
            'context': self.context,
        }


def is_paperflow_error(error: object) -> bool:
    return isinstance(error, PaperflowError)


def wrap_error(
    error: BaseException, code: ErrorCode, context: Optional[Dict[str, Any]] = None
) -> PaperflowError:
    """Normalize any exception to a PaperflowError; PaperflowErrors pass through."""
    if isinstance(error, PaperflowError):
        return error
    merged = dict(context or {})
    merged['original_error'] = type(error).__name__
    return PaperflowError(str(error), code, merged)
