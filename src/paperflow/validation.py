from dataclasses import dataclass
from typing import List, Sequence

from .ir import NODE_KINDS, IRNode, IRPage


@dataclass
class ValidationIssue:
    path: str
    message: str
    severity: str = "error"  # 'error' | 'warn'


@dataclass
class ValidationResult:
    issues: List[ValidationIssue]

    def ok(self) -> bool:
        return all(i.severity != 'error' for i in self.issues)

    def errors(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == 'error']


def _validate_node(node: IRNode, path: str, issues: List[ValidationIssue]) -> None:
    stack = [(node, path)]
    while stack:
        current, npath = stack.pop()
        if current.kind not in NODE_KINDS:
            issues.append(ValidationIssue(path=npath, message=f"Unknown node kind '{current.kind}'"))
        elif current.kind in ('document', 'page'):
            issues.append(
                ValidationIssue(
                    path=npath, message=f"'{current.kind}' is only valid at the top of the tree"
                )
            )
        if current.kind == 'image' and not current.props.get('image_id'):
            issues.append(ValidationIssue(path=npath, message="Image element missing src"))
        if current.kind == 'link':
            href = current.props.get('href')
            if not isinstance(href, str) or not href.strip():
                issues.append(
                    ValidationIssue(path=f"{npath}/href", message="Link element missing href")
                )
        if current.kind == 'text' and not current.children and current.props.get('content') is None:
            issues.append(
                ValidationIssue(path=npath, message="Text element has no content", severity='warn')
            )
        opacity = current.style.get('opacity')
        if isinstance(opacity, (int, float)) and not 0.0 <= opacity <= 1.0:
            issues.append(
                ValidationIssue(path=f"{npath}/style/opacity", message="Opacity out of range 0.0-1.0")
            )
        for idx, child in reversed(list(enumerate(current.children))):
            stack.append((child, f"{npath}/children/{idx}"))


def validate_pages(pages: Sequence[IRPage]) -> ValidationResult:
    """Validate converted pages before any asset is resolved."""
    issues: List[ValidationIssue] = []
    if not pages:
        issues.append(ValidationIssue(path="/pages", message="Pages empty"))
        return ValidationResult(issues)
    for idx, page in enumerate(pages):
        ppath = f"/pages/{idx}"
        size = page.size
        if size.width <= 0 or size.height <= 0:
            issues.append(
                ValidationIssue(path=f"{ppath}/size", message="Page size must be positive")
            )
        m = page.margin
        if min(m.top, m.right, m.bottom, m.left) < 0:
            issues.append(
                ValidationIssue(path=f"{ppath}/margin", message="Margins must not be negative")
            )
        elif m.left + m.right >= size.width or m.top + m.bottom >= size.height:
            issues.append(
                ValidationIssue(path=f"{ppath}/margin", message="Margins leave no content area")
            )
        if not page.children:
            issues.append(
                ValidationIssue(path=f"{ppath}/children", message="Page has no content", severity='warn')
            )
        for cidx, child in enumerate(page.children):
            _validate_node(child, f"{ppath}/children/{cidx}", issues)
    return ValidationResult(issues)
