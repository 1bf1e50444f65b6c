"""
Accessibility Rules

The fixed rule catalogue. Every rule is a pure check over a DocumentTree that
returns RawIssue records; the engine adds line numbers, severity and docs.

Rules:
- Missing alt attribute (WCAG 1.1.1)
- Decorative image missing empty alt attribute (WCAG 1.1.1)
- Low contrast text (WCAG 1.4.3)
- Missing ARIA label or text content (WCAG 4.1.2)
- Missing lang attribute on <html> (WCAG 3.1.1)
- Missing title on <iframe> (WCAG 4.1.2)

The contrast rule reads linked stylesheets and is therefore a coroutine;
it is flagged with `needs_io` so the engine can await it.
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .contrast import AA_NORMAL_TEXT, ColorParseError, contrast_ratio
from .document import DocumentTree
from .styles import (
    ClassStyleMap,
    effective_background_color,
    effective_color,
    has_visible_text,
    merge_class_styles,
    parse_class_styles,
)

logger = logging.getLogger(__name__)


class Severity(Enum):
    """Severity levels for accessibility issues"""
    ERROR = "error"      # Always reported
    WARNING = "warning"  # Reported at verbose level only


@dataclass
class RawIssue:
    """An issue as emitted by a rule, before the engine enriches it."""
    start_index: Optional[int]
    element_html: str
    message: str


@dataclass(frozen=True)
class Rule:
    """A named accessibility check."""
    name: str
    docs: str
    severity: Severity
    check: Callable
    needs_io: bool = False


def _img_html(attrs: Dict[str, str]) -> str:
    return f'<img src="{attrs.get("src") or "[no src]"}">'


# =============================================================================
# Checks
# =============================================================================

def check_missing_alt(tree: DocumentTree, source_path: Optional[str] = None) -> List[RawIssue]:
    """Images without an alt attribute that are not marked presentational."""
    issues = []
    for i in tree.find_all(lambda node: node.name == 'img'):
        attrs = tree.nodes[i].attrs
        if 'alt' not in attrs and attrs.get('role') != 'presentation':
            issues.append(RawIssue(
                start_index=tree.nodes[i].start,
                element_html=_img_html(attrs),
                message="Add an alt attribute to <img> to describe the image for screen readers.",
            ))
    return issues


def check_decorative_image_alt(tree: DocumentTree, source_path: Optional[str] = None) -> List[RawIssue]:
    """Presentational images must carry alt=""."""
    issues = []
    for i in tree.find_all(lambda node: node.name == 'img'):
        attrs = tree.nodes[i].attrs
        if attrs.get('role') == 'presentation' and attrs.get('alt') != '':
            issues.append(RawIssue(
                start_index=tree.nodes[i].start,
                element_html=_img_html(attrs),
                message='Decorative images should have an empty alt attribute (alt="") and role="presentation".',
            ))
    return issues


def _is_remote(href: str) -> bool:
    return href.lower().startswith(('http:', 'https:', '//', 'data:'))


def _read_stylesheet(path: Path) -> str:
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


async def _load_linked_stylesheets(tree: DocumentTree, source_path: str) -> List[ClassStyleMap]:
    """Read local linked stylesheets concurrently; unreadable sheets are omitted."""
    base_dir = Path(source_path).resolve().parent
    paths = []
    for i in tree.find_all(lambda node: node.name == 'link'):
        attrs = tree.nodes[i].attrs
        if 'stylesheet' not in attrs.get('rel', '').lower().split():
            continue
        href = attrs.get('href', '').strip()
        if not href:
            continue
        if _is_remote(href):
            logger.debug(f"Skipping remote stylesheet: {href}")
            continue
        # Strip query strings and fragments
        href = href.split('?', 1)[0].split('#', 1)[0]
        paths.append(base_dir / href)

    results = await asyncio.gather(
        *(asyncio.to_thread(_read_stylesheet, path) for path in paths),
        return_exceptions=True,
    )

    sheets = []
    for path, result in zip(paths, results):
        if isinstance(result, Exception):
            logger.warning(f"Failed to read external CSS file at {path}: {result}")
            continue
        sheets.append(parse_class_styles(result))
    return sheets


async def check_low_contrast(tree: DocumentTree, source_path: Optional[str] = None) -> List[RawIssue]:
    """Text whose colour against its background falls below 4.5:1."""
    class_styles: ClassStyleMap = {}
    for i in tree.find_all(lambda node: node.name == 'style'):
        merge_class_styles(class_styles, parse_class_styles(tree.text_of(i)))

    if source_path:
        for sheet in await _load_linked_stylesheets(tree, source_path):
            merge_class_styles(class_styles, sheet)

    issues = []
    for i in tree.find_all(lambda node: True):
        if not has_visible_text(tree, i):
            continue
        node = tree.nodes[i]
        color = effective_color(tree, i, class_styles)
        background = effective_background_color(tree, i, class_styles)
        try:
            ratio = contrast_ratio(color, background)
        except ColorParseError as exc:
            logger.debug(
                f"Skipping contrast for <{node.name}> at index {node.start}: "
                f"{color} on {background}: {exc}"
            )
            continue

        if ratio < AA_NORMAL_TEXT:
            issues.append(RawIssue(
                start_index=node.start,
                element_html=f"<{node.name}>",
                message=(
                    f"Text contrast is too low (contrast ratio: {ratio:.2f}:1). "
                    f"Ensure a minimum contrast ratio of 4.5:1."
                ),
            ))
    return issues


def check_aria_label_or_text(tree: DocumentTree, source_path: Optional[str] = None) -> List[RawIssue]:
    """Interactive elements need an accessible name."""
    issues = []
    for i in tree.find_all(lambda node: node.name in ('button', 'a', 'input')):
        node = tree.nodes[i]
        has_label = node.attrs.get('aria-label') or node.attrs.get('aria-labelledby')
        if not has_label and not has_visible_text(tree, i):
            issues.append(RawIssue(
                start_index=node.start,
                element_html=f"<{node.name}>",
                message=f"Add an ARIA label or text content to <{node.name}> for better accessibility.",
            ))
    return issues


def check_html_lang(tree: DocumentTree, source_path: Optional[str] = None) -> List[RawIssue]:
    """The root <html> element declares the page language."""
    html = tree.find(lambda node: node.name == 'html')
    if html is not None and tree.nodes[html].attrs.get('lang', '').strip():
        return []
    return [RawIssue(
        start_index=tree.nodes[html].start if html is not None else None,
        element_html='<html>',
        message="Add a lang attribute to <html> to specify the document's language.",
    )]


def check_iframe_title(tree: DocumentTree, source_path: Optional[str] = None) -> List[RawIssue]:
    """Frames need a title describing their content."""
    issues = []
    for i in tree.find_all(lambda node: node.name == 'iframe'):
        attrs = tree.nodes[i].attrs
        if attrs.get('title', '').strip():
            continue
        src = f' src="{attrs["src"]}"' if attrs.get('src') else ''
        issues.append(RawIssue(
            start_index=tree.nodes[i].start,
            element_html=f"<iframe{src}>",
            message="Add a title attribute to <iframe> to describe its content.",
        ))
    return issues


# =============================================================================
# Registry
# =============================================================================

RULES: Tuple[Rule, ...] = (
    Rule(
        name='Missing alt attribute',
        docs='https://developer.mozilla.org/en-US/docs/Web/HTML/Element/img#attr-alt',
        severity=Severity.ERROR,
        check=check_missing_alt,
    ),
    Rule(
        name='Decorative image missing empty alt attribute',
        docs='https://www.w3.org/WAI/tutorials/images/decorative/',
        severity=Severity.WARNING,
        check=check_decorative_image_alt,
    ),
    Rule(
        name='Low contrast text',
        docs='https://www.w3.org/WAI/WCAG21/quickref/#contrast-minimum',
        severity=Severity.WARNING,
        check=check_low_contrast,
        needs_io=True,
    ),
    Rule(
        name='Missing ARIA label or text content',
        docs='https://developer.mozilla.org/en-US/docs/Web/Accessibility/ARIA/Attributes/aria-label',
        severity=Severity.ERROR,
        check=check_aria_label_or_text,
    ),
    Rule(
        name='Missing lang attribute on <html>',
        docs='https://developer.mozilla.org/en-US/docs/Web/HTML/Global_attributes/lang',
        severity=Severity.ERROR,
        check=check_html_lang,
    ),
    Rule(
        name='Missing title on <iframe>',
        docs='https://developer.mozilla.org/en-US/docs/Web/HTML/Element/iframe#attr-title',
        severity=Severity.ERROR,
        check=check_iframe_title,
    ),
)

RULES_BY_NAME: Dict[str, Rule] = {rule.name: rule for rule in RULES}


def _validate_registry() -> None:
    if len(RULES_BY_NAME) != len(RULES):
        raise RuntimeError("Duplicate rule names in registry")
    for rule in RULES:
        if rule.needs_io != inspect.iscoroutinefunction(rule.check):
            raise RuntimeError(f"Rule '{rule.name}' needs_io flag does not match its check")


_validate_registry()


def select_rules(names: Optional[Iterable[str]] = None) -> Tuple[Rule, ...]:
    """
    Pick rules by name, keeping declaration order.

    Args:
        names: Rule names to keep (default: all rules)

    Raises:
        ValueError: if a name is not in the registry
    """
    if names is None:
        return RULES
    wanted = set(names)
    unknown = sorted(wanted - set(RULES_BY_NAME))
    if unknown:
        raise ValueError(f"Unknown rule(s): {', '.join(unknown)}")
    return tuple(rule for rule in RULES if rule.name in wanted)
