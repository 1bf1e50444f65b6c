"""
Style Resolver

Extracts class-based rules from CSS text and resolves the effective text and
background colour of a node by walking up the document tree. Inline `style`
attributes win over class rules on the same node; the closest node that sets
a property wins over its ancestors. Selector specificity is not modelled.

Usage:
    from accessly.styles import parse_class_styles, effective_color

    class_styles = parse_class_styles('.warn { color: #777 }')
    color = effective_color(tree, node_index, class_styles)
"""

import re
from typing import Dict, Optional

from .document import DocumentTree

ClassStyleMap = Dict[str, Dict[str, str]]

DEFAULT_BACKGROUND = '#ffffff'

_COMMENT = re.compile(r'/\*.*?\*/', re.DOTALL)
_RULE_BLOCK = re.compile(r'([^{}]+)\{([^{}]*)\}')
_SIMPLE_CLASS = re.compile(r'^\.(-?[_a-zA-Z][_a-zA-Z0-9-]*)$')
_IMPORTANT = re.compile(r'\s*!\s*important\s*$', re.IGNORECASE)


def parse_declarations(text: str) -> Dict[str, str]:
    """Parse `prop: value; ...` into a dict with lowercased names and values."""
    declarations = {}
    for decl in text.split(';'):
        prop, sep, value = decl.partition(':')
        if not sep:
            continue
        prop = prop.strip().lower()
        value = _IMPORTANT.sub('', value.strip()).lower()
        if prop and value:
            declarations[prop] = value
    return declarations


def parse_inline_style(style: Optional[str]) -> Dict[str, str]:
    """Parse an inline style attribute."""
    if not style:
        return {}
    return parse_declarations(style)


def merge_class_styles(target: ClassStyleMap, source: ClassStyleMap) -> ClassStyleMap:
    """Merge source into target per property; later values win."""
    for class_name, props in source.items():
        target.setdefault(class_name, {}).update(props)
    return target


def parse_class_styles(css: Optional[str]) -> ClassStyleMap:
    """
    Extract simple class selector rules from CSS text.

    Only selectors of the form `.name` are recorded. Selector lists are split
    on commas, so `.a, .b { ... }` applies to both classes. Compound,
    descendant and pseudo-class selectors are skipped.

    Args:
        css: Stylesheet text

    Returns:
        Mapping of class name to property mapping
    """
    class_styles: ClassStyleMap = {}
    if not css:
        return class_styles

    css = _COMMENT.sub('', css)
    for match in _RULE_BLOCK.finditer(css):
        selectors, body = match.group(1), match.group(2)
        # Drop statements such as @import or @charset ahead of the selector
        selectors = selectors.rsplit(';', 1)[-1]
        declarations = parse_declarations(body)
        if not declarations:
            continue
        for selector in selectors.split(','):
            simple = _SIMPLE_CLASS.match(selector.strip())
            if simple:
                merge_class_styles(class_styles, {simple.group(1): declarations})

    return class_styles


def _classes(class_attr: Optional[str]):
    return [cls for cls in (class_attr or '').split() if cls]


def resolve_property(tree: DocumentTree, index: int, prop: str,
                     class_styles: ClassStyleMap) -> Optional[str]:
    """
    Find a CSS property for a node, walking from the node to the root.

    At each node the inline style is consulted before the node's classes,
    which are tried in the order they are listed.
    """
    for current in tree.lineage(index):
        attrs = tree.nodes[current].attrs
        inline = parse_inline_style(attrs.get('style'))
        if inline.get(prop):
            return inline[prop]
        for cls in _classes(attrs.get('class')):
            value = class_styles.get(cls, {}).get(prop)
            if value:
                return value
    return None


def effective_color(tree: DocumentTree, index: int,
                    class_styles: ClassStyleMap) -> Optional[str]:
    """Effective text colour, or None when nothing sets one."""
    return resolve_property(tree, index, 'color', class_styles)


def effective_background_color(tree: DocumentTree, index: int,
                               class_styles: ClassStyleMap) -> str:
    """Effective background colour, white when nothing sets one."""
    return resolve_property(tree, index, 'background-color', class_styles) or DEFAULT_BACKGROUND


def has_visible_text(tree: DocumentTree, index: int) -> bool:
    """True if the node has a direct text child with non-whitespace content."""
    return any(
        tree.nodes[child].kind == 'text' and (tree.nodes[child].text or '').strip()
        for child in tree.nodes[index].children
    )
