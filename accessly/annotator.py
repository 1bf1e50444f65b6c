"""
HTML Annotator

Writes audit findings back into the HTML source as comments placed just
before the offending lines.

Usage:
    from accessly.annotator import annotate

    annotated = annotate(html, issues, 'default')
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence

from .engine import AuditEngine, Issue, filter_issues, html_issue_line, read_source

logger = logging.getLogger(__name__)


def format_annotation(issue: Issue) -> str:
    """Render the comment block inserted for an issue."""
    return f"<!-- {issue.message}\n(See: {issue.docs}) -->"


def _iframe_line(lines: Sequence[str]) -> int:
    for number, line in enumerate(lines, 1):
        if '<iframe' in line.lower():
            return number
    return len(lines) + 1


def insertion_line(issue: Issue, lines: Sequence[str]) -> int:
    """1-based line before which an issue's comment is inserted."""
    if issue.is_html_root:
        return html_issue_line(lines)
    if issue.element_html.strip().lower().startswith('<iframe'):
        return _iframe_line(lines)
    return issue.line


def annotate(html: str, issues: List[Issue], report_level: str = 'default') -> str:
    """
    Insert a comment for each reported issue into the HTML source.

    Comments are applied from the bottom of the file upwards, so the line
    numbers of the insertions still to come are unaffected.

    Args:
        html: Original HTML source (left unmodified)
        issues: Issues from the audit engine
        report_level: verbose, default or quiet

    Returns:
        Annotated HTML source
    """
    selected = filter_issues(issues, report_level)
    if not selected:
        return html

    lines = html.split('\n')
    # Positions are computed against the original text, before any insertion
    placements = [
        (issue, insertion_line(issue, lines))
        for issue in sorted(selected, key=lambda issue: issue.line, reverse=True)
    ]
    for issue, line in sorted(placements, key=lambda p: p[1], reverse=True):
        position = min(max(line - 1, 0), len(lines))
        lines.insert(position, format_annotation(issue))

    logger.debug(f"Inserted {len(placements)} annotation(s)")
    return '\n'.join(lines)


def annotate_file(file_path, report_level: str = 'default',
                  output_path: Optional[str] = None,
                  engine: Optional[AuditEngine] = None) -> List[Issue]:
    """
    Audit an HTML file and write the annotated source.

    Args:
        file_path: HTML file to audit
        report_level: verbose, default or quiet
        output_path: Destination (default: overwrite file_path)
        engine: Engine to use (default: all rules)

    Returns:
        The issues that were annotated
    """
    file_path = Path(file_path)
    engine = engine or AuditEngine()
    issues = engine.audit_file(file_path)
    selected = filter_issues(issues, report_level)
    if not selected:
        return []

    content = read_source(file_path)
    target = Path(output_path) if output_path else file_path
    with open(target, 'w', encoding='utf-8', newline='') as f:
        f.write(annotate(content, selected, 'verbose'))
    logger.info(f"Annotations written to {target}")
    return selected
