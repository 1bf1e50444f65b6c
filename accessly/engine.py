"""
Accessibility Audit Engine

Runs the rule catalogue over an HTML document and produces an ordered list of
issues with resolved line numbers, severity and documentation links.

Usage:
    from accessly.engine import AuditEngine, filter_issues

    engine = AuditEngine()
    issues = engine.audit_file('index.html')
    for issue in filter_issues(issues, 'default'):
        print(issue.line, issue.message)
"""

import asyncio
import html as html_mod
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from .document import parse_document
from .positions import PositionIndex
from .rules import RawIssue, Rule, Severity, select_rules

logger = logging.getLogger(__name__)

REPORT_LEVELS = ('verbose', 'default', 'quiet')


class AuditError(Exception):
    """Raised when a document cannot be read or parsed."""


def read_source(file_path: Path) -> str:
    """Read an HTML file as UTF-8, keeping its newlines untranslated."""
    with open(file_path, 'r', encoding='utf-8', newline='') as f:
        return f.read()


@dataclass
class Issue:
    """A single accessibility issue anchored to a source line"""
    rule_name: str
    severity: Severity
    message: str
    docs: str
    start_index: Optional[int] = None
    element_html: str = ''
    line: int = 1

    @property
    def is_html_root(self) -> bool:
        return self.element_html.strip().lower().startswith('<html')

    def to_dict(self) -> Dict[str, object]:
        return {
            'ruleName': self.rule_name,
            'severity': self.severity.value,
            'message': self.message,
            'docs': self.docs,
            'startIndex': self.start_index,
            'elementHTML': self.element_html,
            'line': self.line,
        }


# =============================================================================
# Line resolution
# =============================================================================

def find_doctype_line(lines: Sequence[str]) -> Optional[int]:
    """1-based line of the first `<!doctype` token, or None."""
    for number, line in enumerate(lines, 1):
        if '<!doctype' in line.lower():
            return number
    return None


def html_issue_line(lines: Sequence[str]) -> int:
    """
    Line at which an issue about the <html> element is anchored.

    The <html> tag is expected on the line after the doctype; the issue goes
    on the line after that. Without a doctype, <html> is assumed on line 1.
    """
    doctype_line = find_doctype_line(lines)
    if doctype_line is None:
        return 2
    return doctype_line + 2


def find_element_line(lines: Sequence[str], element_html: str) -> int:
    """
    Locate an element rendering in the source text.

    Tries the trimmed rendering first, then just its opening tag name, and
    falls back to line 1.
    """
    fragment = element_html.strip()
    if fragment:
        for number, line in enumerate(lines, 1):
            if fragment in line:
                return number

        tag = fragment.split()[0].rstrip('>')
        if tag.startswith('<') and len(tag) > 1:
            for number, line in enumerate(lines, 1):
                if tag in line:
                    return number
    return 1


def resolve_line(raw: RawIssue, lines: Sequence[str], index: PositionIndex) -> int:
    """Resolve a raw issue to a 1-based line number."""
    if raw.element_html.strip().lower().startswith('<html'):
        return html_issue_line(lines)
    if raw.start_index is not None:
        return index.line_of(raw.start_index)
    return find_element_line(lines, raw.element_html)


# =============================================================================
# Report filter
# =============================================================================

def filter_issues(issues: Iterable[Issue], level: str) -> List[Issue]:
    """
    Reduce issues to those shown at a report level.

    `verbose` keeps everything; `default` and `quiet` keep errors only.

    Raises:
        ValueError: for an unknown level
    """
    if level not in REPORT_LEVELS:
        raise ValueError(f"Unknown report level: {level}")
    if level == 'verbose':
        return list(issues)
    return [issue for issue in issues if issue.severity == Severity.ERROR]


# =============================================================================
# Engine
# =============================================================================

class AuditEngine:
    """
    Orchestrates rule execution for one document at a time.

    Rules without I/O run inline; rules flagged `needs_io` are awaited
    together. Output is ordered by rule declaration, then document order.
    """

    def __init__(self, rules: Optional[Iterable[str]] = None):
        """
        Initialize the engine.

        Args:
            rules: Names of the rules to run (default: all rules)
        """
        self.rules: Sequence[Rule] = select_rules(rules)

    async def audit_async(self, html: str, source_path: Optional[str] = None) -> List[Issue]:
        """
        Audit HTML source text.

        Args:
            html: HTML source
            source_path: Path of the document, used to resolve linked stylesheets

        Returns:
            Ordered list of issues

        Raises:
            AuditError: if the source cannot be parsed
        """
        try:
            tree, index = parse_document(html)
        except Exception as exc:
            raise AuditError(f"Failed to parse HTML from {source_path or 'input'}: {exc}") from exc

        logger.debug(f"Parsed {len(tree)} nodes over {index.line_count} lines")

        raw_results: List[Optional[List[RawIssue]]] = [None] * len(self.rules)
        pending = []
        for position, rule in enumerate(self.rules):
            if rule.needs_io:
                pending.append(position)
            else:
                raw_results[position] = list(rule.check(tree, source_path))

        if pending:
            gathered = await asyncio.gather(
                *(self.rules[position].check(tree, source_path) for position in pending)
            )
            for position, result in zip(pending, gathered):
                raw_results[position] = list(result)

        lines = html.split('\n')
        issues = []
        for rule, raw_issues in zip(self.rules, raw_results):
            logger.debug(f"{rule.name}: {len(raw_issues)} issue(s)")
            for raw in raw_issues:
                issues.append(Issue(
                    rule_name=rule.name,
                    severity=rule.severity,
                    message=raw.message,
                    docs=rule.docs,
                    start_index=raw.start_index,
                    element_html=raw.element_html,
                    line=resolve_line(raw, lines, index),
                ))
        return issues

    def audit(self, html: str, source_path: Optional[str] = None) -> List[Issue]:
        """Synchronous wrapper around audit_async."""
        return asyncio.run(self.audit_async(html, source_path))

    async def audit_file_async(self, file_path) -> List[Issue]:
        """
        Audit an HTML file.

        Raises:
            AuditError: if the file cannot be read or parsed
        """
        file_path = Path(file_path)
        try:
            content = await asyncio.to_thread(read_source, file_path)
        except (OSError, UnicodeDecodeError) as exc:
            raise AuditError(f"Failed to read {file_path}: {exc}") from exc
        return await self.audit_async(content, str(file_path))

    def audit_file(self, file_path) -> List[Issue]:
        """Synchronous wrapper around audit_file_async."""
        return asyncio.run(self.audit_file_async(file_path))


# =============================================================================
# Report
# =============================================================================

@dataclass
class AuditReport:
    """Audit results for one document, ready for output"""
    file_path: str
    timestamp: str
    report_level: str = 'default'
    issues: List[Issue] = field(default_factory=list)

    @classmethod
    def create(cls, file_path: str, issues: List[Issue], report_level: str = 'default') -> 'AuditReport':
        return cls(
            file_path=file_path,
            timestamp=datetime.now().isoformat(),
            report_level=report_level,
            issues=filter_issues(issues, report_level),
        )

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == Severity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == Severity.WARNING)

    @property
    def passed(self) -> bool:
        return self.error_count == 0

    def to_dict(self) -> Dict[str, object]:
        return {
            'file': self.file_path,
            'timestamp': self.timestamp,
            'reportLevel': self.report_level,
            'totalIssues': len(self.issues),
            'errors': self.error_count,
            'warnings': self.warning_count,
            'passed': self.passed,
            'issues': [issue.to_dict() for issue in self.issues],
        }

    def to_json(self) -> str:
        """Export report as JSON"""
        return json.dumps(self.to_dict(), indent=2)

    def to_text(self) -> str:
        """Generate human-readable report"""
        lines = [
            "=" * 70,
            "ACCESSIBILITY AUDIT REPORT",
            "=" * 70,
            f"File: {self.file_path}",
            f"Timestamp: {self.timestamp}",
            "-" * 70,
            f"Total Issues: {len(self.issues)}",
            f"  Errors: {self.error_count}",
            f"  Warnings: {self.warning_count}",
            "=" * 70,
        ]

        if self.issues:
            lines.append("\nISSUES FOUND:\n")
            for i, issue in enumerate(self.issues, 1):
                lines.extend([
                    f"{i}. [{issue.severity.value.upper()}] {issue.rule_name} (line {issue.line})",
                    f"   Element: {issue.element_html}",
                    f"   Issue: {issue.message}",
                    f"   See: {issue.docs}",
                    "",
                ])

        return "\n".join(lines)

    def to_html(self) -> str:
        """Generate a standalone HTML report"""
        rows = "\n".join(
            "<tr>"
            f"<td>{issue.line}</td>"
            f"<td>{issue.severity.value}</td>"
            f"<td>{html_mod.escape(issue.rule_name)}</td>"
            f"<td><code>{html_mod.escape(issue.element_html)}</code></td>"
            f"<td>{html_mod.escape(issue.message)} "
            f'<a href="{html_mod.escape(issue.docs)}">Documentation</a></td>'
            "</tr>"
            for issue in self.issues
        )
        title = html_mod.escape(f"Accessibility audit: {self.file_path}")
        return (
            '<!DOCTYPE html>\n'
            '<html lang="en">\n'
            f'<head><meta charset="utf-8"><title>{title}</title></head>\n'
            '<body>\n'
            f'<main><h1>{title}</h1>\n'
            f'<p>{self.error_count} error(s), {self.warning_count} warning(s)</p>\n'
            '<table>\n'
            '<caption>Issues found</caption>\n'
            '<thead><tr><th scope="col">Line</th><th scope="col">Severity</th>'
            '<th scope="col">Rule</th><th scope="col">Element</th>'
            '<th scope="col">Message</th></tr></thead>\n'
            f'<tbody>\n{rows}\n</tbody>\n'
            '</table></main>\n'
            '</body>\n'
            '</html>\n'
        )

    def render(self, report_format: str = 'text') -> str:
        if report_format == 'json':
            return self.to_json()
        if report_format == 'html':
            return self.to_html()
        return self.to_text()


def audit_html(html: str, source_path: Optional[str] = None) -> List[Issue]:
    """
    Convenience function to audit HTML source with every rule.

    Args:
        html: HTML content string
        source_path: Optional document path for resolving linked stylesheets

    Returns:
        Ordered list of issues
    """
    return AuditEngine().audit(html, source_path)


def audit_file(file_path: str) -> List[Issue]:
    """Convenience function to audit an HTML file with every rule."""
    return AuditEngine().audit_file(file_path)
