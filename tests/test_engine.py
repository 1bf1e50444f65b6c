"""
Tests for the audit engine, line resolution and report filter.
"""

import json

import pytest
from accessly.engine import (
    AuditEngine,
    AuditError,
    AuditReport,
    Issue,
    audit_html,
    filter_issues,
    find_element_line,
    html_issue_line,
    resolve_line,
)
from accessly.positions import PositionIndex
from accessly.rules import RawIssue, Severity


def _issue(severity, line=1, name='rule'):
    return Issue(rule_name=name, severity=severity, message='m', docs='d', line=line)


class TestAuditEngine:
    """Tests for AuditEngine."""

    def test_missing_alt_example(self):
        """Test a bare image yields one error with its rendering."""
        issues = AuditEngine().audit('<html lang="en"><body><img src="a.png"></body></html>')

        assert len(issues) == 1
        issue = issues[0]
        assert issue.rule_name == 'Missing alt attribute'
        assert issue.severity == Severity.ERROR
        assert issue.element_html == '<img src="a.png">'
        assert issue.docs.startswith('https://')
        assert issue.line == 1

    def test_low_contrast_example(self):
        """Test class styles from a <style> block produce one contrast issue."""
        html = ('<html><head><style>.low{color:#777;background-color:#777}</style></head>'
                '<body><p class="low">hi</p></body></html>')
        issues = audit_html(html)

        contrast = [i for i in issues if i.rule_name == 'Low contrast text']
        assert len(contrast) == 1
        assert contrast[0].element_html == '<p>'
        assert contrast[0].severity == Severity.WARNING

    def test_html_issue_after_doctype(self):
        """Test the lang issue lands on the line after the <html> tag."""
        html = '<!DOCTYPE html>\n<html>\n<head><title>T</title></head>\n<body></body>\n</html>'
        issues = AuditEngine().audit(html)

        lang = [i for i in issues if i.rule_name == 'Missing lang attribute on <html>']
        assert len(lang) == 1
        assert lang[0].line == 3

    def test_html_issue_without_doctype(self):
        """Test the lang issue defaults to line 2 without a doctype."""
        issues = AuditEngine().audit('<html>\n<body></body>\n</html>')

        assert issues[0].line == 2

    def test_lines_from_offsets(self):
        """Test issue lines come from element offsets."""
        html = '<html lang="en">\n<body>\n<p>intro</p>\n<img src="a.png">\n<img src="b.png">\n</body>\n</html>'
        issues = AuditEngine().audit(html)

        assert [(i.element_html, i.line) for i in issues] == [
            ('<img src="a.png">', 4),
            ('<img src="b.png">', 5),
        ]

    def test_rule_declaration_order(self):
        """Test ordering by rule first, with the async rule kept in place."""
        html = ('<html lang="en"><head><style>.low{color:#777;background-color:#777}</style></head>'
                '<body><button></button><p class="low">hi</p>'
                '<img src="d.png" role="presentation" alt="x"></body></html>')
        issues = AuditEngine().audit(html)

        assert [i.rule_name for i in issues] == [
            'Decorative image missing empty alt attribute',
            'Low contrast text',
            'Missing ARIA label or text content',
        ]

    def test_selected_rules_only(self):
        """Test the engine runs only the requested rules."""
        engine = AuditEngine(rules=['Missing title on <iframe>'])
        issues = engine.audit('<html><body><img src="a.png"><iframe></iframe></body></html>')

        assert [i.rule_name for i in issues] == ['Missing title on <iframe>']

    def test_unknown_rule(self):
        """Test unknown rule names fail at construction."""
        with pytest.raises(ValueError):
            AuditEngine(rules=['Nope'])

    def test_audit_file(self, tmp_path):
        """Test auditing a file on disk."""
        page = tmp_path / 'page.html'
        page.write_text('<html lang="en">\n<body>\n<iframe src="x.html"></iframe>\n</body>\n</html>',
                        encoding='utf-8')

        issues = AuditEngine().audit_file(page)

        assert [(i.rule_name, i.line) for i in issues] == [('Missing title on <iframe>', 3)]

    def test_audit_missing_file(self, tmp_path):
        """Test unreadable input raises AuditError with the cause kept."""
        with pytest.raises(AuditError) as excinfo:
            AuditEngine().audit_file(tmp_path / 'missing.html')

        assert isinstance(excinfo.value.__cause__, OSError)

    def test_clean_document(self):
        """Test an accessible document has no issues."""
        html = """<!DOCTYPE html>
<html lang="en">
<head><title>Fine</title></head>
<body>
  <img src="logo.png" alt="Company logo">
  <a href="/about">About us</a>
  <iframe src="map.html" title="Office location"></iframe>
</body>
</html>"""

        assert AuditEngine().audit(html) == []


class TestLineResolution:
    """Tests for the line resolution fallbacks."""

    LINES = ['<html>', '<body>', '<img src="b.png" alt>', '<iframe></iframe>', '</body>']

    def test_html_issue_line(self):
        """Test the doctype-relative placement."""
        assert html_issue_line(['<!doctype html>', '<html>']) == 3
        assert html_issue_line(['', '<!DOCTYPE html>', '<html>']) == 4
        assert html_issue_line(['<html>']) == 2

    def test_find_by_rendering(self):
        """Test the trimmed element rendering is searched first."""
        assert find_element_line(self.LINES, '  <img src="b.png"  ') == 3

    def test_find_by_tag_name(self):
        """Test falling back to the opening tag name."""
        assert find_element_line(self.LINES, '<iframe src="other.html">') == 4

    def test_not_found(self):
        """Test line 1 when nothing matches."""
        assert find_element_line(self.LINES, '<video>') == 1
        assert find_element_line(self.LINES, '') == 1

    def test_offset_preferred_over_text(self):
        """Test a start index wins over the textual search."""
        text = '\n'.join(self.LINES)
        index = PositionIndex.build(text)
        raw = RawIssue(start_index=text.index('</body>'), element_html='<img src="b.png">', message='m')

        assert resolve_line(raw, self.LINES, index) == 5

    def test_text_fallback_without_offset(self):
        """Test issues without an offset use the textual search."""
        text = '\n'.join(self.LINES)
        raw = RawIssue(start_index=None, element_html='<iframe>', message='m')

        assert resolve_line(raw, self.LINES, PositionIndex.build(text)) == 4

    def test_out_of_range_offset(self):
        """Test an offset past the text resolves to line 1."""
        raw = RawIssue(start_index=999, element_html='<img>', message='m')

        assert resolve_line(raw, self.LINES, PositionIndex.build('\n'.join(self.LINES))) == 1


class TestFilterIssues:
    """Tests for the report filter."""

    ISSUES = [
        _issue(Severity.ERROR, 1, 'a'),
        _issue(Severity.WARNING, 2, 'b'),
        _issue(Severity.ERROR, 3, 'c'),
    ]

    def test_verbose_keeps_everything(self):
        """Test verbose passes all issues unchanged."""
        assert filter_issues(self.ISSUES, 'verbose') == self.ISSUES

    def test_default_keeps_errors(self):
        """Test default drops warnings."""
        assert [i.rule_name for i in filter_issues(self.ISSUES, 'default')] == ['a', 'c']

    def test_quiet_matches_default(self):
        """Test quiet currently reports the same subset as default."""
        assert filter_issues(self.ISSUES, 'quiet') == filter_issues(self.ISSUES, 'default')

    @pytest.mark.parametrize('level', ['verbose', 'default', 'quiet'])
    def test_idempotent(self, level):
        """Test filtering twice changes nothing."""
        once = filter_issues(self.ISSUES, level)

        assert filter_issues(once, level) == once

    def test_unknown_level(self):
        """Test unknown levels are rejected."""
        with pytest.raises(ValueError):
            filter_issues(self.ISSUES, 'loud')


class TestAuditReport:
    """Tests for AuditReport."""

    def test_create_filters_by_level(self):
        """Test the report holds only issues visible at its level."""
        issues = [_issue(Severity.ERROR), _issue(Severity.WARNING)]
        report = AuditReport.create('page.html', issues, 'default')

        assert report.error_count == 1
        assert report.warning_count == 0
        assert not report.passed

    def test_passed_with_warnings_only(self):
        """Test warnings alone do not fail a report."""
        report = AuditReport.create('page.html', [_issue(Severity.WARNING)], 'verbose')

        assert report.passed
        assert report.warning_count == 1

    def test_to_json(self):
        """Test JSON export uses the external field names."""
        report = AuditReport.create('page.html', [_issue(Severity.ERROR, 7)], 'verbose')
        data = json.loads(report.to_json())

        assert data['errors'] == 1
        assert data['issues'][0] == {
            'ruleName': 'rule',
            'severity': 'error',
            'message': 'm',
            'docs': 'd',
            'startIndex': None,
            'elementHTML': '',
            'line': 7,
        }

    def test_to_text_and_html(self):
        """Test human-readable renderings mention each issue."""
        report = AuditReport.create('page.html', [_issue(Severity.ERROR, 7, 'Missing <thing>')], 'verbose')

        text = report.render('text')
        assert 'ACCESSIBILITY AUDIT REPORT' in text
        assert '[ERROR] Missing <thing> (line 7)' in text

        html = report.render('html')
        assert '<table>' in html
        assert 'Missing &lt;thing&gt;' in html
