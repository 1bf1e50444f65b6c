"""
Accessly

An accessibility auditing toolkit for HTML documents.

Features:
- Rule-based checks for common WCAG failures:
  - Missing alt text on images (1.1.1)
  - Decorative images without empty alt (1.1.1)
  - Low text contrast using inline, <style> and linked class styles (1.4.3)
  - Interactive elements without an accessible name (4.1.2)
  - Missing page language (3.1.1)
  - Untitled iframes (4.1.2)
- Line-accurate issue reporting (text, JSON, HTML)
- In-place annotation of the audited file with explanatory comments

Workflow:
1. Run: accessly audit index.html
2. Review the reported issues
3. Run: accessly annotate index.html to leave the findings in the source
"""

__version__ = '0.1.0'

from .engine import (
    AuditEngine,
    AuditError,
    AuditReport,
    Issue,
    filter_issues,
    audit_html,
    audit_file,
)

from .rules import (
    Rule,
    RawIssue,
    Severity,
    RULES,
    RULES_BY_NAME,
    select_rules,
)

from .annotator import annotate, annotate_file

from .config import (
    AccesslyConfig,
    ConfigError,
    load_config,
    save_config,
    validate_config,
)

__all__ = [
    # Engine
    'AuditEngine',
    'AuditError',
    'AuditReport',
    'Issue',
    'filter_issues',
    'audit_html',
    'audit_file',
    # Rules
    'Rule',
    'RawIssue',
    'Severity',
    'RULES',
    'RULES_BY_NAME',
    'select_rules',
    # Annotation
    'annotate',
    'annotate_file',
    # Configuration
    'AccesslyConfig',
    'ConfigError',
    'load_config',
    'save_config',
    'validate_config',
]
