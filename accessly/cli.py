#!/usr/bin/env python3
"""
Accessly CLI

Command-line interface for auditing HTML files for accessibility issues.

Usage:
    python -m accessly audit index.html
    accessly annotate index.html --report-level verbose
    accessly init --force
    accessly validate
"""

import argparse
import logging
import sys
from pathlib import Path

from . import __version__
from .annotator import annotate_file
from .config import (
    DEFAULT_CONFIG_PATH,
    ENVIRONMENTS,
    LOG_LEVELS,
    REPORT_FORMATS,
    REPORT_LEVELS,
    AccesslyConfig,
    ConfigError,
    config_exists,
    load_config,
    save_config,
)
from .engine import AuditEngine, AuditError, AuditReport
from .rules import RULES

LOGGING_LEVELS = {
    'debug': logging.DEBUG,
    'info': logging.INFO,
    'warn': logging.WARNING,
    'error': logging.ERROR,
}

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False, quiet: bool = False, log_level: str = 'info') -> None:
    """Configure logging based on verbosity."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = LOGGING_LEVELS.get(log_level, logging.INFO)
    logging.basicConfig(
        level=level,
        format='%(levelname)s: %(message)s',
        force=True,
    )


def parse_args(args: list = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable debug logging'
    )
    common.add_argument(
        '-q', '--quiet',
        action='store_true',
        help='Only log errors'
    )
    common.add_argument(
        '--config',
        type=str,
        default=str(DEFAULT_CONFIG_PATH),
        help=f'Configuration file (default: {DEFAULT_CONFIG_PATH})'
    )

    parser = argparse.ArgumentParser(
        prog='accessly',
        description='Accessly: An accessibility auditing tool',
        epilog='Example: accessly audit index.html --report-level verbose'
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    # init
    init = subparsers.add_parser(
        'init', parents=[common],
        help='Initialize Accessly configuration'
    )
    init.add_argument(
        '-f', '--force',
        action='store_true',
        help='Overwrite existing configuration without prompting'
    )
    init.add_argument('--environment', choices=ENVIRONMENTS)
    init.add_argument('--api-endpoint', type=str)
    init.add_argument('--log-level', choices=LOG_LEVELS)
    init.add_argument('--rules-dir', type=str)
    init.add_argument('--report-format', choices=REPORT_FORMATS)
    init.add_argument('--report-level', choices=REPORT_LEVELS)
    init.add_argument('--ci-mode', action='store_true', default=None)

    # validate
    subparsers.add_parser(
        'validate', parents=[common],
        help='Validate the current configuration file'
    )

    # audit
    audit = subparsers.add_parser(
        'audit', parents=[common],
        help='Audit an HTML file for accessibility issues'
    )
    audit.add_argument('file', type=str, help='HTML file to audit')
    audit.add_argument(
        '--report-level',
        choices=REPORT_LEVELS,
        default=None,
        help='Which issues to report (default: from configuration)'
    )
    audit.add_argument(
        '-f', '--format',
        choices=REPORT_FORMATS,
        default=None,
        help='Report format (default: from configuration)'
    )
    audit.add_argument(
        '--ci',
        action='store_true',
        default=None,
        help='CI mode: JSON output, non-zero exit when errors are found'
    )
    audit.add_argument(
        '--rule',
        action='append',
        dest='rules',
        choices=[rule.name for rule in RULES],
        metavar='NAME',
        help='Run only the named rule (repeatable)'
    )
    audit.add_argument(
        '-o', '--output',
        type=str,
        default=None,
        help='Write the report to a file instead of stdout'
    )

    # annotate
    annotate = subparsers.add_parser(
        'annotate', parents=[common],
        help='Add annotations for accessibility issues directly into the file'
    )
    annotate.add_argument('file', type=str, help='HTML file to annotate')
    annotate.add_argument(
        '--report-level',
        choices=REPORT_LEVELS,
        default=None,
        help='Which issues to annotate (default: from configuration)'
    )
    annotate.add_argument(
        '-o', '--output',
        type=str,
        default=None,
        help='Write the annotated HTML here instead of overwriting the input'
    )

    return parser.parse_args(args)


def _prompt(question: str, default: str, choices=None) -> str:
    suffix = f" ({'/'.join(choices)})" if choices else ''
    while True:
        answer = input(f"{question}{suffix} [{default}]: ").strip() or default
        if not choices or answer in choices:
            return answer
        print(f"Please choose one of: {', '.join(choices)}")


def _confirm(question: str, default: bool = False) -> bool:
    hint = 'Y/n' if default else 'y/N'
    answer = input(f"{question} [{hint}] ").strip().lower()
    if not answer:
        return default
    return answer in ('y', 'yes')


def cmd_init(parsed: argparse.Namespace) -> int:
    config_path = Path(parsed.config)

    if config_exists(config_path) and not parsed.force:
        if not _confirm('Configuration file already exists. Overwrite?'):
            print('Initialization aborted.')
            return 0

    flags = (parsed.environment, parsed.api_endpoint, parsed.log_level, parsed.rules_dir,
             parsed.report_format, parsed.report_level, parsed.ci_mode)
    defaults = AccesslyConfig()

    if any(flag is not None for flag in flags):
        config = AccesslyConfig(
            environment=parsed.environment or defaults.environment,
            api_endpoint=parsed.api_endpoint or defaults.api_endpoint,
            log_level=parsed.log_level or defaults.log_level,
            rules_dir=parsed.rules_dir or defaults.rules_dir,
            report_format=parsed.report_format or defaults.report_format,
            report_level=parsed.report_level,
            ci_mode=bool(parsed.ci_mode),
        )
    else:
        config = AccesslyConfig(
            environment=_prompt('Select environment', defaults.environment, ENVIRONMENTS),
            api_endpoint=_prompt('Enter the API endpoint URL', defaults.api_endpoint),
            log_level=_prompt('Select the default log level', defaults.log_level, LOG_LEVELS),
            rules_dir=_prompt('Path to rules directory', defaults.rules_dir),
            report_format=_prompt('Select the default report format',
                                  defaults.report_format, REPORT_FORMATS),
            ci_mode=_confirm('Enable CI mode?', default=False),
        )

    try:
        save_config(config, config_path)
    except ConfigError as exc:
        logger.error(f"Configuration validation failed: {exc}")
        return 1

    print(f"Configuration saved to {config_path}")
    return 0


def cmd_validate(parsed: argparse.Namespace) -> int:
    config_path = Path(parsed.config)
    if not config_exists(config_path):
        logger.error(f"No configuration file found at {config_path}")
        return 1
    try:
        load_config(config_path)
    except ConfigError as exc:
        logger.error(f"Configuration validation failed: {exc}")
        return 1
    print('Configuration is valid.')
    return 0


def cmd_audit(parsed: argparse.Namespace, config: AccesslyConfig) -> int:
    report_level = parsed.report_level or config.effective_report_level()
    ci_mode = config.ci_mode if parsed.ci is None else parsed.ci
    report_format = 'json' if ci_mode else (parsed.format or config.report_format)

    engine = AuditEngine(rules=parsed.rules)
    try:
        issues = engine.audit_file(parsed.file)
    except AuditError as exc:
        logger.error(str(exc))
        return 1

    report = AuditReport.create(parsed.file, issues, report_level)

    if parsed.output:
        with open(parsed.output, 'w', encoding='utf-8') as f:
            f.write(report.render(report_format))
        print(f"Report written to: {parsed.output}")
    elif ci_mode or parsed.format:
        print(report.render(report_format))
    elif report.issues:
        print('Accessibility issues found:')
        for issue in report.issues:
            print(f"- Line {issue.line}: [{issue.severity.value}] {issue.message}")
    else:
        print('No accessibility issues found!')

    if ci_mode and not report.passed:
        return 1
    return 0


def cmd_annotate(parsed: argparse.Namespace, config: AccesslyConfig) -> int:
    if not config.annotations:
        print('Annotations are disabled in the configuration.')
        return 0

    report_level = parsed.report_level or config.effective_report_level()
    try:
        annotated = annotate_file(parsed.file, report_level, output_path=parsed.output)
    except AuditError as exc:
        logger.error(str(exc))
        return 1
    except OSError as exc:
        logger.error(f"Failed to write annotations: {exc}")
        return 1

    if annotated:
        print(f"Annotations written to {parsed.output or parsed.file}")
    else:
        print('No accessibility issues to annotate!')
    return 0


def main(args: list = None) -> int:
    """
    Main entry point for CLI.

    Args:
        args: Command-line arguments (default: sys.argv)

    Returns:
        Exit code (0 for success, 1 for error)
    """
    parsed = parse_args(args)
    setup_logging(parsed.verbose, parsed.quiet)

    if parsed.command == 'init':
        return cmd_init(parsed)
    if parsed.command == 'validate':
        return cmd_validate(parsed)

    try:
        config = load_config(Path(parsed.config))
    except ConfigError as exc:
        logger.error(f"Invalid configuration: {exc}")
        return 1
    setup_logging(parsed.verbose, parsed.quiet, config.log_level)

    if parsed.command == 'audit':
        return cmd_audit(parsed, config)
    return cmd_annotate(parsed, config)


if __name__ == '__main__':
    sys.exit(main())
