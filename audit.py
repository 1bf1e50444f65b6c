#!/usr/bin/env python3
"""
Accessly - Convenience CLI Script

Audit HTML documents for accessibility issues.

Usage:
    python audit.py audit index.html [options]
    python audit.py annotate index.html [options]

Options:
    --report-level LEVEL  verbose, default or quiet
    -f, --format FORMAT   Report format: text, json or html
    --ci                  JSON output, exit 1 when errors are found
    -o, --output PATH     Write the report (or annotated HTML) to PATH
    -v, --verbose         Verbose output
    --version             Show version

Examples:
    python audit.py audit index.html
    python audit.py audit index.html --report-level verbose -f json
    python audit.py annotate index.html -o annotated.html
"""

import sys
from pathlib import Path

# Add package to path if running directly
package_dir = Path(__file__).parent
if str(package_dir) not in sys.path:
    sys.path.insert(0, str(package_dir))

from accessly.cli import main

if __name__ == '__main__':
    sys.exit(main())
