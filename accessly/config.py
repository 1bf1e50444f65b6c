"""
Accessly configuration

Loads, validates and saves `accessly.config.json`. Keys are stored in the
file in camelCase and exposed on AccesslyConfig in snake_case.
"""

import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path('accessly.config.json')

ENVIRONMENTS = ('development', 'staging', 'production')
LOG_LEVELS = ('debug', 'info', 'warn', 'error')
REPORT_FORMATS = ('json', 'html', 'text')
REPORT_LEVELS = ('verbose', 'default', 'quiet')
REPORTING_LEVELS = ('errorsAndWarnings', 'errors')

# camelCase file key -> dataclass field
FIELD_NAMES = {
    'environment': 'environment',
    'apiEndpoint': 'api_endpoint',
    'logLevel': 'log_level',
    'reportLevel': 'report_level',
    'reportFormat': 'report_format',
    'ciMode': 'ci_mode',
    'rulesDir': 'rules_dir',
    'annotations': 'annotations',
    'ariaSuggestions': 'aria_suggestions',
    'aiSuggestions': 'ai_suggestions',
    'reportingLevel': 'reporting_level',
}


class ConfigError(Exception):
    """Raised for unreadable or invalid configuration."""


@dataclass
class AccesslyConfig:
    """Configuration options for Accessly."""
    environment: str = 'development'
    api_endpoint: str = 'https://api.example.com'
    log_level: str = 'info'
    report_level: Optional[str] = None
    report_format: str = 'text'
    ci_mode: bool = False
    rules_dir: str = './rules'
    annotations: bool = True
    aria_suggestions: bool = True
    ai_suggestions: bool = False
    reporting_level: str = 'errorsAndWarnings'

    def effective_report_level(self) -> str:
        """reportLevel when set, otherwise derived from reportingLevel."""
        if self.report_level:
            return self.report_level
        return 'verbose' if self.reporting_level == 'errorsAndWarnings' else 'default'

    def to_dict(self) -> Dict[str, Any]:
        values = asdict(self)
        data = {key: values[name] for key, name in FIELD_NAMES.items()}
        if data['reportLevel'] is None:
            del data['reportLevel']
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AccesslyConfig':
        """Build a config from file keys. Unknown keys are ignored."""
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            name = FIELD_NAMES.get(key, key)
            if name in known:
                kwargs[name] = value
            else:
                logger.debug(f"Ignoring unknown configuration key: {key}")
        return cls(**kwargs)


def _check_choice(errors: List[str], data: Dict[str, Any], key: str, choices) -> None:
    if key in data and data[key] not in choices:
        errors.append(f"{key} must be one of {', '.join(choices)} (got {data[key]!r})")


def _check_bool(errors: List[str], data: Dict[str, Any], key: str) -> None:
    if key in data and not isinstance(data[key], bool):
        errors.append(f"{key} must be true or false (got {data[key]!r})")


def validate_config(data: Dict[str, Any]) -> None:
    """
    Validate a configuration mapping using file (camelCase) keys.

    Raises:
        ConfigError: listing every problem found
    """
    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a JSON object")

    errors: List[str] = []
    _check_choice(errors, data, 'environment', ENVIRONMENTS)
    _check_choice(errors, data, 'logLevel', LOG_LEVELS)
    _check_choice(errors, data, 'reportFormat', REPORT_FORMATS)
    _check_choice(errors, data, 'reportingLevel', REPORTING_LEVELS)
    if data.get('reportLevel') is not None:
        _check_choice(errors, data, 'reportLevel', REPORT_LEVELS)
    for key in ('ciMode', 'annotations', 'ariaSuggestions', 'aiSuggestions'):
        _check_bool(errors, data, key)

    endpoint = data.get('apiEndpoint')
    if endpoint is not None and (
            not isinstance(endpoint, str) or not endpoint.startswith(('http://', 'https://'))):
        errors.append(f"apiEndpoint must be an http(s) URL (got {endpoint!r})")

    rules_dir = data.get('rulesDir')
    if rules_dir is not None and (not isinstance(rules_dir, str) or not rules_dir.strip()):
        errors.append("rulesDir must be a non-empty path")

    if errors:
        raise ConfigError("; ".join(errors))


def config_exists(path: Optional[Path] = None) -> bool:
    return Path(path or DEFAULT_CONFIG_PATH).is_file()


def load_config(path: Optional[Path] = None) -> AccesslyConfig:
    """
    Load configuration from disk.

    Args:
        path: Config file (default: ./accessly.config.json)

    Returns:
        AccesslyConfig; defaults when the file does not exist

    Raises:
        ConfigError: if the file cannot be read, is not JSON, or is invalid
    """
    path = Path(path or DEFAULT_CONFIG_PATH)
    if not path.exists():
        logger.debug(f"No configuration at {path}, using defaults")
        return AccesslyConfig()

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Could not read configuration {path}: {exc}") from exc

    validate_config(data)
    return AccesslyConfig.from_dict(data)


def save_config(config: AccesslyConfig, path: Optional[Path] = None) -> Path:
    """Validate and write configuration as indented JSON."""
    path = Path(path or DEFAULT_CONFIG_PATH)
    data = config.to_dict()
    validate_config(data)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2)
        f.write('\n')
    return path
