"""
nzbparse Configuration System
=============================

Persistent configuration with:
- JSON storage
- Environment variable overrides
- Validation
"""

from __future__ import annotations

import os
import json
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Optional, Union
import logging

from ..core.extensions import DEFAULT_RULES, ExtensionRules
from ..core.subject import DEFAULT_MAX_SUBJECT_LENGTH, SubjectParser

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".nzbparse"
CONFIG_FILE = CONFIG_DIR / "config.json"


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ('1', 'true', 'yes', 'on'):
        return True
    if lowered in ('0', 'false', 'no', 'off'):
        return False
    raise ValueError(f"not a boolean: {value!r}")


def _parse_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(',') if item.strip()]


@dataclass
class SubjectConfig:
    """Subject extractor settings."""
    max_subject_length: int = DEFAULT_MAX_SUBJECT_LENGTH
    extra_extensions: list[str] = field(default_factory=list)


@dataclass
class ParserConfig:
    """NZB reading settings."""
    remove_duplicates: bool = True
    recover: bool = False
    max_workers: int = 1


@dataclass
class Config:
    """Main configuration container."""
    subject: SubjectConfig = field(default_factory=SubjectConfig)
    parser: ParserConfig = field(default_factory=ParserConfig)
    version: str = "0.1.0"

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> Config:
        """Create from dictionary."""
        return cls(
            subject=SubjectConfig(**data.get("subject", {})),
            parser=ParserConfig(**data.get("parser", {})),
            version=data.get("version", "0.1.0")
        )

    def validate(self) -> list[str]:
        """Validate configuration. Returns list of errors."""
        errors = []

        if self.subject.max_subject_length < 64:
            errors.append("Max subject length must be at least 64")

        for ext in self.subject.extra_extensions:
            if not ext.strip('. ') or ' ' in ext.strip() or '"' in ext:
                errors.append(f"Invalid extension: {ext!r}")

        if self.parser.max_workers < 1 or self.parser.max_workers > 64:
            errors.append("Max workers must be between 1 and 64")

        return errors

    def extension_rules(self) -> ExtensionRules:
        """Extension rules with the configured extra extensions."""
        if not self.subject.extra_extensions:
            return DEFAULT_RULES
        return DEFAULT_RULES.with_extensions(*self.subject.extra_extensions)

    def subject_parser(self) -> SubjectParser:
        """Subject extractor for this configuration."""
        return SubjectParser(self.extension_rules(), self.subject.max_subject_length)

    def parse_options(self):
        """NZB reading options for this configuration."""
        from ..core.nzb_parser import ParseOptions

        return ParseOptions(
            remove_duplicates=self.parser.remove_duplicates,
            recover=self.parser.recover,
            max_workers=self.parser.max_workers,
            subject_parser=self.subject_parser(),
        )


# Environment variable -> (section, key, converter)
ENV_OVERRIDES = {
    "NZBPARSE_MAX_SUBJECT_LENGTH": ("subject", "max_subject_length", int),
    "NZBPARSE_EXTRA_EXTENSIONS": ("subject", "extra_extensions", _parse_list),
    "NZBPARSE_REMOVE_DUPLICATES": ("parser", "remove_duplicates", _parse_bool),
    "NZBPARSE_RECOVER": ("parser", "recover", _parse_bool),
    "NZBPARSE_MAX_WORKERS": ("parser", "max_workers", int),
}


def load_config(path: Optional[Union[str, Path]] = None) -> Config:
    """
    Load configuration from file.
    Falls back to defaults if not found.
    Supports environment variable overrides.
    """
    config = Config()
    config_file = Path(path) if path else CONFIG_FILE

    # Load from file if exists
    if config_file.exists():
        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
                config = Config.from_dict(data)
                logger.info(f"Loaded config from {config_file}")
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Failed to load config: {e}")

    for env_var, (section, key, converter) in ENV_OVERRIDES.items():
        value = os.environ.get(env_var)
        if value:
            try:
                section_obj = getattr(config, section)
                setattr(section_obj, key, converter(value))
                logger.debug(f"Override from {env_var}: {section}.{key}")
            except ValueError as e:
                logger.warning(f"Failed to apply {env_var}: {e}")

    return config


def save_config(config: Config, path: Optional[Union[str, Path]] = None) -> bool:
    """
    Save configuration to file.
    Creates config directory if needed.
    """
    config_file = Path(path) if path else CONFIG_FILE

    try:
        config_file.parent.mkdir(parents=True, exist_ok=True)

        with open(config_file, 'w', encoding='utf-8') as f:
            json.dump(config.to_dict(), f, indent=2)

        logger.info(f"Saved config to {config_file}")
        return True

    except OSError as e:
        logger.error(f"Failed to save config: {e}")
        return False
