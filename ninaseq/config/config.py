"""
Configuration management for ninaseq.

This module provides classes and methods for loading, validating,
and managing application configuration with CLI integration support.
"""

import yaml
import os
from pathlib import Path
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, asdict, field
from .settings import Settings


@dataclass
class HistoryConfig:
    """Configuration for the undo/redo history."""
    max_entries: int = Settings.DEFAULT_HISTORY_SIZE


@dataclass
class EditorConfig:
    """Configuration for the sequence editor."""
    default_area: str = Settings.DEFAULT_AREA
    default_title: str = Settings.DEFAULT_TITLE
    copy_suffix: str = Settings.COPY_SUFFIX


@dataclass
class ExportConfig:
    """Configuration for reading and writing sequence documents."""
    indent: int = Settings.DEFAULT_INDENT
    max_file_size: int = Settings.DEFAULT_MAX_FILE_SIZE


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: str = Settings.DEFAULT_LOG_LEVEL
    file: Optional[str] = None


@dataclass
class Config:
    """Main configuration class for ninaseq."""
    history: HistoryConfig = field(default_factory=HistoryConfig)
    editor: EditorConfig = field(default_factory=EditorConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def __post_init__(self):
        # Environment variable overrides
        if os.getenv('NINASEQ_LOG_LEVEL'):
            self.logging.level = os.getenv('NINASEQ_LOG_LEVEL')
        if os.getenv('NINASEQ_HISTORY_SIZE'):
            self.history.max_entries = int(os.getenv('NINASEQ_HISTORY_SIZE', Settings.DEFAULT_HISTORY_SIZE))
        if os.getenv('NINASEQ_INDENT'):
            self.export.indent = int(os.getenv('NINASEQ_INDENT', Settings.DEFAULT_INDENT))

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> 'Config':
        """
        Load configuration from a YAML file or return default configuration.

        Args:
            config_path: Path to configuration file

        Returns:
            Config instance
        """
        if not config_path:
            env_config_path = os.getenv('NINASEQ_CONFIG')
            if env_config_path:
                config_path = Path(env_config_path)

        if config_path and Path(config_path).exists():
            with open(config_path, 'r') as f:
                data = yaml.safe_load(f)
                if data is None:
                    data = {}
                return cls.from_dict(data)
        else:
            return cls()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Config':
        """
        Create Config instance from dictionary.

        Unknown sections are ignored so that older config files keep loading.

        Args:
            data: Configuration dictionary

        Returns:
            Config instance
        """
        sections = {
            'history': HistoryConfig,
            'editor': EditorConfig,
            'export': ExportConfig,
            'logging': LoggingConfig,
        }

        config_data = {}
        for name, section_cls in sections.items():
            section_data = data.get(name)
            config_data[name] = section_cls(**section_data) if isinstance(section_data, dict) else section_cls()

        return cls(**config_data)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert Config instance to dictionary.

        Returns:
            Configuration dictionary
        """
        return asdict(self)

    def save(self, config_path: Path) -> None:
        """
        Save configuration to a YAML file.

        Args:
            config_path: Path to save configuration file
        """
        with open(config_path, 'w') as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False)

    def validate(self) -> List[str]:
        """
        Validate the configuration and return a list of errors.

        Returns:
            List of validation errors, empty if valid
        """
        errors = []

        if self.history.max_entries <= 0:
            errors.append("History max entries must be positive")

        if self.editor.default_area not in Settings.AREAS:
            errors.append(f"Invalid default area: {self.editor.default_area}. Valid values: {', '.join(Settings.AREAS)}")
        if not self.editor.default_title:
            errors.append("Editor default title must not be empty")

        if self.export.indent < 0:
            errors.append("Export indent must not be negative")
        if self.export.max_file_size <= 0:
            errors.append("Export max file size must be positive")

        valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if self.logging.level.upper() not in valid_log_levels:
            errors.append(f"Invalid logging level: {self.logging.level}. Valid values: {', '.join(valid_log_levels)}")

        return errors

    def get_env_overrides(self) -> Dict[str, Any]:
        """
        Get configuration values that are overridden by environment variables.

        Returns:
            Dictionary of environment variable overrides
        """
        overrides = {}

        if os.getenv('NINASEQ_LOG_LEVEL'):
            overrides['logging.level'] = os.getenv('NINASEQ_LOG_LEVEL')
        if os.getenv('NINASEQ_HISTORY_SIZE'):
            overrides['history.max_entries'] = int(os.getenv('NINASEQ_HISTORY_SIZE'))
        if os.getenv('NINASEQ_INDENT'):
            overrides['export.indent'] = int(os.getenv('NINASEQ_INDENT'))

        return overrides

    def apply_cli_overrides(self, cli_options: Dict[str, Any]) -> None:
        """
        Apply command-line interface options as overrides to the configuration.

        Args:
            cli_options: Dictionary of CLI options to apply
        """
        if cli_options.get('log_level'):
            self.logging.level = cli_options['log_level']
        if cli_options.get('history_size'):
            self.history.max_entries = cli_options['history_size']
        if cli_options.get('indent') is not None:
            self.export.indent = cli_options['indent']
        if cli_options.get('default_area'):
            self.editor.default_area = cli_options['default_area']

    def get_value(self, key: str) -> Any:
        """
        Look up a dotted ``section.option`` key.

        Raises:
            KeyError: If the section or option does not exist
        """
        section_name, _, option = key.partition('.')
        section = getattr(self, section_name, None)
        if section is None or not option or not hasattr(section, option):
            raise KeyError(key)
        return getattr(section, option)

    def set_value(self, key: str, value: str) -> None:
        """
        Set a dotted ``section.option`` key, coercing the string to the current type.

        Raises:
            KeyError: If the section or option does not exist
            ValueError: If the value cannot be converted
        """
        current = self.get_value(key)
        section_name, _, option = key.partition('.')

        if isinstance(current, bool):
            converted: Any = value.lower() in ('1', 'true', 'yes', 'on')
        elif isinstance(current, int):
            converted = int(value)
        elif current is None and value.lower() in ('none', 'null', ''):
            converted = None
        else:
            converted = value

        setattr(getattr(self, section_name), option, converted)

    @staticmethod
    def get_default_config_dict() -> Dict[str, Any]:
        """Return the default configuration as a plain dictionary."""
        return {
            'history': asdict(HistoryConfig()),
            'editor': asdict(EditorConfig()),
            'export': asdict(ExportConfig()),
            'logging': asdict(LoggingConfig()),
        }
