"""
Settings management for ninaseq.

This module provides application-wide settings and constants.
"""

from dataclasses import dataclass


@dataclass
class Settings:
    """Application settings and constants."""

    # Application settings
    APP_NAME: str = "ninaseq"
    APP_VERSION: str = "0.1.0"

    # Default paths
    DEFAULT_CONFIG_PATH: str = "./ninaseq_config.yaml"
    DEFAULT_LOG_FILE: str = "./ninaseq.log"

    # Editor settings
    DEFAULT_TITLE: str = "New Sequence"
    DEFAULT_AREA: str = "target"
    COPY_SUFFIX: str = " (Copy)"
    AREAS: tuple = ('start', 'target', 'end')

    # History settings
    DEFAULT_HISTORY_SIZE: int = 50

    # Export settings
    DEFAULT_INDENT: int = 2
    DEFAULT_MAX_FILE_SIZE: int = 10485760  # 10MB in bytes
    SEQUENCE_EXTENSIONS: tuple = ('.json',)

    # Logging settings
    DEFAULT_LOG_LEVEL: str = "INFO"

    def __post_init__(self):
        if not isinstance(self.AREAS, tuple):
            self.AREAS = tuple(self.AREAS)
        if not isinstance(self.SEQUENCE_EXTENSIONS, tuple):
            self.SEQUENCE_EXTENSIONS = tuple(self.SEQUENCE_EXTENSIONS)
