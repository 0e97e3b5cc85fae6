"""
Base parser module for ninaseq.

This module provides a base class for document parsers with the common
source handling: deciding whether a source is a path or inline text,
checking the file, and reading it.
"""

from pathlib import Path
from typing import Any, Union
from abc import ABC, abstractmethod
import logging

from ..utils.file_utils import FileUtils


class BaseParser(ABC):
    """
    Abstract base class for all parsers in ninaseq.
    """

    def __init__(self, config=None):
        """
        Initialize the base parser.

        Args:
            config: Application configuration (optional)
        """
        self.config = config
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def parse(self, source: Union[str, Path]) -> Any:
        """
        Parse the source and return structured data.

        Args:
            source: File path or inline document text
        """
        pass

    def _is_file_path(self, source: Union[str, Path]) -> bool:
        """
        Check if source is a file path or content string.

        Inline JSON documents always start with a brace or bracket.
        """
        if isinstance(source, Path):
            return True
        stripped = source.lstrip()
        if stripped.startswith(('{', '[')):
            return False
        return Path(source).exists() or '/' in source or '\\' in source

    @property
    def max_file_size(self) -> int:
        if self.config is not None and hasattr(self.config, 'export'):
            return self.config.export.max_file_size
        return 10 * 1024 * 1024

    def validate_source(self, source: Union[str, Path]) -> bool:
        """
        Validate that the source exists and is accessible.

        Args:
            source: Source path to validate

        Returns:
            True if source is valid, False otherwise
        """
        path = Path(source)
        if not path.exists():
            self.logger.error(f"Source does not exist: {source}")
            return False

        if path.is_dir():
            self.logger.error(f"Source is a directory, expected a file: {source}")
            return False

        size = FileUtils.file_size(path)
        if size > self.max_file_size:
            self.logger.error(f"Source file too large: {source} ({size} bytes, max: {self.max_file_size})")
            return False

        return True

    def read_file(self, file_path: Union[str, Path]):
        """
        Safely read a file with proper error handling.

        Returns:
            File content as string or None if error occurred
        """
        return FileUtils.read_text(Path(file_path), max_size=self.max_file_size)
