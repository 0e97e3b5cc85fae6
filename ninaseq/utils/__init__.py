"""Utilities module for ninaseq."""

from .file_utils import FileUtils
from .coordinate_utils import CoordinateUtils
from .formatting import FormattingUtils

__all__ = ['FileUtils', 'CoordinateUtils', 'FormattingUtils']
