"""Parsers module for ninaseq."""

from .base_parser import BaseParser
from .sequence_serializer import SequenceFormatError, SequenceSerializer, ValidationResult

__all__ = ['BaseParser', 'SequenceFormatError', 'SequenceSerializer', 'ValidationResult']
