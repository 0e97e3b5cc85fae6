"""Configuration module for ninaseq."""

from .config import Config
from .settings import Settings

__all__ = ['Config', 'Settings']
