"""
File utilities module for ninaseq.

Sequence documents are read and written whole. Reads accept the UTF-8 byte
order mark that N.I.N.A. writes on Windows, and writes go through a temporary
file in the target directory so an interrupted save never leaves a truncated
sequence behind.
"""

import os
import tempfile
from pathlib import Path
from typing import Iterable, List, Optional
import logging

from ..config.settings import Settings


class FileUtils:
    """
    Utility class for sequence file operations.
    """

    logger = logging.getLogger(__name__)

    @staticmethod
    def find_sequence_files(directory: Path, extensions: Iterable[str] = Settings.SEQUENCE_EXTENSIONS,
                            recursive: bool = True) -> List[Path]:
        """
        List sequence files under ``directory``, skipping hidden directories.

        Args:
            directory: Directory to search in
            extensions: Accepted suffixes, with or without the leading dot
            recursive: Whether to descend into subdirectories

        Returns:
            Sorted list of matching file paths
        """
        directory = Path(directory)
        if not directory.is_dir():
            FileUtils.logger.warning(f"Not a directory: {directory}")
            return []

        suffixes = {ext.lower() if ext.startswith('.') else f".{ext.lower()}" for ext in extensions}
        candidates = directory.rglob('*') if recursive else directory.glob('*')

        found = []
        for path in candidates:
            relative = path.relative_to(directory)
            if any(part.startswith('.') for part in relative.parts[:-1]):
                continue
            if path.is_file() and path.suffix.lower() in suffixes:
                found.append(path)
        return sorted(found)

    @staticmethod
    def file_size(file_path: Path) -> int:
        """Size of ``file_path`` in bytes, -1 when it cannot be read."""
        try:
            return Path(file_path).stat().st_size
        except OSError as e:
            FileUtils.logger.error(f"Cannot stat {file_path}: {str(e)}")
            return -1

    @staticmethod
    def read_text(file_path: Path, max_size: int = Settings.DEFAULT_MAX_FILE_SIZE) -> Optional[str]:
        """
        Read a sequence file, refusing files larger than ``max_size``.

        Returns:
            File content, or None when the file is missing, too large or unreadable
        """
        file_path = Path(file_path)
        if not file_path.is_file():
            FileUtils.logger.error(f"File does not exist: {file_path}")
            return None

        size = FileUtils.file_size(file_path)
        if size > max_size:
            FileUtils.logger.error(f"File too large: {file_path} ({size} bytes, max: {max_size})")
            return None

        try:
            return file_path.read_text(encoding='utf-8-sig')
        except (OSError, UnicodeDecodeError) as e:
            FileUtils.logger.error(f"Error reading {file_path}: {str(e)}")
            return None

    @staticmethod
    def write_text(file_path: Path, content: str) -> bool:
        """
        Replace ``file_path`` with ``content``, creating parent directories.

        Returns:
            True when the file was written
        """
        file_path = Path(file_path)
        tmp_name = None
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile('w', encoding='utf-8', dir=file_path.parent,
                                             prefix=f".{file_path.name}.", delete=False) as tmp:
                tmp_name = tmp.name
                tmp.write(content)
            os.replace(tmp_name, file_path)
            FileUtils.logger.debug(f"Wrote {len(content)} characters to {file_path}")
            return True
        except OSError as e:
            FileUtils.logger.error(f"Error writing {file_path}: {str(e)}")
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            return False
