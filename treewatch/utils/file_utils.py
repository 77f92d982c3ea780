"""
File utilities for treewatch
"""
import os
import shutil
from pathlib import Path
from typing import Union
import logging

logger = logging.getLogger(__name__)


def abs_path(path: Union[str, Path]) -> str:
    """
    Resolve a path to an absolute path

    Expands a leading ``~`` and collapses relative segments. Symbolic
    links are left alone.

    Args:
        path: Path to resolve

    Returns:
        Absolute path string
    """
    return os.path.abspath(os.path.expanduser(str(path)))


def exists(path: Union[str, Path]) -> bool:
    """Check if a path exists"""
    return os.path.exists(abs_path(path))


def is_dir(path: Union[str, Path]) -> bool:
    """Check if a path is a directory"""
    return os.path.isdir(abs_path(path))


def is_file(path: Union[str, Path]) -> bool:
    """Check if a path is a regular file"""
    return os.path.isfile(abs_path(path))


def copy(source: Union[str, Path], destination: Union[str, Path]) -> Path:
    """
    Copy a file or directory tree into a destination directory

    ``copy("~/notes", "/tmp")`` produces ``/tmp/notes`` with the same
    relative layout and file contents as the source.

    Args:
        source: File or directory to copy
        destination: Directory receiving the copy

    Returns:
        Path of the copy

    Raises:
        FileNotFoundError: If the source does not exist
        OSError: If copying fails
    """
    source_path = Path(abs_path(source))
    target_dir = Path(abs_path(destination))

    if not source_path.exists():
        raise FileNotFoundError(f"Source not found: {source_path}")

    target_dir.mkdir(parents=True, exist_ok=True)
    target_path = target_dir / source_path.name

    if source_path.is_dir():
        shutil.copytree(str(source_path), str(target_path), dirs_exist_ok=True)
    else:
        shutil.copy2(str(source_path), str(target_path))

    logger.info(f"Copied: {source_path} -> {target_path}")
    return target_path
