"""Path canonicalization, subtree tests and display normalization."""

import os
from pathlib import Path, PurePath
from typing import Union

from .exceptions import UnresolvablePathError

PathLike = Union[str, os.PathLike]

_EXTENDED_PREFIX = "\\\\?\\"
_EXTENDED_UNC_PREFIX = "\\\\?\\UNC\\"


def is_under(root: PurePath, candidate: PurePath) -> bool:
    """
    Check whether a path equals a root or lies inside it.

    Compares path components, never touches the filesystem. Both paths
    are expected to be canonical already.

    Args:
        root: Canonical root path
        candidate: Canonical path to test

    Returns:
        True if candidate is root or one of its descendants
    """
    # PurePath equality follows the flavour's case rules
    return candidate == root or root in candidate.parents


def canonicalize(path: PathLike) -> Path:
    """
    Resolve a path to the canonical form used for watch roots.

    Expands ``~``, makes the path absolute and resolves every symlink.

    Args:
        path: Path as supplied by the client

    Returns:
        Canonical absolute path

    Raises:
        UnresolvablePathError: If the path does not exist or cannot be resolved
    """
    try:
        return Path(path).expanduser().resolve(strict=True)
    except (OSError, RuntimeError) as e:
        raise UnresolvablePathError(_describe(path, e))


def simplified(path: PurePath) -> str:
    """
    Render a path in the form reported to clients.

    Windows extended-length paths (``\\\\?\\C:\\x``) are reduced to their
    ordinary form when one exists; other paths are returned unchanged.
    """
    text = str(path)
    if text.startswith(_EXTENDED_UNC_PREFIX):
        return "\\\\" + text[len(_EXTENDED_UNC_PREFIX):]
    if text.startswith(_EXTENDED_PREFIX):
        rest = text[len(_EXTENDED_PREFIX):]
        if len(rest) >= 2 and rest[1] == ":" and rest[0].isalpha():
            return rest
    return text


def _describe(path: PathLike, error: BaseException) -> str:
    if isinstance(error, FileNotFoundError):
        return f"No such file or directory: {path}"
    if isinstance(error, PermissionError):
        return f"Permission denied: {path}"
    if isinstance(error, OSError) and error.strerror:
        return f"{error.strerror}: {path}"
    return f"Cannot resolve {path}: {error}"
