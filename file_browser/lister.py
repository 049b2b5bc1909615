"""
Directory lister - resolves request paths and builds ordered listings.
"""

import logging
import os
from typing import Callable, List

from .models import ChildInfo, Entry, EntryKind, FilesystemError
from .natural_sort import derive_key

logger = logging.getLogger(__name__)

KB = 1 << 10
MB = 1 << 20
GB = 1 << 30


def normalize_path(path: str) -> str:
    """
    Normalize a requested path relative to the base path.

    The result always ends with '/'. One trailing '..' hop is resolved:
    '/a/b/../' -> '/a/'. Browse links climb one level at a time, so longer
    chains such as '/a/../../' are left as they are.
    """
    if not path:
        path = '/'
    if not path.endswith('/'):
        path += '/'

    parts = path.split('/')
    if len(parts) > 2 and parts[-2] == '..':
        path = '/'.join(parts[:-3]) + '/'
    return path


def format_size_label(size: int) -> str:
    """Format a byte count as a bracketed label, e.g. [1.50MB]."""
    if size >= GB:
        return f"[{size / GB:.2f}G]"
    if size >= MB:
        return f"[{size / MB:.2f}MB]"
    if size >= KB:
        return f"[{size / KB:.2f}KB]"
    return f"[{size:.0f}B]"


def read_directory_children(absolute_path: str) -> List[ChildInfo]:
    """
    Read the direct children of a directory.

    Raises:
        FilesystemError: If the directory is missing, unreadable or not a directory
    """
    children = []
    try:
        with os.scandir(absolute_path) as it:
            for item in it:
                is_dir = item.is_dir()
                if is_dir:
                    children.append(ChildInfo(item.name, True, 0))
                    continue
                try:
                    size = item.stat().st_size
                except FileNotFoundError:
                    # Dangling symlink
                    size = item.stat(follow_symlinks=False).st_size
                children.append(ChildInfo(item.name, False, size))
    except OSError as e:
        raise FilesystemError(absolute_path, e.errno, e.strerror or str(e)) from e
    except ValueError as e:
        # Embedded null byte in the path
        raise FilesystemError(absolute_path, None, str(e)) from e
    return children


def sort_entries(entries: List[Entry]) -> List[Entry]:
    """Order entries: directories first, then natural order by name."""
    return sorted(entries, key=lambda e: (e.kind.order, derive_key(e.name).composite))


def list_directory(
    root: str,
    requested_path: str,
    reader: Callable[[str], List[ChildInfo]] = read_directory_children,
) -> List[Entry]:
    """
    List the visible entries of a directory under root.

    Args:
        root: Base path all requests resolve against
        requested_path: Path relative to root, as sent by the client
        reader: Filesystem read primitive

    Returns:
        Entries with directories first, each group in natural order

    Raises:
        FilesystemError: If the directory cannot be read
    """
    return list_normalized(root, normalize_path(requested_path), reader)


def list_normalized(
    root: str,
    path: str,
    reader: Callable[[str], List[ChildInfo]] = read_directory_children,
) -> List[Entry]:
    """
    List a directory whose path already went through normalize_path.

    Callers that show or check the normalized path use this so the guard
    is applied exactly once.
    """
    target = root + path
    logger.debug(f"Listing {target}")

    entries = []
    for child in reader(target):
        if child.name.startswith('.'):
            continue
        if child.is_dir:
            entries.append(Entry(child.name, EntryKind.DIRECTORY))
        else:
            entries.append(Entry(child.name, EntryKind.FILE, format_size_label(child.size)))

    return sort_entries(entries)
