"""
Natural sort keys for filenames (e.g., img2.png before img10.png).

Only the trailing run of digits before the extension is compared as a
number. The key is a single byte string so that ordering is a plain
byte-wise comparison:

    prefix + 8-byte big-endian (number + 1) + extension

A name without trailing digits stores 0, so ``file.txt`` sorts before
``file0.txt``.
"""

import struct
from dataclasses import dataclass
from functools import total_ordering

UINT64_MAX = (1 << 64) - 1


@total_ordering
@dataclass(frozen=True)
class SortKey:
    """Comparison key derived from a filename."""
    prefix: str
    numeric_suffix: int  # 0 = no digits, otherwise value + 1
    extension: str

    @property
    def composite(self) -> bytes:
        return (
            self.prefix.encode('utf-8', 'surrogateescape')
            + struct.pack('>Q', self.numeric_suffix)
            + self.extension.encode('utf-8', 'surrogateescape')
        )

    def __lt__(self, other: "SortKey") -> bool:
        if not isinstance(other, SortKey):
            return NotImplemented
        return self.composite < other.composite


def split_extension(filename: str) -> tuple:
    """
    Split a filename at its last dot.

    Returns:
        (base, extension) where extension keeps the dot, e.g.
        'archive.tar.gz' -> ('archive.tar', '.gz')
    """
    idx = filename.rfind('.')
    if idx < 0:
        return filename, ''
    return filename[:idx], filename[idx:]


def derive_key(filename: str) -> SortKey:
    """
    Derive the natural sort key of a filename.

    Args:
        filename: Bare entry name, without any directory part

    Returns:
        SortKey comparing by prefix, then trailing number, then extension
    """
    base, ext = split_extension(filename)

    i = len(base)
    while i > 0 and '0' <= base[i - 1] <= '9':
        i -= 1

    digits = base[i:]
    numeric = 0
    if digits:
        value = int(digits)
        # Too large for 64 bits: fall back to prefix-only ordering
        if value <= UINT64_MAX:
            numeric = (value + 1) & UINT64_MAX

    return SortKey(prefix=base[:i], numeric_suffix=numeric, extension=ext)
