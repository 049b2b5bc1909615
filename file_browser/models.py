"""
Data models for the file browser.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class EntryKind(str, Enum):
    """Kind of a listed entry. Directories are listed before files."""
    DIRECTORY = "directory"
    FILE = "file"

    @property
    def order(self) -> int:
        return 0 if self is EntryKind.DIRECTORY else 1


@dataclass(frozen=True)
class Entry:
    """A single row of a directory listing."""
    name: str
    kind: EntryKind
    size_label: str = ""  # Empty for directories

    @property
    def is_dir(self) -> bool:
        return self.kind is EntryKind.DIRECTORY


@dataclass(frozen=True)
class ChildInfo:
    """Raw directory child as reported by the filesystem."""
    name: str
    is_dir: bool
    size: int


@dataclass(frozen=True)
class ServerConfig:
    """Settings shared by the browse and download servers."""
    base_path: str
    port: int = 7005
    download_port: int = 7006
    domain: str = "http://127.0.0.1"
    host: str = "0.0.0.0"
    shutdown_grace: float = 5.0  # Seconds to wait for in-flight requests

    @property
    def base_url(self) -> str:
        return f"{self.domain}:{self.port}"

    @property
    def download_url(self) -> str:
        return f"{self.domain}:{self.download_port}"


class FilesystemError(Exception):
    """A directory or file under the base path could not be read."""

    def __init__(self, path: str, errno: Optional[int] = None, message: str = ""):
        self.path = path
        self.errno = errno
        super().__init__(f"Cannot read {path}: {message}" if message else f"Cannot read {path}")
