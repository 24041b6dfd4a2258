# fs.py -- Filesystem adapter contract
# Copyright (C) 2026 The gitvfs authors
#
# SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-or-later
# gitvfs is dual-licensed under the Apache License, Version 2.0 and the GNU
# General Public License as published by the Free Software Foundation; version 2.0
# or (at your option) any later version. You can redistribute it and/or
# modify it under the terms of either of these two licenses.
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# You should have received a copy of the licenses; if not, see
# <http://www.gnu.org/licenses/> for a copy of the GNU General Public License
# and <http://www.apache.org/licenses/LICENSE-2.0> for a copy of the Apache
# License, Version 2.0.
#

"""The filesystem contract shared by all gitvfs stores.

Every store addresses entries by a *canonical path*: a slash separated
string without leading or trailing slashes, in which ``"."`` segments and
duplicate separators are removed and ``".."`` is resolved without ever
escaping the root. The root itself is the empty string.

Errors are raised as :class:`OSError` subclasses carrying the matching
``errno``, so callers can tell ``FileNotFoundError`` from
``IsADirectoryError`` exactly as they would on a real disk.
"""

__all__ = [
    "DIR_MODE",
    "FILE_MODE",
    "BaseFilesystem",
    "StorageStats",
    "ancestors",
    "basename",
    "make_stat",
    "normalize_path",
    "parent_path",
]

import errno
import os
import posixpath
import stat
from collections.abc import Iterator
from typing import NamedTuple

from .errors import posix_error

DIR_MODE = stat.S_IFDIR | 0o755
FILE_MODE = stat.S_IFREG | 0o644

PathLike = str | bytes


class StorageStats(NamedTuple):
    """Usage of a store, counted over files.

    Sizes are in stored bytes, which for encoding stores is the encoded size.
    """

    total_objects: int
    total_bytes: int
    largest_object: int


def normalize_path(path: PathLike) -> str:
    """Return the canonical key for a path.

    >>> normalize_path("/a//b/./c/")
    'a/b/c'
    >>> normalize_path("/../x")
    'x'
    """
    if isinstance(path, bytes):
        path = os.fsdecode(path)
    normalized = posixpath.normpath("/" + path)
    # normpath keeps a leading "//" as a POSIX special case
    return normalized.lstrip("/")


def parent_path(path: str) -> str:
    """Return the canonical parent of a canonical path."""
    return path.rpartition("/")[0]


def basename(path: str) -> str:
    """Return the last segment of a canonical path."""
    return path.rpartition("/")[2]


def ancestors(path: str) -> list[str]:
    """Return the proper ancestors of a path, outermost first.

    The root is not included.
    """
    parts = path.split("/")[:-1]
    return ["/".join(parts[: i + 1]) for i in range(len(parts))]


def make_stat(mode: int, size: int, mtime: float) -> os.stat_result:
    """Build a stat result for a virtual entry."""
    return os.stat_result(
        (mode, 0, 0, 1, 0, 0, size, int(mtime), int(mtime), int(mtime)),
        {"st_atime": mtime, "st_mtime": mtime, "st_ctime": mtime},
    )


def to_bytes(data: bytes | str) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def not_found(path: str) -> OSError:
    return posix_error(errno.ENOENT, path)


def is_a_directory(path: str) -> OSError:
    return posix_error(errno.EISDIR, path)


def not_a_directory(path: str) -> OSError:
    return posix_error(errno.ENOTDIR, path)


def already_exists(path: str) -> OSError:
    return posix_error(errno.EEXIST, path)


def not_empty(path: str) -> OSError:
    return posix_error(errno.ENOTEMPTY, path)


def permission_denied(path: str, detail: str | None = None) -> OSError:
    return posix_error(errno.EPERM, path, detail)


def too_large(path: str, size: int, limit: int) -> OSError:
    return posix_error(
        errno.EFBIG, path, f"object of {size} bytes exceeds the {limit} byte limit"
    )


class BaseFilesystem:
    """A POSIX-like filesystem over some storage substrate.

    Subclasses implement the primitive operations; the remaining ones are
    derived from them here.
    """

    def write_file(self, path: PathLike, data: bytes | str) -> None:
        """Create or replace a file, creating missing parent directories.

        Args:
          path: Path of the file
          data: New contents; str is stored UTF-8 encoded
        Raises:
          IsADirectoryError: if path is a directory or the root
          NotADirectoryError: if an ancestor of path is a file
        """
        raise NotImplementedError(self.write_file)

    def read_file(self, path: PathLike) -> bytes:
        """Return the contents of a file."""
        raise NotImplementedError(self.read_file)

    def unlink(self, path: PathLike) -> None:
        """Remove a file. Directories can only be removed with rmdir."""
        raise NotImplementedError(self.unlink)

    def readdir(self, path: PathLike) -> list[str]:
        """Return the names of the immediate children of a directory."""
        raise NotImplementedError(self.readdir)

    def mkdir(self, path: PathLike) -> None:
        """Create a directory.

        Existing directories are left alone. The parent must exist already.
        """
        raise NotImplementedError(self.mkdir)

    def rmdir(self, path: PathLike) -> None:
        """Remove an empty directory."""
        raise NotImplementedError(self.rmdir)

    def stat(self, path: PathLike) -> os.stat_result:
        """Return a stat result for a path."""
        raise NotImplementedError(self.stat)

    def lstat(self, path: PathLike) -> os.stat_result:
        """Return a stat result without following symlinks.

        Symlinks are plain files in every store, so this is :meth:`stat`.
        """
        return self.stat(path)

    def symlink(self, target: str, path: PathLike) -> None:
        """Store a symlink at path as a file holding the target."""
        self.write_file(path, target)

    def readlink(self, path: PathLike) -> str:
        """Return the target stored by :meth:`symlink`."""
        return self.read_file(path).decode("utf-8")

    def exists(self, path: PathLike) -> bool:
        try:
            self.stat(path)
        except FileNotFoundError:
            return False
        return True

    def isdir(self, path: PathLike) -> bool:
        try:
            return stat.S_ISDIR(self.stat(path).st_mode)
        except FileNotFoundError:
            return False

    def isfile(self, path: PathLike) -> bool:
        try:
            return stat.S_ISREG(self.stat(path).st_mode)
        except FileNotFoundError:
            return False

    def makedirs(self, path: PathLike) -> None:
        """Create a directory and any missing ancestors."""
        path = normalize_path(path)
        if not path:
            return
        try:
            self.mkdir(path)
        except FileNotFoundError:
            for ancestor in ancestors(path):
                self.mkdir(ancestor)
            self.mkdir(path)

    def storage_stats(self) -> StorageStats:
        """Return the number and size of the stored files."""
        raise NotImplementedError(self.storage_stats)

    def walk_files(self, path: PathLike = "") -> Iterator[str]:
        """Yield the canonical path of every file below path.

        Raises:
          FileNotFoundError: if path does not exist
        """
        pending = [normalize_path(path)]
        while pending:
            current = pending.pop()
            if not stat.S_ISDIR(self.stat(current).st_mode):
                yield current
                continue
            for name in sorted(self.readdir(current), reverse=True):
                pending.append(posixpath.join(current, name) if current else name)

    def export_files(self, prefix: PathLike = ".git") -> list[tuple[str, bytes]]:
        """Return the path and contents of every file below prefix.

        Args:
          prefix: Directory to export; the root exports everything
        Returns: List of (path, contents) tuples, sorted by path
        Raises:
          FileNotFoundError: if prefix does not exist
        """
        paths = sorted(self.walk_files(prefix))
        return [(path, self.read_file(path)) for path in paths]
