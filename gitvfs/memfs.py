# memfs.py -- In-memory filesystem
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

"""Volatile filesystem kept entirely in memory."""

__all__ = ["MemoryFilesystem"]

import os
import time

from .fs import (
    DIR_MODE,
    FILE_MODE,
    BaseFilesystem,
    PathLike,
    StorageStats,
    already_exists,
    ancestors,
    basename,
    is_a_directory,
    make_stat,
    normalize_path,
    not_a_directory,
    not_empty,
    not_found,
    parent_path,
    permission_denied,
    to_bytes,
)


class _Entry:
    __slots__ = ("content", "is_dir", "mtime")

    def __init__(self, is_dir: bool, content: bytes = b"") -> None:
        self.is_dir = is_dir
        self.content = content
        self.mtime = time.time()


class MemoryFilesystem(BaseFilesystem):
    """Filesystem storing every entry in a dictionary keyed by path.

    A second dictionary maps each directory to the names of its children,
    so listing a directory never scans unrelated entries.
    """

    def __init__(self) -> None:
        self._entries: dict[str, _Entry] = {"": _Entry(is_dir=True)}
        self._children: dict[str, set[str]] = {"": set()}

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} with {len(self._entries) - 1} entries>"

    def _add(self, path: str, entry: _Entry) -> None:
        self._entries[path] = entry
        if entry.is_dir:
            self._children.setdefault(path, set())
        self._children[parent_path(path)].add(basename(path))

    def _remove(self, path: str) -> None:
        del self._entries[path]
        self._children.pop(path, None)
        self._children[parent_path(path)].discard(basename(path))

    def write_file(self, path: PathLike, data: bytes | str) -> None:
        path = normalize_path(path)
        existing = self._entries.get(path)
        if existing is not None and existing.is_dir:
            raise is_a_directory(path)
        missing = []
        for ancestor in ancestors(path):
            entry = self._entries.get(ancestor)
            if entry is None:
                missing.append(ancestor)
            elif not entry.is_dir:
                raise not_a_directory(path)
        for ancestor in missing:
            self._add(ancestor, _Entry(is_dir=True))
        self._add(path, _Entry(is_dir=False, content=to_bytes(data)))

    def read_file(self, path: PathLike) -> bytes:
        path = normalize_path(path)
        entry = self._entries.get(path)
        if entry is None:
            raise not_found(path)
        if entry.is_dir:
            raise is_a_directory(path)
        return entry.content

    def unlink(self, path: PathLike) -> None:
        path = normalize_path(path)
        entry = self._entries.get(path)
        if entry is None:
            raise not_found(path)
        if entry.is_dir:
            raise permission_denied(path, "Is a directory, use rmdir")
        self._remove(path)

    def readdir(self, path: PathLike) -> list[str]:
        path = normalize_path(path)
        try:
            return list(self._children[path])
        except KeyError:
            raise not_found(path) from None

    def mkdir(self, path: PathLike) -> None:
        path = normalize_path(path)
        entry = self._entries.get(path)
        if entry is not None:
            if entry.is_dir:
                return
            raise already_exists(path)
        parent = self._entries.get(parent_path(path))
        if parent is None or not parent.is_dir:
            raise not_found(path)
        self._add(path, _Entry(is_dir=True))

    def rmdir(self, path: PathLike) -> None:
        path = normalize_path(path)
        if not path:
            raise permission_denied(path, "Cannot remove the root directory")
        entry = self._entries.get(path)
        if entry is None:
            raise not_found(path)
        if not entry.is_dir:
            raise not_a_directory(path)
        if self._children[path]:
            raise not_empty(path)
        self._remove(path)

    def stat(self, path: PathLike) -> os.stat_result:
        path = normalize_path(path)
        entry = self._entries.get(path)
        if entry is None:
            raise not_found(path)
        if entry.is_dir:
            return make_stat(DIR_MODE, 0, entry.mtime)
        return make_stat(FILE_MODE, len(entry.content), entry.mtime)

    def storage_stats(self) -> StorageStats:
        sizes = [len(e.content) for e in self._entries.values() if not e.is_dir]
        return StorageStats(len(sizes), sum(sizes), max(sizes, default=0))
