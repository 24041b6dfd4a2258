# sqlitefs.py -- Filesystem stored in a SQLite table
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

"""Persistent filesystem kept in a single SQLite table.

Each row is one entry. File contents are stored base64 encoded in a text
column, so the size ceiling of a store applies to the encoded form: with the
default of 900 KiB an encoded object stays below the 1 MiB bound that hosted
SQLite services place on a single bound parameter.

The ``parent_path`` column is indexed so listing a directory is one index
lookup rather than a prefix scan over the whole table.
"""

__all__ = [
    "DEFAULT_TABLE",
    "MAX_OBJECT_SIZE",
    "SqliteFilesystem",
]

import base64
import os
import re
import sqlite3
import time
from types import TracebackType

from . import log_utils
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
    too_large,
)

logger = log_utils.getLogger(__name__)

MAX_OBJECT_SIZE = 900 * 1024

DEFAULT_TABLE = "git_objects"

_TABLE_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _now_ms() -> int:
    return int(time.time() * 1000)


class SqliteFilesystem(BaseFilesystem):
    """Filesystem persisted in a SQLite table.

    Every mutation runs in its own transaction, so an operation that fails
    part way leaves the table as it was.
    """

    def __init__(
        self,
        connection: sqlite3.Connection | str | os.PathLike[str],
        table: str = DEFAULT_TABLE,
        max_object_size: int = MAX_OBJECT_SIZE,
    ) -> None:
        """Open a store, creating its table if necessary.

        Args:
          connection: An open connection, or the path of a database file
          table: Name of the table holding the entries
          max_object_size: Largest accepted encoded file size, in bytes
        """
        if not _TABLE_NAME_RE.match(table):
            raise ValueError(f"invalid table name: {table!r}")
        if isinstance(connection, sqlite3.Connection):
            self._conn = connection
            self._owns_connection = False
        else:
            self._conn = sqlite3.connect(os.fspath(connection))
            self._owns_connection = True
        self.table = table
        self.max_object_size = max_object_size
        self._init_schema()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.table!r})"

    def _init_schema(self) -> None:
        t = self.table
        with self._conn:
            self._conn.execute(
                f"CREATE TABLE IF NOT EXISTS {t} ("
                "path TEXT PRIMARY KEY, "
                "parent_path TEXT NOT NULL DEFAULT '', "
                "data TEXT NOT NULL, "
                "is_dir INTEGER NOT NULL DEFAULT 0, "
                "mtime INTEGER NOT NULL)"
            )
            self._conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{t}_parent ON {t}(parent_path, path)"
            )
            self._conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{t}_is_dir ON {t}(is_dir, path)"
            )
            self._conn.execute(
                f"INSERT OR IGNORE INTO {t} (path, parent_path, data, is_dir, mtime) "
                "VALUES ('', '', '', 1, ?)",
                (_now_ms(),),
            )

    def close(self) -> None:
        """Close the connection if this store opened it."""
        if self._owns_connection:
            self._conn.close()

    def __enter__(self) -> "SqliteFilesystem":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def _kind(self, path: str) -> bool | None:
        """Return True for a directory, False for a file, None if absent."""
        row = self._conn.execute(
            f"SELECT is_dir FROM {self.table} WHERE path = ?", (path,)
        ).fetchone()
        if row is None:
            return None
        return bool(row[0])

    def _insert_dir(self, path: str, mtime: int) -> None:
        self._conn.execute(
            f"INSERT INTO {self.table} (path, parent_path, data, is_dir, mtime) "
            "VALUES (?, ?, '', 1, ?)",
            (path, parent_path(path), mtime),
        )

    def write_file(self, path: PathLike, data: bytes | str) -> None:
        path = normalize_path(path)
        encoded = base64.b64encode(to_bytes(data)).decode("ascii")
        if len(encoded) > self.max_object_size:
            raise too_large(path, len(encoded), self.max_object_size)
        mtime = _now_ms()
        with self._conn:
            if self._kind(path):
                raise is_a_directory(path)
            missing = []
            for ancestor in ancestors(path):
                kind = self._kind(ancestor)
                if kind is None:
                    missing.append(ancestor)
                elif not kind:
                    raise not_a_directory(path)
            for ancestor in missing:
                self._insert_dir(ancestor, mtime)
            self._conn.execute(
                f"INSERT OR REPLACE INTO {self.table} "
                "(path, parent_path, data, is_dir, mtime) VALUES (?, ?, ?, 0, ?)",
                (path, parent_path(path), encoded, mtime),
            )
        logger.debug("wrote %s (%d encoded bytes)", path, len(encoded))

    def read_file(self, path: PathLike) -> bytes:
        path = normalize_path(path)
        row = self._conn.execute(
            f"SELECT is_dir, data FROM {self.table} WHERE path = ?", (path,)
        ).fetchone()
        if row is None:
            raise not_found(path)
        if row[0]:
            raise is_a_directory(path)
        return base64.b64decode(row[1])

    def unlink(self, path: PathLike) -> None:
        path = normalize_path(path)
        with self._conn:
            kind = self._kind(path)
            if kind is None:
                raise not_found(path)
            if kind:
                raise permission_denied(path, "Is a directory, use rmdir")
            self._conn.execute(f"DELETE FROM {self.table} WHERE path = ?", (path,))

    def readdir(self, path: PathLike) -> list[str]:
        path = normalize_path(path)
        if not self._kind(path):
            raise not_found(path)
        rows = self._conn.execute(
            f"SELECT path FROM {self.table} WHERE parent_path = ? AND path != ''",
            (path,),
        )
        return [basename(child) for (child,) in rows]

    def mkdir(self, path: PathLike) -> None:
        path = normalize_path(path)
        with self._conn:
            kind = self._kind(path)
            if kind:
                return
            if kind is not None:
                raise already_exists(path)
            if not self._kind(parent_path(path)):
                raise not_found(path)
            self._insert_dir(path, _now_ms())

    def rmdir(self, path: PathLike) -> None:
        path = normalize_path(path)
        if not path:
            raise permission_denied(path, "Cannot remove the root directory")
        prefix = path + "/"
        with self._conn:
            kind = self._kind(path)
            if kind is None:
                raise not_found(path)
            if not kind:
                raise not_a_directory(path)
            descendant = self._conn.execute(
                f"SELECT 1 FROM {self.table} WHERE substr(path, 1, ?) = ? LIMIT 1",
                (len(prefix), prefix),
            ).fetchone()
            if descendant is not None:
                raise not_empty(path)
            self._conn.execute(f"DELETE FROM {self.table} WHERE path = ?", (path,))

    def stat(self, path: PathLike) -> os.stat_result:
        path = normalize_path(path)
        # Decoded length from the encoded text: 3 bytes per 4 characters,
        # less one byte per trailing pad character.
        row = self._conn.execute(
            "SELECT is_dir, mtime, length(data) / 4 * 3 "
            "- (substr(data, -2) = '==') - (substr(data, -1) = '=') "
            f"FROM {self.table} WHERE path = ?",
            (path,),
        ).fetchone()
        if row is None:
            raise not_found(path)
        is_dir, mtime, size = row
        if is_dir:
            return make_stat(DIR_MODE, 0, mtime / 1000)
        return make_stat(FILE_MODE, size, mtime / 1000)

    def storage_stats(self) -> StorageStats:
        """Return the number and encoded size of the stored files."""
        count, total, largest = self._conn.execute(
            "SELECT COUNT(*), COALESCE(SUM(length(data)), 0), "
            f"COALESCE(MAX(length(data)), 0) FROM {self.table} WHERE is_dir = 0"
        ).fetchone()
        return StorageStats(count, total, largest)

    def export_files(self, prefix: PathLike = ".git") -> list[tuple[str, bytes]]:
        """Return the path and contents of every file below prefix.

        Reads every file in a single query.

        Args:
          prefix: Directory to export; the root exports everything
        Returns: List of (path, contents) tuples, sorted by path
        Raises:
          FileNotFoundError: if prefix does not exist
        """
        prefix = normalize_path(prefix)
        kind = self._kind(prefix)
        if kind is None:
            raise not_found(prefix)
        if not kind:
            return [(prefix, self.read_file(prefix))]
        if prefix:
            start = prefix + "/"
            rows = self._conn.execute(
                f"SELECT path, data FROM {self.table} "
                "WHERE is_dir = 0 AND substr(path, 1, ?) = ? ORDER BY path",
                (len(start), start),
            )
        else:
            rows = self._conn.execute(
                f"SELECT path, data FROM {self.table} WHERE is_dir = 0 ORDER BY path"
            )
        return [(path, base64.b64decode(data)) for path, data in rows]
