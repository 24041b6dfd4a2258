# object_store.py -- Git object store on a virtual filesystem
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

"""Git object store keeping loose objects on a :class:`BaseFilesystem`.

Objects are laid out exactly like a ``.git/objects`` directory on disk: the
first two hex digits of the object id name a directory, the rest name a zlib
compressed file inside it. A store's objects can therefore be copied between
filesystems file by file.
"""

__all__ = ["FilesystemObjectStore"]

import zlib
from collections.abc import Callable, Iterable, Iterator
from typing import TYPE_CHECKING

from dulwich.object_store import BaseObjectStore
from dulwich.objects import ObjectID, ShaFile, object_class, sha_to_hex, valid_hexsha

from .fs import BaseFilesystem, PathLike, normalize_path

if TYPE_CHECKING:
    from dulwich.object_format import ObjectFormat
    from dulwich.pack import Pack


class FilesystemObjectStore(BaseObjectStore):
    """Object store that keeps loose objects in a virtual filesystem."""

    def __init__(
        self,
        fs: BaseFilesystem,
        path: PathLike = ".git/objects",
        *,
        object_format: "ObjectFormat | None" = None,
    ) -> None:
        """Open an object store.

        Args:
          fs: Filesystem holding the objects
          path: Objects directory inside fs
          object_format: Hash algorithm; defaults to SHA-1
        """
        super().__init__(object_format=object_format)
        self.fs = fs
        self.path = normalize_path(path)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}({self.fs!r}, {self.path!r})>"

    @classmethod
    def init(
        cls, fs: BaseFilesystem, path: PathLike = ".git/objects"
    ) -> "FilesystemObjectStore":
        """Create the objects directory and return a store for it."""
        path = normalize_path(path)
        fs.makedirs(path + "/info")
        fs.makedirs(path + "/pack")
        return cls(fs, path)

    def _to_hexsha(self, sha: bytes) -> bytes:
        if len(sha) == self.object_format.hex_length:
            return sha
        elif len(sha) == self.object_format.oid_length:
            return sha_to_hex(sha)
        else:
            raise ValueError(f"Invalid sha {sha!r}")

    def _get_shafile_path(self, sha: bytes) -> str:
        hexsha = self._to_hexsha(sha).decode("ascii")
        return f"{self.path}/{hexsha[:2]}/{hexsha[2:]}"

    def contains_loose(self, sha: bytes) -> bool:
        """Check if a particular object is present by SHA1 and is loose."""
        return self.fs.isfile(self._get_shafile_path(sha))

    @property
    def packs(self) -> list["Pack"]:
        """List with pack objects."""
        return []

    def get_raw(self, name: bytes) -> tuple[int, bytes]:
        """Obtain the raw text for an object.

        Args:
          name: sha for the object.
        Returns: tuple with numeric type and object contents.
        Raises:
          KeyError: if the object is not present
        """
        try:
            compressed = self.fs.read_file(self._get_shafile_path(name))
        except FileNotFoundError:
            raise KeyError(name) from None
        raw = zlib.decompress(compressed)
        header, _, body = raw.partition(b"\0")
        type_name, _, size = header.partition(b" ")
        cls = object_class(type_name)
        if cls is None or int(size) != len(body):
            raise ValueError(f"corrupt loose object {name!r}")
        return cls.type_num, body

    def __iter__(self) -> Iterator[ObjectID]:
        """Iterate over the SHAs that are present in this store."""
        try:
            prefixes = self.fs.readdir(self.path)
        except FileNotFoundError:
            return
        for prefix in sorted(prefixes):
            if len(prefix) != 2:
                continue
            for rest in sorted(self.fs.readdir(f"{self.path}/{prefix}")):
                sha = (prefix + rest).encode("ascii")
                if valid_hexsha(sha):
                    yield ObjectID(sha)

    def add_object(self, obj: ShaFile) -> None:
        """Add a single object to this object store."""
        path = self._get_shafile_path(obj.id)
        if self.fs.exists(path):
            return
        self.fs.write_file(path, obj.as_legacy_object())

    def add_objects(
        self,
        objects: Iterable[tuple[ShaFile, str | None]],
        progress: Callable[[str], None] | None = None,
    ) -> None:
        """Add a set of objects to this object store.

        Args:
          objects: Iterable over a list of (object, path) tuples
          progress: Optional progress reporting function.
        """
        for obj, _path in objects:
            self.add_object(obj)
