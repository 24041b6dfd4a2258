# refs.py -- Git refs on a virtual filesystem
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

"""Ref handling on a virtual filesystem."""

__all__ = ["FilesystemRefsContainer"]

from collections.abc import Callable, Iterator
from io import BytesIO

from dulwich.objects import ZERO_SHA
from dulwich.refs import (
    HEADREF,
    SYMREF,
    RefsContainer,
    SymrefLoop,
    check_ref_format,
    read_packed_refs,
    read_packed_refs_with_peeled,
    write_packed_refs,
)

from .fs import BaseFilesystem, PathLike, normalize_path

PACKED_REFS = "packed-refs"


class FilesystemRefsContainer(RefsContainer):
    """Refs container that reads and writes loose ref files.

    A ``packed-refs`` file is honoured when present, but new values are
    always written as loose refs.
    """

    def __init__(
        self,
        fs: BaseFilesystem,
        path: PathLike = ".git",
        logger: Callable[..., None] | None = None,
    ) -> None:
        """Initialize a FilesystemRefsContainer.

        Args:
          fs: Filesystem holding the refs
          path: Control directory inside fs, e.g. ``.git``
          logger: Optional reflog callback, see :class:`RefsContainer`
        """
        super().__init__(logger=logger)
        self.fs = fs
        self.path = normalize_path(path)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.fs!r}, {self.path!r})"

    def refpath(self, name: bytes) -> str:
        """Return the filesystem path of a ref."""
        name_str = name.decode("utf-8")
        if not self.path:
            return name_str
        return f"{self.path}/{name_str}"

    def _iter_loose_refs(self, base: bytes = b"refs/") -> Iterator[bytes]:
        start = self.refpath(base.rstrip(b"/"))
        if not self.fs.isdir(start):
            return
        offset = len(self.path) + 1 if self.path else 0
        for filename in self.fs.walk_files(start):
            refname = filename[offset:].encode("utf-8")
            if check_ref_format(refname):
                yield refname

    def subkeys(self, base: bytes) -> set[bytes]:
        """Return subkeys under a given base reference path."""
        subkeys = set()
        for key in self._iter_loose_refs(base):
            if key.startswith(base):
                subkeys.add(key[len(base) :].strip(b"/"))
        for key in self.get_packed_refs():
            if key.startswith(base):
                subkeys.add(key[len(base) :].strip(b"/"))
        return subkeys

    def allkeys(self) -> set[bytes]:
        """Return all reference keys."""
        allkeys = set()
        if self.fs.isfile(self.refpath(HEADREF)):
            allkeys.add(HEADREF)
        allkeys.update(self._iter_loose_refs())
        allkeys.update(self.get_packed_refs())
        return allkeys

    def get_packed_refs(self) -> dict[bytes, bytes]:
        """Get contents of the packed-refs file.

        Returns: Dictionary mapping ref names to SHA1s; empty when there is
            no packed-refs file.
        """
        try:
            contents = self.fs.read_file(self.refpath(PACKED_REFS.encode("ascii")))
        except FileNotFoundError:
            return {}
        f = BytesIO(contents)
        first_line = f.readline().rstrip()
        packed = {}
        if first_line.startswith(b"# pack-refs") and b" peeled" in first_line:
            for sha, name, _peeled in read_packed_refs_with_peeled(f):
                packed[name] = sha
        else:
            f.seek(0)
            for sha, name in read_packed_refs(f):
                packed[name] = sha
        return packed

    def _remove_packed_ref(self, name: bytes) -> None:
        packed = self.get_packed_refs()
        if name not in packed:
            return
        del packed[name]
        f = BytesIO()
        write_packed_refs(f, packed)
        self.fs.write_file(self.refpath(PACKED_REFS.encode("ascii")), f.getvalue())

    def read_loose_ref(self, name: bytes) -> bytes | None:
        """Read a reference file and return its contents.

        If the reference file a symbolic reference, only read the first line of
        the file. Otherwise, only read the object id.

        Args:
          name: the refname to read
        Returns: The contents of the ref file, or None if the file does not
            exist.
        """
        try:
            contents = self.fs.read_file(self.refpath(name))
        except (OSError, UnicodeError):
            return None
        if contents.startswith(SYMREF):
            return contents.splitlines()[0].rstrip(b"\r\n")
        return contents[:40]

    def _realname(self, name: bytes) -> bytes:
        try:
            realnames, _ = self.follow(name)
            return realnames[-1]
        except (KeyError, IndexError, SymrefLoop):
            return name

    def set_symbolic_ref(
        self,
        name: bytes,
        other: bytes,
        committer: bytes | None = None,
        timestamp: int | None = None,
        timezone: int | None = None,
        message: bytes | None = None,
    ) -> None:
        """Make a ref point at another ref.

        Args:
          name: Name of the ref to set
          other: Name of the ref to point at
          committer: Optional committer name
          timestamp: Optional timestamp
          timezone: Optional timezone
          message: Optional message to describe the change
        """
        self._check_refname(name)
        self._check_refname(other)
        self.fs.write_file(self.refpath(name), SYMREF + other + b"\n")
        sha = self.follow(name)[-1]
        self._log(
            name,
            sha,
            sha,
            committer=committer,
            timestamp=timestamp,
            timezone=timezone,
            message=message,
        )

    def set_if_equals(
        self,
        name: bytes,
        old_ref: bytes | None,
        new_ref: bytes,
        committer: bytes | None = None,
        timestamp: int | None = None,
        timezone: int | None = None,
        message: bytes | None = None,
    ) -> bool:
        """Set a refname to new_ref only if it currently equals old_ref.

        This method follows all symbolic references.

        Args:
          name: The refname to set.
          old_ref: The old sha the refname must refer to, or None to set
            unconditionally.
          new_ref: The new sha the refname will refer to.
          committer: Optional committer name
          timestamp: Optional timestamp
          timezone: Optional timezone
          message: Set message for reflog
        Returns: True if the set was successful, False otherwise.
        """
        self._check_refname(name)
        realname = self._realname(name)
        if old_ref is not None:
            orig_ref = self.read_loose_ref(realname)
            if orig_ref is None:
                orig_ref = self.get_packed_refs().get(realname, ZERO_SHA)
            if orig_ref != old_ref:
                return False
        self.fs.write_file(self.refpath(realname), new_ref + b"\n")
        self._log(
            realname,
            old_ref,
            new_ref,
            committer=committer,
            timestamp=timestamp,
            timezone=timezone,
            message=message,
        )
        return True

    def add_if_new(
        self,
        name: bytes,
        ref: bytes,
        committer: bytes | None = None,
        timestamp: int | None = None,
        timezone: int | None = None,
        message: bytes | None = None,
    ) -> bool:
        """Add a new reference only if it does not already exist.

        Args:
          name: The refname to set.
          ref: The new sha the refname will refer to.
          committer: Optional committer name
          timestamp: Optional timestamp
          timezone: Optional timezone
          message: Optional message for reflog
        Returns: True if the add was successful, False otherwise.
        """
        self._check_refname(name)
        realname = self._realname(name)
        if (
            self.read_loose_ref(realname) is not None
            or realname in self.get_packed_refs()
        ):
            return False
        self.fs.write_file(self.refpath(realname), ref + b"\n")
        self._log(
            realname,
            None,
            ref,
            committer=committer,
            timestamp=timestamp,
            timezone=timezone,
            message=message,
        )
        return True

    def remove_if_equals(
        self,
        name: bytes,
        old_ref: bytes | None,
        committer: bytes | None = None,
        timestamp: int | None = None,
        timezone: int | None = None,
        message: bytes | None = None,
    ) -> bool:
        """Remove a refname only if it currently equals old_ref.

        Args:
          name: The refname to delete.
          old_ref: The old sha the refname must refer to, or None to
            delete unconditionally.
          committer: Optional committer name
          timestamp: Optional timestamp
          timezone: Optional timezone
          message: Optional message
        Returns: True if the delete was successful, False otherwise.
        """
        self._check_refname(name)
        if old_ref is not None:
            orig_ref = self.read_loose_ref(name)
            if orig_ref is None:
                orig_ref = self.get_packed_refs().get(name, ZERO_SHA)
            if orig_ref != old_ref:
                return False
        try:
            self.fs.unlink(self.refpath(name))
        except FileNotFoundError:
            pass
        self._remove_packed_ref(name)
        self._log(
            name,
            old_ref,
            None,
            committer=committer,
            timestamp=timestamp,
            timezone=timezone,
            message=message,
        )
        return True
