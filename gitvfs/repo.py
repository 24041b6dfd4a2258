# repo.py -- Git repository on a virtual filesystem
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

"""Repository access on top of a :class:`BaseFilesystem`.

A :class:`FilesystemRepo` has a working tree rooted at some directory of a
filesystem and its control files in ``.git`` below that directory, laid out
the way git lays them out on disk. Instead of an index file the repository
keeps a plain text stage listing one ``<mode> <sha>\\t<path>`` line per
staged file.
"""

__all__ = [
    "CONTROLDIR",
    "DEFAULT_BRANCH",
    "FilesystemRepo",
    "StagedChange",
    "TreeItem",
    "check_working_path",
    "get_user_identity",
]

import os
import stat
import time
from collections.abc import Iterable
from io import BytesIO
from typing import NamedTuple

from dulwich.config import ConfigFile
from dulwich.errors import (
    CommitError,
    NotBlobError,
    NotCommitError,
    NotGitRepository,
    NotTreeError,
)
from dulwich.index import commit_tree
from dulwich.object_store import iter_tree_contents
from dulwich.objects import S_ISGITLINK, Blob, Commit, ShaFile, Tree
from dulwich.pack import write_pack_objects
from dulwich.refs import HEADREF, LOCAL_BRANCH_PREFIX
from dulwich.repo import check_user_identity

from . import log_utils
from .fs import BaseFilesystem, PathLike, normalize_path
from .object_store import FilesystemObjectStore
from .refs import FilesystemRefsContainer

logger = log_utils.getLogger(__name__)

CONTROLDIR = ".git"
STAGE_FILENAME = "gitvfs-stage"
DEFAULT_BRANCH = b"main"
DEFAULT_USER_NAME = b"gitvfs"
DEFAULT_USER_EMAIL = b"gitvfs@localhost"

BLOB_MODE = 0o100644


class StagedChange(NamedTuple):
    """A path whose staged blob differs from the one in HEAD."""

    path: bytes
    old_sha: bytes | None
    new_sha: bytes | None


class TreeItem(NamedTuple):
    """An entry of a tree, with the kind of object it refers to."""

    name: bytes
    sha: bytes
    kind: str


def get_user_identity(
    config: ConfigFile | None = None, kind: str = "AUTHOR"
) -> bytes:
    """Determine the identity to use for new commits.

    Each part is taken from the ``GIT_<kind>_NAME`` and ``GIT_<kind>_EMAIL``
    environment variables, then from ``user.name`` and ``user.email`` in
    config, then from the built-in default.

    Args:
      config: Repository configuration, if any
      kind: "AUTHOR" or "COMMITTER"
    Returns: identity as ``name <email>`` bytes
    """
    name: bytes | None = None
    email: bytes | None = None
    env_name = os.environ.get(f"GIT_{kind}_NAME")
    if env_name is not None:
        name = env_name.encode("utf-8")
    env_email = os.environ.get(f"GIT_{kind}_EMAIL")
    if env_email is not None:
        email = env_email.encode("utf-8")
    if config is not None:
        if name is None:
            try:
                name = config.get((b"user",), b"name")
            except KeyError:
                pass
        if email is None:
            try:
                email = config.get((b"user",), b"email")
            except KeyError:
                pass
    if name is None:
        name = DEFAULT_USER_NAME
    if email is None:
        email = DEFAULT_USER_EMAIL
    return name + b" <" + email + b">"


def check_working_path(path: PathLike) -> str:
    """Return the canonical form of a working tree path.

    Raises:
      ValueError: if the path lies inside the control directory
    """
    path = normalize_path(path)
    if path == CONTROLDIR or path.startswith(CONTROLDIR + "/"):
        raise ValueError(f"{path!r} is inside the control directory")
    return path


def _join(*parts: str) -> str:
    return "/".join(p for p in parts if p)


class FilesystemRepo:
    """A git repository stored in a virtual filesystem.

    Attributes:
      fs: The filesystem holding the repository
      root: Working tree directory inside fs
      controldir: Path of the ``.git`` directory inside fs
      object_store: Object store for this repository
      refs: Refs container for this repository
    """

    def __init__(self, fs: BaseFilesystem, root: PathLike = "") -> None:
        """Open an existing repository.

        Args:
          fs: Filesystem holding the repository
          root: Working tree directory inside fs
        Raises:
          NotGitRepository: if there is no repository at root
        """
        self.fs = fs
        self.root = normalize_path(root)
        self.controldir = _join(self.root, CONTROLDIR)
        if not fs.isdir(self.controldir):
            raise NotGitRepository(f"No git repository was found at /{self.root}")
        self.object_store = FilesystemObjectStore(
            fs, _join(self.controldir, "objects")
        )
        self.refs = FilesystemRefsContainer(fs, self.controldir)
        self.object_format = self.object_store.object_format

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} for {self.fs!r} at /{self.root}>"

    @classmethod
    def init(
        cls,
        fs: BaseFilesystem,
        root: PathLike = "",
        default_branch: bytes | None = None,
        config: ConfigFile | None = None,
    ) -> "FilesystemRepo":
        """Create a new repository.

        Args:
          fs: Filesystem to create the repository in
          root: Working tree directory inside fs
          default_branch: Branch HEAD points at; defaults to
            ``init.defaultBranch`` from config, then ``main``
          config: Initial configuration, e.g. with ``user.name``
        Returns: the new repository
        """
        controldir = _join(normalize_path(root), CONTROLDIR)
        for subdir in ("refs/heads", "refs/tags", "info"):
            fs.makedirs(_join(controldir, subdir))
        FilesystemObjectStore.init(fs, _join(controldir, "objects"))
        ret = cls(fs, root)
        if config is None:
            config = ConfigFile()
        if default_branch is None:
            try:
                default_branch = config.get((b"init",), b"defaultBranch")
            except KeyError:
                default_branch = DEFAULT_BRANCH
        config.set((b"core",), b"repositoryformatversion", b"0")
        config.set((b"core",), b"filemode", False)
        config.set((b"core",), b"bare", False)
        config.set((b"core",), b"symlinks", False)
        ret.set_config(config)
        ret.set_description(b"Unnamed repository")
        ret.refs.set_symbolic_ref(HEADREF, LOCAL_BRANCH_PREFIX + default_branch)
        logger.debug("initialized repository at /%s", ret.root)
        return ret

    def _controlpath(self, path: str) -> str:
        return _join(self.controldir, normalize_path(path))

    def get_named_file(self, path: str | bytes) -> BytesIO | None:
        """Get a file from the control dir with a specific name.

        Args:
          path: The path to the file, relative to the control dir.
        Returns: An open file object, or None if the file does not exist.
        """
        if isinstance(path, bytes):
            path = path.decode("utf-8")
        try:
            return BytesIO(self.fs.read_file(self._controlpath(path)))
        except FileNotFoundError:
            return None

    def _put_named_file(self, path: str, contents: bytes) -> None:
        """Write a file to the control dir with the given name and contents.

        Args:
          path: The path to the file, relative to the control dir.
          contents: A string to write to the file.
        """
        self.fs.write_file(self._controlpath(path), contents)

    def _del_named_file(self, path: str) -> None:
        try:
            self.fs.unlink(self._controlpath(path))
        except FileNotFoundError:
            pass

    def get_config(self) -> ConfigFile:
        """Retrieve the config object.

        Returns: `ConfigFile` object for the ``.git/config`` file.
        """
        f = self.get_named_file("config")
        if f is None:
            return ConfigFile()
        return ConfigFile.from_file(f)

    def set_config(self, config: ConfigFile) -> None:
        """Replace the repository configuration."""
        f = BytesIO()
        config.write_to_file(f)
        self._put_named_file("config", f.getvalue())

    def get_description(self) -> bytes | None:
        f = self.get_named_file("description")
        if f is None:
            return None
        return f.read()

    def set_description(self, description: bytes) -> None:
        self._put_named_file("description", description)

    def __getitem__(self, name: bytes) -> ShaFile:
        """Retrieve an object by SHA1."""
        return self.object_store[name]

    def __contains__(self, name: bytes) -> bool:
        return name in self.object_store

    def working_path(self, path: PathLike) -> str:
        """Return the filesystem path of a working tree path."""
        return _join(self.root, normalize_path(path))

    def read_stage(self) -> dict[bytes, tuple[int, bytes]]:
        """Return the staged files.

        Returns: Dictionary mapping path to (mode, sha)
        """
        f = self.get_named_file(STAGE_FILENAME)
        if f is None:
            return {}
        entries = {}
        for line in f:
            info, path = line.rstrip(b"\n").split(b"\t", 1)
            mode, sha = info.split(b" ", 1)
            entries[path] = (int(mode, 8), sha)
        return entries

    def _write_stage(self, entries: dict[bytes, tuple[int, bytes]]) -> None:
        lines = [
            b"%06o %s\t%s\n" % (mode, sha, path)
            for path, (mode, sha) in sorted(entries.items())
        ]
        self._put_named_file(STAGE_FILENAME, b"".join(lines))

    def stage(self, paths: Iterable[PathLike]) -> None:
        """Stage the current contents of working tree files.

        A path whose file no longer exists is removed from the stage.

        Args:
          paths: Working tree paths to stage
        """
        entries = self.read_stage()
        for path in paths:
            path = check_working_path(path)
            bpath = path.encode("utf-8")
            try:
                contents = self.fs.read_file(self.working_path(path))
            except FileNotFoundError:
                entries.pop(bpath, None)
                continue
            blob = Blob.from_string(contents)
            self.object_store.add_object(blob)
            entries[bpath] = (BLOB_MODE, blob.id)
        self._write_stage(entries)

    def stage_tree(self) -> bytes:
        """Write the staged files as a tree and return its id."""
        blobs = [(path, sha, mode) for path, (mode, sha) in self.read_stage().items()]
        return commit_tree(self.object_store, blobs)

    def _head_tree_contents(self) -> dict[bytes, bytes]:
        head = self.resolve_ref(HEADREF)
        if head is None:
            return {}
        tree_id = self.read_commit(head).tree
        return {
            entry.path: entry.sha
            for entry in iter_tree_contents(self.object_store, tree_id)
        }

    def staged_changes(self) -> list[StagedChange]:
        """Compare the stage against the tree of HEAD.

        Returns: List of changed paths, sorted by path; empty when the stage
            matches HEAD
        """
        head = self._head_tree_contents()
        staged = {path: sha for path, (_mode, sha) in self.read_stage().items()}
        changes = []
        for path in sorted(set(head) | set(staged)):
            old_sha = head.get(path)
            new_sha = staged.get(path)
            if old_sha != new_sha:
                changes.append(StagedChange(path, old_sha, new_sha))
        return changes

    def resolve_ref(self, name: bytes) -> bytes | None:
        """Return the commit id a ref resolves to, or None."""
        return self.refs.follow(name)[1]

    def head(self) -> bytes:
        """Return the SHA1 pointed at by HEAD.

        Raises:
          KeyError: if HEAD does not resolve
        """
        return self.refs[HEADREF]

    def write_ref(self, name: bytes, sha: bytes, force: bool = True) -> bool:
        """Point a ref at an object.

        Args:
          name: Full ref name, e.g. ``refs/heads/main``
          sha: Object id to point at
          force: Overwrite an existing value
        Returns: False if the ref existed and force was not given
        """
        if force:
            return self.refs.set_if_equals(name, None, sha)
        return self.refs.add_if_new(name, sha)

    def list_branches(self) -> list[bytes]:
        """Return the names of all local branches, sorted."""
        return sorted(self.refs.keys(base=LOCAL_BRANCH_PREFIX))

    def read_commit(self, sha: bytes) -> Commit:
        obj = self[sha]
        if not isinstance(obj, Commit):
            raise NotCommitError(sha)
        return obj

    def read_tree(self, sha: bytes) -> list[TreeItem]:
        """Return the entries of a tree."""
        obj = self[sha]
        if not isinstance(obj, Tree):
            raise NotTreeError(sha)
        items = []
        for name, mode, item_sha in obj.iteritems():
            if S_ISGITLINK(mode):
                kind = "commit"
            elif stat.S_ISDIR(mode):
                kind = "tree"
            else:
                kind = "blob"
            items.append(TreeItem(name, item_sha, kind))
        return items

    def read_blob(self, sha: bytes) -> bytes:
        obj = self[sha]
        if not isinstance(obj, Blob):
            raise NotBlobError(sha)
        return obj.as_raw_string()

    def build_pack(self, object_ids: Iterable[bytes]) -> bytes:
        """Build a pack file holding the given objects.

        Args:
          object_ids: Ids of the objects to include
        Returns: Contents of the pack file
        """
        objects = [self[sha] for sha in object_ids]
        f = BytesIO()
        write_pack_objects(f.write, objects, object_format=self.object_format)
        return f.getvalue()

    def do_commit(
        self,
        message: bytes,
        committer: bytes | None = None,
        author: bytes | None = None,
        commit_timestamp: float | None = None,
        commit_timezone: int | None = None,
        author_timestamp: float | None = None,
        author_timezone: int | None = None,
        tree: bytes | None = None,
        encoding: bytes | None = None,
        ref: bytes = HEADREF,
    ) -> bytes:
        """Create a new commit.

        Args:
          message: Commit message
          committer: Committer fullname
          author: Author fullname (defaults to committer)
          commit_timestamp: Commit timestamp (defaults to now)
          commit_timezone: Commit timestamp timezone (defaults to GMT)
          author_timestamp: Author timestamp (defaults to commit timestamp)
          author_timezone: Author timestamp timezone
            (defaults to commit timestamp timezone)
          tree: SHA1 of the tree root to use (defaults to the stage)
          encoding: Encoding
          ref: Ref to commit to, following symrefs
        Returns:
          New commit SHA1
        """
        config = self.get_config()
        c = Commit()
        c.tree = tree if tree is not None else self.stage_tree()
        if committer is None:
            committer = get_user_identity(config, kind="COMMITTER")
        check_user_identity(committer)
        c.committer = committer
        if commit_timestamp is None:
            commit_timestamp = time.time()
        c.commit_time = int(commit_timestamp)
        if commit_timezone is None:
            commit_timezone = 0
        c.commit_timezone = commit_timezone
        if author is None:
            author = committer
        check_user_identity(author)
        c.author = author
        if author_timestamp is None:
            author_timestamp = commit_timestamp
        c.author_time = int(author_timestamp)
        if author_timezone is None:
            author_timezone = commit_timezone
        c.author_timezone = author_timezone
        if encoding is not None:
            c.encoding = encoding
        c.message = message

        old_head = self.resolve_ref(ref)
        if old_head is not None:
            c.parents = [old_head]
            self.object_store.add_object(c)
            ok = self.refs.set_if_equals(
                ref,
                old_head,
                c.id,
                message=b"commit: " + message,
                committer=committer,
                timestamp=int(commit_timestamp),
                timezone=commit_timezone,
            )
        else:
            c.parents = []
            self.object_store.add_object(c)
            ok = self.refs.add_if_new(
                ref,
                c.id,
                message=b"commit (initial): " + message,
                committer=committer,
                timestamp=int(commit_timestamp),
                timezone=commit_timezone,
            )
        if not ok:
            raise CommitError(f"{ref!r} changed during commit")
        logger.debug("created commit %s", c.id.decode("ascii"))
        return c.id
