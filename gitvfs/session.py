# session.py -- Version control for one persistent workspace
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

"""Checkpointing of a workspace kept in a persistent store.

A :class:`RepositorySession` owns the repository at the root of one store.
The repository is created on first use; afterwards every call to
:meth:`RepositorySession.commit` records a checkpoint of the files it is
given, skipping the commit when nothing changed.
"""

__all__ = ["CommitInfo", "FileSnapshot", "RepositorySession"]

import heapq
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import NamedTuple

from dulwich.errors import NotGitRepository
from dulwich.refs import HEADREF

from . import log_utils
from .fs import BaseFilesystem, StorageStats
from .repo import (
    CONTROLDIR,
    DEFAULT_BRANCH,
    FilesystemRepo,
    check_working_path,
    get_user_identity,
)

logger = log_utils.getLogger(__name__)

DEFAULT_LOG_LIMIT = 50


class CommitInfo(NamedTuple):
    """Summary of one commit in the history of a session.

    The timestamp is the author time in milliseconds since the epoch.
    """

    sha: bytes
    message: str
    author: str
    timestamp: int


class FileSnapshot(NamedTuple):
    path: str
    content: str


class RepositorySession:
    """A repository rooted at the top of a persistent filesystem."""

    def __init__(self, fs: BaseFilesystem, author: bytes | str | None = None) -> None:
        """Bind a session to a store.

        Args:
          fs: Store holding the working tree and the repository
          author: Identity for new commits, as ``name <email>``; when not
            given it comes from the environment or the repository config
        """
        self.fs = fs
        if isinstance(author, str):
            author = author.encode("utf-8")
        self._author = author
        self._repo: FilesystemRepo | None = None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.fs!r})"

    def init(self) -> FilesystemRepo:
        """Open the repository, creating it if this store has none yet."""
        if self._repo is None:
            try:
                self._repo = FilesystemRepo(self.fs)
            except NotGitRepository:
                self._repo = FilesystemRepo.init(self.fs, default_branch=DEFAULT_BRANCH)
                logger.info("initialized repository in %r", self.fs)
        return self._repo

    @property
    def repo(self) -> FilesystemRepo:
        return self.init()

    def has_repository(self) -> bool:
        """Check whether the store holds a ``.git`` directory."""
        return self.fs.isdir(CONTROLDIR)

    def author(self) -> bytes:
        """Return the identity used for new commits."""
        if self._author is not None:
            return self._author
        return get_user_identity(self.repo.get_config())

    def commit(
        self,
        files: Mapping[str, bytes | str] | Iterable[tuple[str, bytes | str]],
        message: str | None = None,
    ) -> bytes | None:
        """Write files to the working tree and commit them.

        Args:
          files: Mapping or pairs of path to new contents
          message: Commit message; defaults to a timestamped checkpoint
            message
        Returns: The new commit id, or None if the files did not change
            anything
        Raises:
          ValueError: if no files are given, or a path lies inside the
            control directory; nothing is written in either case
        """
        if isinstance(files, Mapping):
            files = files.items()
        files = list(files)
        if not files:
            raise ValueError("No files to commit")
        files = [(check_working_path(path), contents) for path, contents in files]
        repo = self.init()
        paths = []
        for path, contents in files:
            self.fs.write_file(repo.working_path(path), contents)
            paths.append(path)
        repo.stage(paths)
        if not repo.staged_changes():
            logger.debug("no changes among %d files, skipping commit", len(paths))
            return None
        if message is None:
            message = "Auto-checkpoint (%s)" % datetime.now(timezone.utc).isoformat()
        author = self.author()
        sha = repo.do_commit(message.encode("utf-8"), committer=author, author=author)
        logger.info("committed %d files as %s", len(paths), sha.decode("ascii"))
        return sha

    def head(self) -> bytes | None:
        """Return the commit HEAD points at, or None before the first commit."""
        if not self.has_repository():
            return None
        return self.repo.resolve_ref(HEADREF)

    def has_history(self) -> bool:
        return self.head() is not None

    def log(self, limit: int = DEFAULT_LOG_LIMIT) -> list[CommitInfo]:
        """Return the most recent commits reachable from HEAD, newest first.

        Args:
          limit: Maximum number of commits to return
        """
        head = self.head()
        if head is None:
            return []
        repo = self.repo
        first = repo.read_commit(head)
        pending = [(-first.commit_time, head)]
        seen = {head}
        entries = []
        while pending and len(entries) < limit:
            _, sha = heapq.heappop(pending)
            c = repo.read_commit(sha)
            entries.append(
                CommitInfo(
                    sha,
                    c.message.decode("utf-8", "replace"),
                    c.author.decode("utf-8", "replace"),
                    c.author_time * 1000,
                )
            )
            for parent in c.parents:
                if parent not in seen:
                    seen.add(parent)
                    heapq.heappush(
                        pending, (-repo.read_commit(parent).commit_time, parent)
                    )
        return entries

    def checkout(self, sha: bytes) -> list[FileSnapshot]:
        """Return the text files of a commit.

        Binary files are left out, so this is only suitable for presenting
        source code.

        Args:
          sha: Commit id
        Returns: List of files, sorted by path
        """
        repo = self.repo
        commit = repo.read_commit(sha)
        files = []
        pending = [(b"", commit.tree)]
        while pending:
            prefix, tree_id = pending.pop()
            for item in repo.read_tree(tree_id):
                path = prefix + item.name
                if item.kind == "tree":
                    pending.append((path + b"/", item.sha))
                elif item.kind == "blob":
                    contents = repo.read_blob(item.sha)
                    if b"\0" in contents:
                        continue
                    try:
                        text = contents.decode("utf-8")
                    except UnicodeDecodeError:
                        continue
                    files.append(FileSnapshot(path.decode("utf-8"), text))
        return sorted(files)

    def storage_stats(self) -> StorageStats:
        return self.fs.storage_stats()
